"""Unit tests for CLI commands with mocked credentials and scanner."""

from unittest.mock import AsyncMock, MagicMock, patch

import asyncclick as click
import pytest
from asyncclick.testing import CliRunner
from keyring.errors import PasswordDeleteError

from socket_scanner.cli.keys import cli, parse_package_spec
from socket_scanner.core.config import Config
from socket_scanner.core.log import parse_level
from socket_scanner.core.models import Advisory, Package, RiskLevel
from socket_scanner.core.secrets import CredentialProvider
from socket_scanner.scanner import MissingCredentialError


class MemoryStore:
    def __init__(self, value=None):
        self.value = value

    def get(self):
        return self.value

    def set(self, value):
        self.value = value

    def delete(self):
        if self.value is None:
            raise PasswordDeleteError("not found")
        self.value = None


def credentials(env_key: str = "", stored=None) -> CredentialProvider:
    return CredentialProvider(Config(api_token=env_key), store=MemoryStore(stored))


@pytest.mark.asyncio
async def test_set_stores_key():
    runner = CliRunner()
    creds = credentials()

    with patch("socket_scanner.cli.keys.get_credentials", return_value=creds):
        result = await runner.invoke(cli, ["set", "--api-key", "  sk-live-123  "])

    assert result.exit_code == 0
    assert "[+] API key has been saved securely" in result.output
    assert creds.store.value == "sk-live-123"


@pytest.mark.asyncio
async def test_set_prompts_for_key():
    runner = CliRunner()
    creds = credentials()

    with patch("socket_scanner.cli.keys.get_credentials", return_value=creds):
        result = await runner.invoke(cli, ["set"], input="prompted-key\n")

    assert result.exit_code == 0
    assert creds.store.value == "prompted-key"
    assert "prompted-key" not in result.output


@pytest.mark.asyncio
async def test_set_rejects_empty_key():
    runner = CliRunner()
    creds = credentials()

    with patch("socket_scanner.cli.keys.get_credentials", return_value=creds):
        result = await runner.invoke(cli, ["set", "--api-key", "   "])

    assert result.exit_code == 1
    assert "[-] API key cannot be empty" in result.output
    assert creds.store.value is None


@pytest.mark.asyncio
async def test_delete_removes_key():
    runner = CliRunner()
    creds = credentials(stored="secret")

    with patch("socket_scanner.cli.keys.get_credentials", return_value=creds):
        result = await runner.invoke(cli, ["delete"])

    assert result.exit_code == 0
    assert "[+] API key has been deleted" in result.output
    assert creds.store.value is None


@pytest.mark.asyncio
async def test_delete_without_key_fails():
    runner = CliRunner()

    with patch("socket_scanner.cli.keys.get_credentials", return_value=credentials()):
        result = await runner.invoke(cli, ["delete"])

    assert result.exit_code == 1
    assert "[-] Failed to delete API key" in result.output


@pytest.mark.asyncio
@pytest.mark.parametrize("env_key,stored,expected", [
    ("env-key", "secret", "Environment variable"),
    ("", "secret", "OS keyring"),
    ("", None, "No API key configured"),
])
async def test_status_reports_source(env_key, stored, expected):
    runner = CliRunner()

    with patch("socket_scanner.cli.keys.get_credentials", return_value=credentials(env_key, stored)):
        result = await runner.invoke(cli, ["status"])

    assert result.exit_code == 0
    assert expected in result.output


@pytest.mark.asyncio
async def test_scan_reports_advisories_and_fails_on_fatal():
    runner = CliRunner()
    mock_scanner = MagicMock()
    mock_scanner.scan = AsyncMock(return_value=[
        Advisory(
            level=RiskLevel.FATAL,
            package="evil-pkg",
            description="Supply chain risks found: critical malware",
            url="https://socket.dev/npm/issue/malware",
        ),
    ])

    with patch("socket_scanner.cli.keys.get_scanner", return_value=mock_scanner):
        result = await runner.invoke(cli, ["scan", "evil-pkg@6.6.6", "@types/node@20.1.0"])

    assert result.exit_code == 1
    assert "[-] FATAL evil-pkg: Supply chain risks found: critical malware" in result.output
    assert "https://socket.dev/npm/issue/malware" in result.output

    scanned = mock_scanner.scan.call_args.args[0]
    assert [p.name for p in scanned] == ["evil-pkg", "@types/node"]
    assert [p.version for p in scanned] == ["6.6.6", "20.1.0"]


@pytest.mark.asyncio
async def test_scan_warn_only_exits_zero():
    runner = CliRunner()
    mock_scanner = MagicMock()
    mock_scanner.scan = AsyncMock(return_value=[
        Advisory(level=RiskLevel.WARN, package="old-pkg", description="Moderate supply chain risk (score: 0.4)"),
    ])

    with patch("socket_scanner.cli.keys.get_scanner", return_value=mock_scanner):
        result = await runner.invoke(cli, ["scan", "old-pkg@1.0.0"])

    assert result.exit_code == 0
    assert "[!] WARN old-pkg" in result.output


@pytest.mark.asyncio
async def test_scan_clean():
    runner = CliRunner()
    mock_scanner = MagicMock()
    mock_scanner.scan = AsyncMock(return_value=[])

    with patch("socket_scanner.cli.keys.get_scanner", return_value=mock_scanner):
        result = await runner.invoke(cli, ["scan", "lodash@4.17.21"])

    assert result.exit_code == 0
    assert "[+] No security concerns found" in result.output


@pytest.mark.asyncio
async def test_scan_without_key_fails():
    runner = CliRunner()
    mock_scanner = MagicMock()
    mock_scanner.scan = AsyncMock(side_effect=MissingCredentialError("Socket.dev API key not found."))

    with patch("socket_scanner.cli.keys.get_scanner", return_value=mock_scanner):
        result = await runner.invoke(cli, ["scan", "lodash@4.17.21"])

    assert result.exit_code == 1
    assert "[-] Socket.dev API key not found." in result.output


def test_parse_package_spec():
    assert parse_package_spec("@scope/pkg@1.2.3") == Package(name="@scope/pkg", version="1.2.3", requestedRange="1.2.3")

    with pytest.raises(click.BadParameter):
        parse_package_spec("lodash")


def test_parse_level():
    assert parse_level("warning") == 30
    assert parse_level("10") == 10
    assert parse_level(None) == 20
    assert parse_level("chatty") == 20
