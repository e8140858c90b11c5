"""AsyncClick CLI for API key management and ad-hoc scans.

Provides user-facing commands:
- set: Store the Socket.dev API key in the OS keyring
- delete: Remove the stored API key
- status: Show whether a key is configured and where it comes from
- scan: Check packages (name@version) the way the installer would
"""

import asyncclick as click
from keyring.errors import KeyringError

from socket_scanner.core.config import LEGACY_TOKEN_ENV, TOKEN_ENV, load_config
from socket_scanner.core.log import configure_logging
from socket_scanner.core.models import Package, RiskLevel
from socket_scanner.core.secrets import CredentialProvider
from socket_scanner.scanner import MissingCredentialError, SecurityScanner


def get_credentials() -> CredentialProvider:
    return CredentialProvider(load_config())


def get_scanner() -> SecurityScanner:
    return SecurityScanner()


def parse_package_spec(spec: str) -> Package:
    """Parse ``name@version`` (scoped names like ``@types/node@20.1.0`` too)."""
    name, sep, version = spec.rpartition("@")
    if not sep or not name or not version:
        raise click.BadParameter(f"expected name@version, got {spec!r}")
    return Package(name=name, version=version, requestedRange=version)


@click.group()
@click.pass_context
async def cli(ctx):
    """Socket.dev package security scanner - API key management"""
    ctx.ensure_object(dict)


@cli.command("set")
@click.option("--api-key", prompt="Enter Socket.dev API key", hide_input=True,
              default="", show_default=False, help="API key (prompted if omitted)")
@click.pass_context
async def set_key(ctx, api_key: str):
    """Store the Socket.dev API key securely.

    Example:
        socket-scanner set
    """
    if not api_key.strip():
        click.echo("[-] API key cannot be empty")
        ctx.exit(1)

    try:
        get_credentials().set_api_key(api_key)
    except KeyringError as e:
        click.echo(f"[-] Failed to set API key: {e}")
        ctx.exit(1)

    click.echo("[+] API key has been saved securely")


@cli.command("delete")
@click.pass_context
async def delete_key(ctx):
    """Delete the stored Socket.dev API key."""
    try:
        get_credentials().delete_api_key()
    except KeyringError as e:
        click.echo(f"[-] Failed to delete API key: {e}")
        ctx.exit(1)

    click.echo("[+] API key has been deleted")


@cli.command()
async def status():
    """Show current API key configuration status."""
    source = get_credentials().key_source()

    click.echo("Socket.dev API Key Status:")
    click.echo("=" * 26)

    if source == "environment":
        click.echo("[+] API key is configured")
        click.echo(f"[*] Source: Environment variable ({TOKEN_ENV} or {LEGACY_TOKEN_ENV})")
    elif source == "keyring":
        click.echo("[+] API key is configured")
        click.echo("[*] Source: OS keyring (secure storage)")
    else:
        click.echo("[-] No API key configured")
        click.echo("[*] Use 'socket-scanner set' to configure an API key")


@cli.command()
@click.argument("packages", nargs=-1, required=True)
@click.pass_context
async def scan(ctx, packages: tuple[str, ...]):
    """Scan packages given as name@version.

    Exits with status 1 if any package would be blocked.

    Examples:
        socket-scanner scan lodash@4.17.21
        socket-scanner scan @types/node@20.1.0 left-pad@1.3.0
    """
    parsed = [parse_package_spec(spec) for spec in packages]

    click.echo(f"[*] Scanning {len(parsed)} package(s)")

    try:
        advisories = await get_scanner().scan(parsed)
    except MissingCredentialError as e:
        click.echo(f"[-] {e}")
        ctx.exit(1)

    if not advisories:
        click.echo("[+] No security concerns found")
        return

    for advisory in advisories:
        marker = "[-]" if advisory.level == RiskLevel.FATAL else "[!]"
        click.echo(f"{marker} {advisory.level.value.upper()} {advisory.package}: {advisory.description}")
        if advisory.url:
            click.echo(f"    {advisory.url}")

    if any(a.level == RiskLevel.FATAL for a in advisories):
        ctx.exit(1)


def main():
    """Console script entry point."""
    configure_logging(load_config().log_level)
    cli()


if __name__ == "__main__":
    main()
