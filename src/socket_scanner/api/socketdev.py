"""Socket.dev risk service client (aiohttp).

Wraps the two package endpoints the scanner needs. Every failure, whether
HTTP status, connection error, timeout or unparseable body, is returned as an
unsuccessful ApiResult instead of raised, so callers can treat a failed
query as "no data". No retries: one failed attempt is final.

Provides:
- SocketClient: RiskServiceClient implementation for api.socket.dev
"""

import asyncio
import base64
from typing import Any
from urllib.parse import quote

import aiohttp
import structlog

from socket_scanner.api.base import ApiResult, ApiStatus
from socket_scanner.core.models import Issue, RiskScore

logger = structlog.get_logger()

DEFAULT_BASE_URL = "https://api.socket.dev/v0"
USER_AGENT = "socket-scanner/0.1.0"


class SocketClient:
    """Client for the Socket.dev package issue and score endpoints.

    Can be used directly (one aiohttp session per request) or as an async
    context manager sharing a single session across a scan.

    Args:
        api_token: Socket.dev API key, sent as the basic auth user
        base_url: API root (default: https://api.socket.dev/v0)
        timeout: Total timeout per request in seconds

    Example:
        >>> async with SocketClient("sk_...") as client:
        ...     result = await client.get_issues("lodash", "4.17.21")
        ...     if result.success:
        ...         print(len(result.data))
    """

    def __init__(
        self,
        api_token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        # aiohttp.BasicAuth rejects ":" in the login; API keys may contain one
        credentials = base64.b64encode(f"{api_token}:".encode()).decode("ascii")
        self.headers = {
            "Authorization": f"Basic {credentials}",
            "User-Agent": USER_AGENT,
        }
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "SocketClient":
        self._session = self._new_session()
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    def _new_session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(timeout=self.timeout, headers=self.headers)

    def _package_url(self, name: str, version: str, endpoint: str) -> str:
        # Scoped names ("@scope/pkg") must stay one path segment
        return (
            f"{self.base_url}/npm/{quote(name, safe='')}"
            f"/{quote(version, safe='')}/{endpoint}"
        )

    async def _fetch(self, session: aiohttp.ClientSession, url: str) -> ApiResult:
        async with session.get(url) as response:
            if response.status >= 400:
                body = await response.text()
                return ApiResult(
                    status=ApiStatus.HTTP_ERROR,
                    error=f"HTTP {response.status}: {body[:200]}",
                    http_status=response.status,
                )
            payload = await response.json(content_type=None)
            return ApiResult(
                status=ApiStatus.SUCCESS,
                data=payload,
                http_status=response.status,
            )

    async def _get_json(self, url: str) -> ApiResult:
        """GET ``url`` and decode JSON, converting every failure to ApiResult."""
        log = logger.bind(url=url)

        try:
            if self._session is not None:
                return await self._fetch(self._session, url)

            async with self._new_session() as session:
                return await self._fetch(session, url)

        except asyncio.TimeoutError:
            log.warning("risk_service_timeout")
            return ApiResult(status=ApiStatus.TIMEOUT, error="Request timed out")
        except aiohttp.ClientError as e:
            log.warning("risk_service_connection_error", error=str(e))
            return ApiResult(status=ApiStatus.ERROR, error=f"Connection error: {e}")
        except ValueError as e:
            log.warning("risk_service_malformed_response", error=str(e))
            return ApiResult(status=ApiStatus.ERROR, error=f"Malformed response: {e}")

    async def get_issues(self, name: str, version: str) -> ApiResult:
        """Fetch issues for ``name@version``.

        Returns:
            ApiResult whose data is a list of Issue on success
        """
        result = await self._get_json(self._package_url(name, version, "issues"))
        if not result.success:
            return result

        payload: Any = result.data
        if not isinstance(payload, list):
            return ApiResult(
                status=ApiStatus.ERROR,
                error="Malformed response: issue list expected",
                http_status=result.http_status,
            )

        issues = [Issue.from_api(item) for item in payload if isinstance(item, dict)]
        return ApiResult(status=ApiStatus.SUCCESS, data=issues, http_status=result.http_status)

    async def get_score(self, name: str, version: str) -> ApiResult:
        """Fetch the score for ``name@version``.

        Returns:
            ApiResult whose data is a RiskScore on success. A payload without
            a supply chain score still succeeds, with an empty RiskScore.
        """
        result = await self._get_json(self._package_url(name, version, "score"))
        if not result.success:
            return result

        return ApiResult(
            status=ApiStatus.SUCCESS,
            data=RiskScore.from_api(result.data),
            http_status=result.http_status,
        )
