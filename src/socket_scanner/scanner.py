"""SecurityScanner: install-time gate over a batch of packages.

Resolves the API key, fans out one task per package, runs the issue and
score queries of each package concurrently, classifies, and returns the
advisories for packages that are not safe.

Failure isolation:
- A failed query counts as "no data" for that signal only
- An unexpected error while handling one package drops only that package
- The only error raised to the caller is MissingCredentialError
"""

import asyncio
from collections.abc import Callable, Iterable
from contextlib import AsyncExitStack
from typing import Any

import structlog

from socket_scanner.api.base import ApiResult, RiskServiceClient
from socket_scanner.api.socketdev import SocketClient
from socket_scanner.core.config import (
    TOKEN_ENV,
    Config,
    MissingCredentialPolicy,
    Thresholds,
    load_config,
)
from socket_scanner.core.models import Advisory, Issue, Package, ScanRequest
from socket_scanner.core.secrets import CredentialProvider
from socket_scanner.core.severity import classify, to_advisory

logger = structlog.get_logger()

MISSING_KEY_MESSAGE = (
    "Socket.dev API key not found. Configure with: socket-scanner set "
    f"or set {TOKEN_ENV} environment variable"
)

ClientFactory = Callable[[str, Config], RiskServiceClient]


class MissingCredentialError(RuntimeError):
    """No API key is configured, so the batch cannot be checked."""


def socket_client_factory(api_token: str, config: Config) -> SocketClient:
    return SocketClient(
        api_token,
        base_url=config.api_base_url,
        timeout=config.request_timeout,
    )


class SecurityScanner:
    """Batch scanner the installer calls before installing packages.

    Args:
        config: Configuration; loaded from the environment on each scan if
            not given
        credentials: API key provider; built from the configuration if not
            given
        client_factory: Builds the risk service client from the API key
    """

    version = "1"

    def __init__(
        self,
        config: Config | None = None,
        credentials: CredentialProvider | None = None,
        client_factory: ClientFactory | None = None,
    ):
        self._config = config
        self._credentials = credentials
        self.client_factory = client_factory or socket_client_factory
        self.log = logger.bind(scanner=self.__class__.__name__)

    async def scan(self, packages: Iterable[Package]) -> list[Advisory]:
        """Scan a batch of packages.

        Pipeline:
        1. Resolve configuration and API key (missing key handled by policy)
        2. Resolve thresholds once for the whole batch
        3. Scan every package concurrently
        4. Keep advisories for warn/fatal packages

        Args:
            packages: Packages about to be installed

        Returns:
            Advisories for flagged packages, in no guaranteed order

        Raises:
            MissingCredentialError: If no API key is configured and the
                policy is ``error``
        """
        packages = list(packages)
        config = self._config or load_config()
        credentials = self._credentials or CredentialProvider(config)
        log = self.log.bind(packages=len(packages))

        # Keyring backends can block (D-Bus, unlock prompts)
        api_key = await asyncio.to_thread(credentials.resolve)
        if not api_key:
            if config.missing_credential_policy == MissingCredentialPolicy.SKIP:
                log.warning("api_key_missing_scan_skipped")
                return []
            log.error("api_key_missing")
            raise MissingCredentialError(MISSING_KEY_MESSAGE)

        thresholds = config.thresholds()
        log.info("scan_start", fatal_threshold=thresholds.fatal, warn_threshold=thresholds.warn)

        async with AsyncExitStack() as stack:
            client = self.client_factory(api_key, config)
            if hasattr(client, "__aenter__"):
                client = await stack.enter_async_context(client)

            results = await asyncio.gather(
                *(self._scan_package(client, package, thresholds) for package in packages),
                return_exceptions=True,
            )

        advisories = []
        for package, result in zip(packages, results):
            if isinstance(result, BaseException):
                log.warning("package_task_failed", package=package.spec, error=repr(result))
            elif result is not None:
                advisories.append(result)

        log.info("scan_complete", advisories=len(advisories))
        return advisories

    async def scan_request(self, request: ScanRequest | dict[str, Any]) -> list[Advisory]:
        """Scan a host envelope ``{"packages": [...]}``."""
        if not isinstance(request, ScanRequest):
            request = ScanRequest.model_validate(request)
        return await self.scan(request.packages)

    async def _scan_package(
        self,
        client: RiskServiceClient,
        package: Package,
        thresholds: Thresholds,
    ) -> Advisory | None:
        """Query, classify and build the advisory for one package."""
        log = self.log.bind(package=package.spec)
        log.info("scanning_package")

        try:
            issues_result, score_result = await asyncio.gather(
                client.get_issues(package.name, package.version),
                client.get_score(package.name, package.version),
                return_exceptions=True,
            )

            issues = self._issues_from(issues_result, log)
            score = self._score_from(score_result, log)

            classification = classify(issues, score, thresholds)
            log.debug(
                "package_classified",
                level=classification.level.value,
                score=score,
                issues=len(issues),
            )
            return to_advisory(package, classification)

        except Exception as e:
            log.warning("package_scan_failed", error=str(e))
            return None

    @staticmethod
    def _issues_from(result: ApiResult | BaseException, log) -> list[Issue]:
        if isinstance(result, BaseException):
            log.warning("issues_query_failed", error=repr(result))
            return []
        if not result.success:
            log.warning("issues_query_failed", error=result.error, status=result.status.value)
            return []
        return list(result.data or [])

    @staticmethod
    def _score_from(result: ApiResult | BaseException, log) -> float | None:
        if isinstance(result, BaseException):
            log.warning("score_query_failed", error=repr(result))
            return None
        if not result.success:
            log.warning("score_query_failed", error=result.error, status=result.status.value)
            return None
        if result.data is None:
            return None
        return result.data.supply_chain_risk


security_scanner = SecurityScanner()
