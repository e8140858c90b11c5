"""Risk service client protocol and result type.

Provides:
- ApiStatus: Outcome of a single risk service request
- ApiResult: Structured result, never an exception, for a request
- RiskServiceClient: Protocol the scanner depends on
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class ApiStatus(str, Enum):
    """Risk service request status."""
    SUCCESS = "success"
    HTTP_ERROR = "http_error"
    ERROR = "error"
    TIMEOUT = "timeout"


@dataclass
class ApiResult:
    """Structured result of one risk service request.

    ``data`` holds the parsed payload on success: a list of Issue for issue
    queries and a RiskScore for score queries.
    """
    status: ApiStatus
    data: Any = None
    error: str = ""
    http_status: int | None = None

    @property
    def success(self) -> bool:
        return self.status == ApiStatus.SUCCESS


@runtime_checkable
class RiskServiceClient(Protocol):
    """Queries keyed by (package name, exact version)."""

    async def get_issues(self, name: str, version: str) -> ApiResult:
        """Fetch the issue list for a package version."""
        ...

    async def get_score(self, name: str, version: str) -> ApiResult:
        """Fetch the risk score for a package version."""
        ...
