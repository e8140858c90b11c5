"""Risk service clients.

Provides:
- Result type and client protocol
- SocketClient for the Socket.dev API
"""

from .base import ApiResult, ApiStatus, RiskServiceClient
from .socketdev import SocketClient

__all__ = [
    "ApiResult",
    "ApiStatus",
    "RiskServiceClient",
    "SocketClient",
]
