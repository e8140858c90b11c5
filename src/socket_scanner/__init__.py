"""Install-time package security gate backed by Socket.dev.

Usage from an installer hook:

    from socket_scanner import security_scanner

    advisories = await security_scanner.scan_request({"packages": [...]})
"""

from .scanner import MissingCredentialError, SecurityScanner, security_scanner

__all__ = ["MissingCredentialError", "SecurityScanner", "security_scanner"]
