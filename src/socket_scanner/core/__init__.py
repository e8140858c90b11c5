"""Core scanner functionality.

Provides:
- Data model for packages, issues, scores and advisories
- Configuration and threshold resolution
- Pure risk classification
- API key resolution
"""

from .config import Config, MissingCredentialPolicy, Thresholds, load_config, resolve_thresholds
from .models import (
    Advisory,
    Classification,
    Issue,
    Package,
    RiskLevel,
    RiskScore,
    ScanRequest,
    Severity,
)
from .secrets import CredentialProvider, KeyringStore, SecretStore
from .severity import advisory_url, classify, severity_rank, sort_issues_by_severity, to_advisory

__all__ = [
    "Config",
    "MissingCredentialPolicy",
    "Thresholds",
    "load_config",
    "resolve_thresholds",
    "Advisory",
    "Classification",
    "Issue",
    "Package",
    "RiskLevel",
    "RiskScore",
    "ScanRequest",
    "Severity",
    "CredentialProvider",
    "KeyringStore",
    "SecretStore",
    "advisory_url",
    "classify",
    "severity_rank",
    "sort_issues_by_severity",
    "to_advisory",
]
