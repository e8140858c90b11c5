"""Data model shared by the classifier, the risk client and the scanner.

Provides:
- RiskLevel: Three-level decision scale (safe < warn < fatal)
- Severity: Issue severity labels reported by the risk service
- Package: One package the installer is about to install
- Issue: One discrete security issue reported for a package
- RiskScore: Continuous supply chain score (higher is safer)
- Classification: Classifier output for one package
- Advisory: Actionable record returned to the installer
- ScanRequest: Host invocation envelope ({"packages": [...]})
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RiskLevel(str, Enum):
    """Decision for a single package.

    SAFE: install silently, no advisory
    WARN: prompt the user before installing
    FATAL: block the installation
    """

    SAFE = "safe"
    WARN = "warn"
    FATAL = "fatal"

    @property
    def rank(self) -> int:
        """Position on the ordered scale, used for monotonic comparisons."""
        return _LEVEL_RANK[self]


_LEVEL_RANK = {RiskLevel.SAFE: 0, RiskLevel.WARN: 1, RiskLevel.FATAL: 2}


class Severity(str, Enum):
    """Issue severity labels, highest first."""

    CRITICAL = "critical"
    HIGH = "high"
    MIDDLE = "middle"
    LOW = "low"


class Package(BaseModel):
    """Package about to be installed.

    Only name and version take part in classification. The tarball URL and
    the requested semver range are carried through untouched.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    version: str
    tarball: str = ""
    requested_range: str = Field(default="", alias="requestedRange")

    @property
    def spec(self) -> str:
        return f"{self.name}@{self.version}"


class Issue(BaseModel):
    """Single issue reported by the risk service.

    Severity is kept as the raw string so that labels outside the known set
    still reach the classifier, which ranks them below ``low``.

    Attributes:
        type: Machine code of the issue (e.g. "malware_detected")
        description: Human readable explanation
        category: Issue family; "supplyChainRisk" drives the primary rules
        severity: critical | high | middle | low, or anything else / None
    """

    model_config = ConfigDict(frozen=True)

    type: str | None = None
    description: str = ""
    category: str | None = None
    severity: str | None = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Issue":
        """Build an Issue from a risk service payload.

        Accepts the nested Socket shape ``{"type": ..., "value": {...}}`` as
        well as a flat dict carrying the same keys at the top level.
        """
        value = payload.get("value")
        if not isinstance(value, dict):
            value = payload

        def _text(key: str) -> str | None:
            raw = value.get(key)
            return raw if isinstance(raw, str) else None

        issue_type = payload.get("type")
        return cls(
            type=issue_type if isinstance(issue_type, str) else None,
            description=_text("description") or "",
            category=_text("category"),
            severity=_text("severity"),
        )


class RiskScore(BaseModel):
    """Supply chain risk score in [0, 1], higher meaning safer.

    ``supply_chain_risk`` is None when the service did not report one.
    """

    model_config = ConfigDict(frozen=True)

    supply_chain_risk: float | None = None

    @classmethod
    def from_api(cls, payload: Any) -> "RiskScore":
        """Read ``supplyChainRisk.score`` from a score payload."""
        if not isinstance(payload, dict):
            return cls()
        section = payload.get("supplyChainRisk")
        if not isinstance(section, dict):
            return cls()
        score = section.get("score")
        # bool is an int subclass; a literal true/false is not a score
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            return cls()
        return cls(supply_chain_risk=float(score))


class Classification(BaseModel):
    """Classifier result for one package."""

    model_config = ConfigDict(frozen=True)

    level: RiskLevel = RiskLevel.SAFE
    description: str = ""
    primary_issue_type: str | None = None


class Advisory(BaseModel):
    """Actionable record for a flagged package.

    Attributes:
        level: warn or fatal (safe packages never produce an advisory)
        package: Package name
        description: Why the package was flagged
        url: Where to read more, if known
    """

    level: RiskLevel
    package: str
    description: str
    url: str | None = None

    @field_validator("level")
    @classmethod
    def _not_safe(cls, value: RiskLevel) -> RiskLevel:
        if value == RiskLevel.SAFE:
            raise ValueError("advisories are only produced for warn or fatal packages")
        return value

    def to_host(self) -> dict[str, Any]:
        """Dict shape expected by the installer."""
        return {
            "level": self.level.value,
            "package": self.package,
            "description": self.description,
            "url": self.url,
        }


class ScanRequest(BaseModel):
    """Envelope the installer hands to the scanner."""

    packages: list[Package] = Field(default_factory=list)
