"""Risk classification of a single package.

Turns the two signals reported by the risk service, a list of discrete
issues and a continuous supply chain score, into one decision on the
safe < warn < fatal scale. Everything here is pure: no I/O, no environment
reads, the thresholds are passed in.

Provides:
- SEVERITY_RANK: Explicit rank table for issue severities
- severity_rank: Rank of a raw severity label (unknown ranks lowest)
- sort_issues_by_severity: Stable highest-first ordering of issues
- format_score: Render a score the way it appears in descriptions
- classify: Issue pass followed by score pass
- advisory_url: Link for a flagged package
- to_advisory: Classification to Advisory (None for safe packages)
"""

from collections.abc import Iterable

from socket_scanner.core.config import Thresholds
from socket_scanner.core.models import (
    Advisory,
    Classification,
    Issue,
    Package,
    RiskLevel,
    Severity,
)

SUPPLY_CHAIN_CATEGORY = "supplyChainRisk"

SEVERITY_RANK: dict[str, int] = {
    Severity.CRITICAL.value: 0,
    Severity.HIGH.value: 1,
    Severity.MIDDLE.value: 2,
    Severity.LOW.value: 3,
}
UNKNOWN_SEVERITY_RANK = len(SEVERITY_RANK)

BLOCKING_SEVERITIES = {Severity.CRITICAL.value, Severity.HIGH.value}

SUPPLY_CHAIN_PREFIX = "Supply chain risks found: "
SECURITY_ISSUES_PREFIX = "Security issues found: "

PACKAGE_URL = "https://socket.dev/npm/package/{name}/overview/{version}"
ISSUE_URL = "https://socket.dev/npm/issue/{issue_type}"


def severity_rank(severity: str | None) -> int:
    """Rank of a severity label, 0 being the most severe.

    Labels outside critical/high/middle/low (including None) rank after low.
    """
    if severity is None:
        return UNKNOWN_SEVERITY_RANK
    return SEVERITY_RANK.get(severity, UNKNOWN_SEVERITY_RANK)


def sort_issues_by_severity(issues: Iterable[Issue]) -> list[Issue]:
    """Sort issues most severe first. Ties keep their input order."""
    return sorted(issues, key=lambda issue: severity_rank(issue.severity))


def format_score(score: float) -> str:
    """Render a score for a description: 0.1 -> "0.1", 0.0 -> "0"."""
    value = float(score)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _dedupe(entries: list[str]) -> list[str]:
    seen: set[str] = set()
    unique = []
    for entry in entries:
        if entry not in seen:
            seen.add(entry)
            unique.append(entry)
    return unique


def _classify_issues(issues: list[Issue]) -> Classification:
    """Issue pass: supply chain issues first, any other issue second."""
    supply_chain = [i for i in issues if i.category == SUPPLY_CHAIN_CATEGORY]

    if supply_chain:
        ranked = sort_issues_by_severity(supply_chain)
        top = ranked[0]
        level = RiskLevel.FATAL if top.severity in BLOCKING_SEVERITIES else RiskLevel.WARN
        entries = _dedupe([
            f"{issue.severity or ''} {issue.type or ''}".strip()
            for issue in ranked
        ])
        return Classification(
            level=level,
            description=SUPPLY_CHAIN_PREFIX + ", ".join(entries),
            primary_issue_type=top.type,
        )

    if issues:
        # Generic path keeps input order and duplicates
        types = [issue.type or "unknown" for issue in issues]
        return Classification(
            level=RiskLevel.WARN,
            description=SECURITY_ISSUES_PREFIX + ", ".join(types),
        )

    return Classification()


def classify(
    issues: Iterable[Issue] | None,
    score: float | None,
    thresholds: Thresholds | None = None,
) -> Classification:
    """Classify one package from its issues and supply chain score.

    Pipeline:
    1. Issue pass. Supply chain issues are ranked critical > high > middle >
       low > anything else; a critical or high top issue is fatal, any other
       top issue is warn. Without supply chain issues, any issue at all is a
       generic warn. No issues leaves the package safe.
    2. Score pass, only when a score is present. Below ``thresholds.fatal``
       escalates to fatal and replaces the description, unless the issue
       pass already produced fatal. Below ``thresholds.warn`` raises safe to
       warn and only fills the description if it is still empty; an existing
       fatal is left untouched.

    Neither pass ever lowers the level.

    Args:
        issues: Issues reported for the package (None counts as none)
        score: Supply chain score in [0, 1], higher is safer, or None
        thresholds: Cut points (defaults 0.3 / 0.5)

    Returns:
        Classification with level, description and primary issue type

    Example:
        >>> result = classify([], 0.1)
        >>> result.level, result.description
        (<RiskLevel.FATAL: 'fatal'>, 'High supply chain risk (score: 0.1)')
    """
    thresholds = thresholds or Thresholds()
    result = _classify_issues(list(issues or []))

    if score is None:
        return result

    if score < thresholds.fatal:
        if result.level != RiskLevel.FATAL:
            return result.model_copy(update={
                "level": RiskLevel.FATAL,
                "description": f"High supply chain risk (score: {format_score(score)})",
            })
    elif score < thresholds.warn:
        if result.level != RiskLevel.FATAL:
            update = {"level": RiskLevel.WARN}
            if not result.description:
                update["description"] = (
                    f"Moderate supply chain risk (score: {format_score(score)})"
                )
            return result.model_copy(update=update)

    return result


def advisory_url(package: Package, classification: Classification) -> str:
    """Link for a flagged package.

    Supply chain issue findings with a known primary issue type link to the
    issue page; everything else links to the package version overview.
    """
    if (
        classification.description.startswith(SUPPLY_CHAIN_PREFIX)
        and classification.primary_issue_type
    ):
        return ISSUE_URL.format(issue_type=classification.primary_issue_type)
    return PACKAGE_URL.format(name=package.name, version=package.version)


def to_advisory(package: Package, classification: Classification) -> Advisory | None:
    """Build the advisory for a classified package, or None if it is safe."""
    if classification.level == RiskLevel.SAFE:
        return None

    description = (
        classification.description
        or f"Security concerns detected for {package.name}@{package.version}"
    )
    return Advisory(
        level=classification.level,
        package=package.name,
        description=description,
        url=advisory_url(package, classification),
    )
