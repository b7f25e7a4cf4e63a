"""
trayroute/errors/aggregator.py - Aggregate and report layout issues
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List
from datetime import datetime
import uuid

from .taxonomy import LayoutIssue, ErrorCategory, ErrorSeverity


@dataclass
class ErrorReport:
    """Aggregated issue report."""

    report_id: str = ""
    created_at: datetime = field(default_factory=datetime.utcnow)

    # Counts
    total_issues: int = 0
    by_severity: Dict[str, int] = field(default_factory=dict)
    by_category: Dict[str, int] = field(default_factory=dict)

    summary: str = ""

    all_issues: List[LayoutIssue] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "report_id": self.report_id,
            "total_issues": self.total_issues,
            "by_severity": self.by_severity,
            "by_category": self.by_category,
            "summary": self.summary,
        }


class ErrorAggregator:
    """
    Aggregates issues from the builder, the jump augmenter and the routers.
    """

    def __init__(self):
        self._issues: List[LayoutIssue] = []
        self._by_source: Dict[str, List[LayoutIssue]] = {}

    def __len__(self) -> int:
        return len(self._issues)

    @property
    def issues(self) -> List[LayoutIssue]:
        return list(self._issues)

    def add(self, issue: LayoutIssue) -> None:
        """Add an issue."""
        self._issues.append(issue)
        self._by_source.setdefault(issue.source, []).append(issue)

    def add_all(self, issues: List[LayoutIssue]) -> None:
        """Add multiple issues."""
        for issue in issues:
            self.add(issue)

    def get_by_severity(self, severity: ErrorSeverity) -> List[LayoutIssue]:
        return [i for i in self._issues if i.severity == severity]

    def get_by_category(self, category: ErrorCategory) -> List[LayoutIssue]:
        return [i for i in self._issues if i.category == category]

    def get_by_source(self, source: str) -> List[LayoutIssue]:
        return self._by_source.get(source, [])

    def has_errors(self) -> bool:
        """Check if any errors (not just warnings)."""
        return any(
            i.severity in [ErrorSeverity.ERROR, ErrorSeverity.CRITICAL]
            for i in self._issues
        )

    def messages(self, *severities: ErrorSeverity) -> List[str]:
        """Messages of the issues with any of the given severities."""
        return [i.message for i in self._issues if i.severity in severities]

    def generate_report(self) -> ErrorReport:
        """Generate aggregated report."""
        report = ErrorReport(
            report_id=str(uuid.uuid4())[:8],
            total_issues=len(self._issues),
        )

        for severity in ErrorSeverity:
            count = sum(1 for i in self._issues if i.severity == severity)
            if count > 0:
                report.by_severity[severity.value] = count

        for category in ErrorCategory:
            count = sum(1 for i in self._issues if i.category == category)
            if count > 0:
                report.by_category[category.value] = count

        if report.by_severity.get("critical", 0) > 0:
            report.summary = f"{report.by_severity['critical']} critical issue(s)"
        elif report.by_severity.get("error", 0) > 0:
            report.summary = f"{report.by_severity['error']} error(s) found"
        elif report.by_severity.get("warning", 0) > 0:
            report.summary = f"{report.by_severity['warning']} warning(s) found"
        else:
            report.summary = "No significant issues"

        report.all_issues = self._issues.copy()

        return report

    def clear(self) -> None:
        self._issues.clear()
        self._by_source.clear()
