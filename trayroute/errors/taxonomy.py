"""
trayroute/errors/taxonomy.py - Error classification system

Issue taxonomy for network building and cable routing. Most problems
in a layout run are recoverable and are collected as LayoutIssue
records; only configuration mistakes and cancellation raise.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from datetime import datetime
from enum import Enum
import uuid


class ErrorSeverity(Enum):
    """Error severity levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories."""
    # Geometry errors (1xxx)
    GEOMETRY = "geometry"

    # Network errors (2xxx)
    NETWORK = "network"

    # Lookup errors (3xxx)
    LOOKUP = "lookup"

    # Routing errors (4xxx)
    ROUTING = "routing"

    # Capacity errors (4xxx)
    CAPACITY = "capacity"

    # Configuration errors (5xxx)
    CONFIGURATION = "configuration"

    # Cancellation (5xxx)
    CANCELLED = "cancelled"


class ErrorCode(Enum):
    """Specific error codes."""

    # Geometry (1xxx)
    GEO_SHORT_SEGMENT = 1001
    GEO_DEGENERATE_FACE = 1002
    GEO_OVERLAP_MERGED = 1003
    GEO_COINCIDENT = 1004

    # Network (2xxx)
    NET_ISOLATED = 2001
    NET_ASYMMETRIC = 2002
    NET_EXTRA_CROSS_LEG = 2003

    # Lookup (3xxx)
    LKP_NODE_MISSING = 3001
    LKP_SEGMENT_MISSING = 3002

    # Routing (4xxx)
    RTE_NO_LANDING = 4001
    RTE_PARTIAL = 4002
    RTE_DEGRADED = 4003
    RTE_CAPACITY = 4004

    # System (5xxx)
    SYS_CONFIG = 5001
    SYS_CANCELLED = 5002


@dataclass
class LayoutIssue:
    """Structured issue representation."""

    issue_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    code: ErrorCode = ErrorCode.GEO_SHORT_SEGMENT
    category: ErrorCategory = ErrorCategory.GEOMETRY
    severity: ErrorSeverity = ErrorSeverity.WARNING

    message: str = ""
    detail: str = ""

    # Context
    source: str = ""  # Module that recorded it
    subject: Optional[str] = None  # Segment/node/cable tag if applicable

    recoverable: bool = True

    # Metadata
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "issue_id": self.issue_id,
            "code": self.code.value,
            "category": self.category.value,
            "severity": self.severity.value,
            "message": self.message,
            "detail": self.detail,
            "source": self.source,
            "subject": self.subject,
            "recoverable": self.recoverable,
        }


# =============================================================================
# EXCEPTIONS
# =============================================================================

class LayoutError(Exception):
    """Base exception for unrecoverable layout failures."""

    def __init__(self, message: str, issues: Optional[List[LayoutIssue]] = None):
        super().__init__(message)
        self.issues = issues or []


class ConfigurationError(LayoutError):
    """Raised when a LayoutConfig is inconsistent."""


class LayoutCancelledError(LayoutError):
    """Raised when the cancel hook stops a build or a search."""


# =============================================================================
# FACTORIES
# =============================================================================

def create_geometry_issue(
    message: str,
    source: str,
    subject: str = None,
    code: ErrorCode = ErrorCode.GEO_SHORT_SEGMENT,
    severity: ErrorSeverity = ErrorSeverity.INFO,
) -> LayoutIssue:
    """Factory for recovered geometry problems."""
    return LayoutIssue(
        code=code,
        category=ErrorCategory.GEOMETRY,
        severity=severity,
        message=message,
        source=source,
        subject=subject,
    )


def create_lookup_issue(
    message: str,
    source: str,
    subject: str = None,
    code: ErrorCode = ErrorCode.LKP_NODE_MISSING,
) -> LayoutIssue:
    """Factory for lookups that found nothing."""
    return LayoutIssue(
        code=code,
        category=ErrorCategory.LOOKUP,
        severity=ErrorSeverity.WARNING,
        message=message,
        source=source,
        subject=subject,
    )


def create_routing_issue(
    message: str,
    source: str,
    subject: str = None,
    code: ErrorCode = ErrorCode.RTE_NO_LANDING,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
    detail: str = "",
) -> LayoutIssue:
    """Factory for routing failures and degraded routes."""
    category = ErrorCategory.CAPACITY if code == ErrorCode.RTE_CAPACITY else ErrorCategory.ROUTING
    return LayoutIssue(
        code=code,
        category=category,
        severity=severity,
        message=message,
        detail=detail,
        source=source,
        subject=subject,
    )
