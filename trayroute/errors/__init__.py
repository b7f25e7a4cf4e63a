"""
trayroute.errors - Issue taxonomy and aggregation
"""

from .taxonomy import (
    ErrorSeverity,
    ErrorCategory,
    ErrorCode,
    LayoutIssue,
    LayoutError,
    ConfigurationError,
    LayoutCancelledError,
    create_geometry_issue,
    create_lookup_issue,
    create_routing_issue,
)
from .aggregator import ErrorAggregator, ErrorReport

__all__ = [
    'ErrorSeverity',
    'ErrorCategory',
    'ErrorCode',
    'LayoutIssue',
    'LayoutError',
    'ConfigurationError',
    'LayoutCancelledError',
    'create_geometry_issue',
    'create_lookup_issue',
    'create_routing_issue',
    'ErrorAggregator',
    'ErrorReport',
]
