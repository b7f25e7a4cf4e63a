"""
tests/unit/test_config_errors.py - Configuration and Error Taxonomy Tests
"""

import pytest

from trayroute.config import LayoutConfig, DEFAULT_CONFIG
from trayroute.errors import (
    ErrorAggregator,
    ErrorCategory,
    ErrorCode,
    ErrorSeverity,
    ConfigurationError,
    LayoutCancelledError,
    LayoutError,
    create_geometry_issue,
    create_lookup_issue,
    create_routing_issue,
)


# =============================================================================
# CONFIG TESTS
# =============================================================================

class TestLayoutConfig:
    """Tests for config.py"""

    def test_defaults_are_valid(self):
        assert DEFAULT_CONFIG.validate() == []

    def test_default_constants(self):
        cfg = LayoutConfig()
        assert cfg.merge_radius == 0.05
        assert cfg.jump_min_distance == 0.1
        assert cfg.jump_max_distance == 0.6
        assert cfg.landing_candidates == 5
        assert cfg.margin_spare == 0.1

    def test_inverted_jump_band(self):
        cfg = LayoutConfig(jump_min_distance=0.7)
        problems = cfg.validate()
        assert any("jump_min_distance" in p for p in problems)

    def test_ensure_valid_raises(self):
        with pytest.raises(ConfigurationError):
            LayoutConfig(margin_spare=1.5).ensure_valid()

    def test_configuration_error_is_layout_error(self):
        assert issubclass(ConfigurationError, LayoutError)
        assert issubclass(LayoutCancelledError, LayoutError)

    def test_dict_roundtrip(self):
        cfg = LayoutConfig(merge_radius=0.08, landing_candidates=3)
        data = cfg.to_dict()
        assert 'cancel_check' not in data
        restored = LayoutConfig.from_dict(data)
        assert restored.merge_radius == 0.08
        assert restored.landing_candidates == 3

    def test_from_dict_ignores_unknown_keys(self):
        cfg = LayoutConfig.from_dict({'merge_radius': 0.02, 'legacy_option': True})
        assert cfg.merge_radius == 0.02

    def test_check_cancelled(self):
        cfg = LayoutConfig(cancel_check=lambda: True)
        with pytest.raises(LayoutCancelledError):
            cfg.check_cancelled("test")

    def test_check_cancelled_without_hook(self):
        LayoutConfig().check_cancelled("test")


# =============================================================================
# ERROR TESTS
# =============================================================================

class TestErrorAggregator:
    """Tests for errors/aggregator.py"""

    def test_factories_set_category(self):
        assert create_geometry_issue("x", "src").category == ErrorCategory.GEOMETRY
        assert create_lookup_issue("x", "src").category == ErrorCategory.LOOKUP
        assert create_routing_issue("x", "src").category == ErrorCategory.ROUTING
        capacity = create_routing_issue("x", "src", code=ErrorCode.RTE_CAPACITY)
        assert capacity.category == ErrorCategory.CAPACITY

    def test_has_errors(self):
        agg = ErrorAggregator()
        agg.add(create_geometry_issue("short", "builder"))
        assert not agg.has_errors()
        agg.add(create_routing_issue("no landing", "router", "C1"))
        assert agg.has_errors()
        assert len(agg) == 2

    def test_filters(self):
        agg = ErrorAggregator()
        agg.add_all([
            create_geometry_issue("a", "builder"),
            create_lookup_issue("b", "router"),
            create_routing_issue("c", "router"),
        ])
        assert len(agg.get_by_source("router")) == 2
        assert len(agg.get_by_category(ErrorCategory.LOOKUP)) == 1
        assert agg.messages(ErrorSeverity.ERROR) == ["c"]
        assert len(agg.get_by_severity(ErrorSeverity.WARNING)) == 1

    def test_report(self):
        agg = ErrorAggregator()
        agg.add(create_routing_issue("c", "router"))
        report = agg.generate_report()
        assert report.total_issues == 1
        assert report.by_severity == {"error": 1}
        assert report.summary == "1 error(s) found"

    def test_empty_report(self):
        assert ErrorAggregator().generate_report().summary == "No significant issues"

    def test_issue_to_dict(self):
        issue = create_routing_issue("c", "router", "C1", code=ErrorCode.RTE_PARTIAL)
        data = issue.to_dict()
        assert data['code'] == 4002
        assert data['subject'] == "C1"

    def test_clear(self):
        agg = ErrorAggregator()
        agg.add(create_geometry_issue("a", "builder"))
        agg.clear()
        assert len(agg) == 0
        assert agg.get_by_source("builder") == []
