"""
trayroute/schema/spacing.py - Cable spacing rules

A spacing rule maps a pair of route criteria to a gap spec. The gap is
either a fixed distance ("0.05") or a multiple of the larger cable
diameter ("2d", "D", "1/2d"). A pair without a rule needs no gap.
"""

from dataclasses import dataclass
from fractions import Fraction
from typing import Dict, Iterable, List, Optional, Tuple, Any
import logging

__all__ = ['SpacingRule', 'SpacingTable', 'GapSpec', 'parse_gap_spec']

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GapSpec:
    """Parsed gap: value, and whether it multiplies the larger diameter."""
    value: float
    per_diameter: bool = False

    def resolve(self, od_a: float, od_b: float) -> float:
        if self.per_diameter:
            return self.value * max(od_a, od_b)
        return self.value


def _parse_number(text: str) -> float:
    # Fraction accepts "1/2" as well as plain decimals
    return float(Fraction(text))


def parse_gap_spec(spec: str) -> GapSpec:
    """
    Parse a gap spec string.

    Spaces are ignored and "D" means the same as "d". A bare "d" is one
    diameter. Unparseable specs log a warning and give no gap.
    """
    text = (spec or "0").replace(" ", "").replace("D", "d")
    per_diameter = "d" in text
    if per_diameter:
        text = text.replace("d", "") or "1"
    try:
        value = _parse_number(text)
    except (ValueError, ZeroDivisionError):
        logger.warning(f"Unparseable spacing spec {spec!r}, using 0")
        return GapSpec(0.0, False)
    return GapSpec(value, per_diameter)


@dataclass(frozen=True)
class SpacingRule:
    """Gap required between cables of type_a and type_b (either order)."""
    type_a: str
    type_b: str
    gap: str = "0"

    def matches(self, criteria_1: str, criteria_2: str) -> bool:
        return ((self.type_a == criteria_1 and self.type_b == criteria_2) or
                (self.type_a == criteria_2 and self.type_b == criteria_1))

    def to_dict(self) -> Dict[str, Any]:
        return {'type_a': self.type_a, 'type_b': self.type_b, 'gap': self.gap}


class SpacingTable:
    """
    Lookup of spacing rules by route-criteria pair.

    The first rule listed for a pair wins.

    Usage:
        table = SpacingTable.from_rows([("power", "control", "2d")])
        gap = table.gap_between("power", 0.03, "control", 0.01)  # 0.06
    """

    def __init__(self, rules: Optional[Iterable[SpacingRule]] = None):
        self._rules: List[SpacingRule] = []
        self._index: Dict[Tuple[str, str], GapSpec] = {}
        for rule in rules or []:
            self.add(rule)

    @classmethod
    def from_rows(cls, rows: Iterable[Tuple[str, str, str]]) -> 'SpacingTable':
        return cls(SpacingRule(a, b, str(gap)) for a, b, gap in rows)

    def __len__(self) -> int:
        return len(self._rules)

    @property
    def rules(self) -> List[SpacingRule]:
        return list(self._rules)

    def add(self, rule: SpacingRule) -> None:
        self._rules.append(rule)
        spec = parse_gap_spec(rule.gap)
        self._index.setdefault((rule.type_a, rule.type_b), spec)
        self._index.setdefault((rule.type_b, rule.type_a), spec)

    def spec_for(self, criteria_1: str, criteria_2: str) -> GapSpec:
        return self._index.get((criteria_1, criteria_2), GapSpec(0.0))

    def gap_between(self, criteria_1: str, od_1: float, criteria_2: str, od_2: float) -> float:
        """Gap required between two cables."""
        return self.spec_for(criteria_1, criteria_2).resolve(od_1, od_2)
