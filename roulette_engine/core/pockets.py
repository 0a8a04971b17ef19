"""
Pocket table: pocket identifiers, colors and the clockwise wheel sequences.
Pure data, safe to share between sessions.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Tuple, Union

from roulette_engine.core.exceptions import InvalidPocketError


@dataclass(frozen=True, order=True)
class Pocket:
    """
    One slot on the wheel. The double zero is a tagged pocket
    (``Pocket(0, double_zero=True)``) rather than a reserved number.
    """

    number: int
    double_zero: bool = False

    def __post_init__(self):
        if not 0 <= self.number <= 36:
            raise InvalidPocketError(self.number)
        if self.double_zero and self.number != 0:
            raise InvalidPocketError(self.number, "Only pocket 0 can carry the double-zero tag")

    def __str__(self) -> str:
        return "00" if self.double_zero else str(self.number)

    @classmethod
    def parse(cls, value: Union[int, str, "Pocket"]) -> "Pocket":
        """Build a pocket from 17, "17", "0" or "00"."""
        if isinstance(value, Pocket):
            return value
        if isinstance(value, bool):
            raise InvalidPocketError(value)
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            text = value.strip()
            if text == "00":
                return DOUBLE_ZERO
            if text.isdigit():
                return cls(int(text))
        raise InvalidPocketError(value)


ZERO = Pocket(0)
DOUBLE_ZERO = Pocket(0, double_zero=True)

RED_NUMBERS: FrozenSet[int] = frozenset(
    {1, 3, 5, 7, 9, 12, 14, 16, 18, 19, 21, 23, 25, 27, 30, 32, 34, 36}
)
BLACK_NUMBERS: FrozenSet[int] = frozenset(
    {2, 4, 6, 8, 10, 11, 13, 15, 17, 20, 22, 24, 26, 28, 29, 31, 33, 35}
)

NUMBERED_POCKETS: Tuple[Pocket, ...] = tuple(Pocket(n) for n in range(1, 37))


def is_zero(pocket: Pocket) -> bool:
    return pocket.number == 0


def color_of(pocket: Pocket) -> str:
    """Get the color of a pocket: green, red or black."""
    if is_zero(pocket):
        return "green"
    return "red" if pocket.number in RED_NUMBERS else "black"


def _sequence(*labels) -> Tuple[Pocket, ...]:
    return tuple(Pocket.parse(label) for label in labels)


# Clockwise order, starting from the single zero
EUROPEAN_SEQUENCE = _sequence(
    0, 32, 15, 19, 4, 21, 2, 25, 17, 34, 6, 27, 13, 36, 11, 30, 8, 23, 10,
    5, 24, 16, 33, 1, 20, 14, 31, 9, 22, 18, 29, 7, 28, 12, 35, 3, 26,
)
AMERICAN_SEQUENCE = _sequence(
    0, 28, 9, 26, 30, 11, 7, 20, 32, 17, 5, 22, 34, 15, 3, 24, 36, 13, 1,
    "00", 27, 10, 25, 29, 12, 8, 19, 31, 18, 6, 21, 33, 16, 4, 23, 35, 14, 2,
)


@dataclass(frozen=True)
class Wheel:
    variant: str
    sequence: Tuple[Pocket, ...]
    _positions: Dict[Pocket, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        positions = {pocket: i for i, pocket in enumerate(self.sequence)}
        if len(positions) != len(self.sequence):
            raise ValueError(f"Duplicate pocket in {self.variant} sequence")
        object.__setattr__(self, "_positions", positions)

    @property
    def pocket_count(self) -> int:
        return len(self.sequence)

    @property
    def pocket_arc(self) -> float:
        """Angle covered by a single pocket, in radians."""
        return 2 * math.pi / self.pocket_count

    @property
    def pockets(self) -> FrozenSet[Pocket]:
        return frozenset(self._positions)

    @property
    def has_double_zero(self) -> bool:
        return DOUBLE_ZERO in self._positions

    def index_of(self, pocket: Pocket) -> int:
        """Position of the pocket in the clockwise sequence."""
        try:
            return self._positions[pocket]
        except KeyError:
            raise InvalidPocketError(pocket, f"Pocket {pocket} is not on the {self.variant} wheel")

    def __contains__(self, pocket) -> bool:
        return pocket in self._positions


EUROPEAN_WHEEL = Wheel("european", EUROPEAN_SEQUENCE)
AMERICAN_WHEEL = Wheel("american", AMERICAN_SEQUENCE)

WHEELS = {
    EUROPEAN_WHEEL.variant: EUROPEAN_WHEEL,
    AMERICAN_WHEEL.variant: AMERICAN_WHEEL,
}


def get_wheel(variant: str) -> Wheel:
    try:
        return WHEELS[variant.lower()]
    except KeyError:
        raise ValueError(f"Unknown wheel variant: {variant}")
