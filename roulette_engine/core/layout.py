"""
Betting layout: turns a spot on the felt into the set of pockets a bet covers.

Numbers sit on a 12-row by 3-column grid; 1, 2, 3 form the first row and
1, 4, 7, ... 34 the first column.
"""

from typing import FrozenSet, Iterable, Optional

from roulette_engine.core.exceptions import InvalidBetError
from roulette_engine.core.ledger import BetCategory
from roulette_engine.core.pockets import (
    BLACK_NUMBERS,
    DOUBLE_ZERO,
    RED_NUMBERS,
    ZERO,
    Pocket,
    Wheel,
)

ROWS = 12
COLUMNS = 3


def _pockets(numbers: Iterable[int]) -> FrozenSet[Pocket]:
    return frozenset(Pocket(n) for n in numbers)


def grid_position(number: int):
    """(row, column) of a number on the layout, both 1-based."""
    return (number - 1) // COLUMNS + 1, (number - 1) % COLUMNS + 1


def _check_index(category: BetCategory, index: Optional[int], upper: int) -> int:
    if index is None or isinstance(index, bool) or not 1 <= index <= upper:
        raise InvalidBetError(category.value, f"{category.value} needs an index between 1 and {upper}")
    return index


def _zero_splits(wheel: Wheel):
    if wheel.has_double_zero:
        return {
            frozenset({ZERO, Pocket(1)}),
            frozenset({ZERO, Pocket(2)}),
            frozenset({DOUBLE_ZERO, Pocket(2)}),
            frozenset({DOUBLE_ZERO, Pocket(3)}),
            frozenset({ZERO, DOUBLE_ZERO}),
        }
    return {frozenset({ZERO, Pocket(n)}) for n in (1, 2, 3)}


def straight(wheel: Wheel, pocket: Pocket) -> FrozenSet[Pocket]:
    if pocket not in wheel:
        raise InvalidBetError("straight", f"Pocket {pocket} is not on the {wheel.variant} wheel")
    return frozenset({pocket})


def split(wheel: Wheel, first: Pocket, second: Pocket) -> FrozenSet[Pocket]:
    pair = frozenset({first, second})
    if pair in _zero_splits(wheel):
        return pair
    if first.number == 0 or second.number == 0 or len(pair) != 2:
        raise InvalidBetError("split", f"{first} and {second} do not share an edge")

    (row_a, col_a), (row_b, col_b) = grid_position(first.number), grid_position(second.number)
    side_by_side = row_a == row_b and abs(col_a - col_b) == 1
    stacked = col_a == col_b and abs(row_a - row_b) == 1
    if not (side_by_side or stacked):
        raise InvalidBetError("split", f"{first} and {second} do not share an edge")
    return pair


def street(row: int) -> FrozenSet[Pocket]:
    row = _check_index(BetCategory.STREET, row, ROWS)
    return _pockets(range(3 * row - 2, 3 * row + 1))


def corner(top_left: int) -> FrozenSet[Pocket]:
    """The 2x2 square whose lowest number is ``top_left``."""
    top_left = _check_index(BetCategory.CORNER, top_left, 32)
    row, column = grid_position(top_left)
    if column == COLUMNS:
        raise InvalidBetError("corner", f"No corner starts at {top_left}")
    return _pockets((top_left, top_left + 1, top_left + 3, top_left + 4))


def sixline(row: int) -> FrozenSet[Pocket]:
    """Rows ``row`` and ``row + 1``."""
    row = _check_index(BetCategory.SIXLINE, row, ROWS - 1)
    return _pockets(range(3 * row - 2, 3 * row + 4))


def column(index: int) -> FrozenSet[Pocket]:
    index = _check_index(BetCategory.COLUMN, index, COLUMNS)
    return _pockets(range(index, 37, COLUMNS))


def dozen(index: int) -> FrozenSet[Pocket]:
    index = _check_index(BetCategory.DOZEN, index, 3)
    return _pockets(range(12 * index - 11, 12 * index + 1))


OUTSIDE_TARGETS = {
    BetCategory.RED: _pockets(RED_NUMBERS),
    BetCategory.BLACK: _pockets(BLACK_NUMBERS),
    BetCategory.ODD: _pockets(range(1, 37, 2)),
    BetCategory.EVEN: _pockets(range(2, 37, 2)),
    BetCategory.LOW: _pockets(range(1, 19)),
    BetCategory.HIGH: _pockets(range(19, 37)),
}


def bet_targets(
    wheel: Wheel,
    category,
    pockets: Iterable = (),
    index: Optional[int] = None,
) -> FrozenSet[Pocket]:
    """
    Resolve a bet request into its target pockets.

    Args:
        wheel: Wheel the table plays on (decides which zero splits exist)
        category: BetCategory or its string value
        pockets: Pockets for straight, split and corner bets ("00" allowed)
        index: Row for street/sixline, 1-3 for column/dozen, top-left number for corner

    Raises:
        InvalidBetError: If the combination is not a spot on the layout.
    """
    try:
        category = BetCategory(category)
    except ValueError:
        raise InvalidBetError(str(category), f"Unknown bet category: {category}")

    chosen = [Pocket.parse(p) for p in pockets]

    if category == BetCategory.STRAIGHT:
        if len(chosen) != 1:
            raise InvalidBetError(category.value, "straight takes exactly one pocket")
        return straight(wheel, chosen[0])

    if category == BetCategory.SPLIT:
        if len(chosen) != 2:
            raise InvalidBetError(category.value, "split takes exactly two pockets")
        for pocket in chosen:
            straight(wheel, pocket)
        return split(wheel, *chosen)

    if category == BetCategory.CORNER:
        if chosen:
            if len(chosen) != 4 or any(p.number == 0 for p in chosen):
                raise InvalidBetError(category.value, "corner takes four numbers")
            square = corner(min(p.number for p in chosen))
            if square != frozenset(chosen):
                raise InvalidBetError(category.value, "corner numbers must form a square")
            return square
        return corner(index)

    if category == BetCategory.STREET:
        return street(index)
    if category == BetCategory.SIXLINE:
        return sixline(index)
    if category == BetCategory.COLUMN:
        return column(index)
    if category == BetCategory.DOZEN:
        return dozen(index)

    return OUTSIDE_TARGETS[category]


def _shapes(category: BetCategory):
    if category == BetCategory.STREET:
        return [street(row) for row in range(1, ROWS + 1)]
    if category == BetCategory.SIXLINE:
        return [sixline(row) for row in range(1, ROWS)]
    if category == BetCategory.CORNER:
        return [corner(n) for n in range(1, 33) if n % COLUMNS != 0]
    if category == BetCategory.COLUMN:
        return [column(i) for i in range(1, COLUMNS + 1)]
    if category == BetCategory.DOZEN:
        return [dozen(i) for i in range(1, 4)]
    return [OUTSIDE_TARGETS[category]]


def check_targets(wheel: Wheel, category, targets: Iterable) -> FrozenSet[Pocket]:
    """
    Validate an already-built target set against the layout.

    Returns the targets as pockets, or raises InvalidBetError when the set is
    not a spot of ``category`` on this wheel's layout.
    """
    try:
        category = BetCategory(category)
    except ValueError:
        raise InvalidBetError(str(category), f"Unknown bet category: {category}")

    chosen = frozenset(Pocket.parse(p) for p in targets)

    if category == BetCategory.STRAIGHT:
        if len(chosen) != 1:
            raise InvalidBetError(category.value, "straight covers exactly one pocket")
        return straight(wheel, next(iter(chosen)))

    if category == BetCategory.SPLIT:
        if len(chosen) != 2:
            raise InvalidBetError(category.value, "split covers exactly two pockets")
        for pocket in chosen:
            straight(wheel, pocket)
        return split(wheel, *chosen)

    if chosen not in _shapes(category):
        raise InvalidBetError(category.value, f"{len(chosen)} pockets are not a {category.value} spot")
    return chosen
