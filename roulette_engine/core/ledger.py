"""
Wager ledger: the session record and the betting-phase operations on it.

Every operation that can fail reports it through its boolean return value and
leaves the session untouched in that case.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Tuple

from roulette_engine.core.logger import get_logger
from roulette_engine.core.pockets import EUROPEAN_WHEEL, Pocket, Wheel

logger = get_logger("ledger")

DEFAULT_BALANCE = 1000
DEFAULT_CHIP = 5
CHIP_VALUES = (1, 5, 25, 100)


class BetCategory(str, Enum):
    STRAIGHT = "straight"  # Single number
    SPLIT = "split"  # Two adjacent numbers
    STREET = "street"  # Three numbers in a row
    CORNER = "corner"  # Four numbers in a square
    SIXLINE = "sixline"  # Two adjacent rows
    COLUMN = "column"
    DOZEN = "dozen"  # 1-12, 13-24, 25-36
    RED = "red"
    BLACK = "black"
    ODD = "odd"
    EVEN = "even"
    LOW = "low"  # 1-18
    HIGH = "high"  # 19-36

    @property
    def is_outside(self) -> bool:
        """Even-money bets that always lose on a zero pocket."""
        return self in OUTSIDE_CATEGORIES


OUTSIDE_CATEGORIES = frozenset(
    {
        BetCategory.RED,
        BetCategory.BLACK,
        BetCategory.ODD,
        BetCategory.EVEN,
        BetCategory.LOW,
        BetCategory.HIGH,
    }
)

# Profit paid per wagered unit; the stake is returned on top
PAYOUT_RATIOS = {
    BetCategory.STRAIGHT: 35,
    BetCategory.SPLIT: 17,
    BetCategory.STREET: 11,
    BetCategory.CORNER: 8,
    BetCategory.SIXLINE: 5,
    BetCategory.COLUMN: 2,
    BetCategory.DOZEN: 2,
    BetCategory.RED: 1,
    BetCategory.BLACK: 1,
    BetCategory.ODD: 1,
    BetCategory.EVEN: 1,
    BetCategory.LOW: 1,
    BetCategory.HIGH: 1,
}


class GamePhase(str, Enum):
    BETTING = "betting"
    SPINNING = "spinning"
    RESULT = "result"


@dataclass
class Bet:
    category: BetCategory
    targets: FrozenSet[Pocket]
    amount: int

    @property
    def key(self) -> Tuple[BetCategory, FrozenSet[Pocket]]:
        return (self.category, self.targets)

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "targets": [str(p) for p in sorted(self.targets)],
            "amount": self.amount,
        }


@dataclass
class Session:
    balance: int = DEFAULT_BALANCE
    wheel: Wheel = EUROPEAN_WHEEL
    active_bets: List[Bet] = field(default_factory=list)
    last_round_bets: List[Bet] = field(default_factory=list)
    selected_chip: int = DEFAULT_CHIP
    chip_values: Tuple[int, ...] = CHIP_VALUES
    phase: GamePhase = GamePhase.BETTING
    last_outcome: Optional[Pocket] = None
    last_win_amount: int = 0


def create_session(
    initial_balance: int = DEFAULT_BALANCE,
    wheel: Wheel = EUROPEAN_WHEEL,
    selected_chip: int = DEFAULT_CHIP,
    chip_values: Iterable[int] = CHIP_VALUES,
) -> Session:
    """Create a fresh session in the betting phase."""
    if initial_balance < 0:
        raise ValueError("initial_balance must not be negative")
    chip_values = tuple(chip_values)
    if selected_chip not in chip_values:
        raise ValueError(f"Chip {selected_chip} is not one of {chip_values}")
    return Session(
        balance=int(initial_balance),
        wheel=wheel,
        selected_chip=selected_chip,
        chip_values=chip_values,
    )


def copy_bets(bets: Iterable[Bet]) -> List[Bet]:
    """Value copy of a bet list; the copies share no state with the originals."""
    return [replace(bet) for bet in bets]


def total_active_wager(session: Session) -> int:
    return sum(bet.amount for bet in session.active_bets)


def available_balance(session: Session) -> int:
    """Balance not yet committed to an active bet."""
    return session.balance - total_active_wager(session)


def is_bankrupt(session: Session) -> bool:
    return session.balance == 0 and not session.active_bets


def _find_bet(session: Session, key) -> Optional[Bet]:
    for bet in session.active_bets:
        if bet.key == key:
            return bet
    return None


def _merge_bet(session: Session, category: BetCategory, targets: FrozenSet[Pocket], amount: int):
    existing = _find_bet(session, (category, targets))
    if existing is not None:
        existing.amount += amount
    else:
        session.active_bets.append(Bet(category, targets, amount))


def place_bet(session: Session, category, targets: Iterable[Pocket]) -> bool:
    """
    Place one chip of the selected denomination.

    Stacks onto an existing bet with the same category and target pockets,
    otherwise appends a new bet.
    """
    if session.phase != GamePhase.BETTING:
        return False
    if session.selected_chip > available_balance(session):
        return False

    category = BetCategory(category)
    targets = frozenset(targets)
    if not targets:
        return False
    _merge_bet(session, category, targets, session.selected_chip)

    logger.debug(
        f"Placed {session.selected_chip} on {category.value} "
        f"({len(targets)} pockets), total wager {total_active_wager(session)}"
    )
    return True


def clear_bets(session: Session) -> bool:
    if session.phase != GamePhase.BETTING:
        return False
    session.active_bets = []
    return True


def undo_last_bet(session: Session) -> bool:
    """Remove the most recently appended bet."""
    if session.phase != GamePhase.BETTING:
        return False
    if not session.active_bets:
        return False

    removed = session.active_bets.pop()
    logger.debug(f"Undid {removed.category.value} bet of {removed.amount}")
    return True


def repeat_bets(session: Session) -> bool:
    """
    Re-apply last round's bets with their original amounts.

    All-or-nothing: nothing is placed unless every bet fits in the
    remaining balance.
    """
    if session.phase != GamePhase.BETTING:
        return False
    if not session.last_round_bets:
        return False

    total_needed = sum(bet.amount for bet in session.last_round_bets)
    if total_needed > available_balance(session):
        return False

    for bet in session.last_round_bets:
        _merge_bet(session, bet.category, bet.targets, bet.amount)

    logger.debug(f"Repeated {len(session.last_round_bets)} bets totalling {total_needed}")
    return True


def select_chip(session: Session, chip: int) -> bool:
    if session.phase != GamePhase.BETTING:
        return False
    if chip not in session.chip_values:
        return False
    session.selected_chip = chip
    return True
