"""
Payout resolver for settled spins.
"""

from typing import Iterable, List

from roulette_engine.core.ledger import (
    PAYOUT_RATIOS,
    Bet,
    BetCategory,
    Session,
    copy_bets,
    total_active_wager,
)
from roulette_engine.core.logger import get_logger
from roulette_engine.core.pockets import RED_NUMBERS, Pocket, is_zero

logger = get_logger("payouts")


def _matches_outside(category: BetCategory, number: int) -> bool:
    if category == BetCategory.RED:
        return number in RED_NUMBERS
    elif category == BetCategory.BLACK:
        return number not in RED_NUMBERS
    elif category == BetCategory.ODD:
        return number % 2 == 1
    elif category == BetCategory.EVEN:
        return number % 2 == 0
    elif category == BetCategory.LOW:
        return 1 <= number <= 18
    elif category == BetCategory.HIGH:
        return 19 <= number <= 36
    return False


def is_winning_bet(bet: Bet, outcome: Pocket) -> bool:
    """Check if a bet wins based on the spin result."""
    if bet.category.is_outside:
        # Zero and double zero lose every even-money bet
        if is_zero(outcome):
            return False
        return _matches_outside(bet.category, outcome.number)
    return outcome in bet.targets


def bet_return(bet: Bet, outcome: Pocket) -> int:
    """Stake plus profit for a winning bet, 0 for a losing one."""
    if not is_winning_bet(bet, outcome):
        return 0
    return bet.amount + bet.amount * PAYOUT_RATIOS[bet.category]


def calculate_win(bets: Iterable[Bet], outcome: Pocket) -> int:
    return sum(bet_return(bet, outcome) for bet in bets)


def winning_bets(bets: Iterable[Bet], outcome: Pocket) -> List[Bet]:
    return [bet for bet in bets if is_winning_bet(bet, outcome)]


def settle(session: Session, outcome: Pocket) -> int:
    """
    Resolve every active bet against the outcome and update the bankroll.

    The active bets are snapshotted into ``last_round_bets`` but not cleared;
    the controller clears them once the result has been presented.

    Returns:
        Total returned to the player (stakes of winning bets included).
    """
    total_win = calculate_win(session.active_bets, outcome)
    total_bet = total_active_wager(session)

    session.balance = max(0, session.balance - total_bet + total_win)
    session.last_outcome = outcome
    session.last_win_amount = total_win
    session.last_round_bets = copy_bets(session.active_bets)

    logger.info(
        f"Settled on {outcome}: wagered {total_bet}, returned {total_win}, "
        f"balance {session.balance}"
    )
    return total_win
