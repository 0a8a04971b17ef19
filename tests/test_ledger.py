import random
import unittest

from roulette_engine.core import ledger
from roulette_engine.core.layout import OUTSIDE_TARGETS, column, corner, split
from roulette_engine.core.ledger import (
    Bet,
    BetCategory,
    GamePhase,
    clear_bets,
    create_session,
    is_bankrupt,
    place_bet,
    repeat_bets,
    select_chip,
    total_active_wager,
    undo_last_bet,
)
from roulette_engine.core.payouts import settle
from roulette_engine.core.pockets import AMERICAN_WHEEL, EUROPEAN_WHEEL, Pocket

SEVEN = frozenset({Pocket(7)})
RED = OUTSIDE_TARGETS[BetCategory.RED]


class TestCreateSession(unittest.TestCase):

    def test_defaults(self):
        session = create_session()
        self.assertEqual(session.balance, 1000)
        self.assertEqual(session.phase, GamePhase.BETTING)
        self.assertEqual(session.active_bets, [])
        self.assertEqual(session.last_round_bets, [])
        self.assertEqual(session.selected_chip, 5)
        self.assertIsNone(session.last_outcome)
        self.assertEqual(session.last_win_amount, 0)
        self.assertIs(session.wheel, EUROPEAN_WHEEL)

    def test_custom_balance_and_wheel(self):
        session = create_session(500, wheel=AMERICAN_WHEEL)
        self.assertEqual(session.balance, 500)
        self.assertEqual(session.wheel.pocket_count, 38)

    def test_rejects_bad_setup(self):
        with self.assertRaises(ValueError):
            create_session(-1)
        with self.assertRaises(ValueError):
            create_session(selected_chip=3)


class TestPlaceBet(unittest.TestCase):

    def setUp(self):
        self.session = create_session()

    def test_places_a_bet(self):
        self.assertTrue(place_bet(self.session, BetCategory.STRAIGHT, SEVEN))
        self.assertEqual(self.session.active_bets, [Bet(BetCategory.STRAIGHT, SEVEN, 5)])
        # Balance only moves at settlement
        self.assertEqual(self.session.balance, 1000)

    def test_accepts_category_strings(self):
        self.assertTrue(place_bet(self.session, "red", RED))
        self.assertEqual(self.session.active_bets[0].category, BetCategory.RED)

    def test_rejected_outside_betting_phase(self):
        for phase in (GamePhase.SPINNING, GamePhase.RESULT):
            self.session.phase = phase
            self.assertFalse(place_bet(self.session, BetCategory.STRAIGHT, SEVEN))
            self.assertEqual(self.session.active_bets, [])

    def test_rejected_when_chip_exceeds_balance(self):
        session = create_session(10)
        session.selected_chip = 25
        self.assertFalse(place_bet(session, BetCategory.STRAIGHT, frozenset({Pocket(17)})))
        self.assertEqual(session.active_bets, [])

    def test_rejected_when_remaining_balance_is_too_low(self):
        session = create_session(12)
        self.assertTrue(place_bet(session, BetCategory.RED, RED))
        self.assertTrue(place_bet(session, BetCategory.RED, RED))
        self.assertFalse(place_bet(session, BetCategory.RED, RED))
        self.assertEqual(total_active_wager(session), 10)

    def test_rejects_empty_targets(self):
        self.assertFalse(place_bet(self.session, BetCategory.STRAIGHT, frozenset()))
        self.assertEqual(self.session.active_bets, [])

    def test_same_bet_stacks(self):
        place_bet(self.session, BetCategory.SPLIT, split(EUROPEAN_WHEEL, Pocket(8), Pocket(11)))
        self.session.selected_chip = 25
        # Target order does not matter
        place_bet(self.session, BetCategory.SPLIT, [Pocket(11), Pocket(8)])

        self.assertEqual(len(self.session.active_bets), 1)
        self.assertEqual(self.session.active_bets[0].amount, 30)

    def test_different_categories_do_not_stack(self):
        place_bet(self.session, BetCategory.STRAIGHT, SEVEN)
        place_bet(self.session, BetCategory.CORNER, corner(4))
        place_bet(self.session, BetCategory.COLUMN, column(1))
        self.assertEqual(len(self.session.active_bets), 3)
        self.assertEqual(total_active_wager(self.session), 15)

    def test_total_wager_never_exceeds_balance(self):
        chooser = random.Random(7)
        session = create_session(137)
        shapes = [
            (BetCategory.STRAIGHT, frozenset({Pocket(n)})) for n in range(37)
        ] + [(category, targets) for category, targets in OUTSIDE_TARGETS.items()]

        for _ in range(500):
            session.selected_chip = chooser.choice(session.chip_values)
            category, targets = chooser.choice(shapes)
            place_bet(session, category, targets)
            self.assertLessEqual(total_active_wager(session), session.balance)
            keys = [bet.key for bet in session.active_bets]
            self.assertEqual(len(keys), len(set(keys)))


class TestClearAndUndo(unittest.TestCase):

    def setUp(self):
        self.session = create_session()
        place_bet(self.session, BetCategory.STRAIGHT, SEVEN)
        place_bet(self.session, BetCategory.RED, RED)

    def test_clear_bets(self):
        self.assertTrue(clear_bets(self.session))
        self.assertEqual(self.session.active_bets, [])
        self.assertEqual(self.session.balance, 1000)

    def test_clear_is_a_noop_outside_betting(self):
        self.session.phase = GamePhase.SPINNING
        self.assertFalse(clear_bets(self.session))
        self.assertEqual(len(self.session.active_bets), 2)

    def test_undo_removes_the_last_appended_bet(self):
        self.assertTrue(undo_last_bet(self.session))
        self.assertEqual(self.session.active_bets, [Bet(BetCategory.STRAIGHT, SEVEN, 5)])
        self.assertTrue(undo_last_bet(self.session))
        self.assertFalse(undo_last_bet(self.session))

    def test_undo_then_replace_restores_ledger(self):
        before = ledger.copy_bets(self.session.active_bets)
        undo_last_bet(self.session)
        place_bet(self.session, BetCategory.RED, RED)
        self.assertEqual(self.session.active_bets, before)

    def test_undo_removes_a_stacked_entry_whole(self):
        self.session.selected_chip = 25
        place_bet(self.session, BetCategory.RED, RED)
        self.assertEqual(self.session.active_bets[-1].amount, 30)

        # Undo takes back the entry, every chip stacked on it included
        self.assertTrue(undo_last_bet(self.session))
        self.assertEqual(self.session.active_bets, [Bet(BetCategory.STRAIGHT, SEVEN, 5)])

        # Re-placing one chip restores only that chip, not the stack
        place_bet(self.session, BetCategory.RED, RED)
        self.assertEqual(self.session.active_bets[-1], Bet(BetCategory.RED, RED, 25))

    def test_undo_of_an_earlier_stacked_entry_keeps_its_position(self):
        self.session.selected_chip = 25
        place_bet(self.session, BetCategory.STRAIGHT, SEVEN)
        self.assertEqual(
            [bet.category for bet in self.session.active_bets],
            [BetCategory.STRAIGHT, BetCategory.RED],
        )
        # Stacking does not move an entry to the end, so undo still takes red
        undo_last_bet(self.session)
        self.assertEqual(self.session.active_bets, [Bet(BetCategory.STRAIGHT, SEVEN, 30)])

    def test_undo_rejected_outside_betting(self):
        self.session.phase = GamePhase.RESULT
        self.assertFalse(undo_last_bet(self.session))
        self.assertEqual(len(self.session.active_bets), 2)


class TestRepeatBets(unittest.TestCase):

    def play_round(self, session, outcome=Pocket(0)):
        settle(session, outcome)
        session.active_bets = []

    def test_needs_history(self):
        session = create_session()
        self.assertFalse(repeat_bets(session))

    def test_reproduces_last_round_with_historical_amounts(self):
        session = create_session()
        session.selected_chip = 25
        place_bet(session, BetCategory.STRAIGHT, SEVEN)
        session.selected_chip = 5
        place_bet(session, BetCategory.RED, RED)
        place_bet(session, BetCategory.RED, RED)
        before = ledger.copy_bets(session.active_bets)

        self.play_round(session)
        session.selected_chip = 1

        self.assertTrue(repeat_bets(session))
        self.assertEqual(session.active_bets, before)

    def test_merges_into_current_bets(self):
        session = create_session()
        place_bet(session, BetCategory.RED, RED)
        self.play_round(session)

        place_bet(session, BetCategory.RED, RED)
        self.assertTrue(repeat_bets(session))
        self.assertEqual(session.active_bets, [Bet(BetCategory.RED, RED, 10)])

    def test_all_or_nothing(self):
        session = create_session(100)
        session.selected_chip = 25
        for _ in range(2):
            place_bet(session, BetCategory.RED, RED)
        place_bet(session, BetCategory.STRAIGHT, SEVEN)
        # Outcome 2 is black: lose all 75
        self.play_round(session, Pocket(2))
        self.assertEqual(session.balance, 25)

        self.assertFalse(repeat_bets(session))
        self.assertEqual(session.active_bets, [])

    def test_history_is_not_aliased(self):
        session = create_session()
        place_bet(session, BetCategory.RED, RED)
        self.play_round(session)
        repeat_bets(session)
        session.active_bets[0].amount = 500
        self.assertEqual(session.last_round_bets[0].amount, 5)

    def test_rejected_outside_betting(self):
        session = create_session()
        place_bet(session, BetCategory.RED, RED)
        self.play_round(session)
        session.phase = GamePhase.RESULT
        self.assertFalse(repeat_bets(session))


class TestBankruptAndChips(unittest.TestCase):

    def test_is_bankrupt_only_once_bets_are_resolved(self):
        session = create_session(5)
        place_bet(session, BetCategory.BLACK, OUTSIDE_TARGETS[BetCategory.BLACK])
        self.assertFalse(is_bankrupt(session))

        settle(session, Pocket(7))
        self.assertEqual(session.balance, 0)
        self.assertFalse(is_bankrupt(session))

        session.active_bets = []
        self.assertTrue(is_bankrupt(session))

    def test_select_chip(self):
        session = create_session()
        self.assertTrue(select_chip(session, 100))
        self.assertEqual(session.selected_chip, 100)
        self.assertFalse(select_chip(session, 7))
        session.phase = GamePhase.SPINNING
        self.assertFalse(select_chip(session, 1))
        self.assertEqual(session.selected_chip, 100)


if __name__ == "__main__":
    unittest.main()
