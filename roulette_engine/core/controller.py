"""
Table controller: runs the betting -> spinning -> result -> betting cycle.

Calls the ledger, the spin scheduler and the payout resolver in order and
hands everything the outside world needs (frames, phases, results) to a
presenter. The presenter and the optional store never feed back into the
game decisions.
"""

import asyncio
import inspect
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from roulette_engine.config import AppConfig, settings as default_settings
from roulette_engine.core import ledger
from roulette_engine.core.exceptions import InvalidBetError, InvalidPocketError, TableSetupError
from roulette_engine.core.history import RoundHistory
from roulette_engine.core.layout import check_targets
from roulette_engine.core.ledger import Bet, GamePhase, Session
from roulette_engine.core.logger import get_logger
from roulette_engine.core.payouts import settle, winning_bets
from roulette_engine.core.pockets import Pocket, color_of, get_wheel
from roulette_engine.core.stats import SessionStats
from roulette_engine.core.storage import TableStore
from roulette_engine.core.wheel import SpinScheduler, WheelPose

logger = get_logger("controller")


class Presenter:
    """
    Receiver for everything the table wants shown. Hooks may be plain
    methods or coroutines; the defaults do nothing.
    """

    def on_phase_change(self, phase: GamePhase, session: Session):
        pass

    def on_frame(self, pose: WheelPose):
        pass

    def on_result(self, result: "RoundResult"):
        pass

    def on_bankrupt(self, session: Session):
        pass


@dataclass
class RoundResult:
    outcome: Pocket
    bets: List[Bet]
    total_bet: int
    win_amount: int
    balance_before: int
    balance_after: int
    winning: List[Bet] = field(default_factory=list)

    @property
    def color(self) -> str:
        return color_of(self.outcome)

    @property
    def big_win(self) -> bool:
        """A straight-up number hit."""
        return any(bet.category == ledger.BetCategory.STRAIGHT for bet in self.winning)

    def to_dict(self) -> dict:
        return {
            "outcome": str(self.outcome),
            "color": self.color,
            "bets": [bet.to_dict() for bet in self.bets],
            "winning_bets": [bet.to_dict() for bet in self.winning],
            "total_bet": self.total_bet,
            "win_amount": self.win_amount,
            "net": self.win_amount - self.total_bet,
            "balance_before": self.balance_before,
            "balance_after": self.balance_after,
            "big_win": self.big_win,
        }


async def _call(hook, *args):
    result = hook(*args)
    if inspect.isawaitable(result):
        await result


class TableController:
    """
    Owns the single active session.

    Args:
        presenter: Rendering collaborator (required)
        settings: Application configuration
        scheduler: Spin scheduler; built from the settings when omitted
        store: Persistence for balance, history and stats; optional
        history: Recent rounds, loaded from the store when omitted
        stats: Cumulative statistics, loaded from the store when omitted
    """

    def __init__(
        self,
        presenter: Presenter,
        settings: AppConfig = None,
        scheduler: Optional[SpinScheduler] = None,
        store: Optional[TableStore] = None,
        history: Optional[RoundHistory] = None,
        stats: Optional[SessionStats] = None,
    ):
        if presenter is None:
            raise TableSetupError("A presenter is required to run the table")

        self.presenter = presenter
        self.settings = settings or default_settings
        self.wheel = get_wheel(self.settings.table.variant)
        self.store = store

        self.scheduler = scheduler or SpinScheduler(self.wheel, self.settings.animation)
        if self.scheduler.wheel != self.wheel:
            raise TableSetupError(
                f"Scheduler animates a {self.scheduler.wheel.variant} wheel, "
                f"table plays {self.wheel.variant}"
            )
        self.scheduler.on_frame = self._forward_frame

        history_size = self.settings.storage.history_size
        if history is None:
            history = store.load_history(history_size) if store else RoundHistory(max_entries=history_size)
        if stats is None:
            stats = store.load_stats() if store else SessionStats()
        self.history = history
        self.stats = stats

        starting_balance = store.load_balance() if store else self.settings.table.starting_balance
        self.session = self._new_session(starting_balance)
        self._dwell_handle: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

        logger.info(
            f"Table ready: {self.wheel.variant} wheel, balance {self.session.balance}"
        )

    def _new_session(self, balance: int) -> Session:
        return ledger.create_session(
            initial_balance=balance,
            wheel=self.wheel,
            selected_chip=self.settings.table.default_chip,
            chip_values=self.settings.table.chip_values,
        )

    # ==================== Betting ====================

    def place_bet(self, category, targets: Iterable) -> bool:
        """Place a chip on a spot; targets that are not a spot on the layout are refused."""
        try:
            targets = check_targets(self.wheel, category, targets)
        except (InvalidBetError, InvalidPocketError) as e:
            logger.warning(f"Refused bet: {e}")
            return False
        return ledger.place_bet(self.session, category, targets)

    def clear_bets(self) -> bool:
        return ledger.clear_bets(self.session)

    def undo_last_bet(self) -> bool:
        return ledger.undo_last_bet(self.session)

    def repeat_bets(self) -> bool:
        return ledger.repeat_bets(self.session)

    def select_chip(self, chip: int) -> bool:
        return ledger.select_chip(self.session, chip)

    @property
    def can_spin(self) -> bool:
        return (
            self.session.phase == GamePhase.BETTING
            and bool(self.session.active_bets)
            and not ledger.is_bankrupt(self.session)
        )

    # ==================== Round ====================

    async def spin(self) -> Optional[RoundResult]:
        """
        Play one round. Returns None when no spin is allowed right now.

        If the animation is interrupted (pre-emption, cancellation) nothing has
        been settled: betting reopens with the bets untouched and the error is
        re-raised. Once the outcome is settled the round always closes, even
        when reporting it fails.
        """
        if not self.can_spin:
            return None

        session = self.session
        bets_snapshot = ledger.copy_bets(session.active_bets)
        balance_before = session.balance
        session.phase = GamePhase.SPINNING

        try:
            await self._notify_phase(GamePhase.SPINNING, session)
            outcome = self.scheduler.draw_outcome()
            await self.scheduler.animate_to_outcome(outcome)
        except BaseException:
            self._abort_spin(session)
            raise

        win_amount = settle(session, outcome)
        try:
            self.scheduler.reset()
            result = RoundResult(
                outcome=outcome,
                bets=bets_snapshot,
                total_bet=sum(bet.amount for bet in bets_snapshot),
                win_amount=win_amount,
                balance_before=balance_before,
                balance_after=session.balance,
                winning=winning_bets(bets_snapshot, outcome),
            )

            self.history.add_entry(outcome, result.total_bet, win_amount)
            self.stats.record_round(bets_snapshot, win_amount)
            self._persist()

            await _call(self.presenter.on_result, result)
        except BaseException:
            logger.error(f"Round on {outcome} settled but not fully reported", exc_info=True)
            self._close_round(session)
            self._spawn(self._announce_round_end(session))
            self._schedule_dwell(session)
            raise

        self._close_round(session)
        await self._announce_round_end(session)
        self._schedule_dwell(session)
        return result

    def _abort_spin(self, session: Session):
        if not self.scheduler.animating:
            self.scheduler.reset()
        # A new game may have replaced the session meanwhile
        if self.session is not session or session.phase != GamePhase.SPINNING:
            return
        logger.warning("Spin interrupted before settlement; betting reopened")
        session.phase = GamePhase.BETTING
        self._spawn(self._notify_phase(GamePhase.BETTING, session))

    def _close_round(self, session: Session):
        session.active_bets = []
        session.phase = GamePhase.RESULT

    async def _announce_round_end(self, session: Session):
        if self.session is not session:
            return
        await self._notify_phase(GamePhase.RESULT, session)
        if ledger.is_bankrupt(session):
            logger.info("Player is bankrupt; waiting for a new game")
            await _call(self.presenter.on_bankrupt, session)

    def _schedule_dwell(self, session: Session):
        if ledger.is_bankrupt(session):
            return
        loop = asyncio.get_running_loop()

        def reopen():
            self._dwell_handle = None
            if self.session is session and session.phase == GamePhase.RESULT:
                session.phase = GamePhase.BETTING
                self._spawn(self._notify_phase(GamePhase.BETTING, session))

        self._dwell_handle = loop.call_later(self.settings.table.dwell_seconds, reopen)

    def _spawn(self, coro) -> asyncio.Task:
        """Run a presenter notification in the background, holding it until done."""
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Presenter notification failed", exc_info=task.exception())

    async def _set_phase(self, phase: GamePhase):
        self.session.phase = phase
        await self._notify_phase(phase, self.session)

    async def _notify_phase(self, phase: GamePhase, session: Session):
        logger.debug(f"Phase -> {phase.value}")
        await _call(self.presenter.on_phase_change, phase, session)

    async def _forward_frame(self, pose: WheelPose):
        await _call(self.presenter.on_frame, pose)

    def _persist(self):
        if self.store is None:
            return
        self.store.save_balance(self.session.balance)
        self.store.save_history(self.history)
        self.store.save_stats(self.stats)

    # ==================== New Game ====================

    async def new_game(self) -> Session:
        """Discard the session, persisted balance, history and stats."""
        if self._dwell_handle is not None:
            self._dwell_handle.cancel()
            self._dwell_handle = None
        self.scheduler.reset()

        self.history.clear()
        self.stats.clear()
        if self.store is not None:
            self.store.clear_balance()
            self.store.save_history(self.history)
            self.store.save_stats(self.stats)

        self.session = self._new_session(self.settings.table.starting_balance)
        logger.info(f"New game started with balance {self.session.balance}")
        await self._set_phase(GamePhase.BETTING)
        return self.session

    # ==================== Snapshot ====================

    def snapshot(self) -> dict:
        session = self.session
        return {
            "wheel": self.wheel.variant,
            "balance": session.balance,
            "phase": session.phase.value,
            "selected_chip": session.selected_chip,
            "chip_values": list(session.chip_values),
            "bets": [bet.to_dict() for bet in session.active_bets],
            "total_bet": ledger.total_active_wager(session),
            "last_round_bets": [bet.to_dict() for bet in session.last_round_bets],
            "last_outcome": str(session.last_outcome) if session.last_outcome is not None else None,
            "last_win_amount": session.last_win_amount,
            "bankrupt": ledger.is_bankrupt(session),
            "can_spin": self.can_spin,
        }
