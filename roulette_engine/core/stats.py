"""
Cumulative session statistics.
"""

from dataclasses import asdict, dataclass, field, fields
from typing import Dict, Iterable, Optional, Tuple

from roulette_engine.core.ledger import Bet, BetCategory


@dataclass
class SessionStats:
    total_rounds: int = 0
    total_wagered: int = 0
    total_won: int = 0
    wins: int = 0
    losses: int = 0
    # Positive for a winning run, negative for a losing run
    current_streak: int = 0
    longest_win_streak: int = 0
    longest_lose_streak: int = 0
    # Pocket label -> number of straight bets placed on it
    number_bets: Dict[str, int] = field(default_factory=dict)

    @property
    def net_profit(self) -> int:
        return self.total_won - self.total_wagered

    @property
    def win_rate(self) -> float:
        """Percentage of rounds that returned anything."""
        if self.total_rounds == 0:
            return 0.0
        return round(self.wins / self.total_rounds * 100, 1)

    def record_round(self, bets: Iterable[Bet], total_win: int):
        bets = list(bets)
        self.total_rounds += 1
        self.total_wagered += sum(bet.amount for bet in bets)
        self.total_won += total_win

        if total_win > 0:
            self.wins += 1
            self.current_streak = self.current_streak + 1 if self.current_streak >= 0 else 1
            self.longest_win_streak = max(self.longest_win_streak, self.current_streak)
        else:
            self.losses += 1
            self.current_streak = self.current_streak - 1 if self.current_streak <= 0 else -1
            self.longest_lose_streak = max(self.longest_lose_streak, -self.current_streak)

        for bet in bets:
            if bet.category == BetCategory.STRAIGHT:
                for pocket in bet.targets:
                    key = str(pocket)
                    self.number_bets[key] = self.number_bets.get(key, 0) + 1

    def most_bet_number(self) -> Optional[Tuple[str, int]]:
        """(pocket label, count) of the favourite straight bet; first one wins ties."""
        best = None
        for key, count in self.number_bets.items():
            if best is None or count > best[1]:
                best = (key, count)
        return best

    def clear(self):
        for f in fields(self):
            setattr(self, f.name, {} if f.name == "number_bets" else 0)

    def to_dict(self) -> dict:
        return asdict(self)

    def summary(self) -> dict:
        most_bet = self.most_bet_number()
        return {
            **self.to_dict(),
            "net_profit": self.net_profit,
            "win_rate": self.win_rate,
            "most_bet_number": {"pocket": most_bet[0], "count": most_bet[1]} if most_bet else None,
        }

    @classmethod
    def from_dict(cls, raw) -> "SessionStats":
        """Rebuild from a stored dict; falls back to empty stats when malformed."""
        if not isinstance(raw, dict):
            return cls()
        try:
            known = {f.name for f in fields(cls)}
            stats = cls(**{k: v for k, v in raw.items() if k in known})
            stats.number_bets = {str(k): int(v) for k, v in dict(stats.number_bets).items()}
            return stats
        except (TypeError, ValueError):
            return cls()
