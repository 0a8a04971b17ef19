"""
Recent-rounds history shown next to the wheel.
"""

from dataclasses import asdict, dataclass
from typing import Iterable, List

from roulette_engine.core.pockets import Pocket, color_of

DEFAULT_HISTORY_SIZE = 20


@dataclass
class HistoryEntry:
    outcome: str
    total_bet: int
    win_amount: int

    @property
    def net(self) -> int:
        return self.win_amount - self.total_bet

    @property
    def color(self) -> str:
        return color_of(Pocket.parse(self.outcome))

    def to_dict(self) -> dict:
        return {**asdict(self), "net": self.net, "color": self.color}


class RoundHistory:
    """Newest-first list of settled rounds, capped at ``max_entries``."""

    def __init__(self, entries: Iterable[HistoryEntry] = (), max_entries: int = DEFAULT_HISTORY_SIZE):
        self.max_entries = max_entries
        self.entries: List[HistoryEntry] = list(entries)[:max_entries]

    def add_entry(self, outcome: Pocket, total_bet: int, win_amount: int) -> HistoryEntry:
        entry = HistoryEntry(outcome=str(outcome), total_bet=total_bet, win_amount=win_amount)
        self.entries.insert(0, entry)
        del self.entries[self.max_entries:]
        return entry

    def clear(self):
        self.entries = []

    def recent_outcomes(self) -> List[str]:
        return [entry.outcome for entry in self.entries]

    def to_list(self) -> List[dict]:
        return [asdict(entry) for entry in self.entries]

    @classmethod
    def from_list(cls, raw, max_entries: int = DEFAULT_HISTORY_SIZE) -> "RoundHistory":
        """Rebuild from stored dicts, skipping anything malformed."""
        entries = []
        if isinstance(raw, list):
            for item in raw:
                try:
                    Pocket.parse(item["outcome"])
                    entries.append(
                        HistoryEntry(
                            outcome=str(item["outcome"]),
                            total_bet=int(item["total_bet"]),
                            win_amount=int(item["win_amount"]),
                        )
                    )
                except (KeyError, TypeError, ValueError):
                    continue
        return cls(entries, max_entries=max_entries)
