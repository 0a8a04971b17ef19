import pytest

from roulette_engine.config import AnimationConfig
from roulette_engine.core.controller import Presenter
from roulette_engine.core.pockets import Pocket, Wheel
from roulette_engine.core.rng import TrueRNG


class FixedRNG(TrueRNG):
    """Lands on a chosen pocket and uses a fixed fraction for every timeline draw."""

    def __init__(self, wheel: Wheel, pocket: Pocket = Pocket(0), fraction: float = 0.5):
        self.wheel = wheel
        self.pocket = pocket
        self.fraction = fraction

    def random_int(self, min_val: int, max_val: int) -> int:
        return min_val + self.wheel.index_of(self.pocket)

    def random_float(self) -> float:
        return self.fraction


class RecordingPresenter(Presenter):
    def __init__(self):
        self.phases = []
        self.frames = []
        self.results = []
        self.bankruptcies = 0

    def on_phase_change(self, phase, session):
        self.phases.append(phase)

    def on_frame(self, pose):
        self.frames.append(pose)

    def on_result(self, result):
        self.results.append(result)

    def on_bankrupt(self, session):
        self.bankruptcies += 1


@pytest.fixture
def fast_animation():
    """A full timeline, shrunk to a few milliseconds."""
    return AnimationConfig(
        min_duration_ms=30,
        extra_duration_range_ms=10,
        bounce_duration_ms=10,
        frame_interval_ms=1,
    )


@pytest.fixture
def presenter():
    return RecordingPresenter()
