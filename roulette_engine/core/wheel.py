"""
Spin scheduler: commits the outcome, then drives the wheel and ball to it.

The outcome is drawn before the timeline is planned, and the timeline is
computed from the outcome, so the rendered pocket can never disagree with the
declared one. Timeline math (plan_spin, pose_at) is pure and needs no timer;
SpinScheduler only steps it on the event loop.

Angles are radians in screen orientation; the marker sits at the top of the
wheel (-pi/2). Pocket i of the clockwise sequence is drawn at
``wheel_angle + i * pocket_arc``.
"""

import asyncio
import inspect
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from roulette_engine.config import AnimationConfig
from roulette_engine.core.exceptions import InvalidPocketError
from roulette_engine.core.logger import get_logger
from roulette_engine.core.pockets import Pocket, Wheel
from roulette_engine.core.rng import TrueRNG, rng as default_rng

logger = get_logger("wheel")

TAU = 2 * math.pi
MARKER_ANGLE = -math.pi / 2


class SpinState(str, Enum):
    IDLE = "idle"
    COMMITTING = "committing"
    ANIMATING = "animating"
    SETTLED = "settled"


@dataclass(frozen=True)
class WheelPose:
    angle: float = 0.0
    ball_angle: float = MARKER_ANGLE
    spinning: bool = False

    def normalized(self) -> "WheelPose":
        return replace(self, angle=self.angle % TAU, ball_angle=self.ball_angle % TAU)

    def to_dict(self) -> dict:
        return {"angle": self.angle, "ball_angle": self.ball_angle, "spinning": self.spinning}


@dataclass(frozen=True)
class SpinPlan:
    outcome: Pocket
    wheel_start: float
    wheel_end: float
    ball_start: float
    ball_end: float
    duration_ms: float
    bounce_duration_ms: float
    bounce_count: int
    bounce_amplitude: float

    @property
    def total_ms(self) -> float:
        return self.duration_ms + self.bounce_duration_ms

    @property
    def final_pose(self) -> WheelPose:
        return WheelPose(self.wheel_end, self.ball_end, spinning=False)


def ease_out_cubic(progress: float) -> float:
    """Decelerating curve: full speed at 0, zero speed at 1."""
    return 1 - (1 - progress) ** 3


def target_pocket_angle(wheel: Wheel, pocket: Pocket) -> float:
    """Wheel angle that puts ``pocket`` under the marker."""
    return MARKER_ANGLE - wheel.index_of(pocket) * wheel.pocket_arc


def pocket_under_marker(wheel: Wheel, angle: float) -> Pocket:
    """The pocket a renderer shows under the marker for a given wheel angle."""
    index = round((MARKER_ANGLE - angle) / wheel.pocket_arc) % wheel.pocket_count
    return wheel.sequence[index]


def plan_spin(
    wheel: Wheel,
    outcome: Pocket,
    start: WheelPose,
    config: AnimationConfig,
    rng: TrueRNG = default_rng,
) -> SpinPlan:
    """
    Build the timeline for one spin ending on ``outcome``.

    The wheel turns clockwise by a random number of full turns plus the
    smallest extra rotation that aligns the outcome with the marker; the
    ball turns the other way and stops on the marker.
    """
    wheel_turns = rng.uniform(config.min_wheel_rotations, config.extra_rotation_range)
    spun = start.angle + TAU * wheel_turns
    wheel_end = spun + (target_pocket_angle(wheel, outcome) - spun) % TAU

    ball_turns = rng.uniform(config.min_ball_spins, config.extra_ball_spin_range)
    ball_spun = start.ball_angle - TAU * ball_turns
    ball_end = ball_spun - (ball_spun - MARKER_ANGLE) % TAU

    return SpinPlan(
        outcome=outcome,
        wheel_start=start.angle,
        wheel_end=wheel_end,
        ball_start=start.ball_angle,
        ball_end=ball_end,
        duration_ms=rng.uniform(config.min_duration_ms, config.extra_duration_range_ms),
        bounce_duration_ms=max(0.0, config.bounce_duration_ms),
        bounce_count=config.bounce_count,
        bounce_amplitude=wheel.pocket_arc * config.bounce_amplitude_ratio,
    )


def pose_at(plan: SpinPlan, elapsed_ms: float) -> WheelPose:
    """Pose of the wheel and ball ``elapsed_ms`` after the spin started."""
    if elapsed_ms >= plan.total_ms:
        return plan.final_pose

    if elapsed_ms < plan.duration_ms:
        ease = ease_out_cubic(max(0.0, elapsed_ms) / plan.duration_ms)
        return WheelPose(
            angle=plan.wheel_start + (plan.wheel_end - plan.wheel_start) * ease,
            ball_angle=plan.ball_start + (plan.ball_end - plan.ball_start) * ease,
            spinning=True,
        )

    # Ball settling: damped oscillation around the marker, zero at the end
    progress = (elapsed_ms - plan.duration_ms) / plan.bounce_duration_ms
    decay = 1 - progress
    oscillation = math.sin(progress * plan.bounce_count * TAU)
    return WheelPose(
        angle=plan.wheel_end,
        ball_angle=plan.ball_end + oscillation * decay * plan.bounce_amplitude,
        spinning=True,
    )


FrameCallback = Callable[[WheelPose], Union[None, Awaitable[None]]]


class SpinScheduler:
    """
    Owns the wheel pose and runs at most one spin animation at a time.

    Args:
        wheel: Wheel layout being animated
        config: Timeline parameters
        rng: Randomness source for the outcome and the timeline variation
        on_frame: Called with every pose; may be a coroutine function
        reduced_motion: Skip the animation and jump to the final pose
    """

    def __init__(
        self,
        wheel: Wheel,
        config: Optional[AnimationConfig] = None,
        rng: TrueRNG = default_rng,
        on_frame: Optional[FrameCallback] = None,
        reduced_motion: Optional[bool] = None,
    ):
        self.wheel = wheel
        self.config = config or AnimationConfig()
        self.rng = rng
        self.on_frame = on_frame
        self.reduced_motion = self.config.reduced_motion if reduced_motion is None else reduced_motion

        self.state = SpinState.IDLE
        self.pose = WheelPose()
        self.outcome: Optional[Pocket] = None
        self.plan: Optional[SpinPlan] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def animating(self) -> bool:
        return self._task is not None and not self._task.done()

    def draw_outcome(self) -> Pocket:
        """Commit a uniformly random pocket for the coming spin."""
        self.state = SpinState.COMMITTING
        index = self.rng.random_int(0, self.wheel.pocket_count - 1)
        self.outcome = self.wheel.sequence[index]
        logger.debug(f"Outcome committed: {self.outcome}")
        return self.outcome

    def cancel(self):
        """Stop the in-flight animation; the pose stays where the last frame left it."""
        if self.animating:
            self._task.cancel()
            logger.warning("Spin animation pre-empted")
        self._task = None
        self.pose = replace(self.pose, spinning=False)
        if self.state == SpinState.ANIMATING:
            self.state = SpinState.IDLE

    def reset(self):
        """Return to idle after the settled outcome has been consumed."""
        self.cancel()
        self.state = SpinState.IDLE
        self.outcome = None
        self.plan = None

    async def spin(self) -> Pocket:
        """Draw an outcome, then animate to it."""
        self.cancel()
        outcome = self.draw_outcome()
        return await self.animate_to_outcome(outcome)

    async def animate_to_outcome(self, outcome: Pocket) -> Pocket:
        """
        Play the spin timeline ending on ``outcome`` and return it.

        A later call pre-empts this one; the pre-empted caller gets
        ``asyncio.CancelledError``.
        """
        if outcome not in self.wheel:
            raise InvalidPocketError(outcome, f"Pocket {outcome} is not on the {self.wheel.variant} wheel")

        self.cancel()
        self.outcome = outcome
        self.plan = plan_spin(self.wheel, outcome, self.pose, self.config, self.rng)
        self.state = SpinState.ANIMATING

        if self.reduced_motion:
            await self._show(self.plan.final_pose)
            return self._settle(self.plan)

        plan = self.plan
        self._task = asyncio.ensure_future(self._run(plan))
        await self._task
        return self._settle(plan)

    async def _run(self, plan: SpinPlan):
        loop = asyncio.get_running_loop()
        started = loop.time()
        interval = max(0.0, self.config.frame_interval_ms) / 1000

        while True:
            elapsed_ms = (loop.time() - started) * 1000
            await self._show(pose_at(plan, elapsed_ms))
            if elapsed_ms >= plan.total_ms:
                return
            await asyncio.sleep(interval)

    async def _show(self, pose: WheelPose):
        self.pose = pose
        if self.on_frame is None:
            return
        result = self.on_frame(pose)
        if inspect.isawaitable(result):
            await result

    def _settle(self, plan: SpinPlan) -> Pocket:
        self._task = None
        self.pose = plan.final_pose.normalized()
        self.state = SpinState.SETTLED
        logger.info(f"Spin settled on {plan.outcome} after {plan.total_ms:.0f}ms")
        return plan.outcome
