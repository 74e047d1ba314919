"""Synthetic user population and the per-run simulation context."""

import logging
import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from threading import Lock
from typing import Callable

import numpy as np

from src.simulation.config import LoadProfile, RuntimeConfig
from src.simulation.load import LoadPattern, generate_load

logger = logging.getLogger(__name__)


class UserType(str, Enum):
    """Synthetic user classes, each with its own load multipliers."""

    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


USER_TYPES = [UserType.LIGHT, UserType.MEDIUM, UserType.HEAVY]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class UserSession:
    """A synthetic client.

    last_activity is stamped at creation and is not touched afterwards.
    """

    id: str
    type: UserType
    start_time: datetime = field(default_factory=_utcnow)
    last_activity: datetime | None = None
    pod_name: str | None = None

    def __post_init__(self):
        if self.last_activity is None:
            self.last_activity = self.start_time

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "start_time": self.start_time.isoformat(),
            "last_activity": self.last_activity.isoformat(),
            "pod_name": self.pod_name,
        }


@dataclass
class SimulationContext:
    """State owned by one simulation run.

    Holds the population (insertion-ordered, keyed by session id), the time
    origin of the linear pattern, the id counter and the injected random
    generator and clock. Independent contexts share nothing.
    """

    rng: np.random.Generator = field(default_factory=np.random.default_rng)
    clock: Callable[[], float] = time.time
    users: dict[str, UserSession] = field(default_factory=dict)
    linear_origin: float | None = None
    next_id: int = 1
    lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    @classmethod
    def seeded(cls, seed: int, clock: Callable[[], float] = time.time) -> "SimulationContext":
        """Create a context with a reproducible random generator."""
        return cls(rng=np.random.default_rng(seed), clock=clock)

    @property
    def population(self) -> list[UserSession]:
        """Current sessions in creation order."""
        return list(self.users.values())

    def __len__(self) -> int:
        return len(self.users)


def reconcile(
    context: SimulationContext,
    target: int,
) -> tuple[list[UserSession], list[UserSession]]:
    """Grow or shrink the population to the target size.

    New sessions get the next sequence id and a uniformly drawn type.
    Shrinking removes the most recently added sessions first.

    Args:
        context: Simulation context to mutate
        target: Desired population size

    Returns:
        Tuple of (added sessions, removed sessions)
    """
    target = max(0, int(target))
    added: list[UserSession] = []
    removed: list[UserSession] = []

    while len(context.users) < target:
        user_type = USER_TYPES[int(context.rng.integers(len(USER_TYPES)))]
        session = UserSession(id=f"user-{context.next_id}", type=user_type)
        context.next_id += 1
        context.users[session.id] = session
        added.append(session)

    while len(context.users) > target:
        _, session = context.users.popitem()
        removed.append(session)

    if added or removed:
        logger.debug(
            "Population reconciled: target=%d, added=%d, removed=%d",
            target, len(added), len(removed),
        )

    return added, removed


def _linear_target(profile: LoadProfile, elapsed: float) -> int:
    """Target users after elapsed seconds in the linear regime.

    Unlike the clock-driven linear pattern, growth does not restart daily.
    """
    load = profile.initial_users + profile.user_growth_rate * elapsed / 60
    return math.floor(max(profile.initial_users, min(load, profile.max_users)))


def simulate_user_activity(
    context: SimulationContext,
    config: RuntimeConfig,
    now: float | None = None,
) -> list[UserSession]:
    """Advance the population by one tick.

    The linear pattern grows from the moment the run entered the linear
    regime; every other pattern is evaluated on the tick's clock value.

    Args:
        context: Simulation context
        config: Runtime configuration for this tick
        now: Clock value in seconds (defaults to the context clock)

    Returns:
        Snapshot of the population after reconciliation
    """
    profile = config.default_load_profile

    with context.lock:
        now = context.clock() if now is None else now

        if profile.pattern == LoadPattern.LINEAR:
            if context.linear_origin is None:
                context.linear_origin = now
            elapsed = now - context.linear_origin
            target = _linear_target(profile, elapsed)
            logger.debug(
                "Linear pattern: elapsed_minutes=%.2f, target=%d, max_users=%d",
                elapsed / 60, target, profile.max_users,
            )
        else:
            context.linear_origin = None
            target = generate_load(profile.pattern, now, profile, context.rng)

        reconcile(context, target)
        return context.population


tick = simulate_user_activity


def reset_simulation(context: SimulationContext) -> None:
    """Return the context to its initial state."""
    with context.lock:
        context.users.clear()
        context.linear_origin = None
        context.next_id = 1
