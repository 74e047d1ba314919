"""Synthetic load patterns.

Each pattern maps elapsed seconds to a target number of synthetic users.
"""

import math
from enum import Enum

import numpy as np
import pandas as pd

from src.simulation.config import LoadProfile

SECONDS_PER_DAY = 24 * 3600
WORKDAY_START_HOUR = 8
WORKDAY_END_HOUR = 18
OFF_HOURS_MULTIPLIER = 0.3


class LoadPattern(str, Enum):
    """Supported load patterns."""

    LINEAR = "linear"
    SINE = "sine"
    SPIKE = "spike"
    SAWTOOTH = "sawtooth"
    SQUARE = "square"
    RANDOM = "random"
    DAILY = "daily"


def _raw_load(
    pattern: str,
    time: float,
    profile: LoadProfile,
    rng: np.random.Generator,
) -> float:
    """Evaluate a pattern formula without clamping."""
    base_load = profile.base_load
    amplitude = profile.amplitude
    period = profile.period

    if pattern == LoadPattern.LINEAR:
        # Growth restarts every 24 hours
        minutes = (time % SECONDS_PER_DAY) / 60
        load = profile.initial_users + profile.user_growth_rate * minutes
        return min(load, profile.max_users)

    if pattern == LoadPattern.SINE:
        return base_load + amplitude * math.sin(2 * math.pi * time / period)

    if pattern == LoadPattern.SPIKE:
        return base_load + (amplitude if time % period < period / 10 else 0)

    if pattern == LoadPattern.SAWTOOTH:
        return base_load + amplitude * ((time % period) / period)

    if pattern == LoadPattern.SQUARE:
        return base_load + (amplitude if math.floor(time / (period / 2)) % 2 == 0 else 0)

    if pattern == LoadPattern.RANDOM:
        has_spike = rng.random() < profile.spike_probability
        base_value = base_load + (rng.random() - 0.5) * amplitude
        return base_value * profile.spike_multiplier if has_spike else base_value

    if pattern == LoadPattern.DAILY:
        hour = (time % SECONDS_PER_DAY) / 3600
        workday_pattern = math.sin(2 * math.pi * (hour - 6) / 24)
        multiplier = 1 if WORKDAY_START_HOUR <= hour <= WORKDAY_END_HOUR else OFF_HOURS_MULTIPLIER
        return base_load + amplitude * workday_pattern * multiplier

    return base_load


def generate_load(
    pattern: str | LoadPattern,
    time: float,
    profile: LoadProfile,
    rng: np.random.Generator | None = None,
) -> int:
    """Compute the target user count for a pattern at a point in time.

    Args:
        pattern: Pattern name; unknown names yield the profile's base load
        time: Elapsed seconds (absolute or relative clock)
        profile: Load profile parameters
        rng: Random generator for the random pattern

    Returns:
        Target user count in [0, max_users], or [initial_users, max_users]
        for the linear pattern
    """
    if isinstance(pattern, LoadPattern):
        pattern = pattern.value
    if rng is None:
        rng = np.random.default_rng()

    load = _raw_load(pattern, time, profile, rng)

    if pattern == LoadPattern.LINEAR:
        load = max(profile.initial_users, min(load, profile.max_users))
    else:
        load = max(0, min(load, profile.max_users))

    return math.floor(load)


def generate_load_series(
    profile: LoadProfile,
    duration: float,
    step: float = 1.0,
    start: float = 0.0,
    rng: np.random.Generator | None = None,
) -> pd.Series:
    """Sample the profile's pattern over a time range.

    Args:
        profile: Load profile (its pattern is used)
        duration: Length of the range in seconds
        step: Sampling interval in seconds
        start: First sample time
        rng: Random generator for the random pattern

    Returns:
        Series of target user counts indexed by sample time
    """
    if step <= 0:
        raise ValueError("step must be positive")

    rng = rng if rng is not None else np.random.default_rng()
    times = np.arange(start, start + duration, step)
    values = [generate_load(profile.pattern, float(t), profile, rng) for t in times]

    series = pd.Series(values, index=pd.Index(times, name="time"), name="target_users")
    return series.astype(int)
