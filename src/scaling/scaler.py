"""Threshold-based replica scaling."""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from src.simulation.config import RuntimeConfig


class ScalingAction(Enum):
    """Possible scaling actions."""

    SCALE_OUT = "scale_out"
    SCALE_IN = "scale_in"
    HOLD = "hold"


@dataclass
class ScalingDecision:
    """Result of a scaling decision."""

    action: ScalingAction
    current_replicas: int
    target_replicas: int
    avg_cpu: float
    avg_memory: float
    reason: str
    timestamp: datetime | None = None

    def __str__(self) -> str:
        return (
            f"{self.action.value.upper()}: {self.current_replicas} -> {self.target_replicas} replicas "
            f"(cpu={self.avg_cpu:.1f}%, memory={self.avg_memory:.1f}%, reason={self.reason})"
        )

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "current_replicas": self.current_replicas,
            "target_replicas": self.target_replicas,
            "avg_cpu": self.avg_cpu,
            "avg_memory": self.avg_memory,
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


def scale_replicas(
    current_replicas: int,
    avg_cpu: float,
    avg_memory: float,
    total_users: int,
    config: RuntimeConfig,
) -> int:
    """Compute the desired replica count.

    Each resource asks for ceil(current * usage / threshold) replicas; the
    larger request wins and is clamped to [min_replicas, max_replicas].

    Args:
        current_replicas: Replicas currently running
        avg_cpu: Average CPU utilization in percent
        avg_memory: Average memory utilization in percent
        total_users: Active users (accepted but not used by the formula)
        config: Runtime configuration with thresholds and bounds

    Returns:
        Desired replica count
    """
    cpu_desired = math.ceil(current_replicas * (avg_cpu / config.cpu_threshold))
    memory_desired = math.ceil(current_replicas * (avg_memory / config.memory_threshold))

    desired = max(cpu_desired, memory_desired)

    return min(max(desired, config.min_replicas), config.max_replicas)


def recommend(
    current_replicas: int,
    avg_cpu: float,
    avg_memory: float,
    total_users: int,
    config: RuntimeConfig,
    timestamp: datetime | None = None,
) -> ScalingDecision:
    """Wrap scale_replicas in a ScalingDecision.

    Args:
        current_replicas: Replicas currently running
        avg_cpu: Average CPU utilization in percent
        avg_memory: Average memory utilization in percent
        total_users: Active users
        config: Runtime configuration
        timestamp: Decision timestamp

    Returns:
        ScalingDecision with action and reason
    """
    target = scale_replicas(current_replicas, avg_cpu, avg_memory, total_users, config)

    cpu_ratio = avg_cpu / config.cpu_threshold
    memory_ratio = avg_memory / config.memory_threshold
    dominant = "cpu" if cpu_ratio >= memory_ratio else "memory"

    if target > current_replicas:
        action = ScalingAction.SCALE_OUT
        reason = f"high_{dominant}_utilization"
    elif target < current_replicas:
        action = ScalingAction.SCALE_IN
        reason = f"low_{dominant}_utilization"
    else:
        action = ScalingAction.HOLD
        if target == config.max_replicas and max(cpu_ratio, memory_ratio) > 1:
            reason = "max_replicas_reached"
        else:
            reason = "within_thresholds"

    return ScalingDecision(
        action=action,
        current_replicas=current_replicas,
        target_replicas=target,
        avg_cpu=avg_cpu,
        avg_memory=avg_memory,
        reason=reason,
        timestamp=timestamp,
    )
