"""Replica scaling decisions and closed-loop simulation."""

from src.scaling.scaler import (
    ScalingAction,
    ScalingDecision,
    scale_replicas,
    recommend,
)
from src.scaling.simulator import (
    ClusterSimulator,
    SimulationMetrics,
    TickResult,
)

__all__ = [
    "ScalingAction",
    "ScalingDecision",
    "scale_replicas",
    "recommend",
    "ClusterSimulator",
    "SimulationMetrics",
    "TickResult",
]
