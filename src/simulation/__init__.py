"""Synthetic population, load patterns and resource estimation."""

from src.simulation.config import (
    RuntimeConfig,
    LoadProfile,
    UserPattern,
    UserResources,
    ResourceLimits,
    CONSERVATIVE_CONFIG,
    BALANCED_CONFIG,
    AGGRESSIVE_CONFIG,
    get_preset,
)
from src.simulation.units import (
    Quantity,
    InvalidQuantityError,
    parse_quantity,
    parse_cpu,
    parse_memory,
)
from src.simulation.load import LoadPattern, generate_load, generate_load_series
from src.simulation.population import (
    UserType,
    UserSession,
    SimulationContext,
    reconcile,
    simulate_user_activity,
    tick,
    reset_simulation,
)
from src.simulation.resources import (
    Pod,
    PodMetrics,
    RawMetrics,
    AverageUsage,
    InvalidPodLimits,
    load_multiplier,
    estimate_resources,
    pod_limits,
    simulate_pod_usage,
    calculate_average_usage,
)
from src.simulation.assignment import distribute_users

__all__ = [
    "RuntimeConfig",
    "LoadProfile",
    "UserPattern",
    "UserResources",
    "ResourceLimits",
    "CONSERVATIVE_CONFIG",
    "BALANCED_CONFIG",
    "AGGRESSIVE_CONFIG",
    "get_preset",
    "Quantity",
    "InvalidQuantityError",
    "parse_quantity",
    "parse_cpu",
    "parse_memory",
    "LoadPattern",
    "generate_load",
    "generate_load_series",
    "UserType",
    "UserSession",
    "SimulationContext",
    "reconcile",
    "simulate_user_activity",
    "tick",
    "reset_simulation",
    "Pod",
    "PodMetrics",
    "RawMetrics",
    "AverageUsage",
    "InvalidPodLimits",
    "load_multiplier",
    "estimate_resources",
    "pod_limits",
    "simulate_pod_usage",
    "calculate_average_usage",
    "distribute_users",
]
