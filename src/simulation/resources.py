"""Resource estimation for pods and fleet-wide aggregation."""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone

from src.simulation.config import ResourceLimits, RuntimeConfig, UserPattern, default_user_patterns
from src.simulation.population import UserSession, UserType
from src.simulation.units import (
    InvalidQuantityError,
    cpu_millicores,
    memory_mib,
    parse_cpu,
    parse_memory,
    parse_quantity,
)

logger = logging.getLogger(__name__)

UNKNOWN_POD = "unknown"


class InvalidPodLimits(ValueError):
    """Raised when a pod's CPU or memory limit is missing, malformed or zero."""

    def __init__(self, pod_name: str, cpu_limit: str | None, memory_limit: str | None):
        self.pod_name = pod_name
        self.cpu_limit = cpu_limit
        self.memory_limit = memory_limit
        super().__init__(
            f"Pod {pod_name!r} has invalid limits (cpu={cpu_limit!r}, memory={memory_limit!r})"
        )


@dataclass
class RawMetrics:
    """Unclamped usage and limits, kept for diagnostics."""

    cpu: float
    memory: float
    cpu_limit: int
    memory_limit: int


@dataclass
class PodMetrics:
    """Utilization of one pod for one tick.

    cpu and memory are percentages of the pod limits clamped to [0, 100].
    """

    cpu: float = 0.0
    memory: float = 0.0
    pod_name: str = UNKNOWN_POD
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    active_users: int = 0
    raw_metrics: RawMetrics | None = None
    invalid_limits: bool = False

    def to_dict(self) -> dict:
        result = asdict(self)
        result["timestamp"] = self.timestamp.isoformat()
        return result


@dataclass
class Pod:
    """A replica with resource limits and, optionally, last-tick metrics."""

    name: str
    limits: ResourceLimits = field(default_factory=ResourceLimits)
    metrics: PodMetrics | None = None

    @classmethod
    def from_dict(cls, pod_dict: dict) -> "Pod":
        """Build a pod from {"name", "resources": {"limits": {...}}, "metrics": {...}}."""
        limits = pod_dict.get("resources", {}).get("limits", {})
        metrics = pod_dict.get("metrics")
        return cls(
            name=pod_dict["name"],
            limits=ResourceLimits(
                cpu=limits.get("cpu", ""),
                memory=limits.get("memory", ""),
            ),
            metrics=PodMetrics(
                cpu=metrics.get("cpu", 0.0),
                memory=metrics.get("memory", 0.0),
                pod_name=pod_dict["name"],
            ) if metrics else None,
        )


@dataclass
class AverageUsage:
    """Fleet-wide utilization."""

    cpu: float = 0.0
    memory: float = 0.0
    total_users: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def load_multiplier(user_type: UserType | str, config: RuntimeConfig) -> UserPattern:
    """Look up the multipliers of a user type, defaulting to medium."""
    patterns = config.user_patterns or default_user_patterns()
    key = user_type.value if isinstance(user_type, UserType) else user_type

    if key in patterns:
        return patterns[key]
    if UserType.MEDIUM.value in patterns:
        return patterns[UserType.MEDIUM.value]
    return default_user_patterns()[UserType.MEDIUM.value]


def estimate_resources(
    users: list[UserSession] | None,
    config: RuntimeConfig | None,
) -> tuple[float, float]:
    """Estimate the CPU (millicores) and memory (MiB) consumed by users.

    Args:
        users: Users assigned to one pod
        config: Runtime configuration

    Returns:
        Tuple of (cpu_millicores, memory_mib)
    """
    if not users or config is None or config.user_resources is None:
        return 0.0, 0.0

    cpu_per_user = config.user_resources.cpu / 100 * 1000
    memory_per_user = config.user_resources.memory / 100 * 1024

    cpu = 0.0
    memory = 0.0
    for user in users:
        multiplier = load_multiplier(user.type, config)
        cpu += cpu_per_user * multiplier.cpu
        memory += memory_per_user * multiplier.memory

    return cpu, memory


def pod_limits(pod: Pod) -> tuple[int, int]:
    """Parse a pod's limits to (millicores, MiB).

    Raises:
        InvalidPodLimits: If either limit is missing, malformed or not positive
    """
    limits = pod.limits
    if limits is None:
        raise InvalidPodLimits(pod.name, None, None)

    try:
        cpu_limit = cpu_millicores(parse_quantity(limits.cpu))
        memory_limit = memory_mib(parse_quantity(limits.memory))
    except InvalidQuantityError as e:
        raise InvalidPodLimits(pod.name, limits.cpu, limits.memory) from e

    if cpu_limit <= 0 or memory_limit <= 0:
        raise InvalidPodLimits(pod.name, limits.cpu, limits.memory)

    return cpu_limit, memory_limit


def _clamp_percentage(value: float) -> float:
    return min(100.0, max(0.0, value))


def simulate_pod_usage(
    pod: Pod | None,
    users: list[UserSession] | None,
    config: RuntimeConfig | None,
    timestamp: datetime | None = None,
) -> PodMetrics:
    """Estimate the utilization of one pod from the users assigned to it.

    Missing inputs yield a zeroed record. Invalid limits yield a zeroed
    record flagged with invalid_limits and carrying the raw usage.

    Args:
        pod: Pod to evaluate
        users: Full population snapshot (filtered by pod_name here)
        config: Runtime configuration
        timestamp: Record timestamp (defaults to now, UTC)

    Returns:
        PodMetrics for the pod
    """
    timestamp = timestamp or datetime.now(timezone.utc)

    if pod is None or users is None or config is None or config.user_resources is None:
        return PodMetrics(
            pod_name=pod.name if pod is not None else UNKNOWN_POD,
            timestamp=timestamp,
        )

    pod_users = [u for u in users if u.pod_name == pod.name]
    cpu_usage, memory_usage = estimate_resources(pod_users, config)

    try:
        cpu_limit, memory_limit = pod_limits(pod)
    except InvalidPodLimits as e:
        logger.warning("%s; reporting zero utilization", e)
        return PodMetrics(
            pod_name=pod.name,
            timestamp=timestamp,
            active_users=len(pod_users),
            raw_metrics=RawMetrics(
                cpu=cpu_usage,
                memory=memory_usage,
                cpu_limit=parse_cpu(e.cpu_limit) if e.cpu_limit else 0,
                memory_limit=parse_memory(e.memory_limit) if e.memory_limit else 0,
            ),
            invalid_limits=True,
        )

    cpu_percentage = cpu_usage / cpu_limit * 100
    memory_percentage = memory_usage / memory_limit * 100

    logger.debug(
        "Pod %s metrics: users=%d, cpu=%.1fm/%dm (%.1f%%), memory=%.1fMi/%dMi (%.1f%%)",
        pod.name, len(pod_users), cpu_usage, cpu_limit, cpu_percentage,
        memory_usage, memory_limit, memory_percentage,
    )

    return PodMetrics(
        cpu=_clamp_percentage(cpu_percentage),
        memory=_clamp_percentage(memory_percentage),
        pod_name=pod.name,
        timestamp=timestamp,
        active_users=len(pod_users),
        raw_metrics=RawMetrics(
            cpu=cpu_usage,
            memory=memory_usage,
            cpu_limit=cpu_limit,
            memory_limit=memory_limit,
        ),
    )


def calculate_average_usage(pod_metrics: list[PodMetrics]) -> AverageUsage:
    """Average utilization across pods and total their active users.

    Args:
        pod_metrics: Per-pod records

    Returns:
        AverageUsage (all zeros for an empty list)
    """
    if not pod_metrics:
        return AverageUsage()

    count = len(pod_metrics)
    return AverageUsage(
        cpu=sum(m.cpu for m in pod_metrics) / count,
        memory=sum(m.memory for m in pod_metrics) / count,
        total_users=sum(m.active_users for m in pod_metrics),
    )
