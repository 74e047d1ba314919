"""Pytest configuration and shared fixtures."""

import pytest

from src.simulation.config import LoadProfile, ResourceLimits, RuntimeConfig, UserResources
from src.simulation.population import SimulationContext, UserSession, UserType
from src.simulation.resources import Pod, PodMetrics


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    """Clock starting at zero."""
    return FakeClock()


@pytest.fixture
def context(clock):
    """Seeded simulation context driven by the fake clock."""
    return SimulationContext.seeded(42, clock=clock)


@pytest.fixture
def runtime_config():
    """Runtime config with a flat load of 30 users and 1000m/1Gi pods."""
    return RuntimeConfig(
        user_resources=UserResources(cpu=50, memory=50),
        default_load_profile=LoadProfile(
            pattern="constant",
            base_load=30,
            amplitude=0,
            period=60,
            max_users=100,
        ),
        cpu_threshold=70,
        memory_threshold=80,
        min_replicas=1,
        max_replicas=10,
        pod_resources=ResourceLimits(cpu="1000m", memory="1Gi"),
    )


@pytest.fixture
def make_pods():
    """Factory for pods with identical limits and optional observed CPU."""
    def _make(count: int, cpu: str = "1000m", memory: str = "1Gi", observed_cpu: list[float] | None = None):
        pods = []
        for i in range(count):
            metrics = None
            if observed_cpu is not None:
                metrics = PodMetrics(cpu=observed_cpu[i], pod_name=f"pod-{i + 1}")
            pods.append(Pod(name=f"pod-{i + 1}", limits=ResourceLimits(cpu=cpu, memory=memory), metrics=metrics))
        return pods

    return _make


@pytest.fixture
def make_users():
    """Factory for users of one type."""
    def _make(count: int, user_type: UserType = UserType.MEDIUM, pod_name: str | None = None):
        return [
            UserSession(id=f"user-{i + 1}", type=user_type, pod_name=pod_name)
            for i in range(count)
        ]

    return _make
