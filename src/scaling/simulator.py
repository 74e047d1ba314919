"""Closed-loop simulation of a replica fleet."""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone

import numpy as np
import pandas as pd

from src.scaling.scaler import ScalingAction, ScalingDecision, recommend
from src.simulation.assignment import distribute_users
from src.simulation.config import ResourceLimits, RuntimeConfig
from src.simulation.population import (
    SimulationContext,
    UserType,
    reset_simulation,
    simulate_user_activity,
)
from src.simulation.resources import (
    AverageUsage,
    Pod,
    PodMetrics,
    calculate_average_usage,
    simulate_pod_usage,
)

logger = logging.getLogger(__name__)

SATURATION_PERCENT = 100.0


@dataclass
class TickResult:
    """Outcome of one simulation tick."""

    time: float
    active_users: int
    users_by_type: dict[str, int]
    unassigned_users: int
    pod_metrics: list[PodMetrics]
    average: AverageUsage
    decision: ScalingDecision

    @property
    def replicas(self) -> int:
        return len(self.pod_metrics)

    def to_dict(self) -> dict:
        return {
            "time": self.time,
            "active_users": self.active_users,
            "users_by_type": dict(self.users_by_type),
            "unassigned_users": self.unassigned_users,
            "pod_metrics": [m.to_dict() for m in self.pod_metrics],
            "average": self.average.to_dict(),
            "decision": self.decision.to_dict(),
        }


@dataclass
class SimulationMetrics:
    """Metrics from a simulation run."""

    ticks: int

    # Replica metrics
    avg_replicas: float
    max_replicas: int
    min_replicas: int

    # Utilization metrics
    avg_cpu: float
    max_cpu: float
    avg_memory: float
    max_memory: float
    saturated_ticks: int  # Ticks with cpu or memory at 100%

    # Population metrics
    avg_users: float
    peak_users: int

    # Scaling metrics
    scaling_events: int
    scale_out_events: int
    scale_in_events: int

    # Time series
    times: list = field(default_factory=list)
    users_over_time: list = field(default_factory=list)
    replicas_over_time: list = field(default_factory=list)
    desired_over_time: list = field(default_factory=list)
    cpu_over_time: list = field(default_factory=list)
    memory_over_time: list = field(default_factory=list)

    def __str__(self) -> str:
        return (
            f"Simulation Results ({self.ticks} ticks):\n"
            f"  Avg Replicas: {self.avg_replicas:.2f} (min {self.min_replicas}, max {self.max_replicas})\n"
            f"  Avg CPU: {self.avg_cpu:.1f}% (max {self.max_cpu:.1f}%)\n"
            f"  Avg Memory: {self.avg_memory:.1f}% (max {self.max_memory:.1f}%)\n"
            f"  Peak Users: {self.peak_users}\n"
            f"  Saturated Ticks: {self.saturated_ticks}\n"
            f"  Scaling Events: {self.scaling_events} (out: {self.scale_out_events}, in: {self.scale_in_events})"
        )

    def summary(self) -> dict:
        """Summary figures without the time series."""
        return {
            "ticks": self.ticks,
            "avg_replicas": self.avg_replicas,
            "max_replicas": self.max_replicas,
            "min_replicas": self.min_replicas,
            "avg_cpu": self.avg_cpu,
            "max_cpu": self.max_cpu,
            "avg_memory": self.avg_memory,
            "max_memory": self.max_memory,
            "saturated_ticks": self.saturated_ticks,
            "avg_users": self.avg_users,
            "peak_users": self.peak_users,
            "scaling_events": self.scaling_events,
            "scale_out_events": self.scale_out_events,
            "scale_in_events": self.scale_in_events,
        }

    def to_dataframe(self) -> pd.DataFrame:
        """Time series as a DataFrame indexed by simulated time."""
        return pd.DataFrame(
            {
                "users": self.users_over_time,
                "replicas": self.replicas_over_time,
                "desired_replicas": self.desired_over_time,
                "cpu": self.cpu_over_time,
                "memory": self.memory_over_time,
            },
            index=pd.Index(self.times, name="time"),
        )


class ClusterSimulator:
    """Drive the population, estimation and scaling steps tick by tick.

    The simulator owns a SimulationContext and, unless pods are passed to
    step(), its own pod set. Each tick's pod metrics are stored on the pods
    so the next assignment favours the least loaded ones.
    """

    def __init__(self, context: SimulationContext | None = None, seed: int | None = None):
        """Initialize simulator.

        Args:
            context: Simulation context to drive (created if None)
            seed: Seed for a new context's random generator
        """
        if context is None:
            context = SimulationContext.seeded(seed) if seed is not None else SimulationContext()
        self.context = context
        self.pods: list[Pod] = []
        self._next_pod = 1

    def reset(self):
        """Clear the population, the linear time origin and the pod set."""
        reset_simulation(self.context)
        self.pods = []
        self._next_pod = 1

    def ensure_pods(self, count: int, limits: ResourceLimits):
        """Grow or shrink the internal pod set to count pods.

        New pods get fresh names; surplus pods are removed from the end.
        """
        while len(self.pods) < count:
            self.pods.append(
                Pod(
                    name=f"pod-{self._next_pod}",
                    limits=ResourceLimits(cpu=limits.cpu, memory=limits.memory),
                )
            )
            self._next_pod += 1
        del self.pods[count:]

    def step(
        self,
        config: RuntimeConfig,
        pods: list[Pod] | None = None,
        now: float | None = None,
    ) -> TickResult:
        """Run one tick.

        Args:
            config: Runtime configuration for this tick
            pods: Pod set to use (defaults to the simulator's own pods)
            now: Clock value in seconds (defaults to the context clock)

        Returns:
            TickResult with per-pod metrics, average and scaling decision
        """
        if pods is None:
            if not self.pods:
                self.ensure_pods(config.min_replicas, config.pod_resources)
            pods = self.pods

        now = self.context.clock() if now is None else now
        timestamp = datetime.fromtimestamp(now, timezone.utc)

        users = simulate_user_activity(self.context, config, now=now)
        distribute_users(users, pods)

        pod_metrics = [simulate_pod_usage(pod, users, config, timestamp) for pod in pods]
        for pod, metrics in zip(pods, pod_metrics):
            pod.metrics = metrics

        average = calculate_average_usage(pod_metrics)
        decision = recommend(
            len(pods),
            average.cpu,
            average.memory,
            average.total_users,
            config,
            timestamp=timestamp,
        )

        type_counts = Counter(user.type.value for user in users)
        return TickResult(
            time=now,
            active_users=len(users),
            users_by_type={t.value: type_counts.get(t.value, 0) for t in UserType},
            unassigned_users=sum(1 for user in users if user.pod_name is None),
            pod_metrics=pod_metrics,
            average=average,
            decision=decision,
        )

    def apply(self, decision: ScalingDecision, config: RuntimeConfig):
        """Resize the internal pod set to the decision's target."""
        if decision.action != ScalingAction.HOLD:
            logger.info("Applying scaling decision: %s", decision)
        self.ensure_pods(decision.target_replicas, config.pod_resources)

    def run(
        self,
        config: RuntimeConfig,
        ticks: int,
        interval: float = 1.0,
        start: float = 0.0,
        initial_replicas: int | None = None,
    ) -> SimulationMetrics:
        """Run a closed-loop simulation on a simulated clock.

        Every decision is applied before the next tick.

        Args:
            config: Runtime configuration used for every tick
            ticks: Number of ticks
            interval: Simulated seconds between ticks
            start: Clock value of the first tick
            initial_replicas: Starting replica count (defaults to min_replicas)

        Returns:
            SimulationMetrics with summary figures and time series
        """
        if ticks < 1:
            raise ValueError("ticks must be at least 1")
        if interval <= 0:
            raise ValueError("interval must be positive")

        self.reset()
        replicas = initial_replicas or config.min_replicas
        self.ensure_pods(max(config.min_replicas, min(replicas, config.max_replicas)), config.pod_resources)

        times = []
        users = []
        replicas_over_time = []
        desired = []
        cpu = []
        memory = []
        decisions = []

        for i in range(ticks):
            result = self.step(config, now=start + i * interval)

            times.append(result.time)
            users.append(result.active_users)
            replicas_over_time.append(result.replicas)
            desired.append(result.decision.target_replicas)
            cpu.append(result.average.cpu)
            memory.append(result.average.memory)
            decisions.append(result.decision)

            self.apply(result.decision, config)

        replicas_arr = np.array(replicas_over_time)
        cpu_arr = np.array(cpu)
        memory_arr = np.array(memory)
        users_arr = np.array(users)

        scale_out_events = sum(1 for d in decisions if d.action == ScalingAction.SCALE_OUT)
        scale_in_events = sum(1 for d in decisions if d.action == ScalingAction.SCALE_IN)
        saturated = np.sum((cpu_arr >= SATURATION_PERCENT) | (memory_arr >= SATURATION_PERCENT))

        metrics = SimulationMetrics(
            ticks=ticks,
            avg_replicas=float(np.mean(replicas_arr)),
            max_replicas=int(np.max(replicas_arr)),
            min_replicas=int(np.min(replicas_arr)),
            avg_cpu=float(np.mean(cpu_arr)),
            max_cpu=float(np.max(cpu_arr)),
            avg_memory=float(np.mean(memory_arr)),
            max_memory=float(np.max(memory_arr)),
            saturated_ticks=int(saturated),
            avg_users=float(np.mean(users_arr)),
            peak_users=int(np.max(users_arr)),
            scaling_events=scale_out_events + scale_in_events,
            scale_out_events=scale_out_events,
            scale_in_events=scale_in_events,
            times=times,
            users_over_time=users,
            replicas_over_time=replicas_over_time,
            desired_over_time=desired,
            cpu_over_time=cpu,
            memory_over_time=memory,
        )

        logger.info(
            "Simulation finished: ticks=%d, avg_replicas=%.2f, scaling_events=%d",
            ticks, metrics.avg_replicas, metrics.scaling_events,
        )
        return metrics
