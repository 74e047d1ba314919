"""Unit tests for the replica scaling decision."""

import pytest

from src.scaling.scaler import ScalingAction, ScalingDecision, recommend, scale_replicas
from src.simulation.config import RuntimeConfig


@pytest.fixture
def config():
    """Thresholds 70% CPU / 80% memory, 1-10 replicas."""
    return RuntimeConfig(cpu_threshold=70, memory_threshold=80, min_replicas=1, max_replicas=10)


class TestScaleReplicas:
    """Tests for scale_replicas."""

    def test_exact_threshold_holds(self, config):
        """Test usage equal to the threshold keeps the replica count."""
        assert scale_replicas(4, 70, 0, 0, config) == 4

    def test_cpu_scale_out(self, config):
        """Test CPU above threshold: ceil(2 * 100 / 70) = 3."""
        assert scale_replicas(2, 100, 0, 0, config) == 3

    def test_memory_scale_out(self, config):
        """Test memory above threshold: ceil(2 * 100 / 80) = 3."""
        assert scale_replicas(2, 10, 100, 0, config) == 3

    def test_larger_request_wins(self, config):
        """Test the larger of the CPU and memory requests is used."""
        # cpu: ceil(4 * 35 / 70) = 2, memory: ceil(4 * 60 / 80) = 3
        assert scale_replicas(4, 35, 60, 0, config) == 3

    def test_scale_in(self, config):
        """Test low usage reduces the replica count."""
        assert scale_replicas(6, 20, 20, 0, config) == 2

    def test_clamped_to_max(self, config):
        """Test the result never exceeds max_replicas."""
        assert scale_replicas(10, 100, 100, 0, config) == 10

    def test_clamped_to_min(self):
        """Test the result never drops below min_replicas."""
        config = RuntimeConfig(min_replicas=3, max_replicas=10)
        assert scale_replicas(5, 0, 0, 0, config) == 3

    def test_zero_current_replicas(self, config):
        """Test an empty fleet is brought back to min_replicas."""
        assert scale_replicas(0, 100, 100, 0, config) == 1

    def test_total_users_is_ignored(self, config):
        """Test total_users does not change the result."""
        assert scale_replicas(3, 50, 50, 0, config) == scale_replicas(3, 50, 50, 1_000_000, config)

    def test_monotonic_in_cpu(self, config):
        """Test output is non-decreasing in average CPU."""
        results = [scale_replicas(4, cpu, 30, 0, config) for cpu in range(0, 101)]
        assert all(b >= a for a, b in zip(results, results[1:]))

    def test_monotonic_in_memory(self, config):
        """Test output is non-decreasing in average memory."""
        results = [scale_replicas(4, 30, memory, 0, config) for memory in range(0, 101)]
        assert all(b >= a for a, b in zip(results, results[1:]))

    @pytest.mark.parametrize("current", [0, 1, 5, 10, 50])
    @pytest.mark.parametrize("cpu,memory", [(0, 0), (35, 90), (100, 100), (70, 80)])
    def test_always_within_bounds(self, config, current, cpu, memory):
        """Test the result stays in [min_replicas, max_replicas]."""
        assert config.min_replicas <= scale_replicas(current, cpu, memory, 0, config) <= config.max_replicas


class TestRecommend:
    """Tests for recommend."""

    def test_scale_out(self, config):
        """Test SCALE_OUT with the dominant resource in the reason."""
        decision = recommend(2, 100, 10, 40, config)

        assert decision.action == ScalingAction.SCALE_OUT
        assert decision.current_replicas == 2
        assert decision.target_replicas == 3
        assert decision.reason == "high_cpu_utilization"

    def test_scale_in(self, config):
        """Test SCALE_IN when both resources are low."""
        decision = recommend(4, 10, 20, 40, config)

        assert decision.action == ScalingAction.SCALE_IN
        assert decision.target_replicas == 1
        assert decision.reason == "low_memory_utilization"

    def test_hold(self, config):
        """Test HOLD at the threshold."""
        decision = recommend(4, 70, 0, 40, config)

        assert decision.action == ScalingAction.HOLD
        assert decision.reason == "within_thresholds"

    def test_hold_at_max(self, config):
        """Test HOLD when already at max_replicas under high load."""
        decision = recommend(10, 100, 100, 40, config)

        assert decision.action == ScalingAction.HOLD
        assert decision.reason == "max_replicas_reached"

    def test_matches_scale_replicas(self, config):
        """Test the target equals scale_replicas."""
        for cpu in (0, 25, 70, 99):
            decision = recommend(5, cpu, 40, 0, config)
            assert decision.target_replicas == scale_replicas(5, cpu, 40, 0, config)


class TestScalingDecision:
    """Tests for ScalingDecision dataclass."""

    def test_str_representation(self):
        """Test string representation."""
        decision = ScalingDecision(
            action=ScalingAction.SCALE_OUT,
            current_replicas=2,
            target_replicas=4,
            avg_cpu=95.0,
            avg_memory=40.0,
            reason="high_cpu_utilization",
        )

        decision_str = str(decision)
        assert "SCALE_OUT" in decision_str
        assert "2 -> 4" in decision_str

    def test_to_dict(self):
        """Test dictionary conversion."""
        decision = ScalingDecision(
            action=ScalingAction.HOLD,
            current_replicas=3,
            target_replicas=3,
            avg_cpu=50.0,
            avg_memory=50.0,
            reason="within_thresholds",
        )

        data = decision.to_dict()
        assert data["action"] == "hold"
        assert data["target_replicas"] == 3
        assert data["timestamp"] is None

    def test_action_values(self):
        """Test ScalingAction values."""
        assert ScalingAction.SCALE_OUT.value == "scale_out"
        assert ScalingAction.SCALE_IN.value == "scale_in"
        assert ScalingAction.HOLD.value == "hold"
