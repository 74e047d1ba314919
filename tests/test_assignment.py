"""Unit tests for user-to-pod assignment."""

import pytest

from src.simulation.assignment import distribute_users


class TestDistributeUsers:
    """Tests for distribute_users."""

    def test_no_pods_clears_assignments(self, make_users):
        """Test an empty pod set leaves every user unassigned."""
        users = make_users(5, pod_name="pod-9")

        result = distribute_users(users, [])

        assert result is users
        assert all(u.pod_name is None for u in users)

    def test_block_assignment(self, make_users, make_pods):
        """Test contiguous blocks of len(users) // len(pods) + 1."""
        users = make_users(10)
        pods = make_pods(3)

        distribute_users(users, pods)

        assert [u.pod_name for u in users] == (
            ["pod-1"] * 4 + ["pod-2"] * 4 + ["pod-3"] * 2
        )

    def test_least_loaded_pods_first(self, make_users, make_pods):
        """Test pods are filled in ascending order of observed CPU."""
        users = make_users(6)
        pods = make_pods(3, observed_cpu=[50.0, 10.0, 30.0])

        distribute_users(users, pods)

        assert [u.pod_name for u in users] == (
            ["pod-2"] * 3 + ["pod-3"] * 3
        )

    def test_ties_keep_input_order(self, make_users, make_pods):
        """Test equal observed CPU keeps the input order."""
        users = make_users(4)
        pods = make_pods(2, observed_cpu=[20.0, 20.0])

        distribute_users(users, pods)

        assert [u.pod_name for u in users] == ["pod-1"] * 3 + ["pod-2"]

    def test_missing_metrics_count_as_zero(self, make_users, make_pods):
        """Test pods without metrics sort before loaded pods."""
        users = make_users(2)
        pods = make_pods(2, observed_cpu=[5.0, 0.0])
        pods[1].metrics = None

        distribute_users(users, pods)

        assert users[0].pod_name == "pod-2"

    def test_existing_assignments_are_replaced(self, make_users, make_pods):
        """Test stale pod names are overwritten."""
        users = make_users(3, pod_name="deleted-pod")
        pods = make_pods(1)

        distribute_users(users, pods)

        assert all(u.pod_name == "pod-1" for u in users)

    def test_empty_users(self, make_pods):
        """Test no users is a no-op."""
        assert distribute_users([], make_pods(3)) == []

    def test_input_pod_order_not_modified(self, make_users, make_pods):
        """Test the caller's pod list is not reordered."""
        pods = make_pods(3, observed_cpu=[90.0, 10.0, 50.0])
        distribute_users(make_users(3), pods)

        assert [p.name for p in pods] == ["pod-1", "pod-2", "pod-3"]

    @pytest.mark.parametrize("n_users,n_pods", [(1, 1), (7, 3), (30, 3), (5, 8), (100, 7)])
    def test_completeness(self, make_users, make_pods, n_users, n_pods):
        """Test every user is assigned to an existing pod."""
        users = make_users(n_users)
        pods = make_pods(n_pods)
        names = {p.name for p in pods}
        capacity = n_users // n_pods + 1

        distribute_users(users, pods)

        for index, user in enumerate(users):
            if index < n_pods * capacity:
                assert user.pod_name in names
