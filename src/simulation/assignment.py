"""Assignment of synthetic users to pods."""

from src.simulation.population import UserSession
from src.simulation.resources import Pod


def _observed_cpu(pod: Pod) -> float:
    return pod.metrics.cpu if pod.metrics is not None else 0.0


def distribute_users(users: list[UserSession], pods: list[Pod]) -> list[UserSession]:
    """Assign users to pods in contiguous blocks, least-loaded pods first.

    Pods are stable-sorted by last observed CPU, so ties keep input order.
    Each pod takes at most len(users) // len(pods) + 1 users. Existing
    assignments are always cleared first.

    Args:
        users: Population snapshot (mutated in place)
        pods: Current pod set

    Returns:
        The same users list
    """
    for user in users:
        user.pod_name = None

    if not pods:
        return users

    sorted_pods = sorted(pods, key=_observed_cpu)
    capacity_per_pod = len(users) // len(pods) + 1

    for index, user in enumerate(users):
        pod_index = index // capacity_per_pod
        if pod_index < len(sorted_pods):
            user.pod_name = sorted_pods[pod_index].name

    return users
