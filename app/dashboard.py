"""Streamlit dashboard for tuning the replica autoscaler.

Run:
    streamlit run app/dashboard.py
"""

import copy
import logging
import sys
from pathlib import Path

import numpy as np
import streamlit as st

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.components.charts import (
    create_load_preview_chart,
    create_replica_chart,
    create_utilization_chart,
)
from src.scaling.simulator import ClusterSimulator, SimulationMetrics
from src.simulation.config import LoadProfile, ResourceLimits, RuntimeConfig, get_preset
from src.simulation.load import LoadPattern, generate_load_series

logger = logging.getLogger(__name__)

# Constants
DEFAULT_TICKS = 600
DEFAULT_INTERVAL = 5.0
MAX_TICKS = 5000


def build_config(
    preset: str,
    profile: LoadProfile,
    cpu_threshold: float,
    memory_threshold: float,
    min_replicas: int,
    max_replicas: int,
    cpu_limit: str,
    memory_limit: str,
) -> RuntimeConfig:
    """Combine a preset with the values chosen in the sidebar."""
    base = get_preset(preset)
    return RuntimeConfig(
        user_patterns=copy.deepcopy(base.user_patterns),
        user_resources=copy.deepcopy(base.user_resources),
        default_load_profile=profile,
        cpu_threshold=cpu_threshold,
        memory_threshold=memory_threshold,
        min_replicas=min_replicas,
        max_replicas=max_replicas,
        pod_resources=ResourceLimits(cpu=cpu_limit, memory=memory_limit),
    )


def run_simulation(
    config: RuntimeConfig,
    ticks: int = DEFAULT_TICKS,
    interval: float = DEFAULT_INTERVAL,
    seed: int = 42,
) -> SimulationMetrics:
    """Run a seeded closed-loop simulation."""
    simulator = ClusterSimulator(seed=seed)
    return simulator.run(config, ticks=ticks, interval=interval)


def _sidebar_profile() -> LoadProfile:
    st.sidebar.subheader("Load Pattern")
    pattern = st.sidebar.selectbox("Pattern", [p.value for p in LoadPattern], index=1)
    base_load = st.sidebar.number_input("Base Load (users)", 0, 10_000, 50)
    amplitude = st.sidebar.number_input("Amplitude (users)", 0, 10_000, 30)
    period = st.sidebar.number_input("Period (s)", 1, 86_400, 300)
    max_users = st.sidebar.number_input("Max Users", 0, 100_000, 200)

    with st.sidebar.expander("Advanced Pattern Settings"):
        spike_probability = st.slider("Spike Probability", 0.0, 1.0, 0.1)
        spike_multiplier = st.slider("Spike Multiplier", 1.0, 5.0, 2.0)
        user_growth_rate = st.number_input("Growth Rate (users/min)", 0.0, 1000.0, 1.0)

    return LoadProfile(
        pattern=pattern,
        base_load=base_load,
        amplitude=amplitude,
        period=period,
        spike_probability=spike_probability,
        spike_multiplier=spike_multiplier,
        max_users=max_users,
        user_growth_rate=user_growth_rate,
    )


def _render_summary(metrics: SimulationMetrics) -> None:
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Avg Replicas", f"{metrics.avg_replicas:.2f}", f"max {metrics.max_replicas}")
    col2.metric("Avg CPU", f"{metrics.avg_cpu:.1f}%", f"max {metrics.max_cpu:.1f}%")
    col3.metric("Avg Memory", f"{metrics.avg_memory:.1f}%", f"max {metrics.max_memory:.1f}%")
    col4.metric("Scaling Events", metrics.scaling_events, f"{metrics.saturated_ticks} saturated ticks")


def main():
    """Render the dashboard."""
    st.set_page_config(
        page_title="Replica Autoscale Simulator",
        layout="wide",
        initial_sidebar_state="expanded",
    )
    st.title("Replica Autoscale Simulator")

    st.sidebar.header("Configuration")
    preset = st.sidebar.selectbox("Config Preset", ["balanced", "conservative", "aggressive"])
    base = get_preset(preset)

    profile = _sidebar_profile()

    st.sidebar.subheader("Scaling Rules")
    cpu_threshold = st.sidebar.slider("CPU Threshold (%)", 1.0, 100.0, float(base.cpu_threshold))
    memory_threshold = st.sidebar.slider("Memory Threshold (%)", 1.0, 100.0, float(base.memory_threshold))
    min_replicas = st.sidebar.number_input("Min Replicas", 1, 100, base.min_replicas)
    max_replicas = st.sidebar.number_input("Max Replicas", 1, 1000, base.max_replicas)
    cpu_limit = st.sidebar.text_input("Pod CPU Limit", base.pod_resources.cpu)
    memory_limit = st.sidebar.text_input("Pod Memory Limit", base.pod_resources.memory)

    st.sidebar.subheader("Run")
    ticks = st.sidebar.slider("Ticks", 10, MAX_TICKS, DEFAULT_TICKS)
    interval = st.sidebar.number_input("Tick Interval (s)", 0.1, 3600.0, DEFAULT_INTERVAL)
    seed = st.sidebar.number_input("Random Seed", 0, 10_000, 42)

    try:
        config = build_config(
            preset, profile, cpu_threshold, memory_threshold,
            int(min_replicas), int(max_replicas), cpu_limit, memory_limit,
        )
    except ValueError as e:
        st.error(f"Invalid configuration: {e}")
        return

    preview = generate_load_series(
        profile, duration=ticks * interval, step=interval, rng=np.random.default_rng(int(seed)),
    )
    st.plotly_chart(
        create_load_preview_chart(preview, max_users=profile.max_users, title=f"Load Pattern: {profile.pattern}"),
        use_container_width=True,
    )

    if st.sidebar.button("Run Simulation", type="primary"):
        with st.spinner("Running simulation..."):
            metrics = run_simulation(config, ticks=ticks, interval=interval, seed=int(seed))
        logger.info("Dashboard simulation finished: %s", metrics.summary())

        _render_summary(metrics)
        timeline = metrics.to_dataframe()
        st.plotly_chart(create_replica_chart(timeline), use_container_width=True)
        st.plotly_chart(create_utilization_chart(timeline, config), use_container_width=True)

        with st.expander("Timeline Data"):
            st.dataframe(timeline)
            st.download_button(
                "Download CSV",
                timeline.to_csv().encode("utf-8"),
                file_name="simulation_timeline.csv",
                mime="text/csv",
            )


if __name__ == "__main__":
    main()
