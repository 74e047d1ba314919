"""Shared chart components."""

import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from src.simulation.config import RuntimeConfig


def create_load_preview_chart(
    series: pd.Series,
    max_users: int | None = None,
    title: str = "Target Users",
) -> go.Figure:
    """Create a chart of a load pattern's target user counts."""
    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=series.index,
        y=series.values,
        mode='lines',
        name='Target Users',
        line=dict(color='#1f77b4', width=2),
    ))

    if max_users is not None:
        fig.add_hline(
            y=max_users, line_dash="dash", line_color="gray",
            annotation_text="Max Users",
        )

    fig.update_layout(
        title=title,
        xaxis_title="Elapsed Time (s)",
        yaxis_title="Users",
        height=350,
    )

    return fig


def create_replica_chart(timeline: pd.DataFrame) -> go.Figure:
    """Create replicas vs desired replicas chart, with users on a second axis."""
    fig = make_subplots(specs=[[{"secondary_y": True}]])

    fig.add_trace(
        go.Scatter(
            x=timeline.index, y=timeline['replicas'],
            mode='lines', name='Replicas', line=dict(color='#ff7f0e', shape='hv'),
        ),
        secondary_y=False,
    )
    fig.add_trace(
        go.Scatter(
            x=timeline.index, y=timeline['desired_replicas'],
            mode='lines', name='Desired Replicas', line=dict(color='#d62728', dash='dot', shape='hv'),
        ),
        secondary_y=False,
    )
    fig.add_trace(
        go.Scatter(
            x=timeline.index, y=timeline['users'],
            mode='lines', name='Users', line=dict(color='#1f77b4', width=1),
        ),
        secondary_y=True,
    )

    fig.update_layout(title="Replicas and Users", height=400)
    fig.update_xaxes(title_text="Simulated Time (s)")
    fig.update_yaxes(title_text="Replicas", secondary_y=False)
    fig.update_yaxes(title_text="Users", secondary_y=True)

    return fig


def create_utilization_chart(timeline: pd.DataFrame, config: RuntimeConfig) -> go.Figure:
    """Create CPU / memory utilization chart with threshold lines."""
    fig = make_subplots(
        rows=2, cols=1,
        shared_xaxes=True,
        vertical_spacing=0.1,
        subplot_titles=("Average CPU (%)", "Average Memory (%)"),
    )

    fig.add_trace(
        go.Scatter(x=timeline.index, y=timeline['cpu'], mode='lines', name='CPU', line=dict(color='#2ca02c')),
        row=1, col=1,
    )
    fig.add_trace(
        go.Scatter(x=timeline.index, y=timeline['memory'], mode='lines', name='Memory', line=dict(color='#9467bd')),
        row=2, col=1,
    )

    fig.add_hline(
        y=config.cpu_threshold, line_dash="dash", line_color="red",
        annotation_text="CPU Threshold", row=1, col=1,
    )
    fig.add_hline(
        y=config.memory_threshold, line_dash="dash", line_color="red",
        annotation_text="Memory Threshold", row=2, col=1,
    )

    fig.update_yaxes(range=[0, 105], row=1, col=1)
    fig.update_yaxes(range=[0, 105], row=2, col=1)
    fig.update_layout(height=500, showlegend=False)

    return fig
