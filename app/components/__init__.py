"""Dashboard UI components."""

from app.components.charts import (
    create_load_preview_chart,
    create_replica_chart,
    create_utilization_chart,
)

__all__ = [
    "create_load_preview_chart",
    "create_replica_chart",
    "create_utilization_chart",
]
