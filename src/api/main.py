"""FastAPI application exposing the replica simulation."""

import logging
import os
from datetime import datetime
from enum import Enum
from threading import Lock

import numpy as np
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field, field_validator

from src.scaling.simulator import ClusterSimulator
from src.simulation.config import PRESETS, LoadProfile, RuntimeConfig, get_preset
from src.simulation.load import LoadPattern, generate_load_series
from src.simulation.resources import Pod

logger = logging.getLogger(__name__)

# Constants
MAX_RUN_TICKS = 100_000
MAX_PREVIEW_POINTS = 10_000
MAX_PODS = 1_000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000


class ConfigPreset(str, Enum):
    """Available configuration presets."""

    CONSERVATIVE = "conservative"
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"


app = FastAPI(
    title="Replica Autoscale Simulator API",
    description="Synthetic traffic, utilization estimates and replica recommendations",
    version="1.0.0",
)


class UserPatternModel(BaseModel):
    """Resource multipliers of one user type."""

    cpu: float = Field(..., ge=0)
    memory: float = Field(..., ge=0)


class UserResourcesModel(BaseModel):
    """Baseline usage of one user, in percent of a core / a GiB."""

    cpu: float = Field(default=10.0, ge=0)
    memory: float = Field(default=10.0, ge=0)


class ResourceLimitsModel(BaseModel):
    """Pod limits as quantity strings."""

    cpu: str = "1000m"
    memory: str = "1Gi"


class LoadProfileModel(BaseModel):
    """Load shape parameters."""

    pattern: str = LoadPattern.SINE.value
    base_load: float = Field(default=50, ge=0)
    amplitude: float = 30
    period: float = Field(default=300, gt=0)
    spike_probability: float = Field(default=0.1, ge=0, le=1)
    spike_multiplier: float = Field(default=2.0, ge=0)
    max_users: int = Field(default=200, ge=0)
    user_growth_rate: float = 1.0
    initial_users: float | None = Field(default=None, ge=0)


class RuntimeConfigModel(BaseModel):
    """Runtime configuration supplied with each request."""

    user_patterns: dict[str, UserPatternModel] | None = None
    user_resources: UserResourcesModel | None = Field(default_factory=UserResourcesModel)
    default_load_profile: LoadProfileModel = Field(default_factory=LoadProfileModel)
    cpu_threshold: float = Field(default=70.0, gt=0, le=100)
    memory_threshold: float = Field(default=80.0, gt=0, le=100)
    min_replicas: int = Field(default=1, ge=1)
    max_replicas: int = Field(default=10, ge=1)
    pod_resources: ResourceLimitsModel = Field(default_factory=ResourceLimitsModel)


class PodResourcesModel(BaseModel):
    """Kubernetes-style resources block."""

    limits: ResourceLimitsModel = Field(default_factory=ResourceLimitsModel)


class PodUsageModel(BaseModel):
    """Previously observed utilization of a pod."""

    cpu: float = 0.0
    memory: float = 0.0


class PodModel(BaseModel):
    """Pod descriptor."""

    name: str = Field(..., min_length=1)
    resources: PodResourcesModel = Field(default_factory=PodResourcesModel)
    metrics: PodUsageModel | None = None


class StepRequest(BaseModel):
    """Request body for a single simulation tick."""

    config: RuntimeConfigModel | None = Field(
        default=None,
        description="Runtime configuration (the preset is used when omitted)",
    )
    config_preset: ConfigPreset = Field(default=ConfigPreset.BALANCED)
    pods: list[PodModel] | None = Field(
        default=None,
        description="Pod set to evaluate (the simulator's own pods when omitted)",
        max_length=MAX_PODS,
    )
    now: float | None = Field(default=None, description="Clock value in seconds")
    apply_decision: bool = Field(
        default=True,
        description="Resize the simulator's own pods to the recommendation",
    )

    @field_validator("pods")
    @classmethod
    def validate_unique_names(cls, v: list[PodModel] | None) -> list[PodModel] | None:
        """Pod names must be unique."""
        if v is not None and len({pod.name for pod in v}) != len(v):
            raise ValueError("Pod names must be unique")
        return v


class StepResponse(BaseModel):
    """Response body for a simulation tick."""

    time: float
    active_users: int
    users_by_type: dict[str, int]
    unassigned_users: int
    pod_metrics: list[dict]
    average: dict
    decision: dict
    desired_replicas: int


class RunRequest(BaseModel):
    """Request body for a closed-loop run."""

    config: RuntimeConfigModel | None = None
    config_preset: ConfigPreset = Field(default=ConfigPreset.BALANCED)
    ticks: int = Field(default=60, ge=1, le=MAX_RUN_TICKS)
    interval: float = Field(default=1.0, gt=0)
    start: float = Field(default=0.0, ge=0)
    initial_replicas: int | None = Field(default=None, ge=1)
    seed: int | None = None


class RunResponse(BaseModel):
    """Response body for a closed-loop run."""

    summary: dict
    timeline: list[dict]


class LoadPreviewRequest(BaseModel):
    """Request body for a load-shape preview."""

    profile: LoadProfileModel = Field(default_factory=LoadProfileModel)
    duration: float = Field(default=600, gt=0)
    step: float = Field(default=1.0, gt=0)
    start: float = Field(default=0.0, ge=0)
    seed: int | None = None


class LoadPreviewResponse(BaseModel):
    """Response body for a load-shape preview."""

    pattern: str
    times: list[float]
    target_users: list[int]


class ConnectionManager:
    """Track WebSocket clients and push tick results to them."""

    def __init__(self):
        self.connections: list[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.connections.append(websocket)
        logger.info("New client connected (%d total)", len(self.connections))

    def disconnect(self, websocket: WebSocket):
        if websocket in self.connections:
            self.connections.remove(websocket)
        logger.info("Client disconnected (%d total)", len(self.connections))

    async def broadcast(self, message: dict):
        """Send a message to every client, dropping the ones that fail."""
        for websocket in list(self.connections):
            try:
                await websocket.send_json(message)
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                logger.warning("Dropping WebSocket client: %s", e)
                self.disconnect(websocket)


# Thread-safe application state
_state_lock = Lock()
_simulator = ClusterSimulator()
_manager = ConnectionManager()

_simulation_state: dict = {
    "ticks": 0,
    "last_tick_time": None,
    "last_decision": None,
}


def _build_config(model: RuntimeConfigModel | None, preset: str) -> RuntimeConfig:
    """Build a RuntimeConfig from a request, falling back to a preset."""
    if model is None:
        return get_preset(preset)
    try:
        return RuntimeConfig.from_dict(model.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def _reset_state():
    _simulator.reset()
    _simulation_state["ticks"] = 0
    _simulation_state["last_tick_time"] = None
    _simulation_state["last_decision"] = None


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Replica Autoscale Simulator API",
        "version": "1.0.0",
        "endpoints": {
            "step": "POST /simulation/step",
            "run": "POST /simulation/run",
            "reset": "POST /simulation/reset",
            "status": "GET /simulation/status",
            "load_preview": "POST /load/preview",
            "config": "GET /config/{preset}",
            "metrics_stream": "WS /ws/metrics",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


@app.get("/config/{preset}")
async def get_config_endpoint(preset: ConfigPreset):
    """Get the runtime configuration of a preset."""
    return {
        "preset": preset.value,
        "config": PRESETS[preset.value].to_dict(),
    }


@app.post("/simulation/step", response_model=StepResponse)
async def simulation_step(request: StepRequest):
    """Advance the shared simulation by one tick.

    Reconciles the population, assigns users to pods, estimates per-pod
    utilization and recommends a replica count. The result is also pushed
    to connected WebSocket clients.
    """
    config = _build_config(request.config, request.config_preset.value)
    pods = [Pod.from_dict(p.model_dump()) for p in request.pods] if request.pods is not None else None

    with _state_lock:
        result = _simulator.step(config, pods=pods, now=request.now)
        if pods is None and request.apply_decision:
            _simulator.apply(result.decision, config)
        _simulation_state["ticks"] += 1
        _simulation_state["last_tick_time"] = result.time
        _simulation_state["last_decision"] = result.decision.to_dict()

    logger.info(
        "Simulation tick: users=%d, replicas=%d->%d",
        result.active_users, result.decision.current_replicas, result.decision.target_replicas,
    )

    payload = result.to_dict()
    payload["desired_replicas"] = result.decision.target_replicas
    await _manager.broadcast({"type": "metrics", "data": payload})

    return StepResponse(**payload)


@app.post("/simulation/run", response_model=RunResponse)
async def simulation_run(request: RunRequest):
    """Run an isolated closed-loop simulation on a simulated clock.

    The shared simulation state is not touched.
    """
    config = _build_config(request.config, request.config_preset.value)
    simulator = ClusterSimulator(seed=request.seed)

    metrics = simulator.run(
        config,
        ticks=request.ticks,
        interval=request.interval,
        start=request.start,
        initial_replicas=request.initial_replicas,
    )

    timeline = [
        {
            "time": t,
            "users": users,
            "replicas": replicas,
            "desired_replicas": desired,
            "cpu": cpu,
            "memory": memory,
        }
        for t, users, replicas, desired, cpu, memory in zip(
            metrics.times,
            metrics.users_over_time,
            metrics.replicas_over_time,
            metrics.desired_over_time,
            metrics.cpu_over_time,
            metrics.memory_over_time,
        )
    ]
    return RunResponse(summary=metrics.summary(), timeline=timeline)


@app.post("/simulation/reset")
async def simulation_reset():
    """Clear the population, the linear time origin and the pod set."""
    with _state_lock:
        _reset_state()

    logger.info("Simulation reset")
    return {"status": "reset"}


@app.get("/simulation/status")
async def simulation_status():
    """Get the shared simulation state."""
    with _state_lock:
        return {
            "ticks": _simulation_state["ticks"],
            "last_tick_time": _simulation_state["last_tick_time"],
            "last_decision": _simulation_state["last_decision"],
            "active_users": len(_simulator.context),
            "replicas": len(_simulator.pods),
            "pods": [pod.name for pod in _simulator.pods],
            "connected_clients": len(_manager.connections),
        }


@app.post("/load/preview", response_model=LoadPreviewResponse)
async def load_preview(request: LoadPreviewRequest):
    """Sample a load profile over a time range."""
    if request.duration / request.step > MAX_PREVIEW_POINTS:
        raise HTTPException(
            status_code=400,
            detail=f"Preview is limited to {MAX_PREVIEW_POINTS} points",
        )

    try:
        profile = LoadProfile.from_dict(request.profile.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    rng = np.random.default_rng(request.seed)
    series = generate_load_series(profile, request.duration, request.step, request.start, rng)

    return LoadPreviewResponse(
        pattern=profile.pattern,
        times=[float(t) for t in series.index],
        target_users=[int(v) for v in series.values],
    )


@app.websocket("/ws/metrics")
async def metrics_stream(websocket: WebSocket):
    """Push every tick result to the client."""
    await _manager.connect(websocket)
    await websocket.send_json({"type": "connected", "clients": len(_manager.connections)})
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        _manager.disconnect(websocket)


def run_server():
    """Run the FastAPI server with uvicorn."""
    import uvicorn

    uvicorn.run(
        app,
        host=os.environ.get("AUTOSCALE_SIM_HOST", DEFAULT_HOST),
        port=int(os.environ.get("AUTOSCALE_SIM_PORT", DEFAULT_PORT)),
        log_level="info",
        timeout_graceful_shutdown=5,
    )


if __name__ == "__main__":
    run_server()
