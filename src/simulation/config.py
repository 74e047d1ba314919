"""Runtime configuration for the replica simulation."""

from dataclasses import asdict, dataclass, field

from src.simulation.units import InvalidQuantityError, parse_quantity


@dataclass
class UserPattern:
    """Resource multipliers applied to one user of a given type."""

    cpu: float
    memory: float


@dataclass
class UserResources:
    """Baseline usage of a single user, as a percentage of one core / one GiB.

    Attributes:
        cpu: Percent of a core (50 means 500m)
        memory: Percent of a GiB (50 means 512Mi)
    """

    cpu: float = 10.0
    memory: float = 10.0


@dataclass
class ResourceLimits:
    """Pod resource limits as quantity strings ("500m", "2Gi")."""

    cpu: str = "1000m"
    memory: str = "1Gi"


def default_user_patterns() -> dict[str, UserPattern]:
    """Build the fallback multiplier table."""
    return {
        "light": UserPattern(cpu=0.1, memory=0.7),
        "medium": UserPattern(cpu=0.5, memory=1.0),
        "heavy": UserPattern(cpu=0.8, memory=1.5),
    }


@dataclass
class LoadProfile:
    """Parameters of the synthetic load shape.

    Attributes:
        pattern: Load pattern name (unknown names fall back to base_load)
        base_load: Baseline user count
        amplitude: Swing around the baseline
        period: Pattern period in seconds
        spike_probability: Chance of a spike for the random pattern
        spike_multiplier: Spike factor for the random pattern
        max_users: Hard cap on the target user count
        user_growth_rate: Users added per minute for the linear pattern
        initial_users: Starting users for the linear pattern (defaults to base_load)
    """

    pattern: str = "sine"
    base_load: float = 50
    amplitude: float = 30
    period: float = 300
    spike_probability: float = 0.1
    spike_multiplier: float = 2.0
    max_users: int = 200
    user_growth_rate: float = 1.0
    initial_users: float | None = None

    def __post_init__(self):
        if self.initial_users is None:
            self.initial_users = self.base_load
        self._validate()

    def _validate(self):
        if self.base_load < 0:
            raise ValueError("base_load must be non-negative")
        if self.initial_users < 0:
            raise ValueError("initial_users must be non-negative")
        if self.period <= 0:
            raise ValueError("period must be positive")
        if self.max_users < 0:
            raise ValueError("max_users must be non-negative")
        if not 0 <= self.spike_probability <= 1:
            raise ValueError("spike_probability must be between 0 and 1")
        if self.spike_multiplier < 0:
            raise ValueError("spike_multiplier must be non-negative")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, profile_dict: dict) -> "LoadProfile":
        return cls(**profile_dict)


@dataclass
class RuntimeConfig:
    """Per-tick configuration of the simulation and the scaling rules.

    Attributes:
        user_patterns: Multiplier table keyed by user type
        user_resources: Baseline per-user usage (None means no usage)
        default_load_profile: Load shape driving the population
        cpu_threshold: Target average CPU percentage
        memory_threshold: Target average memory percentage
        min_replicas: Lower bound of the desired replica count
        max_replicas: Upper bound of the desired replica count
        pod_resources: Limits given to pods created by the simulator
    """

    user_patterns: dict[str, UserPattern] = field(default_factory=default_user_patterns)
    user_resources: UserResources | None = field(default_factory=UserResources)
    default_load_profile: LoadProfile = field(default_factory=LoadProfile)

    cpu_threshold: float = 70.0
    memory_threshold: float = 80.0
    min_replicas: int = 1
    max_replicas: int = 10
    pod_resources: ResourceLimits = field(default_factory=ResourceLimits)

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self):
        """Validate configuration parameters."""
        if self.min_replicas < 1:
            raise ValueError("min_replicas must be at least 1")
        if self.max_replicas < self.min_replicas:
            raise ValueError("max_replicas must be >= min_replicas")
        if not 0 < self.cpu_threshold <= 100:
            raise ValueError("cpu_threshold must be between 0 and 100")
        if not 0 < self.memory_threshold <= 100:
            raise ValueError("memory_threshold must be between 0 and 100")
        for name in ("cpu", "memory"):
            try:
                parse_quantity(getattr(self.pod_resources, name))
            except InvalidQuantityError as e:
                raise ValueError(f"pod_resources.{name} is invalid: {e}") from e

    @property
    def load_profile(self) -> LoadProfile:
        return self.default_load_profile

    def to_dict(self) -> dict:
        """Convert config to a nested dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "RuntimeConfig":
        """Create config from a nested dictionary (as produced by to_dict).

        Args:
            config_dict: Configuration dictionary

        Returns:
            RuntimeConfig instance
        """
        values = dict(config_dict)

        if "user_patterns" in values and values["user_patterns"] is not None:
            values["user_patterns"] = {
                user_type: UserPattern(**pattern)
                for user_type, pattern in values["user_patterns"].items()
            }
        elif "user_patterns" in values:
            values["user_patterns"] = default_user_patterns()

        if isinstance(values.get("user_resources"), dict):
            values["user_resources"] = UserResources(**values["user_resources"])
        if isinstance(values.get("default_load_profile"), dict):
            values["default_load_profile"] = LoadProfile.from_dict(values["default_load_profile"])
        if isinstance(values.get("pod_resources"), dict):
            values["pod_resources"] = ResourceLimits(**values["pod_resources"])

        return cls(**values)


# Predefined configurations
CONSERVATIVE_CONFIG = RuntimeConfig(
    cpu_threshold=50.0,
    memory_threshold=60.0,
    min_replicas=2,
    max_replicas=20,
)

BALANCED_CONFIG = RuntimeConfig(
    cpu_threshold=70.0,
    memory_threshold=80.0,
    min_replicas=1,
    max_replicas=10,
)

AGGRESSIVE_CONFIG = RuntimeConfig(
    cpu_threshold=85.0,
    memory_threshold=90.0,
    min_replicas=1,
    max_replicas=8,
)

PRESETS: dict[str, RuntimeConfig] = {
    "conservative": CONSERVATIVE_CONFIG,
    "balanced": BALANCED_CONFIG,
    "aggressive": AGGRESSIVE_CONFIG,
}


def get_preset(name: str) -> RuntimeConfig:
    """Get a preset configuration by name, falling back to balanced."""
    return PRESETS.get(name, BALANCED_CONFIG)
