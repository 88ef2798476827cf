import os
from typing import Optional

from pydantic import BaseModel, ConfigDict

from fleetgraph.models.graph import NodeKind

ENV_PREFIX = "FLEETGRAPH_"

DB_PATH = os.environ.get(f"{ENV_PREFIX}DB_PATH", "fleet_data.db")
SEED_DEMO = os.environ.get(f"{ENV_PREFIX}SEED_DEMO", "1").lower() not in ("0", "false", "no")
LOG_LEVEL = os.environ.get(f"{ENV_PREFIX}LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.environ.get(f"{ENV_PREFIX}CORS_ORIGINS", "*").split(",") if o.strip()]

ALPHA_MIN = 0.001


class LayoutConfig(BaseModel):
    """
    Every tunable of the layout pipeline.

    Builder geometry:
        primary_distance      ring radius of primary nodes around the center
        secondary_distance    offset of a secondary from its owning primary
        secondary_angle_step  radians per global secondary index
        *_radius              node radius by kind (collision + rendering)
        link_strength         base spring stiffness

    Simulation:
        ticks                 fixed number of steps, no convergence detection
        alpha/alpha_min/alpha_decay/alpha_target
                              the decaying driving parameter
        velocity_decay        fraction of velocity lost per tick
        link_distance         spring rest length; None derives it from the
                              ring spacing of the two endpoint kinds
    """
    model_config = ConfigDict(frozen=True)

    primary_distance: float = 120.0
    secondary_distance: float = 60.0
    secondary_angle_step: float = 0.8
    center_radius: float = 40.0
    primary_radius: float = 25.0
    secondary_radius: float = 18.0
    link_strength: float = 0.7

    center_strength: float = 0.05
    repulsion_strength: float = -300.0
    distance_min: float = 1.0
    collision_margin: float = 5.0
    collision_iterations: int = 2
    link_iterations: int = 3
    link_distance: Optional[float] = None

    ticks: int = 150
    alpha: float = 1.0
    alpha_min: float = ALPHA_MIN
    alpha_decay: Optional[float] = None  # None: reach alpha_min after 300 ticks
    alpha_target: float = 0.0
    velocity_decay: float = 0.4

    bounds_padding: float = 20.0

    def decay(self) -> float:
        if self.alpha_decay is not None:
            return self.alpha_decay
        return 1.0 - self.alpha_min ** (1.0 / 300.0)

    def radius_for(self, kind: NodeKind) -> float:
        if kind == NodeKind.CENTER:
            return self.center_radius
        if kind == NodeKind.PRIMARY:
            return self.primary_radius
        return self.secondary_radius

    def spring_length(self, source: NodeKind, target: NodeKind) -> float:
        if self.link_distance is not None:
            return self.link_distance
        kinds = {source, target}
        if kinds == {NodeKind.CENTER, NodeKind.PRIMARY}:
            return self.primary_distance
        if kinds == {NodeKind.CENTER, NodeKind.SECONDARY}:
            return self.primary_distance + self.secondary_distance
        return self.secondary_distance

    @classmethod
    def from_env(cls, environ=None) -> "LayoutConfig":
        """Build a config from FLEETGRAPH_<FIELD> overrides, e.g. FLEETGRAPH_TICKS=200."""
        environ = os.environ if environ is None else environ
        overrides = {}
        for name in cls.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                overrides[name] = raw
        return cls.model_validate(overrides)


DEFAULT_CONFIG = LayoutConfig()
