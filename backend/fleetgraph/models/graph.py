from enum import Enum
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from fleetgraph.models.fleet import (
    BikeStatus,
    DeliveryStatus,
    IssueCategory,
    IssueReporterType,
)


class NodeKind(str, Enum):
    CENTER = "center"        # the bike / deliverer
    PRIMARY = "primary"      # a delivery
    SECONDARY = "secondary"  # an issue


class CenterPayload(BaseModel):
    name: str
    status: BikeStatus


class PrimaryPayload(BaseModel):
    status: DeliveryStatus
    customer: str
    rating: Optional[int] = None


class SecondaryPayload(BaseModel):
    category: IssueCategory
    resolved: bool
    reporter: IssueReporterType


Payload = Union[CenterPayload, PrimaryPayload, SecondaryPayload]


class Node(BaseModel):
    id: str
    kind: NodeKind
    label: str
    radius: float
    position: Tuple[float, float] = (0.0, 0.0)
    velocity: Tuple[float, float] = (0.0, 0.0)
    fixed: bool = False  # position never updated by forces
    payload: Payload


class Link(BaseModel):
    source: str
    target: str
    strength: float = Field(gt=0, le=1)  # spring stiffness


class Pin(BaseModel):
    node_id: str
    x: float = Field(allow_inf_nan=False)
    y: float = Field(allow_inf_nan=False)


class Graph(BaseModel):
    """Simulation input/output. Node order is stable for one computation."""
    nodes: List[Node]
    links: List[Link]
    pinned: Optional[Pin] = None


class LayoutNode(BaseModel):
    id: str
    kind: NodeKind
    label: str
    x: float
    y: float
    radius: float
    payload: Payload


class Bounds(BaseModel):
    min_x: float = 0.0
    max_x: float = 0.0
    min_y: float = 0.0
    max_y: float = 0.0


class Layout(BaseModel):
    nodes: List[LayoutNode]
    links: List[Link]
    center: Tuple[float, float] = (0.0, 0.0)
    bounds: Bounds


class PositionUpdate(BaseModel):
    x: float = Field(allow_inf_nan=False)
    y: float = Field(allow_inf_nan=False)
