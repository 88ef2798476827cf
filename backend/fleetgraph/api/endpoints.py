from typing import List, Optional

from fastapi import APIRouter, HTTPException

from fleetgraph.core.errors import CenterNotFoundError
from fleetgraph.core.layout_service import LayoutService
from fleetgraph.db.database import db
from fleetgraph.models.fleet import Bike, Delivery, DeliveryStatus, Issue, IssueCategory
from fleetgraph.models.graph import Layout, PositionUpdate

router = APIRouter()

layout_service = LayoutService(db)


def _require_bike(bike_id: str) -> Bike:
    bike = layout_service.database.get_bike_by_id(bike_id)
    if bike is None:
        raise HTTPException(status_code=404, detail=f"Bike not found: {bike_id}")
    return bike


@router.get("/bikes", response_model=List[Bike])
def list_bikes():
    return layout_service.database.get_all_bikes()


@router.get("/bikes/{bike_id}/deliveries", response_model=List[Delivery])
def list_deliveries(bike_id: str, status: Optional[DeliveryStatus] = None):
    _require_bike(bike_id)
    return layout_service.database.get_deliveries(bike_id=bike_id, status=status)


@router.get("/bikes/{bike_id}/issues", response_model=List[Issue])
def list_issues(bike_id: str, resolved: Optional[bool] = None,
                category: Optional[IssueCategory] = None):
    _require_bike(bike_id)
    return layout_service.database.get_issues(bike_id=bike_id, resolved=resolved, category=category)


@router.get("/graph/{bike_id}", response_model=Layout)
def get_force_graph_layout(bike_id: str):
    """Force layout of a bike with its deliveries and issues."""
    try:
        return layout_service.compute_layout(bike_id)
    except CenterNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/graph/{bike_id}/nodes/{node_id}/position", response_model=Layout)
def update_node_position(bike_id: str, node_id: str, update: PositionUpdate):
    """
    Recompute the layout with one node dragged to (x, y).

    Unknown node ids are ignored and the normal layout is returned.
    """
    try:
        return layout_service.update_node_position(bike_id, node_id, update.x, update.y)
    except CenterNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
