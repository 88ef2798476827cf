import logging
from typing import Optional

from fleetgraph.core.config import LayoutConfig
from fleetgraph.core.errors import CenterNotFoundError
from fleetgraph.db.database import DatabaseManager
from fleetgraph.engines.layout import compute, recompute
from fleetgraph.models.graph import Layout

logger = logging.getLogger(__name__)


class LayoutService:
    """
    Computes force layouts for a bike from the storage collaborator.

    Stateless between calls: every request re-reads the bike, its deliveries
    and issues, so concurrent requests need no coordination.
    """

    def __init__(self, database: DatabaseManager, config: Optional[LayoutConfig] = None):
        self.database = database
        self.config = config or LayoutConfig.from_env()

    def _fetch(self, center_id: str):
        bike = self.database.get_bike_by_id(center_id)
        if bike is None:
            raise CenterNotFoundError(center_id)
        deliveries = self.database.get_deliveries_by_bike(center_id)
        issues = self.database.get_issues_by_bike(center_id)
        return bike, deliveries, issues

    def compute_layout(self, center_id: str) -> Layout:
        bike, deliveries, issues = self._fetch(center_id)
        layout = compute(bike, deliveries, issues, self.config)
        logger.info("Layout for %s: %d nodes, %d links", center_id, len(layout.nodes), len(layout.links))
        return layout

    def update_node_position(self, center_id: str, node_id: str, x: float, y: float) -> Layout:
        bike, deliveries, issues = self._fetch(center_id)
        layout = recompute(bike, deliveries, issues, node_id, x, y, self.config)
        logger.info("Layout for %s with %s pinned at (%.1f, %.1f)", center_id, node_id, x, y)
        return layout
