import os
import tempfile
from datetime import datetime, timedelta, timezone

# Keep the module-level database out of the working directory.
os.environ.setdefault("FLEETGRAPH_DB_PATH", os.path.join(tempfile.mkdtemp(prefix="fleetgraph-"), "fleet.db"))

import pytest

from fleetgraph.db.database import DatabaseManager
from fleetgraph.models.fleet import (
    Bike,
    BikeStatus,
    Delivery,
    DeliveryStatus,
    Issue,
    IssueCategory,
    IssueReporterType,
)

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FleetFactory:
    """Explicit, deterministic domain records."""

    @staticmethod
    def bike(bike_id="U1", name="Unit One", status=BikeStatus.IN_USE):
        return Bike(id=bike_id, name=name, status=status, latitude=52.37, longitude=4.89,
                    battery_level=80, created_at=T0, updated_at=T0)

    @staticmethod
    def delivery(delivery_id, bike_id="U1", status=DeliveryStatus.COMPLETED, rating=None, minutes=0):
        return Delivery(
            id=delivery_id,
            bike_id=bike_id,
            status=status,
            customer_name=f"Customer {delivery_id}",
            customer_address="Damrak 1",
            restaurant_name="Febo",
            restaurant_address="Rokin 2",
            rating=rating,
            created_at=T0 - timedelta(minutes=minutes),
        )

    @staticmethod
    def issue(issue_id, delivery_id=None, bike_id="U1", category=IssueCategory.LATE,
              resolved=False, minutes=0):
        return Issue(
            id=issue_id,
            delivery_id=delivery_id,
            bike_id=bike_id,
            reporter_type=IssueReporterType.CUSTOMER,
            category=category,
            description="Delivery arrived 30 minutes late",
            resolved=resolved,
            created_at=T0 - timedelta(minutes=minutes),
        )


@pytest.fixture
def factory():
    return FleetFactory


@pytest.fixture
def unit_scenario(factory):
    """Unit U1 with 3 deliveries and 2 issues: one on the first delivery, one standalone."""
    bike = factory.bike()
    deliveries = [factory.delivery(f"D{i}", minutes=i) for i in range(1, 4)]
    issues = [
        factory.issue("I1", delivery_id="D1", minutes=1),
        factory.issue("I2", category=IssueCategory.BIKE_PROBLEM, minutes=2),
    ]
    return bike, deliveries, issues


@pytest.fixture
def empty_db(tmp_path):
    return DatabaseManager(str(tmp_path / "empty.db"), seed=False)


@pytest.fixture
def seeded_db(tmp_path):
    return DatabaseManager(str(tmp_path / "seeded.db"), seed=True)


@pytest.fixture
def unit_db(empty_db, unit_scenario):
    bike, deliveries, issues = unit_scenario
    empty_db.add_bike(bike.name, bike.latitude, bike.longitude, bike.battery_level, bike_id=bike.id)
    for delivery in deliveries:
        empty_db.add_delivery(delivery)
    for issue in issues:
        empty_db.add_issue(issue)
    return empty_db
