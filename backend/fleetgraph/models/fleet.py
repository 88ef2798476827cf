from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class BikeStatus(str, Enum):
    AVAILABLE = "available"
    IN_USE = "in_use"
    MAINTENANCE = "maintenance"
    CHARGING = "charging"
    OFFLINE = "offline"


class DeliveryStatus(str, Enum):
    COMPLETED = "completed"
    ONGOING = "ongoing"
    UPCOMING = "upcoming"


class IssueCategory(str, Enum):
    LATE = "late"
    DAMAGED = "damaged"
    WRONG_ORDER = "wrong_order"
    RUDE = "rude"
    BIKE_PROBLEM = "bike_problem"
    OTHER = "other"


class IssueReporterType(str, Enum):
    CUSTOMER = "customer"
    DELIVERER = "deliverer"
    RESTAURANT = "restaurant"


def parse_enum(enum_cls, value, default):
    """Map a stored string onto an enum member, falling back to `default`."""
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        return default


class Bike(BaseModel):
    id: str
    name: str
    status: BikeStatus = BikeStatus.AVAILABLE
    latitude: float
    longitude: float
    battery_level: Optional[int] = None
    last_maintenance: Optional[datetime] = None
    total_trips: int = 0
    total_distance_km: float = 0.0
    created_at: datetime
    updated_at: datetime


class Delivery(BaseModel):
    id: str
    bike_id: str
    status: DeliveryStatus = DeliveryStatus.UPCOMING
    customer_name: str
    customer_address: str
    restaurant_name: str
    restaurant_address: str
    rating: Optional[int] = None  # 1-5, completed deliveries only
    complaint: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None


class Issue(BaseModel):
    id: str
    delivery_id: Optional[str] = None  # None = standalone issue
    bike_id: str
    reporter_type: IssueReporterType = IssueReporterType.CUSTOMER
    category: IssueCategory = IssueCategory.OTHER
    description: str
    resolved: bool = False
    created_at: datetime
