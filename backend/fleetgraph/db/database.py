import logging
import sqlite3
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from fleetgraph.core.config import DB_PATH, SEED_DEMO
from fleetgraph.models.fleet import (
    Bike,
    BikeStatus,
    Delivery,
    DeliveryStatus,
    Issue,
    IssueCategory,
    IssueReporterType,
    parse_enum,
)

logger = logging.getLogger(__name__)

SCHEMA = '''
    CREATE TABLE IF NOT EXISTS bikes (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'available',
        latitude REAL NOT NULL,
        longitude REAL NOT NULL,
        battery_level INTEGER,
        last_maintenance TEXT,
        total_trips INTEGER NOT NULL DEFAULT 0,
        total_distance_km REAL NOT NULL DEFAULT 0.0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS deliveries (
        id TEXT PRIMARY KEY,
        bike_id TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'upcoming',
        customer_name TEXT NOT NULL,
        customer_address TEXT NOT NULL,
        restaurant_name TEXT NOT NULL,
        restaurant_address TEXT NOT NULL,
        rating INTEGER,
        complaint TEXT,
        created_at TEXT NOT NULL,
        completed_at TEXT,
        FOREIGN KEY (bike_id) REFERENCES bikes(id)
    );

    -- delivery_id is NULL for standalone issues (bike problems etc.)
    CREATE TABLE IF NOT EXISTS issues (
        id TEXT PRIMARY KEY,
        delivery_id TEXT,
        bike_id TEXT NOT NULL,
        reporter_type TEXT NOT NULL,
        category TEXT NOT NULL,
        description TEXT NOT NULL,
        resolved INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        FOREIGN KEY (delivery_id) REFERENCES deliveries(id),
        FOREIGN KEY (bike_id) REFERENCES bikes(id)
    );

    CREATE INDEX IF NOT EXISTS idx_bikes_status ON bikes(status);
    CREATE INDEX IF NOT EXISTS idx_deliveries_bike_id ON deliveries(bike_id);
    CREATE INDEX IF NOT EXISTS idx_deliveries_status ON deliveries(status);
    CREATE INDEX IF NOT EXISTS idx_issues_bike_id ON issues(bike_id);
    CREATE INDEX IF NOT EXISTS idx_issues_delivery_id ON issues(delivery_id);
    CREATE INDEX IF NOT EXISTS idx_issues_resolved ON issues(resolved);
'''

BIKE_COLUMNS = '''id, name, status, latitude, longitude, battery_level, last_maintenance,
                  total_trips, total_distance_km, created_at, updated_at'''
DELIVERY_COLUMNS = '''id, bike_id, status, customer_name, customer_address, restaurant_name,
                      restaurant_address, rating, complaint, created_at, completed_at'''
ISSUE_COLUMNS = '''id, delivery_id, bike_id, reporter_type, category, description,
                   resolved, created_at'''

AMSTERDAM_LOCATIONS = [
    ("Central Station", 52.3791, 4.9003),
    ("Dam Square", 52.3731, 4.8932),
    ("Vondelpark", 52.3579, 4.8686),
    ("Rijksmuseum", 52.3600, 4.8852),
    ("Anne Frank House", 52.3752, 4.8840),
    ("Jordaan", 52.3747, 4.8797),
    ("De Pijp", 52.3533, 4.8936),
    ("Oost", 52.3614, 4.9366),
    ("Noord", 52.3907, 4.9228),
    ("Amstel", 52.3632, 4.9039),
]
CUSTOMER_NAMES = [
    "P. de Vries", "M. Jansen", "A. Bakker", "J. van Dijk", "S. Visser",
    "L. Smit", "K. Mulder", "R. de Boer", "T. Bos", "E. van den Berg",
    "H. Dekker", "F. Vermeer", "B. van Leeuwen", "N. Kok", "D. Peters",
]
RESTAURANT_NAMES = [
    "De Pizzabakker", "Wok to Walk", "Febo", "New York Pizza", "Dominos",
    "Thai Express", "Sushi Time", "Burger King", "McDonalds", "Subway",
    "La Place", "Vapiano", "Bagels & Beans", "De Italiaan", "Ramen Ya",
]
STREETS = [
    "Damrak", "Rokin", "Kalverstraat", "Leidsestraat", "Utrechtsestraat",
    "Overtoom", "Kinkerstraat", "Ferdinand Bolstraat", "Javastraat", "Plantage",
]
ISSUE_DESCRIPTIONS = [
    ("late", "Delivery arrived 30 minutes late"),
    ("damaged", "Food container was crushed"),
    ("wrong_order", "Received someone else's order"),
    ("rude", "Deliverer was impolite"),
    ("bike_problem", "Flat tire during delivery"),
    ("other", "General complaint about service"),
]
REPORTER_TYPES = ["customer", "deliverer", "restaurant"]


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


class DatabaseManager:
    """SQLite store for bikes, their deliveries and reported issues."""

    def __init__(self, db_path: str = DB_PATH, seed: bool = SEED_DEMO):
        self.db_path = db_path
        self._init_db(seed)

    def _get_conn(self):
        return sqlite3.connect(self.db_path)

    def _init_db(self, seed: bool):
        conn = self._get_conn()
        try:
            conn.executescript(SCHEMA)
            conn.commit()
            if seed:
                self._seed_demo_data(conn)
        finally:
            conn.close()

    def _seed_demo_data(self, conn):
        """Insert the demo fleet once, when the bikes table is empty."""
        count = conn.execute('SELECT COUNT(*) FROM bikes').fetchone()[0]
        if count > 0:
            return

        now = datetime.now(timezone.utc)
        now_str = now.isoformat()
        statuses = ["available", "available", "available", "in_use", "charging"]
        for i, (place, lat, lon) in enumerate(AMSTERDAM_LOCATIONS):
            conn.execute(f'INSERT INTO bikes ({BIKE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)', (
                f"BIKE-{i + 1:04d}", f"Amsterdam {place} Bike", statuses[i % len(statuses)],
                lat, lon, 20 + (i * 8) % 80, None, (i * 17) % 200, (i * 12.5) % 500.0,
                now_str, now_str,
            ))

        # 50 deliveries spread over 10 bikes; only completed ones get ratings
        for i in range(50):
            status = "completed" if i % 10 <= 5 else ("ongoing" if i % 10 <= 7 else "upcoming")
            rating = (i % 5) + 1 if status == "completed" and i % 3 == 0 else None
            complaint = "Order arrived cold" if status == "completed" and i % 7 == 0 else None
            created_at = now - timedelta(days=(50 - i) // 7, minutes=i)
            completed_at = (created_at + timedelta(hours=1)).isoformat() if status == "completed" else None
            conn.execute(f'INSERT INTO deliveries ({DELIVERY_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)', (
                f"DEL-{i + 1:04d}", f"BIKE-{(i % 10) + 1:04d}", status,
                CUSTOMER_NAMES[i % len(CUSTOMER_NAMES)],
                f"{STREETS[i % len(STREETS)]} {(i % 200) + 1}",
                RESTAURANT_NAMES[i % len(RESTAURANT_NAMES)],
                f"{STREETS[(i + 3) % len(STREETS)]} {(i % 150) + 1}",
                rating, complaint, created_at.isoformat(), completed_at,
            ))

        # 20 issues, one in three standalone
        for i in range(20):
            category, description = ISSUE_DESCRIPTIONS[i % len(ISSUE_DESCRIPTIONS)]
            delivery_id = f"DEL-{(i % 50) + 1:04d}" if i % 3 != 0 else None
            created_at = now - timedelta(days=i % 14, minutes=i)
            conn.execute(f'INSERT INTO issues ({ISSUE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)', (
                f"ISS-{i + 1:04d}", delivery_id, f"BIKE-{(i % 10) + 1:04d}",
                REPORTER_TYPES[i % len(REPORTER_TYPES)], category, description,
                int(i % 3 == 0), created_at.isoformat(),
            ))
        conn.commit()
        logger.info("Seeded demo fleet into %s", self.db_path)

    # --- Bikes ---

    @staticmethod
    def _bike_from_row(row) -> Bike:
        return Bike(
            id=row[0],
            name=row[1],
            status=parse_enum(BikeStatus, row[2], BikeStatus.OFFLINE),
            latitude=row[3],
            longitude=row[4],
            battery_level=row[5],
            last_maintenance=_parse_time(row[6]),
            total_trips=row[7],
            total_distance_km=row[8],
            created_at=_parse_time(row[9]),
            updated_at=_parse_time(row[10]),
        )

    def get_all_bikes(self) -> List[Bike]:
        conn = self._get_conn()
        try:
            rows = conn.execute(f'SELECT {BIKE_COLUMNS} FROM bikes ORDER BY name, id').fetchall()
        finally:
            conn.close()
        return [self._bike_from_row(r) for r in rows]

    def get_bike_by_id(self, bike_id: str) -> Optional[Bike]:
        conn = self._get_conn()
        try:
            row = conn.execute(f'SELECT {BIKE_COLUMNS} FROM bikes WHERE id = ?', (bike_id,)).fetchone()
        finally:
            conn.close()
        if row:
            return self._bike_from_row(row)
        return None

    def add_bike(self, name: str, latitude: float, longitude: float,
                 battery_level: Optional[int] = None, bike_id: Optional[str] = None) -> Bike:
        now = datetime.now(timezone.utc).isoformat()
        bike_id = bike_id or f"BIKE-{uuid.uuid4().hex[:8].upper()}"
        conn = self._get_conn()
        try:
            conn.execute(f'INSERT INTO bikes ({BIKE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)', (
                bike_id, name, BikeStatus.AVAILABLE.value, latitude, longitude,
                battery_level, None, 0, 0.0, now, now,
            ))
            conn.commit()
        finally:
            conn.close()
        return self.get_bike_by_id(bike_id)

    # --- Deliveries ---

    @staticmethod
    def _delivery_from_row(row) -> Delivery:
        return Delivery(
            id=row[0],
            bike_id=row[1],
            status=parse_enum(DeliveryStatus, row[2], DeliveryStatus.UPCOMING),
            customer_name=row[3],
            customer_address=row[4],
            restaurant_name=row[5],
            restaurant_address=row[6],
            rating=row[7],
            complaint=row[8],
            created_at=_parse_time(row[9]),
            completed_at=_parse_time(row[10]),
        )

    def get_deliveries(self, bike_id: Optional[str] = None,
                       status: Optional[DeliveryStatus] = None) -> List[Delivery]:
        sql = f'SELECT {DELIVERY_COLUMNS} FROM deliveries WHERE 1=1'
        params = []
        if bike_id is not None:
            sql += ' AND bike_id = ?'
            params.append(bike_id)
        if status is not None:
            sql += ' AND status = ?'
            params.append(DeliveryStatus(status).value)
        sql += ' ORDER BY created_at DESC, id'
        conn = self._get_conn()
        try:
            rows = conn.execute(sql, params).fetchall()
        finally:
            conn.close()
        return [self._delivery_from_row(r) for r in rows]

    def get_deliveries_by_bike(self, bike_id: str) -> List[Delivery]:
        return self.get_deliveries(bike_id=bike_id)

    def add_delivery(self, delivery: Delivery) -> Delivery:
        conn = self._get_conn()
        try:
            conn.execute(f'INSERT INTO deliveries ({DELIVERY_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)', (
                delivery.id, delivery.bike_id, delivery.status.value, delivery.customer_name,
                delivery.customer_address, delivery.restaurant_name, delivery.restaurant_address,
                delivery.rating, delivery.complaint, delivery.created_at.isoformat(),
                delivery.completed_at.isoformat() if delivery.completed_at else None,
            ))
            conn.commit()
        finally:
            conn.close()
        return delivery

    # --- Issues ---

    @staticmethod
    def _issue_from_row(row) -> Issue:
        return Issue(
            id=row[0],
            delivery_id=row[1],
            bike_id=row[2],
            reporter_type=parse_enum(IssueReporterType, row[3], IssueReporterType.CUSTOMER),
            category=parse_enum(IssueCategory, row[4], IssueCategory.OTHER),
            description=row[5],
            resolved=bool(row[6]),
            created_at=_parse_time(row[7]),
        )

    def get_issues(self, bike_id: Optional[str] = None, resolved: Optional[bool] = None,
                   category: Optional[IssueCategory] = None) -> List[Issue]:
        sql = f'SELECT {ISSUE_COLUMNS} FROM issues WHERE 1=1'
        params = []
        if bike_id is not None:
            sql += ' AND bike_id = ?'
            params.append(bike_id)
        if resolved is not None:
            sql += ' AND resolved = ?'
            params.append(int(resolved))
        if category is not None:
            sql += ' AND category = ?'
            params.append(IssueCategory(category).value)
        sql += ' ORDER BY created_at DESC, id'
        conn = self._get_conn()
        try:
            rows = conn.execute(sql, params).fetchall()
        finally:
            conn.close()
        return [self._issue_from_row(r) for r in rows]

    def get_issues_by_bike(self, bike_id: str) -> List[Issue]:
        return self.get_issues(bike_id=bike_id)

    def add_issue(self, issue: Issue) -> Issue:
        conn = self._get_conn()
        try:
            conn.execute(f'INSERT INTO issues ({ISSUE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)', (
                issue.id, issue.delivery_id, issue.bike_id, issue.reporter_type.value,
                issue.category.value, issue.description, int(issue.resolved),
                issue.created_at.isoformat(),
            ))
            conn.commit()
        finally:
            conn.close()
        return issue


# Global Instance
db = DatabaseManager()
