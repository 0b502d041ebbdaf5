from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Bus, GeoPoint
from .repository import BusRepository


class MySQLBusRepository(BusRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_code(self, bus_code: str) -> Optional[Bus]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT bus_pk, bus_code, name, current_lng, current_lat, location_updated_at, is_active
                FROM buses
                WHERE bus_code=%s
                """,
                (bus_code,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Bus(
                bus_pk=int(r["bus_pk"]),
                bus_code=r["bus_code"],
                name=r["name"],
                current_location=GeoPoint(
                    lng=float(r.get("current_lng") or 0.0),
                    lat=float(r.get("current_lat") or 0.0),
                ),
                location_updated_at=r.get("location_updated_at"),
                is_active=bool(r.get("is_active", True)),
            )
