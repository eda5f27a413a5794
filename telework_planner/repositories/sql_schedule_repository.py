# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for week schedules persisted through SQLAlchemy."""
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from telework_planner.core.logging import get_logger
from telework_planner.repositories.schedule_repository import (
    ScheduleRepository,
    ScheduleStoreError,
)
from telework_planner.services.calendar_math import schedule_key

logger = get_logger(__name__)

CREATE_TABLE = """
    CREATE TABLE IF NOT EXISTS planning_schedules (
        doc_key VARCHAR(64) PRIMARY KEY,
        year INTEGER NOT NULL,
        week_number INTEGER NOT NULL,
        document TEXT NOT NULL,
        updated_at VARCHAR(40) NOT NULL
    )
"""


class SqlScheduleRepository(ScheduleRepository):
    """One JSON document per week, one row per document."""

    def __init__(self, engine: Engine):
        super().__init__()
        self._engine = engine

    def init_schema(self) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(text(CREATE_TABLE))
        except SQLAlchemyError as exc:
            raise ScheduleStoreError(f"Cannot create schedule table: {exc}") from exc

    # ── Read ───────────────────────────────────────────────────────────

    def get(self, year: int, week_number: int) -> Optional[Dict[str, Any]]:
        try:
            with self._engine.connect() as conn:
                row = conn.execute(
                    text("SELECT document FROM planning_schedules WHERE doc_key = :key"),
                    {"key": schedule_key(year, week_number)},
                ).fetchone()
        except SQLAlchemyError as exc:
            raise ScheduleStoreError(f"Cannot read week {year}/{week_number}: {exc}") from exc
        return json.loads(row[0]) if row else None

    def count(self) -> int:
        try:
            with self._engine.connect() as conn:
                return conn.execute(text("SELECT COUNT(*) FROM planning_schedules")).scalar() or 0
        except SQLAlchemyError as exc:
            raise ScheduleStoreError(f"Cannot count schedules: {exc}") from exc

    # ── Write ──────────────────────────────────────────────────────────

    def put(self, schedule: Dict[str, Any]) -> None:
        key = schedule_key(schedule["year"], schedule["weekNumber"])
        params = {
            "key": key,
            "year": schedule["year"],
            "week_number": schedule["weekNumber"],
            "document": json.dumps(schedule, ensure_ascii=False),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            with self._engine.begin() as conn:
                conn.execute(text("DELETE FROM planning_schedules WHERE doc_key = :key"), {"key": key})
                conn.execute(
                    text("""
                        INSERT INTO planning_schedules (doc_key, year, week_number, document, updated_at)
                        VALUES (:key, :year, :week_number, :document, :updated_at)
                    """),
                    params,
                )
        except SQLAlchemyError as exc:
            raise ScheduleStoreError(f"Cannot save {key}: {exc}") from exc
        self._publish(key, schedule)

    def clear_all(self) -> None:
        try:
            with self._engine.begin() as conn:
                deleted = conn.execute(text("DELETE FROM planning_schedules")).rowcount
        except SQLAlchemyError as exc:
            raise ScheduleStoreError(f"Cannot clear schedules: {exc}") from exc
        logger.info("Schedule table cleared: %s rows", deleted)
        self._publish_reset()
