"""SQLite persistence for registered locations."""
from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, List, Optional
from urllib.parse import unquote, urlparse

from .entities import Location
from .exceptions import PersistenceError

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


class DatabaseSession:
    """Minimal DB-API session wrapper."""

    def __init__(self, connection: sqlite3.Connection, owns_connection: bool = True):
        self.connection = connection
        self.owns_connection = owns_connection

    def execute(self, sql: str, params: tuple = ()):
        return self.connection.execute(sql, params)

    def fetchone(self, sql: str, params: tuple = ()):
        cursor = self.execute(sql, params)
        row = cursor.fetchone()
        cursor.close()
        return row

    def fetchall(self, sql: str, params: tuple = ()):
        cursor = self.execute(sql, params)
        rows = cursor.fetchall()
        cursor.close()
        return rows

    def commit(self) -> None:
        self.connection.commit()

    def rollback(self) -> None:
        self.connection.rollback()

    def close(self) -> None:
        if self.owns_connection:
            self.connection.close()


class SessionFactory:
    """Opens a connection per session; an in-memory database keeps one shared connection."""

    def __init__(self, url: str):
        self.url = url
        self.path = database_path(url)
        self._shared: Optional[sqlite3.Connection] = None
        if self.path == MEMORY:
            self._shared = create_connection(self.path)

    def __call__(self) -> DatabaseSession:
        if self._shared is not None:
            return DatabaseSession(self._shared, owns_connection=False)
        return DatabaseSession(create_connection(self.path))

    def dispose(self) -> None:
        if self._shared is not None:
            self._shared.close()
            self._shared = None


def database_path(url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme and not parsed.scheme.startswith("sqlite"):
        raise ValueError(f"Unsupported database scheme: {parsed.scheme}")
    if not parsed.scheme:
        return url or MEMORY
    path = unquote(parsed.path or parsed.netloc or MEMORY)
    if path in (MEMORY, "/" + MEMORY):
        return MEMORY
    # sqlite:///./file.db -> "/./file.db", sqlite:////abs/file.db -> "//abs/file.db"
    if path.startswith("//"):
        return path[1:]
    if path.startswith("/"):
        return os.path.abspath(path[1:])
    return os.path.abspath(path)


def create_connection(path: str) -> sqlite3.Connection:
    connection = sqlite3.connect(path, check_same_thread=False)
    connection.row_factory = sqlite3.Row
    return connection


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _location_from_row(row) -> Location:
    return Location(
        id=row["id"],
        city_name=row["city_name"],
        latitude=row["latitude"],
        longitude=row["longitude"],
        registration_date=datetime.fromisoformat(row["registration_date"]),
        temperature=row["temperature"],
        feels_like=row["feels_like"],
        weather_description=row["weather_description"],
        cached_weather=row["cached_weather"],
    )


class LocationStore:
    """Stores one row per location; rows come back in insertion order."""

    def __init__(self, url: str = MEMORY) -> None:
        self.url = url
        self.session_factory = SessionFactory(url)
        self.run_migrations()

    @contextmanager
    def session_scope(self) -> Iterator[DatabaseSession]:
        try:
            session = self.session_factory()
        except sqlite3.Error as exc:
            raise PersistenceError(str(exc)) from exc
        try:
            yield session
            session.commit()
        except sqlite3.Error as exc:
            session.rollback()
            logger.error("Location store failure", exc_info=exc)
            raise PersistenceError(str(exc)) from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def run_migrations(self) -> None:
        with self.session_scope() as session:
            session.execute(
                """
                CREATE TABLE IF NOT EXISTS locations (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id VARCHAR(32) NOT NULL UNIQUE,
                    city_name VARCHAR(255) NOT NULL,
                    latitude REAL NOT NULL,
                    longitude REAL NOT NULL,
                    registration_date TEXT NOT NULL,
                    temperature REAL NOT NULL DEFAULT 0.0,
                    feels_like REAL NOT NULL DEFAULT 0.0,
                    weather_description TEXT,
                    cached_weather TEXT
                )
                """
            )
            session.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_locations_city_name
                ON locations (city_name)
                """
            )

    def insert(self, location: Location) -> None:
        with self.session_scope() as session:
            session.execute(
                """
                INSERT INTO locations (
                    id, city_name, latitude, longitude, registration_date,
                    temperature, feels_like, weather_description, cached_weather
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    location.id,
                    location.city_name,
                    location.latitude,
                    location.longitude,
                    location.registration_date.astimezone(timezone.utc).isoformat(),
                    location.temperature,
                    location.feels_like,
                    location.weather_description,
                    location.cached_weather,
                ),
            )

    def fetch_all(self) -> List[Location]:
        with self.session_scope() as session:
            rows = session.fetchall("SELECT * FROM locations ORDER BY seq")
        return [_location_from_row(row) for row in rows]

    def fetch(self, location_id: str) -> Optional[Location]:
        with self.session_scope() as session:
            row = session.fetchone("SELECT * FROM locations WHERE id = ?", (location_id,))
        return _location_from_row(row) if row else None

    def delete(self, location_id: str) -> bool:
        with self.session_scope() as session:
            cursor = session.execute("DELETE FROM locations WHERE id = ?", (location_id,))
            return cursor.rowcount > 0

    def update_weather(
        self,
        location_id: str,
        temperature: float,
        feels_like: float,
        description: Optional[str],
    ) -> None:
        with self.session_scope() as session:
            session.execute(
                """
                UPDATE locations
                SET temperature = ?, feels_like = ?, weather_description = ?
                WHERE id = ?
                """,
                (temperature, feels_like, description, location_id),
            )

    def update_cached_weather(self, location_id: str, value: Optional[str]) -> None:
        with self.session_scope() as session:
            session.execute(
                "UPDATE locations SET cached_weather = ? WHERE id = ?",
                (value, location_id),
            )

    def close(self) -> None:
        self.session_factory.dispose()


__all__ = ["LocationStore", "DatabaseSession", "SessionFactory", "database_path", "utcnow"]
