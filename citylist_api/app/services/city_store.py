"""
City store backed by the ``cities`` SQLite table.

The store owns the corpus.  It is populated once at startup by
``load``/``load_file`` and only read afterwards.  Store order is the
ascending ``id`` (primary key) order, used for every listing and as
the traversal order of the nearest-point scan.

Name matching uses a ``casefold`` SQL function registered on each
connection instead of ``LIKE``, because SQLite's ``LIKE`` and
``lower()`` only fold ASCII letters.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Iterator, List

from pydantic import ValidationError

from citylist_api.app.core.db import SQLITE_MAX_INTEGER, SQLITE_MIN_INTEGER, get_connection
from citylist_api.app.core.exceptions import LoadError, NotFound
from citylist_api.app.schemas.city import City, CityRecord


logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 100

_COLUMNS = "id, name, country, lon, lat"


class CityStore:
    """Read-mostly access to the city corpus."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = get_connection(self.db_path)
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        return conn

    @staticmethod
    def _row_to_city(row: sqlite3.Row) -> City:
        return City(id=row["id"], name=row["name"], country=row["country"], lon=row["lon"], lat=row["lat"])

    def load(self, records: Any) -> int:
        """Insert dataset records and return how many were stored.

        ``records`` must be a sequence of mappings shaped like the
        dataset file (``id``, ``name``, ``country``, ``coord.lon``,
        ``coord.lat``).  Records that fail validation or collide with
        an existing id are logged and skipped.  Loading into a store
        that already holds cities is a no-op.

        Raises
        ------
        LoadError
            If ``records`` is not a sequence at all.
        """
        if isinstance(records, (str, bytes, Mapping)) or not isinstance(records, Sequence):
            raise LoadError(f"City dataset must be a list of records, got {type(records).__name__}")

        if self.count() > 0:
            logger.info("City store already populated, skipping load")
            return 0

        inserted = 0
        skipped = 0
        conn = self._connect()
        try:
            cursor = conn.cursor()
            for index, raw in enumerate(records):
                try:
                    city = CityRecord.model_validate(raw).to_city()
                except ValidationError as exc:
                    skipped += 1
                    logger.debug("Skipping city record #%s: %s", index, exc.errors()[0]["msg"])
                    continue
                try:
                    cursor.execute(
                        f"INSERT INTO cities ({_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                        (city.id, city.name, city.country, city.lon, city.lat),
                    )
                except sqlite3.IntegrityError as exc:
                    skipped += 1
                    logger.debug("Skipping city %s (%s): %s", city.id, city.name, exc)
                    continue
                inserted += 1
            conn.commit()
        finally:
            conn.close()

        if skipped:
            logger.warning("Skipped %s invalid or duplicate city records", skipped)
        logger.info("Loaded %s cities", inserted)
        return inserted

    def load_file(self, path: str) -> int:
        """Read a JSON dataset file and ``load`` it.

        A store that is already populated is left untouched without
        reading the file.
        """
        if self.count() > 0:
            logger.info("City store already populated, skipping load")
            return 0
        logger.info("Loading cities from %s", path)
        try:
            with Path(path).open("r", encoding="utf-8") as fh:
                records = json.load(fh)
        except (OSError, ValueError) as exc:
            raise LoadError(f"Cannot read city dataset {path}: {exc}") from exc
        return self.load(records)

    def count(self) -> int:
        conn = self._connect()
        try:
            return conn.execute("SELECT COUNT(*) FROM cities").fetchone()[0]
        finally:
            conn.close()

    def page(self, offset: int, limit: int) -> List[City]:
        """Return up to ``limit`` cities starting at ``offset`` in store order.

        Negative offsets are clamped to 0 and non-positive limits
        replaced by ``DEFAULT_PAGE_LIMIT``.  An offset beyond the
        INTEGER range is past every row and yields an empty page.
        """
        offset = max(offset, 0)
        if offset > SQLITE_MAX_INTEGER:
            return []
        if limit <= 0:
            limit = DEFAULT_PAGE_LIMIT
        limit = min(limit, SQLITE_MAX_INTEGER)
        conn = self._connect()
        try:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM cities ORDER BY id LIMIT ? OFFSET ?",
                (limit, offset),
            ).fetchall()
            return [self._row_to_city(row) for row in rows]
        finally:
            conn.close()

    def find_by_id(self, city_id: int) -> City:
        if not SQLITE_MIN_INTEGER <= city_id <= SQLITE_MAX_INTEGER:
            raise NotFound(f"City {city_id} not found")
        conn = self._connect()
        try:
            row = conn.execute(f"SELECT {_COLUMNS} FROM cities WHERE id = ?", (city_id,)).fetchone()
        finally:
            conn.close()
        if row is None:
            raise NotFound(f"City {city_id} not found")
        return self._row_to_city(row)

    def filter_by_name(self, term: str, limit: int) -> List[City]:
        """Cities whose name contains ``term``, ignoring case, in store order."""
        conn = self._connect()
        try:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM cities WHERE instr(casefold(name), ?) > 0 ORDER BY id LIMIT ?",
                (_casefold(term), limit),
            ).fetchall()
            return [self._row_to_city(row) for row in rows]
        finally:
            conn.close()

    def filter_by_country(self, code: str, limit: int) -> List[City]:
        """Cities whose country equals ``code`` exactly, in store order."""
        conn = self._connect()
        try:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM cities WHERE country = ? ORDER BY id LIMIT ?",
                (code, limit),
            ).fetchall()
            return [self._row_to_city(row) for row in rows]
        finally:
            conn.close()

    def all(self) -> Iterator[City]:
        """Lazily yield every city in store order.

        Each call opens its own connection, so traversals are
        independent and can be restarted by calling ``all`` again.
        """
        conn = self._connect()
        try:
            cursor = conn.execute(f"SELECT {_COLUMNS} FROM cities ORDER BY id")
            for row in cursor:
                yield self._row_to_city(row)
        finally:
            conn.close()


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value
