"""Durable plan storage.

A PlanStore persists one record per plan, keyed by plan name. Two
backends are provided:

    JSON files ("json", default):
        {workspace_dir}/plans/
        ├── {encoded name}.json
        └── ...

    SQLite ("sqlite"):
        {workspace_dir}/plans.db  (tables: plans, steps, step_acceptance_criteria)

Both replace a plan's record in full on every write, and neither leaves
a partially written record visible.

Example:
    >>> store = create_store(settings)
    >>> store.write("release", {"id": "release", "steps": []})
    >>> store.enumerate()
    ['release']
"""

from __future__ import annotations

import json
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from plan_tracker.errors import (
    InvalidStateError,
    MalformedRecordError,
    PlanNotFoundError,
    PlanUnreadableError,
    StoreIOError,
)
from plan_tracker.logging import Loggers
from plan_tracker.models import PlanRecord
from plan_tracker.persistence._utils import (
    atomic_write_json,
    decode_filename,
    encode_filename,
)

if TYPE_CHECKING:
    from plan_tracker.config import PlanSettings

logger = Loggers.store()


class PlanStore(ABC):
    """Keyed persistence for plan records."""

    @abstractmethod
    def read(self, name: str) -> dict[str, Any]:
        """Return the stored record for ``name``.

        Raises:
            PlanNotFoundError: If no record exists (PlanUnreadableError
                if it exists but cannot be read).
            MalformedRecordError: If the stored bytes cannot be decoded.
        """

    @abstractmethod
    def write(self, name: str, record: dict[str, Any]) -> None:
        """Replace the record for ``name`` in full.

        Raises:
            StoreIOError: If the medium fails. Nothing is written.
        """

    @abstractmethod
    def delete(self, name: str) -> None:
        """Remove the record for ``name``.

        Raises:
            PlanNotFoundError: If no record exists.
            StoreIOError: If the medium fails.
        """

    @abstractmethod
    def enumerate(self) -> list[str]:
        """Return every stored plan name, sorted.

        Raises:
            StoreIOError: If the medium fails.
        """

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Check whether a record exists for ``name``."""

    def close(self) -> None:
        """Release any resources held by the store."""


class JsonFilePlanStore(PlanStore):
    """One JSON file per plan in a directory."""

    def __init__(self, plans_dir: Path) -> None:
        self.plans_dir = Path(plans_dir)

    def _get_plan_path(self, name: str) -> Path:
        return self.plans_dir / f"{encode_filename(name)}.json"

    def read(self, name: str) -> dict[str, Any]:
        path = self._get_plan_path(name)
        try:
            content = path.read_text()
        except FileNotFoundError:
            raise PlanNotFoundError(
                f"Plan '{name}' not found", details={"name": name}
            ) from None
        except OSError as e:
            raise PlanUnreadableError(
                f"Plan '{name}' could not be read: {e}",
                details={"name": name, "path": str(path)},
            ) from e
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise MalformedRecordError(
                f"Plan '{name}' is not valid JSON: {e.msg}",
                details={"name": name, "path": str(path), "line": e.lineno},
            ) from e

    def write(self, name: str, record: dict[str, Any]) -> None:
        path = self._get_plan_path(name)
        try:
            atomic_write_json(path, record)
        except (OSError, TypeError, ValueError) as e:
            raise StoreIOError(
                f"Failed to write plan '{name}': {e}",
                details={"name": name, "path": str(path)},
            ) from e
        logger.debug("plan_written", name=name, path=str(path))

    def delete(self, name: str) -> None:
        path = self._get_plan_path(name)
        try:
            path.unlink()
        except FileNotFoundError:
            raise PlanNotFoundError(
                f"Plan '{name}' not found", details={"name": name}
            ) from None
        except OSError as e:
            raise StoreIOError(
                f"Failed to delete plan '{name}': {e}",
                details={"name": name, "path": str(path)},
            ) from e
        logger.debug("plan_file_deleted", name=name, path=str(path))

    def enumerate(self) -> list[str]:
        if not self.plans_dir.exists():
            return []
        try:
            return sorted(
                decode_filename(path.stem)
                for path in self.plans_dir.glob("*.json")
                if path.is_file()
            )
        except OSError as e:
            raise StoreIOError(
                f"Failed to list plans in {self.plans_dir}: {e}",
                details={"path": str(self.plans_dir)},
            ) from e

    def exists(self, name: str) -> bool:
        return self._get_plan_path(name).exists()


_SCHEMA = """
CREATE TABLE IF NOT EXISTS plans (
    name TEXT PRIMARY KEY,
    id TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS steps (
    plan_name TEXT NOT NULL REFERENCES plans(name) ON DELETE CASCADE,
    id TEXT NOT NULL,
    description TEXT NOT NULL,
    status TEXT NOT NULL,
    step_order INTEGER NOT NULL,
    PRIMARY KEY (plan_name, id)
);

CREATE TABLE IF NOT EXISTS step_acceptance_criteria (
    plan_name TEXT NOT NULL,
    step_id TEXT NOT NULL,
    criterion_order INTEGER NOT NULL,
    criterion TEXT NOT NULL,
    PRIMARY KEY (plan_name, step_id, criterion_order),
    FOREIGN KEY (plan_name, step_id) REFERENCES steps(plan_name, id) ON DELETE CASCADE
);
"""


class SqlitePlanStore(PlanStore):
    """Plans stored as rows in an SQLite database.

    A write deletes the plan row (cascading to its steps and criteria)
    and re-inserts everything inside one transaction.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn: sqlite3.Connection | None = sqlite3.connect(str(self.db_path))
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.executescript(_SCHEMA)
        except (OSError, sqlite3.Error) as e:
            raise StoreIOError(
                f"Failed to open plan database {self.db_path}: {e}",
                details={"path": str(self.db_path)},
            ) from e
        logger.debug("plan_database_opened", path=str(self.db_path))

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreIOError(
                "Plan database is closed", details={"path": str(self.db_path)}
            )
        return self._conn

    def read(self, name: str) -> dict[str, Any]:
        try:
            row = self.conn.execute(
                "SELECT id FROM plans WHERE name = ?", (name,)
            ).fetchone()
            if row is None:
                raise PlanNotFoundError(f"Plan '{name}' not found", details={"name": name})
            step_rows = self.conn.execute(
                "SELECT id, description, status FROM steps "
                "WHERE plan_name = ? ORDER BY step_order ASC",
                (name,),
            ).fetchall()
            steps = []
            for step_id, description, status in step_rows:
                criteria = self.conn.execute(
                    "SELECT criterion FROM step_acceptance_criteria "
                    "WHERE plan_name = ? AND step_id = ? ORDER BY criterion_order ASC",
                    (name, step_id),
                ).fetchall()
                steps.append(
                    {
                        "id": step_id,
                        "description": description,
                        "status": status,
                        "acceptance": [criterion for (criterion,) in criteria],
                    }
                )
        except sqlite3.Error as e:
            raise PlanUnreadableError(
                f"Plan '{name}' could not be read: {e}", details={"name": name}
            ) from e
        return {"id": row[0], "steps": steps}

    def write(self, name: str, record: dict[str, Any]) -> None:
        try:
            parsed = PlanRecord.model_validate(record)
        except ValidationError as e:
            raise MalformedRecordError(
                f"Refusing to write malformed record for plan '{name}'",
                details={"name": name, "errors": e.errors(include_url=False)},
            ) from e
        try:
            with self.conn:
                self.conn.execute("DELETE FROM plans WHERE name = ?", (name,))
                self.conn.execute(
                    "INSERT INTO plans (name, id) VALUES (?, ?)", (name, parsed.id)
                )
                for order, step in enumerate(parsed.steps):
                    self.conn.execute(
                        "INSERT INTO steps (plan_name, id, description, status, step_order) "
                        "VALUES (?, ?, ?, ?, ?)",
                        (name, step.id, step.description, step.status, order),
                    )
                    self.conn.executemany(
                        "INSERT INTO step_acceptance_criteria "
                        "(plan_name, step_id, criterion_order, criterion) VALUES (?, ?, ?, ?)",
                        [
                            (name, step.id, index, criterion)
                            for index, criterion in enumerate(step.acceptance)
                        ],
                    )
        except sqlite3.IntegrityError as e:
            raise InvalidStateError(
                f"Plan '{name}' violates a storage constraint: {e}",
                details={"name": name},
            ) from e
        except sqlite3.Error as e:
            raise StoreIOError(
                f"Failed to write plan '{name}': {e}", details={"name": name}
            ) from e
        logger.debug("plan_rows_written", name=name, steps=len(parsed.steps))

    def delete(self, name: str) -> None:
        try:
            with self.conn:
                cursor = self.conn.execute("DELETE FROM plans WHERE name = ?", (name,))
        except sqlite3.Error as e:
            raise StoreIOError(
                f"Failed to delete plan '{name}': {e}", details={"name": name}
            ) from e
        if cursor.rowcount == 0:
            raise PlanNotFoundError(f"Plan '{name}' not found", details={"name": name})
        logger.debug("plan_rows_deleted", name=name)

    def enumerate(self) -> list[str]:
        try:
            rows = self.conn.execute("SELECT name FROM plans ORDER BY name").fetchall()
        except sqlite3.Error as e:
            raise StoreIOError(f"Failed to list plans: {e}") from e
        return [name for (name,) in rows]

    def exists(self, name: str) -> bool:
        try:
            row = self.conn.execute(
                "SELECT 1 FROM plans WHERE name = ?", (name,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreIOError(
                f"Failed to look up plan '{name}': {e}", details={"name": name}
            ) from e
        return row is not None

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.debug("plan_database_closed", path=str(self.db_path))


def create_store(settings: "PlanSettings") -> PlanStore:
    """Create the store selected by ``settings.storage_backend``.

    Raises:
        ValueError: If the backend is unknown.
    """
    backend = settings.storage_backend
    if backend == "json":
        return JsonFilePlanStore(settings.plans_dir)
    elif backend == "sqlite":
        return SqlitePlanStore(settings.plans_db_path)
    raise ValueError(
        f"Unknown storage backend: {backend}. Valid backends: 'json', 'sqlite'"
    )
