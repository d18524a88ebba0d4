"""SQLite entity store adapter."""

import json
import logging
import sqlite3
from collections.abc import Callable, Iterable
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterator

from coach.core.models import (
    Exercise,
    Goal,
    Note,
    Todo,
    Workout,
    WorkoutType,
    parse_date,
)

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS goals (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    text       TEXT    NOT NULL,
    due_date   TEXT,
    metadata   TEXT,
    completed  INTEGER NOT NULL DEFAULT 0,
    created_at TEXT    NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS notes (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    text       TEXT    NOT NULL,
    tags       TEXT,
    created_at TEXT    NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS todos (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    text       TEXT    NOT NULL,
    due_date   TEXT,
    tags       TEXT,
    completed  INTEGER NOT NULL DEFAULT 0,
    created_at TEXT    NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS workouts (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    type            TEXT    NOT NULL,
    date            TEXT    NOT NULL,
    duration_mins   INTEGER,
    distance_miles  REAL,
    avg_heart_rate  INTEGER,
    rpe             INTEGER,
    notes           TEXT,
    created_at      TEXT    NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS exercises (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    workout_id  INTEGER NOT NULL,
    name        TEXT    NOT NULL,
    sets        INTEGER,
    reps        TEXT,
    weight_lbs  REAL,
    rest_sec    INTEGER,
    notes       TEXT,
    FOREIGN KEY (workout_id) REFERENCES workouts(id) ON DELETE CASCADE
);
"""

GOAL_COLUMNS = "id, text, due_date, metadata, completed, created_at"
TODO_COLUMNS = "id, text, due_date, tags, completed, created_at"
NOTE_COLUMNS = "id, text, tags, created_at"
WORKOUT_COLUMNS = (
    "id, type, date, duration_mins, distance_miles, avg_heart_rate, rpe, notes, created_at"
)
EXERCISE_COLUMNS = "id, workout_id, name, sets, reps, weight_lbs, rest_sec, notes"

PENDING_ORDER = "ORDER BY due_date IS NULL, due_date ASC, created_at ASC, id ASC"
NEWEST_FIRST = "ORDER BY created_at DESC, id DESC"

UPDATABLE = {
    "goals": {"text", "due_date", "metadata", "completed"},
    "todos": {"text", "due_date", "tags", "completed"},
    "notes": {"text", "tags"},
    "workouts": {
        "type",
        "date",
        "duration_mins",
        "distance_miles",
        "avg_heart_rate",
        "rpe",
        "notes",
    },
}


class StoreError(Exception):
    """Raised when the database cannot be opened, read or written."""

    pass


def encode_tags(tags: list[str] | None) -> str | None:
    return json.dumps(list(tags)) if tags is not None else None


def decode_tags(raw: str | None) -> list[str]:
    """Decode a JSON tag array; malformed values decode to no tags."""
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Ignoring malformed tags value: {raw!r}")
        return []
    if not isinstance(value, list):
        return []
    return [str(tag) for tag in value]


def _decode_metadata(raw: str | None) -> dict | None:
    if not raw:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Ignoring malformed metadata value: {raw!r}")
        return None
    return value if isinstance(value, dict) else None


def _parse_timestamp(raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def _encode_value(column: str, value: Any) -> Any:
    """Convert a domain value to its column representation."""
    if value is None:
        return None
    if column == "tags":
        return encode_tags(value)
    if column == "metadata":
        return json.dumps(value)
    if column == "completed":
        return 1 if value else 0
    if isinstance(value, WorkoutType):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value


def _goal_from_row(row: sqlite3.Row) -> Goal:
    return Goal(
        id=row["id"],
        text=row["text"],
        due_date=parse_date(row["due_date"]),
        metadata=_decode_metadata(row["metadata"]),
        completed=bool(row["completed"]),
        created_at=_parse_timestamp(row["created_at"]),
    )


def _todo_from_row(row: sqlite3.Row) -> Todo:
    return Todo(
        id=row["id"],
        text=row["text"],
        due_date=parse_date(row["due_date"]),
        tags=decode_tags(row["tags"]),
        completed=bool(row["completed"]),
        created_at=_parse_timestamp(row["created_at"]),
    )


def _note_from_row(row: sqlite3.Row) -> Note:
    return Note(
        id=row["id"],
        text=row["text"],
        tags=decode_tags(row["tags"]),
        created_at=_parse_timestamp(row["created_at"]),
    )


def _workout_from_row(row: sqlite3.Row) -> Workout:
    return Workout(
        id=row["id"],
        type=WorkoutType(row["type"]),
        date=parse_date(row["date"]),
        duration_mins=row["duration_mins"],
        distance_miles=row["distance_miles"],
        avg_heart_rate=row["avg_heart_rate"],
        rpe=row["rpe"],
        notes=row["notes"],
        created_at=_parse_timestamp(row["created_at"]),
    )


def _exercise_from_row(row: sqlite3.Row) -> Exercise:
    return Exercise(
        id=row["id"],
        workout_id=row["workout_id"],
        name=row["name"],
        sets=row["sets"],
        reps=row["reps"],
        weight_lbs=row["weight_lbs"],
        rest_sec=row["rest_sec"],
        notes=row["notes"],
    )


def _tag_pattern(tag: str) -> str:
    """LIKE pattern matching a tag anywhere in a JSON array."""
    quoted = json.dumps(tag)
    escaped = quoted.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SqliteEntityStore:
    """
    SQLite-backed entity store.

    Implements EntityStore protocol. The connection is opened on first use,
    which also creates missing tables and applies the additive column
    migration. Whoever constructs the store owns it and must close it.
    """

    def __init__(self, db_path: Path | str, clock: Callable[[], datetime] = datetime.now):
        self.db_path = Path(db_path).expanduser()
        self._clock = clock
        self._conn: sqlite3.Connection | None = None

    # ============== Lifecycle ==============

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = self._open()
        return self._conn

    def _open(self) -> sqlite3.Connection:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            self._initialise_schema(conn)
        except (sqlite3.Error, OSError) as e:
            raise StoreError(f"Cannot open database at {self.db_path}: {e}") from e
        logger.debug(f"Opened database {self.db_path}")
        return conn

    def _initialise_schema(self, conn: sqlite3.Connection) -> None:
        conn.executescript(SCHEMA)

        # Databases created before goals could be completed lack the column
        columns = {row["name"] for row in conn.execute("PRAGMA table_info(goals)")}
        if "completed" not in columns:
            logger.info("Migrating goals table: adding completed column")
            conn.execute("ALTER TABLE goals ADD COLUMN completed INTEGER NOT NULL DEFAULT 0")
            conn.commit()

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "SqliteEntityStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ============== Helpers ==============

    def _now(self) -> str:
        return self._clock().isoformat(timespec="seconds")

    def _query(self, sql: str, params: Iterable[Any] = ()) -> list[sqlite3.Row]:
        try:
            return self.connection.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Query failed: {e}") from e

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Commit on success, roll back everything on failure."""
        conn = self.connection
        try:
            with conn:
                yield conn
        except sqlite3.Error as e:
            raise StoreError(f"Write failed: {e}") from e

    def _insert(self, table: str, values: dict[str, Any]) -> int:
        values = {**values, "created_at": self._now()}
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        encoded = [_encode_value(k, v) for k, v in values.items()]
        with self._transaction() as conn:
            cursor = conn.execute(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", encoded)
        return cursor.lastrowid

    def _update(self, table: str, row_id: int, changes: dict[str, Any]) -> bool:
        unknown = set(changes) - UPDATABLE[table]
        if unknown:
            raise ValueError(f"Cannot update {', '.join(sorted(unknown))} on {table}")
        if not changes:
            return self._exists(table, row_id)

        assignments = ", ".join(f"{column} = ?" for column in changes)
        params = [_encode_value(k, v) for k, v in changes.items()] + [row_id]
        with self._transaction() as conn:
            cursor = conn.execute(f"UPDATE {table} SET {assignments} WHERE id = ?", params)
        return cursor.rowcount > 0

    def _delete(self, table: str, row_id: int) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))
        return cursor.rowcount > 0

    def _exists(self, table: str, row_id: int) -> bool:
        return bool(self._query(f"SELECT 1 FROM {table} WHERE id = ?", (row_id,)))

    # ============== Goals ==============

    def add_goal(self, text: str, due_date: date | None = None, metadata: dict | None = None) -> int:
        return self._insert("goals", {"text": text, "due_date": due_date, "metadata": metadata})

    def update_goal(self, goal_id: int, changes: dict[str, Any]) -> bool:
        return self._update("goals", goal_id, changes)

    def delete_goal(self, goal_id: int) -> bool:
        return self._delete("goals", goal_id)

    def list_goals(self, pending_only: bool = False) -> list[Goal]:
        if pending_only:
            sql = f"SELECT {GOAL_COLUMNS} FROM goals WHERE completed = 0 {PENDING_ORDER}"
        else:
            sql = f"SELECT {GOAL_COLUMNS} FROM goals ORDER BY id ASC"
        return [_goal_from_row(r) for r in self._query(sql)]

    def goals_created_on(self, day: date) -> list[Goal]:
        rows = self._query(
            f"SELECT {GOAL_COLUMNS} FROM goals WHERE substr(created_at, 1, 10) = ? {NEWEST_FIRST}",
            (day.isoformat(),),
        )
        return [_goal_from_row(r) for r in rows]

    # ============== Todos ==============

    def add_todo(self, text: str, due_date: date | None = None, tags: list[str] | None = None) -> int:
        return self._insert("todos", {"text": text, "due_date": due_date, "tags": tags})

    def update_todo(self, todo_id: int, changes: dict[str, Any]) -> bool:
        return self._update("todos", todo_id, changes)

    def delete_todo(self, todo_id: int) -> bool:
        return self._delete("todos", todo_id)

    def list_todos(self, pending_only: bool = False) -> list[Todo]:
        if pending_only:
            sql = f"SELECT {TODO_COLUMNS} FROM todos WHERE completed = 0 {PENDING_ORDER}"
        else:
            sql = f"SELECT {TODO_COLUMNS} FROM todos ORDER BY id ASC"
        return [_todo_from_row(r) for r in self._query(sql)]

    def todos_created_on(self, day: date) -> list[Todo]:
        rows = self._query(
            f"SELECT {TODO_COLUMNS} FROM todos WHERE substr(created_at, 1, 10) = ? {NEWEST_FIRST}",
            (day.isoformat(),),
        )
        return [_todo_from_row(r) for r in rows]

    # ============== Notes ==============

    def add_note(self, text: str, tags: list[str] | None = None) -> int:
        return self._insert("notes", {"text": text, "tags": tags})

    def update_note(self, note_id: int, changes: dict[str, Any]) -> bool:
        return self._update("notes", note_id, changes)

    def delete_note(self, note_id: int) -> bool:
        return self._delete("notes", note_id)

    def list_notes(self, tag: str | None = None) -> list[Note]:
        if tag is None:
            rows = self._query(f"SELECT {NOTE_COLUMNS} FROM notes {NEWEST_FIRST}")
            return [_note_from_row(r) for r in rows]

        # LIKE narrows the scan; the decoded tag list decides
        rows = self._query(
            f"SELECT {NOTE_COLUMNS} FROM notes WHERE tags LIKE ? ESCAPE '\\' {NEWEST_FIRST}",
            (_tag_pattern(tag),),
        )
        return [n for n in map(_note_from_row, rows) if tag in n.tags]

    def notes_created_on(self, day: date) -> list[Note]:
        rows = self._query(
            f"SELECT {NOTE_COLUMNS} FROM notes WHERE substr(created_at, 1, 10) = ? {NEWEST_FIRST}",
            (day.isoformat(),),
        )
        return [_note_from_row(r) for r in rows]

    def notes_since(self, day: date, exclude_tag: str | None = None, limit: int | None = None) -> list[Note]:
        rows = self._query(
            f"SELECT {NOTE_COLUMNS} FROM notes WHERE substr(created_at, 1, 10) >= ? {NEWEST_FIRST}",
            (day.isoformat(),),
        )
        notes = [_note_from_row(r) for r in rows]
        if exclude_tag is not None:
            notes = [n for n in notes if exclude_tag not in n.tags]
        return notes[:limit] if limit is not None else notes

    def latest_note_tagged(self, tag: str) -> Note | None:
        notes = self.list_notes(tag)
        return notes[0] if notes else None

    # ============== Workouts ==============

    def add_workout(self, workout: Workout, exercises: Iterable[Exercise] = ()) -> int:
        values = {
            "type": workout.type,
            "date": workout.date,
            "duration_mins": workout.duration_mins,
            "distance_miles": workout.distance_miles,
            "avg_heart_rate": workout.avg_heart_rate,
            "rpe": workout.rpe,
            "notes": workout.notes,
            "created_at": self._now(),
        }
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        with self._transaction() as conn:
            cursor = conn.execute(
                f"INSERT INTO workouts ({columns}) VALUES ({placeholders})",
                [_encode_value(k, v) for k, v in values.items()],
            )
            workout_id = cursor.lastrowid
            if workout.type == WorkoutType.FUNCTIONAL:
                self._insert_exercises(conn, workout_id, exercises)
        return workout_id

    def _insert_exercises(
        self, conn: sqlite3.Connection, workout_id: int, exercises: Iterable[Exercise]
    ) -> None:
        conn.executemany(
            "INSERT INTO exercises (workout_id, name, sets, reps, weight_lbs, rest_sec, notes) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            [
                (workout_id, ex.name, ex.sets, ex.reps, ex.weight_lbs, ex.rest_sec, ex.notes)
                for ex in exercises
            ],
        )

    def get_workout(self, workout_id: int) -> Workout | None:
        rows = self._query(f"SELECT {WORKOUT_COLUMNS} FROM workouts WHERE id = ?", (workout_id,))
        return _workout_from_row(rows[0]) if rows else None

    def update_workout(
        self,
        workout_id: int,
        changes: dict[str, Any],
        exercises: list[Exercise] | None = None,
    ) -> bool:
        existing = self.get_workout(workout_id)
        if existing is None:
            return False

        unknown = set(changes) - UPDATABLE["workouts"]
        if unknown:
            raise ValueError(f"Cannot update {', '.join(sorted(unknown))} on workouts")

        final_type = WorkoutType(changes.get("type", existing.type))
        with self._transaction() as conn:
            if changes:
                assignments = ", ".join(f"{column} = ?" for column in changes)
                params = [_encode_value(k, v) for k, v in changes.items()] + [workout_id]
                conn.execute(f"UPDATE workouts SET {assignments} WHERE id = ?", params)

            if final_type == WorkoutType.FUNCTIONAL and exercises is not None:
                conn.execute("DELETE FROM exercises WHERE workout_id = ?", (workout_id,))
                self._insert_exercises(conn, workout_id, exercises)
        return True

    def delete_workout(self, workout_id: int) -> bool:
        # Exercises go with it via ON DELETE CASCADE
        return self._delete("workouts", workout_id)

    def list_workouts(
        self,
        type: WorkoutType | None = None,
        since: date | None = None,
        limit: int | None = None,
    ) -> list[Workout]:
        conditions = []
        params: list[Any] = []
        if type is not None:
            conditions.append("type = ?")
            params.append(WorkoutType(type).value)
        if since is not None:
            conditions.append("date >= ?")
            params.append(since.isoformat())

        sql = f"SELECT {WORKOUT_COLUMNS} FROM workouts"
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += " ORDER BY date DESC, created_at DESC, id DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        return [_workout_from_row(r) for r in self._query(sql, params)]

    def workouts_on(self, day: date) -> list[Workout]:
        rows = self._query(
            f"SELECT {WORKOUT_COLUMNS} FROM workouts WHERE date = ? {NEWEST_FIRST}",
            (day.isoformat(),),
        )
        return [_workout_from_row(r) for r in rows]

    def exercises_for(self, workout_ids: Iterable[int]) -> dict[int, list[Exercise]]:
        ids = list(workout_ids)
        if not ids:
            return {}

        placeholders = ", ".join("?" for _ in ids)
        rows = self._query(
            f"SELECT {EXERCISE_COLUMNS} FROM exercises "
            f"WHERE workout_id IN ({placeholders}) ORDER BY id ASC",
            ids,
        )
        grouped: dict[int, list[Exercise]] = {}
        for row in rows:
            exercise = _exercise_from_row(row)
            grouped.setdefault(exercise.workout_id, []).append(exercise)
        return grouped
