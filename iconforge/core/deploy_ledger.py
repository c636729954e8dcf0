"""Append-only, hash-chained deploy ledger backed by SQLite.

Holds the two audit logs of the pipeline:

- ``deployments`` — one DeploymentRecord per committed deploy or rollback,
  hash-chained per environment so retroactive edits are detectable.
- ``manifest_history`` — every manifest that was made current, with its
  full JSON, so a rollback can republish it verbatim (VersionHistory).

Design:
- Append-only: no update, no delete.
- A deploy's record and its history entry are written in one transaction.
- WAL journal mode for concurrent readers.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from iconforge.core.hasher import compute_entry_hash
from iconforge.models.deployment import DeployAction, DeploymentRecord, HistoryEntry
from iconforge.models.manifest import Manifest

# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_DEPLOYMENTS = """
CREATE TABLE IF NOT EXISTS deployments (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    deployment_id       TEXT NOT NULL UNIQUE,
    environment         TEXT NOT NULL,
    action              TEXT NOT NULL,
    manifest_version    TEXT NOT NULL,
    timestamp_utc       TEXT NOT NULL,
    record_json         TEXT NOT NULL,
    previous_entry_hash TEXT NOT NULL DEFAULT '',
    entry_hash          TEXT NOT NULL UNIQUE
);
"""

_CREATE_HISTORY = """
CREATE TABLE IF NOT EXISTS manifest_history (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    environment   TEXT NOT NULL,
    version       TEXT NOT NULL,
    action        TEXT NOT NULL,
    published_at  TEXT NOT NULL,
    manifest_json TEXT NOT NULL,
    UNIQUE (environment, version)
);
"""

_CREATE_IDX_ENV = """
CREATE INDEX IF NOT EXISTS idx_deploy_env ON deployments(environment, id);
"""


class LedgerIntegrityError(RuntimeError):
    """Raised when the deployment hash chain is broken."""


class DeployLedger:
    """Append-only deployment log and manifest version history.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.  Created if it does not exist.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(_CREATE_DEPLOYMENTS)
            conn.execute(_CREATE_HISTORY)
            conn.execute(_CREATE_IDX_ENV)
            conn.commit()

    # ------------------------------------------------------------------
    # Core: append-only write
    # ------------------------------------------------------------------

    def commit(self, record: DeploymentRecord, manifest: Manifest) -> DeploymentRecord:
        """Seal *record*, then append it and *manifest* atomically.

        Returns the record with ``previous_entry_hash`` and ``entry_hash`` set.
        This is the ONLY write method.
        """
        with self._connect() as conn:
            previous_hash = self._latest_hash(conn, record.environment)
            entry_dict = record.model_dump(mode="json")
            entry_dict["previous_entry_hash"] = previous_hash
            entry_dict["entry_hash"] = ""
            sealed = record.model_copy(
                update={
                    "previous_entry_hash": previous_hash,
                    "entry_hash": compute_entry_hash(entry_dict),
                }
            )
            conn.execute(
                """
                INSERT INTO deployments
                    (deployment_id, environment, action, manifest_version,
                     timestamp_utc, record_json, previous_entry_hash, entry_hash)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    sealed.deployment_id,
                    sealed.environment,
                    sealed.action.value,
                    sealed.manifest_version,
                    sealed.timestamp_utc.isoformat(),
                    sealed.model_dump_json(),
                    sealed.previous_entry_hash,
                    sealed.entry_hash,
                ),
            )
            conn.execute(
                """
                INSERT INTO manifest_history
                    (environment, version, action, published_at, manifest_json)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    record.environment,
                    manifest.version,
                    record.action.value,
                    manifest.last_update.isoformat(),
                    manifest.to_json_bytes().decode("utf-8"),
                ),
            )
            conn.commit()
        return sealed

    @staticmethod
    def _latest_hash(conn: sqlite3.Connection, environment: str) -> str:
        row = conn.execute(
            "SELECT entry_hash FROM deployments WHERE environment = ? ORDER BY id DESC LIMIT 1",
            (environment,),
        ).fetchone()
        return row[0] if row else ""

    # ------------------------------------------------------------------
    # Deployment queries (read-only)
    # ------------------------------------------------------------------

    def list_deployments(self, environment: str) -> list[DeploymentRecord]:
        """All deployment records for an environment, oldest first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT record_json FROM deployments WHERE environment = ? ORDER BY id ASC",
                (environment,),
            ).fetchall()
        return [DeploymentRecord.model_validate_json(row[0]) for row in rows]

    def get_latest_deployment(self, environment: str) -> DeploymentRecord | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT record_json FROM deployments WHERE environment = ? "
                "ORDER BY id DESC LIMIT 1",
                (environment,),
            ).fetchone()
        return DeploymentRecord.model_validate_json(row[0]) if row else None

    # ------------------------------------------------------------------
    # Version history (read-only)
    # ------------------------------------------------------------------

    def list_versions(self, environment: str) -> list[HistoryEntry]:
        """Every manifest made current in *environment*, oldest first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT version, environment, action, published_at, manifest_json "
                "FROM manifest_history WHERE environment = ? ORDER BY id ASC",
                (environment,),
            ).fetchall()
        return [self._row_to_history(row) for row in rows]

    def get_manifest(self, environment: str, version: str) -> Manifest | None:
        """The manifest published as *version*, or ``None``."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT manifest_json FROM manifest_history "
                "WHERE environment = ? AND version = ?",
                (environment, version),
            ).fetchone()
        return Manifest.from_json_bytes(row[0].encode("utf-8")) if row else None

    # ------------------------------------------------------------------
    # Chain verification
    # ------------------------------------------------------------------

    def verify_chain(self, environment: str) -> bool:
        """Walk the deployment chain for *environment* and recompute every seal.

        Returns True if the chain is valid, raises LedgerIntegrityError otherwise.
        """
        prev_hash = ""
        for record in self.list_deployments(environment):
            if record.previous_entry_hash != prev_hash:
                raise LedgerIntegrityError(
                    f"Chain broken at {record.deployment_id}: "
                    f"expected previous_hash={prev_hash!r}, "
                    f"got {record.previous_entry_hash!r}"
                )
            expected = compute_entry_hash(record.model_dump(mode="json"))
            if record.entry_hash != expected:
                raise LedgerIntegrityError(
                    f"Tampered record {record.deployment_id}: "
                    f"expected hash={expected!r}, got {record.entry_hash!r}"
                )
            prev_hash = record.entry_hash
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_history(row: tuple) -> HistoryEntry:
        version, environment, action, published_at, manifest_json = row
        return HistoryEntry(
            version=version,
            environment=environment,
            action=DeployAction(action),
            published_at=published_at,
            manifest_json=manifest_json,
        )
