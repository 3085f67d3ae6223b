"""AuditLogger: immutable, hash-chained record of registry transitions."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from compliance_monitor.audit.hasher import Hasher

logger = logging.getLogger(__name__)

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS audit_log (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp       TEXT    NOT NULL,
    block_height    INTEGER NOT NULL DEFAULT 0,
    sender          TEXT    NOT NULL,
    action          TEXT    NOT NULL,
    resource        TEXT    NOT NULL DEFAULT '',
    before_hash     TEXT    NOT NULL DEFAULT '',
    after_hash      TEXT    NOT NULL DEFAULT '',
    entry_hash      TEXT    NOT NULL,
    prev_entry_hash TEXT    NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS idx_audit_resource ON audit_log(resource);
"""

_COLUMNS = (
    "id, timestamp, block_height, sender, action, resource, "
    "before_hash, after_hash, entry_hash, prev_entry_hash"
)


class AuditEntry(BaseModel):
    """Single immutable audit record."""

    id: int = 0
    timestamp: str = ""
    block_height: int = 0
    sender: str = ""
    action: str = ""
    resource: str = ""
    before_hash: str = ""
    after_hash: str = ""
    entry_hash: str = ""
    prev_entry_hash: str = ""


def property_resource(property_id: int, resident: str | None = None) -> str:
    """Audit resource name of a property, or of one occupancy of it."""
    if resident is None:
        return f"property:{property_id}"
    return f"property:{property_id}/resident:{resident}"


def _chain_hash(
    ts: str, height: int, sender: str, action: str, resource: str,
    before_hash: str, after_hash: str, prev: str,
) -> str:
    return Hasher.hash_string(
        f"{ts}{height}{sender}{action}{resource}{before_hash}{after_hash}{prev}"
    )


class AuditLogger:
    """Append-only, hash-chained audit log stored in SQLite.

    Parameters
    ----------
    db_path:
        Path to the SQLite file.  Defaults to ``':memory:'``.
    """

    def __init__(self, db_path: str | Path = ":memory:") -> None:
        self._db_path = str(db_path)
        self._conn = sqlite3.connect(self._db_path, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def log(
        self,
        sender: str,
        action: str,
        resource: str = "",
        block_height: int = 0,
        before_hash: str | None = None,
        after_hash: str | None = None,
    ) -> AuditEntry:
        """Append an event and return the created AuditEntry."""
        ts = datetime.now(timezone.utc).isoformat()
        bh = before_hash or ""
        ah = after_hash or ""

        prev = self._last_hash()
        entry_hash = _chain_hash(ts, block_height, sender, action, resource, bh, ah, prev)

        cur = self._conn.execute(
            "INSERT INTO audit_log "
            "(timestamp, block_height, sender, action, resource, before_hash, "
            "after_hash, entry_hash, prev_entry_hash) VALUES (?,?,?,?,?,?,?,?,?)",
            (ts, block_height, sender, action, resource, bh, ah, entry_hash, prev),
        )
        self._conn.commit()

        return AuditEntry(
            id=cur.lastrowid or 0,
            timestamp=ts,
            block_height=block_height,
            sender=sender,
            action=action,
            resource=resource,
            before_hash=bh,
            after_hash=ah,
            entry_hash=entry_hash,
            prev_entry_hash=prev,
        )

    def verify_chain(self) -> bool:
        """Validate the entire hash chain.  Returns False if tampered."""
        rows = self._conn.execute(
            f"SELECT {_COLUMNS} FROM audit_log ORDER BY id"
        ).fetchall()

        prev_hash = ""
        for row in rows:
            (
                _id, ts, height, sender, action, resource,
                bh, ah, stored_hash, stored_prev,
            ) = row

            if stored_prev != prev_hash:
                logger.warning("Audit chain broken at entry %d (prev hash mismatch)", _id)
                return False

            expected = _chain_hash(ts, height, sender, action, resource, bh, ah, prev_hash)
            if expected != stored_hash:
                logger.warning("Audit chain broken at entry %d (content altered)", _id)
                return False

            prev_hash = stored_hash

        return True

    def get_log(
        self,
        resource: str | None = None,
        sender: str | None = None,
        action: str | None = None,
        since_height: int | None = None,
    ) -> list[AuditEntry]:
        """Query the audit log with optional filters."""
        clauses: list[str] = []
        params: list[Any] = []
        if resource is not None:
            clauses.append("resource = ?")
            params.append(resource)
        if sender is not None:
            clauses.append("sender = ?")
            params.append(sender)
        if action is not None:
            clauses.append("action = ?")
            params.append(action)
        if since_height is not None:
            clauses.append("block_height >= ?")
            params.append(since_height)

        where = (" WHERE " + " AND ".join(clauses)) if clauses else ""
        sql = f"SELECT {_COLUMNS} FROM audit_log{where} ORDER BY id"

        rows = self._conn.execute(sql, params).fetchall()
        return [_row_to_entry(r) for r in rows]

    def history(
        self,
        property_id: int,
        resident: str | None = None,
        since_height: int | None = None,
    ) -> list[AuditEntry]:
        """Return the transitions of one property, oldest first.

        With *resident*, only that occupancy's entries are returned.
        Without it, the property's own entries and those of every
        occupancy at the property are merged in log order.
        """
        if resident is not None:
            clauses = ["resource = ?"]
            params: list[Any] = [property_resource(property_id, resident)]
        else:
            base = property_resource(property_id)
            clauses = ["(resource = ? OR substr(resource, 1, ?) = ?)"]
            params = [base, len(base) + 1, base + "/"]
        if since_height is not None:
            clauses.append("block_height >= ?")
            params.append(since_height)

        sql = f"SELECT {_COLUMNS} FROM audit_log WHERE {' AND '.join(clauses)} ORDER BY id"
        return [_row_to_entry(r) for r in self._conn.execute(sql, params).fetchall()]

    def occupancy_timeline(self, property_id: int, resident: str) -> dict[str, int]:
        """Map each action on an occupancy to the block height it last ran at.

        Gives, for example, the move-in height under ``register-occupancy``
        and the most recent inspection under ``perform-compliance-check``.
        """
        rows = self._conn.execute(
            "SELECT action, MAX(block_height) FROM audit_log "
            "WHERE resource = ? GROUP BY action",
            (property_resource(property_id, resident),),
        ).fetchall()
        return {action: height for action, height in rows}

    def export_log(self) -> str:
        """Export the full audit trail as JSON."""
        return json.dumps([e.model_dump() for e in self.get_log()], indent=2)

    def count(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM audit_log").fetchone()[0]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _last_hash(self) -> str:
        row = self._conn.execute(
            "SELECT entry_hash FROM audit_log ORDER BY id DESC LIMIT 1"
        ).fetchone()
        return row[0] if row else ""

    def close(self) -> None:
        self._conn.close()


def _row_to_entry(r: tuple[Any, ...]) -> AuditEntry:
    return AuditEntry(
        id=r[0], timestamp=r[1], block_height=r[2], sender=r[3],
        action=r[4], resource=r[5], before_hash=r[6], after_hash=r[7],
        entry_hash=r[8], prev_entry_hash=r[9],
    )
