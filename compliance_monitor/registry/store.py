"""LedgerStore: SQLite-backed persistence for the registry state.

Uses stdlib sqlite3 only.  Each :meth:`LedgerStore.save` replaces the stored
snapshot inside one transaction, so a reader never sees half of an update.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from compliance_monitor.registry.models import (
    ComplianceStatus,
    Occupancy,
    PropertyDetails,
    RegistryState,
)

logger = logging.getLogger(__name__)

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS registry_meta (
    key   TEXT PRIMARY KEY,
    value TEXT
);

CREATE TABLE IF NOT EXISTS inspectors (
    address TEXT PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS properties (
    property_id INTEGER PRIMARY KEY,
    owner       TEXT    NOT NULL,
    rent_amount INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS occupancies (
    property_id           INTEGER NOT NULL,
    resident              TEXT    NOT NULL,
    move_in_date          INTEGER NOT NULL,
    lease_expiry          INTEGER NOT NULL,
    rent_amount           INTEGER NOT NULL DEFAULT 0,
    last_compliance_check INTEGER NOT NULL,
    compliance_status     TEXT    NOT NULL,
    violations            INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (property_id, resident)
);

CREATE INDEX IF NOT EXISTS idx_occupancies_status ON occupancies(compliance_status);
"""


class LedgerStore:
    """Persist and reload a :class:`RegistryState`.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.  Use ``':memory:'`` for
        in-memory databases (useful for testing).
    """

    def __init__(self, db_path: str | Path = ":memory:") -> None:
        self._db_path = str(db_path)
        self._conn: sqlite3.Connection | None = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Lazy-initialise and return the database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(self._db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(_SCHEMA_SQL)
            self._conn.commit()
        return self._conn

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # -- Snapshot ------------------------------------------------------------

    def save(self, state: RegistryState, block_height: int | None = None) -> None:
        """Replace the stored snapshot with *state* in a single transaction.

        *block_height* is the height the snapshot was taken at.  When omitted,
        the previously stored height is kept.
        """
        if block_height is None:
            block_height = self.load_height()
        conn = self.conn
        with conn:
            conn.execute("DELETE FROM registry_meta")
            conn.execute("DELETE FROM inspectors")
            conn.execute("DELETE FROM properties")
            conn.execute("DELETE FROM occupancies")

            conn.execute(
                "INSERT INTO registry_meta (key, value) VALUES ('admin', ?)",
                (state.admin,),
            )
            if block_height is not None:
                conn.execute(
                    "INSERT INTO registry_meta (key, value) VALUES ('block_height', ?)",
                    (str(block_height),),
                )
            conn.executemany(
                "INSERT INTO inspectors (address) VALUES (?)",
                [(addr,) for addr in sorted(state.inspectors)],
            )
            conn.executemany(
                "INSERT INTO properties (property_id, owner, rent_amount) VALUES (?, ?, ?)",
                [
                    (pid, details.owner, details.rent_amount)
                    for pid, details in sorted(state.properties.items())
                ],
            )
            conn.executemany(
                """\
                INSERT INTO occupancies (property_id, resident, move_in_date,
                                         lease_expiry, rent_amount,
                                         last_compliance_check,
                                         compliance_status, violations)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        pid,
                        resident,
                        occ.move_in_date,
                        occ.lease_expiry,
                        occ.rent_amount,
                        occ.last_compliance_check,
                        occ.compliance_status.value,
                        occ.violations,
                    )
                    for (pid, resident), occ in sorted(state.occupancies.items())
                ],
            )
        logger.debug(
            "Saved ledger snapshot: %d properties, %d occupancies",
            len(state.properties), len(state.occupancies),
        )

    def load(self) -> RegistryState:
        """Return the stored state, or an empty one if nothing was saved."""
        conn = self.conn
        row = conn.execute(
            "SELECT value FROM registry_meta WHERE key = 'admin'"
        ).fetchone()
        state = RegistryState(admin=row["value"] if row else None)

        for r in conn.execute("SELECT address FROM inspectors"):
            state.inspectors.add(r["address"])

        for r in conn.execute("SELECT * FROM properties"):
            state.properties[r["property_id"]] = PropertyDetails(
                owner=r["owner"], rent_amount=r["rent_amount"],
            )

        for r in conn.execute("SELECT * FROM occupancies"):
            state.occupancies[(r["property_id"], r["resident"])] = self._row_to_occupancy(r)

        return state

    def load_height(self) -> int | None:
        """Return the block height of the stored snapshot, if one was recorded."""
        row = self.conn.execute(
            "SELECT value FROM registry_meta WHERE key = 'block_height'"
        ).fetchone()
        return int(row["value"]) if row else None

    def is_empty(self) -> bool:
        """Return True if no snapshot has been saved yet."""
        cur = self.conn.execute("SELECT COUNT(*) FROM registry_meta WHERE key = 'admin'")
        return cur.fetchone()[0] == 0

    # -- Internal ------------------------------------------------------------

    @staticmethod
    def _row_to_occupancy(row: sqlite3.Row) -> Occupancy:
        return Occupancy(
            move_in_date=row["move_in_date"],
            lease_expiry=row["lease_expiry"],
            rent_amount=row["rent_amount"],
            last_compliance_check=row["last_compliance_check"],
            compliance_status=ComplianceStatus(row["compliance_status"]),
            violations=row["violations"],
        )
