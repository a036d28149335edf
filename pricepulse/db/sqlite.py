"""
SQLite Storage
Persistent storage layer.

Responsibilities:
- Append price samples and read them back by asset and time
- Store signals and apply atomic status transitions
- Store users
- Handle schema

NOT responsible for:
- Validation (done upstream)
- Signal evaluation (engine handles this)

Prices are stored as TEXT so Decimal values round-trip exactly.
Timestamps are UTC ISO-8601 with fixed microsecond precision, so
string comparison in SQL matches chronological order.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterator, List, Optional

from pricepulse.core.exceptions import AlreadyExists, StoreUnavailable
from pricepulse.core.models import PriceSample, Signal, SignalStatus, User

logger = logging.getLogger(__name__)


def _ts(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _stored_decimal(value) -> Decimal:
    """Unparsable cells load as NaN; the evaluator rejects them as CorruptSignal"""
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        logger.warning("Unparsable decimal %r in signals table", value)
        return Decimal("NaN")


@contextmanager
def _decoding(operation: str) -> Iterator[None]:
    """Row to model conversion; a row that cannot be read becomes StoreUnavailable"""
    try:
        yield
    except (InvalidOperation, ValueError) as e:
        logger.error("SQLite %s returned an unreadable row: %s", operation, e)
        raise StoreUnavailable(operation, f"unreadable row: {e}") from e


class SQLiteStorage:
    """
    SQLite persistence for price history, signals and users.

    Implements both PriceHistoryStore and SignalStore.

    Tables:
        - price_history: Append-only samples
        - signals: Watch requests with mutable status
        - users: Minimal user records
    """

    def __init__(self, db_path: str = "data/pricepulse.db", timeout: float = 5.0):
        self.db_path = db_path
        self.timeout = timeout
        self._ensure_directory()
        self._init_schema()

    def _ensure_directory(self):
        """Create data directory"""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _connect(self, operation: str) -> Iterator[sqlite3.Connection]:
        """Connection scoped to one operation; sqlite errors become StoreUnavailable"""
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        except sqlite3.Error as e:
            raise StoreUnavailable(operation, str(e)) from e
        try:
            with conn:
                conn.row_factory = sqlite3.Row
                yield conn
        except sqlite3.Error as e:
            logger.error("SQLite %s failed: %s", operation, e)
            raise StoreUnavailable(operation, str(e)) from e
        finally:
            conn.close()

    def _init_schema(self):
        """Initialize database schema"""
        with self._connect("schema init") as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS price_history (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    asset_id TEXT NOT NULL,
                    price TEXT NOT NULL,
                    observed_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_history_asset_ts
                ON price_history(asset_id, observed_at);

                CREATE TABLE IF NOT EXISTS signals (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    contact_address TEXT NOT NULL,
                    asset_id TEXT NOT NULL,
                    threshold_percent TEXT NOT NULL,
                    baseline_price TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'active',
                    created_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_signals_asset_status
                ON signals(asset_id, status);

                CREATE INDEX IF NOT EXISTS idx_signals_owner
                ON signals(owner_id);

                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    username TEXT NOT NULL UNIQUE,
                    created_at TEXT NOT NULL
                );
            """)

    # =========================================================================
    # Price History
    # =========================================================================

    def append(self, sample: PriceSample) -> None:
        """Append one sample"""
        with self._connect("history append") as conn:
            conn.execute(
                """INSERT INTO price_history (asset_id, price, observed_at)
                   VALUES (?, ?, ?)""",
                [sample.asset_id, str(sample.price), _ts(sample.observed_at)]
            )

    def query(self, asset_id: str, since: datetime) -> List[PriceSample]:
        """Samples for asset with observed_at >= since, oldest first"""
        with self._connect("history query") as conn:
            rows = conn.execute(
                """SELECT asset_id, price, observed_at FROM price_history
                   WHERE asset_id = ? AND observed_at >= ?
                   ORDER BY observed_at""",
                [asset_id, _ts(since)]
            ).fetchall()

        with _decoding("history query"):
            return [
                PriceSample(
                    asset_id=row["asset_id"],
                    price=Decimal(row["price"]),
                    observed_at=datetime.fromisoformat(row["observed_at"]),
                )
                for row in rows
            ]

    # =========================================================================
    # Signals
    # =========================================================================

    def add(self, signal: Signal) -> Signal:
        with self._connect("signal insert") as conn:
            conn.execute(
                """INSERT INTO signals
                   (id, owner_id, contact_address, asset_id, threshold_percent,
                    baseline_price, status, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                [signal.id, signal.owner_id, signal.contact_address, signal.asset_id,
                 str(signal.threshold_percent), str(signal.baseline_price),
                 signal.status.value, _ts(signal.created_at)]
            )
        return signal

    def get(self, signal_id: str) -> Optional[Signal]:
        with self._connect("signal get") as conn:
            row = conn.execute("SELECT * FROM signals WHERE id = ?", [signal_id]).fetchone()
        with _decoding("signal get"):
            return self._row_to_signal(row) if row else None

    def query_active(self, asset_id: str) -> List[Signal]:
        """All Active signals watching asset_id"""
        with self._connect("active signal query") as conn:
            rows = conn.execute(
                """SELECT * FROM signals
                   WHERE asset_id = ? AND status = ?
                   ORDER BY created_at""",
                [asset_id, SignalStatus.ACTIVE.value]
            ).fetchall()
        with _decoding("active signal query"):
            return [self._row_to_signal(row) for row in rows]

    def query_by_owner(self, owner_id: str, status: Optional[SignalStatus] = None) -> List[Signal]:
        sql = "SELECT * FROM signals WHERE owner_id = ?"
        params = [owner_id]
        if status is not None:
            sql += " AND status = ?"
            params.append(status.value)
        sql += " ORDER BY created_at"

        with self._connect("owner signal query") as conn:
            rows = conn.execute(sql, params).fetchall()
        with _decoding("owner signal query"):
            return [self._row_to_signal(row) for row in rows]

    def compare_and_set_status(self, signal_id: str, expected: SignalStatus, new: SignalStatus) -> bool:
        """
        Atomic status transition.

        Returns True only for the write that moved the row out of `expected`.
        """
        with self._connect("signal status update") as conn:
            cursor = conn.execute(
                "UPDATE signals SET status = ? WHERE id = ? AND status = ?",
                [new.value, signal_id, expected.value]
            )
            return cursor.rowcount == 1

    def _row_to_signal(self, row: sqlite3.Row) -> Signal:
        return Signal(
            id=row["id"],
            owner_id=row["owner_id"],
            contact_address=row["contact_address"],
            asset_id=row["asset_id"],
            threshold_percent=_stored_decimal(row["threshold_percent"]),
            baseline_price=_stored_decimal(row["baseline_price"]),
            status=SignalStatus(row["status"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    # =========================================================================
    # Users
    # =========================================================================

    def add_user(self, user: User) -> User:
        """
        Raises:
            AlreadyExists: username is taken
        """
        with self._connect("user insert") as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO users (id, username, created_at) VALUES (?, ?, ?)",
                [user.id, user.username, _ts(user.created_at)]
            )
            if cursor.rowcount == 0:
                raise AlreadyExists("user", user.username)
        return user

    def get_user(self, username: str) -> Optional[User]:
        with self._connect("user get") as conn:
            row = conn.execute("SELECT * FROM users WHERE username = ?", [username]).fetchone()
        if not row:
            return None
        with _decoding("user get"):
            return User(
                id=row["id"],
                username=row["username"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )

    # =========================================================================
    # Management
    # =========================================================================

    def get_stats(self) -> dict:
        """Get storage statistics"""
        with self._connect("stats") as conn:
            sample_count = conn.execute("SELECT COUNT(*) FROM price_history").fetchone()[0]
            active_count = conn.execute(
                "SELECT COUNT(*) FROM signals WHERE status = ?", [SignalStatus.ACTIVE.value]
            ).fetchone()[0]
            triggered_count = conn.execute(
                "SELECT COUNT(*) FROM signals WHERE status = ?", [SignalStatus.TRIGGERED.value]
            ).fetchone()[0]

        return {
            "sample_count": sample_count,
            "active_signals": active_count,
            "triggered_signals": triggered_count,
            "db_path": self.db_path
        }
