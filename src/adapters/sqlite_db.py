"""
SQLite Database Adapter.

Implements the content store, deletion audit, newsletter and rate-limit
counter ports on top of sqlite3. Table and column names come from the content
type registry; values are always bound as parameters.

Each call opens its own connection unless an external connection is injected
(tests) or a transaction is open on the repository, in which case every call
inside the `with repo.transaction():` block shares one connection and one
commit.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any
from uuid import UUID

from src.app_shell.rate_limit import CounterEntry, RateLimitResult, apply_window
from src.components.audit.models import AuditQuery, DeletionAction, DeletionAuditEntry
from src.components.content.ports import DuplicateKeyError, ListQuery, StoreError
from src.components.newsletter.models import NewsletterSubscription, SubscriptionStatus
from src.core.content_types import ContentTypeSpec, RelationshipConfig

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def parse_dt(s: str | None) -> datetime | None:
    """Parse ISO datetime string."""
    return datetime.fromisoformat(s) if s else None


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# -----------------------------------------------------------------------------
# Base SQLite Repository
# -----------------------------------------------------------------------------


class SQLiteRepoBase:
    """Base class for SQLite repositories."""

    def __init__(self, db_path: str, connection: sqlite3.Connection | None = None):
        self.db_path = db_path
        self._external_conn = connection
        self._tx_conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (transaction, external, or a new one)."""
        if self._tx_conn is not None:
            return self._tx_conn
        if self._external_conn is not None:
            return self._external_conn

        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _should_close(self) -> bool:
        """Whether to close connection after use."""
        return self._external_conn is None and self._tx_conn is None

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Connection for one call; commits unless a transaction is open."""
        conn = self._get_conn()
        try:
            yield conn
            if self._tx_conn is None:
                conn.commit()
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e) or "PRIMARY KEY" in str(e):
                raise DuplicateKeyError(str(e)) from e
            raise StoreError(str(e)) from e
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        finally:
            if self._should_close():
                conn.close()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the enclosed repository calls in one transaction."""
        if self._tx_conn is not None:
            yield
            return

        conn = self._get_conn()
        self._tx_conn = conn
        try:
            yield
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(str(e)) from e
        except BaseException:
            conn.rollback()
            raise
        finally:
            self._tx_conn = None
            if self._external_conn is None:
                conn.close()


# -----------------------------------------------------------------------------
# Content Store (all content types + junction tables)
# -----------------------------------------------------------------------------


class SQLiteContentStore(SQLiteRepoBase):
    """SQLite implementation of ContentStorePort."""

    def get(self, spec: ContentTypeSpec, field_name: str, value: Any) -> dict[str, Any] | None:
        self._check_column(spec, field_name)
        with self._connection() as conn:
            row = conn.execute(
                f"SELECT * FROM {spec.table} WHERE {field_name} = ? LIMIT 1",
                (self._encode(spec, field_name, value),),
            ).fetchone()
            return self._decode(spec, row) if row else None

    def list(self, spec: ContentTypeSpec, query: ListQuery) -> tuple[list[dict[str, Any]], int]:
        where, params = self._where(spec, query)
        self._check_column(spec, query.order_by)
        direction = "DESC" if query.descending else "ASC"

        sql = f"SELECT * FROM {spec.table}{where} ORDER BY {query.order_by} {direction}, id ASC"
        page_params = list(params)
        if query.limit is not None:
            sql += " LIMIT ? OFFSET ?"
            page_params.extend([query.limit, query.offset])

        with self._connection() as conn:
            total = conn.execute(
                f"SELECT COUNT(*) AS n FROM {spec.table}{where}", params
            ).fetchone()["n"]
            rows = conn.execute(sql, page_params).fetchall()
            return [self._decode(spec, r) for r in rows], total

    def insert(self, spec: ContentTypeSpec, row: dict[str, Any]) -> dict[str, Any]:
        columns = list(row)
        for column in columns:
            self._check_column(spec, column)
        with self._connection() as conn:
            conn.execute(
                f"INSERT INTO {spec.table} ({', '.join(columns)}) "
                f"VALUES ({_placeholders(len(columns))})",
                [self._encode(spec, c, row[c]) for c in columns],
            )
            saved = conn.execute(
                f"SELECT * FROM {spec.table} WHERE id = ?", (row["id"],)
            ).fetchone()
            return self._decode(spec, saved)

    def update(
        self, spec: ContentTypeSpec, item_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        columns = [c for c in changes if c != "id"]
        for column in columns:
            self._check_column(spec, column)
        with self._connection() as conn:
            if columns:
                cursor = conn.execute(
                    f"UPDATE {spec.table} SET {', '.join(f'{c} = ?' for c in columns)} "
                    "WHERE id = ?",
                    [self._encode(spec, c, changes[c]) for c in columns] + [item_id],
                )
                if cursor.rowcount == 0:
                    return None
            row = conn.execute(f"SELECT * FROM {spec.table} WHERE id = ?", (item_id,)).fetchone()
            return self._decode(spec, row) if row else None

    def delete(self, spec: ContentTypeSpec, item_id: str) -> bool:
        with self._connection() as conn:
            cursor = conn.execute(f"DELETE FROM {spec.table} WHERE id = ?", (item_id,))
            return cursor.rowcount > 0

    def existing_ids(self, spec: ContentTypeSpec, ids: Iterable[str]) -> set[str]:
        wanted = list(dict.fromkeys(ids))
        if not wanted:
            return set()
        with self._connection() as conn:
            rows = conn.execute(
                f"SELECT id FROM {spec.table} "
                f"WHERE id IN ({_placeholders(len(wanted))}) AND deleted_at IS NULL",
                wanted,
            ).fetchall()
            return {r["id"] for r in rows}

    # --- Junction tables ---

    def relation_ids(self, config: RelationshipConfig, content_id: str) -> set[str]:
        with self._connection() as conn:
            rows = conn.execute(
                f"SELECT {config.related_id_field} AS rid FROM {config.junction_table} "
                f"WHERE {config.content_id_field} = ?",
                (content_id,),
            ).fetchall()
            return {r["rid"] for r in rows}

    def owner_ids(self, config: RelationshipConfig, related_id: str) -> set[str]:
        with self._connection() as conn:
            rows = conn.execute(
                f"SELECT {config.content_id_field} AS cid FROM {config.junction_table} "
                f"WHERE {config.related_id_field} = ?",
                (related_id,),
            ).fetchall()
            return {r["cid"] for r in rows}

    def add_relations(
        self,
        config: RelationshipConfig,
        content_id: str,
        related_ids: Iterable[str],
        at: datetime,
    ) -> None:
        stamp = at.isoformat()
        with self._connection() as conn:
            conn.executemany(
                f"INSERT OR IGNORE INTO {config.junction_table} "
                f"({config.content_id_field}, {config.related_id_field}, created_at) "
                "VALUES (?, ?, ?)",
                [(content_id, rid, stamp) for rid in related_ids],
            )

    def remove_relations(
        self, config: RelationshipConfig, content_id: str, related_ids: Iterable[str]
    ) -> None:
        ids = list(related_ids)
        if not ids:
            return
        with self._connection() as conn:
            conn.execute(
                f"DELETE FROM {config.junction_table} WHERE {config.content_id_field} = ? "
                f"AND {config.related_id_field} IN ({_placeholders(len(ids))})",
                [content_id, *ids],
            )

    def clear_relations(self, config: RelationshipConfig, content_id: str) -> int:
        with self._connection() as conn:
            cursor = conn.execute(
                f"DELETE FROM {config.junction_table} WHERE {config.content_id_field} = ?",
                (content_id,),
            )
            return cursor.rowcount

    def related_items(
        self,
        config: RelationshipConfig,
        content_ids: list[str],
        published_only: bool,
    ) -> dict[str, list[dict[str, Any]]]:
        from src.core.content_types import get_content_type

        if not content_ids:
            return {}
        related = get_content_type(config.related_type)
        title = related.title_field
        sql = (
            f"SELECT j.{config.content_id_field} AS owner_id, r.id, r.slug, r.{title} "
            f"FROM {config.junction_table} j "
            f"JOIN {related.table} r ON r.id = j.{config.related_id_field} "
            f"WHERE j.{config.content_id_field} IN ({_placeholders(len(content_ids))}) "
            "AND r.deleted_at IS NULL"
        )
        if published_only:
            sql += " AND r.published = 1"
        sql += f" ORDER BY r.{title} ASC"

        grouped: dict[str, list[dict[str, Any]]] = {}
        with self._connection() as conn:
            for row in conn.execute(sql, content_ids).fetchall():
                owner = row.pop("owner_id")
                grouped.setdefault(owner, []).append(row)
        return grouped

    # --- Mapping ---

    def _where(self, spec: ContentTypeSpec, query: ListQuery) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []

        if query.deleted == "exclude":
            clauses.append("deleted_at IS NULL")
        elif query.deleted == "only":
            clauses.append("deleted_at IS NOT NULL")

        if query.published is not None:
            clauses.append("published = ?")
            params.append(1 if query.published else 0)

        for column, value in query.equals.items():
            self._check_column(spec, column)
            if value is None:
                clauses.append(f"{column} IS NULL")
            else:
                clauses.append(f"{column} = ?")
                params.append(self._encode(spec, column, value))

        for column, values in query.within.items():
            self._check_column(spec, column)
            if not values:
                clauses.append("0")
                continue
            clauses.append(f"{column} IN ({_placeholders(len(values))})")
            params.extend(self._encode(spec, column, v) for v in values)

        if query.search:
            pattern = f"%{_escape_like(query.search)}%"
            parts = [f"{c} LIKE ? ESCAPE '\\'" for c in spec.search_columns]
            clauses.append("(" + " OR ".join(parts) + ")")
            params.extend([pattern] * len(parts))

        where = " WHERE " + " AND ".join(clauses) if clauses else ""
        return where, params

    def _check_column(self, spec: ContentTypeSpec, column: str) -> None:
        if column not in spec.columns:
            raise ValueError(f"Unknown column {column!r} for {spec.table}")

    def _encode(self, spec: ContentTypeSpec, column: str, value: Any) -> Any:
        if value is None:
            return None
        if column in spec.json_columns:
            return json.dumps(value)
        if column in spec.bool_columns:
            return 1 if value else 0
        return value

    def _decode(self, spec: ContentTypeSpec, row: dict[str, Any]) -> dict[str, Any]:
        item = dict(row)
        for column in spec.json_columns:
            raw = item.get(column)
            item[column] = json.loads(raw) if raw else []
        for column in spec.bool_columns:
            item[column] = bool(item.get(column))
        return item


# -----------------------------------------------------------------------------
# Deletion Audit Repository
# -----------------------------------------------------------------------------


class SQLiteAuditRepo(SQLiteRepoBase):
    """SQLite implementation of AuditRepoPort (append-only)."""

    def save(self, entry: DeletionAuditEntry) -> DeletionAuditEntry:
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO deletion_audit_log (
                    id, content_type, content_id, content_name, action,
                    performed_by, performed_at, metadata
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(entry.id),
                    entry.content_type,
                    entry.content_id,
                    entry.content_name,
                    entry.action.value,
                    entry.performed_by,
                    entry.performed_at.isoformat(),
                    json.dumps(entry.metadata, default=str),
                ),
            )
        return entry

    def get_by_id(self, entry_id: UUID) -> DeletionAuditEntry | None:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM deletion_audit_log WHERE id = ?", (str(entry_id),)
            ).fetchone()
            return self._map_row(row) if row else None

    def query(self, query: AuditQuery) -> list[DeletionAuditEntry]:
        where, params = self._where(query)
        sql = f"SELECT * FROM deletion_audit_log{where} ORDER BY performed_at DESC, id ASC"
        if query.limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params.extend([query.limit, query.offset])
        elif query.offset:
            sql += " LIMIT -1 OFFSET ?"
            params.append(query.offset)
        with self._connection() as conn:
            return [self._map_row(r) for r in conn.execute(sql, params).fetchall()]

    def count(self, query: AuditQuery) -> int:
        where, params = self._where(query)
        with self._connection() as conn:
            return conn.execute(
                f"SELECT COUNT(*) AS n FROM deletion_audit_log{where}", params
            ).fetchone()["n"]

    def _where(self, query: AuditQuery) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []
        if query.content_type:
            clauses.append("content_type = ?")
            params.append(query.content_type)
        if query.content_id:
            clauses.append("content_id = ?")
            params.append(query.content_id)
        if query.action:
            clauses.append("action = ?")
            params.append(query.action.value)
        if query.performed_by:
            clauses.append("performed_by = ?")
            params.append(query.performed_by)
        if query.start_time:
            clauses.append("performed_at >= ?")
            params.append(query.start_time.isoformat())
        if query.end_time:
            clauses.append("performed_at <= ?")
            params.append(query.end_time.isoformat())
        where = " WHERE " + " AND ".join(clauses) if clauses else ""
        return where, params

    def _map_row(self, row: dict[str, Any]) -> DeletionAuditEntry:
        return DeletionAuditEntry(
            id=UUID(row["id"]),
            content_type=row["content_type"],
            content_id=row["content_id"],
            content_name=row["content_name"],
            action=DeletionAction(row["action"]),
            performed_by=row["performed_by"],
            performed_at=datetime.fromisoformat(row["performed_at"]),
            metadata=json.loads(row["metadata"]) if row["metadata"] else {},
        )


# -----------------------------------------------------------------------------
# Newsletter Subscription Repository
# -----------------------------------------------------------------------------


class SQLiteNewsletterRepo(SQLiteRepoBase):
    """SQLite implementation of NewsletterRepoPort."""

    def get_by_email(self, email: str) -> NewsletterSubscription | None:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM newsletter_subscriptions WHERE email = ?", (email,)
            ).fetchone()
            return self._map_row(row) if row else None

    def get_by_unsubscribe_token(self, token: str) -> NewsletterSubscription | None:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM newsletter_subscriptions WHERE unsubscribe_token = ?", (token,)
            ).fetchone()
            return self._map_row(row) if row else None

    def save(self, subscription: NewsletterSubscription) -> NewsletterSubscription:
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO newsletter_subscriptions (
                    id, email, status, unsubscribe_token, source, metadata,
                    subscribed_at, unsubscribed_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    status = excluded.status,
                    source = excluded.source,
                    metadata = excluded.metadata,
                    subscribed_at = excluded.subscribed_at,
                    unsubscribed_at = excluded.unsubscribed_at
                """,
                (
                    str(subscription.id),
                    subscription.email,
                    subscription.status.value,
                    subscription.unsubscribe_token,
                    subscription.source,
                    json.dumps(subscription.metadata),
                    subscription.subscribed_at.isoformat(),
                    subscription.unsubscribed_at.isoformat()
                    if subscription.unsubscribed_at
                    else None,
                ),
            )
        return subscription

    def _map_row(self, row: dict[str, Any]) -> NewsletterSubscription:
        return NewsletterSubscription(
            id=UUID(row["id"]),
            email=row["email"],
            unsubscribe_token=row["unsubscribe_token"],
            subscribed_at=datetime.fromisoformat(row["subscribed_at"]),
            status=SubscriptionStatus(row["status"]),
            source=row["source"],
            metadata=json.loads(row["metadata"]) if row["metadata"] else {},
            unsubscribed_at=parse_dt(row["unsubscribed_at"]),
        )


# -----------------------------------------------------------------------------
# Shared Rate Limit Counters
# -----------------------------------------------------------------------------


class SQLiteCounterBackend(SQLiteRepoBase):
    """Rate-limit counters shared by every process using the database file."""

    def hit(self, key: str, limit: int, window_ms: int, now_ms: int) -> RateLimitResult:
        with self._connection() as conn:
            if not conn.in_transaction:
                conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT count, reset_at_ms FROM rate_limit_counters WHERE key = ?", (key,)
            ).fetchone()
            current = CounterEntry(row["count"], row["reset_at_ms"]) if row else None
            entry, result = apply_window(current, limit, window_ms, now_ms)
            conn.execute(
                """
                INSERT INTO rate_limit_counters (key, count, reset_at_ms) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    count = excluded.count,
                    reset_at_ms = excluded.reset_at_ms
                """,
                (key, entry.count, entry.reset_at_ms),
            )
            return result

    def cleanup(self, now_ms: int) -> int:
        with self._connection() as conn:
            cursor = conn.execute(
                "DELETE FROM rate_limit_counters WHERE reset_at_ms < ?", (now_ms,)
            )
            removed = cursor.rowcount
        if removed:
            logger.debug("Removed %d expired rate limit counters", removed)
        return removed
