"""Persistence for tax-year settings and member tax records.

Each store comes in two flavours: a thread-safe in-memory implementation used
by tests and previews, and a SQLite implementation for deployments. Both keep
the uniqueness keys of the portal schema, (tenant, year) for settings and
(tenant, member, year) for records, and both are last-write-wins.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import closing, contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from itertools import count
from threading import Lock
from typing import Protocol

from templetax.backend.app.errors import StorageUnavailable
from templetax.backend.app.models import (
    MemberTaxRecord,
    RegistrationQuery,
    TaxRecordInput,
    TaxSettingInput,
    TaxYearSetting,
)
from templetax.backend.app.services.calculators import outstanding_balance
from templetax.backend.config.schema import PortalSettings, SeedTaxSetting

_LOGGER = logging.getLogger(__name__)


def _escape_like(text: str) -> str:
    """Escape LIKE wildcards so search text only matches literally."""

    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PolicyStore(Protocol):
    """Tax-year settings of every tenant."""

    def list_settings(
        self, tenant_id: int, *, active_only: bool = False, descending: bool = False
    ) -> list[TaxYearSetting]: ...

    def get_active_setting(self, tenant_id: int, year: int) -> TaxYearSetting | None: ...

    def upsert_setting(
        self, tenant_id: int, data: TaxSettingInput
    ) -> tuple[TaxYearSetting, bool]: ...

    def bulk_set_include_previous_years(self, tenant_id: int, flag: bool) -> int: ...

    def delete_setting(self, tenant_id: int, setting_id: int) -> None: ...


class LedgerStore(Protocol):
    """Per-year tax registrations and payments of members."""

    def member_records(
        self, tenant_id: int, member_identifier: str
    ) -> dict[int, MemberTaxRecord]: ...

    def upsert_record(
        self, tenant_id: int, data: TaxRecordInput
    ) -> tuple[MemberTaxRecord, bool]: ...

    def record_payment(
        self, tenant_id: int, record_id: int, amount: Decimal
    ) -> MemberTaxRecord: ...

    def list_records(
        self, tenant_id: int, query: RegistrationQuery
    ) -> tuple[list[MemberTaxRecord], int]: ...


class InMemoryPolicyStore:
    """Thread-safe in-memory storage for tax-year settings."""

    def __init__(self) -> None:
        self._settings: dict[tuple[int, int], TaxYearSetting] = {}
        self._ids = count(1)
        self._lock = Lock()

    def list_settings(
        self, tenant_id: int, *, active_only: bool = False, descending: bool = False
    ) -> list[TaxYearSetting]:
        with self._lock:
            settings = [
                setting
                for (tenant, _), setting in self._settings.items()
                if tenant == tenant_id and (setting.is_active or not active_only)
            ]
        return sorted(settings, key=lambda setting: setting.year, reverse=descending)

    def get_active_setting(self, tenant_id: int, year: int) -> TaxYearSetting | None:
        with self._lock:
            setting = self._settings.get((tenant_id, year))
        if setting is None or not setting.is_active:
            return None
        return setting

    def upsert_setting(
        self, tenant_id: int, data: TaxSettingInput
    ) -> tuple[TaxYearSetting, bool]:
        key = (tenant_id, data.year)
        with self._lock:
            existing = self._settings.get(key)
            setting = TaxYearSetting(
                id=existing.id if existing is not None else next(self._ids),
                tenant_id=tenant_id,
                year=data.year,
                tax_amount=data.tax_amount,
                is_active=data.is_active,
                include_previous_years=data.include_previous_years,
                description=data.description,
            )
            self._settings[key] = setting
        return setting, existing is None

    def bulk_set_include_previous_years(self, tenant_id: int, flag: bool) -> int:
        with self._lock:
            keys = [key for key in self._settings if key[0] == tenant_id]
            for key in keys:
                self._settings[key] = self._settings[key].model_copy(
                    update={"include_previous_years": flag}
                )
        return len(keys)

    def delete_setting(self, tenant_id: int, setting_id: int) -> None:
        with self._lock:
            for key, setting in self._settings.items():
                if key[0] == tenant_id and setting.id == setting_id:
                    del self._settings[key]
                    return
        raise KeyError(setting_id)


class InMemoryLedgerStore:
    """Thread-safe in-memory storage for member tax records."""

    def __init__(self) -> None:
        self._records: dict[tuple[int, str, int], MemberTaxRecord] = {}
        self._ids = count(1)
        self._lock = Lock()

    def member_records(
        self, tenant_id: int, member_identifier: str
    ) -> dict[int, MemberTaxRecord]:
        with self._lock:
            return {
                year: record
                for (tenant, member, year), record in self._records.items()
                if tenant == tenant_id and member == member_identifier
            }

    def upsert_record(
        self, tenant_id: int, data: TaxRecordInput
    ) -> tuple[MemberTaxRecord, bool]:
        key = (tenant_id, data.member_identifier, data.year)
        with self._lock:
            existing = self._records.get(key)
            name = data.name if data.name is not None else getattr(existing, "name", None)
            record = MemberTaxRecord(
                id=existing.id if existing is not None else next(self._ids),
                tenant_id=tenant_id,
                member_identifier=data.member_identifier,
                name=name,
                year=data.year,
                tax_amount=data.tax_amount,
                amount_paid=data.amount_paid,
                outstanding_amount=outstanding_balance(data.tax_amount, data.amount_paid),
            )
            self._records[key] = record
        return record, existing is None

    def record_payment(
        self, tenant_id: int, record_id: int, amount: Decimal
    ) -> MemberTaxRecord:
        with self._lock:
            for key, record in self._records.items():
                if key[0] == tenant_id and record.id == record_id:
                    amount_paid = record.amount_paid + amount
                    updated = record.model_copy(
                        update={
                            "amount_paid": amount_paid,
                            "outstanding_amount": outstanding_balance(
                                record.tax_amount, amount_paid
                            ),
                        }
                    )
                    self._records[key] = updated
                    return updated
        raise KeyError(record_id)

    def list_records(
        self, tenant_id: int, query: RegistrationQuery
    ) -> tuple[list[MemberTaxRecord], int]:
        needle = query.search.lower()
        with self._lock:
            matches = [
                record
                for record in self._records.values()
                if record.tenant_id == tenant_id
                and (
                    not needle
                    or needle in record.member_identifier.lower()
                    or needle in (record.name or "").lower()
                )
                and (not query.pending or record.outstanding_amount > 0)
            ]
        matches.sort(key=lambda record: record.id or 0, reverse=True)
        page = matches[query.offset : query.offset + query.page_size]
        return page, len(matches)


class _SQLiteStore:
    """Connection handling shared by the SQLite-backed stores."""

    def __init__(self, path: str | os.PathLike[str], *, timeout_seconds: float = 5.0) -> None:
        self._path = str(path)
        self._timeout = timeout_seconds
        self._lock = Lock()
        with self._transaction("initialise the schema") as connection:
            self._initialise(connection)

    def _initialise(self, connection: sqlite3.Connection) -> None:
        raise NotImplementedError

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(
            self._path,
            timeout=self._timeout,
            check_same_thread=False,
        )
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA journal_mode=WAL")
        connection.execute("PRAGMA synchronous=NORMAL")
        return connection

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[sqlite3.Connection]:
        """Yield a connection that commits on success and maps driver errors."""

        try:
            with self._lock, closing(self._connect()) as connection:
                with connection:
                    yield connection
        except sqlite3.Error as exc:
            _LOGGER.error("SQLite failure while trying to %s", operation, exc_info=True)
            raise StorageUnavailable(operation) from exc

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()


class SQLitePolicyStore(_SQLiteStore):
    """SQLite-backed tax-year settings."""

    def _initialise(self, connection: sqlite3.Connection) -> None:
        connection.execute(
            """
            CREATE TABLE IF NOT EXISTS tax_settings (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                temple_id INTEGER NOT NULL,
                year INTEGER NOT NULL,
                tax_amount TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                is_active INTEGER NOT NULL DEFAULT 1,
                include_previous_years INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                UNIQUE (temple_id, year)
            )
            """
        )

    @staticmethod
    def _decode(row: sqlite3.Row) -> TaxYearSetting:
        return TaxYearSetting(
            id=row["id"],
            tenant_id=row["temple_id"],
            year=row["year"],
            tax_amount=row["tax_amount"],
            is_active=bool(row["is_active"]),
            include_previous_years=bool(row["include_previous_years"]),
            description=row["description"] or "",
        )

    def list_settings(
        self, tenant_id: int, *, active_only: bool = False, descending: bool = False
    ) -> list[TaxYearSetting]:
        sql = "SELECT * FROM tax_settings WHERE temple_id = ?"
        if active_only:
            sql += " AND is_active = 1"
        sql += " ORDER BY year DESC" if descending else " ORDER BY year ASC"
        with self._transaction("list tax settings") as connection:
            rows = connection.execute(sql, (tenant_id,)).fetchall()
        return [self._decode(row) for row in rows]

    def get_active_setting(self, tenant_id: int, year: int) -> TaxYearSetting | None:
        with self._transaction("fetch a tax setting") as connection:
            row = connection.execute(
                "SELECT * FROM tax_settings WHERE temple_id = ? AND year = ? AND is_active = 1",
                (tenant_id, year),
            ).fetchone()
        return self._decode(row) if row is not None else None

    def upsert_setting(
        self, tenant_id: int, data: TaxSettingInput
    ) -> tuple[TaxYearSetting, bool]:
        now = self._now()
        with self._transaction("save a tax setting") as connection:
            existing = connection.execute(
                "SELECT id FROM tax_settings WHERE temple_id = ? AND year = ?",
                (tenant_id, data.year),
            ).fetchone()
            values = (
                str(data.tax_amount),
                data.description,
                int(data.is_active),
                int(data.include_previous_years),
                now,
            )
            if existing is None:
                connection.execute(
                    "INSERT INTO tax_settings (tax_amount, description, is_active,"
                    " include_previous_years, updated_at, created_at, temple_id, year)"
                    " VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (*values, now, tenant_id, data.year),
                )
            else:
                connection.execute(
                    "UPDATE tax_settings SET tax_amount = ?, description = ?, is_active = ?,"
                    " include_previous_years = ?, updated_at = ? WHERE id = ?",
                    (*values, existing["id"]),
                )
            row = connection.execute(
                "SELECT * FROM tax_settings WHERE temple_id = ? AND year = ?",
                (tenant_id, data.year),
            ).fetchone()
        return self._decode(row), existing is None

    def bulk_set_include_previous_years(self, tenant_id: int, flag: bool) -> int:
        with self._transaction("update tax settings") as connection:
            cursor = connection.execute(
                "UPDATE tax_settings SET include_previous_years = ?, updated_at = ?"
                " WHERE temple_id = ?",
                (int(flag), self._now(), tenant_id),
            )
        return cursor.rowcount

    def delete_setting(self, tenant_id: int, setting_id: int) -> None:
        with self._transaction("delete a tax setting") as connection:
            cursor = connection.execute(
                "DELETE FROM tax_settings WHERE id = ? AND temple_id = ?",
                (setting_id, tenant_id),
            )
        if cursor.rowcount == 0:
            raise KeyError(setting_id)


class SQLiteLedgerStore(_SQLiteStore):
    """SQLite-backed member tax records."""

    def _initialise(self, connection: sqlite3.Connection) -> None:
        connection.execute(
            """
            CREATE TABLE IF NOT EXISTS user_tax_registrations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                temple_id INTEGER NOT NULL,
                mobile_number TEXT NOT NULL,
                name TEXT,
                year INTEGER NOT NULL,
                tax_amount TEXT NOT NULL DEFAULT '0.00',
                amount_paid TEXT NOT NULL DEFAULT '0.00',
                outstanding_amount TEXT NOT NULL DEFAULT '0.00',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                UNIQUE (temple_id, mobile_number, year)
            )
            """
        )

    @staticmethod
    def _decode(row: sqlite3.Row) -> MemberTaxRecord:
        return MemberTaxRecord(
            id=row["id"],
            tenant_id=row["temple_id"],
            member_identifier=row["mobile_number"],
            name=row["name"],
            year=row["year"],
            tax_amount=row["tax_amount"],
            amount_paid=row["amount_paid"],
            outstanding_amount=row["outstanding_amount"],
        )

    def member_records(
        self, tenant_id: int, member_identifier: str
    ) -> dict[int, MemberTaxRecord]:
        with self._transaction("fetch member tax records") as connection:
            rows = connection.execute(
                "SELECT * FROM user_tax_registrations"
                " WHERE temple_id = ? AND mobile_number = ? ORDER BY year ASC",
                (tenant_id, member_identifier),
            ).fetchall()
        return {row["year"]: self._decode(row) for row in rows}

    def upsert_record(
        self, tenant_id: int, data: TaxRecordInput
    ) -> tuple[MemberTaxRecord, bool]:
        now = self._now()
        outstanding = outstanding_balance(data.tax_amount, data.amount_paid)
        with self._transaction("save a tax registration") as connection:
            existing = connection.execute(
                "SELECT id FROM user_tax_registrations"
                " WHERE temple_id = ? AND mobile_number = ? AND year = ?",
                (tenant_id, data.member_identifier, data.year),
            ).fetchone()
            if existing is None:
                cursor = connection.execute(
                    "INSERT INTO user_tax_registrations (temple_id, mobile_number, name, year,"
                    " tax_amount, amount_paid, outstanding_amount, created_at, updated_at)"
                    " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        tenant_id,
                        data.member_identifier,
                        data.name,
                        data.year,
                        str(data.tax_amount),
                        str(data.amount_paid),
                        str(outstanding),
                        now,
                        now,
                    ),
                )
                record_id = cursor.lastrowid
            else:
                record_id = existing["id"]
                connection.execute(
                    "UPDATE user_tax_registrations SET name = COALESCE(?, name),"
                    " tax_amount = ?, amount_paid = ?, outstanding_amount = ?, updated_at = ?"
                    " WHERE id = ?",
                    (
                        data.name,
                        str(data.tax_amount),
                        str(data.amount_paid),
                        str(outstanding),
                        now,
                        record_id,
                    ),
                )
            row = connection.execute(
                "SELECT * FROM user_tax_registrations WHERE id = ?", (record_id,)
            ).fetchone()
        return self._decode(row), existing is None

    def record_payment(
        self, tenant_id: int, record_id: int, amount: Decimal
    ) -> MemberTaxRecord:
        with self._transaction("record a tax payment") as connection:
            row = connection.execute(
                "SELECT * FROM user_tax_registrations WHERE id = ? AND temple_id = ?",
                (record_id, tenant_id),
            ).fetchone()
            if row is None:
                raise KeyError(record_id)
            record = self._decode(row)
            amount_paid = record.amount_paid + amount
            outstanding = outstanding_balance(record.tax_amount, amount_paid)
            connection.execute(
                "UPDATE user_tax_registrations SET amount_paid = ?, outstanding_amount = ?,"
                " updated_at = ? WHERE id = ?",
                (str(amount_paid), str(outstanding), self._now(), record_id),
            )
        return record.model_copy(
            update={"amount_paid": amount_paid, "outstanding_amount": outstanding}
        )

    def list_records(
        self, tenant_id: int, query: RegistrationQuery
    ) -> tuple[list[MemberTaxRecord], int]:
        clauses = ["temple_id = ?"]
        params: list[object] = [tenant_id]
        if query.search:
            pattern = f"%{_escape_like(query.search)}%"
            clauses.append(
                "(mobile_number LIKE ? ESCAPE '\\' OR name LIKE ? ESCAPE '\\')"
            )
            params.extend([pattern, pattern])
        if query.pending:
            clauses.append("CAST(outstanding_amount AS REAL) > 0")
        where = " AND ".join(clauses)

        with self._transaction("list tax registrations") as connection:
            total = connection.execute(
                f"SELECT COUNT(*) FROM user_tax_registrations WHERE {where}", params
            ).fetchone()[0]
            rows = connection.execute(
                f"SELECT * FROM user_tax_registrations WHERE {where}"
                " ORDER BY id DESC LIMIT ? OFFSET ?",
                [*params, query.page_size, query.offset],
            ).fetchall()
        return [self._decode(row) for row in rows], int(total)


@dataclass(frozen=True)
class PortalStores:
    """The pair of stores a running application reads from."""

    policy: PolicyStore
    ledger: LedgerStore


def build_stores(settings: PortalSettings) -> PortalStores:
    """Select SQLite stores when a database path is configured, else in-memory."""

    database = settings.storage.database
    if database:
        path = os.path.expanduser(database)
        timeout = settings.storage.timeout_seconds
        _LOGGER.info("Using SQLite stores at %s", path)
        return PortalStores(
            policy=SQLitePolicyStore(path, timeout_seconds=timeout),
            ledger=SQLiteLedgerStore(path, timeout_seconds=timeout),
        )

    return PortalStores(policy=InMemoryPolicyStore(), ledger=InMemoryLedgerStore())


def seed_tax_settings(
    store: PolicyStore, tenant_id: int, entries: Iterable[SeedTaxSetting]
) -> int:
    """Insert ``entries`` for years the tenant has not configured yet."""

    existing_years = {setting.year for setting in store.list_settings(tenant_id)}
    inserted = 0
    for entry in entries:
        if entry.year in existing_years:
            continue
        store.upsert_setting(
            tenant_id,
            TaxSettingInput(
                year=entry.year,
                tax_amount=entry.tax_amount,
                description=entry.description,
                is_active=entry.is_active,
                include_previous_years=entry.include_previous_years,
            ),
        )
        inserted += 1
        _LOGGER.info("Seeded tax setting for tenant %s year %s", tenant_id, entry.year)
    return inserted


__all__ = [
    "InMemoryLedgerStore",
    "InMemoryPolicyStore",
    "LedgerStore",
    "PolicyStore",
    "PortalStores",
    "SQLiteLedgerStore",
    "SQLitePolicyStore",
    "build_stores",
    "seed_tax_settings",
]
