"""Orchestrate store reads and the cumulative liability calculation.

The service reads the tenant's active tax settings and the member's records
into a :class:`LiabilitySnapshot` and hands it to the pure calculator. The two
reads are independent: an administrator saving a setting in between can yield
a report whose policy and ledger halves were read at different moments. Callers
needing a single consistent view must wrap both reads in one transaction.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from time import perf_counter

from templetax.backend.app.models import (
    LiabilityReport,
    LiabilitySnapshot,
    TaxYearSetting,
)

from .calculators import calculate_snapshot_liability
from .stores import LedgerStore, PolicyStore

_LOGGER = logging.getLogger(__name__)


def _profiling_enabled() -> bool:
    """Return ``True`` when calculation profiling should be captured."""

    flag = os.getenv("TEMPLETAX_PROFILE_CALCULATIONS", "")
    return flag.strip().lower() in {"1", "true", "yes", "on"}


@contextmanager
def _profile_section(name: str, store: dict[str, float] | None):
    """Capture the duration of a named section when profiling is enabled."""

    if store is None:
        yield
        return

    start = perf_counter()
    try:
        yield
    finally:
        store[name] = perf_counter() - start


def fetch_snapshot(
    policy_store: PolicyStore,
    ledger_store: LedgerStore,
    tenant_id: int,
    member_identifier: str,
) -> LiabilitySnapshot:
    """Read the tenant's active settings and the member's records."""

    settings = policy_store.list_settings(tenant_id, active_only=True)
    records = ledger_store.member_records(tenant_id, member_identifier)
    return LiabilitySnapshot(settings=tuple(settings), records=records)


def compute_cumulative_liability(
    policy_store: PolicyStore,
    ledger_store: LedgerStore,
    tenant_id: int,
    member_identifier: str,
    reference_year: int,
) -> LiabilityReport:
    """Return the member's liability up to and including ``reference_year``.

    Store failures propagate unchanged and no partial report is produced.
    """

    timings: dict[str, float] | None = {} if _profiling_enabled() else None

    with _profile_section("snapshot", timings):
        snapshot = fetch_snapshot(policy_store, ledger_store, tenant_id, member_identifier)

    with _profile_section("calculation", timings):
        report = calculate_snapshot_liability(snapshot, reference_year)

    if timings is not None:
        _LOGGER.debug(
            "compute_cumulative_liability timings (ms): %s",
            {name: round(duration * 1000, 3) for name, duration in timings.items()},
        )

    return report


def list_active_setting(
    policy_store: PolicyStore, tenant_id: int, year: int
) -> TaxYearSetting | None:
    return policy_store.get_active_setting(tenant_id, year)


def bulk_set_include_previous_years(
    policy_store: PolicyStore, tenant_id: int, flag: bool
) -> int:
    """Overwrite the backdating flag on every tax year of the tenant."""

    updated = policy_store.bulk_set_include_previous_years(tenant_id, flag)
    _LOGGER.info(
        "Set include_previous_years=%s on %d tax setting(s) for tenant %s",
        flag,
        updated,
        tenant_id,
    )
    return updated


__all__ = [
    "bulk_set_include_previous_years",
    "compute_cumulative_liability",
    "fetch_snapshot",
    "list_active_setting",
]
