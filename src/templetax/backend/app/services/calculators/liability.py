"""Cumulative tax liability of a member across the configured tax years.

The calculation is a single fold over the tenant's active settings in ascending
year order. Past years contribute what the member still owes on their own
registration, or, for a member who has not registered for the reference year
yet, the full amount of any year whose setting opts into backdating. The
reference year contributes its configured amount; later years are ignored.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from decimal import Decimal
from functools import partial, reduce

from templetax.backend.app.models import (
    ZERO,
    BreakdownRow,
    BreakdownStatus,
    LiabilityReport,
    LiabilitySnapshot,
    MemberTaxRecord,
    TaxYearSetting,
)

from .utils import outstanding_balance, round_currency


@dataclass(frozen=True)
class _FoldContext:
    records: Mapping[int, MemberTaxRecord]
    reference_year: int
    backdating_allowed: bool


@dataclass(frozen=True)
class _FoldState:
    cumulative_outstanding: Decimal = ZERO
    current_year_tax: Decimal = ZERO
    joining_year: int | None = None
    rows: tuple[BreakdownRow, ...] = ()
    seen_years: frozenset[int] = frozenset()


def _record_row(record: MemberTaxRecord, status: BreakdownStatus) -> BreakdownRow:
    return BreakdownRow(
        year=record.year,
        tax_amount=record.tax_amount,
        amount_paid=record.amount_paid,
        outstanding=outstanding_balance(record.tax_amount, record.amount_paid),
        status=status,
    )


def _setting_row(setting: TaxYearSetting, status: BreakdownStatus) -> BreakdownRow:
    return BreakdownRow(
        year=setting.year,
        tax_amount=setting.tax_amount,
        amount_paid=ZERO,
        outstanding=setting.tax_amount,
        status=status,
    )


def _past_year_row(
    setting: TaxYearSetting, context: _FoldContext
) -> BreakdownRow | None:
    record = context.records.get(setting.year)
    if record is not None:
        return _record_row(record, BreakdownStatus.REGISTERED)
    if context.backdating_allowed and setting.include_previous_years:
        return _setting_row(setting, BreakdownStatus.NEW_REGISTRATION_PREVIOUS_YEAR)
    return None


def _current_year_row(setting: TaxYearSetting, context: _FoldContext) -> BreakdownRow:
    record = context.records.get(setting.year)
    if record is not None:
        return _record_row(record, BreakdownStatus.CURRENT_REGISTERED)
    return _setting_row(setting, BreakdownStatus.CURRENT_NEW)


def _advance(
    state: _FoldState, setting: TaxYearSetting, *, context: _FoldContext
) -> _FoldState:
    year = setting.year

    # Duplicate years break the store's uniqueness invariant; the first row wins.
    if year in state.seen_years or year > context.reference_year:
        return state
    seen_years = state.seen_years | {year}

    if year < context.reference_year:
        row = _past_year_row(setting, context)
        if row is None:
            return replace(state, seen_years=seen_years)
        joining_year = year if state.joining_year is None else min(state.joining_year, year)
        return replace(
            state,
            cumulative_outstanding=state.cumulative_outstanding + row.outstanding,
            joining_year=joining_year,
            rows=state.rows + (row,),
            seen_years=seen_years,
        )

    row = _current_year_row(setting, context)
    return replace(
        state,
        current_year_tax=setting.tax_amount,
        joining_year=year if state.joining_year is None else state.joining_year,
        rows=state.rows + (row,),
        seen_years=seen_years,
    )


def calculate_liability(
    settings: Iterable[TaxYearSetting],
    records: Mapping[int, MemberTaxRecord],
    reference_year: int,
) -> LiabilityReport:
    """Return the liability report of one member for ``reference_year``.

    ``settings`` must hold the tenant's active rows in ascending year order and
    ``records`` the member's registrations keyed by year. Neither is mutated.
    """

    is_new_user = not records
    context = _FoldContext(
        records=records,
        reference_year=reference_year,
        backdating_allowed=reference_year not in records,
    )

    state = reduce(partial(_advance, context=context), settings, _FoldState())

    cumulative_outstanding = round_currency(state.cumulative_outstanding)
    current_year_tax = round_currency(state.current_year_tax)

    return LiabilityReport(
        cumulative_outstanding=cumulative_outstanding,
        current_year_tax=current_year_tax,
        total_tax_due=cumulative_outstanding + current_year_tax,
        year_breakdown=state.rows,
        has_existing_registration=not is_new_user,
        is_new_user=is_new_user,
        joining_year=state.joining_year if state.joining_year is not None else reference_year,
    )


def calculate_snapshot_liability(
    snapshot: LiabilitySnapshot, reference_year: int
) -> LiabilityReport:
    """Run :func:`calculate_liability` over a snapshot read from the stores."""

    return calculate_liability(snapshot.settings, snapshot.records, reference_year)


__all__ = ["calculate_liability", "calculate_snapshot_liability"]
