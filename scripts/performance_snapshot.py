#!/usr/bin/env python3
"""Collect baseline timings for the cumulative liability calculation."""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from time import perf_counter

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from templetax.backend.app.models import MemberTaxRecord, TaxYearSetting  # noqa: E402
from templetax.backend.app.services.calculators import calculate_liability  # noqa: E402

REFERENCE_YEAR = 2025
FIRST_YEAR = 1975


def sample_inputs() -> tuple[list[TaxYearSetting], dict[int, MemberTaxRecord]]:
    """Fifty years of settings and a member registered every other year."""

    settings = [
        TaxYearSetting(
            tenant_id=1,
            year=year,
            tax_amount=100 + (year - FIRST_YEAR) * 10,
            include_previous_years=year % 3 == 0,
        )
        for year in range(FIRST_YEAR, REFERENCE_YEAR + 1)
    ]
    records = {
        year: MemberTaxRecord(
            tenant_id=1,
            member_identifier="9000000000",
            year=year,
            tax_amount=100 + (year - FIRST_YEAR) * 10,
            amount_paid=50,
        )
        for year in range(FIRST_YEAR, REFERENCE_YEAR, 2)
    }
    return settings, records


def measure(iterations: int) -> dict[str, float]:
    """Return timing statistics for repeated liability calculations."""

    settings, records = sample_inputs()
    calculate_liability(settings, records, REFERENCE_YEAR)  # Warm up
    start = perf_counter()
    for _ in range(iterations):
        calculate_liability(settings, records, REFERENCE_YEAR)
    elapsed = perf_counter() - start
    return {
        "iterations": iterations,
        "years": len(settings),
        "total_ms": elapsed * 1000,
        "average_ms": (elapsed / iterations) * 1000,
    }


def main() -> None:
    iterations = int(os.getenv("TEMPLETAX_PROFILE_ITERATIONS", "500"))
    print(json.dumps({"liability": measure(iterations)}, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
