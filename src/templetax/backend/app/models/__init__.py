"""Typed models shared by the stores, services and HTTP routes.

Domain values (settings, records, reports) are frozen Pydantic models so the
liability calculator can fold over them without defensive copies. Request
bodies live in :mod:`.api` and are validated once at the HTTP boundary.
"""

from .api import (
    MAX_YEAR,
    MIN_YEAR,
    BulkToggleInput,
    PaymentInput,
    RegistrationQuery,
    TaxRecordInput,
    TaxSettingInput,
    format_validation_error,
)
from .domain import (
    CENT,
    ZERO,
    BreakdownRow,
    BreakdownStatus,
    LiabilityReport,
    LiabilitySnapshot,
    MemberTaxRecord,
    Money,
    TaxYearSetting,
    to_money,
)

__all__ = [
    "BreakdownRow",
    "BreakdownStatus",
    "BulkToggleInput",
    "CENT",
    "LiabilityReport",
    "LiabilitySnapshot",
    "MAX_YEAR",
    "MIN_YEAR",
    "MemberTaxRecord",
    "Money",
    "PaymentInput",
    "RegistrationQuery",
    "TaxRecordInput",
    "TaxSettingInput",
    "TaxYearSetting",
    "ZERO",
    "format_validation_error",
    "to_money",
]
