"""Domain exception hierarchy for Small Business Ledger.

All domain-specific exceptions inherit from SmallBusinessLedgerError.
The invoice lifecycle reports failures as result objects carrying one of
the ``error_code`` values below; ``StatusChangeResult.raise_for_error``
turns such a result into the matching exception. VAT period derivation
raises these exceptions directly.
"""

from typing import Any


class SmallBusinessLedgerError(Exception):
    """Base exception for all Small Business Ledger errors.

    Includes an error_code for API responses and extra context.
    """

    error_code: str = "SBL_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        if status_code:
            self.status_code = status_code
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Invoice Status Errors
# =============================================================================


class InvoiceStatusError(SmallBusinessLedgerError):
    """Base exception for invoice status change errors."""

    error_code = "INVOICE_STATUS_ERROR"
    status_code = 400


class InvalidStatusError(InvoiceStatusError):
    """Raised when a status is not a member of InvoiceStatus."""

    error_code = "INVALID_STATUS"


class IllegalTransitionError(InvoiceStatusError):
    """Raised when the target status is not reachable from the current one."""

    error_code = "ILLEGAL_TRANSITION"
    status_code = 409


class InvalidEventError(InvoiceStatusError):
    """Raised when an event name is not recognised."""

    error_code = "INVALID_EVENT"


class EventNotAllowedFromStatusError(InvoiceStatusError):
    """Raised when an event cannot be triggered from the current status."""

    error_code = "EVENT_NOT_ALLOWED_FROM_STATUS"
    status_code = 409


class InvalidPaymentDetailsError(InvoiceStatusError):
    """Raised when payment details fail field-level validation."""

    error_code = "INVALID_PAYMENT_DETAILS"
    status_code = 422

    def __init__(self, message: str, errors: dict[str, str]) -> None:
        super().__init__(message, context={"validation_errors": dict(errors)})
        self.errors = dict(errors)


INVOICE_ERRORS_BY_CODE: dict[str, type[InvoiceStatusError]] = {
    cls.error_code: cls
    for cls in (
        InvalidStatusError,
        IllegalTransitionError,
        InvalidEventError,
        EventNotAllowedFromStatusError,
    )
}


# =============================================================================
# VAT Report Errors
# =============================================================================


class VatReportError(SmallBusinessLedgerError, ValueError):
    """Base exception for VAT summary period errors."""

    error_code = "VAT_REPORT_ERROR"
    status_code = 400


class InvalidDateRangeError(VatReportError):
    """Raised when a report is requested for a malformed or inverted range."""

    error_code = "INVALID_DATE_RANGE"

    def __init__(self, start_date: str, end_date: str, reason: str) -> None:
        super().__init__(
            reason,
            context={"start_date": str(start_date), "end_date": str(end_date)},
        )


class InvalidQuarterError(VatReportError):
    """Raised when a quarter outside 1-4 is requested."""

    error_code = "INVALID_QUARTER"

    def __init__(self, quarter: Any) -> None:
        super().__init__(
            "Invalid quarter. Must be 1, 2, 3, or 4.",
            context={"quarter": quarter},
        )


class InvalidMonthError(VatReportError):
    """Raised when a month outside 1-12 is requested."""

    error_code = "INVALID_MONTH"

    def __init__(self, month: Any) -> None:
        super().__init__(
            "Invalid month. Must be between 1 and 12.",
            context={"month": month},
        )


class InvalidTaxYearError(VatReportError):
    """Raised when a tax year label is not of the form YYYY-YY."""

    error_code = "INVALID_TAX_YEAR"

    def __init__(self, tax_year: str, reason: str) -> None:
        super().__init__(reason, context={"tax_year": tax_year})
