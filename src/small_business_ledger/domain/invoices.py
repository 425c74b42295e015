"""Invoice status state machine.

Decides whether an invoice status change is legal and which derived fields
(timestamps, payment details) the caller should write onto the invoice.
Nothing here reads or writes storage: the caller persists ``data`` from a
successful StatusChangeResult and treats a failed result as a no-op.

    draft -> pending | cancelled
    pending -> paid | overdue | cancelled
    overdue -> paid | cancelled
    paid -> refunded
    cancelled, refunded: terminal

``overdue`` is never entered automatically; a scheduler outside this module
triggers ``mark_overdue``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

from dateutil.parser import isoparse  # type: ignore[import-untyped]

from small_business_ledger.domain.value_objects import (
    InvoiceEvent,
    InvoiceStatus,
    PaymentMethod,
)
from small_business_ledger.exceptions import (
    INVOICE_ERRORS_BY_CODE,
    EventNotAllowedFromStatusError,
    IllegalTransitionError,
    InvalidEventError,
    InvalidPaymentDetailsError,
    InvalidStatusError,
    InvoiceStatusError,
)
from small_business_ledger.i18n import DEFAULT_LOCALIZATION, Language, Localization
from small_business_ledger.logging_config import get_logger

logger = get_logger(__name__)

STATUS_TRANSITIONS: Mapping[InvoiceStatus, tuple[InvoiceStatus, ...]] = (
    MappingProxyType(
        {
            InvoiceStatus.DRAFT: (InvoiceStatus.PENDING, InvoiceStatus.CANCELLED),
            InvoiceStatus.PENDING: (
                InvoiceStatus.PAID,
                InvoiceStatus.OVERDUE,
                InvoiceStatus.CANCELLED,
            ),
            InvoiceStatus.PAID: (InvoiceStatus.REFUNDED,),
            InvoiceStatus.OVERDUE: (InvoiceStatus.PAID, InvoiceStatus.CANCELLED),
            InvoiceStatus.CANCELLED: (),
            InvoiceStatus.REFUNDED: (),
        }
    )
)

EVENT_TO_STATUS: Mapping[InvoiceEvent, InvoiceStatus] = MappingProxyType(
    {
        InvoiceEvent.SEND: InvoiceStatus.PENDING,
        InvoiceEvent.MARK_PAID: InvoiceStatus.PAID,
        InvoiceEvent.MARK_OVERDUE: InvoiceStatus.OVERDUE,
        InvoiceEvent.CANCEL: InvoiceStatus.CANCELLED,
        InvoiceEvent.REFUND: InvoiceStatus.REFUNDED,
    }
)

EVENT_VALID_FROM: Mapping[InvoiceEvent, frozenset[InvoiceStatus]] = MappingProxyType(
    {
        InvoiceEvent.SEND: frozenset({InvoiceStatus.DRAFT}),
        InvoiceEvent.MARK_PAID: frozenset(
            {InvoiceStatus.PENDING, InvoiceStatus.OVERDUE}
        ),
        InvoiceEvent.MARK_OVERDUE: frozenset({InvoiceStatus.PENDING}),
        InvoiceEvent.CANCEL: frozenset(
            {InvoiceStatus.DRAFT, InvoiceStatus.PENDING, InvoiceStatus.OVERDUE}
        ),
        InvoiceEvent.REFUND: frozenset({InvoiceStatus.PAID}),
    }
)

MAX_PAYMENT_REFERENCE_LENGTH = 100
MAX_PAYMENT_NOTES_LENGTH = 1000


def _utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


def _timestamp(moment: datetime) -> str:
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def _as_status(value: Any) -> InvoiceStatus | None:
    try:
        return InvoiceStatus(value)
    except ValueError:
        return None


def _as_event(value: Any) -> InvoiceEvent | None:
    try:
        return InvoiceEvent(value)
    except ValueError:
        return None


def _label(value: Any) -> str:
    return str(getattr(value, "value", value))


def _join(values: Any) -> str:
    return ", ".join(_label(v) for v in values)


@dataclass(frozen=True)
class PaymentDetails:
    """Payment metadata recorded when an invoice is marked paid.

    Values are kept as supplied; validate_payment_details reports what is
    wrong with them field by field.
    """

    payment_date: str | datetime | None = None
    payment_method: str | None = None
    payment_reference: Any = None
    payment_amount: Any = None
    notes: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PaymentDetails:
        """Build from a request payload, accepting snake_case or camelCase keys."""

        def pick(snake: str, camel: str) -> Any:
            return data[snake] if snake in data else data.get(camel)

        return cls(
            payment_date=pick("payment_date", "paymentDate"),
            payment_method=pick("payment_method", "paymentMethod"),
            payment_reference=pick("payment_reference", "paymentReference"),
            payment_amount=pick("payment_amount", "paymentAmount"),
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class PaymentValidationResult:
    is_valid: bool
    errors: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class StatusChangeResult:
    """Outcome of a prepared status change.

    On success ``data`` holds the fields to persist. On failure ``error`` and
    ``error_code`` describe why, and ``validation_errors`` maps payment
    fields to messages.
    """

    success: bool
    new_status: InvoiceStatus | None = None
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    error_code: str | None = None
    validation_errors: dict[str, str] = field(default_factory=dict)

    @classmethod
    def failure(
        cls,
        error_code: str,
        error: str,
        validation_errors: dict[str, str] | None = None,
    ) -> StatusChangeResult:
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            validation_errors=validation_errors or {},
        )

    def raise_for_error(self) -> None:
        """Raise the matching InvoiceStatusError if this result is a failure."""
        if self.success:
            return
        if self.error_code == InvalidPaymentDetailsError.error_code:
            raise InvalidPaymentDetailsError(
                self.error or "Invalid payment details", self.validation_errors
            )
        error_cls = INVOICE_ERRORS_BY_CODE.get(self.error_code or "", InvoiceStatusError)
        raise error_cls(self.error or "Invoice status change failed")

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        result["new_status"] = self.new_status.value if self.new_status else None
        return result


# =============================================================================
# Lookups
# =============================================================================


def is_valid_transition(current: Any, target: Any) -> bool:
    current_status = _as_status(current)
    target_status = _as_status(target)
    if current_status is None or target_status is None:
        return False
    return target_status in STATUS_TRANSITIONS[current_status]


def get_valid_transitions(current: Any) -> list[InvoiceStatus]:
    status = _as_status(current)
    if status is None:
        return []
    return list(STATUS_TRANSITIONS[status])


def is_valid_event(current: Any, event: Any) -> bool:
    invoice_event = _as_event(event)
    status = _as_status(current)
    if invoice_event is None or status is None:
        return False
    return status in EVENT_VALID_FROM[invoice_event]


def get_target_status_for_event(event: Any) -> InvoiceStatus | None:
    invoice_event = _as_event(event)
    if invoice_event is None:
        return None
    return EVENT_TO_STATUS[invoice_event]


def get_valid_events(current: Any) -> list[InvoiceEvent]:
    """Events that can be triggered from ``current``, in declaration order."""
    status = _as_status(current)
    return [event for event in InvoiceEvent if status in EVENT_VALID_FROM[event]]


def is_terminal_status(status: Any) -> bool:
    return len(get_valid_transitions(status)) == 0


def is_editable(status: Any) -> bool:
    return _as_status(status) == InvoiceStatus.DRAFT


def is_deletable(status: Any) -> bool:
    return _as_status(status) == InvoiceStatus.DRAFT


def get_status_description(
    status: Any,
    lang: Language | str = Language.EN,
    localization: Localization = DEFAULT_LOCALIZATION,
) -> str:
    return localization.status_description(_label(status), lang)


# =============================================================================
# Payment validation
# =============================================================================


def validate_payment_details(
    details: PaymentDetails | Mapping[str, Any],
) -> PaymentValidationResult:
    """Check every payment field and collect one message per invalid field."""
    if not isinstance(details, PaymentDetails):
        details = PaymentDetails.from_mapping(details)

    errors: dict[str, str] = {}

    if details.payment_date:
        if isinstance(details.payment_date, datetime):
            pass
        elif not isinstance(details.payment_date, str):
            errors["payment_date"] = "Invalid payment date format (ISO 8601)"
        else:
            try:
                isoparse(details.payment_date)
            except (ValueError, OverflowError):
                errors["payment_date"] = "Invalid payment date format (ISO 8601)"

    if details.payment_method:
        try:
            PaymentMethod(details.payment_method)
        except ValueError:
            errors["payment_method"] = (
                f"Invalid payment method. Must be one of: {_join(PaymentMethod)}"
            )

    if details.payment_reference:
        if not isinstance(details.payment_reference, str):
            errors["payment_reference"] = "Payment reference must be a string"
        elif len(details.payment_reference) > MAX_PAYMENT_REFERENCE_LENGTH:
            errors["payment_reference"] = (
                f"Payment reference must not exceed "
                f"{MAX_PAYMENT_REFERENCE_LENGTH} characters"
            )

    if details.payment_amount is not None:
        amount = details.payment_amount
        # bool is an int subclass; True is not an amount
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            errors["payment_amount"] = (
                "Payment amount must be a non-negative integer (in pence)"
            )

    if details.notes:
        if not isinstance(details.notes, str):
            errors["notes"] = "Notes must be a string"
        elif len(details.notes) > MAX_PAYMENT_NOTES_LENGTH:
            errors["notes"] = (
                f"Notes must not exceed {MAX_PAYMENT_NOTES_LENGTH} characters"
            )

    return PaymentValidationResult(is_valid=not errors, errors=errors)


# =============================================================================
# Status changes
# =============================================================================


def prepare_status_change(
    current: Any,
    target: Any,
    payment_details: PaymentDetails | Mapping[str, Any] | None = None,
    *,
    now: datetime | None = None,
    expected_updated_at: str | None = None,
) -> StatusChangeResult:
    """Validate a status change and build the fields the caller should persist.

    Args:
        current: Status the caller last read from storage.
        target: Requested status.
        payment_details: Only consulted when ``target`` is paid.
        now: Clock override for the derived timestamps.
        expected_updated_at: Row version the caller read alongside
            ``current``; echoed back so the write can be a compare-and-swap.

    Returns:
        StatusChangeResult; never raises for bad input.
    """
    current_status = _as_status(current)
    if current_status is None:
        return _rejected(
            InvalidStatusError.error_code,
            f"Invalid current status: {_label(current)}",
        )

    target_status = _as_status(target)
    if target_status is None:
        return _rejected(
            InvalidStatusError.error_code,
            f"Invalid target status: {_label(target)}. "
            f"Must be one of: {_join(InvoiceStatus)}",
        )

    valid_targets = STATUS_TRANSITIONS[current_status]
    if target_status not in valid_targets:
        valid_msg = (
            f"Valid transitions: {_join(valid_targets)}"
            if valid_targets
            else "No transitions available from this status"
        )
        return _rejected(
            IllegalTransitionError.error_code,
            f"Cannot change status from '{current_status.value}' to "
            f"'{target_status.value}'. {valid_msg}",
        )

    stamp = _timestamp(now or _utc_now())
    data: dict[str, Any] = {
        "previous_status": current_status.value,
        "new_status": target_status.value,
        "updated_at": stamp,
    }
    if expected_updated_at is not None:
        data["expected_updated_at"] = expected_updated_at

    if target_status == InvoiceStatus.PAID:
        if payment_details is not None:
            if not isinstance(payment_details, PaymentDetails):
                payment_details = PaymentDetails.from_mapping(payment_details)
            validation = validate_payment_details(payment_details)
            if not validation.is_valid:
                return _rejected(
                    InvalidPaymentDetailsError.error_code,
                    "Invalid payment details",
                    validation.errors,
                )
            paid_at = payment_details.payment_date
            if isinstance(paid_at, datetime):
                paid_at = _timestamp(paid_at)
            data["paid_at"] = paid_at or stamp
            data["payment_method"] = payment_details.payment_method or None
            data["payment_reference"] = payment_details.payment_reference or None
            data["payment_amount"] = payment_details.payment_amount
            data["payment_notes"] = payment_details.notes or None
        else:
            data["paid_at"] = stamp

    if (
        target_status == InvoiceStatus.PENDING
        and current_status == InvoiceStatus.DRAFT
    ):
        data["sent_at"] = stamp

    if target_status == InvoiceStatus.CANCELLED:
        data["cancelled_at"] = stamp

    if target_status == InvoiceStatus.REFUNDED:
        data["refunded_at"] = stamp

    logger.debug(
        "invoice_status_change_prepared",
        previous_status=current_status.value,
        new_status=target_status.value,
    )
    return StatusChangeResult(success=True, new_status=target_status, data=data)


def prepare_event_change(
    current: Any,
    event: Any,
    payment_details: PaymentDetails | Mapping[str, Any] | None = None,
    *,
    now: datetime | None = None,
    expected_updated_at: str | None = None,
) -> StatusChangeResult:
    """Resolve ``event`` to its target status and prepare that change."""
    target_status = get_target_status_for_event(event)
    if target_status is None:
        return _rejected(
            InvalidEventError.error_code,
            f"Invalid event: {_label(event)}. Valid events: {_join(InvoiceEvent)}",
        )

    if not is_valid_event(current, event):
        valid_events = get_valid_events(current)
        valid_msg = (
            f"Valid events: {_join(valid_events)}"
            if valid_events
            else "No events available from this status"
        )
        return _rejected(
            EventNotAllowedFromStatusError.error_code,
            f"Cannot trigger '{_label(event)}' from status '{_label(current)}'. "
            f"{valid_msg}",
        )

    return prepare_status_change(
        current,
        target_status,
        payment_details,
        now=now,
        expected_updated_at=expected_updated_at,
    )


def _rejected(
    error_code: str, error: str, validation_errors: dict[str, str] | None = None
) -> StatusChangeResult:
    logger.info(
        "invoice_status_change_rejected",
        error_code=error_code,
        reason=error,
    )
    return StatusChangeResult.failure(error_code, error, validation_errors)
