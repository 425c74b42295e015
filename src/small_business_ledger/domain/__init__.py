from small_business_ledger.domain.invoices import (
    PaymentDetails,
    PaymentValidationResult,
    StatusChangeResult,
)
from small_business_ledger.domain.ledger import Category, LedgerEntry
from small_business_ledger.domain.value_objects import (
    InvoiceEvent,
    InvoiceStatus,
    PaymentMethod,
    TransactionStatus,
    TransactionType,
    VatRate,
)
from small_business_ledger.domain.vat_periods import DateRangeValidation, VatPeriod

__all__ = [
    "Category",
    "DateRangeValidation",
    "InvoiceEvent",
    "InvoiceStatus",
    "LedgerEntry",
    "PaymentDetails",
    "PaymentMethod",
    "PaymentValidationResult",
    "StatusChangeResult",
    "TransactionStatus",
    "TransactionType",
    "VatPeriod",
    "VatRate",
]
