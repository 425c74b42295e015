from small_business_ledger.domain.invoices import (
    PaymentDetails,
    StatusChangeResult,
    prepare_event_change,
    prepare_status_change,
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
from small_business_ledger.domain.vat_periods import VatPeriod
from small_business_ledger.services.vat_summary import VatSummaryServiceImpl

__all__ = [
    "Category",
    "InvoiceEvent",
    "InvoiceStatus",
    "LedgerEntry",
    "PaymentDetails",
    "PaymentMethod",
    "StatusChangeResult",
    "TransactionStatus",
    "TransactionType",
    "VatPeriod",
    "VatRate",
    "VatSummaryServiceImpl",
    "prepare_event_change",
    "prepare_status_change",
]

__version__ = "0.1.0"
