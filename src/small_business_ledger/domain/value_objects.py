from enum import Enum


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class InvoiceEvent(str, Enum):
    SEND = "send"
    MARK_PAID = "mark_paid"
    MARK_OVERDUE = "mark_overdue"
    CANCEL = "cancel"
    REFUND = "refund"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CARD = "card"
    CHEQUE = "cheque"
    OTHER = "other"


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    CLEARED = "cleared"
    RECONCILED = "reconciled"
    VOID = "void"


class VatRate(int, Enum):
    """Canonical UK VAT rates in basis points (2000 = 20%)."""

    STANDARD = 2000
    REDUCED = 500
    ZERO = 0
