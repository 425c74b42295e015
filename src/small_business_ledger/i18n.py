"""Bilingual presentation strings for invoices and VAT summaries.

Invariants:
    - Tables are pure data; business rules never branch on their contents
    - Every table covers every Language member
    - Unknown languages fall back to English, unknown keys to a neutral value

Services receive a Localization instance; the module-level DEFAULT_LOCALIZATION
wraps the built-in tables.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType

BASIS_POINTS_PER_PERCENT = 100


class Language(str, Enum):
    EN = "en"
    TR = "tr"


# --- Invoice statuses ---------------------------------------------------------

STATUS_DESCRIPTIONS: Mapping[str, Mapping[Language, str]] = MappingProxyType(
    {
        "draft": {
            Language.EN: "Draft - Invoice is being prepared",
            Language.TR: "Taslak - Fatura hazırlanıyor",
        },
        "pending": {
            Language.EN: "Pending - Awaiting payment",
            Language.TR: "Beklemede - Ödeme bekleniyor",
        },
        "paid": {
            Language.EN: "Paid - Payment received",
            Language.TR: "Ödendi - Ödeme alındı",
        },
        "overdue": {
            Language.EN: "Overdue - Payment is past due date",
            Language.TR: "Gecikmiş - Ödeme vadesi geçmiş",
        },
        "cancelled": {
            Language.EN: "Cancelled - Invoice has been cancelled",
            Language.TR: "İptal Edildi - Fatura iptal edildi",
        },
        "refunded": {
            Language.EN: "Refunded - Payment has been refunded",
            Language.TR: "İade Edildi - Ödeme iade edildi",
        },
    }
)


# --- VAT ------------------------------------------------------------------------

VAT_RATE_NAMES: Mapping[int, Mapping[Language, str]] = MappingProxyType(
    {
        2000: {
            Language.EN: "Standard Rate (20%)",
            Language.TR: "Standart Oran (%20)",
        },
        500: {
            Language.EN: "Reduced Rate (5%)",
            Language.TR: "İndirimli Oran (%5)",
        },
        0: {
            Language.EN: "Zero Rate (0%)",
            Language.TR: "Sıfır Oran (%0)",
        },
    }
)

CUSTOM_RATE_NAME: Mapping[Language, str] = MappingProxyType(
    {
        Language.EN: "Custom Rate ({percent}%)",
        Language.TR: "Özel Oran (%{percent})",
    }
)

VAT_PAYABLE: Mapping[Language, str] = MappingProxyType(
    {
        Language.EN: "VAT payable: {symbol}{amount}",
        Language.TR: "Ödenecek KDV: {symbol}{amount}",
    }
)

VAT_REFUND_DUE: Mapping[Language, str] = MappingProxyType(
    {
        Language.EN: "VAT refund due: {symbol}{amount}",
        Language.TR: "KDV iadesi alınacak: {symbol}{amount}",
    }
)

UNCATEGORIZED_CODE = "UNCATEGORIZED"

UNCATEGORIZED_NAMES: Mapping[Language, str] = MappingProxyType(
    {
        Language.EN: "Uncategorized",
        Language.TR: "Kategorisiz",
    }
)

MONTH_NAMES: Mapping[Language, tuple[str, ...]] = MappingProxyType(
    {
        Language.EN: (
            "January", "February", "March", "April", "May", "June",
            "July", "August", "September", "October", "November", "December",
        ),
        Language.TR: (
            "Ocak", "Şubat", "Mart", "Nisan", "Mayıs", "Haziran",
            "Temmuz", "Ağustos", "Eylül", "Ekim", "Kasım", "Aralık",
        ),
    }
)


def resolve_language(lang: Language | str | None) -> Language:
    """Map a language code to a Language, falling back to English."""
    if isinstance(lang, Language):
        return lang
    try:
        return Language(str(lang).lower())
    except ValueError:
        return Language.EN


def format_minor_units(amount: int) -> str:
    """Format an integer amount of pence as pounds with two decimals."""
    sign = "-" if amount < 0 else ""
    pounds, pence = divmod(abs(amount), 100)
    return f"{sign}{pounds}.{pence:02d}"


def format_rate_percent(vat_rate: int) -> str:
    """Render a basis-point rate as a percentage without trailing zeros (1750 -> 17.5)."""
    percent = Decimal(vat_rate) / BASIS_POINTS_PER_PERCENT
    if percent == percent.to_integral_value():
        return str(percent.quantize(Decimal(1)))
    return str(percent.normalize())


@dataclass(frozen=True)
class Localization:
    """Message tables keyed by code and language."""

    status_descriptions: Mapping[str, Mapping[Language, str]] = field(
        default_factory=lambda: STATUS_DESCRIPTIONS
    )
    vat_rate_names: Mapping[int, Mapping[Language, str]] = field(
        default_factory=lambda: VAT_RATE_NAMES
    )
    custom_rate_name: Mapping[Language, str] = field(
        default_factory=lambda: CUSTOM_RATE_NAME
    )
    vat_payable: Mapping[Language, str] = field(
        default_factory=lambda: VAT_PAYABLE
    )
    vat_refund_due: Mapping[Language, str] = field(
        default_factory=lambda: VAT_REFUND_DUE
    )
    uncategorized_names: Mapping[Language, str] = field(
        default_factory=lambda: UNCATEGORIZED_NAMES
    )
    month_names: Mapping[Language, tuple[str, ...]] = field(
        default_factory=lambda: MONTH_NAMES
    )
    currency_symbol: str = "£"

    @property
    def languages(self) -> tuple[Language, ...]:
        return tuple(Language)

    def status_description(
        self, status: str, lang: Language | str = Language.EN
    ) -> str:
        key = getattr(status, "value", status)
        descriptions = self.status_descriptions.get(key)
        if not descriptions:
            return str(key)
        return _pick(descriptions, lang)

    def vat_rate_name(self, vat_rate: int, lang: Language | str = Language.EN) -> str:
        names = self.vat_rate_names.get(vat_rate)
        if names:
            return _pick(names, lang)
        template = _pick(self.custom_rate_name, lang)
        return template.format(percent=format_rate_percent(vat_rate))

    def net_position_description(
        self, net_vat: int, lang: Language | str = Language.EN
    ) -> str:
        table = self.vat_refund_due if net_vat < 0 else self.vat_payable
        return _pick(table, lang).format(
            symbol=self.currency_symbol, amount=format_minor_units(abs(net_vat))
        )

    def uncategorized_name(self, lang: Language | str = Language.EN) -> str:
        return _pick(self.uncategorized_names, lang)

    def month_name(self, month: int, lang: Language | str = Language.EN) -> str:
        names = self.month_names.get(resolve_language(lang))
        if not names:
            names = self.month_names[Language.EN]
        if not 1 <= month <= len(names):
            return ""
        return names[month - 1]

    def bilingual(self, render) -> dict[str, str]:
        """Call ``render(lang)`` for every language, keyed by language code."""
        return {lang.value: render(lang) for lang in self.languages}


def _pick(table: Mapping[Language, str], lang: Language | str) -> str:
    return table.get(resolve_language(lang)) or table[Language.EN]


DEFAULT_LOCALIZATION = Localization()
