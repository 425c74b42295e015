from small_business_ledger.services.interfaces import VatSummaryService
from small_business_ledger.services.vat_summary import VatSummaryServiceImpl

__all__ = ["VatSummaryService", "VatSummaryServiceImpl"]
