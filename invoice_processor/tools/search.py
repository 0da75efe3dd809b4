from typing import Iterable, List, Optional
from invoice_processor.models.invoice import InvoiceRecord

def matches(record: InvoiceRecord, term: str) -> bool:
    needle = term.lower()
    return needle in record.invoice_number.lower() or needle in record.vendor.lower()

def filter_invoices(records: Iterable[InvoiceRecord], term: Optional[str] = None) -> List[InvoiceRecord]:
    """
    Records whose invoice number or vendor contains `term`, ignoring case.
    An empty term keeps everything. Input order is preserved.
    """
    if not term:
        return list(records)
    return [record for record in records if matches(record, term)]
