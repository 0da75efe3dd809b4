from invoice_processor.models.base import RecordModel
from invoice_processor.models.invoice import InvoiceRecord, InvoiceStatus, InvoiceUpdate, REQUIRED_FIELDS, seed_invoices
