"""
Domain errors raised by the invoice store and the extraction collaborator.

None of these are fatal: the API layer turns them into 4xx responses and the
upload route reports them per file.
"""
from typing import List, Sequence


class InvoiceStoreError(Exception):
    """Base class for errors raised by an invoice store."""


class ValidationError(InvoiceStoreError):
    """A required field is missing or malformed."""

    def __init__(self, fields: Sequence[str], message: str = None):
        self.fields: List[str] = list(fields)
        if message is None:
            message = f"Missing required fields: {', '.join(self.fields)}"
        self.message = message
        super().__init__(message)


class DuplicateError(InvoiceStoreError):
    def __init__(self, invoice_number: str):
        self.invoice_number = invoice_number
        self.message = "Invoice number already exists"
        super().__init__(f"{self.message}: {invoice_number}")


class NotFoundError(InvoiceStoreError):
    def __init__(self, invoice_id: str):
        self.invoice_id = invoice_id
        self.message = "Invoice not found"
        super().__init__(f"{self.message}: {invoice_id}")


class ExtractionError(Exception):
    """The extraction collaborator could not produce a candidate record."""


class UploadRejected(Exception):
    """Uploaded file has an unsupported type or exceeds the size limit."""
