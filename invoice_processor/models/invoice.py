from enum import Enum
from typing import List, Optional
from pydantic import ConfigDict, Field
from invoice_processor.models.base import RecordModel

class InvoiceStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"

# Wire names, in the order they are reported when missing.
REQUIRED_FIELDS = ("invoiceNumber", "type", "date", "amount", "vendor")

class InvoiceRecord(RecordModel):
    """A stored invoice. `id` and `status` are owned by the store."""
    id: str = Field(..., description="Opaque identifier assigned at creation")
    invoice_number: str = Field(..., description="Invoice number as printed, unique in the store")
    type: str = Field(..., description="Free-form category label, e.g. 'VAT General Invoice'")
    date: str = Field(..., description="Invoice date; presence is checked, format is not")
    amount: float
    vendor: str
    status: InvoiceStatus = Field(default=InvoiceStatus.PENDING)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "1",
                "invoiceNumber": "INV123456",
                "type": "VAT Special Invoice",
                "date": "2025-03-15",
                "amount": 12500.00,
                "vendor": "Premium Supplier A",
                "status": "approved"
            }
        }
    )

class InvoiceUpdate(RecordModel):
    """
    Partial update of a stored invoice. Only mutable fields are accepted, so
    `id` and `invoiceNumber` can never be overwritten through an update.
    """
    status: Optional[InvoiceStatus] = None

    model_config = ConfigDict(extra="forbid")

    def changes(self) -> dict:
        """Fields explicitly set by the caller, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)

_SEED = [
    {
        "id": "1",
        "invoiceNumber": "INV123456",
        "type": "VAT Special Invoice",
        "date": "2025-03-15",
        "amount": 12500.00,
        "vendor": "Premium Supplier A",
        "status": "approved",
    },
    {
        "id": "2",
        "invoiceNumber": "INV123457",
        "type": "VAT General Invoice",
        "date": "2025-03-10",
        "amount": 8750.50,
        "vendor": "Standard Supplier B",
        "status": "pending",
    },
    {
        "id": "3",
        "invoiceNumber": "INV123458",
        "type": "Electronic Invoice",
        "date": "2025-03-05",
        "amount": 3250.00,
        "vendor": "Premium Supplier A",
        "status": "approved",
    },
]

def seed_invoices() -> List[InvoiceRecord]:
    """Fresh copies of the default dataset."""
    return [InvoiceRecord.model_validate(item) for item in _SEED]
