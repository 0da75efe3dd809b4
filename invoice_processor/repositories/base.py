import logging
import math
import numbers
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Union
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_snake

from invoice_processor.errors import ValidationError
from invoice_processor.models.invoice import InvoiceRecord, InvoiceStatus, InvoiceUpdate, REQUIRED_FIELDS

logger = logging.getLogger(__name__)

Changes = Union[InvoiceUpdate, Mapping[str, Any]]

def new_invoice_id() -> str:
    return uuid.uuid4().hex

def _is_blank(value: Any) -> bool:
    return value is None or value == ""

def validate_candidate(candidate: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Check a candidate record and return its fields keyed by attribute name.

    Keys may be given in wire form (`invoiceNumber`) or attribute form
    (`invoice_number`). Caller-supplied `id` and `status` are dropped.
    Raises ValidationError naming every missing field, or naming `amount`
    when it is present but not a number.
    """
    fields: Dict[str, Any] = {}
    missing: List[str] = []
    for wire_name in REQUIRED_FIELDS:
        attr = to_snake(wire_name)
        value = candidate.get(wire_name, candidate.get(attr))
        if _is_blank(value):
            missing.append(wire_name)
        fields[attr] = value

    if missing:
        raise ValidationError(missing)

    amount = fields["amount"]
    # bool is an int subclass but never a valid amount
    if isinstance(amount, bool) or not isinstance(amount, numbers.Real) or not math.isfinite(amount):
        raise ValidationError(["amount"], "Amount must be a number")

    fields["amount"] = float(amount)
    for attr in ("invoice_number", "type", "date", "vendor"):
        fields[attr] = str(fields[attr])
    return fields

def coerce_update(changes: Changes) -> InvoiceUpdate:
    """Turn a mapping into an InvoiceUpdate, rejecting immutable or unknown fields."""
    if isinstance(changes, InvoiceUpdate):
        return changes
    try:
        return InvoiceUpdate.model_validate(dict(changes))
    except PydanticValidationError as e:
        fields = [str(err["loc"][0]) for err in e.errors() if err["loc"]]
        raise ValidationError(fields, f"Invalid update fields: {', '.join(fields)}") from e

def build_record(fields: Dict[str, Any]) -> InvoiceRecord:
    """New record from validated fields, with store-owned id and status."""
    return InvoiceRecord(id=new_invoice_id(), status=InvoiceStatus.PENDING, **fields)

class InvoiceStore(ABC):
    """
    Contract shared by every invoice store backend.

    `create` validates and enforces invoice number uniqueness; `update`
    only touches mutable fields. Records are returned in insertion order.
    """

    @abstractmethod
    async def list_all(self) -> List[InvoiceRecord]:
        """All records in insertion order."""

    @abstractmethod
    async def get_by_id(self, invoice_id: str) -> Optional[InvoiceRecord]:
        """The matching record, or None."""

    @abstractmethod
    async def create(self, candidate: Mapping[str, Any]) -> InvoiceRecord:
        """Validate a candidate, assign id and pending status, append it."""

    @abstractmethod
    async def update(self, invoice_id: str, changes: Changes) -> InvoiceRecord:
        """Shallow-merge changes into an existing record. Raises NotFoundError."""

    @abstractmethod
    async def delete(self, invoice_id: str) -> None:
        """Remove a record; unknown ids are ignored."""

    @abstractmethod
    async def clear(self) -> None:
        """Reset the store to the seed dataset."""

    async def initialize(self) -> None:
        """Prepare backing storage on startup. Nothing to do by default."""

    async def update_status(self, invoice_id: str, status: Union[InvoiceStatus, str]) -> InvoiceRecord:
        return await self.update(invoice_id, {"status": status})
