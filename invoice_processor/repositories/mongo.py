import logging
from typing import Any, List, Mapping, Optional
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, IndexModel, ReturnDocument
from pymongo.errors import DuplicateKeyError

from invoice_processor.errors import DuplicateError, NotFoundError
from invoice_processor.models.invoice import InvoiceRecord, seed_invoices
from invoice_processor.repositories.base import Changes, InvoiceStore, build_record, coerce_update, validate_candidate

logger = logging.getLogger(__name__)

class MongoInvoiceStore(InvoiceStore):
    """
    Store backed by a MongoDB collection.

    The record id is the document `_id`. Insertion order is kept with a `seq`
    counter, and the unique index on `invoiceNumber` settles concurrent
    creates of the same number.
    """

    COUNTER_ID = "invoices"

    def __init__(self, collection: AsyncIOMotorCollection, counters: AsyncIOMotorCollection):
        self.collection = collection
        self.counters = counters

    async def ensure_indexes(self) -> None:
        await self.collection.create_indexes([
            IndexModel([("invoiceNumber", ASCENDING)], unique=True),
            IndexModel([("seq", ASCENDING)]),
        ])

    async def initialize(self) -> None:
        """Create indexes and load the seed set into an empty collection."""
        await self.ensure_indexes()
        if await self.collection.count_documents({}) == 0:
            logger.info("Empty invoices collection, loading seed data")
            await self.clear()

    async def _next_seq(self) -> int:
        doc = await self.counters.find_one_and_update(
            {"_id": self.COUNTER_ID},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        return doc["seq"]

    async def list_all(self) -> List[InvoiceRecord]:
        cursor = self.collection.find({}).sort("seq", ASCENDING)
        docs = await cursor.to_list(length=None)
        return [InvoiceRecord.from_mongo(doc) for doc in docs]

    async def get_by_id(self, invoice_id: str) -> Optional[InvoiceRecord]:
        doc = await self.collection.find_one({"_id": invoice_id})
        return InvoiceRecord.from_mongo(doc) if doc else None

    async def create(self, candidate: Mapping[str, Any]) -> InvoiceRecord:
        fields = validate_candidate(candidate)
        invoice_number = fields["invoice_number"]
        if await self.collection.find_one({"invoiceNumber": invoice_number}):
            raise DuplicateError(invoice_number)

        record = build_record(fields)
        doc = record.to_mongo()
        doc["seq"] = await self._next_seq()
        try:
            await self.collection.insert_one(doc)
        except DuplicateKeyError as e:
            # Lost a race with a concurrent create of the same number
            raise DuplicateError(invoice_number) from e

        logger.info(f"Created invoice {record.id} ({invoice_number})")
        return record

    async def update(self, invoice_id: str, changes: Changes) -> InvoiceRecord:
        update = coerce_update(changes)
        fields = update.model_dump(mode="json", by_alias=True, exclude_unset=True)
        if fields:
            doc = await self.collection.find_one_and_update(
                {"_id": invoice_id},
                {"$set": fields},
                return_document=ReturnDocument.AFTER
            )
        else:
            doc = await self.collection.find_one({"_id": invoice_id})

        if doc is None:
            raise NotFoundError(invoice_id)
        logger.info(f"Updated invoice {invoice_id}: {fields}")
        return InvoiceRecord.from_mongo(doc)

    async def delete(self, invoice_id: str) -> None:
        result = await self.collection.delete_one({"_id": invoice_id})
        if result.deleted_count:
            logger.info(f"Deleted invoice {invoice_id}")

    async def clear(self) -> None:
        await self.collection.delete_many({})
        docs = []
        for seq, record in enumerate(seed_invoices(), start=1):
            doc = record.to_mongo()
            doc["seq"] = seq
            docs.append(doc)
        await self.collection.insert_many(docs)
        await self.counters.update_one(
            {"_id": self.COUNTER_ID},
            {"$set": {"seq": len(docs)}},
            upsert=True
        )
        logger.info("Invoice store reset to seed data")
