import logging
from motor.motor_asyncio import AsyncIOMotorClient
from invoice_processor.config import settings
from invoice_processor.repositories.base import InvoiceStore
from invoice_processor.repositories.json_file import JsonFileInvoiceStore
from invoice_processor.repositories.memory import InMemoryInvoiceStore
from invoice_processor.repositories.mongo import MongoInvoiceStore

logger = logging.getLogger(__name__)

class Database:
    client: AsyncIOMotorClient = None

    # Repositories
    invoices: InvoiceStore = None

    def connect(self):
        """Build the invoice store for the configured backend."""
        backend = settings.STORE_BACKEND.lower()
        if backend == "memory":
            self.invoices = InMemoryInvoiceStore()
        elif backend == "json":
            self.invoices = JsonFileInvoiceStore(settings.STORE_PATH, key=settings.STORAGE_KEY)
        elif backend == "mongo":
            self.client = AsyncIOMotorClient(settings.MONGODB_URL)
            db = self.client[settings.DB_NAME]
            self.invoices = MongoInvoiceStore(db.invoices, db.counters)
        else:
            raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND}")

        logger.info(f"Invoice store ready ({backend})")

    async def initialize(self):
        """Connect if needed and prepare the store's backing storage."""
        if self.invoices is None:
            self.connect()
        await self.invoices.initialize()

    def close(self):
        """Close database connection."""
        if self.client:
            self.client.close()
            self.client = None
            logger.info("Disconnected from MongoDB")

db = Database()

async def get_invoice_store() -> InvoiceStore:
    """Dependency for FastAPI."""
    if db.invoices is None:
        await db.initialize()
    return db.invoices
