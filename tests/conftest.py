import pytest
import pytest_asyncio
from unittest.mock import MagicMock
from httpx import ASGITransport, AsyncClient

from invoice_processor.database import get_invoice_store
from invoice_processor.main import app
from invoice_processor.repositories.memory import InMemoryInvoiceStore
from invoice_processor.tools.extraction import get_extractor

@pytest.fixture
def store():
    return InMemoryInvoiceStore()

@pytest.fixture
def valid_candidate():
    return {
        "invoiceNumber": "INV999",
        "type": "Electronic Invoice",
        "date": "2025-04-01",
        "amount": 100.5,
        "vendor": "Acme",
    }

@pytest.fixture
def mock_extractor():
    extractor = MagicMock()
    extractor.extract = MagicMock()
    return extractor

@pytest_asyncio.fixture
async def client(store, mock_extractor):
    app.dependency_overrides[get_invoice_store] = lambda: store
    app.dependency_overrides[get_extractor] = lambda: mock_extractor
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
