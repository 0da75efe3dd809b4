import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from groq import GroqError

from invoice_processor.api.invoices import process_upload
from invoice_processor.config import settings
from invoice_processor.errors import ExtractionError
from invoice_processor.main import app
from invoice_processor.tools.extraction import InvoiceExtractor, get_extractor
from invoice_processor.tools.groq_llm import GroqLLMTool

@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"

@pytest.mark.asyncio
async def test_list_invoices(client):
    response = await client.get("/api/invoices/")
    assert response.status_code == 200
    body = response.json()
    assert [inv["invoiceNumber"] for inv in body] == ["INV123456", "INV123457", "INV123458"]
    assert body[0]["status"] == "approved"

@pytest.mark.asyncio
async def test_list_invoices_search(client):
    response = await client.get("/api/invoices/", params={"search": "premium"})
    assert response.status_code == 200
    assert [inv["id"] for inv in response.json()] == ["1", "3"]

@pytest.mark.asyncio
async def test_get_invoice(client):
    response = await client.get("/api/invoices/2")
    assert response.status_code == 200
    assert response.json()["vendor"] == "Standard Supplier B"

    response = await client.get("/api/invoices/missing")
    assert response.status_code == 404

@pytest.mark.asyncio
async def test_create_invoice(client, valid_candidate):
    response = await client.post("/api/invoices/", json=valid_candidate)
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["id"]
    assert body["invoiceNumber"] == "INV999"

    duplicate = await client.post("/api/invoices/", json=valid_candidate)
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"] == "Invoice number already exists"

@pytest.mark.asyncio
async def test_create_invoice_missing_fields(client):
    response = await client.post("/api/invoices/", json={"invoiceNumber": "X1", "amount": 3})
    assert response.status_code == 400
    assert response.json()["detail"] == "Missing required fields: type, date, vendor"

@pytest.mark.asyncio
async def test_create_invoice_string_amount(client, valid_candidate):
    response = await client.post("/api/invoices/", json={**valid_candidate, "amount": "100"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Amount must be a number"

@pytest.mark.asyncio
async def test_patch_status(client):
    response = await client.patch("/api/invoices/2", json={"status": "approved"})
    assert response.status_code == 200
    assert response.json()["status"] == "approved"

    response = await client.patch("/api/invoices/missing", json={"status": "approved"})
    assert response.status_code == 404

@pytest.mark.asyncio
async def test_patch_rejects_immutable_fields(client):
    response = await client.patch("/api/invoices/2", json={"invoiceNumber": "NEW"})
    assert response.status_code == 400
    assert "invoiceNumber" in response.json()["detail"]

@pytest.mark.asyncio
async def test_toggle_status(client):
    response = await client.post("/api/invoices/1/toggle")
    assert response.status_code == 200
    assert response.json()["status"] == "pending"

    response = await client.post("/api/invoices/missing/toggle")
    assert response.status_code == 404

@pytest.mark.asyncio
async def test_delete_invoice(client, store):
    response = await client.delete("/api/invoices/3")
    assert response.status_code == 204
    response = await client.delete("/api/invoices/3")
    assert response.status_code == 204
    assert [inv.id for inv in await store.list_all()] == ["1", "2"]

@pytest.mark.asyncio
async def test_admin_reset(client, store, valid_candidate):
    await store.create(valid_candidate)
    response = await client.post("/api/admin/reset")
    assert response.status_code == 200
    assert response.json()["count"] == 3

@pytest.mark.asyncio
async def test_upload_creates_invoices(client, store, mock_extractor, valid_candidate):
    mock_extractor.extract.return_value = valid_candidate
    files = {"files": ("invoice.pdf", b"%PDF-1.4 fake", "application/pdf")}

    response = await client.post("/api/invoices/upload", files=files)

    assert response.status_code == 200
    [result] = response.json()
    assert result["filename"] == "invoice.pdf"
    assert result["status"] == "success"
    assert result["invoice"]["invoiceNumber"] == "INV999"
    mock_extractor.extract.assert_called_once_with(b"%PDF-1.4 fake", "application/pdf")
    assert len(await store.list_all()) == 4

@pytest.mark.asyncio
async def test_upload_reports_per_file_errors(client, mock_extractor, valid_candidate):
    def extract(content, mime_type):
        if content == b"broken":
            raise ExtractionError("Failed to parse invoice data. Please ensure the file format is correct")
        return valid_candidate
    mock_extractor.extract.side_effect = extract

    files = [
        ("files", ("good.png", b"image", "image/png")),
        ("files", ("bad.png", b"broken", "image/png")),
        ("files", ("notes.txt", b"hello", "text/plain")),
    ]
    response = await client.post("/api/invoices/upload", files=files)

    assert response.status_code == 200
    results = {item["filename"]: item for item in response.json()}
    assert results["good.png"]["status"] == "success"
    assert results["bad.png"]["status"] == "error"
    assert "Failed to parse" in results["bad.png"]["error"]
    assert results["notes.txt"]["error"] == "notes.txt: Unsupported file type"

@pytest.mark.asyncio
async def test_upload_duplicate_numbers_only_one_wins(client, store, mock_extractor, valid_candidate):
    mock_extractor.extract.return_value = valid_candidate
    files = [
        ("files", ("a.png", b"one", "image/png")),
        ("files", ("b.png", b"two", "image/png")),
    ]

    response = await client.post("/api/invoices/upload", files=files)

    statuses = sorted(item["status"] for item in response.json())
    assert statuses == ["error", "success"]
    assert sum(inv.invoice_number == "INV999" for inv in await store.list_all()) == 1

@pytest.mark.asyncio
async def test_upload_rejects_oversize(client, mock_extractor):
    with patch.object(settings, "MAX_UPLOAD_BYTES", 4):
        response = await client.post(
            "/api/invoices/upload", files={"files": ("big.png", b"12345", "image/png")}
        )

    [result] = response.json()
    assert result["status"] == "error"
    assert "File size exceeds" in result["error"]
    mock_extractor.extract.assert_not_called()

@pytest.mark.asyncio
async def test_upload_without_api_key_reports_error(client, store):
    app.dependency_overrides[get_extractor] = lambda: InvoiceExtractor(llm=GroqLLMTool(api_key=None))

    with patch("invoice_processor.tools.groq_llm.Groq",
               side_effect=GroqError("The api_key client option must be set")):
        response = await client.post(
            "/api/invoices/upload", files={"files": ("scan.png", b"image", "image/png")}
        )

    assert response.status_code == 200
    [result] = response.json()
    assert result["status"] == "error"
    assert "Extraction service error" in result["error"]
    assert len(await store.list_all()) == 3

@pytest.mark.asyncio
async def test_upload_unexpected_error_keeps_other_results(client, store, mock_extractor, valid_candidate):
    def extract(content, mime_type):
        if content == b"crash":
            raise RuntimeError("boom")
        return valid_candidate
    mock_extractor.extract.side_effect = extract

    files = [
        ("files", ("ok.png", b"image", "image/png")),
        ("files", ("crash.png", b"crash", "image/png")),
    ]
    response = await client.post("/api/invoices/upload", files=files)

    assert response.status_code == 200
    results = {item["filename"]: item for item in response.json()}
    assert results["ok.png"]["status"] == "success"
    assert results["crash.png"]["status"] == "error"
    assert "boom" in results["crash.png"]["error"]
    assert [inv.invoice_number for inv in await store.list_all()][-1] == "INV999"

@pytest.mark.asyncio
async def test_create_invoice_non_finite_amount(client, valid_candidate):
    body = '{"invoiceNumber": "INV1", "type": "Receipt", "date": "2025-01-01", "amount": NaN, "vendor": "Acme"}'
    response = await client.post(
        "/api/invoices/", content=body, headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Amount must be a number"

@pytest.mark.asyncio
async def test_process_upload_reads_at_most_limit_plus_one(store, mock_extractor):
    upload = MagicMock()
    upload.filename = "big.pdf"
    upload.content_type = "application/pdf"
    upload.read = AsyncMock(return_value=b"x" * 11)

    with patch.object(settings, "MAX_UPLOAD_BYTES", 10):
        result = await process_upload(upload, store, mock_extractor)

    upload.read.assert_awaited_once_with(11)
    assert result.status == "error"
    mock_extractor.extract.assert_not_called()
