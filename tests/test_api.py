"""Tests for the FastAPI REST endpoints."""

import pytest
from fastapi.testclient import TestClient

from inkform import __version__
from inkform.api.app import create_app
from inkform.extraction.base import ConfigurationError, ExtractionClient
from inkform.services import Services

from conftest import FakeClient


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def client(services: Services, fake_client: FakeClient) -> TestClient:
    """Create a FastAPI test client around fresh services."""
    return TestClient(create_app(services, client_factory=lambda s: fake_client))


def _upload(client: TestClient, png_bytes: bytes, count: int = 1) -> list[str]:
    files = [("files", (f"form_{i}.png", png_bytes, "image/png")) for i in range(count)]
    response = client.post("/documents", files=files)
    assert response.status_code == 200
    return [d["id"] for d in response.json()["documents"]]


def _extracted_document(client: TestClient, png_bytes: bytes) -> str:
    (document_id,) = _upload(client, png_bytes)
    assert client.post("/documents/extract").status_code == 200
    return document_id


class TestHealthEndpoint:
    """Tests for the /health endpoint."""

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == __version__
        assert data["documents"] == 0
        assert data["corrections"] == 0


class TestDocumentEndpoints:
    """Tests for upload, listing and removal."""

    def test_upload_many(self, client: TestClient, png_bytes: bytes) -> None:
        ids = _upload(client, png_bytes, count=2)
        assert len(ids) == 2

        listing = client.get("/documents").json()
        assert [d["id"] for d in listing] == ids
        assert listing[0]["status"] == "pending"
        assert listing[0]["name"] == "form_0.png"

    def test_get_unknown_document(self, client: TestClient) -> None:
        response = client.get("/documents/file_missing")
        assert response.status_code == 404
        assert "file_missing" in response.json()["detail"]

    def test_remove_and_clear(self, client: TestClient, png_bytes: bytes) -> None:
        first, _second = _upload(client, png_bytes, count=2)
        assert client.delete(f"/documents/{first}").status_code == 204
        assert len(client.get("/documents").json()) == 1

        assert client.delete("/documents").status_code == 204
        assert client.get("/documents").json() == []


class TestExtractEndpoint:
    """Tests for running the batch over pending documents."""

    def test_extract_pending(self, client: TestClient, png_bytes: bytes) -> None:
        ids = _upload(client, png_bytes, count=4)
        response = client.post("/documents/extract")

        assert response.status_code == 200
        summary = response.json()
        assert summary["total"] == 4
        assert summary["successful"] == 4
        assert summary["window_sizes"] == [3, 1]

        document = client.get(f"/documents/{ids[0]}").json()
        assert document["status"] == "processed"
        assert document["image_width"] == 200
        assert document["quality_report"]["applied_ops"] == ["Original"]
        row = document["rows"][0]
        assert row["values"]["Date"] == "2024-01-05"
        assert row["corrections"]["Date"]["reason"] == "date normalization"
        assert document["issue_count"] == len(document["issues"]) == 6

    def test_extract_with_failure(
        self, client: TestClient, fake_client: FakeClient, png_bytes: bytes
    ) -> None:
        fake_client.failures["form_1.png"] = RuntimeError("Quota exceeded for model")
        ids = _upload(client, png_bytes, count=2)
        summary = client.post("/documents/extract").json()

        assert summary["failed"] == 1
        assert ids[1] in summary["failures"]
        failed = client.get(f"/documents/{ids[1]}").json()
        assert failed["status"] == "error"
        assert failed["error_category"] == "quota"

    def test_backend_unavailable(self, services: Services, png_bytes: bytes) -> None:
        def _factory(_: Services) -> ExtractionClient:
            raise ConfigurationError("API key not configured")

        client = TestClient(create_app(services, client_factory=_factory))
        _upload(client, png_bytes)
        response = client.post("/documents/extract")
        assert response.status_code == 503
        assert "API key" in response.json()["detail"]


class TestEditEndpoints:
    """Tests for the reviewer edit endpoints."""

    def test_update_field(self, client: TestClient, png_bytes: bytes) -> None:
        document_id = _extracted_document(client, png_bytes)
        response = client.patch(
            f"/documents/{document_id}/rows/0",
            json={"field": "Printer Name", "value": "HP LaserJet 400"},
        )
        assert response.status_code == 200
        issues = response.json()["issues"]
        assert len(issues) == 5
        assert all(i["field"] != "Printer Name" for i in issues)

    def test_update_records_feedback(self, client: TestClient, png_bytes: bytes) -> None:
        document_id = _extracted_document(client, png_bytes)
        client.patch(
            f"/documents/{document_id}/rows/0", json={"field": "Date", "value": "2024-01-06"}
        )
        corrections = client.get("/feedback").json()
        assert corrections[0]["original"] == "2024-01-05"
        assert corrections[0]["corrected"] == "2024-01-06"

        stats = client.get("/feedback/stats").json()
        assert stats["total"] == 1
        assert stats["fields"]["Date"]["count"] == 1

        assert client.delete("/feedback").status_code == 204
        assert client.get("/feedback").json() == []

    def test_update_missing_row(self, client: TestClient, png_bytes: bytes) -> None:
        document_id = _extracted_document(client, png_bytes)
        response = client.patch(
            f"/documents/{document_id}/rows/4", json={"field": "Date", "value": "x"}
        )
        assert response.status_code == 404

    def test_unknown_field_rejected(self, client: TestClient, png_bytes: bytes) -> None:
        document_id = _extracted_document(client, png_bytes)
        response = client.patch(
            f"/documents/{document_id}/rows/0", json={"field": "Colour", "value": "x"}
        )
        assert response.status_code == 422

    def test_notes(self, client: TestClient, png_bytes: bytes) -> None:
        document_id = _extracted_document(client, png_bytes)
        response = client.put(f"/documents/{document_id}/rows/0/notes", json={"notes": "torn"})
        assert response.status_code == 204
        assert client.get(f"/documents/{document_id}").json()["rows"][0]["notes"] == "torn"

    def test_verify(self, client: TestClient, png_bytes: bytes) -> None:
        document_id = _extracted_document(client, png_bytes)
        response = client.post(
            f"/documents/{document_id}/rows/verify", json={"row_indices": [0]}
        )
        assert response.status_code == 200
        assert len(response.json()["issues"]) == 6
        assert client.get(f"/documents/{document_id}").json()["rows"][0]["verified"] is True

    def test_batch_replace(self, client: TestClient, png_bytes: bytes) -> None:
        document_id = _extracted_document(client, png_bytes)
        response = client.post(
            f"/documents/{document_id}/rows/replace",
            json={"row_indices": [0], "field": "Date", "find": "^2024", "replace": "2023"},
        )
        assert response.status_code == 200
        row = client.get(f"/documents/{document_id}").json()["rows"][0]
        assert row["values"]["Date"] == "2023-01-05"

    def test_batch_replace_bad_pattern(self, client: TestClient, png_bytes: bytes) -> None:
        document_id = _extracted_document(client, png_bytes)
        response = client.post(
            f"/documents/{document_id}/rows/replace",
            json={"row_indices": [0], "field": "Date", "find": "[", "replace": ""},
        )
        assert response.status_code == 400

    def test_delete_rows(self, client: TestClient, png_bytes: bytes) -> None:
        document_id = _extracted_document(client, png_bytes)
        response = client.post(
            f"/documents/{document_id}/rows/delete", json={"row_indices": [0]}
        )
        assert response.status_code == 200
        assert response.json()["issues"] == []
        assert client.get(f"/documents/{document_id}").json()["rows"] == []
