# tests/api_server/test_data_routes.py
"""
Tests for the TierStore HTTP API.

This suite covers the record endpoints end to end against real tiers,
the translation of operation outcomes into status codes, the health
endpoint and behavior when the store could not be initialized.
"""

import pytest
from fastapi.testclient import TestClient

from tierstore.api_server.main import create_app
from tierstore.api_server.models import DataDto, DataValueRequest
from tierstore.models import OperationResult, Record


class TestModels:
    """Request/response model validation."""

    def test_value_request_rejects_unknown_fields(self):
        with pytest.raises(ValueError):
            DataValueRequest(value="x", extra="nope")

    def test_dto_from_record(self):
        record = Record(id="abc", value="v")
        dto = DataDto.from_record(record)
        assert dto.id == "abc"
        assert dto.created_at == record.created_at


class TestDataEndpoints:
    """Record endpoints against cache, file and SQLite tiers."""

    def test_create_and_read(self, api_client):
        response = api_client.post("/data", json={"value": "hello"})
        assert response.status_code == 201
        record_id = response.json()["id"]

        response = api_client.get(f"/data/{record_id}")
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == record_id
        assert body["value"] == "hello"
        assert "created_at" in body

    def test_read_missing(self, api_client):
        response = api_client.get("/data/does-not-exist")
        assert response.status_code == 404
        assert "does-not-exist" in response.json()["detail"]

    def test_read_blank_id(self, api_client):
        assert api_client.get("/data/%20").status_code == 400

    def test_create_empty_value(self, api_client):
        assert api_client.post("/data", json={"value": ""}).status_code == 400

    def test_create_missing_body_field(self, api_client):
        response = api_client.post("/data", json={})
        assert response.status_code == 400
        assert response.json()["detail"][0]["loc"] == ["body", "value"]

    def test_create_null_value(self, api_client):
        assert api_client.post("/data", json={"value": None}).status_code == 400

    def test_create_unknown_field(self, api_client):
        assert api_client.post("/data", json={"value": "x", "colour": "blue"}).status_code == 400

    def test_update_without_body(self, api_client):
        assert api_client.put("/data/abc").status_code == 400

    def test_update(self, api_client):
        record_id = api_client.post("/data", json={"value": "old"}).json()["id"]

        response = api_client.put(f"/data/{record_id}", json={"value": "new"})
        assert response.status_code == 204

        assert api_client.get(f"/data/{record_id}").json()["value"] == "new"

    def test_update_missing(self, api_client):
        assert api_client.put("/data/nope", json={"value": "new"}).status_code == 404

    def test_update_empty_value(self, api_client):
        record_id = api_client.post("/data", json={"value": "old"}).json()["id"]
        assert api_client.put(f"/data/{record_id}", json={"value": ""}).status_code == 400

    def test_delete(self, api_client):
        record_id = api_client.post("/data", json={"value": "gone soon"}).json()["id"]

        assert api_client.delete(f"/data/{record_id}").status_code == 204
        assert api_client.get(f"/data/{record_id}").status_code == 404
        assert api_client.delete(f"/data/{record_id}").status_code == 204

    def test_health(self, api_client):
        body = api_client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["tiers"] == ["cache", "file", "database"]


class TestErrorTranslation:
    """Operation failures map to 500 responses."""

    def test_save_failure(self, api_client_with_mock, mock_tierstore):
        mock_tierstore.save.return_value = OperationResult.failure(
            "Save failed at tier 'database'.", {"cache": True, "file": True, "database": False}
        )

        response = api_client_with_mock.post("/data", json={"value": "x"})

        assert response.status_code == 500
        assert "database" in response.json()["detail"]

    def test_update_failure(self, api_client_with_mock, mock_tierstore):
        mock_tierstore.update.return_value = OperationResult.failure("Update failed at tier 'file'.")

        assert api_client_with_mock.put("/data/abc", json={"value": "x"}).status_code == 500

    def test_get_passes_id_through(self, api_client_with_mock, mock_tierstore):
        mock_tierstore.get.return_value = OperationResult.not_found_result("abc")

        assert api_client_with_mock.get("/data/abc").status_code == 404
        mock_tierstore.get.assert_awaited_once_with("abc")


class TestUnavailableStore:
    """The server starts even when the store cannot be created."""

    def test_endpoints_return_503(self):
        app = create_app(config_overrides={"database.backend": "postgres"}, env_prefix=None)
        with TestClient(app) as client:
            assert client.get("/data/abc").status_code == 503
            assert client.post("/data", json={"value": "x"}).status_code == 503
            assert client.get("/health").json()["status"] == "degraded"
