"""Tests for the HTTP upload API."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from sheet_guesstimate import api

from .conftest import xlsx_bytes

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture
def client() -> TestClient:
    api._latest.clear()
    return TestClient(api.app)


def _upload(model_sheets) -> dict:
    return {"file": ("model.xlsx", xlsx_bytes(model_sheets), XLSX)}


def test_convert(client: TestClient, model_sheets) -> None:
    resp = client.post("/convert", files=_upload(model_sheets))

    assert resp.status_code == 200
    body = resp.json()
    metrics = body["graph"]["space"]["graph"]["metrics"]
    assert {m["id"] for m in metrics} == {"B1", "B2", "B3", "B4"}
    assert 'method: "PATCH"' in body["script"]
    assert body["mermaid"].startswith("graph LR")
    assert "B1 --> B4" in body["mermaid"]
    assert "/img/pako:" in body["mermaid_url"]
    assert body["unresolved"] == {}


def test_convert_reports_unresolved(client: TestClient) -> None:
    resp = client.post("/convert", files=_upload({"S": {"A1": "=SUM(B1:C2)"}}))

    assert resp.status_code == 200
    assert resp.json()["unresolved"] == {"A1": ["SUM"]}


def test_convert_rejects_non_workbook(client: TestClient) -> None:
    resp = client.post("/convert", files={"file": ("notes.xlsx", b"plain text", XLSX)})

    assert resp.status_code == 400
    assert "notes.xlsx" in resp.json()["detail"]


def test_diagram(client: TestClient, model_sheets) -> None:
    resp = client.post("/diagram", files=_upload(model_sheets))

    assert resp.status_code == 200
    assert resp.text.startswith("graph LR")


def test_graph_view_needs_an_upload(client: TestClient, model_sheets) -> None:
    assert client.get("/graph").status_code == 404

    client.post("/convert", files=_upload(model_sheets))
    resp = client.get("/graph")

    assert resp.status_code == 200
    assert 'new EventSource("/events")' in resp.text
