"""Tests for the HTTP surface (/health, /ask)."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from gatewayrag.api import create_app
from gatewayrag.rag.errors import (
    DeadlineExceededError,
    EmbeddingError,
    GenerationError,
    InvalidRequestError,
    ProviderNotResolvedError,
)
from gatewayrag.rag.service import AskRequest, AskResponse, Deadline, SourceRef


@pytest.fixture
def service():
    svc = MagicMock()
    svc.ask.return_value = AskResponse(
        answer="Use POST /capture.",
        provider="rede",
        sources=[SourceRef(chunk_id=3, title="Captura", provider="rede", source_url="https://d/c")],
    )
    return svc


@pytest.fixture
def client(service):
    return TestClient(create_app(service, request_timeout=15.0))


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.text == "ok"
    assert r.headers["content-type"].startswith("text/plain")


def test_ask_success(client, service):
    r = client.post("/ask", json={"question": "Como capturar?", "provider": "rede", "topK": 3, "lang": "pt"})
    assert r.status_code == 200
    assert r.json() == {
        "answer": "Use POST /capture.",
        "provider": "rede",
        "sources": [
            {"chunkId": 3, "title": "Captura", "provider": "rede", "sourceUrl": "https://d/c"}
        ],
    }
    request, = service.ask.call_args.args
    assert request == AskRequest(question="Como capturar?", provider="rede", top_k=3, lang="pt")


def test_ask_passes_fresh_deadline(client, service):
    client.post("/ask", json={"question": "rede?"})
    deadline = service.ask.call_args.kwargs["deadline"]
    assert isinstance(deadline, Deadline)
    assert deadline.seconds == 15.0


def test_ask_optional_fields_default_to_none(client, service):
    client.post("/ask", json={"question": "rede?"})
    request, = service.ask.call_args.args
    assert request.provider is None
    assert request.top_k is None
    assert request.lang is None


@pytest.mark.parametrize("body", ["not json", "[1, 2]", '{"question": ["a"]}'])
def test_ask_malformed_body_400(client, service, body):
    r = client.post("/ask", content=body, headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.text == "invalid json body"
    service.ask.assert_not_called()


@pytest.mark.parametrize("error,status", [
    (InvalidRequestError("question is required"), 400),
    (ProviderNotResolvedError("could not infer provider (ex: use 'rede' or 'entrepay')"), 400),
    (EmbeddingError("embedding call failed: 503"), 502),
    (GenerationError("model returned empty text"), 502),
    (DeadlineExceededError("request deadline of 15s exceeded before generation"), 504),
])
def test_ask_error_mapping(client, service, error, status):
    service.ask.side_effect = error
    r = client.post("/ask", json={"question": "x"})
    assert r.status_code == status
    assert r.headers["content-type"].startswith("text/plain")
    assert str(error) in r.text
