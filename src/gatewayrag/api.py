"""HTTP surface — FastAPI app exposing /health and /ask.

Errors are returned as plain text:
  400  malformed body, empty question, provider not resolvable
  502  embedding or generation failure
  504  request deadline exceeded
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from gatewayrag.rag.errors import (
    CollaboratorError,
    DeadlineExceededError,
    InvalidRequestError,
    ProviderNotResolvedError,
)
from gatewayrag.rag.service import AskRequest, Deadline, RetrievalService

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 15.0


class AskPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str = ""
    provider: Optional[str] = None
    top_k: Optional[int] = Field(default=None, alias="topK")
    lang: Optional[str] = None


def create_app(
    service: RetrievalService, request_timeout: float = DEFAULT_REQUEST_TIMEOUT
) -> FastAPI:
    """Build the FastAPI app around *service*.

    Every /ask request gets its own Deadline of *request_timeout* seconds.
    """
    app = FastAPI(title="gatewayrag", version="0.1.0")

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> PlainTextResponse:
        return PlainTextResponse("invalid json body", status_code=400)

    @app.get("/health")
    def health() -> PlainTextResponse:
        return PlainTextResponse("ok")

    @app.post("/ask")
    def ask(payload: AskPayload):
        request = AskRequest(
            question=payload.question,
            provider=payload.provider,
            top_k=payload.top_k,
            lang=payload.lang,
        )
        try:
            response = service.ask(request, deadline=Deadline(request_timeout))
        except (InvalidRequestError, ProviderNotResolvedError) as exc:
            return PlainTextResponse(str(exc), status_code=400)
        except DeadlineExceededError as exc:
            logger.error("ask timed out: %s", exc)
            return PlainTextResponse(f"request timed out: {exc}", status_code=504)
        except CollaboratorError as exc:
            logger.error("ask failed: %s", exc)
            return PlainTextResponse(f"failed to answer question: {exc}", status_code=502)
        return JSONResponse(response.to_dict())

    return app
