"""
HTTP API of the contract metadata cache.

Routes:

    - ``GET /`` health check
    - ``POST /contracts`` known contracts and job ids for the rest
    - ``POST /jobs`` poll fetch jobs
    - ``GET /contracts/{chain}/{address}`` a single contract with source code
    - ``PUT /contracts/{chain}/{address}/label`` set the contract label
    - ``GET /fn-selectors/{selector}`` functions for a 4-byte selector
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from abicat.contracts.service import ContractsService
from abicat.errors import InvalidInput, PayloadTooLarge

LOGGER = logging.getLogger(__name__)


class PostContractsRequest(BaseModel):
    chain: str
    addrs: List[str]


class PostJobsRequest(BaseModel):
    job_ids: List[str]


class PutLabelRequest(BaseModel):
    label: Optional[str] = Field(default=None)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


def create_app(service: ContractsService, manage_service: bool = True) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: the contracts service to expose
        manage_service: start the service background threads on startup
                        and stop them on shutdown

    Returns:
        An instance of :class:`fastapi.FastAPI`
    """

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        if manage_service:
            service.start()
        try:
            yield
        finally:
            if manage_service:
                service.stop(timeout=5)

    app = FastAPI(title="abicat", version="0.1.0", lifespan=lifespan)

    @app.exception_handler(PayloadTooLarge)
    async def payload_too_large(_: Request, exc: PayloadTooLarge) -> JSONResponse:
        return _error_response(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, str(exc))

    @app.exception_handler(InvalidInput)
    async def invalid_input(_: Request, exc: InvalidInput) -> JSONResponse:
        return _error_response(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(sqlite3.Error)
    async def store_error(request: Request, exc: sqlite3.Error) -> JSONResponse:
        LOGGER.error("Database error on %s: %s", request.url.path, exc)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "database error")

    @app.get("/")
    def health_check() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/contracts")
    def post_contracts(req: PostContractsRequest) -> Dict[str, Any]:
        return service.submit_batch(req.chain, req.addrs)

    @app.post("/jobs")
    def post_jobs(req: PostJobsRequest) -> Dict[str, Any]:
        return service.poll_jobs(req.job_ids)

    @app.get("/contracts/{chain}/{address}")
    def get_contract(chain: str, address: str) -> Dict[str, Any]:
        contract = service.get_contract(chain, address)
        if contract is None:
            raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Contract not found")
        return contract.to_dict()

    @app.put("/contracts/{chain}/{address}/label")
    def put_label(chain: str, address: str, req: PutLabelRequest) -> Dict[str, Any]:
        service.set_label(chain, address, req.label)
        return service.get_contract(chain, address).to_dict(redact_src=True)

    @app.get("/fn-selectors/{selector}")
    def get_fn_selectors(selector: str) -> List[Dict[str, Any]]:
        return [s.to_dict() for s in service.get_fn_selector(selector)]

    return app
