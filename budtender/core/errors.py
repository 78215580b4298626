# budtender/core/errors.py
"""
Error taxonomy for the recommendation API.

Every hard failure is rendered the same way for the widget:

    {"error": "<category>", "message": "Sorry, we couldn't process your request.", "detail": "..."}

`detail` is meant for operators; stack traces never reach the body.
Off-topic chat messages are not errors (see topic_guard).
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Sorry, we couldn't process your request."


class BudtenderError(Exception):
    category = "internal_error"
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


# ---- (a) client input ------------------------------------------------------

class ClientInputError(BudtenderError):
    category = "invalid_request"
    status_code = 400


class MissingTenantError(ClientInputError):
    def __init__(self, detail: str = "tenantId is required"):
        super().__init__(detail)


class UnknownTenantError(BudtenderError):
    category = "unknown_tenant"
    status_code = 404

    def __init__(self, tenant_id: str):
        super().__init__(f"Unknown tenant: {tenant_id}")
        self.tenant_id = tenant_id


# ---- (b) upstream data -----------------------------------------------------

class UpstreamDataError(BudtenderError):
    category = "upstream_data_error"
    status_code = 500


# ---- (c) LLM ---------------------------------------------------------------

class LLMGatewayError(BudtenderError):
    category = "llm_error"
    status_code = 502


class LLMProtocolError(LLMGatewayError):
    category = "llm_protocol_error"


def error_body(category: str, detail: str) -> dict:
    return {"error": category, "message": GENERIC_MESSAGE, "detail": detail}


async def _budtender_error_handler(request: Request, exc: BudtenderError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.category, exc.detail)
    else:
        logger.warning("%s %s rejected: %s (%s)", request.method, request.url.path, exc.category, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.category, exc.detail))


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    logger.warning("%s %s invalid body: %s", request.method, request.url.path, problems)
    return JSONResponse(status_code=400, content=error_body(ClientInputError.category, problems))


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s crashed", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body("internal_error", str(exc) or type(exc).__name__))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BudtenderError, _budtender_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
