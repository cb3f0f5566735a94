"""Request correlation, request logging, and exception-to-JSON handlers.

Every response carries an ``X-Request-Id`` header. Error responses also echo
the id in the body so a client report can be matched to server logs.
"""

from __future__ import annotations

from time import perf_counter
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers, MutableHeaders
from starlette.exceptions import HTTPException as StarletteHTTPException

from trip_roster.core.config import settings
from trip_roster.core.logging import get_logger
from trip_roster.services.roster.errors import RosterError, UpstreamFailure

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"
_HEALTH_PATHS = frozenset({"/health", "/healthz", "/readyz"})
_MAX_REQUEST_ID_LENGTH = 128


def _resolve_request_id(scope: Scope) -> str:
    supplied = Headers(scope=scope).get(REQUEST_ID_HEADER)
    if supplied:
        cleaned = supplied.strip()[:_MAX_REQUEST_ID_LENGTH]
        if cleaned:
            return cleaned
    return uuid4().hex


class RequestContextMiddleware:
    """Assign request ids and emit one access log line per request."""

    def __init__(self, app: ASGIApp) -> None:
        self._app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self._app(scope, receive, send)
            return

        request_id = _resolve_request_id(scope)
        scope.setdefault("state", {})["request_id"] = request_id
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        started = perf_counter()

        async def _send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = int(message["status"])
                headers = MutableHeaders(scope=message)
                if REQUEST_ID_HEADER.lower() not in headers:
                    headers.append(REQUEST_ID_HEADER, request_id)
            await send(message)

        try:
            await self._app(scope, receive, _send)
        finally:
            duration_ms = (perf_counter() - started) * 1000.0
            _log_request(
                scope,
                request_id=request_id,
                status_code=status_code,
                duration_ms=duration_ms,
            )


def _log_request(
    scope: Scope,
    *,
    request_id: str,
    status_code: int,
    duration_ms: float,
) -> None:
    path = str(scope.get("path", ""))
    if path in _HEALTH_PATHS and not settings.request_log_include_health:
        return
    context: dict[str, object] = {
        "request_id": request_id,
        "method": scope.get("method", ""),
        "path": path,
        "status_code": status_code,
        "duration_ms": round(duration_ms, 2),
    }
    threshold = settings.request_log_slow_ms
    if threshold and duration_ms >= threshold:
        logger.warning("http.request.slow", extra={**context, "slow_threshold_ms": threshold})
        return
    logger.info("http.request.completed", extra=context)


def _get_request_id(request: Request) -> str | None:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    return None


def _error_payload(*, detail: object, request_id: str | None) -> dict[str, Any]:
    payload: dict[str, Any] = {"detail": _json_safe(detail)}
    if request_id is not None:
        payload["request_id"] = request_id
    return payload


def _json_safe(value: object) -> object:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_json_safe(item) for item in value]
    return str(value)


def _json_response(
    request: Request,
    *,
    status_code: int,
    payload: dict[str, Any],
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    response_headers = dict(headers or {})
    request_id = payload.get("request_id")
    if isinstance(request_id, str):
        response_headers[REQUEST_ID_HEADER] = request_id
    return JSONResponse(status_code=status_code, content=payload, headers=response_headers)


async def _request_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, RequestValidationError):
        msg = "Expected RequestValidationError"
        raise TypeError(msg)
    request_id = _get_request_id(request)
    return _json_response(
        request,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        payload=_error_payload(detail=list(exc.errors()), request_id=request_id),
    )


async def _response_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, ResponseValidationError):
        msg = "Expected ResponseValidationError"
        raise TypeError(msg)
    request_id = _get_request_id(request)
    logger.error(
        "http.response.validation_failed",
        extra={"request_id": request_id, "errors": _json_safe(list(exc.errors()))},
    )
    return _json_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        payload=_error_payload(detail="Internal Server Error", request_id=request_id),
    )


async def _http_exception_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, StarletteHTTPException):
        msg = "Expected StarletteHTTPException"
        raise TypeError(msg)
    request_id = _get_request_id(request)
    return _json_response(
        request,
        status_code=exc.status_code,
        payload=_error_payload(detail=exc.detail, request_id=request_id),
        headers=dict(exc.headers or {}),
    )


async def _roster_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, RosterError):
        msg = "Expected RosterError"
        raise TypeError(msg)
    request_id = _get_request_id(request)
    log = logger.error if isinstance(exc, UpstreamFailure) else logger.info
    log(
        "roster.request.rejected",
        extra={
            "request_id": request_id,
            "code": exc.code,
            "error_message": exc.message,
            "path": request.url.path,
        },
    )
    payload = _error_payload(detail=exc.message, request_id=request_id)
    payload["code"] = exc.code
    if exc.details is not None:
        payload["details"] = _json_safe(exc.details)
    return _json_response(request, status_code=exc.status_code, payload=payload)


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = _get_request_id(request)
    logger.error(
        "http.request.unhandled_error",
        extra={"request_id": request_id, "path": request.url.path},
        exc_info=exc,
    )
    return _json_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        payload=_error_payload(detail="Internal Server Error", request_id=request_id),
    )


def install_error_handling(app: FastAPI) -> None:
    """Register the request-context middleware and JSON error handlers."""
    app.add_middleware(RequestContextMiddleware)
    app.add_exception_handler(RequestValidationError, _request_validation_exception_handler)
    app.add_exception_handler(ResponseValidationError, _response_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_exception_handler)
    app.add_exception_handler(RosterError, _roster_error_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
