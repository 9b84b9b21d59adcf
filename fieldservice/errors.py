"""
Error taxonomy for the API and the handlers that render it.

Every error response has the shape ``{"message": str, "errors"?: list}``.
"""
from typing import Any, Dict, List, Optional

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = structlog.get_logger(__name__)


class AuthenticationRequired(HTTPException):
    """No valid session; the client should send the user to sign in."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=message)


class AccessDenied(HTTPException):
    def __init__(self, message: str = "Access denied"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=message)


class NotFound(HTTPException):
    def __init__(self, message: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=message)


class ValidationError(HTTPException):
    def __init__(self, errors: List[Dict[str, Any]], message: str = "Validation error"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
        self.errors = errors


def field_error(field: str, message: str) -> ValidationError:
    return ValidationError([{"path": [field], "message": message}])


def _body(message: str, errors: Optional[list] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"message": message}
    if errors is not None:
        body["errors"] = errors
    return body


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    errors = getattr(exc, "errors", None)
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=_body(message, errors),
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for err in exc.errors():
        # Drop the "body"/"query" prefix so paths name the field itself
        loc = [p for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        errors.append({"path": loc, "message": err.get("msg", "Invalid value"), "type": err.get("type")})
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_body("Validation error", errors))


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("store_error", path=request.url.path, request_id=_request_id(request), error=str(exc), exc_info=exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_body("Internal server error"))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_error", path=request.url.path, request_id=_request_id(request), error=str(exc), exc_info=exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_body("Internal server error"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
