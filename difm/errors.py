# difm/errors.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

log = logging.getLogger("uvicorn.error")

NOT_AUTHENTICATED = "Not authenticated"


class NotAuthenticated(Exception):
    """No session cookie, or the cookie does not resolve to a user.

    Both causes carry the same message on purpose; callers can't tell them apart.
    """

    status_code = 401

    def __init__(self):
        super().__init__(NOT_AUTHENTICATED)


class UnknownEnumValue(ValueError):
    def __init__(self, enum_name: str, value):
        self.enum_name = enum_name
        self.value = value
        super().__init__(f"unrecognized {enum_name} value: {value!r}")


class DuplicateUser(Exception):
    pass


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _not_authenticated(request: Request, exc: NotAuthenticated):
    return _error(exc.status_code, NOT_AUTHENTICATED)


async def _http_error(request: Request, exc: HTTPException):
    return _error(exc.status_code, str(exc.detail))


async def _validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return _error(400, message)


async def _unhandled(request: Request, exc: Exception):
    log.exception("%s %s failed", request.method, request.url.path)
    return _error(500, "Internal Server Error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NotAuthenticated, _not_authenticated)
    app.add_exception_handler(HTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(Exception, _unhandled)
