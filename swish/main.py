import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from swish.api.v1 import routers
from swish.core.encryption import DecryptionError
from swish.db import registry  # noqa: F401  registers every mapper
from swish.db.session import connect_db_pool, close_db_pool

logging.basicConfig(level=logging.DEBUG)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_db_pool()
    yield
    await close_db_pool()


def _envelope(status_code: int, message: str, errors=None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "errors": errors},
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if isinstance(detail, dict):
        return _envelope(exc.status_code, detail.get("message", ""), detail.get("errors"),
                         getattr(exc, "headers", None))
    return _envelope(exc.status_code, str(detail), headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.setdefault(".".join(loc) or "body", []).append(error.get("msg", "Invalid value"))
    return _envelope(status.HTTP_400_BAD_REQUEST, "Validation failed", errors)


async def decryption_error_handler(request: Request, exc: DecryptionError):
    # no detail about the record or ciphertext leaves the server
    logging.error(f"Decryption failure on {request.url.path}")
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


async def unhandled_exception_handler(request: Request, exc: Exception):
    logging.error(f"Unhandled error on {request.url.path}: {traceback.format_exc()}")
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


app = FastAPI(
    title="SWISH API",
    description="Marketplace for basketball trading cards: listings, carts, checkout and payment methods",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(routers.router)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(DecryptionError, decryption_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


@app.get("/")
async def root():
    return {"message": "Welcome to SWISH API 🏀"}
