# backend/utils/errors.py
"""Error kinds raised by the shop services.

Each kind carries the HTTP status it is reported with; the app registers a
single handler for ``ShopError`` (see ``main.py``).
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse


class ShopError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ShopError):
    """A product (or order, or cart line) the caller referenced does not exist."""
    status_code = status.HTTP_404_NOT_FOUND


class InvalidState(ShopError):
    """Request is well-formed but not allowed now: empty cart, non-positive quantity."""
    status_code = status.HTTP_400_BAD_REQUEST


class Internal(ShopError):
    """Persistence failure; the unit of work was rolled back."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def shop_error_handler(request: Request, exc: ShopError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})
