from fastapi import Request, status
from fastapi.responses import JSONResponse
from guestbook.core import exceptions
from guestbook.core.notify import send_ntfy_notification
import logging

logger = logging.getLogger(__name__)

async def guestbook_exception_handler(request: Request, exc: exceptions.GuestbookError):
    status_code = status.HTTP_400_BAD_REQUEST
    content = {"detail": exc.message}

    if isinstance(exc, exceptions.EntityNotFoundError):
        status_code = status.HTTP_404_NOT_FOUND

    elif isinstance(exc, exceptions.ValidationFailedError):
        status_code = 422
        content["errors"] = exc.errors

    elif isinstance(exc, exceptions.StorageError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        # Cause is already logged by the service; the client only sees the generic message
        await send_ntfy_notification(
            message=f"Storage error on {request.method} {request.url.path}: {exc.message}",
            title="Guestbook Storage Error",
            priority="high"
        )

    return JSONResponse(
        status_code=status_code,
        content=content,
    )

async def general_exception_handler(request: Request, exc: Exception):
    error_msg = f"Unhandled Exception: {str(exc)}\nPath: {request.url.path}"
    logger.error(error_msg, exc_info=True)

    await send_ntfy_notification(
        message=error_msg,
        title="500 Internal Server Error",
        priority="max"
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error. Admin has been notified."},
    )
