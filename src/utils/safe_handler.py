import functools
import inspect
from fastapi import HTTPException

from src.utils.logger import api_logger


def _log_http_exception(he: HTTPException):
    status = getattr(he, "status_code", None)
    detail = getattr(he, "detail", None)
    if status and status >= 500:
        api_logger.error("HTTPException raised (status=%s): %s", status, detail)
    else:
        api_logger.warning("HTTPException raised (status=%s): %s", status, detail)


# -------------------------
# safe_handler decorator (sync & async aware)
# -------------------------
def safe_handler(default_status: int = 500, default_detail: str = "Unexpected error"):
    """
    Decorator that:
    - logs HTTPException (WARNING for 4xx, ERROR for 5xx) and re-raises it
    - logs unexpected exceptions with full stack trace and converts them to HTTPException
    Supports both sync and async handlers.
    """

    def decorator(func):
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                try:
                    return await func(*args, **kwargs)
                except HTTPException as he:
                    _log_http_exception(he)
                    raise
                except Exception as e:
                    api_logger.exception("Unhandled exception in handler: %s", e)
                    # Do not leak internal error details to the client
                    raise HTTPException(status_code=default_status, detail=default_detail)

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except HTTPException as he:
                _log_http_exception(he)
                raise
            except Exception as e:
                api_logger.exception("Unhandled exception in handler: %s", e)
                raise HTTPException(status_code=default_status, detail=default_detail)

        return sync_wrapper

    return decorator
