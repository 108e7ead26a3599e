import logging


class HealthCheckFilter(logging.Filter):
    """
    Filters out access logs for the health check endpoint to reduce noise.

    Attached to the `uvicorn.access` logger during application startup.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        # Uvicorn access records carry args like (client, method, path, http_version, status)
        args = record.args
        if isinstance(args, tuple) and len(args) >= 3:
            path = args[2]
            if isinstance(path, str) and path.startswith("/health"):
                return False

        request_line = getattr(record, "request_line", "")
        if isinstance(request_line, str) and "/health" in request_line:
            return False

        return True
