"""
structlog setup plus the request and timing log helpers
"""
import functools
import logging
import os
import sys
import time
from typing import Optional

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# chatty third-party loggers and the level they are held at
QUIET_LOGGERS = {
    "uvicorn": logging.INFO,
    "fastapi": logging.INFO,
    "urllib3": logging.WARNING,
    "multipart": logging.WARNING,
    "httpx": logging.WARNING,
    "openai": logging.WARNING,
}


def configure_logging(level: Optional[str] = None):
    """JSON lines on stdout through the stdlib logging tree."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level or LOG_LEVEL, logging.INFO),
    )

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


def log_performance(func_name: str):
    """Log wall time of a synchronous call as ``duration_ms``; failures are logged and re-raised."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = structlog.get_logger("performance").bind(function=func_name)
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error("function_failed", duration_ms=_elapsed_ms(started),
                             error_type=type(e).__name__, error=str(e))
                raise
            logger.info("function_completed", duration_ms=_elapsed_ms(started))
            return result
        return wrapper
    return decorator


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def log_api_request(request, status_code: Optional[int] = None, duration: Optional[float] = None,
                    error: Optional[Exception] = None):
    """One line per request phase: started, completed (status + duration) or failed (error)."""
    logger = structlog.get_logger("api").bind(
        method=request.method,
        path=request.url.path,
        client_ip=request.client.host if request.client else "unknown",
    )

    if error is not None:
        logger.error("api_request_failed", error=str(error),
                     status_code=getattr(error, "status_code", 500))
    elif status_code is not None:
        logger.info("api_request_completed", status_code=status_code,
                    duration_ms=round(duration * 1000, 2) if duration is not None else None)
    else:
        logger.info("api_request_started", user_agent=request.headers.get("user-agent", "unknown"))
