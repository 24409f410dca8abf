import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional, TextIO

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        rid = request_id_ctx.get()
        record.request_id = rid or "-"
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        base: Dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "time": time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created)),
            "request_id": getattr(record, "request_id", "-"),
        }
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False)


def init_logging(
    debug: bool = False,
    stream: Optional[TextIO] = None,
    default_level: int = logging.INFO,
) -> None:
    """Install a single JSON handler on the root logger.

    The CLI passes ``sys.stderr`` and ``default_level=WARNING`` so converted
    amounts on stdout stay clean; the HTTP service keeps stdout and INFO.
    """
    root = logging.getLogger()
    root.handlers.clear()
    level = logging.DEBUG if debug else default_level
    root.setLevel(level)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(level)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)

    # httpx logs every request URL at INFO, and the URL carries the API key
    logging.getLogger("httpx").setLevel(logging.WARNING)


def new_operation_id() -> str:
    return str(uuid.uuid4())


async def request_context_middleware(request, call_next):  # type: ignore
    rid = new_operation_id()
    token = request_id_ctx.set(rid)
    logger = logging.getLogger("fxconvert.request")
    logger.debug("request start %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
        return response
    finally:
        logger.debug("request end")
        request_id_ctx.reset(token)
