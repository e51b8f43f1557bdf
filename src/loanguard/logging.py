"""
Loguru setup for LoanGuard.

Every record carries the service name and the component that logged it.
Admissions run inside trace_context, so all lines logged for one loan share
a trace_id.
"""

import json
import sys
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Optional, TextIO

from loguru import logger

from loanguard.config import MonitoringSettings, settings

TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan>{extra[_trace]} - <level>{message}</level>"
)


def serialize(record: Dict[str, Any]) -> str:
    """One JSON line per record; extra fields are flattened into the payload."""
    payload: Dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "service": settings.service_name,
        "message": record["message"],
        "location": f"{record['name']}:{record['function']}:{record['line']}",
    }
    payload.update((key, value) for key, value in record["extra"].items() if not key.startswith("_"))

    exception = record["exception"]
    if exception is not None:
        payload["exception"] = {"type": exception.type.__name__, "value": str(exception.value)}

    return json.dumps(payload, default=str)


def _json_format(record: Dict[str, Any]) -> str:
    # Loguru treats the returned string as a template, so the payload goes through extra
    record["extra"]["_json"] = serialize(record)
    return "{extra[_json]}\n"


def _patch_record(record: Dict[str, Any]):
    extra = record["extra"]
    extra.setdefault("component", record["name"])
    extra["_trace"] = f" [{extra['trace_id']}]" if "trace_id" in extra else ""


def configure_logging(monitoring: Optional[MonitoringSettings] = None, stream: Optional[TextIO] = None):
    """Replace all sinks with the ones the monitoring settings ask for. Console output defaults to stdout."""
    monitoring = monitoring or settings.monitoring
    stream = stream or sys.stdout

    logger.remove()
    logger.configure(patcher=_patch_record)

    if monitoring.log_format == "json":
        logger.add(stream, format=_json_format, level=monitoring.log_level, diagnose=False)
    else:
        logger.add(stream, format=TEXT_FORMAT, level=monitoring.log_level, colorize=stream.isatty())

    if monitoring.log_file:
        logger.add(
            monitoring.log_file,
            format=_json_format,
            level=monitoring.log_level,
            rotation="100 MB",
            retention="7 days",
            compression="gz",
            diagnose=False,
        )


@contextmanager
def trace_context(trace_id: Optional[str] = None):
    """Bind a trace_id, generated if not given, to every record logged inside the block."""
    trace_id = trace_id or str(uuid.uuid4())
    with logger.contextualize(trace_id=trace_id):
        yield trace_id


def get_logger(name: str):
    return logger.bind(component=name)


configure_logging()

__all__ = ["logger", "get_logger", "trace_context", "configure_logging", "serialize"]
