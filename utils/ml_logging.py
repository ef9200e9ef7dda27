import json
import logging
import os

from colorama import Fore, Style
from colorama import init as colorama_init

# Early .env load to check DISABLE_CLOUD_TELEMETRY before importing any OTel
try:
    from dotenv import load_dotenv

    if os.path.isfile(".env"):
        load_dotenv(override=False)
except ImportError:
    pass

# Conditionally import OpenTelemetry based on DISABLE_CLOUD_TELEMETRY
_telemetry_disabled = os.getenv("DISABLE_CLOUD_TELEMETRY", "false").lower() == "true"

if not _telemetry_disabled:
    from opentelemetry import trace
else:
    trace = None

colorama_init(autoreset=True)


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        record.trace_id = getattr(record, "trace_id", "-")
        record.span_id = getattr(record, "span_id", "-")

        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "name": record.name,
            "process": record.processName,
            "thread": record.threadName,
            "level": record.levelname,
            "trace_id": record.trace_id,
            "span_id": record.span_id,
            "message": record.getMessage(),
            "file": record.filename,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Pool context passed through `extra=`
        for attr_name in dir(record):
            if attr_name.startswith("pool_"):
                log_record[attr_name] = getattr(record, attr_name)

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record, default=str)


class PrettyFormatter(logging.Formatter):
    LEVEL_COLORS = {
        "DEBUG": Fore.CYAN,
        "INFO": Fore.GREEN,
        "WARNING": Fore.YELLOW,
        "ERROR": Fore.RED,
        "CRITICAL": Fore.MAGENTA,
    }

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, self.datefmt)
        level = record.levelname
        name = record.name
        msg = record.getMessage()

        color = self.LEVEL_COLORS.get(level, "")
        line = f"{Fore.WHITE}[{timestamp}]{Style.RESET_ALL} {color}{level}{Style.RESET_ALL} - {Fore.BLUE}{name}{Style.RESET_ALL}: {msg}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class TraceLogFilter(logging.Filter):
    """
    Logging filter that enriches log records with trace context.

    When a span is active the record carries its trace and span ids so pool
    events can be correlated with the caller's trace. Otherwise (or when
    telemetry is disabled) both fields are "-".
    """

    def filter(self, record):
        if _telemetry_disabled or trace is None:
            record.trace_id = "-"
            record.span_id = "-"
            return True

        span = trace.get_current_span()
        context = span.get_span_context() if span else None
        record.trace_id = f"{context.trace_id:032x}" if context and context.trace_id else "-"
        record.span_id = f"{context.span_id:016x}" if context and context.span_id else "-"
        return True


def get_logger(
    name: str = "reusepool",
    level: int | None = None,
    include_stream_handler: bool = True,
) -> logging.Logger:
    """
    Get or create a logger with trace correlation and console output.

    Args:
        name: Logger name (hierarchical, e.g., "reusepool.pools.object_pool")
        level: Optional logging level; defaults to INFO if logger has no level set
        include_stream_handler: Whether to add a console StreamHandler

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if level is not None or logger.level == 0:
        logger.setLevel(level or logging.INFO)

    is_production = os.environ.get("ENV", "dev").lower() == "prod"

    has_trace_filter = any(isinstance(f, TraceLogFilter) for f in logger.filters)
    if not has_trace_filter:
        logger.addFilter(TraceLogFilter())

    if include_stream_handler and not any(
        isinstance(h, logging.StreamHandler) for h in logger.handlers
    ):
        sh = logging.StreamHandler()
        sh.setFormatter(JsonFormatter() if is_production else PrettyFormatter())
        sh.addFilter(TraceLogFilter())
        logger.addHandler(sh)

    return logger
