"""Logging through logfire, with a console sink and a file sink.

Everything imports the module-level ``logger`` proxy. Until
setup_logger() installs a Logger, calls on the proxy do nothing,
so library code and tests can log unconditionally. Nothing is
sent to the logfire service: spans go to the console and, when
configured, to a line-oriented log file.
"""

from __future__ import annotations

import contextlib
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import logfire
from opentelemetry.proto.logs.v1 import logs_pb2
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
    SpanExportResult,
)
from pydantic import BaseModel, Field, PrivateAttr

# Level names to OpenTelemetry severity numbers, most severe first
SEVERITY = {
    "fatal": logs_pb2.SEVERITY_NUMBER_FATAL,
    "error": logs_pb2.SEVERITY_NUMBER_ERROR,
    "warn": logs_pb2.SEVERITY_NUMBER_WARN,
    "info": logs_pb2.SEVERITY_NUMBER_INFO,
    "debug": logs_pb2.SEVERITY_NUMBER_DEBUG,
    "trace": logs_pb2.SEVERITY_NUMBER_TRACE,
}

# Console level for each VERBOSITY value; 3 and above show everything
VERBOSITY_LEVELS = ("error", "info", "debug", "trace")

# Span attributes added by instrumentation rather than by our calls
INTERNAL_ATTRIBUTES = (
    "logfire.", "code.", "otel.", "telemetry.", "service.", "process.",
)

_current_logger: Logger | None = None


class _LoggerProxy:
    """Forwards attribute access to the installed Logger."""

    def __getattr__(self, name):
        if _current_logger is None:
            def _noop(*args, **kwargs):  # noqa: ARG001
                pass
            return _noop
        return getattr(_current_logger, name)

    def __enter__(self):
        if _current_logger is None:
            return self
        return _current_logger.__enter__()

    def __exit__(self, *args):
        if _current_logger is None:
            return False
        return _current_logger.__exit__(*args)


logger = _LoggerProxy()


def verbosity_to_level(verbosity: int) -> str:
    """Map the VERBOSITY setting to a console log level.

    0 shows only errors (the result itself is printed, not
    logged), 1 progress, 2 diagnostics, 3+ collaborator output.
    """
    index = min(max(verbosity, 0), len(VERBOSITY_LEVELS) - 1)
    return VERBOSITY_LEVELS[index]


def span_level(span: ReadableSpan) -> str:
    """Name of the level a span was logged at."""
    level_num = (span.attributes or {}).get(
        "logfire.level_num", SEVERITY["info"]
    )
    for name, threshold in SEVERITY.items():
        if level_num >= threshold:
            return name
    return "trace"


class LevelFilteringExporter(SpanExporter):
    """Span exporter that drops spans below a minimum level."""

    def __init__(self, exporter: SpanExporter, min_level: str):
        self._exporter = exporter
        self._min_severity = SEVERITY.get(min_level.lower(), SEVERITY["info"])

    def export(self, spans: list[ReadableSpan]) -> SpanExportResult:
        kept = [
            span for span in spans
            if SEVERITY[span_level(span)] >= self._min_severity
        ]
        if kept:
            return self._exporter.export(kept)
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        self._exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return self._exporter.force_flush(timeout_millis)


class ConsoleSink(BaseModel):
    """Terminal output, rendered by logfire's console exporter."""

    enabled: bool = Field(default=True, description="Enable the console")
    level: str = Field(
        default="error",
        description="Lowest level shown: trace, debug, info, warn, error",
    )
    colors: str = Field(
        default="auto", description="Color mode: auto, always, never"
    )
    include_timestamps: bool = Field(
        default=False,
        description="Prefix console lines with the wall-clock time",
    )

    def options(self) -> logfire.ConsoleOptions | bool:
        """Console argument for logfire.configure()."""
        if not self.enabled:
            return False
        return logfire.ConsoleOptions(
            min_log_level=self.level,
            colors=self.colors,
            include_timestamps=self.include_timestamps,
            verbose=False,
            show_project_link=False,
        )


class FileSink(BaseModel):
    """Log file with one formatted line per span.

    Lines read ``<time> <level> <message> | key=value ...`` where
    the trailing attributes are the keyword arguments given to the
    logger call.
    """

    enabled: bool = Field(default=False, description="Enable the log file")
    level: str = Field(default="debug", description="Lowest level written")
    path: str = Field(default="datebisect.log", description="Log file path")

    _file: Any = PrivateAttr(default=None)
    _processor: Any = PrivateAttr(default=None)

    def format_span(self, span: ReadableSpan) -> str:
        ts = datetime.fromtimestamp(span.start_time / 1e9, tz=timezone.utc)
        attrs = span.attributes or {}
        message = attrs.get("logfire.msg", span.name)
        line = f"{ts:%Y-%m-%d %H:%M:%S} {span_level(span):<5} {message}"

        extra = sorted(
            (key, value) for key, value in attrs.items()
            if not key.startswith(INTERNAL_ATTRIBUTES)
        )
        if extra:
            line += " | " + " ".join(f"{k}={v!r}" for k, v in extra)
        return line + "\n"

    def processor(self) -> BatchSpanProcessor:
        """Open the file and build the span processor writing to it."""
        log_path = Path(self.path).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # Line buffered so an interrupted search leaves a usable log
        self._file = open(log_path, "a", buffering=1, encoding="utf-8")  # noqa: SIM115
        exporter = ConsoleSpanExporter(
            out=self._file, formatter=self.format_span
        )
        self._processor = BatchSpanProcessor(
            LevelFilteringExporter(exporter, self.level)
        )
        return self._processor

    def close(self):
        """Flush pending spans, then close the file."""
        if self._processor:
            self._processor.shutdown()
            self._processor = None
        if self._file and not self._file.closed:
            with contextlib.suppress(OSError):
                self._file.close()


class Logger(BaseModel):
    """The installed logger: its sinks plus logging methods.

    Usable as a context manager; leaving it closes the file sink.
    """

    console: ConsoleSink = Field(default_factory=ConsoleSink)
    file: FileSink = Field(default_factory=FileSink)

    def setup(self, service_name: str = "datebisect"):
        processors = [self.file.processor()] if self.file.enabled else None
        logfire.configure(
            service_name=service_name,
            send_to_logfire=False,
            console=self.console.options(),
            additional_span_processors=processors,
        )

    def close(self):
        self.file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False

    def trace(self, msg: str, **kwargs):
        logfire.trace(msg, **kwargs)

    def debug(self, msg: str, **kwargs):
        logfire.debug(msg, **kwargs)

    def info(self, msg: str, **kwargs):
        logfire.info(msg, **kwargs)

    def warn(self, msg: str, **kwargs):
        logfire.warn(msg, **kwargs)

    warning = warn

    def error(self, msg: str, **kwargs):
        logfire.error(msg, **kwargs)

    def span(self, msg: str, **kwargs):
        """Context manager grouping the log calls made inside it."""
        return logfire.span(msg, **kwargs)

    def log(self, level: str, msg: str, **kwargs):
        """Log at a level chosen at run time."""
        logfire.log(level, msg, attributes=kwargs or None)


def setup_logger(
    console: ConsoleSink | None = None,
    file: FileSink | None = None,
) -> Logger:
    """Install a Logger with the given sinks and configure logfire.

    Called by the CLI once configuration is loaded, and by tests.
    """
    global _current_logger

    _current_logger = Logger(
        console=console or ConsoleSink(),
        file=file or FileSink(),
    )
    _current_logger.setup()
    return _current_logger
