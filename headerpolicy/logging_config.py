"""structlog configuration for headerpolicy.

Policy selection, directive replacement and missing-policy errors are
emitted as structlog events. ``setup_logging`` renders them, together with
anything logged through stdlib ``logging``, as JSON lines or as coloured
console output on a single handler.
"""

import logging
import sys
from typing import Optional, TextIO

import structlog


def _rename_logger_to_module(
    logger: logging.Logger, method_name: str, event_dict: dict
) -> dict:
    if "logger" in event_dict:
        event_dict["module"] = event_dict.pop("logger")
    return event_dict


def setup_logging(
    log_level: str = "info",
    json_format: bool = True,
    stream: Optional[TextIO] = None,
) -> None:
    """Install the headerpolicy log pipeline on the root logger.

    ``stream`` defaults to stdout; the CLI passes stderr so its command
    output stays parseable. An unknown ``log_level`` falls back to info.
    Calling this again replaces the previous handler.
    """
    if json_format:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            _rename_logger_to_module,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
