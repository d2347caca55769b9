import json
import logging
import sys
import traceback

import loguru
from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<bold><white>{message}</white></bold> | <dim>{extra}</dim> {stacktrace}"
)


# Loggers configuration runs at import time -- src/restore_api/__init__.py
def configure_logger(level: str = "INFO"):
    """
    Configure loguru logger with a single stdout sink.

    Args:
        level: Minimum level written to stdout (default: INFO)
    """
    # Suppress verbose Azure SDK logging
    logging.getLogger("azure").setLevel(logging.WARNING)
    logging.getLogger("azure.data.tables").setLevel(logging.WARNING)
    logging.getLogger("azure.core").setLevel(logging.ERROR)
    logging.getLogger("azure.core.pipeline.policies").setLevel(logging.ERROR)

    logger.remove()  # remove the default logger

    logger.add(
        sink=sys.stdout,
        level=level.upper(),
        diagnose=False,
        format=LOG_FORMAT,
        filter=process_log_record,
    )


def process_log_record(record: "loguru.Record") -> "loguru.Record":
    r"""
    Inject transformed metadata into each log record before they are passed to the formatter.

    1. Serialize the "extra" field to JSON so that it renders on one line in Log Analytics.
    2. For error logs, add a traceback with \r instead of \n so that the traceback
       is not split into multiple log events.
    """
    extra = record["extra"]

    # serialize "extra" field to JSON
    if extra:
        record["extra"] = json.dumps(extra, default=str)

    # add stacktrace to log record
    record["stacktrace"] = ""
    if record["exception"]:
        err = record["exception"]
        stacktrace = get_formatted_stacktrace(err, replace_newline_character_with_carriage_return=True)
        record["stacktrace"] = stacktrace

    return record


def get_formatted_stacktrace(loguru_record_exception, replace_newline_character_with_carriage_return: bool) -> str:
    """Get the formatted stacktrace for the current exception."""
    exc_type, exc_value, exc_traceback = loguru_record_exception
    stacktrace_: list[str] = traceback.format_exception(exc_type, exc_value, exc_traceback)
    stacktrace: str = "".join(stacktrace_)
    if replace_newline_character_with_carriage_return:
        stacktrace = stacktrace.replace("\n", "\r")
    return stacktrace
