import logging
import sys

import structlog

_FALLBACK_HANDLER_NAME = "reeks_fallback_handler"


def _configure_structlog():
    """Configures structlog to produce JSON-formatted logs via stdlib."""
    if structlog.is_configured():
        return

    # Fallback configuration only. Applications are expected to configure
    # logging themselves.
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.set_name(_FALLBACK_HANDLER_NAME)

    library_logger = logging.getLogger("reeks")
    if _FALLBACK_HANDLER_NAME not in [h.get_name() for h in library_logger.handlers]:
        library_logger.addHandler(handler)
        library_logger.setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


_structlog_configured = False


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Returns a structlog logger for the given name, integrated with the
    standard library's logging system.
    """
    global _structlog_configured
    if not _structlog_configured:
        _configure_structlog()
        _structlog_configured = True
    return structlog.get_logger(name)
