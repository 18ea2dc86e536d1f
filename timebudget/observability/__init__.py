"""
Observability: structured logging and request ids.

Usage:
    from timebudget.observability import configure_logging, RequestContext

    configure_logging("INFO")

    with RequestContext() as ctx:
        logger.info("Processing %s", ctx.request_id)
"""

from .context import RequestContext, generate_request_id, get_request_id, set_request_id
from .logging import HumanFormatter, JSONFormatter, configure_logging
from .middleware import CorrelationIdMiddleware

__all__ = [
    "configure_logging",
    "JSONFormatter",
    "HumanFormatter",
    "RequestContext",
    "generate_request_id",
    "get_request_id",
    "set_request_id",
    "CorrelationIdMiddleware",
]
