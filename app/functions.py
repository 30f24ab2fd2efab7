"""
Serverless Entry Points

Handlers for runtimes that invoke a function per request with an event
dict and expect a response dict (AWS Lambda proxy integration, Netlify
Functions):

    event    = {"httpMethod": "GET", "queryStringParameters": {"slug": "bitcoin"}}
    response = {"statusCode": 200, "headers": {...}, "body": "{...}"}

Configure the runtime to call `app.functions.coins_list` and
`app.functions.crypto_data`.

A warm process keeps its FunctionContext (and therefore its caches) and
its event loop between invocations. A cold start builds new ones.
"""

import asyncio
from typing import Any, Dict, Optional

from core.config import validate_configuration
from core.logging import get_logger
from services.functions import FunctionContext, FunctionRequest, ListingsFunction, QuoteFunction


logger = get_logger(__name__)

_context: Optional[FunctionContext] = None
_loop: Optional[asyncio.AbstractEventLoop] = None


def get_context() -> FunctionContext:
    """Return the process-wide context, creating it on first use."""
    global _context
    if _context is None:
        _context = FunctionContext.from_settings()
        validate_configuration(_context.settings)
        logger.info("Function context created (cold start)")
    return _context


def set_context(context: Optional[FunctionContext]) -> None:
    """Replace the process-wide context (None forces a cold start)."""
    global _context
    _context = context


def _run(coro):
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop.run_until_complete(coro)


def coins_list(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Serverless handler for the coins list function."""
    function = ListingsFunction(get_context())
    return _run(function(FunctionRequest.from_event(event or {}))).to_event()


def crypto_data(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Serverless handler for the single coin quote function."""
    function = QuoteFunction(get_context())
    return _run(function(FunctionRequest.from_event(event or {}))).to_event()
