"""
aiohttp application factory.

Routes receive their services through typed app keys, built from one
AppContext. Errors are mapped to JSON responses by a single middleware.
"""

from aiohttp import web
from loguru import logger

from hexsearch.context import AppContext
from hexsearch.services.crawler.poller import ChainPollerManager
from hexsearch.services.cross_chain_search import CrossChainSearchService
from hexsearch.services.search_service import SearchService
from hexsearch.utils.exceptions import QueryTimeoutError, StoreError, ValidationError


CONTEXT_KEY = web.AppKey("context", AppContext)
SEARCH_SERVICE_KEY = web.AppKey("search_service", SearchService)
CROSS_CHAIN_SERVICE_KEY = web.AppKey("cross_chain_service", CrossChainSearchService)
POLLERS_KEY = web.AppKey("pollers", ChainPollerManager)


def error_response(message: str, status: int) -> web.Response:
    """JSON error body."""
    return web.json_response({"error": message}, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """
    Map exceptions to HTTP responses.

    ValidationError -> 400, QueryTimeoutError -> 504,
    StoreError and anything unexpected -> 500.
    """
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except ValidationError as e:
        return error_response(str(e), 400)
    except QueryTimeoutError as e:
        logger.warning(f"[API] {request.method} {request.path_qs}: {e}")
        return error_response("Query timed out", 504)
    except StoreError as e:
        logger.error(f"[API] {request.method} {request.path_qs}: {e}")
        return error_response("Internal server error", 500)
    except Exception as e:
        logger.exception(f"[API] Unhandled error on {request.method} {request.path_qs}: {e}")
        return error_response("Internal server error", 500)


def create_app(ctx: AppContext, pollers: ChainPollerManager | None = None) -> web.Application:
    """
    Build the HTTP application.

    Args:
        ctx: Application context
        pollers: Running pollers, reported by /health

    Returns:
        Configured aiohttp application
    """
    from server.health import setup_health_routes
    from server.routes.cross_chain import setup_cross_chain_routes
    from server.routes.search import setup_search_routes

    app = web.Application(middlewares=[error_middleware])
    app[CONTEXT_KEY] = ctx
    app[SEARCH_SERVICE_KEY] = ctx.search_service()
    app[CROSS_CHAIN_SERVICE_KEY] = ctx.cross_chain_search_service()
    if pollers is not None:
        app[POLLERS_KEY] = pollers

    setup_search_routes(app)
    setup_cross_chain_routes(app)
    setup_health_routes(app)
    return app
