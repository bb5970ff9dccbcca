"""
Single-chain search routes.

GET /search, GET /search/multi/{patterns}, GET /search/{hash}
"""

from aiohttp import web
from loguru import logger

from hexsearch.services.search_service import SearchOptions
from hexsearch.utils.timeouts import with_timeout
from hexsearch.validators import (
    validate_chain,
    validate_entity_type,
    validate_exact_flag,
    validate_hex,
    validate_limit,
    validate_offset,
    validate_query,
)
from server.app import CONTEXT_KEY, SEARCH_SERVICE_KEY, error_response
from server.routes import validated


def _options(request: web.Request, exact: bool | None) -> SearchOptions:
    params = request.query
    return SearchOptions(
        limit=validated(validate_limit(params.get("limit"))),
        offset=validated(validate_offset(params.get("offset"))),
        type=validated(validate_entity_type(params.get("type"))),
        blockchain=validated(validate_chain(params.get("blockchain"))),
        exact=exact,
    )


async def search_handler(request: web.Request) -> web.Response:
    """GET /search?q=&limit=&offset=&type=&blockchain=&exact="""
    query = validated(validate_query(request.query.get("q")))
    exact = validated(validate_exact_flag(request.query.get("exact")))
    if exact:
        query = validated(validate_hex(query))
    else:
        query = query.lower()
    options = _options(request, exact)

    logger.info(f"[API] Search query: {query}, options: {options.cache_dict()}")
    results = await with_timeout(
        request.app[SEARCH_SERVICE_KEY].search(query, options),
        timeout=request.app[CONTEXT_KEY].settings.query_timeout,
        operation_name="search",
    )
    return web.json_response({"query": query, "count": len(results), "results": results})


async def multi_search_handler(request: web.Request) -> web.Response:
    """GET /search/multi/{patterns} (always substring search)"""
    patterns = validated(validate_query(request.match_info.get("patterns"))).lower()
    options = _options(request, exact=False)

    logger.info(f"[API] Multi-pattern search: {patterns}, options: {options.cache_dict()}")
    results = await with_timeout(
        request.app[SEARCH_SERVICE_KEY].search(patterns, options),
        timeout=request.app[CONTEXT_KEY].settings.query_timeout,
        operation_name="multi-pattern search",
    )
    return web.json_response(
        {"patterns": patterns.split(), "count": len(results), "results": results}
    )


async def details_handler(request: web.Request) -> web.Response:
    """GET /search/{hash}?type="""
    hash_value = validated(validate_hex(request.match_info.get("hash")))
    entity_type = validated(validate_entity_type(request.query.get("type")))

    result = await with_timeout(
        request.app[SEARCH_SERVICE_KEY].get_details(hash_value, entity_type),
        timeout=request.app[CONTEXT_KEY].settings.query_timeout,
        operation_name="details",
    )
    if result is None:
        return error_response("Item not found", 404)
    return web.json_response(result)


def setup_search_routes(app: web.Application) -> None:
    """Register search routes. /search/multi must precede /search/{hash}."""
    app.router.add_get("/search", search_handler)
    app.router.add_get("/search/multi/{patterns}", multi_search_handler)
    app.router.add_get("/search/{hash}", details_handler)
