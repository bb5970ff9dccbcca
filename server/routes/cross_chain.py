"""
Cross-chain search routes.

GET /cross-chain/search, GET /cross-chain/chains,
GET /cross-chain/address/{address}/transactions
"""

import asyncio

from aiohttp import web
from loguru import logger

from hexsearch.services.cross_chain_search import CrossChainSearchOptions
from hexsearch.utils.timeouts import with_timeout
from hexsearch.validators import (
    validate_chains,
    validate_entity_type,
    validate_fragments,
    validate_limit,
    validate_offset,
    validate_query,
)
from server.app import CONTEXT_KEY, CROSS_CHAIN_SERVICE_KEY, error_response
from server.routes import validated


def _timeout(request: web.Request) -> float:
    return request.app[CONTEXT_KEY].settings.query_timeout


async def cross_chain_search_handler(request: web.Request) -> web.Response:
    """GET /cross-chain/search?fragments=&limit=&offset=&chains=&type="""
    params = request.query
    fragments = validated(validate_fragments(params.get("fragments")))
    options = CrossChainSearchOptions(
        limit=validated(validate_limit(params.get("limit"))),
        offset=validated(validate_offset(params.get("offset"))),
        type=validated(validate_entity_type(params.get("type"))),
        chains=validated(validate_chains(params.get("chains"))),
    )

    logger.info(
        f"[API] Cross-chain search fragments: {', '.join(fragments)}, "
        f"options: {options.cache_dict()}"
    )
    results = await with_timeout(
        request.app[CROSS_CHAIN_SERVICE_KEY].search_address_fragments(fragments, options),
        timeout=_timeout(request),
        operation_name="cross-chain search",
    )
    return web.json_response(
        {
            "fragments": fragments,
            "addressCount": len(results["addresses"]),
            "transactionCount": len(results["transactions"]),
            "results": results,
        }
    )


async def chains_handler(request: web.Request) -> web.Response:
    """GET /cross-chain/chains"""
    chains = await with_timeout(
        request.app[CROSS_CHAIN_SERVICE_KEY].get_supported_blockchains(),
        timeout=_timeout(request),
        operation_name="supported chains",
    )
    return web.json_response({"count": len(chains), "chains": chains})


async def address_transactions_handler(request: web.Request) -> web.Response:
    """GET /cross-chain/address/{address}/transactions?limit=&offset=&chains="""
    address = validated(validate_query(request.match_info.get("address"))).lower()
    params = request.query
    offset = validated(validate_offset(params.get("offset")))
    options = CrossChainSearchOptions(
        limit=validated(validate_limit(params.get("limit"))),
        chains=validated(validate_chains(params.get("chains"))),
    )
    service = request.app[CROSS_CHAIN_SERVICE_KEY]

    async def lookup():
        return await asyncio.gather(
            service.find_addresses_with_all_fragments(
                [address], CrossChainSearchOptions(limit=1, chains=options.chains), exact=True
            ),
            service.find_transactions_for_addresses([address], options, offset=offset),
        )

    address_results, transactions = await with_timeout(
        lookup(), timeout=_timeout(request), operation_name="address transactions"
    )
    if not address_results:
        return error_response("Address not found", 404)

    return web.json_response(
        {
            "address": address,
            "addressDetails": address_results[0].to_dict(),
            "transactionCount": len(transactions),
            "transactions": [t.to_dict() for t in transactions],
        }
    )


def setup_cross_chain_routes(app: web.Application) -> None:
    """Register cross-chain routes."""
    app.router.add_get("/cross-chain/search", cross_chain_search_handler)
    app.router.add_get("/cross-chain/chains", chains_handler)
    app.router.add_get(
        "/cross-chain/address/{address}/transactions", address_transactions_handler
    )
