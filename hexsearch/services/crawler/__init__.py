"""
Block crawler.

Poller -> extractor -> ingestion pipeline -> global index writer.
"""

from hexsearch.services.crawler.extractor import (
    BitcoinExtractor,
    ChainExtractor,
    EthereumExtractor,
    ExtractedBlock,
    ExtractedTransaction,
    get_extractor,
)
from hexsearch.services.crawler.pipeline import IngestionPipeline
from hexsearch.services.crawler.poller import ChainPoller, ChainPollerManager, CrawlerState

__all__ = [
    "BitcoinExtractor",
    "ChainExtractor",
    "ChainPoller",
    "ChainPollerManager",
    "CrawlerState",
    "EthereumExtractor",
    "ExtractedBlock",
    "ExtractedTransaction",
    "IngestionPipeline",
    "get_extractor",
]
