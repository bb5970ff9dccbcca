"""
HexSearch core.

Cross-chain address and transaction indexing with fragment search.
"""

__version__ = "0.1.0"
