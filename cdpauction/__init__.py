"""
CDP Auction

Collateral auction house for a CDP-backed stablecoin system:
- Increasing-discount (Dutch) collateral auctions
- Fixed-point WAD/RAY arithmetic with overflow detection
- Partial fills with dust protection
- In-memory ledger, oracle and liquidation engine collaborators
"""

__version__ = "0.1.0"
