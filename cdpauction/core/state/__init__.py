"""In-memory collaborators: ledger, liquidation engine, oracles"""
from cdpauction.core.state.safe_engine import SAFEEngine
from cdpauction.core.state.liquidation import LiquidationEngine
from cdpauction.core.state.oracle import OracleRelayer, PriceSource

__all__ = [
    "SAFEEngine",
    "LiquidationEngine",
    "OracleRelayer",
    "PriceSource",
]
