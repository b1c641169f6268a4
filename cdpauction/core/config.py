"""
Auction house configuration parameters.

Defines the discount curve, minimum bid and operational settings.
Values are stored as raw fixed-point integers; configuration files and
environment variables use human-readable decimals.
"""

import json
import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from cdpauction.core.errors import UnrecognizedParameterError
from cdpauction.core.fixed_point import RAY, WAD, to_fixed


ENV_PREFIX = "CDPAUCTION_"


@dataclass
class AuctionHouseConfig:
    """Collateral auction house configuration"""

    # Collateral sold by this house
    collateral_type: str = "ETH-A"

    # Discount curve
    min_discount: int = 95 * WAD // 100  # Discount applied at auction start (WAD)
    max_discount: int = 95 * WAD // 100  # Floor the discount decays towards (WAD)
    per_second_discount_update_rate: int = RAY  # Per-second decay (RAY, <= 1.0)

    # Bidding
    minimum_bid: int = 5 * WAD  # Smallest admissible bid in debt-token (WAD)

    # Paths
    log_dir: Path = field(default_factory=lambda: Path("logs"))


# Scale applied to human-readable values of each numeric key
_UNITS: Dict[str, int] = {
    "min_discount": WAD,
    "max_discount": WAD,
    "per_second_discount_update_rate": RAY,
    "minimum_bid": WAD,
}


def _coerce(key: str, value: Any) -> Any:
    if key in _UNITS:
        return to_fixed(value, _UNITS[key])
    if key == "log_dir":
        return Path(value)
    return str(value)


def _read_file(path: Path) -> Dict[str, Any]:
    if path.suffix == ".toml":
        with open(path, "rb") as fh:
            data = tomllib.load(fh)
    elif path.suffix == ".json":
        data = json.loads(path.read_text())
    else:
        raise ValueError(f"Unsupported config format: {path.suffix}")

    # Allow the settings to live under an [auction_house] table
    return data.get("auction_house", data)


def load_config(
    config_path: Optional[str] = None,
    env_file: Optional[str] = None,
) -> AuctionHouseConfig:
    """
    Load configuration from file and environment, falling back to defaults.

    Precedence: environment > config file > defaults. A ``.env`` file is
    loaded first (without overriding variables already set).

    Args:
        config_path: Optional path to a TOML or JSON config file
        env_file: Optional path to a .env file

    Returns:
        AuctionHouseConfig instance

    Raises:
        UnrecognizedParameterError: If the file names an unknown key
    """
    known = {f.name for f in fields(AuctionHouseConfig)}
    values: Dict[str, Any] = {}

    if config_path:
        for key, value in _read_file(Path(config_path)).items():
            if key not in known:
                raise UnrecognizedParameterError(key)
            values[key] = _coerce(key, value)

    load_dotenv(dotenv_path=env_file, override=False)
    for key in known:
        env_value = os.environ.get(ENV_PREFIX + key.upper())
        if env_value is not None:
            values[key] = _coerce(key, env_value)

    return AuctionHouseConfig(**values)
