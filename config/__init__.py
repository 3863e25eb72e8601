# PATH: config/__init__.py
"""
Configuration loading for the clearing bot.

Network defaults come from networks.yaml. Per-run overrides are applied
once by ConfigBuilder, which yields a frozen ClearingConfig that is passed
to every component.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from core.constants import (
    ADDRESS_PATTERN,
    DEFAULT_PRE_TRADE_GAS_COVERAGE,
    DEFAULT_QUOTE_TIMEOUT_SECONDS,
    DEFAULT_RECEIPT_POLL_SECONDS,
    DEFAULT_SLIPPAGE,
    SLIPPAGE_PATTERN,
)
from core.exceptions import ConfigError, ErrorCode
from core.logging import get_logger

logger = get_logger(__name__)

CONFIG_DIR = Path(__file__).parent


def load_yaml(filename: str) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        filename: Name of file in config directory

    Returns:
        Parsed YAML as dict
    """
    filepath = CONFIG_DIR / filename
    if not filepath.exists():
        raise FileNotFoundError(f"Config file not found: {filepath}")

    with open(filepath, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_networks() -> Dict[str, Any]:
    """Load networks configuration."""
    return load_yaml("networks.yaml")


def get_network_config(chain_id: int) -> tuple[str, Dict[str, Any]]:
    """
    Find network configuration by chain id.

    Returns:
        (network_name, network_config)
    """
    for name, network in load_networks().items():
        if network.get("chain_id") == chain_id:
            return name, network
    raise ConfigError(
        code=ErrorCode.CONFIG_UNKNOWN_NETWORK,
        message=f"Cannot find configuration for the network with chain id: {chain_id}",
        details={"chain_id": chain_id},
    )


def is_address(value: Optional[str]) -> bool:
    return bool(value) and re.match(ADDRESS_PATTERN, value) is not None


@dataclass(frozen=True)
class ClearingConfig:
    """Immutable configuration for one clearing run."""
    network: str
    chain_id: int
    api_url: str
    orderbook_address: str
    arb_address: str
    explorer_tx_url: str = ""
    api_key: Optional[str] = None
    slippage: str = DEFAULT_SLIPPAGE
    pre_trade_gas_coverage: str = DEFAULT_PRE_TRADE_GAS_COVERAGE
    enforce_profit: bool = False
    quote_timeout_seconds: int = DEFAULT_QUOTE_TIMEOUT_SECONDS
    receipt_poll_seconds: float = DEFAULT_RECEIPT_POLL_SECONDS
    receipt_timeout_seconds: Optional[float] = None

    def tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_tx_url}{tx_hash}" if self.explorer_tx_url else tx_hash


class ConfigBuilder:
    """
    Resolves a ClearingConfig from network defaults and run overrides.

    Usage:
        config = (
            ConfigBuilder(chain_id)
            .with_arb_address(cli_arb)
            .with_api_key(os.getenv("API_KEY"))
            .build()
        )
    """

    def __init__(self, chain_id: int):
        self.chain_id = chain_id
        self._overrides: Dict[str, Any] = {}

    def with_orderbook_address(self, address: Optional[str]) -> "ConfigBuilder":
        return self._address_override("orderbook_address", address)

    def with_arb_address(self, address: Optional[str]) -> "ConfigBuilder":
        return self._address_override("arb_address", address)

    def with_api_key(self, api_key: Optional[str]) -> "ConfigBuilder":
        if api_key:
            self._overrides["api_key"] = api_key
        return self

    def with_slippage(self, slippage: Optional[str]) -> "ConfigBuilder":
        if slippage is not None:
            if not re.match(SLIPPAGE_PATTERN, str(slippage)):
                raise ConfigError(
                    code=ErrorCode.CONFIG_INVALID_VALUE,
                    message="invalid slippage value",
                    details={"slippage": slippage},
                )
            self._overrides["slippage"] = str(slippage)
        return self

    def with_enforce_profit(self, enforce: bool) -> "ConfigBuilder":
        self._overrides["enforce_profit"] = enforce
        return self

    def with_receipt_timeout(self, seconds: Optional[float]) -> "ConfigBuilder":
        self._overrides["receipt_timeout_seconds"] = seconds
        return self

    def _address_override(self, key: str, address: Optional[str]) -> "ConfigBuilder":
        if not address:
            return self
        if is_address(address):
            self._overrides[key] = address
        else:
            logger.warning(
                f"Ignoring invalid {key} override",
                extra={"context": {key: address}},
            )
        return self

    def build(self) -> ClearingConfig:
        """
        Resolve and validate.

        Raises:
            ConfigError: Unknown network, missing or malformed contract address
        """
        name, network = get_network_config(self.chain_id)
        resolved = {
            "network": name,
            "chain_id": self.chain_id,
            "api_url": network.get("api_url", ""),
            "orderbook_address": network.get("orderbook_address", ""),
            "arb_address": network.get("arb_address", ""),
            "explorer_tx_url": network.get("explorer_tx_url", ""),
        }
        resolved.update(self._overrides)

        for key, label in (("orderbook_address", "orderbook"), ("arb_address", "arb")):
            address = resolved[key]
            if not address:
                raise ConfigError(
                    code=ErrorCode.CONFIG_MISSING_ADDRESS,
                    message=f"undefined {label} contract address",
                    details={"network": name},
                )
            if not is_address(address):
                raise ConfigError(
                    code=ErrorCode.CONFIG_INVALID_ADDRESS,
                    message=f"invalid {label} contract address",
                    details={"network": name, "address": address},
                )

        if not resolved["api_url"]:
            raise ConfigError(
                code=ErrorCode.CONFIG_INVALID_VALUE,
                message="undefined quote API url",
                details={"network": name},
            )

        return ClearingConfig(**resolved)
