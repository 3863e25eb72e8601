"""
Pytest configuration and fixtures for the clearing bot tests.
"""

import sys
from pathlib import Path

import pytest
from eth_abi import encode
from eth_utils import encode_hex

# Add project root and tests dir to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))
sys.path.insert(0, str(Path(__file__).parent))

from config import ClearingConfig  # noqa: E402
from core.constants import TRANSFER_EVENT_TOPIC  # noqa: E402
from core.models import IO, Evaluable, Order, Quote  # noqa: E402

ORDERBOOK = "0x42cc063a0730a99ff2fc25218c606eb4969ca2eb"
ARB = "0x867fdf225b666a2f16bb4c08404c597c909399a5"
BOT = "0x1111111111111111111111111111111111111111"
OWNER = "0xA25f22b0Ab021A9cA1513C892e6FaacC50e92907"
USDT = "0xc2132D05D31c914a87C6611C10748AEb04B58e8F"
NHT = "0x84342e932797FC62814189f01F0Fb05F52519708"
POOL = "0x2222222222222222222222222222222222222222"
ALLOWANCE_TARGET = "0xdef1c0ded9bec7f1a1670819833240f027b25eff"
VAULT_ID = 0x84E4BEC2ECCB5E3F00D2DB11F82A85C0329FA210EDB34FBC266E8D2E9D10EE28


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


def make_order(
    input_token: str = USDT,
    input_decimals: int = 6,
    output_token: str = NHT,
    output_decimals: int = 18,
) -> Order:
    """Order buying `input_token` with its `output_token` vault."""
    return Order(
        owner=OWNER,
        handle_io=True,
        evaluable=Evaluable(
            interpreter="0x8ECd48e70954Dec0f45e4551f039A0D24038c536",
            store="0x13cdD62F032125Fea331Cf8B79eADE8830CD5dab",
            expression="0xF77F4C334F3De948BaEdf814Af7f82365171e559",
        ),
        valid_inputs=(IO(token=input_token, decimals=input_decimals, vault_id=VAULT_ID),),
        valid_outputs=(IO(token=output_token, decimals=output_decimals, vault_id=VAULT_ID),),
    )


def make_quote(
    price: str = "0.6",
    buy_token_to_eth_rate: str = "0.9",
    gas_price: int = 30 * 10**9,
) -> Quote:
    return Quote(
        price=price,
        guaranteed_price=price,
        buy_token_to_eth_rate=buy_token_to_eth_rate,
        gas_price=gas_price,
        allowance_target=ALLOWANCE_TARGET,
        data="0xd9627aa4" + "00" * 64,
    )


def _topic(address: str) -> str:
    return "0x" + "00" * 12 + address[2:].lower()


def transfer_log(token: str, src: str, dst: str, value: int) -> dict:
    """ERC20 Transfer log as found in a JSON-RPC receipt."""
    return {
        "address": token,
        "topics": [TRANSFER_EVENT_TOPIC, _topic(src), _topic(dst)],
        "data": encode_hex(encode(["uint256"], [value])),
    }


@pytest.fixture
def clearing_config() -> ClearingConfig:
    return ClearingConfig(
        network="polygon",
        chain_id=137,
        api_url="https://polygon.api.0x.org/",
        orderbook_address=ORDERBOOK,
        arb_address=ARB,
        explorer_tx_url="https://polygonscan.com/tx/",
        receipt_poll_seconds=0,
    )


@pytest.fixture
def order() -> Order:
    return make_order()
