"""
chains/abi.py - ABI encoding for the contracts the clearing engine talks to.

Orderbook:   vaultBalance(address owner, address token, uint256 vaultId) -> uint256
Interpreter: eval(address store, uint256 namespace, uint256 dispatch, uint256[][] context)
             -> (uint256[] stack, uint256[] kvs)
Arb:         arb(TakeOrdersConfig takeOrders, uint256 minimumSenderOutput,
                 address zeroExSpender, bytes zeroExData)
ERC20:       symbol() -> string, Transfer(address indexed, address indexed, uint256)
"""

from dataclasses import dataclass
from typing import Any, Sequence

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import (
    decode_hex,
    encode_hex,
    function_signature_to_4byte_selector,
    keccak,
    to_checksum_address,
)

from core.constants import MAX_UINT256, TRANSFER_EVENT_TOPIC
from core.models import IO, Order


# =============================================================================
# STRUCT TYPES
# =============================================================================

IO_TYPE = "(address,uint8,uint256)"
EVALUABLE_TYPE = "(address,address,address)"
ORDER_TYPE = f"(address,bool,{EVALUABLE_TYPE},{IO_TYPE}[],{IO_TYPE}[])"
SIGNED_CONTEXT_TYPE = "(address,uint256[],bytes)"
TAKE_ORDER_CONFIG_TYPE = f"({ORDER_TYPE},uint256,uint256,{SIGNED_CONTEXT_TYPE}[])"
TAKE_ORDERS_CONFIG_TYPE = (
    f"(address,address,uint256,uint256,uint256,{TAKE_ORDER_CONFIG_TYPE}[])"
)

VAULT_BALANCE_SIGNATURE = "vaultBalance(address,address,uint256)"
EVAL_SIGNATURE = "eval(address,uint256,uint256,uint256[][])"
ARB_SIGNATURE = f"arb({TAKE_ORDERS_CONFIG_TYPE},uint256,address,bytes)"
SYMBOL_SIGNATURE = "symbol()"

# Calculate-order entrypoint of an order expression
CALCULATE_ORDER_SOURCE_INDEX = 0
CALCULATE_ORDER_MAX_OUTPUTS = 2


def selector(signature: str) -> str:
    """4-byte function selector as 0x-prefixed hex."""
    return encode_hex(function_signature_to_4byte_selector(signature))


def encode_call(signature: str, types: Sequence[str], args: Sequence[Any]) -> str:
    """Selector followed by ABI-encoded arguments, as 0x-prefixed hex."""
    return encode_hex(
        function_signature_to_4byte_selector(signature) + encode(list(types), list(args))
    )


def same_address(a: str | None, b: str | None) -> bool:
    if not a or not b:
        return False
    return a.lower() == b.lower()


def _hex_to_bytes(value: str) -> bytes:
    if not value or value == "0x":
        return b""
    return decode_hex(value)


# =============================================================================
# ORDER STRUCTS
# =============================================================================

def io_struct(io: IO) -> tuple:
    return (to_checksum_address(io.token), io.decimals, io.vault_id)


def order_struct(order: Order) -> tuple:
    """Order as the tuple matching ORDER_TYPE."""
    return (
        to_checksum_address(order.owner),
        order.handle_io,
        (
            to_checksum_address(order.evaluable.interpreter),
            to_checksum_address(order.evaluable.store),
            to_checksum_address(order.evaluable.expression),
        ),
        [io_struct(io) for io in order.valid_inputs],
        [io_struct(io) for io in order.valid_outputs],
    )


def order_hash(order: Order) -> int:
    """keccak256(abi.encode(order)) as uint256."""
    return int.from_bytes(keccak(encode([ORDER_TYPE], [order_struct(order)])), "big")


def take_orders_config(order: Order, amount: int) -> tuple:
    """
    TakeOrdersConfig clearing a single order at IO index 0.

    minimumInput and maximumInput are both `amount` so the fill matches
    the quoted sell amount exactly. maximumIORatio is left uncapped.
    """
    take_order = (order_struct(order), 0, 0, [])
    return (
        to_checksum_address(order.input.token),
        to_checksum_address(order.output.token),
        amount,
        amount,
        MAX_UINT256,
        [take_order],
    )


# =============================================================================
# CALL ENCODERS / DECODERS
# =============================================================================

def encode_vault_balance(owner: str, token: str, vault_id: int) -> str:
    return encode_call(
        VAULT_BALANCE_SIGNATURE,
        ["address", "address", "uint256"],
        [to_checksum_address(owner), to_checksum_address(token), vault_id],
    )


def decode_uint256(hex_result: str) -> int:
    data = _hex_to_bytes(hex_result)
    if len(data) < 32:
        raise DecodingError(f"uint256 response too short: {len(data)} bytes")
    return decode(["uint256"], data[:32])[0]


def encode_dispatch(expression: str, source_index: int, max_outputs: int) -> int:
    """Pack expression address, source index and max outputs into a dispatch word."""
    return (int(expression, 16) << 32) | (source_index << 16) | max_outputs


def encode_eval(store: str, namespace: int, dispatch: int, context: list[list[int]]) -> str:
    return encode_call(
        EVAL_SIGNATURE,
        ["address", "uint256", "uint256", "uint256[][]"],
        [to_checksum_address(store), namespace, dispatch, context],
    )


def decode_eval(hex_result: str) -> tuple[list[int], list[int]]:
    """Returns (stack, kvs)."""
    stack, kvs = decode(["uint256[]", "uint256[]"], _hex_to_bytes(hex_result))
    return list(stack), list(kvs)


def encode_arb(config: tuple, minimum_output: int, spender: str, swap_data: str) -> str:
    return encode_call(
        ARB_SIGNATURE,
        [TAKE_ORDERS_CONFIG_TYPE, "uint256", "address", "bytes"],
        [config, minimum_output, to_checksum_address(spender), _hex_to_bytes(swap_data)],
    )


def encode_symbol() -> str:
    return selector(SYMBOL_SIGNATURE)


def decode_symbol(hex_result: str) -> str:
    """Decode symbol(); falls back to bytes32 for old tokens (e.g. MKR)."""
    data = _hex_to_bytes(hex_result)
    try:
        return decode(["string"], data)[0]
    except (DecodingError, UnicodeDecodeError):
        if len(data) != 32:
            raise
        return data.rstrip(b"\x00").decode("utf-8", errors="replace")


# =============================================================================
# EVENTS
# =============================================================================

@dataclass(frozen=True)
class TransferEvent:
    """Decoded ERC20 Transfer log."""
    token: str
    from_address: str
    to_address: str
    value: int


def _topic_to_address(topic: str) -> str:
    raw = _hex_to_bytes(topic)
    return to_checksum_address(raw[-20:])


def decode_transfer_log(log: dict) -> TransferEvent | None:
    """
    Decode an ERC20 Transfer log from a receipt.

    Returns None for any log that is not an ERC20 Transfer
    (other events, ERC721 transfers with an indexed token id).
    """
    topics = log.get("topics") or []
    if len(topics) != 3 or str(topics[0]).lower() != TRANSFER_EVENT_TOPIC:
        return None
    data = _hex_to_bytes(log.get("data") or "0x")
    if len(data) != 32:
        return None
    return TransferEvent(
        token=log.get("address", ""),
        from_address=_topic_to_address(topics[1]),
        to_address=_topic_to_address(topics[2]),
        value=int.from_bytes(data, "big"),
    )
