"""
strategy/orders.py - Order list loading.

Orders are read once per run from a JSON file, in clearing order (top
orders clear first). Malformed entries are fatal: the run does not start.
"""

import json
from pathlib import Path
from typing import Any

from config import is_address
from core.exceptions import ErrorCode, ValidationError
from core.math import safe_int, validate_decimals
from core.models import IO, Evaluable, Order


def _invalid(message: str, index: int, **details: Any) -> ValidationError:
    return ValidationError(
        f"Invalid order #{index}: {message}",
        {"order_index": index, **details},
        code=ErrorCode.ORDERS_INVALID,
    )


def _address(data: dict, key: str, index: int) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not is_address(value):
        raise _invalid(f"'{key}' must be an address", index, field=key, value=value)
    return value


def _parse_io(data: Any, index: int) -> IO:
    if not isinstance(data, dict):
        raise _invalid("IO entries must be objects", index)
    token = _address(data, "token", index)
    decimals = data.get("decimals")
    vault_id = data.get("vaultId")
    try:
        validate_decimals(decimals)
        parsed_vault_id = safe_int(vault_id)
    except ValidationError as e:
        raise _invalid(e.message, index, token=token) from e
    return IO(token=token, decimals=decimals, vault_id=parsed_vault_id)


def _parse_ios(data: dict, key: str, index: int) -> tuple[IO, ...]:
    ios = data.get(key)
    if not isinstance(ios, list) or not ios:
        raise _invalid(f"'{key}' must be a non-empty list", index, field=key)
    return tuple(_parse_io(io, index) for io in ios)


def parse_order(data: Any, index: int = 0) -> Order:
    """Build an Order from its JSON representation."""
    if not isinstance(data, dict):
        raise _invalid("order must be an object", index)
    evaluable = data.get("evaluable")
    if not isinstance(evaluable, dict):
        raise _invalid("'evaluable' must be an object", index)
    return Order(
        owner=_address(data, "owner", index),
        handle_io=bool(data.get("handleIO", False)),
        evaluable=Evaluable(
            interpreter=_address(evaluable, "interpreter", index),
            store=_address(evaluable, "store", index),
            expression=_address(evaluable, "expression", index),
        ),
        valid_inputs=_parse_ios(data, "validInputs", index),
        valid_outputs=_parse_ios(data, "validOutputs", index),
    )


def parse_orders(data: Any) -> list[Order]:
    if not isinstance(data, list):
        raise ValidationError(
            "Invalid specified orders: expected a list",
            code=ErrorCode.ORDERS_INVALID,
        )
    return [parse_order(item, i) for i, item in enumerate(data)]


def load_orders(path: Path | str) -> list[Order]:
    """
    Load and parse an orders JSON file.

    Raises:
        ValidationError: unreadable file, invalid JSON or malformed order
    """
    filepath = Path(path)
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ValidationError(
            f"Cannot read orders file: {e}",
            {"path": str(filepath)},
            code=ErrorCode.ORDERS_INVALID,
        ) from e
    return parse_orders(data)
