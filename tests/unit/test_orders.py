"""
tests/unit/test_orders.py - Order file loading tests.
"""

import copy
import json

import pytest

from conftest import OWNER, USDT, NHT, VAULT_ID
from core.exceptions import ErrorCode, ValidationError
from strategy.orders import load_orders, parse_order, parse_orders

ORDER_JSON = {
    "owner": OWNER,
    "handleIO": True,
    "evaluable": {
        "interpreter": "0x8ECd48e70954Dec0f45e4551f039A0D24038c536",
        "store": "0x13cdD62F032125Fea331Cf8B79eADE8830CD5dab",
        "expression": "0xF77F4C334F3De948BaEdf814Af7f82365171e559",
    },
    "validInputs": [{"token": USDT, "decimals": 6, "vaultId": hex(VAULT_ID)}],
    "validOutputs": [{"token": NHT, "decimals": 18, "vaultId": hex(VAULT_ID)}],
}


def order_json(**overrides) -> dict:
    data = copy.deepcopy(ORDER_JSON)
    data.update(overrides)
    return data


class TestParseOrder:
    def test_parse(self):
        order = parse_order(order_json())

        assert order.owner == OWNER
        assert order.handle_io is True
        assert order.input.token == USDT
        assert order.input.decimals == 6
        assert order.input.vault_id == VAULT_ID
        assert order.output.token == NHT

    def test_integer_vault_id(self):
        data = order_json()
        data["validInputs"][0]["vaultId"] = 1
        assert parse_order(data).input.vault_id == 1

    def test_decimal_string_vault_id(self):
        data = order_json()
        data["validInputs"][0]["vaultId"] = "12"
        assert parse_order(data).input.vault_id == 12

    def test_round_trip_through_to_dict(self):
        order = parse_order(order_json())
        assert parse_order(order.to_dict()) == order

    def test_bad_owner(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_order(order_json(owner="alice"), 4)
        assert exc_info.value.code == ErrorCode.ORDERS_INVALID
        assert exc_info.value.details["order_index"] == 4

    def test_empty_inputs(self):
        with pytest.raises(ValidationError):
            parse_order(order_json(validInputs=[]))

    def test_decimals_out_of_range(self):
        data = order_json()
        data["validOutputs"][0]["decimals"] = 24
        with pytest.raises(ValidationError) as exc_info:
            parse_order(data)
        assert exc_info.value.code == ErrorCode.ORDERS_INVALID

    def test_missing_evaluable(self):
        data = order_json()
        del data["evaluable"]
        with pytest.raises(ValidationError):
            parse_order(data)


class TestLoadOrders:
    def test_load_file(self, tmp_path):
        path = tmp_path / "orders.json"
        path.write_text(json.dumps([order_json(), order_json(handleIO=False)]))

        orders = load_orders(path)

        assert len(orders) == 2
        assert orders[1].handle_io is False

    def test_not_a_list(self):
        with pytest.raises(ValidationError):
            parse_orders({"orders": []})

    def test_empty_list(self):
        assert parse_orders([]) == []

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "orders.json"
        path.write_text("{not json")
        with pytest.raises(ValidationError) as exc_info:
            load_orders(path)
        assert exc_info.value.code == ErrorCode.ORDERS_INVALID

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValidationError):
            load_orders(tmp_path / "missing.json")

    def test_example_file_parses(self):
        from conftest import PROJECT_ROOT

        orders = load_orders(PROJECT_ROOT / "orders.example.json")
        assert len(orders) >= 1
