"""
tests/unit/test_accounting.py - Post-trade accounting tests.
"""

from conftest import ARB, BOT, NHT, ORDERBOOK, POOL, USDT, make_quote, transfer_log

from execution.accounting import (
    OutcomeAccountant,
    calculate_net_profit,
    get_actual_price,
    get_income,
)

TRADE_SIZE = 1000 * 10**18


def cleared_receipt(**overrides) -> dict:
    receipt = {
        "transactionHash": "0xabc",
        "status": "0x1",
        "gasUsed": hex(250_000),
        "logs": [
            transfer_log(NHT, ORDERBOOK, ARB, TRADE_SIZE),
            transfer_log(USDT, POOL, ARB, 600 * 10**6),
            transfer_log(USDT, ARB, ORDERBOOK, 500 * 10**6),
            transfer_log(USDT, ARB, BOT, 100 * 10**6),
        ],
    }
    receipt.update(overrides)
    return receipt


class TestIncome:
    def test_transfer_to_account(self):
        assert get_income(cleared_receipt(), BOT) == 100 * 10**6

    def test_no_transfer_to_account(self):
        assert get_income(cleared_receipt(logs=[]), BOT) is None


class TestActualPrice:
    def test_price_from_swap_proceeds(self):
        price = get_actual_price(cleared_receipt(), ORDERBOOK, ARB, TRADE_SIZE, 6)
        assert price == 600_000  # 0.6 USDT

    def test_ignores_orderbook_transfer(self):
        receipt = cleared_receipt(logs=[transfer_log(NHT, ORDERBOOK, ARB, TRADE_SIZE)])
        assert get_actual_price(receipt, ORDERBOOK, ARB, TRADE_SIZE, 6) is None

    def test_zero_trade_size(self):
        assert get_actual_price(cleared_receipt(), ORDERBOOK, ARB, 0, 6) is None


class TestNetProfit:
    def test_gas_converted_to_buy_token(self):
        quote = make_quote(buy_token_to_eth_rate="0.9")
        gas_cost = 250_000 * 30 * 10**9  # 7.5e15 wei
        # 0.9 * 0.0075 = 0.00675 USDT = 6750 units
        assert calculate_net_profit(100 * 10**6, quote, gas_cost, 6) == 100 * 10**6 - 6750

    def test_can_be_negative(self):
        quote = make_quote(buy_token_to_eth_rate="2000")
        assert calculate_net_profit(1, quote, 10**18, 6) < 0


class TestOutcomeAccountant:
    def test_settle(self):
        accountant = OutcomeAccountant(orderbook=ORDERBOOK, arb=ARB, account=BOT)
        outcome = accountant.settle(cleared_receipt(), make_quote(), TRADE_SIZE, 6)

        assert outcome.gas_used == 250_000
        assert outcome.gas_cost == 7_500_000_000_000_000
        assert outcome.income == 100 * 10**6
        assert outcome.actual_price == 600_000
        assert outcome.net_profit == 99_993_250

    def test_settle_without_transfers(self):
        accountant = OutcomeAccountant(orderbook=ORDERBOOK, arb=ARB, account=BOT)
        outcome = accountant.settle(cleared_receipt(logs=[]), make_quote(), TRADE_SIZE, 6)

        assert outcome.income is None
        assert outcome.net_profit is None
        assert outcome.actual_price is None
        assert outcome.gas_cost == 7_500_000_000_000_000

    def test_settle_without_gas_used(self):
        accountant = OutcomeAccountant(orderbook=ORDERBOOK, arb=ARB, account=BOT)
        outcome = accountant.settle(cleared_receipt(gasUsed=None), make_quote(), TRADE_SIZE, 6)

        assert outcome.gas_used is None
        assert outcome.gas_cost is None
        assert outcome.net_profit is None
        assert outcome.income == 100 * 10**6
        assert outcome.actual_price == 600_000

    def test_settle_unparsable_gas_used(self):
        accountant = OutcomeAccountant(orderbook=ORDERBOOK, arb=ARB, account=BOT)
        outcome = accountant.settle(cleared_receipt(gasUsed="abc"), make_quote(), TRADE_SIZE, 6)

        assert outcome.gas_used is None
        assert outcome.income == 100 * 10**6

    def test_settle_skips_malformed_logs(self):
        bad_log = {**transfer_log(USDT, ARB, BOT, 1), "data": "0xzz"}
        receipt = cleared_receipt()
        receipt["logs"] = [bad_log, "not-a-log"] + receipt["logs"]
        accountant = OutcomeAccountant(orderbook=ORDERBOOK, arb=ARB, account=BOT)
        outcome = accountant.settle(receipt, make_quote(), TRADE_SIZE, 6)

        assert outcome.income == 100 * 10**6
