"""
strategy/clearing.py - Order clearing engine.

Processes orders strictly one at a time. Concurrent submissions from the
same signer would need nonce coordination and could race on vault
balances that one clear depletes for the next.

Per order:
    output balance → evaluate → quote amount → quote → price check
    → gas estimate → profit estimate → submit → receipt → accounting

Each stage either advances the order's ClearStateMachine or ends it as
SKIPPED/FAILED. A failed order never stops the pass.
"""

from typing import Optional, Sequence

from eth_abi.exceptions import DecodingError

from chains.contracts import ERC20Contract, OrderbookContract
from chains.providers import RPCProvider
from chains.wallet import Wallet
from config import ClearingConfig
from core.constants import ClearState, SkipReason
from core.exceptions import ClearerError, ErrorCode, InfraError
from core.logging import get_logger, log_error
from core.math import format_units, scale_from_18, scale_to_18
from core.models import ClearRecord, ClearReport, Order, OrderOutcome
from dex.adapters.zeroex import ZeroExClient
from execution.accounting import OutcomeAccountant
from execution.state_machine import ClearStateMachine
from execution.submitter import ClearingSubmitter
from strategy.evaluator import OrderEvaluator
from strategy.profit import estimate_profit

logger = get_logger("clearer.engine")


def derive_quote_amount(output_balance: int, max_output: int, decimals: int) -> int:
    """
    Sell amount to quote, in the output token's native decimals.

    min(output vault balance, order max output), compared in 18 decimals.
    """
    fp_balance = scale_to_18(output_balance, decimals)
    return scale_from_18(min(fp_balance, max_output), decimals)


def is_price_favorable(quoted_price: int, ratio: int) -> bool:
    """The market must pay at least the order's ratio (both 18 decimals)."""
    return quoted_price >= ratio


class ClearingEngine:
    """
    Clears a list of orders against 0x quotes through the arb contract.

    Usage:
        engine = ClearingEngine.create(config, provider, wallet)
        report = await engine.clear(orders)
    """

    def __init__(
        self,
        config: ClearingConfig,
        provider: RPCProvider,
        orderbook: OrderbookContract,
        evaluator: OrderEvaluator,
        quote_client: ZeroExClient,
        submitter: ClearingSubmitter,
        accountant: OutcomeAccountant,
    ):
        self.config = config
        self.provider = provider
        self.orderbook = orderbook
        self.evaluator = evaluator
        self.quote_client = quote_client
        self.submitter = submitter
        self.accountant = accountant

    @classmethod
    def create(
        cls,
        config: ClearingConfig,
        provider: RPCProvider,
        wallet: Wallet,
        quote_client: Optional[ZeroExClient] = None,
    ) -> "ClearingEngine":
        return cls(
            config=config,
            provider=provider,
            orderbook=OrderbookContract(provider, config.orderbook_address),
            evaluator=OrderEvaluator(provider, config),
            quote_client=quote_client or ZeroExClient(
                config.api_url,
                config.api_key,
                timeout_seconds=config.quote_timeout_seconds,
            ),
            submitter=ClearingSubmitter(wallet, config),
            accountant=OutcomeAccountant(
                orderbook=config.orderbook_address,
                arb=config.arb_address,
                account=wallet.address,
            ),
        )

    async def clear(self, orders: Sequence[Order]) -> ClearReport:
        """Run one clearing pass over `orders`, in order."""
        report = ClearReport()
        logger.info(
            "Starting clearing process",
            extra={"context": {
                "arb": self.config.arb_address,
                "orderbook": self.config.orderbook_address,
                "orders": len(orders),
            }},
        )
        if not orders:
            logger.info("No orders found, exiting")

        symbols: dict[str, str] = {}
        for index, order in enumerate(orders):
            outcome = await self.clear_order(index, order, symbols)
            report.add(outcome)

        logger.info("Clearing process finished", extra={"context": report.get_summary()})
        return report

    async def clear_order(
        self,
        index: int,
        order: Order,
        symbols: Optional[dict[str, str]] = None,
    ) -> OrderOutcome:
        """Attempt to clear a single order. Errors end the order, never the pass."""
        sm = ClearStateMachine(order_index=index)
        log = get_logger("clearer.engine", order_index=index)
        log.info("Clearing order", extra={"context": {"owner": order.owner}})

        record = None
        error: Optional[ClearerError] = None
        try:
            record = await self._clear(sm, order, symbols if symbols is not None else {})
        except ClearerError as e:
            error = e
            log_error(log, e.code.value, e.message, order_index=index, details=e.details)
        except Exception as e:
            error = ClearerError(
                code=ErrorCode.UNKNOWN,
                message=f"Unexpected error: {type(e).__name__}: {e}",
                details={"error_type": type(e).__name__},
            )
            log.error(
                f"Unexpected error: {type(e).__name__}: {e}",
                extra={"context": {"order_index": index, "state": sm.state.value}},
                exc_info=True,
            )

        # An order that already mined keeps its state; the error is still reported
        if error is not None and not sm.is_terminal:
            sm.fail(error)

        return OrderOutcome(
            order_index=index,
            state=sm.state,
            skip_reason=sm.skip_reason,
            error=error.to_dict() if error else None,
            record=record,
            history=sm.history_dicts(),
        )

    async def _clear(
        self,
        sm: ClearStateMachine,
        order: Order,
        symbols: dict[str, str],
    ) -> Optional[ClearRecord]:
        input_symbol = await self._symbol(order.input.token, symbols)
        output_symbol = await self._symbol(order.output.token, symbols)
        token_pair = f"{input_symbol}/{output_symbol}"
        log = get_logger("clearer.engine", order_index=sm.order_index, pair=token_pair)

        output_balance = await self.orderbook.vault_balance(
            order.owner, order.output.token, order.output.vault_id
        )
        log.info(
            "Output vault balance",
            extra={"context": {
                "balance": format_units(output_balance, order.output.decimals),
                "symbol": output_symbol,
            }},
        )
        if output_balance == 0:
            log.info("Output vault balance is empty, skipping")
            sm.skip(SkipReason.ZERO_OUTPUT_BALANCE)
            return None

        input_balance = await self.orderbook.vault_balance(
            order.owner, order.input.token, order.input.vault_id
        )
        evaluation = await self.evaluator.evaluate(order, input_balance, output_balance)
        sm.transition_to(ClearState.EVALUATED)

        quote_amount = derive_quote_amount(
            output_balance, evaluation.max_output, order.output.decimals
        )
        log.info(
            "Quote amount",
            extra={"context": {
                "amount": format_units(quote_amount, order.output.decimals),
                "symbol": output_symbol,
                "max_output": format_units(evaluation.max_output),
            }},
        )
        if quote_amount == 0:
            log.info("Quote amount is zero, skipping")
            sm.skip(SkipReason.ZERO_QUOTE_AMOUNT)
            return None
        trade_size = scale_to_18(quote_amount, order.output.decimals)

        log.info(
            "Getting quote",
            extra={"context": {"buy_token": order.input.token, "sell_token": order.output.token}},
        )
        quote = await self.quote_client.get_quote(
            buy_token=order.input.token,
            sell_token=order.output.token,
            sell_amount=quote_amount,
            slippage=self.config.slippage,
        )
        sm.transition_to(ClearState.QUOTED)

        log.info(
            "Quote received",
            extra={"context": {"market_price": quote.price, "order_ratio": format_units(evaluation.ratio)}},
        )
        if not is_price_favorable(quote.price_fp, evaluation.ratio):
            log.info("Order ratio is higher than the market price, skipping")
            sm.skip(SkipReason.PRICE_UNFAVORABLE)
            return None
        sm.transition_to(ClearState.PRICE_FAVORABLE)

        log.info("Found a match, estimating gas")
        prepared = await self.submitter.estimate(order, quote_amount, quote)
        sm.transition_to(ClearState.GAS_ESTIMATED)

        max_estimated_profit = estimate_profit(
            quote,
            evaluation.ratio,
            trade_size,
            prepared.gas_limit,
            self.config.pre_trade_gas_coverage,
        )
        log.info(
            "Max estimated profit",
            extra={"context": {
                "profit": format_units(max_estimated_profit),
                "symbol": input_symbol,
                "gas_limit": prepared.gas_limit,
                "quote_estimated_gas": quote.estimated_gas,
            }},
        )
        if self.config.enforce_profit and max_estimated_profit < 0:
            log.info("Estimated profit is negative, skipping")
            sm.skip(SkipReason.NEGATIVE_ESTIMATED_PROFIT)
            return None

        tx_hash = await self.submitter.submit(prepared)
        sm.transition_to(ClearState.SUBMITTED, reason=tx_hash)
        log.info(
            "Transaction submitted, waiting to be mined",
            extra={"context": {"tx": self.config.tx_url(tx_hash)}},
        )

        receipt = await self.submitter.wait_for_receipt(tx_hash)
        sm.transition_to(ClearState.MINED)

        outcome = self.accountant.settle(receipt, quote, trade_size, order.input.decimals)
        actual_price = (
            format_units(outcome.actual_price, order.input.decimals)
            if outcome.actual_price is not None
            else None
        )
        log.info(
            "Order cleared",
            extra={"context": {
                "quote_price": quote.price,
                "actual_price": actual_price,
                "amount": format_units(quote_amount, order.output.decimals),
                "gas_cost_eth": (
                    format_units(outcome.gas_cost) if outcome.gas_cost is not None else None
                ),
                "income": (
                    format_units(outcome.income, order.input.decimals)
                    if outcome.income is not None else None
                ),
                "net_profit": (
                    format_units(outcome.net_profit, order.input.decimals)
                    if outcome.net_profit is not None else None
                ),
            }},
        )

        return ClearRecord(
            transaction_hash=receipt.get("transactionHash") or tx_hash,
            token_pair=token_pair,
            buy_token=order.input.token,
            buy_token_decimals=order.input.decimals,
            sell_token=order.output.token,
            sell_token_decimals=order.output.decimals,
            cleared_amount=quote_amount,
            clear_price=quote.price,
            clear_guaranteed_price=quote.guaranteed_price,
            clear_actual_price=actual_price,
            max_estimated_profit=max_estimated_profit,
            gas_used=outcome.gas_used,
            gas_cost=outcome.gas_cost,
            income=outcome.income,
            net_profit=outcome.net_profit,
        )

    async def _symbol(self, token: str, symbols: dict[str, str]) -> str:
        """Token symbol for narration; falls back to the address."""
        key = token.lower()
        if key not in symbols:
            try:
                symbols[key] = await ERC20Contract(self.provider, token).symbol()
            except (InfraError, DecodingError, UnicodeDecodeError) as e:
                logger.warning(
                    "Cannot read token symbol",
                    extra={"context": {"token": token, "error": str(e)}},
                )
                symbols[key] = token
        return symbols[key]


async def clear(
    config: ClearingConfig,
    provider: RPCProvider,
    wallet: Wallet,
    orders: Sequence[Order],
) -> list[ClearRecord]:
    """Run a clearing pass and return its ClearRecords."""
    engine = ClearingEngine.create(config, provider, wallet)
    try:
        report = await engine.clear(orders)
    finally:
        await engine.quote_client.close()
    return report.records
