"""
strategy/evaluator.py - Order expression evaluation.

Asks the order's interpreter for (maxOutput, ratio) given the current
vault balances. Results are never cached: balances and time-dependent
expressions change between orders.
"""

from eth_abi.exceptions import DecodingError

from chains.abi import (
    CALCULATE_ORDER_MAX_OUTPUTS,
    CALCULATE_ORDER_SOURCE_INDEX,
    encode_dispatch,
    order_hash,
)
from chains.contracts import InterpreterContract
from chains.providers import RPCProvider
from config import ClearingConfig
from core.exceptions import ErrorCode, EvaluationError, InfraError
from core.logging import get_logger
from core.models import EvaluationResult, Order

logger = get_logger(__name__)


def build_context(
    order: Order,
    orderbook: str,
    counterparty: str,
    input_balance: int,
    output_balance: int,
) -> list[list[int]]:
    """
    Context matrix for the calculate-order entrypoint.

    Rows:
        0: [counterparty, orderbook]
        1: [orderHash, owner, counterparty]
        2: [maxOutput, ratio] placeholders, filled on-chain after calculation
        3: input IO  [token, decimals, vaultId, balanceBefore, balanceDiff]
        4: output IO [token, decimals, vaultId, balanceBefore, balanceDiff]
    """
    return [
        [int(counterparty, 16), int(orderbook, 16)],
        [order_hash(order), int(order.owner, 16), int(counterparty, 16)],
        [0, 0],
        [
            int(order.input.token, 16),
            order.input.decimals,
            order.input.vault_id,
            input_balance,
            0,
        ],
        [
            int(order.output.token, 16),
            order.output.decimals,
            order.output.vault_id,
            output_balance,
            0,
        ],
    ]


class OrderEvaluator:
    """Evaluates an order's expression against the live interpreter."""

    def __init__(self, provider: RPCProvider, config: ClearingConfig):
        self.provider = provider
        self.config = config

    async def evaluate(
        self,
        order: Order,
        input_balance: int,
        output_balance: int,
    ) -> EvaluationResult:
        """
        Returns stack[0] as maxOutput and stack[1] as ratio.

        Raises:
            EvaluationError: on revert, RPC failure or a stack shorter than 2
        """
        interpreter = InterpreterContract(
            self.provider,
            order.evaluable.interpreter,
            caller=self.config.orderbook_address,
        )
        context = build_context(
            order,
            orderbook=self.config.orderbook_address,
            counterparty=self.config.arb_address,
            input_balance=input_balance,
            output_balance=output_balance,
        )
        dispatch = encode_dispatch(
            order.evaluable.expression,
            CALCULATE_ORDER_SOURCE_INDEX,
            CALCULATE_ORDER_MAX_OUTPUTS,
        )
        details = {
            "interpreter": order.evaluable.interpreter,
            "expression": order.evaluable.expression,
        }

        try:
            stack, _kvs = await interpreter.eval(
                order.evaluable.store,
                int(order.owner, 16),
                dispatch,
                context,
            )
        except InfraError as e:
            raise EvaluationError(
                code=ErrorCode.EVAL_REVERT,
                message=f"Expression evaluation failed: {e.message}",
                details={**details, **e.details},
            ) from e
        except DecodingError as e:
            raise EvaluationError(
                code=ErrorCode.EVAL_MALFORMED,
                message=f"Malformed evaluation result: {e}",
                details=details,
            ) from e

        if len(stack) < 2:
            raise EvaluationError(
                code=ErrorCode.EVAL_MALFORMED,
                message=f"Expected at least 2 stack items, got {len(stack)}",
                details={**details, "stack": stack},
            )

        return EvaluationResult(max_output=stack[0], ratio=stack[1])
