"""
Quote layer for Whirlpool quote engine

- swap: 스왑 시뮬레이션, exact in / exact out 견적
- liquidity: 유동성 증가 / 감소 / 재배치 견적
- fees / rewards: 미수령 수수료 / 보상 견적
"""

from .swap import (
    SwapResult,
    ExactInSwapQuote,
    ExactOutSwapQuote,
    simulate_swap,
    swap_quote_by_input_token,
    swap_quote_by_output_token,
)
from .liquidity import (
    IncreaseLiquidityQuote,
    DecreaseLiquidityQuote,
    RepositionQuote,
    TokenTransfer,
    TransferFlow,
    quote_increase_liquidity_by_input_token,
    quote_increase_liquidity_by_liquidity,
    quote_decrease_liquidity_by_liquidity,
    quote_decrease_liquidity_by_token,
    quote_reposition,
)
from .fees import CollectFeesQuote, quote_fees
from .rewards import CollectRewardQuote, CollectRewardsQuote, quote_rewards
