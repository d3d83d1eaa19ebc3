"""
Math layer for Whirlpool quote engine

정산 엔진과 비트 단위로 일치하는 정수 연산:
- tick_math: Tick ↔ sqrtPriceX64 변환
- price_math: 사람이 읽는 가격 ↔ sqrtPriceX64 (Decimal)
- token_math: 가격 구간별 토큰 수량, 수량 조정
- swap_math: 단일 스왑 스텝
- liquidity_math: 유동성 ↔ 토큰 수량, 포지션 상태
- fee_math: 수수료/보상 누적 계산
"""

from .tick_math import (
    tick_index_to_sqrt_price,
    sqrt_price_to_tick_index,
    get_tick_array_start_tick_index,
    get_initializable_tick_index,
)
from .price_math import (
    price_to_sqrt_price,
    sqrt_price_to_price,
    price_to_tick_index,
    tick_index_to_price,
)
from .token_math import (
    get_amount_delta_a,
    get_amount_delta_b,
    adjust_amount,
    inverse_adjust_amount,
)
from .swap_math import compute_swap_step
from .liquidity_math import (
    PositionStatus,
    get_liquidity_token_deltas,
    position_status,
    position_ratio,
)
from .fee_math import (
    get_fee_growths_inside,
    get_reward_growths_inside,
    next_reward_growths_global,
)
