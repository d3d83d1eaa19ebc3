"""
Liquidity Math - 유동성 계산

Whirlpool의 집중화된 유동성(Concentrated Liquidity) 계산.
특정 틱 범위에서의 토큰 수량과 유동성 간의 변환.

References:
- Orca Whirlpools 정산 엔진: 유동성 변경 시 토큰 수량 계산

핵심 공식:
    L = Δb / (√P_upper - √P_lower)                    # token B 기준
    L = Δa × √P_lower × √P_upper / (√P_upper - √P_lower)  # token A 기준

현재 틱 위치에 따른 세 가지 경우:
    i_c < i_l          → token A 만
    i_l <= i_c < i_u   → 두 토큰 모두 (현재 가격 기준으로 분할)
    i_c >= i_u         → token B 만
"""

from enum import Enum
from typing import NamedTuple, Tuple

from ..constants import BPS_DENOMINATOR, U128_MAX
from ..errors import AmountOverflowError
from .tick_math import tick_index_to_sqrt_price, order_tick_indexes
from .token_math import get_amount_delta_a, get_amount_delta_b


class PositionStatus(Enum):
    """현재 가격과 포지션 범위의 관계"""
    PRICE_BELOW_RANGE = "PriceBelowRange"  # 100% token A
    PRICE_IN_RANGE = "PriceInRange"
    PRICE_ABOVE_RANGE = "PriceAboveRange"  # 100% token B
    INVALID = "Invalid"


class PositionRatio(NamedTuple):
    """포지션 가치의 토큰별 비중 (bps)"""
    ratio_a: int
    ratio_b: int


def _check_u128(liquidity: int) -> int:
    if liquidity > U128_MAX:
        raise AmountOverflowError(f"유동성이 u128 범위를 초과합니다: {liquidity}")
    return liquidity


def get_liquidity_token_deltas(
    tick_current_index: int,
    sqrt_price: int,
    tick_lower_index: int,
    tick_upper_index: int,
    liquidity: int,
    round_up: bool
) -> Tuple[int, int]:
    """유동성 변화량에 해당하는 토큰 수량

    정산 엔진과 같이 현재 틱으로 세 가지 경우를 나눈다.
    입금(increase)은 올림, 출금(decrease)은 내림.

    Args:
        tick_current_index: 현재 틱 (i_c)
        sqrt_price: 현재 sqrtPriceX64
        tick_lower_index: 하한 틱 (i_l)
        tick_upper_index: 상한 틱 (i_u)
        liquidity: 유동성 변화량 (절대값)
        round_up: True면 올림, False면 내림

    Returns:
        (token_a, token_b) 튜플 (최소 단위)
    """
    if liquidity == 0:
        return 0, 0

    sqrt_price_lower = tick_index_to_sqrt_price(tick_lower_index)
    sqrt_price_upper = tick_index_to_sqrt_price(tick_upper_index)

    if tick_current_index < tick_lower_index:
        return get_amount_delta_a(sqrt_price_lower, sqrt_price_upper, liquidity, round_up), 0
    elif tick_current_index < tick_upper_index:
        token_a = get_amount_delta_a(sqrt_price, sqrt_price_upper, liquidity, round_up)
        token_b = get_amount_delta_b(sqrt_price_lower, sqrt_price, liquidity, round_up)
        return token_a, token_b
    else:
        return 0, get_amount_delta_b(sqrt_price_lower, sqrt_price_upper, liquidity, round_up)


def get_liquidity_from_token_a(
    amount_a: int,
    sqrt_price_lower: int,
    sqrt_price_upper: int
) -> int:
    """token A 수량으로 얻을 수 있는 최대 유동성 (내림)

    공식: L = (Δa × √P_l × √P_u / (√P_u - √P_l)) >> 64
    """
    sqrt_price_diff = sqrt_price_upper - sqrt_price_lower
    if sqrt_price_diff <= 0:
        return 0
    return _check_u128((amount_a * sqrt_price_lower * sqrt_price_upper // sqrt_price_diff) >> 64)


def get_liquidity_from_token_b(
    amount_b: int,
    sqrt_price_lower: int,
    sqrt_price_upper: int
) -> int:
    """token B 수량으로 얻을 수 있는 최대 유동성 (내림)

    공식: L = (Δb << 64) / (√P_u - √P_l)
    """
    sqrt_price_diff = sqrt_price_upper - sqrt_price_lower
    if sqrt_price_diff <= 0:
        return 0
    return _check_u128((amount_b << 64) // sqrt_price_diff)


def get_liquidity_from_amounts(
    sqrt_price: int,
    tick_lower_index: int,
    tick_upper_index: int,
    amount_a: int,
    amount_b: int
) -> int:
    """두 토큰 수량으로 범위에 넣을 수 있는 최대 유동성

    범위 안이면 두 토큰 중 작은 쪽 유동성을 사용.
    """
    sqrt_price_lower = tick_index_to_sqrt_price(tick_lower_index)
    sqrt_price_upper = tick_index_to_sqrt_price(tick_upper_index)
    status = position_status(sqrt_price, tick_lower_index, tick_upper_index)

    if status is PositionStatus.PRICE_BELOW_RANGE:
        return get_liquidity_from_token_a(amount_a, sqrt_price_lower, sqrt_price_upper)
    elif status is PositionStatus.PRICE_ABOVE_RANGE:
        return get_liquidity_from_token_b(amount_b, sqrt_price_lower, sqrt_price_upper)
    elif status is PositionStatus.PRICE_IN_RANGE:
        liquidity_a = get_liquidity_from_token_a(amount_a, sqrt_price, sqrt_price_upper)
        liquidity_b = get_liquidity_from_token_b(amount_b, sqrt_price_lower, sqrt_price)
        return min(liquidity_a, liquidity_b)
    return 0


def get_liquidity_from_token(
    amount: int,
    is_token_a: bool,
    sqrt_price: int,
    tick_lower_index: int,
    tick_upper_index: int
) -> int:
    """한쪽 토큰 수량만으로 정해지는 유동성

    그 토큰이 범위에 필요 없는 경우(예: 가격이 범위 위인데 token A 를 지정) 0.
    """
    sqrt_price_lower = tick_index_to_sqrt_price(tick_lower_index)
    sqrt_price_upper = tick_index_to_sqrt_price(tick_upper_index)
    status = position_status(sqrt_price, tick_lower_index, tick_upper_index)

    if is_token_a:
        if status is PositionStatus.PRICE_BELOW_RANGE:
            return get_liquidity_from_token_a(amount, sqrt_price_lower, sqrt_price_upper)
        if status is PositionStatus.PRICE_IN_RANGE:
            return get_liquidity_from_token_a(amount, sqrt_price, sqrt_price_upper)
        return 0

    if status is PositionStatus.PRICE_ABOVE_RANGE:
        return get_liquidity_from_token_b(amount, sqrt_price_lower, sqrt_price_upper)
    if status is PositionStatus.PRICE_IN_RANGE:
        return get_liquidity_from_token_b(amount, sqrt_price_lower, sqrt_price)
    return 0


def position_status(
    sqrt_price: int,
    tick_lower_index: int,
    tick_upper_index: int
) -> PositionStatus:
    """현재 가격 기준 포지션 상태

    가격이 하한 이하면 범위 아래, 상한 이상이면 범위 위.
    """
    if tick_lower_index == tick_upper_index:
        return PositionStatus.INVALID

    tick_lower_index, tick_upper_index = order_tick_indexes(tick_lower_index, tick_upper_index)
    sqrt_price_lower = tick_index_to_sqrt_price(tick_lower_index)
    sqrt_price_upper = tick_index_to_sqrt_price(tick_upper_index)

    if sqrt_price <= sqrt_price_lower:
        return PositionStatus.PRICE_BELOW_RANGE
    elif sqrt_price >= sqrt_price_upper:
        return PositionStatus.PRICE_ABOVE_RANGE
    return PositionStatus.PRICE_IN_RANGE


def is_position_in_range(sqrt_price: int, tick_lower_index: int, tick_upper_index: int) -> bool:
    return position_status(sqrt_price, tick_lower_index, tick_upper_index) \
        is PositionStatus.PRICE_IN_RANGE


def position_ratio(
    sqrt_price: int,
    tick_lower_index: int,
    tick_upper_index: int
) -> PositionRatio:
    """포지션 가치 중 token A / token B 비중 (bps, 합계 10000)

    유동성 2^128 을 넣었다고 가정하고 양쪽 입금액을 token B 가치로 환산해 비교한다.
    """
    status = position_status(sqrt_price, tick_lower_index, tick_upper_index)
    if status is PositionStatus.INVALID:
        return PositionRatio(0, 0)
    if status is PositionStatus.PRICE_BELOW_RANGE:
        return PositionRatio(BPS_DENOMINATOR, 0)
    if status is PositionStatus.PRICE_ABOVE_RANGE:
        return PositionRatio(0, BPS_DENOMINATOR)

    tick_lower_index, tick_upper_index = order_tick_indexes(tick_lower_index, tick_upper_index)
    sqrt_price_lower = tick_index_to_sqrt_price(tick_lower_index)
    sqrt_price_upper = tick_index_to_sqrt_price(tick_upper_index)

    liquidity = 1 << 128
    deposit_a = (
        ((liquidity << 64) // sqrt_price - (liquidity << 64) // sqrt_price_upper)
        * sqrt_price * sqrt_price
    ) >> 128
    deposit_b = (liquidity * (sqrt_price - sqrt_price_lower)) >> 64

    ratio_a = deposit_a * BPS_DENOMINATOR // (deposit_a + deposit_b)
    return PositionRatio(ratio_a, BPS_DENOMINATOR - ratio_a)
