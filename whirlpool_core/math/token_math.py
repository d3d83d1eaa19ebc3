"""
Token Math - sqrt price 구간과 토큰 수량 변환

고정 유동성 곡선 위에서 두 sqrt price 사이를 이동할 때 필요한 토큰 수량,
그리고 주어진 수량을 넣거나 뺐을 때의 다음 sqrt price를 계산한다.
반올림 방향은 항상 풀에 유리하도록 호출자가 지정한다.

References:
- Orca Whirlpools 정산 엔진: 토큰 수량 / 다음 sqrt price

핵심 공식:
    Δa = L × (√P_upper - √P_lower) / (√P_lower × √P_upper)
    Δb = L × (√P_upper - √P_lower)
    √P' = L × √P / (L ± Δa × √P)      # token A 기준
    √P' = √P ± Δb / L                  # token B 기준
"""

from typing import NamedTuple, Tuple

from ..constants import (
    U64_MAX,
    U128_MAX,
    MIN_SQRT_PRICE,
    MAX_SQRT_PRICE,
    FEE_RATE_MUL_VALUE,
    BPS_DENOMINATOR,
)
from ..errors import AmountOverflowError, OutOfBoundsError


class Adjustment(NamedTuple):
    """수량 조정 비율 (수수료, 슬리피지, 전송 수수료)

    amount × (denominator ± numerator) / denominator 로 조정하고,
    조정분이 max_fee 이상이면 max_fee 로 고정한다.
    """
    numerator: int
    denominator: int
    max_fee: int = U128_MAX


NO_ADJUSTMENT = Adjustment(numerator=0, denominator=BPS_DENOMINATOR)


def swap_fee_adjustment(fee_rate: int) -> Adjustment:
    """스왑 수수료 (1/100 bp 단위, 3000 = 0.30%)"""
    return Adjustment(numerator=fee_rate, denominator=FEE_RATE_MUL_VALUE)


def slippage_adjustment(slippage_tolerance_bps: int) -> Adjustment:
    """슬리피지 허용치 (bp 단위, 100 = 1%)"""
    if slippage_tolerance_bps < 0 or slippage_tolerance_bps > BPS_DENOMINATOR:
        raise ValueError(f"슬리피지는 0 ~ {BPS_DENOMINATOR} bps 여야 합니다: {slippage_tolerance_bps}")
    return Adjustment(numerator=slippage_tolerance_bps, denominator=BPS_DENOMINATOR)


def transfer_fee_adjustment(fee_bps: int, max_fee: int) -> Adjustment:
    """Token-2022 전송 수수료 (bp 단위, 상한 max_fee)"""
    return Adjustment(numerator=fee_bps, denominator=BPS_DENOMINATOR, max_fee=max_fee)


def _div_rounding_up(a: int, b: int) -> int:
    return -(-a // b)


def _order_prices(a: int, b: int) -> Tuple[int, int]:
    if a < b:
        return a, b
    return b, a


def _check_u64(amount: int) -> int:
    if amount > U64_MAX:
        raise AmountOverflowError(f"토큰 수량이 u64 범위를 초과합니다: {amount}")
    return amount


def _check_sqrt_price_bounds(sqrt_price: int) -> int:
    if sqrt_price < MIN_SQRT_PRICE or sqrt_price > MAX_SQRT_PRICE:
        raise OutOfBoundsError(f"다음 sqrtPrice가 유효 범위를 벗어났습니다: {sqrt_price}")
    return sqrt_price


def get_amount_delta_a(
    current_sqrt_price: int,
    target_sqrt_price: int,
    liquidity: int,
    round_up: bool
) -> int:
    """두 가격 사이를 이동할 때의 token A 변화량

    공식: Δa = (L × (√P_u - √P_l)) << 64 / (√P_l × √P_u)

    Args:
        current_sqrt_price: 현재 sqrtPriceX64
        target_sqrt_price: 목표 sqrtPriceX64
        liquidity: 유동성
        round_up: True면 올림, False면 내림

    Returns:
        token A 수량 (최소 단위)

    Raises:
        AmountOverflowError: 결과가 u64 범위를 초과하는 경우
    """
    sqrt_price_lower, sqrt_price_upper = _order_prices(current_sqrt_price, target_sqrt_price)
    sqrt_price_diff = sqrt_price_upper - sqrt_price_lower

    numerator = (liquidity * sqrt_price_diff) << 64
    denominator = sqrt_price_lower * sqrt_price_upper

    quotient, remainder = divmod(numerator, denominator)
    if round_up and remainder != 0:
        quotient += 1

    return _check_u64(quotient)


def get_amount_delta_b(
    current_sqrt_price: int,
    target_sqrt_price: int,
    liquidity: int,
    round_up: bool
) -> int:
    """두 가격 사이를 이동할 때의 token B 변화량

    공식: Δb = L × (√P_u - √P_l) >> 64

    Raises:
        AmountOverflowError: 결과가 u64 범위를 초과하는 경우
    """
    sqrt_price_lower, sqrt_price_upper = _order_prices(current_sqrt_price, target_sqrt_price)
    product = liquidity * (sqrt_price_upper - sqrt_price_lower)
    quotient = product >> 64

    if round_up and product & U64_MAX > 0:
        quotient += 1

    return _check_u64(quotient)


def get_next_sqrt_price_from_a(
    current_sqrt_price: int,
    liquidity: int,
    amount: int,
    specified_input: bool
) -> int:
    """token A 를 넣거나(specified_input) 뺐을 때의 다음 sqrt price

    결과는 항상 올림 (가격이 풀에 유리한 쪽으로 덜 움직이도록).

    Raises:
        OutOfBoundsError: 결과가 전역 가격 범위를 벗어나는 경우
    """
    if amount == 0:
        return current_sqrt_price

    product = current_sqrt_price * amount
    numerator = (liquidity * current_sqrt_price) << 64
    liquidity_shifted = liquidity << 64

    if specified_input:
        denominator = liquidity_shifted + product
    else:
        denominator = liquidity_shifted - product

    if denominator <= 0:
        raise OutOfBoundsError(
            f"token A 출력 {amount}이(가) 유동성 {liquidity}로 감당할 수 없는 크기입니다"
        )

    return _check_sqrt_price_bounds(_div_rounding_up(numerator, denominator))


def get_next_sqrt_price_from_b(
    current_sqrt_price: int,
    liquidity: int,
    amount: int,
    specified_input: bool
) -> int:
    """token B 를 넣거나(specified_input) 뺐을 때의 다음 sqrt price

    출력 방향(specified_input=False)에서는 가격 변화량을 올림한다.

    Raises:
        OutOfBoundsError: 결과가 전역 가격 범위를 벗어나는 경우
    """
    if amount == 0:
        return current_sqrt_price

    quotient, remainder = divmod(amount << 64, liquidity)
    delta = quotient + 1 if not specified_input and remainder != 0 else quotient

    if specified_input:
        result = current_sqrt_price + delta
    else:
        result = current_sqrt_price - delta

    return _check_sqrt_price_bounds(result)


def adjust_amount(amount: int, adjustment: Adjustment, adjust_up: bool) -> int:
    """수량에 조정 비율을 적용

    adjust_up=True  : amount × (den + num) / den (올림)
    adjust_up=False : amount × (den - num) / den (내림)
    조정분은 adjustment.max_fee 를 넘지 않는다.

    Example:
        >>> adjust_amount(10000, transfer_fee_adjustment(1000, 500), True)
        10500
    """
    if amount == 0:
        return 0
    if adjustment.numerator == 0:
        return amount

    if adjust_up:
        product = adjustment.denominator + adjustment.numerator
    else:
        product = adjustment.denominator - adjustment.numerator

    quotient, remainder = divmod(amount * product, adjustment.denominator)
    result = quotient + 1 if adjust_up and remainder != 0 else quotient

    fee_amount = result - amount if adjust_up else amount - result
    if fee_amount >= adjustment.max_fee:
        result = amount + adjustment.max_fee if adjust_up else amount - adjustment.max_fee

    return _check_u64(result)


def inverse_adjust_amount(amount: int, adjustment: Adjustment, adjust_up: bool) -> int:
    """adjust_amount 의 역연산

    adjust_amount(x, adj, up) == amount 가 되는 x 를 구한다.
    adjust_up=False 방향(조정 전 수량 복원)은 올림한다.
    """
    if amount == 0:
        return 0
    if adjustment.numerator == 0:
        return amount

    if adjust_up:
        denominator = adjustment.denominator + adjustment.numerator
    else:
        denominator = adjustment.denominator - adjustment.numerator

    # 100% 조정: 조정분은 항상 max_fee
    if denominator == 0:
        return _check_u64(amount + adjustment.max_fee)

    quotient, remainder = divmod(amount * adjustment.denominator, denominator)
    result = quotient + 1 if not adjust_up and remainder != 0 else quotient

    fee_amount = amount - result if adjust_up else result - amount
    if fee_amount >= adjustment.max_fee:
        result = amount - adjustment.max_fee if adjust_up else amount + adjustment.max_fee

    return _check_u64(result)


def get_max_amount_with_slippage_tolerance(amount: int, slippage_tolerance_bps: int) -> int:
    """슬리피지를 반영한 최대 수량 (올림)"""
    return adjust_amount(amount, slippage_adjustment(slippage_tolerance_bps), True)


def get_min_amount_with_slippage_tolerance(amount: int, slippage_tolerance_bps: int) -> int:
    """슬리피지를 반영한 최소 수량 (내림)"""
    return adjust_amount(amount, slippage_adjustment(slippage_tolerance_bps), False)
