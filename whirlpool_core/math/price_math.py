"""
Price Math - Human-readable 가격 ↔ sqrt price 변환

UI/호출자 경계에서만 쓰이는 변환 함수들.
이진 부동소수점 대신 decimal.Decimal(고정 정밀도)을 사용해 결과가 플랫폼과 무관하게 결정적이다.

핵심 공식:
    sqrtPriceX64 = floor(sqrt(price / 10^(decimals_a - decimals_b)) * 2^64)
    price = (sqrtPriceX64 / 2^64)^2 * 10^(decimals_a - decimals_b)
"""

from decimal import Decimal, ROUND_FLOOR, localcontext
from typing import Union

from ..constants import Q64, MIN_SQRT_PRICE, MAX_SQRT_PRICE
from ..errors import OutOfBoundsError
from .tick_math import (
    tick_index_to_sqrt_price,
    sqrt_price_to_tick_index,
    invert_tick_index,
)

PriceLike = Union[Decimal, int, float, str]

# 2^128 sqrt price 의 제곱까지 정확히 표현할 수 있는 정밀도
PRICE_PRECISION: int = 80


def _check_sqrt_price_bounds(sqrt_price: int) -> int:
    if sqrt_price < MIN_SQRT_PRICE or sqrt_price > MAX_SQRT_PRICE:
        raise OutOfBoundsError(
            f"sqrtPrice가 유효 범위를 벗어났습니다: {sqrt_price} "
            f"(범위: {MIN_SQRT_PRICE} ~ {MAX_SQRT_PRICE})"
        )
    return sqrt_price


def _to_decimal(value: PriceLike) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # 0.1 같은 입력이 이진 전개값이 아닌 사람이 쓴 값으로 해석되도록
        return Decimal(repr(value))
    return Decimal(value)


def price_to_sqrt_price(price: PriceLike, decimals_a: int, decimals_b: int) -> int:
    """Human-readable 가격을 sqrtPriceX64로 변환

    Args:
        price: 가격 (token B per token A)
        decimals_a: token A 소수점 자릿수
        decimals_b: token B 소수점 자릿수

    Returns:
        sqrtPriceX64 (내림)

    Raises:
        OutOfBoundsError: 가격이 0 이하이거나 결과가 전역 sqrt price 범위를 벗어난 경우

    Example:
        >>> price_to_sqrt_price(100, 6, 6)
        184467440737095516160
    """
    price = _to_decimal(price)
    if price <= 0:
        raise OutOfBoundsError(f"가격은 양수여야 합니다: {price}")

    with localcontext() as ctx:
        ctx.prec = PRICE_PRECISION
        power = Decimal(10) ** (decimals_a - decimals_b)
        sqrt_price = (price / power).sqrt() * Q64
        sqrt_price = int(sqrt_price.to_integral_value(rounding=ROUND_FLOOR))

    return _check_sqrt_price_bounds(sqrt_price)


def sqrt_price_to_price(sqrt_price: int, decimals_a: int, decimals_b: int) -> Decimal:
    """sqrtPriceX64를 human-readable 가격으로 변환

    price = (sqrtPriceX64 / 2^64)^2 × 10^(decimals_a - decimals_b)

    Raises:
        OutOfBoundsError: sqrt_price가 전역 범위를 벗어난 경우
    """
    _check_sqrt_price_bounds(sqrt_price)

    with localcontext() as ctx:
        ctx.prec = PRICE_PRECISION
        power = Decimal(10) ** (decimals_a - decimals_b)
        ratio = Decimal(sqrt_price) / Q64
        return ratio * ratio * power


def tick_index_to_price(tick_index: int, decimals_a: int, decimals_b: int) -> Decimal:
    """틱을 human-readable 가격으로 변환

    Example:
        >>> tick_index_to_price(0, 6, 6)
        Decimal('1')
    """
    return sqrt_price_to_price(tick_index_to_sqrt_price(tick_index), decimals_a, decimals_b)


def price_to_tick_index(price: PriceLike, decimals_a: int, decimals_b: int) -> int:
    """Human-readable 가격을 틱으로 변환 (해당 가격 이하의 가장 가까운 틱)

    Raises:
        OutOfBoundsError: 가격이 전역 범위를 벗어난 경우
    """
    return sqrt_price_to_tick_index(price_to_sqrt_price(price, decimals_a, decimals_b))


def invert_price(price: PriceLike, decimals_a: int, decimals_b: int) -> Decimal:
    """토큰 순서를 뒤집은 가격 (틱 단위로 근사)"""
    tick_index = price_to_tick_index(price, decimals_a, decimals_b)
    return tick_index_to_price(invert_tick_index(tick_index), decimals_a, decimals_b)
