"""
Swap Math - 단일 스왑 스텝 계산

현재 sqrt price 에서 목표 sqrt price (다음 초기화된 틱 또는 가격 제한)까지
고정 유동성 구간 하나를 이동하는 스텝을 계산한다.

References:
- Orca Whirlpools 정산 엔진: 단일 스왑 스텝

반올림 규칙:
    - 입력 수량은 올림, 출력 수량은 내림 (항상 풀에 유리)
    - exact input: 남은 입력에서 수수료를 먼저 뺀 뒤 가격 이동 계산
    - exact output: 필요한 입력에 수수료를 gross-up
"""

from typing import NamedTuple

from ..constants import FEE_RATE_MUL_VALUE
from ..errors import AmountOverflowError
from .token_math import (
    adjust_amount,
    swap_fee_adjustment,
    get_amount_delta_a,
    get_amount_delta_b,
    get_next_sqrt_price_from_a,
    get_next_sqrt_price_from_b,
)


class SwapStepResult(NamedTuple):
    """스왑 스텝 결과"""
    amount_in: int  # 수수료 제외 입력량
    amount_out: int  # 출력량
    next_sqrt_price: int  # 스텝 종료 sqrtPriceX64
    fee_amount: int  # 스텝 수수료 (입력 토큰)


def _get_amount_fixed_delta(
    current_sqrt_price: int,
    target_sqrt_price: int,
    liquidity: int,
    amount_specified_is_input: bool,
    a_to_b: bool
) -> int:
    # 호출자가 지정한 쪽 토큰의 변화량
    if a_to_b == amount_specified_is_input:
        return get_amount_delta_a(
            current_sqrt_price, target_sqrt_price, liquidity, amount_specified_is_input
        )
    return get_amount_delta_b(
        current_sqrt_price, target_sqrt_price, liquidity, amount_specified_is_input
    )


def _get_amount_unfixed_delta(
    current_sqrt_price: int,
    target_sqrt_price: int,
    liquidity: int,
    amount_specified_is_input: bool,
    a_to_b: bool
) -> int:
    # 계산되는 쪽 토큰의 변화량
    if a_to_b == amount_specified_is_input:
        return get_amount_delta_b(
            current_sqrt_price, target_sqrt_price, liquidity, not amount_specified_is_input
        )
    return get_amount_delta_a(
        current_sqrt_price, target_sqrt_price, liquidity, not amount_specified_is_input
    )


def _get_next_sqrt_price(
    current_sqrt_price: int,
    liquidity: int,
    amount: int,
    amount_specified_is_input: bool,
    a_to_b: bool
) -> int:
    if amount_specified_is_input == a_to_b:
        return get_next_sqrt_price_from_a(
            current_sqrt_price, liquidity, amount, amount_specified_is_input
        )
    return get_next_sqrt_price_from_b(
        current_sqrt_price, liquidity, amount, amount_specified_is_input
    )


def compute_swap_step(
    amount_remaining: int,
    fee_rate: int,
    liquidity: int,
    current_sqrt_price: int,
    target_sqrt_price: int,
    amount_specified_is_input: bool,
    a_to_b: bool
) -> SwapStepResult:
    """고정 유동성 구간 하나를 이동하는 스왑 스텝

    유동성이 0 이면 수량 0 으로 목표 가격까지 바로 이동한다.

    Args:
        amount_remaining: 남은 지정 수량 (exact input 이면 입력, 아니면 출력)
        fee_rate: 수수료율 (1/100 bp 단위)
        liquidity: 현재 활성 유동성
        current_sqrt_price: 현재 sqrtPriceX64
        target_sqrt_price: 스텝 목표 sqrtPriceX64
        amount_specified_is_input: exact input 여부
        a_to_b: 스왑 방향 (True면 가격 하락)

    Returns:
        SwapStepResult
    """
    amount_calc = amount_remaining
    if amount_specified_is_input:
        amount_calc = adjust_amount(amount_remaining, swap_fee_adjustment(fee_rate), False)

    try:
        amount_fixed_delta = _get_amount_fixed_delta(
            current_sqrt_price, target_sqrt_price, liquidity, amount_specified_is_input, a_to_b
        )
        reaches_target = amount_calc >= amount_fixed_delta
    except AmountOverflowError:
        # 목표까지의 수량이 u64 를 넘으면 남은 수량으로는 도달 불가
        reaches_target = False

    if reaches_target:
        next_sqrt_price = target_sqrt_price
    else:
        next_sqrt_price = _get_next_sqrt_price(
            current_sqrt_price, liquidity, amount_calc, amount_specified_is_input, a_to_b
        )

    is_max_swap = next_sqrt_price == target_sqrt_price

    amount_unfixed_delta = _get_amount_unfixed_delta(
        current_sqrt_price, next_sqrt_price, liquidity, amount_specified_is_input, a_to_b
    )

    # 목표에 도달하지 못한 경우 실제 이동 구간으로 다시 계산
    if not is_max_swap or not reaches_target:
        amount_fixed_delta = _get_amount_fixed_delta(
            current_sqrt_price, next_sqrt_price, liquidity, amount_specified_is_input, a_to_b
        )

    if amount_specified_is_input:
        amount_in, amount_out = amount_fixed_delta, amount_unfixed_delta
    else:
        amount_in, amount_out = amount_unfixed_delta, amount_fixed_delta

    if not amount_specified_is_input and amount_out > amount_remaining:
        amount_out = amount_remaining

    if amount_specified_is_input and not is_max_swap:
        fee_amount = amount_remaining - amount_in
    else:
        fee_amount = -(-amount_in * fee_rate // (FEE_RATE_MUL_VALUE - fee_rate))

    return SwapStepResult(
        amount_in=amount_in,
        amount_out=amount_out,
        next_sqrt_price=next_sqrt_price,
        fee_amount=fee_amount,
    )
