"""
Swap Quote - 스왑 시뮬레이션과 견적

풀 스냅샷과 틱 배열 시퀀스 위에서 정산 엔진의 스왑 루프를 그대로 재현한다.
입력 스냅샷은 수정하지 않고, 교차한 틱의 갱신 상태는 결과로 돌려준다.

References:
- Orca Whirlpools 정산 엔진: 스왑 루프

스왑 루프:
    while 남은 수량 > 0 and √P != 가격 제한:
        1. 진행 방향의 다음 초기화된 틱 탐색
        2. 목표 가격 = max(제한, 틱 가격) (a_to_b) / min (b_to_a)
        3. compute_swap_step 으로 한 구간 이동
        4. 수수료 → 프로토콜 몫 + LP 몫 (fee_growth_global 증가)
        5. 틱에 도달하면 교차 (유동성 ± liquidity_net, outside 값 반전)
"""

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple, Union

from ..config import settings
from ..constants import (
    MIN_SQRT_PRICE,
    MAX_SQRT_PRICE,
    PROTOCOL_FEE_RATE_MUL_VALUE,
    U64_MAX,
    U128_MAX,
)
from ..data.tick_array import TickArraySequence
from ..data.types import Tick, TickArray, Whirlpool
from ..errors import (
    AmountOverflowError,
    InsufficientLiquidityError,
    InvalidLiquidityError,
    InvalidSwapError,
    IterationLimitExceededError,
    OutOfBoundsError,
)
from ..extensions import (
    MintMeta,
    TransferDirection,
    adjust_for_transfer_impact,
    ensure_transferable,
)
from ..math.fee_math import next_reward_growths_global, wrapping_add, wrapping_sub
from ..math.swap_math import compute_swap_step
from ..math.tick_math import sqrt_price_to_tick_index, tick_index_to_sqrt_price
from ..math.token_math import (
    get_max_amount_with_slippage_tolerance,
    get_min_amount_with_slippage_tolerance,
)

logger = logging.getLogger(__name__)

TickArraysLike = Union[TickArraySequence, Iterable[TickArray]]


@dataclass(frozen=True)
class SwapResult:
    """스왑 시뮬레이션 결과

    amount_in 은 수수료를 포함한 입력량, total_fee 는 그중 수수료.
    crossed_ticks 는 (틱 인덱스, 교차 후 Tick) 목록이며 입력 틱 배열은 그대로다.
    """
    amount_a: int
    amount_b: int
    amount_in: int
    amount_out: int
    total_fee: int
    protocol_fee: int
    end_sqrt_price: int
    end_tick_index: int
    end_liquidity: int
    crossed_tick_count: int
    crossed_ticks: Tuple[Tuple[int, Tick], ...]
    fee_growth_global_a: int
    fee_growth_global_b: int
    reward_growths_global: Tuple[int, ...]
    slot: Optional[int] = None


@dataclass(frozen=True)
class ExactInSwapQuote:
    """입력 수량 지정 스왑 견적"""
    token_in: int
    token_est_out: int
    token_min_out: int
    trade_fee: int

    @property
    def other_amount_threshold(self) -> int:
        return self.token_min_out


@dataclass(frozen=True)
class ExactOutSwapQuote:
    """출력 수량 지정 스왑 견적"""
    token_out: int
    token_est_in: int
    token_max_in: int
    trade_fee: int

    @property
    def other_amount_threshold(self) -> int:
        return self.token_max_in


def _as_sequence(tick_arrays: TickArraysLike, tick_spacing: int) -> TickArraySequence:
    if isinstance(tick_arrays, TickArraySequence):
        return tick_arrays
    return TickArraySequence(tick_arrays, tick_spacing)


def _resolve_sqrt_price_limit(
    pool: Whirlpool,
    sqrt_price_limit: Optional[int],
    a_to_b: bool
) -> int:
    if sqrt_price_limit is None:
        return MIN_SQRT_PRICE if a_to_b else MAX_SQRT_PRICE

    if sqrt_price_limit < MIN_SQRT_PRICE or sqrt_price_limit > MAX_SQRT_PRICE:
        raise OutOfBoundsError(f"가격 제한이 유효 범위를 벗어났습니다: {sqrt_price_limit}")
    if a_to_b and sqrt_price_limit >= pool.sqrt_price:
        raise InvalidSwapError(
            f"a_to_b 스왑의 가격 제한은 현재 가격보다 낮아야 합니다: "
            f"{sqrt_price_limit} >= {pool.sqrt_price}"
        )
    if not a_to_b and sqrt_price_limit <= pool.sqrt_price:
        raise InvalidSwapError(
            f"b_to_a 스왑의 가격 제한은 현재 가격보다 높아야 합니다: "
            f"{sqrt_price_limit} <= {pool.sqrt_price}"
        )
    return sqrt_price_limit


def _cross_tick(
    tick: Tick,
    pool: Whirlpool,
    fee_growth_global_a: int,
    fee_growth_global_b: int,
    reward_growths_global: Tuple[int, ...]
) -> Tick:
    """틱 교차: outside 값을 global - outside 로 반전"""
    reward_growths_outside = tuple(
        wrapping_sub(reward_growths_global[i], outside)
        if pool.reward_infos[i].is_initialized() else outside
        for i, outside in enumerate(tick.reward_growths_outside)
    )
    return replace(
        tick,
        fee_growth_outside_a=wrapping_sub(fee_growth_global_a, tick.fee_growth_outside_a),
        fee_growth_outside_b=wrapping_sub(fee_growth_global_b, tick.fee_growth_outside_b),
        reward_growths_outside=reward_growths_outside,
    )


def simulate_swap(
    pool: Whirlpool,
    tick_arrays: TickArraysLike,
    amount: int,
    a_to_b: bool,
    amount_specified_is_input: bool,
    sqrt_price_limit: Optional[int] = None,
    timestamp: Optional[int] = None,
    max_iterations: Optional[int] = None
) -> SwapResult:
    """스왑 시뮬레이션

    Args:
        pool: 풀 스냅샷
        tick_arrays: 틱 배열 시퀀스 (또는 TickArray 목록)
        amount: 지정 수량 (exact input 이면 입력, 아니면 출력)
        a_to_b: True면 token A → token B (가격 하락)
        amount_specified_is_input: exact input 여부
        sqrt_price_limit: 가격 제한 (None 이면 전역 경계, 부분 체결 불가)
        timestamp: 보상 누적 기준 시각 (None 이면 마지막 업데이트 시각)
        max_iterations: 스텝 수 한도 (None 이면 설정값 또는 틱 수 기반 기본값)

    Returns:
        SwapResult

    Raises:
        InvalidSwapError: 수량이 0 이거나 가격 제한 방향이 잘못된 경우
        OutOfBoundsError: 가격 제한이 전역 범위를 벗어난 경우
        InsufficientLiquidityError: 가격 제한 없이 전역 경계까지 가도 수량이 남는 경우
        TickArrayNotSuppliedError: 제공된 틱 배열 밖으로 나가야 하는 경우
        IterationLimitExceededError: 스텝 수가 한도를 넘은 경우
        InvalidTimestampError: timestamp 가 마지막 보상 업데이트보다 이전인 경우
    """
    if amount <= 0:
        raise InvalidSwapError(f"스왑 수량은 양수여야 합니다: {amount}")
    if amount > U64_MAX:
        raise AmountOverflowError(f"스왑 수량이 u64 범위를 초과합니다: {amount}")

    sequence = _as_sequence(tick_arrays, pool.tick_spacing)
    has_explicit_limit = sqrt_price_limit is not None
    limit = _resolve_sqrt_price_limit(pool, sqrt_price_limit, a_to_b)
    reward_growths_global = next_reward_growths_global(pool, timestamp)

    if max_iterations is None:
        max_iterations = settings.SWAP_MAX_ITERATIONS
    if max_iterations is None:
        max_iterations = sequence.initialized_tick_count() + len(sequence) + 2

    amount_remaining = amount
    amount_calculated = 0
    current_sqrt_price = pool.sqrt_price
    current_tick_index = pool.tick_current_index
    current_liquidity = pool.liquidity
    fee_growth_global_a = pool.fee_growth_global_a
    fee_growth_global_b = pool.fee_growth_global_b
    total_fee = 0
    protocol_fee = 0
    crossed_ticks = []
    iterations = 0

    while amount_remaining > 0 and current_sqrt_price != limit:
        iterations += 1
        if iterations > max_iterations:
            raise IterationLimitExceededError(
                f"스왑 스텝이 한도 {max_iterations}회를 초과했습니다"
            )

        next_tick, next_tick_index = sequence.find_next_initialized_tick(current_tick_index, a_to_b)
        next_tick_sqrt_price = tick_index_to_sqrt_price(next_tick_index)
        if a_to_b:
            target_sqrt_price = max(next_tick_sqrt_price, limit)
        else:
            target_sqrt_price = min(next_tick_sqrt_price, limit)

        step = compute_swap_step(
            amount_remaining,
            pool.fee_rate,
            current_liquidity,
            current_sqrt_price,
            target_sqrt_price,
            amount_specified_is_input,
            a_to_b,
        )

        if amount_specified_is_input:
            amount_remaining -= step.amount_in + step.fee_amount
            amount_calculated += step.amount_out
        else:
            amount_remaining -= step.amount_out
            amount_calculated += step.amount_in + step.fee_amount

        step_protocol_fee = step.fee_amount * pool.protocol_fee_rate // PROTOCOL_FEE_RATE_MUL_VALUE
        total_fee += step.fee_amount
        protocol_fee += step_protocol_fee
        if current_liquidity > 0:
            growth = ((step.fee_amount - step_protocol_fee) << 64) // current_liquidity
            if a_to_b:
                fee_growth_global_a = wrapping_add(fee_growth_global_a, growth)
            else:
                fee_growth_global_b = wrapping_add(fee_growth_global_b, growth)

        logger.debug(
            "swap step: sqrt_price %d -> %d, in=%d, out=%d, fee=%d, liquidity=%d",
            current_sqrt_price, step.next_sqrt_price,
            step.amount_in, step.amount_out, step.fee_amount, current_liquidity,
        )

        if step.next_sqrt_price == next_tick_sqrt_price:
            if next_tick is not None and next_tick.initialized:
                liquidity_net = -next_tick.liquidity_net if a_to_b else next_tick.liquidity_net
                next_liquidity = current_liquidity + liquidity_net
                if next_liquidity < 0 or next_liquidity > U128_MAX:
                    raise InvalidLiquidityError(
                        f"틱 {next_tick_index} 교차 후 유동성이 범위를 벗어났습니다: {next_liquidity}"
                    )
                crossed_ticks.append((
                    next_tick_index,
                    _cross_tick(
                        next_tick, pool,
                        fee_growth_global_a, fee_growth_global_b, reward_growths_global,
                    ),
                ))
                logger.debug(
                    "crossed tick %d: liquidity %d -> %d",
                    next_tick_index, current_liquidity, next_liquidity,
                )
                current_liquidity = next_liquidity

            current_tick_index = next_tick_index - 1 if a_to_b else next_tick_index
        elif step.next_sqrt_price != current_sqrt_price:
            current_tick_index = sqrt_price_to_tick_index(step.next_sqrt_price)

        current_sqrt_price = step.next_sqrt_price

    if amount_remaining > 0 and not has_explicit_limit:
        raise InsufficientLiquidityError(
            f"전역 가격 경계까지 이동해도 {amount_remaining}이(가) 남습니다 (요청 {amount})"
        )
    if amount_calculated > U64_MAX:
        raise AmountOverflowError(f"계산된 수량이 u64 범위를 초과합니다: {amount_calculated}")

    amount_specified = amount - amount_remaining
    if amount_specified_is_input:
        amount_in, amount_out = amount_specified, amount_calculated
    else:
        amount_in, amount_out = amount_calculated, amount_specified
    amount_a, amount_b = (amount_in, amount_out) if a_to_b else (amount_out, amount_in)

    return SwapResult(
        amount_a=amount_a,
        amount_b=amount_b,
        amount_in=amount_in,
        amount_out=amount_out,
        total_fee=total_fee,
        protocol_fee=protocol_fee,
        end_sqrt_price=current_sqrt_price,
        end_tick_index=current_tick_index,
        end_liquidity=current_liquidity,
        crossed_tick_count=len(crossed_ticks),
        crossed_ticks=tuple(crossed_ticks),
        fee_growth_global_a=fee_growth_global_a,
        fee_growth_global_b=fee_growth_global_b,
        reward_growths_global=reward_growths_global,
        slot=pool.slot,
    )


def _resolve_slippage(slippage_tolerance_bps: Optional[int]) -> int:
    if slippage_tolerance_bps is None:
        return settings.DEFAULT_SLIPPAGE_TOLERANCE_BPS
    return slippage_tolerance_bps


def swap_quote_by_input_token(
    pool: Whirlpool,
    tick_arrays: TickArraysLike,
    token_in: int,
    specified_token_a: bool,
    slippage_tolerance_bps: Optional[int] = None,
    mint_a: Optional[MintMeta] = None,
    mint_b: Optional[MintMeta] = None,
    epoch: Optional[int] = None,
    timestamp: Optional[int] = None
) -> ExactInSwapQuote:
    """입력 수량 지정 스왑 견적

    입력은 입력 mint 의 전송 수수료를 뺀 수량이 풀에 도착하고,
    출력은 출력 mint 의 전송 수수료를 뺀 수량이 사용자에게 도착한다.

    Args:
        pool: 풀 스냅샷
        tick_arrays: 틱 배열 시퀀스
        token_in: 사용자가 보내는 입력 수량
        specified_token_a: True면 token A 를 넣는다 (a_to_b)
        slippage_tolerance_bps: 허용 슬리피지 (None 이면 설정 기본값)
        mint_a / mint_b: mint 메타데이터 (전송 수수료 보정용)
        epoch: 전송 수수료 에폭 (None 이면 최신 수수료)
        timestamp: 보상 누적 기준 시각

    Returns:
        ExactInSwapQuote
    """
    a_to_b = specified_token_a
    mint_in, mint_out = (mint_a, mint_b) if a_to_b else (mint_b, mint_a)
    ensure_transferable(mint_in, "swap")
    ensure_transferable(mint_out, "swap")
    slippage_tolerance_bps = _resolve_slippage(slippage_tolerance_bps)

    token_in_after_fee = adjust_for_transfer_impact(
        token_in, mint_in, TransferDirection.RECEIVE, epoch
    )
    result = simulate_swap(
        pool, tick_arrays, token_in_after_fee, a_to_b, True, timestamp=timestamp
    )

    token_min_out_before_fee = get_min_amount_with_slippage_tolerance(
        result.amount_out, slippage_tolerance_bps
    )
    quote = ExactInSwapQuote(
        token_in=adjust_for_transfer_impact(result.amount_in, mint_in, TransferDirection.SEND, epoch),
        token_est_out=adjust_for_transfer_impact(
            result.amount_out, mint_out, TransferDirection.RECEIVE, epoch
        ),
        token_min_out=adjust_for_transfer_impact(
            token_min_out_before_fee, mint_out, TransferDirection.RECEIVE, epoch
        ),
        trade_fee=result.total_fee,
    )
    logger.debug("exact-in swap quote: %s", quote)
    return quote


def swap_quote_by_output_token(
    pool: Whirlpool,
    tick_arrays: TickArraysLike,
    token_out: int,
    specified_token_a: bool,
    slippage_tolerance_bps: Optional[int] = None,
    mint_a: Optional[MintMeta] = None,
    mint_b: Optional[MintMeta] = None,
    epoch: Optional[int] = None,
    timestamp: Optional[int] = None
) -> ExactOutSwapQuote:
    """출력 수량 지정 스왑 견적

    token_out 이 사용자에게 도착하도록 풀이 보내야 할 수량으로 스왑을 시뮬레이션하고,
    필요한 입력을 입력 mint 의 전송 수수료만큼 gross-up 한다.

    Args:
        token_out: 사용자가 받고자 하는 출력 수량
        specified_token_a: True면 token A 를 받는다 (b_to_a)

    Returns:
        ExactOutSwapQuote
    """
    a_to_b = not specified_token_a
    mint_in, mint_out = (mint_a, mint_b) if a_to_b else (mint_b, mint_a)
    ensure_transferable(mint_in, "swap")
    ensure_transferable(mint_out, "swap")
    slippage_tolerance_bps = _resolve_slippage(slippage_tolerance_bps)

    token_out_before_fee = adjust_for_transfer_impact(
        token_out, mint_out, TransferDirection.SEND, epoch
    )
    result = simulate_swap(
        pool, tick_arrays, token_out_before_fee, a_to_b, False, timestamp=timestamp
    )

    token_max_in_before_fee = get_max_amount_with_slippage_tolerance(
        result.amount_in, slippage_tolerance_bps
    )
    quote = ExactOutSwapQuote(
        token_out=token_out,
        token_est_in=adjust_for_transfer_impact(
            result.amount_in, mint_in, TransferDirection.SEND, epoch
        ),
        token_max_in=adjust_for_transfer_impact(
            token_max_in_before_fee, mint_in, TransferDirection.SEND, epoch
        ),
        trade_fee=result.total_fee,
    )
    logger.debug("exact-out swap quote: %s", quote)
    return quote
