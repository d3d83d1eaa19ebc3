"""
Fee Math - 수수료 / 보상 누적 계산

Whirlpool 정산 엔진의 inside/outside 분해를 그대로 구현.
모든 누적값은 u128 이며 mod 2^128 로 랩어라운드한다.
차이는 (current - checkpoint) mod 2^128 로 계산하므로 랩어라운드를 지나도 정확하다.

References:
- Orca Whirlpools 정산 엔진: 틱 outside 값과 범위 내 누적
- Orca Whirlpools 정산 엔진: 보상 배출량 누적
- Uniswap V3 백서 Section 6.3, 6.4: Tick / Position-Indexed State

핵심 공식:
    f_b(l) = f_o(l)        if i_c >= l else f_g - f_o(l)    # 하한 틱 아래 수수료
    f_a(u) = f_o(u)        if i_c < u  else f_g - f_o(u)    # 상한 틱 위 수수료
    f_r = f_g - f_b(l) - f_a(u)                              # 범위 내 수수료
    owed = owed_0 + (L × (f_r - f_r(t_0))) >> 64             # 미수령 수수료
"""

from typing import NamedTuple, Optional, Tuple

from ..constants import Q128, NUM_REWARDS
from ..errors import InvalidTimestampError
from ..data.types import Whirlpool, Tick, RewardInfo


class FeeGrowthsInside(NamedTuple):
    """범위 내 fee growth"""
    fee_growth_inside_a: int  # f_r,a
    fee_growth_inside_b: int  # f_r,b


def wrapping_sub(a: int, b: int) -> int:
    """u128 랩어라운드 뺄셈"""
    return (a - b) % Q128


def wrapping_add(a: int, b: int) -> int:
    """u128 랩어라운드 덧셈"""
    return (a + b) % Q128


def growth_below(
    tick: Tick,
    tick_index: int,
    tick_current_index: int,
    growth_global: int,
    growth_outside: int
) -> int:
    """하한 틱 아래에서 발생한 누적값 (f_b)

    초기화되지 않은 틱은 outside 값이 없으므로 전역값 전체를 아래쪽으로 본다.
    """
    if not tick.initialized:
        return growth_global
    if tick_current_index < tick_index:
        return wrapping_sub(growth_global, growth_outside)
    return growth_outside


def growth_above(
    tick: Tick,
    tick_index: int,
    tick_current_index: int,
    growth_global: int,
    growth_outside: int
) -> int:
    """상한 틱 위에서 발생한 누적값 (f_a)

    초기화되지 않은 틱은 0 으로 본다.
    """
    if not tick.initialized:
        return 0
    if tick_current_index < tick_index:
        return growth_outside
    return wrapping_sub(growth_global, growth_outside)


def get_fee_growths_inside(
    tick_current_index: int,
    tick_lower: Tick,
    tick_lower_index: int,
    tick_upper: Tick,
    tick_upper_index: int,
    fee_growth_global_a: int,
    fee_growth_global_b: int
) -> FeeGrowthsInside:
    """범위 내 fee growth 계산 (f_r)

    f_r = f_g - f_b(i_l) - f_a(i_u)  (mod 2^128)

    Args:
        tick_current_index: 현재 틱 (i_c)
        tick_lower: 하한 틱 상태
        tick_lower_index: 하한 틱 인덱스 (i_l)
        tick_upper: 상한 틱 상태
        tick_upper_index: 상한 틱 인덱스 (i_u)
        fee_growth_global_a: token A 전역 fee growth (f_g,a)
        fee_growth_global_b: token B 전역 fee growth (f_g,b)

    Returns:
        FeeGrowthsInside
    """
    below_a = growth_below(tick_lower, tick_lower_index, tick_current_index,
                           fee_growth_global_a, tick_lower.fee_growth_outside_a)
    below_b = growth_below(tick_lower, tick_lower_index, tick_current_index,
                           fee_growth_global_b, tick_lower.fee_growth_outside_b)
    above_a = growth_above(tick_upper, tick_upper_index, tick_current_index,
                           fee_growth_global_a, tick_upper.fee_growth_outside_a)
    above_b = growth_above(tick_upper, tick_upper_index, tick_current_index,
                           fee_growth_global_b, tick_upper.fee_growth_outside_b)

    return FeeGrowthsInside(
        fee_growth_inside_a=wrapping_sub(wrapping_sub(fee_growth_global_a, below_a), above_a),
        fee_growth_inside_b=wrapping_sub(wrapping_sub(fee_growth_global_b, below_b), above_b),
    )


def get_reward_growths_inside(
    tick_current_index: int,
    tick_lower: Tick,
    tick_lower_index: int,
    tick_upper: Tick,
    tick_upper_index: int,
    reward_infos: Tuple[RewardInfo, ...]
) -> Tuple[int, ...]:
    """보상 슬롯별 범위 내 reward growth

    초기화되지 않은 슬롯은 0 을 반환한다.
    """
    growths = []
    for i in range(NUM_REWARDS):
        reward_info = reward_infos[i]
        if not reward_info.is_initialized():
            growths.append(0)
            continue

        below = growth_below(tick_lower, tick_lower_index, tick_current_index,
                             reward_info.growth_global_x64, tick_lower.reward_growths_outside[i])
        above = growth_above(tick_upper, tick_upper_index, tick_current_index,
                             reward_info.growth_global_x64, tick_upper.reward_growths_outside[i])
        growths.append(
            wrapping_sub(wrapping_sub(reward_info.growth_global_x64, below), above)
        )
    return tuple(growths)


def calculate_owed_delta(liquidity: int, growth_inside: int, growth_checkpoint: int) -> int:
    """checkpoint 이후 새로 누적된 수량

    (L × ((f_r - f_r(t_0)) mod 2^128)) >> 64
    """
    return (liquidity * wrapping_sub(growth_inside, growth_checkpoint)) >> 64


def project_reward_growth(
    reward_info: RewardInfo,
    time_delta: int,
    liquidity: int
) -> int:
    """time_delta 초 후의 전역 reward growth

    growth + time_delta × emissions / liquidity.
    보상 vault 잔고를 알면 배출량이 잔고를 넘지 않도록 제한한다.
    """
    if not reward_info.is_initialized() or liquidity == 0 or time_delta == 0:
        return reward_info.growth_global_x64

    growth_delta = time_delta * reward_info.emissions_per_second_x64 // liquidity
    if reward_info.vault_amount is not None:
        growth_delta = min(growth_delta, (reward_info.vault_amount << 64) // liquidity)

    return wrapping_add(reward_info.growth_global_x64, growth_delta)


def next_reward_growths_global(
    whirlpool: Whirlpool,
    timestamp: Optional[int] = None
) -> Tuple[int, ...]:
    """timestamp 시점까지 투영한 보상 슬롯별 전역 reward growth

    Args:
        whirlpool: 풀 스냅샷
        timestamp: 기준 Unix timestamp (None 이면 마지막 업데이트 시각)

    Returns:
        슬롯별 growth_global_x64 (3개)

    Raises:
        InvalidTimestampError: timestamp 가 마지막 업데이트보다 이전인 경우
    """
    if timestamp is None:
        timestamp = whirlpool.reward_last_updated_timestamp
    if timestamp < whirlpool.reward_last_updated_timestamp:
        raise InvalidTimestampError(
            f"timestamp {timestamp}가 마지막 보상 업데이트 "
            f"{whirlpool.reward_last_updated_timestamp}보다 이전입니다"
        )

    time_delta = timestamp - whirlpool.reward_last_updated_timestamp
    return tuple(
        project_reward_growth(reward_info, time_delta, whirlpool.liquidity)
        for reward_info in whirlpool.reward_infos
    )
