"""
Rewards Quote - 미수령 보상 견적

전역 reward growth 를 timestamp 까지 투영한 뒤 수수료와 같은 inside/outside 분해로
포지션 몫을 계산한다. 초기화되지 않은 슬롯은 건너뛰고 0 을 보고한다.

공식:
    g' = g + Δt × emissions_x64 / L_pool          (vault 잔고로 제한)
    owed = amount_owed + (L × (r_inside - checkpoint)) >> 64
"""

from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from ..constants import DEFAULT_ADDRESS
from ..data.types import Position, Tick, Whirlpool
from ..extensions import MintMeta, TransferDirection, adjust_for_transfer_impact
from ..math.fee_math import (
    calculate_owed_delta,
    get_reward_growths_inside,
    next_reward_growths_global,
)


@dataclass(frozen=True)
class CollectRewardQuote:
    """보상 슬롯 하나의 수령 가능 수량"""
    mint: str
    owed: int


@dataclass(frozen=True)
class CollectRewardsQuote:
    """보상 슬롯 3개의 수령 견적"""
    rewards: Tuple[CollectRewardQuote, ...]

    def total_for_mint(self, mint: str) -> int:
        return sum(r.owed for r in self.rewards if r.mint == mint)


def quote_rewards(
    pool: Whirlpool,
    position: Position,
    tick_lower: Tick,
    tick_upper: Tick,
    timestamp: int,
    mint_metas: Optional[Dict[str, MintMeta]] = None,
    epoch: Optional[int] = None
) -> CollectRewardsQuote:
    """보상 수령 견적

    Args:
        pool: 풀 스냅샷
        position: 포지션 스냅샷
        tick_lower: 포지션 하한 틱 상태
        tick_upper: 포지션 상한 틱 상태
        timestamp: 기준 Unix timestamp
        mint_metas: 보상 mint 주소 → 메타데이터 (전송 수수료 차감용)
        epoch: 전송 수수료 에폭 (None 이면 최신 수수료)

    Returns:
        CollectRewardsQuote

    Raises:
        InvalidTimestampError: timestamp 가 마지막 보상 업데이트보다 이전인 경우
    """
    mint_metas = mint_metas or {}
    growths_global = next_reward_growths_global(pool, timestamp)
    reward_infos = tuple(
        replace(reward_info, growth_global_x64=growth)
        for reward_info, growth in zip(pool.reward_infos, growths_global)
    )
    growths_inside = get_reward_growths_inside(
        pool.tick_current_index,
        tick_lower,
        position.tick_lower_index,
        tick_upper,
        position.tick_upper_index,
        reward_infos,
    )

    rewards = []
    for reward_info, growth_inside, position_reward in zip(
        reward_infos, growths_inside, position.reward_infos
    ):
        if not reward_info.is_initialized():
            rewards.append(CollectRewardQuote(mint=DEFAULT_ADDRESS, owed=0))
            continue

        owed = position_reward.amount_owed + calculate_owed_delta(
            position.liquidity, growth_inside, position_reward.growth_inside_checkpoint
        )
        rewards.append(CollectRewardQuote(
            mint=reward_info.mint,
            owed=adjust_for_transfer_impact(
                owed, mint_metas.get(reward_info.mint), TransferDirection.RECEIVE, epoch
            ),
        ))

    return CollectRewardsQuote(rewards=tuple(rewards))
