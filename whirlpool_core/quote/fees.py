"""
Fees Quote - 미수령 수수료 견적

포지션을 정산하지 않고, 지금 수수료를 수령하면 받을 수량을 계산한다.

공식:
    f_r = f_g - f_b(i_l) - f_a(i_u)                  (mod 2^128)
    owed = fee_owed + (L × (f_r - checkpoint)) >> 64
"""

from dataclasses import dataclass
from typing import Optional

from ..data.types import Position, Tick, Whirlpool
from ..extensions import MintMeta, TransferDirection, adjust_for_transfer_impact
from ..math.fee_math import calculate_owed_delta, get_fee_growths_inside


@dataclass(frozen=True)
class CollectFeesQuote:
    """수령 가능한 수수료 (전송 수수료 차감 후)"""
    fee_owed_a: int
    fee_owed_b: int


def quote_fees(
    pool: Whirlpool,
    position: Position,
    tick_lower: Tick,
    tick_upper: Tick,
    mint_a: Optional[MintMeta] = None,
    mint_b: Optional[MintMeta] = None,
    epoch: Optional[int] = None
) -> CollectFeesQuote:
    """수수료 수령 견적

    같은 스냅샷에 대해 몇 번을 호출해도 같은 결과를 낸다.

    Args:
        pool: 풀 스냅샷
        position: 포지션 스냅샷
        tick_lower: 포지션 하한 틱 상태
        tick_upper: 포지션 상한 틱 상태
        mint_a / mint_b: mint 메타데이터 (전송 수수료 차감용)
        epoch: 전송 수수료 에폭 (None 이면 최신 수수료)

    Returns:
        CollectFeesQuote
    """
    fee_growths_inside = get_fee_growths_inside(
        pool.tick_current_index,
        tick_lower,
        position.tick_lower_index,
        tick_upper,
        position.tick_upper_index,
        pool.fee_growth_global_a,
        pool.fee_growth_global_b,
    )

    fee_owed_a = position.fee_owed_a + calculate_owed_delta(
        position.liquidity,
        fee_growths_inside.fee_growth_inside_a,
        position.fee_growth_checkpoint_a,
    )
    fee_owed_b = position.fee_owed_b + calculate_owed_delta(
        position.liquidity,
        fee_growths_inside.fee_growth_inside_b,
        position.fee_growth_checkpoint_b,
    )

    return CollectFeesQuote(
        fee_owed_a=adjust_for_transfer_impact(fee_owed_a, mint_a, TransferDirection.RECEIVE, epoch),
        fee_owed_b=adjust_for_transfer_impact(fee_owed_b, mint_b, TransferDirection.RECEIVE, epoch),
    )
