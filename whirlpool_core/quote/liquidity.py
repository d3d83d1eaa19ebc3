"""
Liquidity Quote - 유동성 증가 / 감소 / 재배치 견적

입금은 올림(풀에 유리), 출금은 내림으로 토큰 수량을 계산하고,
전송 수수료와 슬리피지를 반영해 호출자가 보호받는 방향으로 한도를 만든다.

References:
- Orca Whirlpools 정산 엔진: 유동성 증가 / 감소 / 재배치

슬리피지 한도:
    token_max = ceil(token_est × (10000 + bps) / 10000)     # 증가
    token_min = floor(token_est × (10000 - bps) / 10000)    # 감소

재배치(reposition):
    1. 기존 범위에서 전체 유동성 출금 (내림)
    2. 새 범위에 유동성 입금 (올림)
    3. 토큰별로 순액 하나만 이동 (풀 → 소유자 또는 소유자 → 풀)
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from ..config import settings
from ..constants import MIN_TICK_INDEX, MAX_TICK_INDEX
from ..data.types import Position, Whirlpool
from ..errors import (
    InvalidLiquidityError,
    InvalidTickRangeError,
    LiquidityZeroError,
    OutOfBoundsError,
    SameRangeError,
    TokenMaxExceededError,
)
from ..extensions import (
    MintMeta,
    TransferDirection,
    adjust_for_transfer_impact,
    ensure_transferable,
)
from ..math.liquidity_math import (
    PositionStatus,
    get_liquidity_from_amounts,
    get_liquidity_from_token,
    get_liquidity_token_deltas,
    position_status,
)
from ..math.token_math import (
    get_max_amount_with_slippage_tolerance,
    get_min_amount_with_slippage_tolerance,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IncreaseLiquidityQuote:
    """유동성 증가 견적 (est: 예상 전송량, max: 슬리피지 반영 최대치)"""
    liquidity_delta: int
    token_est_a: int
    token_est_b: int
    token_max_a: int
    token_max_b: int


@dataclass(frozen=True)
class DecreaseLiquidityQuote:
    """유동성 감소 견적 (est: 예상 수령량, min: 슬리피지 반영 최소치)"""
    liquidity_delta: int
    token_est_a: int
    token_est_b: int
    token_min_a: int
    token_min_b: int


class TransferFlow(Enum):
    """순액 전송 방향"""
    POOL_TO_OWNER = "pool_to_owner"
    OWNER_TO_POOL = "owner_to_pool"


@dataclass(frozen=True)
class TokenTransfer:
    """토큰 하나의 순액 전송

    - OWNER_TO_POOL: amount 는 전송 수수료를 포함해 소유자가 보낼 수량, threshold 는 최대치
    - POOL_TO_OWNER: amount 는 전송 수수료를 뺀 실제 수령량, threshold 는 최소치
    """
    direction: TransferFlow
    amount: int
    threshold: int


@dataclass(frozen=True)
class RepositionQuote:
    """재배치 견적

    position 은 새 범위/유동성을 반영한 포지션 스냅샷이며
    미수령 수수료/보상과 checkpoint 는 기존 값 그대로다.
    """
    liquidity_delta: int
    decrease: DecreaseLiquidityQuote
    increase: IncreaseLiquidityQuote
    transfer_a: TokenTransfer
    transfer_b: TokenTransfer
    fee_owed_a: int
    fee_owed_b: int
    reward_owed: Tuple[int, ...]
    position: Position
    position_status: PositionStatus


def validate_tick_range(tick_lower_index: int, tick_upper_index: int, tick_spacing: int) -> None:
    """포지션 범위 검증

    Raises:
        InvalidTickRangeError: lower >= upper 이거나 tick spacing 배수가 아닌 경우
        OutOfBoundsError: 전역 틱 범위를 벗어난 경우
    """
    if tick_lower_index >= tick_upper_index:
        raise InvalidTickRangeError(
            f"하한 틱이 상한 틱보다 작아야 합니다: [{tick_lower_index}, {tick_upper_index})"
        )
    if tick_lower_index < MIN_TICK_INDEX or tick_upper_index > MAX_TICK_INDEX:
        raise OutOfBoundsError(
            f"틱 범위가 전역 범위를 벗어났습니다: [{tick_lower_index}, {tick_upper_index})"
        )
    if tick_lower_index % tick_spacing != 0 or tick_upper_index % tick_spacing != 0:
        raise InvalidTickRangeError(
            f"틱 범위가 tick spacing {tick_spacing}의 배수가 아닙니다: "
            f"[{tick_lower_index}, {tick_upper_index})"
        )


def _resolve_slippage(slippage_tolerance_bps: Optional[int]) -> int:
    if slippage_tolerance_bps is None:
        return settings.DEFAULT_SLIPPAGE_TOLERANCE_BPS
    return slippage_tolerance_bps


def _resolve_input_mint(
    pool: Whirlpool,
    input_mint: str,
    mint_a: Optional[MintMeta],
    mint_b: Optional[MintMeta]
) -> Tuple[bool, Optional[MintMeta]]:
    if input_mint == pool.token_mint_a:
        return True, mint_a
    if input_mint == pool.token_mint_b:
        return False, mint_b
    raise ValueError(f"풀 {pool.address}의 토큰이 아닙니다: {input_mint}")


def quote_increase_liquidity_by_liquidity(
    pool: Whirlpool,
    tick_lower_index: int,
    tick_upper_index: int,
    liquidity_delta: int,
    slippage_tolerance_bps: Optional[int] = None,
    mint_a: Optional[MintMeta] = None,
    mint_b: Optional[MintMeta] = None,
    epoch: Optional[int] = None
) -> IncreaseLiquidityQuote:
    """유동성 증가량 지정 견적

    Args:
        pool: 풀 스냅샷
        tick_lower_index / tick_upper_index: 포지션 범위
        liquidity_delta: 추가할 유동성
        slippage_tolerance_bps: 허용 슬리피지 (None 이면 설정 기본값)
        mint_a / mint_b: mint 메타데이터 (전송 수수료 gross-up 용)
        epoch: 전송 수수료 에폭 (None 이면 최신 수수료)

    Returns:
        IncreaseLiquidityQuote
    """
    validate_tick_range(tick_lower_index, tick_upper_index, pool.tick_spacing)
    if liquidity_delta < 0:
        raise InvalidLiquidityError(f"유동성 증가량은 음수일 수 없습니다: {liquidity_delta}")
    ensure_transferable(mint_a, "increase liquidity")
    ensure_transferable(mint_b, "increase liquidity")
    slippage_tolerance_bps = _resolve_slippage(slippage_tolerance_bps)

    token_a, token_b = get_liquidity_token_deltas(
        pool.tick_current_index,
        pool.sqrt_price,
        tick_lower_index,
        tick_upper_index,
        liquidity_delta,
        True,
    )
    token_est_a = adjust_for_transfer_impact(token_a, mint_a, TransferDirection.SEND, epoch)
    token_est_b = adjust_for_transfer_impact(token_b, mint_b, TransferDirection.SEND, epoch)

    return IncreaseLiquidityQuote(
        liquidity_delta=liquidity_delta,
        token_est_a=token_est_a,
        token_est_b=token_est_b,
        token_max_a=get_max_amount_with_slippage_tolerance(token_est_a, slippage_tolerance_bps),
        token_max_b=get_max_amount_with_slippage_tolerance(token_est_b, slippage_tolerance_bps),
    )


def quote_increase_liquidity_by_input_token(
    pool: Whirlpool,
    tick_lower_index: int,
    tick_upper_index: int,
    input_mint: str,
    input_amount: int,
    slippage_tolerance_bps: Optional[int] = None,
    mint_a: Optional[MintMeta] = None,
    mint_b: Optional[MintMeta] = None,
    epoch: Optional[int] = None
) -> IncreaseLiquidityQuote:
    """한쪽 토큰 수량 지정 유동성 증가 견적

    입력 수량에서 전송 수수료를 뺀 만큼으로 유동성을 구하고,
    반대쪽 토큰은 그 유동성에서 다시 계산한다 (고정 비율이 아님).
    범위에 필요 없는 토큰을 지정하면 유동성 0 견적이 나온다.

    Example:
        >>> quote = quote_increase_liquidity_by_input_token(
        ...     pool, -1280, 1280, pool.token_mint_a, 1_000_000, slippage_tolerance_bps=100
        ... )
        >>> quote.token_est_a <= 1_000_000
        True
    """
    validate_tick_range(tick_lower_index, tick_upper_index, pool.tick_spacing)
    is_token_a, input_mint_meta = _resolve_input_mint(pool, input_mint, mint_a, mint_b)

    amount_after_fee = adjust_for_transfer_impact(
        input_amount, input_mint_meta, TransferDirection.RECEIVE, epoch
    )
    liquidity_delta = get_liquidity_from_token(
        amount_after_fee, is_token_a, pool.sqrt_price, tick_lower_index, tick_upper_index
    )
    return quote_increase_liquidity_by_liquidity(
        pool, tick_lower_index, tick_upper_index, liquidity_delta,
        slippage_tolerance_bps, mint_a, mint_b, epoch,
    )


def _decrease_quote(
    pool: Whirlpool,
    tick_lower_index: int,
    tick_upper_index: int,
    liquidity_delta: int,
    slippage_tolerance_bps: int,
    mint_a: Optional[MintMeta],
    mint_b: Optional[MintMeta],
    epoch: Optional[int]
) -> DecreaseLiquidityQuote:
    token_a, token_b = get_liquidity_token_deltas(
        pool.tick_current_index,
        pool.sqrt_price,
        tick_lower_index,
        tick_upper_index,
        liquidity_delta,
        False,
    )
    token_est_a = adjust_for_transfer_impact(token_a, mint_a, TransferDirection.RECEIVE, epoch)
    token_est_b = adjust_for_transfer_impact(token_b, mint_b, TransferDirection.RECEIVE, epoch)

    return DecreaseLiquidityQuote(
        liquidity_delta=liquidity_delta,
        token_est_a=token_est_a,
        token_est_b=token_est_b,
        token_min_a=get_min_amount_with_slippage_tolerance(token_est_a, slippage_tolerance_bps),
        token_min_b=get_min_amount_with_slippage_tolerance(token_est_b, slippage_tolerance_bps),
    )


def quote_decrease_liquidity_by_liquidity(
    pool: Whirlpool,
    position: Position,
    liquidity_to_remove: int,
    slippage_tolerance_bps: Optional[int] = None,
    mint_a: Optional[MintMeta] = None,
    mint_b: Optional[MintMeta] = None,
    epoch: Optional[int] = None
) -> DecreaseLiquidityQuote:
    """유동성 감소량 지정 견적

    Args:
        pool: 풀 스냅샷
        position: 포지션 스냅샷
        liquidity_to_remove: 제거할 유동성
        slippage_tolerance_bps: 허용 슬리피지 (None 이면 설정 기본값)

    Returns:
        DecreaseLiquidityQuote

    Raises:
        InvalidLiquidityError: 포지션이 보유한 유동성보다 많이 제거하려는 경우
    """
    validate_tick_range(position.tick_lower_index, position.tick_upper_index, pool.tick_spacing)
    if liquidity_to_remove < 0 or liquidity_to_remove > position.liquidity:
        raise InvalidLiquidityError(
            f"제거할 유동성 {liquidity_to_remove}이(가) 포지션 유동성 {position.liquidity}의 범위를 벗어났습니다"
        )
    ensure_transferable(mint_a, "decrease liquidity")
    ensure_transferable(mint_b, "decrease liquidity")

    return _decrease_quote(
        pool,
        position.tick_lower_index,
        position.tick_upper_index,
        liquidity_to_remove,
        _resolve_slippage(slippage_tolerance_bps),
        mint_a,
        mint_b,
        epoch,
    )


def quote_decrease_liquidity_by_token(
    pool: Whirlpool,
    position: Position,
    token_mint: str,
    token_amount: int,
    slippage_tolerance_bps: Optional[int] = None,
    mint_a: Optional[MintMeta] = None,
    mint_b: Optional[MintMeta] = None,
    epoch: Optional[int] = None
) -> DecreaseLiquidityQuote:
    """한쪽 토큰 수령량 지정 유동성 감소 견적

    token_amount 가 도착하도록 풀이 보내야 하는 수량으로 유동성을 구한다.
    """
    is_token_a, mint_meta = _resolve_input_mint(pool, token_mint, mint_a, mint_b)
    amount_before_fee = adjust_for_transfer_impact(
        token_amount, mint_meta, TransferDirection.SEND, epoch
    )
    liquidity_delta = get_liquidity_from_token(
        amount_before_fee,
        is_token_a,
        pool.sqrt_price,
        position.tick_lower_index,
        position.tick_upper_index,
    )
    return quote_decrease_liquidity_by_liquidity(
        pool, position, liquidity_delta, slippage_tolerance_bps, mint_a, mint_b, epoch
    )


def _net_transfer(
    withdrawn: int,
    deposited: int,
    token_max: Optional[int],
    slippage_tolerance_bps: int,
    mint_meta: Optional[MintMeta],
    epoch: Optional[int],
    token_name: str
) -> TokenTransfer:
    # 출금량이 더 크면 풀 → 소유자, 같거나 작으면 소유자 → 풀
    if withdrawn > deposited:
        amount = adjust_for_transfer_impact(
            withdrawn - deposited, mint_meta, TransferDirection.RECEIVE, epoch
        )
        return TokenTransfer(
            direction=TransferFlow.POOL_TO_OWNER,
            amount=amount,
            threshold=get_min_amount_with_slippage_tolerance(amount, slippage_tolerance_bps),
        )

    amount = adjust_for_transfer_impact(
        deposited - withdrawn, mint_meta, TransferDirection.SEND, epoch
    )
    if token_max is not None and amount > token_max:
        raise TokenMaxExceededError(
            f"{token_name} 필요 수량 {amount}이(가) 최대치 {token_max}를 초과합니다"
        )
    return TokenTransfer(
        direction=TransferFlow.OWNER_TO_POOL,
        amount=amount,
        threshold=get_max_amount_with_slippage_tolerance(amount, slippage_tolerance_bps),
    )


def quote_reposition(
    pool: Whirlpool,
    position: Position,
    new_tick_lower_index: int,
    new_tick_upper_index: int,
    new_liquidity: Optional[int] = None,
    extra_token_a: int = 0,
    extra_token_b: int = 0,
    token_max_a: Optional[int] = None,
    token_max_b: Optional[int] = None,
    slippage_tolerance_bps: Optional[int] = None,
    mint_a: Optional[MintMeta] = None,
    mint_b: Optional[MintMeta] = None,
    epoch: Optional[int] = None
) -> RepositionQuote:
    """포지션 범위 재배치 견적

    기존 범위의 전체 유동성을 출금하고 새 범위에 입금한 뒤 토큰별 순액을 계산한다.
    미수령 수수료/보상과 checkpoint 는 재배치 계산에서 바뀌지 않는다.

    Args:
        pool: 풀 스냅샷
        position: 기존 포지션
        new_tick_lower_index / new_tick_upper_index: 새 범위
        new_liquidity: 새 범위 유동성 (None 이면 출금 토큰 + 추가 토큰으로 가능한 최대치)
        extra_token_a / extra_token_b: 소유자가 추가로 보낼 수 있는 토큰
        token_max_a / token_max_b: 소유자가 보낼 수 있는 최대 수량 (None 이면 제한 없음)
        slippage_tolerance_bps: 허용 슬리피지 (None 이면 설정 기본값)

    Returns:
        RepositionQuote

    Raises:
        SameRangeError: 새 범위가 기존 범위와 같은 경우
        LiquidityZeroError: 새 유동성이 0 인 경우
        TokenMaxExceededError: 소유자가 보내야 할 수량이 최대치를 넘는 경우
    """
    if (new_tick_lower_index, new_tick_upper_index) == \
            (position.tick_lower_index, position.tick_upper_index):
        raise SameRangeError(
            f"기존 범위와 같은 범위로 재배치할 수 없습니다: [{new_tick_lower_index}, {new_tick_upper_index})"
        )
    validate_tick_range(position.tick_lower_index, position.tick_upper_index, pool.tick_spacing)
    validate_tick_range(new_tick_lower_index, new_tick_upper_index, pool.tick_spacing)
    ensure_transferable(mint_a, "reposition")
    ensure_transferable(mint_b, "reposition")
    slippage_tolerance_bps = _resolve_slippage(slippage_tolerance_bps)

    decrease_quote = _decrease_quote(
        pool,
        position.tick_lower_index,
        position.tick_upper_index,
        position.liquidity,
        slippage_tolerance_bps,
        mint_a,
        mint_b,
        epoch,
    )
    withdrawn_a, withdrawn_b = get_liquidity_token_deltas(
        pool.tick_current_index,
        pool.sqrt_price,
        position.tick_lower_index,
        position.tick_upper_index,
        position.liquidity,
        False,
    )

    if new_liquidity is None:
        # 출금분은 풀 안에서 상계되므로 전송 수수료는 추가 토큰에만 붙는다
        available_a = withdrawn_a + adjust_for_transfer_impact(
            extra_token_a, mint_a, TransferDirection.RECEIVE, epoch
        )
        available_b = withdrawn_b + adjust_for_transfer_impact(
            extra_token_b, mint_b, TransferDirection.RECEIVE, epoch
        )
        new_liquidity = get_liquidity_from_amounts(
            pool.sqrt_price, new_tick_lower_index, new_tick_upper_index, available_a, available_b
        )
    if new_liquidity <= 0:
        raise LiquidityZeroError("재배치 후 유동성이 0 입니다")

    increase_quote = quote_increase_liquidity_by_liquidity(
        pool, new_tick_lower_index, new_tick_upper_index, new_liquidity,
        slippage_tolerance_bps, mint_a, mint_b, epoch,
    )
    deposited_a, deposited_b = get_liquidity_token_deltas(
        pool.tick_current_index,
        pool.sqrt_price,
        new_tick_lower_index,
        new_tick_upper_index,
        new_liquidity,
        True,
    )

    transfer_a = _net_transfer(
        withdrawn_a, deposited_a, token_max_a, slippage_tolerance_bps, mint_a, epoch, "token A"
    )
    transfer_b = _net_transfer(
        withdrawn_b, deposited_b, token_max_b, slippage_tolerance_bps, mint_b, epoch, "token B"
    )

    new_position = replace(
        position,
        tick_lower_index=new_tick_lower_index,
        tick_upper_index=new_tick_upper_index,
        liquidity=new_liquidity,
    )
    logger.debug(
        "reposition [%d, %d) -> [%d, %d): liquidity %d -> %d, a=%s, b=%s",
        position.tick_lower_index, position.tick_upper_index,
        new_tick_lower_index, new_tick_upper_index,
        position.liquidity, new_liquidity, transfer_a, transfer_b,
    )

    return RepositionQuote(
        liquidity_delta=new_liquidity,
        decrease=decrease_quote,
        increase=increase_quote,
        transfer_a=transfer_a,
        transfer_b=transfer_b,
        fee_owed_a=position.fee_owed_a,
        fee_owed_b=position.fee_owed_b,
        reward_owed=tuple(r.amount_owed for r in position.reward_infos),
        position=new_position,
        position_status=position_status(pool.sqrt_price, new_tick_lower_index, new_tick_upper_index),
    )
