"""
Token Extensions - 값 보정 레이어

장부상 수량(nominal)과 실제로 이동하는 수량이 다른 mint 를 위한 보정:
- Transfer fee: 전송 시 min(ceil(amount × bps / 10000), max_fee) 만큼 차감
- Scaled UI amount: 표시 단위 = raw × multiplier (내부 계산은 항상 raw 단위)
- Non-transferable / transfer hook: 전송 의존 작업을 막거나 표시

References:
- Orca Whirlpools 정산 엔진: 전송 수수료 포함/제외 수량
- SPL Token-2022: extension/transfer_fee
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_FLOOR
from enum import Enum
from typing import NamedTuple, Optional

from .constants import BPS_DENOMINATOR, TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID
from .errors import NonTransferableError, TransferFeeCalculationError
from .math.token_math import adjust_amount, transfer_fee_adjustment


class TokenProgramKind(Enum):
    """mint 를 소유한 토큰 프로그램"""
    TOKEN = TOKEN_PROGRAM_ID
    TOKEN_2022 = TOKEN_2022_PROGRAM_ID


class TransferDirection(Enum):
    """보정 방향

    SEND: nominal 이 도착하도록 보내야 할 수량 (입금 견적, gross-up)
    RECEIVE: nominal 을 보냈을 때 실제로 도착하는 수량 (출금 견적, gross-down)
    """
    SEND = "send"
    RECEIVE = "receive"


@dataclass(frozen=True)
class TransferFee:
    """에폭별 전송 수수료 (bp 단위, 상한 max_fee)"""
    fee_bps: int = 0
    max_fee: int = 0

    def __post_init__(self):
        if self.fee_bps < 0 or self.fee_bps > BPS_DENOMINATOR:
            raise ValueError(f"전송 수수료는 0 ~ {BPS_DENOMINATOR} bps 여야 합니다: {self.fee_bps}")
        if self.max_fee < 0:
            raise ValueError(f"최대 전송 수수료는 음수일 수 없습니다: {self.max_fee}")


@dataclass(frozen=True)
class TransferFeeConfig:
    """Token-2022 transfer fee 설정

    newer_epoch 이후로는 newer, 그 전에는 older 가 적용된다.
    """
    older: TransferFee
    newer: TransferFee
    newer_epoch: int = 0

    def get_epoch_fee(self, epoch: Optional[int] = None) -> TransferFee:
        if epoch is None or epoch >= self.newer_epoch:
            return self.newer
        return self.older


@dataclass(frozen=True)
class MintMeta:
    """mint 메타데이터 (mint metadata resolver 가 공급)"""
    address: str
    decimals: int
    token_program: TokenProgramKind = TokenProgramKind.TOKEN
    transfer_fee: Optional[TransferFeeConfig] = None
    scaled_ui_multiplier: Decimal = Decimal(1)
    is_non_transferable: bool = False
    # token badge 속성: 이 토큰을 쓰는 풀의 포지션은 양도 불가
    requires_non_transferable_position: bool = False
    transfer_hook_program: Optional[str] = None
    slot: Optional[int] = None

    def transfer_fee_for_epoch(self, epoch: Optional[int] = None) -> Optional[TransferFee]:
        # 기존 Token 프로그램 mint 에는 확장이 없다
        if self.token_program is TokenProgramKind.TOKEN or self.transfer_fee is None:
            return None
        return self.transfer_fee.get_epoch_fee(epoch)

    @classmethod
    def from_dict(cls, data: dict) -> "MintMeta":
        transfer_fee = None
        if data.get("transferFeeConfig"):
            config = data["transferFeeConfig"]
            transfer_fee = TransferFeeConfig(
                older=TransferFee(
                    fee_bps=int(config["olderTransferFee"]["feeBps"]),
                    max_fee=int(config["olderTransferFee"]["maxFee"]),
                ),
                newer=TransferFee(
                    fee_bps=int(config["newerTransferFee"]["feeBps"]),
                    max_fee=int(config["newerTransferFee"]["maxFee"]),
                ),
                newer_epoch=int(config.get("newerTransferFeeEpoch", 0)),
            )
        elif data.get("transferFeeBps") is not None:
            fee = TransferFee(
                fee_bps=int(data["transferFeeBps"]),
                max_fee=int(data.get("transferFeeCap", 0)),
            )
            transfer_fee = TransferFeeConfig(older=fee, newer=fee)

        return cls(
            address=data["address"],
            decimals=int(data["decimals"]),
            token_program=TokenProgramKind(data.get("tokenProgram", TOKEN_PROGRAM_ID)),
            transfer_fee=transfer_fee,
            scaled_ui_multiplier=Decimal(str(data.get("scaledUiMultiplier", 1))),
            is_non_transferable=bool(data.get("isNonTransferable", False)),
            requires_non_transferable_position=bool(
                data.get("requireNonTransferablePosition", False)
            ),
            transfer_hook_program=data.get("transferHookProgram"),
            slot=int(data["slot"]) if data.get("slot") is not None else None,
        )


class TransferFeeResult(NamedTuple):
    """전송 수수료 계산 결과"""
    amount: int  # 수수료 포함 또는 제외 수량
    transfer_fee: int  # 차감되는 수수료


def calculate_transfer_fee(amount: int, transfer_fee: Optional[TransferFee]) -> int:
    """전송 수수료: min(ceil(amount × bps / 10000), max_fee)"""
    if transfer_fee is None or transfer_fee.fee_bps == 0 or amount == 0:
        return 0
    fee = -(-amount * transfer_fee.fee_bps // BPS_DENOMINATOR)
    return min(fee, transfer_fee.max_fee)


def calculate_transfer_fee_excluded_amount(
    transfer_fee_included_amount: int,
    transfer_fee: Optional[TransferFee]
) -> TransferFeeResult:
    """보낸 수량에서 수수료를 뺀, 실제로 도착하는 수량"""
    fee = calculate_transfer_fee(transfer_fee_included_amount, transfer_fee)
    return TransferFeeResult(amount=transfer_fee_included_amount - fee, transfer_fee=fee)


def calculate_transfer_fee_included_amount(
    transfer_fee_excluded_amount: int,
    transfer_fee: Optional[TransferFee]
) -> TransferFeeResult:
    """transfer_fee_excluded_amount 가 도착하도록 보내야 하는 수량

    정산 엔진과 같은 역산: 수수료율 100% 이면 max_fee 를 수수료로 사용하고,
    결과를 calculate_transfer_fee 로 다시 검증한다.

    Raises:
        TransferFeeCalculationError: 역산 결과가 검증을 통과하지 못한 경우
    """
    if transfer_fee_excluded_amount == 0:
        return TransferFeeResult(amount=0, transfer_fee=0)
    if transfer_fee is None or transfer_fee.fee_bps == 0:
        return TransferFeeResult(amount=transfer_fee_excluded_amount, transfer_fee=0)

    if transfer_fee.fee_bps == BPS_DENOMINATOR:
        fee = transfer_fee.max_fee
    else:
        numerator = transfer_fee_excluded_amount * BPS_DENOMINATOR
        denominator = BPS_DENOMINATOR - transfer_fee.fee_bps
        raw_pre_fee_amount = -(-numerator // denominator)
        if raw_pre_fee_amount - transfer_fee_excluded_amount >= transfer_fee.max_fee:
            fee = transfer_fee.max_fee
        else:
            fee = raw_pre_fee_amount - transfer_fee_excluded_amount

    included = transfer_fee_excluded_amount + fee
    if calculate_transfer_fee(included, transfer_fee) != fee:
        raise TransferFeeCalculationError(
            f"전송 수수료 역산 검증 실패: amount={transfer_fee_excluded_amount}, fee={fee}"
        )
    return TransferFeeResult(amount=included, transfer_fee=fee)


def adjust_for_transfer_impact(
    nominal_amount: int,
    mint_meta: Optional[MintMeta],
    direction: TransferDirection,
    epoch: Optional[int] = None
) -> int:
    """장부상 수량을 실제 이동 수량으로 보정

    Args:
        nominal_amount: 장부상 수량 (raw 단위)
        mint_meta: mint 메타데이터 (None 이면 보정 없음)
        direction: SEND (입금 gross-up) 또는 RECEIVE (출금 gross-down)
        epoch: 현재 에폭 (None 이면 최신 수수료)

    Returns:
        보정된 수량 (raw 단위)
    """
    if mint_meta is None:
        return nominal_amount

    transfer_fee = mint_meta.transfer_fee_for_epoch(epoch)
    if direction is TransferDirection.SEND:
        return calculate_transfer_fee_included_amount(nominal_amount, transfer_fee).amount

    if transfer_fee is None:
        return nominal_amount
    return adjust_amount(
        nominal_amount,
        transfer_fee_adjustment(transfer_fee.fee_bps, transfer_fee.max_fee),
        False,
    )


def raw_to_ui_amount(raw_amount: int, mint_meta: MintMeta) -> Decimal:
    """raw 수량을 표시 단위로 변환 (scaled UI multiplier 와 decimals 적용)"""
    return Decimal(raw_amount) * mint_meta.scaled_ui_multiplier / (Decimal(10) ** mint_meta.decimals)


def ui_amount_to_raw(ui_amount: Decimal, mint_meta: MintMeta) -> int:
    """표시 단위 수량을 raw 수량으로 변환 (내림)"""
    raw = Decimal(ui_amount) * (Decimal(10) ** mint_meta.decimals) / mint_meta.scaled_ui_multiplier
    return int(raw.to_integral_value(rounding=ROUND_FLOOR))


def requires_transfer_hook(mint_meta: Optional[MintMeta]) -> bool:
    """전송 시 transfer hook 프로그램 호출이 필요한 mint 인지 여부"""
    return mint_meta is not None and mint_meta.transfer_hook_program is not None


def ensure_transferable(mint_meta: Optional[MintMeta], operation: str) -> None:
    """전송이 필요한 작업 전에 non-transferable mint 를 걸러냄

    검사 대상은 작업이 실제로 옮기는 토큰의 mint 이다. 스왑은 입력과 출력 mint,
    유동성 증감과 재배치는 풀의 token A, B mint 를 모두 옮긴다.
    포지션 자체의 양도 가능 여부는 ensure_position_transferable 이 본다.

    Raises:
        NonTransferableError: mint 가 non-transferable 인 경우
    """
    if mint_meta is not None and mint_meta.is_non_transferable:
        raise NonTransferableError(
            f"{operation}: non-transferable mint 는 전송할 수 없습니다 ({mint_meta.address})"
        )


def is_position_transferable(
    mint_a: Optional[MintMeta],
    mint_b: Optional[MintMeta]
) -> bool:
    """풀 토큰 중 하나라도 non-transferable 포지션을 요구하면 포지션 양도 불가"""
    return not any(
        mint is not None and mint.requires_non_transferable_position
        for mint in (mint_a, mint_b)
    )


def ensure_position_transferable(
    mint_a: Optional[MintMeta],
    mint_b: Optional[MintMeta]
) -> None:
    """포지션 양도 전 검사

    Raises:
        NonTransferableError: 풀 토큰이 non-transferable 포지션을 요구하는 경우
    """
    if not is_position_transferable(mint_a, mint_b):
        raise NonTransferableError("이 풀의 포지션은 양도할 수 없습니다 (non-transferable position)")
