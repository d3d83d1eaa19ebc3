"""
Whirlpool 데이터 타입 정의

견적 요청 시점에 호출자가 넘겨주는 스냅샷(풀, 틱 배열, 포지션)을 Python dataclass로 정의.
모든 스냅샷은 불변(frozen)이며 엔진은 입력을 절대 수정하지 않는다.
모든 숫자 필드는 정산 엔진과의 비트 단위 일치를 위해 int 타입 사용.
`slot` 은 스냅샷을 읽은 시점의 태그로, 신선도 판단은 호출자의 몫이다.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from ..constants import (
    DEFAULT_ADDRESS,
    NUM_REWARDS,
    TICK_ARRAY_SIZE,
    MIN_SQRT_PRICE,
    MAX_SQRT_PRICE,
    U128_MAX,
)
from ..errors import OutOfBoundsError, InvalidTickArraySequenceError


def _int(data: dict, key: str, default: int = 0) -> int:
    # JSON 에서는 u128 값이 문자열로 온다
    value = data.get(key)
    return default if value is None else int(value)


def _optional_int(data: dict, key: str) -> Optional[int]:
    value = data.get(key)
    return None if value is None else int(value)


def _pad(items: List[Any], size: int, factory) -> Tuple[Any, ...]:
    items = list(items)[:size]
    return tuple(items + [factory() for _ in range(size - len(items))])


@dataclass(frozen=True)
class RewardInfo:
    """풀의 보상 슬롯

    - mint: 보상 토큰 (기본 주소면 초기화되지 않은 슬롯)
    - emissions_per_second_x64: 초당 배출량 (Q64.64)
    - growth_global_x64: 단위유동성당 누적 보상 (Q64.64, mod 2^128)
    - vault_amount: 보상 vault 잔고 (알 수 없으면 None)
    """
    mint: str = DEFAULT_ADDRESS
    vault: str = DEFAULT_ADDRESS
    emissions_per_second_x64: int = 0
    growth_global_x64: int = 0
    vault_amount: Optional[int] = None

    def is_initialized(self) -> bool:
        return self.mint != DEFAULT_ADDRESS

    @classmethod
    def from_dict(cls, data: dict) -> "RewardInfo":
        return cls(
            mint=data.get("mint") or DEFAULT_ADDRESS,
            vault=data.get("vault") or DEFAULT_ADDRESS,
            emissions_per_second_x64=_int(data, "emissionsPerSecondX64"),
            growth_global_x64=_int(data, "growthGlobalX64"),
            vault_amount=_optional_int(data, "vaultAmount"),
        )


def _default_reward_infos() -> Tuple[RewardInfo, ...]:
    return tuple(RewardInfo() for _ in range(NUM_REWARDS))


@dataclass(frozen=True)
class Whirlpool:
    """Whirlpool 풀 스냅샷

    Global State:
    - liquidity: 현재 가격에서 활성화된 총 유동성 (u128)
    - sqrt_price: 현재 √가격 (Q64.64)
    - tick_current_index: 현재 가격 이하의 가장 가까운 틱
    - fee_rate: 수수료율 (1/100 bp 단위, 3000 = 0.30%)
    - protocol_fee_rate: 수수료 중 프로토콜 몫 (bp 단위)
    - fee_growth_global_a/b: 단위유동성당 누적수수료 (Q64.64, mod 2^128)
    """
    address: str
    token_mint_a: str
    token_mint_b: str
    tick_spacing: int
    fee_rate: int
    liquidity: int
    sqrt_price: int
    tick_current_index: int
    protocol_fee_rate: int = 0
    fee_growth_global_a: int = 0
    fee_growth_global_b: int = 0
    reward_last_updated_timestamp: int = 0
    reward_infos: Tuple[RewardInfo, ...] = field(default_factory=_default_reward_infos)
    slot: Optional[int] = None

    def __post_init__(self):
        if self.tick_spacing <= 0:
            raise ValueError(f"tick spacing은 양수여야 합니다: {self.tick_spacing}")
        if self.sqrt_price < MIN_SQRT_PRICE or self.sqrt_price > MAX_SQRT_PRICE:
            raise OutOfBoundsError(f"풀 sqrtPrice가 유효 범위를 벗어났습니다: {self.sqrt_price}")
        if self.liquidity < 0 or self.liquidity > U128_MAX:
            raise ValueError(f"풀 유동성이 u128 범위를 벗어났습니다: {self.liquidity}")
        object.__setattr__(
            self, "reward_infos", _pad(self.reward_infos, NUM_REWARDS, RewardInfo)
        )

    @classmethod
    def from_dict(cls, data: dict) -> "Whirlpool":
        return cls(
            address=data["address"],
            token_mint_a=data["tokenMintA"],
            token_mint_b=data["tokenMintB"],
            tick_spacing=int(data["tickSpacing"]),
            fee_rate=int(data["feeRate"]),
            protocol_fee_rate=_int(data, "protocolFeeRate"),
            liquidity=int(data["liquidity"]),
            sqrt_price=int(data["sqrtPrice"]),
            tick_current_index=int(data["tickCurrentIndex"]),
            fee_growth_global_a=_int(data, "feeGrowthGlobalA"),
            fee_growth_global_b=_int(data, "feeGrowthGlobalB"),
            reward_last_updated_timestamp=_int(data, "rewardLastUpdatedTimestamp"),
            reward_infos=tuple(RewardInfo.from_dict(r) for r in data.get("rewardInfos", [])),
            slot=_optional_int(data, "slot"),
        )


def _default_reward_growths() -> Tuple[int, ...]:
    return (0,) * NUM_REWARDS


@dataclass(frozen=True)
class Tick:
    """Tick-Indexed State

    - initialized: 이 틱을 경계로 하는 포지션이 있는지 여부
    - liquidity_net: 가격이 위로 통과할 때 더해지는 유동성 (아래로 통과 시 부호 반전)
    - liquidity_gross: 이 틱을 경계로 하는 총 유동성
    - fee_growth_outside_a/b: 틱 바깥쪽 누적수수료
    - reward_growths_outside: 보상 슬롯별 틱 바깥쪽 누적보상
    """
    initialized: bool = False
    liquidity_net: int = 0
    liquidity_gross: int = 0
    fee_growth_outside_a: int = 0
    fee_growth_outside_b: int = 0
    reward_growths_outside: Tuple[int, ...] = field(default_factory=_default_reward_growths)

    def __post_init__(self):
        object.__setattr__(
            self,
            "reward_growths_outside",
            _pad(self.reward_growths_outside, NUM_REWARDS, int),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "Tick":
        return cls(
            initialized=bool(data.get("initialized", False)),
            liquidity_net=_int(data, "liquidityNet"),
            liquidity_gross=_int(data, "liquidityGross"),
            fee_growth_outside_a=_int(data, "feeGrowthOutsideA"),
            fee_growth_outside_b=_int(data, "feeGrowthOutsideB"),
            reward_growths_outside=tuple(int(r) for r in data.get("rewardGrowthsOutside", [])),
        )


def _empty_ticks() -> Tuple[Tick, ...]:
    return tuple(Tick() for _ in range(TICK_ARRAY_SIZE))


@dataclass(frozen=True)
class TickArray:
    """고정 크기(88) 틱 배열

    start_tick_index 부터 tick_spacing 간격으로 88 개의 틱을 담는다.
    배열에 없는 틱은 초기화되지 않은 틱(유동성 변화 0)으로 취급한다.
    """
    start_tick_index: int
    ticks: Tuple[Tick, ...] = field(default_factory=_empty_ticks)
    slot: Optional[int] = None

    def __post_init__(self):
        if len(self.ticks) > TICK_ARRAY_SIZE:
            raise InvalidTickArraySequenceError(
                f"틱 배열에는 최대 {TICK_ARRAY_SIZE}개의 틱만 들어갑니다: {len(self.ticks)}"
            )
        object.__setattr__(self, "ticks", _pad(self.ticks, TICK_ARRAY_SIZE, Tick))

    @classmethod
    def from_ticks(
        cls,
        start_tick_index: int,
        ticks: Dict[int, Tick],
        slot: Optional[int] = None
    ) -> "TickArray":
        """{배열 내 오프셋: Tick} 형태의 희소 입력으로 생성"""
        dense = [Tick() for _ in range(TICK_ARRAY_SIZE)]
        for offset, tick in ticks.items():
            if offset < 0 or offset >= TICK_ARRAY_SIZE:
                raise InvalidTickArraySequenceError(f"틱 오프셋이 배열 범위 밖입니다: {offset}")
            dense[offset] = tick
        return cls(start_tick_index=start_tick_index, ticks=tuple(dense), slot=slot)

    @classmethod
    def from_dict(cls, data: dict) -> "TickArray":
        raw_ticks: Union[list, dict] = data.get("ticks", [])
        slot = _optional_int(data, "slot")
        if isinstance(raw_ticks, dict):
            return cls.from_ticks(
                int(data["startTickIndex"]),
                {int(offset): Tick.from_dict(t) for offset, t in raw_ticks.items()},
                slot=slot,
            )
        return cls(
            start_tick_index=int(data["startTickIndex"]),
            ticks=tuple(Tick.from_dict(t) for t in raw_ticks),
            slot=slot,
        )


@dataclass(frozen=True)
class PositionRewardInfo:
    """포지션의 보상 슬롯 상태"""
    growth_inside_checkpoint: int = 0  # 마지막 정산 시 범위 내 누적보상
    amount_owed: int = 0  # 미수령 보상

    @classmethod
    def from_dict(cls, data: dict) -> "PositionRewardInfo":
        return cls(
            growth_inside_checkpoint=_int(data, "growthInsideCheckpoint"),
            amount_owed=_int(data, "amountOwed"),
        )


def _default_position_rewards() -> Tuple[PositionRewardInfo, ...]:
    return tuple(PositionRewardInfo() for _ in range(NUM_REWARDS))


@dataclass(frozen=True)
class Position:
    """Position-Indexed State

    - liquidity: 포지션의 유동성 (l)
    - tick_lower_index / tick_upper_index: 범위 [i_l, i_u)
    - fee_growth_checkpoint_a/b: 마지막 정산 시점의 범위 내 누적수수료
    - fee_owed_a/b: 미수령 수수료
    - reward_infos: 보상 슬롯별 checkpoint / 미수령 보상
    """
    whirlpool: str
    tick_lower_index: int
    tick_upper_index: int
    liquidity: int
    address: str = ""
    position_mint: str = ""
    fee_growth_checkpoint_a: int = 0
    fee_growth_checkpoint_b: int = 0
    fee_owed_a: int = 0
    fee_owed_b: int = 0
    reward_infos: Tuple[PositionRewardInfo, ...] = field(default_factory=_default_position_rewards)
    slot: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(
            self, "reward_infos", _pad(self.reward_infos, NUM_REWARDS, PositionRewardInfo)
        )

    @classmethod
    def from_dict(cls, data: dict) -> "Position":
        return cls(
            whirlpool=data["whirlpool"],
            address=data.get("address", ""),
            position_mint=data.get("positionMint", ""),
            tick_lower_index=int(data["tickLowerIndex"]),
            tick_upper_index=int(data["tickUpperIndex"]),
            liquidity=int(data["liquidity"]),
            fee_growth_checkpoint_a=_int(data, "feeGrowthCheckpointA"),
            fee_growth_checkpoint_b=_int(data, "feeGrowthCheckpointB"),
            fee_owed_a=_int(data, "feeOwedA"),
            fee_owed_b=_int(data, "feeOwedB"),
            reward_infos=tuple(
                PositionRewardInfo.from_dict(r) for r in data.get("rewardInfos", [])
            ),
            slot=_optional_int(data, "slot"),
        )
