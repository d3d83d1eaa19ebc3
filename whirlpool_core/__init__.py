"""
Whirlpool Concentrated Liquidity Quote Engine

정산 엔진과 비트 단위로 일치하는 Whirlpool 집중화된 유동성 견적 라이브러리.
스왑, 유동성 증가/감소/재배치, 미수령 수수료/보상을 상태 변경 없이 계산한다.
"""

__version__ = "0.1.0"

from .constants import (
    MIN_TICK_INDEX,
    MAX_TICK_INDEX,
    MIN_SQRT_PRICE,
    MAX_SQRT_PRICE,
    TICK_ARRAY_SIZE,
    FEE_TIERS,
)
