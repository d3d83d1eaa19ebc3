"""
Whirlpool 상수 정의

정산 엔진(on-chain program)과 비트 단위로 일치하는 상수들:
- Q64: sqrt price / fee growth 인코딩에 사용 (2^64)
- MIN/MAX_TICK_INDEX, MIN/MAX_SQRT_PRICE: 전역 가격 경계
- TICK_ARRAY_SIZE: 틱 배열 하나에 들어가는 틱 개수
- FEE_RATE_MUL_VALUE 등: 수수료율 분모
"""

from typing import Dict

# Fixed-point 인코딩 상수
Q64: int = 2 ** 64
Q128: int = 2 ** 128

# 정수 폭 한계 (u64 토큰 수량, u128 유동성/누적값)
U64_MAX: int = 2 ** 64 - 1
U128_MAX: int = 2 ** 128 - 1

# 틱 범위 상수
MIN_TICK_INDEX: int = -443636
MAX_TICK_INDEX: int = 443636

# sqrt price 범위 (Q64.64)
MIN_SQRT_PRICE: int = 4295048016
MAX_SQRT_PRICE: int = 79226673515401279992447579055

# 틱 배열 크기
TICK_ARRAY_SIZE: int = 88

# 이 값 이상의 tick spacing은 full range 포지션만 허용
FULL_RANGE_ONLY_TICK_SPACING_THRESHOLD: int = 32768

# 수수료율: 1/100 bp 단위 (3000 = 0.30%)
FEE_RATE_MUL_VALUE: int = 1_000_000
MAX_FEE_RATE: int = 60_000

# 프로토콜 수수료율: 수수료 대비 bp 단위 (300 = 수수료의 3%)
PROTOCOL_FEE_RATE_MUL_VALUE: int = 10_000
MAX_PROTOCOL_FEE_RATE: int = 2_500

# 슬리피지 / 전송 수수료 분모 (basis points)
BPS_DENOMINATOR: int = 10_000

# 풀당 보상 슬롯 수
NUM_REWARDS: int = 3

# 초기화되지 않은 보상 슬롯의 mint (기본 주소)
DEFAULT_ADDRESS: str = "11111111111111111111111111111111"

# 자주 쓰이는 tick spacing 과 기본 수수료율
FEE_TIERS: Dict[int, int] = {
    1: 100,      # 0.01%
    2: 200,      # 0.02%
    4: 400,      # 0.04%
    8: 500,      # 0.05%
    16: 1600,    # 0.16%
    64: 3000,    # 0.30%
    96: 6500,    # 0.65%
    128: 10000,  # 1.00%
    256: 20000,  # 2.00%
}

# 토큰 프로그램 주소
TOKEN_PROGRAM_ID: str = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID: str = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"
