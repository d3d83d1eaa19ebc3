"""
Whirlpool 오류 정의

모든 견적(quote) 실패는 타입이 있는 예외로 전달된다.
입력 검증 오류는 ValueError도 상속하므로 기존 `except ValueError` 코드와 호환된다.
"""

from typing import Optional


class WhirlpoolError(Exception):
    """whirlpool_core 오류의 기반 클래스"""
    pass


class OutOfBoundsError(WhirlpoolError, ValueError):
    """틱 인덱스 또는 sqrt price가 전역 범위를 벗어남"""
    pass


class InvalidTickRangeError(WhirlpoolError, ValueError):
    """잘못된 포지션 범위 (lower >= upper, spacing 배수 아님 등)"""
    pass


class InvalidTickIndexError(WhirlpoolError, ValueError):
    """tick spacing의 배수가 아닌 틱 인덱스"""
    pass


class InvalidTickArraySequenceError(WhirlpoolError, ValueError):
    """틱 배열 시퀀스가 비어있거나 연속적이지 않음"""
    pass


class InvalidSwapError(WhirlpoolError, ValueError):
    """스왑 파라미터 오류 (수량 0, 가격 제한 방향 불일치)"""
    pass


class InvalidLiquidityError(WhirlpoolError, ValueError):
    """유동성 값 오류 (포지션 보유량 초과, u128 초과)"""
    pass


class InvalidTimestampError(WhirlpoolError, ValueError):
    """타임스탬프가 마지막 보상 업데이트 시각보다 이전"""
    pass


class InsufficientLiquidityError(WhirlpoolError):
    """요청 수량을 채우기 전에 전역 가격 경계에 도달"""
    pass


class TickArrayNotSuppliedError(WhirlpoolError):
    """순회에 필요한 틱 배열이 제공되지 않음

    호출자는 `start_tick_index` 배열을 추가로 가져와 다시 요청해야 한다.
    """

    def __init__(self, message: str, start_tick_index: Optional[int] = None):
        super().__init__(message)
        self.start_tick_index = start_tick_index


class IterationLimitExceededError(WhirlpoolError):
    """스왑 스텝 수가 허용 한도를 초과"""
    pass


class SameRangeError(WhirlpoolError):
    """같은 범위로의 reposition 요청"""
    pass


class LiquidityZeroError(WhirlpoolError):
    """유동성 0으로 귀결되는 요청"""
    pass


class TokenMaxExceededError(WhirlpoolError):
    """필요 토큰 수량이 호출자가 지정한 최대치를 초과"""
    pass


class AmountOverflowError(WhirlpoolError):
    """토큰 수량이 u64, 또는 유동성이 u128 범위를 초과"""
    pass


class NonTransferableError(WhirlpoolError):
    """non-transferable mint에 대한 전송 의존 작업"""
    pass


class SnapshotClientError(WhirlpoolError):
    """스냅샷 API 오류"""
    pass


class TransferFeeCalculationError(WhirlpoolError):
    """전송 수수료 역산 결과가 검증을 통과하지 못함"""
    pass
