"""
Data layer for Whirlpool quote engine

스냅샷 타입과 틱 배열 시퀀스. HTTP 조회는 client / manager 모듈에 있다.
"""

from .types import RewardInfo, Whirlpool, Tick, TickArray, PositionRewardInfo, Position
from .tick_array import TickArraySequence, swap_tick_array_start_indexes
