"""
Snapshot Manager - 스냅샷 조회와 캐싱

SnapshotClient 로 스냅샷을 조회하고 캐싱하는 클래스.
캐시는 호출자가 명시적으로 우회(use_cache=False)하거나 비울 수 있다.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from ..extensions import MintMeta
from ..math.tick_math import get_tick_array_start_tick_index, get_tick_index_in_array
from .client import SnapshotClient
from .tick_array import TickArraySequence, swap_tick_array_start_indexes
from .types import Position, Tick, TickArray, Whirlpool


class SnapshotManager:
    """Whirlpool 스냅샷 관리자

    사용법:
        manager = SnapshotManager(base_url="https://snapshots.example.com/v1")
        pool = manager.get_pool("HJPjoWUrhoZzkNfRpHuieeFk9WcZWjwy6PBjZ81ngndJ")
        sequence = manager.get_swap_tick_arrays(pool, a_to_b=True)
    """

    def __init__(self, client: Optional[SnapshotClient] = None, **client_kwargs):
        """
        Args:
            client: 스냅샷 클라이언트. None이면 client_kwargs 로 생성
            **client_kwargs: SnapshotClient 설정 (base_url, api_key, ...)
        """
        self.client = client or SnapshotClient(**client_kwargs)
        self._pool_cache: Dict[str, Whirlpool] = {}
        self._tick_array_cache: Dict[str, Dict[int, TickArray]] = {}
        self._position_cache: Dict[str, Position] = {}
        self._mint_cache: Dict[str, MintMeta] = {}

    def get_pool(self, address: str, use_cache: bool = True) -> Optional[Whirlpool]:
        """풀 스냅샷 조회

        Args:
            address: 풀 주소
            use_cache: 캐시 사용 여부

        Returns:
            Whirlpool 또는 None
        """
        if use_cache and address in self._pool_cache:
            return self._pool_cache[address]

        pool = self.client.get_pool(address)
        if pool:
            self._pool_cache[address] = pool
        return pool

    def get_tick_arrays(
        self,
        pool_address: str,
        start_indexes: Iterable[int],
        use_cache: bool = True
    ) -> List[TickArray]:
        """틱 배열 조회

        API 가 돌려주지 않은 배열은 존재하지 않는 배열이므로 빈 배열로 채운다.

        Args:
            pool_address: 풀 주소
            start_indexes: 틱 배열 시작 인덱스 목록
            use_cache: 캐시 사용 여부

        Returns:
            start_indexes 순서의 TickArray 목록
        """
        start_indexes = list(start_indexes)
        cached = self._tick_array_cache.setdefault(pool_address, {})

        # 캐시 확인
        missing = [i for i in start_indexes if not use_cache or i not in cached]
        if missing:
            fetched = {t.start_tick_index: t for t in self.client.get_tick_arrays(pool_address, missing)}
            for start in missing:
                cached[start] = fetched.get(start, TickArray(start_tick_index=start))

        return [cached[i] for i in start_indexes]

    def get_swap_tick_arrays(
        self,
        pool: Whirlpool,
        a_to_b: bool,
        count: int = 3,
        use_cache: bool = True
    ) -> TickArraySequence:
        """스왑 방향으로 필요한 틱 배열 시퀀스 조회"""
        start_indexes = swap_tick_array_start_indexes(
            pool.tick_current_index, pool.tick_spacing, a_to_b, count
        )
        tick_arrays = self.get_tick_arrays(pool.address, start_indexes, use_cache)
        return TickArraySequence(tick_arrays, pool.tick_spacing)

    def get_position(self, address: str, use_cache: bool = True) -> Optional[Position]:
        """포지션 스냅샷 조회"""
        if use_cache and address in self._position_cache:
            return self._position_cache[address]

        position = self.client.get_position(address)
        if position:
            self._position_cache[address] = position
        return position

    def get_position_ticks(
        self,
        pool: Whirlpool,
        position: Position,
        use_cache: bool = True
    ) -> Tuple[Tick, Tick]:
        """포지션 하한/상한 틱 조회 (수수료/보상 견적용)

        Returns:
            (tick_lower, tick_upper)
        """
        lower_start = get_tick_array_start_tick_index(position.tick_lower_index, pool.tick_spacing)
        upper_start = get_tick_array_start_tick_index(position.tick_upper_index, pool.tick_spacing)
        lower_array, upper_array = self.get_tick_arrays(
            pool.address, [lower_start, upper_start], use_cache
        )

        tick_lower = lower_array.ticks[
            get_tick_index_in_array(position.tick_lower_index, lower_start, pool.tick_spacing)
        ]
        tick_upper = upper_array.ticks[
            get_tick_index_in_array(position.tick_upper_index, upper_start, pool.tick_spacing)
        ]
        return tick_lower, tick_upper

    def get_mint(self, address: str, use_cache: bool = True) -> Optional[MintMeta]:
        """mint 메타데이터 조회"""
        if use_cache and address in self._mint_cache:
            return self._mint_cache[address]

        mint = self.client.get_mint(address)
        if mint:
            self._mint_cache[address] = mint
        return mint

    def clear_cache(self):
        """캐시 초기화"""
        self._pool_cache.clear()
        self._tick_array_cache.clear()
        self._position_cache.clear()
        self._mint_cache.clear()
