"""
Tick Array Sequence - 호출자가 제공한 틱 배열들의 정렬된 묶음

틱 배열을 start_tick_index 로 정렬해 두고 이진 탐색(bisect)으로 조회한다.
제공되지 않은 구간을 빈 구간으로 간주하지 않는다: 순회가 시퀀스 밖으로 나가야 하면
TickArrayNotSuppliedError 로 명시적으로 실패한다.
캐싱이나 지연 로딩은 하지 않는다 (fetcher 의 책임).
"""

from bisect import bisect_right
from typing import Iterable, List, Optional, Tuple

from ..constants import MIN_TICK_INDEX, MAX_TICK_INDEX, TICK_ARRAY_SIZE
from ..errors import (
    InvalidTickArraySequenceError,
    InvalidTickIndexError,
    TickArrayNotSuppliedError,
)
from ..math.tick_math import get_tick_array_start_tick_index
from .types import Tick, TickArray


class TickArraySequence:
    """연속된 틱 배열 시퀀스

    사용법:
        sequence = TickArraySequence([array_0, array_minus_1], tick_spacing=64)
        tick, index = sequence.find_next_initialized_tick(pool.tick_current_index, a_to_b=True)
    """

    def __init__(self, tick_arrays: Iterable[TickArray], tick_spacing: int):
        """
        Args:
            tick_arrays: 틱 배열 목록 (순서 무관, 같은 start 중복은 하나로 취급)
            tick_spacing: 풀의 tick spacing

        Raises:
            InvalidTickArraySequenceError: 배열이 없거나, 시작 인덱스가 잘못되었거나, 연속적이지 않은 경우
        """
        if tick_spacing <= 0:
            raise InvalidTickArraySequenceError(f"tick spacing은 양수여야 합니다: {tick_spacing}")

        self.tick_spacing = tick_spacing
        self.ticks_in_array = TICK_ARRAY_SIZE * tick_spacing

        by_start = {}
        for tick_array in tick_arrays:
            by_start.setdefault(tick_array.start_tick_index, tick_array)
        if not by_start:
            raise InvalidTickArraySequenceError("틱 배열 시퀀스가 비어있습니다")

        self._arrays: List[TickArray] = [by_start[start] for start in sorted(by_start)]
        self._starts: List[int] = [a.start_tick_index for a in self._arrays]

        for start in self._starts:
            if start % self.ticks_in_array != 0:
                raise InvalidTickArraySequenceError(
                    f"잘못된 틱 배열 시작 인덱스: {start} (tick spacing {tick_spacing})"
                )
        for prev, curr in zip(self._starts, self._starts[1:]):
            if curr - prev != self.ticks_in_array:
                raise InvalidTickArraySequenceError(
                    f"틱 배열이 연속적이지 않습니다: {prev} -> {curr}"
                )

        # 초기화된 틱 인덱스 (정렬됨)
        self._initialized: List[int] = [
            tick_array.start_tick_index + offset * tick_spacing
            for tick_array in self._arrays
            for offset, tick in enumerate(tick_array.ticks)
            if tick.initialized
        ]

    def __len__(self) -> int:
        return len(self._arrays)

    @property
    def tick_arrays(self) -> Tuple[TickArray, ...]:
        return tuple(self._arrays)

    @property
    def start_index(self) -> int:
        """시퀀스가 덮는 첫 틱 (전역 최소 틱으로 제한)"""
        return max(self._starts[0], MIN_TICK_INDEX)

    @property
    def end_index(self) -> int:
        """시퀀스가 덮는 마지막 틱 (전역 최대 틱으로 제한)"""
        return min(self._starts[-1] + self.ticks_in_array - 1, MAX_TICK_INDEX)

    def initialized_tick_count(self) -> int:
        return len(self._initialized)

    def contains(self, tick_index: int) -> bool:
        return self._starts[0] <= tick_index < self._starts[-1] + self.ticks_in_array

    def tick(self, tick_index: int) -> Tick:
        """틱 인덱스로 틱 조회

        Raises:
            TickArrayNotSuppliedError: 제공된 배열 범위 밖인 경우
            InvalidTickIndexError: tick spacing 의 배수가 아닌 경우
        """
        if not self.contains(tick_index):
            raise TickArrayNotSuppliedError(
                f"틱 {tick_index}를 담은 틱 배열이 제공되지 않았습니다",
                start_tick_index=get_tick_array_start_tick_index(tick_index, self.tick_spacing),
            )
        if tick_index % self.tick_spacing != 0:
            raise InvalidTickIndexError(
                f"틱 {tick_index}가 tick spacing {self.tick_spacing}의 배수가 아닙니다"
            )

        tick_array = self._arrays[bisect_right(self._starts, tick_index) - 1]
        return tick_array.ticks[(tick_index - tick_array.start_tick_index) // self.tick_spacing]

    def find_next_initialized_tick(
        self,
        tick_index: int,
        a_to_b: bool
    ) -> Tuple[Optional[Tick], int]:
        """스왑 방향으로 다음 초기화된 틱 탐색

        a_to_b (가격 하락): tick_index 이하(포함)에서 탐색
        b_to_a (가격 상승): tick_index 초과에서 탐색
        시퀀스 안에 초기화된 틱이 없으면 (None, 시퀀스 경계) 를 반환한다.

        Args:
            tick_index: 탐색 시작 틱 (보통 풀의 현재 틱)
            a_to_b: 스왑 방향

        Returns:
            (Tick 또는 None, 틱 인덱스)

        Raises:
            TickArrayNotSuppliedError: 탐색 시작점이 제공된 배열 밖인 경우
        """
        # 시작점과 시퀀스 사이에 제공되지 않은 구간이 있으면 안 된다
        if tick_index > self.end_index or tick_index < self.start_index - 1:
            raise TickArrayNotSuppliedError(
                f"틱 {tick_index}를 담은 틱 배열이 제공되지 않았습니다",
                start_tick_index=get_tick_array_start_tick_index(tick_index, self.tick_spacing),
            )

        if a_to_b:
            if tick_index < self.start_index:
                raise TickArrayNotSuppliedError(
                    f"틱 {tick_index} 아래쪽 틱 배열이 제공되지 않았습니다",
                    start_tick_index=get_tick_array_start_tick_index(tick_index, self.tick_spacing),
                )
            i = bisect_right(self._initialized, tick_index) - 1
            if i >= 0 and self._initialized[i] >= self.start_index:
                next_index = self._initialized[i]
                return self.tick(next_index), next_index
            return None, self.start_index

        if tick_index >= self.end_index:
            raise TickArrayNotSuppliedError(
                f"틱 {tick_index} 위쪽 틱 배열이 제공되지 않았습니다",
                start_tick_index=get_tick_array_start_tick_index(
                    self.end_index + 1, self.tick_spacing
                ),
            )
        i = bisect_right(self._initialized, tick_index)
        if i < len(self._initialized) and self._initialized[i] <= self.end_index:
            next_index = self._initialized[i]
            return self.tick(next_index), next_index
        return None, self.end_index


def swap_tick_array_start_indexes(
    tick_current_index: int,
    tick_spacing: int,
    a_to_b: bool,
    count: int = 3
) -> List[int]:
    """스왑에 필요한 틱 배열의 시작 인덱스 목록

    현재 틱이 속한 배열부터 스왑 방향으로 count 개. 전역 틱 범위를 벗어나는 배열은 제외.
    b_to_a 는 한 틱 간격 앞에서 시작한다 (배열 경계에 걸친 가격 대비).

    Example:
        >>> swap_tick_array_start_indexes(0, 64, a_to_b=True)
        [0, -5632, -11264]
    """
    ticks_in_array = TICK_ARRAY_SIZE * tick_spacing
    shift = 0 if a_to_b else tick_spacing
    start = get_tick_array_start_tick_index(tick_current_index + shift, tick_spacing)
    step = -ticks_in_array if a_to_b else ticks_in_array

    starts = []
    for _ in range(count):
        if start > MAX_TICK_INDEX or start + ticks_in_array <= MIN_TICK_INDEX:
            break
        starts.append(start)
        start += step
    return starts
