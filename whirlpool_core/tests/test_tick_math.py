"""
Tick Math 테스트

Tick ↔ sqrtPriceX64 변환과 틱 보조 함수들을 테스트합니다.
기대값은 정산 엔진의 테이블 기반 계산 결과입니다.
"""

import pytest
from hypothesis import given, settings, strategies as st

from ..math.tick_math import (
    tick_index_to_sqrt_price,
    sqrt_price_to_tick_index,
    get_tick_array_start_tick_index,
    get_initializable_tick_index,
    get_prev_initializable_tick_index,
    get_next_initializable_tick_index,
    is_tick_index_in_bounds,
    is_tick_initializable,
    invert_tick_index,
    get_full_range_tick_indexes,
    order_tick_indexes,
    is_full_range_only,
    get_tick_index_in_array,
)
from ..constants import (
    MIN_TICK_INDEX,
    MAX_TICK_INDEX,
    MIN_SQRT_PRICE,
    MAX_SQRT_PRICE,
    FULL_RANGE_ONLY_TICK_SPACING_THRESHOLD,
    TICK_ARRAY_SIZE,
)
from ..errors import OutOfBoundsError, InvalidTickIndexError


# (tick, sqrt_price(tick), sqrt_price(-tick))
SQRT_PRICE_VECTORS = [
    (0, 18446744073709551616, 18446744073709551616),
    (1, 18447666387855959850, 18445821805675392311),
    (2, 18448588748116922571, 18444899583751176498),
    (4, 18450433606991734263, 18443055278223354162),
    (8, 18454123878217468680, 18439367220385604838),
]


class TestTickIndexToSqrtPrice:
    """tick_index_to_sqrt_price 테스트"""

    @pytest.mark.parametrize("tick,positive,negative", SQRT_PRICE_VECTORS)
    def test_known_values(self, tick, positive, negative):
        """양/음 테이블 모두 정산 엔진 값과 일치"""
        assert tick_index_to_sqrt_price(tick) == positive
        assert tick_index_to_sqrt_price(-tick) == negative

    def test_bounds(self):
        """경계 틱은 경계 가격"""
        assert tick_index_to_sqrt_price(MIN_TICK_INDEX) == MIN_SQRT_PRICE
        assert tick_index_to_sqrt_price(MAX_TICK_INDEX) == MAX_SQRT_PRICE

    def test_out_of_bounds(self):
        """범위 밖 틱은 오류"""
        with pytest.raises(OutOfBoundsError):
            tick_index_to_sqrt_price(MAX_TICK_INDEX + 1)
        with pytest.raises(OutOfBoundsError):
            tick_index_to_sqrt_price(MIN_TICK_INDEX - 1)

    def test_monotonic(self):
        """틱이 증가하면 가격도 증가"""
        prev = tick_index_to_sqrt_price(-1000)
        for tick in range(-999, 1000, 37):
            curr = tick_index_to_sqrt_price(tick)
            assert curr > prev
            prev = curr


class TestSqrtPriceToTickIndex:
    """sqrt_price_to_tick_index 테스트"""

    def test_price_one(self):
        """√P = 1.0 (2^64) 주변"""
        assert sqrt_price_to_tick_index(2 ** 64) == 0
        assert sqrt_price_to_tick_index(2 ** 64 + 1) == 0
        assert sqrt_price_to_tick_index(2 ** 64 - 1) == -1

    def test_bounds(self):
        """경계 가격"""
        assert sqrt_price_to_tick_index(MIN_SQRT_PRICE) == MIN_TICK_INDEX
        assert sqrt_price_to_tick_index(MIN_SQRT_PRICE + 1) == MIN_TICK_INDEX
        assert sqrt_price_to_tick_index(MAX_SQRT_PRICE) == MAX_TICK_INDEX
        assert sqrt_price_to_tick_index(MAX_SQRT_PRICE - 1) == MAX_TICK_INDEX - 1

    def test_out_of_bounds(self):
        """범위 밖 가격은 오류"""
        with pytest.raises(OutOfBoundsError):
            sqrt_price_to_tick_index(MIN_SQRT_PRICE - 1)
        with pytest.raises(OutOfBoundsError):
            sqrt_price_to_tick_index(MAX_SQRT_PRICE + 1)

    @pytest.mark.parametrize("tick", [-443636, -200000, -12345, -1, 0, 1, 777, 98765, 443635])
    def test_round_trip(self, tick):
        """tick → sqrt price → tick 은 원래 틱"""
        assert sqrt_price_to_tick_index(tick_index_to_sqrt_price(tick)) == tick

    @pytest.mark.parametrize("tick", [-50000, -3, 0, 5, 40000])
    def test_floor_property(self, tick):
        """틱 가격 사이의 값은 아래쪽 틱"""
        lower = tick_index_to_sqrt_price(tick)
        upper = tick_index_to_sqrt_price(tick + 1)
        assert sqrt_price_to_tick_index(upper - 1) == tick
        assert sqrt_price_to_tick_index((lower + upper) // 2) == tick


class TestTickArrayStartIndex:
    """get_tick_array_start_tick_index 테스트"""

    def test_positive(self):
        assert get_tick_array_start_tick_index(0, 8) == 0
        assert get_tick_array_start_tick_index(740, 8) == 704
        assert get_tick_array_start_tick_index(338433, 128) == 337920

    def test_negative(self):
        """음수 틱은 아래쪽 배열로 내림"""
        assert get_tick_array_start_tick_index(-624, 8) == -704
        assert get_tick_array_start_tick_index(-337409, 128) == -337920
        assert get_tick_array_start_tick_index(-1, 64) == -5632


class TestInitializableTickIndex:
    """get_initializable_tick_index 테스트"""

    def test_nearest(self):
        """round_up=None: 가장 가까운 배수 (동률은 올림)"""
        assert get_initializable_tick_index(31, 64) == 0
        assert get_initializable_tick_index(32, 64) == 64
        assert get_initializable_tick_index(-31, 64) == 0
        assert get_initializable_tick_index(-33, 64) == -64

    def test_directional(self):
        """round_up=True 는 올림, False 는 내림"""
        assert get_initializable_tick_index(1, 64, round_up=True) == 64
        assert get_initializable_tick_index(63, 64, round_up=False) == 0
        assert get_initializable_tick_index(-1, 64, round_up=True) == 0
        assert get_initializable_tick_index(-1, 64, round_up=False) == -64

    def test_exact_multiples_stable(self):
        for spacing in [1, 8, 64, 128]:
            for k in range(-5, 6):
                tick = k * spacing
                assert get_initializable_tick_index(tick, spacing) == tick
                assert get_initializable_tick_index(tick, spacing, True) == tick
                assert get_initializable_tick_index(tick, spacing, False) == tick

    def test_prev_next(self):
        """이전/다음 초기화 가능 틱 (자기 자신 제외)"""
        assert get_prev_initializable_tick_index(64, 64) == 0
        assert get_prev_initializable_tick_index(65, 64) == 64
        assert get_prev_initializable_tick_index(-1, 64) == -64
        assert get_next_initializable_tick_index(64, 64) == 128
        assert get_next_initializable_tick_index(-1, 64) == 0


class TestTickHelpers:
    """틱 보조 함수 테스트"""

    def test_bounds(self):
        assert is_tick_index_in_bounds(MIN_TICK_INDEX)
        assert is_tick_index_in_bounds(MAX_TICK_INDEX)
        assert not is_tick_index_in_bounds(MIN_TICK_INDEX - 1)
        assert not is_tick_index_in_bounds(MAX_TICK_INDEX + 1)

    def test_initializable(self):
        assert is_tick_initializable(128, 64)
        assert not is_tick_initializable(100, 64)

    def test_invert(self):
        assert invert_tick_index(100) == -100
        assert invert_tick_index(-100) == 100

    def test_full_range(self):
        """full range 는 0 방향으로 절삭"""
        assert get_full_range_tick_indexes(1) == (MIN_TICK_INDEX, MAX_TICK_INDEX)
        assert get_full_range_tick_indexes(128) == (-443520, 443520)

    def test_order(self):
        assert order_tick_indexes(100, 200) == (100, 200)
        assert order_tick_indexes(200, -100) == (-100, 200)

    def test_full_range_only(self):
        assert is_full_range_only(FULL_RANGE_ONLY_TICK_SPACING_THRESHOLD)
        assert not is_full_range_only(64)

    def test_index_in_array(self):
        assert get_tick_index_in_array(0, 0, 64) == 0
        assert get_tick_index_in_array(128, 0, 64) == 2
        assert get_tick_index_in_array(-64, -5632, 64) == 87

    def test_index_in_array_invalid(self):
        with pytest.raises(InvalidTickIndexError):
            get_tick_index_in_array(5632, 0, 64)
        with pytest.raises(InvalidTickIndexError):
            get_tick_index_in_array(10, 0, 64)


class TestTickMathProperties:
    """전체 틱 / sqrt price 범위에 대한 불변식"""

    @given(tick=st.integers(min_value=MIN_TICK_INDEX, max_value=MAX_TICK_INDEX))
    @settings(max_examples=500, deadline=None)
    def test_round_trip(self, tick):
        assert sqrt_price_to_tick_index(tick_index_to_sqrt_price(tick)) == tick

    @given(tick=st.integers(min_value=MIN_TICK_INDEX, max_value=MAX_TICK_INDEX - 1))
    @settings(max_examples=500, deadline=None)
    def test_strictly_increasing(self, tick):
        assert tick_index_to_sqrt_price(tick) < tick_index_to_sqrt_price(tick + 1)

    @given(sqrt_price=st.integers(min_value=MIN_SQRT_PRICE, max_value=MAX_SQRT_PRICE))
    @settings(max_examples=500, deadline=None)
    def test_floor(self, sqrt_price):
        """sqrt(t) <= sqrt_price < sqrt(t + 1)"""
        tick = sqrt_price_to_tick_index(sqrt_price)
        assert MIN_TICK_INDEX <= tick <= MAX_TICK_INDEX
        assert tick_index_to_sqrt_price(tick) <= sqrt_price
        if tick < MAX_TICK_INDEX:
            assert sqrt_price < tick_index_to_sqrt_price(tick + 1)

    @given(
        tick=st.integers(min_value=MIN_TICK_INDEX, max_value=MAX_TICK_INDEX),
        tick_spacing=st.sampled_from([1, 8, 64, 128, 32768]),
    )
    def test_tick_array_start(self, tick, tick_spacing):
        """시작 인덱스는 틱 이하이고 배열 하나 폭 안에 틱을 포함"""
        start = get_tick_array_start_tick_index(tick, tick_spacing)
        assert start % (tick_spacing * TICK_ARRAY_SIZE) == 0
        assert start <= tick < start + tick_spacing * TICK_ARRAY_SIZE



if __name__ == "__main__":
    pytest.main([__file__, "-v"])
