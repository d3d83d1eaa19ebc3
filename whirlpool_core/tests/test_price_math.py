"""
Price Math 테스트

사람이 읽는 가격 ↔ sqrtPriceX64 / 틱 변환을 테스트합니다.
Decimal 로 계산하므로 정확히 표현되는 입력은 정확한 결과를 기대합니다.
"""

from decimal import Decimal

import pytest

from ..math.price_math import (
    price_to_sqrt_price,
    sqrt_price_to_price,
    tick_index_to_price,
    price_to_tick_index,
    invert_price,
)
from ..constants import MIN_SQRT_PRICE, MAX_SQRT_PRICE
from ..errors import OutOfBoundsError


class TestPriceToSqrtPrice:
    """price_to_sqrt_price 테스트"""

    def test_exact_square(self):
        """sqrt(100) = 10 → 10 × 2^64"""
        assert price_to_sqrt_price(100, 6, 6) == 184467440737095516160
        assert price_to_sqrt_price(Decimal("100"), 6, 6) == 10 * 2 ** 64

    def test_price_one(self):
        assert price_to_sqrt_price(1, 9, 9) == 2 ** 64

    def test_decimals_shift(self):
        """decimals 차이는 10 의 거듭제곱으로 반영"""
        # 0.01 / 10^(8-6) = 0.0001 → sqrt = 0.01
        assert price_to_sqrt_price("0.01", 8, 6) == 2 ** 64 // 100

    def test_close_to_float_reference(self):
        """부동소수점 기준값과의 상대 오차"""
        result = price_to_sqrt_price(0.00999999, 8, 6)
        assert abs(result - 184467348503352096) / 184467348503352096 < 1e-12
        result = price_to_sqrt_price(100.0111, 6, 8)
        assert abs(result - 1844776783959692673024) / 1844776783959692673024 < 1e-12

    def test_non_positive_price(self):
        with pytest.raises(OutOfBoundsError):
            price_to_sqrt_price(0, 6, 6)
        with pytest.raises(OutOfBoundsError):
            price_to_sqrt_price(-1, 6, 6)

    def test_result_out_of_bounds(self):
        """결과 sqrt price 가 전역 범위 밖이면 오류"""
        with pytest.raises(OutOfBoundsError):
            price_to_sqrt_price("1e40", 6, 6)
        with pytest.raises(OutOfBoundsError):
            price_to_sqrt_price("1e-40", 6, 6)
        # decimals 보정 후 범위를 벗어나는 경우
        with pytest.raises(OutOfBoundsError):
            price_to_sqrt_price(1, 0, 40)


class TestSqrtPriceToPrice:
    """sqrt_price_to_price 테스트"""

    def test_exact(self):
        assert sqrt_price_to_price(184467440737095516160, 6, 6) == Decimal(100)

    def test_round_trip_relative(self):
        """sqrt price → price → sqrt price 상대 오차"""
        sqrt_price = 6918418495991757039  # 약 140.661 USDC/SOL
        price = sqrt_price_to_price(sqrt_price, 9, 6)
        assert abs(price - Decimal("140.66116595692344")) < Decimal("1e-10")
        back = price_to_sqrt_price(price, 9, 6)
        assert abs(back - sqrt_price) <= 1

    def test_bounds(self):
        """경계 sqrt price 는 허용, 범위 밖은 오류"""
        assert sqrt_price_to_price(MIN_SQRT_PRICE, 6, 6) > 0
        assert sqrt_price_to_price(MAX_SQRT_PRICE, 6, 6) > sqrt_price_to_price(MIN_SQRT_PRICE, 6, 6)
        for sqrt_price in (0, MIN_SQRT_PRICE - 1, MAX_SQRT_PRICE + 1):
            with pytest.raises(OutOfBoundsError):
                sqrt_price_to_price(sqrt_price, 6, 6)


class TestTickIndexPrice:
    """tick_index_to_price / price_to_tick_index 테스트"""

    def test_tick_zero(self):
        assert tick_index_to_price(0, 6, 6) == 1

    def test_tick_to_price(self):
        assert abs(tick_index_to_price(-92111, 8, 6) - Decimal("0.009998")) < Decimal("1e-5")
        assert abs(tick_index_to_price(92108, 6, 8) - Decimal("99.999912")) < Decimal("1e-5")

    def test_price_to_tick(self):
        """해당 가격 이하의 가장 가까운 틱"""
        assert price_to_tick_index(0.009998, 8, 6) == -92111
        assert price_to_tick_index(1.0, 6, 6) == 0
        assert price_to_tick_index(99.999912, 6, 8) == 92108

    def test_out_of_bounds(self):
        with pytest.raises(OutOfBoundsError):
            price_to_tick_index(Decimal("1e40"), 6, 6)


class TestInvertPrice:
    """invert_price 테스트"""

    def test_invert(self):
        assert abs(invert_price(100, 6, 6) - Decimal("0.01")) < Decimal("1e-5")
        assert abs(invert_price(0.00999999, 8, 6) - Decimal("1000099.11863")) < Decimal("1")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
