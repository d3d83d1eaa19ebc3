"""
Fee Math 테스트

inside/outside 분해, 랩어라운드, 보상 growth 투영을 테스트합니다.
"""

import pytest

from ..math.fee_math import (
    wrapping_add,
    wrapping_sub,
    growth_below,
    growth_above,
    get_fee_growths_inside,
    get_reward_growths_inside,
    calculate_owed_delta,
    project_reward_growth,
    next_reward_growths_global,
)
from ..data.types import RewardInfo, Tick, Whirlpool
from ..constants import Q64, Q128
from ..errors import InvalidTimestampError


REWARD_MINT = "RewardMint111111111111111111111111111111111"
INITIALIZED = Tick(initialized=True)


class TestWrapping:
    """u128 랩어라운드 테스트"""

    def test_sub(self):
        assert wrapping_sub(5, 3) == 2
        assert wrapping_sub(3, 5) == Q128 - 2

    def test_add(self):
        assert wrapping_add(Q128 - 1, 2) == 1


class TestGrowthBelowAbove:
    """growth_below (f_b) / growth_above (f_a) 테스트"""

    def test_below(self):
        """현재 틱이 하한 이상이면 f_o, 아래면 f_g - f_o"""
        tick = Tick(initialized=True)
        assert growth_below(tick, 100, 150, 1000, 300) == 300
        assert growth_below(tick, 100, 100, 1000, 300) == 300
        assert growth_below(tick, 100, 50, 1000, 300) == 700

    def test_above(self):
        """현재 틱이 상한 아래면 f_o, 이상이면 f_g - f_o"""
        tick = Tick(initialized=True)
        assert growth_above(tick, 100, 50, 1000, 300) == 300
        assert growth_above(tick, 100, 100, 1000, 300) == 700
        assert growth_above(tick, 100, 150, 1000, 300) == 700

    def test_uninitialized(self):
        """초기화되지 않은 하한은 전역값 전체, 상한은 0"""
        assert growth_below(Tick(), 100, 150, 1000, 300) == 1000
        assert growth_above(Tick(), 100, 50, 1000, 300) == 0


class TestFeeGrowthsInside:
    """get_fee_growths_inside 테스트 (f_r)"""

    def test_in_range(self):
        """outside 0 이면 범위 내 = 전역"""
        result = get_fee_growths_inside(0, INITIALIZED, -640, INITIALIZED, 640, 1000, 2000)
        assert result.fee_growth_inside_a == 1000
        assert result.fee_growth_inside_b == 2000

    def test_below_range(self):
        """f_r = f_g - (f_g - f_o(l)) - f_o(u)"""
        lower = Tick(initialized=True, fee_growth_outside_a=30)
        upper = Tick(initialized=True, fee_growth_outside_a=10)
        result = get_fee_growths_inside(-1000, lower, -640, upper, 640, 100, 0)
        assert result.fee_growth_inside_a == 20

    def test_wraparound(self):
        """outside 가 전역보다 커도 mod 2^128 로 정확"""
        lower = Tick(initialized=True, fee_growth_outside_a=Q128 - 10)
        result = get_fee_growths_inside(0, lower, -640, INITIALIZED, 640, 5, 0)
        assert result.fee_growth_inside_a == 15

    def test_uninitialized_ticks(self):
        """양쪽 틱이 초기화되지 않으면 범위 내 누적은 0"""
        result = get_fee_growths_inside(0, Tick(), -640, Tick(), 640, 1000, 2000)
        assert result == (0, 0)


class TestOwedDelta:
    """calculate_owed_delta 테스트"""

    def test_basic(self):
        assert calculate_owed_delta(1000, 5 * Q64, 2 * Q64) == 3000

    def test_checkpoint_wraparound(self):
        """checkpoint 가 랩어라운드 직전이어도 차이는 정확"""
        assert calculate_owed_delta(1000, Q64, Q128 - Q64) == 2000

    def test_floor(self):
        assert calculate_owed_delta(3, Q64 // 2, 0) == 1


class TestRewardGrowth:
    """보상 growth 투영 테스트"""

    def test_projection(self):
        """g + Δt × emissions / L"""
        reward = RewardInfo(mint=REWARD_MINT, emissions_per_second_x64=10 * Q64)
        assert project_reward_growth(reward, 5, 1000) == (50 * Q64) // 1000

    def test_vault_clamp(self):
        """vault 잔고를 넘어서 배출하지 않는다"""
        reward = RewardInfo(mint=REWARD_MINT, emissions_per_second_x64=10 * Q64, vault_amount=20)
        assert project_reward_growth(reward, 5, 1000) == (20 * Q64) // 1000

    def test_no_growth(self):
        """초기화되지 않은 슬롯, 유동성 0, Δt 0 이면 그대로"""
        reward = RewardInfo(mint=REWARD_MINT, emissions_per_second_x64=Q64, growth_global_x64=7)
        assert project_reward_growth(RewardInfo(emissions_per_second_x64=Q64), 5, 1000) == 0
        assert project_reward_growth(reward, 5, 0) == 7
        assert project_reward_growth(reward, 0, 1000) == 7

    def test_next_reward_growths_global(self):
        pool = Whirlpool(
            address="pool",
            token_mint_a="mintA",
            token_mint_b="mintB",
            tick_spacing=64,
            fee_rate=3000,
            liquidity=1000,
            sqrt_price=Q64,
            tick_current_index=0,
            reward_last_updated_timestamp=100,
            reward_infos=(RewardInfo(mint=REWARD_MINT, emissions_per_second_x64=Q64),),
        )
        assert next_reward_growths_global(pool) == (0, 0, 0)
        assert next_reward_growths_global(pool, 110) == ((10 * Q64) // 1000, 0, 0)
        with pytest.raises(InvalidTimestampError):
            next_reward_growths_global(pool, 99)

    def test_reward_growths_inside(self):
        """초기화되지 않은 슬롯은 0"""
        reward_infos = (
            RewardInfo(mint=REWARD_MINT, growth_global_x64=500),
            RewardInfo(growth_global_x64=500),
            RewardInfo(),
        )
        lower = Tick(initialized=True, reward_growths_outside=(100, 0, 0))
        result = get_reward_growths_inside(0, lower, -640, INITIALIZED, 640, reward_infos)
        assert result == (400, 0, 0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
