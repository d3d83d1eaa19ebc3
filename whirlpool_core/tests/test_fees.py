"""
Fees / Rewards Quote 테스트

미수령 수수료와 보상 견적을 테스트합니다.

기본 풀: tick 0, 유동성 10_000_000
기본 포지션: [-640, 640), 양쪽 틱 초기화 (outside 0)
"""

import pytest

from ..quote.fees import quote_fees
from ..quote.rewards import quote_rewards
from ..data.types import Position, PositionRewardInfo, RewardInfo, Tick, Whirlpool
from ..extensions import MintMeta, TokenProgramKind, TransferFee, TransferFeeConfig
from ..constants import Q64, Q128, DEFAULT_ADDRESS
from ..errors import InvalidTimestampError


POOL_LIQUIDITY = 10_000_000
REWARD_MINT = "RewardMint111111111111111111111111111111111"
INITIALIZED = Tick(initialized=True)


def make_pool(**kwargs) -> Whirlpool:
    params = dict(
        address="pool",
        token_mint_a="mintA",
        token_mint_b="mintB",
        tick_spacing=64,
        fee_rate=3000,
        liquidity=POOL_LIQUIDITY,
        sqrt_price=Q64,
        tick_current_index=0,
    )
    params.update(kwargs)
    return Whirlpool(**params)


def make_position(liquidity=1_000_000, **kwargs) -> Position:
    return Position(
        whirlpool="pool",
        tick_lower_index=-640,
        tick_upper_index=640,
        liquidity=liquidity,
        **kwargs
    )


def reward_pool(emissions_per_second_x64=10 << 64, vault_amount=None) -> Whirlpool:
    return make_pool(
        reward_last_updated_timestamp=1000,
        reward_infos=(RewardInfo(
            mint=REWARD_MINT,
            emissions_per_second_x64=emissions_per_second_x64,
            vault_amount=vault_amount,
        ),),
    )


class TestQuoteFees:
    """quote_fees 테스트"""

    def test_in_range(self):
        """owed = fee_owed + L × (f_r - checkpoint) >> 64"""
        pool = make_pool(fee_growth_global_a=3 * Q64, fee_growth_global_b=Q64 // 2)
        position = make_position(fee_growth_checkpoint_a=Q64, fee_owed_a=7, fee_owed_b=1)
        quote = quote_fees(pool, position, INITIALIZED, INITIALIZED)

        assert quote.fee_owed_a == 7 + 2 * 1_000_000
        assert quote.fee_owed_b == 1 + 500_000

    def test_idempotent(self):
        """같은 스냅샷이면 몇 번을 호출해도 같은 결과"""
        pool = make_pool(fee_growth_global_a=3 * Q64)
        position = make_position()
        first = quote_fees(pool, position, INITIALIZED, INITIALIZED)
        second = quote_fees(pool, position, INITIALIZED, INITIALIZED)
        assert first == second

    def test_wraparound(self):
        """전역값이 랩어라운드한 뒤에도 checkpoint 와의 차이는 정확"""
        pool = make_pool(fee_growth_global_a=Q64)
        position = make_position(fee_growth_checkpoint_a=Q128 - Q64)
        quote = quote_fees(pool, position, INITIALIZED, INITIALIZED)
        assert quote.fee_owed_a == 2 * 1_000_000

    def test_out_of_range(self):
        """범위 밖으로 나간 뒤 쌓인 수수료는 받지 않는다"""
        pool = make_pool(tick_current_index=1000, fee_growth_global_a=10 * Q64)
        upper = Tick(initialized=True, fee_growth_outside_a=4 * Q64)
        quote = quote_fees(pool, make_position(), INITIALIZED, upper)
        # f_r = 10 - 0 - (10 - 4) = 4
        assert quote.fee_owed_a == 4 * 1_000_000

    def test_zero_liquidity(self):
        pool = make_pool(fee_growth_global_a=3 * Q64)
        quote = quote_fees(pool, make_position(liquidity=0, fee_owed_a=5), INITIALIZED, INITIALIZED)
        assert quote.fee_owed_a == 5

    def test_transfer_fee(self):
        """수령량은 전송 수수료만큼 줄어든다"""
        fee = TransferFee(fee_bps=100, max_fee=10 ** 12)
        mint_a = MintMeta(
            address="mintA",
            decimals=6,
            token_program=TokenProgramKind.TOKEN_2022,
            transfer_fee=TransferFeeConfig(older=fee, newer=fee),
        )
        pool = make_pool(fee_growth_global_a=Q64)
        quote = quote_fees(pool, make_position(), INITIALIZED, INITIALIZED, mint_a=mint_a)
        assert quote.fee_owed_a == 990_000


class TestQuoteRewards:
    """quote_rewards 테스트"""

    def test_emissions(self):
        """5초 × 10/초 × (포지션 L / 풀 L)"""
        position = make_position(liquidity=POOL_LIQUIDITY)
        quote = quote_rewards(reward_pool(), position, INITIALIZED, INITIALIZED, 1005)

        assert quote.rewards[0].mint == REWARD_MINT
        assert 49 <= quote.rewards[0].owed <= 50

    def test_share(self):
        """풀 유동성의 10% 포지션은 약 5"""
        quote = quote_rewards(reward_pool(), make_position(), INITIALIZED, INITIALIZED, 1005)
        assert 4 <= quote.rewards[0].owed <= 5

    def test_zero_liquidity(self):
        quote = quote_rewards(
            reward_pool(), make_position(liquidity=0), INITIALIZED, INITIALIZED, 1005
        )
        assert quote.rewards[0].owed == 0

    def test_amount_owed_carried(self):
        position = make_position(
            liquidity=0, reward_infos=(PositionRewardInfo(amount_owed=12),)
        )
        quote = quote_rewards(reward_pool(), position, INITIALIZED, INITIALIZED, 1005)
        assert quote.rewards[0].owed == 12

    def test_vault_clamp(self):
        """vault 잔고를 넘는 보상은 나오지 않는다"""
        position = make_position(liquidity=POOL_LIQUIDITY)
        quote = quote_rewards(
            reward_pool(vault_amount=20), position, INITIALIZED, INITIALIZED, 1005
        )
        assert 19 <= quote.rewards[0].owed <= 20

    def test_uninitialized_slots(self):
        """초기화되지 않은 슬롯은 기본 주소와 0"""
        position = make_position(
            reward_infos=(PositionRewardInfo(), PositionRewardInfo(amount_owed=99)),
        )
        quote = quote_rewards(reward_pool(), position, INITIALIZED, INITIALIZED, 1005)

        assert len(quote.rewards) == 3
        assert quote.rewards[1].mint == DEFAULT_ADDRESS
        assert quote.rewards[1].owed == 0
        assert quote.rewards[2].owed == 0

    def test_total_for_mint(self):
        position = make_position(liquidity=POOL_LIQUIDITY)
        quote = quote_rewards(reward_pool(), position, INITIALIZED, INITIALIZED, 1005)
        assert quote.total_for_mint(REWARD_MINT) == quote.rewards[0].owed
        assert quote.total_for_mint("unknown") == 0

    def test_no_time_elapsed(self):
        quote = quote_rewards(reward_pool(), make_position(), INITIALIZED, INITIALIZED, 1000)
        assert quote.rewards[0].owed == 0

    def test_invalid_timestamp(self):
        with pytest.raises(InvalidTimestampError):
            quote_rewards(reward_pool(), make_position(), INITIALIZED, INITIALIZED, 999)

    def test_reward_transfer_fee(self):
        fee = TransferFee(fee_bps=10000, max_fee=1)
        mint_meta = MintMeta(
            address=REWARD_MINT,
            decimals=6,
            token_program=TokenProgramKind.TOKEN_2022,
            transfer_fee=TransferFeeConfig(older=fee, newer=fee),
        )
        position = make_position(liquidity=POOL_LIQUIDITY)
        plain = quote_rewards(reward_pool(), position, INITIALIZED, INITIALIZED, 1005)
        quote = quote_rewards(
            reward_pool(), position, INITIALIZED, INITIALIZED, 1005,
            mint_metas={REWARD_MINT: mint_meta},
        )
        assert quote.rewards[0].owed == plain.rewards[0].owed - 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
