"""
Token Extensions 테스트

전송 수수료 포함/제외 수량, 에폭별 수수료, scaled UI, non-transferable 을 테스트합니다.
"""

from decimal import Decimal

import pytest

from ..extensions import (
    MintMeta,
    TokenProgramKind,
    TransferDirection,
    TransferFee,
    TransferFeeConfig,
    adjust_for_transfer_impact,
    calculate_transfer_fee,
    calculate_transfer_fee_excluded_amount,
    calculate_transfer_fee_included_amount,
    ensure_position_transferable,
    ensure_transferable,
    is_position_transferable,
    raw_to_ui_amount,
    requires_transfer_hook,
    ui_amount_to_raw,
)
from ..constants import TOKEN_2022_PROGRAM_ID
from ..errors import NonTransferableError


def token_2022_mint(older: TransferFee, newer: TransferFee, newer_epoch: int = 0) -> MintMeta:
    return MintMeta(
        address="mint",
        decimals=6,
        token_program=TokenProgramKind.TOKEN_2022,
        transfer_fee=TransferFeeConfig(older=older, newer=newer, newer_epoch=newer_epoch),
    )


class TestTransferFee:
    """전송 수수료 계산 테스트"""

    def test_fee(self):
        """min(ceil(amount × bps / 10000), max_fee)"""
        assert calculate_transfer_fee(10_000, TransferFee(100, 10 ** 9)) == 100
        assert calculate_transfer_fee(1, TransferFee(1, 10 ** 9)) == 1
        assert calculate_transfer_fee(1_000_000, TransferFee(100, 10)) == 10
        assert calculate_transfer_fee(1000, None) == 0
        assert calculate_transfer_fee(0, TransferFee(100, 10)) == 0

    def test_excluded(self):
        result = calculate_transfer_fee_excluded_amount(10_000, TransferFee(100, 10 ** 9))
        assert result == (9_900, 100)

    def test_included(self):
        result = calculate_transfer_fee_included_amount(9_900, TransferFee(100, 10 ** 9))
        assert result == (10_000, 100)

    def test_included_max_fee(self):
        """상한에 걸리면 수수료는 max_fee"""
        result = calculate_transfer_fee_included_amount(1_000_000, TransferFee(100, 10))
        assert result == (1_000_010, 10)

    def test_included_full_fee(self):
        """수수료율 100% 이면 max_fee 를 더한다"""
        result = calculate_transfer_fee_included_amount(100, TransferFee(10_000, 50))
        assert result == (150, 50)

    def test_included_zero(self):
        assert calculate_transfer_fee_included_amount(0, TransferFee(100, 10)) == (0, 0)

    def test_invalid_fee(self):
        with pytest.raises(ValueError):
            TransferFee(fee_bps=10_001, max_fee=0)
        with pytest.raises(ValueError):
            TransferFee(fee_bps=100, max_fee=-1)


class TestAdjustForTransferImpact:
    """adjust_for_transfer_impact 테스트"""

    def test_no_mint(self):
        assert adjust_for_transfer_impact(1000, None, TransferDirection.SEND) == 1000
        assert adjust_for_transfer_impact(1000, None, TransferDirection.RECEIVE) == 1000

    def test_send_and_receive(self):
        mint = token_2022_mint(TransferFee(100, 10 ** 9), TransferFee(100, 10 ** 9))
        assert adjust_for_transfer_impact(9_900, mint, TransferDirection.SEND) == 10_000
        assert adjust_for_transfer_impact(10_000, mint, TransferDirection.RECEIVE) == 9_900

    def test_epoch(self):
        """newer_epoch 이전에는 older 수수료"""
        mint = token_2022_mint(TransferFee(0, 0), TransferFee(100, 10 ** 9), newer_epoch=500)
        assert adjust_for_transfer_impact(10_000, mint, TransferDirection.RECEIVE, epoch=499) == 10_000
        assert adjust_for_transfer_impact(10_000, mint, TransferDirection.RECEIVE, epoch=500) == 9_900
        assert adjust_for_transfer_impact(10_000, mint, TransferDirection.RECEIVE) == 9_900

    def test_legacy_token_program(self):
        """기존 Token 프로그램 mint 에는 수수료가 없다"""
        fee = TransferFee(100, 10 ** 9)
        mint = MintMeta(
            address="mint",
            decimals=6,
            transfer_fee=TransferFeeConfig(older=fee, newer=fee),
        )
        assert adjust_for_transfer_impact(10_000, mint, TransferDirection.RECEIVE) == 10_000


class TestMintMeta:
    """MintMeta 보조 함수 테스트"""

    def test_from_dict(self):
        mint = MintMeta.from_dict({
            "address": "mint",
            "decimals": 6,
            "tokenProgram": TOKEN_2022_PROGRAM_ID,
            "transferFeeConfig": {
                "olderTransferFee": {"feeBps": 0, "maxFee": "0"},
                "newerTransferFee": {"feeBps": 250, "maxFee": "1000000"},
                "newerTransferFeeEpoch": 600,
            },
            "scaledUiMultiplier": "1.5",
        })
        assert mint.token_program is TokenProgramKind.TOKEN_2022
        assert mint.transfer_fee_for_epoch(599) == TransferFee(0, 0)
        assert mint.transfer_fee_for_epoch(600) == TransferFee(250, 1_000_000)
        assert mint.scaled_ui_multiplier == Decimal("1.5")

    def test_scaled_ui(self):
        """표시 단위 = raw × multiplier / 10^decimals"""
        mint = MintMeta(address="mint", decimals=6, scaled_ui_multiplier=Decimal(2))
        assert raw_to_ui_amount(1_500_000, mint) == Decimal(3)
        assert ui_amount_to_raw(Decimal(3), mint) == 1_500_000
        assert ui_amount_to_raw(Decimal("0.0000015"), mint) == 0

    def test_transfer_hook(self):
        assert requires_transfer_hook(MintMeta(address="mint", decimals=6, transfer_hook_program="hook"))
        assert not requires_transfer_hook(MintMeta(address="mint", decimals=6))
        assert not requires_transfer_hook(None)

    def test_non_transferable(self):
        ensure_transferable(None, "swap")
        ensure_transferable(MintMeta(address="mint", decimals=6), "swap")
        with pytest.raises(NonTransferableError):
            ensure_transferable(
                MintMeta(address="mint", decimals=6, is_non_transferable=True), "swap"
            )

    def test_non_transferable_position(self):
        """풀 토큰의 badge 속성은 포지션 양도만 막고 토큰 전송은 막지 않는다"""
        plain = MintMeta(address="mintA", decimals=6)
        badge = MintMeta(address="mintB", decimals=6, requires_non_transferable_position=True)

        assert is_position_transferable(plain, None)
        assert not is_position_transferable(plain, badge)
        ensure_position_transferable(plain, plain)
        with pytest.raises(NonTransferableError):
            ensure_position_transferable(badge, plain)
        ensure_transferable(badge, "swap")

    def test_non_transferable_position_from_dict(self):
        mint = MintMeta.from_dict(
            {"address": "mint", "decimals": 6, "requireNonTransferablePosition": True}
        )
        assert mint.requires_non_transferable_position
        assert not mint.is_non_transferable


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
