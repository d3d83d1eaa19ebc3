"""
Tick Math - Tick ↔ sqrt price 변환

Whirlpool의 틱 수학 함수들. 정산 엔진과 동일한 정밀도로 구현.
부동소수점을 사용하지 않고 2의 거듭제곱 테이블 전개로 계산한다.

References:
- Orca Whirlpools 정산 엔진: 틱 ↔ sqrt price 테이블 (Q64.64)

핵심 공식:
    price = 1.0001^tick
    sqrtPriceX64 = sqrt(price) * 2^64
    tick = log_sqrt(1.0001)(sqrtPriceX64 / 2^64)
"""

from typing import Optional, Tuple

from ..constants import (
    MIN_TICK_INDEX,
    MAX_TICK_INDEX,
    MIN_SQRT_PRICE,
    MAX_SQRT_PRICE,
    TICK_ARRAY_SIZE,
    FULL_RANGE_ONLY_TICK_SPACING_THRESHOLD,
)
from ..errors import OutOfBoundsError, InvalidTickIndexError


# log_b(2) (b = sqrt(1.0001)), Q32.32
LOG_B_2_X32: int = 59543866431248
BIT_PRECISION: int = 14
# 0.01
LOG_B_P_ERR_MARGIN_LOWER_X64: int = 184467440737095516
# 2^-precision / log_2_b + 0.01
LOG_B_P_ERR_MARGIN_UPPER_X64: int = 15793534762490258745


def _mul_shift_96(n0: int, n1: int) -> int:
    return (n0 * n1) >> 96


def _get_sqrt_price_positive_tick(tick: int) -> int:
    # Q96 중간값으로 계산한 뒤 Q64로 되돌림
    ratio = 79232123823359799118286999567 if tick & 0x1 \
        else 79228162514264337593543950336

    if tick & 0x2:
        ratio = _mul_shift_96(ratio, 79236085330515764027303304731)
    if tick & 0x4:
        ratio = _mul_shift_96(ratio, 79244008939048815603706035061)
    if tick & 0x8:
        ratio = _mul_shift_96(ratio, 79259858533276714757314932305)
    if tick & 0x10:
        ratio = _mul_shift_96(ratio, 79291567232598584799939703904)
    if tick & 0x20:
        ratio = _mul_shift_96(ratio, 79355022692464371645785046466)
    if tick & 0x40:
        ratio = _mul_shift_96(ratio, 79482085999252804386437311141)
    if tick & 0x80:
        ratio = _mul_shift_96(ratio, 79736823300114093921829183326)
    if tick & 0x100:
        ratio = _mul_shift_96(ratio, 80248749790819932309965073892)
    if tick & 0x200:
        ratio = _mul_shift_96(ratio, 81282483887344747381513967011)
    if tick & 0x400:
        ratio = _mul_shift_96(ratio, 83390072131320151908154831281)
    if tick & 0x800:
        ratio = _mul_shift_96(ratio, 87770609709833776024991924138)
    if tick & 0x1000:
        ratio = _mul_shift_96(ratio, 97234110755111693312479820773)
    if tick & 0x2000:
        ratio = _mul_shift_96(ratio, 119332217159966728226237229890)
    if tick & 0x4000:
        ratio = _mul_shift_96(ratio, 179736315981702064433883588727)
    if tick & 0x8000:
        ratio = _mul_shift_96(ratio, 407748233172238350107850275304)
    if tick & 0x10000:
        ratio = _mul_shift_96(ratio, 2098478828474011932436660412517)
    if tick & 0x20000:
        ratio = _mul_shift_96(ratio, 55581415166113811149459800483533)
    if tick & 0x40000:
        ratio = _mul_shift_96(ratio, 38992368544603139932233054999993551)

    return ratio >> 32


def _get_sqrt_price_negative_tick(tick: int) -> int:
    abs_tick = abs(tick)

    ratio = 18445821805675392311 if abs_tick & 0x1 \
        else 18446744073709551616

    if abs_tick & 0x2:
        ratio = (ratio * 18444899583751176498) >> 64
    if abs_tick & 0x4:
        ratio = (ratio * 18443055278223354162) >> 64
    if abs_tick & 0x8:
        ratio = (ratio * 18439367220385604838) >> 64
    if abs_tick & 0x10:
        ratio = (ratio * 18431993317065449817) >> 64
    if abs_tick & 0x20:
        ratio = (ratio * 18417254355718160513) >> 64
    if abs_tick & 0x40:
        ratio = (ratio * 18387811781193591352) >> 64
    if abs_tick & 0x80:
        ratio = (ratio * 18329067761203520168) >> 64
    if abs_tick & 0x100:
        ratio = (ratio * 18212142134806087854) >> 64
    if abs_tick & 0x200:
        ratio = (ratio * 17980523815641551639) >> 64
    if abs_tick & 0x400:
        ratio = (ratio * 17526086738831147013) >> 64
    if abs_tick & 0x800:
        ratio = (ratio * 16651378430235024244) >> 64
    if abs_tick & 0x1000:
        ratio = (ratio * 15030750278693429944) >> 64
    if abs_tick & 0x2000:
        ratio = (ratio * 12247334978882834399) >> 64
    if abs_tick & 0x4000:
        ratio = (ratio * 8131365268884726200) >> 64
    if abs_tick & 0x8000:
        ratio = (ratio * 3584323654723342297) >> 64
    if abs_tick & 0x10000:
        ratio = (ratio * 696457651847595233) >> 64
    if abs_tick & 0x20000:
        ratio = (ratio * 26294789957452057) >> 64
    if abs_tick & 0x40000:
        ratio = (ratio * 37481735321082) >> 64

    return ratio


def tick_index_to_sqrt_price(tick_index: int) -> int:
    """틱에서 sqrtPriceX64 계산

    정산 엔진의 tick_math와 동일한 구현.
    정수 연산만 사용하므로 결과가 비트 단위로 일치한다.

    Args:
        tick_index: 틱 인덱스 (-443636 ~ 443636)

    Returns:
        sqrtPriceX64 (Q64.64 형식)

    Raises:
        OutOfBoundsError: 틱이 유효 범위를 벗어난 경우
    """
    if tick_index < MIN_TICK_INDEX or tick_index > MAX_TICK_INDEX:
        raise OutOfBoundsError(
            f"틱이 유효 범위를 벗어났습니다: {tick_index} "
            f"(범위: {MIN_TICK_INDEX} ~ {MAX_TICK_INDEX})"
        )

    if tick_index >= 0:
        return _get_sqrt_price_positive_tick(tick_index)
    return _get_sqrt_price_negative_tick(tick_index)


def sqrt_price_to_tick_index(sqrt_price: int) -> int:
    """sqrtPriceX64에서 틱 계산

    tick_index_to_sqrt_price(t) <= sqrt_price < tick_index_to_sqrt_price(t + 1)
    을 만족하는 t 를 반환한다.

    Args:
        sqrt_price: sqrtPriceX64 (Q64.64 형식)

    Returns:
        틱 인덱스

    Raises:
        OutOfBoundsError: sqrt_price가 유효 범위를 벗어난 경우
    """
    if sqrt_price < MIN_SQRT_PRICE or sqrt_price > MAX_SQRT_PRICE:
        raise OutOfBoundsError(
            f"sqrtPrice가 유효 범위를 벗어났습니다: {sqrt_price} "
            f"(범위: {MIN_SQRT_PRICE} ~ {MAX_SQRT_PRICE})"
        )

    # 최상위 비트 → log2 정수부
    msb = sqrt_price.bit_length() - 1
    log2p_integer_x32 = (msb - 64) << 32

    if msb >= 64:
        r = sqrt_price >> (msb - 63)
    else:
        r = sqrt_price << (63 - msb)

    # 제곱을 반복하며 log2 소수부를 한 비트씩 결정
    bit = 0x8000000000000000
    log2p_fraction_x64 = 0
    for _ in range(BIT_PRECISION):
        r *= r
        is_r_more_than_two = r >> 127
        r >>= 63 + is_r_more_than_two
        log2p_fraction_x64 += bit * is_r_more_than_two
        bit >>= 1

    log2p_x32 = log2p_integer_x32 + (log2p_fraction_x64 >> 32)
    logbp_x64 = log2p_x32 * LOG_B_2_X32

    tick_low = (logbp_x64 - LOG_B_P_ERR_MARGIN_LOWER_X64) >> 64
    tick_high = (logbp_x64 + LOG_B_P_ERR_MARGIN_UPPER_X64) >> 64

    if tick_low == tick_high:
        return tick_low

    if tick_index_to_sqrt_price(tick_high) <= sqrt_price:
        return tick_high
    else:
        return tick_low


def get_tick_array_start_tick_index(tick_index: int, tick_spacing: int) -> int:
    """틱이 속하는 틱 배열의 시작 인덱스

    틱 공간은 88 * tick_spacing 크기의 겹치지 않는 구간으로 분할된다.

    Example:
        >>> get_tick_array_start_tick_index(-624, 8)
        -704
    """
    return (tick_index // tick_spacing // TICK_ARRAY_SIZE) * tick_spacing * TICK_ARRAY_SIZE


def get_initializable_tick_index(
    tick_index: int,
    tick_spacing: int,
    round_up: Optional[bool] = None
) -> int:
    """틱을 유효한 틱 간격(tick spacing의 배수)으로 맞춤

    각 풀의 tick spacing에 따라 배수인 틱만 초기화할 수 있다.
    견적을 만들 때는 가격이 불리해지는 방향을 지정해 안전하게 반올림한다.

    Args:
        tick_index: 맞출 틱
        tick_spacing: 틱 간격
        round_up: True면 올림, False면 내림, None이면 가장 가까운 틱 (동률은 올림)

    Returns:
        tick spacing의 배수인 틱
    """
    remainder = tick_index % tick_spacing
    result = (tick_index // tick_spacing) * tick_spacing

    if round_up is None:
        should_round_up = remainder >= tick_spacing // 2 and remainder > 0
    else:
        should_round_up = round_up and remainder > 0

    if should_round_up:
        return result + tick_spacing
    return result


def get_prev_initializable_tick_index(tick_index: int, tick_spacing: int) -> int:
    """tick_index 보다 작은 가장 가까운 초기화 가능 틱"""
    remainder = tick_index % tick_spacing
    if remainder == 0:
        return tick_index - tick_spacing
    return tick_index - remainder


def get_next_initializable_tick_index(tick_index: int, tick_spacing: int) -> int:
    """tick_index 보다 큰 가장 가까운 초기화 가능 틱"""
    remainder = tick_index % tick_spacing
    return tick_index - remainder + tick_spacing


def is_tick_index_in_bounds(tick_index: int) -> bool:
    return MIN_TICK_INDEX <= tick_index <= MAX_TICK_INDEX


def is_tick_initializable(tick_index: int, tick_spacing: int) -> bool:
    return tick_index % tick_spacing == 0


def invert_tick_index(tick_index: int) -> int:
    """토큰 순서를 뒤집었을 때의 틱"""
    return -tick_index


def invert_sqrt_price(sqrt_price: int) -> int:
    """토큰 순서를 뒤집었을 때의 sqrt price (틱 단위로 근사)"""
    tick_index = sqrt_price_to_tick_index(sqrt_price)
    return tick_index_to_sqrt_price(invert_tick_index(tick_index))


def get_full_range_tick_indexes(tick_spacing: int) -> Tuple[int, int]:
    """tick spacing에서 가능한 가장 넓은 범위 (lower, upper)

    0 방향으로 절삭한다 (경계 밖으로 나가지 않도록).
    """
    min_tick_index = -(-MIN_TICK_INDEX // tick_spacing) * tick_spacing
    max_tick_index = (MAX_TICK_INDEX // tick_spacing) * tick_spacing
    return min_tick_index, max_tick_index


def order_tick_indexes(tick_index_1: int, tick_index_2: int) -> Tuple[int, int]:
    """두 틱을 (lower, upper) 순서로 정렬"""
    if tick_index_1 < tick_index_2:
        return tick_index_1, tick_index_2
    return tick_index_2, tick_index_1


def is_full_range_only(tick_spacing: int) -> bool:
    """full range 포지션만 허용되는 tick spacing인지 여부"""
    return tick_spacing >= FULL_RANGE_ONLY_TICK_SPACING_THRESHOLD


def get_tick_index_in_array(
    tick_index: int,
    tick_array_start_index: int,
    tick_spacing: int
) -> int:
    """틱 배열 내에서의 오프셋 (0 ~ 87)

    Raises:
        InvalidTickIndexError: 틱이 배열 범위 밖이거나 spacing 배수가 아닌 경우
    """
    if tick_index < tick_array_start_index \
            or tick_index >= tick_array_start_index + TICK_ARRAY_SIZE * tick_spacing:
        raise InvalidTickIndexError(
            f"틱 {tick_index}가 배열(start={tick_array_start_index}, "
            f"spacing={tick_spacing}) 범위 밖입니다"
        )
    if (tick_index - tick_array_start_index) % tick_spacing != 0:
        raise InvalidTickIndexError(
            f"틱 {tick_index}가 tick spacing {tick_spacing}의 배수가 아닙니다"
        )
    return (tick_index - tick_array_start_index) // tick_spacing
