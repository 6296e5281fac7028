from functools import lru_cache
from math import sqrt
from typing import Union

import numpy as np
from BitVector import BitVector
from bitstring import Bits

from cordic_engine.cordic_common.cordic_types import rotation_type
from cordic_engine.cordic_common.cordic_constants import (
    DEFAULT_LINEAR_START_EXPONENT,
    atan_lut,
    atanh_lut,
    hyperbolic_repeat_indices,
)


def check_format(width: int, integer_bits: int):
    """Raise ValueError unless (width, integer_bits) describes a signed Qm.f format"""
    if width < 2:
        raise ValueError(f"Fixed-point width must be at least 2 bits, got {width}")
    if not 1 <= integer_bits <= width:
        raise ValueError(
            f"Integer bits must be within 1..{width} (sign included), got {integer_bits}"
        )


def wrap(value: int, width: int) -> int:
    """Two's complement overflow of an arbitrary integer into width bits"""
    mask = (1 << width) - 1
    value = int(value) & mask
    # sign-extend
    if value & (1 << (width - 1)):
        value -= 1 << width
    return value


def to_unsigned(raw: int, width: int) -> int:
    """Signed raw value as the unsigned contents of a width-bit register field"""
    return Bits(int=wrap(raw, width), length=width).uint


def sign_extend(field: int, width: int) -> int:
    """Unsigned width-bit register field as a signed raw value"""
    return Bits(uint=int(field) & ((1 << width) - 1), length=width).int


def format_bits(raw: int, width: int) -> str:
    return str(BitVector(intVal=to_unsigned(raw, width), size=width))


def _quantize(values: np.ndarray, width: int, integer_bits: int) -> np.ndarray:
    check_format(width, integer_bits)
    frac_bits = width - integer_bits
    max_raw = (1 << (width - 1)) - 1
    min_raw = -(1 << (width - 1))
    # np.rint rounds half to even
    scaled = np.rint(values * 2.0**frac_bits)
    scaled = np.where(np.isnan(scaled), 0.0, scaled)
    return np.clip(scaled, min_raw, max_raw).astype(np.int64)


def to_fixed_point(value: Union[float, int], width: int, integer_bits: int) -> int:
    """
    Converts a real value into a signed fixed-point integer with
    integer_bits integer bits (sign included) and width - integer_bits
    fractional bits.

    Rounds to nearest, ties to even. Values outside the representable
    range saturate to the boundary instead of wrapping. NaN encodes as 0.
    """
    return int(_quantize(np.asarray(value, dtype=np.float64), width, integer_bits))


def to_fixed_point_array(values, width: int, integer_bits: int) -> np.ndarray:
    """Element-wise to_fixed_point, returned as an int64 array"""
    return _quantize(np.asarray(values, dtype=np.float64), width, integer_bits)


def to_double_single(raw: int, width: int, integer_bits: int) -> float:
    """
    Converts a signed fixed-point integer into float.
    Exact inverse of to_fixed_point on every representable value.
    """
    check_format(width, integer_bits)
    return wrap(raw, width) / 2.0 ** (width - integer_bits)


def to_double_array(raws, width: int, integer_bits: int) -> np.ndarray:
    check_format(width, integer_bits)
    return np.array([wrap(r, width) for r in np.ravel(raws)], dtype=np.float64).reshape(
        np.shape(raws)
    ) / 2.0 ** (width - integer_bits)


@lru_cache(maxsize=None)
def iteration_schedule(rot_type: int, iterations: int) -> tuple:
    """
    Shift indices executed by the engine, in order.

    Circular and linear modes run indices 0..iterations-1. Hyperbolic mode
    skips index 0 and runs every repeat index twice.
    """
    if iterations < 1:
        raise ValueError(f"Iteration count must be positive, got {iterations}")
    if rot_type != rotation_type.HYPERBOLIC:
        return tuple(range(0, iterations))

    repeats = hyperbolic_repeat_indices(iterations)
    schedule = []
    for i in range(1, iterations):
        schedule.append(i)
        if i in repeats:
            schedule.append(i)
    return tuple(schedule)


def calc_k(schedule, rot_type: int) -> float:
    """Magnitude growth of the vector over the given schedule"""
    if rot_type == rotation_type.LINEAR:
        return 1.0
    k = 1.0
    for i in schedule:
        sqrtee = (
            1 + pow(2, -2 * i)
            if rot_type == rotation_type.CIRCULAR
            else 1 - pow(2, -2 * i)
        )
        k *= sqrt(sqrtee)
    return k


@lru_cache(maxsize=None)
def elementary_values(
    rot_type: int,
    schedule: tuple,
    width: int,
    integer_bits: int,
    start_exponent: int = DEFAULT_LINEAR_START_EXPONENT,
) -> tuple:
    """
    Per-step constants subtracted from z, encoded in the z format.

    After the lookup tables run out, atan and atanh are approximated as 2^(-i).
    Linear mode steps by 2^(start_exponent - i).
    """
    values = []
    for i in schedule:
        if rot_type == rotation_type.CIRCULAR:
            value = atan_lut[i] if i < len(atan_lut) else 2.0**-i
        elif rot_type == rotation_type.HYPERBOLIC:
            value = atanh_lut[i] if i < len(atanh_lut) else 2.0**-i
        elif rot_type == rotation_type.LINEAR:
            value = 2.0 ** (start_exponent - i)
        else:
            raise ValueError(f"Unidentified rotation type: {rot_type}")
        values.append(to_fixed_point(value, width, integer_bits))
    return tuple(values)
