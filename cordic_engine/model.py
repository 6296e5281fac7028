from cordic_engine.cordic_common.cordic_constants import (
    DEFAULT_INTEGER_BITS,
    DEFAULT_ITERATIONS,
    DEFAULT_LINEAR_START_EXPONENT,
    DEFAULT_WIDTH,
)
from cordic_engine.cordic_common.methods import check_format


class engine_config:
    def __init__(
        self,
        width: int = DEFAULT_WIDTH,
        xy_integer_bits: int = DEFAULT_INTEGER_BITS,
        z_integer_bits: int = DEFAULT_INTEGER_BITS,
        iterations: int = DEFAULT_ITERATIONS,
        linear_start_exponent: int = DEFAULT_LINEAR_START_EXPONENT,
    ):
        """
        Args:
            width (int): Total bits of every operand, output and internal register
            xy_integer_bits (int): Integer bits (sign included) of x and y
            z_integer_bits (int): Integer bits (sign included) of the angle z
            iterations (int): How many CORDIC iterations are run
            linear_start_exponent (int): Linear mode steps by 2^(e - i)
        """
        check_format(width, xy_integer_bits)
        check_format(width, z_integer_bits)
        if iterations < 1:
            raise ValueError(f"Iteration count must be positive, got {iterations}")
        self.width = width
        self.xy_integer_bits = xy_integer_bits
        self.z_integer_bits = z_integer_bits
        self.iters = iterations
        self.linear_start_exponent = linear_start_exponent

    @property
    def xy_format(self):
        return (self.width, self.xy_integer_bits)

    @property
    def z_format(self):
        return (self.width, self.z_integer_bits)

    def linear_format(self, radix_position: int):
        """Format of every linear mode operand with radix_position fractional bits"""
        if not 0 <= radix_position < self.width:
            raise ValueError(
                f"Radix position must be within 0..{self.width - 1}, got {radix_position}"
            )
        return (self.width, self.width - radix_position)

    def __repr__(self):
        return (
            f"engine_config(width={self.width}, xy_integer_bits={self.xy_integer_bits}, "
            f"z_integer_bits={self.z_integer_bits}, iterations={self.iters}, "
            f"linear_start_exponent={self.linear_start_exponent})"
        )
