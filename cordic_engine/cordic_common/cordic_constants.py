from math import atan, atanh

# Identification word read back from register 0
CORDIC_ID = 0xBADCAFFE

# Default engine configuration
DEFAULT_WIDTH = 16
DEFAULT_INTEGER_BITS = 2
DEFAULT_ITERATIONS = 16
# Linear mode starts stepping at 2^1, so |B| and |B/A| up to 4 converge
DEFAULT_LINEAR_START_EXPONENT = 1

# Register map
ADDR_ID = 0
ADDR_CONFIG = 0
ADDR_OPERAND1 = 1
ADDR_OPERAND2 = 2
ADDR_SCALE = 3
ADDR_OUT1 = 4
ADDR_OUT2 = 5
ADDR_STATUS = 6

ID_WIDTH = 32
CONFIG_WIDTH = 8
SCALE_WIDTH = 8
STATUS_WIDTH = 8

iters = 30

atan_lut = [atan(2**-i) for i in range(0, iters)]

# atanh(1) is inf
atanh_lut = [None] + [atanh(2**-i) for i in range(1, iters)]


def hyperbolic_repeat_indices(limit: int):
    """Indices below limit that hyperbolic mode executes twice.

    Hyperbolic mode does not converge without repeating some iterations.
    Required repetitions are k = 4, 13, 40, ... with k_next = 3k + 1.
    """
    indices = []
    k = 4
    while k < limit:
        indices.append(k)
        k = 3 * k + 1
    return tuple(indices)
