import logging

import numpy as np

from cordic_engine.cordic_common.adder_subtractor import adder_subtractor
from cordic_engine.cordic_common.cordic_types import (
    cordic_mode,
    iteration_state,
    rotation_type,
)
from cordic_engine.cordic_common.methods import (
    calc_k,
    elementary_values,
    iteration_schedule,
    to_fixed_point,
)
from cordic_engine.model import engine_config
from cordic_engine.recurrence import cordic_strategy

log = logging.getLogger(__name__)


def check_mode(rot_type: int, mode: int):
    if rot_type not in rotation_type.names:
        raise ValueError(f"Unidentified rotation type: {rot_type}")
    if mode not in cordic_mode.names:
        raise ValueError(f"Unidentified cordic mode: {mode}")


class mode_dispatcher:
    """Maps (rotation_type, cordic_mode) onto strategy, seeds and outputs.

    | type       | mode      | seed (x, y, z)       | out1          | out2       |
    |------------|-----------|----------------------|---------------|------------|
    | circular   | rotation  | (1/Kc_growth, 0, op1)| cos           | sin        |
    | circular   | vectoring | (op1, op2, 0)        | magnitude * K | atan(y/x)  |
    | linear     | rotation  | (op1, 0, op2)        | op1           | op1 * op2  |
    | linear     | vectoring | (op1, op2, 0)        | residual      | op2 / op1  |
    | hyperbolic | rotation  | (1/Kh, 0, op1)       | cosh          | sinh       |
    | hyperbolic | vectoring | (op1, op2, 0)        | magnitude * Kh| atanh(y/x) |

    Vectoring outputs keep the gain of the coordinate system, compensating
    them is up to the consumer.

    Circular vectoring grows x to |v| * 1.6468, so its inputs must satisfy
    |v| * 1.6468 < 2^(m-1) with m = xy_integer_bits. Larger vectors wrap
    inside the adders and corrupt the angle as well as the magnitude.
    vectoring_shift() gives the power-of-two pre-scale that keeps a vector
    inside this domain.
    """

    def __init__(self, config: engine_config):
        self.config = config
        self._adder = adder_subtractor(bits=config.width)
        self._strategies = {}

    def schedule(self, rot_type: int):
        return iteration_schedule(rot_type, self.config.iters)

    def gain(self, rot_type: int) -> float:
        """Magnitude growth over a full run, 1.6468 circular, 0.8282 hyperbolic"""
        return calc_k(self.schedule(rot_type), rot_type)

    def compensation(self, rot_type: int) -> float:
        return 1 / self.gain(rot_type)

    def vectoring_shift(self, value1: float, value2: float) -> int:
        """Right shift of (value1, value2) that keeps circular vectoring in range.

        The angle output does not depend on the scale of the vector, the
        magnitude output has to be shifted back left by the same amount.
        """
        # A few LSBs of margin for the rounding of the shifted terms
        limit = 2.0 ** (self.config.xy_integer_bits - 1) * (1 - 2.0**-6)
        magnitude = np.hypot(value1, value2) * self.gain(rotation_type.CIRCULAR)
        shift = 0
        while magnitude >= limit and shift < self.config.width:
            magnitude /= 2
            shift += 1
        return shift

    def busy_cycles(self, rot_type: int) -> int:
        return len(self.schedule(rot_type))

    def operand_formats(self, rot_type: int, mode: int, radix_position: int = 0):
        check_mode(rot_type, mode)
        if rot_type == rotation_type.LINEAR:
            fmt = self.config.linear_format(radix_position)
            return fmt, fmt
        if mode == cordic_mode.ROTATION:
            return self.config.z_format, self.config.xy_format
        return self.config.xy_format, self.config.xy_format

    def output_formats(self, rot_type: int, mode: int, radix_position: int = 0):
        check_mode(rot_type, mode)
        if rot_type == rotation_type.LINEAR:
            fmt = self.config.linear_format(radix_position)
            return fmt, fmt
        if mode == cordic_mode.ROTATION:
            return self.config.xy_format, self.config.xy_format
        return self.config.xy_format, self.config.z_format

    def strategy(self, rot_type: int, mode: int, radix_position: int = 0) -> cordic_strategy:
        check_mode(rot_type, mode)
        if rot_type != rotation_type.LINEAR:
            # Only linear tables depend on the radix position
            radix_position = 0
        key = (rot_type, mode, radix_position)
        if key not in self._strategies:
            schedule = self.schedule(rot_type)
            start = self.config.linear_start_exponent
            if rot_type == rotation_type.LINEAR:
                z_width, z_integer_bits = self.config.linear_format(radix_position)
                shifts = tuple(i - start for i in schedule)
            else:
                z_width, z_integer_bits = self.config.z_format
                shifts = schedule
            elementary = elementary_values(
                rot_type, schedule, z_width, z_integer_bits, start
            )
            self._strategies[key] = cordic_strategy(
                rot_type, mode, self._adder, schedule, shifts, elementary
            )
        return self._strategies[key]

    def preprocess(self, rot_type: int, mode: int, operand1: int, operand2: int) -> iteration_state:
        """Initial (x, y, z) from the raw operand registers"""
        check_mode(rot_type, mode)
        if rot_type == rotation_type.LINEAR:
            if mode == cordic_mode.ROTATION:
                return iteration_state(operand1, 0, operand2)
            return iteration_state(operand1, operand2, 0)
        if mode == cordic_mode.ROTATION:
            # Pre-scale so that x, y end up as the true function values
            K_vec = to_fixed_point(self.compensation(rot_type), *self.config.xy_format)
            return iteration_state(K_vec, 0, operand1)
        return iteration_state(operand1, operand2, 0)

    def postprocess(self, rot_type: int, mode: int, state: iteration_state):
        """Final (x, y, z) onto the two output registers"""
        check_mode(rot_type, mode)
        if mode == cordic_mode.ROTATION:
            return state.x, state.y
        if rot_type == rotation_type.LINEAR:
            return state.y, state.z
        return state.x, state.z

    def prepare(
        self,
        rot_type: int,
        mode: int,
        operand1: int,
        operand2: int,
        radix_position: int = 0,
    ):
        strategy = self.strategy(rot_type, mode, radix_position)
        state = self.preprocess(rot_type, mode, operand1, operand2)
        log.debug(
            "Dispatching %s %s over %d steps",
            rotation_type.names[rot_type], cordic_mode.names[mode], len(strategy),
        )
        return strategy, state
