"""
==========
Recurrence
==========

Per-coordinate-system shift-add updates and per-operation decision rules.
A ``cordic_strategy`` binds one of each together with the precomputed
schedule, so the iteration engine never branches on the mode.

sigma = +1 or -1 throughout, matching the decision variable d of the
classic CORDIC equations.
"""

from cordic_engine.cordic_common.adder_subtractor import adder_subtractor
from cordic_engine.cordic_common.cordic_types import (
    cordic_mode,
    iteration_state,
    rotation_type,
)


class recurrence:
    """Shift-add update of one coordinate system"""

    rot_type = None

    def __init__(self, adder: adder_subtractor):
        self._adder = adder

    def step(self, state: iteration_state, shift: int, elementary: int, sigma: int):
        raise NotImplementedError


class circular_recurrence(recurrence):
    rot_type = rotation_type.CIRCULAR

    def step(self, state, shift, elementary, sigma):
        x_shift = self._adder.shift(state.x, shift)
        y_shift = self._adder.shift(state.y, shift)
        return iteration_state(
            self._adder.add_sub(state.x, y_shift, -sigma),
            self._adder.add_sub(state.y, x_shift, sigma),
            self._adder.add_sub(state.z, elementary, -sigma),
        )


class linear_recurrence(recurrence):
    rot_type = rotation_type.LINEAR

    def step(self, state, shift, elementary, sigma):
        x_shift = self._adder.shift(state.x, shift)
        return iteration_state(
            state.x,
            self._adder.add_sub(state.y, x_shift, sigma),
            self._adder.add_sub(state.z, elementary, -sigma),
        )


class hyperbolic_recurrence(recurrence):
    rot_type = rotation_type.HYPERBOLIC

    def step(self, state, shift, elementary, sigma):
        x_shift = self._adder.shift(state.x, shift)
        y_shift = self._adder.shift(state.y, shift)
        return iteration_state(
            self._adder.add_sub(state.x, y_shift, sigma),
            self._adder.add_sub(state.y, x_shift, sigma),
            self._adder.add_sub(state.z, elementary, -sigma),
        )


recurrences = {
    rotation_type.CIRCULAR: circular_recurrence,
    rotation_type.LINEAR: linear_recurrence,
    rotation_type.HYPERBOLIC: hyperbolic_recurrence,
}


def rotation_decision(state: iteration_state) -> int:
    # Drive z towards zero
    return 1 if state.z >= 0 else -1


def vectoring_decision(state: iteration_state) -> int:
    # Drive y towards zero
    return -1 if state.y >= 0 else 1


def linear_vectoring_decision(state: iteration_state) -> int:
    # Drive the dividend in y towards zero whatever the sign of the divisor
    return -1 if (state.y >= 0) == (state.x >= 0) else 1


def select_decision(rot_type: int, mode: int):
    if mode == cordic_mode.ROTATION:
        return rotation_decision
    elif mode == cordic_mode.VECTORING:
        if rot_type == rotation_type.LINEAR:
            return linear_vectoring_decision
        return vectoring_decision
    raise ValueError(f"Unidentified cordic mode: {mode}")


class cordic_strategy:
    def __init__(
        self,
        rot_type: int,
        mode: int,
        adder: adder_subtractor,
        schedule: tuple,
        shifts: tuple,
        elementary: tuple,
    ):
        """Recurrence and decision rule of one (coordinate, operation) pair

        Parameters
        ----------
        rot_type : int
            rotation_type of the recurrence
        mode : int
            cordic_mode selecting the decision rule
        adder : adder_subtractor
            W-bit adder shared by all updates
        schedule : tuple
            Iteration indices, repeats included
        shifts : tuple
            Right shift applied to x and y at each step
        elementary : tuple
            Raw z constant of each step
        """
        assert len(schedule) == len(shifts) == len(elementary), \
            "Schedule, shifts and elementary values must be the same length"
        self.rot_type = rot_type
        self.mode = mode
        self.schedule = schedule
        self.shifts = shifts
        self.elementary = elementary
        self._recurrence = recurrences[rot_type](adder)
        self._decision = select_decision(rot_type, mode)

    def __len__(self):
        return len(self.schedule)

    def decision(self, state: iteration_state) -> int:
        return self._decision(state)

    def step(self, state: iteration_state, index: int, sigma: int) -> iteration_state:
        return self._recurrence.step(
            state, self.shifts[index], self.elementary[index], sigma
        )
