from typing import NamedTuple


class rotation_type:
    """
    CIRCULAR, LINEAR, or HYPERBOLIC

    The values double as the coordinate field encoding of the config register.
    """

    CIRCULAR = 0
    LINEAR = 1
    HYPERBOLIC = 2

    names = {CIRCULAR: "circular", LINEAR: "linear", HYPERBOLIC: "hyperbolic"}


class cordic_mode:
    """
    ROTATION or VECTORING
    """

    ROTATION = 0
    VECTORING = 1

    names = {ROTATION: "rotation", VECTORING: "vectoring"}


class engine_status:
    """
    Values of the status register
    """

    READY = 0
    BUSY = 1
    DONE = 2

    names = {READY: "READY", BUSY: "BUSY", DONE: "DONE"}


class iteration_state(NamedTuple):
    """Raw fixed-point (x, y, z) triple mutated once per iteration step"""

    x: int
    y: int
    z: int
