"""
======
Cordic
======

Fixed-point CORDIC engine behind a small register interface.

The ``cordic`` entity drives the register file the way a host would: write
operands, write the config register with the start bit, tick until DONE,
read the outputs back. On top of the six raw modes it evaluates named
functions over numpy arrays.
"""

import logging

import numpy as np

import cordic_engine.cordic_common.methods as methods
from cordic_engine.cordic_common.cordic_constants import (
    ADDR_OPERAND1,
    ADDR_OPERAND2,
    ADDR_SCALE,
    DEFAULT_INTEGER_BITS,
    DEFAULT_ITERATIONS,
    DEFAULT_LINEAR_START_EXPONENT,
    DEFAULT_WIDTH,
)
from cordic_engine.cordic_common.cordic_types import cordic_mode, rotation_type
from cordic_engine.model import engine_config
from cordic_engine.registers import register_file

log = logging.getLogger(__name__)

CIRCULAR = rotation_type.CIRCULAR
LINEAR = rotation_type.LINEAR
HYPERBOLIC = rotation_type.HYPERBOLIC
ROTATION = cordic_mode.ROTATION
VECTORING = cordic_mode.VECTORING


class cordic:
    functions = (
        "Sine",
        "Cosine",
        "Arctan",
        "Magnitude",
        "Sinh",
        "Cosh",
        "Exponential",
        "Arctanh",
        "Log",
        "Sqrt",
        "Multiply",
        "Divide",
    )

    def __init__(
        self,
        *arg,
        width=DEFAULT_WIDTH,
        xy_integer_bits=DEFAULT_INTEGER_BITS,
        z_integer_bits=DEFAULT_INTEGER_BITS,
        iterations=DEFAULT_ITERATIONS,
        linear_start_exponent=DEFAULT_LINEAR_START_EXPONENT,
        radix_position=11,
        function="Sine",
        protocol=None,
    ):
        """Cordic parameters and attributes
        Parameters
        ----------
            *arg :
            If any arguments are defined, the first one should be the
            parent instance

            width :
            How many bits every operand and output register has

            xy_integer_bits :
            Integer bits (sign included) of magnitude-like values

            z_integer_bits :
            Integer bits (sign included) of angle-like values

            iterations :
            How many iterations the CORDIC is supposed to have

            radix_position :
            Fractional bits of linear mode operands (scale register)

            function :
            Which operation the CORDIC is calculating

            protocol :
            Config register revision, "v1" or "v2"

        """
        log.info("Initializing %s" % (__name__))

        if len(arg) >= 1:
            self.parent = arg[0]

        if function not in self.functions:
            raise ValueError(f"Unidentified function: {function}")

        self.config = engine_config(
            width=width,
            xy_integer_bits=xy_integer_bits,
            z_integer_bits=z_integer_bits,
            iterations=iterations,
            linear_start_exponent=linear_start_exponent,
        )
        # Raises early instead of dropping start pulses later
        self.config.linear_format(radix_position)
        self.radix_position = radix_position
        self.function = function
        self.regs = register_file(self.config, protocol)

        # IOs
        self.operand1 = None
        self.operand2 = None
        self.out1 = None
        self.out2 = None
        self.output = None

    @property
    def dispatcher(self):
        return self.regs.fsm.dispatcher

    def compute_raw(self, rot_type: int, mode: int, raw1: int, raw2: int):
        """One run through the register interface on raw fixed-point operands.

        Writes the operands and the scale register, starts the engine, waits
        for DONE and returns both outputs as signed raw values.
        """
        width = self.config.width
        self.regs.write_word_reg(ADDR_OPERAND1, methods.to_unsigned(raw1, width))
        self.regs.write_word_reg(ADDR_OPERAND2, methods.to_unsigned(raw2, width))
        self.regs.write_byte_reg(ADDR_SCALE, self.radix_position)
        self.regs.start(rot_type, mode)
        self.regs.wait_done()
        return self.regs.read_out_pair_signed()

    def compute(self, rot_type: int, mode: int, value1: float, value2: float = 0.0):
        """compute_raw() with operands and outputs in the formats of the mode

        Circular vectoring inputs are shifted into range first, out1 is
        shifted back so it still reads |v| * growth.
        """
        fmt1, fmt2 = self.dispatcher.operand_formats(rot_type, mode, self.radix_position)
        out_fmt1, out_fmt2 = self.dispatcher.output_formats(
            rot_type, mode, self.radix_position
        )
        scale = 1.0
        if rot_type == CIRCULAR and mode == VECTORING:
            scale = 2.0 ** self.dispatcher.vectoring_shift(value1, value2)
        out1, out2 = self.compute_raw(
            rot_type,
            mode,
            methods.to_fixed_point(value1 / scale, *fmt1),
            methods.to_fixed_point(value2 / scale, *fmt2),
        )
        return (
            methods.to_double_single(out1, *out_fmt1) * scale,
            methods.to_double_single(out2, *out_fmt2),
        )

    def preprocess(self, a, b):
        """Mode and operand values of self.function for inputs a, b

        Works element-wise on numpy arrays.
        """
        if self.function in ("Sine", "Cosine"):
            return CIRCULAR, ROTATION, a, 0.0
        elif self.function == "Arctan":
            return CIRCULAR, VECTORING, 1.0, a
        elif self.function == "Magnitude":
            return CIRCULAR, VECTORING, a, b
        elif self.function in ("Sinh", "Cosh", "Exponential"):
            return HYPERBOLIC, ROTATION, a, 0.0
        elif self.function == "Arctanh":
            return HYPERBOLIC, VECTORING, 1.0, a
        elif self.function == "Log":
            # atanh((a - 1) / (a + 1)) = ln(a) / 2
            return HYPERBOLIC, VECTORING, a + 1.0, a - 1.0
        elif self.function == "Sqrt":
            # (a + 1/4)^2 - (a - 1/4)^2 = a
            return HYPERBOLIC, VECTORING, a + 0.25, a - 0.25
        elif self.function == "Multiply":
            return LINEAR, ROTATION, a, b
        elif self.function == "Divide":
            return LINEAR, VECTORING, a, b
        raise ValueError(f"Unidentified operation in preprocessor: {self.function}")

    def postprocess(self, out1, out2):
        if self.function in ("Cosine", "Cosh"):
            return out1
        elif self.function in ("Sine", "Sinh", "Arctan", "Arctanh", "Multiply", "Divide"):
            return out2
        elif self.function == "Magnitude":
            return out1 * self.dispatcher.compensation(CIRCULAR)
        elif self.function == "Exponential":
            return out1 + out2
        elif self.function == "Log":
            return 2 * out2
        elif self.function == "Sqrt":
            return out1 * self.dispatcher.compensation(HYPERBOLIC)
        raise ValueError(f"Unidentified operation in postprocessor: {self.function}")

    def main(self):
        """The main python description of the operation. Contents fully up to
        designer, however, the
        IO's should be handled bu following this guideline:

        To isolate the internal processing from IO connection assigments,
        The procedure to follow is
        1) Assign input data from input to local variable
        2) Do the processing
        3) Assign local variable to output

        """
        op1 = np.atleast_1d(np.asarray(self.operand1, dtype=np.float64))
        if self.operand2 is None:
            op2 = np.zeros_like(op1)
        else:
            op2 = np.broadcast_to(
                np.asarray(self.operand2, dtype=np.float64), op1.shape
            )

        rot_type, mode, value1, value2 = self.preprocess(op1, op2)
        value1 = np.broadcast_to(np.asarray(value1, dtype=np.float64), op1.shape)
        value2 = np.broadcast_to(np.asarray(value2, dtype=np.float64), op1.shape)

        # Keep |v| * growth inside the xy format, the angle is scale free
        shifts = np.zeros(op1.shape, dtype=np.int64)
        if rot_type == CIRCULAR and mode == VECTORING:
            shifts = np.array(
                [self.dispatcher.vectoring_shift(v1, v2)
                 for v1, v2 in zip(value1.ravel(), value2.ravel())],
                dtype=np.int64,
            ).reshape(op1.shape)
        scale = 2.0**shifts

        fmt1, fmt2 = self.dispatcher.operand_formats(rot_type, mode, self.radix_position)
        out_fmt1, out_fmt2 = self.dispatcher.output_formats(
            rot_type, mode, self.radix_position
        )
        raw1 = methods.to_fixed_point_array(value1 / scale, *fmt1)
        raw2 = methods.to_fixed_point_array(value2 / scale, *fmt2)

        raw_out1 = np.zeros(op1.size, dtype=np.int64)
        raw_out2 = np.zeros(op1.size, dtype=np.int64)
        for i, (r1, r2) in enumerate(zip(raw1.ravel(), raw2.ravel())):
            raw_out1[i], raw_out2[i] = self.compute_raw(rot_type, mode, int(r1), int(r2))

        out1 = methods.to_double_array(raw_out1.reshape(op1.shape), *out_fmt1) * scale
        out2 = methods.to_double_array(raw_out2.reshape(op1.shape), *out_fmt2)

        self.out1 = out1
        self.out2 = out2
        self.output = self.postprocess(out1, out2)

    def run(self, operand1=None, operand2=None) -> np.ndarray:
        """Evaluates self.function over operand1 (and operand2 where used).

        Parameters
        ----------
        operand1 : float or array_like
            First input, e.g. the angle of Sine or the divisor of Divide
        operand2 : float or array_like, optional
            Second input of Magnitude, Multiply and Divide

        """
        if operand1 is not None:
            self.operand1 = operand1
        if operand2 is not None:
            self.operand2 = operand2
        if self.operand1 is None:
            raise ValueError("No input data assigned to operand1")
        self.main()
        return self.output
