import argparse
import logging
import sys

import numpy as np

import cordic_engine.cordic_common.methods as methods
from cordic_engine import cordic
from cordic_engine.cordic_common.cordic_constants import (
    DEFAULT_INTEGER_BITS,
    DEFAULT_ITERATIONS,
    DEFAULT_WIDTH,
)
from cordic_engine.cordic_common.cordic_types import cordic_mode, rotation_type

coordinates = {name: value for value, name in rotation_type.names.items()}
operations = {name: value for value, name in cordic_mode.names.items()}


def comma_separated_type(value):
    return value.split(",")


def str2bool(v):
    if isinstance(v, bool):
        return v
    if v.lower() in ("yes", "true", "t", "y", "1"):
        return True
    elif v.lower() in ("no", "false", "f", "n", "0"):
        return False
    else:
        raise argparse.ArgumentTypeError("Boolean value expected.")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="cordic_engine", description="Run the fixed-point CORDIC engine"
    )
    parser.add_argument(
        "--coordinate",
        help="Coordinate system of a raw run",
        choices=list(coordinates),
        default="circular",
    )
    parser.add_argument(
        "--operation",
        help="Operation of a raw run",
        choices=list(operations),
        default="rotation",
    )
    parser.add_argument(
        "--functions",
        help="Named functions to evaluate instead of a raw run, e.g. Sine,Log",
        type=comma_separated_type,
    )
    parser.add_argument("--operand1", help="First operand", type=float, default=0.0)
    parser.add_argument("--operand2", help="Second operand", type=float, default=0.0)
    parser.add_argument("--width", help="Register width", type=int, default=DEFAULT_WIDTH)
    parser.add_argument(
        "--xy-integer-bits",
        help="Integer bits of x and y",
        type=int,
        default=DEFAULT_INTEGER_BITS,
    )
    parser.add_argument(
        "--z-integer-bits",
        help="Integer bits of the angle z",
        type=int,
        default=DEFAULT_INTEGER_BITS,
    )
    parser.add_argument(
        "--iterations",
        help=("Number of iterations to run"),
        type=int,
        default=DEFAULT_ITERATIONS,
    )
    parser.add_argument(
        "--radix-position",
        help="Fractional bits of linear mode operands",
        type=int,
        default=11,
    )
    parser.add_argument(
        "--revision",
        help="Config register revision",
        choices=["v1", "v2"],
    )
    parser.add_argument(
        "--verbose",
        help="Log every start and latch",
        type=str2bool,
        default=False,
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    kwargs = dict(
        width=args.width,
        xy_integer_bits=args.xy_integer_bits,
        z_integer_bits=args.z_integer_bits,
        iterations=args.iterations,
        radix_position=args.radix_position,
        protocol=args.revision,
    )

    if args.functions:
        for function_name in args.functions:
            dut = cordic(function=function_name, **kwargs)
            result = dut.run(args.operand1, args.operand2)
            print(f"{function_name}({args.operand1}, {args.operand2}) = {result[0]:.6f}")
        return 0

    dut = cordic(**kwargs)
    rot_type = coordinates[args.coordinate]
    mode = operations[args.operation]
    out1, out2 = dut.compute(rot_type, mode, args.operand1, args.operand2)
    raw1, raw2 = dut.regs.read_out_pair_signed()
    for name, raw, value in (("out1", raw1, out1), ("out2", raw2, out2)):
        print(
            f"{name} = {methods.format_bits(raw, args.width)} "
            f"({raw:d}) = {np.float64(value):.6f}"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
