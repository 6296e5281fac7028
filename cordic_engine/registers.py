"""
=========
Registers
=========

Memory-mapped view of the engine, as seen by a host on a byte/half-word/word
bus. Two revisions of the config register layout exist, both decode into the
same ``config_word``:

    v1: [coordinate @ bits 3..2][rotating @ bit 1][start @ bit 0]
    v2: [rotating @ bit 3][coordinate @ bits 2..1][start @ bit 0]

v2 is the default. Set CORDIC_CONFIG_REVISION=v1 to talk to v1 hosts.
"""

import logging
import os
from typing import NamedTuple

from BitVector import BitVector

from cordic_engine.cordic_common.cordic_constants import (
    ADDR_CONFIG,
    ADDR_ID,
    ADDR_OPERAND1,
    ADDR_OPERAND2,
    ADDR_OUT1,
    ADDR_OUT2,
    ADDR_SCALE,
    ADDR_STATUS,
    CONFIG_WIDTH,
    CORDIC_ID,
    ID_WIDTH,
    SCALE_WIDTH,
    STATUS_WIDTH,
)
from cordic_engine.cordic_common.cordic_types import (
    cordic_mode,
    engine_status,
    rotation_type,
)
from cordic_engine.cordic_common.methods import format_bits, sign_extend, to_unsigned
from cordic_engine.controller import control_fsm
from cordic_engine.model import engine_config

log = logging.getLogger(__name__)


class config_word(NamedTuple):
    coordinate: int
    operation: int
    start: bool


class config_protocol:
    def __init__(
        self,
        name: str,
        coordinate_lsb: int,
        rotating_bit: int,
        start_bit: int = 0,
        coordinate_bits: int = 2,
        width: int = CONFIG_WIDTH,
    ):
        """Bit layout of the config register

        Parameters
        ----------
        name : str
            Revision name, e.g. "v2"
        coordinate_lsb : int
            Lowest bit of the coordinate field
        rotating_bit : int
            Bit set for rotation, cleared for vectoring
        start_bit : int
            Bit carrying the start pulse
        coordinate_bits : int
            Width of the coordinate field
        width : int
            Width of the whole register
        """
        self.name = name
        self.coordinate_lsb = coordinate_lsb
        self.coordinate_bits = coordinate_bits
        self.rotating_bit = rotating_bit
        self.start_bit = start_bit
        self.width = width

    def _pos(self, bit: int) -> int:
        # BitVector indexes from the MSB
        return self.width - 1 - bit

    def encode(self, word: config_word) -> int:
        if word.coordinate not in rotation_type.names:
            raise ValueError(f"Unidentified coordinate system: {word.coordinate}")
        if word.operation not in cordic_mode.names:
            raise ValueError(f"Unidentified operation: {word.operation}")
        bv = BitVector(size=self.width)
        for k in range(self.coordinate_bits):
            bv[self._pos(self.coordinate_lsb + k)] = (word.coordinate >> k) & 1
        bv[self._pos(self.rotating_bit)] = int(word.operation == cordic_mode.ROTATION)
        bv[self._pos(self.start_bit)] = int(bool(word.start))
        return bv.int_val()

    def decode(self, value: int) -> config_word:
        bv = BitVector(intVal=value & ((1 << self.width) - 1), size=self.width)
        lo = self._pos(self.coordinate_lsb + self.coordinate_bits - 1)
        coordinate = bv[lo:lo + self.coordinate_bits].int_val()
        if coordinate not in rotation_type.names:
            raise ValueError(
                f"Reserved coordinate encoding {coordinate} in config {value:#04x}"
            )
        if bv[self._pos(self.rotating_bit)]:
            operation = cordic_mode.ROTATION
        else:
            operation = cordic_mode.VECTORING
        return config_word(coordinate, operation, bool(bv[self._pos(self.start_bit)]))

    def __repr__(self):
        return f"config_protocol({self.name!r})"


CONFIG_V1 = config_protocol("v1", coordinate_lsb=2, rotating_bit=1)
CONFIG_V2 = config_protocol("v2", coordinate_lsb=1, rotating_bit=3)

protocols = {p.name: p for p in (CONFIG_V1, CONFIG_V2)}


def protocol_for(name: str = None) -> config_protocol:
    if name is None:
        name = os.getenv("CORDIC_CONFIG_REVISION", "v2")
    if name not in protocols:
        raise ValueError(f"Unidentified config protocol revision: {name}")
    return protocols[name]


class register_file:
    """Register map of the peripheral.

    Reads: 0 = id, 4 = output 1, 5 = output 2, 6 = status.
    Writes: 0 = config, 1 = operand 1, 2 = operand 2, 3 = scale (radix position).
    Unknown addresses read as 0, writes to them are dropped.
    """

    def __init__(self, config: engine_config = None, protocol=None):
        self.fsm = control_fsm(config)
        if protocol is None or isinstance(protocol, str):
            protocol = protocol_for(protocol)
        self.protocol = protocol
        self.reset()

    @property
    def width(self) -> int:
        return self.fsm.config.width

    def reset(self):
        self.fsm.reset()
        self.operand1 = 0
        self.operand2 = 0
        self.scale = 0
        self.config = 0

    def _write(self, address: int, value: int):
        if address == ADDR_CONFIG:
            self.config = value & ((1 << CONFIG_WIDTH) - 1)
            self._configure(self.config)
        elif address == ADDR_OPERAND1:
            self.operand1 = to_unsigned(value, self.width)
        elif address == ADDR_OPERAND2:
            self.operand2 = to_unsigned(value, self.width)
        elif address == ADDR_SCALE:
            self.scale = value & ((1 << SCALE_WIDTH) - 1)
        else:
            log.warning("Write of %#x to unknown register %d ignored", value, address)

    def _configure(self, value: int):
        try:
            word = self.protocol.decode(value)
        except ValueError as e:
            log.error("Config write dropped: %s", e)
            return
        if not word.start:
            return
        try:
            self.fsm.start(
                word.coordinate,
                word.operation,
                sign_extend(self.operand1, self.width),
                sign_extend(self.operand2, self.width),
                self.scale,
            )
        except ValueError as e:
            log.error("Start pulse dropped: %s", e)

    def _read(self, address: int) -> int:
        if address == ADDR_ID:
            return CORDIC_ID & ((1 << ID_WIDTH) - 1)
        elif address == ADDR_OUT1:
            return to_unsigned(self.fsm.out1, self.width)
        elif address == ADDR_OUT2:
            return to_unsigned(self.fsm.out2, self.width)
        elif address == ADDR_STATUS:
            return self.fsm.status & ((1 << STATUS_WIDTH) - 1)
        return 0

    def write_byte_reg(self, address: int, value: int):
        self._write(address, value & 0xFF)

    def write_hword_reg(self, address: int, value: int):
        self._write(address, value & 0xFFFF)

    def write_word_reg(self, address: int, value: int):
        self._write(address, value & 0xFFFFFFFF)

    def read_byte_reg(self, address: int) -> int:
        return self._read(address) & 0xFF

    def read_hword_reg(self, address: int) -> int:
        return self._read(address) & 0xFFFF

    def read_word_reg(self, address: int) -> int:
        return self._read(address) & 0xFFFFFFFF

    def tick(self, cycles: int = 1):
        for _ in range(cycles):
            self.fsm.tick()

    def start(self, coordinate: int, operation: int):
        """Host helper: write the config register with the start bit set"""
        self.write_byte_reg(
            ADDR_CONFIG, self.protocol.encode(config_word(coordinate, operation, True))
        )

    def wait_done(self, max_cycles: int = 1000) -> int:
        """Tick until status reads DONE, return the number of ticks taken"""
        cycles = 0
        while self.read_byte_reg(ADDR_STATUS) != engine_status.DONE:
            if cycles >= max_cycles:
                raise TimeoutError(
                    f"CORDIC did not finish within {max_cycles} cycles "
                    f"(status {self.read_byte_reg(ADDR_STATUS)})"
                )
            self.tick()
            cycles += 1
        return cycles

    def read_out_pair_signed(self):
        out1 = sign_extend(self.read_word_reg(ADDR_OUT1), self.width)
        out2 = sign_extend(self.read_word_reg(ADDR_OUT2), self.width)
        log.debug(
            "Read out1=%s out2=%s",
            format_bits(out1, self.width),
            format_bits(out2, self.width),
        )
        return out1, out2
