import logging

import numpy as np
import pytest

import cordic_engine.cordic_common.methods as methods
from cordic_engine.cordic_common.cordic_constants import (
    ADDR_CONFIG,
    ADDR_ID,
    ADDR_OPERAND1,
    ADDR_OPERAND2,
    ADDR_OUT1,
    ADDR_OUT2,
    ADDR_SCALE,
    ADDR_STATUS,
)
from cordic_engine.cordic_common.cordic_types import (
    cordic_mode,
    engine_status,
    rotation_type,
)
from cordic_engine.registers import (
    CONFIG_V1,
    CONFIG_V2,
    config_word,
    protocol_for,
    register_file,
)

CIRCULAR = rotation_type.CIRCULAR
LINEAR = rotation_type.LINEAR
HYPERBOLIC = rotation_type.HYPERBOLIC
ROTATION = cordic_mode.ROTATION
VECTORING = cordic_mode.VECTORING


def write_angle(regs, angle):
    regs.write_word_reg(ADDR_OPERAND1, methods.to_fixed_point(angle, 16, 2))


def test_id_register():
    regs = register_file()
    assert regs.read_word_reg(ADDR_ID) == 0xBADCAFFE
    assert regs.read_hword_reg(ADDR_ID) == 0xAFFE
    assert regs.read_byte_reg(ADDR_ID) == 0xFE


def test_reset_state_is_idempotent():
    regs = register_file()
    for _ in range(2):
        regs.reset()
        assert regs.read_byte_reg(ADDR_STATUS) == engine_status.READY
        assert regs.read_hword_reg(ADDR_OUT1) == 0
        assert regs.read_hword_reg(ADDR_OUT2) == 0

    write_angle(regs, 0.5)
    regs.start(CIRCULAR, ROTATION)
    regs.wait_done()
    assert regs.read_hword_reg(ADDR_OUT1) != 0
    regs.reset()
    assert regs.read_byte_reg(ADDR_STATUS) == engine_status.READY
    assert regs.read_out_pair_signed() == (0, 0)


@pytest.mark.parametrize(
    "rot_type, cycles", [(CIRCULAR, 16), (LINEAR, 16), (HYPERBOLIC, 17)]
)
def test_busy_for_schedule_length(rot_type, cycles):
    regs = register_file()
    regs.write_byte_reg(ADDR_SCALE, 11)
    regs.start(rot_type, ROTATION)
    assert regs.read_byte_reg(ADDR_STATUS) == engine_status.BUSY
    regs.tick(cycles - 1)
    assert regs.read_byte_reg(ADDR_STATUS) == engine_status.BUSY
    regs.tick()
    assert regs.read_byte_reg(ADDR_STATUS) == engine_status.DONE


def test_sin_cos_through_registers():
    regs = register_file(protocol="v2")
    angle = np.deg2rad(30)
    write_angle(regs, angle)
    # rotating, circular, start as a v2 host writes it
    regs.write_byte_reg(ADDR_CONFIG, (CIRCULAR << 1) | (1 << 3) | 1)
    assert regs.wait_done() == 16
    out1, out2 = regs.read_out_pair_signed()
    assert abs(methods.to_double_single(out1, 16, 2) - np.cos(angle)) < 0.01
    assert abs(methods.to_double_single(out2, 16, 2) - np.sin(angle)) < 0.01


def test_negative_outputs_read_back_signed():
    regs = register_file()
    write_angle(regs, -1.0)
    regs.start(CIRCULAR, ROTATION)
    regs.wait_done()
    assert regs.read_hword_reg(ADDR_OUT2) & 0x8000
    _, out2 = regs.read_out_pair_signed()
    assert abs(methods.to_double_single(out2, 16, 2) - np.sin(-1.0)) < 0.01


def test_start_while_busy_is_ignored():
    regs = register_file()
    write_angle(regs, 0.4)
    regs.start(CIRCULAR, ROTATION)
    regs.tick(6)
    in_flight = regs.fsm.in_flight_state

    write_angle(regs, -1.2)
    regs.start(HYPERBOLIC, VECTORING)
    assert regs.fsm.in_flight_state == in_flight
    assert regs.fsm.steps_taken == 6
    assert regs.wait_done() == 10

    _, out2 = regs.read_out_pair_signed()
    assert abs(methods.to_double_single(out2, 16, 2) - np.sin(0.4)) < 0.01


def test_outputs_hold_until_next_result_latches():
    regs = register_file()
    write_angle(regs, 0.4)
    regs.start(CIRCULAR, ROTATION)
    regs.wait_done()
    first = regs.read_out_pair_signed()

    write_angle(regs, -0.4)
    regs.start(CIRCULAR, ROTATION)
    assert regs.read_byte_reg(ADDR_STATUS) == engine_status.BUSY
    for _ in range(15):
        regs.tick()
        assert regs.read_out_pair_signed() == first
    regs.tick()
    assert regs.read_byte_reg(ADDR_STATUS) == engine_status.DONE
    second = regs.read_out_pair_signed()
    assert second[0] == pytest.approx(first[0], abs=4)
    assert second[1] == pytest.approx(-first[1], abs=4)


def test_operands_sampled_at_start():
    regs = register_file()
    write_angle(regs, 0.4)
    regs.start(CIRCULAR, ROTATION)
    write_angle(regs, 1.2)
    regs.wait_done()
    _, out2 = regs.read_out_pair_signed()
    assert abs(methods.to_double_single(out2, 16, 2) - np.sin(0.4)) < 0.01


def test_write_masking():
    regs = register_file()
    regs.write_word_reg(ADDR_OPERAND1, 0x12345678)
    assert regs.operand1 == 0x5678
    regs.write_hword_reg(ADDR_OPERAND2, -2)
    assert regs.operand2 == 0xFFFE
    regs.write_byte_reg(ADDR_OPERAND2, 0x1FF)
    assert regs.operand2 == 0xFF
    regs.write_word_reg(ADDR_SCALE, 0x10B)
    assert regs.scale == 0x0B


def test_unknown_addresses(caplog):
    regs = register_file()
    with caplog.at_level(logging.WARNING, logger="cordic_engine.registers"):
        regs.write_byte_reg(7, 1)
    assert "unknown register" in caplog.text
    assert regs.read_word_reg(7) == 0
    assert regs.read_word_reg(ADDR_SCALE) == 0


def test_reserved_coordinate_drops_start(caplog):
    regs = register_file(protocol="v2")
    with caplog.at_level(logging.ERROR, logger="cordic_engine.registers"):
        regs.write_byte_reg(ADDR_CONFIG, (3 << 1) | (1 << 3) | 1)
    assert any(r.levelno == logging.ERROR for r in caplog.records)
    assert regs.read_byte_reg(ADDR_STATUS) == engine_status.READY
    regs.tick(20)
    assert regs.read_byte_reg(ADDR_STATUS) == engine_status.READY


def test_invalid_radix_drops_start(caplog):
    regs = register_file()
    regs.write_byte_reg(ADDR_SCALE, 16)
    with caplog.at_level(logging.ERROR, logger="cordic_engine.registers"):
        regs.start(LINEAR, ROTATION)
    assert "Start pulse dropped" in caplog.text
    assert regs.read_byte_reg(ADDR_STATUS) == engine_status.READY


def test_config_without_start_does_nothing():
    regs = register_file(protocol="v2")
    regs.write_byte_reg(ADDR_CONFIG, CONFIG_V2.encode(config_word(CIRCULAR, ROTATION, False)))
    regs.tick(5)
    assert regs.read_byte_reg(ADDR_STATUS) == engine_status.READY


def test_wait_done_times_out():
    regs = register_file()
    with pytest.raises(TimeoutError):
        regs.wait_done(max_cycles=10)


def test_rearm_from_done():
    regs = register_file()
    for angle in (0.2, -0.7, 1.1):
        write_angle(regs, angle)
        regs.start(CIRCULAR, ROTATION)
        assert regs.wait_done() == 16
        _, out2 = regs.read_out_pair_signed()
        assert abs(methods.to_double_single(out2, 16, 2) - np.sin(angle)) < 0.01


def test_multiply_through_registers():
    regs = register_file()
    regs.write_word_reg(ADDR_OPERAND1, methods.to_fixed_point(1.25, 16, 5))
    regs.write_word_reg(ADDR_OPERAND2, methods.to_fixed_point(2.5, 16, 5))
    regs.write_byte_reg(ADDR_SCALE, 11)
    regs.start(LINEAR, ROTATION)
    regs.wait_done()
    _, product = regs.read_out_pair_signed()
    assert abs(methods.to_double_single(product, 16, 5) - 3.125) / 3.125 < 0.01


def test_protocol_round_trip():
    for protocol in (CONFIG_V1, CONFIG_V2):
        for coordinate in (CIRCULAR, LINEAR, HYPERBOLIC):
            for operation in (ROTATION, VECTORING):
                for start in (False, True):
                    word = config_word(coordinate, operation, start)
                    assert protocol.decode(protocol.encode(word)) == word, \
                        f"{protocol} lost {word}"


def test_protocol_encodings():
    assert CONFIG_V1.encode(config_word(CIRCULAR, ROTATION, True)) == 0b0011
    assert CONFIG_V1.encode(config_word(HYPERBOLIC, VECTORING, True)) == 0b1001
    assert CONFIG_V2.encode(config_word(CIRCULAR, ROTATION, True)) == 0b1001
    assert CONFIG_V2.encode(config_word(HYPERBOLIC, VECTORING, True)) == 0b0101
    assert CONFIG_V2.encode(config_word(LINEAR, ROTATION, True)) == 0b1011
    assert CONFIG_V2.decode(0b1001) == config_word(CIRCULAR, ROTATION, True)


def test_protocol_rejects_reserved():
    with pytest.raises(ValueError):
        CONFIG_V1.decode(0b1101)
    with pytest.raises(ValueError):
        CONFIG_V2.decode(0b0111)
    with pytest.raises(ValueError):
        CONFIG_V2.encode(config_word(3, ROTATION, True))


def test_protocol_selection(monkeypatch):
    monkeypatch.delenv("CORDIC_CONFIG_REVISION", raising=False)
    assert protocol_for() is CONFIG_V2
    monkeypatch.setenv("CORDIC_CONFIG_REVISION", "v1")
    assert protocol_for() is CONFIG_V1
    assert register_file().protocol is CONFIG_V1
    assert protocol_for("v2") is CONFIG_V2
    with pytest.raises(ValueError):
        protocol_for("v3")


def test_v1_host():
    regs = register_file(protocol="v1")
    write_angle(regs, 0.5)
    regs.write_byte_reg(ADDR_CONFIG, (CIRCULAR << 2) | (1 << 1) | 1)
    regs.wait_done()
    out1, _ = regs.read_out_pair_signed()
    assert abs(methods.to_double_single(out1, 16, 2) - np.cos(0.5)) < 0.01
