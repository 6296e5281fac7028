import logging

from cordic_engine.cordic_common.cordic_types import (
    cordic_mode,
    engine_status,
    iteration_state,
    rotation_type,
)
from cordic_engine.cordic_common.methods import format_bits
from cordic_engine.dispatcher import mode_dispatcher
from cordic_engine.engine import iteration_engine
from cordic_engine.model import engine_config

log = logging.getLogger(__name__)


class control_fsm:
    """READY -> BUSY -> DONE sequencer around the iteration engine.

    One call to tick() is one clock cycle. Operands and mode are sampled
    when a run starts, so the host may rewrite them while the engine is
    busy. out1/out2 keep the previous result until the new one latches.
    """

    def __init__(self, config: engine_config = None):
        self.config = engine_config() if config is None else config
        self.dispatcher = mode_dispatcher(self.config)
        self._engine = iteration_engine()
        self._rot_type = rotation_type.CIRCULAR
        self._mode = cordic_mode.ROTATION
        self.reset()

    def reset(self):
        self.status = engine_status.READY
        self.out1 = 0
        self.out2 = 0
        self.cycles = 0
        self._engine = iteration_engine()

    @property
    def busy(self) -> bool:
        return self.status == engine_status.BUSY

    @property
    def in_flight_state(self) -> iteration_state:
        return self._engine.state

    @property
    def steps_taken(self) -> int:
        return self._engine.index

    def start(
        self,
        rot_type: int,
        mode: int,
        operand1: int,
        operand2: int,
        radix_position: int = 0,
    ) -> bool:
        """Begin a run from READY or DONE.

        Returns False when the pulse is ignored because a run is in flight.
        Raises ValueError on an unknown coordinate, operation or radix.
        """
        if self.busy:
            log.debug("Start ignored, engine is busy")
            return False
        strategy, state = self.dispatcher.prepare(
            rot_type, mode, operand1, operand2, radix_position
        )
        self._rot_type = rot_type
        self._mode = mode
        self._engine.load(strategy, state)
        self.status = engine_status.BUSY
        log.debug(
            "Started %s %s, op1=%s op2=%s",
            rotation_type.names[rot_type],
            cordic_mode.names[mode],
            format_bits(operand1, self.config.width),
            format_bits(operand2, self.config.width),
        )
        return True

    def tick(self):
        self.cycles += 1
        if not self.busy:
            return
        self._engine.step()
        if self._engine.done:
            self.out1, self.out2 = self.dispatcher.postprocess(
                self._rot_type, self._mode, self._engine.state
            )
            self.status = engine_status.DONE
            log.debug(
                "Done after %d steps, out1=%s out2=%s",
                self._engine.index,
                format_bits(self.out1, self.config.width),
                format_bits(self.out2, self.config.width),
            )
