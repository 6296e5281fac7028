import logging

from cordic_engine.cordic_common.cordic_types import iteration_state
from cordic_engine.recurrence import cordic_strategy

log = logging.getLogger(__name__)


class iteration_engine:
    """Runs the shift-add recurrence of a strategy over its whole schedule.

    There is no convergence test: a loaded run always takes exactly
    len(strategy) steps. The engine can be stepped one iteration at a time,
    which is how the control state machine drives it.
    """

    def __init__(self):
        self._strategy = None
        self._state = iteration_state(0, 0, 0)
        self._index = 0

    @property
    def state(self) -> iteration_state:
        return self._state

    @property
    def index(self) -> int:
        return self._index

    @property
    def steps(self) -> int:
        return 0 if self._strategy is None else len(self._strategy)

    @property
    def done(self) -> bool:
        return self._index >= self.steps

    def load(self, strategy: cordic_strategy, state: iteration_state):
        self._strategy = strategy
        self._state = iteration_state(*state)
        self._index = 0
        log.debug(
            "Loaded %d steps, x=%d y=%d z=%d",
            len(strategy), self._state.x, self._state.y, self._state.z,
        )

    def step(self) -> iteration_state:
        if self.done:
            return self._state
        sigma = self._strategy.decision(self._state)
        self._state = self._strategy.step(self._state, self._index, sigma)
        self._index += 1
        return self._state

    def run(self, strategy: cordic_strategy, state: iteration_state) -> iteration_state:
        self.load(strategy, state)
        while not self.done:
            self.step()
        return self._state
