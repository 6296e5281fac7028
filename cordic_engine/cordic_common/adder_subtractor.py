from cordic_engine.cordic_common.methods import wrap


class adder_subtractor:
    def __init__(self, bits: int):
        assert bits >= 2, "Adder must be at least 2 bits wide"
        self.bits = bits

    def add(self, input_a: int, input_b: int):
        return self._add(input_a, input_b, 0)

    def sub(self, input_a: int, input_b: int):
        return self._add(input_a, input_b, 1)

    def add_sub(self, input_a: int, input_b: int, sigma: int):
        """Adds input_b to input_a when sigma is +1, subtracts it when sigma is -1"""
        return self._add(input_a, input_b, 0 if sigma > 0 else 1)

    def _add(self, input_a: int, input_b: int, D: int):
        """Adds/subtracts input_b to/from input_a.

        Args:
            input_a (int): minuend
            input_b (int): subtrahend
            D (int): perform addition (0) or subtraction (1)

        Returns:
            int: calculation result, wrapped to self.bits
        """
        b = -input_b if D else input_b
        return wrap(input_a + b, self.bits)

    def shift(self, value: int, amount: int):
        """Arithmetic shift right by amount, rounding to nearest.

        A negative amount shifts left. The shifted value is not wrapped, the
        adder consuming it wraps the sum.
        """
        if amount <= 0:
            return value << -amount
        return (value + (1 << (amount - 1))) >> amount
