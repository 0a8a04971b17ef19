import secrets


class TrueRNG:
    """
    A wrapper around Python's `secrets` module to provide cryptographically strong
    random numbers for the outcome draw and the spin timeline.
    """

    # Granularity of random_float; 2**53 keeps every value exactly representable
    FLOAT_PRECISION = 2**53

    @staticmethod
    def random_int(min_val: int, max_val: int) -> int:
        """Returns a random integer in the range [min_val, max_val] (inclusive)."""
        if min_val > max_val:
            raise ValueError("min_val must be less than or equal to max_val")
        return min_val + secrets.randbelow(max_val - min_val + 1)

    @classmethod
    def random_float(cls) -> float:
        """Returns a random float in the range [0.0, 1.0)."""
        return secrets.randbelow(cls.FLOAT_PRECISION) / cls.FLOAT_PRECISION

    def uniform(self, low: float, span: float) -> float:
        """Returns a float in [low, low + span)."""
        return low + self.random_float() * span


rng = TrueRNG()
