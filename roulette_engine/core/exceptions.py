class TableSetupError(Exception):
    """A required collaborator (presenter, wheel) was missing when the table was built."""


class InvalidPocketError(ValueError):
    def __init__(self, value, message: str = None):
        self.value = value
        super().__init__(message or f"Not a roulette pocket: {value!r}")


class InvalidBetError(ValueError):
    def __init__(self, category: str, message: str):
        self.category = category
        super().__init__(message)
