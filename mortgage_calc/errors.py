"""Exceptions raised by the calculation engine."""


class InvalidInput(ValueError):
    """Raised when loan parameters fail validation.

    Validation happens before any computation starts, so a raised
    ``InvalidInput`` never leaves a partially computed result behind.
    """
