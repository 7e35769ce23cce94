"""Mortgage calculation engine: payments, schedules, refinance, rent-vs-buy and pre-approval."""

__all__ = ["__version__"]

# Keep in sync with the version declared in ``pyproject.toml``
__version__ = "0.1.0"
