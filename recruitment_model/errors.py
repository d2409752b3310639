# recruitment_model/errors.py
"""Exception types raised by the estimation core."""


class InvalidInput(ValueError):
    """Raised when an input is empty or malformed where a value is structurally required.

    Below-threshold sample sizes are not errors; the engines return fallback
    results with a low confidence or ``poor`` data quality instead.
    """

    pass


__all__ = ["InvalidInput"]
