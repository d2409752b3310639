"""
Forecasting and statistical estimation core for recruitment operations.
"""

from recruitment_model.errors import InvalidInput
from recruitment_model.state.observations import Observation

__version__ = "0.1.0"

__all__ = ["InvalidInput", "Observation", "__version__"]
