from .loaders import ConfigLoadError, load_config
from .models import MainConfig

__all__ = ["ConfigLoadError", "MainConfig", "load_config"]
