"""Core types shared by every layer: results, exit codes, config."""

from .config import Config, ConfigError, DataConfig, RetentionConfig, load_config
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    # config
    "Config",
    "ConfigError",
    "DataConfig",
    "RetentionConfig",
    "load_config",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
]
