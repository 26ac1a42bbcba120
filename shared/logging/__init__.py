from .json import CustomJsonFormatter, SensitiveDataFilter, configure_logging

__all__ = [
    "CustomJsonFormatter",
    "SensitiveDataFilter",
    "configure_logging",
]
