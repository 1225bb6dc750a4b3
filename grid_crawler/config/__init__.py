"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import GlobalConfig, OutputFormat, RunPlan

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "GlobalConfig",
    "OutputFormat",
    "RunPlan",
]
