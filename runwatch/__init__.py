"""runwatch - Live spec progress and status tracking for relevant cloud runs."""

__version__ = "0.1.0"

from runwatch.config import Config
from runwatch.data_source import RelevantRunSpecsDataSource

__all__ = ["Config", "RelevantRunSpecsDataSource", "__version__"]
