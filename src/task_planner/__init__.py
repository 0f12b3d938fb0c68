"""Plan evaluation engine for pull-based task orchestration."""

__version__ = "0.1.0"
