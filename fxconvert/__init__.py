"""Command-line currency converter backed by a time-bounded response cache."""

__version__ = "1.0.0"
