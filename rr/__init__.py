"""Release retention: decide which deployed releases must be kept."""

__version__ = "0.1.0"
