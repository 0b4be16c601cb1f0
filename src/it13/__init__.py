"""IT13 technician portal API."""

__version__ = "0.1.0"
