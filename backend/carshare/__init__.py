"""CarShare cost splitting service."""

__version__ = "1.0.0"
