"""Route draft synchronization and promotion engine."""

__version__ = "0.1.0"
