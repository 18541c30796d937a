"""Version information for aerotab."""

__version__ = "0.1.0"
