"""phasectl: type-aware phase lifecycle and permission core for work items."""

__version__ = "0.1.0"
