"""Street View screenshot capture for addresses and map locations."""

__version__ = "0.1.0"
