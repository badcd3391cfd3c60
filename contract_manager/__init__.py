"""Contract Manager: an authorized registry of known contract addresses."""

__version__ = "0.1.0"
