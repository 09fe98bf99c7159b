"""taxengine — Indian income tax computation engine (Old vs New regime)."""

__version__ = "0.1.0"
