"""WOPR IRC plugin: relays IRC channels to the host's channel abstraction."""

__version__ = "1.0.0"
