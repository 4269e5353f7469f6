"""commitgate - content rules for incoming commits."""

__version__ = "0.1.0"
