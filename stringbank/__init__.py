"""stringbank - content-addressed store of string analyses with filter queries."""

__version__ = "0.1.0"
