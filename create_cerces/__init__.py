"""create-cerces — scaffold a new cerces project from a remote template."""

__version__ = "0.1.0"
