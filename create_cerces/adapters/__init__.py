"""Adapters — bindings for child processes and remote template fetching.

Public re-exports for convenient access.
"""

from create_cerces.adapters.base import CommandRunner, TemplateFetcher
from create_cerces.adapters.mock import MockCommandRunner, MockFetcher

__all__ = [
    "CommandRunner",
    "MockCommandRunner",
    "MockFetcher",
    "TemplateFetcher",
]
