"""
Package manager hint detection — which manager launched this process?

``npm create``, ``pnpm create``, ``yarn create`` and ``bun create`` all
export a user agent string to the child::

    npm_config_user_agent="pnpm/8.6.0 npm/? node/v20.3.0 linux x64"

The first ``name/version`` token identifies the invoking manager.

Explicit overrides (``CERCES_PACKAGE_MANAGER`` together with
``CERCES_PACKAGE_MANAGER_VERSION``) win over the user agent so that
tests and CI get deterministic results.

Every function takes the environment mapping as an argument; nothing
here reads ``os.environ`` on its own.
"""

from __future__ import annotations

import os
from typing import Callable, Mapping

from create_cerces.core.models.package_manager import PackageManagerHint

USER_AGENT_VAR = "npm_config_user_agent"
OVERRIDE_NAME_VAR = "CERCES_PACKAGE_MANAGER"
OVERRIDE_VERSION_VAR = "CERCES_PACKAGE_MANAGER_VERSION"

HintProvider = Callable[[], PackageManagerHint | None]


def parse_user_agent(user_agent: str | None) -> PackageManagerHint | None:
    """Extract ``{name, version}`` from a package manager user agent string.

    >>> parse_user_agent("yarn/1.22.19 npm/? node/v18.16.0 darwin arm64")
    PackageManagerHint(name='yarn', version='1.22.19')
    """
    if not user_agent:
        return None
    first = user_agent.strip().split(" ", 1)[0]
    name, sep, version = first.partition("/")
    if not sep or not name:
        return None
    return PackageManagerHint(name=name.lower(), version=version or "0.0.0")


def user_agent_hint(environ: Mapping[str, str] | None = None) -> PackageManagerHint | None:
    """Hint derived from ``npm_config_user_agent``."""
    env = os.environ if environ is None else environ
    return parse_user_agent(env.get(USER_AGENT_VAR))


def override_hint(environ: Mapping[str, str] | None = None) -> PackageManagerHint | None:
    """Hint from the explicit override pair, or None unless both are set."""
    env = os.environ if environ is None else environ
    name = env.get(OVERRIDE_NAME_VAR, "").strip()
    version = env.get(OVERRIDE_VERSION_VAR, "").strip()
    if not name or not version:
        return None
    return PackageManagerHint(name=name.lower(), version=version)


def environment_hint_provider(environ: Mapping[str, str] | None = None) -> HintProvider:
    """Bind ``user_agent_hint`` to an environment snapshot."""
    env = dict(os.environ if environ is None else environ)
    return lambda: user_agent_hint(env)
