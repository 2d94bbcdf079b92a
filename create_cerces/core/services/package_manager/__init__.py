"""Package manager detection and command dispatch."""

from create_cerces.core.services.package_manager.detection import (
    OVERRIDE_NAME_VAR,
    OVERRIDE_VERSION_VAR,
    USER_AGENT_VAR,
    parse_user_agent,
)
from create_cerces.core.services.package_manager.resolver import (
    BinaryProbeResolver,
    CachedResolver,
    EnvironmentResolver,
    PackageManagerResolver,
    create_resolver,
    profile_for,
)

__all__ = [
    "BinaryProbeResolver",
    "CachedResolver",
    "EnvironmentResolver",
    "OVERRIDE_NAME_VAR",
    "OVERRIDE_VERSION_VAR",
    "PackageManagerResolver",
    "USER_AGENT_VAR",
    "create_resolver",
    "parse_user_agent",
    "profile_for",
]
