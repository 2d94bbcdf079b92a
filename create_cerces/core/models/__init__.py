"""
Domain models — Pydantic types for the scaffolder.

All models are re-exported here for convenient access:

    from create_cerces.core.models import TemplateDescriptor, PackageManagerProfile
"""

from create_cerces.core.models.command import CommandResult
from create_cerces.core.models.package_manager import (
    SUPPORTED_MANAGERS,
    PackageManagerHint,
    PackageManagerProfile,
)
from create_cerces.core.models.request import ScaffoldRequest
from create_cerces.core.models.template import (
    DIR_NAME_TOKEN,
    TemplateDescriptor,
    TemplateParameter,
)

__all__ = [
    # command.py
    "CommandResult",
    # template.py
    "DIR_NAME_TOKEN",
    # package_manager.py
    "PackageManagerHint",
    "PackageManagerProfile",
    "SUPPORTED_MANAGERS",
    # request.py
    "ScaffoldRequest",
    "TemplateDescriptor",
    "TemplateParameter",
]
