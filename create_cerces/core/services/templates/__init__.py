"""Template catalog and materialization."""

from create_cerces.core.services.templates.materializer import (
    TemplateMaterializer,
    check_target_directory,
    prepare_target_directory,
    resolve_parameters,
    substitute_placeholder,
)
from create_cerces.core.services.templates.registry import (
    TEMPLATES,
    descriptor_for,
    template_keys,
)

__all__ = [
    "TEMPLATES",
    "TemplateMaterializer",
    "check_target_directory",
    "descriptor_for",
    "prepare_target_directory",
    "resolve_parameters",
    "substitute_placeholder",
    "template_keys",
]
