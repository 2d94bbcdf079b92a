"""
Template model — what a starter project is and how to parameterize it.

Descriptors are defined once, in the template registry, and never
mutated: every model here is frozen.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Replaced with the target directory's basename during materialization.
DIR_NAME_TOKEN = "%%DIR_NAME%%"


class TemplateParameter(BaseModel):
    """A user-supplied value substituted into several template files.

    Attributes:
        name:    Parameter name used on the command line (``--param name=value``).
        token:   Literal placeholder replaced by the value.
        prompt:  Question shown when the value is collected interactively.
        files:   Relative paths rewritten in the same pass.
        default: Value offered at the prompt (None = no default).
    """

    model_config = ConfigDict(frozen=True)

    name: str
    token: str
    prompt: str
    files: tuple[str, ...] = ()
    default: str | None = None


class TemplateDescriptor(BaseModel):
    """A starter project available for scaffolding."""

    model_config = ConfigDict(frozen=True)

    key: str
    description: str = ""
    remote_source: str                      # org/repo/path[#ref]
    requires_runtime: str | None = None     # e.g. "bun"
    has_dev_server: bool = False
    substitution_files: tuple[str, ...] = ()
    post_install_scripts: tuple[str, ...] = ()
    parameters: tuple[TemplateParameter, ...] = Field(default_factory=tuple)
    follow_up: str | None = None            # may reference parameters as {name}
    delegate_package: str | None = None     # run `<exec> create <pkg>` instead of fetching

    @property
    def delegated(self) -> bool:
        """Whether materialization is handed to the package manager."""
        return self.delegate_package is not None

    def get_parameter(self, name: str) -> TemplateParameter | None:
        """Look up a parameter by name."""
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def render_follow_up(self, values: dict[str, str]) -> str | None:
        """Format the follow-up text with the collected parameter values."""
        if not self.follow_up:
            return None
        try:
            return self.follow_up.format(**values)
        except KeyError:
            return self.follow_up
