"""
Scaffold request — everything the interactive layer collected.

Built once from user input, consumed once by the orchestrator.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ScaffoldRequest(BaseModel):
    """A single "create a project" request.

    Attributes:
        target_directory: Where the project goes (resolved to an absolute path).
        template_key:     Registry key of the template.
        auto_install:     Install dependencies after materializing.
        extra_parameters: Template parameter values, by parameter name.
    """

    model_config = ConfigDict(frozen=True)

    target_directory: Path
    template_key: str
    auto_install: bool = False
    extra_parameters: dict[str, str] = Field(default_factory=dict)

    @field_validator("target_directory")
    @classmethod
    def _resolve_target(cls, value: Path) -> Path:
        return Path(value).expanduser().resolve()

    @property
    def directory_name(self) -> str:
        """Basename of the target directory (substituted for ``%%DIR_NAME%%``)."""
        return self.target_directory.name
