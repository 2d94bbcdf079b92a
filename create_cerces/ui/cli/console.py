"""
Click-backed console and interactive input collection.

Thin glue over ``click``: everything here either prints or prompts.
An interrupted prompt (Ctrl-C, closed stdin) becomes ``UserAborted``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import click

from create_cerces.core.errors import UserAborted
from create_cerces.core.models.request import ScaffoldRequest
from create_cerces.core.services.templates.materializer import check_target_directory
from create_cerces.core.services.templates.registry import (
    TEMPLATES,
    descriptor_for,
    template_keys,
)
from create_cerces.core.use_cases.scaffold import Console, build_request


class ClickConsole(Console):
    """Console printing with ``click.secho``.

    Args:
        assume_yes: Answer every confirmation with yes, without asking.
    """

    def __init__(self, assume_yes: bool = False) -> None:
        self._assume_yes = assume_yes

    def step(self, message: str) -> None:
        click.secho(f"⥕ {message}", fg="yellow", bold=True)

    def success(self, message: str) -> None:
        click.secho(f"√ {message}", fg="green", bold=True)

    def warn(self, message: str) -> None:
        click.secho(f"! {message}", fg="yellow", bold=True)

    def info(self, message: str) -> None:
        click.echo(f"  {message}")

    def confirm(self, question: str, default: bool = True) -> bool:
        if self._assume_yes:
            return True
        return _ask(lambda: click.confirm(question, default=default))


def _ask(prompt: Callable[[], Any]) -> Any:
    try:
        return prompt()
    except click.Abort as e:
        raise UserAborted() from e


def collect_request(
    directory: str | None,
    template: str | None,
    install: bool | None,
    params: dict[str, str],
    assume_yes: bool = False,
) -> ScaffoldRequest:
    """Prompt for whatever the command line left out, then validate.

    The directory is checked right after it is known, before any other
    question, so a non-empty target fails fast.
    """
    if directory is None:
        directory = _ask(lambda: click.prompt(
            'Enter the directory for the new project (use "." for current directory)',
            default=".",
        ))
    check_target_directory(Path(directory).expanduser().resolve())

    if template is None:
        click.echo()
        for key, descriptor in TEMPLATES.items():
            click.echo(f"  {click.style(key, fg='cyan', bold=True)}: {descriptor.description}")
        template = _ask(lambda: click.prompt(
            "Select a template",
            type=click.Choice(template_keys()),
            show_choices=False,
        ))

    descriptor = descriptor_for(template)
    values = dict(params)
    for param in descriptor.parameters:
        if param.name not in values:
            values[param.name] = _ask(lambda p=param: click.prompt(p.prompt, default=p.default))

    if install is None:
        install = True if assume_yes else _ask(lambda: click.confirm(
            "Do you want to automatically install dependencies?",
            default=True,
        ))

    return build_request(directory, template, install, values)
