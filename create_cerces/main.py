"""
create-cerces — CLI entrypoint.

Usage:
    create-cerces new my-app --template cf-workers
    create-cerces templates
    create-cerces detect --json
    python -m create_cerces.main --help
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from create_cerces import __version__
from create_cerces.core.config.loader import ConfigError, Settings, load_settings
from create_cerces.core.observability.logging_config import (
    LOG_FILE_LEVEL_VAR,
    LOG_FILE_VAR,
    resolve_level,
    setup_logging,
)
from create_cerces.core.services.package_manager.resolver import STRATEGIES
from create_cerces.core.services.templates.registry import TEMPLATES, template_keys


@click.group()
@click.version_option(version=__version__, prog_name="create-cerces")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to a settings file (default: ~/.config/create-cerces/config.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """create-cerces — scaffold a cerces project from a template."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(LOG_FILE_VAR),
        log_file_level=os.environ.get(LOG_FILE_LEVEL_VAR),
    )


def _load_settings(ctx: click.Context) -> Settings:
    """Load settings or exit with the config error."""
    try:
        return load_settings(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


def _parse_params(
    ctx: click.Context,
    param: click.Parameter,
    value: tuple[str, ...],
) -> dict[str, str]:
    """``("database=prod-db",)`` → ``{"database": "prod-db"}``."""
    parsed: dict[str, str] = {}
    for item in value:
        name, sep, val = item.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"expected NAME=VALUE, got '{item}'")
        parsed[name.strip()] = val
    return parsed


@cli.command()
@click.argument("directory", required=False)
@click.option(
    "--template", "-t",
    type=click.Choice(template_keys()),
    default=None,
    help="Template to use (default: ask).",
)
@click.option(
    "--install/--no-install",
    default=None,
    help="Install dependencies after creating the project (default: ask).",
)
@click.option(
    "--param", "-p", "params",
    multiple=True,
    metavar="NAME=VALUE",
    callback=_parse_params,
    help="Template parameter, e.g. --param database=my-db. Repeatable.",
)
@click.option(
    "--resolver",
    type=click.Choice(STRATEGIES),
    default=None,
    help="Package manager detection strategy (default: from settings, 'env').",
)
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Answer yes to every question.")
@click.option("--mock", is_flag=True, help="Use mock adapters (no network, no processes).")
@click.pass_context
def new(
    ctx: click.Context,
    directory: str | None,
    template: str | None,
    install: bool | None,
    params: dict[str, str],
    resolver: str | None,
    assume_yes: bool,
    mock: bool,
) -> None:
    """Create a new project in DIRECTORY from a template.

    Examples:

        create-cerces new my-app --template bun --install

        create-cerces new api --template cf-workers-d1 -p database=api-db

        create-cerces new demo -t aws-lambda --no-install --mock
    """
    from create_cerces.core.services.package_manager.resolver import create_resolver
    from create_cerces.core.use_cases.scaffold import ScaffoldOrchestrator
    from create_cerces.ui.cli.console import ClickConsole, collect_request

    settings = _load_settings(ctx)

    if mock:
        from create_cerces.adapters.mock import MockCommandRunner, MockFetcher

        runner = MockCommandRunner()
        fetcher = MockFetcher()
    else:
        from create_cerces.adapters.fetch.github import GitHubTarballFetcher
        from create_cerces.adapters.shell.command import SubprocessRunner

        runner = SubprocessRunner()
        fetcher = GitHubTarballFetcher(
            timeout=settings.fetch_timeout,
            token=settings.github_token,
            default_ref=settings.template_ref,
        )

    orchestrator = ScaffoldOrchestrator(
        runner=runner,
        fetcher=fetcher,
        resolver=create_resolver(resolver or settings.resolver, runner),
        console=ClickConsole(assume_yes=assume_yes),
    )

    result = orchestrator.run(
        lambda: collect_request(directory, template, install, params, assume_yes=assume_yes)
    )

    if mock and not ctx.obj.get("quiet"):
        click.echo()
        click.secho("[mock] commands that would have run:", fg="cyan")
        for call in runner.call_log:
            click.echo(f"   $ {call.display}")

    if result.error:
        click.secho(f"⤬ Error: {result.error}", fg="red", bold=True, err=True)
        cause = result.error.__cause__
        if ctx.obj.get("debug") and cause is not None:
            click.secho(f"   {type(cause).__name__}: {cause}", fg="bright_black", err=True)
        sys.exit(result.exit_code)

    if result.next_steps and not ctx.obj.get("quiet"):
        click.echo()
        click.secho("Next steps:", bold=True)
        for step in result.next_steps:
            click.echo(f"   {step}")
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def templates(as_json: bool) -> None:
    """List the available templates."""
    if as_json:
        data = [t.model_dump(mode="json") for t in TEMPLATES.values()]
        click.echo(json.dumps(data, indent=2))
        return

    click.secho("\n📦 Templates:", fg="cyan", bold=True)
    for key, descriptor in TEMPLATES.items():
        flags = []
        if descriptor.requires_runtime:
            flags.append(f"needs {descriptor.requires_runtime}")
        if descriptor.has_dev_server:
            flags.append("dev server")
        if descriptor.parameters:
            flags.append("params: " + ", ".join(p.name for p in descriptor.parameters))
        label = f"  [{'; '.join(flags)}]" if flags else ""
        click.echo(f"   • {key:<15} {descriptor.description}{label}")
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option(
    "--resolver",
    type=click.Choice(STRATEGIES),
    default=None,
    help="Package manager detection strategy (default: from settings, 'env').",
)
@click.pass_context
def detect(ctx: click.Context, as_json: bool, resolver: str | None) -> None:
    """Show which package manager would be used."""
    from create_cerces.adapters.shell.command import SubprocessRunner
    from create_cerces.core.errors import UnsupportedPackageManager
    from create_cerces.core.services.package_manager.resolver import create_resolver

    settings = _load_settings(ctx)
    strategy = resolver or settings.resolver

    try:
        profile = create_resolver(strategy, SubprocessRunner()).resolve()
    except UnsupportedPackageManager as e:
        if as_json:
            click.echo(json.dumps({"strategy": strategy, "error": str(e)}, indent=2))
        else:
            click.secho(f"⚠️  {e}", fg="yellow")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps({"strategy": strategy, **profile.to_dict()}, indent=2))
        return

    click.secho(f"\n🔍 Package manager ({strategy}): {profile.name}", fg="cyan", bold=True)
    click.echo(f"   Version: {profile.version}")
    click.echo(f"   Install: {profile.install_command} {' '.join(profile.install_args())}")
    click.echo(f"   Exec:    {profile.exec_command}")
    click.echo(f"   dlx:     {' '.join(profile.dlx_command)}")
    click.echo()


if __name__ == "__main__":
    cli()
