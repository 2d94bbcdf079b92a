"""
Tests for template materialization — target checks, fetch, substitution.
"""

from pathlib import Path

import pytest

from create_cerces.adapters.mock import MockCommandRunner, MockFetcher
from create_cerces.core.errors import (
    FetchFailed,
    InvalidParameter,
    InvalidTarget,
    SubstitutionIOFailure,
)
from create_cerces.core.models import TemplateDescriptor, TemplateParameter
from create_cerces.core.services.package_manager.resolver import EnvironmentResolver
from create_cerces.core.services.templates import (
    TemplateMaterializer,
    check_target_directory,
    prepare_target_directory,
    resolve_parameters,
    substitute_placeholder,
)

WORKER = TemplateDescriptor(
    key="worker",
    remote_source="org/repo/templates/worker",
    substitution_files=("wrangler.jsonc", "missing.json"),
)

WORKER_DB = TemplateDescriptor(
    key="worker-db",
    remote_source="org/repo/templates/worker-db",
    substitution_files=("wrangler.jsonc",),
    parameters=(
        TemplateParameter(
            name="database",
            token="%%DB_NAME%%",
            prompt="Database name",
            files=("wrangler.jsonc", "package.json"),
        ),
    ),
)


# ── Target directory ─────────────────────────────────────────────────


class TestTargetDirectory:
    def test_absent_is_valid(self, tmp_path: Path):
        check_target_directory(tmp_path / "new")

    def test_empty_is_valid(self, tmp_path: Path):
        (tmp_path / "empty").mkdir()
        check_target_directory(tmp_path / "empty")

    def test_non_empty_fails(self, tmp_path: Path):
        target = tmp_path / "full"
        target.mkdir()
        (target / "README.md").write_text("hi")
        with pytest.raises(InvalidTarget) as exc:
            check_target_directory(target)
        assert str(target) in str(exc.value)
        assert exc.value.path == target

    def test_hidden_file_counts(self, tmp_path: Path):
        target = tmp_path / "dotted"
        target.mkdir()
        (target / ".git").mkdir()
        with pytest.raises(InvalidTarget):
            check_target_directory(target)

    def test_file_fails(self, tmp_path: Path):
        target = tmp_path / "file.txt"
        target.write_text("x")
        with pytest.raises(InvalidTarget, match="not a directory"):
            check_target_directory(target)

    def test_prepare_creates(self, tmp_path: Path):
        target = tmp_path / "a" / "b"
        assert prepare_target_directory(target) is True
        assert target.is_dir()

    def test_prepare_existing_empty(self, tmp_path: Path):
        assert prepare_target_directory(tmp_path) is False

    def test_prepare_under_a_file(self, tmp_path: Path):
        (tmp_path / "afile").write_text("x")
        with pytest.raises(InvalidTarget, match="cannot be created"):
            prepare_target_directory(tmp_path / "afile" / "app")


# ── Substitution ─────────────────────────────────────────────────────


class TestSubstitutePlaceholder:
    def test_replaces_all_occurrences(self, tmp_path: Path):
        f = tmp_path / "wrangler.jsonc"
        f.write_text('{"name": "%%DIR_NAME%%", "route": "%%DIR_NAME%%.dev"}')
        assert substitute_placeholder(f, "%%DIR_NAME%%", "my-app") is True
        content = f.read_text()
        assert content == '{"name": "my-app", "route": "my-app.dev"}'
        assert "%%DIR_NAME%%" not in content

    def test_no_token_is_untouched(self, tmp_path: Path):
        f = tmp_path / "plain.json"
        f.write_text('{"name": "fixed"}')
        before = f.stat().st_mtime_ns
        assert substitute_placeholder(f, "%%DIR_NAME%%", "my-app") is False
        assert f.read_text() == '{"name": "fixed"}'
        assert f.stat().st_mtime_ns == before

    def test_second_run_is_noop(self, tmp_path: Path):
        f = tmp_path / "wrangler.jsonc"
        f.write_text("name = %%DIR_NAME%%")
        substitute_placeholder(f, "%%DIR_NAME%%", "my-app")
        assert substitute_placeholder(f, "%%DIR_NAME%%", "my-app") is False
        assert f.read_text() == "name = my-app"

    def test_missing_file(self, tmp_path: Path):
        assert substitute_placeholder(tmp_path / "nope", "%%DIR_NAME%%", "x") is False

    def test_literal_not_regex(self, tmp_path: Path):
        f = tmp_path / "f"
        f.write_text("a.b %%DIR_NAME%% a.b")
        substitute_placeholder(f, "%%DIR_NAME%%", r"\1$&")
        assert f.read_text() == r"a.b \1$& a.b"

    def test_unreadable_raises(self, tmp_path: Path):
        f = tmp_path / "binary"
        f.write_bytes(b"\xff\xfe\x00%%DIR_NAME%%\xff")
        with pytest.raises(SubstitutionIOFailure) as exc:
            substitute_placeholder(f, "%%DIR_NAME%%", "x")
        assert exc.value.path == f


class TestResolveParameters:
    def test_no_parameters(self):
        assert resolve_parameters(WORKER, None) == {}

    def test_value_supplied(self):
        assert resolve_parameters(WORKER_DB, {"database": " prod-db "}) == {"database": "prod-db"}

    def test_missing_value(self):
        with pytest.raises(InvalidParameter, match="database"):
            resolve_parameters(WORKER_DB, {})

    def test_blank_value(self):
        with pytest.raises(InvalidParameter):
            resolve_parameters(WORKER_DB, {"database": "  "})

    def test_multiline_value(self):
        with pytest.raises(InvalidParameter, match="single line"):
            resolve_parameters(WORKER_DB, {"database": "a\nb"})

    @pytest.mark.parametrize("value", ['my"db', "my\\db", "my db", "-leading", "db$(x)"])
    def test_unsafe_characters(self, value):
        with pytest.raises(InvalidParameter, match="letters, digits"):
            resolve_parameters(WORKER_DB, {"database": value})

    def test_dots_and_underscores_allowed(self):
        assert resolve_parameters(WORKER_DB, {"database": "app_v2.prod"}) == {"database": "app_v2.prod"}

    def test_unknown_name(self):
        with pytest.raises(InvalidParameter, match="dbname"):
            resolve_parameters(WORKER_DB, {"database": "x", "dbname": "y"})

    def test_default_used(self):
        descriptor = WORKER_DB.model_copy(update={
            "parameters": (WORKER_DB.parameters[0].model_copy(update={"default": "main"}),),
        })
        assert resolve_parameters(descriptor, {}) == {"database": "main"}


# ── Materializer ─────────────────────────────────────────────────────


class TestMaterializer:
    def test_fetch_and_substitute(self, tmp_path: Path):
        fetcher = MockFetcher(files={
            "wrangler.jsonc": '{"name": "%%DIR_NAME%%"}',
            "README.md": "%%DIR_NAME%% stays here",
        })
        target = tmp_path / "my-app"
        changed = TemplateMaterializer(fetcher).materialize(WORKER, target)

        assert changed == [target / "wrangler.jsonc"]
        assert (target / "wrangler.jsonc").read_text() == '{"name": "my-app"}'
        # only listed files are rewritten
        assert (target / "README.md").read_text() == "%%DIR_NAME%% stays here"
        assert fetcher.call_log == [("org/repo/templates/worker", target)]

    def test_parameter_pass_spans_files(self, tmp_path: Path):
        fetcher = MockFetcher(files={
            "wrangler.jsonc": '{"name": "%%DIR_NAME%%", "d1": "%%DB_NAME%%", "alt": "%%DB_NAME%%"}',
            "package.json": '{"scripts": {"migrate": "wrangler d1 migrations apply %%DB_NAME%%"}}',
        })
        target = tmp_path / "api"
        changed = TemplateMaterializer(fetcher).materialize(
            WORKER_DB, target, {"database": "api-db"},
        )

        wrangler = (target / "wrangler.jsonc").read_text()
        assert wrangler == '{"name": "api", "d1": "api-db", "alt": "api-db"}'
        assert "api-db" in (target / "package.json").read_text()
        assert "%%DB_NAME%%" not in (target / "package.json").read_text()
        assert changed == [target / "wrangler.jsonc", target / "package.json"]

    def test_plain_fetch_returns_no_command(self, tmp_path: Path):
        assert TemplateMaterializer(MockFetcher()).fetch(WORKER, tmp_path / "x") is None

    def test_fetch_failure_propagates(self, tmp_path: Path):
        fetcher = MockFetcher(error="HTTP 404")
        with pytest.raises(FetchFailed, match="HTTP 404"):
            TemplateMaterializer(fetcher).materialize(WORKER, tmp_path / "x")

    def test_missing_directory_after_fetch(self, tmp_path: Path):
        class NoopFetcher(MockFetcher):
            def fetch(self, source, destination):
                self.call_log.append((source, destination))

        with pytest.raises(FetchFailed, match="was not created"):
            TemplateMaterializer(NoopFetcher()).fetch(WORKER, tmp_path / "never")

    def test_substitute_twice_is_noop(self, tmp_path: Path):
        fetcher = MockFetcher(files={"wrangler.jsonc": "%%DIR_NAME%%"})
        target = tmp_path / "svc"
        materializer = TemplateMaterializer(fetcher)
        materializer.materialize(WORKER, target)
        assert materializer.substitute(WORKER, target) == []
        assert (target / "wrangler.jsonc").read_text() == "svc"


class TestDelegatedCreate:
    DELEGATED = TemplateDescriptor(
        key="cloudflare",
        remote_source="org/repo/templates/worker",
        delegate_package="cloudflare@latest",
    )

    def _resolver(self):
        return EnvironmentResolver(environ={
            "CERCES_PACKAGE_MANAGER": "pnpm",
            "CERCES_PACKAGE_MANAGER_VERSION": "8.0.0",
        })

    def test_runs_create_with_exec_command(self, tmp_path: Path):
        target = tmp_path / "cf"
        fetcher = MockFetcher()

        class CreatingRunner(MockCommandRunner):
            def run(self, command, args=(), **kwargs):
                target.mkdir()
                return super().run(command, args, **kwargs)

        runner = CreatingRunner()
        outcome = TemplateMaterializer(fetcher, runner=runner, resolver=self._resolver()).fetch(
            self.DELEGATED, target,
        )

        assert outcome.exited_zero
        assert outcome.display.startswith("pnpm create cloudflare@latest")

        assert fetcher.call_count == 0
        call = runner.call_log[0]
        assert call.command == "pnpm"
        assert call.args[:4] == ["create", "cloudflare@latest", "--template", "org/repo/templates/worker"]
        assert call.args[-1] == str(target)

    def test_directory_presence_is_success_signal(self, tmp_path: Path):
        runner = MockCommandRunner()  # "succeeds" but creates nothing
        materializer = TemplateMaterializer(MockFetcher(), runner=runner, resolver=self._resolver())
        with pytest.raises(FetchFailed, match="was not created"):
            materializer.fetch(self.DELEGATED, tmp_path / "cf")

    def test_requires_runner(self, tmp_path: Path):
        with pytest.raises(FetchFailed):
            TemplateMaterializer(MockFetcher()).fetch(self.DELEGATED, tmp_path / "cf")
