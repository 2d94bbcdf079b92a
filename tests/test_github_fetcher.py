"""
Tests for the GitHub tarball fetcher — network mocked with urlopen.
"""

import io
import tarfile
import urllib.error
from pathlib import Path
from unittest.mock import patch

import pytest

from create_cerces.adapters.fetch.github import GitHubTarballFetcher, parse_locator
from create_cerces.core.errors import FetchFailed

URLOPEN = "create_cerces.adapters.fetch.github.urllib.request.urlopen"


def _tarball(members: dict[str, str | None], modes: dict[str, int] | None = None) -> bytes:
    """Build a gzipped tarball in memory. ``None`` content means directory."""
    modes = modes or {}
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, content in members.items():
            info = tarfile.TarInfo(name)
            if content is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
            else:
                data = content.encode()
                info.size = len(data)
                info.mode = modes.get(name, 0o644)
                tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


REPO = {
    "ianhco-cerces-abc123/": None,
    "ianhco-cerces-abc123/README.md": "root readme",
    "ianhco-cerces-abc123/templates/bun/package.json": '{"name": "%%DIR_NAME%%"}',
    "ianhco-cerces-abc123/templates/bun/src/index.ts": "export {}",
    "ianhco-cerces-abc123/templates/bun/bin/start.sh": "#!/bin/sh",
    "ianhco-cerces-abc123/templates/bun-extra/other.txt": "no",
    "ianhco-cerces-abc123/templates/docker/Dockerfile": "FROM oven/bun",
}


def _respond(payload: bytes):
    """urlopen replacement returning ``payload`` as a context manager."""
    return lambda req, timeout=None: io.BytesIO(payload)


class TestParseLocator:
    def test_full(self):
        loc = parse_locator("ianhco/cerces/templates/bun")
        assert (loc.owner, loc.repo, loc.subdir, loc.ref) == ("ianhco", "cerces", "templates/bun", None)
        assert loc.tarball_url == "https://api.github.com/repos/ianhco/cerces/tarball"

    def test_ref(self):
        loc = parse_locator("ianhco/cerces/templates/bun#v1.2.0")
        assert loc.ref == "v1.2.0"
        assert loc.tarball_url.endswith("/tarball/v1.2.0")

    def test_default_ref(self):
        assert parse_locator("a/b/c", default_ref="main").ref == "main"
        assert parse_locator("a/b/c#dev", default_ref="main").ref == "dev"

    def test_repo_root(self):
        assert parse_locator("a/b").subdir == ""

    def test_too_short(self):
        with pytest.raises(FetchFailed, match="owner/repo"):
            parse_locator("just-a-name")


class TestGitHubTarballFetcher:
    def test_extracts_subdir_only(self, tmp_path: Path):
        dest = tmp_path / "my-app"
        with patch(URLOPEN, side_effect=_respond(_tarball(REPO, {
            "ianhco-cerces-abc123/templates/bun/bin/start.sh": 0o755,
        }))):
            GitHubTarballFetcher().fetch("ianhco/cerces/templates/bun", dest)

        assert sorted(p.relative_to(dest).as_posix() for p in dest.rglob("*") if p.is_file()) == [
            "bin/start.sh", "package.json", "src/index.ts",
        ]
        assert (dest / "package.json").read_text() == '{"name": "%%DIR_NAME%%"}'
        assert (dest / "bin" / "start.sh").stat().st_mode & 0o111
        assert not (dest / ".git").exists()

    def test_request_headers(self, tmp_path: Path):
        captured = {}

        def fake(req, timeout=None):
            captured["req"] = req
            captured["timeout"] = timeout
            return io.BytesIO(_tarball(REPO))

        with patch(URLOPEN, side_effect=fake):
            GitHubTarballFetcher(timeout=5, token="t0k").fetch("ianhco/cerces/templates/docker", tmp_path / "d")

        req = captured["req"]
        assert req.full_url == "https://api.github.com/repos/ianhco/cerces/tarball"
        assert req.get_header("Authorization") == "Bearer t0k"
        assert req.get_header("User-agent").startswith("create-cerces/")
        assert captured["timeout"] == 5

    def test_no_token_no_auth_header(self, tmp_path: Path):
        captured = {}

        def fake(req, timeout=None):
            captured["req"] = req
            return io.BytesIO(_tarball(REPO))

        with patch(URLOPEN, side_effect=fake):
            GitHubTarballFetcher().fetch("ianhco/cerces/templates/docker", tmp_path / "d")
        assert captured["req"].get_header("Authorization") is None

    def test_missing_subdir(self, tmp_path: Path):
        with patch(URLOPEN, side_effect=_respond(_tarball(REPO))):
            with pytest.raises(FetchFailed, match="templates/rails"):
                GitHubTarballFetcher().fetch("ianhco/cerces/templates/rails", tmp_path / "x")

    def test_unsafe_member_skipped(self, tmp_path: Path):
        members = dict(REPO)
        members["ianhco-cerces-abc123/templates/bun/../../../../evil.txt"] = "pwned"
        dest = tmp_path / "safe" / "app"
        with patch(URLOPEN, side_effect=_respond(_tarball(members))):
            GitHubTarballFetcher().fetch("ianhco/cerces/templates/bun", dest)

        assert (dest / "package.json").exists()
        assert not list(tmp_path.rglob("evil.txt"))

    def test_http_404(self, tmp_path: Path):
        error = urllib.error.HTTPError("https://x", 404, "Not Found", {}, None)
        with patch(URLOPEN, side_effect=error):
            with pytest.raises(FetchFailed, match="not found"):
                GitHubTarballFetcher().fetch("nobody/nothing/t", tmp_path / "x")

    def test_http_error(self, tmp_path: Path):
        error = urllib.error.HTTPError("https://x", 403, "rate limited", {}, None)
        with patch(URLOPEN, side_effect=error):
            with pytest.raises(FetchFailed, match="HTTP 403"):
                GitHubTarballFetcher().fetch("a/b/c", tmp_path / "x")

    def test_network_error(self, tmp_path: Path):
        with patch(URLOPEN, side_effect=urllib.error.URLError("no route")):
            with pytest.raises(FetchFailed, match="network error"):
                GitHubTarballFetcher().fetch("a/b/c", tmp_path / "x")

    def test_corrupt_archive(self, tmp_path: Path):
        with patch(URLOPEN, side_effect=_respond(b"not a tarball")):
            with pytest.raises(FetchFailed, match="corrupt archive"):
                GitHubTarballFetcher().fetch("a/b/c", tmp_path / "x")

    def test_unwritable_destination(self, tmp_path: Path):
        (tmp_path / "afile").write_text("x")
        with patch(URLOPEN, side_effect=_respond(_tarball(REPO))):
            with pytest.raises(FetchFailed, match="cannot write template files"):
                GitHubTarballFetcher().fetch("ianhco/cerces/templates/bun", tmp_path / "afile" / "app")
