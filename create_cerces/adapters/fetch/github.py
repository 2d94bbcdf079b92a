"""
GitHub template fetcher — history-less retrieval of a repo subdirectory.

A template locator names a directory inside a GitHub repository::

    ianhco/cerces/templates/bun          (default branch)
    ianhco/cerces/templates/bun#v1.2.0   (explicit ref)

The repository tarball is downloaded once and only the members under
the requested subdirectory are written to the destination. No git
history, no ``.git`` directory.
"""

from __future__ import annotations

import logging
import shutil
import tarfile
import tempfile
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import IO

from create_cerces import __version__
from create_cerces.adapters.base import TemplateFetcher
from create_cerces.core.errors import FetchFailed

logger = logging.getLogger(__name__)

_API_ROOT = "https://api.github.com"


@dataclass(frozen=True)
class TemplateLocator:
    """A parsed ``owner/repo/subdir[#ref]`` string."""

    owner: str
    repo: str
    subdir: str = ""
    ref: str | None = None

    @property
    def tarball_url(self) -> str:
        url = f"{_API_ROOT}/repos/{self.owner}/{self.repo}/tarball"
        return f"{url}/{self.ref}" if self.ref else url


def parse_locator(source: str, default_ref: str | None = None) -> TemplateLocator:
    """Split a locator string into its parts.

    Raises:
        FetchFailed: The string has no ``owner/repo`` prefix.
    """
    path, _, ref = source.partition("#")
    parts = [p for p in path.strip("/").split("/") if p]
    if len(parts) < 2:
        raise FetchFailed(source, "expected a locator of the form owner/repo/path")
    return TemplateLocator(
        owner=parts[0],
        repo=parts[1],
        subdir="/".join(parts[2:]),
        ref=ref or default_ref,
    )


class GitHubTarballFetcher(TemplateFetcher):
    """Fetch templates from GitHub repository tarballs.

    Args:
        timeout: HTTP timeout in seconds.
        token: Optional GitHub token (raises the anonymous rate limit).
        default_ref: Ref used when the locator carries none.
    """

    def __init__(
        self,
        timeout: int = 30,
        token: str | None = None,
        default_ref: str | None = None,
    ) -> None:
        self._timeout = timeout
        self._token = token
        self._default_ref = default_ref

    @property
    def name(self) -> str:
        return "github"

    def fetch(self, source: str, destination: Path) -> None:
        locator = parse_locator(source, self._default_ref)
        logger.info("Fetching %s", locator.tarball_url)

        with tempfile.TemporaryFile() as buf:
            self._download(source, locator, buf)
            buf.seek(0)
            try:
                with tarfile.open(fileobj=buf, mode="r:gz") as tar:
                    written = _extract_subdir(tar, locator.subdir, destination)
            except tarfile.TarError as e:
                raise FetchFailed(source, f"corrupt archive: {e}") from e
            except OSError as e:
                raise FetchFailed(source, f"cannot write template files: {e}") from e

        if written == 0:
            where = locator.subdir or "repository root"
            raise FetchFailed(source, f"could not find `{where}` in {locator.owner}/{locator.repo}")
        logger.info("Extracted %d files into %s", written, destination)

    # ── Helpers ─────────────────────────────────────────────────

    def _download(self, source: str, locator: TemplateLocator, out: IO[bytes]) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": f"create-cerces/{__version__}",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        req = urllib.request.Request(locator.tarball_url, headers=headers)
        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                shutil.copyfileobj(resp, out)
        except urllib.error.HTTPError as e:
            if e.code == 404:
                detail = f"repository or ref not found (HTTP 404: {locator.tarball_url})"
            else:
                detail = f"HTTP {e.code}: {e.reason}"
            raise FetchFailed(source, detail) from e
        except urllib.error.URLError as e:
            raise FetchFailed(source, f"network error: {e.reason}") from e
        except (TimeoutError, OSError) as e:
            raise FetchFailed(source, str(e)) from e


def _extract_subdir(tar: tarfile.TarFile, subdir: str, destination: Path) -> int:
    """Write the members under ``<top>/<subdir>/`` into ``destination``.

    GitHub tarballs wrap everything in one ``owner-repo-sha/`` folder,
    which is stripped together with ``subdir``. Returns the number of
    regular files written.
    """
    prefix = PurePosixPath(subdir) if subdir else None
    root = destination.resolve()
    written = 0

    for member in tar:
        parts = PurePosixPath(member.name).parts[1:]
        if not parts:
            continue
        rel = PurePosixPath(*parts)
        if prefix is not None:
            try:
                rel = rel.relative_to(prefix)
            except ValueError:
                continue
        if rel == PurePosixPath("."):
            continue

        target = (root / rel).resolve()
        if rel.is_absolute() or ".." in rel.parts or not target.is_relative_to(root):
            logger.warning("Skipping unsafe archive member: %s", member.name)
            continue

        if member.isdir():
            target.mkdir(parents=True, exist_ok=True)
        elif member.isfile():
            target.parent.mkdir(parents=True, exist_ok=True)
            src = tar.extractfile(member)
            if src is None:
                continue
            with src, open(target, "wb") as f:
                shutil.copyfileobj(src, f)
            if member.mode & 0o111:
                target.chmod(0o755)
            written += 1
        else:
            logger.debug("Skipping non-regular archive member: %s", member.name)

    return written
