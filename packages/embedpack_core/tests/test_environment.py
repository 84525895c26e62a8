"""test_environment.py

Where embedpack runs from, and the pyembed location derived from it.
"""

from __future__ import annotations

from pathlib import Path

from embedpack_core import __version__
from embedpack_core.environment import (
    CANONICAL_GIT_REPO_URL,
    EmbedLibraryLocation,
    EmbedLocationKind,
    Environment,
    GitUrlSource,
    LocalPathSource,
    built_git_url,
    display_version,
    resolve_environment,
)


class TestBuiltGitUrl:
    def test_commit_excludes_tag(self) -> None:
        source = built_git_url("abc123", "0.4.0")
        assert source.url == CANONICAL_GIT_REPO_URL
        assert source.commit == "abc123"
        assert source.tag is None

    def test_tag_from_version(self) -> None:
        source = built_git_url("", "0.4.0")
        assert source.commit is None
        assert source.tag == "v0.4.0"

    def test_unknown_commit_uses_tag(self) -> None:
        assert built_git_url("UNKNOWN", "v1.2.3").tag == "v1.2.3"


class TestDisplayVersion:
    def test_release_unchanged(self) -> None:
        assert display_version("0.4.0", "abc123") == "0.4.0"

    def test_pre_release_gets_commit(self) -> None:
        assert display_version("0.5.0-pre", "abc123") == "0.5.0-pre-abc123"

    def test_pre_release_without_commit(self) -> None:
        assert display_version("0.5.0-pre", "") == "0.5.0-pre"
        assert display_version("0.5.0-pre", "UNKNOWN") == "0.5.0-pre"

    def test_version_long_uses_display_version(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setattr("embedpack_core.environment.__version__", "0.5.0-pre")
        text = Environment(LocalPathSource(tmp_path), build_commit="abc123").version_long()
        lines = text.splitlines()
        assert lines[0] == "0.5.0-pre-abc123"
        assert lines[1] == "commit: abc123"


class TestEmbedLibraryLocation:
    def test_local_checkout(self, tmp_path) -> None:
        location = Environment(LocalPathSource(tmp_path)).embed_library_location()
        assert location.kind == EmbedLocationKind.path
        assert location.value == (tmp_path / "pyembed").resolve().as_posix()

    def test_git_commit(self) -> None:
        env = Environment(GitUrlSource(url="https://example.com/x.git", commit="deadbeef"))
        location = env.embed_library_location()
        assert location.kind == EmbedLocationKind.git
        assert location.revision == "deadbeef"

    def test_release_version(self) -> None:
        env = Environment(GitUrlSource(url="https://example.com/x.git", tag="v0.4.0"))
        location = env.embed_library_location()
        assert location.kind == EmbedLocationKind.version
        assert location.value == __version__

    def test_manifest_fields(self) -> None:
        assert EmbedLibraryLocation(EmbedLocationKind.path, "/src/pyembed").manifest_fields() == (
            'path = "/src/pyembed"'
        )
        assert EmbedLibraryLocation(EmbedLocationKind.git, "https://x", "abc").manifest_fields() == (
            'git = "https://x", rev = "abc"'
        )
        assert EmbedLibraryLocation(EmbedLocationKind.version, "0.4.0").manifest_fields() == (
            'version = "0.4.0"'
        )


class TestResolveEnvironment:
    def test_outside_checkout_falls_back_to_git_url(self, tmp_path) -> None:
        env = resolve_environment(tmp_path)
        assert isinstance(env.source, GitUrlSource)
        assert env.source.url == CANONICAL_GIT_REPO_URL

    def test_version_long(self, tmp_path) -> None:
        text = Environment(LocalPathSource(Path(tmp_path)), build_commit="").version_long()
        lines = text.splitlines()
        assert lines[0] == __version__
        assert lines[2] == f"source: {Path(tmp_path).as_posix()}"
        assert lines[3].startswith("pyembed location: path = ")
