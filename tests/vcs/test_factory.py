"""Tests for VCS factory and auto-detection."""

import shutil
from pathlib import Path

import git
import hglib  # type: ignore[import-untyped]
import pytest
from pytest_mock import MockerFixture

from polyscm.vcs.exceptions import CloneError, UnknownSCMError, UnsupportedOperationError
from polyscm.vcs.factory import CONTROL_DIRS, VCSFactory, VCSType
from polyscm.vcs.git import GitRepository
from polyscm.vcs.mercurial import HgRepository
from polyscm.vcs.models import RemoteReference
from polyscm.vcs.svn import SVNRepository

# Helper to check if Mercurial is installed
MERCURIAL_AVAILABLE = shutil.which("hg") is not None
requires_mercurial = pytest.mark.skipif(
    not MERCURIAL_AVAILABLE,
    reason="Mercurial (hg) is not installed",
)


class TestVCSDetection:
    """Tests for VCS detection."""

    def test_detect_git_repo(self, tmp_path: Path) -> None:
        """Test detection of Git repository."""
        git.Repo.init(tmp_path)

        repository = VCSFactory.detect(tmp_path)

        assert isinstance(repository, GitRepository)
        assert repository.path == tmp_path.resolve()

    @requires_mercurial
    def test_detect_mercurial_repo(self, tmp_path: Path) -> None:
        """Test detection of Mercurial repository."""
        hglib.init(str(tmp_path))

        assert VCSFactory.detect_vcs(tmp_path) == VCSType.MERCURIAL
        assert isinstance(VCSFactory.detect(tmp_path), HgRepository)

    def test_detect_bare_hg_control_dir(self, tmp_path: Path) -> None:
        """Test that a lone .hg directory is enough to detect Mercurial."""
        (tmp_path / ".hg").mkdir()

        assert isinstance(VCSFactory.detect(tmp_path), HgRepository)

    def test_detect_svn_working_copy(self, tmp_path: Path) -> None:
        """Test that a .svn directory is detected as SubVersion."""
        (tmp_path / ".svn").mkdir()

        assert isinstance(VCSFactory.detect(tmp_path), SVNRepository)

    def test_git_takes_precedence(self, tmp_path: Path) -> None:
        """Test that Git is detected first if several control directories exist."""
        for control_dir in (".svn", ".hg", ".git"):
            (tmp_path / control_dir).mkdir()

        assert VCSFactory.detect_vcs(tmp_path) == VCSType.GIT
        assert list(CONTROL_DIRS) == [".git", ".hg", ".svn"]

    def test_control_file_is_not_a_directory(self, tmp_path: Path) -> None:
        """Test that only control directories count."""
        (tmp_path / ".hg").write_text("not a repository")

        with pytest.raises(UnknownSCMError):
            VCSFactory.detect(tmp_path)

    def test_unknown_directory_names_path(self, tmp_path: Path) -> None:
        """Test that detection failure names the directory."""
        with pytest.raises(UnknownSCMError) as exc_info:
            VCSFactory.detect(tmp_path)

        assert str(tmp_path.resolve()) in str(exc_info.value)

    def test_does_not_search_parent_directories(self, tmp_path: Path) -> None:
        """Test that only the given directory is inspected."""
        git.Repo.init(tmp_path)
        child_dir = tmp_path / "subdir"
        child_dir.mkdir()

        with pytest.raises(UnknownSCMError):
            VCSFactory.detect_vcs(child_dir)

    def test_registries_are_read_only(self) -> None:
        """Test that the dispatch tables cannot be modified."""
        with pytest.raises(TypeError):
            CONTROL_DIRS[".bzr"] = VCSType.GIT  # type: ignore[index]


class TestURIDetection:
    """Tests for classifying remote URIs."""

    @pytest.mark.parametrize(
        ("uri", "expected"),
        [
            ("git://example.com/project", VCSType.GIT),
            ("hg://example.com/project", VCSType.MERCURIAL),
            ("svn://example.com/project", VCSType.SUBVERSION),
            ("svn+ssh://example.com/project", VCSType.SUBVERSION),
            ("git+ssh://example.com/project", VCSType.GIT),
            ("https://example.com/project.git", VCSType.GIT),
            ("https://example.com/project.hg", VCSType.MERCURIAL),
            ("https://example.com/project.svn/", VCSType.SUBVERSION),
            ("/srv/repos/project.git", VCSType.GIT),
        ],
    )
    def test_detect_uri(self, uri: str, expected: VCSType) -> None:
        """Test that the scheme, then the extension, decides the VCS."""
        assert VCSFactory.detect_uri(uri) == expected

    def test_unknown_uri_names_uri(self) -> None:
        """Test that an unrecognized URI is reported with the URI."""
        with pytest.raises(UnknownSCMError, match="https://example.com/project"):
            VCSFactory.detect_uri("https://example.com/project")

    @pytest.mark.parametrize(
        ("uri", "options", "name"),
        [
            ("https://example.com/project.git", {}, "project"),
            ("https://example.com/project.git", {"bare": True}, "project.git"),
            ("git://example.com/project/", {"mirror": True}, "project.git"),
            ("svn://example.com/repos/trunk", {}, "trunk"),
        ],
    )
    def test_default_destination(self, uri: str, options: dict[str, bool], name: str) -> None:
        """Test the directory a clone lands in by default."""
        assert VCSFactory.default_destination(uri, **options) == Path.cwd() / name

    def test_default_destination_needs_a_name(self) -> None:
        """Test that a URI without a path cannot give a destination."""
        with pytest.raises(CloneError):
            VCSFactory.default_destination("git://example.com")


class TestVCSFactoryClone:
    """Tests for cloning through the factory."""

    def test_clone_dispatches_to_variant(self, tmp_path: Path, mocker: MockerFixture) -> None:
        """Test that the URI decides which clone routine runs."""
        clone = mocker.patch.object(HgRepository, "clone", return_value=True)

        repository = VCSFactory.clone("hg://example.com/project", tmp_path / "dest", branch="stable")

        assert isinstance(repository, HgRepository)
        assert repository.path == (tmp_path / "dest").resolve()
        clone.assert_called_once_with(
            "hg://example.com/project",
            dest=(tmp_path / "dest").resolve(),
            config=None,
            branch="stable",
        )

    def test_clone_default_destination(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        mocker: MockerFixture,
    ) -> None:
        """Test that the destination defaults to the URI name in the current directory."""
        monkeypatch.chdir(tmp_path)
        mocker.patch.object(GitRepository, "clone", return_value=True)

        repository = VCSFactory.clone("https://example.com/project.git")

        assert repository.path == (tmp_path / "project").resolve()

    def test_clone_failure(self, tmp_path: Path, mocker: MockerFixture) -> None:
        """Test that a failed clone raises with the URI."""
        mocker.patch.object(SVNRepository, "clone", return_value=False)

        with pytest.raises(CloneError) as exc_info:
            VCSFactory.clone("svn://example.com/repos/trunk", tmp_path / "wc")

        assert exc_info.value.uri == "svn://example.com/repos/trunk"

    def test_clone_unknown_uri(self, tmp_path: Path) -> None:
        """Test that an unclassifiable URI is rejected before cloning."""
        with pytest.raises(UnknownSCMError):
            VCSFactory.clone("https://example.com/project", tmp_path / "dest")

    def test_clone_real_git_repository(self, tmp_path: Path) -> None:
        """Test cloning a local Git repository end to end."""
        source = tmp_path / "source.git"
        origin = git.Repo.init(tmp_path / "work")
        (tmp_path / "work" / "README").write_text("hello\n")
        origin.index.add(["README"])
        origin.index.commit("Initial commit")
        origin.clone(str(source), bare=True)

        repository = VCSFactory.clone(str(source), tmp_path / "clone")

        assert isinstance(repository, GitRepository)
        assert (tmp_path / "clone" / "README").read_text() == "hello\n"


class TestVCSFactoryCreate:
    """Tests for creating repositories through the factory."""

    def test_create_git(self, tmp_path: Path) -> None:
        """Test creating a Git repository by type."""
        repository = VCSFactory.create(tmp_path / "repo", VCSType.GIT)

        assert isinstance(repository, GitRepository)
        assert (tmp_path / "repo" / ".git").is_dir()

    def test_create_hg_bare_fails(self, tmp_path: Path) -> None:
        """Test that the Mercurial bare restriction surfaces through the factory."""
        with pytest.raises(UnsupportedOperationError):
            VCSFactory.create(tmp_path / "repo", VCSType.MERCURIAL, bare=True)

        assert not (tmp_path / "repo").exists()

    def test_create_remote_hg(self, mocker: MockerFixture) -> None:
        """Test that a remote Mercurial repository comes back as a reference."""
        mocker.patch("polyscm.vcs.process.run", return_value=True)

        result = VCSFactory.create("ssh://hg.example.com/repo", VCSType.MERCURIAL)

        assert isinstance(result, RemoteReference)

    def test_repository_class(self) -> None:
        """Test the class registered for each VCS."""
        assert VCSFactory.repository_class(VCSType.GIT) is GitRepository
        assert VCSFactory.repository_class(VCSType.MERCURIAL) is HgRepository
        assert VCSFactory.repository_class(VCSType.SUBVERSION) is SVNRepository

    def test_repository_class_unsupported_type(self) -> None:
        """Test that an unsupported VCS type raises ValueError."""
        with pytest.raises(ValueError, match="Unsupported VCS type"):
            VCSFactory.repository_class("bzr")  # type: ignore[arg-type]
