"""Test configuration and fixtures."""

from pathlib import Path
from typing import Generator

import pytest
from git import Actor, Repo


@pytest.fixture
def test_env(tmp_path: Path) -> Generator[tuple[Path, Path], None, None]:
    """Create a test environment with local and remote repositories.

    Local branches, compared with origin/master:
        feature-a        same commit as origin/master
        feature-old      behind origin/master, no commits of its own
        feature-applied  one commit whose change master picked up separately
        feature-b        one commit conflicting with master
        feature-c        one commit of its own, no conflict
        master           same commit as origin/master

    Returns:
        Tuple of (local_repo_path, remote_repo_path)
    """
    remote_path = tmp_path / "remote"
    local_path = tmp_path / "local"
    remote_path.mkdir()
    local_path.mkdir()

    Repo.init(remote_path, bare=True)
    local_repo = Repo.init(local_path)
    # Independent of the init.defaultBranch setting
    local_repo.git.symbolic_ref("HEAD", "refs/heads/master")

    author = Actor("Test User", "test@example.com")
    with local_repo.config_writer() as config:
        config.set_value("user", "name", author.name)
        config.set_value("user", "email", author.email)
        config.set_value("commit", "gpgsign", "false")

    def commit(filename: str, content: str, message: str) -> None:
        (local_path / filename).write_text(content)
        local_repo.index.add([filename])
        local_repo.index.commit(message, author=author, committer=author)

    commit("README.md", "# Test Repository", "Initial commit")
    master = local_repo.heads.master
    local_repo.create_head("feature-old")

    commit("shared.txt", "base\n", "Add shared file")

    def create_branch(name: str, filename: str, content: str) -> None:
        """Create a branch off master with one commit."""
        local_repo.create_head(name).checkout()
        commit(filename, content, f"Change {filename} on {name}")
        master.checkout()

    create_branch("feature-b", "shared.txt", "branch\n")
    create_branch("feature-c", "c.txt", "only on feature-c\n")
    create_branch("feature-applied", "applied.txt", "applied\n")

    commit("shared.txt", "master\n", "Change shared file on master")
    commit("applied.txt", "applied\n", "Apply the same change on master")
    local_repo.create_head("feature-a")

    origin = local_repo.create_remote("origin", url=str(remote_path))
    origin.push("master")
    origin.fetch()

    yield local_path, remote_path
