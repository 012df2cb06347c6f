"""Git repository operations."""

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

logger = logging.getLogger(__name__)


class RebaseOutcome(Enum):
    """Result of replaying the current branch onto another one."""

    CLEAN = "clean"
    CONFLICT = "conflict"


class GitError(Exception):
    """Git operation error."""

    def __init__(self, message: str, needs_confirmation: bool = False) -> None:
        """Initialize error.

        Args:
            message: Error message
            needs_confirmation: Whether this error needs user confirmation to proceed
        """
        super().__init__(message)
        self.needs_confirmation = needs_confirmation


class GitRepo:
    """Git repository operations.

    Holds no state of its own besides the underlying ``Repo``: every call is a
    round trip to git, so the checked-out branch is whatever the last
    ``checkout`` left behind.
    """

    def __init__(self, path: Path) -> None:
        """Initialize repository."""
        try:
            self.repo: Repo = Repo(path)
            if self.repo.bare:
                raise GitError("Cannot operate on bare repository")
        except (GitCommandError, ValueError, InvalidGitRepositoryError, NoSuchPathError) as err:
            raise GitError(f"Failed to open repository: {err}") from err

    def fetch_all(self) -> None:
        """Fetch all remotes."""
        try:
            self.repo.git.fetch("--all")
        except GitCommandError as err:
            raise GitError(f"Failed to fetch from remotes: {err}") from err

    def get_local_branches(self) -> list[str]:
        """Get local branch names in lexical order."""
        return sorted(head.name for head in self.repo.heads)

    def has_local_branch(self, branch_name: str) -> bool:
        """Check whether a local branch exists."""
        return self._resolves(f"refs/heads/{branch_name}")

    def has_remote_branch(self, branch_name: str) -> bool:
        """Check whether a remote-tracking branch such as ``origin/master`` exists."""
        return self._resolves(f"refs/remotes/{branch_name}")

    def _resolves(self, ref: str) -> bool:
        try:
            self.repo.git.rev_parse("--verify", "--quiet", ref)
        except GitCommandError:
            return False
        return True

    def checkout(self, branch_name: str, new_branch: Optional[str] = None) -> None:
        """Check out a branch.

        Args:
            branch_name: Branch (or any commit-ish) to check out
            new_branch: If given, create this branch at ``branch_name`` and
                check it out instead, leaving ``branch_name`` untouched

        Raises:
            GitError: If the branch does not exist or the working tree is not clean
        """
        try:
            if new_branch is None:
                self.repo.git.checkout(branch_name)
            else:
                self.repo.git.checkout("-b", new_branch, branch_name)
        except GitCommandError as err:
            raise GitError(f"Failed to check out {branch_name}: {err}") from err

    def rebase(self, onto: str) -> RebaseOutcome:
        """Rebase the current branch onto another branch.

        Returns:
            RebaseOutcome.CONFLICT when git stopped half way with a rebase in
            progress, RebaseOutcome.CLEAN otherwise.

        Raises:
            GitError: If git refused to start the rebase at all
        """
        try:
            self.repo.git.rebase(onto)
        except GitCommandError as err:
            if self._rebase_in_progress():
                logger.debug("Rebase onto %s stopped: %s", onto, err)
                return RebaseOutcome.CONFLICT
            raise GitError(f"Failed to rebase onto {onto}: {err}") from err
        return RebaseOutcome.CLEAN

    def _rebase_in_progress(self) -> bool:
        git_dir = Path(self.repo.git_dir)
        return (git_dir / "rebase-merge").exists() or (git_dir / "rebase-apply").exists()

    def abort_rebase(self) -> None:
        """Abort the rebase in progress, if any."""
        if not self._rebase_in_progress():
            return
        try:
            self.repo.git.rebase("--abort")
        except GitCommandError as err:
            # Not actionable, the checkout that follows reports a stuck rebase
            logger.debug("git rebase --abort failed: %s", err)

    def delete_branch(self, branch_name: str, force: bool = False) -> None:
        """Delete a local branch.

        A forced deletion of a branch that does not exist does nothing.

        Raises:
            GitError: If git refuses to delete the branch
        """
        if force and not self.has_local_branch(branch_name):
            return
        try:
            self.repo.git.branch("-D" if force else "-d", branch_name)
        except GitCommandError as err:
            raise GitError(f"Failed to delete branch {branch_name}: {err}") from err

    def head_commit_hash(self) -> str:
        """Get the hash of the checked-out commit."""
        # Ask git itself rather than GitPython's ref objects, which can lag
        # behind a branch created or rewritten a moment ago.
        try:
            return str(self.repo.git.rev_parse("HEAD")).strip()
        except GitCommandError as err:
            raise GitError(f"Failed to read HEAD: {err}") from err
