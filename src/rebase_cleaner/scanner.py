"""Detection of local branches already contained in a reference branch.

A branch is redundant when rebasing it onto the reference branch succeeds and
lands exactly on the reference head commit. Each branch is tried in a
throwaway branch so the real branch ref is never rewritten.
"""

import logging
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from typing import Optional

from rebase_cleaner.git import GitError, GitRepo, RebaseOutcome

logger = logging.getLogger(__name__)

TMP_BRANCH = "__cleaner_tmp__"
DEFAULT_REFERENCE_BRANCH = "origin/master"


class ReferenceBranchError(Exception):
    """The reference branch cannot be used."""


class LocalReferenceBranchError(ReferenceBranchError):
    """The reference branch only exists locally."""


class RedundancyScanner:
    """Find the local branches that add nothing to a remote reference branch."""

    def __init__(self, repo: GitRepo, reference_branch: str, tmp_branch: str = TMP_BRANCH) -> None:
        self.repo = repo
        self.reference_branch = reference_branch
        self.tmp_branch = tmp_branch

    def resolve_reference(self) -> None:
        """Make sure the reference branch is a remote branch.

        Raises:
            LocalReferenceBranchError: If it only exists as a local branch
            ReferenceBranchError: If it does not exist at all
        """
        if self.repo.has_remote_branch(self.reference_branch):
            return
        if self.repo.has_local_branch(self.reference_branch):
            raise LocalReferenceBranchError("Only remote reference branches are supported at the moment.")
        raise ReferenceBranchError(f"Invalid reference branch {self.reference_branch}")

    def candidates(self, skip: Iterable[str] = ()) -> list[str]:
        """Local branches to scan, minus the skipped ones and the temporary branch."""
        excluded = {*skip, self.tmp_branch}
        return [branch for branch in self.repo.get_local_branches() if branch not in excluded]

    def discard_tmp_branch(self) -> None:
        """Remove a temporary branch left behind by an interrupted run."""
        try:
            self.repo.delete_branch(self.tmp_branch, force=True)
        except GitError as err:
            logger.warning("Could not remove stale branch %s: %s", self.tmp_branch, err)

    @contextmanager
    def staged(self, branch: str) -> Iterator[None]:
        """Check out a copy of ``branch`` as the temporary branch.

        On exit, whatever happened inside, a rebase left in progress is
        aborted, the reference branch is checked out again and the temporary
        branch is deleted.
        """
        try:
            self.repo.checkout(branch, self.tmp_branch)
            yield
        finally:
            # git refuses to switch branches in the middle of a rebase
            self.repo.abort_rebase()
            self.repo.checkout(self.reference_branch)
            self.repo.delete_branch(self.tmp_branch, force=True)

    def is_redundant(self, branch: str, reference_hash: str) -> bool:
        """Rebase a copy of ``branch`` and compare its head with ``reference_hash``."""
        with self.staged(branch):
            if self.repo.rebase(self.reference_branch) is RebaseOutcome.CONFLICT:
                logger.debug("%s conflicts with %s", branch, self.reference_branch)
                self.repo.abort_rebase()
                return False
            head = self.repo.head_commit_hash()
            logger.debug("%s rebased to %s (reference %s)", branch, head, reference_hash)
            return head == reference_hash

    def scan(
        self,
        branches: Iterable[str],
        on_start: Optional[Callable[[str], None]] = None,
        on_progress: Optional[Callable[[str, int, int], None]] = None,
    ) -> list[str]:
        """Check every branch against the reference branch.

        Args:
            branches: Candidate branch names, scanned in lexical order
            on_start: Called with the branch name before each trial
            on_progress: Called with (branch, completed, total) after each trial

        Returns:
            The redundant branches, in scan order.
        """
        self.repo.checkout(self.reference_branch)
        reference_hash = self.repo.head_commit_hash()
        logger.debug("%s is at %s", self.reference_branch, reference_hash)

        self.discard_tmp_branch()

        todo = sorted(set(branches) - {self.tmp_branch})
        up_to_date: list[str] = []
        for completed, branch in enumerate(todo, start=1):
            if on_start:
                on_start(branch)
            if self.is_redundant(branch, reference_hash):
                up_to_date.append(branch)
            if on_progress:
                on_progress(branch, completed, len(todo))
        return up_to_date
