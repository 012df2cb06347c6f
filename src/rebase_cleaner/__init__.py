"""Find and delete local git branches already contained in a reference branch.

Features:
- Rebase every local branch onto the reference branch in a throwaway branch
- Report branches whose rebased head is the reference head
- Delete them all, none, or one by one after confirmation
- Skip list for branches that must never be touched
"""

__version__ = "0.1.0"
