"""
Worktree path helpers.

Creating and removing git worktrees is done elsewhere; this module only
derives directory names from branch names when auto-directory mode is on.
"""

import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

DEFAULT_DIRECTORY_PATTERN = "../{branch}"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9\-_.]")


@dataclass
class WorktreeConfig:
    """Auto-directory settings for new worktrees."""

    auto_directory: bool = False
    auto_directory_pattern: str = DEFAULT_DIRECTORY_PATTERN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "auto_directory": self.auto_directory,
            "auto_directory_pattern": self.auto_directory_pattern,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "WorktreeConfig":
        data = data if isinstance(data, dict) else {}
        pattern = data.get("auto_directory_pattern")
        return cls(
            auto_directory=bool(data.get("auto_directory", False)),
            auto_directory_pattern=pattern if isinstance(pattern, str) and pattern else DEFAULT_DIRECTORY_PATTERN,
        )


def sanitize_branch_name(branch: str) -> str:
    """Make a branch name safe to use as a directory name.

    "feature/Login-Page" -> "feature-login-page"
    """
    name = branch.replace("/", "-")
    name = _UNSAFE_CHARS.sub("", name)
    name = name.strip("-")
    return name.lower()


def generate_worktree_directory(branch: str, pattern: Optional[str] = None) -> str:
    """Build the worktree directory for a branch from a path pattern.

    Args:
        branch: Branch name
        pattern: Path pattern with a {branch} (or {branch-name}) placeholder,
            relative to the repository root. Defaults to "../{branch}".

    Returns:
        Normalized directory path
    """
    safe = sanitize_branch_name(branch)
    directory = (pattern or DEFAULT_DIRECTORY_PATTERN).replace("{branch}", safe).replace("{branch-name}", safe)
    return os.path.normpath(directory)
