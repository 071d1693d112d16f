"""Git operations module.

Usage:
    from reltool.git import Repository

    repo = Repository(Path("/path/to/repo"), runner)
    if not repo.is_clean():
        print("working tree has uncommitted changes")
"""

from reltool.git.repository import Repository

__all__ = ["Repository"]
