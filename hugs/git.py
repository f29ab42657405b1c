"""Stage, commit and push post changes with the git command line."""

import logging
import subprocess
from typing import List, Optional, Tuple

from hugs.errors import ExternalToolError

logger = logging.getLogger(__name__)


def git_run(args: List[str], repo_root: str, timeout: Optional[float] = None) -> Tuple[int, str, str]:
    """Run a git command in *repo_root*.

    No timeout unless one is given; a hung git blocks the caller.
    """
    logger.debug('Running git %s in %s', ' '.join(args), repo_root)
    try:
        result = subprocess.run(
            ['git'] + args,
            cwd=repo_root,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise ExternalToolError(f'git {args[0]} timed out after {timeout}s') from exc
    except OSError as exc:
        raise ExternalToolError(f'git {args[0]} failed: {exc}') from exc
    return result.returncode, result.stdout, result.stderr


def _check(args: List[str], repo_root: str, timeout: Optional[float]) -> str:
    code, out, err = git_run(args, repo_root, timeout=timeout)
    if code != 0:
        detail = err.strip() or out.strip() or f'exit code {code}'
        raise ExternalToolError(f'git {args[0]} failed: {detail}')
    return out


def commit_message(title: str) -> str:
    return f"Updated post '{title}'"


def commit_post(repo_root: str, rel_path: str, message: str, timeout: Optional[float] = None) -> None:
    """Stage *rel_path* and commit it with *message*."""
    _check(['add', rel_path], repo_root, timeout)
    _check(['commit', '-m', message], repo_root, timeout)
    logger.info('Committed %s: %s', rel_path, message)


def push(repo_root: str, timeout: Optional[float] = None) -> None:
    _check(['push'], repo_root, timeout)
    logger.info('Pushed %s to its remote', repo_root)


def has_unpushed_changes(repo_root: str, timeout: Optional[float] = None) -> bool:
    """True when HEAD has commits its upstream lacks.

    Any failure, such as a branch without an upstream, counts as unpushed.
    """
    try:
        code, out, err = git_run(['log', '@{u}..HEAD', '--oneline'], repo_root, timeout=timeout)
    except ExternalToolError as exc:
        logger.debug('Could not check for unpushed changes, assuming some exist: %s', exc)
        return True
    if code != 0:
        logger.debug('Could not check for unpushed changes, assuming some exist: %s', err.strip())
        return True
    return bool(out.strip())
