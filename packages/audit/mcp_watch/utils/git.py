"""Shallow clone of a remote repository via the git command-line client."""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from mcp_watch.errors import CloneError
from mcp_watch.utils.compat import IS_WINDOWS, get_subprocess_creation_flags

logger = logging.getLogger(__name__)

GIT_EXECUTABLE = "git"


async def shallow_clone(
    url: str,
    target_dir: Path,
    timeout: Optional[float] = None,
    git: str = GIT_EXECUTABLE,
) -> None:
    """
    Clone ``url`` at depth 1 into ``target_dir``.

    Args:
        url: Repository URL understood by git
        target_dir: Existing, empty directory owned by the caller
        timeout: Seconds to wait for the clone; None waits indefinitely
        git: git executable to run

    Raises:
        CloneError: git is missing, exits non-zero, or times out
    """
    kwargs: Dict[str, Any] = {
        "stdout": asyncio.subprocess.PIPE,
        "stderr": asyncio.subprocess.PIPE,
    }
    if IS_WINDOWS:
        kwargs["creationflags"] = get_subprocess_creation_flags()

    logger.debug(f"Cloning {url} into {target_dir}")
    try:
        proc = await asyncio.create_subprocess_exec(
            git, "clone", "--depth", "1", "--", url, str(target_dir),
            **kwargs
        )
    except OSError as e:
        raise CloneError(url, f"could not run {git}: {e}") from e

    try:
        _, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise CloneError(url, f"git clone timed out after {timeout:g} seconds") from None
    except asyncio.CancelledError:
        if proc.returncode is None:
            proc.kill()
        raise

    if proc.returncode != 0:
        message = stderr.decode("utf-8", errors="replace") if stderr else ""
        raise CloneError(url, message or f"git exited with status {proc.returncode}")
