"""
Bring a local directory up to date with a remote repository.
"""
import logging
import shlex

from utils import exec_cmd

logger = logging.getLogger("gitwrap")

GIT = "git"

def clone_repository(source: str, target_dir: str, git: str = GIT) -> bool:
    cmd = f"{shlex.quote(git)} clone {shlex.quote(source)} {shlex.quote(target_dir)}"
    return exec_cmd(cmd, verbose_output=True, allow_failure=True).ok

def pull_repository(target_dir: str, git: str = GIT) -> bool:
    # run inside target_dir via cwd, the process working directory is never touched
    cmd = f"{shlex.quote(git)} pull"
    return exec_cmd(cmd, cwd=target_dir, verbose_output=True, allow_failure=True).ok

def clone_or_update(source: str, target_dir: str, git: str = GIT) -> bool:
    """
    Clone `source` into `target_dir`. If the clone fails for any reason
    (typically because `target_dir` already holds a clone), pull in place instead.
    Only exit codes are looked at; a half-done clone is not cleaned up.
    """
    logger.info(f"Cloning the repository: {source}")
    if clone_repository(source, target_dir, git):
        return True
    logger.info("Will try doing a git pull instead of git clone")
    if pull_repository(target_dir, git):
        return True
    logger.warning(f"Error while cloning the repository: {source}")
    return False
