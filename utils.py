import logging
import os
import shutil
import subprocess
from dataclasses import dataclass

logger = logging.getLogger("gitwrap")

@dataclass
class CmdResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

def exec_cmd(cmd: str, cwd: str = None, verbose: bool = True, verbose_output: bool = False, allow_failure: bool = False) -> CmdResult:
    """
    Execute a shell command and return the result.
    Raises RuntimeError on failure unless `allow_failure` is set.
    """
    if verbose:
        logger.debug(f"Executing command: {cmd} (cwd={cwd or '.'})")
    try:
        proc = subprocess.run(cmd, shell=True, cwd=cwd, capture_output=True, text=True)
    except (OSError, ValueError) as e:
        # e.g. cwd does not exist or an argument holds a NUL byte, the command never ran
        if allow_failure:
            logger.debug(f"Command '{cmd}' could not be started: {e}")
            return CmdResult(-1, "", str(e))
        raise RuntimeError(f"Command '{cmd}' could not be started: {e}") from e
    if verbose_output:
        logger.debug(f"Command stdout: {proc.stdout}")
        logger.debug(f"Command stderr: {proc.stderr}")
    if proc.returncode != 0:
        logger.debug(f"Command '{cmd}' failed with return code {proc.returncode}")
        if proc.stderr:
            logger.debug(f"Error output: {proc.stderr}")
        if not allow_failure:
            raise RuntimeError(f"Command '{cmd}' failed with return code {proc.returncode}\n{proc.stderr}\n{proc.stdout}")
    return CmdResult(proc.returncode, proc.stdout, proc.stderr)


def path_exists(path: str) -> bool:
    """True if anything (file, directory, dangling symlink) lives at `path`."""
    return os.path.lexists(path)

def ensure_dir(path: str) -> bool:
    """
    Create `path` and any missing parents.
    An existing entry counts as success, even when it is not a directory.
    """
    if path_exists(path):
        return True
    try:
        os.makedirs(path, exist_ok=True)
    except (OSError, ValueError) as e:
        logger.warning(f"Error while creating the directory: {path}: {e}")
        return False
    return True

def delete_dir(path: str) -> bool:
    """
    Remove `path` and everything under it. A missing path is not an error.
    """
    if not path_exists(path):
        return True
    try:
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        else:
            os.remove(path)
    except (OSError, ValueError) as e:
        logger.warning(f"Error while deleting the directory: {path}: {e}")
        return False
    return True

def copy_tree(src: str, dst: str):
    """
    Merge-copy `src` into `dst`: existing files are overwritten,
    files only present in `dst` are left alone.
    """
    shutil.copytree(src, dst, symlinks=True, dirs_exist_ok=True)

