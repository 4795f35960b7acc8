"""
Simple API for Git operations used by the tests.
"""
import os
import shlex
from utils import exec_cmd, CmdResult

def create_repo(path: str, default_branch: str = "main"):
    os.makedirs(path, exist_ok=True)
    exec_cmd(f"git init --initial-branch={default_branch}", cwd=path)
    exec_cmd('git config user.email "a@b.c"', cwd=path)
    exec_cmd('git config user.name "tester"', cwd=path)
    exec_cmd('git commit --allow-empty -m "Initial commit"', cwd=path)

def commit_file(repo: str, filename: str, content: str, msg: str):
    """`filename` is relative to the repo root and may contain directories."""
    full_path = os.path.join(repo, filename)
    os.makedirs(os.path.dirname(full_path), exist_ok=True)
    with open(full_path, "w") as f:
        f.write(content)
    exec_cmd(f"git add {shlex.quote(filename)}", cwd=repo)
    exec_cmd(f"git commit -m {shlex.quote(msg)}", cwd=repo)

def get_commit_hash(repo: str, branch: str = "HEAD") -> str:
    result: CmdResult = exec_cmd(f"git rev-parse {branch}", cwd=repo)
    return result.stdout.strip()

def listdir_list(path: str) -> list:
    """
    Nested, sorted listing of `path` without git metadata:
    files as names, directories as [name, listing].
    """
    entries = sorted(e for e in os.listdir(path) if not e.startswith(".git"))
    return [
        [e, listdir_list(os.path.join(path, e))] if os.path.isdir(os.path.join(path, e)) else e
        for e in entries
    ]

def header_string(msg: str) -> str:
    line = f"=== {msg} ==="
    return "\n".join(["=" * len(line), line, "=" * len(line)])
