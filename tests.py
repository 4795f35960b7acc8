#!/usr/bin/env python3

import unittest
from unittest import mock
import tempfile
import shutil
import os
import io
import json
import logging

from rich.console import Console

from utils import exec_cmd, path_exists, ensure_dir, delete_dir, copy_tree
import git_test_ops
from git_test_ops import listdir_list, header_string
from models.config import ProjectConfig, ProjectsConfig
from models.repository import FileContent, RepoContent
from config_loader import load_projects
from console import LOGGER_NAME, Reporter, custom_theme
import fetcher
import gitwrap


def quiet_reporter() -> Reporter:
    return Reporter(console=Console(file=io.StringIO(), theme=custom_theme, width=120))

def create_temporary_repo(content: RepoContent) -> str:
    """Creates a temporary repository and returns its path."""
    tempdir = tempfile.mkdtemp()
    git_test_ops.create_repo(tempdir, content.default_branch)
    for file in content.files:
        git_test_ops.commit_file(tempdir, file.filename, file.content, file.commit_msg)
    return tempdir

def create_repo_content() -> RepoContent:
    return RepoContent(
        default_branch="main",
        files=[
            FileContent(
                filename="README.md",
                content="Top level readme, not part of the project.",
                commit_msg="Add README.md"
            ),
            FileContent(
                filename="app/main.txt",
                content="Hello, World!",
                commit_msg="Add app/main.txt"
            ),
            FileContent(
                filename="app/sub/nested.txt",
                content="This is a test.",
                commit_msg="Add app/sub/nested.txt"
            ),
        ]
    )

def read_file(path: str) -> str:
    with open(path, "r") as f:
        return f.read()

def write_file(path: str, content: str):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w") as f:
        f.write(content)


class TestDirectoryUtils(unittest.TestCase):

    def setUp(self):
        self.workdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.workdir)

    def test_ensure_dir_is_idempotent(self):
        path = os.path.join(self.workdir, "a", "b", "c")
        self.assertFalse(path_exists(path))
        self.assertTrue(ensure_dir(path))
        self.assertTrue(os.path.isdir(path))
        self.assertTrue(ensure_dir(path))
        self.assertTrue(os.path.isdir(path))

    def test_ensure_dir_existing_file_is_success(self):
        path = os.path.join(self.workdir, "file.txt")
        write_file(path, "x")
        self.assertTrue(ensure_dir(path))
        self.assertTrue(os.path.isfile(path))

    def test_ensure_dir_fails_below_a_file(self):
        blocker = os.path.join(self.workdir, "blocker")
        write_file(blocker, "x")
        self.assertFalse(ensure_dir(os.path.join(blocker, "child")))

    def test_delete_dir_missing_path_is_success(self):
        path = os.path.join(self.workdir, "does", "not", "exist")
        self.assertTrue(delete_dir(path))
        self.assertTrue(delete_dir(path))

    def test_delete_dir_removes_tree(self):
        root = os.path.join(self.workdir, "tree")
        write_file(os.path.join(root, "x", "y.txt"), "y")
        write_file(os.path.join(root, "z.txt"), "z")
        self.assertTrue(delete_dir(root))
        self.assertFalse(path_exists(root))

    def test_delete_dir_reports_os_failure(self):
        root = os.path.join(self.workdir, "tree")
        ensure_dir(root)
        with mock.patch("utils.shutil.rmtree", side_effect=PermissionError("denied")):
            self.assertFalse(delete_dir(root))
        self.assertTrue(path_exists(root))

    def test_copy_tree_merges_and_overwrites(self):
        src = os.path.join(self.workdir, "src")
        dst = os.path.join(self.workdir, "dst")
        write_file(os.path.join(src, "same.txt"), "new")
        write_file(os.path.join(src, "deep", "file.txt"), "deep")
        write_file(os.path.join(dst, "same.txt"), "old")
        write_file(os.path.join(dst, "stale.txt"), "stale")
        copy_tree(src, dst)
        self.assertEqual(read_file(os.path.join(dst, "same.txt")), "new")
        self.assertEqual(read_file(os.path.join(dst, "deep", "file.txt")), "deep")
        self.assertEqual(read_file(os.path.join(dst, "stale.txt")), "stale")

    def test_copy_tree_missing_source_raises(self):
        with self.assertRaises(OSError):
            copy_tree(os.path.join(self.workdir, "nope"), os.path.join(self.workdir, "dst"))

    def test_exec_cmd(self):
        result = exec_cmd("echo hello", verbose=False)
        self.assertEqual(result.stdout.strip(), "hello")
        with self.assertRaises(RuntimeError):
            exec_cmd("exit 3", verbose=False)
        result = exec_cmd("exit 3", verbose=False, allow_failure=True)
        self.assertEqual(result.returncode, 3)
        self.assertFalse(result.ok)

    def test_exec_cmd_missing_cwd(self):
        missing = os.path.join(self.workdir, "missing")
        result = exec_cmd("echo hello", cwd=missing, verbose=False, allow_failure=True)
        self.assertFalse(result.ok)
        with self.assertRaises(RuntimeError):
            exec_cmd("echo hello", cwd=missing, verbose=False)

    def test_nul_byte_paths_are_failures(self):
        bad = os.path.join(self.workdir, "a\x00b")
        self.assertFalse(ensure_dir(bad))
        self.assertTrue(delete_dir(bad))
        result = exec_cmd("echo \x00", verbose=False, allow_failure=True)
        self.assertFalse(result.ok)
        result = exec_cmd("echo hello", cwd=bad, verbose=False, allow_failure=True)
        self.assertFalse(result.ok)
        with self.assertRaises(RuntimeError):
            exec_cmd("echo hello", cwd=bad, verbose=False)


class TestConfigLoader(unittest.TestCase):

    def setUp(self):
        self.workdir = tempfile.mkdtemp()
        self.config_path = os.path.join(self.workdir, "l1onResources.json")
        quiet_reporter()

    def tearDown(self):
        shutil.rmtree(self.workdir)

    def write_config(self, content: str):
        with open(self.config_path, "w") as f:
            f.write(content)

    def test_missing_file(self):
        config = load_projects(self.config_path)
        self.assertEqual(config.projects, [])

    def test_directory_instead_of_file(self):
        config = load_projects(self.workdir)
        self.assertEqual(config.projects, [])

    def test_invalid_json(self):
        self.write_config("{ not json")
        self.assertEqual(load_projects(self.config_path).projects, [])

    def test_too_deeply_nested_json(self):
        self.write_config("[" * 200000)
        self.assertEqual(load_projects(self.config_path).projects, [])

    def test_not_an_object(self):
        self.write_config("[1, 2, 3]")
        self.assertEqual(load_projects(self.config_path).projects, [])
        self.write_config('{"projects": "nope"}')
        self.assertEqual(load_projects(self.config_path).projects, [])

    def test_full_project(self):
        self.write_config(json.dumps({"projects": [{
            "repo_url": "https://example.com/repo.git",
            "destination_path": "/srv/out",
            "temp_directory": "/tmp/clone",
            "delete_temp_dir_after_done": True,
            "project_name": "app",
            "purge_destination_before_copy": True,
        }]}))
        config = load_projects(self.config_path)
        self.assertEqual(config, ProjectsConfig(projects=[ProjectConfig(
            repo_url="https://example.com/repo.git",
            destination_path="/srv/out",
            temp_directory="/tmp/clone",
            delete_temp_dir_after_done=True,
            project_name="app",
            purge_destination_before_copy=True,
        )]))
        self.assertEqual(config.projects[0].source_dir, os.path.join("/tmp/clone", "app"))

    def test_order_is_kept(self):
        self.write_config(json.dumps({"projects": [
            {"project_name": "first"}, {"project_name": "second"}, {"project_name": "first"},
        ]}))
        names = [p.project_name for p in load_projects(self.config_path).projects]
        self.assertEqual(names, ["first", "second", "first"])

    def test_type_mismatch_defaults_to_zero_value(self):
        self.write_config(json.dumps({"projects": [
            {
                "repo_url": 42,
                "destination_path": "/srv/out",
                "temp_directory": None,
                "delete_temp_dir_after_done": "yes",
                "project_name": ["app"],
                "purge_destination_before_copy": 1,
                "unknown_key": "ignored",
            },
            "not an object",
        ]}))
        projects = load_projects(self.config_path).projects
        self.assertEqual(len(projects), 2)
        self.assertEqual(projects[0], ProjectConfig(destination_path="/srv/out"))
        self.assertEqual(projects[1], ProjectConfig())

    def test_empty_project_name_is_clone_root(self):
        project = ProjectConfig(temp_directory="/tmp/clone")
        self.assertEqual(os.path.normpath(project.source_dir), "/tmp/clone")


class TestGitRepos(unittest.TestCase):
    """Base class: a local source repository plus a scratch directory."""
    repo_content: RepoContent
    repo_path: str
    workdir: str

    def setUp(self):
        self.repo_content = create_repo_content()
        self.repo_path = create_temporary_repo(self.repo_content)
        self.workdir = tempfile.mkdtemp()
        self.reporter = quiet_reporter()
        print(header_string(f"Setup complete: {self.id()}"))

    def tearDown(self):
        shutil.rmtree(self.repo_path)
        shutil.rmtree(self.workdir)


class TestFetcher(TestGitRepos):

    def test_clone_into_new_directory(self):
        target = os.path.join(self.workdir, "clone")
        self.assertTrue(fetcher.clone_or_update(self.repo_path, target))
        self.assertEqual(read_file(os.path.join(target, "app", "main.txt")), "Hello, World!")

    def test_clone_into_empty_existing_directory(self):
        target = os.path.join(self.workdir, "clone")
        ensure_dir(target)
        self.assertTrue(fetcher.clone_or_update(self.repo_path, target))
        self.assertTrue(os.path.isfile(os.path.join(target, "README.md")))

    def test_existing_clone_falls_back_to_pull(self):
        target = os.path.join(self.workdir, "clone")
        self.assertTrue(fetcher.clone_or_update(self.repo_path, target))
        git_test_ops.commit_file(self.repo_path, "app/added.txt", "added later", "Add app/added.txt")
        cwd_before = os.getcwd()
        with mock.patch("fetcher.pull_repository", wraps=fetcher.pull_repository) as pull:
            self.assertTrue(fetcher.clone_or_update(self.repo_path, target))
            pull.assert_called_once()
        self.assertEqual(os.getcwd(), cwd_before)
        self.assertEqual(read_file(os.path.join(target, "app", "added.txt")), "added later")
        self.assertEqual(git_test_ops.get_commit_hash(target), git_test_ops.get_commit_hash(self.repo_path))

    def test_nul_byte_in_source(self):
        target = os.path.join(self.workdir, "clone")
        ensure_dir(target)
        self.assertFalse(fetcher.clone_or_update("x\x00y", target))

    def test_clone_and_pull_both_fail(self):
        target = os.path.join(self.workdir, "clone")
        ensure_dir(target)
        missing_repo = os.path.join(self.workdir, "no_such_repo")
        self.assertFalse(fetcher.clone_or_update(missing_repo, target))

    def test_missing_git_executable(self):
        target = os.path.join(self.workdir, "clone")
        self.assertFalse(fetcher.clone_or_update(self.repo_path, target, git="git-does-not-exist"))


class TestGitWrapRun(TestGitRepos):

    def setUp(self):
        super().setUp()
        self.config_path = os.path.join(self.workdir, "l1onResources.json")

    def project(self, name: str, **overrides) -> dict:
        entry = {
            "repo_url": self.repo_path,
            "destination_path": os.path.join(self.workdir, "dest", name),
            "temp_directory": os.path.join(self.workdir, "temp", name),
            "delete_temp_dir_after_done": False,
            "project_name": "app",
            "purge_destination_before_copy": False,
        }
        entry.update(overrides)
        return entry

    def write_config(self, *projects: dict):
        with open(self.config_path, "w") as f:
            json.dump({"projects": list(projects)}, f)

    def run_gitwrap(self, **kwargs) -> int:
        return gitwrap.run(self.config_path, self.reporter, **kwargs)

    def expected_tree(self):
        return listdir_list(os.path.join(self.repo_path, "app"))

    def test_projects_are_copied(self):
        first, second = self.project("first"), self.project("second")
        self.write_config(first, second)
        self.assertEqual(self.run_gitwrap(), 0)
        for entry in (first, second):
            dest = entry["destination_path"]
            self.assertEqual(listdir_list(dest), self.expected_tree())
            self.assertFalse(path_exists(os.path.join(dest, "README.md")))
            for file in self.repo_content.files_under("app"):
                relative = os.path.relpath(file.filename, "app")
                self.assertEqual(read_file(os.path.join(dest, relative)), file.content)
            # the clone stays around unless asked otherwise
            self.assertTrue(os.path.isdir(os.path.join(entry["temp_directory"], ".git")))

    def test_purge_removes_stale_files(self):
        entry = self.project("purged", purge_destination_before_copy=True)
        write_file(os.path.join(entry["destination_path"], "stale.txt"), "stale")
        self.write_config(entry)
        self.assertEqual(self.run_gitwrap(), 0)
        self.assertEqual(listdir_list(entry["destination_path"]), self.expected_tree())

    def test_without_purge_stale_files_remain(self):
        entry = self.project("kept")
        write_file(os.path.join(entry["destination_path"], "stale.txt"), "stale")
        write_file(os.path.join(entry["destination_path"], "main.txt"), "old content")
        self.write_config(entry)
        self.assertEqual(self.run_gitwrap(), 0)
        self.assertEqual(read_file(os.path.join(entry["destination_path"], "stale.txt")), "stale")
        self.assertEqual(read_file(os.path.join(entry["destination_path"], "main.txt")), "Hello, World!")

    def test_purge_failure_aborts(self):
        entry = self.project("purged", purge_destination_before_copy=True)
        self.write_config(entry)
        with mock.patch("gitwrap.delete_dir", return_value=False):
            self.assertEqual(self.run_gitwrap(), 1)
        self.assertEqual(os.listdir(entry["destination_path"]), [])

    def test_second_run_pulls_latest(self):
        entry = self.project("repeat")
        self.write_config(entry)
        self.assertEqual(self.run_gitwrap(), 0)
        git_test_ops.commit_file(self.repo_path, "app/added.txt", "added later", "Add app/added.txt")
        self.assertEqual(self.run_gitwrap(), 0)
        self.assertEqual(read_file(os.path.join(entry["destination_path"], "added.txt")), "added later")

    def test_temp_directory_deleted_after_done(self):
        entry = self.project("cleanup", delete_temp_dir_after_done=True)
        self.write_config(entry)
        self.assertEqual(self.run_gitwrap(), 0)
        self.assertFalse(path_exists(entry["temp_directory"]))
        self.assertEqual(listdir_list(entry["destination_path"]), self.expected_tree())

    def test_temp_cleanup_failure_is_not_fatal(self):
        entry = self.project("cleanup", delete_temp_dir_after_done=True)
        self.write_config(entry)
        with mock.patch("gitwrap.delete_dir", return_value=False):
            self.assertEqual(self.run_gitwrap(), 0)
        self.assertTrue(path_exists(entry["temp_directory"]))

    def test_missing_config(self):
        self.assertEqual(self.run_gitwrap(), 1)
        self.assertEqual(os.listdir(self.workdir), [])

    def test_empty_project_list(self):
        self.write_config()
        self.assertEqual(self.run_gitwrap(), 1)

    def test_fetch_failure_leaves_destination_untouched(self):
        entry = self.project("broken", repo_url=os.path.join(self.workdir, "no_such_repo"))
        self.write_config(entry)
        with mock.patch("gitwrap.copy_tree") as copy:
            self.assertEqual(self.run_gitwrap(), 1)
            copy.assert_not_called()
        self.assertFalse(path_exists(entry["destination_path"]))

    def test_first_failure_stops_the_run(self):
        broken = self.project("broken", repo_url=os.path.join(self.workdir, "no_such_repo"))
        healthy = self.project("healthy")
        self.write_config(broken, healthy)
        self.assertEqual(self.run_gitwrap(), 1)
        self.assertFalse(path_exists(healthy["destination_path"]))
        self.assertFalse(path_exists(healthy["temp_directory"]))

    def test_nul_byte_in_temp_directory(self):
        entry = self.project("nul", temp_directory=os.path.join(self.workdir, "t\x00x"))
        self.write_config(entry)
        self.assertEqual(self.run_gitwrap(), 1)
        self.assertFalse(path_exists(entry["destination_path"]))

    def test_nul_byte_in_repo_url(self):
        entry = self.project("nul", repo_url="x\x00y")
        self.write_config(entry)
        self.assertEqual(self.run_gitwrap(), 1)
        self.assertFalse(path_exists(entry["destination_path"]))

    def test_nul_byte_in_destination(self):
        entry = self.project("nul", destination_path=os.path.join(self.workdir, "d\x00x"))
        self.write_config(entry)
        self.assertEqual(self.run_gitwrap(), 1)

    def test_temp_directory_creation_failure(self):
        blocker = os.path.join(self.workdir, "blocker")
        write_file(blocker, "x")
        entry = self.project("blocked", temp_directory=os.path.join(blocker, "temp"))
        self.write_config(entry)
        self.assertEqual(self.run_gitwrap(), 1)
        self.assertFalse(path_exists(entry["destination_path"]))

    def test_missing_project_subdirectory(self):
        entry = self.project("typo", project_name="no_such_dir")
        self.write_config(entry)
        with mock.patch("gitwrap.copy_tree") as copy:
            self.assertEqual(self.run_gitwrap(), 1)
            copy.assert_not_called()

    def test_copy_failure(self):
        entry = self.project("copyfail")
        self.write_config(entry)
        with mock.patch("gitwrap.copy_tree", side_effect=OSError("disk full")):
            self.assertEqual(self.run_gitwrap(), 1)

    def test_process_project_report(self):
        project = ProjectConfig.from_raw(self.project("report", delete_temp_dir_after_done=True))
        report = gitwrap.ProjectReport(project.project_name, project.repo_url)
        gitwrap.process_project(project, self.reporter, report)
        self.assertTrue(report.finished)
        self.assertEqual(report.steps, ["temp", "fetch", "copy", "cleanup"])
        self.assertEqual(report.warnings, [])

    def test_process_project_raises_project_error(self):
        project = ProjectConfig.from_raw(self.project("typo", project_name="no_such_dir"))
        report = gitwrap.ProjectReport(project.project_name, project.repo_url)
        with self.assertRaises(gitwrap.ProjectError) as ctx:
            gitwrap.process_project(project, self.reporter, report)
        self.assertEqual(ctx.exception.step, "copy")
        self.assertFalse(report.finished)

    def test_run_report(self):
        broken = self.project("broken", repo_url=os.path.join(self.workdir, "no_such_repo"))
        config = ProjectsConfig.from_raw({"projects": [self.project("ok"), broken, self.project("never")]})
        report = gitwrap.run_projects(config, self.reporter)
        self.assertEqual(report.total_projects, 3)
        self.assertEqual(len(report.projects), 2)
        self.assertTrue(report.projects[0].finished)
        self.assertFalse(report.projects[1].finished)
        self.assertIn("fetch", report.projects[1].error)
        self.assertEqual(report.exit_code, 1)

    def test_dry_run_touches_nothing(self):
        entry = self.project("dry")
        self.write_config(entry)
        self.assertEqual(self.run_gitwrap(dry_run=True), 0)
        self.assertEqual(os.listdir(self.workdir), ["l1onResources.json"])

    def test_main_cli(self):
        entry = self.project("cli")
        self.write_config(entry)
        log_file = os.path.join(self.workdir, "gitwrap.log")
        with mock.patch("console.Console", return_value=Console(file=io.StringIO(), theme=custom_theme)):
            exit_code = gitwrap.main(["--config", self.config_path, "--no-banner", "--log-file", log_file])
        self.assertEqual(exit_code, 0)
        self.assertEqual(listdir_list(entry["destination_path"]), self.expected_tree())
        self.assertIn("Finished processing the project", read_file(log_file))
        # main releases the log file when it returns
        self.assertEqual(logging.getLogger(LOGGER_NAME).handlers, [])


if __name__ == "__main__":
    unittest.main()
