#!/usr/bin/env python3
import os
import sys
import argparse
import time
from typing import Optional

from models.config import ProjectConfig, ProjectsConfig
from models.report import ProjectReport, RunReport, StepResult
from config_loader import CONFIG_FILE_NAME, load_projects
from console import Reporter
from fetcher import GIT, clone_or_update
from utils import path_exists, ensure_dir, delete_dir, copy_tree

VERSION = "4.0.0"


class ProjectError(RuntimeError):
    """A fatal step failure. The run stops at the first one."""

    def __init__(self, step: str, message: str):
        super().__init__(f"{step}: {message}")
        self.step = step
        self.message = message


def prepare_destination(path: str) -> StepResult:
    """
    Best-effort creation of a missing destination. The copy that follows
    surfaces the real error if this did not work.
    """
    if path_exists(path):
        return StepResult(True, "Destination directory exists.")
    if ensure_dir(path):
        return StepResult(True, f"Destination directory created: {path}")
    return StepResult(False, f"Destination directory could not be created: {path}")

def purge_destination(path: str):
    if not delete_dir(path):
        raise ProjectError("purge", f"Error while purging the destination directory {path}")
    if not ensure_dir(path):
        raise ProjectError("purge", f"Destination directory could not be created: {path}")

def cleanup_temp_directory(path: str) -> StepResult:
    if delete_dir(path):
        return StepResult(True, f"Deleted the temp directory: {path}")
    return StepResult(False, f"Error while deleting the temp directory: {path}")

def describe_project(project: ProjectConfig, reporter: Reporter):
    reporter.detail(f"Repo URL: {project.repo_url}")
    reporter.detail(f"Destination Path: {project.destination_path}")
    reporter.detail(f"Temp Directory: {project.temp_directory}")
    reporter.detail(f"Delete Temp Directory: {project.delete_temp_dir_after_done}")
    reporter.detail(f"Project Name: {project.project_name}")
    reporter.detail(f"Purge Destination: {project.purge_destination_before_copy}")


def process_project(project: ProjectConfig, reporter: Reporter, report: ProjectReport, git: str = GIT):
    """
    fetch -> prepare destination (optional purge) -> copy -> optional temp cleanup.
    Raises ProjectError on any fatal step; nothing already done is rolled back.
    """
    # the temp directory is the clone target
    if not ensure_dir(project.temp_directory):
        raise ProjectError("temp", f"Temp Directory {project.temp_directory} was NOT created successfully, aborting!")
    reporter.success("Temp Directory is ready.")
    report.add_step("temp")

    if not clone_or_update(project.repo_url, project.temp_directory, git=git):
        raise ProjectError("fetch", f"Error while cloning the repository {project.repo_url}")
    reporter.success(f"Fetched the repository: {project.repo_url}")
    report.add_step("fetch")

    source_dir = project.source_dir
    reporter.info(f"Source directory: {source_dir}")

    prepared = prepare_destination(project.destination_path)
    if prepared:
        reporter.info(prepared.message)
    else:
        reporter.warning(prepared.message)
        report.add_warning(prepared.message)

    if project.purge_destination_before_copy:
        reporter.detail(f"Purge the destination directory: {project.destination_path}")
        purge_destination(project.destination_path)
        reporter.detail("Destination directory has been purged and recreated")
        report.add_step("purge")

    if not os.path.isdir(source_dir):
        raise ProjectError("copy", f"Source directory {source_dir} does not exist in the clone (check project_name)")
    try:
        copy_tree(source_dir, project.destination_path)
    except (OSError, ValueError) as e:
        raise ProjectError("copy", f"Error while copying the files: {e}") from e
    reporter.success("Files were copied successfully.")
    report.add_step("copy")

    if project.delete_temp_dir_after_done:
        cleaned = cleanup_temp_directory(project.temp_directory)
        if cleaned:
            reporter.info(cleaned.message)
            report.add_step("cleanup")
        else:
            # not fatal, the copy already happened
            reporter.warning(cleaned.message)
            report.add_warning(cleaned.message)
    else:
        reporter.info("Directory cleanup will not happen")

    report.finished = True
    reporter.success(f"Finished processing the project: {project.project_name}")


def run_projects(config: ProjectsConfig, reporter: Reporter, git: str = GIT) -> RunReport:
    """
    Process projects in order, stopping at the first ProjectError.
    Projects after the failing one are never touched.
    """
    report = RunReport(total_projects=len(config.projects))
    for project in config.projects:
        reporter.section(f"Project Name: {project.project_name}")
        describe_project(project, reporter)
        project_report = ProjectReport(project.project_name, project.repo_url)
        report.projects.append(project_report)
        try:
            process_project(project, reporter, project_report, git=git)
        except ProjectError as e:
            project_report.error = str(e)
            reporter.error(e.message)
            break
    return report

def plan_projects(config: ProjectsConfig, reporter: Reporter):
    for project in config.projects:
        reporter.section(f"Project Name: {project.project_name}")
        describe_project(project, reporter)
        reporter.detail(f"Source directory: {project.source_dir}")

def run(config_path: str = CONFIG_FILE_NAME, reporter: Optional[Reporter] = None, git: str = GIT, dry_run: bool = False) -> int:
    """
    Load `config_path` and process every project. Returns the process exit code.
    """
    reporter = reporter or Reporter()
    reporter.section("Validate the config file")
    config = load_projects(config_path)
    if len(config.projects) == 0:
        reporter.error(f"No projects could be read from {config_path}")
        return 1
    reporter.detail("Config file was successfully read and the struct was populated.")
    reporter.detail(f"There are {len(config.projects)} projects")

    if dry_run:
        plan_projects(config, reporter)
        reporter.section("Dry run, nothing was changed.")
        return 0

    report = run_projects(config, reporter, git=git)
    reporter.summary(report)
    reporter.logger.debug(str(report))
    if report.succeeded:
        reporter.section("All done. Exiting now.")
    return report.exit_code

# ---------- CLI ----------
def main(argv=None) -> int:
    start_time = time.monotonic()
    parser = argparse.ArgumentParser(
        prog="gitwrap",
        description="Clone repositories and copy their contents to configured destinations",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--config",
        dest="config",
        default=CONFIG_FILE_NAME,
        help=f"Path to the projects config file (default: {CONFIG_FILE_NAME} in the working directory)"
    )
    parser.add_argument(
        "--git",
        dest="git",
        default=GIT,
        help="Git executable used for clone and pull (default: git)"
    )
    parser.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        help="Only print what would be done for each project."
    )
    parser.add_argument(
        "--no-banner",
        dest="no_banner",
        action="store_true",
        help="Do not print the welcome banner."
    )
    parser.add_argument(
        "--verbose", "-v",
        dest="verbose",
        action="store_true",
        help="Show the git commands being run and their output."
    )
    parser.add_argument(
        "--log-file",
        dest="log_file",
        default=None,
        help="Also write the log to this file."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    args = parser.parse_args(argv)

    reporter = Reporter(verbose=args.verbose, log_file=args.log_file)
    try:
        if not args.no_banner:
            reporter.banner(VERSION, args.config)
        exit_code = run(args.config, reporter, git=args.git, dry_run=args.dry_run)
        elapsed = time.monotonic() - start_time
        reporter.info(f"Total time: {elapsed:.2f} seconds")
    finally:
        reporter.close()
    return exit_code

if __name__ == "__main__":
    sys.exit(main())
