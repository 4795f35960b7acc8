from typing import List, Optional
from dataclasses import dataclass, field
from dataclasses_json import dataclass_json


@dataclass_json
@dataclass
class StepResult:
    """
    Outcome of a best-effort step. Callers decide whether a failure matters.
    """
    ok: bool
    message: str = ""

    def __bool__(self):
        return self.ok


@dataclass_json
@dataclass
class ProjectReport:
    project_name: str
    repo_url: str
    steps: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None
    finished: bool = False

    def add_step(self, step: str):
        self.steps.append(step)

    def add_warning(self, message: str):
        self.warnings.append(message)


@dataclass_json
@dataclass
class RunReport:
    total_projects: int = 0
    projects: List[ProjectReport] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return (self.total_projects > 0
                and len(self.projects) == self.total_projects
                and all(p.finished for p in self.projects))

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1

    def __str__(self):
        s = f"Run Report ({len(self.projects)}/{self.total_projects} projects attempted):\n"
        for p in self.projects:
            status = "done" if p.finished else f"failed: {p.error}"
            s += f"  - {p.project_name or '<clone root>'} ({p.repo_url}): {status}\n"
            for w in p.warnings:
                s += f"    warning: {w}\n"
        return s
