from .config import ProjectConfig, ProjectsConfig
from .report import StepResult, ProjectReport, RunReport

__all__ = ['ProjectConfig', 'ProjectsConfig', 'StepResult', 'ProjectReport', 'RunReport']
