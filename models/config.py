import os
from dataclasses import dataclass, field, fields
from dataclasses_json import dataclass_json


@dataclass_json
@dataclass
class ProjectConfig:
    """
    One unit of work: a repository paired with a destination and its flags.
    Field names match the keys of the config file.
    """
    repo_url: str = ""
    destination_path: str = ""
    temp_directory: str = ""
    delete_temp_dir_after_done: bool = False
    project_name: str = ""
    purge_destination_before_copy: bool = False

    @property
    def source_dir(self) -> str:
        """Copy root inside the clone (the clone root when project_name is empty)"""
        return os.path.join(self.temp_directory, self.project_name)

    @classmethod
    def from_raw(cls, raw) -> "ProjectConfig":
        """
        Lenient decoding: unknown keys are ignored and values of the wrong
        JSON type fall back to the field default.
        """
        if not isinstance(raw, dict):
            return cls()
        clean = dict()
        for f in fields(cls):
            value = raw.get(f.name)
            # bool is a subclass of int but never of str, so a plain isinstance is enough
            if isinstance(value, f.type):
                clean[f.name] = value
        return cls.from_dict(clean)


@dataclass_json
@dataclass
class ProjectsConfig:
    projects: list[ProjectConfig] = field(default_factory=list)

    @classmethod
    def from_raw(cls, raw) -> "ProjectsConfig":
        if not isinstance(raw, dict):
            return cls()
        entries = raw.get("projects")
        if not isinstance(entries, list):
            return cls()
        return cls(projects=[ProjectConfig.from_raw(entry) for entry in entries])
