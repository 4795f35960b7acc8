from typing import List
from dataclasses import dataclass
from dataclasses_json import dataclass_json


@dataclass_json
@dataclass
class FileContent:
    """
    `filename`: relative to the repo root, may include directories
    """
    filename: str
    content: str
    commit_msg: str


@dataclass_json
@dataclass
class RepoContent:
    """Files committed, in order, on top of an empty initial commit."""
    default_branch: str
    files: List[FileContent]

    def files_under(self, prefix: str) -> List[FileContent]:
        prefix = prefix.rstrip("/") + "/"
        return [f for f in self.files if f.filename.startswith(prefix)]
