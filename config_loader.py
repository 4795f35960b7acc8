"""
Reads the project list from the JSON config file.
"""
import json
import logging

from models.config import ProjectsConfig

logger = logging.getLogger("gitwrap")

CONFIG_FILE_NAME = "l1onResources.json"

def load_projects(path: str = CONFIG_FILE_NAME) -> ProjectsConfig:
    """
    Returns the configured projects, in file order.

    A missing or unreadable file yields an empty list (reported as an error).
    Content that is not JSON also yields an empty list, and fields of the
    wrong type decode to their zero value. Callers treat an empty list as fatal.
    """
    try:
        with open(path, "rb") as f:
            content = f.read()
    except (OSError, ValueError) as e:
        logger.error(f"Config file {path} could not be read: {e}")
        return ProjectsConfig()
    logger.info(f"Config file exists: {path}")
    try:
        raw = json.loads(content)
    except (ValueError, RecursionError) as e:
        # RecursionError: nesting deeper than the decoder can follow
        logger.warning(f"Config file {path} is not valid JSON: {e}")
        return ProjectsConfig()
    return ProjectsConfig.from_raw(raw)
