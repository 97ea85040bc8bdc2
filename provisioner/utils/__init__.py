"""
Utility modules for the tool provisioner.
"""

from .logging import setup_root_logger, LoggingOutputSink, timestamp_line
from .properties import (
    get_key_value,
    sonar_work_dir,
    sonar_ce_task_id,
    sonar_project_key,
    sonar_branch,
    project_key_from_config,
    branch_from_config,
)

__all__ = [
    "setup_root_logger",
    "LoggingOutputSink",
    "timestamp_line",
    "get_key_value",
    "sonar_work_dir",
    "sonar_ce_task_id",
    "sonar_project_key",
    "sonar_branch",
    "project_key_from_config",
    "branch_from_config",
]
