"""
Lookups in ``key=value`` properties text, as written by scanner reports.
"""

SONAR_WORK_DIR_KEY = "sonar.working.directory"
CE_TASK_ID_KEY = "ceTaskId"
PROJECT_KEY = "projectKey"
BRANCH_KEY = "branch"
CONFIG_PROJECT_KEY = "sonar.projectKey"
CONFIG_BRANCH_KEY = "sonar.branch.name"


def get_key_value(content: str, key: str) -> str:
    """
    Value of the first line whose key matches, or ``""``.

    Keys and values are whitespace-trimmed; lines without ``=`` or with an
    empty key are skipped. The value is everything after the first ``=``.
    """
    for raw in content.split("\n"):
        line = raw.strip()
        index = line.find("=")
        if index < 0:
            continue
        line_key = line[:index].strip()
        if not line_key or line_key != key:
            continue
        return line[index + 1:].strip()
    return ""


def sonar_work_dir(content: str) -> str:
    return get_key_value(content, SONAR_WORK_DIR_KEY)


def sonar_ce_task_id(content: str) -> str:
    return get_key_value(content, CE_TASK_ID_KEY)


def sonar_project_key(content: str) -> str:
    return get_key_value(content, PROJECT_KEY)


def sonar_branch(content: str) -> str:
    return get_key_value(content, BRANCH_KEY)


def project_key_from_config(config: str) -> str:
    """``sonar.projectKey`` from a sonar-project.properties body."""
    return get_key_value(config, CONFIG_PROJECT_KEY)


def branch_from_config(config: str) -> str:
    """``sonar.branch.name`` from a sonar-project.properties body."""
    return get_key_value(config, CONFIG_BRANCH_KEY)
