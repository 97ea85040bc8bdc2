"""Tests for properties text lookups."""

from provisioner.utils.properties import (
    branch_from_config,
    get_key_value,
    project_key_from_config,
    sonar_ce_task_id,
    sonar_work_dir,
)

REPORT_TASK = """projectKey=demo
serverUrl=http://sonar.local:9000
ceTaskId = AYx1-task
ceTaskUrl=http://sonar.local:9000/api/ce/task?id=AYx1-task
"""


class TestGetKeyValue:

    def test_trims_key_and_value(self):
        assert sonar_ce_task_id(REPORT_TASK) == "AYx1-task"

    def test_value_keeps_later_separators(self):
        assert get_key_value(REPORT_TASK, "ceTaskUrl") == "http://sonar.local:9000/api/ce/task?id=AYx1-task"

    def test_missing_key(self):
        assert sonar_work_dir(REPORT_TASK) == ""

    def test_skips_lines_without_separator_or_key(self):
        assert get_key_value("# comment\n=orphan\nkey=value", "key") == "value"

    def test_first_match_wins(self):
        assert get_key_value("a=1\na=2", "a") == "1"

    def test_config_helpers(self):
        config = "sonar.projectKey=my-service\nsonar.branch.name=release/1.2\n"
        assert project_key_from_config(config) == "my-service"
        assert branch_from_config(config) == "release/1.2"

    def test_exported_from_utils_package(self):
        from provisioner import utils

        assert utils.get_key_value("a=1", "a") == "1"
        assert utils.sonar_project_key("projectKey=demo\n") == "demo"
        assert utils.sonar_branch("branch=main\n") == "main"
