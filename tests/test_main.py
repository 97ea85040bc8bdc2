"""Tests for the command line entry point."""

import logging
import os

import main


class TestMain:

    def test_installs_from_spec_file(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("PROVISIONER_EXECUTION__SCRIPT_DIR", str(tmp_path / "scripts"))
        spec = tmp_path / "install.yaml"
        spec.write_text(
            "installs:\n"
            "  - name: greeter\n"
            "    version: '1.0'\n"
            "    scripts:\n"
            "      - touch greeted\n"
        )

        code = main.main(["--spec", str(spec), "--workspace", str(tmp_path),
                          "--env", f"PATH={os.environ.get('PATH', '/usr/bin:/bin')}"])

        assert code == 0
        assert (tmp_path / "greeted").exists()

    def test_failing_tool_exits_non_zero(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("PROVISIONER_EXECUTION__SCRIPT_DIR", str(tmp_path / "scripts"))
        spec = tmp_path / "install.json"
        spec.write_text('{"installs": [{"name": "broken", "version": "2", "scripts": ["exit 4"]}]}')

        code = main.main(["--spec", str(spec), "--workspace", str(tmp_path)])

        assert code == 1

    def test_malformed_spec_exits_non_zero(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        spec = tmp_path / "install.yaml"
        spec.write_text("installs:\n  - version: 1\n")

        assert main.main(["--spec", str(spec)]) == 1

    def teardown_method(self):
        # setup_root_logger installs its own handlers
        logging.getLogger().handlers.clear()
        output = logging.getLogger("provisioner.output")
        output.handlers.clear()
        output.propagate = True
