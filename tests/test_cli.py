"""Tests for the command line shell."""

import json
import logging

import pytest

from guidelint.cli import EXIT_FAILURE, EXIT_FINDINGS, EXIT_OK, main
from guidelint.logging_config import AnalysisEventFormatter, configure_logging

IMPURE = """\
export async function calculateUsageRate(userId: string) {
  return fetch(`/api/usage/${userId}`);
}
"""

CLEAN = """\
export function calculateTotal(items: number[]) {
  return items.reduce((sum, item) => sum + item, 0);
}
"""


@pytest.fixture
def project(write_tree, monkeypatch):
    def _make(files):
        root = write_tree(files)
        monkeypatch.chdir(root)
        return root

    return _make


class TestMain:
    """Exit codes and output of main()."""

    def test_clean_project_exits_zero(self, project, capsys):
        project({"src/calculate-total.ts": CLEAN})
        assert main(["src"]) == EXIT_OK
        out = capsys.readouterr().out
        assert out == "1 file analyzed: 0 error(s), 0 warning(s), 0 info, 0 parse error(s)\n"

    def test_error_findings_exit_one(self, project, capsys):
        project({"src/calculate-usage-rate.ts": IMPURE})
        assert main(["src"]) == EXIT_FINDINGS
        out = capsys.readouterr().out
        assert "src/calculate-usage-rate.ts:2:10 [error] impure-core-function:" in out

    def test_warnings_alone_exit_zero(self, project, capsys):
        project({"src/utils.ts": CLEAN})
        assert main(["src"]) == EXIT_OK
        assert "[warning] file-name-matches-export" in capsys.readouterr().out

    def test_json_output(self, project, capsys):
        project({"src/calculate-usage-rate.ts": IMPURE})
        assert main(["src", "--format", "json"]) == EXIT_FINDINGS
        data = json.loads(capsys.readouterr().out)
        assert data["files_analyzed"] == 1
        assert [f["rule_id"] for f in data["findings"]] == ["impure-core-function"]

    def test_config_can_disable_error_rule(self, project, capsys):
        root = project({"src/calculate-usage-rate.ts": IMPURE})
        (root / "guidelint.toml").write_text(
            "[rules.impure-core-function]\nenabled = false\n", encoding="utf-8"
        )
        assert main(["src", "--config", "guidelint.toml"]) == EXIT_OK

    def test_only_selects_rules(self, project, capsys):
        project({"src/utils.ts": IMPURE})
        assert main(["src", "--only", "file-name-matches-export"]) == EXIT_OK
        out = capsys.readouterr().out
        assert "impure-core-function" not in out
        assert "file-name-matches-export" in out

    def test_list_rules(self, capsys):
        assert main(["--list-rules"]) == EXIT_OK
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 10
        assert lines[0].startswith("prefer-early-return")
        assert "error" in next(line for line in lines if line.startswith("impure-core-function"))

    @pytest.mark.parametrize(
        "argv, message",
        [
            ([], "no input paths given"),
            (["does-not-exist"], "not found"),
            (["src", "--only", "bogus"], "Unknown rule"),
            (["src", "--config", "missing.toml"], "Cannot read config file"),
        ],
    )
    def test_failures_exit_two(self, project, capsys, argv, message):
        project({"src/a.ts": CLEAN})
        assert main(argv) == EXIT_FAILURE
        err = capsys.readouterr().err
        assert err.startswith("guidelint: error: ")
        assert message in err

    def test_directory_without_sources_exits_two(self, project, capsys):
        project({"docs/readme.md": "# hi\n"})
        assert main(["docs"]) == EXIT_FAILURE

    def test_parse_errors_do_not_fail_the_run(self, project, capsys):
        project({"src/bad.ts": "export function broken( {\n"})
        assert main(["src"]) == EXIT_OK
        assert "[error] parse-error:" in capsys.readouterr().out

    def test_invalid_workers_is_a_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["src", "--workers", "0"])
        assert exc_info.value.code == 2


class TestLogging:
    """Logging configuration."""

    def test_configure_logging_replaces_handlers(self, tmp_path):
        log_file = tmp_path / "guidelint.log"
        configure_logging("DEBUG", str(log_file))
        configure_logging("INFO", str(log_file))
        logger = logging.getLogger("guidelint")
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 2
        assert not logger.propagate

    def test_event_formatter_emits_json(self):
        record = logging.LogRecord(
            "guidelint.analysis.runner", logging.INFO, __file__, 1,
            "Analyzed %d files", (3,), None,
        )
        record.event = "run_complete"
        record.files = 3
        data = json.loads(AnalysisEventFormatter().format(record))
        assert data["message"] == "Analyzed 3 files"
        assert data["event"] == "run_complete"
        assert data["files"] == 3
        assert data["level"] == "INFO"
