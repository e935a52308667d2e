# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""End-to-end tests for the phpsab command line with stand-in tools."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest
from click.testing import Result
from support import posix_only
from typer.testing import CliRunner

from phpsab.cli import app

pytestmark = posix_only

ScriptWriter = Callable[[Path, str], Path]

ORIGINAL = "<?php\necho   'hi';\n"

ERROR_REPORT = {
    "totals": {"errors": 1, "warnings": 1, "fixable": 0},
    "files": {
        "STDIN": {
            "errors": 1,
            "warnings": 1,
            "messages": [
                {
                    "message": "Missing file doc comment",
                    "source": "PEAR.Commenting.FileComment.Missing",
                    "severity": 5,
                    "fixable": False,
                    "type": "ERROR",
                    "line": 2,
                    "column": 1,
                },
                {
                    "message": "Line exceeds 80 characters",
                    "source": "Generic.Files.LineLength.TooLong",
                    "severity": 5,
                    "fixable": False,
                    "type": "WARNING",
                    "line": 3,
                    "column": 81,
                },
            ],
        },
    },
}
CLEAN_REPORT = {"totals": {"errors": 0, "warnings": 0, "fixable": 0}, "files": {"STDIN": {"messages": []}}}


def _sniffer(path: Path, write_script: ScriptWriter, report: dict[str, object], *, version: str = "3.7.2") -> Path:
    body = f"""
if [ "$1" = "--version" ]; then
  echo "PHP_CodeSniffer version {version} (stable) by Squiz and PHPCSStandards"
  exit 0
fi
cat > /dev/null
cat <<'JSON'
{json.dumps(report)}
JSON
exit 2
"""
    return write_script(path, body)


def _fixer(path: Path, write_script: ScriptWriter, *, exit_code: int = 1, stdout: str = "") -> Path:
    if stdout:
        body = f"cat > /dev/null\necho '{stdout}'\nexit {exit_code}"
    else:
        body = f"tr -s ' '\nexit {exit_code}"
    return write_script(path, body)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "src" / "index.php").write_text(ORIGINAL, encoding="utf-8")
    return root


def _configure(root: Path, **values: str) -> None:
    lines = [f"{key} = {json.dumps(value)}" for key, value in values.items()]
    (root / ".phpsab.toml").write_text("\n".join(lines) + "\n", encoding="utf-8")


def _invoke(tmp_path: Path, root: Path, *args: str) -> Result:
    runner = CliRunner()
    return runner.invoke(
        app,
        [*args, "--root", str(root), "--user-config", str(tmp_path / "user.toml"), "--no-emoji"],
    )


def test_fix_prints_a_diff(tmp_path: Path, project: Path, write_script: ScriptWriter) -> None:
    _configure(project, fixer_executable_path=str(_fixer(tmp_path / "bin" / "phpcbf", write_script)))

    result = _invoke(tmp_path, project, "fix", str(project / "src" / "index.php"))

    assert result.exit_code == 0, result.stdout
    assert "-echo   'hi';" in result.stdout
    assert "+echo 'hi';" in result.stdout
    assert (project / "src" / "index.php").read_text(encoding="utf-8") == ORIGINAL


def test_fix_writes_the_file(tmp_path: Path, project: Path, write_script: ScriptWriter) -> None:
    _configure(project, fixer_executable_path=str(_fixer(tmp_path / "bin" / "phpcbf", write_script)))

    result = _invoke(tmp_path, project, "fix", "--write", str(project / "src" / "index.php"))

    assert result.exit_code == 0, result.stdout
    assert (project / "src" / "index.php").read_text(encoding="utf-8") == "<?php\necho 'hi';\n"


def test_fix_reports_partial_failure(tmp_path: Path, project: Path, write_script: ScriptWriter) -> None:
    fixer = _fixer(tmp_path / "bin" / "phpcbf", write_script, exit_code=2)
    _configure(project, fixer_executable_path=str(fixer))

    result = _invoke(tmp_path, project, "fix", str(project / "src" / "index.php"))

    assert result.exit_code == 0
    assert "FIXER failed to fix some of the fixable errors." in result.stdout


def test_fix_surfaces_tool_errors(tmp_path: Path, project: Path, write_script: ScriptWriter) -> None:
    fixer = _fixer(tmp_path / "bin" / "phpcbf", write_script, exit_code=3, stdout="ERROR: Ruleset invalid")
    _configure(project, fixer_executable_path=str(fixer))

    result = _invoke(tmp_path, project, "fix", str(project / "src" / "index.php"))

    assert result.exit_code == 1
    assert "FIXER: A general script execution error occurred." in result.stdout
    assert "ERROR: Ruleset invalid" in result.stdout


def test_fix_rejects_invalid_standard(tmp_path: Path, project: Path, write_script: ScriptWriter) -> None:
    fixer = _fixer(tmp_path / "bin" / "phpcbf", write_script)
    _configure(project, fixer_executable_path=str(fixer), standard="PSR12 && id")

    result = _invoke(tmp_path, project, "fix", str(project / "src" / "index.php"))

    assert result.exit_code == 1
    assert "Invalid coding standard" in result.stdout


def test_fix_without_executable_fails(tmp_path: Path, project: Path) -> None:
    _configure(project, fixer_executable_path=str(tmp_path / "missing" / "phpcbf"))

    result = _invoke(tmp_path, project, "fix", str(project / "src" / "index.php"))

    assert result.exit_code == 1
    assert "Fixer is disabled for this workspace or phpcbf was not found." in result.stdout


def test_sniff_reports_errors(tmp_path: Path, project: Path, write_script: ScriptWriter) -> None:
    sniffer = _sniffer(tmp_path / "bin" / "phpcs", write_script, ERROR_REPORT)
    _configure(project, sniffer_executable_path=str(sniffer))

    result = _invoke(tmp_path, project, "sniff", str(project / "src" / "index.php"))

    assert result.exit_code == 1
    assert "1 error(s), 1 warning(s)" in result.stdout


def test_sniff_clean_file(tmp_path: Path, project: Path, write_script: ScriptWriter) -> None:
    sniffer = _sniffer(tmp_path / "bin" / "phpcs", write_script, CLEAN_REPORT)
    _configure(project, sniffer_executable_path=str(sniffer))

    result = _invoke(tmp_path, project, "sniff", str(project / "src" / "index.php"))

    assert result.exit_code == 0, result.stdout
    assert "No issues found." in result.stdout


def test_sniff_warns_about_rejected_arguments(tmp_path: Path, project: Path, write_script: ScriptWriter) -> None:
    sniffer = _sniffer(tmp_path / "bin" / "phpcs", write_script, CLEAN_REPORT)
    (project / ".phpsab.toml").write_text(
        f'sniffer_executable_path = "{sniffer}"\nsniffer_arguments = ["--report=full", "--severity=3"]\n',
        encoding="utf-8",
    )

    result = _invoke(tmp_path, project, "sniff", str(project / "src" / "index.php"))

    assert result.exit_code == 0
    assert 'Removed: "--report=full".' in result.stdout


def test_sniff_without_executable_fails(tmp_path: Path, project: Path) -> None:
    _configure(project, sniffer_executable_path=str(tmp_path / "missing" / "phpcs"))

    result = _invoke(tmp_path, project, "sniff", str(project / "src" / "index.php"))

    assert result.exit_code == 1
    assert "The sniffer is disabled or phpcs was not found." in result.stdout


def test_invalid_configuration_file(tmp_path: Path, project: Path) -> None:
    (project / ".phpsab.toml").write_text("standard = [", encoding="utf-8")

    result = _invoke(tmp_path, project, "sniff", str(project / "src" / "index.php"))

    assert result.exit_code == 1
    assert "Configuration invalid" in result.stdout


def test_doctor_reports_healthy_tools(tmp_path: Path, project: Path, write_script: ScriptWriter) -> None:
    sniffer = _sniffer(tmp_path / "bin" / "phpcs", write_script, CLEAN_REPORT)
    fixer = _sniffer(tmp_path / "bin" / "phpcbf", write_script, CLEAN_REPORT, version="2.9.2")
    _configure(project, sniffer_executable_path=str(sniffer), fixer_executable_path=str(fixer), standard="PSR12")

    result = _invoke(tmp_path, project, "doctor")

    assert result.exit_code == 0, result.stdout
    assert "phpsab Doctor" in result.stdout
    assert "PSR12" in result.stdout
    assert "outdated" in result.stdout


def test_doctor_fails_when_a_tool_is_missing(tmp_path: Path, project: Path, write_script: ScriptWriter) -> None:
    sniffer = _sniffer(tmp_path / "bin" / "phpcs", write_script, CLEAN_REPORT)
    _configure(
        project,
        sniffer_executable_path=str(sniffer),
        fixer_executable_path=str(tmp_path / "missing" / "phpcbf"),
    )

    result = _invoke(tmp_path, project, "doctor")

    assert result.exit_code == 1
    assert "missing" in result.stdout


def test_help_lists_every_command() -> None:
    result = CliRunner().invoke(app, ["--help"])

    assert result.exit_code == 0
    for command in ("fix", "sniff", "doctor"):
        assert command in result.stdout
