import json
from pathlib import Path

from click.testing import CliRunner

from license_inspector.cli import main


def _project(make_project):
    return make_project(
        dependencies=["A"],
        lock_packages={
            "": {"dependencies": {"A": "^1.0.0"}},
            "node_modules/A": {"version": "1.0.0", "dependencies": {"B": "^1.0.0"}},
            "node_modules/B": {"version": "1.0.0"},
        },
        installed={
            "A": {"name": "A", "license": "MIT"},
            "B": {"name": "B"},
        },
    )


def test_scan_writes_default_report(make_project):
    project = _project(make_project)
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = runner.invoke(main, ["scan", "--project-dir", str(project)])

        assert result.exit_code == 0, result.output
        payload = json.loads(Path("licenseReport.json").read_text(encoding="utf-8"))

    by_name = {issue["packageName"]: issue for issue in payload["issues"]}
    assert by_name["A"]["severity"] == "LOW"
    assert by_name["B"]["type"] == "n/a"
    assert by_name["B"]["description"] == "A → B"
    assert "Scanned 2 packages" in result.output


def test_scan_markdown_output_file(make_project, tmp_path: Path):
    project = _project(make_project)
    output = tmp_path / "reports" / "licenses.md"
    result = CliRunner().invoke(
        main, ["scan", "--project-dir", str(project), "--format", "markdown", "--output", str(output)]
    )

    assert result.exit_code == 0, result.output
    assert "| B | n/a | ERROR | A → B |" in output.read_text(encoding="utf-8")


def test_missing_lock_file_aborts_before_writing(make_project, tmp_path: Path):
    project = _project(make_project)
    (project / "package-lock.json").unlink()
    output = tmp_path / "report.json"

    result = CliRunner().invoke(main, ["scan", "--project-dir", str(project), "--output", str(output)])

    assert result.exit_code == 2
    assert "Lock file not found" in result.output
    assert not output.exists()


def test_fail_on_threshold_gates_the_run(make_project, tmp_path: Path):
    project = _project(make_project)
    output = tmp_path / "report.json"
    base_args = ["scan", "--project-dir", str(project), "--output", str(output)]

    failing = CliRunner().invoke(main, base_args + ["--fail-on", "ERROR"])
    assert failing.exit_code == 1
    assert "policy: B (n/a)" in failing.output
    assert output.exists()

    legacy = CliRunner().invoke(main, base_args + ["--fail-on", "ERROR", "--severity-preset", "legacy"])
    assert legacy.exit_code == 0, legacy.output


def test_policy_file_and_github_check(make_project, tmp_path: Path):
    project = _project(make_project)
    policy = tmp_path / "policy.yml"
    policy.write_text(
        """
fail_on: ERROR
exceptions:
  - package: B
    reason: internal package without metadata
"""
    )
    check = tmp_path / "check.json"

    result = CliRunner().invoke(
        main,
        [
            "scan",
            "--project-dir",
            str(project),
            "--output",
            str(tmp_path / "report.json"),
            "--policy",
            str(policy),
            "--github-check-output",
            str(check),
        ],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(check.read_text(encoding="utf-8"))
    assert payload["conclusion"] == "success"
    assert payload["details"]["used_exceptions"][0]["package"] == "B"


def test_invalid_policy_exits_with_usage_error(make_project, tmp_path: Path):
    project = _project(make_project)
    policy = tmp_path / "policy.yml"
    policy.write_text("fail_on: SOMETIMES\n")

    result = CliRunner().invoke(main, ["scan", "--project-dir", str(project), "--policy", str(policy)])
    assert result.exit_code == 2


def test_max_hops_env_default(make_project, tmp_path: Path, monkeypatch):
    project = make_project(
        dependencies=["root"],
        lock_packages={"node_modules/a": {"dependencies": {"b": "*"}}, "node_modules/b": {"dependencies": {"a": "*"}}},
        installed={"b": {"license": "MIT"}},
    )
    monkeypatch.setenv("LICENSE_INSPECTOR_MAX_HOPS", "3")
    output = tmp_path / "report.json"

    result = CliRunner().invoke(main, ["scan", "--project-dir", str(project), "--output", str(output)])

    assert result.exit_code == 0, result.output
    issue = json.loads(output.read_text(encoding="utf-8"))["issues"][0]
    assert issue["description"] == "b → a → b"


def test_diff_cli_reports_changes(tmp_path: Path):
    runner = CliRunner()
    with runner.isolated_filesystem():
        base = Path("base.json")
        target = Path("target.json")

        base.write_text(json.dumps({"issues": [{"packageName": "demo", "type": "MIT", "severity": "LOW"}]}))
        target.write_text(
            json.dumps(
                {
                    "issues": [
                        {"packageName": "demo", "type": "n/a", "severity": "ERROR"},
                        {"packageName": "new", "type": "MIT", "severity": "LOW"},
                    ]
                }
            )
        )

        result = runner.invoke(main, ["diff", str(base), str(target)])

    assert result.exit_code == 0
    assert "Added: new" in result.output
    assert "Changed: demo: MIT LOW -> n/a ERROR" in result.output


def test_scan_with_baseline_prints_drift(make_project, tmp_path: Path):
    project = _project(make_project)
    baseline = tmp_path / "baseline.json"
    baseline.write_text(json.dumps({"issues": [{"packageName": "A", "type": "MIT", "severity": "LOW"}]}))

    result = CliRunner().invoke(
        main,
        [
            "scan",
            "--project-dir",
            str(project),
            "--output",
            str(tmp_path / "report.json"),
            "--baseline-report",
            str(baseline),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Added: B" in result.output


def test_severity_preset_keeps_policy_label_overrides(make_project, tmp_path: Path):
    project = make_project(dependencies=["fun"], installed={"fun": {"name": "fun", "license": "WTFPL"}})
    policy = tmp_path / "policy.yml"
    policy.write_text("severity_labels:\n  review: NORMAL\n")
    output = tmp_path / "report.json"

    result = CliRunner().invoke(
        main,
        [
            "scan",
            "--project-dir",
            str(project),
            "--output",
            str(output),
            "--policy",
            str(policy),
            "--severity-preset",
            "default",
        ],
    )

    assert result.exit_code == 0, result.output
    issue = json.loads(output.read_text(encoding="utf-8"))["issues"][0]
    assert issue["packageName"] == "fun"
    assert issue["severity"] == "NORMAL"


def test_diff_with_malformed_report_exits_with_usage_error():
    runner = CliRunner()
    with runner.isolated_filesystem():
        Path("base.json").write_text("{not json")
        Path("list.json").write_text("[]")
        Path("target.json").write_text(json.dumps({"issues": []}))

        result = runner.invoke(main, ["diff", "base.json", "target.json"])
        listed = runner.invoke(main, ["diff", "list.json", "target.json"])

    assert result.exit_code == 2
    assert "Unable to read reports" in result.output
    assert listed.exit_code == 2
    assert "Unable to read reports" in listed.output
