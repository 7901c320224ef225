"""Tests for the selefra CLI commands."""

import json

import pytest
import yaml
from click.testing import CliRunner

from selefra_cli.main import cli


@pytest.fixture
def runner(tmp_path, monkeypatch, selefra_home):
    # Keep the JSONL log file inside the test directory
    monkeypatch.chdir(tmp_path)
    return CliRunner()


@pytest.fixture
def sample_workspace(workspace, write_yaml):
    (workspace / "rules").mkdir()
    (workspace / "rules" / "s3.yaml").write_text("rules: []\n", encoding="utf-8")
    write_yaml("main.yaml", {"modules": [{"name": "aws", "uses": ["./child.yaml", "./rules/s3.yaml"]}]})
    write_yaml("child.yaml", {"modules": [{"name": "s3", "uses": ["./rules/s3.yaml"]}]})
    return workspace


def test_modules_show_prints_flattened_yaml(runner, sample_workspace):
    result = runner.invoke(cli, ["modules", "show", "--workspace", str(sample_workspace)])

    assert result.exit_code == 0, result.output
    assert yaml.safe_load(result.output) == {
        "modules": [
            {"name": "aws.s3", "uses": ["./rules/s3.yaml"]},
            {"name": "aws", "uses": ["./rules/s3.yaml"]},
        ]
    }


def test_modules_show_json(runner, sample_workspace):
    result = runner.invoke(cli, ["modules", "show", "-w", str(sample_workspace), "--format", "json"])

    assert result.exit_code == 0, result.output
    assert [m["name"] for m in json.loads(result.output)["modules"]] == ["aws.s3", "aws"]


def test_modules_show_reports_cycle_and_exits_nonzero(runner, workspace, write_yaml):
    write_yaml("a.yaml", {"modules": [{"name": "a", "uses": ["./b.yaml"]}]})
    write_yaml("b.yaml", {"modules": [{"name": "b", "uses": ["./a.yaml"]}]})

    result = runner.invoke(cli, ["modules", "show", "--workspace", str(workspace)])

    assert result.exit_code == 1
    assert "circular references" in result.output


def test_modules_show_reports_missing_reference(runner, workspace, write_yaml):
    write_yaml("main.yaml", {"modules": [{"name": "m", "uses": ["./missing.yaml"]}]})

    result = runner.invoke(cli, ["modules", "show", "--workspace", str(workspace)])

    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_modules_check_summarizes(runner, sample_workspace):
    result = runner.invoke(cli, ["modules", "check", "--workspace", str(sample_workspace)])

    assert result.exit_code == 0, result.output
    assert "Module configuration is valid" in result.output


def test_modules_graph_shows_tree(runner, sample_workspace):
    result = runner.invoke(cli, ["modules", "graph", "--workspace", str(sample_workspace)])

    assert result.exit_code == 0, result.output
    assert "main.yaml" in result.output
    assert "child.yaml" in result.output


def test_modules_graph_empty_workspace(runner, workspace):
    result = runner.invoke(cli, ["modules", "graph", "--workspace", str(workspace)])

    assert result.exit_code == 0
    assert "No module documents found" in result.output


def test_cache_list_and_clear(runner, selefra_home):
    package = selefra_home / "download" / "modules" / "rules-aws"
    package.mkdir(parents=True)
    (package / "rules.yaml").write_text("rules: []\n", encoding="utf-8")

    listed = runner.invoke(cli, ["cache", "list"])
    assert listed.exit_code == 0, listed.output
    assert "rules-aws" in listed.output

    cleared = runner.invoke(cli, ["cache", "clear", "rules-aws"])
    assert cleared.exit_code == 0, cleared.output
    assert not package.exists()


def test_cache_clear_all_requires_confirmation(runner, selefra_home):
    package = selefra_home / "download" / "modules" / "rules-aws"
    package.mkdir(parents=True)

    aborted = runner.invoke(cli, ["cache", "clear"], input="n\n")
    assert "Aborted" in aborted.output
    assert package.exists()

    forced = runner.invoke(cli, ["cache", "clear", "--force"])
    assert forced.exit_code == 0, forced.output
    assert not package.exists()


def test_cache_path(runner, selefra_home):
    result = runner.invoke(cli, ["cache", "path"])

    assert result.exit_code == 0
    assert "not created yet" in result.output


def test_json_log_file_is_written(runner, tmp_path, sample_workspace):
    runner.invoke(cli, ["modules", "show", "--workspace", str(sample_workspace)])

    log_file = tmp_path / "logs" / "selefra.log.jsonl"
    records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    assert any("Resolved 2 modules" in record["message"] for record in records)
