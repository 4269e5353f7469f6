"""CLI tests for commitgate commands."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from commitgate import __version__
from commitgate.cli import EXIT_ABORTED, EXIT_ACCEPTED, EXIT_REJECTED, cli

CONFIG_YAML = """\
projects:
  All-Projects:
    rejectSubmodule: true
    rejectWindowsLineEndings: true
    ignoreFilesWhenCheckingLineEndings: [bat]
"""

ZERO = "0" * 40


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "commitgate.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return path


def _check(runner, repo, config_file, *args):
    return runner.invoke(
        cli,
        ["check", *args, "--repo", str(repo.root), "--config", str(config_file)],
    )


def test_check_accepts_clean_commit(runner, repo, config_file):
    commit_id = repo.commit({"a.txt": b"unix\n", "run.bat": b"@echo off\r\n"})

    result = _check(runner, repo, config_file, commit_id)

    assert result.exit_code == EXIT_ACCEPTED, result.output
    assert "1 commit(s) accepted" in result.output


def test_check_rejects_crlf_file(runner, repo, config_file):
    commit_id = repo.commit({"notes.txt": b"windows\r\n"})

    result = _check(runner, repo, config_file, commit_id)

    assert result.exit_code == EXIT_REJECTED
    assert "ERROR: found carriage return (CR) character in file: notes.txt" in result.output
    assert "push rejected" in result.output


def test_check_json_output(runner, repo, config_file):
    commit_id = repo.commit({"vendor/lib": ("160000", "1" * 40)})

    result = _check(runner, repo, config_file, commit_id, "--json")

    assert result.exit_code == EXIT_REJECTED
    payload = json.loads(result.stdout)
    assert payload["rejected"] is True
    assert payload["outcomes"] == [
        {
            "commit": commit_id,
            "rejected": True,
            "messages": [{"severity": "ERROR", "text": "submodules are not allowed: vendor/lib"}],
        }
    ]


def test_check_without_configuration_accepts(runner, repo, tmp_path):
    commit_id = repo.commit({"vendor/lib": ("160000", "1" * 40)})

    result = _check(runner, repo, tmp_path / "absent.yaml", commit_id)

    assert result.exit_code == EXIT_ACCEPTED


def test_check_skip_user_from_environment(runner, repo, tmp_path):
    config = tmp_path / "skip.yaml"
    config.write_text(
        "projects:\n"
        "  All-Projects:\n"
        "    rejectSubmodule: true\n"
        "    skipValidation: rejectSubmodule\n"
        "    skipUser: [release-bot]\n",
        encoding="utf-8",
    )
    commit_id = repo.commit({"vendor/lib": ("160000", "1" * 40)})

    result = runner.invoke(
        cli,
        ["check", commit_id, "--repo", str(repo.root), "--config", str(config)],
        env={"COMMITGATE_USER": "release-bot"},
    )

    assert result.exit_code == EXIT_ACCEPTED, result.output


def test_check_unknown_commit_aborts(runner, repo, config_file):
    result = _check(runner, repo, config_file, "f" * 40)

    assert result.exit_code == EXIT_ABORTED


def test_check_not_a_repository_aborts(runner, tmp_path, config_file):
    plain = tmp_path / "plain"
    plain.mkdir()

    result = runner.invoke(cli, ["check", "a" * 40, "--repo", str(plain), "--config", str(config_file)])

    assert result.exit_code == EXIT_ABORTED


def test_check_invalid_configuration_aborts(runner, repo, tmp_path):
    config = tmp_path / "bad.yaml"
    config.write_text("projects:\n  app:\n    failFast: sometimes\n", encoding="utf-8")
    commit_id = repo.commit({"a.txt": b"a"})

    result = _check(runner, repo, config, commit_id)

    assert result.exit_code == EXIT_ABORTED


def test_pre_receive_rejects_push(runner, repo, config_file):
    commit_id = repo.commit({"notes.txt": b"windows\r\n"})

    result = runner.invoke(
        cli,
        ["pre-receive", "--repo", str(repo.root), "--config", str(config_file)],
        input=f"{ZERO} {commit_id} refs/heads/main\n",
    )

    assert result.exit_code == EXIT_REJECTED
    assert "notes.txt" in result.output


def test_pre_receive_accepts_deletion(runner, repo, config_file):
    result = runner.invoke(
        cli,
        ["pre-receive", "--repo", str(repo.root), "--config", str(config_file)],
        input=f"{'a' * 40} {ZERO} refs/heads/old\n",
    )

    assert result.exit_code == EXIT_ACCEPTED
    assert "0 commit(s) accepted" in result.output


def test_pre_receive_malformed_input_aborts(runner, repo, config_file):
    result = runner.invoke(
        cli,
        ["pre-receive", "--repo", str(repo.root), "--config", str(config_file)],
        input="garbage\n",
    )

    assert result.exit_code == EXIT_ABORTED


def test_rules_lists_registered_rules(runner):
    result = runner.invoke(cli, ["rules"])

    assert result.exit_code == 0
    assert "rejectSubmodule" in result.output
    assert "rejectWindowsLineEndings" in result.output


def test_version(runner):
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output
