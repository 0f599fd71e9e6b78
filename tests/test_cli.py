"""Tests for the safecaption CLI."""

import json
import tempfile

from click.testing import CliRunner

from safecaption.auth.store import JsonDataStore
from safecaption.cli import main


def test_validate_json_output():
    runner = CliRunner()
    result = runner.invoke(main, ["validate", "I hate this", "-t", "mood", "--json"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["safe"] is False
    assert data["score"] == 70
    assert data["suggestions"]["caption"] == "I *** this"
    assert data["suggestions"]["hashtags"][0] == "#mood"


def test_validate_flags_disable_checks():
    runner = CliRunner()
    result = runner.invoke(main, ["validate", "I hate this", "--no-hate-speech", "--json"])
    assert result.exit_code == 0
    assert json.loads(result.output)["safe"] is True


def test_validate_table_output():
    runner = CliRunner()
    result = runner.invoke(main, ["validate", "Morning coffee"])
    assert result.exit_code == 0
    assert "SAFE" in result.output
    assert "Engagement" in result.output


def test_validate_rejects_long_caption():
    runner = CliRunner()
    result = runner.invoke(main, ["validate", "a" * 2201])
    assert result.exit_code != 0
    assert "2200" in result.output


def test_user_and_key_commands():
    runner = CliRunner()
    with tempfile.TemporaryDirectory() as tmpdir:
        result = runner.invoke(main, ["--data-dir", tmpdir, "users", "create", "ana@example.com"])
        assert result.exit_code == 0

        result = runner.invoke(main, ["--data-dir", tmpdir, "users", "create", "ana@example.com"])
        assert result.exit_code != 0

        result = runner.invoke(main, ["--data-dir", tmpdir, "keys", "create", "ana@example.com", "CI"])
        assert result.exit_code == 0
        key = result.output.strip().splitlines()[-1]
        assert key.startswith("sk_")

        store = JsonDataStore(tmpdir)
        profile = store.get_profile_by_email("ana@example.com")
        record = store.list_api_keys(profile.id)[0]
        assert record.key == key

        result = runner.invoke(main, ["--data-dir", tmpdir, "keys", "list", "ana@example.com"])
        assert result.exit_code == 0
        assert "CI" in result.output

        result = runner.invoke(
            main, ["--data-dir", tmpdir, "keys", "revoke", "ana@example.com", record.id]
        )
        assert result.exit_code == 0
        assert store.list_api_keys(profile.id)[0].is_active is False

        result = runner.invoke(main, ["--data-dir", tmpdir, "users", "show", "ana@example.com"])
        assert result.exit_code == 0
        assert "free" in result.output


def test_unknown_user():
    runner = CliRunner()
    with tempfile.TemporaryDirectory() as tmpdir:
        result = runner.invoke(main, ["--data-dir", tmpdir, "keys", "list", "nobody@example.com"])
        assert result.exit_code != 0
        assert "No user" in result.output


def test_plans():
    runner = CliRunner()
    result = runner.invoke(main, ["plans"])
    assert result.exit_code == 0
    assert "Enterprise" in result.output
    assert "₹2,399" in result.output
