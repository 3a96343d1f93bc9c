"""
tests/test_cli.py

capdrop command line, driven through click's CliRunner.

Exit codes:
    0  committed / answered / journal intact
    1  ledger refused the operation, or journal has violations
    2  usage or I/O error
"""

import json

import pytest
from click.testing import CliRunner

from capdrop.cli import cli
from capdrop.core.crypto import JournalSigner
from capdrop.journal import GENESIS_HASH, load_jsonl


@pytest.fixture
def run(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()
    base = [
        "--state", str(tmp_path / "state.json"),
        "--key", str(tmp_path / "journal.key"),
        "--no-color",
    ]

    def invoke(*args, fmt="human"):
        return runner.invoke(cli, base + ["--format", fmt] + list(args))

    return invoke


@pytest.fixture
def initialized(run):
    result = run("init", "admin", "tok", "300", "100")
    assert result.exit_code == 0, result.output
    return run


class TestLedgerCommands:

    def test_init_and_query(self, initialized):
        result = initialized("query", "config", fmt="json")
        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "admin": "admin",
            "token_reference": "tok",
            "total_supply": "300",
            "claim_amount": "100",
        }

    def test_claim_human_output(self, initialized):
        result = initialized("claim", "--caller", "user1")
        assert result.exit_code == 0
        assert "claimer" in result.output
        assert "user1" in result.output

    def test_claim_json_output(self, initialized):
        result = initialized("claim", "-c", "user1", fmt="json")
        payload = json.loads(result.output)
        assert payload["messages"] == [
            {"token_reference": "tok", "recipient": "user1", "amount": "100"}
        ]

    def test_repeat_claim_exits_1(self, initialized):
        initialized("claim", "-c", "user1")
        result = initialized("claim", "-c", "user1", fmt="json")

        assert result.exit_code == 1
        assert json.loads(result.output)["error"]["kind"] == "already_claimed"

    def test_supply_exhausted_exits_1(self, initialized):
        for user in ("user1", "user2", "user3"):
            assert initialized("claim", "-c", user).exit_code == 0
        result = initialized("claim", "-c", "user4")
        assert result.exit_code == 1

        sale = json.loads(initialized("query", "sale", fmt="json").output)
        assert sale == {"total_distributed": "300"}

    def test_non_admin_withdraw_exits_1(self, initialized):
        result = initialized("withdraw", "-c", "user1", fmt="json")
        assert result.exit_code == 1
        assert json.loads(result.output)["error"]["kind"] == "unauthorized"

    def test_update_config_keeps_unset_fields(self, initialized):
        result = initialized("update-config", "-c", "admin", "--total-supply", "1000")
        assert result.exit_code == 0, result.output

        config = json.loads(initialized("query", "config", fmt="json").output)
        assert config["total_supply"] == "1000"
        assert config["claim_amount"] == "100"
        assert config["admin"] == "admin"

    def test_change_admin_then_withdraw(self, initialized):
        assert initialized("change-admin", "ops", "-c", "admin").exit_code == 0
        initialized("claim", "-c", "user1")

        result = initialized("withdraw", "-c", "ops", fmt="json")
        assert result.exit_code == 0
        assert json.loads(result.output)["messages"][0] == {
            "token_reference": "tok", "recipient": "ops", "amount": "200",
        }

    def test_execute_raw_message(self, initialized):
        result = initialized("execute", '{"change_admin": {"address": "ops"}}', "-c", "admin")
        assert result.exit_code == 0
        assert json.loads(initialized("query", "config", fmt="json").output)["admin"] == "ops"

    def test_execute_invalid_json_is_usage_error(self, initialized):
        result = initialized("execute", "{nope", "-c", "admin")
        assert result.exit_code == 2

    def test_users_and_version_queries(self, initialized):
        initialized("claim", "-c", "user2")
        initialized("claim", "-c", "user1")

        users = json.loads(initialized("query", "users", "--limit", "1", fmt="json").output)
        assert [u["address"] for u in users] == ["user1"]

        user = json.loads(initialized("query", "user", "user9", fmt="json").output)
        assert user is None

        version = json.loads(initialized("query", "version", fmt="json").output)
        assert version["contract"] == "capdrop:airdrop-ledger"

    def test_migrate(self, initialized):
        assert initialized("migrate").exit_code == 0
        result = initialized("migrate", "--previous-version", "0.0.1", fmt="json")
        assert result.exit_code == 1
        assert json.loads(result.output)["error"]["kind"] == "version_mismatch"

    def test_query_before_init_exits_1(self, run):
        result = run("query", "sale", fmt="json")
        assert result.exit_code == 1
        assert json.loads(result.output)["error"]["kind"] == "storage_error"

    def test_corrupt_state_file_exits_2(self, run, tmp_path):
        (tmp_path / "state.json").write_text("{corrupt")
        result = run("query", "sale")
        assert result.exit_code == 2


class TestJournalCommands:

    def test_verify_intact(self, initialized):
        initialized("claim", "-c", "user1")
        result = initialized("journal", "verify", fmt="json")

        assert result.exit_code == 0
        report = json.loads(result.output)
        assert report["valid"] is True
        assert report["total_entries"] == 2

    def test_export_then_tamper(self, initialized, tmp_path):
        initialized("claim", "-c", "user1")
        out = tmp_path / "audit.jsonl"
        assert initialized("journal", "export", str(out)).exit_code == 0
        assert initialized("journal", "verify", "--file", str(out), "--quiet").exit_code == 0

        lines = out.read_text().splitlines()
        entry = json.loads(lines[1])
        entry["attributes"]["amount"] = "999"
        lines[1] = json.dumps(entry)
        out.write_text("\n".join(lines) + "\n")

        assert initialized("journal", "verify", "--file", str(out)).exit_code == 1

    def test_verify_missing_file_exits_2(self, run, tmp_path):
        result = run("journal", "verify", "--file", str(tmp_path / "missing.jsonl"))
        assert result.exit_code == 2

    def test_resigned_export_fails_against_key_file(self, initialized, tmp_path):
        initialized("claim", "-c", "user1")
        out = tmp_path / "audit.jsonl"
        initialized("journal", "export", str(out))

        forger = JournalSigner.generate()
        prev, lines = None, []
        for entry in load_jsonl(out):
            entry.attributes["amount"] = "999"
            entry.causal_hash = prev.chain_hash() if prev is not None else GENESIS_HASH
            entry.signer_public_key = forger.public_key_hex
            prev = entry.sign(forger)
            lines.append(json.dumps(entry.to_dict()))
        out.write_text("\n".join(lines) + "\n")

        result = initialized("journal", "verify", "--file", str(out), fmt="json")
        assert result.exit_code == 1
        kinds = {v["violation_type"] for v in json.loads(result.output)["violations"]}
        assert kinds == {"signer"}

        result = initialized(
            "journal", "verify", "--file", str(out), "--public-key", forger.public_key_hex,
        )
        assert result.exit_code == 0, "Explicit key must override the key file"

    def test_verify_corrupt_journal_record_exits_2(self, initialized, tmp_path):
        state = tmp_path / "state.json"
        data = json.loads(state.read_text())
        del data["records"]["journal/0000000000"]["action"]
        state.write_text(json.dumps(data))

        result = initialized("journal", "verify")
        assert result.exit_code == 2
        assert "Corrupt JournalEntry" in result.output

    def test_export_to_directory_exits_2(self, initialized, tmp_path):
        target = tmp_path / "exports"
        target.mkdir()
        result = initialized("journal", "export", str(target))
        assert result.exit_code == 2
        assert "Cannot export journal" in result.output


class TestSettingsLoading:

    def test_settings_file_in_working_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "capdrop.yaml").write_text(
            "state_path: custom/state.json\n"
            "withdraw_token: legacy\n"
        )
        runner = CliRunner()
        assert runner.invoke(cli, ["init", "admin", "tok", "100", "10"]).exit_code == 0
        assert (tmp_path / "custom" / "state.json").exists()

        result = runner.invoke(cli, ["--format", "json", "withdraw", "-c", "admin"])
        assert json.loads(result.output)["messages"][0]["token_reference"] == "token_address"

    def test_bad_settings_file_is_usage_error(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "bad.yaml").write_text("withdraw_token: other\n")
        result = CliRunner().invoke(cli, ["--settings", "bad.yaml", "query", "sale"])
        assert result.exit_code == 2
