"""
tests/test_messages_and_settings.py

Message codec, paginated queries, and YAML settings.
"""

import warnings

import pytest

from capdrop import (
    AirdropContract,
    ChangeAdmin,
    Claim,
    ConfigInvalid,
    InstantiateMsg,
    StorageError,
    UpdateConfig,
    WithdrawByAdmin,
)
from capdrop.core.models import Config
from capdrop.messages import (
    GetContractVersion,
    GetUserInfo,
    ListUserInfos,
    execute_msg_to_dict,
    parse_execute_msg,
    parse_instantiate_msg,
    parse_query_msg,
)
from capdrop.settings import Settings


# ─────────────────────────────────────────────────────────────
# Codec
# ─────────────────────────────────────────────────────────────

class TestCodec:

    @pytest.mark.parametrize("data,expected", [
        ({"claim": {}}, Claim()),
        ({"claim": None}, Claim()),
        ({"change_admin": {"address": "ops"}}, ChangeAdmin(address="ops")),
        ({"withdraw_by_admin": {}}, WithdrawByAdmin()),
    ])
    def test_parse_execute(self, data, expected):
        assert parse_execute_msg(data) == expected

    def test_update_config_amounts_are_decimal_strings(self):
        msg = UpdateConfig(config=Config("admin", "tok", 2 ** 127, 5))
        data = execute_msg_to_dict(msg)

        assert data["update_config"]["config"]["total_supply"] == str(2 ** 127)
        assert parse_execute_msg(data) == msg

    def test_instantiate_accepts_strings_and_ints(self):
        msg = parse_instantiate_msg({
            "admin": "admin", "token_reference": "tok",
            "total_supply": "10000", "claim_amount": 100,
        })
        assert msg == InstantiateMsg("admin", "tok", 10000, 100)

    def test_malformed_config_is_config_invalid(self):
        with pytest.raises(ConfigInvalid):
            parse_execute_msg({"update_config": {"config": {"admin": "admin"}}})
        with pytest.raises(ConfigInvalid):
            parse_instantiate_msg({
                "admin": "admin", "token_reference": "tok",
                "total_supply": "-1", "claim_amount": "1",
            })

    @pytest.mark.parametrize("data", [
        {},
        {"claim": {}, "withdraw_by_admin": {}},
        {"burn": {}},
        {"change_admin": {}},
        {"claim": []},
        "claim",
    ])
    def test_bad_execute_messages(self, data):
        with pytest.raises(StorageError):
            parse_execute_msg(data)

    def test_parse_query(self):
        assert parse_query_msg({"get_user_info": {"address": "u"}}) == GetUserInfo("u")
        assert parse_query_msg({"list_user_infos": {"limit": "5"}}) == ListUserInfos(None, 5)
        assert parse_query_msg({"get_contract_version": {}}) == GetContractVersion()
        with pytest.raises(StorageError):
            parse_query_msg({"list_user_infos": {"limit": "many"}})


# ─────────────────────────────────────────────────────────────
# Pagination
# ─────────────────────────────────────────────────────────────

@pytest.fixture
def populated():
    contract = AirdropContract(default_limit=3, max_limit=5)
    contract.instantiate(InstantiateMsg("admin", "tok", 10000, 100))
    for i in range(8):
        contract.execute(f"user{i}", Claim())
    return contract


class TestPagination:

    def test_default_limit(self, populated):
        page = populated.query(ListUserInfos())
        assert [r.address for r in page] == ["user0", "user1", "user2"]

    def test_limit_clamped_to_max(self, populated):
        assert len(populated.query(ListUserInfos(limit=100))) == 5

    def test_limit_floor_is_one(self, populated):
        assert len(populated.query(ListUserInfos(limit=0))) == 1

    def test_pages_cover_every_record_once(self, populated):
        seen, cursor = [], None
        while True:
            page = populated.query(ListUserInfos(start_after=cursor, limit=3))
            if not page:
                break
            seen.extend(r.address for r in page)
            cursor = page[-1].address

        assert seen == [f"user{i}" for i in range(8)]

    def test_unknown_user_is_none(self, populated):
        assert populated.query(GetUserInfo("nobody")) is None


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────

class TestSettings:

    def test_defaults(self):
        settings = Settings()
        assert settings.withdraw_token == "configured"
        assert settings.lock_claim_amount is False

    def test_from_yaml_resolves_relative_paths(self, tmp_path):
        path = tmp_path / "capdrop.yaml"
        path.write_text(
            "state_path: data/state.json\n"
            "key_path: data/journal.key\n"
            "withdraw_token: legacy\n"
            "lock_claim_amount: true\n"
            "address:\n"
            "  min_length: 1\n"
            "  max_length: 20\n"
            "query:\n"
            "  default_limit: 2\n"
            "  max_limit: 4\n"
        )
        settings = Settings.from_yaml(path)

        assert settings.state_path == tmp_path / "data" / "state.json"
        assert settings.key_path == tmp_path / "data" / "journal.key"
        assert settings.withdraw_token == "legacy"
        assert settings.lock_claim_amount is True
        assert settings.address_validator().max_length == 20
        assert (settings.default_limit, settings.max_limit) == (2, 4)

    def test_empty_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "capdrop.yaml"
        path.write_text("")
        settings = Settings.from_yaml(path)
        assert settings.withdraw_token == "configured"

    @pytest.mark.parametrize("text", [
        "withdraw_token: other\n",
        "lock_claim_amount: \"false\"\n",
        "lock_claim_amount: 1\n",
        "address:\n  min_length: 10\n  max_length: 5\n",
        "query:\n  default_limit: 50\n  max_limit: 30\n",
        "query:\n  default_limit: lots\n",
        "- a\n- b\n",
        "state_path: [unclosed\n",
    ])
    def test_invalid_settings(self, tmp_path, text):
        path = tmp_path / "capdrop.yaml"
        path.write_text(text)
        with pytest.raises(ConfigInvalid):
            Settings.from_yaml(path)

    def test_build_contract_uses_file_storage(self, tmp_path):
        settings = Settings(
            state_path=     tmp_path / "state.json",
            key_path=       tmp_path / "journal.key",
            withdraw_token= "legacy",
        )
        contract = settings.build_contract()
        contract.instantiate(InstantiateMsg("admin", "tok", 1000, 100))

        reopened = settings.build_contract()
        response = reopened.execute("admin", WithdrawByAdmin())
        assert response.messages[0].token_reference == "token_address"
        assert (tmp_path / "journal.key").exists()

    def test_missing_key_with_existing_journal_warns(self, tmp_path):
        settings = Settings(state_path=tmp_path / "state.json", key_path=tmp_path / "journal.key")
        settings.build_contract().instantiate(InstantiateMsg("admin", "tok", 1000, 100))
        (tmp_path / "journal.key").unlink()

        with pytest.warns(RuntimeWarning, match="Journal key"):
            settings.build_contract()

    def test_fresh_state_does_not_warn(self, tmp_path):
        settings = Settings(state_path=tmp_path / "state.json", key_path=tmp_path / "journal.key")
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            settings.build_contract()
