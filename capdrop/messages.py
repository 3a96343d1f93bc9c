"""
Entry point messages and their dict codec.

Dict form is externally tagged, one key per message:

    {"claim": {}}
    {"change_admin": {"address": "new-admin"}}
    {"update_config": {"config": {"admin": ..., "token_reference": ...,
                                  "total_supply": "10000", "claim_amount": "100"}}}
    {"withdraw_by_admin": {}}

    {"get_user_info": {"address": "user1"}}
    {"get_sale_info": {}}
    {"get_config": {}}
    {"list_user_infos": {"start_after": "user1", "limit": 10}}
    {"get_contract_version": {}}

Decoding failures raise StorageError.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from capdrop.core.exceptions import ConfigInvalid, StorageError
from capdrop.core.models import Config


@dataclass(frozen=True)
class InstantiateMsg:
    admin:           str
    token_reference: str
    total_supply:    int
    claim_amount:    int


@dataclass(frozen=True)
class MigrateMsg:
    previous_version: Optional[str] = None


# ── Execute ───────────────────────────────────────────────────

@dataclass(frozen=True)
class Claim:
    pass


@dataclass(frozen=True)
class ChangeAdmin:
    address: str


@dataclass(frozen=True)
class UpdateConfig:
    config: Config


@dataclass(frozen=True)
class WithdrawByAdmin:
    pass


ExecuteMsg = Union[Claim, ChangeAdmin, UpdateConfig, WithdrawByAdmin]


# ── Query ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class GetUserInfo:
    address: str


@dataclass(frozen=True)
class GetSaleInfo:
    pass


@dataclass(frozen=True)
class GetConfig:
    pass


@dataclass(frozen=True)
class ListUserInfos:
    start_after: Optional[str] = None
    limit:       Optional[int] = None


@dataclass(frozen=True)
class GetContractVersion:
    pass


QueryMsg = Union[GetUserInfo, GetSaleInfo, GetConfig, ListUserInfos, GetContractVersion]


# ── Codec ─────────────────────────────────────────────────────

def _unwrap(data: Any) -> tuple:
    if not isinstance(data, dict) or len(data) != 1:
        raise StorageError(
            "Message must be an object with exactly one key",
            {"message": data},
        )
    (tag, body), = data.items()
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise StorageError("Message body must be an object", {"tag": tag})
    return tag, body


def _config_from_body(body: Dict[str, Any]) -> Config:
    try:
        return Config.from_dict(body)
    except StorageError as exc:
        raise ConfigInvalid("Malformed config", {"error": exc.details.get("error")}) from exc


def parse_instantiate_msg(data: Dict[str, Any]) -> InstantiateMsg:
    config = _config_from_body(data)
    return InstantiateMsg(
        admin=           config.admin,
        token_reference= config.token_reference,
        total_supply=    config.total_supply,
        claim_amount=    config.claim_amount,
    )


def parse_execute_msg(data: Dict[str, Any]) -> ExecuteMsg:
    tag, body = _unwrap(data)
    try:
        if tag == "claim":
            return Claim()
        if tag == "change_admin":
            return ChangeAdmin(address=body["address"])
        if tag == "update_config":
            return UpdateConfig(config=_config_from_body(body["config"]))
        if tag == "withdraw_by_admin":
            return WithdrawByAdmin()
    except KeyError as exc:
        raise StorageError(f"Missing field in '{tag}'", {"field": exc}) from exc
    raise StorageError(f"Unknown execute message '{tag}'")


def parse_query_msg(data: Dict[str, Any]) -> QueryMsg:
    tag, body = _unwrap(data)
    try:
        if tag == "get_user_info":
            return GetUserInfo(address=body["address"])
        if tag == "get_sale_info":
            return GetSaleInfo()
        if tag == "get_config":
            return GetConfig()
        if tag == "list_user_infos":
            limit = body.get("limit")
            return ListUserInfos(
                start_after=body.get("start_after"),
                limit=int(limit) if limit is not None else None,
            )
        if tag == "get_contract_version":
            return GetContractVersion()
    except KeyError as exc:
        raise StorageError(f"Missing field in '{tag}'", {"field": exc}) from exc
    except ValueError as exc:
        raise StorageError(f"Bad field in '{tag}'", {"error": exc}) from exc
    raise StorageError(f"Unknown query message '{tag}'")


def execute_msg_to_dict(msg: ExecuteMsg) -> Dict[str, Any]:
    if isinstance(msg, Claim):
        return {"claim": {}}
    if isinstance(msg, ChangeAdmin):
        return {"change_admin": {"address": msg.address}}
    if isinstance(msg, UpdateConfig):
        return {"update_config": {"config": msg.config.to_dict()}}
    if isinstance(msg, WithdrawByAdmin):
        return {"withdraw_by_admin": {}}
    raise StorageError(f"Cannot encode {type(msg).__name__}")
