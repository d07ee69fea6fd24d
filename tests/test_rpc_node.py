"""
RepGov RPC / Node Test Suite

Tests for:
  - JSON-RPC 2.0 server: dispatch, batches, params binding, error mapping
  - gov_* RPC module over a live GovernanceEngine
  - FastAPI node app: POST /rpc and GET /status
  - TOML config loader with env overrides
"""

import json
import os
import sys
import textwrap
from unittest.mock import patch

import httpx
import pytest

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from repgov.config.loader import (
    GovernanceSectionConfig,
    NodeSectionConfig,
    RepGovConfig,
    load_config,
)
from repgov.exceptions import ConfigurationError
from repgov.governance import BlockHeightClock, GovernanceEngine, ProposalStatus
from repgov.node.app import build_engine, create_app
from repgov.rpc.modules import GovernanceModule
from repgov.rpc.server import (
    RPCError,
    RPCErrorCode,
    RPCModule,
    RPCServer,
    rpc_method,
)


OWNER = "SP" + "0" * 38
ALICE = "SP" + "A1" * 19
BOB = "SP" + "B2" * 19
PERIOD = 5


def make_server():
    clock = BlockHeightClock()
    engine = GovernanceEngine(owner=OWNER, clock=clock, voting_period=PERIOD)
    server = RPCServer()
    server.register_module(GovernanceModule(engine))
    return server, engine, clock


async def call(server, method, params=None, rid=1):
    request = {"jsonrpc": "2.0", "method": method, "id": rid}
    if params is not None:
        request["params"] = params
    return json.loads(await server.handle_request(request))


# ══════════════════════════════════════════════════════════════════════
#  RPC SERVER
# ══════════════════════════════════════════════════════════════════════

class TestRPCModule:

    def test_get_methods_namespaced(self):
        class EchoModule(RPCModule):
            namespace = "echo"

            @rpc_method
            async def ping(self):
                return "pong"

            async def _hidden(self):
                return "no"

        methods = EchoModule().get_methods()
        assert "echo_ping" in methods
        assert "echo__hidden" not in methods

    def test_governance_module_methods(self):
        methods = GovernanceModule(None).get_methods()
        for name in (
            "gov_getProposal", "gov_getUserReputation", "gov_calculateReputation",
            "gov_getVotingPower", "gov_isVotingEnded", "gov_getProposalCounter",
            "gov_hasUserVoted", "gov_submitProposal", "gov_vote", "gov_finalize",
            "gov_execute", "gov_setVotingPeriod", "gov_setInitialVotingPower",
        ):
            assert name in methods


class TestRPCServer:

    @pytest.mark.asyncio
    async def test_parse_error(self):
        server = RPCServer()
        parsed = json.loads(await server.handle_request("{not json"))
        assert parsed["error"]["code"] == RPCErrorCode.PARSE_ERROR

    @pytest.mark.asyncio
    async def test_method_not_found(self):
        server = RPCServer()
        parsed = await call(server, "gov_nothing")
        assert parsed["error"]["code"] == RPCErrorCode.METHOD_NOT_FOUND

    @pytest.mark.asyncio
    async def test_invalid_version(self):
        server, _, _ = make_server()
        parsed = json.loads(await server.handle_request(
            {"jsonrpc": "1.0", "method": "gov_getProposalCounter", "id": 1}
        ))
        assert parsed["error"]["code"] == RPCErrorCode.INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_wrong_arity_is_invalid_params(self):
        server, _, _ = make_server()
        parsed = await call(server, "gov_getProposal", [1, 2])
        assert parsed["error"]["code"] == RPCErrorCode.INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_notification_returns_none(self):
        server, engine, _ = make_server()
        result = await server.handle_request({
            "jsonrpc": "2.0",
            "method": "gov_submitProposal",
            "params": [ALICE, "Title", "Desc"],
        })
        assert result is None
        assert engine.get_proposal_counter() == 1

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        server = RPCServer()
        parsed = json.loads(await server.handle_request([]))
        assert parsed["error"]["code"] == RPCErrorCode.INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_batch_applies_in_order(self):
        server, engine, _ = make_server()
        result = await server.handle_request([
            {"jsonrpc": "2.0", "method": "gov_submitProposal", "params": [ALICE, "A", "a"], "id": 1},
            {"jsonrpc": "2.0", "method": "gov_vote", "params": [BOB, 1, True], "id": 2},
            {"jsonrpc": "2.0", "method": "gov_getProposal", "params": [1], "id": 3},
        ])
        responses = {r["id"]: r for r in json.loads(result)}
        assert responses[1]["result"] == 1
        assert responses[2]["result"]["votingPower"] == 1
        assert responses[3]["result"]["votesFor"] == 1

    @pytest.mark.asyncio
    async def test_internal_error(self):
        server = RPCServer()

        async def boom():
            raise RuntimeError("kaput")

        server.register_method("boom", boom)
        parsed = await call(server, "boom")
        assert parsed["error"]["code"] == RPCErrorCode.INTERNAL_ERROR

    def test_rpc_error_to_dict(self):
        err = RPCError(RPCErrorCode.INVALID_PARAMS, "bad", {"field": "x"})
        assert err.to_dict() == {"code": -32602, "message": "bad", "data": {"field": "x"}}


# ══════════════════════════════════════════════════════════════════════
#  gov_* METHODS
# ══════════════════════════════════════════════════════════════════════

class TestGovernanceRPC:

    @pytest.mark.asyncio
    async def test_submit_and_get(self):
        server, _, _ = make_server()
        parsed = await call(server, "gov_submitProposal", {
            "sender": ALICE, "title": "Title", "description": "Desc",
        })
        assert parsed["result"] == 1
        parsed = await call(server, "gov_getProposal", [1])
        assert parsed["result"]["proposer"] == ALICE
        assert parsed["result"]["status"] == "ACTIVE"
        assert parsed["result"]["endHeight"] == PERIOD
        parsed = await call(server, "gov_getProposalCounter")
        assert parsed["result"] == 1

    @pytest.mark.asyncio
    async def test_get_unknown_proposal_is_null(self):
        server, _, _ = make_server()
        parsed = await call(server, "gov_getProposal", [9])
        assert parsed["result"] is None

    @pytest.mark.asyncio
    async def test_double_vote_governance_error(self):
        server, _, _ = make_server()
        await call(server, "gov_submitProposal", [ALICE, "T", "D"])
        await call(server, "gov_vote", [BOB, 1, True])
        parsed = await call(server, "gov_vote", [BOB, 1, False])
        err = parsed["error"]
        assert err["code"] == RPCErrorCode.GOVERNANCE_ERROR
        assert err["data"] == {"error": "AlreadyVotedError", "code": 102}

    @pytest.mark.asyncio
    async def test_unknown_proposal_error(self):
        server, _, _ = make_server()
        parsed = await call(server, "gov_finalize", [4])
        assert parsed["error"]["data"]["error"] == "ProposalNotFoundError"

    @pytest.mark.asyncio
    async def test_vote_support_must_be_bool(self):
        server, _, _ = make_server()
        await call(server, "gov_submitProposal", [ALICE, "T", "D"])
        parsed = await call(server, "gov_vote", [BOB, 1, "yes"])
        assert parsed["error"]["code"] == RPCErrorCode.INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_proposal_id_must_be_int(self):
        server, _, _ = make_server()
        parsed = await call(server, "gov_isVotingEnded", ["1"])
        assert parsed["error"]["code"] == RPCErrorCode.INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_lifecycle(self):
        server, engine, clock = make_server()
        await call(server, "gov_submitProposal", [ALICE, "T", "D"])
        await call(server, "gov_vote", [BOB, 1, True])
        assert (await call(server, "gov_hasUserVoted", [1, BOB]))["result"] is True
        assert (await call(server, "gov_isVotingEnded", [1]))["result"] is False

        parsed = await call(server, "gov_finalize", [1])
        assert parsed["error"]["data"]["error"] == "VotingNotEndedError"

        clock.advance(PERIOD)
        assert (await call(server, "gov_blockHeight"))["result"] == PERIOD
        assert (await call(server, "gov_finalize", [1]))["result"] is True
        executed = (await call(server, "gov_execute", [1]))["result"]
        assert executed["status"] == "EXECUTED"
        assert executed["executed"] is True

        parsed = await call(server, "gov_execute", [1])
        assert parsed["error"]["data"]["error"] == "AlreadyExecutedError"

        rep = (await call(server, "gov_getUserReputation", [ALICE]))["result"]
        assert rep["successfulProposals"] == 1
        assert (await call(server, "gov_calculateReputation", [ALICE]))["result"] == 100
        assert (await call(server, "gov_getVotingPower", [ALICE]))["result"] == 11
        votes = (await call(server, "gov_getVotes", [1]))["result"]
        assert [v["voter"] for v in votes] == [BOB]

    @pytest.mark.asyncio
    async def test_admin_methods(self):
        server, engine, _ = make_server()
        parsed = await call(server, "gov_setVotingPeriod", [ALICE, 100])
        assert parsed["error"]["data"] == {"error": "UnauthorizedError", "code": 100}

        assert (await call(server, "gov_setVotingPeriod", [OWNER, 100]))["result"] is True
        assert (await call(server, "gov_getVotingPeriod"))["result"] == 100

        assert (await call(server, "gov_setInitialVotingPower", [OWNER, BOB, 4]))["result"] is True
        assert (await call(server, "gov_getVotingPower", [BOB]))["result"] == 4

    @pytest.mark.asyncio
    async def test_invalid_title_reported(self):
        server, engine, _ = make_server()
        parsed = await call(server, "gov_submitProposal", [ALICE, "x" * 101, "D"])
        assert parsed["error"]["data"]["error"] == "InvalidProposalError"
        assert engine.get_proposal_counter() == 0


# ══════════════════════════════════════════════════════════════════════
#  NODE APP
# ══════════════════════════════════════════════════════════════════════

def node_config(**governance):
    cfg = RepGovConfig()
    cfg.governance.owner = OWNER
    cfg.governance.voting_period = PERIOD
    for key, value in governance.items():
        setattr(cfg.governance, key, value)
    return cfg


class TestNodeApp:

    def _client(self, app):
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")

    @pytest.mark.asyncio
    async def test_rpc_endpoint(self):
        clock = BlockHeightClock()
        app = create_app(config=node_config(), clock=clock)
        async with self._client(app) as client:
            resp = await client.post("/rpc", json={
                "jsonrpc": "2.0",
                "method": "gov_submitProposal",
                "params": [ALICE, "Title", "Desc"],
                "id": 7,
            })
            assert resp.status_code == 200
            assert resp.json() == {"jsonrpc": "2.0", "id": 7, "result": 1}

        engine = app.state.engine
        assert engine.get_proposal(1).status == ProposalStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_rpc_notification_204(self):
        app = create_app(config=node_config())
        async with self._client(app) as client:
            resp = await client.post("/rpc", json={
                "jsonrpc": "2.0",
                "method": "gov_getProposalCounter",
            })
            assert resp.status_code == 204

    @pytest.mark.asyncio
    async def test_status(self):
        app = create_app(config=node_config(start_height=42))
        async with self._client(app) as client:
            resp = await client.get("/status")
            body = resp.json()
            assert body["ok"] is True
            assert body["result"]["height"] == 42
            assert body["result"]["owner"] == OWNER
            assert body["result"]["votingPeriod"] == PERIOD

    def test_build_engine_requires_owner(self):
        cfg = RepGovConfig()
        cfg.governance.owner = ""
        with pytest.raises(ConfigurationError):
            build_engine(cfg)

    def test_prebuilt_engine(self):
        engine = GovernanceEngine(owner=OWNER, clock=BlockHeightClock(3))
        app = create_app(config=node_config(), engine=engine)
        assert app.state.engine is engine


# ══════════════════════════════════════════════════════════════════════
#  CONFIG
# ══════════════════════════════════════════════════════════════════════

class TestConfig:

    def test_governance_defaults(self):
        cfg = GovernanceSectionConfig()
        assert cfg.voting_period == 1440
        assert cfg.start_height == 0

    def test_from_dict(self):
        cfg = RepGovConfig.from_dict({
            "governance": {"owner": OWNER, "voting_period": 20},
            "node": {"port": 4000, "block_ticker": False},
        })
        assert cfg.governance.owner == OWNER
        assert cfg.governance.voting_period == 20
        assert cfg.node.port == 4000
        assert cfg.node.block_ticker is False

    def test_env_override(self):
        cfg = RepGovConfig()
        with patch.dict(os.environ, {
            "REPGOV_OWNER": BOB,
            "REPGOV_VOTING_PERIOD": "77",
            "REPGOV_NODE_PORT": "5005",
        }):
            cfg.apply_env()
        assert cfg.governance.owner == BOB
        assert cfg.governance.voting_period == 77
        assert cfg.node.port == 5005

    def test_env_override_non_integer(self):
        cfg = NodeSectionConfig()
        with patch.dict(os.environ, {"REPGOV_NODE_PORT": "abc"}):
            with pytest.raises(ConfigurationError):
                cfg.apply_env()

    def test_validate(self):
        cfg = GovernanceSectionConfig(owner=OWNER, voting_period=0)
        with pytest.raises(ConfigurationError):
            cfg.validate()

    def test_fractional_block_time_from_env(self):
        cfg = GovernanceSectionConfig(owner=OWNER)
        with patch.dict(os.environ, {"REPGOV_BLOCK_TIME": "0.5"}):
            cfg.apply_env()
        assert cfg.block_time == 0.5
        cfg.validate()

    def test_non_numeric_block_time_from_env(self):
        cfg = GovernanceSectionConfig(owner=OWNER)
        with patch.dict(os.environ, {"REPGOV_BLOCK_TIME": "fast"}):
            with pytest.raises(ConfigurationError):
                cfg.apply_env()

    @pytest.mark.parametrize("field,value", [
        ("block_time", "60"),
        ("voting_period", "1440"),
        ("voting_period", 1.5),
        ("start_height", None),
        ("owner", 7),
    ])
    def test_wrongly_typed_governance_values(self, field, value):
        cfg = GovernanceSectionConfig.from_dict({"owner": OWNER, field: value})
        with pytest.raises(ConfigurationError):
            cfg.validate()

    @pytest.mark.parametrize("field,value", [
        ("port", "3010"),
        ("port", 0),
        ("rate_limit", 600),
        ("block_ticker", "yes"),
    ])
    def test_wrongly_typed_node_values(self, field, value):
        cfg = NodeSectionConfig.from_dict({field: value})
        with pytest.raises(ConfigurationError):
            cfg.validate()

    def test_string_block_time_in_file(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(textwrap.dedent(f"""
            [governance]
            owner = "{OWNER}"
            block_time = "60"
        """))
        with patch.dict(os.environ, {"REPGOV_BLOCK_TIME": ""}):
            cfg = load_config(str(path))
        with pytest.raises(ConfigurationError):
            build_engine(cfg)

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(textwrap.dedent(f"""
            [governance]
            owner = "{OWNER}"
            voting_period = 30

            [node]
            rate_limit = "10/second"
        """))
        with patch.dict(os.environ, {"REPGOV_VOTING_PERIOD": ""}):
            cfg = load_config(str(path))
        assert cfg.governance.voting_period == 30
        assert cfg.node.rate_limit == "10/second"

    def test_missing_file_uses_defaults(self, tmp_path):
        with patch.dict(os.environ, {"REPGOV_VOTING_PERIOD": ""}):
            cfg = load_config(str(tmp_path / "absent.toml"))
        assert cfg.governance.voting_period == 1440

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[governance\nowner = ")
        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_to_dict(self):
        d = RepGovConfig().to_dict()
        assert set(d) == {"governance", "node"}
        assert d["governance"]["voting_period"] == 1440
