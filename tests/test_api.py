import pytest
from fastapi.testclient import TestClient

from chain.errors import StartupError, TransportError
from chain.executor import Empty, Err, NftRecord, Ok
from run_api import ChainResources, create_app

SWORD = Ok(NftRecord(username="Alice", item="sword"))


def test_matching_username_returns_item(client, fake_executor):
    fake_executor.outcome = SWORD
    r = client.get("/nft", params={"username": "alice", "token_id": "1"})
    assert r.status_code == 200
    assert r.json() == {"success": True, "item": "sword"}
    assert r.headers["content-type"].startswith("application/json")
    assert fake_executor.calls == ["1"]


@pytest.mark.parametrize("username", ["ALICE", "Alice", "aLiCe"])
def test_username_match_ignores_case(client, fake_executor, username):
    fake_executor.outcome = SWORD
    r = client.get("/nft", params={"username": username, "token_id": "1"})
    assert r.status_code == 200


def test_item_is_returned_verbatim(client, fake_executor):
    item = {"name": "Sword", "stats": [1, 2, 3]}
    fake_executor.outcome = Ok(NftRecord(username="Alice", item=item))
    r = client.get("/nft", params={"username": "alice", "token_id": "1"})
    assert r.json()["item"] == item


@pytest.mark.parametrize("username", ["bob", "alice ", "alic", "Alice1", "alíce"])
def test_other_username_is_forbidden(client, fake_executor, username):
    fake_executor.outcome = SWORD
    r = client.get("/nft", params={"username": username, "token_id": "1"})
    assert r.status_code == 403
    assert r.json() == {"error": "Username does not match the NFT owner"}


@pytest.mark.parametrize("params", [
    {"token_id": "1"},
    {"username": "alice"},
    {},
    {"username": "", "token_id": "1"},
    {"username": "alice", "token_id": ""},
])
def test_missing_params_short_circuit(client, fake_executor, params):
    fake_executor.outcome = SWORD
    r = client.get("/nft", params=params)
    assert r.status_code == 400
    assert r.json() == {"error": "Username and token_id are required"}
    assert fake_executor.calls == []


def test_unknown_token_is_not_found(client, fake_executor):
    fake_executor.outcome = Empty()
    r = client.get("/nft", params={"username": "alice", "token_id": "999"})
    assert r.status_code == 404
    assert r.json() == {"error": "NFT not found"}


def test_transport_failure_hides_details(client, fake_executor):
    fake_executor.outcome = Err(TransportError("connection reset by wss://node.internal:9944"))
    r = client.get("/nft", params={"username": "alice", "token_id": "1"})
    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}
    assert "node.internal" not in r.text


def test_repeated_queries_give_same_answer(client, fake_executor):
    fake_executor.outcome = SWORD
    first = client.get("/nft", params={"username": "alice", "token_id": "1"})
    second = client.get("/nft", params={"username": "alice", "token_id": "1"})
    assert (first.status_code, first.json()) == (second.status_code, second.json())


def test_healthz_reports_contract(client, settings):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "network": "Contracts on Rococo", "contract": settings.contract_address}


def test_connection_closed_on_shutdown(settings, fake_executor):
    closed = []
    resources = ChainResources(executor=fake_executor, network=None, close=lambda: closed.append(True))
    with TestClient(create_app(settings, executor_factory=lambda _settings: resources)):
        assert closed == []
    assert closed == [True]


def test_startup_failure_is_fatal(settings):
    def broken(_settings):
        raise StartupError("cannot connect to wss://example.invalid")

    app = create_app(settings, executor_factory=broken)
    with pytest.raises(StartupError):
        with TestClient(app):
            pass


class ExplodingExecutor:
    async def get_nft(self, token_id):
        raise RuntimeError("scale type registry not loaded for ws://10.0.0.7")


def test_unexpected_error_renders_generic_500(settings):
    resources = ChainResources(executor=ExplodingExecutor(), network=None, close=lambda: None)
    app = create_app(settings, executor_factory=lambda _settings: resources)
    with TestClient(app, raise_server_exceptions=False) as c:
        r = c.get("/nft", params={"username": "alice", "token_id": "1"})
    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}
    assert "10.0.0.7" not in r.text
