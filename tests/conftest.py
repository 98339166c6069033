"""Shared fixtures: the app wired to a fake executor instead of a live node."""

import pytest
from fastapi.testclient import TestClient

from chain.executor import Empty
from chain.settings import Settings
from run_api import ChainResources, create_app


class FakeExecutor:
    """Stands in for NftQueryExecutor; returns a preset outcome and records calls."""

    def __init__(self, outcome=None):
        self.outcome = outcome or Empty()
        self.calls = []

    async def get_nft(self, token_id):
        self.calls.append(token_id)
        return self.outcome


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def fake_executor():
    return FakeExecutor()


@pytest.fixture
def client(settings, fake_executor):
    resources = ChainResources(
        executor=fake_executor,
        network="Contracts on Rococo",
        close=lambda: None,
    )
    app = create_app(settings, executor_factory=lambda _settings: resources)
    with TestClient(app) as c:
        yield c
