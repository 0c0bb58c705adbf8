import pytest
from fastapi.testclient import TestClient

from aerie.ai_client import ClientResult
from aerie.app import create_app
from aerie.config import settings
from aerie.errors import ConfigurationMissing
from aerie.models import Difficulty, TestConfig
from aerie.question_bank import QuestionBankManager

from helpers import FakeGeminiService


@pytest.fixture
def config():
    return TestConfig(subject="Part B1", difficulty=Difficulty.MEDIUM)


@pytest.fixture
def fake_service():
    return FakeGeminiService()


@pytest.fixture
def builtin_bank(tmp_path):
    return QuestionBankManager(str(tmp_path / "no_banks_here"))


@pytest.fixture
def make_client(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "LOG_DIR", str(tmp_path / "log"))
    clients = []

    def _make(client_result: ClientResult):
        app = create_app(
            client_result=client_result,
            question_bank=QuestionBankManager(str(tmp_path / "bank")),
        )
        test_client = TestClient(app)
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        test_client.__exit__(None, None, None)


@pytest.fixture
def client(make_client, fake_service):
    return make_client(ClientResult(client=fake_service))


@pytest.fixture
def offline_client(make_client):
    return make_client(ClientResult(error=ConfigurationMissing("API_KEY_MISSING")))
