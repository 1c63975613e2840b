from __future__ import annotations

import pytest

from rfpdesk.core.config import AiGatewayConfig
from rfpdesk.llm.gateway import AiGateway
from tests.factories import RecordingTransport, ScriptedLLM, build_session_factory


@pytest.fixture
def session_factory():
    return build_session_factory()


@pytest.fixture
def session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def llm():
    return ScriptedLLM()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def gateway(llm, sleeps):
    return AiGateway(client=llm, config=AiGatewayConfig(), sleep=sleeps.append)


@pytest.fixture
def transport():
    return RecordingTransport()
