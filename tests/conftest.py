import random

from fastapi.testclient import TestClient
import pytest

from factories import NOW
from quizdesk.core.classroom_manager import ClassroomManager
from quizdesk.core.seed_data import initial_state
from quizdesk.core.services.practice import PracticeSelector
from quizdesk.server.api_server import create_api_app


@pytest.fixture
def seed():
    return initial_state(NOW)


@pytest.fixture
def manager(seed):
    return ClassroomManager(seed=seed, selector=PracticeSelector(random.Random(7)))


@pytest.fixture
def client(manager):
    return TestClient(create_api_app(manager))
