import pytest

from app.config import AppConfig
from app.core.engine import RegistrationEngine
from app.core.session_manager import InMemoryFormSessionManager
from app.storage.database import create_session_factory
from app.storage.repository import SqlUserRepository


class FakeRedis:
    """
    Dublê mínimo do cliente Redis (get/set/setex/delete/ping) para os testes.
    """

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def ping(self):
        return True

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl

    def set(self, key, value, nx=False, ex=None):
        if nx and key in self.store:
            return None
        self.store[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True

    def delete(self, key):
        self.store.pop(key, None)
        self.ttls.pop(key, None)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def db_session():
    factory = create_session_factory("sqlite://", create_tables=True)
    session = factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def repository(db_session):
    return SqlUserRepository(db_session)


@pytest.fixture
def config():
    return AppConfig(database_url="sqlite://", env="dev", password_hash_iterations=1000)


@pytest.fixture
def engine(config):
    return RegistrationEngine(config=config, session_manager=InMemoryFormSessionManager())


@pytest.fixture
def broker_form():
    return {
        "name": "Maria Souza",
        "email": "maria@exemplo.com",
        "password": "segredo123",
        "confirmPassword": "segredo123",
        "userType": "corretor",
        "creci": "CRECI/SP-123456",
    }
