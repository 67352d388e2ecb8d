import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.registration_state import FormState, RegistrationFormData
from app.core.session_manager import InMemoryFormSessionManager, state_from_dict, state_to_dict
from app.session.redis_session_manager import RedisFormSessionManager


def _state():
    return FormState(
        data=RegistrationFormData(name="Ana Lima", email="ana@x.com", user_type="cliente", accept_terms=True),
        errors={"cpf": "CPF é obrigatório"},
        submitted=False,
    )


class TestStateSerialization:
    def test_round_trip(self):
        state = _state()
        assert state_from_dict(state_to_dict(state)) == state

    def test_uses_api_keys(self):
        raw = state_to_dict(_state())
        assert raw["data"]["userType"] == "cliente"
        assert raw["data"]["acceptTerms"] is True


class TestInMemoryFormSessionManager:
    def test_get_missing(self):
        assert InMemoryFormSessionManager().get("nope") is None

    def test_get_or_create_returns_same_state(self):
        manager = InMemoryFormSessionManager()
        first = manager.get_or_create("s1")
        assert manager.get_or_create("s1") is first

    def test_save_and_clear(self):
        manager = InMemoryFormSessionManager()
        manager.save_session("s1", _state())
        assert manager.get("s1").data.email == "ana@x.com"
        manager.clear_session("s1")
        assert manager.get("s1") is None
        # Limpar sessão inexistente não falha
        manager.clear_session("s1")

    def test_submission_lock(self):
        manager = InMemoryFormSessionManager()
        assert manager.acquire_submission("s1") is True
        assert manager.acquire_submission("s1") is False
        assert manager.acquire_submission("s2") is True
        manager.release_submission("s1")
        assert manager.acquire_submission("s1") is True


class TestRedisFormSessionManager:
    def test_save_and_get(self, fake_redis):
        manager = RedisFormSessionManager(client=fake_redis, session_ttl_seconds=120)
        manager.save_session("s1", _state())

        assert fake_redis.ttls["form_session:s1"] == 120
        stored = json.loads(fake_redis.store["form_session:s1"].decode("utf-8"))
        assert stored["data"]["email"] == "ana@x.com"
        assert manager.get("s1") == _state()

    def test_get_or_create(self, fake_redis):
        manager = RedisFormSessionManager(client=fake_redis)
        state = manager.get_or_create("s1")
        assert state == FormState()
        assert "form_session:s1" in fake_redis.store

    def test_clear(self, fake_redis):
        manager = RedisFormSessionManager(client=fake_redis)
        manager.save_session("s1", _state())
        manager.clear_session("s1")
        assert manager.get("s1") is None

    def test_submission_lock(self, fake_redis):
        manager = RedisFormSessionManager(client=fake_redis, session_ttl_seconds=120)
        assert manager.acquire_submission("s1") is True
        assert manager.acquire_submission("s1") is False
        # Trava expira junto com a sessão se o processo cair
        assert fake_redis.ttls["form_submission:s1"] == 120
        manager.release_submission("s1")
        assert "form_submission:s1" not in fake_redis.store
        assert manager.acquire_submission("s1") is True

    def test_ping_failure_is_raised(self, fake_redis):
        def broken_ping():
            raise RedisConnectionError("sem conexão")

        fake_redis.ping = broken_ping
        with pytest.raises(RedisConnectionError):
            RedisFormSessionManager(client=fake_redis)

    def test_save_failure_is_raised(self, fake_redis):
        def broken_setex(key, ttl, value):
            raise RedisConnectionError("sem conexão")

        manager = RedisFormSessionManager(client=fake_redis)
        fake_redis.setex = broken_setex
        with pytest.raises(RedisConnectionError):
            manager.save_session("s1", _state())
