import threading

import pytest

from app.config import AppConfig
from app.core import constants as c
from app.core.engine import RegistrationEngine
from app.core.errors import FormSessionNotFoundError, UnknownFieldError
from app.core.registration_manager import SUBMISSION_IN_PROGRESS
from app.core.registration_state import DocumentType
from app.core.session_manager import InMemoryFormSessionManager
from app.session.redis_session_manager import RedisFormSessionManager


class TestRegistrationEngine:
    def test_defaults_to_in_memory_sessions(self, config):
        engine = RegistrationEngine(config=config)
        assert isinstance(engine._sessions, InMemoryFormSessionManager)

    def test_uses_injected_session_manager(self, config, fake_redis):
        sessions = RedisFormSessionManager(client=fake_redis)
        engine = RegistrationEngine(config=config, session_manager=sessions)
        session_id, _ = engine.open_form()
        assert f"form_session:{session_id}" in fake_redis.store

    def test_unreachable_redis_falls_back_to_memory(self):
        config = AppConfig(database_url="sqlite://", redis_url="redis://127.0.0.1:1/0")
        engine = RegistrationEngine(config=config)
        assert isinstance(engine._sessions, InMemoryFormSessionManager)

    def test_rules_follow_config(self):
        config = AppConfig(database_url="sqlite://", broker_document_type=DocumentType.CPF)
        engine = RegistrationEngine(config=config)
        assert "cpf" in engine.rules.required_fields("corretor")

    def test_missing_session(self, engine):
        with pytest.raises(FormSessionNotFoundError):
            engine.get_form("nope")
        with pytest.raises(FormSessionNotFoundError):
            engine.update_fields("nope", {"name": "Ana"})

    def test_form_flow(self, engine, broker_form):
        session_id, state = engine.open_form()
        assert state.data.name == ""

        engine.update_fields(session_id, broker_form)
        assert engine.validate_form(session_id) == (True, {})

        result = engine.submit_form(session_id)
        assert result.success
        with pytest.raises(FormSessionNotFoundError):
            engine.get_form(session_id)

    def test_failed_submission_keeps_errors(self, engine):
        session_id, _ = engine.open_form()
        engine.update_fields(session_id, {"userType": "imobiliaria"})
        result = engine.submit_form(session_id)
        assert not result.success
        assert engine.get_form(session_id).errors["cnpj"] == "CNPJ é obrigatório"

    def test_reset_form(self, engine, broker_form):
        session_id, _ = engine.open_form()
        engine.update_fields(session_id, broker_form)
        state = engine.reset_form(session_id)
        assert state.data.email == ""

    def test_register_direct(self, engine, broker_form):
        assert engine.register(broker_form).success
        assert engine.register(broker_form).error == c.EMAIL_ALREADY_REGISTERED

    def test_live_validator_uses_configured_delay(self):
        config = AppConfig(database_url="sqlite://", live_validation_delay_ms=5)
        engine = RegistrationEngine(config=config)
        done = threading.Event()
        results = []

        def on_result(field_name, message):
            results.append((field_name, message))
            done.set()

        engine.live_validator(on_result).schedule("cpf", "123")
        assert done.wait(2)
        assert results == [("cpf", c.INVALID_CPF)]

    def test_update_fields_keeps_form_on_unknown_field(self, engine):
        session_id, _ = engine.open_form()
        with pytest.raises(UnknownFieldError):
            engine.update_fields(session_id, {"name": "Ana Lima", "idade": 3})
        assert engine.get_form(session_id).data.name == ""


def _hook_into_register(engine, hook):
    """
    Faz o serviço criado pelo engine chamar `hook()` no meio do cadastro,
    simulando outra requisição chegando durante o envio.
    """
    build_service = engine._service

    def service_with_hook(db_session):
        service = build_service(db_session)
        register = service.register

        def register_with_hook(data):
            hook()
            return register(data)

        service.register = register_with_hook
        return service

    engine._service = service_with_hook


class TestConcurrentSubmission:
    @pytest.fixture
    def redis_engine(self, config, fake_redis):
        return RegistrationEngine(
            config=config, session_manager=RedisFormSessionManager(client=fake_redis)
        )

    @pytest.mark.parametrize("engine_fixture", ["engine", "redis_engine"])
    def test_second_submit_is_refused_while_first_runs(self, request, engine_fixture, broker_form):
        engine = request.getfixturevalue(engine_fixture)
        session_id, _ = engine.open_form()
        engine.update_fields(session_id, broker_form)
        seen = []

        def second_submit():
            seen.append(engine.get_form(session_id).submitted)
            seen.append(engine.submit_form(session_id))

        _hook_into_register(engine, second_submit)
        result = engine.submit_form(session_id)

        assert seen[0] is True
        assert seen[1].success is False
        assert seen[1].error == SUBMISSION_IN_PROGRESS
        assert result.success
        with pytest.raises(FormSessionNotFoundError):
            engine.get_form(session_id)

    def test_lock_is_released_after_submit(self, redis_engine, fake_redis):
        session_id, _ = redis_engine.open_form()
        redis_engine.update_fields(session_id, {"name": "Ana Lima"})
        assert not redis_engine.submit_form(session_id).success
        assert f"form_submission:{session_id}" not in fake_redis.store
        state = redis_engine.get_form(session_id)
        assert state.submitted is False
        assert "email" in state.errors

    def test_failed_submit_does_not_revive_cleared_session(self, redis_engine, broker_form):
        assert redis_engine.register(broker_form).success
        session_id, _ = redis_engine.open_form()
        redis_engine.update_fields(session_id, broker_form)

        _hook_into_register(redis_engine, lambda: redis_engine._sessions.clear_session(session_id))
        result = redis_engine.submit_form(session_id)

        assert result.error == c.EMAIL_ALREADY_REGISTERED
        with pytest.raises(FormSessionNotFoundError):
            redis_engine.get_form(session_id)
