import logging
from dataclasses import replace
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
from uuid import uuid4

from .errors import FormSessionNotFoundError
from .form_controller import LiveFieldValidator, RegistrationFormController
from .profile_rules import ProfileRules
from .registration_manager import SUBMISSION_IN_PROGRESS, RegistrationService, RegistrationResult
from .registration_state import FormState
from .session_manager import InMemoryFormSessionManager
from ..config import AppConfig
from ..session.redis_session_manager import RedisFormSessionManager
from ..storage.database import create_session_factory
from ..storage.repository import SqlUserRepository

logger = logging.getLogger(__name__)


class RegistrationEngine:
    """
    Núcleo do cadastro.

    - Guarda as sessões de formulário (Redis se configurado, senão memória)
    - Aplica as regras por perfil vindas da configuração
    - Abre uma sessão de banco por envio e entrega ao RegistrationService
    """

    def __init__(self, config: AppConfig, session_manager=None) -> None:
        self._config = config
        self._rules = ProfileRules.from_config(config)

        if session_manager is not None:
            self._sessions = session_manager
        elif config.redis_url and config.redis_url.strip():
            try:
                self._sessions = RedisFormSessionManager(
                    redis_url=config.redis_url,
                    session_ttl_seconds=config.session_ttl_seconds,
                )
                logger.info("Sessões de formulário usando Redis")
            except Exception as e:
                logger.error(f"Erro ao inicializar RedisFormSessionManager: {e}, usando InMemory como fallback")
                self._sessions = InMemoryFormSessionManager()
        else:
            self._sessions = InMemoryFormSessionManager()
            logger.info("Sessões de formulário em memória (REDIS_URL não configurado)")

        # Em produção, não criar tabelas automaticamente (usar Alembic)
        self._db_session_factory = create_session_factory(
            config.database_url,
            create_tables=config.env == "dev",
            env=config.env,
        )

        db_type = "sqlite" if "sqlite" in config.database_url else "postgres" if "postgres" in config.database_url else "unknown"
        logger.info(
            f"RegistrationEngine inicializado: database_type={db_type}, "
            f"strict_document_check={config.strict_document_check}"
        )

    @property
    def rules(self) -> ProfileRules:
        return self._rules

    @property
    def config(self) -> AppConfig:
        return self._config

    def _controller(self, state: FormState) -> RegistrationFormController:
        return RegistrationFormController(
            state=state,
            rules=self._rules,
            check_digits=self._config.strict_document_check,
        )

    def live_validator(self, on_result: Callable[[str, Optional[str]], None]) -> LiveFieldValidator:
        """
        Validador com debounce para clientes que validam enquanto o usuário
        digita (mesmas regras e atraso configurado).
        """
        return LiveFieldValidator(
            on_result,
            delay_ms=self._config.live_validation_delay_ms,
            rules=self._rules,
            check_digits=self._config.strict_document_check,
        )

    def _load(self, session_id: str) -> FormState:
        state = self._sessions.get(session_id)
        if state is None:
            raise FormSessionNotFoundError(session_id)
        return state

    def open_form(self) -> Tuple[str, FormState]:
        session_id = uuid4().hex
        state = self._sessions.get_or_create(session_id)
        logger.debug(f"Formulário aberto: session_id={session_id}")
        return session_id, state

    def get_form(self, session_id: str) -> FormState:
        return self._load(session_id)

    def update_fields(self, session_id: str, changes: Mapping[str, Any]) -> FormState:
        state = self._load(session_id)
        controller = self._controller(state)
        controller.update_fields(changes)
        self._sessions.save_session(session_id, controller.state)
        return controller.state

    def validate_form(self, session_id: str) -> Tuple[bool, Dict[str, str]]:
        state = self._load(session_id)
        controller = self._controller(state)
        is_valid = controller.validate()
        self._sessions.save_session(session_id, controller.state)
        return is_valid, controller.errors

    def reset_form(self, session_id: str) -> FormState:
        state = self._load(session_id)
        controller = self._controller(state)
        controller.reset()
        self._sessions.save_session(session_id, controller.state)
        return controller.state

    def submit_form(self, session_id: str) -> RegistrationResult:
        """
        Envia o formulário da sessão.

        Só um envio por sessão de cada vez (trava no store de sessões).
        Em caso de sucesso a sessão é encerrada; em caso de erro ela é
        mantida com os erros atualizados, a menos que tenha sido encerrada
        durante o envio.
        """
        if not self._sessions.acquire_submission(session_id):
            logger.info(f"Envio recusado, outro envio em andamento: session_id={session_id}")
            return RegistrationResult(success=False, error=SUBMISSION_IN_PROGRESS)

        try:
            state = self._load(session_id)
            # Envio em andamento fica visível para quem ler a sessão
            self._sessions.save_session(
                session_id, replace(state, errors=dict(state.errors), submitted=True)
            )
            controller = self._controller(replace(state, submitted=False))

            db_session = self._db_session_factory()
            try:
                result = self._service(db_session).submit_form(controller)
            finally:
                db_session.close()

            if result.success:
                self._sessions.clear_session(session_id)
            elif self._sessions.get(session_id) is not None:
                self._sessions.save_session(session_id, controller.state)
            else:
                logger.info(f"Sessão encerrada durante o envio, estado descartado: session_id={session_id}")
            return result
        finally:
            self._sessions.release_submission(session_id)

    def register(self, data: Mapping[str, Any]) -> RegistrationResult:
        db_session = self._db_session_factory()
        try:
            return self._service(db_session).register(data)
        finally:
            db_session.close()

    def _service(self, db_session) -> RegistrationService:
        return RegistrationService(
            repository=SqlUserRepository(db_session),
            rules=self._rules,
            check_digits=self._config.strict_document_check,
            password_hash_iterations=self._config.password_hash_iterations,
        )
