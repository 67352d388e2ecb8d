import logging
import threading
from typing import Any, Dict, Optional, Set
from .registration_state import FormState, RegistrationFormData

logger = logging.getLogger(__name__)


def state_to_dict(state: FormState) -> Dict[str, Any]:
    """
    Serializa o estado do formulário (chaves da API) para guardar em JSON.
    """
    return {
        "data": state.data.to_dict(),
        "errors": dict(state.errors),
        "submitted": state.submitted,
    }


def state_from_dict(raw: Dict[str, Any]) -> FormState:
    return FormState(
        data=RegistrationFormData.from_dict(raw.get("data", {})),
        errors=dict(raw.get("errors", {})),
        submitted=bool(raw.get("submitted", False)),
    )


class InMemoryFormSessionManager:
    """
    Gerenciador simples de sessões de formulário em memória.
    Em produção, use RedisFormSessionManager (sessões expiram por TTL).
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, FormState] = {}
        self._submitting: Set[str] = set()
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Optional[FormState]:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> FormState:
        if session_id not in self._sessions:
            logger.debug(f"Nova sessão de formulário criada: session_id={session_id}")
            self._sessions[session_id] = FormState()
        return self._sessions[session_id]

    def save_session(self, session_id: str, state: FormState) -> None:
        self._sessions[session_id] = state

    def clear_session(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is not None:
            logger.debug(f"Sessão de formulário removida: session_id={session_id}")

    def acquire_submission(self, session_id: str) -> bool:
        """
        Marca o envio da sessão como em andamento.
        Retorna False se outro envio da mesma sessão ainda não terminou.
        """
        with self._lock:
            if session_id in self._submitting:
                return False
            self._submitting.add(session_id)
            return True

    def release_submission(self, session_id: str) -> None:
        with self._lock:
            self._submitting.discard(session_id)
