"""
Gerenciador de sessões de formulário usando Redis como backend.
Armazena FormState serializado em JSON com TTL configurável.
"""
import logging
import json
from typing import Optional
from redis import Redis
from redis.exceptions import RedisError
from ..core.registration_state import FormState
from ..core.session_manager import state_to_dict, state_from_dict

logger = logging.getLogger(__name__)


class RedisFormSessionManager:
    """
    Gerenciador de sessões de formulário usando Redis.

    Cada sessão fica em uma chave form_session:{session_id}, com TTL
    renovado a cada gravação. Formulário abandonado expira sozinho.
    """

    def __init__(
        self,
        redis_url: str = "",
        session_ttl_seconds: int = 3600,
        client: Optional[Redis] = None,
    ) -> None:
        """
        Args:
            redis_url: URL de conexão Redis (ex: redis://localhost:6379/0)
            session_ttl_seconds: TTL em segundos para expiração de sessões
            client: Cliente Redis já criado (ignora redis_url)
        """
        self._redis = client if client is not None else Redis.from_url(redis_url, decode_responses=False)
        self._session_ttl_seconds = session_ttl_seconds

        try:
            self._redis.ping()
            logger.info(f"RedisFormSessionManager inicializado: ttl={session_ttl_seconds}s")
        except RedisError as e:
            logger.error(f"Erro ao conectar ao Redis: {e}")
            raise

    @staticmethod
    def _key(session_id: str) -> str:
        return f"form_session:{session_id}"

    def get(self, session_id: str) -> Optional[FormState]:
        """
        Recupera a sessão ou None se não existir (ou tiver expirado).
        Erros do Redis são propagados: sem a sessão não há o que validar.
        """
        data = self._redis.get(self._key(session_id))
        if not data:
            return None
        return state_from_dict(json.loads(data.decode("utf-8")))

    def get_or_create(self, session_id: str) -> FormState:
        state = self.get(session_id)
        if state is None:
            state = FormState()
            self.save_session(session_id, state)
            logger.debug(f"Nova sessão de formulário criada no Redis: session_id={session_id}")
        return state

    def save_session(self, session_id: str, state: FormState) -> None:
        data = json.dumps(state_to_dict(state), ensure_ascii=False).encode("utf-8")
        try:
            self._redis.setex(self._key(session_id), self._session_ttl_seconds, data)
        except RedisError as e:
            logger.error(f"Erro ao salvar sessão no Redis: session_id={session_id}, error={e}")
            raise

    def clear_session(self, session_id: str) -> None:
        try:
            self._redis.delete(self._key(session_id))
            logger.debug(f"Sessão removida do Redis: session_id={session_id}")
        except RedisError as e:
            logger.error(f"Erro ao remover sessão do Redis: session_id={session_id}, error={e}")

    @staticmethod
    def _submission_key(session_id: str) -> str:
        return f"form_submission:{session_id}"

    def acquire_submission(self, session_id: str) -> bool:
        """
        Trava de envio com SET NX: só um envio por sessão em todo o cluster.
        A trava expira com o TTL da sessão se o processo cair no meio.
        """
        acquired = self._redis.set(
            self._submission_key(session_id), b"1", nx=True, ex=self._session_ttl_seconds
        )
        return bool(acquired)

    def release_submission(self, session_id: str) -> None:
        try:
            self._redis.delete(self._submission_key(session_id))
        except RedisError as e:
            logger.error(f"Erro ao liberar trava de envio no Redis: session_id={session_id}, error={e}")
