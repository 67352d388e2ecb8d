from dataclasses import dataclass
import os
import logging
from typing import Optional
from dotenv import load_dotenv

from .core.registration_state import DocumentType

logger = logging.getLogger(__name__)


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "y")


def _parse_document_type(name: str, raw: str) -> Optional[DocumentType]:
    value = raw.strip().lower()
    if value in ("", "none"):
        return None
    try:
        return DocumentType(value)
    except ValueError:
        raise RuntimeError(
            f"Valor inválido para {name}: '{raw}'. Use none, cpf ou cnpj."
        ) from None


@dataclass(frozen=True)
class AppConfig:
    """
    Configurações principais da aplicação.

    Centraliza parâmetros críticos para facilitar revisão, testes e
    mudanças futuras.
    """
    database_url: str = "sqlite:///./registro.db"
    env: str = "dev"  # "dev" ou "prod"
    redis_url: str = ""
    session_ttl_seconds: int = 3600  # formulário abandonado expira em 1h
    strict_document_check: bool = False  # conferir dígitos verificadores de CPF/CNPJ
    broker_document_type: Optional[DocumentType] = None
    admin_document_type: Optional[DocumentType] = None
    live_validation_delay_ms: int = 500
    password_hash_iterations: int = 120_000

    @classmethod
    def load_from_env(cls) -> "AppConfig":
        """
        Carrega configuração a partir de variáveis de ambiente.
        Primeiro tenta carregar do arquivo .env, depois do ambiente do sistema.
        Levanta erro explícito se algum valor for inválido.
        """
        load_dotenv()

        database_url = os.getenv("DATABASE_URL", "sqlite:///./registro.db")
        redis_url = os.getenv("REDIS_URL", "")

        env = os.getenv("ENV", "dev").lower()
        if env not in ("dev", "prod"):
            logger.warning(f"ENV inválido '{env}', usando 'dev' como padrão")
            env = "dev"

        strict_document_check = _parse_bool(os.getenv("STRICT_DOCUMENT_CHECK", "0"))
        broker_document_type = _parse_document_type(
            "BROKER_DOCUMENT_TYPE", os.getenv("BROKER_DOCUMENT_TYPE", "none")
        )
        admin_document_type = _parse_document_type(
            "ADMIN_DOCUMENT_TYPE", os.getenv("ADMIN_DOCUMENT_TYPE", "none")
        )

        if env == "prod" and not strict_document_check:
            logger.warning(
                "⚠️  STRICT_DOCUMENT_CHECK desativado em produção: "
                "CPF/CNPJ serão aceitos só pelo formato."
            )

        session_ttl_seconds = int(os.getenv("SESSION_TTL_SECONDS", "3600"))
        live_validation_delay_ms = int(os.getenv("LIVE_VALIDATION_DELAY_MS", "500"))
        password_hash_iterations = int(os.getenv("PASSWORD_HASH_ITERATIONS", "120000"))

        return cls(
            database_url=database_url,
            env=env,
            redis_url=redis_url,
            session_ttl_seconds=session_ttl_seconds,
            strict_document_check=strict_document_check,
            broker_document_type=broker_document_type,
            admin_document_type=admin_document_type,
            live_validation_delay_ms=live_validation_delay_ms,
            password_hash_iterations=password_hash_iterations,
        )
