import logging
from datetime import datetime
from typing import Any, Dict, Optional, Protocol

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..core.errors import DuplicateEmailError
from .models import User

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "name", "phone", "creci", "cnpj", "cpf", "company_name",
    "experience", "access_level", "status", "password_hash",
)


class UserRepository(Protocol):
    """
    Capacidades de persistência usadas pelo cadastro.
    """

    def find_by_email(self, email: str) -> Optional[User]:
        ...

    def create_user(self, **fields: Any) -> User:
        ...

    def update_user(self, user_id: int, changes: Dict[str, Any]) -> Optional[User]:
        ...


def mask_email(email: str) -> str:
    """
    Mascara o e-mail para logs.
    Ex: "maria@exemplo.com" -> "ma***@exemplo.com"
    """
    local, _, domain = email.partition("@")
    return f"{local[:2]}***@{domain}" if domain else "***"


class SqlUserRepository:
    """
    Repositório de usuários sobre SQLAlchemy.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_email(self, email: str) -> Optional[User]:
        """
        Busca usuário por e-mail (sem diferenciar maiúsculas/minúsculas).
        """
        statement = select(User).where(func.lower(User.email) == email.strip().lower())
        return self._db.execute(statement).scalars().first()

    def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        user_type: str,
        status: str,
        phone: Optional[str] = None,
        creci: Optional[str] = None,
        cnpj: Optional[str] = None,
        cpf: Optional[str] = None,
        company_name: Optional[str] = None,
        experience: Optional[str] = None,
        access_level: Optional[str] = None,
    ) -> User:
        """
        Cria um novo usuário no banco de dados.

        Levanta DuplicateEmailError se o e-mail já existir.
        """
        logger.debug(
            f"Criando usuário: email={mask_email(email)}, user_type={user_type}"
        )

        try:
            user = User(
                name=name,
                email=email.strip().lower(),
                password_hash=password_hash,
                user_type=user_type,
                status=status,
                phone=phone,
                creci=creci,
                cnpj=cnpj,
                cpf=cpf,
                company_name=company_name,
                experience=experience,
                access_level=access_level,
            )
            self._db.add(user)
            self._db.commit()
            self._db.refresh(user)

            assert user.id is not None, (
                "User persisted without id! "
                "This indicates a persistence error."
            )

            logger.debug(f"Usuário criado com sucesso: id={user.id}")
            return user
        except IntegrityError as e:
            self._db.rollback()
            logger.warning(
                f"Erro de integridade ao criar usuário: email={mask_email(email)}, "
                f"error={type(e).__name__}"
            )
            raise DuplicateEmailError(email, details=str(e.orig)) from e
        except SQLAlchemyError as e:
            logger.error(
                f"Erro de banco de dados ao criar usuário: email={mask_email(email)}, "
                f"error={type(e).__name__}: {e}",
                exc_info=True,
            )
            self._db.rollback()
            raise

    def update_user(self, user_id: int, changes: Dict[str, Any]) -> Optional[User]:
        """
        Atualiza campos permitidos de um usuário.
        Retorna None se o usuário não existir.
        """
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Campos não atualizáveis: {sorted(unknown)}")

        user = self._db.get(User, user_id)
        if user is None:
            return None

        try:
            for name, value in changes.items():
                setattr(user, name, value)
            user.updated_at = datetime.utcnow()
            self._db.commit()
            self._db.refresh(user)
            logger.debug(f"Usuário atualizado: id={user_id}, campos={sorted(changes)}")
            return user
        except SQLAlchemyError as e:
            logger.error(
                f"Erro de banco de dados ao atualizar usuário: id={user_id}, "
                f"error={type(e).__name__}: {e}",
                exc_info=True,
            )
            self._db.rollback()
            raise
