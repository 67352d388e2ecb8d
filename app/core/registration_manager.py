import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from . import constants as c
from .cnpj import strip_cnpj
from .cpf import strip_cpf
from .creci import format_creci
from .errors import DuplicateEmailError
from .form_controller import RegistrationFormController
from .form_validator import validate_registration_form, has_no_errors
from .phone import strip_phone
from .profile_rules import ProfileRules
from .registration_state import AccountStatus, RegistrationFormData
from ..storage.repository import UserRepository, mask_email

logger = logging.getLogger(__name__)

SUBMISSION_IN_PROGRESS = "Cadastro já está sendo enviado"


def hash_password(password: str, iterations: int = 120_000) -> str:
    """
    Gera hash PBKDF2-SHA256 com salt (formato do werkzeug:
    pbkdf2:sha256:iterações$salt$hash).
    """
    return generate_password_hash(password, method=f"pbkdf2:sha256:{iterations}")


def verify_password(password: str, encoded: str) -> bool:
    try:
        return check_password_hash(encoded, password)
    except ValueError:
        # Hash gerado com método desconhecido
        return False


@dataclass
class RegisteredUser:
    id: int
    name: str
    email: str
    user_type: str
    status: str
    created_at: datetime
    phone: Optional[str] = None
    creci: Optional[str] = None
    cnpj: Optional[str] = None
    cpf: Optional[str] = None
    access_level: Optional[str] = None

    @classmethod
    def from_model(cls, user: Any) -> "RegisteredUser":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            user_type=user.user_type,
            status=user.status,
            created_at=user.created_at,
            phone=user.phone,
            creci=user.creci,
            cnpj=user.cnpj,
            cpf=user.cpf,
            access_level=user.access_level,
        )


@dataclass
class RegistrationResult:
    """
    Resultado do envio do cadastro.

    `error` é uma mensagem geral (não associada a campo);
    `errors` traz o mapa por campo quando o formulário é inválido.
    """
    success: bool
    error: Optional[str] = None
    errors: Dict[str, str] = field(default_factory=dict)
    user: Optional[RegisteredUser] = None


class RegistrationService:
    """
    Cria a conta a partir de um formulário válido.

    Revalida o formulário (o envio nunca confia em validação feita antes),
    verifica e-mail duplicado, gera o hash da senha e persiste pelo
    repositório recebido. Não faz nova tentativa em caso de falha.
    """

    def __init__(
        self,
        repository: UserRepository,
        rules: Optional[ProfileRules] = None,
        check_digits: bool = False,
        password_hash_iterations: int = 120_000,
        require_terms_acceptance: bool = False,
    ) -> None:
        self._repository = repository
        self._rules = rules
        self._check_digits = check_digits
        self._password_hash_iterations = password_hash_iterations
        self._require_terms_acceptance = require_terms_acceptance

    def register(self, data: Union[RegistrationFormData, Mapping[str, Any]]) -> RegistrationResult:
        form = data if isinstance(data, RegistrationFormData) else RegistrationFormData.from_dict(dict(data))

        errors = validate_registration_form(form, rules=self._rules, check_digits=self._check_digits)
        if self._require_terms_acceptance and form.accept_terms is not True:
            errors["acceptTerms"] = c.TERMS_NOT_ACCEPTED

        if not has_no_errors(errors):
            logger.info(
                f"Cadastro recusado por validação: user_type={form.user_type}, "
                f"campos_com_erro={sorted(errors)}"
            )
            return RegistrationResult(success=False, error=c.INVALID_FORM, errors=errors)

        payload = form.to_submission_payload()
        email = payload["email"]

        try:
            if self._repository.find_by_email(email):
                logger.warning(f"Tentativa de cadastro com e-mail já cadastrado: email={mask_email(email)}")
                return RegistrationResult(success=False, error=c.EMAIL_ALREADY_REGISTERED)

            user = self._repository.create_user(
                name=payload["name"],
                email=email,
                password_hash=hash_password(form.password, self._password_hash_iterations),
                user_type=form.user_type,
                status=AccountStatus.ACTIVE.value,
                phone=strip_phone(payload["phone"]) if "phone" in payload else None,
                creci=format_creci(payload["creci"]) if "creci" in payload else None,
                cnpj=strip_cnpj(payload["cnpj"]) if "cnpj" in payload else None,
                cpf=strip_cpf(payload["cpf"]) if "cpf" in payload else None,
                company_name=payload.get("companyName"),
                experience=payload.get("experience"),
                access_level=payload.get("accessLevel"),
            )
        except DuplicateEmailError:
            # Corrida entre a verificação e o insert
            logger.warning(f"E-mail duplicado detectado no insert: email={mask_email(email)}")
            return RegistrationResult(success=False, error=c.EMAIL_ALREADY_REGISTERED)
        except SQLAlchemyError as e:
            logger.error(
                f"Erro ao persistir cadastro: email={mask_email(email)}, "
                f"error={type(e).__name__}: {e}",
                exc_info=True,
            )
            return RegistrationResult(success=False, error=c.INTERNAL_ERROR)

        logger.info(
            f"Usuário cadastrado: id={user.id}, user_type={user.user_type}, "
            f"email={mask_email(user.email)}"
        )
        return RegistrationResult(success=True, user=RegisteredUser.from_model(user))

    def submit_form(self, controller: RegistrationFormController) -> RegistrationResult:
        """
        Envia o formulário controlado por `controller`.

        Marca o envio em andamento (bloqueia reenvio), valida, cadastra e,
        em caso de sucesso, reseta o formulário.
        """
        if controller.submitted:
            return RegistrationResult(success=False, error=SUBMISSION_IN_PROGRESS)

        controller.set_submitted(True)
        try:
            if not controller.validate():
                return RegistrationResult(success=False, error=c.INVALID_FORM, errors=controller.errors)

            result = self.register(controller.data)
            if result.success:
                controller.reset()
            return result
        finally:
            controller.set_submitted(False)
