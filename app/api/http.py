import logging
import time
from uuid import uuid4
from fastapi import FastAPI, HTTPException, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel

from ..config import AppConfig
from ..core import constants as c
from ..core.cnpj import format_cnpj, is_valid_cnpj, is_valid_cnpj_shape, strip_cnpj
from ..core.cpf import format_cpf, is_valid_cpf, is_valid_cpf_shape, strip_cpf
from ..core.creci import format_creci, is_valid_creci_shape, strip_creci
from ..core.engine import RegistrationEngine
from ..core.errors import FormSessionNotFoundError, InvalidFieldValueError, UnknownFieldError
from ..core.form_validator import validate_registration_form, has_no_errors
from ..core.phone import format_phone, is_valid_phone, strip_phone
from ..core.registration_manager import SUBMISSION_IN_PROGRESS, RegistrationResult
from ..core.registration_state import FormState

logger = logging.getLogger(__name__)


class RegistrationFormPayload(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""
    confirmPassword: str = ""
    userType: Optional[str] = None
    phone: Optional[str] = None
    creci: Optional[str] = None
    cnpj: Optional[str] = None
    cpf: Optional[str] = None
    companyName: Optional[str] = None
    acceptTerms: Optional[bool] = None
    experience: Optional[str] = None
    accessLevel: Optional[str] = None


class ValidationResponse(BaseModel):
    valid: bool
    errors: Dict[str, str]


class DocumentRequest(BaseModel):
    kind: Literal["cpf", "cnpj", "creci", "phone"]
    value: str


class DocumentResponse(BaseModel):
    kind: str
    formatted: str
    stripped: str
    valid_shape: bool
    valid_checksum: Optional[bool] = None  # só CPF/CNPJ têm dígito verificador


class FieldUpdateRequest(BaseModel):
    changes: Dict[str, Any]


class FormStateResponse(BaseModel):
    session_id: str
    data: Dict[str, Any]
    errors: Dict[str, str]
    submitted: bool


class RegisteredUserResponse(BaseModel):
    id: int
    name: str
    email: str
    user_type: str
    status: str
    created_at: str


class RegistrationResponse(BaseModel):
    success: bool
    error: Optional[str] = None
    errors: Dict[str, str] = {}
    user: Optional[RegisteredUserResponse] = None


class ProfileOption(BaseModel):
    value: str
    label: str
    description: str
    details: str
    required_fields: List[str]
    document_type: Optional[str] = None


class ProfilesResponse(BaseModel):
    profiles: List[ProfileOption]
    experience_options: List[Dict[str, str]]
    access_levels: List[Dict[str, str]]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware que gera request_id único para cada requisição
    e adiciona aos logs e headers de resposta.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = uuid4().hex[:16]
        request.state.request_id = request_id

        start_time = time.time()
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Request processado: request_id={request_id}, "
            f"method={request.method}, path={request.url.path}, "
            f"status={response.status_code}, duration_ms={duration_ms:.2f}"
        )
        return response


def _form_response(session_id: str, state: FormState) -> FormStateResponse:
    data = state.data.to_dict()
    # Nunca devolver senha digitada
    data["password"] = ""
    data["confirmPassword"] = ""
    return FormStateResponse(
        session_id=session_id,
        data=data,
        errors=state.errors,
        submitted=state.submitted,
    )


def _registration_response(result: RegistrationResult, response: Response) -> RegistrationResponse:
    if result.success:
        response.status_code = 201
    elif result.errors:
        response.status_code = 422
    elif result.error in (c.EMAIL_ALREADY_REGISTERED, SUBMISSION_IN_PROGRESS):
        response.status_code = 409
    else:
        response.status_code = 500

    user = None
    if result.user is not None:
        user = RegisteredUserResponse(
            id=result.user.id,
            name=result.user.name,
            email=result.user.email,
            user_type=result.user.user_type,
            status=result.user.status,
            created_at=result.user.created_at.isoformat(),
        )
    return RegistrationResponse(
        success=result.success,
        error=result.error,
        errors=result.errors,
        user=user,
    )


def _describe_document(kind: str, value: str) -> DocumentResponse:
    if kind == "cpf":
        return DocumentResponse(
            kind=kind,
            formatted=format_cpf(value),
            stripped=strip_cpf(value),
            valid_shape=is_valid_cpf_shape(value),
            valid_checksum=is_valid_cpf(value),
        )
    if kind == "cnpj":
        return DocumentResponse(
            kind=kind,
            formatted=format_cnpj(value),
            stripped=strip_cnpj(value),
            valid_shape=is_valid_cnpj_shape(value),
            valid_checksum=is_valid_cnpj(value),
        )
    if kind == "creci":
        return DocumentResponse(
            kind=kind,
            formatted=format_creci(value),
            stripped=strip_creci(value),
            valid_shape=is_valid_creci_shape(value),
        )
    return DocumentResponse(
        kind=kind,
        formatted=format_phone(value),
        stripped=strip_phone(value),
        valid_shape=is_valid_phone(value),
    )


def create_app(config: Optional[AppConfig] = None, engine: Optional[RegistrationEngine] = None) -> FastAPI:
    """
    Cria a aplicação FastAPI e injeta dependências principais (config + engine).
    """
    config = config or AppConfig.load_from_env()
    engine = engine or RegistrationEngine(config=config)

    app = FastAPI(
        title="Cadastro - API",
        version="0.1.0",
        description="Validação e envio do cadastro da plataforma imobiliária.",
    )
    app.add_middleware(RequestIDMiddleware)

    def load_or_404(session_id: str) -> FormState:
        try:
            return engine.get_form(session_id)
        except FormSessionNotFoundError:
            raise HTTPException(status_code=404, detail="Sessão de formulário não encontrada")

    @app.get("/health")
    def health_check():
        return {"status": "ok", "env": config.env}

    @app.get("/profiles", response_model=ProfilesResponse)
    def list_profiles() -> ProfilesResponse:
        rules = engine.rules
        profiles = []
        for user_type, label, description in c.PROFILE_OPTIONS:
            document_type = rules.required_document_type(user_type)
            profiles.append(
                ProfileOption(
                    value=user_type.value,
                    label=label,
                    description=description,
                    details=c.PROFILE_DESCRIPTIONS[user_type],
                    required_fields=rules.required_fields(user_type),
                    document_type=document_type.value if document_type else None,
                )
            )
        return ProfilesResponse(
            profiles=profiles,
            experience_options=[{"value": level.value, "label": label} for level, label in c.EXPERIENCE_OPTIONS],
            access_levels=[{"value": value, "label": label} for value, label in c.ACCESS_LEVEL_OPTIONS],
        )

    @app.post("/validate", response_model=ValidationResponse)
    def validate_endpoint(payload: RegistrationFormPayload) -> ValidationResponse:
        errors = validate_registration_form(
            payload.model_dump(),
            rules=engine.rules,
            check_digits=config.strict_document_check,
        )
        return ValidationResponse(valid=has_no_errors(errors), errors=errors)

    @app.post("/documents/format", response_model=DocumentResponse)
    def format_document(payload: DocumentRequest) -> DocumentResponse:
        return _describe_document(payload.kind, payload.value)

    @app.post("/forms", response_model=FormStateResponse, status_code=201)
    def open_form() -> FormStateResponse:
        session_id, state = engine.open_form()
        return _form_response(session_id, state)

    @app.get("/forms/{session_id}", response_model=FormStateResponse)
    def get_form(session_id: str) -> FormStateResponse:
        return _form_response(session_id, load_or_404(session_id))

    @app.patch("/forms/{session_id}/fields", response_model=FormStateResponse)
    def update_form_fields(session_id: str, payload: FieldUpdateRequest) -> FormStateResponse:
        load_or_404(session_id)
        try:
            state = engine.update_fields(session_id, payload.changes)
        except UnknownFieldError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except InvalidFieldValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return _form_response(session_id, state)

    @app.post("/forms/{session_id}/validate", response_model=ValidationResponse)
    def validate_form(session_id: str) -> ValidationResponse:
        load_or_404(session_id)
        is_valid, errors = engine.validate_form(session_id)
        return ValidationResponse(valid=is_valid, errors=errors)

    @app.post("/forms/{session_id}/reset", response_model=FormStateResponse)
    def reset_form(session_id: str) -> FormStateResponse:
        load_or_404(session_id)
        return _form_response(session_id, engine.reset_form(session_id))

    @app.post("/forms/{session_id}/submit", response_model=RegistrationResponse)
    def submit_form(session_id: str, request: Request, response: Response) -> RegistrationResponse:
        request_id = getattr(request.state, "request_id", "unknown")
        load_or_404(session_id)
        result = engine.submit_form(session_id)
        logger.info(
            f"Envio de formulário: request_id={request_id}, session_id={session_id}, "
            f"success={result.success}"
        )
        return _registration_response(result, response)

    @app.post("/register", response_model=RegistrationResponse)
    def register(payload: RegistrationFormPayload, request: Request, response: Response) -> RegistrationResponse:
        request_id = getattr(request.state, "request_id", "unknown")
        result = engine.register(payload.model_dump())
        logger.info(
            f"Cadastro direto: request_id={request_id}, user_type={payload.userType}, "
            f"success={result.success}"
        )
        return _registration_response(result, response)

    return app
