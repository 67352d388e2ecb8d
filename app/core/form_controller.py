import logging
import threading
from dataclasses import replace
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from .errors import UnknownFieldError
from .form_validator import validate_registration_form, validate_field, has_no_errors
from .phone import format_phone
from .profile_rules import ProfileRules
from .registration_state import ATTRIBUTE_NAMES, FormState, RegistrationFormData, coerce_field_value

logger = logging.getLogger(__name__)


class RegistrationFormController:
    """
    Controla o estado de um formulário de cadastro: atualização campo a
    campo, validação sob demanda e reset.

    Não faz I/O; o envio é responsabilidade de RegistrationService.
    """

    def __init__(
        self,
        state: Optional[FormState] = None,
        rules: Optional[ProfileRules] = None,
        check_digits: bool = False,
    ) -> None:
        self._state = state or FormState()
        self._rules = rules
        self._check_digits = check_digits

    @property
    def data(self) -> RegistrationFormData:
        return self._state.data

    @property
    def errors(self) -> Dict[str, str]:
        return dict(self._state.errors)

    @property
    def submitted(self) -> bool:
        return self._state.submitted

    @property
    def state(self) -> FormState:
        return self._state

    @staticmethod
    def _resolve(field_name: str, value: Any) -> Tuple[str, Any]:
        attr = ATTRIBUTE_NAMES.get(field_name)
        if attr is None:
            raise UnknownFieldError(field_name)

        value = coerce_field_value(attr, value)
        if field_name == "phone" and value:
            value = format_phone(value)
        return attr, value

    def update_field(self, field_name: str, value: Any) -> None:
        """
        Atualiza um campo do formulário.

        Telefone é formatado automaticamente. O erro do campo é limpo de
        forma otimista; a próxima validação volta a marcá-lo se continuar
        inválido.

        Campo desconhecido levanta UnknownFieldError e valor de tipo errado
        levanta InvalidFieldValueError, sem alterar o formulário.
        """
        self.update_fields({field_name: value})

    def update_fields(self, changes: Mapping[str, Any]) -> None:
        """
        Atualiza vários campos de uma vez. Todos são conferidos antes de
        qualquer alteração: ou o lote inteiro entra, ou nada muda.
        """
        resolved = []
        for field_name, value in changes.items():
            attr, value = self._resolve(field_name, value)
            resolved.append((field_name, attr, value))
        if not resolved:
            return

        self._state.data = replace(self._state.data, **{attr: value for _, attr, value in resolved})
        for field_name, _, _ in resolved:
            self._state.errors.pop(field_name, None)

    def validate(self) -> bool:
        """
        Valida o formulário atual, substitui o mapa de erros e retorna
        True se não houver erros.
        """
        self._state.errors = validate_registration_form(
            self._state.data, rules=self._rules, check_digits=self._check_digits
        )
        return has_no_errors(self._state.errors)

    def reset(self) -> None:
        self._state.data = RegistrationFormData()
        self._state.errors = {}
        self._state.submitted = False

    def set_submitted(self, submitted: bool) -> None:
        self._state.submitted = submitted


class LiveFieldValidator:
    """
    Validação enquanto o usuário digita, com debounce.

    Cada nova edição de um campo cancela o timer pendente daquele campo e
    agenda outro. Valores em branco limpam o erro na hora, sem esperar.
    O resultado é entregue em `on_result(field_name, message_or_none)`.
    """

    def __init__(
        self,
        on_result: Callable[[str, Optional[str]], None],
        delay_ms: int = 500,
        rules: Optional[ProfileRules] = None,
        check_digits: bool = False,
    ) -> None:
        self._on_result = on_result
        self._delay_s = delay_ms / 1000
        self._rules = rules
        self._check_digits = check_digits
        self._timers: Dict[str, threading.Timer] = {}
        self._lock = threading.Lock()

    def schedule(
        self,
        field_name: str,
        value: Any,
        data: Optional[RegistrationFormData] = None,
    ) -> None:
        # Campo e tipo conferidos aqui, fora da thread do timer
        attr = ATTRIBUTE_NAMES.get(field_name)
        if attr is None:
            raise UnknownFieldError(field_name)
        value = coerce_field_value(attr, value)

        self.cancel(field_name)

        if value is None or (isinstance(value, str) and not value.strip()):
            self._on_result(field_name, None)
            return

        timer = threading.Timer(self._delay_s, self._run, args=(field_name, value, data))
        timer.daemon = True
        with self._lock:
            self._timers[field_name] = timer
        timer.start()

    def _run(self, field_name: str, value: Any, data: Optional[RegistrationFormData]) -> None:
        with self._lock:
            self._timers.pop(field_name, None)
        message = validate_field(
            field_name, value, data=data, rules=self._rules, check_digits=self._check_digits
        )
        logger.debug(f"Validação em tempo real: field={field_name}, has_error={message is not None}")
        self._on_result(field_name, message)

    def cancel(self, field_name: str) -> None:
        with self._lock:
            timer = self._timers.pop(field_name, None)
        if timer is not None:
            timer.cancel()

    def cancel_all(self) -> None:
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._timers)
