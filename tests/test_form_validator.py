import pytest

from app.core import constants as c
from app.core.errors import InvalidFieldValueError, UnknownFieldError
from app.core.form_validator import has_no_errors, validate_field, validate_registration_form
from app.core.profile_rules import ProfileRules
from app.core.registration_state import DocumentType, RegistrationFormData, UserType


def _base(**overrides):
    data = {
        "name": "Carlos Eduardo",
        "email": "c@x.com",
        "password": "abcdef",
        "confirmPassword": "abcdef",
        "userType": "cliente",
        "cpf": "529.982.247-25",
    }
    data.update(overrides)
    return data


class TestScenarios:
    def test_broker_with_everything_wrong(self):
        errors = validate_registration_form(
            {
                "name": "Jo",
                "email": "bad",
                "password": "123",
                "confirmPassword": "124",
                "userType": "corretor",
            }
        )
        assert errors["name"] == c.min_length_message("Nome", c.NAME_MIN)
        assert errors["email"] == c.INVALID_EMAIL
        assert errors["password"] == c.SHORT_PASSWORD
        assert errors["confirmPassword"] == c.PASSWORDS_DO_NOT_MATCH
        assert errors["creci"] == c.required_message("CRECI")
        assert not has_no_errors(errors)

    def test_agency_with_formatted_cnpj(self):
        errors = validate_registration_form(
            _base(userType="imobiliaria", cpf="", cnpj="12.345.678/0001-90")
        )
        assert errors == {}

    def test_agency_with_valid_checksum_in_strict_mode(self):
        errors = validate_registration_form(
            _base(userType="imobiliaria", cpf="", cnpj="11.222.333/0001-81"),
            check_digits=True,
        )
        assert errors == {}


class TestBaseFields:
    def test_valid_client(self):
        assert validate_registration_form(_base()) == {}

    def test_required_messages(self):
        errors = validate_registration_form(
            _base(name="", email="", password="", confirmPassword="")
        )
        assert errors["name"] == "Nome é obrigatório"
        assert errors["email"] == "Email é obrigatório"
        assert errors["password"] == "Senha é obrigatório"
        assert errors["confirmPassword"] == c.CONFIRM_PASSWORD_REQUIRED

    def test_blank_name_counts_as_missing(self):
        assert validate_registration_form(_base(name="   "))["name"] == "Nome é obrigatório"

    def test_name_with_digits(self):
        assert validate_registration_form(_base(name="Carlos 2"))["name"] == c.INVALID_NAME

    def test_name_length_boundary(self):
        # Dois caracteres ainda é curto; três já passa
        assert validate_registration_form(_base(name="Jo"))["name"] == c.min_length_message("Nome", 3)
        assert "name" not in validate_registration_form(_base(name="Ana"))

    def test_email_with_trailing_newline(self):
        assert validate_registration_form(_base(email="a@b.com\n"))["email"] == c.INVALID_EMAIL

    @pytest.mark.parametrize(
        "field_name, value",
        [("name", 123), ("userType", ["x"]), ("acceptTerms", "false"), ("cpf", 52998224725)],
    )
    def test_wrong_value_type(self, field_name, value):
        with pytest.raises(InvalidFieldValueError):
            validate_registration_form(_base(**{field_name: value}))

    def test_name_with_accents(self):
        assert "name" not in validate_registration_form(_base(name="José Antônio"))

    def test_name_too_long(self):
        errors = validate_registration_form(_base(name="a" * 101))
        assert errors["name"] == c.max_length_message("Nome", c.NAME_MAX)

    def test_email_too_long(self):
        email = "a" * 95 + "@x.com"
        errors = validate_registration_form(_base(email=email))
        assert errors["email"] == c.max_length_message("Email", c.EMAIL_MAX)

    def test_password_too_long(self):
        password = "a" * 51
        errors = validate_registration_form(_base(password=password, confirmPassword=password))
        assert errors["password"] == c.max_length_message("Senha", c.PASSWORD_MAX)

    def test_accepts_form_data_instance(self):
        form = RegistrationFormData.from_dict(_base())
        assert validate_registration_form(form) == {}

    def test_is_idempotent(self):
        data = _base(email="bad", cpf="123")
        assert validate_registration_form(data) == validate_registration_form(data)


class TestProfileField:
    @pytest.mark.parametrize("value", ["", None, "visitante"])
    def test_invalid_profile(self, value):
        errors = validate_registration_form(_base(userType=value))
        assert errors["userType"] == c.INVALID_USER_TYPE

    def test_invalid_profile_skips_profile_rules(self):
        errors = validate_registration_form(_base(userType="visitante", cpf=""))
        assert "cpf" not in errors


class TestOptionalFields:
    def test_phone_only_checked_when_filled(self):
        assert "phone" not in validate_registration_form(_base(phone=""))
        assert "phone" not in validate_registration_form(_base(phone="(11) 99999-9999"))
        assert validate_registration_form(_base(phone="1234"))["phone"] == c.INVALID_PHONE

    def test_experience(self):
        assert "experience" not in validate_registration_form(_base(experience="3-5"))
        errors = validate_registration_form(_base(experience="20+"))
        assert errors["experience"] == c.INVALID_EXPERIENCE

    def test_terms(self):
        assert "acceptTerms" not in validate_registration_form(_base())
        assert "acceptTerms" not in validate_registration_form(_base(acceptTerms=True))
        errors = validate_registration_form(_base(acceptTerms=False))
        assert errors["acceptTerms"] == c.TERMS_NOT_ACCEPTED

    def test_filled_document_outside_profile_is_still_checked(self):
        errors = validate_registration_form(_base(cnpj="123"))
        assert errors["cnpj"] == c.INVALID_CNPJ


class TestDocumentsByProfile:
    def test_client_requires_cpf(self):
        errors = validate_registration_form(_base(cpf=""))
        assert errors["cpf"] == "CPF é obrigatório"

    def test_owner_with_malformed_cpf(self):
        errors = validate_registration_form(_base(userType="proprietario", cpf="123.456"))
        assert errors["cpf"] == c.INVALID_CPF

    def test_developer_requires_cnpj(self):
        errors = validate_registration_form(_base(userType="incorporadora", cpf=""))
        assert errors == {"cnpj": "CNPJ é obrigatório"}

    def test_broker_requires_valid_creci(self):
        errors = validate_registration_form(_base(userType="corretor", cpf="", creci="123"))
        assert errors == {"creci": c.INVALID_CRECI}

    def test_broker_does_not_require_cpf_by_default(self):
        errors = validate_registration_form(
            _base(userType="corretor", cpf="", creci="CRECI/SP-123456")
        )
        assert errors == {}

    def test_admin_requires_only_base_fields(self):
        errors = validate_registration_form(_base(userType="administrador", cpf=""))
        assert errors == {}

    def test_admin_document_override(self):
        rules = ProfileRules(document_overrides={UserType.ADMINISTRADOR: DocumentType.CPF})
        errors = validate_registration_form(_base(userType="administrador", cpf=""), rules=rules)
        assert errors == {"cpf": "CPF é obrigatório"}


class TestCheckDigits:
    def test_disabled_by_default(self):
        assert validate_registration_form(_base(cpf="529.982.247-24")) == {}

    def test_cpf_mismatch(self):
        errors = validate_registration_form(_base(cpf="529.982.247-24"), check_digits=True)
        assert errors["cpf"] == c.CPF_CHECKSUM_MISMATCH

    def test_repeated_cpf(self):
        errors = validate_registration_form(_base(cpf="111.111.111-11"), check_digits=True)
        assert errors["cpf"] == c.CPF_CHECKSUM_MISMATCH

    def test_cnpj_mismatch(self):
        errors = validate_registration_form(
            _base(userType="imobiliaria", cpf="", cnpj="12.345.678/0001-90"),
            check_digits=True,
        )
        assert errors["cnpj"] == c.CNPJ_CHECKSUM_MISMATCH

    def test_shape_error_wins_over_checksum(self):
        errors = validate_registration_form(_base(cpf="123"), check_digits=True)
        assert errors["cpf"] == c.INVALID_CPF


class TestHasNoErrors:
    def test_empty(self):
        assert has_no_errors({})

    def test_empty_messages_do_not_count(self):
        assert has_no_errors({"name": ""})

    def test_with_error(self):
        assert not has_no_errors({"name": "Nome é obrigatório"})


class TestValidateField:
    def test_returns_message_for_field(self):
        assert validate_field("email", "bad") == c.INVALID_EMAIL

    def test_returns_none_when_valid(self):
        assert validate_field("email", "ok@x.com") is None

    def test_uses_form_context(self):
        form = RegistrationFormData.from_dict(_base())
        assert validate_field("confirmPassword", "outra", data=form) == c.PASSWORDS_DO_NOT_MATCH
        assert validate_field("confirmPassword", "abcdef", data=form) is None

    def test_matches_full_validation(self):
        form = RegistrationFormData.from_dict(_base(cpf="123"))
        full = validate_registration_form(form)
        assert validate_field("cpf", "123", data=form) == full["cpf"]

    def test_unknown_field(self):
        with pytest.raises(UnknownFieldError):
            validate_field("idade", "30")

    def test_wrong_value_type(self):
        with pytest.raises(InvalidFieldValueError):
            validate_field("acceptTerms", "false")
