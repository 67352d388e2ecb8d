"""
CRECI (registro profissional do corretor de imóveis).

Não existe algoritmo público de dígito verificador para o CRECI, então a
validação é apenas estrutural. Formato canônico: CRECI/UF-NÚMERO.
"""
import re

_RAW_PATTERN = re.compile(r"^([A-Z]{2})?(\d+)$")
_SHAPE_PATTERN = re.compile(r"^[A-Z]{2}\d+$")
_PREFIX_PATTERN = re.compile(r"CRECI/?", re.IGNORECASE)


def strip_creci(raw: str) -> str:
    """
    Remove prefixo "CRECI", barras de prefixo, hífens e espaços,
    deixando UF + números.

    Exemplo:
        "CRECI/SP-123456" → "SP123456"
    """
    text = (raw or "").upper()
    text = _PREFIX_PATTERN.sub("", text)
    text = text.replace("-", "")
    return re.sub(r"\s", "", text)


def format_creci(raw: str) -> str:
    """
    Formata um CRECI no padrão CRECI/UF-NÚMERO.

    Exemplos:
        "sp 123456"  → "CRECI/SP-123456"
        "123456"     → "123456" (sem UF não dá para inferir a região)
        "CRECI/SP-1" → "CRECI/SP-1" (já formatado, volta como veio)
    """
    text = re.sub(r"\s", "", (raw or "").upper())
    match = _RAW_PATTERN.match(text)

    if not match:
        return raw

    region, number = match.group(1), match.group(2)
    if not region:
        return number

    return f"CRECI/{region}-{number}"


def is_valid_creci_shape(raw: str) -> bool:
    """
    Aceita "SP123456" ou "CRECI/SP-123456"; exige UF e números.
    """
    return bool(_SHAPE_PATTERN.match(strip_creci(raw)))


def extract_creci_region(raw: str) -> str:
    match = re.match(r"^([A-Z]{2})", strip_creci(raw))
    return match.group(1) if match else ""


def extract_creci_number(raw: str) -> str:
    return "".join(re.findall(r"\d+", strip_creci(raw)))
