"""Lookup tables and operation names shared by the engine and the snippets."""
from typing import Dict, Optional

from hrbridge.mapper.mapping import TransformationKind, TransformationSpec

DEFAULT_COUNTRY_CODES: Dict[str, str] = {
    "Brasil": "BRA",
    "Brazil": "BRA",
    "BR": "BRA",
}

DEFAULT_GENDER_CODES: Dict[str, str] = {
    "Male": "M",
    "Masculino": "M",
    "Female": "F",
    "Feminino": "F",
}

PHONE_OPERATIONS = (
    "phone_split",
    "split_country_code_area_code",
    "extract_area_code",
    "extract_phone_number",
)

NAME_OPERATIONS = ("name_split", "split_first_name", "split_last_name")

TRUTHY_STRINGS = ("true", "1", "yes", "sim")

# Characters the Jsonnet side folds; the engine uses unicodedata instead.
ACCENT_FOLDING: Dict[str, str] = {
    "á": "a", "à": "a", "â": "a", "ã": "a", "ä": "a",
    "é": "e", "è": "e", "ê": "e", "ë": "e",
    "í": "i", "ì": "i", "î": "i", "ï": "i",
    "ó": "o", "ò": "o", "ô": "o", "õ": "o", "ö": "o",
    "ú": "u", "ù": "u", "û": "u", "ü": "u",
    "ç": "c", "ñ": "n",
    "Á": "A", "À": "A", "Â": "A", "Ã": "A", "Ä": "A",
    "É": "E", "È": "E", "Ê": "E", "Ë": "E",
    "Í": "I", "Ì": "I", "Î": "I", "Ï": "I",
    "Ó": "O", "Ò": "O", "Ô": "O", "Õ": "O", "Ö": "O",
    "Ú": "U", "Ù": "U", "Û": "U", "Ü": "U",
    "Ç": "C", "Ñ": "N",
}

DOCUMENT_STRIP_CHARS: Dict[str, str] = {
    "cpf": ".- ",
    "cnpj": ".-/ ",
    "phone": " -()+",
    "cep": "- ",
}
DEFAULT_DOCUMENT_STRIP_CHARS = ".- "


def lookup_table(spec: TransformationSpec) -> Optional[Dict[str, str]]:
    """Caller-supplied mapping, or the built-in table for the kind."""
    if spec.mapping:
        return spec.mapping
    if spec.kind == TransformationKind.COUNTRY_CODE:
        return DEFAULT_COUNTRY_CODES
    if spec.kind == TransformationKind.GENDER_CODE:
        return DEFAULT_GENDER_CODES
    return None


def document_strip_chars(pattern: Optional[str]) -> str:
    return DOCUMENT_STRIP_CHARS.get(pattern or "", DEFAULT_DOCUMENT_STRIP_CHARS)
