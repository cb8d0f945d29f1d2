"""
Jsonnet snippet generators for transformation tasks.

Each snippet is self-contained (no imports). It reads one path of the
source payload through a null-safe fold, substitutes a zero value for
absent or null input, and evaluates to an object with a single field
named after the output variable.
"""
import json
from typing import Dict, List

from hrbridge.mapper.mapping import TransformationSpec
from hrbridge.schema.paths import split_path
from hrbridge.transformer import lookups

PAYLOAD_VARIABLE = "sourcePayload"


def _literal(value) -> str:
    """Jsonnet literal for a JSON-compatible value."""
    return json.dumps(value, ensure_ascii=False, sort_keys=True)


def input_expression(source_path: str) -> str:
    """Null-safe read of source_path from the payload."""
    return (
        "std.foldl(function(acc, key) "
        "if std.isObject(acc) && std.objectHas(acc, key) then acc[key] else null, "
        f"{_literal(split_path(source_path))}, {PAYLOAD_VARIABLE})"
    )


def wrap(var_name: str, source_path: str, body: str, default: str = '""',
         prelude: str = "") -> str:
    """Assemble a complete snippet around a body expression over inputValue."""
    return (
        f'local {PAYLOAD_VARIABLE} = std.extVar("{PAYLOAD_VARIABLE}"); '
        f"local raw = {input_expression(source_path)}; "
        f"local inputValue = if raw == null then {default} else raw; "
        f"{prelude}"
        f"{{ {var_name}: {body} }}"
    )


def _if_string(body: str) -> str:
    return f"if std.isString(inputValue) then {body} else inputValue"


DIGITS_HELPER = (
    "local isDigits(s) = std.length(s) > 0 && std.length(std.filter("
    "function(c) std.length(std.findSubstr(c, \"0123456789\")) == 0, "
    "std.stringChars(s))) == 0; "
)

NUMBER_PRELUDE = DIGITS_HELPER + (
    "local text = std.stripChars(inputValue, \" \\t\\n\"); "
    "local signed = std.length(text) > 0 && (text[0] == \"-\" || text[0] == \"+\"); "
    "local unsigned = if signed then std.substr(text, 1, std.length(text) - 1) else text; "
    "local expParts = std.split(std.asciiLower(unsigned), \"e\"); "
    "local mantissaParts = std.split(expParts[0], \".\"); "
    "local intDigits = mantissaParts[0]; "
    "local fracDigits = if std.length(mantissaParts) == 2 then mantissaParts[1] else \"\"; "
    "local exponent = if std.length(expParts) == 2 then expParts[1] else \"0\"; "
    "local expDigits = if std.length(exponent) > 0 && (exponent[0] == \"-\" || exponent[0] == \"+\") "
    "then std.substr(exponent, 1, std.length(exponent) - 1) else exponent; "
    "local isNumeric = std.length(expParts) <= 2 && std.length(mantissaParts) <= 2 "
    "&& (isDigits(intDigits) || isDigits(fracDigits)) "
    "&& (intDigits == \"\" || isDigits(intDigits)) "
    "&& (fracDigits == \"\" || isDigits(fracDigits)) && isDigits(expDigits); "
    "local intPart = std.lstripChars(intDigits, \"0\"); "
    "local canonical = (if signed && text[0] == \"-\" then \"-\" else \"\") "
    "+ (if intPart == \"\" then \"0\" else intPart) "
    "+ (if fracDigits == \"\" then \"\" else \".\" + fracDigits) + \"e\" + exponent; "
)

# Accepts yyyy-MM-dd, yyyy/MM/dd and yyyy-MM-ddTHH:mm..., rejecting
# impossible calendar dates.
DATE_PRELUDE = DIGITS_HELPER + (
    "local text = if std.isString(inputValue) then std.stripChars(inputValue, \" \") else \"\"; "
    "local tParts = std.split(text, \"T\"); "
    "local hasTime = std.length(tParts) == 2; "
    "local timePart = if hasTime then tParts[1] else \"\"; "
    "local separator = if std.length(std.findSubstr(\"/\", tParts[0])) > 0 then \"/\" else \"-\"; "
    "local parts = std.split(tParts[0], separator); "
    "local validTime = std.length(tParts) == 1 || (hasTime && separator == \"-\" "
    "&& std.length(timePart) >= 5 && isDigits(std.substr(timePart, 0, 2)) "
    "&& timePart[2] == \":\" && isDigits(std.substr(timePart, 3, 2))); "
    "local validShape = std.length(parts) == 3 && std.length(parts[0]) == 4 "
    "&& isDigits(parts[0]) && isDigits(parts[1]) && isDigits(parts[2]) "
    "&& std.length(parts[1]) <= 2 && std.length(parts[2]) <= 2 "
    "&& (!hasTime || (std.length(parts[1]) == 2 && std.length(parts[2]) == 2)); "
    "local year = std.parseInt(parts[0]); "
    "local month = std.parseInt(parts[1]); "
    "local day = std.parseInt(parts[2]); "
    "local leap = (year % 4 == 0 && year % 100 != 0) || year % 400 == 0; "
    "local monthDays = [31, if leap then 29 else 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]; "
    "local isDate = validShape && validTime && year >= 1 && month >= 1 && month <= 12 "
    "&& day >= 1 && day <= monthDays[month - 1]; "
    "local pad(s) = if std.length(s) == 1 then \"0\" + s else s; "
    "local yyyy = parts[0]; "
    "local mm = pad(parts[1]); "
    "local dd = pad(parts[2]); "
)


def identity(var_name: str, source_path: str, spec: TransformationSpec = None) -> str:
    return wrap(var_name, source_path, "inputValue")


def format_document(var_name: str, source_path: str, spec: TransformationSpec) -> str:
    expression = "inputValue"
    chars: List[str] = list(lookups.document_strip_chars(spec.pattern))
    for char in chars:
        expression = f"std.strReplace({expression}, {_literal(char)}, \"\")"
    return wrap(var_name, source_path, _if_string(expression))


def concat(var_name: str, source_path: str, spec: TransformationSpec) -> str:
    separator = spec.separator if spec.separator is not None else " "
    body = (
        f"std.join({_literal(separator)}, std.filter("
        "function(v) std.isString(v) && std.length(std.stripChars(v, \" \")) > 0, "
        "if std.isArray(inputValue) then inputValue else [inputValue]))"
    )
    return wrap(var_name, source_path, body, default="[]")


def phone_split(var_name: str, source_path: str, spec: TransformationSpec) -> str:
    prelude = (
        "local digits = if std.isString(inputValue) then std.join(\"\", std.filter("
        "function(c) std.length(std.findSubstr(c, \"0123456789\")) > 0, "
        "std.stringChars(inputValue))) else \"\"; "
        "local hasCountry = std.length(digits) > 11; "
        "local national = if hasCountry then std.substr(digits, 2, std.length(digits) - 2) "
        "else digits; "
        "local areaCode = std.substr(national, 0, 2); "
        "local phoneNumber = std.substr(national, 2, std.length(national) - 2); "
    )
    if spec.operation == "extract_area_code":
        body = "areaCode"
    elif spec.operation == "extract_phone_number":
        body = "phoneNumber"
    else:
        body = (
            "{ countryCode: if hasCountry then std.substr(digits, 0, 2) else \"55\", "
            "areaCode: areaCode, phoneNumber: phoneNumber }"
        )
    guarded = f"if std.length(digits) >= 10 then {body} else inputValue"
    return wrap(var_name, source_path, guarded, prelude=prelude)


def name_split(var_name: str, source_path: str, spec: TransformationSpec) -> str:
    prelude = (
        "local parts = if std.isString(inputValue) then "
        "std.filter(function(p) p != \"\", std.split(inputValue, \" \")) else []; "
    )
    if spec.operation == "split_first_name":
        body = "if std.length(parts) > 0 then parts[0] else \"\""
    elif spec.operation == "split_last_name":
        body = "if std.length(parts) > 1 then std.join(\" \", parts[1:]) else \"\""
    else:
        body = "inputValue"
    return wrap(var_name, source_path, _if_string(body), prelude=prelude)


def split(var_name: str, source_path: str, spec: TransformationSpec) -> str:
    if spec.operation in lookups.PHONE_OPERATIONS:
        return phone_split(var_name, source_path, spec)
    if spec.operation in lookups.NAME_OPERATIONS:
        return name_split(var_name, source_path, spec)
    if spec.separator:
        body = _if_string(f"std.split(inputValue, {_literal(spec.separator)})")
        return wrap(var_name, source_path, body)
    return identity(var_name, source_path)


def convert(var_name: str, source_path: str, spec: TransformationSpec) -> str:
    operation = spec.operation
    if operation == "string_to_number":
        body = (
            "if std.isNumber(inputValue) then inputValue "
            "else if std.isString(inputValue) && isNumeric then std.parseJson(canonical) "
            "else inputValue"
        )
        return wrap(var_name, source_path, body, default="0", prelude=NUMBER_PRELUDE)
    if operation in ("number_to_string", "boolean_to_string"):
        return wrap(var_name, source_path, "std.toString(inputValue)")
    if operation == "string_to_boolean":
        body = (
            f"std.member({_literal(list(lookups.TRUTHY_STRINGS))}, "
            "std.asciiLower(std.toString(inputValue)))"
        )
        return wrap(var_name, source_path, body)
    return identity(var_name, source_path)


def normalize(var_name: str, source_path: str, spec: TransformationSpec) -> str:
    operation = spec.operation
    if operation == "upper_case":
        return wrap(var_name, source_path, _if_string("std.asciiUpper(inputValue)"))
    if operation == "lower_case":
        return wrap(var_name, source_path, _if_string("std.asciiLower(inputValue)"))
    if operation == "title_case":
        body = (
            "std.join(\" \", [if std.length(w) > 0 then "
            "std.asciiUpper(std.substr(w, 0, 1)) + std.asciiLower(std.substr(w, 1, std.length(w) - 1)) "
            "else w for w in std.split(inputValue, \" \")])"
        )
        return wrap(var_name, source_path, _if_string(body))
    if operation == "remove_accents":
        prelude = f"local folding = {_literal(lookups.ACCENT_FOLDING)}; "
        body = (
            "std.join(\"\", [if std.objectHas(folding, c) then folding[c] else c "
            "for c in std.stringChars(inputValue)])"
        )
        return wrap(var_name, source_path, _if_string(body), prelude=prelude)
    return identity(var_name, source_path)


def format_date(var_name: str, source_path: str, spec: TransformationSpec) -> str:
    renderings: Dict[str, str] = {
        "yyyy-MM-dd": "yyyy + \"-\" + mm + \"-\" + dd",
        "dd/MM/yyyy": "dd + \"/\" + mm + \"/\" + yyyy",
        "MM/dd/yyyy": "mm + \"/\" + dd + \"/\" + yyyy",
        "ISO": (
            "if !hasTime then yyyy + \"-\" + mm + \"-\" + dd + \"T00:00:00.000Z\" "
            "else if std.length(timePart) == 8 || (std.length(timePart) == 9 "
            "&& timePart[8] == \"Z\") then "
            "yyyy + \"-\" + mm + \"-\" + dd + \"T\" + std.substr(timePart, 0, 8) + \".000Z\" "
            "else inputValue"
        ),
    }
    rendering = renderings.get(spec.output_format or "")
    if rendering is None:
        return identity(var_name, source_path)
    body = f"if isDate then {rendering} else inputValue"
    return wrap(var_name, source_path, body, prelude=DATE_PRELUDE)


def table_lookup(var_name: str, source_path: str, spec: TransformationSpec) -> str:
    table = lookups.lookup_table(spec)
    if not table:
        return identity(var_name, source_path)
    prelude = f"local table = {_literal(table)}; "
    body = (
        "if std.isString(inputValue) && std.objectHas(table, inputValue) "
        "then table[inputValue] else inputValue"
    )
    return wrap(var_name, source_path, body, prelude=prelude)
