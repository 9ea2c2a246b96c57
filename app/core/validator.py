"""
Validación de campos con acumulación de errores por campo.

Solo se conserva el primer mensaje de cada campo.
"""
import re
from typing import Dict, Pattern

EMAIL_RX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)


class Validator:
    def __init__(self) -> None:
        self.errors: Dict[str, str] = {}

    def is_empty(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, key: str, message: str) -> None:
        if key not in self.errors:
            self.errors[key] = message

    def check(self, ok: bool, key: str, message: str) -> None:
        if not ok:
            self.add_error(key, message)


def permitted_value(value, *permitted_values) -> bool:
    return value in permitted_values


def matches(value: str, pattern: Pattern[str]) -> bool:
    return pattern.match(value) is not None


def byte_length(value: str) -> int:
    """Longitud en bytes UTF-8 (los límites de texto se miden en bytes)"""
    return len(value.encode("utf-8"))
