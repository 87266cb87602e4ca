"""Request value parsing shared by the application services."""
import uuid
from datetime import date

from ..domain.exceptions import ValidationError


def parse_uuid(raw, field):
    if raw in (None, ""):
        return None
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise ValidationError(f"Identificador inválido: {raw}", field)


def parse_date(raw, field="data"):
    if raw in (None, ""):
        return None
    if isinstance(raw, date):
        return raw
    try:
        return date.fromisoformat(str(raw))
    except ValueError:
        raise ValidationError(f"Data inválida: {raw}", field)
