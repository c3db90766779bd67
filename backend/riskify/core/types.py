"""Column types shared by the Riskify models (PostgreSQL in production, SQLite in tests)"""
from sqlalchemy import JSON, TypeDecorator, String
from sqlalchemy.dialects.postgresql import JSONB
import uuid

# Wizard snapshots, audit details and payment metadata; JSONB where available
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


def generate_uuid() -> str:
    return str(uuid.uuid4())


def canonical_id(value) -> str:
    """Lower-case hyphenated form of a UUID; other strings pass through unchanged"""
    if isinstance(value, uuid.UUID):
        return str(value)
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        return str(value)


class GUID(TypeDecorator):
    """
    Ids stored as VARCHAR(36) strings.

    Document and user ids arrive from URL paths and QR codes, so ``{ABC...}``
    or upper-case spellings are normalised before they reach a query.
    """
    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        return canonical_id(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        return str(value)
