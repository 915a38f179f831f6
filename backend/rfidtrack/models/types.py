# Overview: Column type that stores identifier value types as fixed-width strings.

from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.types import TypeDecorator

from ..identifiers import Identifier


class IdentifierType(TypeDecorator):
    """
    Persist an Identifier subclass as VARCHAR(LENGTH).

    Bound values may be identifier instances or plain strings (LIKE patterns
    and raw filters pass through untouched). Loaded values are always
    re-wrapped, so model attributes are value types on the Python side.
    """
    impl = String
    cache_ok = True

    def __init__(self, identifier_cls: type[Identifier], **kwargs):
        self.identifier_cls = identifier_cls
        super().__init__(identifier_cls.LENGTH, **kwargs)

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, Identifier):
            return value.value
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return self.identifier_cls(value)
