"""Runtime assembly of gschema artifacts."""

from .directive import DirectiveRegistry, register, wrap_directive, wrap_directives
from .queries import PersistedQueries
from .schema import SchemaAssembler, default_field_resolver, merge_tables

__all__ = [
    "DirectiveRegistry",
    "PersistedQueries",
    "SchemaAssembler",
    "default_field_resolver",
    "merge_tables",
    "register",
    "wrap_directive",
    "wrap_directives",
]
