"""Exceptions raised by the compilers and the runtime assembler.

Every error here describes an authoring or configuration defect. None of them
is retried or recovered from: compilation aborts, and runtime errors propagate
to the GraphQL executor which reports them as execution errors.
"""


class GSchemaError(Exception):
    """Base class for all gschema errors."""


class CompileError(GSchemaError):
    """A source document cannot be compiled.

    Args:
        message: Human readable description of the defect
        file: Origin file of the offending definition, if known
        line: 1-based line in ``file``, if known
    """

    def __init__(self, message: str, file: str | None = None, line: int | None = None) -> None:
        self.file = file
        self.line = line
        location = ""
        if file:
            location = f" ({file}:{line})" if line else f" ({file})"
        super().__init__(f"{message}{location}")


class SchemaCompileError(CompileError):
    """Raised when SDL documents cannot be translated into descriptors."""


class OperationCompileError(CompileError):
    """Raised when client operations cannot be compiled into the persisted registry."""


class ReferenceSyntaxError(GSchemaError, ValueError):
    """Raised when a wiring reference string cannot be parsed."""


class DirectiveSetupError(GSchemaError):
    """Raised when a directive handler is registered with an unsupported value."""


class UnknownDirectiveError(GSchemaError):
    """Raised when a field declares a directive that has no registered handler."""


class TypeNotFoundError(GSchemaError):
    """Raised when a type is requested that no descriptor table describes."""


class MissingFieldResolverError(GSchemaError):
    """Raised when a fields resolver map has no entry for the requested field."""

    def __init__(self, type_name: str, field_name: str) -> None:
        self.type_name = type_name
        self.field_name = field_name
        super().__init__(
            f"Fields resolver for type [{type_name}] does not define resolver for requested field [{field_name}]"
        )


class WiringError(GSchemaError):
    """Raised when a wiring reference cannot be turned into a callable."""


class SchemaAssemblyError(GSchemaError):
    """Raised when descriptors cannot be assembled into a valid schema."""
