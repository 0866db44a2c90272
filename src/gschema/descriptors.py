"""Language-neutral descriptors produced by the compilers and consumed at runtime.

All models are frozen: once a compiler has produced them nothing mutates them.
They serialize to JSON with camelCase keys.
"""

from pathlib import Path
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Descriptor(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="forbid")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)


# #########################################################
# Wiring references
# #########################################################


class LocatorReference(Descriptor):
    """``Di->member``: the named member of the service locator."""

    kind: Literal["locator"] = "locator"
    member: str


class ConstructorReference(Descriptor):
    """``path.to.Class->class``: an instance of the class, created once at assembly time."""

    kind: Literal["constructor"] = "constructor"
    target: str


class StaticMethodReference(Descriptor):
    """``path.to.Class::method``: an attribute looked up on an importable target."""

    kind: Literal["static"] = "static"
    target: str
    method: str


Reference = Annotated[
    Union[LocatorReference, ConstructorReference, StaticMethodReference],
    Field(discriminator="kind"),
]


# #########################################################
# Type references, default values and directives
# #########################################################


class TypeRef(Descriptor):
    kind: Literal["named", "list", "non_null"]
    name: str | None = None
    of_type: "TypeRef | None" = None

    @classmethod
    def named(cls, name: str) -> "TypeRef":
        return cls(kind="named", name=name)

    @classmethod
    def list_of(cls, of_type: "TypeRef") -> "TypeRef":
        return cls(kind="list", of_type=of_type)

    @classmethod
    def non_null(cls, of_type: "TypeRef") -> "TypeRef":
        return cls(kind="non_null", of_type=of_type)

    def __str__(self) -> str:
        if self.kind == "list":
            return f"[{self.of_type}]"
        if self.kind == "non_null":
            return f"{self.of_type}!"
        return str(self.name)


class DefaultValue(Descriptor):
    kind: Literal["string", "int", "float", "boolean", "null", "list", "enum"]
    value: Any = None
    items: "list[DefaultValue] | None" = None


class DirectiveInvocation(Descriptor):
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


# #########################################################
# Fields and types
# #########################################################


class ArgumentDescriptor(Descriptor):
    name: str
    type: TypeRef
    description: str | None = None
    default_value: DefaultValue | None = None


class FieldDescriptor(Descriptor):
    name: str
    type: TypeRef
    description: str | None = None
    default_value: DefaultValue | None = None
    resolver: Reference | None = None
    directives: list[DirectiveInvocation] = Field(default_factory=list)
    arguments: list[ArgumentDescriptor] = Field(default_factory=list)
    deprecation_reason: str | None = None


class EnumValueDescriptor(Descriptor):
    value: str
    description: str | None = None
    deprecation_reason: str | None = None


class _NamedTypeDescriptor(Descriptor):
    name: str
    description: str | None = None
    directives: list[DirectiveInvocation] = Field(default_factory=list)
    source_module: str


class ScalarDescriptor(_NamedTypeDescriptor):
    kind: Literal["scalar"] = "scalar"
    implementation: str
    serialize: StaticMethodReference
    parse_value: StaticMethodReference
    parse_literal: StaticMethodReference


class ObjectDescriptor(_NamedTypeDescriptor):
    kind: Literal["object"] = "object"
    fields: list[FieldDescriptor] = Field(default_factory=list)
    fields_resolver: Reference | None = None
    interfaces: list[str] = Field(default_factory=list)


class InputObjectDescriptor(_NamedTypeDescriptor):
    kind: Literal["input"] = "input"
    fields: list[FieldDescriptor] = Field(default_factory=list)
    parse_value: Reference | None = None


class EnumDescriptor(_NamedTypeDescriptor):
    kind: Literal["enum"] = "enum"
    values: dict[str, EnumValueDescriptor] = Field(default_factory=dict)


class InterfaceDescriptor(_NamedTypeDescriptor):
    kind: Literal["interface"] = "interface"
    fields: list[FieldDescriptor] = Field(default_factory=list)
    type_resolver: Reference | None = None
    interfaces: list[str] = Field(default_factory=list)


class UnionDescriptor(_NamedTypeDescriptor):
    kind: Literal["union"] = "union"
    members: list[str] = Field(default_factory=list)
    type_resolver: Reference


TypeDescriptor = Annotated[
    Union[
        ScalarDescriptor,
        ObjectDescriptor,
        InputObjectDescriptor,
        EnumDescriptor,
        InterfaceDescriptor,
        UnionDescriptor,
    ],
    Field(discriminator="kind"),
]


class DescriptorTable(Descriptor):
    """Descriptors contributed by one schema module: type name -> ordered partial descriptors."""

    module: str
    types: dict[str, list[TypeDescriptor]] = Field(default_factory=dict)

    @classmethod
    def from_file(cls, path: Path) -> "DescriptorTable":
        return cls.model_validate_json(path.read_text(encoding="utf-8"))


# #########################################################
# Persisted operations
# #########################################################


class OperationRecord(Descriptor):
    hash: str
    kind: Literal["query", "mutation"]
    operation_name: str
    constant_name: str
    body: str
    origin_file: str
    origin_line: int


class OperationRegistry(Descriptor):
    destination: str
    operations: list[OperationRecord] = Field(default_factory=list)

    @classmethod
    def from_file(cls, path: Path) -> "OperationRegistry":
        return cls.model_validate_json(path.read_text(encoding="utf-8"))
