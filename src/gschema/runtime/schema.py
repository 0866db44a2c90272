"""Lazy assembly of a graphql-core schema from compiled descriptor tables.

Named types are created on first access and cached for the lifetime of the assembler.
Field maps, interfaces and union members are thunks, so creating a type never creates
the types it refers to.
"""

import threading
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Any

from graphql import (
    GraphQLArgument,
    GraphQLBoolean,
    GraphQLEnumType,
    GraphQLEnumValue,
    GraphQLError,
    GraphQLField,
    GraphQLFloat,
    GraphQLID,
    GraphQLInputField,
    GraphQLInputObjectType,
    GraphQLInputType,
    GraphQLInt,
    GraphQLInterfaceType,
    GraphQLList,
    GraphQLNamedType,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLOutputType,
    GraphQLResolveInfo,
    GraphQLScalarType,
    GraphQLSchema,
    GraphQLString,
    GraphQLUnionType,
    Undefined,
    validate_schema,
)

from gschema import log
from gschema.config import RuntimeConfig
from gschema.descriptors import (
    DefaultValue,
    DescriptorTable,
    EnumDescriptor,
    FieldDescriptor,
    InputObjectDescriptor,
    InterfaceDescriptor,
    ObjectDescriptor,
    Reference,
    ScalarDescriptor,
    TypeDescriptor,
    TypeRef,
    UnionDescriptor,
)
from gschema.errors import SchemaAssemblyError, TypeNotFoundError
from gschema.runtime.directive import DirectiveRegistry, Resolver, directives
from gschema.runtime.resolvers import DIRECTIVES_EXTENSION, FieldsResolver
from gschema.runtime.wiring import evaluate_reference

BUILTIN_SCALARS: dict[str, GraphQLScalarType] = {
    "boolean": GraphQLBoolean,
    "float": GraphQLFloat,
    "id": GraphQLID,
    "int": GraphQLInt,
    "string": GraphQLString,
}

_KINDS_WITH_FIELDS = ("object", "input", "interface")


def merge_tables(*tables: DescriptorTable) -> dict[str, list[TypeDescriptor]]:
    """Combine descriptor tables, concatenating the partial descriptors of each type."""
    merged: dict[str, list[TypeDescriptor]] = {}
    for table in tables:
        for name, descriptors in table.types.items():
            merged.setdefault(name, []).extend(descriptors)
    return merged


def enum_default(value: str) -> Any:
    """Internal value of an enum default literal. Enum values are their own names."""
    return value


def default_field_resolver(parent: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
    """Field resolver for the executor that refuses to resolve fields nobody wired."""
    path = ".".join(str(key) for key in info.path.as_list())
    raise GraphQLError(
        f"Default resolver called for {info.parent_type.name}->{path}. "
        "You have to configure resolver for each field in schema"
    )


class SchemaAssembler:
    """
    Builds graphql-core types on demand from descriptor tables.

    Args:
        tables: Descriptor tables of all schema modules
        registry: Directive registry used to wrap resolvers, the process-wide one by default
        locator: Service locator object for ``Di->member`` references
        config: Runtime configuration
        enum_default: Hook returning the internal value of an enum default literal
    """

    def __init__(
        self,
        tables: Iterable[DescriptorTable],
        *,
        registry: DirectiveRegistry | None = None,
        locator: Any = None,
        config: RuntimeConfig | None = None,
        enum_default: Callable[[str], Any] = enum_default,
    ) -> None:
        self.config = config or RuntimeConfig()
        self.registry = registry if registry is not None else directives
        self.locator = locator
        self.enum_default = enum_default

        self._descriptors: dict[str, list[TypeDescriptor]] = {}
        for name, descriptors in merge_tables(*tables).items():
            self._descriptors.setdefault(name.lower(), []).extend(descriptors)

        self._types: dict[str, GraphQLNamedType] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._locks_lock = threading.Lock()
        self._schema: GraphQLSchema | None = None
        self._schema_lock = threading.RLock()

        self._builders: dict[str, Callable[[Any, list[list[FieldDescriptor]]], GraphQLNamedType]] = {
            "scalar": self._build_scalar,
            "object": self._build_object,
            "input": self._build_input_object,
            "enum": self._build_enum,
            "interface": self._build_interface,
            "union": self._build_union,
        }

    @classmethod
    def from_files(cls, paths: Iterable[Path], **kwargs: Any) -> "SchemaAssembler":
        """Load ``*.schema.json`` descriptor tables from files or directories."""
        files: list[Path] = []
        for path in paths:
            if path.is_dir():
                files.extend(sorted(path.glob("*.schema.json")))
            else:
                files.append(path)
        log.debug(f"Loading {len(files)} descriptor table(s)")
        return cls([DescriptorTable.from_file(file) for file in files], **kwargs)

    def has_type(self, name: str) -> bool:
        return name.lower() in BUILTIN_SCALARS or name.lower() in self._descriptors

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has_type(name)

    # #########################################################
    # Type lookup
    # #########################################################

    def get_type(self, name: str) -> GraphQLNamedType:
        """
        Return the live type for a name (case-insensitive), creating it on first access.

        Raises:
            TypeNotFoundError: If no descriptor table describes the type.
        """
        key = name.lower()
        builtin = BUILTIN_SCALARS.get(key)
        if builtin is not None:
            return builtin

        graphql_type = self._types.get(key)
        if graphql_type is not None:
            return graphql_type

        with self._key_lock(key):
            graphql_type = self._types.get(key)
            if graphql_type is None:
                graphql_type = self._types[key] = self.create_type(name)
            return graphql_type

    def _key_lock(self, key: str) -> threading.RLock:
        with self._locks_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock

    def create_type(self, name: str) -> GraphQLNamedType:
        """Merge the partial descriptors of a type and instantiate it."""
        descriptors = self._descriptors.get(name.lower())
        if not descriptors:
            raise TypeNotFoundError(f"Type '{name}' is not described by any descriptor table")

        descriptor, field_blocks = self._merge(descriptors)
        log.debug(f"Creating {descriptor.kind} type '{descriptor.name}' from {len(descriptors)} descriptor(s)")
        return self._builders[descriptor.kind](descriptor, field_blocks)

    def _merge(self, descriptors: Sequence[TypeDescriptor]) -> tuple[Any, list[list[FieldDescriptor]]]:
        """Merge partial descriptors: field blocks are collected, other keys are last-writer-wins."""
        first = descriptors[0]
        if len(descriptors) == 1:
            return first, [first.fields] if first.kind in _KINDS_WITH_FIELDS else []

        merged = first
        field_blocks: list[list[FieldDescriptor]] = []
        seen: dict[str, str] = {}
        for descriptor in descriptors:
            if descriptor.kind != first.kind:
                raise SchemaAssemblyError(
                    f"Type '{first.name}' is described both as {first.kind} and {descriptor.kind}"
                )
            if descriptor.kind in _KINDS_WITH_FIELDS:
                for field in descriptor.fields:
                    if field.name in seen:
                        raise SchemaAssemblyError(
                            f"Field '{first.name}.{field.name}' is contributed by module '{seen[field.name]}' "
                            f"and by module '{descriptor.source_module}'"
                        )
                    seen[field.name] = descriptor.source_module
                field_blocks.append(descriptor.fields)

            update: dict[str, Any] = {}
            for key in descriptor.model_fields_set:
                value = getattr(descriptor, key)
                if key != "fields" and value is not None:
                    update[key] = value
            merged = merged.model_copy(update=update)

        return merged, field_blocks

    # #########################################################
    # Schema
    # #########################################################

    def schema(self) -> GraphQLSchema:
        """
        Assemble the schema, once.

        Raises:
            SchemaAssemblyError: If the query type is missing or the schema is invalid.
        """
        with self._schema_lock:
            if self._schema is None:
                self._schema = self._assemble()
            return self._schema

    def _assemble(self) -> GraphQLSchema:
        query_type = self._root_type(self.config.query_type, required=True)
        mutation_type = self._root_type(self.config.mutation_type, required=False)

        # Implementations are not reachable from the root types through interface fields
        types = [
            self.get_type(descriptors[0].name)
            for descriptors in self._descriptors.values()
            if any(isinstance(descriptor, ObjectDescriptor) and descriptor.interfaces for descriptor in descriptors)
        ]

        schema = GraphQLSchema(
            query=query_type,
            mutation=mutation_type,
            types=types,
            assume_valid=self.config.assume_valid,
        )

        if not self.config.assume_valid:
            errors = validate_schema(schema)
            if errors:
                raise SchemaAssemblyError("Invalid schema:\n" + "\n".join(f"- {error.message}" for error in errors))

        log.info(f"Assembled schema with {len(self._types)} type(s)")
        return schema

    def _root_type(self, name: str, required: bool) -> GraphQLObjectType | None:
        if name.lower() not in self._descriptors:
            if required:
                raise SchemaAssemblyError(f"Root type '{name}' is not described by any descriptor table")
            return None
        root = self.get_type(name)
        if not isinstance(root, GraphQLObjectType):
            raise SchemaAssemblyError(f"Root type '{name}' must be an object type")
        return root

    # #########################################################
    # Types
    # #########################################################

    def _build_scalar(self, descriptor: ScalarDescriptor, _blocks: list[list[FieldDescriptor]]) -> GraphQLScalarType:
        return GraphQLScalarType(
            name=descriptor.name,
            description=descriptor.description,
            serialize=evaluate_reference(descriptor.serialize),
            parse_value=evaluate_reference(descriptor.parse_value),
            parse_literal=evaluate_reference(descriptor.parse_literal),
            extensions={DIRECTIVES_EXTENSION: descriptor.directives},
        )

    def _build_object(self, descriptor: ObjectDescriptor, blocks: list[list[FieldDescriptor]]) -> GraphQLObjectType:
        fields_resolver = None
        if descriptor.fields_resolver is not None:
            fields_resolver = FieldsResolver(self._evaluate(descriptor.fields_resolver), self.registry)

        return GraphQLObjectType(
            name=descriptor.name,
            description=descriptor.description,
            fields=lambda: self._output_fields(blocks, fields_resolver),
            interfaces=lambda: [self._interface(name) for name in descriptor.interfaces],
            extensions={DIRECTIVES_EXTENSION: descriptor.directives},
        )

    def _build_input_object(
        self, descriptor: InputObjectDescriptor, blocks: list[list[FieldDescriptor]]
    ) -> GraphQLInputObjectType:
        out_type = self._evaluate(descriptor.parse_value) if descriptor.parse_value else None
        return GraphQLInputObjectType(
            name=descriptor.name,
            description=descriptor.description,
            fields=lambda: {
                field.name: self._input_field(field) for fields in blocks for field in fields
            },
            out_type=out_type,
            extensions={DIRECTIVES_EXTENSION: descriptor.directives},
        )

    def _build_enum(self, descriptor: EnumDescriptor, _blocks: list[list[FieldDescriptor]]) -> GraphQLEnumType:
        values = {
            name: GraphQLEnumValue(
                value=name,
                description=value.description,
                deprecation_reason=value.deprecation_reason,
            )
            for name, value in descriptor.values.items()
        }
        return GraphQLEnumType(
            name=descriptor.name,
            values=values,
            description=descriptor.description,
            extensions={DIRECTIVES_EXTENSION: descriptor.directives},
        )

    def _build_interface(
        self, descriptor: InterfaceDescriptor, blocks: list[list[FieldDescriptor]]
    ) -> GraphQLInterfaceType:
        return GraphQLInterfaceType(
            name=descriptor.name,
            description=descriptor.description,
            fields=lambda: self._output_fields(blocks, None),
            interfaces=lambda: [self._interface(name) for name in descriptor.interfaces],
            resolve_type=self._type_resolver(descriptor.type_resolver) if descriptor.type_resolver else None,
            extensions={DIRECTIVES_EXTENSION: descriptor.directives},
        )

    def _build_union(self, descriptor: UnionDescriptor, _blocks: list[list[FieldDescriptor]]) -> GraphQLUnionType:
        return GraphQLUnionType(
            name=descriptor.name,
            description=descriptor.description,
            types=lambda: [self._object(name) for name in descriptor.members],
            resolve_type=self._type_resolver(descriptor.type_resolver),
            extensions={DIRECTIVES_EXTENSION: descriptor.directives},
        )

    def _interface(self, name: str) -> GraphQLInterfaceType:
        interface = self.get_type(name)
        if not isinstance(interface, GraphQLInterfaceType):
            raise SchemaAssemblyError(f"Type '{name}' is used as an interface but is not one")
        return interface

    def _object(self, name: str) -> GraphQLObjectType:
        member = self.get_type(name)
        if not isinstance(member, GraphQLObjectType):
            raise SchemaAssemblyError(f"Union member '{name}' is not an object type")
        return member

    # #########################################################
    # Fields and values
    # #########################################################

    def _output_fields(
        self, blocks: list[list[FieldDescriptor]], fields_resolver: FieldsResolver | None
    ) -> dict[str, GraphQLField]:
        return {field.name: self._output_field(field, fields_resolver) for fields in blocks for field in fields}

    def _output_field(self, field: FieldDescriptor, fields_resolver: FieldsResolver | None) -> GraphQLField:
        resolve: Resolver | None = fields_resolver
        if field.resolver is not None:
            resolve = self.registry.wrap_directives(field.directives, self._evaluate(field.resolver))

        args = {
            argument.name: GraphQLArgument(
                self._input_type(argument.type),
                default_value=self._default(argument.default_value) if argument.default_value else Undefined,
                description=argument.description,
            )
            for argument in field.arguments
        }
        return GraphQLField(
            self._output_type(field.type),
            args=args,
            resolve=resolve,
            description=field.description,
            deprecation_reason=field.deprecation_reason,
            extensions={DIRECTIVES_EXTENSION: field.directives},
        )

    def _input_field(self, field: FieldDescriptor) -> GraphQLInputField:
        return GraphQLInputField(
            self._input_type(field.type),
            default_value=self._default(field.default_value) if field.default_value else Undefined,
            description=field.description,
            deprecation_reason=field.deprecation_reason,
            extensions={DIRECTIVES_EXTENSION: field.directives},
        )

    def _type(self, ref: TypeRef) -> Any:
        if ref.kind == "non_null":
            return GraphQLNonNull(self._type(ref.of_type))
        if ref.kind == "list":
            return GraphQLList(self._type(ref.of_type))
        return self.get_type(ref.name)

    def _output_type(self, ref: TypeRef) -> GraphQLOutputType:
        graphql_type: GraphQLOutputType = self._type(ref)
        return graphql_type

    def _input_type(self, ref: TypeRef) -> GraphQLInputType:
        graphql_type: GraphQLInputType = self._type(ref)
        return graphql_type

    def _default(self, value: DefaultValue) -> Any:
        if value.kind == "list":
            return [self._default(item) for item in value.items or ()]
        if value.kind == "enum":
            return self.enum_default(value.value)
        if value.kind == "null":
            return None
        return value.value

    # #########################################################
    # Wiring
    # #########################################################

    def _evaluate(self, reference: Reference) -> Callable[..., Any]:
        return evaluate_reference(reference, self.locator)

    def _type_resolver(self, reference: Reference) -> Callable[..., Any]:
        resolver = self._evaluate(reference)

        def resolve_type(value: Any, info: GraphQLResolveInfo, abstract_type: Any) -> Any:
            result = resolver(value, info, abstract_type)
            return result.name if isinstance(result, GraphQLObjectType) else result

        return resolve_type
