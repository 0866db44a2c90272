from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from graphql import (
    BooleanValueNode,
    ConstDirectiveNode,
    ConstValueNode,
    DirectiveDefinitionNode,
    DocumentNode,
    EnumTypeDefinitionNode,
    EnumTypeExtensionNode,
    EnumValueNode,
    FieldDefinitionNode,
    FloatValueNode,
    InputObjectTypeDefinitionNode,
    InputObjectTypeExtensionNode,
    InputValueDefinitionNode,
    InterfaceTypeDefinitionNode,
    InterfaceTypeExtensionNode,
    IntValueNode,
    ListTypeNode,
    ListValueNode,
    Node,
    NonNullTypeNode,
    NullValueNode,
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    ScalarTypeDefinitionNode,
    ScalarTypeExtensionNode,
    SchemaDefinitionNode,
    SchemaExtensionNode,
    StringValueNode,
    TypeDefinitionNode,
    TypeNode,
    UnionTypeDefinitionNode,
    UnionTypeExtensionNode,
)

from gschema import log
from gschema.compiler.directive import build_invocations, get_deprecation_reason, get_string_from_directive
from gschema.compiler.loader import determine_module, load_schema_documents
from gschema.compiler.references import is_dotted_path, parse_reference
from gschema.config import SchemaCompilerConfig
from gschema.descriptors import (
    ArgumentDescriptor,
    DefaultValue,
    DescriptorTable,
    EnumDescriptor,
    EnumValueDescriptor,
    FieldDescriptor,
    InputObjectDescriptor,
    InterfaceDescriptor,
    ObjectDescriptor,
    Reference,
    ScalarDescriptor,
    StaticMethodReference,
    TypeDescriptor,
    TypeRef,
    UnionDescriptor,
)
from gschema.errors import ReferenceSyntaxError, SchemaCompileError

SCALAR_METHODS = ("serialize", "parse_value", "parse_literal")

_NODE_KINDS: dict[type[Node], str] = {
    ScalarTypeDefinitionNode: "scalar",
    ScalarTypeExtensionNode: "scalar",
    ObjectTypeDefinitionNode: "object",
    ObjectTypeExtensionNode: "object",
    InputObjectTypeDefinitionNode: "input",
    InputObjectTypeExtensionNode: "input",
    EnumTypeDefinitionNode: "enum",
    EnumTypeExtensionNode: "enum",
    InterfaceTypeDefinitionNode: "interface",
    InterfaceTypeExtensionNode: "interface",
    UnionTypeDefinitionNode: "union",
    UnionTypeExtensionNode: "union",
}

_SKIPPED_NODES = (DirectiveDefinitionNode, SchemaDefinitionNode, SchemaExtensionNode)


def node_location(node: Node) -> tuple[str | None, int | None]:
    """Return (file, line) of an AST node, if the document was parsed with locations."""
    if node.loc is None:
        return None, None
    return node.loc.source.name, node.loc.start_token.line


@dataclass
class _Declaration:
    node: Any
    module: str
    file: str | None
    line: int | None


@dataclass
class _TypeGroup:
    """All declarations (definition and extensions) of one named type, in document order."""

    name: str
    kind: str
    definition: _Declaration | None = None
    declarations: list[_Declaration] = field(default_factory=list)

    @property
    def owner(self) -> _Declaration:
        if self.definition is None:
            file, line = (self.declarations[0].file, self.declarations[0].line) if self.declarations else (None, None)
            raise SchemaCompileError(f"Cannot extend undefined type '{self.name}'", file, line)
        return self.definition

    @property
    def directives(self) -> list[ConstDirectiveNode]:
        return [directive for decl in self.declarations for directive in decl.node.directives or ()]

    @property
    def description(self) -> str | None:
        description = self.owner.node.description
        return description.value if description else None


class SchemaCompiler:
    """
    Compiles SDL documents into per-module descriptor tables.

    Object types may be declared in one module and extended (or re-declared) in others; their
    fields are partitioned by the module they are written in, one partial descriptor per
    (type, module). All other kinds produce a single descriptor in their owning module.
    """

    def __init__(self, config: SchemaCompilerConfig | None = None) -> None:
        self.config = config or SchemaCompilerConfig()
        self.directive_names = self.config.directives
        self._builders: dict[str, Callable[[_TypeGroup], list[TypeDescriptor]]] = {
            "scalar": self._compile_scalar,
            "object": self._compile_object,
            "input": self._compile_input_object,
            "enum": self._compile_enum,
            "interface": self._compile_interface,
            "union": self._compile_union,
        }

    def compile(self, documents: Sequence[DocumentNode]) -> dict[str, DescriptorTable]:
        """
        Compile SDL documents.

        Args:
            documents: Parsed SDL documents; each must carry its origin file as the source name.

        Returns:
            dict[str, DescriptorTable]: Module name to the descriptor table of that module.

        Raises:
            SchemaCompileError: On the first authoring defect found.
        """
        groups = self._collect_types(documents)

        tables: dict[str, dict[str, list[TypeDescriptor]]] = {}
        for group in groups.values():
            for descriptor in self._builders[group.kind](group):
                tables.setdefault(descriptor.source_module, {}).setdefault(group.name, []).append(descriptor)
            log.debug(f"Compiled {group.kind} '{group.name}'")

        log.info(f"Compiled {len(groups)} type(s) into {len(tables)} module(s)")
        return {module: DescriptorTable(module=module, types=types) for module, types in tables.items()}

    # #########################################################
    # Collection
    # #########################################################

    def _collect_types(self, documents: Sequence[DocumentNode]) -> dict[str, _TypeGroup]:
        groups: dict[str, _TypeGroup] = {}

        for document in documents:
            for node in document.definitions:
                if isinstance(node, _SKIPPED_NODES):
                    continue

                file, line = node_location(node)
                kind = _NODE_KINDS.get(type(node))
                if kind is None:
                    raise SchemaCompileError(f"Unexpected '{node.kind}' in a schema document", file, line)

                name = node.name.value
                module = determine_module(file, self.config.module_layout) if file else self.config.default_module
                declaration = _Declaration(node=node, module=module, file=file, line=line)

                group = groups.get(name)
                if group is None:
                    group = groups[name] = _TypeGroup(name=name, kind=kind)
                elif group.kind != kind:
                    raise SchemaCompileError(f"Type '{name}' is declared both as {group.kind} and {kind}", file, line)

                if isinstance(node, TypeDefinitionNode):
                    if group.definition is None:
                        group.definition = declaration
                    elif kind != "object":
                        first = group.definition
                        raise SchemaCompileError(
                            f"Type '{name}' is defined more than once (first at {first.file}:{first.line})", file, line
                        )

                group.declarations.append(declaration)

        for group in groups.values():
            if group.definition is None:
                first = group.declarations[0]
                raise SchemaCompileError(f"Cannot extend undefined type '{group.name}'", first.file, first.line)

        return groups

    # #########################################################
    # Per-kind descriptors
    # #########################################################

    def _consumed(self, *names: str) -> set[str]:
        return set(self.directive_names.wiring) | set(names)

    def _compile_scalar(self, group: _TypeGroup) -> list[TypeDescriptor]:
        owner = group.owner
        directive_name = self.directive_names.scalar
        found = self._directive_string(group.directives, directive_name, group.name)
        if found is None:
            raise SchemaCompileError(
                f"@{directive_name} directive must be set for scalar '{group.name}'", owner.file, owner.line
            )

        implementation = found.strip()
        if not is_dotted_path(implementation):
            raise SchemaCompileError(
                f"@{directive_name} on '{group.name}' must name an importable class, got '{implementation}'",
                owner.file,
                owner.line,
            )
        prefix = self.config.scalar_module_prefix
        if prefix and not implementation.startswith(prefix):
            raise SchemaCompileError(
                f"@{directive_name} on '{group.name}' must start with '{prefix}', got '{implementation}'",
                owner.file,
                owner.line,
            )

        methods = {method: StaticMethodReference(target=implementation, method=method) for method in SCALAR_METHODS}
        return [
            ScalarDescriptor(
                name=group.name,
                description=group.description,
                directives=build_invocations(group.directives, self._consumed(directive_name)),
                source_module=owner.module,
                implementation=implementation,
                **methods,
            )
        ]

    def _compile_object(self, group: _TypeGroup) -> list[TypeDescriptor]:
        fields_by_module = self._partition_fields(group)
        fields_resolver = self._wiring(group.directives, self.directive_names.fields_resolver, group.name)
        interfaces = self._interface_names(group)
        directives = build_invocations(group.directives, self._consumed())

        return [
            ObjectDescriptor(
                name=group.name,
                description=group.description,
                directives=directives,
                source_module=module,
                fields=fields,
                fields_resolver=fields_resolver,
                interfaces=interfaces,
            )
            for module, fields in fields_by_module.items()
        ]

    def _compile_input_object(self, group: _TypeGroup) -> list[TypeDescriptor]:
        owner = group.owner
        parser_directive = self.directive_names.input_parser
        fields = [field for fields in self._partition_fields(group).values() for field in fields]
        return [
            InputObjectDescriptor(
                name=group.name,
                description=group.description,
                directives=build_invocations(group.directives, self._consumed(parser_directive)),
                source_module=owner.module,
                fields=fields,
                parse_value=self._wiring(group.directives, parser_directive, group.name),
            )
        ]

    def _compile_enum(self, group: _TypeGroup) -> list[TypeDescriptor]:
        owner = group.owner
        values: dict[str, EnumValueDescriptor] = {}
        for declaration in group.declarations:
            for value_node in declaration.node.values or ():
                value_name = value_node.name.value
                if value_name in values:
                    file, line = node_location(value_node)
                    raise SchemaCompileError(f"Enum value '{group.name}.{value_name}' is defined more than once", file, line)
                values[value_name] = EnumValueDescriptor(
                    value=value_name,
                    description=value_node.description.value if value_node.description else None,
                    deprecation_reason=get_deprecation_reason(value_node.directives),
                )

        return [
            EnumDescriptor(
                name=group.name,
                description=group.description,
                directives=build_invocations(group.directives, self._consumed()),
                source_module=owner.module,
                values=values,
            )
        ]

    def _compile_interface(self, group: _TypeGroup) -> list[TypeDescriptor]:
        owner = group.owner
        resolver_directive = self.directive_names.type_resolver
        type_resolver = self._wiring(group.directives, resolver_directive, group.name)
        if type_resolver is None and group.name not in self.config.type_resolver_exempt:
            raise SchemaCompileError(
                f"Interface type '{group.name}' must have @{resolver_directive} type resolver defined",
                owner.file,
                owner.line,
            )

        fields = [field for fields in self._partition_fields(group).values() for field in fields]
        return [
            InterfaceDescriptor(
                name=group.name,
                description=group.description,
                directives=build_invocations(group.directives, self._consumed(resolver_directive)),
                source_module=owner.module,
                fields=fields,
                type_resolver=type_resolver,
                interfaces=self._interface_names(group),
            )
        ]

    def _compile_union(self, group: _TypeGroup) -> list[TypeDescriptor]:
        owner = group.owner
        resolver_directive = self.directive_names.type_resolver
        type_resolver = self._wiring(group.directives, resolver_directive, group.name)
        if type_resolver is None:
            raise SchemaCompileError(
                f"Union type '{group.name}' must have @{resolver_directive} type resolver defined",
                owner.file,
                owner.line,
            )

        members: list[str] = []
        for declaration in group.declarations:
            for type_node in declaration.node.types or ():
                if type_node.name.value not in members:
                    members.append(type_node.name.value)

        return [
            UnionDescriptor(
                name=group.name,
                description=group.description,
                directives=build_invocations(group.directives, self._consumed(resolver_directive)),
                source_module=owner.module,
                members=members,
                type_resolver=type_resolver,
            )
        ]

    # #########################################################
    # Fields, types and values
    # #########################################################

    def _partition_fields(self, group: _TypeGroup) -> dict[str, list[FieldDescriptor]]:
        """Compile the fields of all declarations, grouped by the module each field is written in.

        The owning module always comes first, even if it contributes no field.
        """
        fields_by_module: dict[str, list[FieldDescriptor]] = {group.owner.module: []}
        seen: dict[str, _Declaration] = {}

        for declaration in group.declarations:
            for field_node in declaration.node.fields or ():
                field_name = field_node.name.value
                file, line = node_location(field_node)
                module = determine_module(file, self.config.module_layout) if file else declaration.module

                if field_name in seen:
                    first = seen[field_name]
                    raise SchemaCompileError(
                        f"Field '{group.name}.{field_name}' is defined in module '{first.module}' "
                        f"({first.file}) and again in module '{module}'",
                        file,
                        line,
                    )
                seen[field_name] = declaration
                fields_by_module.setdefault(module, []).append(self._compile_field(group.name, field_node))

        return fields_by_module

    def _compile_field(
        self, type_name: str, node: FieldDefinitionNode | InputValueDefinitionNode
    ) -> FieldDescriptor:
        owner = f"{type_name}.{node.name.value}"
        is_input = isinstance(node, InputValueDefinitionNode)

        return FieldDescriptor(
            name=node.name.value,
            type=translate_type(node.type),
            description=node.description.value if node.description else None,
            default_value=self._translate_default(node.default_value, owner) if is_input else None,
            resolver=None if is_input else self._wiring(node.directives, self.directive_names.field_resolver, owner),
            directives=build_invocations(node.directives, self.directive_names.wiring),
            arguments=[] if is_input else [self._compile_argument(owner, arg) for arg in node.arguments or ()],
            deprecation_reason=get_deprecation_reason(node.directives),
        )

    def _compile_argument(self, owner: str, node: InputValueDefinitionNode) -> ArgumentDescriptor:
        return ArgumentDescriptor(
            name=node.name.value,
            type=translate_type(node.type),
            description=node.description.value if node.description else None,
            default_value=self._translate_default(node.default_value, f"{owner}({node.name.value})"),
        )

    def _translate_default(self, node: ConstValueNode | None, owner: str) -> DefaultValue | None:
        if node is None:
            return None
        if isinstance(node, StringValueNode):
            return DefaultValue(kind="string", value=node.value)
        if isinstance(node, IntValueNode):
            return DefaultValue(kind="int", value=int(node.value))
        if isinstance(node, FloatValueNode):
            return DefaultValue(kind="float", value=float(node.value))
        if isinstance(node, BooleanValueNode):
            return DefaultValue(kind="boolean", value=node.value)
        if isinstance(node, NullValueNode):
            return DefaultValue(kind="null")
        if isinstance(node, EnumValueNode):
            return DefaultValue(kind="enum", value=node.value)
        if isinstance(node, ListValueNode):
            items = [self._translate_default(item, owner) for item in node.values]
            return DefaultValue(kind="list", items=[item for item in items if item is not None])

        file, line = node_location(node)
        raise SchemaCompileError(f"Unsupported default value kind '{node.kind}' on {owner}", file, line)

    # #########################################################
    # Directives
    # #########################################################

    def _directive_string(
        self, directives: Sequence[ConstDirectiveNode] | None, directive_name: str, owner: str
    ) -> str | None:
        try:
            found = get_string_from_directive(directives, directive_name)
        except ValueError as e:
            directive = next(d for d in directives or () if d.name.value == directive_name)
            file, line = node_location(directive)
            raise SchemaCompileError(f"{e} on {owner}", file, line) from e
        return found[0] if found else None

    def _wiring(
        self, directives: Sequence[ConstDirectiveNode] | None, directive_name: str, owner: str
    ) -> Reference | None:
        value = self._directive_string(directives, directive_name, owner)
        if value is None:
            return None
        try:
            return parse_reference(value, owner, self.config.locator_token)
        except ReferenceSyntaxError as e:
            directive = next(d for d in directives or () if d.name.value == directive_name)
            file, line = node_location(directive)
            raise SchemaCompileError(str(e), file, line) from e

    @staticmethod
    def _interface_names(group: _TypeGroup) -> list[str]:
        names: list[str] = []
        for declaration in group.declarations:
            for interface in declaration.node.interfaces or ():
                if interface.name.value not in names:
                    names.append(interface.name.value)
        return names


def translate_type(node: TypeNode) -> TypeRef:
    """Translate a type reference without resolving named types."""
    if isinstance(node, NonNullTypeNode):
        return TypeRef.non_null(translate_type(node.type))
    if isinstance(node, ListTypeNode):
        return TypeRef.list_of(translate_type(node.type))
    return TypeRef.named(node.name.value)


def compile_schema_files(paths: Iterable[Path], config: SchemaCompilerConfig | None = None) -> dict[str, DescriptorTable]:
    """Load SDL files or folders and compile them into per-module descriptor tables."""
    return SchemaCompiler(config).compile(load_schema_documents(paths))


def write_descriptor_tables(tables: dict[str, DescriptorTable], output_dir: Path) -> list[Path]:
    """Write one ``<module>.schema.json`` file per module and return the written paths."""
    output_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for module, table in tables.items():
        path = output_dir / f"{module}.schema.json"
        path.write_text(table.to_json() + "\n", encoding="utf-8")
        written.append(path)
        log.debug(f"Wrote descriptor table for module '{module}' to {path}")
    return written
