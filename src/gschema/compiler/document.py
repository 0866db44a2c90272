from typing import Any, TypeVar

from graphql import (
    FieldNode,
    FragmentSpreadNode,
    NameNode,
    Node,
    OperationDefinitionNode,
    SelectionSetNode,
    Visitor,
    visit,
)

TYPENAME = "__typename"

NodeT = TypeVar("NodeT", bound=Node)


class _TypenameInjector(Visitor):
    """Adds a __typename selection to every selection set except the operation root."""

    def enter_selection_set(
        self, node: SelectionSetNode, key: Any, parent: Any, path: Any, ancestors: Any
    ) -> SelectionSetNode | None:
        if isinstance(parent, OperationDefinitionNode):
            return None
        # Already selected, or an introspection selection
        if any(isinstance(selection, FieldNode) and selection.name.value.startswith("__") for selection in node.selections):
            return None

        typename = FieldNode(name=NameNode(value=TYPENAME), arguments=(), directives=())
        return SelectionSetNode(selections=(*node.selections, typename), loc=node.loc)


class _FragmentSpreadCollector(Visitor):
    def __init__(self) -> None:
        super().__init__()
        self.names: list[str] = []

    def enter_fragment_spread(self, node: FragmentSpreadNode, *_args: Any) -> None:
        self.names.append(node.name.value)


def add_typename(node: NodeT) -> NodeT:
    """Return a copy of an operation or fragment definition with __typename selected on composite types."""
    result: NodeT = visit(node, _TypenameInjector())
    return result


def get_fragment_spreads(node: Node) -> list[str]:
    """Names of all fragments spread anywhere inside the node, in document order (may repeat)."""
    collector = _FragmentSpreadCollector()
    visit(node, collector)
    return collector.names
