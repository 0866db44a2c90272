from collections.abc import Collection, Sequence
from typing import Any

from graphql import ConstDirectiveNode, StringValueNode, value_from_ast_untyped

from gschema.descriptors import DirectiveInvocation

DEPRECATED_DIRECTIVE = "deprecated"
DEFAULT_DEPRECATION_REASON = "No longer supported"


def get_directive_arguments(directive: ConstDirectiveNode) -> dict[str, Any]:
    """
    Extracts the arguments of a directive node as plain Python values.

    Args:
        directive: The directive node as found in the SDL AST.
    Returns:
        dict[str, Any]: Argument name to value, in declaration order.
    """
    return {arg.name.value: value_from_ast_untyped(arg.value) for arg in directive.arguments or ()}


def has_given_directive(directives: Sequence[ConstDirectiveNode] | None, directive_name: str) -> bool:
    """Check whether a list of directive nodes contains a particular directive."""
    return any(directive.name.value == directive_name for directive in directives or ())


def get_string_from_directive(
    directives: Sequence[ConstDirectiveNode] | None, directive_name: str
) -> tuple[str, ConstDirectiveNode] | None:
    """
    Returns the value of the first argument of the first directive with the given name.

    Wiring directives take a single string argument whatever it is called, e.g. ``@r(_: "Di->auth")``.

    Returns:
        The string value and the directive node it was read from, or None if the directive is absent.

    Raises:
        ValueError: If the directive has no arguments or its first argument is not a string.
    """
    for directive in directives or ():
        if directive.name.value != directive_name:
            continue
        if not directive.arguments:
            raise ValueError(f"Directive '@{directive_name}' requires a string argument")
        value = directive.arguments[0].value
        if not isinstance(value, StringValueNode):
            raise ValueError(f"Directive '@{directive_name}' argument must be a string")
        return value.value, directive
    return None


def get_deprecation_reason(directives: Sequence[ConstDirectiveNode] | None) -> str | None:
    for directive in directives or ():
        if directive.name.value == DEPRECATED_DIRECTIVE:
            reason = get_directive_arguments(directive).get("reason")
            return reason if isinstance(reason, str) else DEFAULT_DEPRECATION_REASON
    return None


def build_invocations(
    directives: Sequence[ConstDirectiveNode] | None, consumed: Collection[str]
) -> list[DirectiveInvocation]:
    """Translate directive nodes to invocations, skipping the consumed ones and @deprecated."""
    return [
        DirectiveInvocation(name=directive.name.value, arguments=get_directive_arguments(directive))
        for directive in directives or ()
        if directive.name.value not in consumed and directive.name.value != DEPRECATED_DIRECTIVE
    ]
