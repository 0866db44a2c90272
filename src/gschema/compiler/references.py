"""Parsing of wiring reference strings.

A wiring directive names its target with a short reference string::

    Di->currentUser                 service locator member
    app.users.UserFields->class     new instance of the class
    app.users.UserFields::fields    attribute of an importable object
    app.users.UserFields->fields()  same as above, trailing "()" is ignored

The string is parsed once, at compile time, into one of the reference descriptors.
"""

import re

from gschema.descriptors import ConstructorReference, LocatorReference, Reference, StaticMethodReference
from gschema.errors import ReferenceSyntaxError

CONSTRUCTOR_MARKER = "class"

_SEPARATOR_RE = re.compile(r"::|->")
_CALL_SUFFIX_RE = re.compile(r"\(\s*\)$")
_DOTTED_PATH_RE = re.compile(r"^[A-Za-z_]\w*(\.[A-Za-z_]\w*)*$")


def parse_reference(value: str, owner: str, locator_token: str = "Di") -> Reference:
    """
    Parse a wiring reference string.

    Args:
        value: The reference string as written in the directive
        owner: Type (or "Type.field") the directive is attached to, used in error messages
        locator_token: Root token that designates the service locator

    Returns:
        The parsed reference.

    Raises:
        ReferenceSyntaxError: If the string does not match any reference form.
    """
    text = _CALL_SUFFIX_RE.sub("", value.strip())
    parts = _SEPARATOR_RE.split(text)
    if len(parts) < 2:
        raise ReferenceSyntaxError(f"Invalid reference '{value}' on {owner}: expected 'Root->method' or 'Root::method'")

    member = parts[-1].strip()
    root = parts[:-1]
    if not member.isidentifier():
        raise ReferenceSyntaxError(f"Invalid reference '{value}' on {owner}: '{member}' is not an identifier")

    if root[0].strip() == locator_token:
        if len(root) != 1:
            raise ReferenceSyntaxError(
                f"Invalid reference '{value}' on {owner}: locator references must name exactly one member"
            )
        return LocatorReference(member=member)

    if len(root) != 1 or not _DOTTED_PATH_RE.match(root[0].strip()):
        raise ReferenceSyntaxError(f"Invalid reference '{value}' on {owner}: '{text}' does not start with a dotted path")

    target = root[0].strip()
    if member == CONSTRUCTOR_MARKER:
        return ConstructorReference(target=target)
    return StaticMethodReference(target=target, method=member)


def is_dotted_path(value: str) -> bool:
    return bool(_DOTTED_PATH_RE.match(value))
