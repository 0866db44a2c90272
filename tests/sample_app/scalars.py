from datetime import datetime
from typing import Any

from graphql import StringValueNode, ValueNode


class DateTime:
    @staticmethod
    def serialize(value: datetime) -> str:
        return value.isoformat()

    @staticmethod
    def parse_value(value: str) -> datetime:
        return datetime.fromisoformat(value)

    @staticmethod
    def parse_literal(node: ValueNode, variables: dict[str, Any] | None = None) -> datetime:
        if not isinstance(node, StringValueNode):
            raise ValueError("DateTime literal must be a string")
        return datetime.fromisoformat(node.value)
