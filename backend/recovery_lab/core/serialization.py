"""JSON rendering for the planning core's dataclass results."""
from typing import Any

from pydantic import TypeAdapter


def to_json_dict(result: Any) -> Any:
    """
    Convert a result dataclass (or pydantic model) into plain JSON types.

    Datetimes become ISO-8601 strings and tuples become lists.
    """
    return TypeAdapter(type(result)).dump_python(result, mode="json")
