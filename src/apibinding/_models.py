from __future__ import annotations

from typing import Any, Dict, List, TypeVar, Callable, cast

_T = TypeVar("_T")


def expect_object(body: object) -> dict[str, Any]:
    if not isinstance(body, dict):
        raise TypeError(f"expected a JSON object, got {type(body).__name__}")
    return cast(Dict[str, Any], body)


def unwrap_envelope(body: object, key: str = "data") -> list[Any]:
    """Return the list nested under ``key`` in an enveloped response.

    Pagination metadata next to it (``paging`` and the like) is dropped.
    """
    envelope = expect_object(body)
    if key not in envelope:
        raise KeyError(key)
    items = envelope[key]
    if not isinstance(items, list):
        raise TypeError(f"expected {key!r} to be a list, got {type(items).__name__}")
    return cast(List[Any], items)


def list_of(item: Callable[[object], _T], key: str = "data") -> Callable[[object], list[_T]]:
    """Build a ``cast_to`` that unwraps an envelope and converts each entry."""

    def cast_list(body: object) -> list[_T]:
        return [item(entry) for entry in unwrap_envelope(body, key)]

    return cast_list
