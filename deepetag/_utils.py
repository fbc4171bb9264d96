from __future__ import annotations

import inspect
import typing as tp

HEADERS_ENCODING = "iso-8859-1"

T = tp.TypeVar("T")

FALSY_ENV_VALUES = frozenset(["false", "0", "no", "off"])


async def aresolve_awaitable(value: tp.Union[T, tp.Awaitable[T]]) -> T:
    """Await ``value`` if it is awaitable, otherwise return it as is."""
    if inspect.isawaitable(value):
        return await value
    return value


def resolve_awaitable(value: tp.Union[T, tp.Awaitable[T]]) -> T:
    """
    Synchronous counterpart of ``aresolve_awaitable``.

    An awaitable cannot be driven from synchronous code, so it is closed
    (when it is a coroutine) and rejected.
    """
    if inspect.isawaitable(value):
        if inspect.iscoroutine(value):
            value.close()
        raise TypeError(f"Got an awaitable ({type(value).__name__}) where a plain value was expected")
    return value


def filter_raw_headers(
    raw_headers: tp.Iterable[tp.Tuple[bytes, bytes]], keys_to_exclude: tp.Iterable[str]
) -> tp.List[tp.Tuple[bytes, bytes]]:
    """
        Filter out specified header names from ASGI-style raw headers using case-insensitive comparison.

        Args:
            raw_headers: The ``(name, value)`` byte pairs to filter.
            keys_to_exclude: An iterable of header names to exclude (case-insensitive).

        Returns:
            A new list with the specified headers excluded.

        Example:
    ```python
            original = [(b"ETag", b'"1"'), (b"content-length", b"4")]
            filtered = filter_raw_headers(original, ["Content-Length"])
            # filtered will be [(b"ETag", b'"1"')]
    ```
    """
    exclude_set = {k.lower() for k in keys_to_exclude}
    return [(k, v) for k, v in raw_headers if k.decode(HEADERS_ENCODING).lower() not in exclude_set]


def env_flag(value: tp.Optional[str], default: bool = True) -> bool:
    """
    Interpret an environment variable as a boolean switch.

    Examples:
        >>> env_flag(None)
        True
        >>> env_flag("off")
        False
        >>> env_flag(" TRUE ")
        True
    """
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in FALSY_ENV_VALUES
