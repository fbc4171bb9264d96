from __future__ import annotations

from typing import (
    Any,
    Iterable,
    Iterator,
    List,
    Mapping,
    MutableMapping,
    Optional,
    Tuple,
    Union,
)

from deepetag._utils import HEADERS_ENCODING


class Headers(MutableMapping[str, str]):
    """
    Case-insensitive header mapping.

    Repeated headers are kept as lists and joined with ", " on access,
    so a request carrying two ``If-None-Match`` lines is seen as one value.
    Assignment replaces every previous value of the header.
    """

    def __init__(self, headers: Optional[Mapping[str, Union[str, List[str]]]] = None) -> None:
        headers = headers or {}
        self._headers = {k.lower(): ([v] if isinstance(v, str) else v[:]) for k, v in headers.items()}

    @classmethod
    def from_raw(cls, raw_headers: Iterable[Tuple[bytes, bytes]]) -> "Headers":
        headers = cls()
        for key, value in raw_headers:
            headers.add(key.decode(HEADERS_ENCODING), value.decode(HEADERS_ENCODING))
        return headers

    def add(self, key: str, value: str) -> None:
        self._headers.setdefault(key.lower(), []).append(value)

    def get_list(self, key: str) -> Optional[List[str]]:
        return self._headers.get(key.lower(), None)

    def raw(self) -> List[Tuple[bytes, bytes]]:
        return [
            (key.encode(HEADERS_ENCODING), value.encode(HEADERS_ENCODING))
            for key, values in self._headers.items()
            for value in values
        ]

    def __getitem__(self, key: str) -> str:
        return ", ".join(self._headers[key.lower()])

    def __setitem__(self, key: str, value: str) -> None:
        self._headers[key.lower()] = [value]

    def __delitem__(self, key: str) -> None:
        del self._headers[key.lower()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return repr(self._headers)

    def __str__(self) -> str:
        return str(self._headers)

    def __eq__(self, other_headers: Any) -> bool:
        return isinstance(other_headers, Headers) and self._headers == other_headers._headers  # type: ignore
