"""Core types shared by content handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable


class HandlerError(RuntimeError):
    """Base error for handler dispatch failures."""


class HandlerNotFoundError(HandlerError):
    """No registered handler accepts the URL."""


@dataclass(frozen=True, slots=True)
class PreHandleResult:
    """Normalized document produced for a URL.

    ``content`` is a self-contained HTML document whose ``<meta>`` tags carry
    the metadata the storage pipeline extracts.
    """

    url: str
    title: str
    content: str


@runtime_checkable
class ContentHandler(Protocol):
    """Anything that can claim a URL and turn it into a document.

    ``should_pre_handle`` must be a pure predicate without I/O.
    ``pre_handle`` is only called after it returned True.
    """

    name: str

    def should_pre_handle(self, url: str) -> bool:
        ...

    def pre_handle(self, url: str) -> PreHandleResult:
        ...


@dataclass(frozen=True, slots=True)
class HandlerDescriptor:
    """Registry entry pairing a handler's predicate and resolver."""

    name: str
    should_pre_handle: Callable[[str], bool]
    pre_handle: Callable[[str], PreHandleResult]
    priority: int = 0

    @classmethod
    def from_handler(cls, handler: ContentHandler, *, priority: int = 0) -> "HandlerDescriptor":
        return cls(
            name=handler.name,
            should_pre_handle=handler.should_pre_handle,
            pre_handle=handler.pre_handle,
            priority=priority,
        )


__all__ = [
    "ContentHandler",
    "HandlerDescriptor",
    "HandlerError",
    "HandlerNotFoundError",
    "PreHandleResult",
]
