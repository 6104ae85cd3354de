"""Priority-ordered registry that routes URLs to content handlers."""

from __future__ import annotations

import logging
from typing import Callable

from .base import (
    ContentHandler,
    HandlerDescriptor,
    HandlerError,
    HandlerNotFoundError,
    PreHandleResult,
)

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Ordered collection of handler descriptors.

    Higher priority is consulted first; equal priorities keep registration
    order. Dispatch uses the first descriptor whose predicate accepts the URL.
    """

    def __init__(self) -> None:
        self._entries: list[HandlerDescriptor] = []

    def register_handler(
        self,
        handler: ContentHandler | HandlerDescriptor,
        *,
        priority: int = 0,
        replace: bool = False,
    ) -> HandlerDescriptor:
        if isinstance(handler, HandlerDescriptor):
            descriptor = handler
        else:
            descriptor = HandlerDescriptor.from_handler(handler, priority=priority)

        existing = self._index_of(descriptor.name)
        if existing is not None:
            if not replace:
                raise HandlerError(f"Handler '{descriptor.name}' is already registered")
            del self._entries[existing]

        self._entries.append(descriptor)
        self._entries.sort(key=lambda entry: -entry.priority)
        return descriptor

    def register(
        self,
        name: str,
        should_pre_handle: Callable[[str], bool],
        pre_handle: Callable[[str], PreHandleResult],
        *,
        priority: int = 0,
        replace: bool = False,
    ) -> HandlerDescriptor:
        """Register a handler given as two plain callables."""
        descriptor = HandlerDescriptor(
            name=name,
            should_pre_handle=should_pre_handle,
            pre_handle=pre_handle,
            priority=priority,
        )
        return self.register_handler(descriptor, replace=replace)

    def unregister_handler(self, name: str) -> bool:
        index = self._index_of(name)
        if index is None:
            return False
        del self._entries[index]
        return True

    def handlers(self) -> list[HandlerDescriptor]:
        return list(self._entries)

    def find_handler(self, url: str) -> HandlerDescriptor | None:
        for entry in self._entries:
            if entry.should_pre_handle(url):
                return entry
        return None

    def require_handler(self, url: str) -> HandlerDescriptor:
        entry = self.find_handler(url)
        if entry is None:
            raise HandlerNotFoundError(f"No content handler accepts '{url}'")
        return entry

    def pre_handle(self, url: str) -> PreHandleResult:
        entry = self.require_handler(url)
        logger.info("Handling %s with %s handler", url, entry.name)
        return entry.pre_handle(url)

    def _index_of(self, name: str) -> int | None:
        for index, entry in enumerate(self._entries):
            if entry.name == name:
                return index
        return None


registry = HandlerRegistry()

__all__ = ["HandlerRegistry", "registry"]
