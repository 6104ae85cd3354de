"""Content handlers that turn URLs into normalized documents."""

from __future__ import annotations

from .base import (
    ContentHandler,
    HandlerDescriptor,
    HandlerError,
    HandlerNotFoundError,
    PreHandleResult,
)
from .registry import HandlerRegistry, registry
from .twitter import TwitterHandler, twitter_handler

__all__ = [
    "ContentHandler",
    "HandlerDescriptor",
    "HandlerError",
    "HandlerNotFoundError",
    "HandlerRegistry",
    "PreHandleResult",
    "TwitterHandler",
    "registry",
    "twitter_handler",
]
