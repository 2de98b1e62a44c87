# -*- coding: utf-8 -*-
"""Exception hierarchy for aliasfs.

All exceptions inherit from :class:`AliasFSError`, which carries an optional
``context`` dict for logging.
"""

from typing import Any, Dict, Optional


class AliasFSError(Exception):
    """Base exception for all aliasfs errors.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context, e.g. the alias or URI involved.
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class NotFound(AliasFSError):
    """Raised when an alias does not exist, or when a tracked file URI has no
    alias referencing it.
    """


class Misconfigured(AliasFSError):
    """Raised when a blob store is required but was never set, or when a file
    URI names a mount that no blob store is registered under.
    """


class StoreFailure(AliasFSError):
    """Raised when the database or a blob store fails. The original error is
    chained as ``__cause__``.
    """
