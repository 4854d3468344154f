# errors.py
from __future__ import annotations

from typing import Iterable, List, Optional


class TransformError(Exception):
    """Base class for everything raised by the transform pipeline."""


# =============== Recoverable (try the next backend) ===============

class RecoverableError(TransformError):
    pass


class ParseFailure(RecoverableError):
    pass


class MissingValue(RecoverableError):
    pass


class UnsupportedFeature(RecoverableError):
    def __init__(self, message: str, features: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.features = sorted(features)


class BackendExecutionError(RecoverableError):
    def __init__(self, message: str, *, returncode: Optional[int] = None, log: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.log = log


# =============== Fatal ===============

class InvalidGeometryOperator(TransformError, ValueError):
    pass


class UnimplementedOperator(TransformError, NotImplementedError):
    pass


class AllBackendsFailed(TransformError):
    def __init__(self, messages: List[str]) -> None:
        self.messages = list(messages)
        super().__init__("\n".join(self.messages) or "no backend available")
