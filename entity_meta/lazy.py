"""
Deferred entity model references.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .types import EntityModel


class LazyModelHandle:
    """
    Stand-in for an entity model that is resolved on first use.

    The handle remembers which factory should provide the model and asks it
    for ``(reference, entity_class)`` the first time the model is needed. The
    result is memoized. Attribute access is forwarded, so a handle can be used
    wherever an ``EntityModel`` is read.
    """

    __slots__ = ("_provider", "reference", "entity_class", "_model", "_lock")

    def __init__(self, provider: Any, reference: str, entity_class: type):
        self._provider = provider
        self.reference = reference
        self.entity_class = entity_class
        self._model: Optional["EntityModel"] = None
        self._lock = threading.Lock()

    def resolve(self) -> "EntityModel":
        model = self._model
        if model is None:
            with self._lock:
                if self._model is None:
                    self._model = self._provider.get_model(self.reference, self.entity_class)
                model = self._model
        return model

    @property
    def is_resolved(self) -> bool:
        return self._model is not None

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        return getattr(self.resolve(), name)

    def __repr__(self) -> str:
        state = "resolved" if self.is_resolved else "pending"
        return f"<LazyModelHandle {self.reference} ({self.entity_class.__name__}, {state})>"
