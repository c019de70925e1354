"""
Reference keyed cache of entity models.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .exceptions import IllegalStructureError
from .types import EntityModel

logger = logging.getLogger(__name__)


class ModelRegistry:
    """
    Process lifetime cache of entity models keyed by reference.

    Builds are single-flight: the build-or-fetch sequence runs under one
    re-entrant lock so a reference is constructed at most once, while nested
    builds triggered from the same thread may proceed. Cached models are read
    without locking. Nothing is ever evicted.

    The registry also tracks which (reference, class) pairs have been
    processed. A pair counts as processed from the moment its build starts,
    which is what lets the nested resolver stop two-sided relationships from
    recursing into a build that is still on the stack.
    """

    def __init__(self):
        self._models: dict[str, EntityModel] = {}
        self._in_progress: dict[str, type] = {}
        self._processed: set[tuple[str, type]] = set()
        self._lock = threading.RLock()

    def get(self, reference: str) -> Optional[EntityModel]:
        return self._models.get(reference)

    def has(self, reference: str) -> bool:
        return reference in self._models

    def __contains__(self, reference: str) -> bool:
        return self.has(reference)

    def __len__(self) -> int:
        return len(self._models)

    @property
    def references(self) -> list[str]:
        return list(self._models.keys())

    def mark_processed(self, reference: str, entity_class: type) -> None:
        with self._lock:
            self._processed.add((reference, entity_class))

    def is_processed(self, reference: str, entity_class: type) -> bool:
        return (reference, entity_class) in self._processed

    def is_processing(self, reference: str, entity_class: type) -> bool:
        return self._in_progress.get(reference) is entity_class

    def get_or_build(
        self,
        reference: str,
        entity_class: type,
        build: Callable[[str, type], EntityModel],
    ) -> EntityModel:
        """
        Return the cached model for ``reference``, building it on first request.

        Args:
            reference: Model reference
            entity_class: Domain class of the model
            build: Callable constructing the model for (reference, entity_class)

        Raises:
            IllegalStructureError: if the reference is requested again while
                its own build is still running
        """
        model = self._models.get(reference)
        if model is not None:
            return model

        with self._lock:
            model = self._models.get(reference)
            if model is not None:
                return model
            if reference in self._in_progress:
                raise IllegalStructureError(
                    f"Entity model '{reference}' was requested while it is being built",
                    reference=reference,
                )

            self._in_progress[reference] = entity_class
            self.mark_processed(reference, entity_class)
            try:
                model = build(reference, entity_class)
                model.freeze()
                self._models[reference] = model
            finally:
                del self._in_progress[reference]

        logger.info("Registered entity model %s", reference)
        return model
