"""Category weights used to widen or bias retrieval.

Categories live in a separate persistent store; this module only defines
the repository contract, an in-memory repository, and the service logic
on top of it (related-category lookup and thresholded weight updates).
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod

from pydantic import BaseModel

from content_rag.config import settings

logger = logging.getLogger(__name__)


class Category(BaseModel):
    id: str
    name: str
    description: str = ""
    parent_id: str | None = None
    weight: float = 1.0


class CategoryRepository(ABC):
    """Persistence contract for categories."""

    @abstractmethod
    def get(self, category_id: str) -> Category | None:
        ...

    @abstractmethod
    def children_of(self, parent_id: str) -> list[Category]:
        ...

    @abstractmethod
    def save(self, category: Category) -> None:
        ...

    @abstractmethod
    def update_weight(self, category_id: str, weight: float) -> None:
        ...


class InMemoryCategoryRepository(CategoryRepository):
    """Thread-safe dict-backed repository."""

    def __init__(self, categories: list[Category] | None = None) -> None:
        self._lock = threading.Lock()
        self._categories: dict[str, Category] = {c.id: c for c in categories or []}

    def get(self, category_id: str) -> Category | None:
        with self._lock:
            category = self._categories.get(category_id)
            return category.model_copy() if category else None

    def children_of(self, parent_id: str) -> list[Category]:
        with self._lock:
            return [c.model_copy() for c in self._categories.values() if c.parent_id == parent_id]

    def save(self, category: Category) -> None:
        with self._lock:
            self._categories[category.id] = category.model_copy()

    def update_weight(self, category_id: str, weight: float) -> None:
        with self._lock:
            category = self._categories[category_id]
            self._categories[category_id] = category.model_copy(update={"weight": weight})


class CategoryService:
    """Read categories and apply weight updates above a change threshold."""

    def __init__(
        self,
        repository: CategoryRepository,
        *,
        weight_update_threshold: float = settings.category_weight_threshold,
    ) -> None:
        self._repository = repository
        self.weight_update_threshold = weight_update_threshold

    def get_category(self, category_id: str) -> Category | None:
        category = self._repository.get(category_id)
        if category is None:
            logger.info("Category not found: %s", category_id)
        return category

    def get_related_categories(self, category_id: str) -> list[Category]:
        """Parent first, then siblings, then children of *category_id*."""
        category = self._repository.get(category_id)
        if category is None:
            return []

        related: list[Category] = []
        if category.parent_id:
            parent = self._repository.get(category.parent_id)
            if parent is not None:
                related.append(parent)
            related.extend(
                c for c in self._repository.children_of(category.parent_id) if c.id != category_id
            )
        related.extend(self._repository.children_of(category_id))
        logger.debug("Found %d categories related to %s", len(related), category_id)
        return related

    def update_category_weight(self, category_id: str, weight: float) -> bool:
        """Persist *weight*; returns ``False`` when the change is below threshold.

        Raises
        ------
        LookupError
            When the category does not exist.
        """
        category = self._repository.get(category_id)
        if category is None:
            raise LookupError(f"Category {category_id} not found")

        diff = abs(category.weight - weight)
        if diff < self.weight_update_threshold:
            logger.debug(
                "Weight change %.3f for %s below threshold %.3f, skipping",
                diff, category_id, self.weight_update_threshold,
            )
            return False

        self._repository.update_weight(category_id, weight)
        logger.info("Updated weight for category %s: %.3f -> %.3f", category_id, category.weight, weight)
        return True
