"""
Incident classifier for captured photos
Assigns one of the known incident categories to an image
"""

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from src.core.config import settings
from src.core.constants import (
    INCIDENT_CATEGORIES,
    CATEGORY_LABELS,
    DEFAULT_CATEGORY_ID,
    SIMULATED_CONFIDENCE_RANGE,
)
from src.crowdsource.capture import ImageHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IncidentCategory:
    """Incident category from the closed category set."""
    id: str
    label: str


@dataclass(frozen=True)
class CategoryResult:
    """Category assigned to a photo with its confidence (0-1)."""
    id: str
    label: str
    confidence: float

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "confidence": round(self.confidence, 4),
        }


CATEGORIES: List[IncidentCategory] = [
    IncidentCategory(id=category_id, label=label)
    for category_id, label in INCIDENT_CATEGORIES
]


def get_category(category_id: str) -> IncidentCategory:
    """Look up a category by id. Raises KeyError for unknown ids."""
    return IncidentCategory(id=category_id, label=CATEGORY_LABELS[category_id])


def default_category(confidence: float = 0.0) -> CategoryResult:
    """Category reported when the pipeline could not finish normally."""
    category = get_category(DEFAULT_CATEGORY_ID)
    return CategoryResult(id=category.id, label=category.label, confidence=confidence)


class Classifier(ABC):
    """Pluggable image classification strategy."""

    @abstractmethod
    async def classify(self, image: ImageHandle) -> CategoryResult:
        """Classify a captured image."""


class SimulatedClassifier(Classifier):
    """
    Stand-in for a real model.

    Waits for a fixed latency (so the caller gets a visible "analyzing"
    interval), then picks a random category with a confidence between
    0.85 and 0.95. The image is accepted but not inspected.
    """

    def __init__(
        self,
        latency_seconds: Optional[float] = None,
        rng: Optional[random.Random] = None,
        categories: Optional[List[IncidentCategory]] = None
    ):
        """
        Initialize simulated classifier.

        Args:
            latency_seconds: Simulated analysis time
            rng: Random source, seeded in tests
            categories: Category set to draw from
        """
        if latency_seconds is None:
            latency_seconds = settings.analysis_delay_seconds
        self.latency_seconds = latency_seconds
        self.rng = rng or random.Random()
        self.categories = CATEGORIES if categories is None else categories

        if not self.categories:
            raise ValueError("categories must not be empty")

    async def classify(self, image: ImageHandle) -> CategoryResult:
        await asyncio.sleep(self.latency_seconds)

        category = self.rng.choice(self.categories)
        low, high = SIMULATED_CONFIDENCE_RANGE
        confidence = self.rng.uniform(low, high)

        logger.info(f"Image {image.ref} classified as {category.id} ({confidence:.2f})")

        return CategoryResult(id=category.id, label=category.label, confidence=confidence)
