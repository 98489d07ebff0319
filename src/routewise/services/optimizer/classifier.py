"""Indoor/outdoor classification of points of interest.

Classification is an ordered chain: each classifier either returns a result
or ``None`` to pass the decision on. The remote endpoint goes first and the
local heuristics last; the heuristics always answer, so ``classify`` never
raises.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence

import httpx

from ...config import settings
from ...errors import OperationCancelled
from ...models.domain import LocationClassification
from .cancellation import CancellationToken

logger = logging.getLogger(__name__)

INDOOR_TYPES = frozenset(
    {"museum", "shopping_mall", "mall", "restaurant", "movie_theater", "theater", "spa", "gym", "store"}
)
OUTDOOR_TYPES = frozenset({"park", "zoo", "beach", "hiking_area", "viewpoint", "garden", "natural_feature"})
OUTDOOR_KEYWORDS = ("outdoor", "hiking", "trail", "beach", "park", "garden", "mountain")
INDOOR_KEYWORDS = ("mall", "museum", "cinema", "theater", "indoor", "gallery")

TYPE_CONFIDENCE = 0.9
KEYWORD_CONFIDENCE = 0.7
DEFAULT_CONFIDENCE = 0.5


class Classifier(ABC):
    """Contract for one tier of the classification chain."""

    @abstractmethod
    def classify(
        self,
        place_id: str,
        name: str,
        types: Sequence[str],
        token: CancellationToken | None = None,
    ) -> Optional[LocationClassification]:
        raise NotImplementedError


class HeuristicClassifier(Classifier):
    """Type tags first, then name keywords, then an indoor default."""

    def classify(
        self,
        place_id: str,
        name: str,
        types: Sequence[str],
        token: CancellationToken | None = None,
    ) -> LocationClassification:
        type_tuple = tuple(types or ())
        type_set = set(type_tuple)

        if type_set & INDOOR_TYPES:
            return LocationClassification(is_outdoor=False, confidence=TYPE_CONFIDENCE, types=type_tuple)
        if type_set & OUTDOOR_TYPES:
            return LocationClassification(is_outdoor=True, confidence=TYPE_CONFIDENCE, types=type_tuple)

        name_lower = (name or "").lower()
        if any(keyword in name_lower for keyword in OUTDOOR_KEYWORDS):
            return LocationClassification(is_outdoor=True, confidence=KEYWORD_CONFIDENCE, types=type_tuple)
        if any(keyword in name_lower for keyword in INDOOR_KEYWORDS):
            return LocationClassification(is_outdoor=False, confidence=KEYWORD_CONFIDENCE, types=type_tuple)

        return LocationClassification(is_outdoor=False, confidence=DEFAULT_CONFIDENCE, types=type_tuple)


class RemoteClassifier(Classifier):
    """POSTs ``{placeId, name, types}`` to the classification endpoint."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.url = url if url is not None else settings.classifier_url
        self.timeout = timeout if timeout is not None else settings.classifier_timeout_seconds
        self._transport = transport

    def classify(
        self,
        place_id: str,
        name: str,
        types: Sequence[str],
        token: CancellationToken | None = None,
    ) -> Optional[LocationClassification]:
        if not self.url:
            return None
        timeout = token.timeout(self.timeout) if token else self.timeout
        payload = {"placeId": place_id, "name": name, "types": list(types or ())}
        try:
            with httpx.Client(timeout=httpx.Timeout(timeout), transport=self._transport) as client:
                response = client.post(self.url, json=payload)
                response.raise_for_status()
                return _parse_classification(response.json(), types)
        except (httpx.HTTPError, ValueError, TypeError, KeyError) as exc:
            logger.info(f"Remote classification failed for '{name}' ({place_id}), using heuristics: {exc}")
            return None


def _parse_classification(data: object, types: Sequence[str]) -> LocationClassification:
    if not isinstance(data, dict):
        raise ValueError("Classification response is not a JSON object.")
    is_outdoor = data["isOutdoor"]
    confidence = float(data["confidence"])
    if not isinstance(is_outdoor, bool):
        raise ValueError("isOutdoor must be a boolean.")
    if not 0.0 <= confidence <= 1.0:
        raise ValueError(f"confidence {confidence} outside [0, 1].")
    returned_types = data.get("types")
    if not isinstance(returned_types, list):
        returned_types = list(types or ())
    return LocationClassification(
        is_outdoor=is_outdoor,
        confidence=confidence,
        types=tuple(str(item) for item in returned_types),
    )


class LocationClassifier:
    """Tries each classifier in order until one produces a result."""

    def __init__(self, classifiers: Sequence[Classifier] | None = None) -> None:
        chain = list(classifiers) if classifiers is not None else [RemoteClassifier()]
        if not any(isinstance(item, HeuristicClassifier) for item in chain):
            chain.append(HeuristicClassifier())
        self.classifiers = tuple(chain)

    def classify(
        self,
        place_id: str,
        name: str,
        types: Sequence[str],
        token: CancellationToken | None = None,
    ) -> LocationClassification:
        for classifier in self.classifiers:
            try:
                result = classifier.classify(place_id, name, types, token=token)
            except OperationCancelled:
                break
            except Exception as exc:
                logger.warning(f"{type(classifier).__name__} raised for '{name}': {exc}")
                continue
            if result is not None:
                return result
        return HeuristicClassifier().classify(place_id, name, types)
