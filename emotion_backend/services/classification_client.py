# emotion_backend/services/classification_client.py
import asyncio
import logging
import mimetypes
import os
from typing import Any, Dict, List, Optional

import aiofiles
import httpx

from emotion_backend.config.external import ClassifierConfig
from emotion_backend.models.emotion import ClassificationResult, dominant_emotion

logger = logging.getLogger(__name__)


class EmotionClassificationClient:
    """Client for the external emotion classification service.

    Classification never raises: transport errors, timeouts, non-2xx responses
    and unreadable images all degrade to ``ClassificationResult.fallback``.
    """

    def __init__(self, config: ClassifierConfig, http_client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.service_url = config.service_url.rstrip("/")
        self.timeout = config.timeout
        self.reliability_threshold = config.reliability_threshold
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def classify(self, image_location: str) -> ClassificationResult:
        """Classify the emotion on a single still image"""
        try:
            logger.info(f"Analyzing emotion for image: {image_location}")

            async with aiofiles.open(image_location, "rb") as f:
                image_bytes = await f.read()

            content_type = mimetypes.guess_type(image_location)[0] or "application/octet-stream"
            files = {"image": (os.path.basename(image_location), image_bytes, content_type)}

            response = await self.client.post(
                f"{self.service_url}/api/analyze",
                files=files,
                timeout=self.timeout,
            )
            response.raise_for_status()

            result = self._parse_result(response.json())
            logger.info(f"Emotion analysis completed: {result.dominant_emotion} ({result.confidence})")
            return result

        except Exception as e:
            error = str(e) or type(e).__name__
            logger.error(f"ML Service error for {image_location}: {error}")
            return ClassificationResult.fallback(error)

    async def classify_batch(self, image_locations: List[str]) -> List[ClassificationResult]:
        """Classify several images concurrently, results in input order"""
        logger.info(f"Batch analyzing {len(image_locations)} images")
        return list(await asyncio.gather(*(self.classify(location) for location in image_locations)))

    def is_reliable(self, confidence: Optional[float]) -> bool:
        """True iff the confidence strictly exceeds the reliability threshold"""
        if confidence is None:
            return False
        return confidence > self.reliability_threshold

    @staticmethod
    def normalize_label(label: str) -> str:
        """Canonical display form of a category label: happy -> Happy"""
        if not label:
            return label
        cleaned = label.strip()
        return cleaned[:1].upper() + cleaned[1:].lower()

    async def health_check(self) -> bool:
        """Check that the ML service is reachable"""
        try:
            response = await self.client.get(
                f"{self.service_url}/health",
                timeout=self.config.health_timeout,
            )
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error(f"ML Service is not available: {e}")
            return False

    async def get_model_info(self) -> Optional[Dict[str, Any]]:
        """Model metadata reported by the ML service, None when unavailable"""
        try:
            response = await self.client.get(f"{self.service_url}/api/model/info")
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to get model info: {e}")
            return None

    def _parse_result(self, payload: Dict[str, Any]) -> ClassificationResult:
        if not isinstance(payload, dict):
            raise ValueError(f"Unexpected classifier response: {payload!r}")

        emotions = {str(k): float(v) for k, v in (payload.get("emotions") or {}).items()}
        dominant = payload.get("dominant_emotion") or dominant_emotion(emotions)

        return ClassificationResult(
            emotions=emotions,
            dominant_emotion=dominant,
            confidence=float(payload.get("confidence") or 0.0),
            face_detected=bool(payload.get("face_detected", False)),
        )
