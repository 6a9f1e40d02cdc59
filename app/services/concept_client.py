# app/services/concept_client.py
"""
Client for the concept store. A concept is an offer template published by
an artist; its values seed a new booking by copy.
"""
import logging
from typing import Optional

import httpx

from app.core.config import settings
from app.schemas.booking import ConceptSeed

logger = logging.getLogger(__name__)


class ConceptServiceClient:
    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or settings.CONCEPT_SERVICE_URL).rstrip("/")
        self.api_key = settings.INTERNAL_API_KEY
        self.timeout = timeout or settings.EXTERNAL_SERVICE_TIMEOUT

    def get_concept(self, concept_id: str) -> Optional[ConceptSeed]:
        """Return the concept's seed values, or None if it does not exist."""
        with httpx.Client(timeout=self.timeout) as client:
            response = client.get(
                f"{self.base_url}/internal/concepts/{concept_id}",
                headers={"x-api-key": self.api_key},
            )

        if response.status_code == 404:
            logger.warning(f"Concept {concept_id} not found")
            return None
        response.raise_for_status()

        data = response.json()
        return ConceptSeed(
            title=data.get("title"),
            description=data.get("description"),
            price=data.get("price"),
            expected_audience=data.get("expectedAudience"),
            tech_spec_ref=data.get("techSpecRef"),
            hospitality_rider_ref=data.get("hospitalityRiderRef"),
        )


def get_concept_client() -> ConceptServiceClient:
    """FastAPI dependency."""
    return ConceptServiceClient()
