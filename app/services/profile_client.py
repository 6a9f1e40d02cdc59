# app/services/profile_client.py
"""
Client for the profile store in user-and-org-service.

Contact info is read once, when a booking is requested, and snapshotted
onto the booking. Failures degrade to an empty snapshot.
"""
import logging
from typing import Optional

import httpx

from app.core.config import settings
from app.schemas.booking import ContactInfo

logger = logging.getLogger(__name__)


class ProfileServiceClient:
    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or settings.USER_SERVICE_URL).rstrip("/")
        self.api_key = settings.INTERNAL_API_KEY
        self.timeout = timeout or settings.EXTERNAL_SERVICE_TIMEOUT

    def get_contact_info(self, user_id: str) -> ContactInfo:
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(
                    f"{self.base_url}/internal/users/{user_id}/contact-info",
                    headers={"x-api-key": self.api_key},
                )
        except httpx.TimeoutException:
            logger.error(f"Timeout fetching contact info for {user_id}")
            return ContactInfo()
        except httpx.RequestError as e:
            logger.error(f"Error fetching contact info for {user_id}: {e}")
            return ContactInfo()

        if response.status_code == 200:
            return ContactInfo.model_validate(response.json())
        if response.status_code == 404:
            logger.warning(f"User {user_id} not found in profile store")
        else:
            logger.error(
                f"Failed to fetch contact info for {user_id}: HTTP {response.status_code}"
            )
        return ContactInfo()


def get_profile_client() -> ProfileServiceClient:
    """FastAPI dependency."""
    return ProfileServiceClient()
