from abc import ABC, abstractmethod
from typing import List, Dict, Any


class BaseProvider(ABC):
    """Base class for telemetry sources that are polled rather than pushed."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    @abstractmethod
    async def fetch_payloads(self) -> List[Dict[str, Any]]:
        """
        Fetch the latest device state from the upstream platform.

        Returns:
            Payload dictionaries in the same shape the webhook receives, ready
            for the ingestion pipeline
        """
        pass

    @classmethod
    @abstractmethod
    def get_provider_type(cls) -> str:
        """Return the unique identifier for this provider type."""
        pass

    @classmethod
    def get_description(cls) -> str:
        """Return a human-readable description of this provider."""
        return "No description available"
