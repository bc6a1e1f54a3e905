from tankalert.providers.base import BaseProvider
from tankalert.providers.gasbot_api import GasbotApiProvider, GasbotApiError, GasbotAuthError

# Registry of available providers
PROVIDER_REGISTRY = {
    "gasbot_api": GasbotApiProvider,
}


def get_provider(provider_type: str, **kwargs) -> BaseProvider:
    """Factory function to get the appropriate provider."""
    if provider_type not in PROVIDER_REGISTRY:
        raise ValueError(f"Unknown provider type: {provider_type}")

    return PROVIDER_REGISTRY[provider_type](**kwargs)


__all__ = ["BaseProvider", "GasbotApiProvider", "GasbotApiError", "GasbotAuthError", "get_provider", "PROVIDER_REGISTRY"]
