"""HTTP API: health endpoints and the versioned router."""


def get_api_router():
    """Import the root router lazily; it pulls in every service module."""
    from stockroom.api.router import api_router

    return api_router


__all__ = ["get_api_router"]
