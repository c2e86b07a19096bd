"""Services package."""

from backend.app.services.errors import NetworkMappingError, NetworkMappingValidationError
from backend.app.services.network_mapping_service import NetworkMappingService
from backend.app.services.network_repository import NetworkMappingRepository

__all__ = [
    "NetworkMappingError",
    "NetworkMappingValidationError",
    "NetworkMappingService",
    "NetworkMappingRepository",
]
