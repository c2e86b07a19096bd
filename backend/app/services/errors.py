"""Domain errors raised by the network mapping engine."""


class NetworkMappingError(Exception):
    """Base class for network mapping failures."""
    pass


class NetworkMappingValidationError(NetworkMappingError, ValueError):
    """Request rejected before any computation started."""
    pass
