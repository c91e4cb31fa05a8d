"""Transport factory for creating configured transports.

This module abstracts transport construction from the API layer.
"""

from .config import CloudantConfig
from .transport import CloudantTransport


def create_transport(config: CloudantConfig | None = None) -> CloudantTransport:
    """Create a transport for the given configuration.

    Args:
        config: Cloudant configuration. If None, loads from environment.

    Returns:
        Configured transport implementing the CloudantTransport protocol.

    Raises:
        ValueError: If credentials are missing for the selected
            authentication scheme.

    Example:
        # Auto-detect based on environment
        transport = create_transport()

        # Explicit configuration
        config = CloudantConfig(url="https://host.example", apikey="...")
        transport = create_transport(config)
    """
    config = config or CloudantConfig()
    config.validate_config()

    from .http import HTTPTransport

    return HTTPTransport(config)
