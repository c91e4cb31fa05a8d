"""Headers identifying this SDK on every request."""

import platform

SDK_NAME = "cloudant-tools"
SERVICE_NAME = "cloudant"
SERVICE_VERSION = "v1"


def _sdk_version() -> str:
    from .. import __version__

    return __version__


def get_sdk_headers(
    operation_id: str,
    service_name: str = SERVICE_NAME,
    service_version: str = SERVICE_VERSION,
) -> dict[str, str]:
    """Get the request headers to be sent in requests by the SDK.

    Args:
        operation_id: camelCase operation identifier, e.g. "getDocument"
        service_name: Service name reported for analytics
        service_version: Service API version

    Returns:
        User-Agent and X-IBMCloud-SDK-Analytics headers
    """
    user_agent = (
        f"{SDK_NAME}/{_sdk_version()} "
        f"(lang=Python; python.version={platform.python_version()}; "
        f"os.name={platform.system()}; os.version={platform.release()}; "
        f"os.arch={platform.machine()};)"
    )
    return {
        "User-Agent": user_agent,
        "X-IBMCloud-SDK-Analytics": (
            f"service_name={service_name};service_version={service_version};"
            f"operation_id={operation_id}"
        ),
    }
