"""Response envelope returned by every operation."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class DetailedResponse:
    """Result of one operation call.

    Attributes:
        result: Parsed JSON body; None for HEAD requests; the open
            httpx.Response for streaming operations (iterate with
            ``iter_bytes()`` and close it when done)
        status: HTTP status code
        status_text: HTTP reason phrase
        headers: Response headers
    """

    result: Any
    status: int
    status_text: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
