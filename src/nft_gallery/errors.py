"""Exception types raised by the aggregation layer"""

from typing import Optional


class NFTGalleryError(Exception):
    """Base class for all NFT Gallery errors"""


class InvalidArgumentError(NFTGalleryError, ValueError):
    """Caller passed a structurally invalid request (e.g. a missing identifier)"""


class UpstreamError(NFTGalleryError):
    """The indexing API failed: transport error, non-success status or bad body"""

    def __init__(self, message: str, endpoint: str = "", status: Optional[int] = None):
        super().__init__(message)
        self.endpoint = endpoint
        self.status = status


class NormalizationError(NFTGalleryError):
    """A raw upstream record is missing fields the item model cannot do without"""


def require(**arguments: Optional[str]) -> None:
    """Raise InvalidArgumentError naming every empty argument"""
    missing = [name for name, value in arguments.items() if not value or not str(value).strip()]
    if missing:
        raise InvalidArgumentError(f"Missing required argument(s): {', '.join(missing)}")
