"""
DataBridge Pro REST client.
"""

from databridge.client.brain import (
    BrainClient,
    BrainError,
    BrainConnectionError,
    BrainAPIError,
    BrainResponseError,
    GENERIC_CONNECTION_MESSAGE,
)

__all__ = [
    "BrainClient",
    "BrainError",
    "BrainConnectionError",
    "BrainAPIError",
    "BrainResponseError",
    "GENERIC_CONNECTION_MESSAGE",
]
