"""
Utility Functions Module

Provides id and timestamp helpers for outward responses.
"""

import time
import uuid


def generate_response_id() -> str:
    """
    Generate a chat completion id

    Returns:
        str: Id of the form "chatcmpl-<32 hex chars>"

    Example:
        >>> generate_response_id()
        'chatcmpl-a1b2c3d4e5f67890abcdef1234567890'
    """
    return f"chatcmpl-{uuid.uuid4().hex}"


def unix_timestamp() -> int:
    """Current time as integer seconds since the epoch"""
    return int(time.time())
