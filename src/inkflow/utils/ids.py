"""Block identifier generation for inkflow."""

import uuid


def generate_block_id() -> str:
    """
    Generate a fresh random block identifier (UUID v4).

    Returns:
        UUID string in standard format

    Example:
        >>> generate_block_id()
        "f47ac10b-58cc-4372-a567-0e02b2c3d479"
    """
    return str(uuid.uuid4())
