"""
Job identifier generation.
"""

import re
import secrets

from enqueuer.constants import JID_BYTES, JID_LENGTH
from enqueuer.errors import JidGenerationError

_JID_PATTERN = re.compile(rf"[0-9a-f]{{{JID_LENGTH}}}")


def generate_jid() -> str:
    """
    Generate a job identifier.

    Returns:
        12 bytes from the system CSPRNG as 24 lowercase hex characters.

    Raises:
        JidGenerationError: If the randomness source is unavailable.
    """
    try:
        return secrets.token_hex(JID_BYTES)
    except (NotImplementedError, OSError) as e:
        raise JidGenerationError(f"randomness source unavailable: {e}") from e


def is_valid_jid(value: object) -> bool:
    """Check that a value has the shape of a generated job identifier."""
    return isinstance(value, str) and _JID_PATTERN.fullmatch(value) is not None
