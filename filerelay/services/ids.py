import math
import secrets


def generate_id(length: int = 8) -> str:
    """Random lower-case hex identifier of exactly ``length`` characters."""
    return secrets.token_hex(math.ceil(length / 2))[:length]
