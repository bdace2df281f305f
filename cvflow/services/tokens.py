import secrets

TOKEN_BYTES = 16


def issue_token() -> str:
    """32 hex chars of fresh randomness; no link to the candidate id."""
    return secrets.token_hex(TOKEN_BYTES)
