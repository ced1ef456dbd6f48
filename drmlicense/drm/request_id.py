import secrets

REQUEST_ID_SIZE = 16


def generate_request_id() -> str:
    """
    Create a random request id for server-side log correlation.

    16 random bytes as 32 lowercase hex characters, fresh on every call.
    """
    return secrets.token_bytes(REQUEST_ID_SIZE).hex()
