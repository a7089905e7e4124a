import hashlib


def sha384(content: str) -> bytes:
    """Raw SHA-384 digest of the content, used as a migration checksum."""
    return hashlib.sha384(content.encode()).digest()
