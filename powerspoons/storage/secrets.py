"""
Secret storage.

A single JSON document mapping secret key -> string. Values are opaque to the
manager; packages read and write them through the ManagerAPI.
"""

from pathlib import Path

from powerspoons.storage.documents import read_document, write_document


def mask_secret(value: str | None) -> str:
    """
    Render a secret for display without revealing it.

    Args:
        value: Secret value (None or "" when unset)

    Returns:
        "[Not set]", "[••••]" for short values, or the last four characters
    """
    if not value:
        return "[Not set]"
    if len(value) <= 4:
        return "[••••]"
    return f"[••••{value[-4:]}]"


class SecretStore:
    """File-backed secret map. Every call goes to disk."""

    def __init__(self, path: Path):
        self.path = path

    def all(self) -> dict[str, str]:
        return {
            key: value
            for key, value in read_document(self.path, {}).items()
            if isinstance(value, str)
        }

    def get(self, key: str) -> str | None:
        return self.all().get(key)

    def set(self, key: str, value: str | None) -> None:
        """
        Set or clear a secret.

        Args:
            key: Secret key
            value: New value; None or "" removes the key

        Raises:
            StorageError: If the document cannot be written
        """
        secrets = self.all()
        if value is None or value == "":
            secrets.pop(key, None)
        else:
            secrets[key] = value
        write_document(self.path, secrets)

    def replace(self, secrets: dict[str, str]) -> None:
        write_document(self.path, dict(secrets))
