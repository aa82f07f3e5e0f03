import os
import secrets
import stat
import string

from pathlib import Path
from homesnap.errors import KeyFileError
from homesnap.globals import Globals
from homesnap.log import logger

KEY_ALPHABET = string.ascii_letters + string.digits


def generate_key(length: int = Globals.KEY_LENGTH) -> str:
    return "".join(secrets.choice(KEY_ALPHABET) for _ in range(length))


class KeyStore:
    """
    Owns the symmetric passphrase used to encrypt snapshots.

    The key only ever leaves this class as a file path, which gpg reads via
    `--passphrase-file`. Its value is never logged or put on a command line.
    """

    def __init__(self, key_path: Path):
        self.key_path = Path(key_path)

    def exists(self) -> bool:
        return self.key_path.exists()

    def ensure_key(self) -> Path:
        """
        Creates the key file on first use, otherwise validates the existing one.

        Returns:
            Path: Path to the key file.

        Raises:
            KeyFileError: If an existing key file is not usable. It is never regenerated,
                          because a new key would orphan every snapshot encrypted with the old one.
        """
        if not self.exists():
            self._create()
            return self.key_path

        self._validate()
        return self.key_path

    def require_key(self) -> Path:
        """Returns the path of an existing, usable key file (used for restores)."""
        if not self.exists():
            raise KeyFileError(f"Key file {self.key_path} does not exist. Snapshots cannot be decrypted without it.")
        self._validate()
        return self.key_path

    def _create(self):
        self.key_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

        # O_EXCL: never clobber a key that appeared in the meantime
        fd = os.open(self.key_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write(generate_key())

        logger.info(f"Generated new encryption key at {self.key_path}")

    def _validate(self):
        if not self.key_path.is_file():
            raise KeyFileError(f"Key path {self.key_path} is not a regular file.")

        if not os.access(self.key_path, os.R_OK | os.W_OK):
            raise KeyFileError(f"Key file {self.key_path} must be readable and writable by its owner.")

        mode = stat.S_IMODE(self.key_path.stat().st_mode)
        if mode & 0o077:
            raise KeyFileError(
                f"Key file {self.key_path} has permissions {oct(mode)}; "
                f"only the owner may access it (expected 0o600). Fix the permissions manually."
            )

        logger.debug(f"Key file {self.key_path} is accessible.")
