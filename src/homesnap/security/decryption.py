from pathlib import Path


def decrypt_cmd(key_path: Path, ciphertext: Path) -> list:
    """Assembles the gpg command that decrypts `ciphertext` to stdout."""
    return [
        "gpg", "--batch", "--quiet",
        "--no-symkey-cache",
        "--pinentry-mode", "loopback",
        "--passphrase-file", str(key_path),
        "--decrypt", str(ciphertext),
    ]
