from pathlib import Path


def encrypt_cmd(key_path: Path, out_file: Path, cipher: str = "AES256") -> list:
    """
    Assembles the gpg command that symmetrically encrypts stdin into `out_file`.

    The command runs in batch mode and overwrites a partial `out_file` left by an earlier run.
    The passphrase is read from `key_path` and never appears in the argument list.
    """
    return [
        "gpg", "--batch", "--yes", "--quiet",
        "--no-symkey-cache",
        "--pinentry-mode", "loopback",
        "--symmetric",
        "--cipher-algo", cipher,
        "--passphrase-file", str(key_path),
        "--output", str(out_file),
    ]
