import os
import stat

import pytest

from homesnap.errors import KeyFileError
from homesnap.security.keystore import KEY_ALPHABET, KeyStore, generate_key


def mode_of(path):
    return stat.S_IMODE(path.stat().st_mode)


def test_generate_key_is_alphanumeric():
    key = generate_key()
    assert len(key) == 32
    assert set(key) <= set(KEY_ALPHABET)
    assert generate_key() != key


def test_ensure_key_creates_owner_only_file(tmp_path):
    key_path = tmp_path / "config" / "key"
    assert KeyStore(key_path).ensure_key() == key_path

    assert mode_of(key_path) == 0o600
    assert mode_of(key_path.parent) == 0o700
    key = key_path.read_text()
    assert len(key) == 32 and key.isalnum()


def test_existing_key_is_never_regenerated(tmp_path):
    key_path = tmp_path / "key"
    store = KeyStore(key_path)
    store.ensure_key()
    first = key_path.read_text()

    store.ensure_key()
    KeyStore(key_path).ensure_key()
    assert key_path.read_text() == first


def test_group_readable_key_is_fatal(tmp_path):
    key_path = tmp_path / "key"
    key_path.write_text(generate_key())
    os.chmod(key_path, 0o640)

    with pytest.raises(KeyFileError):
        KeyStore(key_path).ensure_key()

    # The key is left untouched for the user to fix
    assert mode_of(key_path) == 0o640


@pytest.mark.skipif(os.geteuid() == 0, reason="root bypasses file permissions")
def test_read_only_key_is_fatal(tmp_path):
    key_path = tmp_path / "key"
    key_path.write_text(generate_key())
    os.chmod(key_path, 0o400)

    with pytest.raises(KeyFileError):
        KeyStore(key_path).ensure_key()


def test_require_key_fails_without_key(tmp_path):
    with pytest.raises(KeyFileError):
        KeyStore(tmp_path / "key").require_key()
    assert not (tmp_path / "key").exists()


def test_key_path_must_be_a_file(tmp_path):
    (tmp_path / "key").mkdir()
    with pytest.raises(KeyFileError):
        KeyStore(tmp_path / "key").ensure_key()
