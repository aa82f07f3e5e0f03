from pathlib import Path
from unittest.mock import MagicMock

import pytest

from homesnap.errors import KeyFileError
from homesnap.restore.mode import RestoreMode
from homesnap.restore.selector import RestoreSelector, archive_root_depth
from homesnap.security.keystore import KeyStore
from conftest import FakeProvider

SNAPSHOT = "2024.01.01_alice_box1_001.tar.zst.gpg"
KEY_STORE = MagicMock(require_key=MagicMock(return_value=Path("/key")))


def make_selector(config, provider, home="/home/alice"):
    pipeline = MagicMock()
    pipeline.restore.side_effect = lambda source, key, target, strip: target
    return RestoreSelector(config, provider, pipeline, Path(home)), pipeline


def test_archive_root_depth():
    assert archive_root_depth(Path("/home/alice")) == 2
    assert archive_root_depth(Path("/root")) == 1
    assert archive_root_depth(Path("/")) == 0


def test_no_snapshots_is_a_no_op(config):
    provider = FakeProvider()
    selector, pipeline = make_selector(config, provider)

    assert selector.run(KEY_STORE) is None
    assert provider.asked == []
    pipeline.restore.assert_not_called()


def test_no_selection_is_a_no_op(config):
    (config.output_path / SNAPSHOT).touch()
    provider = FakeProvider(selection=None)
    selector, pipeline = make_selector(config, provider)

    assert selector.run(KEY_STORE) is None
    assert provider.asked == ["snapshot"]
    pipeline.restore.assert_not_called()


def test_restore_in_place_strips_home_depth(config, tmp_path):
    snapshot = config.output_path / SNAPSHOT
    snapshot.touch()
    home = tmp_path / "home" / "alice"
    provider = FakeProvider(selection=lambda snapshots: snapshots[0], mode=RestoreMode.RESTORE)
    selector, pipeline = make_selector(config, provider, home)

    assert selector.run(KEY_STORE) == home
    pipeline.restore.assert_called_once_with(snapshot, Path("/key"), home, len(home.parts) - 1)


def test_extract_uses_fresh_staging_directory(config):
    snapshot = config.output_path / SNAPSHOT
    snapshot.touch()
    staging = config.restore_path / "2024.01.01_alice_box1_001"
    staging.mkdir(parents=True)
    (staging / "stale.txt").write_text("from an earlier extraction")
    provider = FakeProvider(selection=lambda snapshots: snapshots[0], mode=RestoreMode.EXTRACT)
    selector, pipeline = make_selector(config, provider)

    assert selector.run(KEY_STORE) == staging
    pipeline.restore.assert_called_once_with(snapshot, Path("/key"), staging, 0)
    assert staging.is_dir()
    assert list(staging.iterdir()) == []


def test_candidates_are_listed_from_output_dir(config):
    for name in (SNAPSHOT, "2024.01.02_alice_box1_001.tar.zst.gpg", "readme.md"):
        (config.output_path / name).touch()
    selector, _ = make_selector(config, FakeProvider())
    assert [p.name for p in selector.candidates()] == [SNAPSHOT, "2024.01.02_alice_box1_001.tar.zst.gpg"]


def test_target_for_extract_stays_inside_restore_dir(config):
    selector, _ = make_selector(config, FakeProvider())
    target, strip = selector.target_for(config.output_path / SNAPSHOT, RestoreMode.EXTRACT)
    assert target.parent == config.restore_path
    assert strip == 0


def test_missing_key_without_snapshots_is_a_no_op(config, tmp_path):
    selector, pipeline = make_selector(config, FakeProvider())
    assert selector.run(KeyStore(tmp_path / "missing" / "key")) is None
    pipeline.restore.assert_not_called()


def test_missing_key_fails_once_a_snapshot_is_selected(config, tmp_path):
    (config.output_path / SNAPSHOT).touch()
    provider = FakeProvider(selection=lambda snapshots: snapshots[0])
    selector, pipeline = make_selector(config, provider)

    with pytest.raises(KeyFileError):
        selector.run(KeyStore(tmp_path / "missing" / "key"))
    assert provider.asked == ["snapshot"]
    pipeline.restore.assert_not_called()
