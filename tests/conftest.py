import pytest

from homesnap.options import Configuration
from homesnap.provider import ConfigProvider
from homesnap.restore.mode import RestoreMode


class FakeProvider(ConfigProvider):
    """Answers every question from preset values and records what was asked."""

    def __init__(self, config=None, accept=(), selection=None, mode=RestoreMode.RESTORE):
        self.config = config
        self.accept = set(accept)
        self.selection = selection
        self.mode = mode
        self.asked = []

    def configuration(self, defaults):
        self.asked.append("configuration")
        if self.config is None:
            raise AssertionError("configuration prompt was not expected")
        return self.config

    def include_exclusion(self, path):
        self.asked.append(path)
        return path in self.accept

    def select_snapshot(self, snapshots):
        self.asked.append("snapshot")
        return self.selection(snapshots) if callable(self.selection) else self.selection

    def restore_mode(self):
        self.asked.append("mode")
        return self.mode


@pytest.fixture
def config(tmp_path):
    output_dir = tmp_path / "backups"
    output_dir.mkdir()
    return Configuration(output_dir=str(output_dir), restore_dir=str(tmp_path / "restore"))
