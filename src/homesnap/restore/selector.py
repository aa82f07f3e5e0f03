import shutil

from pathlib import Path
from typing import Optional

from homesnap.backup.naming import list_snapshots, strip_ending
from homesnap.backup.pipeline import ArchivePipeline
from homesnap.log import logger
from homesnap.options import Configuration
from homesnap.restore.mode import RestoreMode


def archive_root_depth(home: Path) -> int:
    """
    Number of leading path components to strip so archived members land in `home`.

    Snapshots store their members relative to `/`, e.g. `home/alice/.bashrc` for a
    home directory at `/home/alice`, which gives a depth of 2.
    """
    return len(Path(home).parts) - 1


class RestoreSelector:
    """Lets the user pick a snapshot and a restore mode, then runs the reverse pipeline."""

    def __init__(self, config: Configuration, provider, pipeline: ArchivePipeline, home: Path):
        self.config = config
        self.provider = provider
        self.pipeline = pipeline
        self.home = Path(home)

    def candidates(self) -> list:
        return list_snapshots(self.config.output_path)

    def target_for(self, snapshot: Path, mode: RestoreMode) -> tuple:
        """
        Returns (target directory, number of path components to strip) for `mode`.

        `restore` re-anchors the snapshot under the home directory, `extract` keeps the
        absolute layout inside a staging directory named after the snapshot.
        """
        if mode is RestoreMode.RESTORE:
            return self.home, archive_root_depth(self.home)
        return self.config.restore_path / strip_ending(snapshot), 0

    def prepare_target(self, target: Path, mode: RestoreMode):
        if mode is RestoreMode.EXTRACT:
            if target.exists():
                logger.info(f"Removing previous extraction at {target}")
                shutil.rmtree(target)
            target.mkdir(parents=True)
        else:
            target.mkdir(parents=True, exist_ok=True)

    def run(self, key_store) -> Optional[Path]:
        """
        Asks for a snapshot and a mode and restores it.

        The key is only required once a snapshot was selected.

        Returns:
            Path | None: The directory the snapshot was restored into, or None if
                         nothing was selected (not an error).
        """
        snapshots = self.candidates()
        if not snapshots:
            logger.info(f"No snapshots found in {self.config.output_path}. Nothing to restore.")
            return None

        snapshot = self.provider.select_snapshot(snapshots)
        if snapshot is None:
            logger.info("No snapshot selected. Nothing to restore.")
            return None

        key_path = key_store.require_key()
        mode = self.provider.restore_mode()
        target, strip_components = self.target_for(snapshot, mode)
        logger.debug(f"Mode: {mode.value}, target: {target}, strip: {strip_components}")

        self.prepare_target(target, mode)
        return self.pipeline.restore(snapshot, key_path, target, strip_components)
