import os
import shutil
import subprocess

from pathlib import Path
from typing import Optional

from homesnap.log import logger
from homesnap.options import Configuration
from homesnap.restore.mode import RestoreMode
from homesnap.utils import ask_value, ask_yes_no, choose_option


class ConfigProvider:
    """
    Source of every value that has to come from the user.

    The backup and restore code only talks to this interface and never prompts itself.
    """

    def configuration(self, defaults: Configuration) -> Configuration:
        raise NotImplementedError

    def include_exclusion(self, path: str) -> bool:
        raise NotImplementedError

    def select_snapshot(self, snapshots: list) -> Optional[Path]:
        raise NotImplementedError

    def restore_mode(self) -> RestoreMode:
        raise NotImplementedError


class InteractiveProvider(ConfigProvider):
    """Asks on the terminal. Snapshots are picked with a fuzzy selector such as fzf if installed."""

    def __init__(self, selector: str = "fzf"):
        self.selector = selector

    def configuration(self, defaults: Configuration) -> Configuration:
        print("\nhomesnap setup")
        output_dir = ask_value("Directory to store snapshots in", defaults.output_dir)
        restore_dir = ask_value("Directory for extracted snapshots", defaults.restore_dir)
        return Configuration(
            output_dir=os.path.expanduser(output_dir),
            restore_dir=os.path.expanduser(restore_dir),
            date_format=defaults.date_format,
        )

    def include_exclusion(self, path: str) -> bool:
        return ask_yes_no(f"Exclude {path} from snapshots? [Y/n]: ", default=True)

    def select_snapshot(self, snapshots: list) -> Optional[Path]:
        by_name = {p.name: p for p in snapshots}
        names = list(by_name)

        if shutil.which(self.selector) is None:
            logger.debug(f"{self.selector} not found, falling back to a numbered prompt.")
            name = choose_option("Select the snapshot to restore:", names)
            return by_name.get(name) if name else None

        result = subprocess.run(
            [self.selector, "--prompt", "Snapshot> "],
            input="\n".join(reversed(names)),
            stdout=subprocess.PIPE,
            text=True,
        )
        # fzf exits with 1 (no match) or 130 (aborted) without a selection
        if result.returncode != 0:
            return None

        name = result.stdout.strip()
        return by_name.get(name)

    def restore_mode(self) -> RestoreMode:
        answer = ask_value("Restore into your home directory or extract to the restore directory? (restore/extract)",
                           RestoreMode.RESTORE.value)
        while answer not in {mode.value for mode in RestoreMode}:
            print("Please answer 'restore' or 'extract'.")
            answer = ask_value("Mode", RestoreMode.RESTORE.value)
        return RestoreMode(answer)
