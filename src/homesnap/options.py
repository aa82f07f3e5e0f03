import os
import shlex

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from homesnap.errors import ConfigurationError
from homesnap.globals import Globals
from homesnap.log import logger

# Maps attributes of `Configuration` to their names in the options file
OPTION_NAMES = {
    "output_dir": "BACKUP_DIR",
    "restore_dir": "RESTORE_DIR",
    "date_format": "DATE_FORMAT",
}


@dataclass(frozen=True)
class Configuration:
    """
    Resolved user configuration, passed explicitly to every component.

    Attributes:
        output_dir (str): Directory the snapshots are written to.
        restore_dir (str): Staging directory for restores in `extract` mode.
        date_format (str): strftime format of the date stamp in snapshot names.
    """
    output_dir: str
    restore_dir: str
    date_format: str = Globals.DEFAULT_DATE_FORMAT

    def is_valid(self) -> bool:
        return bool(self.output_dir) and bool(self.restore_dir) and bool(self.date_format)

    @property
    def output_path(self) -> Path:
        return Path(os.path.expanduser(self.output_dir))

    @property
    def restore_path(self) -> Path:
        return Path(os.path.expanduser(self.restore_dir))


def read_options(options_file: Path) -> Optional[Configuration]:
    """
    Reads shell-style `NAME='value'` assignments from the options file.

    Returns:
        Configuration | None: The configuration, or None if the file is missing,
                              cannot be parsed or lacks a required value.
    """
    if not options_file.is_file():
        logger.debug(f"Options file {options_file} does not exist.")
        return None

    values = {}
    try:
        with open(options_file) as f:
            for line in f:
                tokens = shlex.split(line, comments=True)
                if not tokens:
                    continue
                if len(tokens) != 1 or "=" not in tokens[0]:
                    logger.warning(f"Malformed line in {options_file}: {line.strip()}")
                    return None
                name, value = tokens[0].split("=", 1)
                values[name] = value
    except (OSError, UnicodeDecodeError, ValueError) as e:
        logger.warning(f"Failed to read options file {options_file}: {e}")
        return None

    config = Configuration(
        output_dir=values.get(OPTION_NAMES["output_dir"], ""),
        restore_dir=values.get(OPTION_NAMES["restore_dir"], ""),
        date_format=values.get(OPTION_NAMES["date_format"], Globals.DEFAULT_DATE_FORMAT),
    )

    if not config.is_valid():
        logger.warning(f"Options file {options_file} is incomplete.")
        return None

    return config


def _quote(value: str) -> str:
    # Embedded single quotes are closed, escaped and reopened
    return "'" + value.replace("'", "'\"'\"'") + "'"


def write_options(options_file: Path, config: Configuration):
    options_file.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    with open(options_file, "w") as f:
        for attribute, name in OPTION_NAMES.items():
            f.write(f"{name}={_quote(getattr(config, attribute))}\n")
    logger.debug(f"Options written to {options_file}")


def load_configuration(options_file: Path, provider) -> Configuration:
    """
    Loads the configuration, running the full setup through `provider` if needed.

    A missing or corrupt options file is never repaired partially: the user is asked
    for every value again and the file is rewritten from scratch.
    """
    config = read_options(options_file)
    if config is not None:
        logger.debug(f"Configuration loaded from {options_file}")
        return config

    logger.info("No valid configuration found, starting setup.")
    defaults = Configuration(
        output_dir=os.path.expanduser("~/backups"),
        restore_dir=os.path.expanduser("~/restore"),
    )

    config = provider.configuration(defaults)
    if not config.is_valid():
        raise ConfigurationError("Output and restore directories must not be empty.")

    write_options(options_file, config)
    for directory in (config.output_path, config.restore_path):
        directory.mkdir(mode=0o700, parents=True, exist_ok=True)
        logger.debug(f"Directory {directory} is ready.")
    return config
