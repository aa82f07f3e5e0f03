import argparse
import yaml
import os

from dataclasses import dataclass, field
from pathlib import Path
from homesnap.errors import ConfigurationError
from homesnap.globals import Globals
from homesnap.log import logger


@dataclass(frozen=True)
class Settings:
	"""
	Tool settings for the external pipeline stages, read from `settings.yaml`.

	Attributes:
		compression_level (int): zstd compression level (1-19).
		compression_threads (int): zstd worker threads, 0 lets zstd use all cores.
		cipher (str): Symmetric cipher passed to gpg.
		exclusion_candidates (list[str]): Paths offered during the one-time filter setup.
		selector (str): Fuzzy selector used to pick a snapshot for restore.
	"""
	compression_level: int = 3
	compression_threads: int = 0
	cipher: str = "AES256"
	exclusion_candidates: list = field(default_factory=lambda: list(Globals.DEFAULT_EXCLUSIONS))
	selector: str = "fzf"


def parse_settings(path_to_settings):
	"""
	Parses the optional YAML file with tool settings.

	Missing keys fall back to the defaults of `Settings`. A missing file yields the defaults.

	Returns:
		Settings: The resolved settings.

	Raises:
		ConfigurationError: If the file contains invalid YAML or values of the wrong type.
	"""
	path_to_settings = Path(path_to_settings)
	if not path_to_settings.exists():
		logger.debug(f"No settings file at \"{path_to_settings}\", using defaults.")
		return Settings()

	try:
		with open(path_to_settings) as f:
			raw = yaml.safe_load(f) or {}
	except yaml.YAMLError as e:
		raise ConfigurationError(f"Settings file \"{path_to_settings}\" is not valid YAML: {e}")

	if not isinstance(raw, dict):
		raise ConfigurationError(f"Settings file \"{path_to_settings}\" must contain a mapping.")

	defaults = Settings()
	compression = raw.get("compression") or {}
	encryption = raw.get("encryption") or {}
	exclusions = raw.get("exclusions") or {}

	try:
		settings = Settings(
			compression_level=int(compression.get("level", defaults.compression_level)),
			compression_threads=int(compression.get("threads", defaults.compression_threads)),
			cipher=str(encryption.get("cipher", defaults.cipher)),
			exclusion_candidates=list(exclusions.get("candidates", defaults.exclusion_candidates)),
			selector=str(raw.get("selector", defaults.selector)),
		)
	except (AttributeError, TypeError, ValueError) as e:
		raise ConfigurationError(f"Invalid value in settings file \"{path_to_settings}\": {e}")

	if not 1 <= settings.compression_level <= 19:
		raise ConfigurationError(f"Compression level must be between 1 and 19, got {settings.compression_level}.")

	logger.debug(f"Loaded settings from \"{path_to_settings}\".")
	return settings


def get_arguments(argv=None):
	"""
	Parses the command-line arguments of homesnap.

	Returns:
		dict: Parsed arguments with resolved paths.
	"""
	parser = argparse.ArgumentParser(description="Creates and restores encrypted, compressed snapshots of your home directory.")
	parser.add_argument("-r", "--restore", action="store_true", help="Select a snapshot and restore it instead of creating one.")
	parser.add_argument("-c", "--config-dir", type=str, default=Globals.DEFAULT_CONFIG_ROOT, help="Directory holding the key, options and filters.")
	parser.add_argument("-s", "--source", type=str, default=None, help="Directory to back up (default: your home directory).")
	parser.add_argument("-v", "--verbose", action="store_true", help="Print debug output.")
	args = parser.parse_args(argv)

	config_root = Path(os.path.expanduser(args.config_dir))
	source = Path(os.path.expanduser(args.source)).resolve() if args.source else None

	return {
		"restore": args.restore,
		"config_root": config_root,
		"source": source,
		"verbose": args.verbose,
		"key_file": config_root / Globals.KEY_FILE,
		"options_file": config_root / Globals.OPTIONS_FILE,
		"filters_file": config_root / Globals.FILTERS_FILE,
		"settings_file": config_root / Globals.SETTINGS_FILE}
