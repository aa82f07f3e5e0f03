#!/usr/bin/env python3

"""
homesnap

Creates encrypted, compressed snapshots of your home directory and restores them.
Utilizes tar, zstd and gpg for archiving, compressing and encrypting.
"""

import sys

from datetime import datetime
from pathlib import Path

from homesnap.backup.filters import load_filters
from homesnap.backup.guard import InterruptGuard
from homesnap.backup.naming import current_identity, list_snapshots, next_name, snapshot_stamp
from homesnap.backup.pipeline import ArchivePipeline, check_destination
from homesnap.errors import BackupInterrupted, HomesnapError
from homesnap.globals import Globals
from homesnap.log import logger, set_verbose
from homesnap.options import load_configuration
from homesnap.parser import get_arguments, parse_settings
from homesnap.provider import InteractiveProvider
from homesnap.restore.selector import RestoreSelector
from homesnap.security.keystore import KeyStore
from homesnap.utils import check_system_dependencies


def run_backup(args, config, settings, provider, now=None):
	"""
	Runs a full backup cycle and returns the path of the new snapshot.

	Key and filters are created on first use. The output directory is checked before
	a name is picked, and the guard removes the snapshot again unless every stage succeeded.
	"""
	key_path = KeyStore(args["key_file"]).ensure_key()
	exclusions = load_filters(args["filters_file"], provider, settings.exclusion_candidates)

	output_dir = config.output_path
	check_destination(output_dir)

	source = args["source"] or Path.home()
	user, host = current_identity()
	dest = output_dir / next_name(snapshot_stamp(config, now), user, host, output_dir)

	pipeline = ArchivePipeline(settings)
	with InterruptGuard(dest) as guard:
		pipeline.backup(source, exclusions, key_path, dest)
		guard.complete()

	return dest


def run_restore(args, config, settings, provider):
	selector = RestoreSelector(config, provider, ArchivePipeline(settings), Path.home())
	return selector.run(KeyStore(args["key_file"]))


def print_snapshots(output_dir):
	snapshots = list_snapshots(output_dir)
	print(f"\nSnapshots in {output_dir}:")
	for snapshot in snapshots:
		size = snapshot.stat().st_size
		modified = datetime.fromtimestamp(snapshot.stat().st_mtime).strftime("%Y-%m-%d %H:%M")
		print(f"  {snapshot.name:<50} {size / (1024 * 1024):>10.1f} MiB  {modified}")


def main(argv=None):

	# 1. Parse arguments and check for external tools
	args = get_arguments(argv)
	set_verbose(args["verbose"])

	if not check_system_dependencies(Globals.REQUIRED_SYSTEM_BINS):
		sys.exit(1)

	try:
		# 2. Resolve configuration
		settings = parse_settings(args["settings_file"])
		provider = InteractiveProvider(settings.selector)
		config = load_configuration(args["options_file"], provider)

		# 3. Restore or back up
		if args["restore"]:
			run_restore(args, config, settings, provider)
		else:
			run_backup(args, config, settings, provider)
			print_snapshots(config.output_path)

	except BackupInterrupted as e:
		logger.error(str(e))
		sys.exit(130)
	except HomesnapError as e:
		logger.error(str(e))
		sys.exit(1)
	except KeyboardInterrupt:
		logger.error("Aborted.")
		sys.exit(130)

	sys.exit(0)


if __name__ == "__main__":
	main()
