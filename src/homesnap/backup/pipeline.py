import os
import subprocess

from pathlib import Path
from typing import Iterable, Optional

from homesnap.backup.filters import Exclusions
from homesnap.errors import DestinationError, HomesnapError, PipelineError
from homesnap.log import logger
from homesnap.parser import Settings
from homesnap.security.decryption import decrypt_cmd
from homesnap.security.encryption import encrypt_cmd


def check_destination(dest_dir: Path):
    """
    Makes sure snapshots can be written to `dest_dir` before any stage is started.

    Raises:
        DestinationError: If the directory does not exist or is not writable.
    """
    dest_dir = Path(dest_dir)
    if not dest_dir.is_dir():
        raise DestinationError(f"Output directory \"{dest_dir}\" does not exist.")
    if not os.access(dest_dir, os.W_OK | os.X_OK):
        raise DestinationError(f"Output directory \"{dest_dir}\" is not writable.")


def run_stages(stages: list, feed: Optional[Iterable[bytes]] = None, stdout=None) -> list:
    """
    Runs the given commands as one pipe, each stage reading the output of the previous one.

    Parameters:
        stages (list[tuple[str, list]]): Stage names and their commands, upstream first.
        feed (Iterable[bytes] | None): Data written to the stdin of the first stage.
        stdout: Where the last stage writes to (inherited if None).

    Returns:
        list[tuple[str, int]]: Name and exit code of every stage that failed.

    If the caller is interrupted while waiting (e.g. by a signal turned into an
    exception), all stages are killed and reaped before the exception propagates.
    """
    procs = []
    try:
        for i, (name, cmd) in enumerate(stages):
            if procs:
                stdin = procs[-1][1].stdout
            else:
                stdin = subprocess.PIPE if feed is not None else subprocess.DEVNULL

            last = i == len(stages) - 1
            logger.debug(f"Starting {name}: {' '.join(cmd)}")
            proc = subprocess.Popen(cmd, stdin=stdin, stdout=stdout if last else subprocess.PIPE)

            # Only the downstream stage holds the read end, so upstream sees a broken pipe if it dies
            if procs:
                procs[-1][1].stdout.close()
            procs.append((name, proc))

        if feed is not None:
            _write_feed(procs[0][1], feed)

        for _, proc in procs:
            proc.wait()

    except BaseException:
        # A later Popen may have failed before taking over the read end
        if procs and procs[-1][1].stdout is not None:
            procs[-1][1].stdout.close()
        for name, proc in procs:
            if proc.poll() is None:
                logger.debug(f"Killing {name} (pid {proc.pid})")
                proc.kill()
        for _, proc in procs:
            proc.wait()
        raise

    return [(name, proc.returncode) for name, proc in procs if proc.returncode != 0]


def _write_feed(proc, feed):
    try:
        for chunk in feed:
            proc.stdin.write(chunk)
    except BrokenPipeError:
        # The stage died early, its exit code tells why
        logger.debug("First stage closed its input early.")
    finally:
        try:
            proc.stdin.close()
        except BrokenPipeError:
            pass


class ArchivePipeline:
    """
    Streams a directory tree through tar, zstd and gpg, and back.

    Nothing is materialized between the stages: they run concurrently, connected
    by pipes, and a slow stage blocks its upstream.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def archive_cmd(self) -> list:
        return [
            "tar", "--create", "--file=-",
            "--directory=/",
            "--no-recursion",
            "--null", "--verbatim-files-from",
            "--files-from=-",
        ]

    def compress_cmd(self) -> list:
        return [
            "zstd", "-q", "-c",
            f"-{self.settings.compression_level}",
            f"-T{self.settings.compression_threads}",
        ]

    def decompress_cmd(self) -> list:
        return ["zstd", "-q", "-d", "-c"]

    def extract_cmd(self, target: Path, strip_components: int = 0) -> list:
        tar_cmd = ["tar", "--extract", "--file=-", f"--directory={target}"]
        if strip_components:
            tar_cmd.append(f"--strip-components={strip_components}")
        return tar_cmd

    def backup(self, source_root: Path, exclusions: Exclusions, key_path: Path, dest_path: Path) -> Path:
        """
        Archives `source_root` without the excluded subtrees, compresses and encrypts it into `dest_path`.

        Members are stored relative to `/`, so the archive keeps the absolute layout of the tree.

        Returns:
            Path: `dest_path` once every stage reported success.

        Raises:
            DestinationError: If the output directory is not usable (checked before any stage starts).
            PipelineError: If any of the stages failed. `dest_path` is then not a valid snapshot.
        """
        source_root = Path(source_root)
        dest_path = Path(dest_path)
        check_destination(dest_path.parent)

        if not source_root.is_dir():
            raise DestinationError(f"Source directory \"{source_root}\" does not exist.")

        logger.info(f"Creating snapshot of {source_root} in {dest_path}")
        stages = [
            ("tar", self.archive_cmd()),
            ("zstd", self.compress_cmd()),
            ("gpg", encrypt_cmd(key_path, dest_path, self.settings.cipher)),
        ]
        failures = run_stages(stages, feed=_member_list(source_root, exclusions))

        if failures:
            raise PipelineError("Backup", failures)

        logger.info(f"Snapshot written: {dest_path}")
        return dest_path

    def restore(self, source_path: Path, key_path: Path, target: Path, strip_components: int = 0) -> Path:
        """
        Decrypts, decompresses and unpacks `source_path` into `target`.

        Files extracted before a failing stage stops the pipe are left in place.

        Raises:
            PipelineError: If any of the stages failed (a wrong key or a corrupted snapshot makes gpg fail).
        """
        source_path = Path(source_path)
        target = Path(target)

        if not source_path.is_file():
            raise HomesnapError(f"Snapshot \"{source_path}\" does not exist.")

        logger.info(f"Restoring {source_path.name} into {target}")
        stages = [
            ("gpg", decrypt_cmd(key_path, source_path)),
            ("zstd", self.decompress_cmd()),
            ("tar", self.extract_cmd(target, strip_components)),
        ]
        failures = run_stages(stages)

        if failures:
            raise PipelineError("Restore", failures)

        logger.info(f"Restore of {source_path.name} completed.")
        return target


def _member_list(source_root: Path, exclusions: Exclusions):
    for member in exclusions.members(source_root):
        yield os.fsencode(os.path.relpath(member, "/")) + b"\0"
