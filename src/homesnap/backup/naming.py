import getpass
import re
import socket

from datetime import datetime
from pathlib import Path

from homesnap.globals import Globals

# Any snapshot, regardless of date, user and host
SNAPSHOT_PATTERN = re.compile(r"^.+_.+_.+_\d{3,}" + re.escape(Globals.SNAPSHOT_ENDING) + "$")


def snapshot_pattern(date_stamp: str, user: str, host: str):
    return re.compile(
        "^" + re.escape(f"{date_stamp}_{user}_{host}_") + r"(\d{3,})" + re.escape(Globals.SNAPSHOT_ENDING) + "$"
    )


def next_name(date_stamp: str, user: str, host: str, output_dir: Path) -> str:
    """
    Computes the name of the next snapshot for the given date, user and host.

    The directory is listed on every call. The returned sequence number is the
    smallest positive integer not yet taken, so existing snapshots are never
    overwritten. No lock is taken: two concurrent runs may pick the same name.

    Returns:
        str: e.g. `2024.01.01_alice_box1_001.tar.zst.gpg`
    """
    pattern = snapshot_pattern(date_stamp, user, host)
    used = set()
    for entry in Path(output_dir).iterdir():
        match = pattern.match(entry.name)
        if match:
            used.add(int(match.group(1)))

    sequence = 1
    while sequence in used:
        sequence += 1

    return f"{date_stamp}_{user}_{host}_{sequence:03d}{Globals.SNAPSHOT_ENDING}"


def snapshot_stamp(config, now=None) -> str:
    return (now or datetime.now()).strftime(config.date_format)


def current_identity() -> tuple:
    """Returns (user, short host name) of the running process."""
    return getpass.getuser(), socket.gethostname().split(".")[0]


def list_snapshots(output_dir: Path) -> list:
    output_dir = Path(output_dir)
    if not output_dir.is_dir():
        return []
    return sorted(p for p in output_dir.iterdir() if p.is_file() and SNAPSHOT_PATTERN.match(p.name))


def strip_ending(snapshot: Path) -> str:
    name = Path(snapshot).name
    if name.endswith(Globals.SNAPSHOT_ENDING):
        return name[:-len(Globals.SNAPSHOT_ENDING)]
    return name
