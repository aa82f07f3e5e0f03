import os

from pathlib import Path
from typing import Iterator

from homesnap.log import logger


class Exclusions:
    """
    Ordered list of absolute path prefixes whose subtrees are left out of a snapshot.

    A path is excluded if it equals a prefix or lies below it. Exclusion is pure set
    membership, so the order of the prefixes never changes the result.
    """

    def __init__(self, prefixes: list):
        self.prefixes = [os.path.normpath(os.path.expanduser(str(p))) for p in prefixes]

    def __len__(self):
        return len(self.prefixes)

    def is_excluded(self, path) -> bool:
        path = os.path.normpath(str(path))
        for prefix in self.prefixes:
            if prefix == os.sep or path == prefix or path.startswith(prefix + os.sep):
                return True
        return False

    def members(self, root: Path) -> Iterator[Path]:
        """
        Walks `root` and yields every entry that belongs into the archive.

        Directories are yielded before their contents so tar recreates them with their
        own permissions. Excluded directories are pruned, symlinked directories are
        archived as links and not followed.
        """
        root = Path(root)
        if self.is_excluded(root):
            logger.warning(f"Source {root} is itself excluded, nothing to archive.")
            return

        yield root
        for current, dirnames, filenames in os.walk(root, onerror=_log_walk_error):
            kept = []
            for name in sorted(dirnames):
                path = os.path.join(current, name)
                if self.is_excluded(path):
                    logger.debug(f"Excluding {path}")
                    continue
                yield Path(path)
                if not os.path.islink(path):
                    kept.append(name)
            dirnames[:] = kept

            for name in sorted(filenames):
                path = os.path.join(current, name)
                if self.is_excluded(path):
                    logger.debug(f"Excluding {path}")
                    continue
                yield Path(path)


def _log_walk_error(error: OSError):
    logger.warning(f"Cannot read {error.filename}: {error.strerror}")


def read_filters(filters_file: Path) -> list:
    with open(filters_file) as f:
        return [line.strip() for line in f if line.strip()]


def write_filters(filters_file: Path, prefixes: list):
    filters_file.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    with open(filters_file, "w") as f:
        for prefix in prefixes:
            f.write(f"{prefix}\n")


def load_filters(filters_file: Path, provider, candidates: list) -> Exclusions:
    """
    Returns the persisted exclusion list, creating it through `provider` on first use.

    Each candidate is offered once with a yes default. The file is written even if no
    candidate was accepted, so the setup never runs twice.
    """
    if filters_file.is_file():
        prefixes = read_filters(filters_file)
        logger.debug(f"Loaded {len(prefixes)} exclusion(s) from {filters_file}")
        return Exclusions(prefixes)

    logger.info("No exclusion list found, starting setup.")
    accepted = []
    for candidate in candidates:
        expanded = os.path.expanduser(candidate)
        if provider.include_exclusion(expanded):
            accepted.append(expanded)

    write_filters(filters_file, accepted)
    logger.info(f"Saved {len(accepted)} exclusion(s) to {filters_file}")
    return Exclusions(accepted)
