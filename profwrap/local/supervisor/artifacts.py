import os
import fnmatch
import logging
from pathlib import Path
from collections import namedtuple
from typing import List, Union

from .errors import NotFoundError

log = logging.getLogger(__name__)

ArtifactCandidate = namedtuple('ArtifactCandidate', ['path', 'mtime'])


def list_candidates(pattern: str, directory: Union[str, Path]) -> List[ArtifactCandidate]:
    """
    Lists the regular files in `directory` whose name matches `pattern`.

    Entries come back in name order so that ties on modification time are
    resolved the same way on every run.

    :param pattern: A glob-style filename pattern (e.g. 'isolate-*.prof').
    :param directory: The directory to scan. It is not searched recursively.
    :return list: One ArtifactCandidate per matching file.
    :raises OSError: If the directory cannot be listed or a file cannot be stat'ed.
    """
    with os.scandir(directory) as it:
        entries = sorted(
            (entry for entry in it if fnmatch.fnmatch(entry.name, pattern)),
            key=lambda entry: entry.name,
        )

    candidates = []
    for entry in entries:
        if not entry.is_file():
            continue
        candidates.append(ArtifactCandidate(Path(entry.path), entry.stat().st_mtime_ns))
    return candidates


def find_latest_artifact(pattern: str, directory: Union[str, Path]) -> Path:
    """
    Returns the most recently modified file matching `pattern` in `directory`.

    Must only be called after the profiler has exited, otherwise the newest
    artifact may still be partially written.

    :raises ValueError: If the pattern is empty.
    :raises NotFoundError: If nothing matches.
    :raises OSError: If the directory or a candidate cannot be read.
    """
    if not pattern:
        raise ValueError("Artifact pattern must not be empty.")

    candidates = list_candidates(pattern, directory)
    log.debug(f"Found {len(candidates)} profile candidate(s) for '{pattern}' in '{directory}'.")
    if not candidates:
        raise NotFoundError(pattern, directory)

    # max() keeps the first of equal keys, i.e. the first in name order.
    return max(candidates, key=lambda candidate: candidate.mtime).path


def remove_artifact(path: Path) -> bool:
    """
    Deletes a consumed artifact.

    :return: True if the file was removed, False if that failed.
    """
    try:
        Path(path).unlink(missing_ok=True)
        log.debug(f"Removed profile artifact '{path}'.")
        return True
    except OSError as e:
        log.warning(f"Could not remove profile artifact '{path}': {e}")
        return False
