"""Filesystem helpers for safe in-place rewrites."""
from __future__ import annotations

import contextlib
import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO, Iterator


@contextlib.contextmanager
def atomic_writer(target: Path) -> Iterator[BinaryIO]:
    """Yield a handle whose contents replace ``target`` only on success.

    The data is written to a temporary file in the target's directory, flushed
    to disk and renamed over the target. An existing target's permission bits
    carry over to the new file. If the block raises, the temporary file is
    removed and ``target`` is left untouched.
    """

    fd, temp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            yield handle
            handle.flush()
            os.fsync(handle.fileno())
        if target.exists():
            shutil.copymode(target, temp_path)
        os.replace(temp_path, target)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            temp_path.unlink()
        raise


def atomic_write_bytes(target: Path, payload: bytes) -> int:
    with atomic_writer(target) as handle:
        handle.write(payload)
    return len(payload)


__all__ = ["atomic_writer", "atomic_write_bytes"]
