"""
Crash-safe file writes: write a sibling temp file, then rename it over the target.
"""

import os
import time
from pathlib import Path
from typing import Union


def build_temp_path(target_path: Union[str, Path]) -> Path:
    """Sibling temp path, unique per process and write"""
    target = Path(target_path)
    return target.with_name(f"{target.name}.tmp-{os.getpid()}-{time.time_ns()}")


def write_file_atomic(target_path: Union[str, Path], data: Union[str, bytes], encoding: str = "utf-8") -> None:
    """
    Atomically replace target_path with data

    Readers see either the previous file or the complete new one, never a
    partial write. Two writers racing on the same path are last-writer-wins.

    Args:
        target_path: Destination file
        data: Text (encoded with encoding) or raw bytes
        encoding: Encoding used when data is text

    Raises:
        OSError: If writing or renaming fails; the temp file is removed first
    """
    payload = data.encode(encoding) if isinstance(data, str) else data
    temp_path = build_temp_path(target_path)

    try:
        with open(temp_path, "wb") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, target_path)
    except BaseException:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise
