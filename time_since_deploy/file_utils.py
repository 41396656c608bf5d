"""Atomic JSONL writes for trace output.

Records are written to a temp file next to the target and then renamed into
place, so a reader never observes a half-written trace.
"""
import os
import json
from pathlib import Path
from typing import Iterable

# Try to import fcntl (Unix/Linux/Mac)
# Windows relies on the atomic rename alone
try:
    import fcntl
    HAS_FLOCK = True
except ImportError:
    HAS_FLOCK = False


def atomic_append_jsonl(path: Path, records: Iterable[dict], *, encoding: str = 'utf-8') -> int:
    """Append ``records`` to a JSONL file atomically.

    Existing content is preserved; each record becomes one line.

    Returns:
        Number of records written

    Raises:
        OSError: If the file cannot be read, written or replaced
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + '.tmp')

    written = 0
    try:
        with open(tmp_path, 'w', encoding=encoding) as dst:
            if HAS_FLOCK:
                fcntl.flock(dst.fileno(), fcntl.LOCK_EX)

            if path.exists():
                with open(path, 'r', encoding=encoding) as src:
                    if HAS_FLOCK:
                        fcntl.flock(src.fileno(), fcntl.LOCK_SH)
                    existing = src.read()
                dst.write(existing)
                if existing and not existing.endswith('\n'):
                    dst.write('\n')

            for record in records:
                dst.write(json.dumps(record, ensure_ascii=False, default=str) + '\n')
                written += 1

            dst.flush()
            os.fsync(dst.fileno())

        os.replace(tmp_path, path)
    except Exception:
        if tmp_path.exists():
            tmp_path.unlink()
        raise
    return written
