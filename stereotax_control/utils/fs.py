"""Filesystem helpers: output directories, atomic artifact writes, YAML.

An operator must never load a half-written ``.ncc`` program, so every
artifact is written to a sibling temporary file, flushed to disk and
renamed over the target in one step.  Failures surface as
:class:`ProgramWriteError` with the temporary file already removed.

Usage:
    from stereotax_control.utils import fs
    out = fs.ensure_dir("Output")
    fs.atomic_write_text(out / "NAc_Right_Injection.ncc", text)
"""

import os
from pathlib import Path
from typing import Any, Union

import yaml

PathLike = Union[str, Path]


class ProgramWriteError(OSError):
    """Raised when a program artifact (or its directory) cannot be written."""

    pass


def ensure_dir(p: PathLike) -> Path:
    """Create *p* (and parents) if missing and return it as a Path.

    Raises
    ------
    ProgramWriteError
        If the directory cannot be created.
    """
    p = Path(p)
    try:
        p.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ProgramWriteError(f"Cannot create directory {p}: {e}") from e
    return p


def atomic_write_bytes(path: PathLike, data: bytes, tmp_suffix: str = ".tmp") -> None:
    """Replace *path* with *data* atomically.

    The temporary file lives in the same directory so the final
    ``replace`` never crosses a filesystem boundary.
    """
    path = Path(path)
    ensure_dir(path.parent)
    tmp_path = path.with_name(path.name + tmp_suffix)

    try:
        with open(tmp_path, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise ProgramWriteError(f"Failed to write {path}: {e}") from e


def atomic_write_text(path: PathLike, text: str, encoding: str = "utf-8") -> None:
    """Text variant of :func:`atomic_write_bytes`.

    No newline translation happens, so ``\\r\\n`` programs keep their
    line endings on every platform.
    """
    atomic_write_bytes(path, text.encode(encoding))


def load_yaml(path: PathLike) -> Any:
    """Parse a YAML file with ``yaml.safe_load``.

    Returns whatever the document holds (``None`` for an empty file);
    callers check the shape.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    yaml.YAMLError
        If the document cannot be parsed (message includes the path).
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        try:
            return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e
