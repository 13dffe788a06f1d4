"""
Manifest persistence.

The manifest is written atomically (temporary file + os.replace) so the
installer never reads a partially written document.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from addon_manifest.constants import MANIFEST_FILE_PERMISSIONS
from addon_manifest.exceptions import ManifestWriteError
from addon_manifest.log_utils import logger
from addon_manifest.models import Manifest

Pathish = Union[str, Path]


def _atomic_write(
    file_path: str, writer_func: Callable[[Any], None], suffix: str = ".tmp"
) -> None:
    """
    Write data to a file atomically by writing to a temporary file and atomically replacing the target on success.

    Parameters:
        file_path (str): Destination file path to be written.
        writer_func (Callable[[Any], None]): Callable that receives an open text file-like object and writes the desired content to it.
        suffix (str): Suffix to use for the temporary file name (default ".tmp").

    Raises:
        OSError: If the temporary file cannot be created, written or moved into place.
    """
    temp_fd, temp_path = tempfile.mkstemp(
        dir=os.path.dirname(file_path) or ".", prefix="tmp-", suffix=suffix
    )
    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8", newline="\n") as temp_f:
            writer_func(temp_f)
        os.chmod(temp_path, MANIFEST_FILE_PERMISSIONS)
        os.replace(temp_path, file_path)
    finally:
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError:
                pass


def _dump_json(data: Dict[str, Any]) -> Callable[[Any], None]:
    def _write(f: Any) -> None:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")

    return _write


def write_json_file(path: Pathish, data: Dict[str, Any]) -> None:
    """
    Write `data` as indented UTF-8 JSON, creating parent directories.

    Raises:
        ManifestWriteError: If the file cannot be written.
    """
    target = Path(path)
    try:
        if target.parent and not target.parent.exists():
            target.parent.mkdir(parents=True, exist_ok=True)
        _atomic_write(str(target), _dump_json(data), suffix=".json")
    except (OSError, UnicodeEncodeError, TypeError, ValueError) as exc:
        raise ManifestWriteError(str(target), details=str(exc)) from exc


def write_manifest(
    manifest: Manifest, primary: Pathish, secondary: Optional[Pathish] = None
) -> None:
    """
    Write the manifest to the primary path and, best-effort, a secondary path.

    Raises:
        ManifestWriteError: If the primary write fails. Secondary failures are logged only.
    """
    data = manifest.to_dict()
    write_json_file(primary, data)
    logger.info(f"Wrote {primary} ({len(manifest.entries)} addons)")

    if secondary is None or Path(secondary) == Path(primary):
        return
    try:
        write_json_file(secondary, data)
        logger.debug(f"Wrote secondary manifest {secondary}")
    except ManifestWriteError as exc:
        logger.warning(f"Skipping secondary manifest: {exc}")
