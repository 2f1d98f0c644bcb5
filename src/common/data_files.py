"""Reading and writing the JSON data files shared between pipeline steps."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import Any, List, Mapping, Optional, Tuple

from common.errors import ValidationError

logger = logging.getLogger(__name__)


def data_file_path(data_dir: str, filename: str) -> str:
    return os.path.join(data_dir, filename)


def exists_data_file(data_dir: str, filename: str) -> bool:
    return os.path.isfile(data_file_path(data_dir, filename))


def read_json(path: str) -> Any:
    """Parse the JSON file at ``path``.

    Raises:
        ValidationError: If the file is not valid JSON.
        FileNotFoundError: If the file does not exist.
    """
    with open(path, "r", encoding="utf-8") as fh:
        text = fh.read()
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Could not parse {path}: {exc}") from exc


def read_data_file(data_dir: str, filename: str) -> Any:
    return read_json(data_file_path(data_dir, filename))


def write_data_file(data_dir: str, filename: str, value: Any, *, indent: Optional[int] = 4) -> str:
    """Write ``value`` as JSON, replacing the file atomically.

    Returns:
        str: Path of the written file.
    """
    return write_data_files(data_dir, {filename: value}, indent=indent)[0]


def write_data_files(data_dir: str, files: Mapping[str, Any], *, indent: Optional[int] = 4) -> List[str]:
    """Write several JSON files, replacing none of them until all are serialized.

    Every value is serialized to a temp file in ``data_dir`` first; the real
    files are only swapped in once all temp files are complete.

    Returns:
        List[str]: Paths of the written files, in ``files`` order.
    """
    os.makedirs(data_dir, exist_ok=True)
    staged: List[Tuple[str, str]] = []
    try:
        for filename, value in files.items():
            fd, tmp_path = tempfile.mkstemp(prefix=f".{filename}.", dir=data_dir)
            staged.append((tmp_path, data_file_path(data_dir, filename)))
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(value, fh, ensure_ascii=False, indent=indent)
                fh.write("\n")
    except BaseException:
        for tmp_path, _ in staged:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
        raise

    for tmp_path, path in staged:
        os.replace(tmp_path, path)
        logger.debug("Wrote %s", path)
    return [path for _, path in staged]
