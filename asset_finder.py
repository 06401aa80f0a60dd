"""
Asset Finder - Recursive lookup of pipeline files by exact name
"""
import os
from pathlib import Path
from typing import Iterable, List


def find_files(root: Path, names: Iterable[str]) -> List[Path]:
    """
    Find every regular file under root whose basename is in names.

    Args:
        root: Directory to walk
        names: Exact basenames to match (e.g. "3D.png")

    Returns:
        Matching paths, sorted
    """
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Directory not found: {root}")

    wanted = set(names)
    matches = []
    for dirpath, _dirnames, filenames in os.walk(root):
        for name in filenames:
            if name in wanted:
                path = Path(dirpath) / name
                if path.is_file():
                    matches.append(path)

    return sorted(matches)


def relative_label(path: Path, root: Path) -> str:
    """Short path for console output"""
    try:
        return Path(path).relative_to(root).as_posix()
    except ValueError:
        return Path(path).as_posix()
