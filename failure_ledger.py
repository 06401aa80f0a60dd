"""
Failure Ledger - JSON list of per-item failures for later replay
"""
import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional


class FailureLedger:
    """
    Collects failure records and persists them as a JSON array.

    Usage:
        ledger = FailureLedger()
        ledger.record(image="a/3D.png", error="boom")
        if ledger:
            ledger.save(Path("conversion-errors.json"))
    """

    def __init__(self, entries: Optional[List[Dict[str, Any]]] = None):
        self.entries: List[Dict[str, Any]] = list(entries or [])

    def record(self, **fields: Any) -> Dict[str, Any]:
        """Append one failure entry"""
        self.entries.append(fields)
        return fields

    def clear(self):
        self.entries = []

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.entries)

    def save(self, path: Path):
        """Save ledger to JSON"""
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.entries, f, indent=2, ensure_ascii=False)

    @staticmethod
    def exists(path: Path) -> bool:
        return Path(path).is_file()

    @classmethod
    def load(cls, path: Path) -> 'FailureLedger':
        """Load ledger from JSON"""
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if not isinstance(data, list):
            raise ValueError(f"Failure ledger {path} must contain a JSON list")

        return cls(entries=data)
