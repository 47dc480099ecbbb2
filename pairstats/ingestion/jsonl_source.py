"""JSON-lines block source (local or exported event dumps)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from pairstats.core.logging import get_logger
from .base import BlockSource

log = get_logger("ingestion.jsonl")


class JsonLinesSource(BlockSource):
    """Reads one block per line: ``{"height": .., "timestamp": .., "logs": [..]}``."""

    name = "jsonl"

    def __init__(self, file_path: str):
        self.file_path = Path(file_path)

    async def fetch(self) -> List[Dict[str, Any]]:
        if not self.file_path.exists():
            log.warning(f"Events file not found: {self.file_path}")
            return []

        blocks: List[Dict[str, Any]] = []
        with self.file_path.open("r", encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                block = self._parse_block(line, line_no)
                if block is not None:
                    blocks.append(block)
        log.info(f"Loaded {len(blocks)} blocks from {self.file_path.name}")
        return blocks

    @staticmethod
    def _parse_block(line: str, line_no: int) -> Optional[Dict[str, Any]]:
        try:
            raw = json.loads(line)
        except json.JSONDecodeError as exc:
            log.warning(f"Line {line_no}: invalid JSON ({exc.msg}), skipping")
            return None

        height = JsonLinesSource._to_int(raw.get("height")) if isinstance(raw, dict) else None
        timestamp = JsonLinesSource._to_int(raw.get("timestamp")) if isinstance(raw, dict) else None
        if height is None or timestamp is None:
            log.warning(f"Line {line_no}: block without height/timestamp, skipping")
            return None

        logs = raw.get("logs") or []
        if not isinstance(logs, list):
            log.warning(f"Line {line_no}: 'logs' is not a list, block {height} kept without logs")
            logs = []
        return {"height": height, "timestamp": timestamp, "logs": logs}

    @staticmethod
    def _to_int(val: Any) -> Optional[int]:
        try:
            return int(val) if val not in (None, "") else None
        except (TypeError, ValueError):
            return None
