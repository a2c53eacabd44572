"""
pending.py
======================

問題生成待ちノートのキュー（.quiz/pending.json）。

{
  "version": 1,
  "notes": [
    {"path": "School/Algorithms/Graph Traversal.md", "addedAt": "...", "priority": "normal"}
  ]
}

パスは Vault ルートからの相対パス（区切りは "/"）。
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from .config import AppConfig
from .models import PRIORITIES

logger = logging.getLogger(__name__)


class PendingQueue:
    def __init__(self, path: Path):
        self.path = Path(path)
        self.notes: List[Dict[str, Any]] = []

    def load(self) -> None:
        try:
            data = AppConfig.read_json(self.path)
        except ValueError:
            logger.warning("%s is not valid JSON, starting with an empty queue", self.path)
            data = None

        notes = data.get("notes") if isinstance(data, dict) else None
        self.notes = [
            n for n in (notes if isinstance(notes, list) else [])
            if isinstance(n, dict) and isinstance(n.get("path"), str)
        ]

    def save(self) -> None:
        AppConfig.write_json(self.path, {"version": 1, "notes": self.notes})

    # ------------------------------------------------------------
    # 追加 / 削除
    # ------------------------------------------------------------
    def contains(self, note_path: str) -> bool:
        return any(n["path"] == note_path for n in self.notes)

    def add_note(self, note_path: str, priority: str = "normal") -> bool:
        """追加できたら True。既にキューにあれば False。"""
        if priority not in PRIORITIES:
            raise ValueError(f"Unknown priority: {priority!r}")
        if self.contains(note_path):
            return False

        self.notes.append({
            "path": note_path,
            "addedAt": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "priority": priority,
        })
        return True

    def add_folder(self, vault_dir: Path, folder_path: str) -> int:
        """
        フォルダ配下（再帰）の .md をまとめて追加し、追加件数を返す。
        """
        folder = Path(vault_dir) / folder_path
        if not folder.is_dir():
            return 0

        added = 0
        for md in sorted(folder.rglob("*.md")):
            rel = md.relative_to(vault_dir).as_posix()
            if any(part.startswith(".") for part in rel.split("/")):
                continue  # .quiz などの隠しフォルダ
            if self.add_note(rel):
                added += 1
        logger.info("Queued %d note(s) from %s", added, folder_path)
        return added

    def remove_note(self, note_path: str) -> bool:
        before = len(self.notes)
        self.notes = [n for n in self.notes if n["path"] != note_path]
        return len(self.notes) != before

    def clear(self) -> None:
        self.notes = []

    def ordered(self) -> List[Dict[str, Any]]:
        """優先度 high → normal → low、同じ優先度は追加順。"""
        rank = {"high": 0, "normal": 1, "low": 2}
        return sorted(self.notes, key=lambda n: rank.get(n.get("priority"), 1))
