"""
history.py
=====================================

クイズの受験履歴（.quiz/history.json）の管理を担当するモジュール。

history.json の構造:

{
  "version": 1,
  "attempts": [
    {
      "id": "a_xyz789",
      "date": "2025-01-15T14:00:00Z",
      "questionIds": ["q_abc123", "q_def456"],
      "results": [
        {"questionId": "q_abc123", "correct": true, "timeSpent": 15000},
        {"questionId": "q_def456", "correct": false, "timeSpent": 30000}
      ],
      "score": 50
    }
  ]
}

履歴は追記のみ。集計（平均点・問題ごとの正答率）は統計ページと
問題生成プロンプトで使う。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

from .config import EMPTY_HISTORY_FILE, AppConfig
from .models import QuizAttempt

logger = logging.getLogger(__name__)


class HistoryManager:
    """
    受験履歴を管理するクラス。
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.version = 1
        self.attempts: List[QuizAttempt] = []

    # ---------------------------------------------------------
    # ロード / セーブ
    # ---------------------------------------------------------
    def load(self) -> None:
        """history.json を読み込む。無い・壊れている場合は空の履歴。"""
        try:
            data = AppConfig.read_json(self.path)
        except ValueError:
            logger.warning("%s is not valid JSON, starting with an empty history", self.path)
            data = None

        if not isinstance(data, dict):
            data = dict(EMPTY_HISTORY_FILE)

        self.version = data.get("version", 1)
        raw = data.get("attempts")
        self.attempts = []
        for index, a in enumerate(raw if isinstance(raw, list) else [], start=1):
            if not isinstance(a, dict):
                continue
            try:
                self.attempts.append(QuizAttempt.from_dict(a))
            except (ValueError, TypeError) as e:
                # 型の壊れた受験記録は読み飛ばす（残りの履歴は使う）
                logger.warning("Skipping attempt %d in %s: %s", index, self.path, e)

    def save(self) -> None:
        AppConfig.write_json(
            self.path,
            {"version": self.version, "attempts": [a.to_dict() for a in self.attempts]},
        )

    # ---------------------------------------------------------
    # 履歴を追加
    # ---------------------------------------------------------
    def record_attempt(self, attempt: QuizAttempt) -> None:
        """受験結果を 1 件追加して保存する。"""
        self.attempts.append(attempt)
        self.save()
        logger.info(
            "Recorded attempt %s: %d question(s), score %d",
            attempt.id, len(attempt.question_ids), attempt.score,
        )

    def get_attempts(self) -> List[QuizAttempt]:
        return list(self.attempts)

    # ---------------------------------------------------------
    # 集計
    # ---------------------------------------------------------
    def get_summary(self) -> Dict[str, Any]:
        """UI などで参照するためのサマリ"""
        scores = [a.score for a in self.attempts]
        return {
            "attempts": len(self.attempts),
            "average_score": round(sum(scores) / len(scores), 1) if scores else 0.0,
            "best_score": max(scores) if scores else 0,
            "questions_answered": sum(len(a.results) for a in self.attempts),
        }

    def get_question_accuracy(self) -> Dict[str, Dict[str, int]]:
        """
        問題ごとの {"answered": n, "correct": m}
        """
        stats: Dict[str, Dict[str, int]] = {}
        for attempt in self.attempts:
            for r in attempt.results:
                entry = stats.setdefault(r.question_id, {"answered": 0, "correct": 0})
                entry["answered"] += 1
                if r.correct:
                    entry["correct"] += 1
        return stats

    def get_weak_question_ids(self, threshold: float = 0.5, min_answered: int = 1) -> List[str]:
        """
        正答率が threshold 未満の問題 ID を、正答率の低い順に返す。
        """
        weak = []
        for qid, s in self.get_question_accuracy().items():
            if s["answered"] < min_answered:
                continue
            ratio = s["correct"] / s["answered"]
            if ratio < threshold:
                weak.append((ratio, qid))
        return [qid for _ratio, qid in sorted(weak)]

    def to_dataframe(self) -> pd.DataFrame:
        """統計ページ用。1 行 = 1 回の受験。"""
        rows = [
            {
                "date": a.date,
                "questions": len(a.question_ids),
                "correct": sum(1 for r in a.results if r.correct),
                "score": a.score,
            }
            for a in self.attempts
        ]
        df = pd.DataFrame(rows, columns=["date", "questions", "correct", "score"])
        if not df.empty:
            df["date"] = pd.to_datetime(df["date"], errors="coerce", utc=True)
        return df
