"""
quiz_config.py
======================

.quiz/config.json の読み書きを扱うモジュール。

config.json の構造:

{
  "version": 1,
  "streak": {
    "current": 5,
    "longest": 12,
    "lastQuizDate": "2025-01-15"
  },
  "preferences": {
    "questionsPerNote": 5,
    "questionTypes": ["multiple_choice", "fill_blank", "true_false"],
    "difficulty": "medium",
    "includeRelatedConcepts": true,
    "customPrompt": ""
  }
}

壊れたファイルは validate_config() でチェックし、
壊れているセクションだけ既定値に差し替えて読み込む（load_errors に理由を残す）。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

from .config import AppConfig
from .models import Preferences, QuizConfig, StreakState
from .validation import validate_config

logger = logging.getLogger(__name__)


class QuizConfigManager:
    """
    config.json を扱うユーティリティクラス。

    主な責務:
    - config.json のロード／セーブ
    - 壊れたセクションの補完
    - streak / preferences の取得と更新
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.config = QuizConfig()
        self.load_errors: List[str] = []

    # ------------------------------------------------------------------
    # ロード / セーブ
    # ------------------------------------------------------------------
    def load(self) -> QuizConfig:
        """config.json を読み込む。存在しない場合は既定値。"""
        self.load_errors = []

        try:
            data = AppConfig.read_json(self.path)
        except ValueError as e:
            self.load_errors = [f"config.json is not valid JSON: {e}"]
            logger.warning("Could not parse %s, using defaults", self.path)
            data = None

        if data is None:
            self.config = QuizConfig()
            return self.config

        result = validate_config(data)
        if not result.valid:
            self.load_errors.extend(result.errors)
            for err in result.errors:
                logger.warning("config.json: %s", err)
            data = self._repair(data)

        self.config = QuizConfig.from_dict(data)
        return self.config

    def save(self) -> None:
        AppConfig.write_json(self.path, self.config.to_dict())

    # ------------------------------------------------------------------
    # 内部構造の補完
    # ------------------------------------------------------------------
    @staticmethod
    def _repair(data: Any) -> Dict[str, Any]:
        """検証に落ちたセクションを既定値で置き換えた dict を返す。"""
        default = QuizConfig().to_dict()
        if not isinstance(data, dict):
            return default

        fixed = dict(data)
        version = fixed.get("version")
        if not isinstance(version, int) or isinstance(version, bool):
            fixed["version"] = default["version"]

        for section in ("streak", "preferences"):
            candidate = {"version": 1, "streak": default["streak"], "preferences": default["preferences"]}
            candidate[section] = fixed.get(section)
            if not validate_config(candidate).valid:
                fixed[section] = default[section]

        return fixed

    # ------------------------------------------------------------------
    # streak / preferences
    # ------------------------------------------------------------------
    @property
    def streak(self) -> StreakState:
        return self.config.streak

    def set_streak(self, state: StreakState) -> None:
        self.config.streak = state

    @property
    def preferences(self) -> Preferences:
        return self.config.preferences

    def set_preferences(self, preferences: Preferences) -> None:
        self.config.preferences = preferences
