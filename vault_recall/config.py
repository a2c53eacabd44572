"""
config.py
=========

アプリ全体で利用する設定値を一元管理する。
Vault のパス、.quiz フォルダ内の各 JSON ファイル、Gemini API キー、
ログレベルなどはすべてこのクラスを通じて取得する。

本ファイルは app.py と tools/generate_questions.py の共通設定でもある。
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from .models import QuizConfig

logger = logging.getLogger(__name__)


# ------------------------------------------------------------
# 基本パス定義
# ------------------------------------------------------------

QUIZ_FOLDER = ".quiz"
CONFIG_FILE = "config.json"
QUESTIONS_FILE = "questions.json"
PENDING_FILE = "pending.json"
HISTORY_FILE = "history.json"
IMPORT_FILE = "import.json"
INSTRUCTIONS_FILE = "INSTRUCTIONS.md"

EMPTY_QUESTIONS_FILE: Dict[str, Any] = {"version": 1, "questions": []}
EMPTY_PENDING_FILE: Dict[str, Any] = {"version": 1, "notes": []}
EMPTY_HISTORY_FILE: Dict[str, Any] = {"version": 1, "attempts": []}

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# ------------------------------------------------------------
# AppConfig
# ------------------------------------------------------------

@dataclass
class AppConfig:
    """
    アプリ設定クラス。

    - Vault ディレクトリと .quiz 配下のファイルパス
    - APIキーの読み取り
    - 優先 Gemini モデル
    - ログレベル
    """

    # ---------- Vault ----------
    vault_dir: Path = Path(".")
    app_name: str = "Vault Recall"

    # ---------- API ----------
    gemini_api_key: str = ""
    preferred_model: Optional[str] = None

    # ---------- ログ ----------
    log_level: str = "INFO"

    def __post_init__(self):
        self.vault_dir = Path(self.vault_dir)
        if not self.gemini_api_key:
            self.gemini_api_key = self._load_api_key()

    # ============================================================
    # パス
    # ============================================================

    @property
    def quiz_dir(self) -> Path:
        return self.vault_dir / QUIZ_FOLDER

    @property
    def config_path(self) -> Path:
        return self.quiz_dir / CONFIG_FILE

    @property
    def questions_path(self) -> Path:
        return self.quiz_dir / QUESTIONS_FILE

    @property
    def pending_path(self) -> Path:
        return self.quiz_dir / PENDING_FILE

    @property
    def history_path(self) -> Path:
        return self.quiz_dir / HISTORY_FILE

    @property
    def import_path(self) -> Path:
        return self.quiz_dir / IMPORT_FILE

    @property
    def instructions_path(self) -> Path:
        return self.quiz_dir / INSTRUCTIONS_FILE

    # ============================================================
    # 初期化処理
    # ============================================================

    def ensure_quiz_folder(self) -> None:
        """
        .quiz フォルダと初期ファイルを用意する。
        既存ファイルは上書きしない（ユーザーの編集を残すため）。
        """
        from .prompt import INSTRUCTIONS_TEMPLATE

        self.quiz_dir.mkdir(parents=True, exist_ok=True)

        if not self.config_path.exists():
            self.write_json(self.config_path, QuizConfig().to_dict())
            logger.info("Created default %s", self.config_path)

        if not self.instructions_path.exists():
            self.instructions_path.write_text(INSTRUCTIONS_TEMPLATE, encoding="utf-8")
            logger.info("Created %s", self.instructions_path)

    # ============================================================
    # 内部関数
    # ============================================================

    def _load_api_key(self) -> str:
        """
        環境変数 GEMINI_API_KEY を優先し、無ければ .env を見る。
        """
        key = os.environ.get("GEMINI_API_KEY")
        if key:
            return key

        env_path = Path(".env")
        if env_path.exists():
            for line in env_path.read_text().splitlines():
                if line.startswith("GEMINI_API_KEY="):
                    return line.split("=", 1)[1].strip()

        return ""  # キーなし → オンライン生成は使えない

    # ============================================================
    # JSON 読み取りユーティリティ
    # ============================================================

    @staticmethod
    def read_json(path: Path):
        """存在しなければ None。壊れた JSON は ValueError（json.JSONDecodeError）。"""
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    @staticmethod
    def write_json(path: Path, data: dict):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


# ------------------------------------------------------------
# config.toml の読み込み
# ------------------------------------------------------------

def load_app_config(path: str = "config.toml") -> AppConfig:
    """
    config.toml を読み込み AppConfig を返す。
    読み込みに失敗しても既定値で返す。環境変数が最優先。

    [vault]   path
    [gemini]  preferred_model
    [logging] level
    [app]     name
    """
    raw: Dict[str, Any] = {}
    if os.path.exists(path):
        try:
            raw = toml.load(path)
        except (toml.TomlDecodeError, OSError):
            logger.warning("Could not read %s, using defaults", path, exc_info=True)
            raw = {}

    def section(name: str) -> Dict[str, Any]:
        value = raw.get(name)
        return value if isinstance(value, dict) else {}

    vault_dir = os.environ.get("VAULT_RECALL_VAULT") or section("vault").get("path") or "."
    log_level = (
        os.environ.get("VAULT_RECALL_LOG_LEVEL")
        or section("logging").get("level")
        or "INFO"
    )
    preferred = section("gemini").get("preferred_model")

    return AppConfig(
        vault_dir=Path(str(vault_dir)).expanduser(),
        app_name=str(section("app").get("name", "Vault Recall")),
        preferred_model=preferred if isinstance(preferred, str) and preferred else None,
        log_level=str(log_level).upper(),
    )


def setup_logging(level: str = "INFO") -> None:
    """ルートロガーを 1 回だけ設定する（既にハンドラがあれば何もしない）。"""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
