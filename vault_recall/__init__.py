"""
vault_recall パッケージ
======================

ノートから作った問題で想起練習クイズを行うアプリの内部ロジックを提供する。

主な役割:
- 問題・セッション・設定のデータ構造（models）
- 外部生成 JSON の検証（validation）
- import.json の取り込み（importer）
- クイズの進行と採点（quiz）
- 連続学習日数（streak）
- questions.json / config.json / history.json / pending.json の読み書き
- Gemini による問題生成（generator）
- UI コンポーネント（ui）

app.py は Streamlit UI のみを担当し、内部ロジックはすべて本パッケージから呼ぶ。
"""

from .config import AppConfig, load_app_config
from .importer import import_questions, run_import
from .models import (
    FillBlankQuestion,
    MultipleChoiceQuestion,
    Question,
    QuestionStore,
    QuizAttempt,
    QuizSession,
    StreakState,
    TrueFalseQuestion,
)
from .quiz import QuizEngine
from .streak import check_and_update_streak, increment_streak, reset_streak
from .validation import validate_config, validate_import_file, validate_question

__all__ = [
    "AppConfig",
    "load_app_config",
    "import_questions",
    "run_import",
    "FillBlankQuestion",
    "MultipleChoiceQuestion",
    "Question",
    "QuestionStore",
    "QuizAttempt",
    "QuizSession",
    "StreakState",
    "TrueFalseQuestion",
    "QuizEngine",
    "check_and_update_streak",
    "increment_streak",
    "reset_streak",
    "validate_config",
    "validate_import_file",
    "validate_question",
]
