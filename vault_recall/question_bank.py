"""
question_bank.py
===========================

.quiz/questions.json を読み書きし、
出題対象の絞り込み（ノート単位・フォルダ単位）を行うモジュール。

目的:
- 破損したエントリへの耐性（検証に通らない問題は skip してログに残す）
- Question モデルとの型整合性
- 出題元ノートの一覧（クイズ範囲の選択肢）
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from .config import AppConfig
from .models import Question, QuestionStore, question_from_dict
from .validation import validate_question

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
#  読み込み / 保存
# ----------------------------------------------------------------------
def load_store(path: Path) -> QuestionStore:
    """
    questions.json を読み込み QuestionStore を返す。

    - ファイルが無ければ空のストア
    - JSON として壊れていれば空のストア（警告ログ）
    - 検証に通らない問題は読み飛ばす
    """
    try:
        data = AppConfig.read_json(path)
    except ValueError:
        logger.warning("%s is not valid JSON, starting from an empty store", path)
        return QuestionStore()

    if not isinstance(data, dict):
        return QuestionStore()

    raw_questions = data.get("questions")
    if not isinstance(raw_questions, list):
        return QuestionStore(version=_version(data))

    questions: List[Question] = []
    for index, raw in enumerate(raw_questions, start=1):
        result = validate_question(raw)
        if not result.valid:
            logger.warning(
                "Skipping question %d in %s: %s", index, path, "; ".join(result.errors)
            )
            continue
        questions.append(question_from_dict(raw))

    return QuestionStore(version=_version(data), questions=questions)


def save_store(store: QuestionStore, path: Path) -> None:
    AppConfig.write_json(path, store.to_dict())
    logger.debug("Saved %d questions to %s", len(store.questions), path)


def _version(data: dict) -> int:
    v = data.get("version", 1)
    return v if isinstance(v, int) and not isinstance(v, bool) else 1


# ----------------------------------------------------------------------
#  絞り込み
# ----------------------------------------------------------------------
def get_questions_by_source(questions: List[Question], source_path: str) -> List[Question]:
    """出題元ノートの完全一致でフィルタ"""
    return [q for q in questions if q.source_note == source_path]


def get_questions_by_folder(questions: List[Question], folder_path: str) -> List[Question]:
    """
    フォルダ配下（再帰）のノートから作られた問題を返す。
    "School" は "School/..." にマッチし、"Schoolwork/..." にはマッチしない。
    """
    folder = folder_path.rstrip("/")
    prefix = f"{folder}/"
    return [
        q for q in questions
        if q.source_note.startswith(prefix) or q.source_note == folder
    ]


def list_source_notes(questions: List[Question]) -> List[str]:
    """問題が存在するノートの一覧（重複なし・出現順）"""
    seen = {}
    for q in questions:
        seen.setdefault(q.source_note, None)
    return list(seen)


def list_source_folders(questions: List[Question]) -> List[str]:
    """ノートパスから得られるフォルダ一覧（祖先フォルダも含む、ソート済み）"""
    folders = set()
    for note in list_source_notes(questions):
        parts = note.split("/")[:-1]
        for i in range(1, len(parts) + 1):
            folders.add("/".join(parts[:i]))
    return sorted(folders)

