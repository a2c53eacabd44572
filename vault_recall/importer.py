"""
importer.py
======================

import.json（外部で生成された問題の置き場）から questions.json への取り込み。

方針:
- 全件検証してから取り込む（1 件でも不正なら 0 件取り込み = all-or-nothing）
- import_questions() 自体は保存も削除もしない。戻り値を見て呼び出し側が決める
- run_import() はファイルまで面倒を見るラッパー（成功時のみ保存 + import.json 削除）
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Optional

from .config import AppConfig
from .models import ImportResult, QuestionStore, question_from_dict
from .question_bank import load_store, save_store
from .validation import validate_import_file

logger = logging.getLogger(__name__)

NO_IMPORT_FILE_ERROR = "No import.json file found in .quiz folder"


def import_questions(batch: Optional[Any], existing_store: QuestionStore) -> ImportResult:
    """
    batch を検証し、全件 OK なら existing_store の末尾に追加したストアを返す。

    existing_store 自体は変更しない。成功時は result.store に新しいストアが入る。
    """
    if batch is None:
        return ImportResult(success=False, imported=0, errors=[NO_IMPORT_FILE_ERROR])

    validation = validate_import_file(batch)
    if not validation.valid:
        logger.info("Import rejected with %d error(s)", len(validation.errors))
        return ImportResult(success=False, imported=0, errors=validation.errors)

    new_questions = [question_from_dict(q) for q in batch["questions"]]
    _warn_duplicate_ids(existing_store, new_questions)

    merged = QuestionStore(
        version=existing_store.version,
        questions=list(existing_store.questions) + new_questions,
    )
    logger.info("Validated %d question(s) for import", len(new_questions))
    return ImportResult(success=True, imported=len(new_questions), errors=[], store=merged)


def _warn_duplicate_ids(existing_store: QuestionStore, new_questions) -> None:
    counts = Counter(q.id for q in existing_store.questions)
    counts.update(q.id for q in new_questions)
    for qid in sorted({q.id for q in new_questions}):
        if counts[qid] > 1:
            logger.warning("Question id %r appears %d times after import", qid, counts[qid])


# ----------------------------------------------------------------------
#  ファイルを伴う取り込み
# ----------------------------------------------------------------------
def run_import(cfg: AppConfig) -> ImportResult:
    """
    .quiz/import.json を取り込む。

    - 成功: questions.json を保存し import.json を削除
    - 失敗: どのファイルにも触らない
    """
    try:
        batch = AppConfig.read_json(cfg.import_path)
    except ValueError as e:
        logger.warning("import.json is not valid JSON: %s", e)
        return ImportResult(success=False, imported=0, errors=[f"import.json is not valid JSON: {e}"])

    store = load_store(cfg.questions_path)
    result = import_questions(batch, store)

    if not result.success:
        return result

    save_store(result.store, cfg.questions_path)
    cfg.import_path.unlink()
    logger.info("Imported %d question(s) into %s", result.imported, cfg.questions_path)
    return result


def has_pending_import(cfg: AppConfig) -> bool:
    """import.json が置かれているか"""
    return cfg.import_path.exists()
