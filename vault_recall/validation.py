"""
validation.py
======================

外部（AI など）が生成した JSON を、ストアへ書き込む前に検証するモジュール。

- validate_question(): 問題 1 件
- validate_import_file(): import.json 全体（全件 OK のときだけ valid）
- validate_config(): config.json

どの関数も例外は投げない。壊れた入力が来るのは通常ケースなので、
フィールド名入りのエラーメッセージをすべて集めて ValidationResult で返す。
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, List

from .models import (
    BLANK_PLACEHOLDER,
    DATE_FORMAT,
    DIFFICULTIES,
    QUESTION_TYPES,
    ValidationResult,
)


def _is_nonempty_str(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def _is_number(value: Any) -> bool:
    # bool は int のサブクラスなので除外する
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ----------------------------------------------------------------------
#  問題 1 件
# ----------------------------------------------------------------------
def validate_question(candidate: Any) -> ValidationResult:
    """
    問題 1 件を検証する。

    チェック順:
    1. dict であること
    2. id / sourceNote / question / explanation が空でない文字列
    3. type が既知の 3 種のいずれか（不明なら種別ごとのチェックは行わない）
    4. difficulty が easy / medium / hard のいずれか
    5. 種別ごとのチェック
    """
    if not isinstance(candidate, dict):
        return ValidationResult(False, ["Question must be an object"])

    errors: List[str] = []

    for key in ("id", "sourceNote", "question", "explanation"):
        if not _is_nonempty_str(candidate.get(key)):
            errors.append(f'Missing or invalid "{key}" (must be string)')

    qtype = candidate.get("type")
    if not _is_nonempty_str(qtype):
        errors.append('Missing or invalid "type" (must be string)')
        qtype = None
    elif qtype not in QUESTION_TYPES:
        errors.append(f'Invalid "type": must be one of {", ".join(QUESTION_TYPES)}')
        qtype = None

    difficulty = candidate.get("difficulty")
    if not _is_nonempty_str(difficulty):
        errors.append('Missing or invalid "difficulty" (must be string)')
    elif difficulty not in DIFFICULTIES:
        errors.append(f'Invalid "difficulty": must be one of {", ".join(DIFFICULTIES)}')

    related = candidate.get("relatedConcepts")
    if related is not None and not (
        isinstance(related, list) and all(isinstance(c, str) for c in related)
    ):
        errors.append('Invalid "relatedConcepts" (must be an array of strings)')

    if qtype is not None:
        errors.extend(_VARIANT_CHECKS[qtype](candidate))

    return ValidationResult(not errors, errors)


def _check_multiple_choice(q: Dict[str, Any]) -> List[str]:
    errors: List[str] = []

    if not _is_nonempty_str(q.get("correctAnswer")):
        errors.append('Multiple choice: missing or invalid "correctAnswer" (must be string)')

    incorrect = q.get("incorrectAnswers")
    if not isinstance(incorrect, list):
        errors.append('Multiple choice: missing "incorrectAnswers" array')
        return errors

    if len(incorrect) != 3:
        errors.append(
            f'Multiple choice: "incorrectAnswers" must have exactly 3 items (got {len(incorrect)})'
        )
    if not all(isinstance(a, str) for a in incorrect):
        errors.append("Multiple choice: all incorrectAnswers must be strings")

    return errors


def _check_fill_blank(q: Dict[str, Any]) -> List[str]:
    errors: List[str] = []

    blanks = q.get("blanks")
    if not isinstance(blanks, list):
        errors.append('Fill blank: missing "blanks" array')
        return errors

    if not all(isinstance(b, str) for b in blanks):
        errors.append("Fill blank: all blanks must be strings")
    elif not all(b.strip() for b in blanks):
        # 空の正解は空欄の回答と一致してしまう
        errors.append("Fill blank: blanks must not be empty")

    text = q.get("question")
    if isinstance(text, str):
        found = text.count(BLANK_PLACEHOLDER)
        if found != len(blanks):
            errors.append(
                f'Fill blank: found {found} "{BLANK_PLACEHOLDER}" in question '
                f"but {len(blanks)} answers in blanks array"
            )

    return errors


def _check_true_false(q: Dict[str, Any]) -> List[str]:
    if isinstance(q.get("correctAnswer"), bool):
        return []
    return ['True/false: "correctAnswer" must be a boolean (true or false), not a string']


_VARIANT_CHECKS: Dict[str, Callable[[Dict[str, Any]], List[str]]] = {
    "multiple_choice": _check_multiple_choice,
    "fill_blank": _check_fill_blank,
    "true_false": _check_true_false,
}


# ----------------------------------------------------------------------
#  import.json
# ----------------------------------------------------------------------
def validate_import_file(batch: Any) -> ValidationResult:
    """
    import.json 全体を検証する。

    各問題のエラーには 1 始まりの番号を付ける（例: "Question 2: ..."）。
    1 件でも不正があれば valid=False。
    """
    if not isinstance(batch, dict):
        return ValidationResult(False, ["Import file must be an object"])

    questions = batch.get("questions")
    if not isinstance(questions, list):
        return ValidationResult(False, ['Import file must have a "questions" array'])

    errors: List[str] = []
    for index, candidate in enumerate(questions, start=1):
        result = validate_question(candidate)
        errors.extend(f"Question {index}: {e}" for e in result.errors)

    return ValidationResult(not errors, errors)


# ----------------------------------------------------------------------
#  config.json
# ----------------------------------------------------------------------
def validate_config(candidate: Any) -> ValidationResult:
    """config.json の構造チェック。壊れた状態を読み込むときの保険として使う。"""
    if not isinstance(candidate, dict):
        return ValidationResult(False, ["Config must be an object"])

    errors: List[str] = []

    if not _is_number(candidate.get("version")):
        errors.append('Missing or invalid "version" (must be number)')

    streak = candidate.get("streak")
    if not isinstance(streak, dict):
        errors.append('Missing or invalid "streak" object')
    else:
        errors.extend(_check_streak(streak))

    prefs = candidate.get("preferences")
    if not isinstance(prefs, dict):
        errors.append('Missing or invalid "preferences" object')
    else:
        errors.extend(_check_preferences(prefs))

    return ValidationResult(not errors, errors)


def _check_streak(streak: Dict[str, Any]) -> List[str]:
    errors: List[str] = []

    for key in ("current", "longest"):
        value = streak.get(key)
        if not _is_number(value):
            errors.append(f"streak.{key} must be a number")
        elif value < 0 or int(value) != value:
            errors.append(f"streak.{key} must be a non-negative integer")

    last = streak.get("lastQuizDate")
    if last is not None:
        if not isinstance(last, str):
            errors.append("streak.lastQuizDate must be a string or null")
        else:
            try:
                datetime.strptime(last, DATE_FORMAT)
            except ValueError:
                errors.append("streak.lastQuizDate must use the YYYY-MM-DD format")

    return errors


def _check_preferences(prefs: Dict[str, Any]) -> List[str]:
    errors: List[str] = []

    if not _is_number(prefs.get("questionsPerNote")):
        errors.append("preferences.questionsPerNote must be a number")
    if not isinstance(prefs.get("questionTypes"), list):
        errors.append("preferences.questionTypes must be an array")
    if not isinstance(prefs.get("difficulty"), str):
        errors.append("preferences.difficulty must be a string")
    if not isinstance(prefs.get("includeRelatedConcepts"), bool):
        errors.append("preferences.includeRelatedConcepts must be a boolean")
    if not isinstance(prefs.get("customPrompt"), str):
        errors.append("preferences.customPrompt must be a string")

    return errors
