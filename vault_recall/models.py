"""
models.py
======================

クイズで扱うデータ構造をまとめたモジュール。

- Question: 3 種類の問題（multiple_choice / fill_blank / true_false）の閉じた直和型
- QuestionStore: questions.json 全体
- QuizSession / QuizResult / QuizAttempt: クイズ実行時の状態と結果
- StreakState / Preferences / QuizConfig: config.json の中身
- ValidationResult / ImportResult: 検証・インポートの戻り値

JSON 上のキー名は camelCase（外部の問題生成プロセスとの互換のため）、
Python 側の属性名は snake_case とし、from_dict / to_dict で相互変換する。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

QUESTION_TYPES = ("multiple_choice", "fill_blank", "true_false")
DIFFICULTIES = ("easy", "medium", "hard")
PRIORITIES = ("low", "normal", "high")

BLANK_PLACEHOLDER = "___"
DATE_FORMAT = "%Y-%m-%d"


# ----------------------------------------------------------------------
#  Question
# ----------------------------------------------------------------------
@dataclass
class BaseQuestion:
    """全ての問題に共通するフィールド。"""

    id: str
    source_note: str
    created_at: Optional[str]
    difficulty: str
    question: str
    explanation: str
    related_concepts: Optional[List[str]]

    type = ""

    def _base_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "sourceNote": self.source_note,
        }
        # createdAt / relatedConcepts は元データにある場合のみ書き出す
        if self.created_at is not None:
            d["createdAt"] = self.created_at
        d["type"] = self.type
        d["difficulty"] = self.difficulty
        d["question"] = self.question
        return d

    def _finish_dict(self, d: Dict[str, Any]) -> Dict[str, Any]:
        d["explanation"] = self.explanation
        if self.related_concepts is not None:
            d["relatedConcepts"] = list(self.related_concepts)
        return d

    @staticmethod
    def _base_kwargs(data: Dict[str, Any]) -> Dict[str, Any]:
        related = data.get("relatedConcepts")
        return {
            "id": data["id"],
            "source_note": data["sourceNote"],
            "created_at": data.get("createdAt"),
            "difficulty": data["difficulty"],
            "question": data["question"],
            "explanation": data["explanation"],
            "related_concepts": list(related) if isinstance(related, list) else None,
        }


@dataclass
class MultipleChoiceQuestion(BaseQuestion):
    correct_answer: str = ""
    incorrect_answers: List[str] = field(default_factory=list)

    type = "multiple_choice"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MultipleChoiceQuestion":
        return cls(
            **cls._base_kwargs(data),
            correct_answer=data["correctAnswer"],
            incorrect_answers=list(data["incorrectAnswers"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = self._base_dict()
        d["correctAnswer"] = self.correct_answer
        d["incorrectAnswers"] = list(self.incorrect_answers)
        return self._finish_dict(d)


@dataclass
class FillBlankQuestion(BaseQuestion):
    blanks: List[str] = field(default_factory=list)

    type = "fill_blank"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FillBlankQuestion":
        return cls(**cls._base_kwargs(data), blanks=list(data["blanks"]))

    def to_dict(self) -> Dict[str, Any]:
        d = self._base_dict()
        d["blanks"] = list(self.blanks)
        return self._finish_dict(d)

    @property
    def blank_count(self) -> int:
        return self.question.count(BLANK_PLACEHOLDER)


@dataclass
class TrueFalseQuestion(BaseQuestion):
    correct_answer: bool = False

    type = "true_false"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrueFalseQuestion":
        return cls(**cls._base_kwargs(data), correct_answer=data["correctAnswer"])

    def to_dict(self) -> Dict[str, Any]:
        d = self._base_dict()
        d["correctAnswer"] = self.correct_answer
        return self._finish_dict(d)


Question = Union[MultipleChoiceQuestion, FillBlankQuestion, TrueFalseQuestion]

# 問題種別を増やすときはここに 1 行追加する
QUESTION_CLASSES = {
    "multiple_choice": MultipleChoiceQuestion,
    "fill_blank": FillBlankQuestion,
    "true_false": TrueFalseQuestion,
}


def question_from_dict(data: Dict[str, Any]) -> Question:
    """
    type タグで該当クラスを選び Question を生成する。
    検証済みの dict を渡す前提。未知の type は ValueError。
    """
    cls = QUESTION_CLASSES.get(data.get("type"))
    if cls is None:
        raise ValueError(f"Unknown question type: {data.get('type')!r}")
    return cls.from_dict(data)


# ----------------------------------------------------------------------
#  QuestionStore
# ----------------------------------------------------------------------
@dataclass
class QuestionStore:
    version: int = 1
    questions: List[Question] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "questions": [q.to_dict() for q in self.questions],
        }


# ----------------------------------------------------------------------
#  クイズ実行時
# ----------------------------------------------------------------------
@dataclass
class QuizResult:
    question_id: str
    correct: bool
    time_spent: int  # ミリ秒

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionId": self.question_id,
            "correct": self.correct,
            "timeSpent": self.time_spent,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuizResult":
        return cls(
            question_id=str(data.get("questionId", "")),
            correct=bool(data.get("correct", False)),
            time_spent=int(data.get("timeSpent", 0) or 0),
        )


@dataclass
class QuizSession:
    """
    1 回のクイズの進行状態。呼び出し側が保持し、QuizEngine だけが更新する。

    current_index == len(questions) で完了。
    """

    questions: List[Question]
    current_index: int = 0
    results: List[QuizResult] = field(default_factory=list)
    start_time: float = 0.0


@dataclass
class QuizAttempt:
    id: str
    date: str
    question_ids: List[str]
    results: List[QuizResult]
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "questionIds": list(self.question_ids),
            "results": [r.to_dict() for r in self.results],
            "score": self.score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuizAttempt":
        return cls(
            id=str(data.get("id", "")),
            date=str(data.get("date", "")),
            question_ids=[str(x) for x in data.get("questionIds", [])],
            results=[QuizResult.from_dict(r) for r in data.get("results", []) if isinstance(r, dict)],
            score=int(data.get("score", 0) or 0),
        )


# ----------------------------------------------------------------------
#  config.json
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class StreakState:
    """連続学習日数。Streak Engine の各関数は新しい StreakState を返す。"""

    current: int = 0
    longest: int = 0
    last_quiz_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": self.current,
            "longest": self.longest,
            "lastQuizDate": self.last_quiz_date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StreakState":
        current = max(int(data.get("current", 0) or 0), 0)
        longest = max(int(data.get("longest", 0) or 0), 0)
        last = data.get("lastQuizDate")
        if last is not None:
            try:
                datetime.strptime(str(last), DATE_FORMAT)
            except ValueError:
                logger.warning("Ignoring unparseable lastQuizDate %r", last)
                last = None
        return cls(current=current, longest=max(longest, current), last_quiz_date=last)


@dataclass
class Preferences:
    questions_per_note: int = 5
    question_types: List[str] = field(default_factory=lambda: list(QUESTION_TYPES))
    difficulty: str = "medium"
    include_related_concepts: bool = True
    custom_prompt: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionsPerNote": self.questions_per_note,
            "questionTypes": list(self.question_types),
            "difficulty": self.difficulty,
            "includeRelatedConcepts": self.include_related_concepts,
            "customPrompt": self.custom_prompt,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Preferences":
        default = cls()
        types = data.get("questionTypes", default.question_types)
        return cls(
            questions_per_note=int(data.get("questionsPerNote", default.questions_per_note)),
            question_types=[t for t in types if t in QUESTION_TYPES],
            difficulty=str(data.get("difficulty", default.difficulty)),
            include_related_concepts=bool(
                data.get("includeRelatedConcepts", default.include_related_concepts)
            ),
            custom_prompt=str(data.get("customPrompt", default.custom_prompt)),
        )


@dataclass
class QuizConfig:
    version: int = 1
    streak: StreakState = field(default_factory=StreakState)
    preferences: Preferences = field(default_factory=Preferences)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "streak": self.streak.to_dict(),
            "preferences": self.preferences.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuizConfig":
        return cls(
            version=int(data.get("version", 1)),
            streak=StreakState.from_dict(data.get("streak") or {}),
            preferences=Preferences.from_dict(data.get("preferences") or {}),
        )


# ----------------------------------------------------------------------
#  戻り値
# ----------------------------------------------------------------------
@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class ImportResult:
    success: bool
    imported: int
    errors: List[str] = field(default_factory=list)
    # 成功時のみ、取り込み後のストア（保存は呼び出し側）
    store: Optional[QuestionStore] = None
