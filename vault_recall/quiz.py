"""
quiz.py
======================

クイズ 1 回分の進行（出題順・回答判定・採点）を担当するモジュール。

状態遷移:
    in-progress (0 <= current_index < len(questions))
        └─ submit_answer() ごとに current_index を 1 進める
    complete    (current_index == len(questions))  ※ 戻らない

シャッフルに使う乱数は QuizEngine に注入できる（テストでは seed 固定の Random を渡す）。
永続化は行わない。finish_quiz() の結果を履歴に保存するのは呼び出し側。
"""

from __future__ import annotations

import logging
import math
import random
import time
import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence, TypeVar

from .models import (
    FillBlankQuestion,
    MultipleChoiceQuestion,
    Question,
    QuizAttempt,
    QuizResult,
    QuizSession,
    TrueFalseQuestion,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class QuizEngine:
    """
    クイズセッションの操作をまとめたクラス。

    - start_quiz(): 出題順をシャッフルしてセッション生成
    - submit_answer(): 現在の問題を判定して次へ
    - finish_quiz(): スコアを計算して QuizAttempt を返す
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng if rng is not None else random.Random()

    # ------------------------------------------------------------
    # シャッフル
    # ------------------------------------------------------------
    def shuffled_copy(self, items: Sequence[T]) -> List[T]:
        """Fisher–Yates で並べ替えたコピーを返す（元の並びは変えない）。"""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.rng.randint(0, i)
            result[i], result[j] = result[j], result[i]
        return result

    # ------------------------------------------------------------
    # セッション
    # ------------------------------------------------------------
    def start_quiz(self, questions: Sequence[Question], count: Optional[int] = None) -> QuizSession:
        """
        questions をシャッフルしてセッションを作る。

        count が正で、かつ問題数より小さいときだけ先頭 count 問に絞る。
        それ以外（None / 0 以下 / 問題数以上）はシャッフル済みの全問を使う。
        """
        ordered = self.shuffled_copy(questions)
        if count is not None and 0 < count < len(ordered):
            ordered = ordered[:count]

        logger.debug("Started quiz with %d of %d question(s)", len(ordered), len(questions))
        return QuizSession(questions=ordered, start_time=time.time())

    @staticmethod
    def get_current_question(session: QuizSession) -> Optional[Question]:
        if session.current_index >= len(session.questions):
            return None
        return session.questions[session.current_index]

    @staticmethod
    def is_quiz_complete(session: QuizSession) -> bool:
        return session.current_index >= len(session.questions)

    def get_shuffled_options(self, question: MultipleChoiceQuestion) -> List[str]:
        """正解 1 + 不正解 3 を毎回新しい順序で返す（セッションには影響しない）。"""
        return self.shuffled_copy([question.correct_answer, *question.incorrect_answers])

    # ------------------------------------------------------------
    # 判定
    # ------------------------------------------------------------
    @staticmethod
    def check_answer(question: Question, answer: Any) -> bool:
        """
        問題種別ごとの正誤判定。

        - multiple_choice: 文字列の完全一致（正規化なし）
        - true_false: bool の完全一致（1 や "true" は不正解）
        - fill_blank: 同じ長さのリストで、各要素を前後空白除去 + 大文字小文字無視で比較。
          空の回答は常に不正解。1 つでも違えば不正解（部分点なし）
        """
        if isinstance(question, MultipleChoiceQuestion):
            return isinstance(answer, str) and answer == question.correct_answer

        if isinstance(question, TrueFalseQuestion):
            return isinstance(answer, bool) and answer == question.correct_answer

        if isinstance(question, FillBlankQuestion):
            if not isinstance(answer, (list, tuple)):
                return False
            if len(answer) != len(question.blanks):
                return False
            return all(
                isinstance(given, str)
                and given.strip() != ""
                and given.strip().lower() == expected.strip().lower()
                for given, expected in zip(answer, question.blanks)
            )

        raise TypeError(f"Unsupported question type: {type(question).__name__}")

    def submit_answer(self, session: QuizSession, answer: Any, time_spent: int) -> bool:
        """
        現在の問題に回答する。結果を追加して current_index を進める。
        完了済みのセッションでは何もせず False を返す。
        """
        question = self.get_current_question(session)
        if question is None:
            logger.debug("submit_answer called on a completed session")
            return False

        correct = self.check_answer(question, answer)
        session.results.append(
            QuizResult(question_id=question.id, correct=correct, time_spent=int(time_spent))
        )
        session.current_index += 1
        return correct

    # ------------------------------------------------------------
    # 終了
    # ------------------------------------------------------------
    @staticmethod
    def finish_quiz(session: QuizSession) -> QuizAttempt:
        """
        スコア（0〜100 の整数、四捨五入）を計算し QuizAttempt を作る。
        0 問のクイズはスコア 0。履歴への保存は呼び出し側で行う。
        """
        correct_count = sum(1 for r in session.results if r.correct)
        total = len(session.questions)
        score = int(math.floor(100 * correct_count / total + 0.5)) if total > 0 else 0

        return QuizAttempt(
            id=generate_id("a_"),
            date=_now_iso(),
            question_ids=[q.id for q in session.questions],
            results=list(session.results),
            score=score,
        )


# ----------------------------------------------------------------------
# ユーティリティ
# ----------------------------------------------------------------------
def generate_id(prefix: str = "", length: int = 8) -> str:
    """prefix + ランダム英数字（例: a_3f9c1b2e）"""
    return prefix + uuid.uuid4().hex[:length]


def _now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
