"""
streak.py
======================

連続学習日数（streak）の状態遷移。

- 比較はすべてローカル日付（YYYY-MM-DD）単位。時刻は見ない
- 各関数は StreakState を受け取り、新しい StreakState を返す（保存は呼び出し側）
- どの操作の後でも longest >= current

1 回の「読み込み → 更新 → 保存」の中で、
check_and_update_streak() → increment_streak() の順に呼ぶこと。
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Union

from .models import DATE_FORMAT, StreakState

logger = logging.getLogger(__name__)

DateLike = Union[date, str]


def today_str() -> str:
    """ローカル日付の今日を YYYY-MM-DD で返す。"""
    return date.today().strftime(DATE_FORMAT)


def _to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value, DATE_FORMAT).date()


def days_between(earlier: DateLike, later: DateLike) -> int:
    """暦日の差（later - earlier）。同日なら 0、翌日なら 1。"""
    return (_to_date(later) - _to_date(earlier)).days


def check_and_update_streak(state: StreakState, today: Optional[DateLike] = None) -> StreakState:
    """
    1 日以上空いていたら current を 0 に戻す。longest はそのまま。

    - last_quiz_date が無い: 何もしない
    - 差が 0 または 1 日: 何もしない
    - 差が 2 日以上: current = 0
    """
    if not state.last_quiz_date:
        return state

    gap = days_between(state.last_quiz_date, today if today is not None else date.today())
    if gap > 1:
        logger.info("Streak reset after %d day gap (was %d)", gap, state.current)
        return replace(state, current=0)
    return state


def increment_streak(state: StreakState, today: Optional[DateLike] = None) -> StreakState:
    """
    クイズ完了時に呼ぶ。同じ日に 2 回目以降は何もしない。

    空き日数の判定はしない（先に check_and_update_streak() を通すこと）。
    """
    day = _to_date(today if today is not None else date.today()).strftime(DATE_FORMAT)

    if state.last_quiz_date == day:
        return state

    current = state.current + 1
    return StreakState(
        current=current,
        longest=max(state.longest, current),
        last_quiz_date=day,
    )


def reset_streak(state: StreakState) -> StreakState:
    """current と last_quiz_date を消す。longest（自己ベスト）は残す。"""
    return replace(state, current=0, last_quiz_date=None)
