"""
ui.py
======================

Streamlit ベースの UI コンポーネントをまとめたモジュール。

責務:
- スマートフォンのブラウザでも読みやすいレイアウトとスタイル
- ヘッダー（アプリ名・連続日数・進捗・テーマ切替）
- 問題画面の描画（3 種類の問題それぞれの入力欄）
- 回答後のフィードバックと、クイズ終了時のサマリ

ここでは「見た目」と「ユーザー操作の入力」だけを扱い、
正誤判定や streak の更新などのロジックは app.py から vault_recall の各モジュールを呼ぶ。
"""

from __future__ import annotations

import html
from typing import Any, Dict, List, Optional

import streamlit as st

from .models import (
    BLANK_PLACEHOLDER,
    FillBlankQuestion,
    MultipleChoiceQuestion,
    Question,
    QuizAttempt,
    StreakState,
    TrueFalseQuestion,
)

# ----------------------------------------------------------------------
#  テーマ定義
# ----------------------------------------------------------------------


THEMES: Dict[str, Dict[str, str]] = {
    "light": {
        "bg": "#ffffff",
        "text": "#1c1c1e",
        "surface": "#f2f2f7",
        "surface_alt": "#ffffff",
        "border": "#d1d1d6",
        "primary": "#007aff",
        "correct": "#34c759",
        "incorrect": "#ff3b30",
    },
    "dark": {
        "bg": "#000000",
        "text": "#f5f5f7",
        "surface": "#1c1c1e",
        "surface_alt": "#2c2c2e",
        "border": "#3a3a3c",
        "primary": "#0a84ff",
        "correct": "#30d158",
        "incorrect": "#ff453a",
    },
}


# ----------------------------------------------------------------------
#  CSS 生成
# ----------------------------------------------------------------------
def _generate_css(theme: Dict[str, str]) -> str:
    """テーマに応じたグローバル CSS を生成する。"""

    return f"""
    <style>
    .vr-header {{
        display: flex;
        justify-content: space-between;
        align-items: center;
        gap: 0.5rem;
        margin-bottom: 0.5rem;
    }}

    .vr-app-title {{
        font-weight: 600;
        font-size: 1.15rem;
    }}

    .vr-badge {{
        padding: 0.1rem 0.5rem;
        border-radius: 999px;
        border: 1px solid {theme['border']};
        background: {theme['surface']};
        font-size: 0.8rem;
        white-space: nowrap;
    }}

    .vr-progress {{
        display: flex;
        align-items: center;
        gap: 0.5rem;
        font-size: 0.75rem;
    }}

    .vr-progress-bar {{
        flex: 1;
        height: 8px;
        background: {theme['border']}55;
        border-radius: 4px;
        overflow: hidden;
    }}

    .vr-progress-fill {{
        height: 8px;
        background: {theme['primary']};
        border-radius: 4px;
    }}

    .vr-question-box {{
        background: {theme['surface_alt']};
        color: {theme['text']};
        padding: 1rem;
        border-radius: 12px;
        border: 1px solid {theme['border']};
        font-size: 1.1rem;
        line-height: 1.6;
        margin: 0.5rem 0 0.75rem 0;
    }}

    .vr-tags {{
        display: flex;
        flex-wrap: wrap;
        gap: 0.25rem;
        font-size: 0.8rem;
        margin-bottom: 0.25rem;
    }}

    .vr-correct {{
        border-left: 4px solid {theme['correct']};
        padding-left: 0.6rem;
    }}

    .vr-incorrect {{
        border-left: 4px solid {theme['incorrect']};
        padding-left: 0.6rem;
    }}
    </style>
    """


# ----------------------------------------------------------------------
#  テーマ関連
# ----------------------------------------------------------------------
def _ensure_theme() -> str:
    """セッションに theme キーを用意し、現在のテーマキーを返す。"""
    theme_key = st.session_state.get("theme", "light")
    if theme_key not in THEMES:
        theme_key = "light"
    st.session_state["theme"] = theme_key
    return theme_key


def inject_css() -> None:
    st.markdown(_generate_css(THEMES[_ensure_theme()]), unsafe_allow_html=True)


def render_theme_selector() -> str:
    options = list(THEMES)
    theme_key = _ensure_theme()
    selected = st.radio(
        "テーマ",
        options,
        index=options.index(theme_key),
        horizontal=True,
        format_func=lambda k: k.capitalize(),
    )
    st.session_state["theme"] = selected
    return selected


# ----------------------------------------------------------------------
#  ヘッダー
# ----------------------------------------------------------------------
def render_header(app_name: str, streak: StreakState, progress: Optional[tuple] = None) -> None:
    """
    アプリ名と連続日数。progress=(回答済み, 全問) を渡すと進捗バーも出す。
    """
    inject_css()
    st.markdown(
        "<div class='vr-header'>"
        f"<div class='vr-app-title'>{html.escape(app_name)}</div>"
        f"<div><span class='vr-badge'>🔥 {streak.current} 日</span> "
        f"<span class='vr-badge'>🏆 {streak.longest} 日</span></div>"
        "</div>",
        unsafe_allow_html=True,
    )

    if progress is not None:
        done, total = progress
        percent = int(done * 100 / total) if total else 0
        st.markdown(
            "<div class='vr-progress'>"
            f"<div>{done}/{total}</div>"
            "<div class='vr-progress-bar'>"
            f"<div class='vr-progress-fill' style='width:{percent}%'></div>"
            "</div>"
            "</div>",
            unsafe_allow_html=True,
        )


# ----------------------------------------------------------------------
#  問題の描画
# ----------------------------------------------------------------------
def render_question(question: Question, options: Optional[List[str]] = None, key: str = "q") -> Dict[str, Any]:
    """
    問題文と入力欄を描画し、{"submitted": bool, "answer": Any} を返す。

    options:
        multiple_choice の表示順（呼び出し側でシャッフルして保持しておく）
    """
    tags = [question.source_note, question.difficulty]
    st.markdown(
        "<div class='vr-tags'>"
        + "".join(f"<span class='vr-badge'>{html.escape(t)}</span>" for t in tags)
        + "</div>",
        unsafe_allow_html=True,
    )

    text = html.escape(question.question)
    if isinstance(question, FillBlankQuestion):
        text = text.replace(BLANK_PLACEHOLDER, "<b>＿＿＿</b>")
    st.markdown(f"<div class='vr-question-box'>{text}</div>", unsafe_allow_html=True)

    answer: Any = None
    with st.form(key=f"vr_form_{key}"):
        if isinstance(question, MultipleChoiceQuestion):
            choices = options or [question.correct_answer, *question.incorrect_answers]
            answer = st.radio("答えを選んでください", choices, index=None)
        elif isinstance(question, TrueFalseQuestion):
            picked = st.radio("正しい？", ["True", "False"], index=None, horizontal=True)
            answer = None if picked is None else picked == "True"
        elif isinstance(question, FillBlankQuestion):
            answer = [
                st.text_input(f"空欄 {i}", key=f"vr_blank_{key}_{i}")
                for i in range(1, len(question.blanks) + 1)
            ]
        submitted = st.form_submit_button("回答する", use_container_width=True)

    return {"submitted": submitted and answer is not None, "answer": answer}


def render_feedback(question: Question, correct: bool) -> None:
    """回答直後の正誤と解説"""
    if correct:
        st.success("正解です！")
    else:
        st.warning(f"不正解です。正解: {format_correct_answer(question)}")

    with st.expander("解説", expanded=not correct):
        st.markdown(question.explanation)
        if question.related_concepts:
            st.caption("関連: " + ", ".join(question.related_concepts))


def format_correct_answer(question: Question) -> str:
    if isinstance(question, MultipleChoiceQuestion):
        return question.correct_answer
    if isinstance(question, TrueFalseQuestion):
        return "True" if question.correct_answer else "False"
    return " / ".join(question.blanks)


def render_summary(attempt: QuizAttempt, streak: StreakState) -> None:
    """クイズ終了時のサマリ"""
    correct = sum(1 for r in attempt.results if r.correct)
    st.markdown(f"## スコア: {attempt.score}%")
    st.write(f"{len(attempt.question_ids)} 問中 {correct} 問正解")
    st.write(f"🔥 連続 {streak.current} 日（最長 {streak.longest} 日）")
