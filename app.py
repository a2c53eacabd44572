"""
app.py
======================

Vault Recall（ノートから作る想起練習クイズ）の Streamlit エントリーポイント。

特徴:
- ホーム画面 + メニュー構成
- クイズ / インポート / 生成待ちキュー / 学習統計 / 設定 / 使い方
- クイズ範囲は「全問題」「ノート単位」「フォルダ単位」から選択
- 1 日 1 回以上解くと連続日数（streak）が伸びる

前提:
- Vault のパスは config.toml の [vault].path または環境変数 VAULT_RECALL_VAULT
- 問題は .quiz/import.json に置き、インポートページから取り込む
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional

import streamlit as st

from vault_recall.config import AppConfig, load_app_config, setup_logging
from vault_recall.history import HistoryManager
from vault_recall.importer import has_pending_import, run_import
from vault_recall.models import DIFFICULTIES, QUESTION_TYPES, MultipleChoiceQuestion, Preferences, Question
from vault_recall.pending import PendingQueue
from vault_recall.prompt import build_generation_prompt
from vault_recall.question_bank import (
    get_questions_by_folder,
    get_questions_by_source,
    list_source_folders,
    list_source_notes,
    load_store,
)
from vault_recall.quiz import QuizEngine
from vault_recall.quiz_config import QuizConfigManager
from vault_recall.streak import check_and_update_streak, increment_streak, reset_streak
from vault_recall.ui import (
    render_feedback,
    render_header,
    render_question,
    render_summary,
    render_theme_selector,
)

logger = logging.getLogger("vault_recall.app")


# ----------------------------------------------------------------------
#  設定 / マネージャーのラッパー
# ----------------------------------------------------------------------
def get_app_config() -> AppConfig:
    """config.toml を 1 回だけ読み込み、.quiz フォルダを用意する。"""
    if "app_config" not in st.session_state:
        cfg = load_app_config()
        setup_logging(cfg.log_level)
        cfg.ensure_quiz_folder()
        st.session_state["app_config"] = cfg
    return st.session_state["app_config"]


def get_config_manager() -> QuizConfigManager:
    """
    config.json を読み込む。起動時に 1 回だけ streak の途切れをチェックする。
    """
    if "config_manager" not in st.session_state:
        cfg = get_app_config()
        cm = QuizConfigManager(cfg.config_path)
        cm.load()
        checked = check_and_update_streak(cm.streak)
        if checked != cm.streak:
            cm.set_streak(checked)
            cm.save()
        st.session_state["config_manager"] = cm
    return st.session_state["config_manager"]


def get_history() -> HistoryManager:
    if "history" not in st.session_state:
        hm = HistoryManager(get_app_config().history_path)
        hm.load()
        st.session_state["history"] = hm
    return st.session_state["history"]


def get_engine() -> QuizEngine:
    if "engine" not in st.session_state:
        st.session_state["engine"] = QuizEngine()
    return st.session_state["engine"]


def get_all_questions() -> List[Question]:
    return load_store(get_app_config().questions_path).questions


def set_page(page: str) -> None:
    st.session_state["page"] = page


def get_page() -> str:
    return st.session_state.get("page", "home")


def home_button() -> None:
    if st.button("🏠 ホームに戻る", use_container_width=True):
        set_page("home")
        st.rerun()


# ----------------------------------------------------------------------
#  ページ: ホーム
# ----------------------------------------------------------------------
def render_home_page() -> None:
    cfg = get_app_config()
    cm = get_config_manager()
    render_header(cfg.app_name, cm.streak)

    questions = get_all_questions()
    pending = PendingQueue(cfg.pending_path)
    pending.load()
    summary = get_history().get_summary()

    st.write(f"- 問題数: **{len(questions)} 問**")
    st.write(f"- 生成待ちノート: **{len(pending.notes)} 件**")
    st.write(f"- 受験回数: **{summary['attempts']} 回**（平均 {summary['average_score']}%）")

    if has_pending_import(cfg):
        st.info("import.json があります。インポートページで取り込めます。")

    for err in cm.load_errors:
        st.warning(f"config.json: {err}")

    st.write("---")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("🚀 クイズを始める", use_container_width=True):
            set_page("quiz_setup")
            st.rerun()
    with col2:
        if st.button("📥 問題をインポート", use_container_width=True):
            set_page("import")
            st.rerun()

    col3, col4 = st.columns(2)
    with col3:
        if st.button("📝 生成待ちキュー", use_container_width=True):
            set_page("queue")
            st.rerun()
    with col4:
        if st.button("📊 学習統計を見る", use_container_width=True):
            set_page("stats")
            st.rerun()

    col5, col6 = st.columns(2)
    with col5:
        if st.button("⚙️ 設定", use_container_width=True):
            set_page("settings")
            st.rerun()
    with col6:
        if st.button("❓ 使い方", use_container_width=True):
            set_page("help")
            st.rerun()


# ----------------------------------------------------------------------
#  ページ: クイズの範囲選択
# ----------------------------------------------------------------------
def render_quiz_setup_page() -> None:
    st.markdown("## 🚀 クイズの範囲")

    questions = get_all_questions()
    if not questions:
        st.info("問題がまだありません。ノートをキューに追加し、問題を生成してインポートしてください。")
        home_button()
        return

    scope = st.radio("範囲", ["すべて", "ノート", "フォルダ"], horizontal=True)
    selected: List[Question] = questions

    if scope == "ノート":
        note = st.selectbox("ノート", list_source_notes(questions))
        selected = get_questions_by_source(questions, note) if note else []
    elif scope == "フォルダ":
        folders = list_source_folders(questions)
        if not folders:
            st.info("フォルダに入ったノートがありません。")
            selected = []
        else:
            folder = st.selectbox("フォルダ", folders)
            selected = get_questions_by_folder(questions, folder)

    st.write(f"対象: **{len(selected)} 問**")
    count: Optional[int] = None
    if len(selected) > 1:
        count = st.slider("出題数", 1, len(selected), min(10, len(selected)))

    if st.button("開始", use_container_width=True, disabled=not selected):
        session = get_engine().start_quiz(selected, count)
        st.session_state["quiz_session"] = session
        st.session_state.pop("last_feedback", None)
        st.session_state.pop("attempt", None)
        st.session_state["question_started_at"] = time.time()
        set_page("quiz")
        st.rerun()

    home_button()


# ----------------------------------------------------------------------
#  ページ: クイズ
# ----------------------------------------------------------------------
def _options_for(question: MultipleChoiceQuestion, index: int) -> List[str]:
    """選択肢の並びは 1 問につき 1 回だけシャッフルして保持する。"""
    key = f"options_{index}_{question.id}"
    if key not in st.session_state:
        st.session_state[key] = get_engine().get_shuffled_options(question)
    return st.session_state[key]


def finish_quiz() -> None:
    """採点 → 履歴保存 → streak 更新（同じ読み込み・保存サイクル内で check → increment）"""
    engine = get_engine()
    session = st.session_state["quiz_session"]
    attempt = engine.finish_quiz(session)
    get_history().record_attempt(attempt)

    cm = get_config_manager()
    cm.load()
    state = check_and_update_streak(cm.streak)
    state = increment_streak(state)
    cm.set_streak(state)
    cm.save()
    logger.info("Quiz finished: score %d, streak %d", attempt.score, state.current)

    st.session_state["attempt"] = attempt


def render_quiz_page() -> None:
    cfg = get_app_config()
    engine = get_engine()
    session = st.session_state.get("quiz_session")
    if session is None:
        set_page("quiz_setup")
        st.rerun()
        return

    cm = get_config_manager()
    render_header(cfg.app_name, cm.streak, progress=(session.current_index, len(session.questions)))

    feedback = st.session_state.get("last_feedback")
    if feedback is not None:
        question, correct = feedback
        render_feedback(question, correct)
        label = "結果を見る ▶" if engine.is_quiz_complete(session) else "次の問題 ▶"
        if st.button(label, use_container_width=True):
            st.session_state.pop("last_feedback", None)
            st.session_state["question_started_at"] = time.time()
            if engine.is_quiz_complete(session) and "attempt" not in st.session_state:
                finish_quiz()
            st.rerun()
        return

    if engine.is_quiz_complete(session):
        attempt = st.session_state.get("attempt")
        if attempt is None:
            finish_quiz()
            attempt = st.session_state["attempt"]
        render_summary(attempt, get_config_manager().streak)
        if st.button("もう一度", use_container_width=True):
            set_page("quiz_setup")
            st.rerun()
        home_button()
        return

    question = engine.get_current_question(session)
    options = _options_for(question, session.current_index) if isinstance(question, MultipleChoiceQuestion) else None
    result = render_question(question, options=options, key=f"{session.current_index}")

    if result["submitted"]:
        started = st.session_state.get("question_started_at", time.time())
        spent_ms = int((time.time() - started) * 1000)
        correct = engine.submit_answer(session, result["answer"], spent_ms)
        st.session_state["last_feedback"] = (question, correct)
        st.rerun()

    if st.button("中断してホームへ", use_container_width=True):
        st.session_state.pop("quiz_session", None)
        set_page("home")
        st.rerun()


# ----------------------------------------------------------------------
#  ページ: インポート
# ----------------------------------------------------------------------
def render_import_page() -> None:
    cfg = get_app_config()
    st.markdown("## 📥 問題をインポート")
    st.write(f"`{cfg.import_path}` の問題を検証し、すべて正しければ取り込みます。")

    if not has_pending_import(cfg):
        st.info("import.json がありません。")
    elif st.button("インポート実行", use_container_width=True):
        result = run_import(cfg)
        if result.success:
            st.success(f"{result.imported} 問を取り込みました。")
        else:
            st.error("インポートに失敗しました。1 問も取り込まれていません。")
            for err in result.errors:
                st.write(f"- {err}")

    home_button()


# ----------------------------------------------------------------------
#  ページ: 生成待ちキュー
# ----------------------------------------------------------------------
def render_queue_page() -> None:
    cfg = get_app_config()
    cm = get_config_manager()
    queue = PendingQueue(cfg.pending_path)
    queue.load()

    st.markdown("## 📝 生成待ちキュー")

    with st.form("vr_add_note"):
        path = st.text_input("ノートまたはフォルダのパス（Vault ルートからの相対パス）")
        priority = st.selectbox("優先度", ["normal", "high", "low"])
        if st.form_submit_button("追加") and path:
            if (cfg.vault_dir / path).is_dir():
                added = queue.add_folder(cfg.vault_dir, path)
                st.success(f"{added} 件のノートを追加しました。")
            elif queue.add_note(path, priority):
                st.success("追加しました。")
            else:
                st.info("既にキューにあります。")
            queue.save()

    if not queue.notes:
        st.info("生成待ちのノートはありません。")
    for note in queue.ordered():
        with st.expander(f"{note['path']}（{note.get('priority', 'normal')}）"):
            st.code(build_generation_prompt(note["path"], cm.preferences), language="text")
            if st.button("キューから外す", key=f"vr_remove_{note['path']}"):
                queue.remove_note(note["path"])
                queue.save()
                st.rerun()

    if queue.notes and st.button("キューを空にする"):
        queue.clear()
        queue.save()
        st.rerun()

    home_button()


# ----------------------------------------------------------------------
#  ページ: 学習統計
# ----------------------------------------------------------------------
def render_stats_page() -> None:
    st.markdown("## 📊 学習統計")

    cm = get_config_manager()
    history = get_history()
    summary = history.get_summary()

    st.write(f"- 連続日数: **{cm.streak.current} 日**（最長 {cm.streak.longest} 日）")
    st.write(f"- 受験回数: **{summary['attempts']} 回**")
    st.write(f"- 平均スコア: **{summary['average_score']}%** / 最高 {summary['best_score']}%")
    st.write(f"- 累計解答数: **{summary['questions_answered']} 問**")

    df = history.to_dataframe()
    if df.empty:
        st.info("まだ受験履歴はありません。")
    else:
        st.line_chart(df.set_index("date")["score"])
        st.dataframe(df.sort_values("date", ascending=False), use_container_width=True)

    weak = history.get_weak_question_ids()
    if weak:
        by_id = {q.id: q for q in get_all_questions()}
        st.markdown("### 苦手な問題")
        for qid in weak[:10]:
            q = by_id.get(qid)
            if q is not None:
                st.write(f"- [{q.source_note}] {q.question[:60]}")

    home_button()


# ----------------------------------------------------------------------
#  ページ: 設定
# ----------------------------------------------------------------------
def render_settings_page() -> None:
    st.markdown("## ⚙️ 設定")

    cm = get_config_manager()
    prefs = cm.preferences

    with st.form("vr_preferences"):
        per_note = st.number_input("1 ノートあたりの問題数", 1, 20, value=prefs.questions_per_note)
        types = st.multiselect("問題の種類", list(QUESTION_TYPES), default=prefs.question_types)
        difficulty = st.selectbox(
            "難易度",
            list(DIFFICULTIES),
            index=DIFFICULTIES.index(prefs.difficulty) if prefs.difficulty in DIFFICULTIES else 1,
        )
        related = st.checkbox("関連する概念も出題する", value=prefs.include_related_concepts)
        custom = st.text_area("追加の指示", value=prefs.custom_prompt)

        if st.form_submit_button("保存"):
            cm.set_preferences(Preferences(
                questions_per_note=int(per_note),
                question_types=types or list(QUESTION_TYPES),
                difficulty=difficulty,
                include_related_concepts=related,
                custom_prompt=custom,
            ))
            cm.save()
            st.success("保存しました。")

    st.write("---")
    st.markdown("### テーマ")
    render_theme_selector()

    st.write("---")
    st.markdown("### 連続日数")
    st.write(f"現在 {cm.streak.current} 日 / 最長 {cm.streak.longest} 日")
    if st.button("連続日数をリセット"):
        cm.set_streak(reset_streak(cm.streak))
        cm.save()
        st.rerun()

    home_button()


# ----------------------------------------------------------------------
#  ページ: 使い方
# ----------------------------------------------------------------------
def render_help_page() -> None:
    st.markdown("## ❓ 使い方")

    st.markdown(
        """
1. 「📝 生成待ちキュー」にノートやフォルダを追加します。
2. 表示される依頼文を問題生成ツールに渡すか、`tools/generate_questions.py` で Gemini に生成させます。
3. 生成された問題は `.quiz/import.json` に置かれます。
4. 「📥 問題をインポート」で検証します。1 問でも形式が違えば何も取り込まれず、問題番号つきのエラーが表示されます。
5. 「🚀 クイズを始める」で範囲を選んで解きます。
6. 1 日 1 回以上クイズを終えると連続日数が伸びます。1 日でも空くと 0 に戻ります（最長記録は残ります）。
        """
    )

    home_button()


# ----------------------------------------------------------------------
#  メイン
# ----------------------------------------------------------------------
def main() -> None:
    st.set_page_config(
        page_title="Vault Recall",
        page_icon="🧠",
        layout="centered",
    )

    get_app_config()

    page = get_page()

    if page == "quiz_setup":
        render_quiz_setup_page()
    elif page == "quiz":
        render_quiz_page()
    elif page == "import":
        render_import_page()
    elif page == "queue":
        render_queue_page()
    elif page == "stats":
        render_stats_page()
    elif page == "settings":
        render_settings_page()
    elif page == "help":
        render_help_page()
    else:
        set_page("home")
        render_home_page()


if __name__ == "__main__":
    main()
