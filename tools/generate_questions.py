"""
tools/generate_questions.py
===========================

生成待ちキュー（.quiz/pending.json）のノートから、
Google Gemini で問題を生成して .quiz/import.json に書き出すスクリプト。

主な役割:
- config.toml / config.json を読み込む (AppConfig / QuizConfigManager)
- pending.json のノートを優先度順に処理
- 生成された問題を import バッチとして import.json に追記
- --import 指定時はそのまま検証・取り込みまで行う（失敗時は 1 問も取り込まない）

前提:
- 環境変数 GEMINI_API_KEY に Google Gemini API キーが設定されていること
- pip で `google-generativeai` がインストールされていること
"""

from __future__ import annotations

import argparse
import json
import logging
from typing import Any, Dict, List, Optional

from vault_recall.config import AppConfig, load_app_config, setup_logging
from vault_recall.generator import ModelManager, QuotaExhaustedError, generate_import_batch
from vault_recall.importer import run_import
from vault_recall.pending import PendingQueue
from vault_recall.quiz_config import QuizConfigManager

logger = logging.getLogger("vault_recall.tools.generate_questions")


def read_existing_batch(cfg: AppConfig) -> Dict[str, Any]:
    """既存の import.json があればその questions に追記する。"""
    data = AppConfig.read_json(cfg.import_path)
    if isinstance(data, dict) and isinstance(data.get("questions"), list):
        return data
    return {"questions": []}


def generate_for_pending(
    cfg: AppConfig,
    limit: Optional[int] = None,
    dry_run: bool = False,
) -> int:
    """
    キューのノートごとに問題を生成し、生成できた問題数を返す。

    - 生成に成功したノートはキューから外す
    - 失敗したノートはログに残してキューに残し、次のノートへ進む
    - クォータ上限に達したら打ち切り、それまでの分を書き出してから例外を送出する
    - dry_run=True の場合は標準出力に表示するだけで、どのファイルも書き換えない
    """
    if not cfg.gemini_api_key:
        raise RuntimeError("環境変数 GEMINI_API_KEY が設定されていません。")

    cm = QuizConfigManager(cfg.config_path)
    cm.load()

    queue = PendingQueue(cfg.pending_path)
    queue.load()
    notes = queue.ordered()
    if limit is not None:
        notes = notes[:limit]
    if not notes:
        print("生成待ちのノートはありません。")
        return 0

    manager = ModelManager(cfg.gemini_api_key, preferred_model=cfg.preferred_model)
    batch = read_existing_batch(cfg)
    generated: List[Dict[str, Any]] = []
    failed = 0
    quota_error: Optional[QuotaExhaustedError] = None

    for note in notes:
        note_file = cfg.vault_dir / note["path"]
        if not note_file.exists():
            logger.warning("Skipping missing note %s", note["path"])
            continue

        try:
            note_batch = generate_import_batch(
                manager,
                note_path=note["path"],
                note_text=note_file.read_text(encoding="utf-8"),
                preferences=cm.preferences,
            )
        except QuotaExhaustedError as e:
            logger.warning("Stopping at %s: %s", note["path"], e)
            quota_error = e
            break
        except (ValueError, RuntimeError) as e:
            logger.warning("Generation failed for %s, keeping it queued: %s", note["path"], e)
            failed += 1
            continue

        generated.extend(note_batch["questions"])
        if not dry_run:
            queue.remove_note(note["path"])

    if dry_run:
        print(f"[DRY RUN] {len(generated)}問生成:")
        for q in generated:
            print(json.dumps(q, ensure_ascii=False))
        if quota_error is not None:
            raise quota_error
        return len(generated)

    if generated:
        batch["questions"].extend(generated)
        AppConfig.write_json(cfg.import_path, batch)
        queue.save()
        print(f"{len(generated)}問を {cfg.import_path} に書き出しました。")
    else:
        print("新規問題は生成されませんでした。")
    if failed:
        print(f"{failed} 件のノートは生成に失敗したためキューに残しました。")

    if quota_error is not None:
        raise quota_error
    return len(generated)


# -------------------------------------------------------------
#  CLI エントリーポイント
# -------------------------------------------------------------
def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="生成待ちノートから問題を生成して import.json に書き出す",
    )
    parser.add_argument("--config", default="config.toml", help="config.toml のパス")
    parser.add_argument("--limit", type=int, default=None, help="処理するノート数の上限")
    parser.add_argument("--model", type=str, default=None, help="優先的に使いたい Gemini モデル名（任意）")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="import.json には書き込まず、生成結果のみ標準出力に表示する",
    )
    parser.add_argument(
        "--import",
        dest="run_import",
        action="store_true",
        help="書き出し後にそのまま検証・取り込みを行う",
    )
    args = parser.parse_args(argv)

    cfg = load_app_config(args.config)
    setup_logging(cfg.log_level)
    if args.model:
        cfg.preferred_model = args.model
    cfg.ensure_quiz_folder()

    try:
        count = generate_for_pending(cfg, limit=args.limit, dry_run=args.dry_run)
    except QuotaExhaustedError as e:
        print(e)
        return 1

    if args.run_import and count and not args.dry_run:
        result = run_import(cfg)
        if not result.success:
            print("インポートに失敗しました（1 問も取り込まれていません）:")
            for err in result.errors:
                print(f"  - {err}")
            return 1
        print(f"{result.imported}問を取り込みました。")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
