"""
generator.py
======================

Google Gemini API で、ノートから import.json 用の問題を生成するモジュール。

要件:
- 利用可能なモデル一覧を API から動的に取得
- 最新モデルを自動選択 (名前のバージョン番号・pro/flash で優先度判定)
- モデル呼び出しに失敗した場合は順番にフェールオーバー
- 生成結果は import バッチ ({"questions": [...]}) に整形するだけで、
  ストアへの書き込みは importer.py の検証を必ず通す
"""

from __future__ import annotations

import json
import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import google.generativeai as genai
from google.api_core.exceptions import GoogleAPIError, ResourceExhausted

from .models import Preferences
from .prompt import build_gemini_prompt
from .quiz import generate_id

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


class QuotaExhaustedError(RuntimeError):
    """Gemini のクォータ上限（429）。他のノートを続けても同じ結果になる。"""


class ModelManager:
    """
    Gemini モデルの管理クラス。

    主な機能:
    - list_models(): 利用可能モデル一覧を取得
    - select_best_model(): 最新モデルを自動判定
    - generate(): モデル呼び出し (フェールオーバー付き)
    """

    def __init__(self, api_key: str, preferred_model: Optional[str] = None):
        self.api_key = api_key
        self.preferred_model = preferred_model
        genai.configure(api_key=api_key)
        self._cached_models: List[str] = []
        self._last_selected_model: Optional[str] = None

    # ------------------------------------------------------------
    # モデル一覧取得
    # ------------------------------------------------------------
    def list_models(self) -> List[str]:
        """
        generateContent に対応したモデル名の一覧。
        取得に失敗した場合は前回のキャッシュを返す。
        """
        try:
            response = genai.list_models()
        except Exception:
            # 認証エラーなど GoogleAPIError 以外でもキャッシュで続行する
            logger.warning("Could not list Gemini models", exc_info=True)
            return list(self._cached_models)

        models = [
            m.name for m in response
            if "generateContent" in getattr(m, "supported_generation_methods", [])
        ]
        if models:
            self._cached_models = models
        return models

    # ------------------------------------------------------------
    # 最新モデルの自動選択
    # ------------------------------------------------------------
    @staticmethod
    def _score(model_name: str) -> tuple:
        """例: models/gemini-2.0-pro → (2, 0, 1)"""
        match = re.search(r"gemini-(\d+)\.(\d+)", model_name)
        major, minor = (int(match.group(1)), int(match.group(2))) if match else (0, 0)
        priority = 1 if "pro" in model_name else 0
        return (major, minor, priority)

    def order_models(self, models: Iterable[str]) -> List[str]:
        """優先モデル → 新しい順"""
        ordered = sorted(models, key=self._score, reverse=True)
        if self.preferred_model and self.preferred_model in ordered:
            ordered.remove(self.preferred_model)
            ordered.insert(0, self.preferred_model)
        return ordered

    def select_best_model(self) -> Optional[str]:
        ordered = self.order_models(self.list_models())
        if not ordered:
            return None
        self._last_selected_model = ordered[0]
        return ordered[0]

    # ------------------------------------------------------------
    # generate() — フェールオーバーつき生成
    # ------------------------------------------------------------
    def generate(self, prompt: str) -> Dict[str, Any]:
        """
        新しいモデルから順に試す。
        すべてのモデル失敗時は {"offline": True} を返す。
        """
        for model_name in self.order_models(self.list_models()):
            try:
                model = genai.GenerativeModel(model_name)
                response = model.generate_content(prompt)
                text = response.text
                self._last_selected_model = model_name
                return {"model": model_name, "text": text, "offline": False}
            except ResourceExhausted:
                # クォータ上限（429）→ 他のモデルも同じなので打ち切る
                logger.warning("Gemini quota exhausted on %s", model_name)
                return {"model": model_name, "error": "429", "offline": True}
            except GoogleAPIError:
                logger.warning("Gemini call failed on %s, trying next model", model_name, exc_info=True)
                time.sleep(0.3)
                continue
            except ValueError:
                # 安全フィルタでブロックされた応答は response.text が ValueError になる
                logger.warning("Gemini returned no text on %s, trying next model", model_name, exc_info=True)
                continue

        return {"offline": True}


# ----------------------------------------------------------------------
#  応答 → import バッチ
# ----------------------------------------------------------------------
def parse_model_output(text: str) -> Dict[str, Any]:
    """
    モデルの応答テキストを {"questions": [...]} に変換する。
    コードフェンス付きでも読めるようにする。JSON でなければ ValueError。
    """
    cleaned = _FENCE_RE.sub("", text.strip())
    data = json.loads(cleaned)

    if isinstance(data, list):
        data = {"questions": data}
    if not isinstance(data, dict) or not isinstance(data.get("questions"), list):
        raise ValueError('Model output must be a JSON object with a "questions" array')
    return data


def fill_generated_fields(batch: Dict[str, Any], note_path: str) -> Dict[str, Any]:
    """
    ノート由来で決まるフィールドだけ補う（sourceNote / createdAt / id）。
    それ以外の中身には手を入れない。正しさの判定は import 時の検証に任せる。
    """
    created_at = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    for q in batch["questions"]:
        if not isinstance(q, dict):
            continue
        q["sourceNote"] = note_path
        q.setdefault("createdAt", created_at)
        if not q.get("id"):
            q["id"] = generate_id("q_", 6)
    return batch


def generate_import_batch(
    manager: ModelManager,
    note_path: str,
    note_text: str,
    preferences: Preferences,
) -> Dict[str, Any]:
    """
    1 ノート分の問題を生成して import バッチを返す。
    全モデルで失敗した場合は RuntimeError。
    """
    prompt = build_gemini_prompt(note_path, note_text, preferences)
    response = manager.generate(prompt)

    if response.get("offline"):
        if response.get("error") == "429":
            raise QuotaExhaustedError("Gemini のクォータ上限に達しました。時間をおいて再実行してください。")
        raise RuntimeError("利用可能な Gemini モデルで問題を生成できませんでした。")

    batch = parse_model_output(response.get("text", ""))
    logger.info(
        "Generated %d question(s) for %s with %s",
        len(batch["questions"]), note_path, response.get("model"),
    )
    return fill_generated_fields(batch, note_path)
