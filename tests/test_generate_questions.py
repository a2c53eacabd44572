import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from tools.generate_questions import generate_for_pending
from vault_recall.config import AppConfig
from vault_recall.generator import QuotaExhaustedError
from vault_recall.pending import PendingQueue

from tests.fixtures import tf_question


def reply(text):
    return {"model": "models/gemini-2.0-flash", "text": text, "offline": False}


class GenerateForPendingTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.cfg = AppConfig(vault_dir=Path(self.tmp.name), gemini_api_key="k")
        self.cfg.ensure_quiz_folder()

        queue = PendingQueue(self.cfg.pending_path)
        for rel in ("School/A.md", "School/B.md"):
            note = self.cfg.vault_dir / rel
            note.parent.mkdir(parents=True, exist_ok=True)
            note.write_text("# note", encoding="utf-8")
            queue.add_note(rel)
        queue.save()

        patcher = mock.patch("tools.generate_questions.ModelManager")
        self.manager = patcher.start().return_value
        self.addCleanup(patcher.stop)

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def pending_paths(self):
        queue = PendingQueue(self.cfg.pending_path)
        queue.load()
        return [n["path"] for n in queue.notes]

    def import_ids(self):
        data = json.loads(self.cfg.import_path.read_text(encoding="utf-8"))
        return [q["id"] for q in data["questions"]]

    def test_failed_note_is_skipped_and_kept_queued(self) -> None:
        self.manager.generate.side_effect = [
            reply(json.dumps({"questions": [tf_question(id="q_ok0001")]})),
            reply("Sorry, I cannot"),
        ]

        with self.assertLogs("vault_recall.tools.generate_questions", level="WARNING"):
            count = generate_for_pending(self.cfg)

        self.assertEqual(count, 1)
        self.assertEqual(self.import_ids(), ["q_ok0001"])
        self.assertEqual(self.pending_paths(), ["School/B.md"])

    def test_offline_note_does_not_stop_the_run(self) -> None:
        self.manager.generate.side_effect = [
            {"offline": True},
            reply(json.dumps({"questions": [tf_question(id="q_ok0002")]})),
        ]

        self.assertEqual(generate_for_pending(self.cfg), 1)
        self.assertEqual(self.import_ids(), ["q_ok0002"])
        self.assertEqual(self.pending_paths(), ["School/A.md"])

    def test_quota_stops_but_keeps_generated_questions(self) -> None:
        self.manager.generate.side_effect = [
            reply(json.dumps({"questions": [tf_question(id="q_ok0003")]})),
            {"model": "models/gemini-2.0-flash", "error": "429", "offline": True},
        ]

        with self.assertRaises(QuotaExhaustedError):
            generate_for_pending(self.cfg)

        self.assertEqual(self.import_ids(), ["q_ok0003"])
        self.assertEqual(self.pending_paths(), ["School/B.md"])


if __name__ == "__main__":
    unittest.main()
