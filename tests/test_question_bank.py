import json
import tempfile
import unittest
from pathlib import Path

from vault_recall.models import QuestionStore, question_from_dict
from vault_recall.question_bank import (
    get_questions_by_folder,
    get_questions_by_source,
    list_source_folders,
    list_source_notes,
    load_store,
    save_store,
)

from tests.fixtures import fb_question, mc_question, tf_question


class LoadSaveTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / ".quiz" / "questions.json"

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_missing_file_is_empty_store(self) -> None:
        store = load_store(self.path)
        self.assertEqual(store.version, 1)
        self.assertEqual(store.questions, [])

    def test_save_then_load(self) -> None:
        store = QuestionStore(questions=[question_from_dict(mc_question()), question_from_dict(fb_question())])
        save_store(store, self.path)
        loaded = load_store(self.path)
        self.assertEqual(loaded, store)

    def test_invalid_entries_are_skipped(self) -> None:
        self.path.parent.mkdir(parents=True)
        self.path.write_text(
            json.dumps({"version": 1, "questions": [tf_question(correctAnswer="yes"), mc_question()]}),
            encoding="utf-8",
        )
        with self.assertLogs("vault_recall.question_bank", level="WARNING"):
            store = load_store(self.path)
        self.assertEqual([q.id for q in store.questions], ["q_mc0001"])

    def test_corrupted_file_is_empty_store(self) -> None:
        self.path.parent.mkdir(parents=True)
        self.path.write_text("{", encoding="utf-8")
        self.assertEqual(load_store(self.path).questions, [])


class FilterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.questions = [
            question_from_dict(mc_question(id="q_1", sourceNote="School/Datacenters/Hardware.md")),
            question_from_dict(fb_question(id="q_2", sourceNote="School/Algorithms/Graphs.md")),
            question_from_dict(tf_question(id="q_3", sourceNote="Schoolwork/Todo.md")),
            question_from_dict(tf_question(id="q_4", sourceNote="School/Datacenters/Hardware.md")),
        ]

    def test_by_source_is_exact(self) -> None:
        found = get_questions_by_source(self.questions, "School/Datacenters/Hardware.md")
        self.assertEqual([q.id for q in found], ["q_1", "q_4"])
        self.assertEqual(get_questions_by_source(self.questions, "School"), [])

    def test_by_folder_is_recursive_and_respects_boundaries(self) -> None:
        self.assertEqual([q.id for q in get_questions_by_folder(self.questions, "School")], ["q_1", "q_2", "q_4"])
        self.assertEqual([q.id for q in get_questions_by_folder(self.questions, "School/Algorithms/")], ["q_2"])

    def test_source_notes_and_folders(self) -> None:
        self.assertEqual(
            list_source_notes(self.questions),
            ["School/Datacenters/Hardware.md", "School/Algorithms/Graphs.md", "Schoolwork/Todo.md"],
        )
        self.assertEqual(
            list_source_folders(self.questions),
            ["School", "School/Algorithms", "School/Datacenters", "Schoolwork"],
        )


if __name__ == "__main__":
    unittest.main()
