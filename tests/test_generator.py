import json
import unittest
from types import SimpleNamespace
from unittest import mock

from google.api_core.exceptions import ResourceExhausted, ServiceUnavailable

from vault_recall.generator import (
    ModelManager,
    QuotaExhaustedError,
    fill_generated_fields,
    generate_import_batch,
    parse_model_output,
)
from vault_recall.models import Preferences
from vault_recall.validation import validate_import_file

from tests.fixtures import tf_question


def fake_model(name, methods=("generateContent",)):
    return SimpleNamespace(name=name, supported_generation_methods=list(methods))


class ModelManagerTests(unittest.TestCase):
    def setUp(self) -> None:
        patcher = mock.patch("vault_recall.generator.genai")
        self.genai = patcher.start()
        self.addCleanup(patcher.stop)
        sleeper = mock.patch("vault_recall.generator.time.sleep")
        sleeper.start()
        self.addCleanup(sleeper.stop)

        self.genai.list_models.return_value = [
            fake_model("models/gemini-1.5-flash"),
            fake_model("models/gemini-2.0-flash"),
            fake_model("models/gemini-2.0-pro"),
            fake_model("models/embedding-001", methods=("embedContent",)),
        ]

    def test_list_models_filters_generate_content(self) -> None:
        manager = ModelManager("key")
        self.genai.configure.assert_called_once_with(api_key="key")
        self.assertNotIn("models/embedding-001", manager.list_models())

    def test_newest_pro_model_first(self) -> None:
        manager = ModelManager("key")
        self.assertEqual(manager.select_best_model(), "models/gemini-2.0-pro")
        self.assertEqual(
            manager.order_models(manager.list_models()),
            ["models/gemini-2.0-pro", "models/gemini-2.0-flash", "models/gemini-1.5-flash"],
        )

    def test_preferred_model_goes_first(self) -> None:
        manager = ModelManager("key", preferred_model="models/gemini-1.5-flash")
        self.assertEqual(manager.select_best_model(), "models/gemini-1.5-flash")

    def test_generate_fails_over_to_next_model(self) -> None:
        first = mock.Mock()
        first.generate_content.side_effect = ServiceUnavailable("down")
        second = mock.Mock()
        second.generate_content.return_value = SimpleNamespace(text='{"questions": []}')
        self.genai.GenerativeModel.side_effect = [first, second]

        result = ModelManager("key").generate("prompt")

        self.assertFalse(result["offline"])
        self.assertEqual(result["model"], "models/gemini-2.0-flash")
        self.assertEqual(result["text"], '{"questions": []}')

    def test_quota_stops_failover(self) -> None:
        model = mock.Mock()
        model.generate_content.side_effect = ResourceExhausted("quota")
        self.genai.GenerativeModel.return_value = model

        result = ModelManager("key").generate("prompt")

        self.assertEqual(result["error"], "429")
        self.assertEqual(self.genai.GenerativeModel.call_count, 1)

    def test_blocked_response_fails_over_to_next_model(self) -> None:
        class Blocked:
            @property
            def text(self):
                raise ValueError("response blocked by safety")

        first = mock.Mock()
        first.generate_content.return_value = Blocked()
        second = mock.Mock()
        second.generate_content.return_value = SimpleNamespace(text='{"questions": []}')
        self.genai.GenerativeModel.side_effect = [first, second]

        manager = ModelManager("key")
        result = manager.generate("prompt")

        self.assertFalse(result["offline"])
        self.assertEqual(result["model"], "models/gemini-2.0-flash")
        self.assertEqual(manager._last_selected_model, "models/gemini-2.0-flash")

    def test_list_models_falls_back_to_cache_on_any_error(self) -> None:
        manager = ModelManager("key")
        cached = manager.list_models()
        self.genai.list_models.side_effect = PermissionError("invalid API key")

        self.assertEqual(manager.list_models(), cached)

    def test_list_models_error_without_cache_is_offline(self) -> None:
        self.genai.list_models.side_effect = PermissionError("invalid API key")
        self.assertEqual(ModelManager("key").generate("prompt"), {"offline": True})

    def test_quota_error_has_its_own_type(self) -> None:
        model = mock.Mock()
        model.generate_content.side_effect = ResourceExhausted("quota")
        self.genai.GenerativeModel.return_value = model

        with self.assertRaises(QuotaExhaustedError):
            generate_import_batch(ModelManager("key"), "a.md", "", Preferences())

    def test_generate_import_batch_fills_note_fields(self) -> None:
        generated = tf_question()
        del generated["id"]
        generated["sourceNote"] = "wrong.md"
        model = mock.Mock()
        model.generate_content.return_value = SimpleNamespace(
            text="```json\n" + json.dumps({"questions": [generated]}) + "\n```"
        )
        self.genai.GenerativeModel.return_value = model

        batch = generate_import_batch(ModelManager("key"), "School/A.md", "# A", Preferences())

        q = batch["questions"][0]
        self.assertEqual(q["sourceNote"], "School/A.md")
        self.assertRegex(q["id"], r"^q_[0-9a-f]{6}$")
        self.assertIn("createdAt", q)
        self.assertTrue(validate_import_file(batch).valid)

    def test_generate_import_batch_raises_when_offline(self) -> None:
        self.genai.list_models.return_value = []
        with self.assertRaises(RuntimeError):
            generate_import_batch(ModelManager("key"), "a.md", "", Preferences())


class ParseModelOutputTests(unittest.TestCase):
    def test_bare_array_is_wrapped(self) -> None:
        self.assertEqual(parse_model_output('[{"id": "q_1"}]'), {"questions": [{"id": "q_1"}]})

    def test_not_json(self) -> None:
        with self.assertRaises(ValueError):
            parse_model_output("Here are your questions!")

    def test_missing_questions_array(self) -> None:
        with self.assertRaises(ValueError):
            parse_model_output('{"items": []}')

    def test_fill_keeps_existing_id_and_date(self) -> None:
        batch = fill_generated_fields(
            {"questions": [{"id": "q_keep01", "createdAt": "2025-01-01T00:00:00Z"}, "junk"]}, "n.md"
        )
        self.assertEqual(batch["questions"][0]["id"], "q_keep01")
        self.assertEqual(batch["questions"][0]["createdAt"], "2025-01-01T00:00:00Z")
        self.assertEqual(batch["questions"][1], "junk")


if __name__ == "__main__":
    unittest.main()
