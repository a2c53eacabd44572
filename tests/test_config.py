import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from vault_recall.config import AppConfig, load_app_config


class LoadAppConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_reads_toml_sections(self) -> None:
        path = self.dir / "config.toml"
        path.write_text(
            '[app]\nname = "My Recall"\n'
            '[vault]\npath = "/notes"\n'
            '[gemini]\npreferred_model = "models/gemini-2.0-pro"\n'
            '[logging]\nlevel = "debug"\n',
            encoding="utf-8",
        )
        with mock.patch.dict(os.environ, {"GEMINI_API_KEY": "k"}, clear=True):
            cfg = load_app_config(str(path))

        self.assertEqual(cfg.app_name, "My Recall")
        self.assertEqual(cfg.vault_dir, Path("/notes"))
        self.assertEqual(cfg.preferred_model, "models/gemini-2.0-pro")
        self.assertEqual(cfg.log_level, "DEBUG")
        self.assertEqual(cfg.gemini_api_key, "k")

    def test_environment_overrides_file(self) -> None:
        path = self.dir / "config.toml"
        path.write_text('[vault]\npath = "/notes"\n', encoding="utf-8")
        env = {"VAULT_RECALL_VAULT": str(self.dir), "VAULT_RECALL_LOG_LEVEL": "warning", "GEMINI_API_KEY": "k"}
        with mock.patch.dict(os.environ, env, clear=True):
            cfg = load_app_config(str(path))

        self.assertEqual(cfg.vault_dir, self.dir)
        self.assertEqual(cfg.log_level, "WARNING")

    def test_missing_or_broken_file_uses_defaults(self) -> None:
        broken = self.dir / "broken.toml"
        broken.write_text("[app]\nname = \n", encoding="utf-8")
        with mock.patch.dict(os.environ, {"GEMINI_API_KEY": "k"}, clear=True):
            for path in (self.dir / "missing.toml", broken):
                cfg = load_app_config(str(path))
                self.assertEqual(cfg.vault_dir, Path("."))
                self.assertEqual(cfg.app_name, "Vault Recall")
                self.assertIsNone(cfg.preferred_model)


class AppConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.cfg = AppConfig(vault_dir=Path(self.tmp.name), gemini_api_key="k")

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_paths_live_under_quiz_folder(self) -> None:
        quiz = Path(self.tmp.name) / ".quiz"
        self.assertEqual(self.cfg.questions_path, quiz / "questions.json")
        self.assertEqual(self.cfg.import_path, quiz / "import.json")
        self.assertEqual(self.cfg.pending_path, quiz / "pending.json")

    def test_ensure_quiz_folder_keeps_existing_files(self) -> None:
        self.cfg.ensure_quiz_folder()
        self.assertTrue(self.cfg.config_path.exists())
        self.assertTrue(self.cfg.instructions_path.exists())

        self.cfg.instructions_path.write_text("edited", encoding="utf-8")
        self.cfg.ensure_quiz_folder()
        self.assertEqual(self.cfg.instructions_path.read_text(encoding="utf-8"), "edited")

    def test_read_json(self) -> None:
        path = Path(self.tmp.name) / "x.json"
        self.assertIsNone(AppConfig.read_json(path))
        path.write_text("{oops", encoding="utf-8")
        with self.assertRaises(ValueError):
            AppConfig.read_json(path)


if __name__ == "__main__":
    unittest.main()
