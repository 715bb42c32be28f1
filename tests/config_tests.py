import io
import os
import unittest
from contextlib import redirect_stderr
from pathlib import Path
from unittest.mock import patch

from sommelier.config import DEFAULT_MODEL, Settings
from sommelier.errors import ConfigurationError
from sommelier.main import main


class TestSettings(unittest.TestCase):
    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self):
        settings = Settings.from_env()

        self.assertIsNone(settings.api_key)
        self.assertEqual(settings.model_name, DEFAULT_MODEL)
        self.assertEqual(settings.max_attempts, 1)
        self.assertEqual(settings.log_level, "INFO")
        self.assertEqual(settings.image_max_size, (1024, 1024))

    def test_default_model_serves_schema_with_search(self):
        # JSON schema output together with the Google Search tool needs a Gemini 3 model.
        self.assertTrue(DEFAULT_MODEL.startswith("gemini-3"))

    @patch.dict(
        os.environ,
        {
            "GOOGLE_API_KEY": "key",
            "SOMMELIER_MODEL": "gemini-3-pro-preview",
            "SOMMELIER_MAX_ATTEMPTS": "3",
            "SOMMELIER_DATA_DIR": "~/wines",
            "SOMMELIER_LOG_LEVEL": "debug",
            "SOMMELIER_IMAGE_MAX_SIZE": "800x600",
        },
        clear=True,
    )
    def test_values_from_environment(self):
        settings = Settings.from_env()

        self.assertEqual(settings.api_key, "key")
        self.assertEqual(settings.model_name, "gemini-3-pro-preview")
        self.assertEqual(settings.max_attempts, 3)
        self.assertEqual(settings.data_dir, Path("~/wines").expanduser())
        self.assertEqual(settings.log_level, "DEBUG")
        self.assertEqual(settings.image_max_size, (800, 600))

    @patch.dict(os.environ, {"SOMMELIER_IMAGE_MAX_SIZE": "512"}, clear=True)
    def test_single_size_is_square(self):
        self.assertEqual(Settings.from_env().image_max_size, (512, 512))

    def test_malformed_values_raise_configuration_error(self):
        cases = {
            "SOMMELIER_MAX_ATTEMPTS": "two",
            "SOMMELIER_IMAGE_MAX_SIZE": "big",
            "SOMMELIER_LOG_LEVEL": "chatty",
        }
        for variable, value in cases.items():
            with self.subTest(variable=variable):
                with patch.dict(os.environ, {variable: value}, clear=True):
                    with self.assertRaises(ConfigurationError) as ctx:
                        Settings.from_env()
                self.assertIn(variable, str(ctx.exception))

    @patch.dict(os.environ, {"SOMMELIER_MAX_ATTEMPTS": "0"}, clear=True)
    def test_attempts_must_be_positive(self):
        with self.assertRaises(ConfigurationError):
            Settings.from_env()

    @patch.dict(os.environ, {"SOMMELIER_MAX_ATTEMPTS": "two"}, clear=True)
    def test_main_reports_bad_configuration(self):
        err = io.StringIO()
        with redirect_stderr(err):
            code = main(["list"])

        self.assertEqual(code, 2)
        self.assertIn("SOMMELIER_MAX_ATTEMPTS", err.getvalue())


if __name__ == '__main__':
    unittest.main()
