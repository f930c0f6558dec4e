"""
Parameter validation tests focusing on behavior, not implementation.
"""

import json
import os
import tempfile
import unittest

from settings import (
    BackupConfig,
    load_parameters_file,
    matches_type,
    validate_parameters,
)


class TestTypeMatching(unittest.TestCase):
    """Type descriptors support unions and nullable markers."""

    def test_simple_types(self):
        self.assertTrue(matches_type("x", "string"))
        self.assertTrue(matches_type(True, "bool"))
        self.assertTrue(matches_type(["a"], "array"))
        self.assertTrue(matches_type(("a",), "array"))
        self.assertFalse(matches_type(1, "string"))
        self.assertFalse(matches_type("yes", "bool"))

    def test_bool_is_not_an_int(self):
        self.assertTrue(matches_type(3, "int"))
        self.assertFalse(matches_type(True, "int"))

    def test_nullable_type(self):
        self.assertTrue(matches_type(None, "string?"))
        self.assertFalse(matches_type(None, "string"))

    def test_union_type(self):
        self.assertTrue(matches_type("x", "string|bool"))
        self.assertTrue(matches_type(False, "string|bool"))
        self.assertFalse(matches_type(1.5, "string|bool"))

    def test_mixed_accepts_anything(self):
        self.assertTrue(matches_type(object(), "mixed"))

    def test_unknown_type_never_matches(self):
        self.assertFalse(matches_type("x", "widget"))


class TestValidateParameters(unittest.TestCase):
    """Raw parameter bags become validated BackupConfig values."""

    def test_defaults(self):
        config = validate_parameters({}).config

        self.assertEqual(config, BackupConfig())
        self.assertTrue(config.use_compression)
        self.assertTrue(config.auto_start)
        self.assertFalse(config.include_dot_files)
        self.assertFalse(config.replace_existing)
        self.assertEqual(config.exclude_extensions, ())
        self.assertEqual(config.before_date, "")
        self.assertIsNone(config.custom_name)

    def test_recognised_values_are_applied(self):
        result = validate_parameters(
            {
                "backupTargetdirectory": "/srv/www",
                "zipSaveLocation": "/backups",
                "customZipName": "nightly",
                "replace": True,
                "useCompression": False,
                "excludeDir": ["cache", "node_modules"],
                "memoryCap": "512M",
                "autoStart": False,
            }
        )
        config = result.config

        self.assertEqual(result.rejected, [])
        self.assertEqual(config.target_directory, "/srv/www")
        self.assertEqual(config.destination_directory, "/backups")
        self.assertEqual(config.custom_name, "nightly")
        self.assertTrue(config.replace_existing)
        self.assertFalse(config.use_compression)
        self.assertEqual(config.exclude_dirs, ("cache", "node_modules"))
        self.assertEqual(config.memory_cap, "512M")
        self.assertFalse(config.auto_start)

    def test_wrong_type_is_rejected_and_default_kept(self):
        with self.assertLogs("settings", level="WARNING"):
            result = validate_parameters({"useCompression": "no", "replace": 1})

        self.assertEqual(sorted(result.rejected), ["replace", "useCompression"])
        self.assertTrue(result.config.use_compression)
        self.assertFalse(result.config.replace_existing)

    def test_unknown_keys_are_ignored_silently(self):
        result = validate_parameters({"colour": "blue", "autoStart": False})

        self.assertEqual(result.rejected, [])
        self.assertFalse(result.config.auto_start)

    def test_extensions_are_lowercased(self):
        config = validate_parameters(
            {"excludeExtensions": ["JPG", ".Png", "jfif"]}
        ).config

        self.assertEqual(config.exclude_extensions, ("jpg", "png", "jfif"))

    def test_nullable_custom_name(self):
        result = validate_parameters({"customZipName": None})

        self.assertEqual(result.rejected, [])
        self.assertIsNone(result.config.custom_name)

    def test_config_is_immutable(self):
        config = validate_parameters({"backupTargetdirectory": "/a"}).config

        with self.assertRaises(AttributeError):
            config.target_directory = "/b"

    def test_conflicting_extension_filters_are_flagged(self):
        config = validate_parameters(
            {"excludeExtensions": ["tmp"], "includeExtensions": ["txt"]}
        ).config

        self.assertTrue(config.has_conflicting_extension_filters)
        self.assertFalse(BackupConfig().has_conflicting_extension_filters)


class TestLoadParametersFile(unittest.TestCase):
    """JSON parameter files are loaded into plain dicts."""

    def _write(self, content: str) -> str:
        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            f.write(content)
        self.addCleanup(os.unlink, f.name)
        return f.name

    def test_valid_file(self):
        path = self._write(json.dumps({"backupTargetdirectory": "/data"}))

        self.assertEqual(load_parameters_file(path), {"backupTargetdirectory": "/data"})

    def test_invalid_json_returns_empty(self):
        path = self._write("{not json")

        self.assertEqual(load_parameters_file(path), {})

    def test_non_object_returns_empty(self):
        path = self._write("[1, 2, 3]")

        self.assertEqual(load_parameters_file(path), {})

    def test_missing_file_returns_empty(self):
        self.assertEqual(load_parameters_file("/nonexistent/params.json"), {})


if __name__ == "__main__":
    unittest.main()
