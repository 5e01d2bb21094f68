import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from config import SETTINGS_BLOCK, Config, VariometerConfig
import config_persistence


class TestConfigPersistence(unittest.TestCase):
    def test_save_and_load_roundtrip(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cfg_file = Path(tmpdir) / "config.json"
            cfg = Config()
            cfg.variometer = VariometerConfig(lift_threshold=3.5, base_volume=0.3)
            cfg.audio.sample_rate = 48000
            cfg.tick_interval_ms = 20

            self.assertTrue(config_persistence.save_config(cfg, cfg_file))
            loaded = config_persistence.load_config(cfg_file)

            self.assertEqual(loaded.variometer, cfg.variometer)
            self.assertEqual(loaded.audio.sample_rate, 48000)
            self.assertEqual(loaded.audio.clip_extensions, (".wav", ".ogg"))
            self.assertEqual(loaded.tick_interval_ms, 20)

    def test_saved_file_uses_settings_block_names(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cfg_file = Path(tmpdir) / "config.json"
            config_persistence.save_config(Config(), cfg_file)
            with open(cfg_file, "r", encoding="utf-8") as f:
                data = json.load(f)

            block = data[SETTINGS_BLOCK]
            self.assertEqual(block["liftThreshold"], 5.0)
            self.assertEqual(block["sinkMinPitch"], 0.5)
            self.assertEqual(block["audioClipPath"], "Variometer/Sounds/tone")

    def test_load_default_when_missing(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cfg_file = Path(tmpdir) / "config.json"
            with mock.patch.object(config_persistence, "get_config_file", return_value=cfg_file):
                loaded = config_persistence.load_config()
            self.assertIsInstance(loaded, Config)
            self.assertEqual(loaded.variometer, VariometerConfig())

    def test_partial_block_keeps_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cfg_file = Path(tmpdir) / "config.json"
            with open(cfg_file, "w", encoding="utf-8") as f:
                json.dump({SETTINGS_BLOCK: {"sinkThreshold": -3, "liftMax": "x"},
                           "tick_interval_ms": -5}, f)

            loaded = config_persistence.load_config(cfg_file)

            self.assertEqual(loaded.variometer.sink_threshold, -3.0)
            self.assertEqual(loaded.variometer.lift_max, 15.0)
            self.assertEqual(loaded.tick_interval_ms, 16)

    def test_load_invalid_json_returns_default(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cfg_file = Path(tmpdir) / "config.json"
            with open(cfg_file, "w", encoding="utf-8") as f:
                f.write("{invalid json")

            loaded = config_persistence.load_config(cfg_file)

            self.assertIsInstance(loaded, Config)

    def test_non_object_root_returns_default(self):
        loaded = config_persistence.config_from_dict([1, 2, 3])
        self.assertEqual(loaded.variometer, VariometerConfig())

    def test_save_failure_returns_false(self):
        cfg = Config()

        with mock.patch.object(config_persistence, "get_config_file", side_effect=OSError("boom")):
            self.assertFalse(config_persistence.save_config(cfg))


if __name__ == "__main__":
    unittest.main()
