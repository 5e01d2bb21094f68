import unittest
from dataclasses import FrozenInstanceError
from unittest import mock

from config import (
    AudioOutputConfig,
    VariometerConfig,
    apply_dict_to_dataclass,
    parse_settings_block,
    settings_block,
)


class TestParseSettingsBlock(unittest.TestCase):
    def test_missing_block_uses_defaults(self):
        self.assertEqual(parse_settings_block(None), VariometerConfig())
        self.assertEqual(parse_settings_block({}), VariometerConfig())

    def test_recognized_keys_override_defaults(self):
        cfg = parse_settings_block({
            'liftThreshold': 2.0,
            'liftMax': "8",
            'sinkThreshold': -1.5,
            'sinkMinPitch': 0.7,
            'baseVolume': 0.8,
            'audioClipPath': "Custom/Sounds/beep",
            'somethingElse': 42,
        })
        self.assertEqual(cfg.lift_threshold, 2.0)
        self.assertEqual(cfg.lift_max, 8.0)
        self.assertEqual(cfg.sink_threshold, -1.5)
        self.assertEqual(cfg.sink_min_pitch, 0.7)
        self.assertEqual(cfg.base_volume, 0.8)
        self.assertEqual(cfg.audio_clip_path, "Custom/Sounds/beep")
        self.assertEqual(cfg.sink_max, -15.0)

    def test_malformed_value_keeps_default_per_key(self):
        with mock.patch("config.log_event") as log_event_mock:
            cfg = parse_settings_block({'liftMax': "loud", 'liftMaxPitch': 1.8, 'sinkMax': None,
                                        'baseVolume': True, 'audioClipPath': ""})
        self.assertEqual(cfg.lift_max, 15.0)
        self.assertEqual(cfg.lift_max_pitch, 1.8)
        self.assertEqual(cfg.sink_max, -15.0)
        self.assertEqual(cfg.base_volume, 0.5)
        self.assertEqual(cfg.audio_clip_path, "Variometer/Sounds/tone")
        self.assertEqual(log_event_mock.call_count, 4)

    def test_lift_group_out_of_order_reverts(self):
        cfg = parse_settings_block({'liftThreshold': 10.0, 'liftMax': 4.0, 'liftMaxPitch': 2.0,
                                    'sinkThreshold': -2.0})
        self.assertEqual(cfg.lift_threshold, 5.0)
        self.assertEqual(cfg.lift_max, 15.0)
        self.assertEqual(cfg.lift_max_pitch, 1.5)
        # Sink group is untouched
        self.assertEqual(cfg.sink_threshold, -2.0)

    def test_sink_group_out_of_order_reverts(self):
        cfg = parse_settings_block({'sinkThreshold': 1.0, 'sinkMinPitch': 0.3})
        self.assertEqual(cfg.sink_threshold, -5.0)
        self.assertEqual(cfg.sink_min_pitch, 0.5)

    def test_negative_lift_threshold_rejected(self):
        cfg = parse_settings_block({'liftThreshold': -1.0})
        self.assertEqual(cfg.lift_threshold, 5.0)

    def test_non_positive_rate_and_volume_clamp(self):
        cfg = parse_settings_block({'liftMaxBeepRate': 0.0, 'baseVolume': 3.0})
        self.assertEqual(cfg.lift_max_beep_rate, 2.0)
        self.assertEqual(cfg.base_volume, 1.0)

    def test_non_mapping_block(self):
        self.assertEqual(parse_settings_block(["liftMax", 3]), VariometerConfig())

    def test_config_is_immutable(self):
        cfg = VariometerConfig()
        with self.assertRaises(FrozenInstanceError):
            cfg.lift_max = 20.0

    def test_settings_block_round_trips(self):
        cfg = VariometerConfig(lift_threshold=3.0, sink_max=-12.0)
        self.assertEqual(parse_settings_block(settings_block(cfg)), cfg)


class TestApplyDictToDataclass(unittest.TestCase):
    def test_applies_known_keys_and_coerces(self):
        audio = AudioOutputConfig()
        with mock.patch("config.log_event"):
            apply_dict_to_dataclass(audio, {
                'sample_rate': 48000,
                'block_size': "big",
                'device_index': 3,
                'clip_extensions': [".ogg"],
                'unknown': 1,
            })
        self.assertEqual(audio.sample_rate, 48000)
        self.assertEqual(audio.block_size, 256)
        self.assertEqual(audio.device_index, 3)
        self.assertEqual(audio.clip_extensions, (".ogg",))


if __name__ == "__main__":
    unittest.main()
