import unittest

from volume_fade import VolumeRamp, fade_in, fade_to_zero


class TestVolumeFade(unittest.TestCase):
    def test_fade_to_zero_monotonic_under_jitter(self):
        ramp = fade_to_zero(0.5, 0.05)
        volumes = [ramp.volume]
        for dt in (0.004, 0.019, 0.001, 0.013, 0.02, 0.03):
            volumes.append(ramp.advance(dt))

        for earlier, later in zip(volumes, volumes[1:]):
            self.assertGreaterEqual(earlier, later)
        self.assertTrue(ramp.finished)
        self.assertEqual(volumes[-1], 0.0)

    def test_reaches_exact_target_on_overshoot(self):
        ramp = fade_in(0.5, 0.05)
        self.assertAlmostEqual(ramp.advance(0.025), 0.25, places=9)
        self.assertFalse(ramp.finished)
        self.assertEqual(ramp.advance(0.5), 0.5)
        self.assertTrue(ramp.finished)

    def test_zero_duration_is_immediately_finished(self):
        ramp = VolumeRamp(from_volume=0.8, to_volume=0.0, duration=0.0)
        self.assertTrue(ramp.finished)
        self.assertEqual(ramp.volume, 0.0)

    def test_negative_dt_does_not_rewind(self):
        ramp = fade_to_zero(1.0, 0.1)
        ramp.advance(0.05)
        self.assertAlmostEqual(ramp.advance(-1.0), 0.5, places=9)


if __name__ == "__main__":
    unittest.main()
