import unittest
from unittest import mock

from toggle_wiring import FeedbackToggle, toggle_feedback, toggle_icon_name, toggle_status_text


class TestToggleWiring(unittest.TestCase):
    def test_starts_disabled(self):
        self.assertFalse(FeedbackToggle().enabled)

    def test_toggle_feedback_flips_and_reports(self):
        toggle = FeedbackToggle()
        with mock.patch("toggle_wiring.log_event") as log_event_mock:
            self.assertEqual(toggle_feedback(toggle), "Variometer: ON")
            self.assertTrue(toggle.enabled)
            self.assertEqual(toggle_feedback(toggle), "Variometer: OFF")
            self.assertFalse(toggle.enabled)
        self.assertEqual(log_event_mock.call_count, 2)

    def test_status_text_and_icon(self):
        self.assertEqual(toggle_status_text(True), "Variometer: ON")
        self.assertEqual(toggle_status_text(False), "Variometer: OFF")
        self.assertEqual(toggle_icon_name(True), "Variometer/Icons/icon_on")
        self.assertEqual(toggle_icon_name(False), "Variometer/Icons/icon")


if __name__ == "__main__":
    unittest.main()
