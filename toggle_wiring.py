from dataclasses import dataclass

from logging_utils import log_event

ICON_OFF = "Variometer/Icons/icon"
ICON_ON = "Variometer/Icons/icon_on"


@dataclass
class FeedbackToggle:
    """Enable flag shared between the toolbar and the controller (read-only there)."""
    enabled: bool = False


def toggle_status_text(enabled: bool) -> str:
    """Return the on-screen status message for the toggle state."""
    return "Variometer: ON" if enabled else "Variometer: OFF"


def toggle_icon_name(enabled: bool) -> str:
    """Return the toolbar icon asset for the toggle state."""
    return ICON_ON if enabled else ICON_OFF


def toggle_feedback(toggle: FeedbackToggle) -> str:
    """Flip the toggle and return the status message to show."""
    toggle.enabled = not toggle.enabled
    message = toggle_status_text(toggle.enabled)
    log_event("INFO", "Toggle", message)
    return message
