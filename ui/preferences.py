"""
Display preferences for the dashboard.

Theme and balance visibility are loaded once at session start and saved
on every toggle. Preferences are passed explicitly to the rendering code.
"""

import json
import logging
from dataclasses import asdict, dataclass, replace
from pathlib import Path

from config import config


logger = logging.getLogger(__name__)

THEMES = ("light", "dark")
MASK = "••••••"

CURRENCY_SYMBOLS = {"EUR": "€", "USD": "$", "GBP": "£", "CHF": "CHF "}


@dataclass(frozen=True)
class DisplayPreferences:
    """Per-user display settings."""
    theme: str = "light"
    balances_visible: bool = True

    def toggle_theme(self) -> "DisplayPreferences":
        return replace(self, theme="dark" if self.theme == "light" else "light")

    def toggle_balances(self) -> "DisplayPreferences":
        return replace(self, balances_visible=not self.balances_visible)


def load_preferences(path: Path | None = None) -> DisplayPreferences:
    """
    Load preferences from JSON.

    A missing, unreadable or malformed file yields the defaults.
    """
    path = Path(path or config.ui.preferences_path)
    if not path.exists():
        return DisplayPreferences()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"⚠️ Could not read preferences {path}: {e}")
        return DisplayPreferences()

    if not isinstance(data, dict):
        return DisplayPreferences()

    theme = data.get("theme")
    visible = data.get("balances_visible")
    return DisplayPreferences(
        theme=theme if theme in THEMES else DisplayPreferences.theme,
        balances_visible=visible if isinstance(visible, bool) else DisplayPreferences.balances_visible,
    )


def save_preferences(prefs: DisplayPreferences, path: Path | None = None) -> None:
    """Write preferences to JSON, creating the parent directory."""
    path = Path(path or config.ui.preferences_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(prefs), indent=2), encoding="utf-8")


def format_currency(
    amount: float | None,
    currency: str | None = None,
    visible: bool = True,
    decimals: int | None = None,
) -> str:
    """
    Format a money amount, masked when balances are hidden.

    Example:
        >>> format_currency(1234.5, "EUR")
        '€1,234.50'
        >>> format_currency(1234.5, "EUR", visible=False)
        '••••••'
    """
    if not visible:
        return MASK
    if amount is None:
        return "-"

    currency = (currency or config.ui.default_currency).upper()
    decimals = config.ui.decimal_places if decimals is None else decimals
    symbol = CURRENCY_SYMBOLS.get(currency)
    sign = "-" if amount < 0 else ""
    number = f"{abs(amount):,.{decimals}f}"
    if symbol is None:
        return f"{sign}{number} {currency}"
    return f"{sign}{symbol}{number}"
