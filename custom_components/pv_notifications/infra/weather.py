"""Keyword heuristics for free-text weather forecasts (German and English)."""

from __future__ import annotations

# Checked in order; first match wins
_DESCRIPTIONS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("sonnig", "klar"), "☀️ sonnig"),
    (("wolkig", "bewölkt"), "⛅ bewölkt"),
    (("bedeckt",), "☁️ bedeckt"),
    (("regen", "rain"), "🌧️ Regen"),
    (("schnee", "snow"), "❄️ Schnee"),
    (("gewitter", "thunder"), "⛈️ Gewitter"),
    (("nebel", "fog"), "🌫️ Nebel"),
    (("clear",), "☀️ sonnig"),
    (("cloud",), "⛅ bewölkt"),
)

_GOOD_KEYWORDS = ("sonnig", "klar", "clear", "few clouds")
_BAD_KEYWORDS = (
    "regen",
    "rain",
    "schnee",
    "snow",
    "gewitter",
    "thunder",
    "bedeckt",
    "overcast",
)


def describe_weather(text: str) -> str:
    """Short emoji description of a forecast text."""
    if not text:
        return "🌡️ unbekannt"

    lowered = text.lower()
    for keywords, description in _DESCRIPTIONS:
        if any(keyword in lowered for keyword in keywords):
            return description
    return f"🌡️ {text}"


def is_weather_good(text: str) -> bool:
    """Forecast promises sun."""
    if not text:
        return False
    lowered = text.lower()
    return any(keyword in lowered for keyword in _GOOD_KEYWORDS)


def is_weather_bad(text: str) -> bool:
    """Forecast promises little sun."""
    if not text:
        return False
    lowered = text.lower()
    return any(keyword in lowered for keyword in _BAD_KEYWORDS)
