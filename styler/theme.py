"""
Colour themes for rendered sequence diagrams.

A theme is nine named colours. Only the colours that differ from
``DEFAULT_THEME`` travel in a share token; see :func:`theme_overrides`.
"""

import json
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ColorTheme:
    primary: str = "#0ea5e9"
    secondary: str = "#a855f7"
    background: str = "#1e1e2e"
    text: str = "#e2e8f0"
    actorBackground: str = "#0ea5e9"
    actorText: str = "#ffffff"
    lineColor: str = "#0ea5e9"
    noteBackground: str = "#1e1e2e"
    noteBorder: str = "#a855f7"

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ColorTheme":
        """Build a theme from a (possibly partial) dict; missing colours use the defaults."""
        if not data:
            return cls()
        names = {f.name for f in fields(cls)}
        return cls(**{k: str(v) for k, v in data.items() if k in names})


DEFAULT_THEME = ColorTheme()

PRESET_THEMES: List[Dict[str, Any]] = [
    {"name": "Cyber (Default)", "theme": DEFAULT_THEME},
    {"name": "Ocean", "theme": ColorTheme(
        primary="#06b6d4", secondary="#0284c7", background="#0f172a", text="#f1f5f9",
        actorBackground="#06b6d4", actorText="#ffffff", lineColor="#06b6d4",
        noteBackground="#0f172a", noteBorder="#0284c7",
    )},
    {"name": "Forest", "theme": ColorTheme(
        primary="#22c55e", secondary="#16a34a", background="#14532d", text="#f0fdf4",
        actorBackground="#22c55e", actorText="#ffffff", lineColor="#22c55e",
        noteBackground="#14532d", noteBorder="#16a34a",
    )},
    {"name": "Sunset", "theme": ColorTheme(
        primary="#f97316", secondary="#ea580c", background="#1c1917", text="#fafaf9",
        actorBackground="#f97316", actorText="#ffffff", lineColor="#f97316",
        noteBackground="#1c1917", noteBorder="#ea580c",
    )},
    {"name": "Rose", "theme": ColorTheme(
        primary="#f43f5e", secondary="#e11d48", background="#1f1f1f", text="#fecdd3",
        actorBackground="#f43f5e", actorText="#ffffff", lineColor="#f43f5e",
        noteBackground="#1f1f1f", noteBorder="#e11d48",
    )},
    {"name": "Monochrome", "theme": ColorTheme(
        primary="#a1a1aa", secondary="#71717a", background="#18181b", text="#fafafa",
        actorBackground="#52525b", actorText="#ffffff", lineColor="#a1a1aa",
        noteBackground="#27272a", noteBorder="#71717a",
    )},
    {"name": "Light Mode", "theme": ColorTheme(
        primary="#2563eb", secondary="#7c3aed", background="#ffffff", text="#1e293b",
        actorBackground="#2563eb", actorText="#ffffff", lineColor="#2563eb",
        noteBackground="#f8fafc", noteBorder="#7c3aed",
    )},
]


def is_default_theme(theme: Optional[ColorTheme]) -> bool:
    return theme is None or theme == DEFAULT_THEME


def theme_overrides(theme: Optional[ColorTheme]) -> Dict[str, str]:
    """Colours of *theme* that differ from the default, field by field."""
    if theme is None:
        return {}
    default = DEFAULT_THEME.to_dict()
    return {k: v for k, v in theme.to_dict().items() if default[k] != v}


def theme_variables(theme: ColorTheme) -> Dict[str, str]:
    """Theme variables for the Mermaid ``base`` theme."""
    return {
        "primaryColor": theme.primary,
        "primaryTextColor": theme.actorText,
        "primaryBorderColor": theme.primary,
        "secondaryColor": theme.secondary,
        "secondaryTextColor": theme.actorText,
        "secondaryBorderColor": theme.secondary,
        "tertiaryColor": theme.background,
        "lineColor": theme.lineColor,
        "textColor": theme.text,
        "actorBkg": theme.actorBackground,
        "actorBorder": theme.primary,
        "actorTextColor": theme.actorText,
        "actorLineColor": theme.lineColor + "60",
        "signalColor": theme.lineColor,
        "signalTextColor": theme.text,
        "labelBoxBkgColor": theme.background,
        "labelBoxBorderColor": theme.primary,
        "labelTextColor": theme.text,
        "loopTextColor": theme.secondary,
        "noteBkgColor": theme.noteBackground,
        "noteBorderColor": theme.noteBorder,
        "noteTextColor": theme.text,
        "activationBkgColor": theme.primary + "20",
        "activationBorderColor": theme.primary,
        "sequenceNumberColor": theme.actorText,
    }


def init_directive(theme: ColorTheme) -> str:
    """``%%{init: ...}%%`` line that applies *theme* when prepended to a diagram."""
    config = {"theme": "base", "themeVariables": theme_variables(theme)}
    return f"%%{{init: {json.dumps(config, separators=(',', ':'))}}}%%"
