"""
Editor session state and the JSON session record used for export/import.

A session is the diagram text plus its syntax mode, colour theme,
per-message tooltip overrides and per-participant annotations. The
record wraps a session with a version, a name and timestamps.
"""

import json
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Union

from styler.errors import InvalidConfigError
from styler.theme import DEFAULT_THEME, ColorTheme

CONFIG_VERSION = "1.0"
SYNTAX_MODES = ("mermaid", "plantuml")
DEFAULT_SYNTAX_MODE = "mermaid"


@dataclass
class ParticipantInfo:
    description: str = ""
    role: str = ""
    notes: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"description": self.description, "role": self.role, "notes": self.notes}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParticipantInfo":
        return cls(
            description=str(data.get("description", "")),
            role=str(data.get("role", "")),
            notes=str(data.get("notes", "")),
        )


@dataclass
class SaveData:
    code: str
    syntax_mode: str = DEFAULT_SYNTAX_MODE
    color_theme: ColorTheme = DEFAULT_THEME
    custom_tooltips: Dict[str, str] = field(default_factory=dict)
    custom_participants: Dict[str, ParticipantInfo] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "syntaxMode": self.syntax_mode,
            "colorTheme": self.color_theme.to_dict(),
            "customTooltips": dict(self.custom_tooltips),
            "customParticipants": {k: v.to_dict() for k, v in self.custom_participants.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SaveData":
        """Build a session from a record dict. Raises InvalidConfigError on bad fields."""
        code = data.get("code")
        if not code or not isinstance(code, str):
            raise InvalidConfigError("Invalid config: missing code")

        syntax_mode = data.get("syntaxMode") or DEFAULT_SYNTAX_MODE
        if syntax_mode not in SYNTAX_MODES:
            raise InvalidConfigError(f"Invalid config: unknown syntaxMode {syntax_mode!r}")

        theme = data.get("colorTheme")
        tooltips = data.get("customTooltips") or {}
        participants = data.get("customParticipants") or {}
        if theme is not None and not isinstance(theme, dict):
            raise InvalidConfigError("Invalid config: colorTheme must be an object")
        if not isinstance(tooltips, dict):
            raise InvalidConfigError("Invalid config: customTooltips must be an object")
        if not isinstance(participants, dict) or not all(isinstance(v, dict) for v in participants.values()):
            raise InvalidConfigError("Invalid config: customParticipants must map names to objects")

        return cls(
            code=code,
            syntax_mode=syntax_mode,
            color_theme=ColorTheme.from_dict(theme),
            custom_tooltips={str(k): str(v) for k, v in tooltips.items()},
            custom_participants={k: ParticipantInfo.from_dict(v) for k, v in participants.items()},
        )


@dataclass
class DiagramConfig:
    name: str
    data: SaveData
    version: str = CONFIG_VERSION
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict:
        record = {
            "version": self.version,
            "name": self.name,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        record.update(self.data.to_dict())
        return record

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DiagramConfig":
        save = SaveData.from_dict(data)
        return cls(
            name=str(data.get("name") or generate_config_name(save.code)),
            data=save,
            version=str(data.get("version", CONFIG_VERSION)),
            created_at=str(data.get("createdAt", "")),
            updated_at=str(data.get("updatedAt", "")),
        )


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_config_name(code: str) -> str:
    """Name a diagram after its title, else its first participant, else today's date."""
    for line in code.split("\n"):
        trimmed = line.strip()
        if trimmed.startswith("title"):
            return trimmed.replace("title", "", 1).strip()
        m = re.search(r"participant\s+(\w+)", trimmed)
        if m:
            return f"Diagram - {m.group(1)}"
    return f"Diagram - {date.today().isoformat()}"


def config_filename(name: str) -> str:
    """Download file name for a record: non-alphanumerics become '-', lower-cased."""
    return re.sub(r"[^a-zA-Z0-9]", "-", name).lower() + ".json"


def export_config(data: SaveData, name: Optional[str] = None) -> DiagramConfig:
    now = _now()
    return DiagramConfig(
        name=name or generate_config_name(data.code),
        data=data,
        created_at=now,
        updated_at=now,
    )


def import_config(text: Union[str, bytes]) -> SaveData:
    """
    Parse an exported session record.

    Only ``code`` is required; ``syntaxMode`` defaults to mermaid, the
    theme to the default theme, the maps to empty. Raises
    :class:`InvalidConfigError` for unparseable JSON or a missing code.
    """
    try:
        config = json.loads(text)
    except (ValueError, TypeError) as exc:
        raise InvalidConfigError("Invalid JSON file") from exc
    if not isinstance(config, dict):
        raise InvalidConfigError("Invalid JSON file")
    return SaveData.from_dict(config)
