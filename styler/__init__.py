"""Sequence-diagram notation and share-link codec.

Converts PlantUML sequence diagrams to Mermaid, extracts participants and
messages from Mermaid text, and packs a whole editor session (diagram,
theme, tooltips, participant notes) into a URL-safe share token and back.
"""

from styler.errors import (
    DecodeError,
    EncodeError,
    InvalidConfigError,
    StylerError,
    UnrecognizedSyntaxError,
)
from styler.extract import (
    MessageStep,
    Participant,
    describe_steps,
    extract_messages,
    extract_participants,
    parse_diagram,
)
from styler.plantuml_to_mermaid import ArrowKind, convert_plantuml_to_mermaid, is_plantuml, to_mermaid
from styler.session import DiagramConfig, ParticipantInfo, SaveData, export_config, import_config
from styler.share import decode_session, encode_session, generate_share_url, parse_share_url
from styler.theme import DEFAULT_THEME, PRESET_THEMES, ColorTheme

__all__ = [
    "ArrowKind",
    "ColorTheme",
    "DEFAULT_THEME",
    "DecodeError",
    "DiagramConfig",
    "EncodeError",
    "InvalidConfigError",
    "MessageStep",
    "Participant",
    "ParticipantInfo",
    "PRESET_THEMES",
    "SaveData",
    "StylerError",
    "UnrecognizedSyntaxError",
    "convert_plantuml_to_mermaid",
    "decode_session",
    "describe_steps",
    "encode_session",
    "export_config",
    "extract_messages",
    "extract_participants",
    "generate_share_url",
    "import_config",
    "is_plantuml",
    "parse_diagram",
    "parse_share_url",
    "to_mermaid",
]
