import json
import re

import pytest

from styler.session import ParticipantInfo, SaveData
from styler.share import (
    ShareResult,
    decode_session,
    encode_session,
    generate_share_url,
    main,
    minimal_record,
    parse_share_url,
    token_from_url,
)
from styler.shortcuts import compact_lines
from styler.theme import PRESET_THEMES, ColorTheme

CODE = (
    "sequenceDiagram\n"
    "    participant Client\n"
    "    participant API\n"
    "    Client->>API: POST /api/login\n"
    "    API-->>Client: 200 OK\n"
    "    loop every minute\n"
    "        Client->>API: GET /api/data\n"
    "    end"
)

TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def _full_session():
    return SaveData(
        code=CODE,
        syntax_mode="plantuml",
        color_theme=PRESET_THEMES[1]["theme"],
        custom_tooltips={
            "msg-0": "The browser submits the login form",
            "msg-1": "The gateway answers with a session token",
        },
        custom_participants={
            "Client": ParticipantInfo(description="Single page app", role="caller", notes="runs in the browser"),
            "API": ParticipantInfo(description="Public gateway", role="edge", notes="rate limited"),
        },
    )


def test_full_round_trip_through_url():
    data = _full_session()
    result = generate_share_url(data, base_url="https://styler.test/")
    assert result.url.startswith("https://styler.test/?d=")
    assert parse_share_url(result.url) == data


def test_default_session_round_trip():
    data = SaveData(code=CODE)
    assert decode_session(encode_session(data)) == data


def test_token_alphabet():
    token = encode_session(_full_session())
    assert TOKEN_RE.match(token)
    assert not set("+/=") & set(token)


def test_lzw_tokens_start_with_e():
    assert encode_session(SaveData(code=CODE)).startswith("e")


def test_minimal_record_for_defaults():
    record = minimal_record(SaveData(code="A->>B: x"))
    assert set(record) == {"c"}
    assert record["c"] == "A~1B: x"


def test_minimal_record_theme_is_field_overrides():
    data = SaveData(code="A->>B: x", color_theme=ColorTheme(primary="#000000"))
    assert minimal_record(data)["t"] == {"primary": "#000000"}


def test_resetting_fields_shrinks_token():
    data = _full_session()
    lengths = [len(encode_session(data))]

    data.custom_participants = {}
    lengths.append(len(encode_session(data)))
    data.custom_tooltips = {}
    lengths.append(len(encode_session(data)))
    data.color_theme = ColorTheme()
    lengths.append(len(encode_session(data)))
    data.syntax_mode = "mermaid"
    lengths.append(len(encode_session(data)))

    assert lengths == sorted(lengths, reverse=True)
    assert len(set(lengths)) == len(lengths)


def test_compact_trims_lines():
    data = SaveData(code=CODE)
    plain = encode_session(data)
    compact = encode_session(data, compact=True)
    assert len(compact) < len(plain)
    assert decode_session(compact).code == compact_lines(CODE)
    # Without compaction indentation survives
    assert decode_session(plain).code == CODE


def test_wide_characters_use_fallback():
    data = SaveData(code="Client->>API: 你好")
    token = encode_session(data)
    assert token.startswith("b")
    assert TOKEN_RE.match(token)
    assert decode_session(token) == data


def test_latin1_stays_on_lzw_path():
    data = SaveData(code="Client->>API: café")
    token = encode_session(data)
    assert token.startswith("e")
    assert decode_session(token) == data


@pytest.mark.parametrize("token", [
    "",
    "e!!!",
    "e",
    "bAAAA",
    "b%%%",
    "e~~~",
    "bW10",
])
def test_corrupted_tokens_decode_to_none(token):
    assert decode_session(token) is None


def test_truncated_token_decodes_to_none():
    token = encode_session(SaveData(code=CODE))
    assert decode_session(token[: len(token) // 2]) is None


@pytest.mark.parametrize("value,expected", [
    ("https://styler.test/?d=abc", "abc"),
    ("https://styler.test/editor?x=1&d=abc", "abc"),
    ("?d=abc", "abc"),
    ("d=abc", "abc"),
    ("abc", "abc"),
    ("  abc  ", "abc"),
    ("https://styler.test/?x=1", None),
    ("", None),
])
def test_token_from_url(value, expected):
    assert token_from_url(value) == expected


def test_parse_share_url_without_token():
    assert parse_share_url("https://styler.test/") is None


def test_share_result():
    result = ShareResult(url="https://styler.test/?d=" + "e" * 3000, token="e" * 3000)
    assert result.too_long
    assert result.to_dict()["tooLong"] is True
    assert not ShareResult(url="?d=e", token="e").too_long


def test_cli_encode_then_decode(tmp_path, capsys):
    src = tmp_path / "flow.mmd"
    src.write_text(CODE, encoding="utf-8")
    assert main(["--input", str(src), "--base-url", "https://styler.test/"]) == 0
    url = capsys.readouterr().out.strip()
    assert url.startswith("https://styler.test/?d=e")

    assert main(["--decode", url]) == 0
    decoded = json.loads(capsys.readouterr().out)
    assert decoded["code"] == CODE
    assert decoded["syntaxMode"] == "mermaid"


def test_cli_decode_bad_token(capsys):
    assert main(["--decode", "e!!!"]) == 1
    assert "no session data" in capsys.readouterr().err


@pytest.mark.parametrize("code", [
    "sequenceDiagram\n    actorNotifier->>API: hi",
    "participantA->>actorLoop: x",
    "sequenceDiagram\n    participant parAllel\n    parAllel-->>alterEgo: and Now",
])
def test_names_glued_to_keywords_survive_sharing(code):
    data = SaveData(code=code)
    assert decode_session(encode_session(data)).code == code


def test_default_preset_writes_no_theme():
    data = SaveData(code="A->>B: x", color_theme=PRESET_THEMES[0]["theme"])
    assert "t" not in minimal_record(data)
    data.color_theme = PRESET_THEMES[2]["theme"]
    assert minimal_record(data)["t"]["primary"] == "#22c55e"
