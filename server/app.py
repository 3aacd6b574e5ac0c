"""
FastAPI application for the sequence-diagram styler.

REST API over the diagram codec: PlantUML to Mermaid conversion,
participant/message extraction, share-link encoding and decoding,
session record export/import, and a small store of saved diagrams
with a Server-Sent-Events change stream.
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse

from server.store import DiagramStore
from styler.errors import InvalidConfigError, UnrecognizedSyntaxError
from styler.extract import describe_steps, parse_diagram
from styler.plantuml_to_mermaid import convert_plantuml_to_mermaid
from styler.session import DiagramConfig, SaveData, config_filename, export_config, import_config
from styler.share import decode_session, generate_share_url
from styler.theme import DEFAULT_THEME, PRESET_THEMES, init_directive

env_path = Path(".env")
if not env_path.exists():
    for parent in Path.cwd().parents:
        candidate = parent / ".env"
        if candidate.exists():
            env_path = candidate
            break
if env_path.exists():
    load_dotenv(env_path)

STRICT_DEFAULT = os.environ.get("STYLER_STRICT", "0").lower() in ("1", "true", "yes")

store = DiagramStore()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    print(f"[app] Started with {len(store.list_diagrams())} saved diagram(s)", file=sys.stderr)
    try:
        yield
    finally:
        print("[app] Shutting down…", file=sys.stderr)
        store.save()
        print("[app] Shutdown complete", file=sys.stderr)


app = FastAPI(title="Sequence Diagram Styler", lifespan=lifespan)


async def _json_body(request: Request) -> dict:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=400, detail="Request body must be JSON")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body


def _session_from(body: dict) -> SaveData:
    try:
        return SaveData.from_dict(body)
    except InvalidConfigError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


# ──────────────────────────────────────────────────────────────────
# REST API — Diagram text
# ──────────────────────────────────────────────────────────────────

@app.post("/api/convert")
async def convert(request: Request):
    body = await _json_body(request)
    code = body.get("code")
    if not isinstance(code, str):
        raise HTTPException(status_code=400, detail="code is required")
    strict = bool(body.get("strict", STRICT_DEFAULT))
    try:
        mermaid = convert_plantuml_to_mermaid(code, strict=strict)
    except UnrecognizedSyntaxError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return JSONResponse(content={"mermaid": mermaid})


@app.post("/api/parse")
async def parse(request: Request):
    """Mermaid text, participants and message steps for a diagram in either syntax."""
    body = await _json_body(request)
    code = body.get("code")
    if not isinstance(code, str):
        raise HTTPException(status_code=400, detail="code is required")
    syntax_mode = body.get("syntaxMode", "mermaid")
    if syntax_mode not in ("mermaid", "plantuml"):
        raise HTTPException(status_code=400, detail=f"unknown syntaxMode {syntax_mode!r}")
    strict = bool(body.get("strict", STRICT_DEFAULT))

    try:
        mermaid, participants, messages = parse_diagram(code, syntax_mode, strict=strict)
    except UnrecognizedSyntaxError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return JSONResponse(content={
        "mermaid": mermaid,
        "participants": [p.to_dict() for p in participants],
        "messages": [m.to_dict() for m in messages],
        "steps": describe_steps(messages, body.get("customTooltips") or {}),
    })


# ──────────────────────────────────────────────────────────────────
# REST API — Themes
# ──────────────────────────────────────────────────────────────────

@app.get("/api/themes")
async def list_themes():
    return JSONResponse(content={
        "default": DEFAULT_THEME.to_dict(),
        "presets": [
            {
                "name": preset["name"],
                "theme": preset["theme"].to_dict(),
                "init": init_directive(preset["theme"]),
            }
            for preset in PRESET_THEMES
        ],
    })


# ──────────────────────────────────────────────────────────────────
# REST API — Share links
# ──────────────────────────────────────────────────────────────────

@app.post("/api/share")
async def share(request: Request):
    body = await _json_body(request)
    data = _session_from(body)
    result = generate_share_url(
        data,
        base_url=body.get("baseUrl"),
        compact=bool(body.get("compact", False)),
    )
    if result.too_long:
        print(f"[app] Share URL is {result.length} characters", file=sys.stderr)
    return JSONResponse(content=result.to_dict())


@app.get("/api/share/{token}")
async def load_share(token: str):
    data = decode_session(token)
    if data is None:
        raise HTTPException(status_code=404, detail="no data")
    return JSONResponse(content=data.to_dict())


# ──────────────────────────────────────────────────────────────────
# REST API — Session records
# ──────────────────────────────────────────────────────────────────

@app.post("/api/export")
async def export(request: Request):
    body = await _json_body(request)
    config = export_config(_session_from(body), body.get("name"))
    filename = config_filename(config.name)
    return JSONResponse(
        content=config.to_dict(),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/api/import")
async def import_record(request: Request):
    raw = await request.body()
    try:
        data = import_config(raw)
    except InvalidConfigError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return JSONResponse(content=data.to_dict())


# ──────────────────────────────────────────────────────────────────
# REST API — Saved diagrams
# ──────────────────────────────────────────────────────────────────

@app.get("/api/diagrams")
async def list_diagrams():
    return JSONResponse(content=store.list_diagrams())


@app.post("/api/diagrams")
async def save_diagram(request: Request):
    body = await _json_body(request)
    try:
        config = DiagramConfig.from_dict(body)
    except InvalidConfigError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    entry = store.put_diagram(config)
    return JSONResponse(content=entry, status_code=201)


@app.get("/api/diagrams/{did}")
async def get_diagram(did: str):
    config = store.get_diagram(did)
    if config is None:
        raise HTTPException(status_code=404, detail="Diagram not found")
    return JSONResponse(content=config.to_dict())


@app.delete("/api/diagrams/{did}")
async def remove_diagram(did: str):
    if store.remove_diagram(did):
        return JSONResponse(content={"removed": did})
    raise HTTPException(status_code=404, detail="Diagram not found")


@app.delete("/api/diagrams")
async def reset_all():
    count = store.clear_all()
    print(f"[app] Reset: removed {count} diagram(s)", file=sys.stderr)
    return JSONResponse(content={"removed": count})


# ──────────────────────────────────────────────────────────────────
# SSE — Server-Sent Events
# ──────────────────────────────────────────────────────────────────

@app.get("/api/events")
async def sse_events(request: Request):
    """SSE stream that pushes the saved-diagram list on every store change."""

    async def event_generator():
        try:
            while True:
                if await request.is_disconnected():
                    break
                data = json.dumps(store.list_diagrams(), default=str)
                yield f"data: {data}\n\n"
                last_version = store.version
                try:
                    await asyncio.wait_for(
                        store.wait_for_change(last_version),
                        timeout=30.0,
                    )
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
        except asyncio.CancelledError:
            return

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


# ──────────────────────────────────────────────────────────────────
# Entrypoint
# ──────────────────────────────────────────────────────────────────

def main() -> None:
    import uvicorn
    uvicorn.run(
        "server.app:app",
        host=os.environ.get("STYLER_HOST", "0.0.0.0"),
        port=int(os.environ.get("STYLER_PORT", "8000")),
    )


if __name__ == "__main__":
    main()
