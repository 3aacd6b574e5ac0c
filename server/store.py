"""
Persistence for saved diagram sessions.

In-memory dict of session records persisted to a JSON file on every
mutation. An asyncio.Event wakes SSE listeners when the set of saved
diagrams changes.
"""

import asyncio
import json
import os
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from styler.errors import InvalidConfigError
from styler.session import DiagramConfig

STATE_FILE = Path(os.environ.get("STYLER_STATE_FILE", "data/diagrams.json"))


def diagram_id(name: str) -> str:
    """Stable id for a saved diagram, derived from its name."""
    slug = re.sub(r"[^a-zA-Z0-9]+", "-", name).strip("-").lower()
    return slug or "diagram"


class DiagramStore:
    def __init__(self, path: Optional[Path] = None):
        self._path = path or STATE_FILE
        self._diagrams: Dict[str, Dict[str, Any]] = {}
        self._version = 0
        self._event: Optional[asyncio.Event] = None
        self._load()

    def _load(self) -> None:
        if self._path.exists():
            try:
                with open(self._path, "r", encoding="utf-8") as f:
                    loaded = json.load(f)
                self._diagrams = loaded if isinstance(loaded, dict) else {}
            except (json.JSONDecodeError, IOError) as exc:
                print(f"[store] Could not read {self._path}: {exc}", file=sys.stderr)
                self._diagrams = {}

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w", encoding="utf-8") as f:
            json.dump(self._diagrams, f, indent=2, default=str)

    def save(self) -> None:
        """Explicit save for shutdown / flush."""
        self._save()

    def _notify(self) -> None:
        """Bump version and wake any SSE listeners."""
        self._version += 1
        if self._event is not None:
            self._event.set()

    @property
    def version(self) -> int:
        return self._version

    async def wait_for_change(self, since_version: int) -> int:
        """Block until the store version exceeds *since_version*. Returns new version."""
        if self._event is None:
            self._event = asyncio.Event()
        while self._version <= since_version:
            self._event.clear()
            await self._event.wait()
        return self._version

    def list_diagrams(self) -> List[Dict[str, Any]]:
        """Summaries (no diagram text), most recently updated first."""
        summaries = [
            {
                "id": did,
                "name": record.get("name"),
                "syntaxMode": record.get("syntaxMode"),
                "createdAt": record.get("createdAt"),
                "updatedAt": record.get("updatedAt"),
            }
            for did, record in self._diagrams.items()
            if isinstance(record, dict)
        ]
        return sorted(summaries, key=lambda s: s["updatedAt"] or "", reverse=True)

    def get_diagram(self, did: str) -> Optional[DiagramConfig]:
        record = self._diagrams.get(did)
        if not isinstance(record, dict):
            return None
        try:
            return DiagramConfig.from_dict(record)
        except InvalidConfigError as exc:
            print(f"[store] Skipping unreadable diagram {did!r}: {exc}", file=sys.stderr)
            return None

    def put_diagram(self, config: DiagramConfig) -> Dict[str, Any]:
        """Insert or replace by name. Keeps the first creation time on replace."""
        did = diagram_id(config.name)
        now = datetime.now(timezone.utc).isoformat()
        existing = self._diagrams.get(did)

        record = config.to_dict()
        record["createdAt"] = (existing or {}).get("createdAt") or config.created_at or now
        record["updatedAt"] = now
        self._diagrams[did] = record
        self._save()
        self._notify()
        return {"id": did, **record}

    def remove_diagram(self, did: str) -> bool:
        if did in self._diagrams:
            del self._diagrams[did]
            self._save()
            self._notify()
            return True
        return False

    def clear_all(self) -> int:
        """Remove all saved diagrams. Returns count removed."""
        count = len(self._diagrams)
        self._diagrams.clear()
        self._save()
        self._notify()
        return count
