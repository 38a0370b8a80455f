from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

STATE_VERSION = 1

PENDING = "pending"
RUNNING = "running"
DONE = "done"
FAILED = "failed"


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"json", "yaml", "yml"}:
        return ext
    # Default to JSON for unknown extensions.
    return "json"


def _dumps(state: Dict[str, Any], fmt: str) -> str:
    if fmt in {"yaml", "yml"}:
        return yaml.safe_dump(state, sort_keys=True, default_flow_style=False)
    return json.dumps(state, indent=2, sort_keys=True) + "\n"


def load_state(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return {}

    text = p.read_text(encoding="utf-8")
    if _detect_format(p) in {"yaml", "yml"}:
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"State file {path} is not valid YAML: {e}") from e
    else:
        data = json.loads(text)

    if not isinstance(data, dict):
        raise ValueError(f"State file must be an object/dict, got {type(data)}")

    return data


def save_state(path: str, state: Dict[str, Any]) -> None:
    """Write state atomically: temp file in the same directory, fsync, rename."""

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    payload = _dumps(state, _detect_format(p))

    fd, tmp = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=str(p.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        # Secrets live in here.
        os.chmod(tmp, 0o600)
        os.replace(tmp, p)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def ensure_defaults(state: Dict[str, Any]) -> Dict[str, Any]:
    """Fill required keys with defaults (without overriding recorded values)."""

    state.setdefault("version", STATE_VERSION)
    state.setdefault("steps", {})
    state.setdefault("secrets", {})
    state.setdefault("errors", [])
    return state


def reset_state(state: Dict[str, Any], *, keep_secrets: bool = False) -> Dict[str, Any]:
    secrets = dict(state.get("secrets") or {}) if keep_secrets else {}
    state.clear()
    ensure_defaults(state)
    state["secrets"] = secrets
    return state


def step_status(state: Dict[str, Any], step_id: str) -> str:
    return str((state.get("steps") or {}).get(step_id) or PENDING)


def set_step_status(state: Dict[str, Any], step_id: str, status: str) -> None:
    state.setdefault("steps", {})[step_id] = status


def get_secret(state: Dict[str, Any], name: str) -> Optional[str]:
    value = (state.get("secrets") or {}).get(name)
    return str(value) if value else None


def put_secret(state: Dict[str, Any], name: str, value: str) -> None:
    secrets = state.setdefault("secrets", {})
    if secrets.get(name):
        raise ValueError(f"Secret {name} is already recorded; refusing to replace it")
    secrets[name] = value


def record_error(state: Dict[str, Any], step_id: Optional[str], error: str) -> None:
    state.setdefault("errors", []).append({"step": step_id, "error": error})
