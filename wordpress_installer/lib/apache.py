"""Parse-modify-write of Apache <Directory> blocks.

Apache does not nest <Directory> sections, so a flat line scan is enough to
locate them. Edits keep every other line of the file untouched.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)

_OPEN_RE = re.compile(r"""^(?P<indent>\s*)<Directory\s+(?P<q>"?)(?P<path>[^">]+?)(?P=q)\s*>\s*$""", re.I)
_CLOSE_RE = re.compile(r"^\s*</Directory\s*>\s*$", re.I)
_ALLOW_RE = re.compile(r"^(?P<indent>\s*)AllowOverride\b(?P<args>.*)$", re.I)
_VHOST_CLOSE_RE = re.compile(r"^(?P<indent>\s*)</VirtualHost\s*>\s*$", re.I)


class ApacheConfigError(ValueError):
    pass


@dataclass(frozen=True)
class DirectoryBlock:
    path: str
    start: int
    end: int
    indent: str


def _norm(path: str) -> str:
    return path.strip().rstrip("/") or "/"


def find_directory_blocks(lines: Sequence[str]) -> List[DirectoryBlock]:
    blocks: List[DirectoryBlock] = []
    current = None
    for i, line in enumerate(lines):
        m = _OPEN_RE.match(line)
        if m:
            if current is not None:
                raise ApacheConfigError(f"Nested <Directory> at line {i + 1}")
            current = (m.group("path"), i, m.group("indent"))
            continue
        if _CLOSE_RE.match(line):
            if current is None:
                raise ApacheConfigError(f"Unmatched </Directory> at line {i + 1}")
            path, start, indent = current
            blocks.append(DirectoryBlock(path=_norm(path), start=start, end=i, indent=indent))
            current = None
    if current is not None:
        raise ApacheConfigError(f"Unterminated <Directory {current[0]}> at line {current[1] + 1}")
    return blocks


def find_directory_block(lines: Sequence[str], path: str) -> Optional[DirectoryBlock]:
    wanted = _norm(path)
    for block in find_directory_blocks(lines):
        if block.path == wanted:
            return block
    return None


def allows_override_all(text: str, path: str) -> bool:
    lines = text.splitlines()
    block = find_directory_block(lines, path)
    if block is None:
        return False
    args = [m.group("args").split() for m in (_ALLOW_RE.match(ln) for ln in lines[block.start + 1 : block.end]) if m]
    return bool(args) and all([a.lower() for a in arg] == ["all"] for arg in args)


def ensure_allow_override_all(text: str, path: str) -> str:
    """Return text with `AllowOverride All` set in the <Directory path> block.

    An existing block keeps its position: the first AllowOverride line is
    rewritten in place, further ones are dropped, and one is inserted after the
    opening tag if there was none. Without a block, a new one is added inside
    the last <VirtualHost>, or appended to the file.
    """

    lines = text.splitlines()
    trailing_nl = text.endswith("\n") or not text
    block = find_directory_block(lines, path)

    if block is not None:
        inner = lines[block.start + 1 : block.end]
        child_indent = block.indent + "\t"
        for ln in inner:
            if ln.strip():
                child_indent = ln[: len(ln) - len(ln.lstrip())]
                break

        new_inner: List[str] = []
        replaced = False
        for ln in inner:
            m = _ALLOW_RE.match(ln)
            if not m:
                new_inner.append(ln)
                continue
            if not replaced:
                new_inner.append(f"{m.group('indent')}AllowOverride All")
                replaced = True
        if not replaced:
            new_inner.insert(0, f"{child_indent}AllowOverride All")

        lines = lines[: block.start + 1] + new_inner + lines[block.end :]
    else:
        vhost_close = None
        for i, ln in enumerate(lines):
            if _VHOST_CLOSE_RE.match(ln):
                vhost_close = i

        if vhost_close is not None:
            indent = _VHOST_CLOSE_RE.match(lines[vhost_close]).group("indent") + "\t"
            insert_at = vhost_close
        else:
            indent = ""
            insert_at = len(lines)

        new_block = [
            f"{indent}<Directory {_norm(path)}>",
            f"{indent}\tAllowOverride All",
            f"{indent}\tOptions FollowSymLinks",
            f"{indent}\tRequire all granted",
            f"{indent}</Directory>",
        ]
        if insert_at > 0 and lines[insert_at - 1].strip():
            new_block.insert(0, "")
        lines = lines[:insert_at] + new_block + lines[insert_at:]

    out = "\n".join(lines)
    return out + "\n" if trailing_nl else out


def pick_config(candidates: Sequence[str]) -> Optional[Path]:
    for c in candidates:
        p = Path(c)
        if p.is_file():
            return p
    return None


def module_enabled(mods_enabled: str, module: str) -> bool:
    return (Path(mods_enabled) / f"{module}.load").exists()
