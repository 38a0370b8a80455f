"""Structured edits of wp-config.php define() statements.

Only single-line `define('NAME', 'value');` statements are touched; everything
else in the file is carried through verbatim.
"""

from __future__ import annotations

import re
from typing import Dict, Mapping

SALT_KEYS = (
    "AUTH_KEY",
    "SECURE_AUTH_KEY",
    "LOGGED_IN_KEY",
    "NONCE_KEY",
    "AUTH_SALT",
    "SECURE_AUTH_SALT",
    "LOGGED_IN_SALT",
    "NONCE_SALT",
)

PLACEHOLDERS = {
    "DB_NAME": "database_name_here",
    "DB_USER": "username_here",
    "DB_PASSWORD": "password_here",
}

_DEFINE_RE = re.compile(
    r"""define\(\s*(?P<q>['"])(?P<key>[A-Z_][A-Z0-9_]*)(?P=q)\s*,\s*'(?P<value>(?:[^'\\]|\\.)*)'\s*\)\s*;"""
)


def php_quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _php_unquote(value: str) -> str:
    return re.sub(r"\\(.)", r"\1", value)


def read_defines(text: str) -> Dict[str, str]:
    return {m.group("key"): _php_unquote(m.group("value")) for m in _DEFINE_RE.finditer(text)}


def parse_salts(block: str) -> Dict[str, str]:
    """Parse a salt block (as served by the WordPress secret-key API)."""

    defines = read_defines(block)
    missing = [k for k in SALT_KEYS if not defines.get(k)]
    if missing:
        raise ValueError(f"Salt block is missing: {', '.join(missing)}")
    return {k: defines[k] for k in SALT_KEYS}


def format_salts(salts: Mapping[str, str]) -> str:
    width = max(len(k) for k in SALT_KEYS) + 3
    lines = []
    for key in SALT_KEYS:
        name = f"'{key}',"
        lines.append(f"define( {name:<{width}} '{php_quote(salts[key])}' );")
    return "\n".join(lines) + "\n"


def render_config(template: str, values: Mapping[str, str]) -> str:
    """Replace the values of the named defines in template.

    Raises ValueError if a requested define does not occur in the template.
    """

    seen = set()

    def _sub(m: "re.Match[str]") -> str:
        key = m.group("key")
        if key not in values:
            return m.group(0)
        seen.add(key)
        q = m.group("q")
        return f"define( {q}{key}{q}, '{php_quote(values[key])}' );"

    rendered = _DEFINE_RE.sub(_sub, template)
    missing = sorted(set(values) - seen)
    if missing:
        raise ValueError(f"Template has no define() for: {', '.join(missing)}")
    return rendered


def has_placeholders(text: str) -> bool:
    defines = read_defines(text)
    return any(defines.get(k) == v for k, v in PLACEHOLDERS.items())


def is_configured_for(text: str, *, db_name: str, db_user: str) -> bool:
    defines = read_defines(text)
    return defines.get("DB_NAME") == db_name and defines.get("DB_USER") == db_user
