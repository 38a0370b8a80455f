from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError

DEFAULT_PACKAGES = [
    "apache2",
    "mariadb-server",
    "php",
    "libapache2-mod-php",
    "php-mysql",
    "php-curl",
    "php-gd",
    "php-xml",
    "php-mbstring",
    "php-zip",
    "php-imagick",
    "wget",
    "unzip",
]

DEFAULTS: Dict[str, Any] = {
    "wp_path": "/var/www/html",
    "db_name": "wordpress_db",
    "db_user": "wp_user",
    "db_host": "localhost",
    "packages": DEFAULT_PACKAGES,
    "web_service": "apache2",
    "db_service": "mariadb",
    "web_user": "www-data",
    "web_group": "www-data",
    "package_url": "https://wordpress.org/latest.tar.gz",
    # None means "<package_url>.<checksum_algorithm>"
    "checksum_url": None,
    "checksum_algorithm": "sha1",
    "package_root": "wordpress",
    "salt_url": "https://api.wordpress.org/secret-key/1.1/salt/",
    "db_password_bytes": 12,
    "root_password_bytes": 15,
    "apache_module": "rewrite",
    "apache_conf_candidates": [
        "/etc/apache2/sites-available/000-default.conf",
        "/etc/apache2/apache2.conf",
    ],
    "apache_mods_enabled": "/etc/apache2/mods-enabled",
    # Touched by packages_updated; apt's own caches are absent on docker-clean images.
    "apt_freshness_marker": "/var/lib/wordpress-installer/apt-updated",
    "apt_max_age_hours": 24,
    "work_dir": "/tmp/wordpress-installer",
    "dir_mode": 0o755,
    "file_mode": 0o644,
    "http_timeout": 30,
}


def _mode(value: Any) -> int:
    # YAML users tend to write modes as "0755" strings.
    if isinstance(value, str):
        return int(value, 8)
    return int(value)


@dataclass(frozen=True)
class InstallerConfig:
    raw: Dict[str, Any] = field(default_factory=dict)

    def _get(self, key: str) -> Any:
        value = self.raw.get(key)
        return DEFAULTS[key] if value is None else value

    @property
    def wp_path(self) -> str:
        return str(self._get("wp_path")).rstrip("/") or "/"

    @property
    def db_name(self) -> str:
        return str(self._get("db_name"))

    @property
    def db_user(self) -> str:
        return str(self._get("db_user"))

    @property
    def db_host(self) -> str:
        return str(self._get("db_host"))

    @property
    def packages(self) -> List[str]:
        return [str(p) for p in self._get("packages")]

    @property
    def web_service(self) -> str:
        return str(self._get("web_service"))

    @property
    def db_service(self) -> str:
        return str(self._get("db_service"))

    @property
    def web_user(self) -> str:
        return str(self._get("web_user"))

    @property
    def web_group(self) -> str:
        return str(self._get("web_group"))

    @property
    def package_url(self) -> str:
        return str(self._get("package_url"))

    @property
    def checksum_algorithm(self) -> str:
        return str(self._get("checksum_algorithm")).lower()

    @property
    def checksum_url(self) -> str:
        url = self.raw.get("checksum_url")
        return str(url) if url else f"{self.package_url}.{self.checksum_algorithm}"

    @property
    def package_root(self) -> str:
        return str(self._get("package_root")).strip("/")

    @property
    def salt_url(self) -> str:
        return str(self._get("salt_url"))

    @property
    def db_password_bytes(self) -> int:
        return int(self._get("db_password_bytes"))

    @property
    def root_password_bytes(self) -> int:
        return int(self._get("root_password_bytes"))

    @property
    def apache_module(self) -> str:
        return str(self._get("apache_module"))

    @property
    def apache_conf_candidates(self) -> List[str]:
        return [str(p) for p in self._get("apache_conf_candidates")]

    @property
    def apache_mods_enabled(self) -> str:
        return str(self._get("apache_mods_enabled"))

    @property
    def apt_freshness_marker(self) -> str:
        return str(self._get("apt_freshness_marker"))

    @property
    def apt_max_age_hours(self) -> float:
        return float(self._get("apt_max_age_hours"))

    @property
    def work_dir(self) -> str:
        return str(self._get("work_dir"))

    @property
    def dir_mode(self) -> int:
        return _mode(self._get("dir_mode"))

    @property
    def file_mode(self) -> int:
        return _mode(self._get("file_mode"))

    @property
    def http_timeout(self) -> float:
        return float(self._get("http_timeout"))

    def with_overrides(self, **overrides: Any) -> "InstallerConfig":
        """Return a copy with non-None overrides applied (CLI flags win over the file)."""

        raw = dict(self.raw)
        for key, value in overrides.items():
            if value is None:
                continue
            if key not in DEFAULTS:
                raise ConfigError(f"Unknown config key: {key}")
            raw[key] = value
        return InstallerConfig(raw=raw)


def load_config(path: Optional[str]) -> InstallerConfig:
    if not path:
        return InstallerConfig()

    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file not found: {path}")

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigError("installer config must be YAML")

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping/object")

    unknown = sorted(set(raw) - set(DEFAULTS))
    if unknown:
        raise ConfigError(f"Unknown config keys in {path}: {', '.join(unknown)}")

    return InstallerConfig(raw=raw)
