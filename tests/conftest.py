from __future__ import annotations

import grp
import os
import pwd
from typing import Any, Dict, Iterable, Optional, Set, Tuple

import pytest

from wordpress_installer.config import InstallerConfig
from wordpress_installer.context import InstallCtx
from wordpress_installer.lib.command import CmdResult, CommandError


class FakeStep:
    """Step backed by a shared set that stands in for the machine being provisioned."""

    def __init__(
        self,
        step_id: str,
        world: Set[str],
        *,
        depends_on: Iterable[str] = (),
        secrets: Tuple[str, ...] = (),
        fail: bool = False,
        check_error: Optional[Exception] = None,
    ) -> None:
        self.step_id = step_id
        self.description = f"fake {step_id}"
        self.depends_on = tuple(depends_on)
        self.world = world
        self.secrets = secrets
        self.fail = fail
        self.check_error = check_error
        self.applied = 0

    def is_satisfied(self, ctx: InstallCtx, state: Dict[str, Any]) -> bool:
        if self.check_error is not None:
            raise self.check_error
        return self.step_id in self.world

    def apply(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        self.applied += 1
        for name in self.secrets:
            ctx.ensure_secret(state, name)
        if self.fail:
            raise CommandError(CmdResult(argv=["false"], returncode=1, stdout="", stderr="boom: disk full"))
        self.world.add(self.step_id)
        return state


def chain(world: Set[str], *ids: str) -> list:
    steps = []
    prev: Tuple[str, ...] = ()
    for sid in ids:
        steps.append(FakeStep(sid, world, depends_on=prev))
        prev = (sid,)
    return steps


@pytest.fixture
def world() -> Set[str]:
    return set()


@pytest.fixture
def cfg(tmp_path) -> InstallerConfig:
    return InstallerConfig(
        raw={
            "wp_path": str(tmp_path / "www" / "html"),
            "work_dir": str(tmp_path / "work"),
            "web_user": pwd.getpwuid(os.getuid()).pw_name,
            "web_group": grp.getgrgid(os.getgid()).gr_name,
            "apache_mods_enabled": str(tmp_path / "apache2" / "mods-enabled"),
            "apache_conf_candidates": [
                str(tmp_path / "apache2" / "sites-available" / "000-default.conf"),
                str(tmp_path / "apache2" / "apache2.conf"),
            ],
            "apt_freshness_marker": str(tmp_path / "state" / "apt-updated"),
            "package_url": "https://example.invalid/latest.tar.gz",
        }
    )


@pytest.fixture
def ctx(cfg, tmp_path) -> InstallCtx:
    return InstallCtx(cfg=cfg, state_path=str(tmp_path / "state" / "state.json"))
