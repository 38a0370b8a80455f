from __future__ import annotations

import grp
import logging
import pwd
from pathlib import Path
from typing import Any, Dict, Tuple

from ..context import InstallCtx
from ..lib.archive import MARKER_NAME
from ..lib.fsops import has_owner_and_mode, set_tree_permissions
from .step_60_app_configured import CONFIG_NAME

logger = logging.getLogger(__name__)


def _ids(ctx: InstallCtx) -> Tuple[int, int]:
    return pwd.getpwnam(ctx.cfg.web_user).pw_uid, grp.getgrnam(ctx.cfg.web_group).gr_gid


class PermissionsSetStep:
    step_id = "permissions_set"
    description = "Setting file permissions for WordPress"
    depends_on: Tuple[str, ...] = ("app_configured",)

    def is_satisfied(self, ctx: InstallCtx, state: Dict[str, Any]) -> bool:
        uid, gid = _ids(ctx)
        root = Path(ctx.cfg.wp_path)
        # Spot check only: the tree root plus two files this installer writes.
        return (
            has_owner_and_mode(root, uid=uid, gid=gid, mode=ctx.cfg.dir_mode)
            and has_owner_and_mode(root / MARKER_NAME, uid=uid, gid=gid, mode=ctx.cfg.file_mode)
            and has_owner_and_mode(root / CONFIG_NAME, uid=uid, gid=gid, mode=ctx.cfg.file_mode)
        )

    def apply(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        uid, gid = _ids(ctx)
        root = Path(ctx.cfg.wp_path)
        set_tree_permissions(root, uid=uid, gid=gid, dir_mode=ctx.cfg.dir_mode, file_mode=ctx.cfg.file_mode)
        logger.info(
            "Set %s:%s, dirs %o, files %o under %s",
            ctx.cfg.web_user,
            ctx.cfg.web_group,
            ctx.cfg.dir_mode,
            ctx.cfg.file_mode,
            root,
        )
        return state
