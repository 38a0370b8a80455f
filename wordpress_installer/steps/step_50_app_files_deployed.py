from __future__ import annotations

import logging
import shutil
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Tuple
from urllib.parse import urlparse

from ..context import InstallCtx
from ..lib.archive import (
    download,
    extract_tarball,
    fetch_text,
    parse_checksum,
    read_marker,
    read_wp_version,
    verify_checksum,
    write_marker,
)
from ..lib.fsops import recover_interrupted_swap, staging_path, swap_directory

logger = logging.getLogger(__name__)

PRESERVED_FILES = ("wp-config.php",)


class AppFilesDeployedStep:
    step_id = "app_files_deployed"
    description = "Downloading and deploying WordPress files"
    depends_on: Tuple[str, ...] = ("packages_installed",)

    def is_satisfied(self, ctx: InstallCtx, state: Dict[str, Any]) -> bool:
        marker = read_marker(Path(ctx.cfg.wp_path))
        return bool(marker and marker.get("version") and marker.get("checksum"))

    def apply(self, ctx: InstallCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = ctx.cfg
        target = Path(cfg.wp_path)
        work = Path(cfg.work_dir)
        # Staging sits beside the target so the final rename stays on one filesystem.
        staging = staging_path(target)

        recover_interrupted_swap(target)

        try:
            archive_name = PurePosixPath(urlparse(cfg.package_url).path).name or "package.tar.gz"
            archive = download(cfg.package_url, work / archive_name, timeout=cfg.http_timeout)
            expected = parse_checksum(fetch_text(cfg.checksum_url, timeout=cfg.http_timeout))
            checksum = verify_checksum(archive, expected, cfg.checksum_algorithm)

            if staging.exists():
                shutil.rmtree(staging)
            extract_tarball(archive, staging)

            tree = staging / cfg.package_root if cfg.package_root else staging
            if not tree.is_dir():
                raise RuntimeError(f"Archive has no {cfg.package_root}/ directory")

            for name in PRESERVED_FILES:
                old = target / name
                if old.is_file():
                    logger.info("Carrying existing %s over to the new tree", name)
                    shutil.copy2(old, tree / name)

            version = read_wp_version(tree)
            write_marker(
                tree,
                {
                    "version": version or "unknown",
                    "checksum": checksum,
                    "algorithm": cfg.checksum_algorithm,
                    "source": cfg.package_url,
                },
            )
            swap_directory(tree, target)
            logger.info("Deployed WordPress %s to %s", version or "(unknown version)", target)
        finally:
            shutil.rmtree(work, ignore_errors=True)
            shutil.rmtree(staging, ignore_errors=True)

        return state
