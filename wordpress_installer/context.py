from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from . import secret_gen
from .config import InstallerConfig
from .state_store import get_secret, put_secret, save_state

logger = logging.getLogger(__name__)


@dataclass
class InstallCtx:
    cfg: InstallerConfig
    state_path: Optional[str] = None
    generate: Callable[[str, InstallerConfig], str] = secret_gen.generate
    # Filled in by the pipeline during one run.
    applied: List[str] = field(default_factory=list)
    fresh_secrets: List[str] = field(default_factory=list)

    def checkpoint(self, state: Dict[str, Any]) -> None:
        if self.state_path:
            save_state(self.state_path, state)

    def ensure_secret(self, state: Dict[str, Any], name: str) -> str:
        """Return the recorded secret, generating and persisting it on first use.

        The state is saved before the caller can act on a new secret, so a
        credential that reaches the database is never lost to a crash.
        """

        value = get_secret(state, name)
        if value:
            return value

        value = self.generate(name, self.cfg)
        put_secret(state, name, value)
        self.checkpoint(state)
        self.fresh_secrets.append(name)
        logger.info("Generated and recorded secret %s", name)
        return value
