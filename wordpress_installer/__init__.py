"""WordPress-on-LAMP installer (state-driven, resumable).

Core design goals:
- Idempotent steps with explicit preconditions
- Resumable runs; generated secrets are persisted once and reused
- Atomic deployment of the site tree
- Structured edits of wp-config.php and Apache config
- Centralized logging
"""

__all__ = []
