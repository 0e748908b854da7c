import logging
import os
from collections.abc import Mapping
from pathlib import Path

from src.rules.models import Rules

logger = logging.getLogger(__name__)


class OpsConfigError(RuntimeError):
    pass


def validate_ops_rules(
    rules: Rules, data_dir: Path, env: Mapping[str, str] | None = None
) -> None:
    """
    Validate operational requirements before startup.
    """
    env = os.environ if env is None else env

    # 1. Data dir must exist (created if missing) for the SQLite file
    data_dir.mkdir(parents=True, exist_ok=True)

    # 2. Check Required Env
    missing = [name for name in rules.ops.required_env if name not in env]
    if missing:
        raise OpsConfigError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    # 3. Rate limit backend
    if rules.rate_limits.backend not in ("memory", "shared"):
        raise OpsConfigError(
            f"Unknown rate limit backend {rules.rate_limits.backend!r} "
            "(expected 'memory' or 'shared')"
        )

    logger.info("Configuration validated (data dir %s)", data_dir)
