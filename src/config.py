from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


ENV_PREFIX = "CHECKERS_"


@dataclass(frozen=True)
class EngineConfig:
    """Runtime defaults for the HTTP service and the command-line tools.

    Attributes:
        variant (str): Variant used when a request does not name one.
        search_depth (int): Default search depth in plies.
        quiescence_depth (int): Default capture-only extension depth.
        search_timeout_s (float): Caller-level limit on one search.
        log_level (str): Root logging level name.
    """

    variant: str = "standard"
    search_depth: int = 4
    quiescence_depth: int = 4
    search_timeout_s: float = 30.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Read ``CHECKERS_*`` overrides from the environment.

        Raises:
            ValueError: If a numeric variable does not parse.
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            variant=env.get(ENV_PREFIX + "VARIANT", defaults.variant).strip().lower(),
            search_depth=int(env.get(ENV_PREFIX + "SEARCH_DEPTH", defaults.search_depth)),
            quiescence_depth=int(
                env.get(ENV_PREFIX + "QUIESCENCE_DEPTH", defaults.quiescence_depth)
            ),
            search_timeout_s=float(env.get(ENV_PREFIX + "SEARCH_TIMEOUT", defaults.search_timeout_s)),
            log_level=env.get(ENV_PREFIX + "LOG_LEVEL", defaults.log_level).upper(),
        )
