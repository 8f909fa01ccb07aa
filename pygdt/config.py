"""pygdt.config
Process-wide defaults for quadrature, grid walking and logging.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Optional


@dataclass(frozen=True)
class QuadratureConfig:
    over_integrate: int = 0


@dataclass(frozen=True)
class WalkerConfig:
    num_workers: Optional[int] = None      # None -> os.cpu_count()
    num_partitions: Optional[int] = None   # None -> one partition per worker

    def resolved_workers(self) -> int:
        return max(1, int(self.num_workers or os.cpu_count() or 1))

    def resolved_partitions(self, num_workers: int) -> int:
        return max(1, int(self.num_partitions or num_workers))


@dataclass(frozen=True)
class AssemblyConfig:
    quadrature: QuadratureConfig = field(default_factory=QuadratureConfig)
    walker: WalkerConfig = field(default_factory=WalkerConfig)
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "AssemblyConfig":
        def _int(name):
            raw = os.environ.get(name)
            return int(raw) if raw not in (None, "") else None

        over = _int("PYGDT_OVER_INTEGRATE")
        return cls(
            quadrature=QuadratureConfig(over_integrate=over if over is not None else 0),
            walker=WalkerConfig(num_workers=_int("PYGDT_NUM_WORKERS"),
                                num_partitions=_int("PYGDT_NUM_PARTITIONS")),
            log_level=os.environ.get("PYGDT_LOG_LEVEL", "WARNING").upper(),
        )

    def with_over_integrate(self, over_integrate: int) -> "AssemblyConfig":
        return replace(self, quadrature=QuadratureConfig(over_integrate=int(over_integrate)))


_CONFIG = AssemblyConfig.from_env()


def get_config() -> AssemblyConfig:
    return _CONFIG


def set_config(config: AssemblyConfig) -> AssemblyConfig:
    """Install ``config`` as process default and return the previous one."""
    global _CONFIG
    previous, _CONFIG = _CONFIG, config
    return previous


def configure_logging(level=None):
    """Attach a stream handler to the ``pygdt`` logger (for scripts)."""
    level = level if level is not None else get_config().log_level
    logger = logging.getLogger("pygdt")
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s: %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
