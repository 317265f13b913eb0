"""
===============================================================================
NATIVEBENCH - Suite Configuration
===============================================================================
Loads ``config/benchmark_config.yaml`` (or a user-supplied file) into typed
dataclasses.  Every key is optional: anything missing falls back to the
defaults below and to the size tables of the algorithm registry.

    mode: light | heavy
    heavy_iterations: 10
    output:    {results_dir, save_json, report_dir}
    database:  {enabled, path}
    memory:    {enabled}
    logging:   {level, file}
    algorithms:
      matrix: {iterations: 1, sizes: {small: 50}, heavy_sizes: {...}}

The database settings are an explicit object handed to the results store at
construction time; nothing here is module-level mutable state.
===============================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml

from nativebench.algorithms import ALGORITHMS
from nativebench.algorithms.base import AlgorithmDefinition
from nativebench.core.constants import HEAVY_ITERATIONS
from nativebench.core.errors import InputError

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "benchmark_config.yaml"

MODES = ("light", "heavy")


# =============================================================================
# CONFIGURATION RECORDS
# =============================================================================

@dataclass
class OutputConfig:
    results_dir: str = "results"
    save_json: bool = True
    report_dir: str = "results/report"


@dataclass
class DatabaseConfig:
    """Where (and whether) results are stored in SQLite."""
    enabled: bool = True
    path: str = "results/benchmarks.db"


@dataclass
class MemoryConfig:
    enabled: bool = True


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class AlgorithmOverrides:
    iterations: Optional[int] = None
    sizes: Optional[Dict[str, Any]] = None
    heavy_sizes: Optional[Dict[str, Any]] = None


@dataclass
class SuiteConfig:
    mode: str = "light"
    heavy_iterations: int = HEAVY_ITERATIONS
    output: OutputConfig = field(default_factory=OutputConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    algorithms: Dict[str, AlgorithmOverrides] = field(default_factory=dict)

    @property
    def heavy(self) -> bool:
        return self.mode == "heavy"

    def definitions(self, keys: Optional[Iterable[str]] = None) -> List[AlgorithmDefinition]:
        """
        Registry definitions with this configuration's overrides applied.

        Parameters
        ----------
        keys : iterable of str, optional
            Restrict to these algorithm keys (registry order otherwise).

        Raises
        ------
        InputError
            For an unknown key.
        """
        selected = list(keys) if keys else list(ALGORITHMS)
        unknown = [k for k in selected if k not in ALGORITHMS]
        if unknown:
            raise InputError(f"Unknown algorithm(s) {unknown}. Available: {', '.join(ALGORITHMS)}")

        definitions = []
        for key in selected:
            overrides = self.algorithms.get(key, AlgorithmOverrides())
            definitions.append(ALGORITHMS[key].with_overrides(
                iterations=overrides.iterations,
                sizes=overrides.sizes,
                heavy_sizes=overrides.heavy_sizes,
            ))
        return definitions


# =============================================================================
# PARSING
# =============================================================================

def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise InputError(f"Config section '{name}' must be a mapping, got {type(value).__name__}")
    return value


def _positive_int(value: Any, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InputError(f"{where} must be a positive integer, got {value!r}")
    return value


def _sizes(value: Any, where: str) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    if not isinstance(value, dict) or not value:
        raise InputError(f"{where} must be a non-empty mapping of size label -> input")
    return {str(label): size for label, size in value.items()}


def _algorithm_overrides(raw: Dict[str, Any]) -> Dict[str, AlgorithmOverrides]:
    overrides = {}
    for key, body in raw.items():
        if key not in ALGORITHMS:
            raise InputError(f"Unknown algorithm '{key}' in config. Available: {', '.join(ALGORITHMS)}")
        body = body or {}
        if not isinstance(body, dict):
            raise InputError(f"algorithms.{key} must be a mapping, got {body!r}")
        iterations = body.get("iterations")
        overrides[key] = AlgorithmOverrides(
            iterations=None if iterations is None else _positive_int(iterations, f"algorithms.{key}.iterations"),
            sizes=_sizes(body.get("sizes"), f"algorithms.{key}.sizes"),
            heavy_sizes=_sizes(body.get("heavy_sizes"), f"algorithms.{key}.heavy_sizes"),
        )
    return overrides


def parse_config(raw: Optional[Dict[str, Any]]) -> SuiteConfig:
    """Build a :class:`SuiteConfig` from an already-loaded mapping."""
    raw = raw or {}
    if not isinstance(raw, dict):
        raise InputError("Configuration root must be a mapping")

    mode = str(raw.get("mode", "light")).lower()
    if mode not in MODES:
        raise InputError(f"mode must be one of {MODES}, got {mode!r}")

    output = _section(raw, "output")
    database = _section(raw, "database")
    memory = _section(raw, "memory")
    log = _section(raw, "logging")

    defaults = SuiteConfig()
    return SuiteConfig(
        mode=mode,
        heavy_iterations=_positive_int(raw.get("heavy_iterations", HEAVY_ITERATIONS), "heavy_iterations"),
        output=OutputConfig(
            results_dir=str(output.get("results_dir", defaults.output.results_dir)),
            save_json=bool(output.get("save_json", defaults.output.save_json)),
            report_dir=str(output.get("report_dir", defaults.output.report_dir)),
        ),
        database=DatabaseConfig(
            enabled=bool(database.get("enabled", defaults.database.enabled)),
            path=str(database.get("path", defaults.database.path)),
        ),
        memory=MemoryConfig(enabled=bool(memory.get("enabled", defaults.memory.enabled))),
        logging=LoggingConfig(
            level=str(log.get("level", defaults.logging.level)).upper(),
            file=log.get("file"),
        ),
        algorithms=_algorithm_overrides(_section(raw, "algorithms")),
    )


def load_config(path: Optional[Union[str, Path]] = None) -> SuiteConfig:
    """
    Load the suite configuration from YAML.

    Parameters
    ----------
    path : str or Path, optional
        Config file.  Defaults to ``config/benchmark_config.yaml``; when that
        default is absent the built-in defaults are used.

    Raises
    ------
    InputError
        If an explicit *path* does not exist or the content is invalid.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH
        if not path.exists():
            logger.info("No config at %s, using built-in defaults", path)
            return SuiteConfig()
    path = Path(path)
    if not path.exists():
        raise InputError(f"Config file not found: {path}")

    logger.info("Loading configuration from: %s", path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise InputError(f"Invalid YAML in {path}: {exc}") from exc
    return parse_config(raw)
