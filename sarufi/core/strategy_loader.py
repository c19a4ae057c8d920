"""Strategy loader.

Loads strategy definitions from YAML files in config/strategies/.
Each file holds one strategy: goals, personality, guidelines, knowledge and
the oracle provider/model selector.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
import yaml
from pydantic import ValidationError as PydanticValidationError

from sarufi.core.config import settings
from sarufi.core.exceptions import ConfigurationError
from sarufi.domain.models.strategy import Strategy

log = structlog.get_logger(__name__)

# Module-level cache keyed by resolved file path (strategy files don't change at runtime)
_cache: Dict[str, Dict[str, Any]] = {}


def _strategies_dir(strategies_dir: Optional[Path] = None) -> Path:
    directory = Path(strategies_dir or settings.strategies_dir)
    if directory.is_absolute():
        return directory

    project_dir = Path(__file__).resolve().parent.parent.parent / directory
    if project_dir.exists():
        return project_dir
    return Path.cwd() / directory


def list_strategy_files(strategies_dir: Optional[Path] = None) -> List[Path]:
    """Strategy YAML files, sorted by name."""
    directory = _strategies_dir(strategies_dir)
    if not directory.exists():
        return []
    return sorted(list(directory.glob("*.yaml")) + list(directory.glob("*.yml")))


def load_strategy(name: str, strategies_dir: Optional[Path] = None) -> Strategy:
    """Load a strategy from <strategies_dir>/<name>.yaml.

    Args:
        name: File stem (e.g., "shoe_sales")
        strategies_dir: Directory to search (defaults to settings.strategies_dir)

    Returns:
        Validated Strategy

    Raises:
        FileNotFoundError: If no file exists for `name`
        ConfigurationError: If the file is not a valid strategy
    """
    directory = _strategies_dir(strategies_dir)
    strategy_file = directory / f"{name}.yaml"
    if not strategy_file.exists():
        strategy_file = directory / f"{name}.yml"
    return load_strategy_file(strategy_file)


def load_strategy_file(strategy_file: Path) -> Strategy:
    """Load and validate one strategy YAML file (cached)."""
    key = str(Path(strategy_file).resolve())
    if key in _cache:
        return Strategy(**_cache[key])

    if not Path(strategy_file).exists():
        available = ", ".join(p.stem for p in list_strategy_files(Path(strategy_file).parent))
        raise FileNotFoundError(
            f"Strategy file not found: {strategy_file}\n"
            f"Available strategies: {available}"
        )

    with open(strategy_file) as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ConfigurationError(f"Strategy file {strategy_file} must contain a mapping")

    try:
        strategy = Strategy(**data)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid strategy file {strategy_file}: {e}") from e

    _cache[key] = data

    log.info("strategy_loaded", strategy=strategy.name, file=Path(strategy_file).name)
    return strategy


def load_all_strategies(strategies_dir: Optional[Path] = None) -> Dict[str, Strategy]:
    """Load every strategy file in a directory.

    Files that fail to load are logged and skipped.

    Returns:
        Dict mapping strategy name to Strategy
    """
    strategies: Dict[str, Strategy] = {}
    for strategy_file in list_strategy_files(strategies_dir):
        try:
            strategy = load_strategy_file(strategy_file)
        except (ConfigurationError, yaml.YAMLError, OSError) as e:
            log.warning(
                "failed_to_load_strategy",
                file=str(strategy_file),
                error=str(e),
            )
            continue
        strategies[strategy.name] = strategy
    return strategies


def clear_cache() -> None:
    _cache.clear()
