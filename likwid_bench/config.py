import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """The configuration file is missing, malformed or points at missing files."""


@dataclass
class RegionConfig:
    label: str
    regions: List[str]


@dataclass
class TableConfig:
    title: str
    metrics: List[str]


@dataclass
class TestConfig:
    label: str
    params: List[str]
    n: Optional[float] = None

    def x_value(self) -> float:
        if self.n is not None:
            return float(self.n)
        return float(self.label)


@dataclass
class Config:
    target_paths: List[str]
    output_path: str
    core: int
    tests: List[TestConfig]
    groups: List[str]
    regions: List[RegionConfig]
    tables: List[TableConfig]

    def x_axis(self) -> List[float]:
        return [test.x_value() for test in self.tests]


def _require(data: Dict[str, Any], key: str, kind: type, where: str = "config") -> Any:
    if not isinstance(data, dict):
        raise ConfigError(f"{where} must be a JSON object")
    if key not in data:
        raise ConfigError(f"Missing '{key}' in {where}")
    value = data[key]
    if not isinstance(value, kind) or isinstance(value, bool):
        raise ConfigError(f"'{key}' in {where} must be of type {kind.__name__}")
    return value


def _string_list(data: Dict[str, Any], key: str, where: str = "config") -> List[str]:
    values = _require(data, key, list, where)
    if not all(isinstance(v, str) for v in values):
        raise ConfigError(f"'{key}' in {where} must be a list of strings")
    return values


def _parse_test(data: Dict[str, Any], index: int) -> TestConfig:
    where = f"tests[{index}]"
    test = TestConfig(
        label=_require(data, 'label', str, where),
        params=_string_list(data, 'params', where),
        n=data.get('n'),
    )
    try:
        test.x_value()
    except (TypeError, ValueError):
        raise ConfigError(
            f"{where}: label '{test.label}' is not numeric, set 'n' to its x-axis value"
        ) from None
    return test


def parse_config(data: Dict[str, Any]) -> Config:
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object")
    return Config(
        target_paths=_string_list(data, 'target_paths'),
        output_path=_require(data, 'output_path', str),
        core=_require(data, 'core', int),
        tests=[_parse_test(t, i) for i, t in enumerate(_require(data, 'tests', list))],
        groups=_string_list(data, 'groups'),
        regions=[
            RegionConfig(label=_require(r, 'label', str, f"regions[{i}]"),
                         regions=_string_list(r, 'regions', f"regions[{i}]"))
            for i, r in enumerate(_require(data, 'regions', list))
        ],
        tables=[
            TableConfig(title=_require(t, 'title', str, f"tables[{i}]"),
                        metrics=_string_list(t, 'metrics', f"tables[{i}]"))
            for i, t in enumerate(_require(data, 'tables', list))
        ],
    )


def relativize_targets(config: Config, config_dir: Path) -> List[str]:
    targets = []
    for target in config.target_paths:
        path = config_dir / target
        if not path.is_file():
            raise ConfigError(f"Test executable not found: {path}. Did you run make?")
        targets.append(str(path.resolve()))
    return targets


def relativize_output(config: Config, config_dir: Path) -> str:
    path = config_dir / config.output_path
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigError(f"Could not create output directory {path}: {e}") from e
    return str(path.resolve())


def load_config(config_path: Union[str, Path]) -> Config:
    """
    Load a JSON config. Target executables and the output directory are
    resolved relative to the config file; the output directory is created.
    """
    config_path = Path(config_path)
    logger.info("Reading configuration from %s", config_path)

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigError(f"Failed to read configuration file: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to parse configuration file: {e}") from e

    config = parse_config(data)
    config_dir = config_path.resolve().parent
    config.target_paths = relativize_targets(config, config_dir)
    config.output_path = relativize_output(config, config_dir)
    return config
