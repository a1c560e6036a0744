import logging
import os
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import yaml

from .directive import DIRECTIVE_TAG
from .writer import LAYOUTS

logger = logging.getLogger(__name__)


YAML_FILES = [
    "jsmkdocs.yaml",
    "jsmkdocs.yml",
]

DEFAULT_IGNORE = [".gitignore", ".git", "node_modules"]


@dataclass
class AppConfig:
    source: List[str] = field(default_factory=lambda: ["./"])
    ignore: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE))
    output: str = "./docs_src"
    regex: str = r"\.js$"
    pattern: str = "*.js"
    layout: str = "sections"
    directive: str = DIRECTIVE_TAG
    # Directory relative paths are resolved against
    base_dir: str = "."

    def resolve(self, path: str) -> str:
        return os.path.normpath(os.path.join(os.path.abspath(self.base_dir), path))

    @property
    def output_path(self) -> str:
        return self.resolve(self.output)

    @property
    def source_paths(self) -> List[str]:
        return [self.resolve(s) for s in self.source]


def _load_yaml(path: str) -> Dict:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return data


def _string_list(data: Dict, key: str, default: List[str]) -> List[str]:
    value = data.get(key, default)
    if isinstance(value, str):
        value = [v.strip() for v in value.split(",") if v.strip()]
    if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
        raise ValueError(f"Config '{key}' must be a list of non-empty strings")
    return list(value)


def validate_config(cfg: AppConfig) -> AppConfig:
    if not cfg.source:
        raise ValueError("Config 'source' must name at least one file or directory")
    if not isinstance(cfg.output, str) or not cfg.output.strip():
        raise ValueError("Config 'output' must be a non-empty string")
    try:
        re.compile(cfg.regex)
    except re.error as e:
        raise ValueError(f"Config 'regex' is not a valid regular expression: {e}") from e
    if cfg.layout not in LAYOUTS:
        raise ValueError(f"Config 'layout' must be one of: {', '.join(LAYOUTS)}")
    if not cfg.directive or not re.match(r"^\w[\w-]*$", cfg.directive):
        raise ValueError("Config 'directive' must be a tag name such as 'docs'")
    return cfg


def find_config_file(directory: str) -> Optional[str]:
    for name in YAML_FILES:
        p = os.path.join(directory, name)
        if os.path.exists(p):
            return p
    return None


def load_config(path_or_dir: Optional[str] = None) -> AppConfig:
    """Load configuration from YAML.

    If path_or_dir is a file, load that file. If it's a directory (or None),
    search for a known YAML config name in that directory and fall back to
    defaults when there is none.

    Note: relative 'source' and 'output' paths are resolved relative to the
    directory containing the configuration file, not the current working directory.
    """
    candidate = os.path.abspath(path_or_dir or os.getcwd())
    if os.path.isdir(candidate):
        config_file_path = find_config_file(candidate)
        if config_file_path is None:
            logger.info("No config found in %s (looked for %s), using defaults", candidate, ", ".join(YAML_FILES))
            return validate_config(AppConfig(base_dir=candidate))
    elif os.path.exists(candidate):
        config_file_path = candidate
    else:
        raise FileNotFoundError(f"Config file not found: {candidate}")

    logger.info("Loading config from %s", config_file_path)
    data = _load_yaml(config_file_path)
    defaults = AppConfig()

    output = data.get("output", defaults.output)
    if not isinstance(output, str):
        raise ValueError("Config 'output' must be a non-empty string")

    cfg = AppConfig(
        source=_string_list(data, "source", defaults.source),
        ignore=_string_list(data, "ignore", defaults.ignore),
        output=output,
        regex=str(data.get("regex", defaults.regex)),
        pattern=str(data.get("pattern", defaults.pattern)),
        layout=str(data.get("layout", defaults.layout)).strip().lower(),
        directive=str(data.get("directive", defaults.directive)).strip(),
        base_dir=os.path.dirname(config_file_path),
    )
    return validate_config(cfg)
