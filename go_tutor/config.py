"""
Configuration management for the Go tutor engine.

Loads configuration from config.yaml and provides typed access.
Every setting has a default, so the engine runs without a config file;
the KataGo section is only needed to enable the external engine.
Supports both Mac (Darwin) and Linux KataGo paths with automatic detection.
"""

import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


def get_platform() -> str:
    """
    Detect the current operating system.

    Returns:
        'mac' for macOS/Darwin, 'linux' for Linux
    """
    system = platform.system().lower()
    if system == 'darwin':
        return 'mac'
    # Default to linux for other Unix-like systems
    return 'linux'


@dataclass
class KataGoConfig:
    """KataGo engine configuration."""
    katago_path: str
    model_path: str
    config_path: str
    visits: int = 200
    timeout: float = 10.0

    def is_available(self) -> bool:
        """True if the engine executable exists on disk."""
        return bool(self.katago_path) and Path(self.katago_path).is_file()


@dataclass
class AnalysisConfig:
    """Heuristic analysis parameters."""
    influence_decay: float = 2.0
    influence_threshold: float = 0.5
    safety_threshold: int = 2
    ownership_threshold: float = 0.5
    report_limit: int = 6


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class AppConfig:
    """Main application configuration."""
    katago: Optional[KataGoConfig] = None
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


def _find_config_file() -> Optional[Path]:
    search_paths = [
        Path.cwd() / "config.yaml",
        get_project_root() / "config.yaml",
    ]
    for path in search_paths:
        if path.exists():
            return path
    return None


def _parse_katago(katago_data: dict) -> Optional[KataGoConfig]:
    if not katago_data:
        return None

    # Multi-platform config has 'mac' / 'linux' subsections
    if 'mac' in katago_data or 'linux' in katago_data:
        current_platform = get_platform()
        platform_data = katago_data.get(current_platform) or {}
        if not platform_data:
            raise ValueError(f"No KataGo config found for platform '{current_platform}'")
        paths = platform_data
    else:
        paths = katago_data

    project_root = get_project_root()

    # Resolve relative paths to absolute paths
    def resolve_path(p: str) -> str:
        if not p:
            return ""
        path = Path(p)
        if not path.is_absolute():
            path = project_root / path
        return str(path.resolve())

    return KataGoConfig(
        katago_path=resolve_path(paths.get("katago_path", "")),
        model_path=resolve_path(paths.get("model_path", "")),
        config_path=resolve_path(paths.get("config_path", "")),
        visits=int(katago_data.get("visits", 200)),
        timeout=float(katago_data.get("timeout", 10.0)),
    )


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to config.yaml. If None, searches in:
                     1. Current directory
                     2. Project root (relative to this file)
                     and falls back to defaults when neither exists.

    Returns:
        AppConfig instance

    Raises:
        FileNotFoundError: If an explicit config_path does not exist
        ValueError: If the config file is invalid
    """
    if config_path is None:
        found = _find_config_file()
        if found is None:
            return AppConfig()
        path = found
    else:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return AppConfig()
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")

    defaults = AnalysisConfig()
    analysis_data = data.get("analysis") or {}
    try:
        analysis_config = AnalysisConfig(
            influence_decay=float(analysis_data.get("influence_decay", defaults.influence_decay)),
            influence_threshold=float(analysis_data.get("influence_threshold", defaults.influence_threshold)),
            safety_threshold=int(analysis_data.get("safety_threshold", defaults.safety_threshold)),
            ownership_threshold=float(analysis_data.get("ownership_threshold", defaults.ownership_threshold)),
            report_limit=int(analysis_data.get("report_limit", defaults.report_limit)),
        )
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid 'analysis' section in {path}: {e}")

    if analysis_config.influence_decay <= 0:
        raise ValueError("analysis.influence_decay must be positive")

    logging_data = data.get("logging") or {}
    logging_config = LoggingConfig(level=str(logging_data.get("level", "WARNING")).upper())

    return AppConfig(
        katago=_parse_katago(data.get("katago") or {}),
        analysis=analysis_config,
        logging=logging_config,
    )
