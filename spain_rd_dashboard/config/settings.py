"""Configuration management for the Spain R&D dashboard pipeline.

This module provides configuration loading and validation from YAML files.
Dataset schemas (delimiters, column names, sector codes) are declared here so
that no adapter hardcodes a dataset's vocabulary.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin
import yaml
from dataclasses import dataclass, field


@dataclass
class PathConfig:
    """Path configuration container."""

    data_root: Path
    lookups: Path


@dataclass
class HTTPConfig:
    """HTTP request configuration."""

    timeout: int = 30
    retries: int = 3
    backoff_factor: float = 0.5
    retry_statuses: List[int] = field(default_factory=lambda: [429, 500, 502, 503, 504])
    base_url: Optional[str] = None


@dataclass
class DatasetConfig:
    """Schema of one published CSV dataset.

    Attributes:
        name: Dataset key used throughout the pipeline
        source: File path (relative to data_root) or http(s) URL
        entity_kind: Entity class the dataset carries ('country' or 'region')
        year_column: Column holding the year (ignored for wide layouts)
        entity_columns: Columns tried in order to resolve the entity
        value_column: Column holding the observation (ignored for wide layouts)
        delimiter: Field separator; None to detect it from the header line
        decimal: Decimal separator of numeric cells ('.' or ',')
        layout: 'long' (one row per observation) or 'wide' (one column per year)
        sector_column: Column holding the native sector code, if any
        sector_codes: Canonical sector id -> native sector code
        unit_column: Column holding the unit of measure, if any
        filters: Fixed dimensions a row must match (column -> value)
        duplicates: 'first' keeps the first observation per key, 'sum' aggregates
        exclude_columns: Columns skipped when melting a wide layout
        encoding: Text encoding of the file
    """

    name: str
    source: str
    entity_kind: str
    entity_columns: List[str]
    year_column: Optional[str] = None
    value_column: Optional[str] = None
    delimiter: Optional[str] = None
    decimal: str = "."
    layout: str = "long"
    sector_column: Optional[str] = None
    sector_codes: Dict[str, str] = field(default_factory=dict)
    unit_column: Optional[str] = None
    filters: Dict[str, str] = field(default_factory=dict)
    duplicates: str = "first"
    exclude_columns: List[str] = field(default_factory=list)
    encoding: str = "utf-8-sig"

    def __post_init__(self) -> None:
        if self.layout not in ("long", "wide"):
            raise ValueError(f"Dataset {self.name}: unknown layout {self.layout!r}")
        if self.duplicates not in ("first", "sum"):
            raise ValueError(f"Dataset {self.name}: unknown duplicates policy {self.duplicates!r}")
        if self.decimal not in (".", ","):
            raise ValueError(f"Dataset {self.name}: decimal must be '.' or ','")
        if self.layout == "long" and (not self.year_column or not self.value_column):
            raise ValueError(f"Dataset {self.name}: long layout needs year_column and value_column")
        if not self.entity_columns:
            raise ValueError(f"Dataset {self.name}: at least one entity column is required")

    @property
    def is_remote(self) -> bool:
        return self.source.startswith(("http://", "https://"))


@dataclass
class LayoutConfig:
    """Chart-end annotation layout configuration."""

    min_gap: float = 24.0
    plot_height: float = 300.0
    flag_size: int = 20
    flag_margin: int = 6


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None
    console: bool = True


@dataclass
class FeaturesConfig:
    """Feature flags configuration."""

    show_progress: bool = True
    warn_unresolved: bool = True


@dataclass
class Settings:
    """Main settings container for the dashboard pipeline.

    Attributes:
        project: Project metadata (name, version, root directory)
        paths: Data root and lookup table locations
        http: Remote dataset download settings
        datasets: Dataset schemas keyed by dataset name
        layout: Annotation layout settings
        logging: Logging configuration
        features: Feature flags
    """

    project: Dict[str, Any]
    paths: PathConfig
    http: HTTPConfig
    datasets: Dict[str, DatasetConfig]
    layout: LayoutConfig
    logging: LoggingConfig
    features: FeaturesConfig

    @classmethod
    def from_yaml(cls, config_path: Optional[str] = None) -> "Settings":
        """Load settings from YAML configuration file.

        Args:
            config_path: Path to YAML configuration file.
                        If None, uses default config/config.yaml

        Returns:
            Settings instance with loaded configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If config file has invalid YAML syntax
            KeyError: If required configuration keys are missing
        """
        if config_path is None:
            # Try to find config.yaml in expected locations
            possible_paths = [
                Path("config/config.yaml"),
                Path("../config/config.yaml"),
                Path(__file__).parent.parent.parent / "config" / "config.yaml",
            ]
            config_path = None
            for p in possible_paths:
                if p.exists():
                    config_path = p
                    break

            if config_path is None:
                raise FileNotFoundError(
                    "Could not find config/config.yaml. "
                    "Please create it or specify path explicitly."
                )
        else:
            config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)

        # Relative roots are resolved against the project root (parent of config/)
        root_dir = Path(config["project"].get("root_dir", "."))
        if not root_dir.is_absolute():
            if str(root_dir) == ".":
                root_dir = config_path.parent.parent.resolve()
            else:
                root_dir = (config_path.parent.parent / root_dir).resolve()

        paths_dict = config["paths"]
        path_config = PathConfig(
            data_root=root_dir / paths_dict["data_root"],
            lookups=root_dir / paths_dict["lookups"],
        )

        http_config = HTTPConfig(**config.get("http", {}))

        datasets = {
            name: DatasetConfig(name=name, **dataset_dict)
            for name, dataset_dict in config["datasets"].items()
        }

        return cls(
            project=config["project"],
            paths=path_config,
            http=http_config,
            datasets=datasets,
            layout=LayoutConfig(**config.get("layout", {})),
            logging=LoggingConfig(**config.get("logging", {})),
            features=FeaturesConfig(**config.get("features", {})),
        )

    def dataset(self, name: str) -> DatasetConfig:
        """Get a dataset schema by name.

        Raises:
            KeyError: If the dataset is not configured
        """
        if name not in self.datasets:
            raise KeyError(f"Unknown dataset: {name}. Configured: {sorted(self.datasets)}")
        return self.datasets[name]

    def resolve_source(self, dataset: DatasetConfig) -> str:
        """Absolute path or URL from which a dataset is read."""
        if dataset.is_remote:
            return dataset.source
        if self.http.base_url:
            # Relative sources resolve under base_url; "/..." resolves from the host root
            return urljoin(self.http.base_url.rstrip("/") + "/", dataset.source)
        return str(self.paths.data_root / dataset.source)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings(config_path: Optional[str] = None, force_reload: bool = False) -> Settings:
    """Get or create global settings instance.

    Configuration is loaded only once unless explicitly reloaded.

    Args:
        config_path: Path to YAML configuration file. If None, uses default.
        force_reload: If True, reload settings even if already loaded.

    Returns:
        Settings instance with loaded configuration

    Example:
        >>> settings = get_settings()
        >>> settings.layout.min_gap
        24.0
    """
    global _settings

    if _settings is None or force_reload:
        _settings = Settings.from_yaml(config_path)

    return _settings
