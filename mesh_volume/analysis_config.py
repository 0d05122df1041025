"""
JSON-based analysis configuration.

Configuration is an explicit value passed into each analysis call; nothing
here is read from module-level state. Sources, when loaded from disk:
1. Explicit config file path
2. .meshvolume.json in the current directory
3. ~/.meshvolume.json

Example .meshvolume.json:
{
    "complexity": {
        "tiers": [[1000, 500], [10000, 5000], [50000, 25000]]
    },
    "compute": {
        "chunk_size": 65536,
        "max_workers": 4
    },
    "validation": {
        "degenerate_area_threshold": 1e-12,
        "report_quality": true
    }
}
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".meshvolume.json"

# (max vertices, max faces) per tier, both exclusive: low, medium, high.
DEFAULT_COMPLEXITY_TIERS: List[Tuple[int, int]] = [
    (1_000, 500),
    (10_000, 5_000),
    (50_000, 25_000),
]


@dataclass
class ComplexityConfig:
    """Vertex/face thresholds for the low, medium and high tiers."""
    tiers: List[Tuple[int, int]] = field(
        default_factory=lambda: list(DEFAULT_COMPLEXITY_TIERS)
    )

    def __post_init__(self):
        self.tiers = [(int(v), int(f)) for v, f in self.tiers]
        if len(self.tiers) != len(DEFAULT_COMPLEXITY_TIERS):
            raise ValueError(
                f"Expected {len(DEFAULT_COMPLEXITY_TIERS)} complexity tiers, "
                f"got {len(self.tiers)}"
            )
        for column, label in ((0, "vertex"), (1, "face")):
            limits = [tier[column] for tier in self.tiers]
            if limits[0] <= 0 or any(b <= a for a, b in zip(limits, limits[1:])):
                raise ValueError(
                    f"Complexity {label} limits must be positive and strictly "
                    f"increasing, got {limits}"
                )


@dataclass
class ComputeConfig:
    """Resource limits for the triangle loop."""
    chunk_size: int = 65536  # triangles materialised at once per mesh
    max_workers: int = 1  # >1 analyzes meshes on a thread pool

    def __post_init__(self):
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")


@dataclass
class ValidationConfig:
    """Thresholds for the data-quality checks."""
    degenerate_area_threshold: float = 1e-12
    weld_decimals: int = 6
    report_quality: bool = False  # append quality warnings to analysis diagnostics


@dataclass
class AnalysisConfig:
    """Complete analysis configuration."""
    complexity: ComplexityConfig = field(default_factory=ComplexityConfig)
    compute: ComputeConfig = field(default_factory=ComputeConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['complexity']['tiers'] = [list(t) for t in self.complexity.tiers]
        return data

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def save(self, path: Union[str, Path]) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.to_json())
        logger.info("Configuration saved to %s", path)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AnalysisConfig':
        """Create configuration from a dictionary.

        Unknown sections and keys are ignored so that newer config files
        still load.

        Raises:
            ValueError: if a known value is out of range
        """
        sections = {
            'complexity': ComplexityConfig,
            'compute': ComputeConfig,
            'validation': ValidationConfig,
        }
        kwargs = {}
        for section, section_cls in sections.items():
            values = data.get(section) or {}
            known = section_cls.__dataclass_fields__
            kwargs[section] = section_cls(
                **{k: v for k, v in values.items() if k in known}
            )
        return cls(**kwargs)

    @classmethod
    def from_json(cls, json_str: str) -> 'AnalysisConfig':
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'AnalysisConfig':
        """Load configuration from a JSON file.

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file is not valid JSON
        """
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        logger.info("Configuration loaded from %s", path)
        return cls.from_dict(data)


def find_config_file(
    explicit_config: Optional[Union[str, Path]] = None,
) -> Optional[Path]:
    """Find a configuration file.

    Search order: explicit path, ./.meshvolume.json, ~/.meshvolume.json.

    Returns:
        Path to config file if found, None otherwise
    """
    if explicit_config:
        explicit = Path(explicit_config)
        if explicit.exists():
            return explicit
        logger.warning("Explicit config not found: %s", explicit)

    cwd_config = Path.cwd() / CONFIG_FILENAME
    if cwd_config.exists():
        return cwd_config

    home_config = Path.home() / CONFIG_FILENAME
    if home_config.exists():
        return home_config

    return None


def load_config(
    explicit_config: Optional[Union[str, Path]] = None,
) -> AnalysisConfig:
    """Load configuration, falling back to defaults on a missing or broken file."""
    config_path = find_config_file(explicit_config)

    if config_path:
        try:
            return AnalysisConfig.load(config_path)
        except (json.JSONDecodeError, OSError, ValueError, TypeError) as e:
            logger.error("Failed to load config %s: %s", config_path, e)

    return AnalysisConfig()
