"""
Centralized settings and path configuration for the film tool.
"""
import logging
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

from ..engine.formulas import (
    PALLET_SIZE_CM,
    TAX_RATE,
    DEFAULT_INNER_DIAMETER_CM,
    DEFAULT_DENSITY,
)


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def get_package_data_dir() -> Path:
    """Directory holding the bundled rate table CSVs."""
    return Path(__file__).resolve().parent.parent / 'data'


@dataclass
class Settings:
    """Application settings with sensible defaults."""
    
    # Project paths
    project_root: Path
    data_dir: Path
    
    # Rate table files
    vendors_csv: Path
    regions_csv: Path
    rate_tiers_csv: Path
    
    # Business constants
    pallet_size_cm: float = PALLET_SIZE_CM
    tax_rate: float = TAX_RATE
    default_inner_diameter_cm: float = DEFAULT_INNER_DIAMETER_CM
    credit_note_default_density: float = DEFAULT_DENSITY
    
    log_level: str = "INFO"
    
    @classmethod
    def load(cls, project_root: Optional[Path] = None, data_dir: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()
        
        env_dir = os.environ.get('FILM_TOOL_DATA_DIR')
        data = data_dir or (Path(env_dir) if env_dir else get_package_data_dir())
        
        return cls(
            project_root=root,
            data_dir=data,
            vendors_csv=data / 'vendors.csv',
            regions_csv=data / 'regions.csv',
            rate_tiers_csv=data / 'rate_tiers.csv',
            log_level=os.environ.get('FILM_TOOL_LOG_LEVEL', 'INFO').upper(),
        )


def configure_logging(level: Optional[str] = None):
    """Set up root logging for scripts, the API and the UI."""
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
