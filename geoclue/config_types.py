"""
═══════════════════════════════════════════════════════════════════════════════
📋 UNIFIED CONFIGURATION TYPES
═══════════════════════════════════════════════════════════════════════════════

ARCHITECTURAL OVERVIEW
----------------------
Responsibility: Define all configuration dataclasses for GeoClue.
Replaces scattered CONFIG dictionary access with typed, validated config objects.

It provides:
1. Type-safe configuration dataclasses
2. A single AppConfig facade that wraps all settings
3. Factory methods to create configs from the CONFIG dictionary

Usage:
    from geoclue.config import CONFIG
    from geoclue.config_types import AppConfig

    # Create once at application startup
    app_config = AppConfig.from_dict(CONFIG)

    # Use throughout the application
    floor = app_config.tolerance.floor_km

For Navigation: Use VS Code outline (Ctrl+Shift+O)

NAVIGATION GUIDE
----------------
# ═════ 1. FILE PATHS CONFIGURATION
# ═════ 2. TOLERANCE CONFIGURATION
# ═════ 3. GEODESY CONFIGURATION
# ═════ 4. REGION IDENTITY CONFIGURATION
# ═════ 5. MATRIX GENERATION CONFIGURATION
# ═════ 6. PARALLEL PROCESSING CONFIGURATION
# ═════ 7. SERVER CONFIGURATION
# ═════ 8. APP CONFIG (MASTER FACADE)

═══════════════════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Tuple


# ═══════════════════════════════════════════════════════════════════════════════
# 📁 1. FILE PATHS CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class FilePathsConfig:
    """
    File path configuration for inputs and outputs.

    Attributes:
        world_geojson: Path to the region FeatureCollection.
        distances_json: Path to the precomputed distance matrix artifact.
        log_dir: Directory for log files.
    """

    world_geojson: str = "public/world.geojson"
    distances_json: str = "public/distances.json"
    log_dir: str = "logs"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FilePathsConfig":
        """Create FilePathsConfig from CONFIG['file_paths'] dictionary."""
        return cls(
            world_geojson=d.get("world_geojson", "public/world.geojson"),
            distances_json=d.get("distances_json", "public/distances.json"),
            log_dir=d.get("log_dir", "logs"),
        )

    def log_dir_path(self, workspace_root: Path) -> Path:
        """Get log directory resolved against workspace root."""
        return workspace_root / self.log_dir


# ═══════════════════════════════════════════════════════════════════════════════
# 🎯 2. TOLERANCE CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ToleranceConfig:
    """
    Clue matching tolerance: max(floor_km, distance * fraction).

    Attributes:
        floor_km: Minimum absolute tolerance in kilometers.
        fraction: Relative tolerance as a fraction of the declared distance.
    """

    floor_km: float = 50.0
    fraction: float = 0.05

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ToleranceConfig":
        """Create ToleranceConfig from CONFIG['tolerance'] dictionary."""
        return cls(
            floor_km=d.get("floor_km", 50.0),
            fraction=d.get("fraction", 0.05),
        )

    def __post_init__(self) -> None:
        """Validate tolerance configuration."""
        if self.floor_km < 0:
            raise ValueError(f"floor_km must be >= 0, got {self.floor_km}")
        if not 0 <= self.fraction < 1:
            raise ValueError(f"fraction must be in [0, 1), got {self.fraction}")


# ═══════════════════════════════════════════════════════════════════════════════
# 🌍 3. GEODESY CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class GeodesyConfig:
    """
    Geodesic constants and numeric settings.

    Attributes:
        earth_radius_km: Sphere radius for great-circle distances.
        area_crs: Equal-area CRS for ranking member polygons.
        source_crs: CRS of the input GeoJSON coordinates.
        vertex_chunk_size: Vertices per numpy block in the distance kernel.
    """

    earth_radius_km: float = 6371.0088
    area_crs: str = "EPSG:6933"
    source_crs: str = "EPSG:4326"
    vertex_chunk_size: int = 256

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GeodesyConfig":
        """Create GeodesyConfig from CONFIG['geodesy'] dictionary."""
        return cls(
            earth_radius_km=d.get("earth_radius_km", 6371.0088),
            area_crs=d.get("area_crs", "EPSG:6933"),
            source_crs=d.get("source_crs", "EPSG:4326"),
            vertex_chunk_size=d.get("vertex_chunk_size", 256),
        )

    def __post_init__(self) -> None:
        """Validate geodesy configuration."""
        if self.earth_radius_km <= 0:
            raise ValueError(
                f"earth_radius_km must be > 0, got {self.earth_radius_km}"
            )
        if self.vertex_chunk_size < 1:
            raise ValueError(
                f"vertex_chunk_size must be >= 1, got {self.vertex_chunk_size}"
            )


# ═══════════════════════════════════════════════════════════════════════════════
# 🏷️ 4. REGION IDENTITY CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class RegionIdentityConfig:
    """
    Which feature properties identify and name a region.

    Attributes:
        id_properties: Short-code properties, tried in order.
        name_properties: Display-name properties, tried in order.
        placeholder_codes: Code values treated as missing (e.g. "-99").
    """

    id_properties: Tuple[str, ...] = ("ISO_A3", "iso_a3", "ADM0_A3")
    name_properties: Tuple[str, ...] = ("name", "NAME", "ADMIN")
    placeholder_codes: Tuple[str, ...] = ("-99", "")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RegionIdentityConfig":
        """Create RegionIdentityConfig from CONFIG['regions'] dictionary."""
        return cls(
            id_properties=tuple(d.get("id_properties", cls.id_properties)),
            name_properties=tuple(d.get("name_properties", cls.name_properties)),
            placeholder_codes=tuple(
                d.get("placeholder_codes", cls.placeholder_codes)
            ),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🧮 5. MATRIX GENERATION CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class MatrixGenerationConfig:
    """
    Offline distance matrix generation settings.

    Attributes:
        simplify_tolerance_deg: Simplification tolerance in degrees.
        progress_every: Log progress every N matrix rows.
        decimals: Decimal places stored in the artifact.
        unknown_distance_km: Sentinel for pairs that could not be computed.
    """

    simplify_tolerance_deg: float = 0.15
    progress_every: int = 10
    decimals: int = 1
    unknown_distance_km: float = 99999.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MatrixGenerationConfig":
        """Create MatrixGenerationConfig from CONFIG['matrix_generation']."""
        return cls(
            simplify_tolerance_deg=d.get("simplify_tolerance_deg", 0.15),
            progress_every=d.get("progress_every", 10),
            decimals=d.get("decimals", 1),
            unknown_distance_km=d.get("unknown_distance_km", 99999.0),
        )

    def __post_init__(self) -> None:
        """Validate generation configuration."""
        if self.simplify_tolerance_deg < 0:
            raise ValueError(
                f"simplify_tolerance_deg must be >= 0, got {self.simplify_tolerance_deg}"
            )
        if self.progress_every < 1:
            raise ValueError(
                f"progress_every must be >= 1, got {self.progress_every}"
            )


# ═══════════════════════════════════════════════════════════════════════════════
# ⚡ 6. PARALLEL PROCESSING CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ParallelConfig:
    """
    Configuration for parallel/multicore matrix generation.

    Attributes:
        enabled: Master toggle for parallel processing.
        max_workers: Number of worker processes (-1 = auto).
        optimal_workers_default: Default worker count when auto-detecting.
        min_pairs_for_parallel: Minimum pair count to justify parallel dispatch.
        tasks_per_worker: Row blocks dispatched per worker.
        fallback_on_error: Fall back to sequential on errors.
        backend: Joblib backend ("loky" = process-based).
        verbose: Verbosity level (0-10).
    """

    enabled: bool = True
    max_workers: int = -1
    optimal_workers_default: int = 8
    min_pairs_for_parallel: int = 500
    tasks_per_worker: int = 4
    fallback_on_error: bool = True
    backend: str = "loky"
    verbose: int = 0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ParallelConfig":
        """Create ParallelConfig from CONFIG['parallel'] dictionary."""
        return cls(
            enabled=d.get("enabled", True),
            max_workers=d.get("max_workers", -1),
            optimal_workers_default=d.get("optimal_workers_default", 8),
            min_pairs_for_parallel=d.get("min_pairs_for_parallel", 500),
            tasks_per_worker=d.get("tasks_per_worker", 4),
            fallback_on_error=d.get("fallback_on_error", True),
            backend=d.get("backend", "loky"),
            verbose=d.get("verbose", 0),
        )

    def __post_init__(self) -> None:
        """Validate parallel configuration."""
        if self.max_workers == 0 or self.max_workers < -1:
            raise ValueError(
                f"max_workers must be -1 or >= 1, got {self.max_workers}"
            )
        if self.tasks_per_worker < 1:
            raise ValueError(
                f"tasks_per_worker must be >= 1, got {self.tasks_per_worker}"
            )


# ═══════════════════════════════════════════════════════════════════════════════
# 🌐 7. SERVER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ServerConfig:
    """HTTP host settings."""

    host: str = "127.0.0.1"
    port: int = 5052

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ServerConfig":
        """Create ServerConfig from CONFIG['server'] dictionary."""
        return cls(host=d.get("host", "127.0.0.1"), port=d.get("port", 5052))


# ═══════════════════════════════════════════════════════════════════════════════
# 🏛️ 8. APP CONFIG (MASTER FACADE)
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AppConfig:
    """
    Master configuration object for GeoClue.

    This is the single source of truth for all typed configuration. Create it
    once at startup using AppConfig.from_dict(CONFIG) and pass it to the
    engine, the filter and the generator.

    Attributes:
        file_paths: File path configuration.
        tolerance: Clue tolerance configuration.
        geodesy: Geodesic constants.
        regions: Region identity rules.
        matrix_generation: Offline generator configuration.
        parallel: Parallel processing configuration.
        server: HTTP host configuration.

    Example:
        from geoclue.config import CONFIG
        from geoclue.config_types import AppConfig

        app_config = AppConfig.from_dict(CONFIG)
    """

    file_paths: FilePathsConfig = field(default_factory=FilePathsConfig)
    tolerance: ToleranceConfig = field(default_factory=ToleranceConfig)
    geodesy: GeodesyConfig = field(default_factory=GeodesyConfig)
    regions: RegionIdentityConfig = field(default_factory=RegionIdentityConfig)
    matrix_generation: MatrixGenerationConfig = field(
        default_factory=MatrixGenerationConfig
    )
    parallel: ParallelConfig = field(default_factory=ParallelConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "AppConfig":
        """
        Create AppConfig from the CONFIG dictionary.

        Args:
            config_dict: The CONFIG dictionary from config.py.

        Returns:
            AppConfig instance with all settings populated.
        """
        return cls(
            file_paths=FilePathsConfig.from_dict(config_dict.get("file_paths", {})),
            tolerance=ToleranceConfig.from_dict(config_dict.get("tolerance", {})),
            geodesy=GeodesyConfig.from_dict(config_dict.get("geodesy", {})),
            regions=RegionIdentityConfig.from_dict(config_dict.get("regions", {})),
            matrix_generation=MatrixGenerationConfig.from_dict(
                config_dict.get("matrix_generation", {})
            ),
            parallel=ParallelConfig.from_dict(config_dict.get("parallel", {})),
            server=ServerConfig.from_dict(config_dict.get("server", {})),
        )

    @classmethod
    def default(cls) -> "AppConfig":
        """Build AppConfig from the module-level CONFIG dictionary."""
        from geoclue.config import CONFIG

        return cls.from_dict(CONFIG)
