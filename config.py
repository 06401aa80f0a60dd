"""
Emoji Asset Pipeline - Configuration
"""
import os
from pathlib import Path
from pydantic import BaseModel, Field
from typing import Optional, List, Dict

# Paths
PROJECT_ROOT = Path(__file__).parent
ASSETS_DIR = Path(os.environ.get("EMOJI_ASSETS_DIR", PROJECT_ROOT / "assets"))
METADATA_FILE = Path(os.environ.get(
    "EMOJI_METADATA_FILE",
    PROJECT_ROOT / "inputs" / "xsalazar-fluent-emoji" / "metadata.json",
))


class DownloadConfig(BaseModel):
    """Catalog download settings"""
    max_retries: int = 3
    retry_delay: float = 2.0  # seconds, fixed between attempts
    concurrent_downloads: int = Field(5, ge=1)  # emojis per batch
    file_concurrency: int = Field(8, ge=1)  # files of one emoji in flight
    request_timeout: float = 30.0
    chunk_size: int = 8192
    metadata_file: Path = METADATA_FILE
    output_dir: Path = ASSETS_DIR
    failed_log: Path = Path("failed-downloads.json")


class ReorganizeConfig(BaseModel):
    """Moves loose non-skintone files into a default folder"""
    downloads_dir: Path = ASSETS_DIR
    metadata_file: Path = METADATA_FILE
    default_folder: str = "Default"


class WebpConfig(BaseModel):
    """Static 3D PNG -> WebP settings"""
    assets_dir: Path = ASSETS_DIR
    source_filename: str = "3D.png"
    output_pattern: str = "3D_{size}.webp"
    resolutions: List[int] = [80, 88, 96, 108, 112, 120, 128, 136, 144, 256]
    concurrent_conversions: int = Field(3, ge=1)
    quality: int = 100  # 0-100
    alpha_quality: int = 100
    errors_log: Path = Path("conversion-errors.json")


class SvgRecolorConfig(BaseModel):
    """HighContrast SVG color swap"""
    search_dir: Path = ASSETS_DIR
    target_filename: str = "HighContrast.svg"
    output_filename: str = "HighContrast_currentColor.svg"
    old_color: str = "#212121"
    new_color: str = "currentColor"


class AnimatedConfig(BaseModel):
    """Animated PNG -> WebP through ffmpeg"""
    assets_dir: Path = ASSETS_DIR
    output_dir: Optional[Path] = None  # None writes next to the source
    source_filename: str = "Animated.png"
    output_filename: str = "Animated_256.webp"
    concurrent_conversions: int = Field(3, ge=1)
    ffmpeg_options: Dict[str, str] = {
        "lossless": "0",
        "compression_level": "6",
        "quality": "100",
        "loop": "0",
    }
    timeout: float = 300.0  # per ffmpeg attempt
    max_retries: int = 1
    retry_delay: float = 2.0
    errors_log: Path = Path("animated-conversion-errors.json")


class CleanupConfig(BaseModel):
    """Housekeeping targets"""
    assets_dir: Path = ASSETS_DIR
    static_sources: List[str] = ["3D.png"]
    animated_files: List[str] = ["Animated.png", "Animated_256.webp"]
    original_svg: str = "HighContrast.svg"
    recolored_svg: str = "HighContrast_currentColor.svg"


# Default configs
DEFAULT_DOWNLOAD_CONFIG = DownloadConfig()
DEFAULT_REORGANIZE_CONFIG = ReorganizeConfig()
DEFAULT_WEBP_CONFIG = WebpConfig()
DEFAULT_SVG_CONFIG = SvgRecolorConfig()
DEFAULT_ANIMATED_CONFIG = AnimatedConfig()
DEFAULT_CLEANUP_CONFIG = CleanupConfig()
