"""
settings.py

Persistent settings management for RectMark.

Handles cross-platform settings storage using TOML format with platformdirs
for proper user config directory detection.

Settings file location:
    - Windows: %APPDATA%/rectmark/settings.toml
    - macOS: ~/Library/Application Support/rectmark/settings.toml
    - Linux: ~/.config/rectmark/settings.toml

Default values are documented in comments throughout this file.
If settings.toml is corrupted, these defaults will be used.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs

# TOML reading - use tomllib for Python 3.11+, tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

from models import MIN_SIZE

APP_NAME = "rectmark"

# Environment variable that overrides server.base_url
SERVER_URL_ENV = "RECTMARK_SERVER_URL"

# Global settings manager instance (singleton)
_settings_manager: Optional["SettingsManager"] = None


def get_settings() -> "SettingsManager":
    """Get the global settings manager instance.

    Returns:
        The singleton SettingsManager instance.
    """
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
    return _settings_manager


def set_settings(manager: Optional["SettingsManager"]) -> None:
    """Replace the global settings manager (``None`` resets the singleton)."""
    global _settings_manager
    _settings_manager = manager


# =============================================================================
# Server Settings
# =============================================================================

@dataclass
class ServerSettings:
    """Persistence and auth service settings.

    Defaults:
        base_url: "https://vecrossbackend.onrender.com"
        timeout: 30.0
        token_header: "x-auth-token"
    """
    base_url: str = "https://vecrossbackend.onrender.com"
    timeout: float = 30.0               # Default: 30.0 seconds
    token_header: str = "x-auth-token"  # Default: "x-auth-token"


# =============================================================================
# Canvas Settings
# =============================================================================

@dataclass
class CanvasHandleSettings:
    """Resize handle settings.

    Defaults:
        size: 8.0
        hit_distance: 10.0
        border_color: "#0078D7"
        fill_color: "#FFFFFF"
    """
    size: float = 8.0                 # Default: 8.0 pixels
    hit_distance: float = 10.0        # Default: 10.0 pixels
    border_color: str = "#0078D7"     # Default: blue
    fill_color: str = "#FFFFFF"       # Default: white


@dataclass
class CanvasShapeSettings:
    """Rectangle drawing settings.

    Defaults:
        min_size: 5.0
        pen_color: "#000000"
        pen_width: 1
    """
    min_size: float = 5.0          # Default: 5.0 units
    pen_color: str = "#000000"     # Default: black
    pen_width: int = 1             # Default: 1 pixel


@dataclass
class CanvasSelectionSettings:
    """Selection appearance settings.

    Defaults:
        outline_color: "#0000FF"
        outline_width: 3
    """
    outline_color: str = "#0000FF"  # Default: blue
    outline_width: int = 3          # Default: 3 pixels


@dataclass
class CanvasPreviewSettings:
    """Provisional (in-progress) rectangle appearance.

    Defaults:
        outline_color: "#0000FF"
        fill_color: "#0000FF4C"
    """
    outline_color: str = "#0000FF"  # Default: blue
    fill_color: str = "#0000FF4C"   # Default: blue at 30% alpha


@dataclass
class CanvasSettings:
    """All canvas-related settings.

    Defaults:
        width: 800
        height: 600
        fill_opacity: 0.6
        clear_selection_on_background_click: False
    """
    width: int = 800                 # Default: 800 units
    height: int = 600                # Default: 600 units
    fill_opacity: float = 0.6        # Default: 0.6
    clear_selection_on_background_click: bool = False  # Default: False (keep selection)
    handles: CanvasHandleSettings = field(default_factory=CanvasHandleSettings)
    shapes: CanvasShapeSettings = field(default_factory=CanvasShapeSettings)
    selection: CanvasSelectionSettings = field(default_factory=CanvasSelectionSettings)
    preview: CanvasPreviewSettings = field(default_factory=CanvasPreviewSettings)


# =============================================================================
# Auto-save / Export / Logging Settings
# =============================================================================

@dataclass
class AutoSaveSettings:
    """Auto-save behavior.

    Defaults:
        enabled: False
        delay_ms: 2000
    """
    enabled: bool = False   # Default: False
    delay_ms: int = 2000    # Default: 2000 ms quiet period


@dataclass
class ExportSettings:
    """File export settings.

    Defaults:
        directory: "" (home directory)
    """
    directory: str = ""


@dataclass
class LoggingSettings:
    """Logging settings.

    Defaults:
        level: "INFO"
        file: "rectmark_debug.log"
    """
    level: str = "INFO"                 # Default: "INFO"
    file: str = "rectmark_debug.log"    # Default: log next to cwd; "" = stderr only


# =============================================================================
# Main App Settings
# =============================================================================

@dataclass
class AppSettings:
    """Application settings with default values.

    Attributes:
        theme: The UI theme name (must match a key in styles.STYLES).
        server: Persistence/auth service settings.
        canvas: Canvas-related settings.
        autosave: Auto-save settings.
        export: File export settings.
        logging: Logging settings.
    """
    theme: str = "Light"  # Default: "Light"

    server: ServerSettings = field(default_factory=ServerSettings)
    canvas: CanvasSettings = field(default_factory=CanvasSettings)
    autosave: AutoSaveSettings = field(default_factory=AutoSaveSettings)
    export: ExportSettings = field(default_factory=ExportSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


# =============================================================================
# Settings Manager
# =============================================================================

class SettingsManager:
    """Manages loading, saving, and accessing application settings.

    Settings are stored in a TOML file at the platform-appropriate location.
    If the settings file doesn't exist, defaults are used and the file is
    created on first save.

    Args:
        app_name: Application name used for the config directory.
        settings_dir: Explicit directory (tests use a temporary one).
    """

    def __init__(self, app_name: str = APP_NAME, settings_dir: Optional[Path] = None):
        if settings_dir is None:
            settings_dir = Path(platformdirs.user_config_dir(app_name))
        self.settings_dir = Path(settings_dir)
        self.settings_file = self.settings_dir / "settings.toml"
        self.settings = self.load()
        self._needs_save = not self.settings_file.exists()  # Save if file didn't exist

    def ensure_file_complete(self) -> None:
        """Ensure settings file exists with all sections. Call once at startup."""
        if self._needs_save or not self.settings_file.exists():
            self.save()
            self._needs_save = False

    def load(self) -> AppSettings:
        """Load settings from the TOML file.

        Returns:
            AppSettings instance with values from file or defaults if file
            doesn't exist or is invalid.
        """
        if not self.settings_file.exists():
            return AppSettings()

        try:
            with open(self.settings_file, "rb") as f:
                data = tomllib.load(f)

            return self._parse_toml(data)
        except (OSError, ValueError, AttributeError, TypeError):
            # If file is corrupted or invalid, return defaults
            return AppSettings()

    def _parse_toml(self, data: Dict[str, Any]) -> AppSettings:
        """Parse TOML data into AppSettings.

        Args:
            data: Parsed TOML dictionary.

        Returns:
            AppSettings instance populated from TOML data.
        """
        settings = AppSettings()

        general = data.get("general", {})
        settings.theme = general.get("theme", settings.theme)

        server = data.get("server", {})
        settings.server.base_url = server.get("base_url", settings.server.base_url)
        settings.server.timeout = float(server.get("timeout", settings.server.timeout))
        settings.server.token_header = server.get("token_header", settings.server.token_header)

        canvas = data.get("canvas", {})
        settings.canvas.width = canvas.get("width", settings.canvas.width)
        settings.canvas.height = canvas.get("height", settings.canvas.height)
        settings.canvas.fill_opacity = canvas.get("fill_opacity", settings.canvas.fill_opacity)
        settings.canvas.clear_selection_on_background_click = canvas.get(
            "clear_selection_on_background_click", settings.canvas.clear_selection_on_background_click
        )
        if "handles" in canvas:
            h = canvas["handles"]
            settings.canvas.handles.size = h.get("size", settings.canvas.handles.size)
            settings.canvas.handles.hit_distance = h.get("hit_distance", settings.canvas.handles.hit_distance)
            settings.canvas.handles.border_color = h.get("border_color", settings.canvas.handles.border_color)
            settings.canvas.handles.fill_color = h.get("fill_color", settings.canvas.handles.fill_color)
        if "shapes" in canvas:
            s = canvas["shapes"]
            # Can be raised but never lowered below the built-in minimum
            settings.canvas.shapes.min_size = max(MIN_SIZE, float(s.get("min_size", settings.canvas.shapes.min_size)))
            settings.canvas.shapes.pen_color = s.get("pen_color", settings.canvas.shapes.pen_color)
            settings.canvas.shapes.pen_width = s.get("pen_width", settings.canvas.shapes.pen_width)
        if "selection" in canvas:
            sel = canvas["selection"]
            settings.canvas.selection.outline_color = sel.get("outline_color", settings.canvas.selection.outline_color)
            settings.canvas.selection.outline_width = sel.get("outline_width", settings.canvas.selection.outline_width)
        if "preview" in canvas:
            pv = canvas["preview"]
            settings.canvas.preview.outline_color = pv.get("outline_color", settings.canvas.preview.outline_color)
            settings.canvas.preview.fill_color = pv.get("fill_color", settings.canvas.preview.fill_color)

        autosave = data.get("autosave", {})
        settings.autosave.enabled = autosave.get("enabled", settings.autosave.enabled)
        settings.autosave.delay_ms = autosave.get("delay_ms", settings.autosave.delay_ms)

        export = data.get("export", {})
        settings.export.directory = export.get("directory", settings.export.directory)

        log_section = data.get("logging", {})
        settings.logging.level = log_section.get("level", settings.logging.level)
        settings.logging.file = log_section.get("file", settings.logging.file)

        return settings

    def save(self) -> None:
        """Save current settings to the TOML file.

        Creates the settings directory if it doesn't exist.
        """
        self.settings_dir.mkdir(parents=True, exist_ok=True)

        data = self._to_toml_dict()

        with open(self.settings_file, "wb") as f:
            tomli_w.dump(data, f)

    def _to_toml_dict(self) -> Dict[str, Any]:
        """Convert settings to a TOML-compatible dictionary structure.

        Returns:
            Dictionary organized by TOML sections.
        """
        s = self.settings
        return {
            "general": {
                "theme": s.theme,
            },
            "server": {
                "base_url": s.server.base_url,
                "timeout": s.server.timeout,
                "token_header": s.server.token_header,
            },
            "canvas": {
                "width": s.canvas.width,
                "height": s.canvas.height,
                "fill_opacity": s.canvas.fill_opacity,
                "clear_selection_on_background_click": s.canvas.clear_selection_on_background_click,
                "handles": {
                    "size": s.canvas.handles.size,
                    "hit_distance": s.canvas.handles.hit_distance,
                    "border_color": s.canvas.handles.border_color,
                    "fill_color": s.canvas.handles.fill_color,
                },
                "shapes": {
                    "min_size": s.canvas.shapes.min_size,
                    "pen_color": s.canvas.shapes.pen_color,
                    "pen_width": s.canvas.shapes.pen_width,
                },
                "selection": {
                    "outline_color": s.canvas.selection.outline_color,
                    "outline_width": s.canvas.selection.outline_width,
                },
                "preview": {
                    "outline_color": s.canvas.preview.outline_color,
                    "fill_color": s.canvas.preview.fill_color,
                },
            },
            "autosave": {
                "enabled": s.autosave.enabled,
                "delay_ms": s.autosave.delay_ms,
            },
            "export": {
                "directory": s.export.directory,
            },
            "logging": {
                "level": s.logging.level,
                "file": s.logging.file,
            },
        }

    def to_toml(self) -> str:
        """Convert current settings to a TOML-formatted string.

        Returns:
            TOML representation of the current settings.
        """
        return tomli_w.dumps(self._to_toml_dict())

    def get_server_url(self) -> str:
        """Get the effective server base URL.

        Returns:
            ``$RECTMARK_SERVER_URL`` when set, otherwise ``server.base_url``,
            without a trailing slash.
        """
        url = os.environ.get(SERVER_URL_ENV, "").strip() or self.settings.server.base_url
        return url.rstrip("/")

    def get_export_dir(self) -> Path:
        """Get the resolved export directory path.

        Returns:
            Path to export directory. Falls back to the home directory
            if the export directory setting is empty.
        """
        if self.settings.export.directory:
            return Path(self.settings.export.directory)
        return Path.home()

    def get_settings_path(self) -> Path:
        """Get the path to the settings file.

        Returns:
            Path object pointing to the settings file location.
        """
        return self.settings_file
