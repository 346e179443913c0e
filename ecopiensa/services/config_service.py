"""
Configuration service for the Ecopiensa editor.

Settings are stored as JSON in ~/.config/ecopiensa/config.json following
the XDG Base Directory Specification. Missing keys fall back to
DEFAULT_CONFIG, a corrupted file is rewritten with defaults.
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from ecopiensa.services.logging_service import get_logger

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "ecopiensa"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"

DEFAULT_CONFIG: Dict[str, Any] = {
    # Working resolution; pointer input is rescaled to this size
    "canvas_width": 1080,
    "canvas_height": 1080,
    "background_color": "#1a1a1a",
    # Magic wand per-channel tolerance
    "wand_tolerance": 30,
    "eraser_radius": 20,
    # Smart-guide distance in canvas units
    "snap_threshold": 10,
    "text_placeholder": "Doble clic...",
    "text_defaults": {
        "font": "Outfit",
        "size": 60,
        "color": "#ffffff",
    },
    "export": {
        "format": "PNG",
        "quality": 90,
    },
}


def merge_settings(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return ``base`` updated with ``override``, nested dicts merged key by key.

    Neither argument is modified.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_settings(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ConfigService:
    """
    Editor settings backed by a JSON file.

    A missing file is created from DEFAULT_CONFIG. A file holding anything
    but a JSON object is replaced by the defaults. Keys the file lacks are
    filled in and written back.
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        persist: bool = True,
    ) -> None:
        """
        Args:
            config_path: Settings file. Defaults to ~/.config/ecopiensa/config.json
            persist: When False the file is never read or written and the
                     service only serves the built-in defaults.
        """
        self._logger = get_logger(__name__)
        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_FILE
        self._persist = persist
        self._config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)

        if persist:
            self.reload()

    @property
    def path(self) -> Path:
        return self._config_path

    # ─── File I/O ─────────────────────────────────────────────────────────

    def _read_file(self) -> Optional[Dict[str, Any]]:
        """
        Read the settings file.

        Returns:
            The stored object, or None when there is no file yet.

        Raises:
            ValueError: If the file is not a JSON object.
            OSError: If the file exists but cannot be read.
        """
        try:
            text = self._config_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

        stored = json.loads(text)
        if not isinstance(stored, dict):
            raise ValueError("top level is not an object")
        return stored

    def _write_file(self) -> None:
        try:
            self._config_path.parent.mkdir(parents=True, exist_ok=True)
            self._config_path.write_text(
                json.dumps(self._config, indent=2), encoding="utf-8"
            )
        except OSError as e:
            self._logger.error(f"Could not write settings to {self._config_path}: {e}")
            return
        self._logger.debug(f"Settings written to {self._config_path}")

    def reload(self) -> None:
        """Re-read the settings file, repairing it when needed."""
        try:
            stored = self._read_file()
        except ValueError as e:
            # json.JSONDecodeError is a ValueError too
            self._logger.warning(f"Invalid settings file {self._config_path} ({e}), resetting")
            stored = {}
        except OSError as e:
            self._logger.warning(f"Could not read {self._config_path}: {e}. Using defaults.")
            self._config = copy.deepcopy(DEFAULT_CONFIG)
            return

        if stored is None:
            self._logger.info(f"No settings at {self._config_path}, writing defaults")
            stored = {}

        self._config = merge_settings(DEFAULT_CONFIG, stored)
        if self._config != stored:
            self._write_file()

    # ─── Access ───────────────────────────────────────────────────────────

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Change a value in memory; call save() to write it out."""
        self._config[key] = value
        self._logger.debug(f"Setting {key!r} = {value!r}")

    def save(self) -> None:
        """Write the current settings unless the service is memory-only."""
        if self._persist:
            self._write_file()

    def _section(self, name: str) -> Dict[str, Any]:
        """A nested settings dict with missing keys taken from the defaults."""
        section = self.get(name)
        if not isinstance(section, dict):
            section = {}
        return merge_settings(DEFAULT_CONFIG[name], section)

    # ─── Canvas ───────────────────────────────────────────────────────────

    @property
    def canvas_size(self) -> Tuple[int, int]:
        """Working canvas (width, height)."""
        return (
            int(self.get("canvas_width", DEFAULT_CONFIG["canvas_width"])),
            int(self.get("canvas_height", DEFAULT_CONFIG["canvas_height"])),
        )

    @property
    def background_color(self) -> str:
        return self.get("background_color", DEFAULT_CONFIG["background_color"])

    # ─── Tools ────────────────────────────────────────────────────────────

    @property
    def wand_tolerance(self) -> int:
        return int(self.get("wand_tolerance", DEFAULT_CONFIG["wand_tolerance"]))

    @property
    def eraser_radius(self) -> float:
        return float(self.get("eraser_radius", DEFAULT_CONFIG["eraser_radius"]))

    @property
    def snap_threshold(self) -> float:
        return float(self.get("snap_threshold", DEFAULT_CONFIG["snap_threshold"]))

    # ─── Text & Export ────────────────────────────────────────────────────

    @property
    def text_placeholder(self) -> str:
        return self.get("text_placeholder", DEFAULT_CONFIG["text_placeholder"])

    @property
    def text_defaults(self) -> Dict[str, Any]:
        """Font, size and color for new text layers."""
        return self._section("text_defaults")

    @property
    def export_format(self) -> str:
        return self._section("export")["format"]

    @property
    def export_quality(self) -> int:
        return int(self._section("export")["quality"])
