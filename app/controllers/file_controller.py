"""
FileController - Handles session file I/O and user preferences.

File dialog interaction is the responsibility of the view layer.
Recent files and the frame rate persist through QSettings.
"""

import json
import logging
import os
from pathlib import Path
from typing import List, Optional

from models.circuit import DEFAULT_FPS, CircuitModel, check_connection_record
from models.errors import SaveError
from PyQt6.QtCore import QSettings

logger = logging.getLogger(__name__)

SETTINGS_ORGANIZATION = "Voltaic"
SETTINGS_APPLICATION = "Voltaic"
MAX_RECENT_FILES = 10
MIN_FPS = 1
MAX_FPS = 60


def _settings() -> QSettings:
    return QSettings(SETTINGS_ORGANIZATION, SETTINGS_APPLICATION)


def validate_session_data(data) -> None:
    """
    Validate JSON structure before loading.

    Raises SaveError with a descriptive message if anything is wrong.
    """
    if not isinstance(data, dict):
        raise SaveError("File does not contain a valid session object.")

    if "components" in data and not isinstance(data["components"], list):
        raise SaveError("Invalid 'components' list.", "components")

    for key in ("width", "height", "pixelsPerUnit", "ambientTemperature", "ambientLight"):
        value = data.get(key)
        if value is not None and (not isinstance(value, (int, float)) or isinstance(value, bool)):
            raise SaveError(f"Session setting '{key}' must be numeric.", key)

    count = len(data.get("components", []))
    for i, comp in enumerate(data.get("components", [])):
        if not isinstance(comp, dict):
            raise SaveError(f"Component #{i + 1} is not an object.")
        for key in ("type", "position"):
            if key not in comp:
                raise SaveError(f"Component #{i + 1} is missing required field '{key}'.", key)
        for j, connection in enumerate(comp.get("connections", [])):
            index = connection.get("index") if isinstance(connection, dict) else None
            if not isinstance(index, int) or isinstance(index, bool):
                raise SaveError(f"Connection #{j + 1} of component #{i + 1} has no index.", "index")
            if not 0 <= index < count:
                raise SaveError(
                    f"Connection #{j + 1} of component #{i + 1} references unknown component {index}."
                )
            check_connection_record(connection, f"Connection #{j + 1} of component #{i + 1}")


def clamp_fps(value) -> int:
    try:
        fps = int(value)
    except (TypeError, ValueError):
        return DEFAULT_FPS
    return max(MIN_FPS, min(MAX_FPS, fps))


class FileController:
    """
    Manages session file I/O and preferences.

    Handles saving/loading session data as JSON and tracking the current
    file path for quick-save.
    """

    def __init__(self, model: Optional[CircuitModel] = None, circuit_ctrl=None):
        self.model = model if model is not None else CircuitModel()
        self.circuit_ctrl = circuit_ctrl
        self.current_file: Optional[Path] = None

    def new_circuit(self) -> None:
        """Clear the session and reset file state."""
        self.model.clear()
        self.current_file = None

    def save_circuit(self, filepath) -> None:
        """
        Save the session to a JSON file, in flow order.

        Raises:
            OSError: If the file cannot be written.
        """
        filepath = Path(filepath)
        data = self.model.to_dict()
        with open(filepath, "w") as f:
            json.dump(data, f, indent=2)
        self.current_file = filepath
        self.add_recent_file(filepath)
        logger.info("Saved session to %s", filepath)

        if self.circuit_ctrl:
            self.circuit_ctrl._notify("model_saved", None)

    def load_circuit(self, filepath) -> None:
        """
        Load a session from a JSON file.

        Updates the model in place (preserving the reference so views stay
        connected).

        Raises:
            SaveError: If the file is not JSON or its structure is invalid.
            OSError: If the file cannot be read.
        """
        filepath = Path(filepath)
        with open(filepath, "r") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise SaveError(f"{filepath.name} is not valid JSON: {e}") from e

        validate_session_data(data)
        self.model.load(data)

        self.current_file = filepath
        self.add_recent_file(filepath)

        if self.circuit_ctrl:
            self.circuit_ctrl._notify("model_loaded", None)

    def has_file(self) -> bool:
        """Return whether a current file path is set (for quick-save)."""
        return self.current_file is not None

    def get_window_title(self, base: str = "Voltaic") -> str:
        if self.current_file:
            return f"{base} - {self.current_file.name}"
        return base

    # --- Recent files ---

    def get_recent_files(self) -> List[str]:
        """
        Get list of recently opened files from QSettings.

        Returns:
            List of file paths (most recent first), with non-existent files removed.
        """
        settings = _settings()
        recent = settings.value("file/recent_files", [])

        if not isinstance(recent, list):
            recent = []

        existing = [f for f in recent if os.path.exists(f)]
        if len(existing) != len(recent):
            settings.setValue("file/recent_files", existing)

        return existing

    def add_recent_file(self, filepath: Path) -> None:
        """Move ``filepath`` to the front of the recent files list."""
        filepath_str = str(Path(filepath).absolute())
        recent = self.get_recent_files()

        if filepath_str in recent:
            recent.remove(filepath_str)
        recent.insert(0, filepath_str)

        _settings().setValue("file/recent_files", recent[:MAX_RECENT_FILES])

    def clear_recent_files(self) -> None:
        _settings().setValue("file/recent_files", [])

    # --- Preferences ---

    def get_fps(self) -> int:
        """Frames per second for the frame clock (default 20, clamped 1..60)."""
        return clamp_fps(_settings().value("simulation/fps", DEFAULT_FPS))

    def set_fps(self, fps) -> int:
        fps = clamp_fps(fps)
        _settings().setValue("simulation/fps", fps)
        return fps
