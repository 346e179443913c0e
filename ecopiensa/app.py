"""
Ecopiensa - Layered image compositing editor.

This is the main entry point for the application.
Run with: python -m ecopiensa.app [image ...]
"""

import sys

from PySide6.QtWidgets import QApplication, QMainWindow

from ecopiensa import __version__
from ecopiensa.editor.editor import Editor
from ecopiensa.services.config_service import ConfigService
from ecopiensa.services.logging_service import get_logger, setup_logging
from ecopiensa.ui.canvas_view import CanvasView


def build_window(editor: Editor) -> QMainWindow:
    """Wrap a CanvasView for ``editor`` in a main window."""
    window = QMainWindow()
    window.setWindowTitle("Ecopiensa")
    window.setCentralWidget(CanvasView(editor, window))

    canvas_w, canvas_h = editor.canvas_size
    # Start at a comfortable size keeping the canvas aspect ratio
    window.resize(int(canvas_w * 0.6), int(canvas_h * 0.6))
    return window


def main() -> int:
    """
    Main entry point for the Ecopiensa editor.

    Image paths given on the command line are decoded in the background and
    added as layers.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    # Initialize basic logging first to catch early errors
    setup_logging()
    logger = get_logger(__name__)

    try:
        logger.info("Starting Ecopiensa editor...")

        app = QApplication(sys.argv)
        app.setApplicationName("Ecopiensa")
        app.setOrganizationName("Ecopiensa")
        app.setApplicationVersion(__version__)

        config = ConfigService()
        editor = Editor(config)
        editor.load_failed.connect(
            lambda source: logger.warning(f"Skipped image that failed to load: {source}")
        )

        window = build_window(editor)
        window.show()

        for path in app.arguments()[1:]:
            editor.add_image_layer_async(path)

        logger.info("Initialization complete. Entering event loop...")
        exit_code = app.exec()

        logger.info(f"Ecopiensa exiting with code {exit_code}")
        return exit_code

    except Exception as e:
        # Log any unhandled exceptions
        logger.critical(f"Fatal error during startup: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
