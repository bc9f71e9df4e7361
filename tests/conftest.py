import os

# PDF export needs a GUI application object but never a visible window.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt6.QtWidgets import QApplication


@pytest.fixture(scope="session")
def qapp():
    """Provide a shared QApplication for tests that paint with Qt."""
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return app
