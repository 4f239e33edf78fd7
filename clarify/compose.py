"""Compose window (Qt) — a simple editor whose fields the engine annotates."""
import logging

from PyQt5.QtCore import QTimer
from PyQt5.QtWidgets import (
    QFormLayout, QLineEdit, QMainWindow, QPlainTextEdit, QStatusBar, QWidget,
)

logger = logging.getLogger(__name__)


class ComposeWindow(QMainWindow):
    """Subject line plus message body, with a live issue counter."""

    def __init__(self, engine, parent=None):
        super().__init__(parent)
        self.engine = engine

        self.setWindowTitle("Clarify — Compose")
        self.setMinimumWidth(560)
        self.setMinimumHeight(420)

        central = QWidget()
        self.setCentralWidget(central)
        layout = QFormLayout(central)
        layout.setVerticalSpacing(36)  # room for the annotation strips

        self._subject = QLineEdit()
        self._subject.setObjectName("subject")
        self._subject.setPlaceholderText("Subject")
        layout.addRow("Subject:", self._subject)

        self._body = QPlainTextEdit()
        self._body.setObjectName("body")
        self._body.setPlaceholderText("Start typing, issues appear below each field.")
        layout.addRow("Message:", self._body)

        self._statusbar = QStatusBar()
        self.setStatusBar(self._statusbar)

        self._timer = QTimer(self)
        self._timer.setInterval(500)
        self._timer.timeout.connect(self.refresh)
        self._timer.start()
        self.refresh()

    def refresh(self):
        """Refresh the status bar counters."""
        if not self.engine.enabled:
            self._statusbar.showMessage("Grammar checking is off")
            return
        total = sum(self.engine.error_counts().values())
        self._statusbar.showMessage(
            f"{total} issue(s) | {self.engine.checks_run} check(s) run"
        )
