"""System tray icon with context menu for Clarify."""
import logging
from PyQt5.QtWidgets import (
    QSystemTrayIcon, QMenu, QAction, QActionGroup, QApplication,
)
from PyQt5.QtGui import QIcon, QPixmap, QPainter, QColor, QFont
from PyQt5.QtCore import Qt, QTimer

from clarify.models import FallbackProvider

logger = logging.getLogger(__name__)

_FALLBACK_LABELS = (
    (FallbackProvider.GEMINI, "Gemini"),
    (FallbackProvider.OPENAI, "OpenAI"),
    (FallbackProvider.NONE, "Off"),
)


def _create_icon(enabled: bool) -> QIcon:
    """Create a simple colored icon indicating enabled/disabled state."""
    size = 64
    pixmap = QPixmap(size, size)
    pixmap.fill(Qt.transparent)
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing)

    color = QColor(0x4C, 0xAF, 0x50) if enabled else QColor(0x9E, 0x9E, 0x9E)
    painter.setBrush(color)
    painter.setPen(Qt.NoPen)
    painter.drawEllipse(4, 4, size - 8, size - 8)

    painter.setPen(QColor(255, 255, 255))
    font = QFont("Sans", 28, QFont.Bold)
    painter.setFont(font)
    painter.drawText(pixmap.rect(), Qt.AlignCenter, "C")

    painter.end()
    return QIcon(pixmap)


class TrayIcon(QSystemTrayIcon):
    """Tray icon: enable/disable, AI fallback choice, issue counter."""

    def __init__(self, config, engine, compose_window=None, parent=None):
        super().__init__(parent)
        self.config = config
        self.engine = engine
        self._compose_window = compose_window

        self.setIcon(_create_icon(engine.enabled))
        self._build_menu()
        self.activated.connect(self._on_activated)

        # Counters change with every check, poll them for the tooltip
        self._timer = QTimer()
        self._timer.setInterval(1000)
        self._timer.timeout.connect(self._refresh_tooltip)
        self._timer.start()
        self._refresh_tooltip()

    def _build_menu(self):
        menu = QMenu()

        self._toggle_action = QAction("Disable" if self.engine.enabled else "Enable", menu)
        self._toggle_action.triggered.connect(self._toggle_enabled)
        menu.addAction(self._toggle_action)

        menu.addSeparator()

        fallback_menu = menu.addMenu("AI fallback" if self.config.premium else "AI fallback (Premium)")
        fallback_menu.setEnabled(self.config.premium)
        group = QActionGroup(fallback_menu)
        group.setExclusive(True)
        self._fallback_actions = {}
        for provider, label in _FALLBACK_LABELS:
            action = QAction(label, group)
            action.setCheckable(True)
            action.setChecked(self.config.fallback_provider is provider)
            action.triggered.connect(lambda _checked=False, p=provider: self._set_fallback(p))
            fallback_menu.addAction(action)
            self._fallback_actions[provider] = action

        menu.addSeparator()

        if self._compose_window is not None:
            compose_action = QAction("Compose...", menu)
            compose_action.triggered.connect(self._open_compose)
            menu.addAction(compose_action)
            menu.addSeparator()

        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(QApplication.quit)
        menu.addAction(quit_action)

        self.setContextMenu(menu)

    def _toggle_enabled(self):
        enabled = not self.engine.enabled
        if enabled:
            self.engine.enable()
        else:
            self.engine.disable()
        self.config.enabled = enabled
        self._toggle_action.setText("Disable" if enabled else "Enable")
        self.setIcon(_create_icon(enabled))
        self._refresh_tooltip()
        logger.info("Toggled: %s", "enabled" if enabled else "disabled")

    def _set_fallback(self, provider: FallbackProvider):
        self.config.fallback_provider = provider
        for p, action in self._fallback_actions.items():
            action.setChecked(p is provider)
        logger.info("AI fallback set to: %s", provider.value)

    def _refresh_tooltip(self):
        if not self.engine.enabled:
            self.setToolTip("Clarify [OFF]")
            return
        total = sum(self.engine.error_counts().values())
        self.setToolTip(f"Clarify [ON] | {total} issue(s)")

    def _open_compose(self):
        self._compose_window.show()
        self._compose_window.raise_()
        self._compose_window.activateWindow()

    def _on_activated(self, reason):
        if reason == QSystemTrayIcon.Trigger:  # left click
            self._toggle_enabled()
