"""Qt host — text widgets as surfaces, floating annotation strips, suggestion menu."""
import logging
from typing import Callable, Dict, Optional, Sequence

from PyQt5.QtCore import QEvent, QObject, QPoint, Qt, QTimer
from PyQt5.QtGui import QCursor, QTextCursor
from PyQt5.QtWidgets import (
    QFrame, QHBoxLayout, QLineEdit, QMenu, QPlainTextEdit, QPushButton,
    QTextEdit, QWidget,
)

from clarify.surface import Annotation, AnnotationLayer, TextSurface
from clarify.textpos import from_utf16, to_utf16

logger = logging.getLogger(__name__)

_STYLES = {
    "primary": "QPushButton { background: #FDECEA; border: 1px solid #E53935;"
               " border-radius: 3px; padding: 1px 6px; }",
    "fallback": "QPushButton { background: #F3E5F5; border: 1px dashed #8E24AA;"
                " border-radius: 3px; padding: 1px 6px; }",
}


def is_text_input(widget) -> bool:
    """Editable plain-text widgets are tracked; password fields are not."""
    if isinstance(widget, QLineEdit):
        return widget.echoMode() == QLineEdit.Normal and not widget.isReadOnly()
    if isinstance(widget, (QPlainTextEdit, QTextEdit)):
        return not widget.isReadOnly()
    return False


class QtTextSurface(TextSurface):
    """TextSurface over a QLineEdit, QPlainTextEdit or QTextEdit."""

    def __init__(self, widget: QWidget):
        self.widget = widget

    @property
    def _single_line(self) -> bool:
        return isinstance(self.widget, QLineEdit)

    def get_text(self) -> str:
        if self._single_line:
            return self.widget.text()
        return self.widget.toPlainText()

    def set_text(self, text: str):
        if self._single_line:
            self.widget.setText(text)
            return
        # Edit through a cursor so the change stays on the undo stack
        cursor = self.widget.textCursor()
        cursor.beginEditBlock()
        cursor.select(QTextCursor.Document)
        cursor.insertText(text)
        cursor.endEditBlock()

    def get_caret(self) -> int:
        # Qt counts UTF-16 units, callers work in str indices
        if self._single_line:
            units = self.widget.cursorPosition()
        else:
            units = self.widget.textCursor().position()
        return from_utf16(self.get_text(), units)

    def set_caret(self, position: int):
        text = self.get_text()
        units = to_utf16(text, max(0, min(position, len(text))))
        if self._single_line:
            self.widget.setCursorPosition(units)
            return
        cursor = self.widget.textCursor()
        cursor.setPosition(units)
        self.widget.setTextCursor(cursor)

    def has_focus(self) -> bool:
        return self.widget.hasFocus()

    def focus(self):
        self.widget.setFocus(Qt.OtherFocusReason)

    def __repr__(self):
        return f"QtTextSurface({type(self.widget).__name__} {self.widget.objectName()!r})"


class QtAnnotationLayer(AnnotationLayer):
    """Draws one strip of suggestion buttons under each annotated widget."""

    def __init__(self):
        self._strips: Dict[str, QFrame] = {}
        self._menu: Optional[QMenu] = None

    def show_annotations(self, element_id: str, surface: QtTextSurface,
                         annotations: Sequence[Annotation],
                         on_select: Callable[[int], None]):
        self.clear_annotations(element_id)
        widget = surface.widget
        window = widget.window()

        strip = QFrame(window)
        strip.setFocusPolicy(Qt.NoFocus)
        layout = QHBoxLayout(strip)
        layout.setContentsMargins(2, 2, 2, 2)
        layout.setSpacing(4)

        for annotation in annotations:
            text = f"{annotation.span_text} → {annotation.label}"
            button = QPushButton(text, strip)
            button.setFocusPolicy(Qt.NoFocus)
            button.setToolTip(f"{annotation.error.category}: {annotation.error.message}")
            button.setStyleSheet(_STYLES[annotation.style])
            button.clicked.connect(lambda _checked=False, i=annotation.index: on_select(i))
            layout.addWidget(button)

        strip.adjustSize()
        strip.move(widget.mapTo(window, QPoint(0, widget.height() + 2)))
        strip.raise_()
        strip.show()
        self._strips[element_id] = strip

    def clear_annotations(self, element_id: str):
        strip = self._strips.pop(element_id, None)
        if strip is None:
            return
        try:
            strip.hide()
            strip.deleteLater()
        except RuntimeError:
            # Parent window already destroyed the strip
            logger.debug("Annotation strip for %s already gone", element_id)

    def show_detail(self, element_id: str, surface: QtTextSurface, annotation: Annotation,
                    on_pick: Callable[[str], None], on_dismiss: Callable[[], None]):
        self.hide_detail()
        menu = QMenu(surface.widget)
        header = menu.addAction(annotation.error.short_message or annotation.error.message)
        header.setEnabled(False)
        if annotation.error.rule_description:
            header.setToolTip(annotation.error.rule_description)
        menu.addSeparator()

        if annotation.error.replacements:
            for replacement in annotation.error.replacements:
                action = menu.addAction(replacement)
                action.triggered.connect(lambda _checked=False, r=replacement: on_pick(r))
        else:
            menu.addAction("No suggestions").setEnabled(False)

        # QMenu closes itself on any click outside it
        menu.aboutToHide.connect(on_dismiss)
        menu.popup(QCursor.pos())
        self._menu = menu

    def hide_detail(self):
        menu, self._menu = self._menu, None
        if menu is None:
            return
        try:
            menu.close()
            menu.deleteLater()
        except RuntimeError:
            # Owning widget already destroyed the menu
            logger.debug("Suggestion menu already gone")


class QtSurfaceWatcher(QObject):
    """Finds text widgets as they appear and feeds their events to the engine."""

    def __init__(self, engine, app):
        super().__init__()
        self._engine = engine
        self._app = app
        self._surfaces: Dict[QWidget, QtTextSurface] = {}
        self._scan_pending = False

    def start(self):
        self._app.installEventFilter(self)
        self._app.focusChanged.connect(self._on_focus_changed)
        self.scan()

    def stop(self):
        self._app.removeEventFilter(self)
        for widget in list(self._surfaces):
            self._untrack(widget)

    def scan(self):
        self._scan_pending = False
        for top in self._app.topLevelWidgets():
            for widget in [top] + top.findChildren(QWidget):
                if is_text_input(widget):
                    self._track(widget)

    def eventFilter(self, obj, event):
        # Children are not fully built when ChildAdded arrives, so rescan later
        if event.type() == QEvent.ChildAdded and not self._scan_pending:
            self._scan_pending = True
            QTimer.singleShot(0, self.scan)
        return False

    def _on_focus_changed(self, _old, new):
        if new is not None and is_text_input(new):
            surface = self._track(new)
            self._engine.on_focus(surface)

    def _track(self, widget) -> QtTextSurface:
        surface = self._surfaces.get(widget)
        if surface is not None:
            return surface

        surface = QtTextSurface(widget)
        self._surfaces[widget] = surface
        element = self._engine.attach(surface)

        edited = widget.textEdited if isinstance(widget, QLineEdit) else widget.textChanged
        edited.connect(lambda *_: self._engine.on_edit(element.id))
        widget.destroyed.connect(lambda *_: self._untrack(widget))
        logger.debug("Watching %r", surface)
        return surface

    def _untrack(self, widget):
        surface = self._surfaces.pop(widget, None)
        if surface is not None:
            self._engine.detach(surface)
