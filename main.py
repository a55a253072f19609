"""
main.py

RectMark - Rectangle Annotation Editor

PyQt6 application for drawing rectangle annotations on a fixed canvas with:
- Click-and-drag drawing, drag to move, handles to resize
- Save to / load from the annotation persistence service
- Debounced auto-save
- JSON file export and import

Usage:
    python main.py

Dependencies:
    pip install PyQt6 httpx jsonschema platformdirs tomli-w

Environment:
    RECTMARK_SERVER_URL=... (optional, overrides server.base_url)
"""

from __future__ import annotations

import logging
import sys
import traceback
from typing import Optional

from PyQt6.QtCore import Qt, QSize, pyqtSignal
from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import (
    QApplication,
    QCheckBox,
    QDialog,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QToolBar,
    QVBoxLayout,
    QWidget,
)

from api.client import AnnotationApi, AuthApi, Session
from canvas.scene import AnnotatorScene
from canvas.view import AnnotatorView
from debug_trace import close_log, setup_logging, trace, trace_call, trace_exception
from editing.editor import AnnotationEditor
from editing.file_transfer import default_export_name
from errors import AnnotatorError
from login_dialog import LoginDialog
from properties.panel import SelectionPanel
from settings import SettingsManager, get_settings
from styles import DEFAULT_STYLE, STYLES
from sync.persistence import PersistenceSync
from sync.worker import ThreadedRunner

log = logging.getLogger(__name__)

LOADING_MESSAGE = "Loading annotations..."


class MainWindow(QMainWindow):
    """Main application window for the rectangle annotation editor.

    Args:
        settings_manager: The SettingsManager instance for application settings.
        session: The authenticated session (token and user).
        api: Persistence client; built from the settings when omitted.
        runner: Request runner; a ThreadedRunner when omitted.
    """

    closed = pyqtSignal()

    def __init__(
        self,
        settings_manager: SettingsManager,
        session: Session,
        api: Optional[AnnotationApi] = None,
        runner=None,
    ):
        super().__init__()
        self.settings_manager = settings_manager
        self.session = session
        self.logout_requested = False
        self.setWindowTitle("RectMark - Rectangle Annotation")

        s = settings_manager.settings
        if api is None:
            api = AnnotationApi(
                settings_manager.get_server_url(),
                token=session.token,
                timeout=s.server.timeout,
                token_header=s.server.token_header,
            )
        self.runner = runner if runner is not None else ThreadedRunner(self)

        # Editor session and persistence
        self.editor = AnnotationEditor(min_size=s.canvas.shapes.min_size, parent=self)
        self.persistence = PersistenceSync(
            self.editor.store, api, self.runner, auto_save_delay_ms=s.autosave.delay_ms, parent=self
        )
        self.editor.attach_persistence(self.persistence)

        # Scene and view
        self.scene = AnnotatorScene(self.editor, self)
        self.view = AnnotatorView(self.scene)
        self.panel = SelectionPanel(self.editor.store, self)

        self._build_central()
        self._build_menus()
        self._build_toolbar()

        # Connect signals
        self.editor.store.changed.connect(self._refresh_controls)
        self.editor.store.selection_changed.connect(self._refresh_controls)
        self.editor.drawing_mode_changed.connect(self._refresh_controls)
        self.editor.message_changed.connect(self._on_message_changed)
        self.editor.auto_save_changed.connect(self._on_auto_save_changed)
        self.persistence.loading_changed.connect(self._on_loading_changed)
        self.persistence.saved.connect(self._on_saved)

        self.editor.set_auto_save(s.autosave.enabled)
        self._refresh_controls()
        self._on_message_changed(self.editor.message)

    # ---- construction ----

    def _build_central(self):
        central = QWidget()
        layout = QVBoxLayout(central)

        # Header: greeting and logout
        header = QHBoxLayout()
        self.greeting = QLabel(f"Welcome, {self.session.username}!")
        self.greeting.setObjectName("greeting")
        self.logout_btn = QPushButton("Logout")
        self.logout_btn.setObjectName("logoutButton")
        self.logout_btn.clicked.connect(self.logout)
        header.addWidget(self.greeting)
        header.addStretch(1)
        header.addWidget(self.logout_btn)
        layout.addLayout(header)

        # Transient error message
        self.message_banner = QLabel()
        self.message_banner.setObjectName("messageBanner")
        self.message_banner.setWordWrap(True)
        self.message_banner.hide()
        layout.addWidget(self.message_banner)

        # Canvas with the info panel beside it
        body = QHBoxLayout()
        body.addWidget(self.view, 1)
        side = QVBoxLayout()
        side.addWidget(self.panel)
        side.addStretch(1)
        self.stats_count = QLabel()
        self.stats_mode = QLabel()
        side.addWidget(self.stats_count)
        side.addWidget(self.stats_mode)
        body.addLayout(side)
        layout.addLayout(body, 1)

        self.setCentralWidget(central)

    def _build_menus(self):
        """Build the application menu bar."""
        menubar = self.menuBar()

        # File menu
        file_menu = menubar.addMenu("&File")

        self.import_act = QAction("Import from File", self)
        self.import_act.setShortcut(QKeySequence.StandardKey.Open)
        self.import_act.triggered.connect(self.import_dialog)
        file_menu.addAction(self.import_act)

        self.export_act = QAction("Export to File", self)
        self.export_act.setShortcut(QKeySequence("Ctrl+E"))
        self.export_act.triggered.connect(self.export_dialog)
        file_menu.addAction(self.export_act)

        file_menu.addSeparator()

        self.save_act = QAction("Save to Database", self)
        self.save_act.setShortcut(QKeySequence.StandardKey.Save)
        self.save_act.triggered.connect(self.save_to_database)
        file_menu.addAction(self.save_act)

        file_menu.addSeparator()

        exit_act = QAction("E&xit", self)
        exit_act.triggered.connect(self.close)
        file_menu.addAction(exit_act)

        # Edit menu
        edit_menu = menubar.addMenu("&Edit")

        self.delete_act = QAction("Delete Selected", self)
        self.delete_act.setShortcuts([QKeySequence(Qt.Key.Key_Delete), QKeySequence(Qt.Key.Key_Backspace)])
        self.delete_act.triggered.connect(self.editor.delete_selected)
        edit_menu.addAction(self.delete_act)

        self.clear_act = QAction("Clear All", self)
        self.clear_act.triggered.connect(self.editor.clear_all)
        edit_menu.addAction(self.clear_act)

    def _build_toolbar(self):
        """Build the application toolbar."""
        tb = QToolBar("Tools")
        tb.setIconSize(QSize(18, 18))
        tb.setMovable(False)
        tb.setToolButtonStyle(Qt.ToolButtonStyle.ToolButtonTextOnly)
        self.addToolBar(tb)

        self.draw_act = QAction("Start Drawing", self)
        self.draw_act.setCheckable(True)
        self.draw_act.setShortcut(QKeySequence("D"))
        self.draw_act.setStatusTip("Click and drag on the canvas to draw a rectangle")
        self.draw_act.triggered.connect(self.editor.set_drawing_mode)
        tb.addAction(self.draw_act)

        tb.addSeparator()
        tb.addAction(self.delete_act)
        tb.addAction(self.clear_act)
        tb.addAction(self.save_act)
        tb.addAction(self.export_act)
        tb.addAction(self.import_act)
        tb.addSeparator()

        self.auto_save_check = QCheckBox("Auto-save to Database")
        self.auto_save_check.toggled.connect(self.editor.set_auto_save)
        tb.addWidget(self.auto_save_check)

    # ---- state -> widgets ----

    def _refresh_controls(self, *_args):
        store = self.editor.store
        has_rects = len(store) > 0
        drawing = self.editor.drawing_mode

        self.draw_act.setChecked(drawing)
        self.draw_act.setText("Drawing Mode ON" if drawing else "Start Drawing")
        self.delete_act.setEnabled(store.selected_id is not None)
        self.clear_act.setEnabled(has_rects)
        self.save_act.setEnabled(has_rects)
        self.export_act.setEnabled(has_rects)

        self.stats_count.setText(f"Total Rectangles: {len(store)}")
        self.stats_mode.setText(f"Mode: {'Drawing' if drawing else 'Selecting/Editing'}")

    def _on_message_changed(self, text: str):
        self.message_banner.setText(text)
        self.message_banner.setVisible(bool(text))

    def _on_auto_save_changed(self, enabled: bool):
        if self.auto_save_check.isChecked() != enabled:
            self.auto_save_check.setChecked(enabled)

    def _on_loading_changed(self, loading: bool):
        self.view.setEnabled(not loading)
        if loading:
            self.statusBar().showMessage(LOADING_MESSAGE)
        else:
            self.statusBar().showMessage(f"Loaded {len(self.editor.store)} rectangles", 3000)

    def _on_saved(self, set_id: str):
        self.statusBar().showMessage(f"Saved {len(self.editor.store)} rectangles", 3000)
        log.debug("Saved annotation set %s", set_id)

    # ---- actions ----

    def start(self):
        """Load the saved annotations; call once after showing the window."""
        self.editor.load()

    def save_to_database(self):
        self.editor.save()

    @trace_call("FILE")
    def export_dialog(self):
        """Export the rectangles to a JSON file."""
        if len(self.editor.store) == 0:
            return
        initial = str(self.settings_manager.get_export_dir() / default_export_name())
        path, _ = QFileDialog.getSaveFileName(self, "Export to File", initial, "JSON (*.json)")
        if not path:
            return
        try:
            out = self.editor.export(path)
        except OSError as e:
            log.error("Export to %s failed: %s", path, e)
            self.editor.report(AnnotatorError(str(e), user_message="Failed to export annotations"))
            return
        self.statusBar().showMessage(f"Exported to {out}", 3000)

    @trace_call("FILE")
    def import_dialog(self):
        """Replace the rectangles with the contents of a JSON file."""
        initial = str(self.settings_manager.get_export_dir())
        path, _ = QFileDialog.getOpenFileName(self, "Import from File", initial, "JSON (*.json)")
        if not path:
            return
        try:
            self.editor.import_file(path)
        except OSError as e:
            log.error("Import from %s failed: %s", path, e)
            self.editor.report(AnnotatorError(str(e), user_message="Failed to read file"))

    def logout(self):
        """Drop the session and return to the login dialog."""
        log.info("Logging out %s", self.session.username)
        self.logout_requested = True
        self.close()

    # ---- events ----

    def keyPressEvent(self, event):
        if event.key() == Qt.Key.Key_Escape and self.editor.drawing_mode:
            self.editor.set_drawing_mode(False)
            event.accept()
            return
        super().keyPressEvent(event)

    def closeEvent(self, event):
        self.persistence.shutdown()
        if isinstance(self.runner, ThreadedRunner):
            self.runner.wait_all()
        super().closeEvent(event)
        self.closed.emit()


def install_excepthook():
    """Log uncaught exceptions before handing them to the default hook."""

    def excepthook(exc_type, exc_value, exc_tb):
        log.critical("Uncaught exception:\n%s", "".join(traceback.format_exception(exc_type, exc_value, exc_tb)))
        sys.__excepthook__(exc_type, exc_value, exc_tb)

    sys.excepthook = excepthook


def run_session(app: QApplication, settings_manager: SettingsManager) -> bool:
    """Log in, run one editor window, and report whether the user logged out."""
    s = settings_manager.settings
    auth = AuthApi(settings_manager.get_server_url(), timeout=s.server.timeout)
    dialog = LoginDialog(auth)
    if dialog.exec() != QDialog.DialogCode.Accepted or dialog.session is None:
        return False

    w = MainWindow(settings_manager, dialog.session)
    w.closed.connect(app.quit)
    w.resize(1100, 760)
    w.show()
    w.start()
    app.exec()
    return w.logout_requested


def main():
    """Application entry point."""
    app = QApplication(sys.argv)
    # Windows come and go across logins; the session loop decides when to quit
    app.setQuitOnLastWindowClosed(False)

    # Load settings (use singleton to ensure single instance)
    settings_manager = get_settings()
    settings_manager.ensure_file_complete()

    s = settings_manager.settings
    setup_logging(s.logging.level, s.logging.file)
    install_excepthook()
    trace("Application starting", "MAIN")
    log.info("Server: %s", settings_manager.get_server_url())

    # Apply saved theme (or default if not set)
    initial_style = s.theme
    if initial_style not in STYLES:
        initial_style = DEFAULT_STYLE
        s.theme = initial_style
    app.setStyleSheet(STYLES[initial_style])

    # Save settings on application quit
    def save_on_quit():
        trace("Saving settings on quit", "MAIN")
        settings_manager.save()

    app.aboutToQuit.connect(save_on_quit)

    while run_session(app, settings_manager):
        trace("Session ended by logout", "MAIN")

    close_log()
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception as e:
        trace(f"FATAL: {type(e).__name__}: {e}", "CRASH")
        trace_exception("Fatal exception")
        close_log()
        raise
