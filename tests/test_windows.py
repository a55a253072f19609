"""Smoke tests for the login dialog and the main window, with a synchronous runner."""
from __future__ import annotations

import pytest
from PyQt6.QtWidgets import QDialog

from api.client import AnnotationApi, AuthApi, Session
from login_dialog import LoginDialog
from main import LOADING_MESSAGE, MainWindow
from models import Rectangle
from sync.worker import InlineRunner

BASE = "http://server.test"


# ---------------------------------------------------------------------------
# Login dialog
# ---------------------------------------------------------------------------

@pytest.fixture()
def dialog(qapp, fake_server):
    return LoginDialog(AuthApi(BASE, transport=fake_server.transport()), runner=InlineRunner())


class TestLoginDialog:
    def test_starts_in_login_mode(self, dialog):
        assert dialog.is_login
        assert dialog.submit_btn.text() == "Login"
        assert dialog.toggle_btn.text() == "Register"

    def test_toggle_to_register(self, dialog):
        dialog.toggle_mode()
        assert not dialog.is_login
        assert dialog.submit_btn.text() == "Register"
        assert dialog.toggle_label.text() == "Already have an account?"

    def test_missing_fields(self, dialog, fake_server):
        dialog.username_edit.setText("alice")
        dialog.submit()
        assert dialog.error_label.text() == "Username and password are required"
        assert fake_server.requests == []

    def test_login_success(self, dialog, fake_server):
        dialog.username_edit.setText("alice")
        dialog.password_edit.setText("pw")
        dialog.submit()
        assert dialog.result() == QDialog.DialogCode.Accepted
        assert dialog.session.token == "tok-alice"
        assert fake_server.requests[-1].url.path == "/api/auth/login"

    def test_register_uses_register_endpoint(self, dialog, fake_server):
        dialog.toggle_mode()
        dialog.username_edit.setText("bob")
        dialog.password_edit.setText("pw")
        dialog.submit()
        assert fake_server.requests[-1].url.path == "/api/auth/register"
        assert dialog.session.username == "bob"

    def test_server_message_shown(self, dialog, fake_server):
        fake_server.fail_with = 400
        fake_server.fail_message = "Invalid credentials"
        dialog.username_edit.setText("alice")
        dialog.password_edit.setText("bad")
        dialog.submit()
        assert dialog.session is None
        assert dialog.error_label.text() == "Invalid credentials"
        assert dialog.submit_btn.isEnabled()

    def test_generic_message_without_server_text(self, dialog, fake_server):
        fake_server.fail_with = 500
        dialog.username_edit.setText("alice")
        dialog.password_edit.setText("pw")
        dialog.submit()
        assert dialog.error_label.text() == "An error occurred"


# ---------------------------------------------------------------------------
# Main window
# ---------------------------------------------------------------------------

@pytest.fixture()
def window(qapp, settings_manager, fake_server):
    api = AnnotationApi(BASE, token="tok", transport=fake_server.transport())
    win = MainWindow(settings_manager, Session("tok", {"username": "alice"}), api=api, runner=InlineRunner())
    yield win
    win.close()
    win.deleteLater()


class TestMainWindow:
    def test_header_and_initial_state(self, window):
        assert window.greeting.text() == "Welcome, alice!"
        assert window.stats_count.text() == "Total Rectangles: 0"
        assert window.stats_mode.text() == "Mode: Selecting/Editing"
        assert not window.save_act.isEnabled()
        assert not window.export_act.isEnabled()
        assert not window.delete_act.isEnabled()

    def test_start_loads_rectangles(self, window, fake_server):
        fake_server.sets = [{"_id": "s", "rectangles": [Rectangle("a", 0, 0, 10, 10, "#000000").to_dict()]}]
        loading = []
        window.persistence.loading_changed.connect(loading.append)
        window.start()
        assert loading == [True, False]
        assert window.stats_count.text() == "Total Rectangles: 1"
        assert window.save_act.isEnabled()

    def test_draw_toggle_updates_labels(self, window):
        window.editor.toggle_drawing()
        assert window.draw_act.isChecked()
        assert window.draw_act.text() == "Drawing Mode ON"
        assert window.stats_mode.text() == "Mode: Drawing"

    def test_selection_enables_delete(self, window):
        window.editor.store.commit(Rectangle("a", 0, 0, 10, 10, "#000000"))
        window.editor.select("a")
        assert window.delete_act.isEnabled()
        window.delete_act.trigger()
        assert len(window.editor.store) == 0

    def test_load_failure_shows_banner(self, window, fake_server):
        fake_server.fail_with = 500
        window.start()
        assert window.message_banner.text() == "Failed to load annotations"
        assert window.view.isEnabled()

    def test_auto_save_checkbox(self, window):
        window.auto_save_check.setChecked(True)
        assert window.persistence.auto_save_enabled

    def test_logout_flags_window(self, window):
        closed = []
        window.closed.connect(lambda: closed.append(True))
        window.show()
        window.logout()
        assert window.logout_requested
        assert closed == [True]

    def test_loading_message_constant(self):
        assert LOADING_MESSAGE == "Loading annotations..."


# ---------------------------------------------------------------------------
# Selection panel
# ---------------------------------------------------------------------------

class TestSelectionPanel:
    def test_rounds_values_and_hides_without_selection(self, window):
        panel = window.panel
        store = window.editor.store
        assert panel.isHidden()
        store.commit(Rectangle("a", 10.4, 20.6, 99.5, 50.2, "#123456"))
        store.select("a")
        assert not panel.isHidden()
        assert panel.position_label.text() == "X=10, Y=21"
        assert panel.size_label.text() == "100 x 50"
        assert panel.color_value.text() == "#123456"
        store.clear_selection()
        assert panel.isHidden()

    def test_follows_geometry_updates(self, window):
        store = window.editor.store
        store.commit(Rectangle("a", 0, 0, 10, 10, "#123456"))
        store.select("a")
        store.update("a", {"x": 42.0})
        assert window.panel.position_label.text() == "X=42, Y=0"
