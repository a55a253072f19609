"""
login_dialog.py

Login / registration dialog shown before the editor opens.
"""

from __future__ import annotations

import logging
from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QVBoxLayout,
)

from api.client import ApiError, AuthApi, Session
from errors import AuthFailure
from sync.worker import ThreadedRunner

log = logging.getLogger(__name__)


def auth_failure(error: BaseException) -> AuthFailure:
    """Turn a failed auth request into an ``AuthFailure`` with the server's message."""
    if isinstance(error, ApiError) and error.server_message:
        return AuthFailure(str(error), user_message=error.server_message)
    return AuthFailure(str(error))


class LoginDialog(QDialog):
    """
    Username/password form that toggles between Login and Register.

    On success ``session`` holds the token and user and the dialog is
    accepted. The request runs on the injected runner so the form stays
    responsive.
    """

    def __init__(self, auth: AuthApi, runner=None, parent=None):
        super().__init__(parent)
        self.auth = auth
        self.runner = runner if runner is not None else ThreadedRunner(self)
        self.session: Optional[Session] = None
        self._is_login = True
        self._busy = False

        self.setWindowTitle("RectMark")
        self.setModal(True)
        self.setMinimumWidth(320)

        layout = QVBoxLayout(self)

        self.title = QLabel()
        self.title.setObjectName("greeting")
        self.title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.title)

        self.error_label = QLabel()
        self.error_label.setObjectName("messageBanner")
        self.error_label.setWordWrap(True)
        self.error_label.hide()
        layout.addWidget(self.error_label)

        self.username_edit = QLineEdit()
        self.password_edit = QLineEdit()
        self.password_edit.setEchoMode(QLineEdit.EchoMode.Password)
        self.password_edit.returnPressed.connect(self.submit)

        form = QFormLayout()
        form.addRow("Username:", self.username_edit)
        form.addRow("Password:", self.password_edit)
        layout.addLayout(form)

        self.submit_btn = QPushButton()
        self.submit_btn.setDefault(True)
        self.submit_btn.clicked.connect(self.submit)
        layout.addWidget(self.submit_btn)

        toggle_row = QHBoxLayout()
        self.toggle_label = QLabel()
        self.toggle_btn = QPushButton()
        self.toggle_btn.setFlat(True)
        self.toggle_btn.clicked.connect(self.toggle_mode)
        toggle_row.addWidget(self.toggle_label)
        toggle_row.addWidget(self.toggle_btn)
        toggle_row.addStretch(1)
        layout.addLayout(toggle_row)

        self._refresh_labels()

    @property
    def is_login(self) -> bool:
        return self._is_login

    def toggle_mode(self) -> None:
        """Switch between Login and Register."""
        self._is_login = not self._is_login
        self._set_error("")
        self._refresh_labels()

    def _refresh_labels(self) -> None:
        mode = "Login" if self._is_login else "Register"
        self.title.setText(mode)
        self.submit_btn.setText("Processing..." if self._busy else mode)
        self.toggle_label.setText("Don't have an account?" if self._is_login else "Already have an account?")
        self.toggle_btn.setText("Register" if self._is_login else "Login")

    def _set_busy(self, busy: bool) -> None:
        self._busy = busy
        for w in (self.submit_btn, self.toggle_btn, self.username_edit, self.password_edit):
            w.setEnabled(not busy)
        self._refresh_labels()

    def _set_error(self, text: str) -> None:
        self.error_label.setText(text)
        self.error_label.setVisible(bool(text))

    def submit(self) -> None:
        if self._busy:
            return
        username = self.username_edit.text().strip()
        password = self.password_edit.text()
        if not username or not password:
            self._set_error("Username and password are required")
            return
        self._set_error("")
        self._set_busy(True)
        call = self.auth.login if self._is_login else self.auth.register
        log.info("%s as %s", "Logging in" if self._is_login else "Registering", username)
        self.runner.submit(lambda: call(username, password), self._on_success, self._on_error, label="auth")

    def _on_success(self, session: Session) -> None:
        self._set_busy(False)
        self.session = session
        log.info("Authenticated as %s", session.username or "(unknown)")
        self.accept()

    def _on_error(self, error: BaseException) -> None:
        self._set_busy(False)
        failure = auth_failure(error)
        log.warning("Authentication failed: %s", failure.detail)
        self._set_error(failure.user_message)
