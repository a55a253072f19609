"""
styles.py

Application stylesheets - Light and Dark themes.
"""

LIGHT_STYLE = """
/* === Base Colors === */
QMainWindow {
    background-color: #f5f5f5;
}

QWidget {
    color: #333333;
    font-family: "Segoe UI", "SF Pro Display", sans-serif;
    font-size: 13px;
}

/* === Header === */
QLabel#greeting {
    font-size: 18px;
    font-weight: 600;
}

QLabel#panelTitle {
    font-size: 14px;
    font-weight: 600;
}

/* === Message banner === */
QLabel#messageBanner {
    background-color: #f8d7da;
    color: #721c24;
    border: 1px solid #f5c6cb;
    border-radius: 4px;
    padding: 8px;
}

/* === Buttons === */
QPushButton {
    background-color: #007bff;
    color: #ffffff;
    border: none;
    border-radius: 4px;
    padding: 6px 12px;
}

QPushButton:hover {
    background-color: #0069d9;
}

QPushButton:checked {
    background-color: #28a745;
}

QPushButton:disabled {
    background-color: #cccccc;
    color: #666666;
}

QPushButton#logoutButton {
    background-color: #dc3545;
}

/* === Canvas === */
QGraphicsView {
    border: 1px solid #cccccc;
    background-color: #ffffff;
}

/* === Info panel === */
SelectionPanel {
    background-color: #ffffff;
    border: 1px solid #dddddd;
    border-radius: 4px;
}

/* === Status bar === */
QStatusBar {
    background-color: #e9ecef;
    color: #495057;
}
"""

DARK_STYLE = """
/* === Base Colors === */
QMainWindow {
    background-color: #1e1e1e;
}

QWidget {
    background-color: #252526;
    color: #cccccc;
    font-family: "Segoe UI", "SF Pro Display", sans-serif;
    font-size: 13px;
}

/* === Header === */
QLabel#greeting {
    font-size: 18px;
    font-weight: 600;
}

QLabel#panelTitle {
    font-size: 14px;
    font-weight: 600;
}

/* === Message banner === */
QLabel#messageBanner {
    background-color: #5a1d1d;
    color: #f2b8b5;
    border: 1px solid #8c2f2f;
    border-radius: 4px;
    padding: 8px;
}

/* === Buttons === */
QPushButton {
    background-color: #0e639c;
    color: #ffffff;
    border: none;
    border-radius: 4px;
    padding: 6px 12px;
}

QPushButton:hover {
    background-color: #1177bb;
}

QPushButton:checked {
    background-color: #388a34;
}

QPushButton:disabled {
    background-color: #3c3c3c;
    color: #808080;
}

QPushButton#logoutButton {
    background-color: #a1260d;
}

/* === Canvas === */
QGraphicsView {
    border: 1px solid #404040;
}

/* === Status bar === */
QStatusBar {
    background-color: #007acc;
    color: #ffffff;
}
"""

STYLES = {
    "Light": LIGHT_STYLE,
    "Dark": DARK_STYLE,
}

DEFAULT_STYLE = "Light"
