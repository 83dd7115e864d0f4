"""Overlay window for dictation status notifications."""

from __future__ import annotations

from models import Notification, NotificationStyle

try:
    from PySide6.QtCore import Qt, QTimer
    from PySide6.QtWidgets import QApplication, QLabel, QWidget, QVBoxLayout
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QTimer = None  # type: ignore
    QApplication = None  # type: ignore
    QLabel = object  # type: ignore
    QWidget = object  # type: ignore
    QVBoxLayout = object  # type: ignore

_STYLE_COLORS = {
    NotificationStyle.ANIMATED: ("white", "🎤"),
    NotificationStyle.SUCCESS: ("#8BE38B", "✅"),
    NotificationStyle.WARNING: ("#FFC04D", "⚠️"),
    NotificationStyle.FAILURE: ("#FF6B6B", "❌"),
}

# Transient notifications hide themselves; in-progress ones stay until replaced.
_HIDE_AFTER_MS = {
    NotificationStyle.SUCCESS: 2000,
    NotificationStyle.WARNING: 2500,
    NotificationStyle.FAILURE: 4000,
}


def format_notification(notification: Notification) -> str:
    _, icon = _STYLE_COLORS[notification.style]
    if notification.message:
        return f"{icon} {notification.title}\n{notification.message}"
    return f"{icon} {notification.title}"


class OverlayWindow(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowFlags(
            Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint | Qt.Tool
        )
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setFixedWidth(480)

        self._label = QLabel("")
        self._label.setWordWrap(True)
        self._apply_style(NotificationStyle.ANIMATED)

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._label)
        self.setLayout(layout)

        self._hide_timer: QTimer | None = None

    def show_notification(self, notification: Notification) -> None:
        self._cancel_hide_timer()
        self._apply_style(notification.style)
        self._label.setText(format_notification(notification))
        self._center_top()
        self.show()
        hide_after = _HIDE_AFTER_MS.get(notification.style)
        if hide_after is not None:
            self.hide_with_delay(hide_after)

    def hide_with_delay(self, delay_ms: int = 400) -> None:
        self._cancel_hide_timer()
        if QTimer is not None:
            self._hide_timer = QTimer()
            self._hide_timer.setSingleShot(True)
            self._hide_timer.timeout.connect(self.hide)
            self._hide_timer.start(delay_ms)

    def _center_top(self) -> None:
        """Position the window at the top center of the primary screen."""
        if QApplication is None:
            return
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        geom = screen.availableGeometry()
        self.adjustSize()
        x = geom.x() + (geom.width() - self.width()) // 2
        y = geom.y() + 40
        self.move(x, y)

    def _apply_style(self, style: NotificationStyle) -> None:
        color, _ = _STYLE_COLORS[style]
        self._label.setStyleSheet(
            f"color: {color}; font-size: 18px; padding: 16px;"
            "background: rgba(0,0,0,200); border-radius: 12px;"
        )

    def _cancel_hide_timer(self) -> None:
        if self._hide_timer is not None:
            self._hide_timer.stop()
            self._hide_timer = None
