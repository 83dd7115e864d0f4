"""Application entrypoint."""

from __future__ import annotations

import logging
import os
import sys
import threading

from auto_paste import ClipboardPasteService
from config import JsonConfigStore
from hotkey import GlobalHotkeyAdapter
from model_store import MODELS, ModelStore
from models import Notification, OutputMode, PipelineStage
from overlay import OverlayWindow
from recorder import SoxRecorder
from session_controller import DictationController
from transcriber import Transcriber, WhisperEngine

try:
    from PySide6.QtCore import QObject, Signal, QSize
    from PySide6.QtGui import QAction, QActionGroup, QBrush, QColor, QIcon, QPainter, QPixmap
    from PySide6.QtWidgets import QApplication, QMenu, QSystemTrayIcon
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger(__name__)


def _create_icon(color: str = "#888888", size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


ICON_IDLE = "#888888"       # grey
ICON_RECORDING = "#FF4444"  # red
ICON_BUSY = "#4488FF"       # blue


class UIBridge(QObject):
    notification_signal = Signal(object)
    stage_signal = Signal(str, str)  # from_stage, to_stage


class QtStatusSink:
    """Forwards notifications from worker threads to the Qt thread."""

    def __init__(self, bridge: UIBridge) -> None:
        self._bridge = bridge

    def notify(self, notification: Notification) -> None:
        self._bridge.notification_signal.emit(notification)


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.config_store = JsonConfigStore()
        self.overlay = OverlayWindow()
        self.ui = UIBridge()
        self.ui.notification_signal.connect(self.overlay.show_notification)
        self.ui.stage_signal.connect(self._on_stage_change_ui)
        status_sink = QtStatusSink(self.ui)

        self.controller = DictationController(
            recorder=SoxRecorder(status_sink=status_sink),
            model_store=ModelStore(status_sink=status_sink),
            transcriber=Transcriber(WhisperEngine()),
            output=ClipboardPasteService(),
            status_sink=status_sink,
            model_name=self.config_store.get_model(),
            output_mode=OutputMode(self.config_store.get_output_mode()),
            language=self.config_store.get_language(),
            use_gpu=self.config_store.get_use_gpu(),
            capture_seconds=self.config_store.get_capture_seconds(),
            on_stage_change=self._on_stage_change,
        )
        self.hotkey = GlobalHotkeyAdapter(hotkey_name=self.config_store.get_hotkey())

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(ICON_IDLE))
        self.tray.setToolTip("Yap — Ready")
        self._setup_menu()
        self.tray.show()

    def _setup_menu(self) -> None:
        menu = QMenu()

        dictate_action = QAction("Dictate Now", menu)
        dictate_action.triggered.connect(self.dictate)
        menu.addAction(dictate_action)
        menu.addSeparator()

        model_menu = menu.addMenu("Model")
        model_group = QActionGroup(model_menu)
        for name in MODELS:
            action = QAction(name, model_menu, checkable=True)
            action.setChecked(name == self.controller.model_name)
            action.triggered.connect(lambda _checked, n=name: self._set_model(n))
            model_group.addAction(action)
            model_menu.addAction(action)

        output_menu = menu.addMenu("Output")
        output_group = QActionGroup(output_menu)
        for mode in OutputMode:
            action = QAction(mode.value.capitalize(), output_menu, checkable=True)
            action.setChecked(mode == self.controller.output_mode)
            action.triggered.connect(lambda _checked, m=mode: self._set_output_mode(m))
            output_group.addAction(action)
            output_menu.addAction(action)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self.tray.setContextMenu(menu)
        # Keep a reference so Qt does not collect the menu.
        self._menu = menu

    def _set_model(self, name: str) -> None:
        self.config_store.set_model(name)
        self.controller.model_name = name

    def _set_output_mode(self, mode: OutputMode) -> None:
        self.config_store.set_output_mode(mode.value)
        self.controller.output_mode = mode

    # ------------------------------------------------------------------
    # Callbacks (called from worker threads → emit signals for UI thread)
    # ------------------------------------------------------------------

    def _on_stage_change(self, from_stage: PipelineStage, to_stage: PipelineStage) -> None:
        self.ui.stage_signal.emit(from_stage.value, to_stage.value)

    def _on_stage_change_ui(self, from_stage: str, to_stage: str) -> None:
        if to_stage == PipelineStage.RECORDING.value:
            self.tray.setIcon(_create_icon(ICON_RECORDING))
            self.tray.setToolTip("Yap — Recording...")
        elif to_stage == PipelineStage.TRANSCRIBING.value:
            self.tray.setIcon(_create_icon(ICON_BUSY))
            self.tray.setToolTip("Yap — Transcribing...")
        elif to_stage == PipelineStage.IDLE.value:
            self.tray.setIcon(_create_icon(ICON_IDLE))
            self.tray.setToolTip("Yap — Ready")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def dictate(self) -> None:
        # The pipeline sleeps through the capture window, keep it off the Qt thread.
        threading.Thread(target=self.controller.run, name="dictation", daemon=True).start()

    def run(self) -> int:
        try:
            self.hotkey.start(on_trigger=self.dictate)
        except Exception as exc:
            logger.warning("Hotkey disabled: %s", exc)
        return self.app.exec()

    def quit(self) -> None:
        self.hotkey.stop()
        self.app.quit()


def main() -> int:
    logging.basicConfig(
        level=os.environ.get("YAP_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
