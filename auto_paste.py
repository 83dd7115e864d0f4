"""Clipboard output sink with simulated paste into the focused app."""

from __future__ import annotations

import logging
import sys
import time

from errors import PasteFailedError, PermissionDeniedError

logger = logging.getLogger(__name__)

try:
    import pyperclip
except Exception:  # pragma: no cover
    pyperclip = None  # type: ignore

try:
    from pynput.keyboard import Controller, Key
except Exception:  # pragma: no cover
    Controller = None  # type: ignore
    Key = None  # type: ignore

_PERMISSION_HINTS = ("permission", "accessibility", "not trusted", "not allowed")


class ClipboardPasteService:
    def __init__(self, settle_delay_s: float = 0.05) -> None:
        self._settle_delay_s = settle_delay_s

    def copy(self, text: str) -> None:
        if pyperclip is None:
            raise PasteFailedError("Clipboard dependency missing: install pyperclip")
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as exc:
            raise PasteFailedError(f"Failed to copy text: {exc}") from exc

    def paste(self, text: str) -> None:
        """Put ``text`` on the clipboard and send the platform paste shortcut."""
        if Controller is None or Key is None:
            raise PasteFailedError("Keyboard dependency missing: install pynput")
        self.copy(text)
        modifier = Key.cmd if sys.platform == "darwin" else Key.ctrl
        try:
            time.sleep(self._settle_delay_s)
            keyboard = Controller()
            keyboard.press(modifier)
            keyboard.press("v")
            keyboard.release("v")
            keyboard.release(modifier)
        except Exception as exc:
            logger.error("Paste keystroke failed: %s", exc)
            if any(hint in str(exc).lower() for hint in _PERMISSION_HINTS):
                raise PermissionDeniedError() from exc
            raise PasteFailedError(f"Failed to paste text: {exc}") from exc
