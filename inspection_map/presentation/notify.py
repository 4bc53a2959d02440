"""User-visible notifications."""

from __future__ import annotations

import sys
from typing import Protocol, TextIO


class Notifier(Protocol):
    def notify(self, message: str) -> None:
        ...


class StderrNotifier:
    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream

    def notify(self, message: str) -> None:
        stream = self.stream or sys.stderr
        stream.write(f"{message}\n")
        stream.flush()


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)
