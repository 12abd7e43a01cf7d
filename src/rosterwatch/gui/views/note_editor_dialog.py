"""Modal editor for a player's free-text notes."""

from __future__ import annotations

from typing import Optional

from PyQt6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QLabel,
    QPlainTextEdit,
    QVBoxLayout,
    QWidget,
)


class NoteEditorDialog(QDialog):
    """Edits the note text; the caller decides what Save does.

    The dialog does not close itself on Save: the owner closes it once the
    save command succeeds so a failed save can be retried.
    """

    def __init__(self, steam_id: int, text: str, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.steam_id = steam_id
        self.setWindowTitle("Edit Notes")
        root = QVBoxLayout(self)
        root.addWidget(QLabel(f"Steam ID: {steam_id}"))
        self.editor = QPlainTextEdit()
        self.editor.setPlainText(text)
        root.addWidget(self.editor)
        self.status_label = QLabel("")
        self.status_label.setObjectName("noteStatusLabel")
        root.addWidget(self.status_label)
        self.buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Cancel
        )
        self.buttons.rejected.connect(self.reject)  # type: ignore
        root.addWidget(self.buttons)
        self.resize(420, 260)

    def text(self) -> str:
        return self.editor.toPlainText()

    def show_error(self, message: str) -> None:
        self.status_label.setText(f"Error updating note: {message}")


__all__ = ["NoteEditorDialog"]
