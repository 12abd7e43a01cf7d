"""Settings editor dialog for the detector's user settings document.

Text fields with a validator show the validator's message inline; Save is
disabled while any field reports an error.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Dict, Optional

from PyQt6.QtWidgets import (
    QCheckBox,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QLabel,
    QLineEdit,
    QVBoxLayout,
    QWidget,
)

from rosterwatch.gui.services.user_settings import FIELD_VALIDATORS, UserSettings, validate_settings

_TEXT_FIELDS = {
    "steam_id": "Steam ID",
    "api_key": "Steam API Key",
    "steam_dir": "Steam Root",
    "tf2_dir": "TF2 Root",
    "http_listen_addr": "HTTP Service Listen Address",
}
_SECRET_FIELDS = {"api_key"}


class SettingsEditorDialog(QDialog):
    def __init__(self, settings: UserSettings, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self._original = settings
        self._text_inputs: Dict[str, QLineEdit] = {}
        self._error_labels: Dict[str, QLabel] = {}
        self._checks: Dict[str, QCheckBox] = {}
        self._build_ui()
        self._revalidate()

    def _build_ui(self) -> None:
        root = QVBoxLayout(self)
        form = QFormLayout()
        for name, label in _TEXT_FIELDS.items():
            edit = QLineEdit(str(getattr(self._original, name)))
            if name in _SECRET_FIELDS:
                edit.setEchoMode(QLineEdit.EchoMode.Password)
            edit.textChanged.connect(lambda _t: self._revalidate())  # type: ignore
            err = QLabel("")
            err.setObjectName("settingsErrorLabel")
            form.addRow(label, edit)
            form.addRow("", err)
            self._text_inputs[name] = edit
            self._error_labels[name] = err
        for f in fields(UserSettings):
            value = getattr(self._original, f.name)
            if isinstance(value, bool):
                chk = QCheckBox(f.name.replace("_", " ").capitalize())
                chk.setChecked(value)
                form.addRow(chk)
                self._checks[f.name] = chk
        root.addLayout(form)
        self.buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Cancel
        )
        self.buttons.accepted.connect(self.accept)  # type: ignore
        self.buttons.rejected.connect(self.reject)  # type: ignore
        root.addWidget(self.buttons)

    def current_settings(self) -> UserSettings:
        data = self._original.to_dict()
        for name, edit in self._text_inputs.items():
            data[name] = edit.text()
        for name, chk in self._checks.items():
            data[name] = chk.isChecked()
        return UserSettings.from_dict(data)

    def errors(self) -> Dict[str, str]:
        return validate_settings(self.current_settings())

    def _revalidate(self) -> None:
        errors = self.errors()
        for name in FIELD_VALIDATORS:
            if name in self._error_labels:
                self._error_labels[name].setText(errors.get(name, ""))
        save = self.buttons.button(QDialogButtonBox.StandardButton.Save)
        if save is not None:
            save.setEnabled(not errors)


__all__ = ["SettingsEditorDialog"]
