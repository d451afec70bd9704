"""Pydantic models for key bindings and the merged extension configuration.

Sparse contract: defaults are baked into :class:`ExtensionConfig`; a script's
``config`` reply only carries the fields it wants to change
(:class:`ConfigDelta`).
"""

from __future__ import annotations

import enum
import logging
import shlex
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)


class Modifier(enum.StrEnum):
    CTRL = "ctrl"
    ALT = "alt"
    SHIFT = "shift"


NAMED_KEY_CODES: frozenset[str] = frozenset(
    {
        "Up",
        "Down",
        "Left",
        "Right",
        "PageUp",
        "PageDown",
        "Home",
        "End",
        "Enter",
        "Esc",
        "Tab",
        "BackTab",
        "Backspace",
        "Delete",
        "Insert",
        *(f"F{n}" for n in range(1, 13)),
    }
)


@dataclass(frozen=True)
class KeyEvent:
    """A key press as delivered by the UI's input loop."""

    code: str
    modifiers: frozenset[Modifier] = field(default_factory=frozenset)


class KeyBinding(BaseModel):
    """A key code plus a modifier set. Equality is structural.

    Parsed from a script's ``{code, ctrl?, alt?, shift?}`` declaration.
    Unrecognized codes fail validation so the binding can be dropped.
    """

    model_config = {"frozen": True}

    code: str
    ctrl: bool = False
    alt: bool = False
    shift: bool = False

    @model_validator(mode="before")
    @classmethod
    def _expand_char_form(cls, data: Any) -> Any:
        # {"code": "Char", "char": "g"} is shorthand for {"code": "g"}
        if isinstance(data, dict) and data.get("code") == "Char" and isinstance(
            data.get("char"), str
        ):
            return {**data, "code": data["char"]}
        return data

    @field_validator("code")
    @classmethod
    def _known_code(cls, value: str) -> str:
        if value in NAMED_KEY_CODES or len(value) == 1:
            return value
        msg = f"unrecognized key code {value!r}"
        raise ValueError(msg)

    @field_validator("ctrl", "alt", "shift", mode="before")
    @classmethod
    def _strict_flag(cls, value: Any) -> bool:
        return value if isinstance(value, bool) else False

    @classmethod
    def plain(cls, code: str) -> KeyBinding:
        return cls(code=code)

    @classmethod
    def ctrl_char(cls, char: str) -> KeyBinding:
        return cls(code=char, ctrl=True)

    @classmethod
    def alt_code(cls, code: str) -> KeyBinding:
        return cls(code=code, alt=True)

    @classmethod
    def from_json(cls, value: Any) -> KeyBinding | None:
        """Parse one declared binding, returning None when it is unusable."""
        try:
            return cls.model_validate(value)
        except ValidationError:
            logger.debug("Dropping unrecognized key binding %r", value)
            return None

    @property
    def modifiers(self) -> frozenset[Modifier]:
        mods = set()
        if self.ctrl:
            mods.add(Modifier.CTRL)
        if self.alt:
            mods.add(Modifier.ALT)
        if self.shift:
            mods.add(Modifier.SHIFT)
        return frozenset(mods)

    def matches(self, event: KeyEvent) -> bool:
        return self.code == event.code and self.modifiers == event.modifiers

    def __str__(self) -> str:
        parts = [m.value for m in Modifier if m in self.modifiers]
        parts.append(self.code)
        return "+".join(parts)


KEY_LIST_FIELDS: tuple[str, ...] = (
    "external_edit_keys",
    "history_prev_keys",
    "history_next_keys",
    "history_prev_page_keys",
    "history_next_page_keys",
    "history_first_keys",
    "history_last_keys",
)

TOGGLE_FIELDS: tuple[str, ...] = (
    "hide_edit_marker",
    "hide_prompt_hints",
    "hide_statusbar_hints",
    "align_left",
    "editor_borderline",
    "a11y_keyboard_shortcuts",
    "a11y_audio_cues",
)


class ExtensionConfig(BaseModel):
    """Effective configuration: built-in defaults overlaid by script deltas.

    Read-only after the host builds it.
    """

    model_config = {"frozen": True}

    external_edit_keys: list[KeyBinding] = Field(
        default_factory=lambda: [KeyBinding.ctrl_char("e")]
    )
    history_prev_keys: list[KeyBinding] = Field(
        default_factory=lambda: [KeyBinding.alt_code("Up")]
    )
    history_next_keys: list[KeyBinding] = Field(
        default_factory=lambda: [KeyBinding.alt_code("Down")]
    )
    history_prev_page_keys: list[KeyBinding] = Field(
        default_factory=lambda: [KeyBinding.alt_code("PageUp")]
    )
    history_next_page_keys: list[KeyBinding] = Field(
        default_factory=lambda: [KeyBinding.alt_code("PageDown")]
    )
    history_first_keys: list[KeyBinding] = Field(
        default_factory=lambda: [KeyBinding.alt_code("Home")]
    )
    history_last_keys: list[KeyBinding] = Field(
        default_factory=lambda: [KeyBinding.alt_code("End")]
    )
    editor_command: list[str] | None = None
    hide_edit_marker: bool | None = None
    hide_prompt_hints: bool | None = None
    hide_statusbar_hints: bool | None = None
    align_left: bool | None = None
    editor_borderline: bool | None = None
    a11y_keyboard_shortcuts: bool | None = None
    a11y_audio_cues: bool | None = None

    def merged(self, delta: ConfigDelta) -> ExtensionConfig:
        """Return a copy with every field *delta* declared overriding ours."""
        overrides = delta.overrides()
        if not overrides:
            return self
        return self.model_copy(update=overrides)

    def with_binding(self, field_name: str, binding: KeyBinding) -> ExtensionConfig:
        """Return a copy whose *field_name* list contains *binding*."""
        current: list[KeyBinding] = getattr(self, field_name)
        if binding in current:
            return self
        return self.model_copy(update={field_name: [*current, binding]})


def _parse_key_list(value: Any) -> list[KeyBinding]:
    items = value if isinstance(value, list) else []
    parsed = (KeyBinding.from_json(item) for item in items)
    return [kb for kb in parsed if kb is not None]


def _parse_editor_command(value: Any) -> list[str] | None:
    if isinstance(value, str):
        try:
            parts = shlex.split(value)
        except ValueError:
            return None
    elif isinstance(value, list):
        parts = [v for v in value if isinstance(v, str)]
    else:
        return None
    return parts or None


class ConfigDelta(BaseModel):
    """The fields one script's ``config`` reply chose to declare.

    Absent or unusable fields stay ``None`` and leave the accumulator alone.
    A declared key list always overrides, even when every entry was dropped.
    """

    model_config = {"frozen": True}

    external_edit_keys: list[KeyBinding] | None = None
    history_prev_keys: list[KeyBinding] | None = None
    history_next_keys: list[KeyBinding] | None = None
    history_prev_page_keys: list[KeyBinding] | None = None
    history_next_page_keys: list[KeyBinding] | None = None
    history_first_keys: list[KeyBinding] | None = None
    history_last_keys: list[KeyBinding] | None = None
    editor_command: list[str] | None = None
    hide_edit_marker: bool | None = None
    hide_prompt_hints: bool | None = None
    hide_statusbar_hints: bool | None = None
    align_left: bool | None = None
    editor_borderline: bool | None = None
    a11y_keyboard_shortcuts: bool | None = None
    a11y_audio_cues: bool | None = None

    @field_validator(*KEY_LIST_FIELDS, mode="before")
    @classmethod
    def _key_list(cls, value: Any) -> list[KeyBinding]:
        return _parse_key_list(value)

    @field_validator("editor_command", mode="before")
    @classmethod
    def _editor_command(cls, value: Any) -> list[str] | None:
        return _parse_editor_command(value)

    @field_validator(*TOGGLE_FIELDS, mode="before")
    @classmethod
    def _toggle(cls, value: Any) -> bool | None:
        return value if isinstance(value, bool) else None

    def overrides(self) -> dict[str, Any]:
        return {
            name: getattr(self, name)
            for name in type(self).model_fields
            if getattr(self, name) is not None
        }
