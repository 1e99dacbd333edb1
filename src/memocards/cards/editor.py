"""Text editor capability used for inline card edits and the quick-input region"""

from typing import Callable, Optional, Protocol


class TextEditor(Protocol):
    """What cards and the coordinator need from an embedded editor widget."""

    def get_value(self) -> str: ...
    def set_value(self, value: str) -> None: ...
    def clear(self) -> None: ...
    def focus(self) -> None: ...
    def destroy(self) -> None: ...


class EditorFactory(Protocol):
    def __call__(
        self,
        initial: str = "",
        on_change: Optional[Callable[[str], None]] = None,
        on_blur: Optional[Callable[["TextEditor"], None]] = None,
        ) -> TextEditor: ...


class PlainTextEditor:
    """Fallback editor backed by a plain string buffer.

    set_value/clear are programmatic and do not fire on_change; type()
    models user input and does.
    """

    def __init__(
        self,
        initial: str = "",
        on_change: Optional[Callable[[str], None]] = None,
        on_blur: Optional[Callable[[TextEditor], None]] = None,
        ):
        self._value = initial
        self._on_change = on_change
        self._on_blur = on_blur
        self.focused = False
        self.destroyed = False

    def get_value(self) -> str:
        return self._value

    def set_value(self, value: str) -> None:
        self._value = value

    def clear(self) -> None:
        self._value = ""

    def focus(self) -> None:
        self.focused = True

    def type(self, value: str) -> None:
        """Replace the buffer as a user edit would."""
        self._value = value
        if self._on_change and not self.destroyed:
            self._on_change(value)

    def blur(self) -> None:
        self.focused = False
        if self._on_blur and not self.destroyed:
            self._on_blur(self)

    def destroy(self) -> None:
        self.destroyed = True
        self._on_change = None
        self._on_blur = None
