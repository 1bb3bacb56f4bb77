"""Tri-state option values.

A flag such as `--project` has three observable states:

* unset: the flag was not given at all, so the feature is skipped
* set-empty: the flag was given without content, which asks for interactive selection
* set-value: the flag was given with content, which is used as-is
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class OptionValue:
    present: bool = False
    value: str = ""

    @classmethod
    def unset(cls) -> OptionValue:
        return cls()

    @classmethod
    def of(cls, value: str) -> OptionValue:
        return cls(present=True, value=value)

    @property
    def is_unset(self) -> bool:
        return not self.present

    @property
    def is_empty(self) -> bool:
        return self.present and self.value == ""

    @property
    def has_value(self) -> bool:
        return self.present and self.value != ""


class OptionValueAction(argparse.Action):
    """argparse action storing an `OptionValue`.

    Register with `nargs="?"` so a bare flag counts as set-empty.
    """

    def __init__(self, option_strings: Sequence[str], dest: str, **kwargs: Any) -> None:
        kwargs.setdefault("nargs", "?")
        kwargs.setdefault("const", "")
        kwargs["default"] = OptionValue.unset()
        super().__init__(option_strings, dest, **kwargs)

    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: str | Sequence[Any] | None,
        option_string: str | None = None,
    ) -> None:
        setattr(namespace, self.dest, OptionValue.of("" if values is None else str(values)))
