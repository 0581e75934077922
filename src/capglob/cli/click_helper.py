from enum import Enum
from typing import Any, Generic, Optional, Type, TypeVar

import click

T = TypeVar("T", bound=Enum)


class EnumChoice(click.Choice, Generic[T]):
    """A click.Choice over the values of an Enum that converts to the Enum member."""

    def __init__(self, choices: Type[T], case_sensitive: bool = True) -> None:
        super().__init__([str(e.value) for e in choices], case_sensitive)
        self.enum_type = choices

    def convert(self, value: Any, param: Optional[click.Parameter], ctx: Optional[click.Context]) -> T:
        if isinstance(value, self.enum_type):
            return value
        return self.enum_type(super().convert(value, param, ctx))
