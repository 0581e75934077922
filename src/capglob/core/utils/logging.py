from __future__ import annotations

import collections
import functools
import inspect
import logging
import os
import reprlib
import time
from contextlib import contextmanager
from enum import Enum
from typing import (
    Any,
    Callable,
    ClassVar,
    Iterator,
    List,
    Mapping,
    Optional,
    Type,
    TypeVar,
    Union,
    cast,
    overload,
)

__all__ = ["TRACE", "LoggingDescriptor"]


_my_repr: Optional[reprlib.Repr] = None


def get_repr() -> reprlib.Repr:
    global _my_repr
    if _my_repr is None:
        _my_repr = reprlib.Repr()
        _my_repr.maxother = 100
        _my_repr.maxstring = 100
    return _my_repr


def _repr(o: Any) -> str:
    return get_repr().repr(o)


def _get_callable_has_self_or_cls_parameter(func: Any) -> bool:
    if inspect.ismethod(func) or isinstance(func, (classmethod, staticmethod)):
        return True
    if inspect.isfunction(func) and len(func.__qualname__.split(".<locals>.", 1)[-1].rsplit(".", 1)) > 1:
        return True
    return False


_LoggerEntry = collections.namedtuple("_LoggerEntry", "level prefix condition states")


class _HasLoggerEntries:
    __logging_entries__: List[_LoggerEntry]


_F = TypeVar("_F", bound=Callable[..., Any])


class LoggerError(Exception):
    pass


class CallState(Enum):
    ENTERING = "entering"
    EXITING = "exiting"
    EXCEPTION = "exception"


TRACE = logging.DEBUG - 6
logging.addLevelName(TRACE, "TRACE")


def _env_flag(name: str) -> bool:
    return name in os.environ and os.environ[name] not in ("", "0")


class LoggingDescriptor:
    """A lazily created `logging.Logger` that can live on a class or in a module.

    Used as a class attribute the logger is named after the owning class,
    otherwise after the `name` given. Messages may be callables, so building
    an expensive message only happens if the level is enabled.
    """

    __name: Optional[str] = None
    __level: int = 0
    __owner: Any = None
    __postfix: str = ""
    __logger: Optional[logging.Logger] = None

    def __init__(
        self,
        *,
        name: Optional[str] = None,
        postfix: str = "",
        level: int = logging.NOTSET,
    ) -> None:
        self.__name = name
        self.__level = level
        self.__postfix = postfix

    def __init_logger(self) -> LoggingDescriptor:
        if self.__logger is None:
            if self.__name is not None:
                name = self.__name
            elif self.__owner is not None:
                name = self.__owner.__module__ + "." + self.__owner.__qualname__
            else:
                name = "capglob"

            self.__logger = logging.getLogger(name + self.__postfix)
            self.set_level(self.__level)

        return self

    @property
    def logger(self) -> logging.Logger:
        if self.__logger is None:
            self.__init_logger()

        if self.__logger is None:
            raise LoggerError("Logger not initialized")

        return self.__logger

    def __set_name__(self, owner: Any, name: str) -> None:
        self.__owner = owner

    def __get__(self, obj: Any, objtype: Type[Any]) -> LoggingDescriptor:
        return self

    def log(
        self,
        level: int,
        msg: Any,
        condition: Optional[Callable[[], bool]] = None,
        *args: Any,
        stacklevel: int = 2,
        extra: Optional[Mapping[str, object]] = None,
        **kwargs: Any,
    ) -> None:
        if not self.is_enabled_for(level):
            return

        if condition is not None and not condition():
            return

        self.logger.log(
            level,
            msg() if callable(msg) else msg,
            *args,
            stacklevel=stacklevel,
            extra=extra,
            **kwargs,
        )

    def trace(
        self,
        msg: Union[str, Callable[[], str]],
        condition: Optional[Callable[[], bool]] = None,
        *args: Any,
        stacklevel: int = 3,
        **kwargs: Any,
    ) -> None:
        return self.log(TRACE, msg, condition, *args, stacklevel=stacklevel, **kwargs)

    def debug(
        self,
        msg: Union[str, Callable[[], str]],
        condition: Optional[Callable[[], bool]] = None,
        *args: Any,
        stacklevel: int = 3,
        **kwargs: Any,
    ) -> None:
        return self.log(logging.DEBUG, msg, condition, *args, stacklevel=stacklevel, **kwargs)

    def warning(
        self,
        msg: Union[str, Callable[[], str]],
        condition: Optional[Callable[[], bool]] = None,
        *args: Any,
        stacklevel: int = 3,
        **kwargs: Any,
    ) -> None:
        return self.log(logging.WARNING, msg, condition, *args, stacklevel=stacklevel, **kwargs)

    @contextmanager
    def measure_time(
        self,
        msg: Union[str, Callable[[], str]],
        *,
        level: int = logging.DEBUG,
    ) -> Iterator[None]:
        if self.is_enabled_for(level):
            self.log(level, lambda: f"Start {msg() if callable(msg) else msg}", stacklevel=4)

            start_time = time.monotonic()
            try:
                yield
            finally:
                duration = time.monotonic() - start_time
                self.log(
                    level,
                    lambda: f"End {msg() if callable(msg) else msg} took {duration:.4f} seconds",
                    stacklevel=4,
                )
        else:
            yield

    def is_enabled_for(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)

    @property
    def name(self) -> str:
        return self.logger.name

    def __repr__(self) -> str:
        logger = self.logger
        level = logging.getLevelName(logger.getEffectiveLevel())
        return f"{self.__class__.__name__}(name={logger.name!r}, level={level!r})"

    _call_tracing_enabled: ClassVar[bool] = _env_flag("CAPGLOB_CALL_TRACING_ENABLED")
    _call_tracing_default_level: ClassVar[int] = (
        logging.getLevelName(os.environ["CAPGLOB_CALL_TRACING_LEVEL"])
        if "CAPGLOB_CALL_TRACING_LEVEL" in os.environ
        else TRACE
    )

    @classmethod
    def set_call_tracing(cls, value: bool) -> None:
        cls._call_tracing_enabled = value

    @overload
    def call(self, _func: _F) -> _F: ...

    @overload
    def call(
        self,
        *,
        level: Optional[int] = None,
        prefix: str = "",
        condition: Optional[Callable[..., bool]] = None,
        entering: bool = True,
        exiting: bool = False,
        exception: bool = False,
    ) -> Callable[[_F], _F]: ...

    def call(
        self,
        _func: Optional[_F] = None,
        *,
        level: Optional[int] = None,
        prefix: str = "",
        condition: Optional[Callable[..., bool]] = None,
        entering: bool = True,
        exiting: bool = False,
        exception: bool = False,
    ) -> Any:
        """Decorator that logs calls, results and exceptions of a function.

        Tracing is decided when the decorated function is called, so
        `set_call_tracing` also affects functions decorated at import time.
        """

        def _decorator(func: _F) -> _F:
            unwrapped_func = inspect.unwrap(func)

            if not hasattr(unwrapped_func, "__logging_entries__"):
                unwrapped_func.__logging_entries__ = []  # type: ignore[attr-defined]

            cast(_HasLoggerEntries, unwrapped_func).__logging_entries__.append(
                _LoggerEntry(
                    level=level,
                    prefix=prefix,
                    condition=condition,
                    states={
                        CallState.ENTERING: entering,
                        CallState.EXITING: exiting,
                        CallState.EXCEPTION: exception,
                    },
                )
            )

            skip_first_arg = _get_callable_has_self_or_cls_parameter(unwrapped_func)

            @functools.wraps(func)
            def _wrapper(*wrapper_args: Any, **wrapper_kwargs: Any) -> Any:
                if not type(self)._call_tracing_enabled:
                    return func(*wrapper_args, **wrapper_kwargs)

                def _log(message: Callable[[], str], *, state: CallState, log_level: Optional[int] = None) -> None:
                    for c in cast(_HasLoggerEntries, unwrapped_func).__logging_entries__:
                        if c.states[state]:
                            state_msg = (
                                (str(state.value) + " ")
                                if state != CallState.ENTERING or c.states[CallState.EXITING]
                                else ""
                            )
                            self.log(
                                log_level
                                if log_level is not None
                                else c.level
                                if c.level is not None
                                else type(self)._call_tracing_default_level,
                                lambda: f"{state_msg}{c.prefix}{message()}",
                                condition=lambda: c.condition is None or c.condition(*wrapper_args, **wrapper_kwargs),
                                stacklevel=5,
                            )

                def build_enter_message() -> str:
                    message_args = wrapper_args[1:] if skip_first_arg else wrapper_args
                    parts = [_repr(a) for a in message_args]
                    parts.extend(f"{k!s}={_repr(v)}" for k, v in wrapper_kwargs.items())
                    return f"{unwrapped_func.__qualname__}({', '.join(parts)})"

                _log(build_enter_message, state=CallState.ENTERING)

                try:
                    result = func(*wrapper_args, **wrapper_kwargs)
                except BaseException as e:
                    ex = e
                    _log(
                        lambda: f"{unwrapped_func.__qualname__}(...) -> {type(ex).__qualname__}: {ex}",
                        state=CallState.EXCEPTION,
                        log_level=logging.ERROR,
                    )
                    raise

                _log(
                    lambda: f"{unwrapped_func.__qualname__}(...) -> {_repr(result)}",
                    state=CallState.EXITING,
                )
                return result

            return cast(_F, _wrapper)

        if _func is None:
            return _decorator

        return _decorator(_func)
