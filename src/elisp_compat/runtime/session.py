"""The runtime instance: owns every registry and evaluates dialect source."""

from __future__ import annotations

import random
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Set

from elisp_compat.conditions import ConditionRegistry
from elisp_compat.document.buffer import Buffer
from elisp_compat.document.keymap import describe_bindings
from elisp_compat.document.windows import DocumentModel
from elisp_compat.host.evaluator import Interpreter
from elisp_compat.host.printer import prin1_to_string
from elisp_compat.host.reader import read_all
from elisp_compat.host.values import NIL, Lambda, Primitive, Symbol
from elisp_compat.search.match_data import MatchData
from elisp_compat.syntax.preprocessor import preprocess

from . import commands, loader, timers
from .telemetry import record_event, span, warn_once

DEFAULT_FRAME_WIDTH = 120
DEFAULT_FRAME_HEIGHT = 40
DEFAULT_RECURSION_LIMIT = 20000


@dataclass(slots=True)
class RuntimeConfig:
    """Construction-time settings for a ``Runtime``."""

    load_paths: Sequence[str] = (".",)
    frame_width: int = DEFAULT_FRAME_WIDTH
    frame_height: int = DEFAULT_FRAME_HEIGHT
    recursion_limit: int = DEFAULT_RECURSION_LIMIT
    logger_name: Optional[str] = None
    file_source: Optional[loader.FileSource] = None
    clock: Optional[Any] = None


class Runtime:
    """One isolated dialect session.

    Nothing here is process-global: two runtimes never share buffers,
    conditions, match data or timers.
    """

    def __init__(self, config: Optional[RuntimeConfig] = None) -> None:
        self.config = config or RuntimeConfig()
        self.logger_name = self.config.logger_name
        self.interpreter = Interpreter()
        self.conditions = ConditionRegistry(logger_name=self.logger_name)
        self.document = DocumentModel(logger_name=self.logger_name)
        self.match_data = MatchData()
        self.timers = (
            timers.TimerTable(self.config.clock) if self.config.clock else timers.TimerTable()
        )
        self.file_source: loader.FileSource = (
            self.config.file_source or loader.DiskFileSource()
        )
        self.resolver = loader.FeatureResolver(self.config.load_paths, self.file_source)
        self.features: Set[str] = set()
        self.loading: Set[str] = set()
        self.plists: Dict[Symbol, Dict[Symbol, Any]] = {}
        self.global_hooks: Dict[str, List[Any]] = {}
        self.constants: Set[Symbol] = set()
        self.automatic_locals: Set[Symbol] = set()
        self.messages: List[str] = []
        self.warned: Set[str] = set()
        self.random = random.Random()

    @classmethod
    def create(cls, config: Optional[RuntimeConfig] = None) -> "Runtime":
        """Build a runtime with every special form and primitive installed."""

        from elisp_compat import forms, primitives

        runtime = cls(config)
        with span(
            "runtime::create",
            logger_name=runtime.logger_name,
            component="runtime",
        ) as handle:
            if sys.getrecursionlimit() < runtime.config.recursion_limit:
                sys.setrecursionlimit(runtime.config.recursion_limit)
            forms.install(runtime)
            primitives.install(runtime)
            loader.install(runtime)
            timers.install(runtime)
            commands.install(runtime)
            handle.add_metadata("functions", len(runtime.interpreter.functions))
        return runtime

    def teardown(self) -> None:
        self.timers.clear()
        self.conditions.teardown()
        self.match_data.clear()
        self.features.clear()
        self.plists.clear()
        self.global_hooks.clear()
        record_event("runtime.teardown", level="debug", logger_name=self.logger_name)

    # evaluation ---------------------------------------------------------

    def read(self, source: str) -> List[Any]:
        return read_all(preprocess(source))

    def eval_form(self, form: Any) -> Any:
        return self.interpreter.eval(form, self.interpreter.globals)

    def eval_string(self, source: str, *, filename: Optional[str] = None) -> Any:
        """Preprocess, read and evaluate every top-level form; return the last value."""

        with span(
            "runtime::eval_string",
            logger_name=self.logger_name,
            component="runtime",
            metadata={"source": filename or "<string>"},
        ) as handle:
            forms = self.read(source)
            handle.add_metadata("forms", len(forms))
            result: Any = NIL
            for form in forms:
                result = self.eval_form(form)
            return result

    def load(self, path: str) -> Any:
        return loader.load_file(self, path)

    # ambient state ------------------------------------------------------------

    def current_buffer(self) -> Buffer:
        return self.document.current_buffer()

    def message(self, text: str) -> str:
        self.messages.append(text)
        record_event(
            "runtime.message",
            level="info",
            data={"text": text},
            logger_name=self.logger_name,
        )
        return text

    def warn_once(self, key: str, message: str, **data: Any) -> bool:
        return warn_once(
            key, message, data=data, logger_name=self.logger_name, seen=self.warned
        )

    # driver surface -----------------------------------------------------------

    def tick_timers(self, now: Optional[float] = None) -> List[timers.TimerFailure]:
        return timers.tick_timers(self, now)

    def invoke_command(self, target: Any) -> Any:
        return commands.invoke_command(self, target)

    def dispatch_key(self, key: int | str) -> bool:
        return commands.dispatch_key(self, key)

    def binding_name(self, value: Any) -> str:
        """Human label for a keymap binding, used by status displays."""

        value = commands.resolve_binding(value)
        if isinstance(value, Symbol):
            return value.name
        if isinstance(value, (Lambda, Primitive)):
            return value.name or "lambda"
        return prin1_to_string(value)

    def status_line(self) -> Optional[str]:
        return describe_bindings(self.current_buffer().local_map, self.binding_name)


__all__ = ["Runtime", "RuntimeConfig"]
