"""Timer registrations and the tick loop a driver calls to fire them."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from functools import partial
from itertools import count
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from elisp_compat.errors import ElispError, TypeMismatchError
from elisp_compat.host.values import NIL, T, from_list, is_number

from .commands import invoke_command
from .telemetry import record_event, span

if TYPE_CHECKING:
    from .session import Runtime

QUIET_CONDITIONS = frozenset({"quit"})
_UNITS = {
    "sec": 1.0,
    "second": 1.0,
    "seconds": 1.0,
    "s": 1.0,
    "min": 60.0,
    "minute": 60.0,
    "minutes": 60.0,
    "ms": 0.001,
    "millisecond": 0.001,
    "milliseconds": 0.001,
}
_DELAY_PATTERN = re.compile(r"^\s*([0-9]*\.?[0-9]+)\s*([a-z]*)\s*$")
_ids = count(1)


@dataclass(eq=False)
class Timer:
    """One scheduled callback; ``period`` is ``None`` for one-shot timers."""

    callback: Any
    args: Tuple[Any, ...] = ()
    period: Optional[float] = None
    next_fire: float = 0.0
    active: bool = True
    id: int = field(default_factory=lambda: next(_ids))

    @property
    def one_shot(self) -> bool:
        return self.period is None

    def lisp_repr(self) -> str:
        kind = "one-shot" if self.one_shot else f"every {self.period:g}s"
        return f"#<timer {self.id} {kind}>"


@dataclass(frozen=True, slots=True)
class TimerFailure:
    """A callback failure reported back to the driver; the timer is disabled."""

    timer: Timer
    error: BaseException

    @property
    def message(self) -> str:
        return str(self.error)


class TimerTable:
    """Ordered set of timers with a pluggable clock."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self.clock = clock
        self._timers: List[Timer] = []

    def schedule(
        self,
        callback: Any,
        *,
        delay: float = 0.0,
        period: Optional[float] = None,
        args: Tuple[Any, ...] = (),
    ) -> Timer:
        timer = Timer(
            callback=callback,
            args=args,
            period=period if period and period > 0 else None,
            next_fire=self.clock() + max(delay, 0.0),
        )
        self._timers.append(timer)
        return timer

    def cancel(self, timer: Timer) -> None:
        timer.active = False
        if timer in self._timers:
            self._timers.remove(timer)

    def active(self) -> List[Timer]:
        return [timer for timer in self._timers if timer.active]

    def due(self, now: float) -> List[Timer]:
        return [timer for timer in self._timers if timer.active and timer.next_fire <= now]

    def clear(self) -> None:
        for timer in self._timers:
            timer.active = False
        self._timers.clear()

    def __len__(self) -> int:
        return len(self._timers)


def parse_delay(value: Any) -> float:
    """Seconds from a number, ``nil``/``"now"`` or strings like ``"2 sec"``."""

    if value is NIL or value is None:
        return 0.0
    if is_number(value):
        return float(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("", "now"):
            return 0.0
        matched = _DELAY_PATTERN.match(text)
        if matched:
            unit = _UNITS.get(matched.group(2) or "sec")
            if unit is not None:
                return float(matched.group(1)) * unit
    raise TypeMismatchError("timer-delay", value)


def _period(value: Any) -> Optional[float]:
    if value is NIL or value is None:
        return None
    if is_number(value):
        return float(value) if value > 0 else None
    raise TypeMismatchError("numberp", value)


def run_at_time(rt: "Runtime", when: Any, repeat: Any, function: Any, *args: Any) -> Timer:
    timer = rt.timers.schedule(
        function, delay=parse_delay(when), period=_period(repeat), args=args
    )
    record_event(
        "timers.schedule",
        level="debug",
        data={"timer": timer.id, "period": timer.period, "delay": when},
        logger_name=rt.logger_name,
    )
    return timer


def cancel_timer(rt: "Runtime", timer: Any) -> Any:
    if not isinstance(timer, Timer):
        raise TypeMismatchError("timerp", timer)
    rt.timers.cancel(timer)
    return NIL


def timerp(rt: "Runtime", value: Any) -> Any:
    del rt
    return T if isinstance(value, Timer) else NIL


def timer_list(rt: "Runtime") -> Any:
    return from_list(rt.timers.active())


def fire(rt: "Runtime", timer: Timer) -> Any:
    """Invoke ``timer``'s callback once, with its own args or the command fallback."""

    if timer.args:
        return rt.interpreter.apply(timer.callback, list(timer.args))
    return invoke_command(rt, timer.callback)


def tick_timers(rt: "Runtime", now: Optional[float] = None) -> List[TimerFailure]:
    """Fire every due timer; periodic ones are rescheduled, failures disable.

    A ``quit`` condition ends a timer quietly; any other failure is logged
    and returned as a ``TimerFailure``.
    """

    now = rt.timers.clock() if now is None else now
    failures: List[TimerFailure] = []
    for timer in rt.timers.due(now):
        with span(
            "timers::fire",
            logger_name=rt.logger_name,
            component="timers",
            metadata={"timer": timer.id},
            report_failures=False,
        ) as handle:
            try:
                fire(rt, timer)
            except ElispError as exc:
                timer.active = False
                if exc.condition in QUIET_CONDITIONS:
                    handle.cancel(exc.condition)
                    continue
                handle.fail(str(exc))
                rt.messages.append(f"timer error: {exc}")
                failures.append(TimerFailure(timer=timer, error=exc))
                continue
        if timer.one_shot:
            timer.active = False
        else:
            timer.next_fire = now + (timer.period or 0.0)
    return failures


TIMER_PRIMITIVES: Dict[str, tuple[Callable[..., Any], int, Optional[int]]] = {
    "run-at-time": (run_at_time, 3, None),
    "run-with-timer": (run_at_time, 3, None),
    "run-with-idle-timer": (run_at_time, 3, None),
    "cancel-timer": (cancel_timer, 1, 1),
    "timerp": (timerp, 1, 1),
    "timer-list": (timer_list, 0, 0),
}


def install(rt: "Runtime") -> None:
    for name, (handler, minimum, maximum) in TIMER_PRIMITIVES.items():
        rt.interpreter.define_primitive(name, partial(handler, rt), minimum, maximum)


__all__ = [
    "Timer",
    "TimerFailure",
    "TimerTable",
    "parse_delay",
    "run_at_time",
    "cancel_timer",
    "tick_timers",
    "fire",
    "install",
]
