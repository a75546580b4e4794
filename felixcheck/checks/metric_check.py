from __future__ import annotations

from typing import Callable

from felixcheck.checks.base import Check
from felixcheck.checks.results import Result, State

ObtainMetric = Callable[[], float]
CalculateState = Callable[[float], State | str]


class GenericMetricChecker(Check):
    def __init__(
        self,
        host: str,
        service: str,
        metric_fn: ObtainMetric,
        state_fn: CalculateState,
    ) -> None:
        self.host = host
        self.service = service
        self.metric_fn = metric_fn
        self.state_fn = state_fn

    def execute(self) -> Result:
        try:
            value = float(self.metric_fn())
        except Exception as e:
            return Result.from_exception(self.host, self.service, e)

        try:
            state = State(self.state_fn(value))
        except Exception as e:
            return Result.from_exception(self.host, self.service, e, metric=value)
        return Result(host=self.host, service=self.service, state=state, metric=value)


def below(threshold: float) -> CalculateState:
    """State function: ok while the metric stays strictly under ``threshold``."""

    def state_fn(value: float) -> State:
        return State.OK if value < threshold else State.CRITICAL

    return state_fn
