from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Sequence


class State(str, Enum):
    OK = "ok"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Result:
    """Outcome of one check execution.

    Tags and attributes are stored as a tuple and a read-only mapping so a
    Result can be handed to any number of sinks without being changed by one.
    """

    host: str
    service: str
    state: State
    metric: float = 0.0
    description: str = ""
    tags: Sequence[str] = ()
    attributes: Mapping[str, str] = field(default_factory=dict, hash=False)
    ttl: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "state", State(self.state))
        object.__setattr__(self, "metric", float(self.metric))
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))
        object.__setattr__(self, "ttl", float(self.ttl))

    @classmethod
    def ok(
        cls, host: str, service: str, metric: float = 0.0, description: str = ""
    ) -> "Result":
        return cls(host=host, service=service, state=State.OK, metric=metric, description=description)

    @classmethod
    def critical(
        cls, host: str, service: str, description: str = "", metric: float = 0.0
    ) -> "Result":
        return cls(
            host=host,
            service=service,
            state=State.CRITICAL,
            metric=metric,
            description=description,
        )

    @classmethod
    def from_exception(
        cls, host: str, service: str, exc: BaseException, metric: float = 0.0
    ) -> "Result":
        description = str(exc) or exc.__class__.__name__
        return cls.critical(host, service, description=description, metric=metric)

    @property
    def is_ok(self) -> bool:
        return self.state is State.OK

    def to_dict(self) -> dict[str, Any]:
        return {
            "host": self.host,
            "service": self.service,
            "state": self.state.value,
            "metric": self.metric,
            "description": self.description,
            "tags": list(self.tags),
            "attributes": dict(self.attributes),
            "ttl": self.ttl,
        }
