from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import AnyHttpUrl, BaseModel, Field, model_validator

from felixcheck.checks.snmp_check import SYS_NAME_OID

CheckType = Literal["ping", "tcp", "http", "snmp", "snmp_max", "rabbitmq_queue", "database"]


class RetryPolicy(BaseModel):
    times: int = Field(..., ge=1)
    sleep_s: float = Field(default=0, ge=0)


class Defaults(BaseModel):
    period_s: Optional[float] = Field(default=None, gt=0)
    timeout_s: float = Field(default=3, gt=0)


class BaseCheck(BaseModel):
    host: str = Field(..., min_length=1)
    service: str = Field(..., min_length=1)
    type: CheckType
    period_s: Optional[float] = Field(default=None, gt=0)
    timeout_s: Optional[float] = Field(default=None, gt=0)
    tags: List[str] = Field(default_factory=list)
    attributes: Dict[str, str] = Field(default_factory=dict)
    ttl: Optional[float] = Field(default=None, ge=0)
    retry: Optional[RetryPolicy] = None

    @property
    def key(self) -> str:
        return f"{self.host}/{self.service}"


class PingCheck(BaseCheck):
    type: Literal["ping"]
    ip: str
    privileged: bool = False


class TcpCheck(BaseCheck):
    type: Literal["tcp"]
    ip: str
    port: int = Field(..., ge=1, le=65535)


class HttpCheck(BaseCheck):
    type: Literal["http"]
    url: AnyHttpUrl
    expected_status: int = Field(default=200, ge=100, le=599)
    min_body_bytes: Optional[int] = Field(default=None, ge=0)
    connect_timeout_s: Optional[float] = Field(default=None, gt=0)


class SnmpCheck(BaseCheck):
    type: Literal["snmp"]
    ip: str
    community: str = "public"
    oid: str = SYS_NAME_OID
    retries: int = Field(default=1, ge=0)
    port: int = Field(default=161, ge=1, le=65535)


class SnmpMaxCheck(BaseCheck):
    type: Literal["snmp_max"]
    ip: str
    community: str = "public"
    max_allowed: float
    oid: Optional[str] = None
    preset: Optional[Literal["c4_cmts_temp", "juniper_temp", "juniper_cpu"]] = None
    ignore: List[int] = Field(default_factory=list)

    @model_validator(mode="after")
    def _oid_or_preset(self) -> "SnmpMaxCheck":
        if (self.oid is None) == (self.preset is None):
            raise ValueError("snmp_max needs exactly one of 'oid' or 'preset'")
        return self


class RabbitMQQueueCheck(BaseCheck):
    type: Literal["rabbitmq_queue"]
    amqp_uri: str
    queue: str = Field(..., min_length=1)
    max_messages: int = Field(..., ge=0)


class DatabaseCheck(BaseCheck):
    type: Literal["database"]
    uri: str
    query: Optional[str] = None


CheckDefinition = (
    PingCheck | TcpCheck | HttpCheck | SnmpCheck | SnmpMaxCheck | RabbitMQQueueCheck | DatabaseCheck
)


class Registry(BaseModel):
    defaults: Defaults = Defaults()
    checks: List[CheckDefinition]
