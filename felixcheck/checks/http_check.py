from __future__ import annotations

import time
from typing import Callable

import requests

from felixcheck.checks.base import Check
from felixcheck.checks.results import Result, State

ValidateResponse = Callable[[requests.Response], tuple[State, str]]


def status_code_is(expected_status: int) -> ValidateResponse:
    def validate(resp: requests.Response) -> tuple[State, str]:
        if resp.status_code == expected_status:
            return State.OK, ""
        return State.CRITICAL, f"Response {resp.status_code}"

    return validate


def body_greater_than(min_length: int) -> ValidateResponse:
    def validate(resp: requests.Response) -> tuple[State, str]:
        if resp.status_code != 200:
            return State.CRITICAL, f"Response {resp.status_code}"
        try:
            body = resp.content
        except requests.RequestException:
            return State.CRITICAL, "Error getting body"
        if not body and min_length > 0:
            return State.CRITICAL, "Empty body"
        if len(body) < min_length:
            return (
                State.CRITICAL,
                f"Obtained {len(body)} bytes, expected more than {min_length}",
            )
        return State.OK, ""

    return validate


class HttpChecker(Check):
    def __init__(
        self,
        host: str,
        service: str,
        url: str,
        validate: ValidateResponse,
        timeout_s: float = 3,
        connect_timeout_s: float | None = None,
    ) -> None:
        self.host = host
        self.service = service
        self.url = url
        self.validate = validate
        self.timeout_s = timeout_s
        self.connect_timeout_s = connect_timeout_s

    def execute(self) -> Result:
        start = time.perf_counter()
        connect_timeout = self.timeout_s if self.connect_timeout_s is None else self.connect_timeout_s
        try:
            r = requests.get(self.url, timeout=(connect_timeout, self.timeout_s))
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return Result.critical(self.host, self.service, description=str(e), metric=latency_ms)

        latency_ms = (time.perf_counter() - start) * 1000
        try:
            state, description = self.validate(r)
        except Exception as e:
            state, description = State.CRITICAL, str(e)
        finally:
            r.close()
        return Result(
            host=self.host,
            service=self.service,
            state=state,
            metric=latency_ms,
            description=description,
        )


def new_http_checker(
    host: str,
    service: str,
    url: str,
    expected_status: int = 200,
    timeout_s: float = 3,
    connect_timeout_s: float | None = None,
) -> HttpChecker:
    return HttpChecker(
        host,
        service,
        url,
        status_code_is(expected_status),
        timeout_s=timeout_s,
        connect_timeout_s=connect_timeout_s,
    )
