"""Shared fakes for the external command surface (sh, kubectl)."""

from __future__ import annotations

from collections.abc import Callable

import pytest
import sh


class FakeCommand:
    def __init__(self, name: str, fake: FakeSh) -> None:
        self.name = name
        self.fake = fake

    def __call__(self, *args, **kwargs):
        self.fake.calls.append((self.name, *args))
        handler = self.fake.handlers.get(self.name)
        if handler is not None:
            return handler(*args)
        return ""


class FakeSh:
    """Stand-in for the ``sh`` module that records every command invocation."""

    ErrorReturnCode = sh.ErrorReturnCode
    ErrorReturnCode_1 = sh.ErrorReturnCode_1

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.handlers: dict[str, Callable] = {}

    def __getattr__(self, name: str) -> FakeCommand:
        if name.startswith("__"):
            raise AttributeError(name)
        return FakeCommand(name, self)

    def commands(self, name: str) -> list[tuple]:
        return [call[1:] for call in self.calls if call[0] == name]


def error_return_code(cmd: str, stderr: str = "") -> sh.ErrorReturnCode_1:
    return sh.ErrorReturnCode_1(cmd, b"", stderr.encode())


class FakeKubectl:
    """Scripted replacement for ``run_kubectl``.

    Rules are (predicate, response) pairs checked in order; the first
    predicate matching the argument list decides the response.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.rules: list[tuple[Callable[[list[str]], bool], Callable[[list[str]], tuple[bool, str, str]]]] = []

    def on(self, *prefix: str, ok: bool = True, stdout: str = "", stderr: str = "") -> FakeKubectl:
        self.rules.append((
            lambda args, p=list(prefix): args[:len(p)] == p,
            lambda args: (ok, stdout, stderr),
        ))
        return self

    def __call__(self, args: list[str], timeout: int = 30) -> tuple[bool, str, str]:
        self.calls.append(list(args))
        for predicate, response in self.rules:
            if predicate(args):
                return response(args)
        return True, "", ""


@pytest.fixture
def fake_sh() -> FakeSh:
    return FakeSh()


@pytest.fixture
def fake_kubectl() -> FakeKubectl:
    return FakeKubectl()
