"""Tests for the ``python -m wlruler`` entrypoint and the console script."""

# pylint: disable=missing-function-docstring
from asyncio import sleep
from runpy import run_module
from sys import modules
from types import ModuleType

from pytest import mark, raises

from wlruler import cli


def _install_fake_cli(monkeypatch, return_code):
    """Replace wlruler.cli with a module whose async main() returns return_code."""
    fake_cli = ModuleType("wlruler.cli")

    async def main():
        await sleep(0)
        return return_code

    setattr(fake_cli, "main", main)
    monkeypatch.setitem(modules, "wlruler.cli", fake_cli)


@mark.parametrize("code", [0, 1, 2])
def test_package_entrypoint_exits_with_cli_code(monkeypatch, code):
    _install_fake_cli(monkeypatch, code)

    with raises(SystemExit) as excinfo:
        run_module("wlruler", run_name="__main__")

    assert excinfo.value.code == code


def test_console_script_runs_async_main(monkeypatch):
    seen = []

    async def fake_main(argv=None):
        seen.append(argv)
        return 3

    monkeypatch.setattr(cli, "main", fake_main)

    assert cli.entrypoint() == 3
    assert seen == [None]
