import functools

import click.testing
import pytest

from kubetyped.cli import CLIControls, main


@pytest.fixture()
def runner():
    runner = click.testing.CliRunner()
    return runner


@pytest.fixture()
def invoke(runner, transport):
    return functools.partial(runner.invoke, main, obj=CLIControls(client=transport))
