# Copyright 2022 Ashley R. Thomas
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

# pylint: disable=unused-argument
# pylint: disable=unused-variable
# pylint: disable=unused-import

import logging
from pathlib import Path

from pytest import raises

from arcbu.common.exception import InvalidStateError
from arcbu.tools.backup.cancellable import CancellationToken
from arcbu.tools.backup.command import ChainState, Command, CommandChain, Context
from arcbu.tools.backup.deleter import FileDeleter
from arcbu.tools.backup.exception import CommandError, CompressionError

LOGGER = logging.getLogger(__name__)


class RecordingCommand(Command):
    def __init__(self, name: str, calls: list, error: Exception = None, on_execute=None):
        self._name = name
        self._calls = calls
        self._error = error
        self._on_execute = on_execute

    @property
    def name(self) -> str:
        return self._name

    def execute(self, context: Context):
        self._calls.append(f"execute:{self._name}")
        if self._on_execute is not None:
            self._on_execute()
        if self._error is not None:
            raise self._error

    def revert(self, context: Context):
        self._calls.append(f"revert:{self._name}")


def create_context(cancellable=None) -> Context:
    return Context(codec=None, file_deleter=FileDeleter(), cancellable=cancellable)


def setup_module(module):
    pass


def teardown_module(module):
    pass


def test_chain_success():
    calls = []
    commands = [RecordingCommand(n, calls) for n in ["one", "two", "three"]]
    chain = CommandChain(commands)
    assert chain.state == ChainState.NOT_STARTED
    chain.execute(create_context())
    assert chain.state == ChainState.COMPLETED
    assert calls == ["execute:one", "execute:two", "execute:three"]
    assert chain.executed_commands == commands
    assert chain.failed_command is None


def test_chain_failure_stops_without_revert():
    calls = []
    failing = RecordingCommand("two", calls, error=CompressionError("disk full"))
    commands = [RecordingCommand("one", calls), failing, RecordingCommand("three", calls)]
    chain = CommandChain(commands)
    with raises(CompressionError):
        chain.execute(create_context())
    assert chain.state == ChainState.FAILED
    assert calls == ["execute:one", "execute:two"]
    assert chain.executed_commands == commands[:2]
    assert chain.failed_command is failing


def test_chain_wraps_unexpected_errors():
    calls = []
    error = RuntimeError("unexpected")
    chain = CommandChain([RecordingCommand("one", calls, error=error)])
    with raises(CommandError) as exc_info:
        chain.execute(create_context())
    assert exc_info.value.cause is error
    assert chain.state == ChainState.FAILED


def test_chain_cancelled_between_commands():
    calls = []
    token = CancellationToken()
    commands = [
        RecordingCommand("one", calls, on_execute=token.cancel),
        RecordingCommand("two", calls),
    ]
    chain = CommandChain(commands)
    chain.execute(create_context(cancellable=token))
    assert chain.state == ChainState.CANCELLED
    assert calls == ["execute:one"]
    assert chain.executed_commands == commands[:1]


def test_chain_executes_once():
    chain = CommandChain([RecordingCommand("one", [])])
    chain.execute(create_context())
    with raises(InvalidStateError):
        chain.execute(create_context())
