"""
This module contains the IOInterface abstract base class and its implementations.

The console adapter talks to the player through one of these, so the same
adapter can run against a terminal, a scripted test double, or a
transcript file.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

import aiofiles


class IOInterface(ABC):
    """
    Abstract base class for an IO interface.

    Subclasses may also provide an awaitable ``output_async``; the console
    adapter prefers it when present.
    """

    @abstractmethod
    def output(self, message: str) -> None:
        """Output a message to the interface."""
        pass

    @abstractmethod
    def input(self, prompt: str) -> str:
        """Get input from the user with a prompt."""
        pass


class DummyIOInterface(IOInterface):
    """A dummy IO interface for simulation purposes. Does not perform any actual IO."""

    def output(self, message: str) -> None:
        pass

    def input(self, prompt: str) -> str:
        return ""


class TestIOInterface(IOInterface):
    """
    A test IO interface. Collects output messages and replays scripted input.

    >>> io = TestIOInterface(["min me"])
    >>> io.input("> ")
    'min me'
    >>> io.output("hello")
    >>> io.sent_messages
    ['hello']
    """

    __test__ = False

    def __init__(self, input_responses: Optional[Iterable[str]] = None):
        self.sent_messages: List[str] = []
        self.input_responses: List[str] = list(input_responses or [])
        self.prompts: List[str] = []

    def output(self, message: str) -> None:
        self.sent_messages.append(message)

    def input(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.input_responses:
            return self.input_responses.pop(0)
        raise EOFError("No more scripted input")

    def add_input(self, response: str) -> None:
        """Queue a line of input."""
        self.input_responses.append(response)


class ConsoleIOInterface(IOInterface):
    """A console IO interface for interactive play."""

    def output(self, message: str) -> None:
        print(message)

    def input(self, prompt: str) -> str:
        return input(prompt)


class LoggingIOInterface(IOInterface):
    """
    A logging IO interface for recording purposes. Writes output messages to a log file.

    Input is not available; prompts are written to the log and answered
    with an empty string.
    """

    def __init__(self, log_file_path: str):
        self.log_file_path = log_file_path

    def output(self, message: str) -> None:
        """Write an output message to the log file."""
        with open(self.log_file_path, "a", encoding="utf-8") as log_file:
            log_file.write(message + "\n")

    def input(self, prompt: str) -> str:
        """Log the prompt and return empty string."""
        self.output(f"[INPUT PROMPT] {prompt}")
        return ""

    async def output_async(self, message: str) -> None:
        """Append a message to the log file without blocking the event loop."""
        async with aiofiles.open(
            self.log_file_path, mode="a", encoding="utf-8"
        ) as log_file:
            await log_file.write(message + "\n")
