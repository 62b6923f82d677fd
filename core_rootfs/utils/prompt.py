# core_rootfs/utils/prompt.py

import enum
from typing import Callable, Iterable, Optional

from rich.console import Console
from rich.prompt import Prompt

from core_rootfs.utils.exceptions import UserDeclinedError
from core_rootfs.utils.logger import RichAppLogger

# A responder receives the question and returns the operator's raw answer.
Responder = Callable[[str], str]


class Answer(enum.Enum):
    PROCEED = "proceed"
    ABORT = "abort"
    REPROMPT = "reprompt"


def interpret_answer(text: Optional[str]) -> Answer:
    """
    Maps a raw answer to a decision. Anything starting with y/Y proceeds,
    anything starting with n/N aborts, everything else (empty input included)
    asks again.
    """
    if not text:
        return Answer.REPROMPT
    first = text.strip()[:1]
    if first in ("y", "Y"):
        return Answer.PROCEED
    if first in ("n", "N"):
        return Answer.ABORT
    return Answer.REPROMPT


def confirm(question: str, responder: Responder, logger: RichAppLogger) -> None:
    """
    Asks until a yes or no is given.

    Raises:
        UserDeclinedError: on a negative answer or when input runs out.
    """
    while True:
        try:
            reply = responder(question)
        except EOFError:
            logger.warning(f"No answer to '{question}'")
            raise UserDeclinedError(f"No answer given to: {question}")

        decision = interpret_answer(reply)
        if decision is Answer.PROCEED:
            logger.debug(f"Confirmed: {question}")
            return
        if decision is Answer.ABORT:
            raise UserDeclinedError(f"Declined: {question}")
        logger.info("Please answer yes or no.")


def interactive_responder(console: Console) -> Responder:
    """Asks on the terminal through rich."""
    def ask(question: str) -> str:
        return Prompt.ask(question, console=console)
    return ask


def scripted_responder(answers: Iterable[str]) -> Responder:
    """Replays pre-supplied answers in order, then reports end of input."""
    remaining = iter(answers)

    def ask(question: str) -> str:
        try:
            return next(remaining)
        except StopIteration:
            raise EOFError(question)
    return ask


def assume_yes(question: str) -> str:
    return "y"
