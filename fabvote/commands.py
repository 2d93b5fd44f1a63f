"""fabvote — Command Variants.

Invocation modifiers (``query=<name>``, ``vote=<name>``,
``getAllVotes=true``, ``initialize=true``) are decoded once into typed
commands.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union


@dataclass(frozen=True)
class Query:
    name: str


@dataclass(frozen=True)
class Vote:
    name: str


@dataclass(frozen=True)
class ListAll:
    pass


@dataclass(frozen=True)
class Initialize:
    pass


Command = Union[Query, Vote, ListAll, Initialize]


class CommandParseError(ValueError):
    """Raised for a modifier that is not recognized."""


def parse_modifier(token: str) -> Command:
    key, sep, value = token.partition("=")
    if not sep:
        raise CommandParseError(f"Expected key=value, got {token!r}")
    if key == "query":
        if not value:
            raise CommandParseError("query= needs a candidate name")
        return Query(value)
    if key == "vote":
        if not value:
            raise CommandParseError("vote= needs a candidate name")
        return Vote(value)
    if key == "getAllVotes" and value == "true":
        return ListAll()
    if key == "initialize" and value == "true":
        return Initialize()
    raise CommandParseError(f"Unknown modifier: {token!r}")


def parse_modifiers(tokens: Iterable[str]) -> list[Command]:
    return [parse_modifier(t) for t in tokens]
