"""Assertion identity and pending-assertion records.

An assertion is identified within a project by its contract name plus the
constructor arguments it was stored with.  The selector syntax accepted on
the command line is::

    MyAssertion                     # no constructor arguments
    MyAssertion()                   # same as above
    'MyAssertion(0xabc,42)'         # two constructor arguments
    'MyAssertion((1,2),[3,4])'      # nested values stay intact
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

_OPENERS = "(["
_CLOSERS = ")]"


def _split_top_level(text: str) -> list[str]:
    """Split on commas that are not nested inside brackets or quotes."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None

    for ch in text:
        if quote:
            current.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in "\"'":
            quote = ch
        elif ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
            if depth < 0:
                raise ValueError(f"Unbalanced brackets in {text!r}")
        elif ch == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(ch)

    if depth != 0 or quote:
        raise ValueError(f"Unbalanced brackets or quotes in {text!r}")

    tail = "".join(current).strip()
    if tail or parts:
        parts.append(tail)
    if any(not p for p in parts):
        raise ValueError(f"Empty constructor argument in {text!r}")
    return parts


def encode_args(constructor_args: list[str]) -> str:
    """Canonical constructor-argument encoding, e.g. ``(1,2)`` or ``()``."""
    return "(" + ",".join(constructor_args) + ")"


class AssertionKey(BaseModel):
    """Name plus constructor arguments — unique within a project."""

    model_config = ConfigDict(frozen=True)

    name: str
    constructor_args: list[str] = []

    @classmethod
    def parse(cls, selector: str) -> AssertionKey:
        """Parse a ``name`` or ``name(arg0,arg1)`` selector.

        Raises
        ------
        ValueError
            If the selector is empty or its argument list is malformed.
        """
        text = selector.strip()
        if not text:
            raise ValueError("Assertion selector must not be empty")

        if "(" not in text:
            name, args = text, []
        else:
            if not text.endswith(")"):
                raise ValueError(f"Malformed assertion selector {selector!r}")
            open_idx = text.index("(")
            name = text[:open_idx].strip()
            args = _split_top_level(text[open_idx + 1 : -1])

        if not name or any(c.isspace() for c in name):
            raise ValueError(f"Invalid assertion name in {selector!r}")
        return cls(name=name, constructor_args=args)

    @property
    def args_encoding(self) -> str:
        return encode_args(self.constructor_args)

    def __str__(self) -> str:
        if not self.constructor_args:
            return self.name
        return f"{self.name}{self.args_encoding}"


class PendingAssertion(BaseModel):
    """An artifact stored in the DA layer but not yet registered to a project.

    Created by a successful ``pcl store``; removed by a successful
    ``pcl submit``.  Never mutated in place — a resubmission replaces it.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    constructor_args: list[str] = []
    artifact_id: str
    signature: str = ""  # DA prover signature, forwarded on registration
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def key(self) -> AssertionKey:
        return AssertionKey(name=self.name, constructor_args=list(self.constructor_args))

    @property
    def args_encoding(self) -> str:
        return encode_args(self.constructor_args)

    def matches(self, key: AssertionKey) -> bool:
        """Exact match on name and constructor-argument encoding."""
        return self.name == key.name and self.args_encoding == key.args_encoding
