"""
🐡 Supibot $fish responses

Classifies the replies supibot sends to `$fish` and extracts their fields.

Reply formats (after "<user>, "):
- Failure:  "No luck... <emote> <flavour text> You reel out a 🌿 (1m, 18s cooldown) This is your attempt #17 since your last catch."
            "No luck... <emote> Your fishing line landed 77 cm away. (45s cooldown)"
- Success:  "You caught a ✨ 🦀 ✨ It is 10 cm in length. <emote> Now, go do something productive! (30 minute fishing cooldown after a successful catch)"
- Cooldown: "Hol' up partner! You can go fishing again in 34.67s!"
            "Hol' up partner! You can go fishing again in 1m, 5s!" / "... in 300ms!"

Grammars live in a table of (kind, prefix, pattern, extractor) so a new
supibot wording is one more entry, not a rewrite. Prefixes are tested
most-common-first; every grammar sharing the winning prefix is tried in
table order.
"""
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional, Pattern, Sequence, Tuple, Union

KIND_FAILURE = "failure"
KIND_SUCCESS = "success"
KIND_COOLDOWN = "cooldown"


# ============================================================
# ERRORS
# ============================================================

class FishResponseError(Exception):
    """A supibot reply could not be classified."""


class MalformedResponse(FishResponseError):
    """The reply looks like a known response but does not follow its grammar."""

    def __init__(self, reason: str, text: str):
        super().__init__(f"bot response malformed: {reason}")
        self.reason = reason
        self.text = text


class UnknownResponse(FishResponseError):
    """The reply matches none of the known prefixes."""

    def __init__(self, text: str):
        super().__init__(f"unknown bot response: {text!r}")
        self.text = text


class GrammarInvariantError(RuntimeError):
    """
    A captured group failed numeric conversion. The patterns only capture
    digits there, so this is a bug in a grammar, not bad input.
    """


# ============================================================
# RESPONSE TYPES
# ============================================================

@dataclass(frozen=True)
class Cooldown:
    """$fish is still on cooldown."""


@dataclass(frozen=True)
class Success:
    catch: str              # Emoji of the fish
    length: int             # cm
    is_record: bool = False


@dataclass(frozen=True)
class Junk:
    item: str


@dataclass(frozen=True)
class Miss:
    distance: int           # cm


@dataclass(frozen=True)
class Failure:
    """Nothing caught: either junk was reeled in or the line missed."""
    result: Union[Junk, Miss]
    attempt: Optional[int] = None

    @property
    def junk(self) -> Optional[str]:
        return self.result.item if isinstance(self.result, Junk) else None

    @property
    def distance(self) -> Optional[int]:
        return self.result.distance if isinstance(self.result, Miss) else None


ResponseKind = Union[Cooldown, Success, Failure]


@dataclass(frozen=True)
class FishResponse:
    name: str               # Addressed user (text before the first comma)
    kind: ResponseKind
    cooldown: timedelta     # Time until $fish can be used again


# ============================================================
# GRAMMARS
# ============================================================

@dataclass(frozen=True)
class ResponseGrammar:
    kind: str
    prefix: str
    pattern: Pattern[str]
    extract: Callable[["re.Match[str]"], Tuple[ResponseKind, timedelta]]


def _int(match: "re.Match[str]", group: str) -> int:
    value = match.group(group)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise GrammarInvariantError(f"group {group!r} captured non-integer {value!r}") from e


def _optional_int(match: "re.Match[str]", group: str) -> Optional[int]:
    if match.group(group) is None:
        return None
    return _int(match, group)


def _float(match: "re.Match[str]", group: str) -> float:
    value = match.group(group)
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise GrammarInvariantError(f"group {group!r} captured non-number {value!r}") from e


def _duration(match: "re.Match[str]", minutes: float = 0, seconds: float = 0,
              milliseconds: float = 0) -> timedelta:
    try:
        return timedelta(minutes=minutes, seconds=seconds, milliseconds=milliseconds)
    except OverflowError as e:
        raise MalformedResponse("cooldown out of range", match.string) from e


FAILURE_PREFIX = "No luck.."
FAILURE_PATTERN = re.compile(
    r"No luck\.{3} \D+ "
    r"(?:You reel out a (?P<junk>.)|(?P<distance>\d+) cm away\.) "
    r"\((?:(?P<minutes>\d+)m, )?(?P<seconds>\d+)s cooldown\)"
    r"(?: This is your attempt #(?P<attempt>\d+) since your last catch\.)?"
)


def _extract_failure(match: "re.Match[str]") -> Tuple[ResponseKind, timedelta]:
    if match.group("junk") is not None:
        result: Union[Junk, Miss] = Junk(match.group("junk"))
    else:
        result = Miss(_int(match, "distance"))

    minutes = _optional_int(match, "minutes") or 0
    seconds = _int(match, "seconds")

    kind = Failure(result=result, attempt=_optional_int(match, "attempt"))
    return kind, _duration(match, minutes=minutes, seconds=seconds)


SUCCESS_PREFIX = "You caught a ✨ "
SUCCESS_PATTERN = re.compile(
    r"You caught a ✨ (?P<catch>.) ✨ It is (?P<length>\d+) cm in length\. "
    r"(?P<is_record>This is a new record! )?\w+ Now, go do something productive! "
    r"\((?P<cooldown>\d+) minute fishing cooldown after a successful catch\)"
)


def _extract_success(match: "re.Match[str]") -> Tuple[ResponseKind, timedelta]:
    kind = Success(
        catch=match.group("catch"),
        length=_int(match, "length"),
        is_record=match.group("is_record") is not None,
    )
    return kind, _duration(match, minutes=_int(match, "cooldown"))


COOLDOWN_PREFIX = "Hol' up partner! You can go fishing again in "

# Revision 1: decimal seconds only ("34.67s!")
COOLDOWN_SECONDS_PATTERN = re.compile(
    r"Hol' up partner! You can go fishing again in (?P<seconds>\d+(?:\.\d+)?)s!"
)


def _extract_cooldown_seconds(match: "re.Match[str]") -> Tuple[ResponseKind, timedelta]:
    return Cooldown(), _duration(match, seconds=_float(match, "seconds"))


# Revision 2: optional minutes, then seconds or milliseconds ("1m, 5s!", "300ms!")
COOLDOWN_COMPOUND_PATTERN = re.compile(
    r"Hol' up partner! You can go fishing again in "
    r"(?:(?P<minutes>\d+)m, )?(?:(?P<seconds>\d+(?:\.\d+)?)s|(?P<milliseconds>\d+)ms)!"
)


def _extract_cooldown_compound(match: "re.Match[str]") -> Tuple[ResponseKind, timedelta]:
    return Cooldown(), _duration(
        match,
        minutes=_optional_int(match, "minutes") or 0,
        seconds=_float(match, "seconds") if match.group("seconds") is not None else 0,
        milliseconds=_optional_int(match, "milliseconds") or 0,
    )


# Sorted by most common response first
GRAMMARS: Tuple[ResponseGrammar, ...] = (
    ResponseGrammar(KIND_FAILURE, FAILURE_PREFIX, FAILURE_PATTERN, _extract_failure),
    ResponseGrammar(KIND_SUCCESS, SUCCESS_PREFIX, SUCCESS_PATTERN, _extract_success),
    ResponseGrammar(KIND_COOLDOWN, COOLDOWN_PREFIX, COOLDOWN_SECONDS_PATTERN, _extract_cooldown_seconds),
    ResponseGrammar(KIND_COOLDOWN, COOLDOWN_PREFIX, COOLDOWN_COMPOUND_PATTERN, _extract_cooldown_compound),
)


# ============================================================
# PARSER
# ============================================================

def parse_fish_response(
    text: str,
    grammars: Sequence[ResponseGrammar] = GRAMMARS,
) -> FishResponse:
    """
    Parse a supibot reply to $fish.

    Raises:
        MalformedResponse: no comma, a known prefix whose grammar does not match,
            or a cooldown too large for a timedelta
        UnknownResponse: no known prefix
        GrammarInvariantError: a numeric capture could not be converted
    """
    name, comma, rest = text.strip().partition(",")
    if not comma:
        raise MalformedResponse("no comma found", text)

    rest = rest.strip()

    selected = next((g for g in grammars if rest.startswith(g.prefix)), None)
    if selected is None:
        raise UnknownResponse(rest)

    candidates = [
        g for g in grammars
        if g.kind == selected.kind and g.prefix == selected.prefix
    ]
    for grammar in candidates:
        match = grammar.pattern.match(rest)
        if match:
            kind, cooldown = grammar.extract(match)
            return FishResponse(name=name, kind=kind, cooldown=cooldown)

    raise MalformedResponse(f"{selected.kind} regex did not match", rest)
