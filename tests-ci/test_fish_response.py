"""
Tests du parser des réponses $fish de supibot (modules/supinic/fish_response.py)
"""
import re
from datetime import timedelta

import pytest

from modules.supinic import (
    Cooldown,
    Failure,
    FishResponse,
    GrammarInvariantError,
    Junk,
    MalformedResponse,
    Miss,
    ResponseGrammar,
    Success,
    UnknownResponse,
    parse_fish_response,
)
from modules.supinic.fish_response import GRAMMARS, KIND_SUCCESS, _extract_success

JUNK_REPLY = (
    "gargoyletec, No luck... FailFish It seems luck wasn't on your side this time. "
    "You caught a piece of junk. You reel out a 🌿 (1m, 18s cooldown) "
    "This is your attempt #17 since your last catch."
)
SUCCESS_REPLY = (
    "gargoyletec, You caught a ✨ 🦀 ✨ It is 10 cm in length. PagChomp "
    "Now, go do something productive! (30 minute fishing cooldown after a successful catch)"
)


@pytest.mark.unit
class TestParseErrors:

    def test_missing_comma(self):
        with pytest.raises(MalformedResponse) as exc_info:
            parse_fish_response("test")
        assert exc_info.value.reason == "no comma found"
        assert str(exc_info.value) == "bot response malformed: no comma found"

    def test_unknown_prefix(self):
        with pytest.raises(UnknownResponse) as exc_info:
            parse_fish_response("test, test")
        assert exc_info.value.text == "test"

    def test_known_prefix_but_broken_grammar(self):
        with pytest.raises(MalformedResponse) as exc_info:
            parse_fish_response("someone, No luck... the rest is gibberish")
        assert exc_info.value.reason == "failure regex did not match"

    def test_cooldown_without_unit(self):
        with pytest.raises(MalformedResponse):
            parse_fish_response("someone, Hol' up partner! You can go fishing again in soon!")

    @pytest.mark.parametrize("text", [
        "x, No luck... Sadge Your fishing line landed 77 cm away. (" + "9" * 30 + "m, 5s cooldown)",
        "x, Hol' up partner! You can go fishing again in " + "9" * 30 + "s!",
        "x, Hol' up partner! You can go fishing again in " + "9" * 30 + "m, 5s!",
        "x, Hol' up partner! You can go fishing again in " + "9" * 400 + ".5s!",
        "x, You caught a ✨ 🦀 ✨ It is 10 cm in length. PagChomp Now, go do something productive! "
        "(" + "9" * 30 + " minute fishing cooldown after a successful catch)",
    ])
    def test_cooldown_out_of_range(self, text):
        """Durée trop grande pour un timedelta : erreur de parsing, pas OverflowError"""
        with pytest.raises(MalformedResponse) as exc_info:
            parse_fish_response(text)
        assert exc_info.value.reason == "cooldown out of range"


@pytest.mark.unit
class TestCooldownResponses:

    def test_decimal_seconds(self):
        response = parse_fish_response(
            "chronophylos, Hol' up partner! You can go fishing again in 34.67s!"
        )
        assert response == FishResponse(
            name="chronophylos",
            kind=Cooldown(),
            cooldown=timedelta(seconds=34.67),
        )

    def test_minutes_and_seconds(self):
        response = parse_fish_response(
            "chronophylos, Hol' up partner! You can go fishing again in 2m, 5s!"
        )
        assert response.kind == Cooldown()
        assert response.cooldown == timedelta(minutes=2, seconds=5)

    def test_milliseconds(self):
        response = parse_fish_response(
            "chronophylos, Hol' up partner! You can go fishing again in 300ms!"
        )
        assert response.cooldown == timedelta(milliseconds=300)

    def test_minutes_and_milliseconds(self):
        response = parse_fish_response(
            "chronophylos, Hol' up partner! You can go fishing again in 1m, 250ms!"
        )
        assert response.cooldown == timedelta(minutes=1, milliseconds=250)


@pytest.mark.unit
class TestSuccessResponses:

    def test_success(self):
        response = parse_fish_response(SUCCESS_REPLY)
        assert response == FishResponse(
            name="gargoyletec",
            kind=Success(catch="🦀", length=10),
            cooldown=timedelta(minutes=30),
        )

    def test_new_record(self):
        response = parse_fish_response(
            "gargoyletec, You caught a ✨ 🐡 ✨ It is 42 cm in length. This is a new record! "
            "PogChamp Now, go do something productive! (30 minute fishing cooldown after a successful catch)"
        )
        assert response.kind == Success(catch="🐡", length=42, is_record=True)


@pytest.mark.unit
class TestFailureResponses:

    def test_junk_with_attempt(self):
        response = parse_fish_response(JUNK_REPLY)
        assert response.name == "gargoyletec"
        assert response.kind == Failure(result=Junk("🌿"), attempt=17)
        assert response.kind.junk == "🌿"
        assert response.kind.distance is None
        assert response.cooldown == timedelta(seconds=78)

    def test_miss_without_attempt(self):
        response = parse_fish_response(
            "gargoyletec, No luck... SadgeCry Your fishing line landed 77 cm away. (45s cooldown)"
        )
        assert response.kind == Failure(result=Miss(77), attempt=None)
        assert response.kind.junk is None
        assert response.kind.distance == 77
        assert response.cooldown == timedelta(seconds=45)

    def test_miss_with_attempt(self):
        response = parse_fish_response(
            "gargoyletec, No luck... Sadge Your fishing line landed 150 cm away. (59s cooldown) "
            "This is your attempt #8 since your last catch."
        )
        assert response.kind == Failure(result=Miss(150), attempt=8)
        assert response.cooldown == timedelta(seconds=59)


@pytest.mark.unit
class TestGrammarTable:

    def test_parsing_is_pure(self):
        assert parse_fish_response(JUNK_REPLY) == parse_fish_response(JUNK_REPLY)

    def test_surrounding_whitespace(self):
        assert parse_fish_response(f"  {SUCCESS_REPLY}  ") == parse_fish_response(SUCCESS_REPLY)

    def test_additional_revision(self):
        """Une nouvelle formulation = une entrée de plus dans la table"""
        revision = ResponseGrammar(
            KIND_SUCCESS,
            "You reeled in ",
            re.compile(r"You reeled in (?P<catch>.) \((?P<length>\d+) cm\), cooldown (?P<cooldown>\d+) minutes"),
            _extract_success_without_record,
        )
        response = parse_fish_response(
            "someone, You reeled in 🐟 (12 cm), cooldown 30 minutes",
            grammars=GRAMMARS + (revision,),
        )
        assert response.kind == Success(catch="🐟", length=12)
        assert response.cooldown == timedelta(minutes=30)

    def test_non_numeric_capture_is_a_grammar_bug(self):
        broken = ResponseGrammar(
            KIND_SUCCESS,
            "Caught ",
            re.compile(r"Caught (?P<catch>\S+) of (?P<length>\w+) cm (?P<is_record>!)?(?P<cooldown>\d+)"),
            _extract_success,
        )
        with pytest.raises(GrammarInvariantError):
            parse_fish_response("someone, Caught 🐟 of ten cm 30", grammars=(broken,))


def _extract_success_without_record(match):
    kind = Success(catch=match.group("catch"), length=int(match.group("length")))
    return kind, timedelta(minutes=int(match.group("cooldown")))
