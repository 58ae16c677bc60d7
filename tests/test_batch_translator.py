import asyncio

import pytest

from docxtranslate.errors import TranslationCancelledError
from docxtranslate.ir.paragraph import ParagraphUnit
from docxtranslate.translator.batch_translator import (
    TranslateOptions,
    UnitState,
    UnitTracker,
    build_prompt,
    parse_response,
    translate_all,
)
from docxtranslate.translator.cancellation import CallRegistry, CancellationToken
from docxtranslate.xml.extractor import extract
from docxtranslate.xml.reconstructor import reconstruct
from docxtranslate.xml.segmenter import split_paragraphs
from docxtranslate.xml.validator import check_well_formed

from conftest import make_backend, make_echo_backend, payload_lines


def _units(*texts):
    return [
        ParagraphUnit(index=i, simplified_text=f"[RUN:{i + 1}]{t}[/RUN:{i + 1}]" if t else "", has_text=bool(t))
        for i, t in enumerate(texts)
    ]


def test_identity_backend_reconstructs_original_and_skips_empty_paragraph():
    xml = (
        "<w:body><w:p><w:r><w:t>Hello</w:t></w:r></w:p>"
        '<w:p><w:pPr><w:jc w:val="center"/></w:pPr></w:p>'
        "<w:p><w:r><w:t>World</w:t></w:r></w:p></w:body>"
    )
    units, fragments = extract(split_paragraphs(xml))
    calls = []
    result = asyncio.run(translate_all(units, make_backend(calls=calls), TranslateOptions(target_language="German")))
    assert reconstruct(xml, result, fragments) == xml
    assert all('<p id="1">' not in prompt for prompt in calls)
    assert result[1] == units[1]


def test_order_and_cardinality_preserved_with_out_of_order_completion():
    units = _units("a", "", "b", "c", "", "d", "e")

    async def complete(prompt):
        lines = payload_lines(prompt)
        index = int(lines[0].split('"')[1])
        # later paragraphs answer first
        await asyncio.sleep(0.005 * (10 - index))
        return "\n".join(line.replace("[/RUN", "!![/RUN") for line in lines)

    options = TranslateOptions(target_language="French", batch_size=1, concurrency=3)
    result = asyncio.run(translate_all(units, complete, options))
    assert [u.index for u in result] == [u.index for u in units]
    assert result[0].simplified_text == "[RUN:1]a!![/RUN:1]"
    assert result[1] == units[1]
    assert result[6].simplified_text == "[RUN:7]e!![/RUN:7]"


def test_waves_bound_in_flight_calls():
    in_flight = 0
    peak = 0
    units = _units("a", "b", "c", "d", "e")

    async def complete(prompt):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return "\n".join(payload_lines(prompt))

    options = TranslateOptions(target_language="French", batch_size=1, concurrency=2)
    asyncio.run(translate_all(units, complete, options))
    assert peak == 2


def test_batches_hold_at_most_batch_size_units():
    calls = []
    units = _units(*"abcdefg")
    options = TranslateOptions(target_language="French", batch_size=3, concurrency=5)
    asyncio.run(translate_all(units, make_backend(calls=calls), options))
    assert [len(payload_lines(prompt)) for prompt in calls] == [3, 3, 1]


def test_missing_unit_is_retried_then_falls_back_to_original():
    calls = []
    messages = []
    units = _units("keep", "drop", "keep too")
    backend = make_backend(str.upper, calls=calls)

    async def complete(prompt):
        response = await backend(prompt)
        return "\n".join(line for line in response.splitlines() if not line.startswith('<p id="1">'))

    options = TranslateOptions(target_language="German", on_progress=messages.append)
    result = asyncio.run(translate_all(units, complete, options))

    assert result[0].simplified_text == "[RUN:1]KEEP[/RUN:1]"
    assert result[1] == units[1]
    assert result[2].simplified_text == "[RUN:3]KEEP TOO[/RUN:3]"
    # initial call plus two single-unit retries
    assert len(calls) == 3
    assert [len(payload_lines(prompt)) for prompt in calls[1:]] == [1, 1]
    assert "[1]" in messages[-1]
    assert "original text" in messages[-1]


def test_failed_call_is_treated_as_missing_and_retried():
    attempts = 0
    backend = make_backend(str.upper)

    async def complete(prompt):
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise ConnectionError("backend down")
        return await backend(prompt)

    units = _units("one", "two")
    result = asyncio.run(translate_all(units, complete, TranslateOptions(target_language="German")))
    assert [u.simplified_text for u in result] == ["[RUN:1]ONE[/RUN:1]", "[RUN:2]TWO[/RUN:2]"]
    assert attempts == 3


def test_cancellation_before_first_wave_makes_no_calls():
    calls = []
    token = CancellationToken()
    token.cancel()
    with pytest.raises(TranslationCancelledError):
        asyncio.run(translate_all(_units("a"), make_backend(calls=calls),
                                  TranslateOptions(target_language="German"), cancel_token=token))
    assert calls == []


def test_cancellation_during_wave_discards_results_and_stops():
    token = CancellationToken()
    registry = CallRegistry()
    calls = []

    async def complete(prompt):
        calls.append(prompt)
        token.cancel()
        return "\n".join(payload_lines(prompt))

    options = TranslateOptions(target_language="German", batch_size=1, concurrency=1)
    with pytest.raises(TranslationCancelledError):
        asyncio.run(translate_all(_units("a", "b", "c"), complete, options, token, registry))
    assert len(calls) == 1
    assert len(registry) == 0


def test_registry_cancel_all_turns_calls_into_missing_units():
    registry = CallRegistry()
    backend = make_backend(str.upper)
    first_call = True

    async def complete(prompt):
        nonlocal first_call
        if first_call:
            first_call = False
            asyncio.get_running_loop().call_soon(registry.cancel_all)
            await asyncio.sleep(10)
        return await backend(prompt)

    result = asyncio.run(translate_all(_units("a"), complete, TranslateOptions(target_language="German"),
                                       registry=registry))
    assert result[0].simplified_text == "[RUN:1]A[/RUN:1]"


def test_empty_translation_keeps_original_text():
    units = _units("a")

    async def complete(prompt):
        return '<p id="0">   </p>'

    result = asyncio.run(translate_all(units, complete, TranslateOptions(target_language="German")))
    assert result[0].simplified_text == units[0].simplified_text
    assert result[0].has_text


def test_unit_tracker_state_machine():
    tracker = UnitTracker(ParagraphUnit(0, "x", True))
    tracker.mark_missing(max_retries=2)
    assert tracker.state is UnitState.MISSING
    tracker.mark_missing(max_retries=2)
    assert tracker.state is UnitState.MISSING
    tracker.mark_missing(max_retries=2)
    assert tracker.state is UnitState.GIVEN_UP
    assert tracker.result.simplified_text == "x"
    with pytest.raises(ValueError):
        tracker.accept("y")

    translated = UnitTracker(ParagraphUnit(1, "x", True))
    translated.accept("y")
    assert translated.state is UnitState.TRANSLATED
    assert translated.result == ParagraphUnit(1, "y", True)


def test_prompt_and_response_helpers():
    prompt = build_prompt(_units("Hallo"), "English", source_language="German")
    assert "from German to English" in prompt
    assert '<p id="0">[RUN:1]Hallo[/RUN:1]</p>' in prompt

    response = '<p id="0"> Hi </p>\n<p id="9">ignored</p>\n<p id="0">duplicate</p>'
    assert parse_response(response, {0}) == {0: "Hi"}


def test_invalid_options_rejected():
    with pytest.raises(ValueError):
        TranslateOptions(target_language="German", batch_size=0)
    with pytest.raises(ValueError):
        TranslateOptions(target_language="German", concurrency=0)


def test_wrapper_like_text_survives_a_verbatim_echo():
    xml = (
        "<w:body>"
        "<w:p><w:r><w:t>Close with &lt;/p&gt; tag</w:t></w:r></w:p>"
        '<w:p><w:r><w:t>Open &lt;p id="0"&gt; &amp; more</w:t></w:r></w:p>'
        "</w:body>"
    )
    units, fragments = extract(split_paragraphs(xml))
    calls = []
    result = asyncio.run(translate_all(units, make_echo_backend(calls), TranslateOptions(target_language="German")))

    assert len(calls) == 1
    assert result == units
    restored = reconstruct(xml, result, fragments)
    check_well_formed(restored)
    assert restored == xml


def test_response_body_extends_to_the_next_wrapper():
    response = '<p id="0">a </p> b</p>\n<p id="1">c</p>\ntrailing chatter'
    assert parse_response(response, {0, 1}) == {0: "a </p> b", 1: "c"}
    assert parse_response('<p id="0">no closing tag', {0}) == {}


def test_escaped_response_text_is_decoded():
    prompt = build_prompt(_units("Fish & Chips <3"), "German")
    assert "[RUN:1]Fish &amp; Chips &lt;3[/RUN:1]" in prompt
    assert parse_response('<p id="0">[RUN:1]Fisch &amp; Chips &lt;3[/RUN:1]</p>', {0}) == {
        0: "[RUN:1]Fisch & Chips <3[/RUN:1]"
    }


def test_lost_markers_are_reported(caplog):
    units = [ParagraphUnit(0, "[TAG:1][RUN:2]Hello[/RUN:2][TAG:3]", True)]

    async def complete(prompt):
        return '<p id="0">[TAG:1][RUN:2]Hallo[/RUN:2]</p>'

    with caplog.at_level("WARNING", logger="DocxTranslateLogger"):
        result = asyncio.run(translate_all(units, complete, TranslateOptions(target_language="German")))

    assert result[0].simplified_text == "[TAG:1][RUN:2]Hallo[/RUN:2]"
    assert any("lost: [3]" in record.getMessage() for record in caplog.records)
