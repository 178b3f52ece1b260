from relay_service.core.types import StreamEvent
from relay_service.protocol.adapters.delta import DeltaContentAdapter
from relay_service.protocol.parsers.sliding import InlineToolScanner

from conftest import delta_chunk


def run(scanner, pieces):
    events = []
    for piece in pieces:
        events.extend(scanner.feed_text(piece))
    events.extend(scanner.finalize())
    return events


def text_of(events):
    return "".join(e["data"]["delta"] for e in events if e["type"] == StreamEvent.CONTENT)


def test_plain_text_passes_through():
    events = run(InlineToolScanner(), ["Hello ", "world"])
    assert text_of(events) == "Hello world"
    assert all(e["type"] == StreamEvent.CONTENT for e in events)


def test_marker_split_across_chunks():
    scanner = InlineToolScanner()
    events = run(scanner, ["Let me check. <to", "ol>calcu", "lator</tool>2+", "2"])
    assert text_of(events) == "Let me check. "
    kinds = [e["type"] for e in events]
    assert kinds.count(StreamEvent.TOOL_STARTED) == 1
    assert kinds[-1] == StreamEvent.TOOL_COMPLETE
    call = events[-1]["data"]["call"]
    assert call.name == "calculator"
    assert call.arguments == "2+2"
    assert call.raw_marker == "<tool>calculator</tool>2+2"


def test_partial_prefix_is_held_back():
    scanner = InlineToolScanner()
    assert text_of(scanner.feed_text("a <t")) == "a "
    assert text_of(scanner.feed_text("able>")) == "<table>"


def test_payload_ends_at_next_tag_and_rest_is_dropped():
    events = run(InlineToolScanner(), ["<tool>wikipedia</tool>Alan Turing</end> and more", " text"])
    assert text_of(events) == ""
    call = events[-1]["data"]["call"]
    assert call.arguments == "Alan Turing"


def test_invalid_name_is_text():
    events = run(InlineToolScanner(), ["<tool>not a name</tool>x"])
    assert text_of(events) == "<tool>not a name</tool>x"
    assert not any(e["type"] == StreamEvent.TOOL_STARTED for e in events)


def test_unterminated_tag_is_flushed_as_text():
    events = run(InlineToolScanner(), ["see <tool>calc"])
    assert text_of(events) == "see <tool>calc"


def test_oversized_payload_is_an_error():
    events = run(InlineToolScanner(max_tool_chars=10), ["<tool>echo_tool</tool>", "x" * 20])
    assert events[-1]["type"] == StreamEvent.ERROR


def test_wraps_a_content_adapter():
    scanner = InlineToolScanner(DeltaContentAdapter())
    events = []
    for piece in ["Sure. ", "<tool>calculator</tool>", "6*7"]:
        events.extend(scanner.feed(delta_chunk(content=piece)))
    events.extend(scanner.feed(delta_chunk(finish_reason="stop")))
    events.extend(scanner.finalize())
    assert text_of(events) == "Sure. "
    assert events[-1]["data"]["call"].raw_marker == "<tool>calculator</tool>6*7"
