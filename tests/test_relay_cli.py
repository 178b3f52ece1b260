from unittest.mock import MagicMock, patch

from relay_cli import DONE, parse_sse_line, stream_reply


def test_parse_sse_line():
    assert parse_sse_line(b'data: {"type": "content", "content": "hi"}') == {"type": "content", "content": "hi"}
    assert parse_sse_line("data: [DONE]") == DONE
    assert parse_sse_line(b"") is None
    assert parse_sse_line(b": keep-alive") is None
    assert parse_sse_line(b"data: not json") is None


def test_stream_reply_collects_content():
    lines = [
        b'data: {"type": "tool_call", "tool_call": {"function": {"name": "calculator"}}}',
        b"",
        b'data: {"type": "content", "content": "4"}',
        b"data: [DONE]",
        b'data: {"type": "content", "content": "ignored"}',
    ]
    response = MagicMock()
    response.iter_lines.return_value = lines
    response.__enter__.return_value = response
    with patch("relay_cli.requests.post", return_value=response) as post:
        reply = stream_reply([{"role": "user", "content": "2+2"}], "echo")
    assert reply == "4"
    assert post.call_args.kwargs["json"] == {"messages": [{"role": "user", "content": "2+2"}], "modelName": "echo"}
