"""Unit tests for the OpenAI-compatible streaming provider."""

import json

import httpx
import pytest
import pytest_check as check

from delfin_chat.llm.base import (
    ConfigurationError,
    LLMImage,
    LLMMessage,
    ProviderError,
    TransportError,
)
from delfin_chat.llm.cancellation import CancellationToken
from delfin_chat.llm.config import ProviderConfig
from delfin_chat.llm.prompts import MATH_SYSTEM_INSTRUCTION
from delfin_chat.llm.providers.openai_compatible import (
    OpenAIProvider,
    SSELineBuffer,
    parse_delta,
)


def sse_line(content: str) -> str:
    return "data: " + json.dumps({"choices": [{"delta": {"content": content}}]}) + "\n"


def make_provider(
    handler,
    config: ProviderConfig | None = None,
) -> OpenAIProvider:
    return OpenAIProvider(
        config or ProviderConfig(api_key="sk-test-key", model="gpt-4o-mini"),
        transport=httpx.MockTransport(handler),
    )


async def collect(provider: OpenAIProvider, messages: list[LLMMessage], token=None) -> list[str]:
    return [fragment async for fragment in provider.generate_streaming_response(messages, token)]


USER_HELLO = [LLMMessage(role="user", content="hello world")]


class TestOpenAIProviderInit:
    """Tests for construction and defaults."""

    def test_requires_api_key(self) -> None:
        with pytest.raises(ConfigurationError, match="API key is required"):
            OpenAIProvider(ProviderConfig(api_key=""))

    def test_defaults(self) -> None:
        provider = OpenAIProvider(ProviderConfig(api_key="sk-test"))

        check.equal(provider.name, "openai")
        check.equal(provider.model, "gpt-4")
        check.equal(provider.base_url, "https://api.openai.com/v1")
        check.is_true(provider.is_configured())

    def test_trailing_slash_removed_from_base_url(self) -> None:
        provider = OpenAIProvider(
            ProviderConfig(api_key="sk-test", base_url="http://localhost:8080/v1/")
        )

        assert provider.base_url == "http://localhost:8080/v1"


class TestBuildMessages:
    """Tests for wire message conversion."""

    def test_text_only_uses_string_content(self) -> None:
        provider = OpenAIProvider(ProviderConfig(api_key="sk-test"))

        wire = provider.build_messages(
            [
                LLMMessage(role="user", content="hello world"),
                LLMMessage(role="assistant", content="hi there"),
            ]
        )

        assert wire == [
            {"role": "user", "content": "hello world"},
            {"role": "assistant", "content": "hi there"},
        ]

    def test_images_use_parts_text_first(self) -> None:
        provider = OpenAIProvider(ProviderConfig(api_key="sk-test"))
        message = LLMMessage(
            role="user",
            content="what is this?",
            images=[
                LLMImage(mime_type="image/png", data="AAAA"),
                LLMImage(mime_type="image/jpeg", data="BBBB"),
            ],
        )

        wire = provider.build_messages([message])

        assert wire[0]["content"] == [
            {"type": "text", "text": "what is this?"},
            {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}},
            {"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,BBBB"}},
        ]

    def test_image_only_message_has_no_text_part(self) -> None:
        provider = OpenAIProvider(ProviderConfig(api_key="sk-test"))
        message = LLMMessage(
            role="user", content="", images=[LLMImage(mime_type="image/png", data="AAAA")]
        )

        wire = provider.build_messages([message])

        assert [part["type"] for part in wire[0]["content"]] == ["image_url"]

    def test_math_conversation_prepends_system_instruction(self) -> None:
        provider = OpenAIProvider(ProviderConfig(api_key="sk-test"))

        wire = provider.build_messages([LLMMessage(role="user", content="Solve this quadratic")])

        check.equal(len(wire), 2)
        check.equal(wire[0], {"role": "system", "content": MATH_SYSTEM_INSTRUCTION})

    def test_plain_conversation_has_no_instruction(self) -> None:
        provider = OpenAIProvider(ProviderConfig(api_key="sk-test"))

        wire = provider.build_messages(USER_HELLO)

        assert all(m["role"] != "system" for m in wire)

    def test_system_prompt_comes_first(self) -> None:
        provider = OpenAIProvider(ProviderConfig(api_key="sk-test", system_prompt="Be brief."))

        wire = provider.build_messages([LLMMessage(role="user", content="solve it")])

        check.equal(wire[0], {"role": "system", "content": "Be brief."})
        check.equal(wire[1]["content"], MATH_SYSTEM_INSTRUCTION)


class TestSSELineBuffer:
    """Tests for newline buffering of decoded text."""

    def test_holds_partial_line_until_newline(self) -> None:
        buffer = SSELineBuffer()

        check.equal(buffer.feed("data: {\"a\""), [])
        check.equal(buffer.feed(": 1}\ndata: x"), ['data: {"a": 1}'])
        check.equal(buffer.pending, "data: x")

    def test_multiple_lines_in_one_chunk(self) -> None:
        buffer = SSELineBuffer()

        assert buffer.feed("a\nb\n\nc\n") == ["a", "b", "", "c"]

    def test_strips_carriage_returns(self) -> None:
        buffer = SSELineBuffer()

        assert buffer.feed("data: [DONE]\r\n") == ["data: [DONE]"]


class TestParseDelta:
    """Tests for JSON payload extraction."""

    def test_extracts_content(self) -> None:
        assert parse_delta('{"choices": [{"delta": {"content": "Hi"}}]}') == "Hi"

    @pytest.mark.parametrize(
        "payload",
        [
            "not json",
            "{}",
            '{"choices": []}',
            '{"choices": [{"delta": {}}]}',
            '{"choices": [{"delta": {"content": ""}}]}',
            '{"choices": [{"delta": {"role": "assistant"}}]}',
        ],
    )
    def test_returns_none_without_content(self, payload: str) -> None:
        assert parse_delta(payload) is None


class TestStreaming:
    """Tests for the HTTP streaming loop."""

    async def test_yields_fragments_until_done(self) -> None:
        body = sse_line("Hel") + sse_line("lo") + "data: [DONE]\n"

        provider = make_provider(lambda request: httpx.Response(200, text=body))

        assert await collect(provider, USER_HELLO) == ["Hel", "lo"]

    async def test_done_sentinel_stops_before_later_lines(self) -> None:
        """Lines after [DONE] are never yielded."""
        body = sse_line("first") + "data: [DONE]\n" + sse_line("after")

        provider = make_provider(lambda request: httpx.Response(200, text=body))

        assert await collect(provider, USER_HELLO) == ["first"]

    async def test_malformed_lines_are_skipped(self) -> None:
        body = (
            ": keep-alive comment\n"
            + "data: {not valid json\n"
            + sse_line("ok")
            + "event: ping\n"
            + "data: [DONE]\n"
        )

        provider = make_provider(lambda request: httpx.Response(200, text=body))

        assert await collect(provider, USER_HELLO) == ["ok"]

    async def test_sends_expected_request(self) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, text="data: [DONE]\n")

        provider = make_provider(
            handler,
            ProviderConfig(api_key="sk-abc", model="gpt-4o", base_url="http://llm.test/v1"),
        )
        await collect(provider, USER_HELLO)

        request = captured[0]
        body = json.loads(request.content)
        check.equal(request.method, "POST")
        check.equal(str(request.url), "http://llm.test/v1/chat/completions")
        check.equal(request.headers["Authorization"], "Bearer sk-abc")
        check.equal(body["model"], "gpt-4o")
        check.is_true(body["stream"])
        check.equal(body["messages"], [{"role": "user", "content": "hello world"}])

    async def test_non_success_status_raises_transport_error(self) -> None:
        provider = make_provider(lambda request: httpx.Response(401, text="bad key"))

        with pytest.raises(TransportError) as exc_info:
            await collect(provider, USER_HELLO)

        check.equal(exc_info.value.provider, "openai")
        check.is_in("401", str(exc_info.value))
        check.is_in("Unauthorized", str(exc_info.value))

    async def test_network_error_raises_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused")

        provider = make_provider(handler)

        with pytest.raises(TransportError, match="connection refused") as exc_info:
            await collect(provider, USER_HELLO)

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    async def test_transport_error_is_provider_error(self) -> None:
        provider = make_provider(lambda request: httpx.Response(500))

        with pytest.raises(ProviderError, match="openai error"):
            await collect(provider, USER_HELLO)

    async def test_cancelled_token_stops_stream(self) -> None:
        body = sse_line("a") + sse_line("b") + "data: [DONE]\n"
        provider = make_provider(lambda request: httpx.Response(200, text=body))
        token = CancellationToken()
        fragments: list[str] = []

        async for fragment in provider.generate_streaming_response(USER_HELLO, token):
            fragments.append(fragment)
            token.cancel()

        assert fragments == ["a"]

    async def test_stream_without_done_ends_normally(self) -> None:
        body = sse_line("only")

        provider = make_provider(lambda request: httpx.Response(200, text=body))

        assert await collect(provider, USER_HELLO) == ["only"]
