"""Tests for the command-line entry point."""

import io

import httpx
import pytest

from reqcli.app.auth import AuthConfig
from reqcli.app.core.config import Settings
from reqcli.app.exceptions import RateLimitWaitCancelled, TokenFetchError
from reqcli.app.main import RunOptions, build_parser, main, options_from_args, run
from reqcli.app.request import RequestOptions

API_URL = "https://api.example.com/items"
TOKEN_URL = "https://auth.example.com/oauth/token"


class TestArgumentParsing:
    """Tests for flag parsing and the flag-to-config mapping."""

    def test_repeatable_flags(self):
        args = build_parser().parse_args([
            "-X", "POST",
            "-H", "Accept: application/json",
            "--header", "X-Trace: 1",
            "-q", "a=1",
            "--query", "b=2",
            "-f", "name=widget",
            "-t", "1m30s",
            "--rate", "10/s",
            API_URL,
        ])

        assert args.method == "POST"
        assert args.headers == ["Accept: application/json", "X-Trace: 1"]
        assert args.query == ["a=1", "b=2"]
        assert args.form == ["name=widget"]
        assert args.timeout == 90.0
        assert args.rate == "10/s"
        assert args.url == API_URL

    @pytest.mark.parametrize(("flag", "value"), [("--rate", "0/s"), ("--rate", "10/xyz"), ("--timeout", "soon")])
    def test_invalid_values_exit_with_usage_error(self, flag, value):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args([flag, value, API_URL])
        assert exc_info.value.code == 2

    def test_flags_override_settings(self, monkeypatch):
        monkeypatch.setenv("REQCLI_BEARER_TOKEN", "from-env")
        monkeypatch.setenv("REQCLI_RATE", "5/s")
        monkeypatch.setenv("REQCLI_TIMEOUT", "10")
        config = Settings(_env_file=None)

        args = build_parser().parse_args(["--bearer", "from-flag", "--raw", API_URL])
        options = options_from_args(args, config)

        assert options.auth.bearer_token == "from-flag"
        assert options.rate == "5/s"
        assert options.timeout == 10.0
        assert options.pretty is False

    def test_user_flag_splits_password(self):
        args = build_parser().parse_args(["-u", "alice:pa:ss", API_URL])
        options = options_from_args(args, Settings(_env_file=None))

        assert options.auth.username == "alice"
        assert options.auth.password == "pa:ss"

    def test_oauth2_flags(self):
        args = build_parser().parse_args([
            "--client-id", "id",
            "--client-secret", "secret",
            "--token-url", TOKEN_URL,
            "--scope", "read",
            "--scope", "write",
            API_URL,
        ])
        options = options_from_args(args, Settings(_env_file=None))

        assert options.auth.client_id == "id"
        assert options.auth.scopes == ["read", "write"]


class TestRun:
    """Tests for the request pipeline."""

    @pytest.mark.asyncio
    async def test_prints_pretty_response(self, respx_mock):
        route = respx_mock.get(API_URL).mock(
            return_value=httpx.Response(200, json={"items": [1, 2]})
        )
        stdout = io.BytesIO()

        response = await run(
            RunOptions(request=RequestOptions(url=API_URL), auth=AuthConfig(bearer_token="tok")),
            stdout=stdout,
        )

        assert response.status_code == 200
        assert route.calls.last.request.headers["Authorization"] == "Bearer tok"
        output = stdout.getvalue()
        assert output.startswith(b"HTTP/1.1 200 OK\n")
        assert b'{\n  "items": [\n    1,\n    2\n  ]\n}' in output

    @pytest.mark.asyncio
    async def test_oauth2_token_fetched_before_request(self, respx_mock):
        token_route = respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "abc", "expires_in": 3600})
        )
        api_route = respx_mock.post(API_URL).mock(return_value=httpx.Response(201, text="created"))

        await run(
            RunOptions(
                request=RequestOptions(url=API_URL, method="POST", data="payload"),
                auth=AuthConfig(client_id="id", client_secret="secret", token_url=TOKEN_URL),
                pretty=False,
            ),
            stdout=io.BytesIO(),
        )

        assert token_route.call_count == 1
        sent = api_route.calls.last.request
        assert sent.headers["Authorization"] == "Bearer abc"
        assert sent.content == b"payload"

    @pytest.mark.asyncio
    @pytest.mark.respx(assert_all_called=False)
    async def test_failed_token_fetch_never_sends_request(self, respx_mock):
        respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(500))
        api_route = respx_mock.get(API_URL).mock(return_value=httpx.Response(200))

        with pytest.raises(TokenFetchError):
            await run(
                RunOptions(
                    request=RequestOptions(url=API_URL),
                    auth=AuthConfig(client_id="id", client_secret="secret", token_url=TOKEN_URL),
                ),
                stdout=io.BytesIO(),
            )

        assert api_route.call_count == 0

    @pytest.mark.asyncio
    async def test_rate_limited_run(self, respx_mock):
        respx_mock.get(API_URL).mock(return_value=httpx.Response(200, text="ok"))

        response = await run(
            RunOptions(request=RequestOptions(url=API_URL), rate="1/s", timeout=1.0),
            stdout=io.BytesIO(),
        )
        assert response.text == "ok"

    @pytest.mark.asyncio
    async def test_uses_injected_client(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="ok")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await run(
                RunOptions(request=RequestOptions(url=API_URL, query=["page=2"])),
                stdout=io.BytesIO(),
                http_client=client,
            )
            assert not client.is_closed

        assert seen[0].url.params["page"] == "2"

    @pytest.mark.asyncio
    async def test_binary_body_written_unchanged(self, respx_mock):
        payload = b"\x89PNG\r\n\x1a\n\xff\xfe\x00"
        respx_mock.get(API_URL).mock(
            return_value=httpx.Response(200, headers={"Content-Type": "image/png"}, content=payload)
        )
        stdout = io.BytesIO()

        await run(RunOptions(request=RequestOptions(url=API_URL)), stdout=stdout)

        assert stdout.getvalue().endswith(b"\n\n" + payload + b"\n")

    @pytest.mark.asyncio
    async def test_text_stream_written_through_buffer(self, respx_mock):
        respx_mock.get(API_URL).mock(return_value=httpx.Response(200, content=b"\xff\xfe"))
        raw = io.BytesIO()
        stdout = io.TextIOWrapper(raw, encoding="utf-8")

        await run(RunOptions(request=RequestOptions(url=API_URL)), stdout=stdout)

        assert raw.getvalue().endswith(b"\n\xff\xfe\n")


class TestMain:
    """Tests for exit codes and error output."""

    def test_success(self, respx_mock, capsys):
        respx_mock.get(API_URL).mock(return_value=httpx.Response(200, text="hello"))

        assert main([API_URL]) == 0
        assert "hello" in capsys.readouterr().out

    def test_error_reported_on_stderr(self, respx_mock, capsys):
        respx_mock.get(API_URL).mock(side_effect=httpx.ConnectError("connection refused"))

        assert main([API_URL]) == 1
        captured = capsys.readouterr()
        assert "Error: request failed: connection refused" in captured.err
        assert captured.out == ""

    def test_token_failure_exit_code(self, respx_mock, capsys):
        respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(401))

        code = main([
            "--client-id", "id",
            "--client-secret", "secret",
            "--token-url", TOKEN_URL,
            API_URL,
        ])

        assert code == 1
        assert "failed to get OAuth2 token" in capsys.readouterr().err

    def test_invalid_url(self, capsys):
        assert main(["not-a-url"]) == 1
        assert "invalid URL" in capsys.readouterr().err

    def test_malformed_token_url(self, capsys):
        code = main([
            "--client-id", "id",
            "--client-secret", "secret",
            "--token-url", "https://auth.example.com:abc/token",
            API_URL,
        ])

        assert code == 1
        assert "failed to get OAuth2 token" in capsys.readouterr().err

    def test_non_ascii_header_value(self, capsys):
        assert main(["-H", "X-Name: café", API_URL]) == 1
        assert "invalid header value" in capsys.readouterr().err

    def test_rate_limit_wait_cancelled_is_reported(self, capsys, monkeypatch):
        async def fake_run(options):
            raise RateLimitWaitCancelled()

        monkeypatch.setattr("reqcli.app.main.run", fake_run)

        assert main([API_URL]) == 1
        assert "rate limit wait cancelled" in capsys.readouterr().err
