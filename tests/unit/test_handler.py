"""
Unit tests for the handler lifecycle and the reader/writer aggregators.
"""

import pytest

from httpcrud.action import Step
from httpcrud.handler import FuncInitializer, Handler, HandlerBase, HandlerInitializer, serve_handler
from httpcrud.http.context import RequestContext
from httpcrud.http.headers import Headers
from httpcrud.http.request import HTTPRequest
from httpcrud.http.response import HTTPResponse
from httpcrud.httpio import JSON, BodyWriter, RequestReader, ResponseWriter, Slot, String, Text


class Tracing(HandlerBase):
    """Handler recording its lifecycle; ``fail`` names a step to raise in."""

    def __init__(self, fail=None, skip=None):
        self.calls = []
        self.fail = fail
        self.skip = skip

    def _step(self, name):
        self.calls.append(name)
        if name == self.fail:
            raise RuntimeError(name)
        if name == self.skip:
            return Step.SKIP
        return None

    def auth_check(self, request, ctx):
        return self._step("auth_check")

    def read_request(self, request, ctx):
        return self._step("read_request")

    def init_response(self, w):
        return self._step("init_response")

    def validate(self):
        return self._step("validate")

    def execute(self):
        return self._step("execute")

    def done(self, exc):
        self.calls.append("done")
        return exc

    def write_response(self, w, request):
        return self._step("write_response")


def run(handler, request=None, w=None):
    request = request or HTTPRequest.build("GET", "/")
    serve_handler(FuncInitializer(lambda: handler), w or HTTPResponse(), request)
    return handler


class TestServeHandler:
    """Tests for serve_handler ordering and error propagation."""

    def test_full_lifecycle(self):
        h = run(Tracing())

        assert h.calls == [
            "auth_check", "read_request", "init_response",
            "validate", "execute", "done", "write_response",
        ]

    @pytest.mark.parametrize("step", ["auth_check", "read_request", "init_response"])
    def test_pre_action_failure_bypasses_done(self, step):
        h = Tracing(fail=step)

        with pytest.raises(RuntimeError, match=step):
            run(h)
        assert "done" not in h.calls
        assert h.calls[-1] == step

    def test_action_failure_skips_write_response(self):
        h = Tracing(fail="validate")

        with pytest.raises(RuntimeError, match="validate"):
            run(h)
        assert h.calls[-2:] == ["validate", "done"]
        assert "write_response" not in h.calls

    def test_skip_still_writes_response(self):
        h = run(Tracing(skip="validate"))

        assert h.calls[-3:] == ["validate", "done", "write_response"]
        assert "execute" not in h.calls

    def test_write_response_failure_propagates(self):
        with pytest.raises(RuntimeError, match="write_response"):
            run(Tracing(fail="write_response"))

    def test_context_defaults_to_request_context(self):
        seen = {}

        class Capture(HandlerBase):
            def auth_check(self, request, ctx):
                seen["ctx"] = ctx

        request = HTTPRequest.build("GET", "/")
        serve_handler(FuncInitializer(Capture), HTTPResponse(), request)
        assert seen["ctx"] is request.context

        other = RequestContext()
        serve_handler(FuncInitializer(Capture), HTTPResponse(), request, other)
        assert seen["ctx"] is other

    def test_fresh_instance_per_request(self):
        created = []

        def factory():
            h = HandlerBase()
            created.append(h)
            return h

        init = FuncInitializer(factory)
        for _ in range(2):
            serve_handler(init, HTTPResponse(), HTTPRequest.build("GET", "/"))

        assert len(created) == 2
        assert created[0] is not created[1]


class TestHandlerBase:
    def test_protocols(self):
        assert isinstance(HandlerBase(), Handler)
        assert isinstance(FuncInitializer(HandlerBase), HandlerInitializer)

    def test_no_reader_or_writer_writes_nothing(self, recorder):
        run(HandlerBase(), w=recorder)

        assert not recorder.wrote_header

    def test_reader_and_writer_delegation(self, recorder):
        class Greet(HandlerBase):
            def __init__(self):
                self.name = Slot("")
                self.text = Text()
                self.reader = RequestReader(path=String({"name": self.name}))
                self.writer = ResponseWriter(body=self.text)

            def execute(self):
                self.text.val = f"Hello, {self.name.value}!"

        request = HTTPRequest.build("GET", "/hello/ada")
        request.context.params["name"] = "ada"
        run(Greet(), request, recorder)

        assert recorder.status == 200
        assert recorder.text() == "Hello, ada!"


class TestRequestReader:
    """Tests for RequestReader ordering and sources."""

    def test_order_and_stop_on_error(self):
        calls = []

        class Part:
            def __init__(self, name, fail=False):
                self.name = name
                self.fail = fail

            def _mark(self, *args):
                calls.append(self.name)
                if self.fail:
                    raise ValueError(self.name)

            read_header = read_query = read_path = read_body = _mark

        reader = RequestReader(
            header=Part("header"), query=Part("query"), path=Part("path", fail=True), body=Part("body")
        )
        with pytest.raises(ValueError, match="path"):
            reader.read_request(HTTPRequest.build("GET", "/"), RequestContext())

        assert calls == ["header", "query", "path"]

    def test_exposes_request_and_context(self, get_request):
        reader = RequestReader()
        ctx = RequestContext()
        reader.read_request(get_request, ctx)

        assert reader.request is get_request
        assert reader.context is ctx

    def test_path_params_fall_back_to_request(self):
        value = Slot("")
        request = HTTPRequest.build("GET", "/x")
        request.path_params = {"id": "x"}
        RequestReader(path=String({"id": value})).read_request(request, RequestContext())

        assert value.value == "x"


class TestResponseWriter:
    """Tests for ResponseWriter."""

    class HeaderMark:
        def write_header(self, headers: Headers) -> None:
            headers.set("X-Mark", "1")

    class StatusEcho(BodyWriter):
        def write_body(self, w, request, status):
            w.write_header(status)

    def test_body_defaults_to_200(self, recorder, get_request):
        ResponseWriter(body=self.StatusEcho()).write_response(recorder, get_request)

        assert recorder.status == 200

    def test_explicit_status(self, recorder, get_request):
        writer = ResponseWriter(header=self.HeaderMark(), body=self.StatusEcho(), status=201)
        writer.write_response(recorder, get_request)

        assert recorder.status == 201
        assert recorder.sent_headers.get("X-Mark") == "1"

    def test_status_without_body(self, recorder, get_request):
        ResponseWriter(status=204).write_response(recorder, get_request)

        assert recorder.status == 204
        assert recorder.body == b""

    def test_nothing_set(self, recorder, get_request):
        ResponseWriter().write_response(recorder, get_request)

        assert not recorder.wrote_header

    def test_init_response_calls_write_init(self, recorder):
        seen = []

        class Streaming(BodyWriter):
            def write_init(self, w):
                seen.append(w)

            def write_body(self, w, request, status):
                pass

        ResponseWriter(body=Streaming()).init_response(recorder)
        assert seen == [recorder]

    def test_json_body(self, recorder, get_request):
        ResponseWriter(body=JSON({"ok": True})).write_response(recorder, get_request)

        assert recorder.text() == '{"ok":true}\n'
