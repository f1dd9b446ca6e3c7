"""
=============================================================================
BODY READERS AND WRITERS
=============================================================================

Ready-made collaborators for the request and response bodies.

    ┌──────────────┬────────┬────────┬──────────────────────────────────────┐
    │ Type         │ Reads  │ Writes │ Content-Type                         │
    ├──────────────┼────────┼────────┼──────────────────────────────────────┤
    │ JSON         │   ✓    │   ✓    │ application/json; charset=utf-8      │
    │ XML          │   ✓    │   ✓    │ application/xml; charset=utf-8       │
    │ Form         │   ✓    │   ✓    │ application/x-www-form-urlencoded    │
    │ Text         │        │   ✓    │ text/plain                           │
    │ HTML         │        │   ✓    │ text/html; charset=utf-8             │
    │ Redirect     │        │   ✓    │ (Location header)                    │
    │ CSV          │        │   ✓    │ text/csv (streamed)                  │
    │ RequestDump  │   ✓    │        │                                      │
    └──────────────┴────────┴────────┴──────────────────────────────────────┘

=============================================================================
NONE VALUES
=============================================================================

JSON, XML and Form wrap a single value. When that value is None, reading
is skipped (no error) and writing sends the Content-Type and status with
an empty body.

=============================================================================
ERRORS
=============================================================================

Decode failures are raised as ``ReadError`` and encode/write failures as
``WriteError``, each chained to the original exception:

    try:
        JSON(form).read_body(request)
    except ReadError as e:
        e.err          # the json.JSONDecodeError
        e.__cause__    # same object

=============================================================================
"""

import csv
import io
import json
import logging
import threading
import xml.etree.ElementTree as ET
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol, runtime_checkable
from urllib.parse import parse_qs, urlencode

import jinja2

from ..errors import NoTemplateError, ReadError, WriteError
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, redirect
from .codec import bind, to_plain, to_text
from .fields import Slot
from .writer import BodyWriter

logger = logging.getLogger(__name__)

CONTENT_TYPE_JSON = "application/json; charset=utf-8"
CONTENT_TYPE_XML = "application/xml; charset=utf-8"
CONTENT_TYPE_FORM = "application/x-www-form-urlencoded; charset=utf-8"
CONTENT_TYPE_TEXT = "text/plain"
CONTENT_TYPE_HTML = "text/html; charset=utf-8"
CONTENT_TYPE_CSV = "text/csv"

DEFAULT_XML_ROOT = "data"


def _send(w: HTTPResponse, content_type: str, status: int, payload: Optional[bytes]) -> None:
    w.headers.set("Content-Type", content_type)
    w.write_header(status)
    if payload:
        try:
            w.write(payload)
        except OSError as e:
            raise WriteError(e) from e


# =============================================================================
# REQUEST DUMP
# =============================================================================

class RequestDump:
    """
    Body reader storing the request's HTTP/1.1 wire form in a ``Slot``.

    Args:
        val: Slot receiving the dump (bytes).
        body: Include the request body in the dump.
    """

    def __init__(self, val: Slot, body: bool = False):
        self.val = val
        self.body = body

    def read_body(self, request: HTTPRequest) -> None:
        try:
            self.val.value = request.dump(body=self.body)
        except (UnicodeEncodeError, ValueError) as e:
            raise ReadError(e) from e


# =============================================================================
# JSON
# =============================================================================

class JSON(BodyWriter):
    """
    JSON body reader and writer.

    Reading decodes the request body into ``val`` (a dataclass instance,
    dict or list owned by the caller). Writing encodes ``val`` compactly
    followed by a newline:

        JSON({"foo": "test", "baz": True})  →  {"foo":"test","baz":true}\\n
    """

    def __init__(self, val: Any = None):
        self.val = val

    def read_body(self, request: HTTPRequest) -> None:
        if self.val is None:
            return
        try:
            bind(self.val, json.load(request.stream))
        except (ValueError, TypeError) as e:
            raise ReadError(e) from e

    def write_body(self, w: HTTPResponse, request: HTTPRequest, status: int) -> None:
        payload = None
        if self.val is not None:
            try:
                text = json.dumps(to_plain(self.val), separators=(",", ":"), ensure_ascii=False)
            except (TypeError, ValueError) as e:
                raise WriteError(e) from e
            payload = (text + "\n").encode("utf-8")
        _send(w, CONTENT_TYPE_JSON, status, payload)


# =============================================================================
# XML
# =============================================================================

def _element_to_data(element: ET.Element) -> Any:
    """
    Convert an element's children into a dict.

        <data><foo>test</foo><tag>a</tag><tag>b</tag></data>
            → {"foo": "test", "tag": ["a", "b"]}

    Leaf elements become their text ("" when empty).
    """
    children = list(element)
    if not children:
        return element.text or ""

    data: Dict[str, Any] = {}
    for child in children:
        value = _element_to_data(child)
        if child.tag in data:
            existing = data[child.tag]
            if not isinstance(existing, list):
                data[child.tag] = existing = [existing]
            existing.append(value)
        else:
            data[child.tag] = value
    return data


def _append_value(parent: ET.Element, tag: str, value: Any) -> None:
    if isinstance(value, list):
        for item in value:
            _append_value(parent, tag, item)
        return

    child = ET.SubElement(parent, tag)
    if isinstance(value, Mapping):
        for key, item in value.items():
            _append_value(child, key, item)
    else:
        child.text = to_text(value)


class XML(BodyWriter):
    """
    XML body reader and writer.

    Children of the root element map to fields; the root tag itself is
    not checked when reading. When writing, the root tag is ``root``,
    else the value's ``xml_root`` class attribute, else "data":

        XML(Point(x=1, y=2), root="point")  →  <point><x>1</x><y>2</y></point>
    """

    def __init__(self, val: Any = None, root: Optional[str] = None):
        self.val = val
        self.root = root

    def read_body(self, request: HTTPRequest) -> None:
        if self.val is None:
            return
        try:
            element = ET.parse(request.stream).getroot()
            if isinstance(self.val, list):
                # <data><item>a</item><item>b</item></data> → ["a", "b"]
                data = [_element_to_data(child) for child in element]
            else:
                data = _element_to_data(element)
                data = data if isinstance(data, dict) else {}
            bind(self.val, data, from_text=True)
        except (ET.ParseError, ValueError, TypeError) as e:
            raise ReadError(e) from e

    def write_body(self, w: HTTPResponse, request: HTTPRequest, status: int) -> None:
        payload = None
        if self.val is not None:
            root_tag = self.root or getattr(type(self.val), "xml_root", DEFAULT_XML_ROOT)
            try:
                root = ET.Element(root_tag)
                plain = to_plain(self.val)
                if isinstance(plain, Mapping):
                    for key, value in plain.items():
                        _append_value(root, key, value)
                elif isinstance(plain, list):
                    _append_value(root, "item", plain)
                else:
                    root.text = to_text(plain)
                payload = ET.tostring(root, encoding="utf-8", xml_declaration=False)
            except (TypeError, ValueError) as e:
                raise WriteError(e) from e
        _send(w, CONTENT_TYPE_XML, status, payload)


# =============================================================================
# FORM
# =============================================================================

class Form(BodyWriter):
    """
    URL-encoded form body reader and writer.

        Form(Signup(foo="test", bar=0.004, baz=True))  →  foo=test&bar=0.004&baz=true

    Reading parses values according to the target's annotations; a value
    that does not parse raises ``ReadError``.
    """

    def __init__(self, val: Any = None):
        self.val = val

    def read_body(self, request: HTTPRequest) -> None:
        if self.val is None:
            return
        try:
            text = request.stream.read().decode("utf-8")
            parsed = parse_qs(text, keep_blank_values=True)
            data = {key: values[0] if len(values) == 1 else values for key, values in parsed.items()}
            bind(self.val, data, from_text=True)
        except (ValueError, TypeError) as e:
            raise ReadError(e) from e

    def write_body(self, w: HTTPResponse, request: HTTPRequest, status: int) -> None:
        payload = None
        if self.val is not None:
            try:
                plain = to_plain(self.val)
                if not isinstance(plain, Mapping):
                    raise TypeError(f"cannot form-encode {type(self.val).__name__}")
                pairs = []
                for key, value in plain.items():
                    for item in value if isinstance(value, list) else [value]:
                        pairs.append((key, to_text(item)))
                payload = urlencode(pairs).encode("utf-8")
            except (TypeError, ValueError) as e:
                raise WriteError(e) from e
        _send(w, CONTENT_TYPE_FORM, status, payload)


# =============================================================================
# TEXT / HTML / REDIRECT
# =============================================================================

class Text(BodyWriter):
    """Plain text body writer."""

    def __init__(self, val: str = ""):
        self.val = val

    def write_body(self, w: HTTPResponse, request: HTTPRequest, status: int) -> None:
        _send(w, CONTENT_TYPE_TEXT, status, self.val.encode("utf-8"))


class TemplateRegistry(Mapping):
    """
    Immutable name → ``jinja2.Template`` lookup table.

    Usage:
        registry = TemplateRegistry.from_strings({
            "greeting": "<p>Hello, {{ name }}!</p>",
        })
        HTML("greeting", {"name": "alice"}, registry=registry)

    Templates built by the constructors share one autoescaping
    environment, so values interpolated into HTML are escaped.
    """

    def __init__(self, templates: Optional[Mapping[str, jinja2.Template]] = None):
        self._templates = MappingProxyType(dict(templates or {}))

    @staticmethod
    def environment(loader: Optional[jinja2.BaseLoader] = None) -> jinja2.Environment:
        return jinja2.Environment(loader=loader, autoescape=True)

    @classmethod
    def from_strings(cls, sources: Mapping[str, str]) -> "TemplateRegistry":
        env = cls.environment(jinja2.DictLoader(dict(sources)))
        return cls({name: env.get_template(name) for name in sources})

    @classmethod
    def from_directory(cls, path: str, extensions: tuple = (".html",)) -> "TemplateRegistry":
        """Load every template under ``path``, keyed by relative path."""
        env = cls.environment(jinja2.FileSystemLoader(path))
        names = env.list_templates(filter_func=lambda name: name.endswith(extensions))
        return cls({name: env.get_template(name) for name in names})

    def __getitem__(self, name: str) -> jinja2.Template:
        return self._templates[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._templates)

    def __len__(self) -> int:
        return len(self._templates)

    def __repr__(self) -> str:
        return f"TemplateRegistry({sorted(self._templates)!r})"


# Process-wide registry, populated once by register_html_templates_once()
_html_templates: Optional[TemplateRegistry] = None
_html_templates_lock = threading.Lock()


def register_html_templates_once(templates: Mapping[str, jinja2.Template]) -> bool:
    """
    Populate the process-wide template registry used by ``HTML``.

    Intended to be called once at start up. Only the first call has an
    effect; later calls are ignored.

    Returns:
        True if this call populated the registry.
    """
    global _html_templates
    with _html_templates_lock:
        if _html_templates is not None:
            logger.debug("HTML templates already registered, ignoring")
            return False
        _html_templates = templates if isinstance(templates, TemplateRegistry) else TemplateRegistry(templates)
        logger.info(f"Registered {len(_html_templates)} HTML templates")
        return True


def html_templates() -> TemplateRegistry:
    """The process-wide registry (empty until registered)."""
    registry = _html_templates
    return registry if registry is not None else TemplateRegistry()


class HTML(BodyWriter):
    """
    HTML body writer rendering a registered template.

    Args:
        name: Template name in the registry.
        data: Template context. A mapping is passed as the context itself;
              any value is also available as ``data``.
        registry: Registry to look the template up in; defaults to the
                  process-wide one.

    Raises (from write_body):
        NoTemplateError: ``name`` is not registered. Nothing is written.
        WriteError: Rendering failed.
    """

    def __init__(self, name: str, data: Any = None, registry: Optional[TemplateRegistry] = None):
        self.name = name
        self.data = data
        self.registry = registry

    def write_body(self, w: HTTPResponse, request: HTTPRequest, status: int) -> None:
        registry = self.registry if self.registry is not None else html_templates()
        template = registry.get(self.name)
        if template is None:
            raise NoTemplateError(self.name)

        context = dict(self.data) if isinstance(self.data, Mapping) else {}
        context.setdefault("data", self.data)
        try:
            rendered = template.render(context)
        except jinja2.TemplateError as e:
            raise WriteError(e) from e
        _send(w, CONTENT_TYPE_HTML, status, rendered.encode("utf-8"))


class Redirect(BodyWriter):
    """
    Redirect writer.

    The status passed to ``write_body`` is ignored; ``status`` given here
    is used instead.
    """

    def __init__(self, url: str, status: int = 302):
        self.url = url
        self.status = status

    def write_body(self, w: HTTPResponse, request: HTTPRequest, status: int) -> None:
        redirect(w, request, self.url, self.status)


# =============================================================================
# CSV STREAMING
# =============================================================================

@runtime_checkable
class StreamWriter(Protocol):
    """
    Two-phase writer used by streaming body writers.

    ``open`` runs during ``init_response`` and captures the sink;
    ``flush`` runs during ``write_response`` and must raise if any
    buffered data could not be written.
    """

    def open(self, w: HTTPResponse) -> None: ...

    def flush(self) -> None: ...


class CSV(BodyWriter):
    """Body writer streaming rows through a ``StreamWriter``."""

    def __init__(self, stream: StreamWriter):
        self.stream = stream

    def write_init(self, w: HTTPResponse) -> None:
        self.stream.open(w)

    def write_body(self, w: HTTPResponse, request: HTTPRequest, status: int) -> None:
        try:
            self.stream.flush()
        except Exception as e:
            raise WriteError(e) from e


class CSVWriter:
    """
    ``StreamWriter`` producing a CSV attachment.

    ===================================================================
    WRITE SEQUENCE
    ===================================================================

        open(w)            captures the sink, restores the initial status
        write_row(row1)    sets Content-Disposition and Content-Type,
                           sends the status, writes header row + row1
        write_row(row2)    writes row2
        flush()            writes buffered rows to the sink

    ===================================================================

    ``header``, ``filename`` and ``status`` should be set before the
    first ``write_row``. ``open`` restores ``status`` to the value given
    to the constructor (200 by default), so a reused writer starts from
    the same status on every response.

    Example:
        export = CSVWriter(header=["id", "name"], filename="users.csv", status=201)
    """

    # Buffered characters before rows are pushed to the sink
    buffer_size = 4096

    def __init__(self, header: Optional[List[str]] = None, filename: str = "", status: int = 200):
        self.header = list(header or [])
        self.filename = filename
        self.status = status
        self._initial_status = status

        self._w: Optional[HTTPResponse] = None
        self._buffer = io.StringIO()
        self._csv = None

    def open(self, w: HTTPResponse) -> None:
        self._w = w
        self._csv = None
        self._buffer = io.StringIO()
        self.status = self._initial_status

    def write_row(self, row: List[str]) -> None:
        """
        Write one row, emitting headers and the header row first.

        Raises:
            RuntimeError: If the writer was not opened.
        """
        if self._w is None:
            raise RuntimeError("CSVWriter.write_row called before open")

        if self._csv is None:
            self._w.headers.set("Content-Disposition", f"attachment; filename={self.filename}")
            self._w.headers.set("Content-Type", CONTENT_TYPE_CSV)
            self._w.write_header(self.status)
            self._csv = csv.writer(self._buffer, lineterminator="\n")
            self._csv.writerow(self.header)

        self._csv.writerow(row)
        if self._buffer.tell() >= self.buffer_size:
            self._drain()

    def flush(self) -> None:
        if self._w is None:
            return
        self._drain()
        self._w.flush()

    def _drain(self) -> None:
        data = self._buffer.getvalue()
        if data:
            self._w.write(data)
        self._buffer.seek(0)
        self._buffer.truncate()
