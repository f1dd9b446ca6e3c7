"""
=============================================================================
REQUEST / RESPONSE I/O HELPERS
=============================================================================

Collaborators a handler composes to read its input and write its output.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ reader.py   RequestReader + HeaderReader/QueryReader/PathReader/   │
    │             BodyReader interfaces                                   │
    │ writer.py   ResponseWriter + HeaderWriter/BodyWriter interfaces    │
    │ body.py     JSON, XML, Form, Text, HTML, Redirect, CSV,            │
    │             RequestDump, TemplateRegistry                           │
    │ fields.py   Slot + typed scalar readers (Int, Bool, String, ...)   │
    │ header.py   CookieValues, IPAddress, UserAgent, BearerToken,       │
    │             SetCookie                                               │
    │ codec.py    binding decoded payloads into caller values             │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .body import (
    CSV,
    HTML,
    JSON,
    XML,
    CSVWriter,
    Form,
    Redirect,
    RequestDump,
    StreamWriter,
    TemplateRegistry,
    Text,
    html_templates,
    register_html_templates_once,
)
from .fields import (
    Bool,
    FieldReader,
    Float32,
    Float64,
    Int,
    Int8,
    Int16,
    Int32,
    Int64,
    Slot,
    String,
    Uint,
    Uint8,
    Uint16,
    Uint32,
    Uint64,
)
from .header import BearerToken, CookieValues, IPAddress, SetCookie, UserAgent, make_cookie
from .reader import BodyReader, HeaderReader, PathReader, QueryReader, RequestReader
from .writer import BodyWriter, HeaderWriter, ResponseWriter

__all__ = [
    # Aggregators and interfaces
    "RequestReader",
    "ResponseWriter",
    "HeaderReader",
    "QueryReader",
    "PathReader",
    "BodyReader",
    "HeaderWriter",
    "BodyWriter",
    # Bodies
    "JSON",
    "XML",
    "Form",
    "Text",
    "HTML",
    "Redirect",
    "CSV",
    "CSVWriter",
    "StreamWriter",
    "RequestDump",
    "TemplateRegistry",
    "html_templates",
    "register_html_templates_once",
    # Scalar fields
    "Slot",
    "FieldReader",
    "Bool",
    "Int",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Uint",
    "Uint8",
    "Uint16",
    "Uint32",
    "Uint64",
    "Float32",
    "Float64",
    "String",
    # Headers
    "CookieValues",
    "IPAddress",
    "UserAgent",
    "BearerToken",
    "SetCookie",
    "make_cookie",
]
