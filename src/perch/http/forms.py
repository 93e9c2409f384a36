"""Form body parsing — URL-encoded and multipart.

URL-encoded forms use stdlib ``urllib.parse``; multipart bodies are
parsed with ``python-multipart``. Either way the result is a
``FormData`` that plugs into ``Params`` like the query string does.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs

from perch.http.params import _MultiValueParams

FORM_CONTENT_TYPES = frozenset({"application/x-www-form-urlencoded", "multipart/form-data"})


@dataclass(frozen=True, slots=True)
class UploadFile:
    """An uploaded file from a multipart form submission, held in memory."""

    filename: str
    content_type: str
    size: int
    content: bytes

    def __repr__(self) -> str:
        return f"UploadFile({self.filename!r}, {self.content_type!r}, {self.size} bytes)"


class FormData(_MultiValueParams):
    """Immutable parsed form data.

    String fields behave like query parameters; uploaded files are kept
    apart in ``files`` and never reach the finder.
    """

    __slots__ = ("_files",)

    _files: dict[str, UploadFile]

    def __init__(
        self,
        data: dict[str, list[str]] | None = None,
        files: dict[str, UploadFile] | None = None,
    ) -> None:
        super().__init__(data)
        object.__setattr__(self, "_files", files or {})

    @property
    def files(self) -> Mapping[str, UploadFile]:
        """Uploaded files by field name."""
        return self._files


def media_type(content_type: str | None) -> str:
    """The bare, lowercased media type of a Content-Type header value."""
    if not content_type:
        return ""
    return content_type.split(";")[0].strip().lower()


def is_form(content_type: str | None) -> bool:
    return media_type(content_type) in FORM_CONTENT_TYPES


def parse_form_data(body: bytes, content_type: str) -> FormData:
    """Parse a form body into FormData.

    Raises:
        ValueError: If the content type is not a form encoding, or a
            multipart body has no boundary.
    """
    kind = media_type(content_type)

    if kind == "application/x-www-form-urlencoded":
        return FormData(parse_qs(body.decode("utf-8"), keep_blank_values=True))

    if kind == "multipart/form-data":
        return _parse_multipart(body, content_type)

    msg = f"Unsupported form content type: {content_type!r}"
    raise ValueError(msg)


def _parse_multipart(body: bytes, content_type: str) -> FormData:
    """Parse multipart form data using python-multipart's callback parser."""
    from python_multipart.multipart import MultipartParser, parse_options_header

    _, options = parse_options_header(content_type.encode("latin-1"))
    boundary = options.get(b"boundary")
    if boundary is None:
        msg = "Multipart form data missing boundary parameter"
        raise ValueError(msg)

    data: dict[str, list[str]] = {}
    files: dict[str, UploadFile] = {}

    # Per-part state
    headers: dict[str, str] = {}
    pending_header = ""
    chunk = bytearray()

    def on_part_begin() -> None:
        nonlocal chunk
        headers.clear()
        chunk = bytearray()

    def on_part_data(buffer: bytes, start: int, end: int) -> None:
        chunk.extend(buffer[start:end])

    def on_header_field(buffer: bytes, start: int, end: int) -> None:
        nonlocal pending_header
        pending_header = buffer[start:end].decode("latin-1").lower()

    def on_header_value(buffer: bytes, start: int, end: int) -> None:
        headers[pending_header] = buffer[start:end].decode("latin-1")

    def on_part_end() -> None:
        disposition = headers.get("content-disposition")
        if disposition is None:
            return
        _, params = parse_options_header(disposition.encode("latin-1"))
        name = params.get(b"name")
        if name is None:
            return
        field = name.decode("utf-8")
        filename = params.get(b"filename")
        if filename is not None:
            content = bytes(chunk)
            files[field] = UploadFile(
                filename=filename.decode("utf-8"),
                content_type=headers.get("content-type", "application/octet-stream"),
                size=len(content),
                content=content,
            )
        else:
            data.setdefault(field, []).append(chunk.decode("utf-8", errors="replace"))

    callbacks: dict[str, Any] = {
        "on_part_begin": on_part_begin,
        "on_part_data": on_part_data,
        "on_part_end": on_part_end,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
    }

    parser = MultipartParser(boundary, callbacks)
    parser.write(body)
    parser.finalize()

    return FormData(data, files)
