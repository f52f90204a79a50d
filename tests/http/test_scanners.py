"""Tests for httpayload.http.scanners."""

import io
from dataclasses import dataclass
from typing import Any, BinaryIO

import pytest
from starlette.datastructures import FormData, Headers, QueryParams, UploadFile

from httpayload.core.errors import ConversionError, PlanError, SourceError
from httpayload.http.scanners import (
    CookieScanner,
    FormScanner,
    HeaderScanner,
    JSONScanner,
    MultipartScanner,
    MultipartValues,
    PathScanner,
    PipeScanner,
    QueryScanner,
    multipart_values_from_form,
)
from httpayload.transcode.tags import UInt32, tagged


@dataclass
class Role:
    name: str = ""

    @classmethod
    def from_string(cls, text: str) -> "Role":
        return cls(name=text)


@dataclass
class Params:
    email: str = tagged("", json="email,omitempty")
    name: str = tagged("", json="name,omitempty")

    language: str = tagged("", json="-", header="accept-language")

    page: UInt32 = tagged(0, query="page", form="page")
    done: bool = tagged(False, query="done")
    role: Role = tagged(default_factory=Role, query="role")
    roles: list[Role] = tagged(default_factory=list, query="roles")

    filters: list[str] = tagged(default_factory=list, form="filters")
    numbers: list[int] = tagged(default_factory=list, form="numbers")

    token: str = tagged("", cookie="token")

    document: BinaryIO | None = tagged(None, multipart="document")

    id: str = tagged("", path="id")
    slug: str = tagged("", path="slug")


@dataclass
class Upload:
    raw: UploadFile | None = tagged(None, multipart="document")
    anything: Any = tagged(None, multipart="document")


@dataclass
class Profile:
    age: int = tagged(0, json="age")
    tags: list[str] = tagged(default_factory=list, json="tags")


@dataclass
class NotJSON:
    handle: io.BytesIO | None = tagged(None, json="handle")


class TestJSONScanner:
    """Test decoding the JSON body document."""

    def test_scan(self):
        params = Params()
        JSONScanner(b'{ "email": "test@example.com", "name": "John Doe" }').scan(params)
        assert params.email == "test@example.com"
        assert params.name == "John Doe"

    def test_text_and_stream_bodies(self):
        params = Params()
        JSONScanner('{"email": "a@example.com"}').scan(params)
        assert params.email == "a@example.com"
        JSONScanner(io.BytesIO(b'{"name": "Jane"}')).scan(params)
        assert params.name == "Jane"
        assert params.email == "a@example.com"

    def test_only_json_fields(self):
        """Keys of other namespaces in the document are ignored."""
        params = Params()
        JSONScanner(b'{"page": 5, "language": "fr"}').scan(params)
        assert params.page == 0
        assert params.language == ""

    def test_structured_values(self):
        profile = Profile()
        JSONScanner(b'{"age": 30, "tags": ["a", "b"]}').scan(profile)
        assert profile.age == 30
        assert profile.tags == ["a", "b"]

    def test_malformed(self):
        with pytest.raises(SourceError, match="malformed"):
            JSONScanner(b"{not json").scan(Params())

    def test_not_an_object(self):
        with pytest.raises(SourceError, match="must be an object"):
            JSONScanner(b"[1, 2]").scan(Params())

    def test_wrong_value_type(self):
        with pytest.raises(ConversionError) as exc:
            JSONScanner(b'{"age": "old"}').scan(Profile())
        assert exc.value.field == "age"
        assert exc.value.context.namespace == "json"

    def test_unsupported_body_type(self):
        with pytest.raises(PlanError):
            JSONScanner(b"{}").scan(NotJSON())


class TestHeaderScanner:
    def test_scan(self):
        params = Params()
        HeaderScanner({"Accept-Language": "en"}).scan(params)
        assert params.language == "en"

    def test_starlette_headers_are_case_insensitive(self):
        params = Params()
        HeaderScanner(Headers(raw=[(b"accept-language", b"de")])).scan(params)
        assert params.language == "de"


class TestQueryScanner:
    def test_scan(self):
        params = Params()
        QueryScanner("page=2&done=true&role=admin&roles=admin,user").scan(params)
        assert params.page == 2
        assert params.done is True
        assert params.role.name == "admin"
        assert [r.name for r in params.roles] == ["admin", "user"]

    def test_first_value_wins(self):
        params = Params()
        QueryScanner(QueryParams("page=2&page=3")).scan(params)
        assert params.page == 2

    def test_mapping(self):
        params = Params()
        QueryScanner({"done": "false", "page": "7"}).scan(params)
        assert params.page == 7
        assert params.done is False

    def test_invalid_unsigned(self):
        params = Params()
        with pytest.raises(ConversionError) as exc:
            QueryScanner("page=abc").scan(params)
        assert exc.value.field == "page"
        assert exc.value.key == "page"
        assert params.page == 0


class TestFormScanner:
    def test_scan(self):
        params = Params()
        FormScanner(FormData([("filters", "sepia,monochrome"), ("numbers", "6,7,8")])).scan(params)
        assert params.filters == ["sepia", "monochrome"]
        assert params.numbers == [6, 7, 8]

    def test_shared_key_with_query(self):
        """A field tagged for both query and form reads its form key here."""
        params = Params()
        FormScanner({"page": "4"}).scan(params)
        assert params.page == 4


class TestPathScanner:
    def test_scan(self):
        params = Params()
        PathScanner({"id": "this_is_id", "slug": "this-is-slug"}).scan(params)
        assert params.id == "this_is_id"
        assert params.slug == "this-is-slug"

    def test_request_like(self):
        class FakeRequest:
            path_params = {"id": "42"}

        params = Params()
        PathScanner(FakeRequest()).scan(params)
        assert params.id == "42"
        assert params.slug == ""


class TestCookieScanner:
    def test_scan(self):
        params = Params()
        CookieScanner({"token": "cookie-token"}).scan(params)
        assert params.token == "cookie-token"

    def test_pairs(self):
        params = Params()
        CookieScanner([("theme", "dark"), ("token", "first"), ("token", "second")]).scan(params)
        assert params.token == "first"

    def test_from_header(self):
        params = Params()
        CookieScanner.from_header("theme=dark; token=cookie-token").scan(params)
        assert params.token == "cookie-token"


class TestMultipartScanner:
    def test_binary_file(self):
        params = Params()
        values = MultipartValues(files={"document": io.BytesIO(b"text document")})
        MultipartScanner(values).scan(params)
        assert params.document.read() == b"text document"

    def test_upload_file_is_unwrapped_for_binary_fields(self):
        params = Params()
        upload = UploadFile(io.BytesIO(b"text document"), filename="doc.txt")
        MultipartScanner(MultipartValues(files={"document": upload})).scan(params)
        assert params.document is upload.file
        assert params.document.read() == b"text document"

    def test_upload_file_fields_get_the_upload(self):
        upload = UploadFile(io.BytesIO(b"x"), filename="doc.txt")
        record = Upload()
        MultipartScanner(MultipartValues(files={"document": upload})).scan(record)
        assert record.raw is upload
        assert record.anything is upload

    def test_values_from_form(self):
        upload = UploadFile(io.BytesIO(b"x"), filename="doc.txt")
        form = FormData([("document", upload), ("title", "hello")])
        values = multipart_values_from_form(form, "document")
        assert values.get("document") is upload

    def test_missing_part(self):
        with pytest.raises(SourceError, match="no such file") as exc:
            multipart_values_from_form(FormData([]), "document")
        assert exc.value.key == "document"

    def test_part_is_not_a_file(self):
        with pytest.raises(SourceError, match="not a file"):
            multipart_values_from_form(FormData([("document", "text")]), "document")


class TestPipeScanner:
    def test_runs_in_order(self):
        params = Params()
        PipeScanner(
            QueryScanner("page=2"),
            FormScanner({"page": "3"}),
            HeaderScanner({"Accept-Language": "en"}),
        ).scan(params)
        assert params.page == 3
        assert params.language == "en"

    def test_stops_at_first_failure(self):
        params = Params()
        with pytest.raises(ConversionError):
            PipeScanner(
                QueryScanner("page=abc"),
                HeaderScanner({"Accept-Language": "en"}),
            ).scan(params)
        assert params.language == ""
