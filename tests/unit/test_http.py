"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import pytest

from aws_sigv4_headers import URI, Field, Fields
from aws_sigv4_headers.exceptions import MissingExpectedParameterException


def test_field_as_string():
    field = Field(name="Accept", values=["text/html", "text/plain"])
    assert field.as_string() == "text/html, text/plain"
    assert field.as_string(delimiter="") == "text/htmltext/plain"


def test_field_add_and_set():
    field = Field(name="X-Multi")
    field.add("a")
    field.add("b")
    assert field.values == ["a", "b"]
    field.set(["c"])
    assert field.values == ["c"]


class TestFields:
    def test_lookup_is_case_insensitive(self):
        fields = Fields({"Content-Type": ["application/json"]})
        assert "content-type" in fields
        assert "CONTENT-TYPE" in fields
        assert fields["content-type"].name == "Content-Type"
        assert fields.get_field("Missing") is None
        assert 1 not in fields

    def test_replacing_keeps_position(self):
        fields = Fields({"A": ["1"], "B": ["2"], "C": ["3"]})
        fields.set_field(Field(name="b", values=["4"]))
        assert [field.name for field in fields] == ["A", "b", "C"]
        assert fields["B"].values == ["4"]
        assert len(fields) == 3

    def test_setitem_and_delitem(self):
        fields = Fields()
        fields["Host"] = ["example.com"]
        assert fields["host"].values == ["example.com"]
        del fields["HOST"]
        assert len(fields) == 0
        with pytest.raises(KeyError):
            del fields["host"]

    def test_remove_field_ignores_missing(self):
        fields = Fields([Field(name="Host", values=["example.com"])])
        fields.remove_field("x-amz-date")
        fields.remove_field("host")
        assert len(fields) == 0

    def test_equality(self):
        assert Fields({"A": ["1"]}) == Fields([Field(name="A", values=["1"])])
        assert Fields({"A": ["1"]}) != Fields({"A": ["2"]})
        assert Fields() != {}


class TestURI:
    def test_from_url(self):
        uri = URI.from_url("https://example.com:8443/a/b?x=1&y=2#frag")
        assert uri == URI(
            scheme="https",
            host="example.com",
            port=8443,
            path="/a/b",
            query="x=1&y=2",
            fragment="frag",
        )

    def test_from_url_without_path_or_query(self):
        uri = URI.from_url("http://example.com")
        assert uri.path is None
        assert uri.query is None
        assert uri.port is None

    @pytest.mark.parametrize(
        "uri, expected",
        [
            (URI(host="example.com"), "example.com"),
            (URI(host="example.com", port=8000), "example.com:8000"),
            (URI(host="2001:db8::1"), "[2001:db8::1]"),
            (URI(host="2001:db8::1", port=8443), "[2001:db8::1]:8443"),
        ],
    )
    def test_netloc(self, uri: URI, expected: str):
        assert uri.netloc == expected

    def test_missing_host(self):
        with pytest.raises(MissingExpectedParameterException):
            URI.from_url("not-a-url")

    def test_invalid_port_propagates(self):
        with pytest.raises(ValueError):
            URI.from_url("https://example.com:99999/")
