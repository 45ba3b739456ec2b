"""Tests for the pull-based event stream and error context."""

import io

import pytest

from tmx_loader.errors import TmxError, TmxParseError
from tmx_loader.events import EndTag, EventStream, StartTag, Text, attr_bool, attr_enum, \
    attr_float, attr_int
from tmx_loader.tile_type import Orientation


class TestEventStream:

    def test_event_sequence(self):
        stream = EventStream(b'<a x="1"><b>hi</b></a>')
        assert stream.next() == StartTag('a', {'x': '1'})
        assert stream.next() == StartTag('b', {})
        assert stream.next() == Text('hi')
        assert stream.next() == EndTag('b')
        assert stream.next() == EndTag('a')

    def test_whitespace_text_is_dropped(self):
        stream = EventStream(b'<a>\n   \n</a>')
        stream.next()
        assert stream.next() == EndTag('a')

    def test_small_chunks(self):
        stream = EventStream(io.BytesIO(b'<map><layer name="x"/></map>'), chunk_size=3)
        assert stream.find_root('map') == StartTag('map', {})
        assert stream.next() == StartTag('layer', {'name': 'x'})

    def test_skip_consumes_nested_elements(self):
        stream = EventStream(b'<a><unknown><deep><deeper/></deep></unknown><b/></a>')
        stream.next()
        assert stream.next().name == 'unknown'
        stream.skip()
        assert stream.next() == StartTag('b', {})

    def test_children_stops_at_end_tag(self):
        stream = EventStream(b'<r><a><x/><y/></a><z/></r>')
        stream.next()
        stream.next()
        names = []
        for event in stream.children():
            names.append(event.name)
            stream.skip()
        assert names == ['x', 'y']
        assert stream.next() == StartTag('z', {})

    def test_text_skips_nested_elements(self):
        stream = EventStream(b'<data>1,2<ignored>9</ignored></data>')
        stream.next()
        assert stream.text() == "1,2"

    def test_find_root_skips_other_elements(self):
        stream = EventStream(b'<?xml version="1.0"?><doc><other><map/></other><map/></doc>')
        stream.next()
        assert stream.find_root('map') == StartTag('map', {})

    def test_truncated_document(self):
        stream = EventStream(b'<map><layer>')
        with pytest.raises(TmxParseError):
            stream.find_root('map')
            stream.skip()

    def test_document_ends_early(self):
        stream = EventStream(b'<map/>')
        stream.next()
        stream.next()
        with pytest.raises(TmxParseError, match="unexpected end of document"):
            stream.next()

    def test_malformed_xml(self):
        stream = EventStream(b'<map><layer></map>')
        with pytest.raises(TmxParseError, match="malformed XML"):
            while True:
                stream.next()


class TestAttributes:

    def test_int_and_default(self):
        tag = StartTag('layer', {'width': '10'})
        assert attr_int(tag, 'width') == 10
        assert attr_int(tag, 'height') == 0
        assert attr_int(tag, 'height', None) is None

    def test_invalid_int_names_element_and_value(self):
        tag = StartTag('layer', {'width': 'ten'})
        with pytest.raises(TmxParseError, match=r"<layer> attribute width='ten' is not a valid integer"):
            attr_int(tag, 'width')

    def test_float(self):
        tag = StartTag('layer', {'opacity': '0.25'})
        assert attr_float(tag, 'opacity') == 0.25
        assert attr_float(tag, 'parallaxx', 1.0) == 1.0

    @pytest.mark.parametrize("value, expected", [('1', True), ('true', True), ('0', False), ('no', False)])
    def test_bool(self, value, expected):
        assert attr_bool(StartTag('layer', {'visible': value}), 'visible') is expected

    def test_bool_default(self):
        assert attr_bool(StartTag('layer', {}), 'visible') is True

    def test_enum(self):
        tag = StartTag('map', {'orientation': 'hexagonal'})
        assert attr_enum(tag, 'orientation', Orientation, Orientation.ORTHOGONAL) is Orientation.HEXAGONAL

    def test_invalid_enum(self):
        tag = StartTag('map', {'orientation': 'triangular'})
        with pytest.raises(TmxParseError, match="is not one of: orthogonal, isometric"):
            attr_enum(tag, 'orientation', Orientation, Orientation.ORTHOGONAL)


class TestErrorContext:

    def test_context_reads_outermost_first(self):
        error = TmxParseError("bad value")
        error.add_context("object #2").add_context("layer #1")
        assert str(error) == "layer #1: object #2: bad value"
        assert error.message == "bad value"

    def test_hierarchy(self):
        error = TmxParseError("x")
        assert isinstance(error, TmxError)
        assert isinstance(error, ValueError)
