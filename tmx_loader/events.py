"""
Pull-based XML event stream

=============================================================================
WHY EVENTS INSTEAD OF A TREE?
=============================================================================

ElementTree.parse() builds the whole document before we can look at it.
The TMX parser is a recursive-descent parser instead: each parse function
pulls events for the element it owns, hands nested elements to other
parse functions, and returns once it has consumed its own end tag.

    <layer width="2" height="1">      StartTag('layer', {...})
        <data encoding="csv">         StartTag('data', {...})
            1,2                       Text('1,2')
        </data>                       EndTag('data')
    </layer>                          EndTag('layer')

The contract every parse function follows:

    - it is called right AFTER its StartTag was pulled
    - it returns right AFTER its matching EndTag was pulled

skip() honours the same contract for elements nobody understands, which
is what keeps unknown elements from breaking newer documents.

=============================================================================
"""

import io
import xml.etree.ElementTree as ET
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Deque, Dict, Iterator, Optional, Type, TypeVar, Union

from .constants import READ_CHUNK_SIZE
from .errors import TmxParseError


# =============================================================================
# EVENTS
# =============================================================================

@dataclass
class StartTag:
    name: str                                        # Local element name
    attributes: Dict[str, str] = field(default_factory=dict)


@dataclass
class EndTag:
    name: str


@dataclass
class Text:
    text: str


Event = Union[StartTag, EndTag, Text]


def _local_name(tag: str) -> str:
    # '{namespace}name' -> 'name'
    return tag.rsplit('}', 1)[-1]


# =============================================================================
# EVENT STREAM
# =============================================================================

class EventStream:
    """
    Pull-based tokenizer over an XML byte stream.

    Bytes are fed to an ElementTree XMLPullParser only when more events
    are needed. Element text is reported as a Text event just before the
    element's EndTag; whitespace-only text is dropped.
    """

    def __init__(self, source: Union[bytes, BinaryIO], chunk_size: int = READ_CHUNK_SIZE):
        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(source)
        self._source = source
        self._chunk_size = chunk_size
        self._parser = ET.XMLPullParser(events=('start', 'end'))
        self._pending: Deque[Event] = deque()
        self._closed = False

    def _fill(self):
        chunk = self._source.read(self._chunk_size)
        try:
            if chunk:
                self._parser.feed(chunk)
            else:
                self._parser.close()
                self._closed = True
            # feed() defers syntax errors until the events are read
            events = list(self._parser.read_events())
        except ET.ParseError as exc:
            raise TmxParseError(f"malformed XML: {exc}") from exc

        for kind, elem in events:
            name = _local_name(elem.tag)
            if kind == 'start':
                self._pending.append(StartTag(name, dict(elem.attrib)))
            else:
                if elem.text and elem.text.strip():
                    self._pending.append(Text(elem.text))
                self._pending.append(EndTag(name))
                # Finished subtrees are never looked at again
                elem.clear()

    def next(self) -> Event:
        """Pull the next event; a document that ends early is an error."""
        while not self._pending:
            if self._closed:
                raise TmxParseError("unexpected end of document")
            self._fill()
        return self._pending.popleft()

    def children(self) -> Iterator[Event]:
        """
        Yield the events inside the current element, stopping (silently)
        once its EndTag has been consumed.

        Every StartTag yielded MUST be consumed up to its own EndTag by the
        caller (a parse function or skip()) before the loop continues.
        """
        while True:
            event = self.next()
            if isinstance(event, EndTag):
                return
            yield event

    def skip(self):
        """Consume the rest of the current element, discarding its contents."""
        for event in self.children():
            if isinstance(event, StartTag):
                self.skip()

    def text(self) -> str:
        """Collect the text of the current element, skipping nested elements."""
        parts = []
        for event in self.children():
            if isinstance(event, Text):
                parts.append(event.text)
            elif isinstance(event, StartTag):
                self.skip()
        return "".join(parts)

    def find_root(self, name: str) -> StartTag:
        """Skip events until the StartTag of the `name` element."""
        while True:
            event = self.next()
            if isinstance(event, StartTag):
                if event.name == name:
                    return event
                self.skip()


# =============================================================================
# ATTRIBUTE CONVERSION
# =============================================================================
# Every typed attribute goes through one of these so a bad value always
# fails with the element, attribute and offending text in the message.

E = TypeVar('E', bound=Enum)


def _invalid(element: str, name: str, value: str, expected: str) -> TmxParseError:
    return TmxParseError(f"<{element}> attribute {name}={value!r} is not {expected}")


def attr_int(tag: StartTag, name: str, default: Optional[int] = 0) -> Optional[int]:
    value = tag.attributes.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise _invalid(tag.name, name, value, "a valid integer") from None


def attr_float(tag: StartTag, name: str, default: Optional[float] = 0.0) -> Optional[float]:
    value = tag.attributes.get(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise _invalid(tag.name, name, value, "a valid number") from None


def attr_bool(tag: StartTag, name: str, default: bool = True) -> bool:
    # Tiled writes 0/1; some tools write true/false
    value = tag.attributes.get(name)
    if value is None:
        return default
    return value in ('1', 'true')


def attr_enum(tag: StartTag, name: str, enum_type: Type[E], default: E) -> E:
    value = tag.attributes.get(name)
    if value is None:
        return default
    try:
        return enum_type(value)
    except ValueError:
        choices = ", ".join(member.value for member in enum_type)
        raise _invalid(tag.name, name, value, f"one of: {choices}") from None
