"""
Test end-to-end conversion to/from JSON text via APIs.
"""

import json
from datetime import date

from pytest import raises

from typedjson import (
    ConversionErrors,
    ErrorCollector,
    JsonSettings,
    MalformedJsonError,
    TypedJSON,
    TypeShapeMismatchError,
    UnregisteredRootTypeError,
    json_array_member,
    json_map_member,
    json_member,
    json_object,
    json_set_member,
    parse,
    parse_as_array,
    parse_as_map,
    parse_as_set,
    raise_error,
    stringify,
    stringify_as_array,
    stringify_as_map,
    stringify_as_set,
)


@json_object(members=(json_member("title", str, required=True),))
class Media:
    def __init__(self, title=None):
        self.title = title


@json_object(
    members=(
        json_member("year", int),
        json_set_member("tags", str),
        json_member("published", date),
    )
)
class Book(Media):
    def __init__(self, title=None, year=None, tags=None, published=None):
        super().__init__(title)
        self.year = year
        self.tags = tags
        self.published = published


@json_object(members=(json_member("minutes", int),))
class Film(Media):
    def __init__(self, title=None, minutes=None):
        super().__init__(title)
        self.minutes = minutes


@json_object(
    members=(
        json_array_member("items", Media),
        json_map_member("shelves", str, Media),
        json_array_member("grid", int, dimensions=2),
    )
)
class Library:
    def __init__(self, items=None, shelves=None, grid=None):
        self.items = items
        self.shelves = shelves
        self.grid = grid


class Unregistered:
    pass


def test_containers_of_scalars():
    """
    Test container variants produce compact arrays.
    """
    assert stringify_as_set({1, 2, 3}, int) == "[1,2,3]"
    assert stringify_as_map({"a": 1}, str, int) == '[["a",1]]'
    assert stringify_as_array([[1, 2], [3]], int, dimensions=2) == "[[1,2],[3]]"

    assert parse_as_set("[1,2,2]", int) == {1, 2}
    assert parse_as_map('[["a",1],["b",2]]', str, int) == {"a": 1, "b": 2}
    assert parse_as_array("[[1],[2,3]]", int, dimensions=2) == [[1], [2, 3]]


def test_scalar_root():
    """
    Test scalar types may be used as the root type.
    """
    assert stringify(date(2024, 1, 2), date) == '"2024-01-02"'
    assert parse('"2024-01-02"', date) == date(2024, 1, 2)
    assert parse(b"42", int) == 42


def test_object():
    """
    Test object round trip.
    """
    book = Book("Dune", year=1965, tags={"scifi"}, published=date(1965, 8, 1))
    converter = TypedJSON(Book)

    text = converter.stringify(book)
    assert text == (
        '{"title":"Dune","year":1965,"tags":["scifi"],"published":"1965-08-01"}'
    )

    parsed = converter.parse(text)
    assert type(parsed) is Book
    assert vars(parsed) == vars(book)


def test_polymorphism():
    """
    Test subtypes in containers survive a round trip.
    """
    library = Library(
        items=[Media("Untitled"), Book("Dune"), Film("Alien", minutes=117)],
        shelves={"top": Film("Heat")},
        grid=[[1, 2], [3]],
    )

    text = stringify(library, Library)
    assert json.loads(text) == {
        "items": [
            {"title": "Untitled"},
            {"title": "Dune", "__type": "Book"},
            {"title": "Alien", "minutes": 117, "__type": "Film"},
        ],
        "shelves": [["top", {"title": "Heat", "__type": "Film"}]],
        "grid": [[1, 2], [3]],
    }

    parsed = parse(text, Library)
    assert [type(i) for i in parsed.items] == [Media, Book, Film]
    assert parsed.items[2].minutes == 117
    assert type(parsed.shelves["top"]) is Film
    assert parsed.grid == [[1, 2], [3]]

    # same result when parsing as the base class and reserializing
    assert stringify(parse(text, Library), Library) == text


def test_object_containers():
    """
    Test container variants with an object root type.
    """
    converter = TypedJSON(Media)

    text = converter.stringify_as_array([Book("Dune"), Media("Notes")])
    assert text == '[{"title":"Dune","__type":"Book"},{"title":"Notes"}]'
    assert [type(m) for m in converter.parse_as_array(text)] == [Book, Media]

    text = converter.stringify_as_map({1: Film("Heat")}, int)
    assert text == '[[1,{"title":"Heat","__type":"Film"}]]'
    assert type(converter.parse_as_map(text, int)[1]) is Film


def test_formatting():
    """
    Test indentation and key sorting settings.
    """
    settings = JsonSettings(indent=2, sort_keys=True)
    film = Film("Alien", minutes=117)

    text = stringify(film, Film, settings)
    expected = {"title": "Alien", "minutes": 117}
    assert text == json.dumps(expected, indent=2, sort_keys=True)
    assert TypedJSON(Film, settings).settings.indent == 2


def test_null():
    """
    Test null round trip.
    """
    assert stringify(None, Book) == "null"
    assert parse("null", Book) is None


def test_malformed():
    """
    Test invalid JSON text and JSON text of the wrong shape.
    """
    collector = ErrorCollector()
    settings = JsonSettings(error_handler=collector)

    assert parse("{", Book, settings) is None
    assert parse_as_array('{"a": 1}', int, settings) == []
    assert parse_as_set('"x"', int, settings) == set()
    assert parse_as_map("[1", str, int, settings) == {}
    assert parse(b'"\xff"', str, settings) is None

    assert [type(e) for e in collector.errors] == [
        MalformedJsonError,
        TypeShapeMismatchError,
        TypeShapeMismatchError,
        MalformedJsonError,
        MalformedJsonError,
    ]

    with raises(MalformedJsonError):
        parse("{", Book, JsonSettings(error_handler=raise_error))


def test_replacer():
    """
    Test the replacer is applied to every value before encoding.
    """
    settings = JsonSettings(
        replacer=lambda key, value: value.upper() if key == "title" else value
    )
    text = stringify(Film("Alien", minutes=117), Film, settings)
    assert text == '{"title":"ALIEN","minutes":117}'

    keys: list[str] = []

    def record(key: str, value):
        keys.append(key)
        return value

    settings = JsonSettings(replacer=record)
    text = stringify_as_array([[1], [2]], int, settings, dimensions=2)
    assert text == "[[1],[2]]"
    assert keys == ["", "0", "0", "1", "0"]


def test_not_encodable():
    """
    Test values which can't be encoded as JSON text are reported.
    """
    collector = ErrorCollector()

    # non-finite floats are rejected by the converter
    settings = JsonSettings(error_handler=collector)
    assert stringify(float("nan"), float, settings) == "null"

    # or when produced by the replacer, by the encoder
    settings = JsonSettings(error_handler=collector, replacer=lambda k, v: float("inf"))
    assert stringify(1.0, float, settings) == ""

    assert [type(e) for e in collector.errors] == [
        TypeShapeMismatchError,
        TypeShapeMismatchError,
    ]


def test_strict():
    """
    Test strict settings raise all reported errors after the conversion.
    """
    collector = ErrorCollector()
    settings = JsonSettings(error_handler=collector, strict=True)

    with raises(ConversionErrors) as exc_info:
        parse('{"title": 1, "year": "x"}', Book, settings)

    assert [e.path_str for e in exc_info.value.errors] == ["title", "year"]
    assert exc_info.value.errors == collector.errors

    with raises(ConversionErrors):
        parse("{", Book, settings)


def test_partial_result():
    """
    Test a best-effort result is returned with errors collected.
    """
    collector = ErrorCollector()
    settings = JsonSettings(error_handler=collector)

    book = parse('{"year": "1965", "tags": ["a", 1]}', Book, settings)

    assert type(book) is Book
    assert book.tags == {"a"}
    assert not hasattr(book, "year")
    assert [e.path_str for e in collector.errors] == ["title", "year", "tags[1]"]


def test_unregistered_root():
    """
    Test an unregistered root class is rejected immediately.
    """
    with raises(UnregisteredRootTypeError):
        TypedJSON(Unregistered)

    with raises(UnregisteredRootTypeError):
        stringify(Unregistered(), Unregistered)

    # also a TypeError
    with raises(TypeError):
        parse_as_array("[]", Unregistered)


def test_repr():
    assert repr(TypedJSON(Book)) == "TypedJSON(Book)"
