"""
Test deserialization of plain values to typed values.
"""

from datetime import date

from pytest import raises

from typedjson.converting._types import ERROR_SENTINEL
from typedjson.deserializing import (
    collect_known_types,
    deserialize_array,
    deserialize_map,
    deserialize_set,
    deserialize_value,
)
from typedjson.exceptions import (
    AmbiguousTypeNameError,
    MissingRequiredMemberError,
    TypeShapeMismatchError,
    UnregisteredRootTypeError,
    UnresolvableConstructorError,
)
from typedjson.handlers import ErrorCollector, raise_error
from typedjson.metadata import MetadataRegistry
from typedjson.resolution import TYPE_HINT_KEY
from typedjson.schema import (
    json_array_member,
    json_map_member,
    json_member,
    json_object,
    json_set_member,
)
from typedjson.settings import JsonSettings
from typedjson.typedefs import ObjectTag

registry = MetadataRegistry()


@json_object(
    members=(
        json_member("name", str, required=True),
        json_member("born", date, name="dob"),
    ),
    registry=registry,
)
class Animal:
    pass


@json_object(members=(json_member("lives", int),), registry=registry)
class Cat(Animal):
    pass


@json_object(
    members=(
        json_array_member("animals", Animal),
        json_set_member("keepers", str),
        json_map_member("feeding", str, int),
        json_member("mascot", Animal),
    ),
    registry=registry,
)
class Zoo:
    pass


class Dog(Animal):
    pass


def collect() -> tuple[ErrorCollector, JsonSettings]:
    collector = ErrorCollector()
    return collector, JsonSettings(error_handler=collector)


def test_object():
    """
    Test deserialization of an object with renamed members.
    """
    animal = deserialize_value(
        {"name": "Rex", "dob": "2020-05-17"}, Animal, registry=registry
    )

    assert type(animal) is Animal
    assert animal.name == "Rex"
    assert animal.born == date(2020, 5, 17)


def test_absent_and_null():
    """
    Test absent members are left unset and explicit nulls are assigned.
    """
    cat = deserialize_value({"name": "Tom"}, Cat, registry=registry)
    assert not hasattr(cat, "lives")
    assert not hasattr(cat, "born")

    cat = deserialize_value({"name": "Tom", "lives": None}, Cat, registry=registry)
    assert cat.lives is None

    # unknown keys are ignored
    cat = deserialize_value({"name": "Tom", "color": "black"}, Cat, registry=registry)
    assert not hasattr(cat, "color")


def test_subtype():
    """
    Test the type hint selects a known subtype.
    """
    animal = deserialize_value(
        {"name": "Tom", "lives": 9, TYPE_HINT_KEY: "Cat"}, Animal, registry=registry
    )

    assert type(animal) is Cat
    assert animal.name == "Tom"
    assert animal.lives == 9


def test_containers():
    """
    Test deserialization of container members with nested subtypes.
    """
    zoo = deserialize_value(
        {
            "animals": [
                {"name": "Rex"},
                {"name": "Tom", "lives": 3, TYPE_HINT_KEY: "Cat"},
            ],
            "keepers": ["Ann", "Bob", "Ann"],
            "feeding": [["Rex", 2], ["Tom", 1]],
            "mascot": {"name": "Kit", TYPE_HINT_KEY: "Cat"},
        },
        Zoo,
        registry=registry,
    )

    assert [type(a) for a in zoo.animals] == [Animal, Cat]
    assert zoo.animals[1].lives == 3
    assert zoo.keepers == {"Ann", "Bob"}
    assert zoo.feeding == {"Rex": 2, "Tom": 1}
    assert type(zoo.mascot) is Cat


def test_arrays():
    """
    Test multi-dimensional arrays and failed elements.
    """
    assert deserialize_array([[1], [2, 3], []], int, dimensions=2) == [
        [1],
        [2, 3],
        [],
    ]
    assert deserialize_array([1, None], int) == [1, None]

    collector, settings = collect()

    # failed elements are kept in place as placeholders
    result = deserialize_array([1, "x", 3], int, settings=settings)
    assert result == [1, ERROR_SENTINEL, 3]

    result = deserialize_array([1, [2]], int, dimensions=2, settings=settings)
    assert result == [ERROR_SENTINEL, [2]]

    assert [e.path for e in collector.errors] == [(1,), (0,)]


def test_sets_and_maps():
    """
    Test sets and maps skip failed entries.
    """
    collector, settings = collect()

    assert deserialize_set([1, "x", 2], int, settings=settings) == {1, 2}

    result = deserialize_map(
        [["a", 1], ["b"], "c", ["d", "x"], ["e", 5]], str, int, settings=settings
    )
    assert result == {"a": 1, "e": 5}

    assert [e.path_str for e in collector.errors] == ["[1]", "[1]", "[2]", "[3][1]"]
    assert all(isinstance(e, TypeShapeMismatchError) for e in collector.errors)


def test_missing_required():
    """
    Test missing required members are reported and the rest is still populated.
    """
    collector, settings = collect()

    cat = deserialize_value({"lives": 3}, Cat, settings=settings, registry=registry)
    assert cat.lives == 3
    assert not hasattr(cat, "name")

    # explicit null doesn't satisfy a required member
    deserialize_value({"name": None}, Animal, settings=settings, registry=registry)

    assert len(collector.errors) == 2
    for error in collector.errors:
        assert isinstance(error, MissingRequiredMemberError)
        assert error.member == "name"
        assert error.path == ("name",)


def test_type_hint_errors():
    """
    Test type hints naming unknown, unrelated or unregistered classes.
    """
    collector, settings = collect()

    # unknown name
    result = deserialize_value(
        {"name": "Rex", TYPE_HINT_KEY: "Wolf"},
        Animal,
        settings=settings,
        registry=registry,
    )
    assert result is None
    assert isinstance(collector.errors[-1], UnresolvableConstructorError)

    # known but not a subclass of the expected class
    result = deserialize_value(
        {"animals": [{TYPE_HINT_KEY: "Zoo"}]}, Zoo, settings=settings, registry=registry
    )
    assert result.animals == [ERROR_SENTINEL]
    assert isinstance(collector.errors[-1], TypeShapeMismatchError)
    assert collector.errors[-1].path == ("animals", 0)

    # subclass which was never registered
    settings = JsonSettings(error_handler=collector, known_types=(Dog,))
    result = deserialize_value(
        {"name": "Rex", TYPE_HINT_KEY: "Dog"},
        Animal,
        settings=settings,
        registry=registry,
    )
    assert result is None
    assert isinstance(collector.errors[-1], TypeShapeMismatchError)


def test_custom_resolution():
    """
    Test custom type resolver and name resolver.
    """
    settings = JsonSettings(
        type_resolver=lambda obj, known_types: known_types.get(obj.get("kind", "")),
    )
    animal = deserialize_value(
        {"kind": "Cat", "name": "Tom"}, Animal, settings=settings, registry=registry
    )
    assert type(animal) is Cat

    settings = JsonSettings(name_resolver=lambda t: f"zoo.{t.__name__}")
    animal = deserialize_value(
        {TYPE_HINT_KEY: "zoo.Cat", "name": "Tom"},
        Animal,
        settings=settings,
        registry=registry,
    )
    assert type(animal) is Cat


def test_ambiguous_known_types():
    """
    Test a configured class clashing by name with a known subtype is reported.
    """
    collector, _ = collect()
    other_cat = type("Cat", (), {})
    settings = JsonSettings(error_handler=collector, known_types=(other_cat,))

    known_types = collect_known_types(ObjectTag(Animal), settings, registry)

    assert known_types["Cat"] is other_cat
    assert known_types["Animal"] is Animal
    assert len(collector.errors) == 1
    assert isinstance(collector.errors[0], AmbiguousTypeNameError)


def test_shape_mismatch():
    """
    Test plain values not matching the expected shape.
    """
    collector, settings = collect()

    assert deserialize_value([1], Animal, settings=settings, registry=registry) is None
    assert deserialize_value("5", int, settings=settings) is None
    assert deserialize_set({"a": 1}, str, settings=settings) is None

    assert len(collector.errors) == 3
    assert all(e.path == () for e in collector.errors)


def test_raise_error():
    """
    Test a raising error handler aborts with the path of the failing value.
    """
    settings = JsonSettings(error_handler=raise_error)

    with raises(TypeShapeMismatchError) as exc_info:
        deserialize_value(
            {"animals": [{"name": "Rex"}, {"name": "Tom", "dob": "soon"}]},
            Zoo,
            settings=settings,
            registry=registry,
        )

    assert exc_info.value.path == ("animals", 1, "dob")
    assert exc_info.value.path_str == "animals[1].dob"


def test_unregistered_root():
    """
    Test deserializing as an unregistered class fails immediately.
    """
    with raises(UnregisteredRootTypeError):
        deserialize_value({}, Dog, registry=registry)
