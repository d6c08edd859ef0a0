"""
Tests for the metadata registry.
"""

import logging
from collections import OrderedDict, defaultdict

from pytest import LogCaptureFixture, raises

from typedjson.metadata import MemberMetadata, MetadataRegistry
from typedjson.typedefs import ArrayTag, ObjectTag, ScalarTag, SetTag


class Shape:
    pass


class Circle(Shape):
    pass


class Square(Shape):
    pass


class Canvas:
    pass


class Stack(list):
    pass


def test_register_member():
    """
    Test members are kept in declaration order and overwritten by key.
    """
    registry = MetadataRegistry()
    metadata = registry.ensure(Shape)

    registry.register_member(metadata, MemberMetadata(key="b", tag=ScalarTag(int)))
    registry.register_member(metadata, MemberMetadata(key="a", tag=ScalarTag(str)))
    registry.register_member(
        metadata, MemberMetadata(key="b", tag=ScalarTag(float), name="B")
    )

    assert list(metadata.members) == ["b", "a"]
    assert metadata.members["b"].tag == ScalarTag(float)
    assert metadata.members["b"].serialized_name == "B"
    assert metadata.members["a"].serialized_name == "a"

    assert registry.lookup(Shape) is metadata
    assert registry.lookup(Canvas) is None
    assert not registry.is_registered(Shape)


def test_container_invariant():
    """
    Test builtin containers can't be declared as objects or scalars.
    """
    registry = MetadataRegistry()
    metadata = registry.ensure(Canvas)

    containers = (list, tuple, set, frozenset, dict, OrderedDict, defaultdict, Stack)
    for container in containers:
        with raises(TypeError):
            registry.register_member(
                metadata, MemberMetadata(key="x", tag=ObjectTag(container))
            )

    # scalar tags require a scalar converter
    with raises(TypeError, match="No scalar converter"):
        registry.register_member(
            metadata, MemberMetadata(key="x", tag=ScalarTag(Canvas))
        )

    assert not metadata.members


def test_conflicting_members(caplog: LogCaptureFixture):
    """
    Test replacing a scalar member with a container member is flagged.
    """
    registry = MetadataRegistry()
    metadata = registry.ensure(Canvas)

    registry.register_member(metadata, MemberMetadata(key="x", tag=ScalarTag(int)))

    with caplog.at_level(logging.WARNING, logger="typedjson.metadata"):
        registry.register_member(
            metadata, MemberMetadata(key="x", tag=ArrayTag(ScalarTag(int)))
        )

    assert metadata.members["x"].is_container
    assert "conflicting declarations" in caplog.text


def test_inheritance():
    """
    Test subclasses inherit members and are added to ancestors' known subtypes.
    """
    registry = MetadataRegistry()
    base = registry.ensure(Shape)
    registry.register_member(base, MemberMetadata(key="name", tag=ScalarTag(str)))
    registry.mark_registered(Shape)

    circle = registry.ensure(Circle)
    registry.register_member(circle, MemberMetadata(key="radius", tag=ScalarTag(float)))
    registry.mark_registered(Circle)

    assert list(circle.members) == ["name", "radius"]
    assert list(base.members) == ["name"]
    assert Circle in base.known_subtypes
    assert registry.is_registered(Circle)


def test_known_subtypes_closure():
    """
    Test known subtypes are closed transitively, including member classes.
    """
    registry = MetadataRegistry()
    registry.mark_registered(Shape)
    registry.mark_registered(Circle)

    canvas = registry.ensure(Canvas)
    registry.register_member(
        canvas, MemberMetadata(key="shapes", tag=SetTag(ObjectTag(Shape)))
    )
    registry.mark_registered(Canvas)

    assert registry.known_subtypes(Canvas) == {Canvas, Shape, Circle}

    # cache is invalidated by later registrations
    registry.mark_registered(Square)
    assert registry.known_subtypes(Canvas) == {Canvas, Shape, Circle, Square}

    registry.add_known_subtypes(Square, Circle)
    assert registry.known_subtypes(Square) == {Square, Circle}

    # unregistered classes are their own closure
    assert registry.known_subtypes(int) == {int}
