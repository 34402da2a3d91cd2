"""Dispatching for the traversals of an entity's encode-set.

Each entity declares its persistent state as an ordered encode-set (see
:py:meth:`visualizeit.core.entity.Entity.get_encoding_props`). The values in
an encode-set form a tree: primitives, lists, plain dicts, nested entities,
and class references. This module provides one dispatching function per
traversal of that tree.

* :py:func:`fold_crc` folds a value into a running CRC-32 checksum.
* :py:func:`encode` produces the JSON-safe portable form.
* :py:func:`clone` deep-copies a value.
* :py:func:`iter_entities` yields the entities directly nested in a value.
* :py:func:`decode` reconstructs values from portable form.

The dispatchers cover the primitive and container shapes here. Entities and
ClassReferences register their handlers where those classes are defined.
Anything without a handler is an :py:class:`~visualizeit.exceptions.UnsupportedShape`.

Portable form of an entity::

    {"smartType": "Valve", "smartPkg": "pkgA", "id": "v1", "y": 20}

Pseudo-class masters additionally carry ``"isPseudoClassMaster": true``.
Hashing uses the ``repr`` of primitives, so ``1`` and ``'1'`` contribute
differently, while tuples and lists with equal elements hash the same
(both encode as JSON arrays).
"""
from __future__ import annotations

__all__ = ['clone', 'decode', 'encode', 'fold_crc', 'iter_entities', 'Resolver']

import functools
import logging
import typing
import zlib

from visualizeit import config
from visualizeit.core._detail import declared_type_name
from visualizeit.exceptions import UnsupportedShape

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))

Primitive = typing.Union[None, bool, int, float, str]

Resolver = typing.Callable[[str, str], typing.Any]
"""Map (package id, type name) to a ClassReference, raising if unresolvable."""

RESERVED_KEYS = frozenset((config.TYPE_KEY, config.PKG_KEY, config.MASTER_KEY))


@functools.singledispatch
def fold_crc(value, accum: int) -> int:
    """Fold *value* into the running CRC *accum*."""
    raise UnsupportedShape('crc', value)


@fold_crc.register(float)
@fold_crc.register(int)
@fold_crc.register(str)
@fold_crc.register(bool)
@fold_crc.register(type(None))
def _(value, accum: int) -> int:
    return zlib.crc32(repr(value).encode('utf-8'), accum)


@fold_crc.register(list)
@fold_crc.register(tuple)
def _(value: typing.Sequence, accum: int) -> int:
    for element in value:
        accum = fold_crc(element, accum)
    return accum


@fold_crc.register(dict)
def _(value: typing.Mapping, accum: int) -> int:
    for key, element in value.items():
        accum = fold_crc(key, accum)
        accum = fold_crc(element, accum)
    return accum


@fold_crc.register(type)
def _(value: type, accum: int) -> int:
    # Classes contribute only their declared type name.
    type_name = declared_type_name(value)
    if type_name is None:
        raise UnsupportedShape('crc', value)
    return zlib.crc32(type_name.encode('utf-8'), accum)


@functools.singledispatch
def encode(value):
    """Convert *value* to a JSON-safe representation."""
    raise UnsupportedShape('encode', value)


@encode.register(float)
@encode.register(int)
@encode.register(str)
@encode.register(bool)
@encode.register(type(None))
def _(value: Primitive) -> Primitive:
    return value


@encode.register(list)
@encode.register(tuple)
def _(value: typing.Sequence) -> list:
    return [encode(element) for element in value]


@encode.register(dict)
def _(value: typing.Mapping) -> dict:
    encoded = {}
    for key, element in value.items():
        if not isinstance(key, str):
            raise UnsupportedShape('encode', key)
        encoded[key] = encode(element)
    return encoded


@functools.singledispatch
def clone(value):
    """Deep-copy *value*. Immutable values are shared."""
    raise UnsupportedShape('clone', value)


@clone.register(float)
@clone.register(int)
@clone.register(str)
@clone.register(bool)
@clone.register(type(None))
@clone.register(type)
def _(value):
    return value


@clone.register(list)
def _(value: list) -> list:
    return [clone(element) for element in value]


@clone.register(tuple)
def _(value: tuple) -> tuple:
    return tuple(clone(element) for element in value)


@clone.register(dict)
def _(value: dict) -> dict:
    return {key: clone(element) for key, element in value.items()}


@functools.singledispatch
def iter_entities(value) -> typing.Iterator:
    """Yield the entities nested in *value*, without descending into them."""
    return iter(())


@iter_entities.register(list)
@iter_entities.register(tuple)
def _(value: typing.Sequence) -> typing.Iterator:
    for element in value:
        yield from iter_entities(element)


@iter_entities.register(dict)
def _(value: typing.Mapping) -> typing.Iterator:
    for element in value.values():
        yield from iter_entities(element)


def is_tagged(node) -> bool:
    """Check whether *node* is the portable form of an entity."""
    return isinstance(node, dict) and config.TYPE_KEY in node


def decode(node, resolve: Resolver):
    """Reconstruct a value from its portable form.

    Lists are decoded element-wise. A dict carrying a type tag is resolved to a
    ClassReference through *resolve* and instantiated from its decoded
    fields. Other dicts keep their keys and decode their values. Anything
    else, including entities already hydrated by an earlier decoding pass,
    is returned unaltered.
    """
    if isinstance(node, list):
        return [decode(element, resolve) for element in node]
    if isinstance(node, dict):
        if is_tagged(node):
            class_ref = resolve(node.get(config.PKG_KEY), node[config.TYPE_KEY])
            fields = {key: decode(element, resolve)
                      for key, element in node.items() if key not in RESERVED_KEYS}
            return class_ref.hydrate(**fields)
        return {key: decode(element, resolve) for key, element in node.items()}
    return node
