"""
Flagstore bindings: where an option writes its value.

An option never aliases caller memory. It holds a binding, a tiny object with
two methods:

    get() -> current value
    set(value) -> None

The caller keeps the storage (a cell, an object, a mapping) alive for as long
as the registry entry is used.

Provided bindings
- Variable[_T]: a standalone mutable cell (`.value`), the closest thing to a
  plain program variable.
- Attribute: reads/writes an attribute of some owner object (argparse-style
  namespaces, dataclass instances, modules).
- Item: reads/writes a key of a mutable mapping (config dicts).
- bind(target, key): picks one of the above for you.

Quick example
    >>> threads = Variable(4)
    >>> threads.set(8)
    >>> threads.value
    8
    >>> settings = {"host": "localhost"}
    >>> bind(settings, "host").get()
    'localhost'
"""
from collections.abc import MutableMapping

from .utils import *


class Variable[_T]:
    """
    Caller-owned mutable cell.

    The cell is the unit of ownership: registering it hands the registry a
    reference to the cell, never a copy of its value.
    """
    __slots__ = ("value",)

    def __init__(self, value=None, /):
        self.value = value

    def get(self):
        return self.value

    def set(self, value, /):
        self.value = value

    def __rich_repr__(self):
        yield self.value

    def __repr__(self):
        return "variable(%r)" % (self.value,)


class Attribute:
    """
    Binding over `getattr(owner, name)` / `setattr(owner, name, value)`.
    """
    __slots__ = ("owner", "name")

    def __init__(self, owner, name, /):
        if not isinstance(name, str):
            raise TypeError("attribute binding name must be a string")
        if not name.isidentifier():
            raise ValueError("attribute binding name must be a valid identifier")
        self.owner = owner
        self.name = name

    def get(self):
        return getattr(self.owner, self.name)

    def set(self, value, /):
        setattr(self.owner, self.name, value)

    def __repr__(self):
        return "attribute(%s.%s)" % (type(self.owner).__name__, self.name)


class Item:
    """
    Binding over `mapping[key]`.

    Reading before any value was stored raises KeyError. Registry.make seeds
    a missing key with None when the variant is given by kind= or options.
    """
    __slots__ = ("mapping", "key")

    def __init__(self, mapping, key, /):
        if not isinstance(mapping, MutableMapping):
            raise TypeError("item binding requires a mutable mapping")
        self.mapping = mapping
        self.key = key

    def get(self):
        return self.mapping[self.key]

    def set(self, value, /):
        self.mapping[self.key] = value

    def __repr__(self):
        return "item(%r)" % (self.key,)


def supports_binding(object, /):
    """
    True when `object` already satisfies the binding protocol (get/set callables).
    """
    return callable(getattr(object, "get", None)) and callable(getattr(object, "set", None))


def bind(target, key=Unset, /):
    """
    Build a binding for `target`.

    resolution
    - no key and target already has get()/set(): returned unchanged.
    - key given and target is a mutable mapping: Item(target, key).
    - key given otherwise: Attribute(target, key).

    a bare mapping (dict has get() but no set()) or any other object without a
    key cannot be bound and raises TypeError.
    """
    if key is Unset:
        if supports_binding(target):
            return target
        raise TypeError("bind() argument must provide get() and set(), or be given with a key")
    if isinstance(target, MutableMapping):
        return Item(target, key)
    return Attribute(target, key)


__all__ = (
    "Variable",
    "Attribute",
    "Item",
    "bind",
    "supports_binding",
)
