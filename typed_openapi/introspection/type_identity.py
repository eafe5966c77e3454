"""
Type identity - a stable key for a declared type's shape.

Identities are derived from declared types, never from runtime values, so
two values of the same declared type share one identity. Optional and
Annotated wrappers are folded away, and the interchangeable sequence and
mapping containers collapse to one canonical form each; type arguments stay
part of the key so ``list[Foo]`` and ``list[Bar]`` never collide.
"""

import collections.abc
import re
import typing
from dataclasses import dataclass
from typing import Any, Optional, Tuple

try:
    from types import UnionType
except ImportError:  # Python < 3.10
    UnionType = None

_NON_ALNUM = re.compile(r"[^0-9A-Za-z]")

SEQUENCE_ORIGINS = (
    list,
    tuple,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.MutableSet,
    collections.abc.Collection,
    collections.abc.Iterable,
)
MAPPING_ORIGINS = (
    dict,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
)


@dataclass(frozen=True)
class TypeIdentity:
    """Canonical key plus an alphanumeric registry name hint."""

    key: str
    name: str

    def __str__(self) -> str:
        return self.key


def is_union(tp: Any) -> bool:
    origin = typing.get_origin(tp)
    return origin is typing.Union or (UnionType is not None and origin is UnionType)


def unwrap_optional(tp: Any) -> Tuple[Any, bool]:
    """
    Strip Optional / Annotated wrappers

    Returns:
        Tuple of (inner type, was_optional). Unions of several non-None
        members are returned as the Union of those members.
    """
    optional = False
    while True:
        if typing.get_origin(tp) is typing.Annotated:
            tp = typing.get_args(tp)[0]
            continue
        if is_union(tp):
            members = [arg for arg in typing.get_args(tp) if arg is not type(None)]
            if len(members) < len(typing.get_args(tp)):
                optional = True
            if len(members) == 1:
                tp = members[0]
                continue
            if optional:
                tp = typing.Union[tuple(members)]
        return tp, optional


def canonical_origin(tp: Any) -> Optional[str]:
    """Name of the canonical container a declared type folds to, if any"""
    origin = typing.get_origin(tp) or tp
    if origin in SEQUENCE_ORIGINS:
        return "list"
    if origin in MAPPING_ORIGINS:
        return "dict"
    return None


def _base_parts(tp: Any) -> Tuple[str, str]:
    module = getattr(tp, "__module__", "builtins")
    qualname = getattr(tp, "__qualname__", None) or getattr(tp, "_name", None) or repr(tp)
    # Classes defined inside functions are named from the part after <locals>
    local_name = qualname.rsplit("<locals>.", 1)[-1]
    name = "".join(_NON_ALNUM.sub("", part) for part in local_name.split("."))
    return f"{module}.{qualname}", name


def _capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


def identity_of(tp: Any) -> TypeIdentity:
    """
    Derive the type identity of a declared type

    Args:
        tp: Declared type (class, typing alias, Optional[...], ...)

    Returns:
        TypeIdentity
    """
    tp, _ = unwrap_optional(tp)

    if tp is typing.Any:
        return TypeIdentity(key="typing.Any", name="Any")

    args = typing.get_args(tp)
    container = canonical_origin(tp)

    if container == "list":
        # tuple[X, ...] is a homogeneous sequence of X
        item_args = [arg for arg in args if arg is not Ellipsis]
        item = identity_of(item_args[0]) if item_args else identity_of(typing.Any)
        return TypeIdentity(key=f"list[{item.key}]", name=f"List{_capitalize(item.name)}")

    if container == "dict":
        key_id = identity_of(args[0]) if args else identity_of(str)
        value_id = identity_of(args[1]) if len(args) > 1 else identity_of(typing.Any)
        return TypeIdentity(
            key=f"dict[{key_id.key},{value_id.key}]",
            name=f"Dict{_capitalize(key_id.name)}{_capitalize(value_id.name)}",
        )

    origin = typing.get_origin(tp)
    if origin is not None and args:
        # Parameterized user generic, e.g. Page[Item]
        base_key, base_name = _base_parts(origin)
        arg_ids = [identity_of(arg) for arg in args]
        return TypeIdentity(
            key=f"{base_key}[{','.join(arg.key for arg in arg_ids)}]",
            name=base_name + "".join(_capitalize(arg.name) for arg in arg_ids),
        )

    key, name = _base_parts(tp)
    return TypeIdentity(key=key, name=name)
