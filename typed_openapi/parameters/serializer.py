"""
Style serializer - flattens parameter content per OpenAPI style rules.

Content at this level is a scalar, a sequence of scalars or a mapping of
scalars (deepObject also allows nested mappings). Every scalar is written
as text and percent-encoded before delimiters are added, so delimiters in
the output are always structural.

Style table (name=color):
    simple          [a, b]       -> color=a,b
    simple          {r: 1, g: 2} -> color=r,1,g,2      (explode: r=1,g=2)
    form            [a, b]       -> color=a&color=b    (no explode: color=a,b)
    form            {r: 1, g: 2} -> r=1&g=2            (no explode: color=r,1,g,2)
    spaceDelimited  [a, b]       -> color=a%20b
    pipeDelimited   [a, b]       -> color=a|b
    deepObject      {r: 1, g: 2} -> color[r]=1&color[g]=2
    matrix          [a, b]       -> color=;color=a,b
    label           [a, b]       -> color=.a,b
"""

import base64
import logging
import re
from typing import Dict, Iterable, List, Optional, Set, Tuple
from urllib.parse import quote, unquote

from typed_openapi.document.models import ParameterStyle
from typed_openapi.errors import DecodingMismatch, UnsupportedShape
from typed_openapi.introspection import TraversalKind
from typed_openapi.schema.values import (
    BoolValue,
    BytesValue,
    FloatValue,
    IntValue,
    MappingValue,
    NullValue,
    SequenceValue,
    StringValue,
    StructuralValue,
    is_scalar,
    kind_of,
)

from .options import ParameterEntry

logger = logging.getLogger(__name__)

# RFC 3986 reserved characters, kept as-is when allowReserved is set
RESERVED_CHARACTERS = ":/?#[]@!$&'()*+,;="

DEEP_OBJECT_KEY = re.compile(r"\[([^\[\]]*)\]")

SPACE_DELIMITERS = ("%20", " ")


def scalar_text(node: StructuralValue) -> str:
    """Plain-text form of a scalar node"""
    if isinstance(node, NullValue):
        return ""
    if isinstance(node, BoolValue):
        return "true" if node.value else "false"
    if isinstance(node, (IntValue, FloatValue)):
        return repr(node.value)
    if isinstance(node, StringValue):
        return node.value
    if isinstance(node, BytesValue):
        return base64.b64encode(node.value).decode("ascii")
    raise UnsupportedShape(f"Expected a scalar parameter value, got {kind_of(node)}")


class StyleSerializer:
    """
    Serializes and parses one parameter's content for a style

    Usage:
    ```python
    serializer = StyleSerializer()
    serializer.serialize("color", content, ParameterStyle.DEEP_OBJECT, explode=True)
    # [("color[r]", "100"), ("color[g]", "200"), ("color[b]", "150")]
    ```
    """

    def __init__(self, percent_encode: bool = True):
        self.percent_encode = percent_encode

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def _text(self, node: StructuralValue, allow_reserved: bool) -> str:
        text = scalar_text(node)
        if not self.percent_encode:
            return text
        return quote(text, safe=RESERVED_CHARACTERS if allow_reserved else "")

    def _key(self, key: str) -> str:
        return quote(key, safe="") if self.percent_encode else key

    def _scalars(self, node: SequenceValue, allow_reserved: bool) -> List[str]:
        return [self._text(item, allow_reserved) for item in self._flat_items(node)]

    def _pairs(self, node: MappingValue, allow_reserved: bool) -> List[Tuple[str, str]]:
        pairs = []
        for key, item in node:
            if not is_scalar(item):
                raise UnsupportedShape(
                    f"Nested {kind_of(item)} under {key!r} cannot be serialized in this style"
                )
            pairs.append((self._key(key), self._text(item, allow_reserved)))
        return pairs

    @staticmethod
    def _flat_items(node: SequenceValue) -> Iterable[StructuralValue]:
        for item in node:
            if not is_scalar(item):
                raise UnsupportedShape(
                    f"Nested {kind_of(item)} in a sequence cannot be serialized as a parameter"
                )
            yield item

    def serialize(
        self,
        name: str,
        content: StructuralValue,
        style: ParameterStyle,
        explode: bool,
        allow_reserved: bool = False,
    ) -> List[ParameterEntry]:
        """
        Serialize one parameter

        Args:
            name: Parameter name
            content: Scalar, sequence or mapping structural value
            style: Serialization style
            explode: Explode flag
            allow_reserved: Keep reserved characters unencoded

        Returns:
            Ordered parameter entries

        Raises:
            UnsupportedShape: If the style cannot carry this content
        """
        style = ParameterStyle(style)
        handlers = {
            ParameterStyle.SIMPLE: self._serialize_simple,
            ParameterStyle.FORM: self._serialize_form,
            ParameterStyle.SPACE_DELIMITED: self._serialize_delimited,
            ParameterStyle.PIPE_DELIMITED: self._serialize_delimited,
            ParameterStyle.DEEP_OBJECT: self._serialize_deep_object,
            ParameterStyle.MATRIX: self._serialize_matrix,
            ParameterStyle.LABEL: self._serialize_label,
        }
        entries = handlers[style](name, content, style, explode, allow_reserved)
        logger.debug(f"Serialized {name} as {style.value} (explode={explode}): {len(entries)} entries")
        return entries

    def _serialize_simple(self, name, content, style, explode, allow_reserved):
        if isinstance(content, SequenceValue):
            return [ParameterEntry(name, ",".join(self._scalars(content, allow_reserved)))]
        if isinstance(content, MappingValue):
            pairs = self._pairs(content, allow_reserved)
            if explode:
                return [ParameterEntry(name, ",".join(f"{k}={v}" for k, v in pairs))]
            return [ParameterEntry(name, ",".join(token for pair in pairs for token in pair))]
        return [ParameterEntry(name, self._text(content, allow_reserved))]

    def _serialize_form(self, name, content, style, explode, allow_reserved):
        if isinstance(content, SequenceValue):
            items = self._scalars(content, allow_reserved)
            if explode:
                return [ParameterEntry(name, item) for item in items]
            return [ParameterEntry(name, ",".join(items))]
        if isinstance(content, MappingValue):
            pairs = self._pairs(content, allow_reserved)
            if explode:
                return [ParameterEntry(k, v) for k, v in pairs]
            return [ParameterEntry(name, ",".join(token for pair in pairs for token in pair))]
        return [ParameterEntry(name, self._text(content, allow_reserved))]

    def _serialize_delimited(self, name, content, style, explode, allow_reserved):
        if not isinstance(content, SequenceValue):
            raise UnsupportedShape(f"{style.value} parameter {name!r} must be a sequence")
        items = self._scalars(content, allow_reserved)
        if explode:
            return [ParameterEntry(name, item) for item in items]
        if style == ParameterStyle.PIPE_DELIMITED:
            delimiter = "|"
        else:
            delimiter = "%20" if self.percent_encode else " "
        return [ParameterEntry(name, delimiter.join(items))]

    def _serialize_deep_object(self, name, content, style, explode, allow_reserved):
        if not isinstance(content, MappingValue):
            raise UnsupportedShape(f"deepObject parameter {name!r} must be an object")
        entries = []
        for key, item in content:
            entry_name = f"{name}[{self._key(key)}]"
            if isinstance(item, MappingValue):
                entries.extend(self._serialize_deep_object(entry_name, item, style, explode, allow_reserved))
            elif isinstance(item, SequenceValue):
                raise UnsupportedShape(f"deepObject parameter {name!r} cannot hold arrays")
            else:
                entries.append(ParameterEntry(entry_name, self._text(item, allow_reserved)))
        return entries

    def _serialize_matrix(self, name, content, style, explode, allow_reserved):
        if isinstance(content, SequenceValue):
            items = self._scalars(content, allow_reserved)
            if explode:
                return [ParameterEntry(name, "".join(f";{name}={item}" for item in items))]
            return [ParameterEntry(name, f";{name}=" + ",".join(items))]
        if isinstance(content, MappingValue):
            pairs = self._pairs(content, allow_reserved)
            if explode:
                return [ParameterEntry(name, "".join(f";{k}={v}" for k, v in pairs))]
            return [ParameterEntry(name, f";{name}=" + ",".join(t for pair in pairs for t in pair))]
        return [ParameterEntry(name, f";{name}={self._text(content, allow_reserved)}")]

    def _serialize_label(self, name, content, style, explode, allow_reserved):
        if isinstance(content, SequenceValue):
            items = self._scalars(content, allow_reserved)
            return [ParameterEntry(name, "." + ("." if explode else ",").join(items))]
        if isinstance(content, MappingValue):
            pairs = self._pairs(content, allow_reserved)
            if explode:
                return [ParameterEntry(name, "." + ".".join(f"{k}={v}" for k, v in pairs))]
            return [ParameterEntry(name, "." + ",".join(t for pair in pairs for t in pair))]
        return [ParameterEntry(name, "." + self._text(content, allow_reserved))]

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def deserialize(
        self,
        name: str,
        entries: List[ParameterEntry],
        style: ParameterStyle,
        explode: bool,
        shape: TraversalKind,
        keys: Optional[Set[str]] = None,
        claimed: Optional[Set[str]] = None,
    ) -> Optional[StructuralValue]:
        """
        Rebuild one parameter's content from entries

        Args:
            name: Parameter name
            entries: All entries of the location
            style: Serialization style
            explode: Explode flag
            shape: Expected content shape
            keys: Known keys of an exploded form object (None for free-form maps)
            claimed: Entry names owned by other parameters

        Returns:
            Content with String leaves, or None when the parameter is absent

        Raises:
            DecodingMismatch: If the entries do not match the style
        """
        style = ParameterStyle(style)

        if style == ParameterStyle.DEEP_OBJECT:
            if shape != TraversalKind.KEYED:
                raise UnsupportedShape(f"deepObject parameter {name!r} must be an object")
            return self._deserialize_deep_object(name, entries)

        if style == ParameterStyle.FORM and explode and shape == TraversalKind.KEYED:
            claimed = claimed or set()
            pairs = [
                (entry.name, entry.value) for entry in entries
                if (entry.name in keys if keys is not None else entry.name not in claimed)
            ]
            return self._mapping(pairs) if pairs else None

        if style in (ParameterStyle.FORM, ParameterStyle.SPACE_DELIMITED, ParameterStyle.PIPE_DELIMITED) \
                and explode and shape == TraversalKind.UNKEYED:
            values = [entry.value for entry in entries if entry.name == name]
            return self._sequence(values) if values else None

        raw = next((entry.value for entry in entries if entry.name == name), None)
        if raw is None:
            return None

        if style == ParameterStyle.MATRIX:
            return self._deserialize_matrix(name, raw, explode, shape)
        if style == ParameterStyle.LABEL:
            return self._deserialize_label(name, raw, explode, shape)

        if shape == TraversalKind.SCALAR:
            return StringValue(unquote(raw))

        if shape == TraversalKind.UNKEYED:
            if style == ParameterStyle.PIPE_DELIMITED:
                return self._sequence(self._items(raw, ("|",)))
            if style == ParameterStyle.SPACE_DELIMITED:
                return self._sequence(self._items(raw, SPACE_DELIMITERS))
            return self._sequence(self._items(raw, (",",)))

        tokens = self._split(raw, (",",))
        if style == ParameterStyle.SIMPLE and explode:
            return self._mapping([self._key_value(token, name) for token in tokens])
        return self._mapping(self._alternating(tokens, name))

    def _deserialize_deep_object(self, name: str, entries: List[ParameterEntry]) -> Optional[StructuralValue]:
        prefix = f"{name}["
        tree: Dict[str, object] = {}
        found = False
        for entry in entries:
            if not entry.name.startswith(prefix):
                continue
            remainder = entry.name[len(name):]
            keys = DEEP_OBJECT_KEY.findall(remainder)
            if "".join(f"[{key}]" for key in keys) != remainder or not keys:
                raise DecodingMismatch(f"malformed deepObject key {entry.name!r}", name)
            found = True
            node = tree
            for key in keys[:-1]:
                node = node.setdefault(unquote(key), {})
                if not isinstance(node, dict):
                    raise DecodingMismatch(f"conflicting deepObject key {entry.name!r}", name)
            node[unquote(keys[-1])] = unquote(entry.value)
        return self._tree(tree) if found else None

    def _deserialize_matrix(self, name, raw, explode, shape):
        if shape == TraversalKind.KEYED and explode:
            parts = [part for part in raw.split(";") if part]
            return self._mapping([self._key_value(part, name) for part in parts])
        if shape == TraversalKind.UNKEYED and explode:
            parts = [part for part in raw.split(";") if part]
            values = []
            for part in parts:
                key, _, value = part.partition("=")
                if key != name:
                    raise DecodingMismatch(f"unexpected matrix segment {part!r}", name)
                values.append(value)
            return self._sequence(values)
        prefix = f";{name}="
        if not raw.startswith(prefix):
            raise DecodingMismatch(f"matrix value must start with {prefix!r}", name)
        return self._from_delimited(raw[len(prefix):], shape, name)

    def _deserialize_label(self, name, raw, explode, shape):
        if not raw.startswith("."):
            raise DecodingMismatch("label value must start with '.'", name)
        body = raw[1:]
        if shape == TraversalKind.SCALAR:
            return StringValue(unquote(body))
        if explode:
            if shape == TraversalKind.KEYED:
                tokens = self._split(body, (".",))
                return self._mapping([self._key_value(token, name) for token in tokens])
            return self._sequence(self._items(body, (".",)))
        return self._from_delimited(body, shape, name)

    def _from_delimited(self, body: str, shape: TraversalKind, name: str) -> StructuralValue:
        if shape == TraversalKind.SCALAR:
            return StringValue(unquote(body))
        if shape == TraversalKind.UNKEYED:
            return self._sequence(self._items(body, (",",)))
        return self._mapping(self._alternating(self._split(body, (",",)), name))

    @staticmethod
    def _split(raw: str, delimiters: Tuple[str, ...]) -> List[str]:
        if raw == "":
            return []
        tokens = [raw]
        for delimiter in delimiters:
            tokens = [piece for token in tokens for piece in token.split(delimiter)]
        return tokens

    @classmethod
    def _items(cls, raw: str, delimiters: Tuple[str, ...]) -> List[str]:
        # Empty arrays are never emitted, so a present empty value is [""]
        return cls._split(raw, delimiters) or [""]

    @staticmethod
    def _alternating(tokens: List[str], name: str) -> List[Tuple[str, str]]:
        if len(tokens) % 2:
            raise DecodingMismatch("object value needs an even number of key/value tokens", name)
        return list(zip(tokens[0::2], tokens[1::2]))

    @staticmethod
    def _key_value(token: str, name: str) -> Tuple[str, str]:
        key, separator, value = token.partition("=")
        if not separator:
            raise DecodingMismatch(f"expected key=value, got {token!r}", name)
        return key, value

    @staticmethod
    def _sequence(values: List[str]) -> SequenceValue:
        return SequenceValue(tuple(StringValue(unquote(value)) for value in values))

    @staticmethod
    def _mapping(pairs: List[Tuple[str, str]]) -> MappingValue:
        try:
            return MappingValue.from_pairs([(unquote(key), StringValue(unquote(value))) for key, value in pairs])
        except ValueError as e:
            raise DecodingMismatch(str(e)) from e

    @classmethod
    def _tree(cls, tree: Dict[str, object]) -> MappingValue:
        pairs = []
        for key, value in tree.items():
            if isinstance(value, dict):
                pairs.append((key, cls._tree(value)))
            else:
                pairs.append((key, StringValue(value)))
        return MappingValue.from_pairs(pairs)
