"""Well-known text parsing and formatting

:func:`parse_wkt` is a streaming parser: it emits
:class:`~geoarrow.native.visitor.GeometryVisitor` events while it reads, so
builders receive coordinates without an intermediate geometry tree.
"""

import re

import numpy as np

from geoarrow.native.constants import Dimensions, GeometryType
from geoarrow.native.errors import FormatError, NotYetImplementedError

_TOKEN = re.compile(
    r"\s*(?:"
    r"(?P<number>[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)"
    r"|(?P<word>[A-Za-z]+)"
    r"|(?P<punct>[(),])"
    r"|(?P<other>\S)"
    r")"
)

_SRID_PREFIX = re.compile(r"\s*SRID\s*=\s*-?\d+\s*;", re.IGNORECASE)

_GEOMETRY_TYPES = {
    "POINT": GeometryType.POINT,
    "LINESTRING": GeometryType.LINESTRING,
    "POLYGON": GeometryType.POLYGON,
    "MULTIPOINT": GeometryType.MULTIPOINT,
    "MULTILINESTRING": GeometryType.MULTILINESTRING,
    "MULTIPOLYGON": GeometryType.MULTIPOLYGON,
    "GEOMETRYCOLLECTION": GeometryType.GEOMETRYCOLLECTION,
}

_WKT_NAMES = {v: k for k, v in _GEOMETRY_TYPES.items()}

_NON_FINITE = {"NAN": np.nan, "INF": np.inf, "INFINITY": np.inf}


class _Tokens:
    def __init__(self, text, pos=0):
        self._text = text
        self._pos = pos
        self._peeked = None
        self.ordinates = None

    def peek(self):
        if self._peeked is None:
            self._peeked = self._scan()
        return self._peeked

    def next(self):
        token = self.peek()
        self._peeked = None
        return token

    def _scan(self):
        match = _TOKEN.match(self._text, self._pos)
        if match is None:
            self._pos = len(self._text)
            return ("end", None, self._pos)

        self._pos = match.end()
        kind = match.lastgroup
        return (kind, match.group(kind), match.start(kind))

    def peek_word(self, *words):
        kind, value, _ = self.peek()
        return kind == "word" and value.upper() in words

    def peek_punct(self, value):
        kind, token_value, _ = self.peek()
        return kind == "punct" and token_value == value

    def expect(self, value):
        kind, token_value, pos = self.next()
        if kind != "punct" or token_value != value:
            raise FormatError(
                f"Expected '{value}' but got {_describe(kind, token_value)}", pos
            )


def parse_wkt(text, visitor):
    """Parse one WKT (or EWKT) string into ``visitor`` events

    Examples
    --------

    >>> from geoarrow.native._wkt import parse_wkt
    >>> from geoarrow.native.visitor import GeometryVisitor
    >>> class Coords(GeometryVisitor):
    ...     def __init__(self):
    ...         self.values = []
    ...     def coord(self, values):
    ...         self.values.append(values)
    >>> coords = Coords()
    >>> parse_wkt("LINESTRING (30 10, 10 30)", coords)
    >>> coords.values
    [(30.0, 10.0), (10.0, 30.0)]
    """
    srid = _SRID_PREFIX.match(text)
    tokens = _Tokens(text, srid.end() if srid else 0)
    _parse_geometry(tokens, visitor, in_collection=False)

    kind, value, pos = tokens.next()
    if kind != "end":
        raise FormatError(f"Unexpected {_describe(kind, value)} after geometry", pos)


def _parse_geometry(tokens, visitor, in_collection):
    kind, value, pos = tokens.next()
    if kind != "word" or value.upper() not in _GEOMETRY_TYPES:
        raise FormatError(
            f"Expected geometry type but got {_describe(kind, value)}", pos
        )
    geometry_type = _GEOMETRY_TYPES[value.upper()]

    dimensions = Dimensions.XY
    if tokens.peek_word("Z"):
        tokens.next()
        dimensions = Dimensions.XYZ
    elif tokens.peek_word("M", "ZM"):
        raise NotYetImplementedError(f"WKT with M values ({tokens.next()[1]})")
    tokens.ordinates = 3 if dimensions == Dimensions.XYZ else None

    empty = tokens.peek_word("EMPTY")
    if empty:
        tokens.next()

    visitor.geometry_begin(geometry_type, dimensions)

    if geometry_type == GeometryType.POINT:
        if not empty:
            tokens.expect("(")
            visitor.coord(_parse_coord(tokens))
            tokens.expect(")")
    elif geometry_type == GeometryType.LINESTRING:
        if not empty:
            _parse_coord_list(tokens, visitor)
        visitor.list_end(0)
    elif geometry_type == GeometryType.POLYGON:
        if not empty:
            _parse_list(tokens, lambda: _parse_ring(tokens, visitor, 1))
        visitor.list_end(0)
    elif geometry_type == GeometryType.MULTIPOINT:
        if not empty:
            _parse_list(tokens, lambda: _parse_multipoint_member(tokens, visitor))
        visitor.list_end(0)
    elif geometry_type == GeometryType.MULTILINESTRING:
        if not empty:
            _parse_list(tokens, lambda: _parse_ring(tokens, visitor, 1))
        visitor.list_end(0)
    elif geometry_type == GeometryType.MULTIPOLYGON:
        if not empty:
            _parse_list(tokens, lambda: _parse_polygon_member(tokens, visitor))
        visitor.list_end(0)
    else:
        if in_collection:
            raise NotYetImplementedError("nested GEOMETRYCOLLECTION")
        if not empty:
            _parse_list(tokens, lambda: _parse_geometry(tokens, visitor, True))

    visitor.geometry_end(geometry_type)


def _parse_list(tokens, parse_item):
    tokens.expect("(")
    while True:
        parse_item()
        kind, value, pos = tokens.next()
        if kind == "punct" and value == ")":
            return
        elif kind != "punct" or value != ",":
            raise FormatError(
                f"Expected ',' or ')' but got {_describe(kind, value)}", pos
            )


def _parse_coord_list(tokens, visitor):
    _parse_list(tokens, lambda: visitor.coord(_parse_coord(tokens)))


def _parse_ring(tokens, visitor, level):
    if tokens.peek_word("EMPTY"):
        tokens.next()
    else:
        _parse_coord_list(tokens, visitor)
    visitor.list_end(level)


def _parse_polygon_member(tokens, visitor):
    if tokens.peek_word("EMPTY"):
        tokens.next()
    else:
        _parse_list(tokens, lambda: _parse_ring(tokens, visitor, 2))
    visitor.list_end(1)


def _parse_multipoint_member(tokens, visitor):
    if tokens.peek_punct("("):
        tokens.next()
        visitor.coord(_parse_coord(tokens))
        tokens.expect(")")
    elif tokens.peek_word("EMPTY"):
        tokens.next()
        visitor.coord((np.nan, np.nan))
    else:
        visitor.coord(_parse_coord(tokens))


def _parse_coord(tokens):
    values = []
    while True:
        kind, value, pos = tokens.peek()
        if kind == "number":
            values.append(float(value))
        elif kind == "word" and value.upper() in _NON_FINITE:
            values.append(_NON_FINITE[value.upper()])
        else:
            break
        tokens.next()

    if len(values) == 4:
        raise NotYetImplementedError("WKT coordinates with M values")
    elif len(values) not in (2, 3):
        raise FormatError(f"Expected 2 or 3 ordinates but got {len(values)}", pos)
    elif tokens.ordinates is not None and len(values) != tokens.ordinates:
        raise FormatError(
            f"Expected {tokens.ordinates} ordinates for a Z geometry "
            f"but got {len(values)}",
            pos,
        )
    return tuple(values)


def _describe(kind, value):
    if kind == "end":
        return "end of input"
    return f"'{value}'"


def format_wkt(geom):
    """Format a geometry as WKT

    Examples
    --------

    >>> from geoarrow.native._wkb import read_wkb
    >>> from geoarrow.native._wkt import format_wkt
    >>> format_wkt(read_wkb(bytes.fromhex("01010000000000000000003e400000000000002440")))
    'POINT (30 10)'
    """
    tag = " Z" if geom.dimensions == Dimensions.XYZ else ""
    body = _format_body(geom)
    return f"{_WKT_NAMES[geom.geometry_type]}{tag} {body}"


def _format_body(geom):
    geometry_type = geom.geometry_type
    if geometry_type == GeometryType.POINT:
        coord = geom.coord
        return "EMPTY" if coord is None else f"({_format_coord(coord)})"
    elif geometry_type == GeometryType.LINESTRING:
        return _format_coords(geom.coords)
    elif geometry_type == GeometryType.POLYGON:
        return _format_items(_format_coords(ring.coords) for ring in geom.rings)
    elif geometry_type == GeometryType.MULTIPOINT:
        return _format_items(_format_body(point) for point in geom.points)
    elif geometry_type == GeometryType.MULTILINESTRING:
        return _format_items(_format_coords(ls.coords) for ls in geom.line_strings)
    elif geometry_type == GeometryType.MULTIPOLYGON:
        return _format_items(_format_body(polygon) for polygon in geom.polygons)
    else:
        return _format_items(format_wkt(member) for member in geom.geometries)


def _format_items(items):
    items = list(items)
    if not items:
        return "EMPTY"
    return "(" + ", ".join(items) + ")"


def _format_coords(coords):
    return _format_items(_format_coord(row) for row in np.asarray(coords).tolist())


def _format_coord(coord):
    return " ".join(_format_number(v) for v in coord)


def _format_number(value):
    value = float(value)
    if value.is_integer() and abs(value) < 1e16:
        if value == 0 and np.signbit(value):
            return "-0"
        return str(int(value))
    return repr(value)
