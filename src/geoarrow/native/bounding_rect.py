"""Axis-aligned bounding rectangles

:class:`BoundingRect` is an accumulator: it starts at ``(+inf, -inf)`` for
every axis and widens as coordinates are added. Merging two accumulators
(:meth:`BoundingRect.update` or ``+``) is associative and commutative, so
chunks can be reduced independently and merged in any order.
"""

import math

import numpy as np

from geoarrow.native.constants import GeometryType


class BoundingRect:
    """Cartesian bounds of zero or more geometries

    ``nan`` ordinates are ignored. The z bounds are ``None`` until a
    coordinate with a z value has been added.

    Examples
    --------

    >>> from geoarrow.native.bounding_rect import BoundingRect
    >>> rect = BoundingRect()
    >>> rect.add_coord((0, 0))
    >>> rect.add_coord((10, 10))
    >>> rect.bounds
    (0.0, 0.0, 10.0, 10.0)
    >>> rect.minz is None
    True
    """

    __slots__ = ("_mins", "_maxs")

    def __init__(self):
        self._mins = [math.inf, math.inf, math.inf]
        self._maxs = [-math.inf, -math.inf, -math.inf]

    @classmethod
    def from_bounds(cls, minx, miny, maxx, maxy, minz=None, maxz=None):
        rect = cls()
        rect._mins = [
            float(minx),
            float(miny),
            math.inf if minz is None else float(minz),
        ]
        rect._maxs = [
            float(maxx),
            float(maxy),
            -math.inf if maxz is None else float(maxz),
        ]
        return rect

    @property
    def minx(self):
        return self._mins[0]

    @property
    def miny(self):
        return self._mins[1]

    @property
    def minz(self):
        return None if self._mins[2] == math.inf else self._mins[2]

    @property
    def maxx(self):
        return self._maxs[0]

    @property
    def maxy(self):
        return self._maxs[1]

    @property
    def maxz(self):
        return None if self._maxs[2] == -math.inf else self._maxs[2]

    @property
    def bounds(self):
        """``(minx, miny, maxx, maxy)``"""
        return (self.minx, self.miny, self.maxx, self.maxy)

    def to_tuple(self):
        """``(minx, miny, minz, maxx, maxy, maxz)`` with ``None`` for absent z"""
        return (self.minx, self.miny, self.minz, self.maxx, self.maxy, self.maxz)

    def is_empty(self):
        return self._mins[0] > self._maxs[0]

    def __eq__(self, other):
        if not isinstance(other, BoundingRect):
            return NotImplemented
        return self._mins == other._mins and self._maxs == other._maxs

    __hash__ = None

    def __repr__(self):
        if self.minz is None:
            return f"BoundingRect{self.bounds}"
        return f"BoundingRect{self.to_tuple()}"

    def add_coord(self, coord):
        mins, maxs = self._mins, self._maxs
        for j, value in enumerate(coord[:3]):
            if value != value:
                continue
            if value < mins[j]:
                mins[j] = float(value)
            if value > maxs[j]:
                maxs[j] = float(value)

    def add_coords(self, coords):
        """Add the rows of an ``(n, dim)`` array of coordinates"""
        coords = np.asarray(coords, dtype=np.float64)
        if coords.shape[0] == 0:
            return
        self.add_coord(np.fmin.reduce(coords[:, :3], axis=0).tolist())
        self.add_coord(np.fmax.reduce(coords[:, :3], axis=0).tolist())

    def add_point(self, point):
        coord = point.coord
        if coord is not None:
            self.add_coord(coord)

    def add_line_string(self, line_string):
        self.add_coords(line_string.coords)

    def add_polygon(self, polygon):
        for ring in polygon.rings:
            self.add_line_string(ring)

    def add_multi_point(self, multi_point):
        for point in multi_point.points:
            self.add_point(point)

    def add_multi_line_string(self, multi_line_string):
        for line_string in multi_line_string.line_strings:
            self.add_line_string(line_string)

    def add_multi_polygon(self, multi_polygon):
        for polygon in multi_polygon.polygons:
            self.add_polygon(polygon)

    def add_geometry_collection(self, collection):
        for member in collection.geometries:
            self.add_geometry(member)

    def add_geometry(self, geom):
        """Add any geometry, dispatching on its type. ``None`` is ignored."""
        if geom is None:
            return
        getattr(self, _ADD_METHOD[geom.geometry_type])(geom)

    def add_rect(self, other):
        for j in range(3):
            self._mins[j] = min(self._mins[j], other._mins[j])
            self._maxs[j] = max(self._maxs[j], other._maxs[j])

    def update(self, other):
        """Merge ``other`` into this rect and return it"""
        self.add_rect(other)
        return self

    def __add__(self, other):
        if not isinstance(other, BoundingRect):
            return NotImplemented
        out = BoundingRect()
        out.add_rect(self)
        out.add_rect(other)
        return out


_ADD_METHOD = {
    GeometryType.POINT: "add_point",
    GeometryType.LINESTRING: "add_line_string",
    GeometryType.POLYGON: "add_polygon",
    GeometryType.MULTIPOINT: "add_multi_point",
    GeometryType.MULTILINESTRING: "add_multi_line_string",
    GeometryType.MULTIPOLYGON: "add_multi_polygon",
    GeometryType.GEOMETRYCOLLECTION: "add_geometry_collection",
}


def bounding_rect(geom):
    """The bounding rect of one geometry (or WKB value)

    >>> from geoarrow.native.bounding_rect import bounding_rect
    >>> from geoarrow.native._wkb import read_wkb
    >>> bounding_rect(read_wkb(bytes.fromhex("01010000000000000000003e400000000000002440")))
    BoundingRect(30.0, 10.0, 30.0, 10.0)
    """
    from geoarrow.native.visitor import as_geometry

    rect = BoundingRect()
    rect.add_geometry(as_geometry(geom))
    return rect


def bounding_rects(array):
    """An ``(n, 4)`` array of ``minx, miny, maxx, maxy`` for each slot

    Rows for null or empty geometries are ``nan``.
    """
    out = np.full((len(array), 4), np.nan)
    for i, geom in enumerate(_geometries(array)):
        if geom is None:
            continue
        rect = bounding_rect(geom)
        if not rect.is_empty():
            out[i] = rect.bounds
    return out


def total_bounds(array):
    """The bounding rect of every valid geometry in an array or chunked array"""
    from geoarrow.native.array import NestedGeometryArray, PointArray
    from geoarrow.native.chunked import ChunkedGeometryArray

    if isinstance(array, ChunkedGeometryArray):
        return sum(array.map(total_bounds), BoundingRect())

    rect = BoundingRect()
    if isinstance(array, PointArray):
        rect.add_coords(array.coords.to_numpy()[array._valid_mask()])
    elif isinstance(array, NestedGeometryArray) and array.null_count == 0:
        start, end = array.referenced_ranges()[-1]
        rect.add_coords(array.coords.to_numpy(start, end))
    else:
        for geom in _geometries(array):
            rect.add_geometry(geom)
    return rect


def _geometries(array):
    from geoarrow.native.array import WKBArray
    from geoarrow.native._wkb import read_wkb

    if isinstance(array, WKBArray):
        return (None if value is None else read_wkb(value) for value in array)
    return iter(array)
