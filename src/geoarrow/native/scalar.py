"""Zero-copy geometry views

Indexing a native array returns one of the views defined here. A view holds
a reference to the array's buffers and an index range; coordinates are read
on demand.

Views share an informal interface with the geometries parsed by
:func:`geoarrow.native._wkb.read_wkb`, which is what builders, writers and
the bounding rect reducer consume:

- every geometry has ``geometry_type`` and ``dimensions``
- points have ``coord`` (a tuple, or ``None`` when empty)
- linestrings have ``coords`` (an ``(n, dim)`` array) and ``num_coords``
- polygons have ``rings``
- multi geometries have ``parts`` (and ``points``, ``line_strings`` or
  ``polygons``)
- collections have ``geometries``
"""

import numpy as np

from geoarrow.native.constants import GeometryType


class Geometry:
    """Base class for geometry views"""

    geometry_type = GeometryType.GEOMETRY

    __slots__ = ("_coords",)

    @property
    def dimensions(self):
        return self._coords.dimensions

    def to_wkb(self):
        from geoarrow.native._wkb import write_wkb

        return write_wkb(self)

    def to_wkt(self):
        from geoarrow.native._wkt import format_wkt

        return format_wkt(self)

    def to_shapely(self):
        import shapely

        return shapely.from_wkb(self.to_wkb())

    def bounding_rect(self):
        from geoarrow.native.bounding_rect import bounding_rect

        return bounding_rect(self)

    def __eq__(self, other):
        if not isinstance(other, Geometry):
            return NotImplemented
        return (
            self.geometry_type == other.geometry_type
            and self.dimensions == other.dimensions
            and self.to_wkb() == other.to_wkb()
        )

    __hash__ = None

    def __repr__(self):
        wkt = self.to_wkt()
        if len(wkt) > 70:
            wkt = wkt[:66] + "..."
        return f"<{wkt}>"


class Point(Geometry):
    geometry_type = GeometryType.POINT

    __slots__ = ("_index",)

    def __init__(self, coords, index):
        self._coords = coords
        self._index = index

    @property
    def coord(self):
        coord = self._coords.coord(self._index)
        if all(np.isnan(v) for v in coord):
            return None
        return coord

    @property
    def x(self):
        return float(self._coords.ordinate(0)[self._index])

    @property
    def y(self):
        return float(self._coords.ordinate(1)[self._index])

    @property
    def z(self):
        if self._coords.dimensions.count() < 3:
            return None
        return float(self._coords.ordinate(2)[self._index])

    def is_empty(self):
        return self.coord is None


class LineString(Geometry):
    geometry_type = GeometryType.LINESTRING

    __slots__ = ("_start", "_end")

    def __init__(self, coords, start, end):
        self._coords = coords
        self._start = start
        self._end = end

    @property
    def num_coords(self):
        return self._end - self._start

    def __len__(self):
        return self.num_coords

    @property
    def coords(self):
        return self._coords.to_numpy(self._start, self._end)

    def coord(self, i):
        return self._coords.coord(self._start + i)

    def is_empty(self):
        return self._end == self._start


class Polygon(Geometry):
    geometry_type = GeometryType.POLYGON

    __slots__ = ("_ring_offsets", "_start", "_end")

    def __init__(self, coords, ring_offsets, start, end):
        self._coords = coords
        self._ring_offsets = ring_offsets
        self._start = start
        self._end = end

    @property
    def num_rings(self):
        return self._end - self._start

    def ring(self, i):
        return LineString(self._coords, *self._ring_offsets.start_end(self._start + i))

    @property
    def rings(self):
        return [self.ring(i) for i in range(self.num_rings)]

    @property
    def exterior(self):
        return self.ring(0) if self.num_rings else None

    @property
    def interiors(self):
        return self.rings[1:]

    def is_empty(self):
        return self._end == self._start


class MultiPoint(Geometry):
    geometry_type = GeometryType.MULTIPOINT

    __slots__ = ("_start", "_end")

    def __init__(self, coords, start, end):
        self._coords = coords
        self._start = start
        self._end = end

    def __len__(self):
        return self._end - self._start

    @property
    def points(self):
        return [Point(self._coords, i) for i in range(self._start, self._end)]

    parts = points

    @property
    def coords(self):
        return self._coords.to_numpy(self._start, self._end)


class MultiLineString(Geometry):
    geometry_type = GeometryType.MULTILINESTRING

    __slots__ = ("_line_string_offsets", "_start", "_end")

    def __init__(self, coords, line_string_offsets, start, end):
        self._coords = coords
        self._line_string_offsets = line_string_offsets
        self._start = start
        self._end = end

    def __len__(self):
        return self._end - self._start

    @property
    def line_strings(self):
        offsets = self._line_string_offsets
        return [
            LineString(self._coords, *offsets.start_end(i))
            for i in range(self._start, self._end)
        ]

    parts = line_strings


class MultiPolygon(Geometry):
    geometry_type = GeometryType.MULTIPOLYGON

    __slots__ = ("_polygon_offsets", "_ring_offsets", "_start", "_end")

    def __init__(self, coords, polygon_offsets, ring_offsets, start, end):
        self._coords = coords
        self._polygon_offsets = polygon_offsets
        self._ring_offsets = ring_offsets
        self._start = start
        self._end = end

    def __len__(self):
        return self._end - self._start

    @property
    def polygons(self):
        offsets = self._polygon_offsets
        return [
            Polygon(self._coords, self._ring_offsets, *offsets.start_end(i))
            for i in range(self._start, self._end)
        ]

    parts = polygons


class GeometryCollection(Geometry):
    geometry_type = GeometryType.GEOMETRYCOLLECTION

    __slots__ = ("_geometries", "_start", "_end")

    def __init__(self, geometries, start, end):
        self._geometries = geometries
        self._start = start
        self._end = end

    @property
    def dimensions(self):
        return self._geometries.dimensions

    def __len__(self):
        return self._end - self._start

    @property
    def geometries(self):
        return [self._geometries.value(i) for i in range(self._start, self._end)]
