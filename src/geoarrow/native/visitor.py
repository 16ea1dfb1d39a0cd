"""Streaming geometry events

Builders, the WKT parser and :func:`visit_geometry` communicate through the
events of :class:`GeometryVisitor`:

- ``geometry_begin(geometry_type, dimensions)`` starts a geometry (at the
  top level or as a member of a collection).
- ``coord(values)`` / ``coords(array)`` add one coordinate tuple or an
  ``(n, dim)`` block of coordinates.
- ``list_end(level)`` closes a list of coordinates or parts. Level 0 is the
  outermost list of the current geometry (e.g., the rings of a polygon are
  level 0 and each ring's coordinates are level 1).
- ``geometry_end(geometry_type)`` ends the geometry started by the matching
  ``geometry_begin()``.

Collections emit the complete event sequence of each member between their
own ``geometry_begin()`` and ``geometry_end()``.
"""

import numpy as np

from geoarrow.native.constants import GeometryType


class GeometryVisitor:
    def geometry_begin(self, geometry_type, dimensions):
        pass

    def coord(self, values):
        pass

    def coords(self, values):
        for row in values:
            self.coord(tuple(row))

    def list_end(self, level):
        pass

    def geometry_end(self, geometry_type):
        pass


def visit_geometry(geom, visitor):
    """Emit the events describing ``geom``"""
    geometry_type = geom.geometry_type
    visitor.geometry_begin(geometry_type, geom.dimensions)

    if geometry_type == GeometryType.POINT:
        coord = geom.coord
        if coord is not None:
            visitor.coord(coord)
    elif geometry_type == GeometryType.LINESTRING:
        visitor.coords(geom.coords)
        visitor.list_end(0)
    elif geometry_type == GeometryType.POLYGON:
        _visit_rings(geom, visitor, 1)
        visitor.list_end(0)
    elif geometry_type == GeometryType.MULTIPOINT:
        n_dim = geom.dimensions.count()
        for point in geom.points:
            coord = point.coord
            visitor.coord(coord if coord is not None else (np.nan,) * n_dim)
        visitor.list_end(0)
    elif geometry_type == GeometryType.MULTILINESTRING:
        for line_string in geom.line_strings:
            visitor.coords(line_string.coords)
            visitor.list_end(1)
        visitor.list_end(0)
    elif geometry_type == GeometryType.MULTIPOLYGON:
        for polygon in geom.polygons:
            _visit_rings(polygon, visitor, 2)
            visitor.list_end(1)
        visitor.list_end(0)
    elif geometry_type == GeometryType.GEOMETRYCOLLECTION:
        for member in geom.geometries:
            visit_geometry(member, visitor)
    else:
        raise ValueError(f"Can't visit geometry of type {geometry_type}")

    visitor.geometry_end(geometry_type)


def _visit_rings(polygon, visitor, level):
    for ring in polygon.rings:
        visitor.coords(ring.coords)
        visitor.list_end(level)


def as_geometry(obj):
    """Resolve ``obj`` to an object exposing the geometry interface

    Accepts ``None``, geometry views and parsed WKB geometries (anything
    with a ``geometry_type`` attribute), WKB bytes, and objects with a
    ``wkb`` attribute such as shapely geometries.
    """
    if obj is None or isinstance(getattr(obj, "geometry_type", None), GeometryType):
        return obj

    from geoarrow.native._wkb import read_wkb

    if isinstance(obj, (bytes, bytearray, memoryview)):
        return read_wkb(obj)
    elif hasattr(obj, "wkb"):
        return read_wkb(obj.wkb)
    else:
        raise TypeError(
            f"Can't interpret object of type {type(obj).__name__} as a geometry"
        )
