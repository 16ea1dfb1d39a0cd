"""Native geometry arrays and their builders"""

from geoarrow.native.array.base import ArrayBase, GeometryArray, NestedGeometryArray
from geoarrow.native.array.builder import GeometryBuilder, NestedBuilder
from geoarrow.native.array.point import PointArray, PointBuilder
from geoarrow.native.array.linestring import LineStringArray, LineStringBuilder
from geoarrow.native.array.polygon import PolygonArray, PolygonBuilder
from geoarrow.native.array.multipoint import MultiPointArray, MultiPointBuilder
from geoarrow.native.array.multilinestring import (
    MultiLineStringArray,
    MultiLineStringBuilder,
)
from geoarrow.native.array.multipolygon import MultiPolygonArray, MultiPolygonBuilder
from geoarrow.native.array.mixed import (
    CONCRETE_ARRAYS,
    CONCRETE_BUILDERS,
    MixedGeometryArray,
    MixedGeometryBuilder,
)
from geoarrow.native.array.geometrycollection import (
    GeometryCollectionArray,
    GeometryCollectionBuilder,
)
from geoarrow.native.array.serialized import SerializedArray, WKBArray, WKTArray
from geoarrow.native.constants import GeometryType


def builder_class(geometry_type):
    """The builder class for arrays of ``geometry_type``

    ``GEOMETRY`` (or ``None``) selects the mixed builder.

    Examples
    --------

    >>> from geoarrow.native.array import builder_class
    >>> builder_class("multipoint")
    <class 'geoarrow.native.array.multipoint.MultiPointBuilder'>
    """
    geometry_type = GeometryType.coalesce(
        GeometryType.create(geometry_type), GeometryType.GEOMETRY
    )
    if geometry_type == GeometryType.GEOMETRY:
        return MixedGeometryBuilder
    elif geometry_type == GeometryType.GEOMETRYCOLLECTION:
        return GeometryCollectionBuilder
    else:
        return CONCRETE_BUILDERS[geometry_type]


__all__ = [
    "ArrayBase",
    "GeometryArray",
    "NestedGeometryArray",
    "GeometryBuilder",
    "NestedBuilder",
    "PointArray",
    "PointBuilder",
    "LineStringArray",
    "LineStringBuilder",
    "PolygonArray",
    "PolygonBuilder",
    "MultiPointArray",
    "MultiPointBuilder",
    "MultiLineStringArray",
    "MultiLineStringBuilder",
    "MultiPolygonArray",
    "MultiPolygonBuilder",
    "MixedGeometryArray",
    "MixedGeometryBuilder",
    "GeometryCollectionArray",
    "GeometryCollectionBuilder",
    "SerializedArray",
    "WKBArray",
    "WKTArray",
    "CONCRETE_ARRAYS",
    "CONCRETE_BUILDERS",
    "builder_class",
]
