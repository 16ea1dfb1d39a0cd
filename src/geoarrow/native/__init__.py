"""
Native GeoArrow geometry arrays with well-known binary and well-known text
codecs.

Examples
--------

>>> from geoarrow import native as gn
>>> gn.from_wkt(["POINT (30 10)", "POINT (1 2)"])
PointArray:NativeType(geoarrow.point)[2]
<POINT (30 10)>
<POINT (1 2)>
"""

from geoarrow.native._version import __version__, __version_tuple__  # NOQA: F401

from geoarrow.native.constants import (
    Encoding,
    GeometryType,
    Dimensions,
    CoordType,
    EdgeType,
)

from geoarrow.native.errors import (
    GeoArrowError,
    IncorrectTypeError,
    NotYetImplementedError,
    OffsetOverflowError,
    FormatError,
    MetadataParseError,
)

from geoarrow.native.metadata import ArrayMetadata, CrsType

from geoarrow.native.datatypes import (
    NativeType,
    SerializedType,
    wkb,
    large_wkb,
    wkt,
    large_wkt,
    point,
    linestring,
    polygon,
    multipoint,
    multilinestring,
    multipolygon,
    mixed,
    geometrycollection,
)

from geoarrow.native.coord import CoordBuffer, CoordBufferBuilder
from geoarrow.native.offsets import OffsetBuffer, OffsetBufferBuilder
from geoarrow.native.validity import Validity, ValidityBuilder

from geoarrow.native.capacity import (
    Capacity,
    MixedCapacity,
    GeometryCollectionCapacity,
    WKBCapacity,
)

from geoarrow.native.array import (
    ArrayBase,
    GeometryArray,
    PointArray,
    PointBuilder,
    LineStringArray,
    LineStringBuilder,
    PolygonArray,
    PolygonBuilder,
    MultiPointArray,
    MultiPointBuilder,
    MultiLineStringArray,
    MultiLineStringBuilder,
    MultiPolygonArray,
    MultiPolygonBuilder,
    MixedGeometryArray,
    MixedGeometryBuilder,
    GeometryCollectionArray,
    GeometryCollectionBuilder,
    WKBArray,
    WKTArray,
    builder_class,
)

from geoarrow.native.chunked import ChunkedGeometryArray

from geoarrow.native.downcast import downcast

from geoarrow.native.bounding_rect import (
    BoundingRect,
    bounding_rect,
    bounding_rects,
    total_bounds,
)

from geoarrow.native.io import (
    array,
    from_wkb,
    from_ewkb,
    from_wkt,
    to_wkb,
    to_wkt,
    from_shapely,
    to_shapely,
)

from geoarrow.native.type_pyarrow import from_pyarrow, to_pyarrow


__all__ = [
    "Encoding",
    "GeometryType",
    "Dimensions",
    "CoordType",
    "EdgeType",
    "GeoArrowError",
    "IncorrectTypeError",
    "NotYetImplementedError",
    "OffsetOverflowError",
    "FormatError",
    "MetadataParseError",
    "ArrayMetadata",
    "CrsType",
    "NativeType",
    "SerializedType",
    "wkb",
    "large_wkb",
    "wkt",
    "large_wkt",
    "point",
    "linestring",
    "polygon",
    "multipoint",
    "multilinestring",
    "multipolygon",
    "mixed",
    "geometrycollection",
    "CoordBuffer",
    "CoordBufferBuilder",
    "OffsetBuffer",
    "OffsetBufferBuilder",
    "Validity",
    "ValidityBuilder",
    "Capacity",
    "MixedCapacity",
    "GeometryCollectionCapacity",
    "WKBCapacity",
    "ArrayBase",
    "GeometryArray",
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
    "WKBArray",
    "WKTArray",
    "builder_class",
    "ChunkedGeometryArray",
    "downcast",
    "BoundingRect",
    "bounding_rect",
    "bounding_rects",
    "total_bounds",
    "array",
    "from_wkb",
    "from_ewkb",
    "from_wkt",
    "to_wkb",
    "to_wkt",
    "from_shapely",
    "to_shapely",
    "from_pyarrow",
    "to_pyarrow",
]
