from enum import Enum
from functools import reduce


class NativeEnum(Enum):
    @classmethod
    def create(cls, obj):
        if isinstance(obj, cls):
            return obj
        elif obj is None:
            return cls.UNSPECIFIED
        elif isinstance(obj, str):
            return cls[obj.upper()]
        else:
            raise TypeError(
                f"Can't create {cls.__name__} from object of type {type(obj).__name__}"
            )

    @classmethod
    def coalesce(cls, *args):
        return reduce(cls._coalesce2, args, cls.UNSPECIFIED)

    @classmethod
    def common(cls, *args):
        return reduce(cls._common2, args, cls.UNSPECIFIED)

    @classmethod
    def _coalesce2(cls, value, default):
        if value == cls.UNSPECIFIED:
            return default
        else:
            return value

    @classmethod
    def _common2(cls, lhs, rhs):
        if lhs == cls.UNSPECIFIED:
            return rhs
        elif rhs == cls.UNSPECIFIED:
            return lhs
        elif lhs == rhs:
            return lhs
        elif (lhs, rhs) in _VALUE_COMMON_HELPER:
            return _VALUE_COMMON_HELPER[(lhs, rhs)]
        elif (rhs, lhs) in _VALUE_COMMON_HELPER:
            return _VALUE_COMMON_HELPER[(rhs, lhs)]
        else:
            return None


class Encoding(NativeEnum):
    """Constants for the physical encoding of a geometry column.

    Examples
    --------

    >>> from geoarrow.native import Encoding
    >>> Encoding.LARGE_WKB
    <Encoding.LARGE_WKB: 2>
    """

    UNSPECIFIED = 0
    """Unknown or uninitialized encoding"""

    WKB = 1
    """Well-known binary with 32-bit offsets"""

    LARGE_WKB = 2
    """Well-known binary with 64-bit offsets"""

    WKT = 3
    """Well-known text with 32-bit offsets"""

    LARGE_WKT = 4
    """Well-known text with 64-bit offsets"""

    GEOARROW = 5
    """GeoArrow native nested list encoding"""

    def is_serialized(self):
        return self in (
            Encoding.WKB,
            Encoding.LARGE_WKB,
            Encoding.WKT,
            Encoding.LARGE_WKT,
        )

    def is_large(self):
        return self in (Encoding.LARGE_WKB, Encoding.LARGE_WKT)


class GeometryType(NativeEnum):
    """Constants for geometry type. These values are the same as those used
    in well-known binary (i.e, 0-7). ``GEOMETRY`` identifies a mixed array.

    Examples
    --------

    >>> from geoarrow.native import GeometryType
    >>> GeometryType.MULTIPOINT
    <GeometryType.MULTIPOINT: 4>
    >>> GeometryType.MULTIPOINT.single()
    <GeometryType.POINT: 1>
    """

    UNSPECIFIED = -1
    """Unspecified geometry type"""

    GEOMETRY = 0
    """Unknown or mixed geometry type"""

    POINT = 1
    """Point geometry type"""

    LINESTRING = 2
    """Linestring geometry type"""

    POLYGON = 3
    """Polygon geometry type"""

    MULTIPOINT = 4
    """Multipoint geometry type"""

    MULTILINESTRING = 5
    """Multilinestring geometry type"""

    MULTIPOLYGON = 6
    """Multipolygon geometry type"""

    GEOMETRYCOLLECTION = 7
    """Geometry collection geometry type"""

    def is_multi(self):
        return self in (
            GeometryType.MULTIPOINT,
            GeometryType.MULTILINESTRING,
            GeometryType.MULTIPOLYGON,
        )

    def is_concrete(self):
        return 1 <= self.value <= 6

    def single(self):
        """The single-part member of this type's family"""
        if self.is_multi():
            return GeometryType(self.value - 3)
        return self

    def multi(self):
        """The multi-part member of this type's family"""
        if self in (GeometryType.POINT, GeometryType.LINESTRING, GeometryType.POLYGON):
            return GeometryType(self.value + 3)
        return self

    def depth(self):
        """Number of offset buffers needed to store this type natively"""
        return _GEOMETRY_TYPE_DEPTH[self]

    @classmethod
    def _common2(cls, lhs, rhs):
        out = super()._common2(lhs, rhs)
        if out is not None:
            return out
        else:
            return cls.GEOMETRY


class Dimensions(NativeEnum):
    """Constants for dimensions. Native arrays store ``XY`` or ``XYZ``
    coordinates; the measure dimensions are recognized when reading so that
    a useful error can be raised.

    Examples
    --------

    >>> from geoarrow.native import Dimensions
    >>> Dimensions.XYZ.count()
    3
    """

    UNSPECIFIED = -1
    """Unspecified dimensions"""

    UNKNOWN = 0
    """Unknown or mixed dimensions"""

    XY = 1
    """XY dimensions"""

    XYZ = 2
    """XYZ dimensions"""

    XYM = 3
    """XYM dimensions"""

    XYZM = 4
    """XYZM dimensions"""

    def count(self):
        if self in (Dimensions.UNSPECIFIED, Dimensions.UNKNOWN):
            return 0
        else:
            return len(self.name)

    @classmethod
    def from_count(cls, n):
        if n == 2:
            return cls.XY
        elif n == 3:
            return cls.XYZ
        else:
            raise ValueError(f"Can't create Dimensions from {n} ordinates")

    @classmethod
    def _common2(cls, lhs, rhs):
        out = super()._common2(lhs, rhs)
        if out is not None:
            return out
        else:
            return cls.UNKNOWN


class CoordType(NativeEnum):
    """Constants for coordinate type.

    Examples
    --------

    >>> from geoarrow.native import CoordType
    >>> CoordType.INTERLEAVED
    <CoordType.INTERLEAVED: 2>
    """

    UNSPECIFIED = 0
    """Unknown or uninitialized coordinate type"""

    SEPARATED = 1
    """One contiguous array per dimension (i.e., a struct)"""

    INTERLEAVED = 2
    """A single array containing all dimensions (i.e., a fixed-size list)"""


class EdgeType(NativeEnum):
    """Constants for edge type."""

    UNSPECIFIED = 0
    """Unknown or uninitialized edge type"""

    PLANAR = 1
    """Edges form a Cartesian line on a plane"""

    SPHERICAL = 2
    """Edges are geodesic on a sphere"""


_GEOMETRY_TYPE_DEPTH = {
    GeometryType.POINT: 0,
    GeometryType.LINESTRING: 1,
    GeometryType.POLYGON: 2,
    GeometryType.MULTIPOINT: 1,
    GeometryType.MULTILINESTRING: 2,
    GeometryType.MULTIPOLYGON: 3,
}

_VALUE_COMMON_HELPER = {
    (Encoding.WKB, Encoding.LARGE_WKB): Encoding.LARGE_WKB,
    (Encoding.WKT, Encoding.LARGE_WKT): Encoding.LARGE_WKT,
    (GeometryType.POINT, GeometryType.MULTIPOINT): GeometryType.MULTIPOINT,
    (
        GeometryType.LINESTRING,
        GeometryType.MULTILINESTRING,
    ): GeometryType.MULTILINESTRING,
    (GeometryType.POLYGON, GeometryType.MULTIPOLYGON): GeometryType.MULTIPOLYGON,
    (Dimensions.XY, Dimensions.XYZ): Dimensions.XYZ,
}
