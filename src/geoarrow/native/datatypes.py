from typing import NamedTuple

from geoarrow.native.constants import CoordType, Dimensions, Encoding, GeometryType


class NativeType(NamedTuple):
    """Logical type of a native geometry array

    Examples
    --------

    >>> from geoarrow import native as gn
    >>> gn.point()
    NativeType(geoarrow.point)
    >>> gn.linestring(dimensions="xyz", coord_type="interleaved")
    NativeType(interleaved geoarrow.linestring_z)
    """

    geometry_type: GeometryType = GeometryType.UNSPECIFIED
    """The geometry type: a concrete type, ``GEOMETRY`` for mixed arrays, or
    ``GEOMETRYCOLLECTION``"""

    dimensions: Dimensions = Dimensions.UNSPECIFIED
    """``XY`` or ``XYZ``"""

    coord_type: CoordType = CoordType.UNSPECIFIED
    """``SEPARATED`` or ``INTERLEAVED``"""

    @classmethod
    def create(cls, obj=None, dimensions=None, coord_type=None):
        """Create a ``NativeType`` from a ``NativeType``, a ``GeometryType``
        or its name. Explicitly passed ``dimensions`` or ``coord_type``
        replace those of ``obj``.
        """
        if isinstance(obj, NativeType):
            spec = obj
        elif obj is None or isinstance(obj, (str, GeometryType)):
            spec = NativeType(GeometryType.create(obj))
        else:
            raise TypeError(
                f"Can't create NativeType from object of type {type(obj).__name__}"
            )

        return NativeType(
            spec.geometry_type,
            Dimensions.coalesce(Dimensions.create(dimensions), spec.dimensions),
            CoordType.coalesce(CoordType.create(coord_type), spec.coord_type),
        )

    def with_defaults(self, defaults=None):
        if defaults is None:
            defaults = NATIVE_TYPE_DEFAULTS
        return NativeType(
            GeometryType.coalesce(self.geometry_type, defaults.geometry_type),
            Dimensions.coalesce(self.dimensions, defaults.dimensions),
            CoordType.coalesce(self.coord_type, defaults.coord_type),
        )

    def with_geometry_type(self, geometry_type):
        return self._replace(geometry_type=GeometryType.create(geometry_type))

    def with_dimensions(self, dimensions):
        return self._replace(dimensions=Dimensions.create(dimensions))

    def with_coord_type(self, coord_type):
        return self._replace(coord_type=CoordType.create(coord_type))

    def extension_name(self):
        try:
            return _NATIVE_EXTENSION_NAMES[self.geometry_type]
        except KeyError:
            raise ValueError(f"Can't compute extension name for {self}")

    def to_pyarrow(self):
        """The Arrow storage type of arrays of this type"""
        from geoarrow.native.type_pyarrow import storage_type

        return storage_type(self)

    def extension_field(self, name="geometry", metadata=None):
        from geoarrow.native.type_pyarrow import extension_field

        return extension_field(self, name, metadata)

    def __repr__(self):
        interleaved = self.coord_type == CoordType.INTERLEAVED
        prefix = "interleaved " if interleaved else ""
        try:
            ext_name = self.extension_name()
        except ValueError:
            ext_name = "<unspecified>"
        dims = _DIMENSION_SUFFIX.get(self.dimensions, "")
        return f"NativeType({prefix}{ext_name}{dims})"


class SerializedType(NamedTuple):
    """Logical type of a WKB or WKT array

    Examples
    --------

    >>> from geoarrow import native as gn
    >>> gn.large_wkb().extension_name()
    'geoarrow.wkb'
    """

    encoding: Encoding = Encoding.WKB

    def extension_name(self):
        if self.encoding in (Encoding.WKB, Encoding.LARGE_WKB):
            return "geoarrow.wkb"
        elif self.encoding in (Encoding.WKT, Encoding.LARGE_WKT):
            return "geoarrow.wkt"
        else:
            raise ValueError(f"Can't compute extension name for {self}")

    def to_pyarrow(self):
        from geoarrow.native.type_pyarrow import storage_type

        return storage_type(self)

    def extension_field(self, name="geometry", metadata=None):
        from geoarrow.native.type_pyarrow import extension_field

        return extension_field(self, name, metadata)

    def __repr__(self):
        return f"SerializedType({self.encoding.name.lower()})"


def wkb() -> SerializedType:
    """Well-known binary with a maximum of 2GB of data per array chunk"""
    return SerializedType(Encoding.WKB)


def large_wkb() -> SerializedType:
    """Well-known binary with 64-bit offsets"""
    return SerializedType(Encoding.LARGE_WKB)


def wkt() -> SerializedType:
    """Well-known text with a maximum of 2GB of data per array chunk"""
    return SerializedType(Encoding.WKT)


def large_wkt() -> SerializedType:
    """Well-known text with 64-bit offsets"""
    return SerializedType(Encoding.LARGE_WKT)


def point(dimensions=None, coord_type=None) -> NativeType:
    return NativeType.create(GeometryType.POINT, dimensions, coord_type)


def linestring(dimensions=None, coord_type=None) -> NativeType:
    return NativeType.create(GeometryType.LINESTRING, dimensions, coord_type)


def polygon(dimensions=None, coord_type=None) -> NativeType:
    return NativeType.create(GeometryType.POLYGON, dimensions, coord_type)


def multipoint(dimensions=None, coord_type=None) -> NativeType:
    return NativeType.create(GeometryType.MULTIPOINT, dimensions, coord_type)


def multilinestring(dimensions=None, coord_type=None) -> NativeType:
    return NativeType.create(GeometryType.MULTILINESTRING, dimensions, coord_type)


def multipolygon(dimensions=None, coord_type=None) -> NativeType:
    return NativeType.create(GeometryType.MULTIPOLYGON, dimensions, coord_type)


def mixed(dimensions=None, coord_type=None) -> NativeType:
    """A mixed array of any concrete geometry type"""
    return NativeType.create(GeometryType.GEOMETRY, dimensions, coord_type)


def geometrycollection(dimensions=None, coord_type=None) -> NativeType:
    return NativeType.create(GeometryType.GEOMETRYCOLLECTION, dimensions, coord_type)


NATIVE_TYPE_DEFAULTS = NativeType(
    GeometryType.GEOMETRY, Dimensions.XY, CoordType.SEPARATED
)

_NATIVE_EXTENSION_NAMES = {
    GeometryType.POINT: "geoarrow.point",
    GeometryType.LINESTRING: "geoarrow.linestring",
    GeometryType.POLYGON: "geoarrow.polygon",
    GeometryType.MULTIPOINT: "geoarrow.multipoint",
    GeometryType.MULTILINESTRING: "geoarrow.multilinestring",
    GeometryType.MULTIPOLYGON: "geoarrow.multipolygon",
    GeometryType.GEOMETRY: "geoarrow.geometry",
    GeometryType.GEOMETRYCOLLECTION: "geoarrow.geometrycollection",
}

_GEOMETRY_TYPE_FROM_EXTENSION_NAME = {
    v: k for k, v in _NATIVE_EXTENSION_NAMES.items()
}

_DIMENSION_SUFFIX = {
    Dimensions.XYZ: "_z",
    Dimensions.XYM: "_m",
    Dimensions.XYZM: "_zm",
}
