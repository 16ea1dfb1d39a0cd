"""Well-known binary reading and writing

:func:`read_wkb` parses ISO WKB and EWKB into lightweight geometry objects
whose coordinates are numpy views over the input bytes. :func:`wkb_size` and
:func:`write_wkb_into` write ISO WKB (little endian) into a preallocated
buffer, which lets whole arrays be written with a single allocation.
"""

import struct

import numpy as np

from geoarrow.native.constants import Dimensions, GeometryType
from geoarrow.native.errors import FormatError, GeoArrowError, NotYetImplementedError

_EWKB_Z = 0x80000000
_EWKB_M = 0x40000000
_EWKB_SRID = 0x20000000
_EWKB_FLAGS = _EWKB_Z | _EWKB_M | _EWKB_SRID


class WKBGeometry:
    """Base class for parsed WKB geometries"""

    geometry_type = GeometryType.GEOMETRY

    __slots__ = ("dimensions", "srid")

    def __init__(self, dimensions, srid=None):
        self.dimensions = dimensions
        self.srid = srid

    def __repr__(self):
        from geoarrow.native._wkt import format_wkt

        return f"{type(self).__name__}({format_wkt(self)})"


class WKBPoint(WKBGeometry):
    geometry_type = GeometryType.POINT

    __slots__ = ("coord",)

    def __init__(self, dimensions, coord, srid=None):
        super().__init__(dimensions, srid)
        self.coord = coord


class WKBLineString(WKBGeometry):
    geometry_type = GeometryType.LINESTRING

    __slots__ = ("coords",)

    def __init__(self, dimensions, coords, srid=None):
        super().__init__(dimensions, srid)
        self.coords = coords

    @property
    def num_coords(self):
        return len(self.coords)


class WKBPolygon(WKBGeometry):
    geometry_type = GeometryType.POLYGON

    __slots__ = ("rings",)

    def __init__(self, dimensions, rings, srid=None):
        super().__init__(dimensions, srid)
        self.rings = rings


class WKBMultiGeometry(WKBGeometry):
    __slots__ = ("parts",)

    def __init__(self, dimensions, parts, srid=None):
        super().__init__(dimensions, srid)
        self.parts = parts


class WKBMultiPoint(WKBMultiGeometry):
    geometry_type = GeometryType.MULTIPOINT

    @property
    def points(self):
        return self.parts


class WKBMultiLineString(WKBMultiGeometry):
    geometry_type = GeometryType.MULTILINESTRING

    @property
    def line_strings(self):
        return self.parts


class WKBMultiPolygon(WKBMultiGeometry):
    geometry_type = GeometryType.MULTIPOLYGON

    @property
    def polygons(self):
        return self.parts


class WKBGeometryCollection(WKBMultiGeometry):
    geometry_type = GeometryType.GEOMETRYCOLLECTION

    @property
    def geometries(self):
        return self.parts


def read_wkb(buf):
    """Parse one WKB or EWKB value

    Examples
    --------

    >>> from geoarrow.native._wkb import read_wkb
    >>> geom = read_wkb(bytes.fromhex("01010000000000000000003e400000000000002440"))
    >>> geom.geometry_type
    <GeometryType.POINT: 1>
    >>> geom.coord
    (30.0, 10.0)
    """
    mv = _as_memoryview(buf)
    try:
        geom, end = _read_geometry(mv, 0)
    except GeoArrowError:
        raise
    except (struct.error, ValueError, IndexError) as e:
        raise FormatError(f"Malformed WKB: {e}") from e

    if end != len(mv):
        raise FormatError(
            f"Unexpected {len(mv) - end} trailing bytes after WKB geometry",
            position=end,
        )
    return geom


def read_header(buf):
    """Read the geometry type and dimensions of a WKB value without parsing
    its coordinates.
    """
    mv = _as_memoryview(buf)
    try:
        geometry_type, dimensions, _, _, _ = _read_header(mv, 0)
    except GeoArrowError:
        raise
    except (struct.error, IndexError) as e:
        raise FormatError(f"Malformed WKB header: {e}") from e
    return geometry_type, dimensions


def infer_dimensions(values):
    """``XYZ`` if any of the non-null WKB values is 3D, else ``XY``"""
    for value in values:
        if value is not None and read_header(value)[1] == Dimensions.XYZ:
            return Dimensions.XYZ
    return Dimensions.XY


def _as_memoryview(buf):
    mv = memoryview(buf)
    if mv.format != "B":
        mv = mv.cast("B")
    return mv


def _read_header(mv, pos):
    byte_order = mv[pos]
    if byte_order == 1:
        endian = "<"
    elif byte_order == 0:
        endian = ">"
    else:
        raise FormatError(f"Invalid WKB byte order {byte_order}", position=pos)

    (code,) = struct.unpack_from(endian + "I", mv, pos + 1)
    pos += 5

    srid = None
    if code & _EWKB_SRID:
        (srid,) = struct.unpack_from(endian + "i", mv, pos)
        pos += 4

    has_z = bool(code & _EWKB_Z)
    has_m = bool(code & _EWKB_M)
    code &= ~_EWKB_FLAGS & 0xFFFFFFFF
    iso_dims, type_code = divmod(code, 1000)
    has_z = has_z or iso_dims in (1, 3)
    has_m = has_m or iso_dims in (2, 3)

    if iso_dims > 3 or not (1 <= type_code <= 7):
        if 8 <= type_code <= 17 and iso_dims <= 3:
            raise NotYetImplementedError(f"WKB geometry type code {code}")
        raise FormatError(f"Unknown WKB geometry type code {code}", position=pos - 4)

    if has_m:
        raise NotYetImplementedError(f"WKB geometry with M values (type code {code})")

    dimensions = Dimensions.XYZ if has_z else Dimensions.XY
    return GeometryType(type_code), dimensions, endian, srid, pos


def _read_geometry(mv, pos, expected=None):
    geometry_type, dimensions, endian, srid, pos = _read_header(mv, pos)
    if expected is not None and geometry_type != expected:
        raise FormatError(
            f"Expected {expected.name} member but got {geometry_type.name}",
            position=pos,
        )

    n_dim = dimensions.count()
    if geometry_type == GeometryType.POINT:
        coord = struct.unpack_from(endian + "d" * n_dim, mv, pos)
        pos += 8 * n_dim
        if all(v != v for v in coord):
            coord = None
        return WKBPoint(dimensions, coord, srid), pos
    elif geometry_type == GeometryType.LINESTRING:
        coords, pos = _read_coords(mv, pos, endian, n_dim)
        return WKBLineString(dimensions, coords, srid), pos
    elif geometry_type == GeometryType.POLYGON:
        (n_rings,) = struct.unpack_from(endian + "I", mv, pos)
        pos += 4
        rings = []
        for _ in range(n_rings):
            coords, pos = _read_coords(mv, pos, endian, n_dim)
            rings.append(WKBLineString(dimensions, coords))
        return WKBPolygon(dimensions, rings, srid), pos

    (n_parts,) = struct.unpack_from(endian + "I", mv, pos)
    pos += 4
    member_type = _MULTI_MEMBER_TYPE[geometry_type]
    parts = []
    for _ in range(n_parts):
        part, pos = _read_geometry(mv, pos, member_type)
        parts.append(part)
    return _MULTI_CLASSES[geometry_type](dimensions, parts, srid), pos


def _read_coords(mv, pos, endian, n_dim):
    (n,) = struct.unpack_from(endian + "I", mv, pos)
    pos += 4
    coords = np.frombuffer(mv, dtype=endian + "f8", count=n * n_dim, offset=pos)
    return coords.reshape(n, n_dim), pos + 8 * n * n_dim


def wkb_size(geom, dimensions=None):
    """Number of bytes needed to write ``geom`` as ISO WKB"""
    n_dim = (dimensions or geom.dimensions).count()
    geometry_type = geom.geometry_type
    if geometry_type == GeometryType.POINT:
        return 5 + 8 * n_dim
    elif geometry_type == GeometryType.LINESTRING:
        return 9 + 8 * n_dim * geom.num_coords
    elif geometry_type == GeometryType.POLYGON:
        return 9 + sum(4 + 8 * n_dim * ring.num_coords for ring in geom.rings)
    elif geometry_type == GeometryType.MULTIPOINT:
        return 9 + len(geom.points) * (5 + 8 * n_dim)
    elif geometry_type == GeometryType.GEOMETRYCOLLECTION:
        return 9 + sum(wkb_size(member, dimensions) for member in geom.geometries)
    else:
        return 9 + sum(wkb_size(part, dimensions) for part in geom.parts)


def write_wkb(geom, dimensions=None):
    """Write ``geom`` as little-endian ISO WKB"""
    dimensions = dimensions or geom.dimensions
    buf = np.empty(wkb_size(geom, dimensions), dtype=np.uint8)
    end = write_wkb_into(buf, 0, geom, dimensions)
    if end != len(buf):
        raise GeoArrowError(f"Expected to write {len(buf)} bytes but wrote {end}")
    return buf.tobytes()


def write_wkb_into(buf, pos, geom, dimensions):
    """Write ``geom`` into the uint8 array ``buf`` starting at ``pos``

    Returns the position after the last byte written.
    """
    geometry_type = geom.geometry_type
    n_dim = dimensions.count()
    type_code = geometry_type.value + (1000 if dimensions == Dimensions.XYZ else 0)

    struct.pack_into("<BI", buf, pos, 1, type_code)
    pos += 5

    if geometry_type == GeometryType.POINT:
        coord = geom.coord
        if coord is None:
            coord = (np.nan,) * n_dim
        return _write_coords(buf, pos, np.asarray([coord], dtype=np.float64), n_dim)
    elif geometry_type == GeometryType.LINESTRING:
        struct.pack_into("<I", buf, pos, geom.num_coords)
        return _write_coords(buf, pos + 4, geom.coords, n_dim)
    elif geometry_type == GeometryType.POLYGON:
        rings = geom.rings
        struct.pack_into("<I", buf, pos, len(rings))
        pos += 4
        for ring in rings:
            struct.pack_into("<I", buf, pos, ring.num_coords)
            pos = _write_coords(buf, pos + 4, ring.coords, n_dim)
        return pos

    if geometry_type == GeometryType.GEOMETRYCOLLECTION:
        parts = geom.geometries
    else:
        parts = geom.parts
    struct.pack_into("<I", buf, pos, len(parts))
    pos += 4
    for part in parts:
        pos = write_wkb_into(buf, pos, part, dimensions)
    return pos


def _write_coords(buf, pos, coords, n_dim):
    coords = np.asarray(coords)
    n = coords.shape[0]
    if n == 0:
        return pos

    if coords.shape[1] != n_dim:
        fitted = np.full((n, n_dim), np.nan)
        n_common = min(n_dim, coords.shape[1])
        fitted[:, :n_common] = coords[:, :n_common]
        coords = fitted

    values = np.ascontiguousarray(coords, dtype="<f8").reshape(-1).view(np.uint8)
    buf[pos : (pos + len(values))] = values
    return pos + len(values)


_MULTI_MEMBER_TYPE = {
    GeometryType.MULTIPOINT: GeometryType.POINT,
    GeometryType.MULTILINESTRING: GeometryType.LINESTRING,
    GeometryType.MULTIPOLYGON: GeometryType.POLYGON,
    GeometryType.GEOMETRYCOLLECTION: None,
}

_MULTI_CLASSES = {
    GeometryType.MULTIPOINT: WKBMultiPoint,
    GeometryType.MULTILINESTRING: WKBMultiLineString,
    GeometryType.MULTIPOLYGON: WKBMultiPolygon,
    GeometryType.GEOMETRYCOLLECTION: WKBGeometryCollection,
}
