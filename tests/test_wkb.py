import struct

import numpy as np
import pytest

from geoarrow.native import Dimensions, GeometryType
from geoarrow.native.errors import FormatError, NotYetImplementedError
from geoarrow.native._wkb import (
    infer_dimensions,
    read_header,
    read_wkb,
    wkb_size,
    write_wkb,
)

POINT_30_10 = bytes.fromhex("01010000000000000000003e400000000000002440")


def header(type_code, endian="<", srid=None):
    byte_order = 1 if endian == "<" else 0
    if srid is None:
        return struct.pack(endian + "BI", byte_order, type_code)
    return struct.pack(endian + "BIi", byte_order, type_code | 0x20000000, srid)


def coords_wkb(coords, endian="<"):
    out = struct.pack(endian + "I", len(coords))
    for coord in coords:
        out += struct.pack(endian + "d" * len(coord), *coord)
    return out


def point_wkb(coord, endian="<", type_code=None):
    if type_code is None:
        type_code = 1 if len(coord) == 2 else 1001
    return header(type_code, endian) + struct.pack(endian + "d" * len(coord), *coord)


def linestring_wkb(coords, endian="<"):
    type_code = 2 if len(coords[0]) == 2 else 1002
    return header(type_code, endian) + coords_wkb(coords, endian)


def polygon_wkb(rings, endian="<"):
    out = header(3, endian) + struct.pack(endian + "I", len(rings))
    for ring in rings:
        out += coords_wkb(ring, endian)
    return out


def multi_wkb(type_code, parts, endian="<"):
    count = struct.pack(endian + "I", len(parts))
    return header(type_code, endian) + count + b"".join(parts)


RING = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 0.0)]
HOLE = [(1.0, 1.0), (2.0, 1.0), (2.0, 2.0), (1.0, 1.0)]

EXAMPLES = [
    POINT_30_10,
    point_wkb((1.0, 2.0, 3.0)),
    linestring_wkb([(30.0, 10.0), (10.0, 30.0), (40.0, 40.0)]),
    linestring_wkb([(1.0, 2.0, 3.0), (4.0, 5.0, 6.0)]),
    header(2) + coords_wkb([]),
    polygon_wkb([RING, HOLE]),
    polygon_wkb([]),
    multi_wkb(4, [point_wkb((10.0, 40.0)), point_wkb((40.0, 30.0))]),
    multi_wkb(
        5,
        [
            linestring_wkb([(10.0, 10.0), (20.0, 20.0)]),
            linestring_wkb([(40.0, 40.0), (30.0, 30.0)]),
        ],
    ),
    multi_wkb(6, [polygon_wkb([RING]), polygon_wkb([RING, HOLE])]),
    multi_wkb(7, [POINT_30_10, linestring_wkb([(10.0, 10.0), (20.0, 20.0)])]),
    multi_wkb(7, []),
]


def test_read_point():
    geom = read_wkb(POINT_30_10)
    assert geom.geometry_type == GeometryType.POINT
    assert geom.dimensions == Dimensions.XY
    assert geom.coord == (30.0, 10.0)
    assert geom.srid is None


def test_read_empty_point():
    geom = read_wkb(point_wkb((np.nan, np.nan)))
    assert geom.coord is None


def test_read_linestring_z():
    geom = read_wkb(linestring_wkb([(1.0, 2.0, 3.0), (4.0, 5.0, 6.0)]))
    assert geom.geometry_type == GeometryType.LINESTRING
    assert geom.dimensions == Dimensions.XYZ
    assert geom.num_coords == 2
    assert geom.coords.tolist() == [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]


def test_read_polygon():
    geom = read_wkb(polygon_wkb([RING, HOLE]))
    assert geom.geometry_type == GeometryType.POLYGON
    assert len(geom.rings) == 2
    assert geom.rings[1].coords.tolist() == [list(c) for c in HOLE]


def test_read_multi_and_collection():
    multipoint = read_wkb(EXAMPLES[7])
    assert multipoint.geometry_type == GeometryType.MULTIPOINT
    assert [p.coord for p in multipoint.points] == [(10.0, 40.0), (40.0, 30.0)]

    multipolygon = read_wkb(EXAMPLES[9])
    assert [len(p.rings) for p in multipolygon.polygons] == [1, 2]

    collection = read_wkb(EXAMPLES[10])
    assert collection.geometry_type == GeometryType.GEOMETRYCOLLECTION
    assert [g.geometry_type for g in collection.geometries] == [
        GeometryType.POINT,
        GeometryType.LINESTRING,
    ]


def test_read_big_endian():
    geom = read_wkb(linestring_wkb([(1.0, 2.0), (3.0, 4.0)], endian=">"))
    assert geom.coords.tolist() == [[1.0, 2.0], [3.0, 4.0]]
    assert write_wkb(geom) == linestring_wkb([(1.0, 2.0), (3.0, 4.0)])


def test_read_ewkb():
    ewkb = bytes.fromhex("0101000020e61000000000000000003e400000000000002440")
    geom = read_wkb(ewkb)
    assert geom.srid == 4326
    assert geom.coord == (30.0, 10.0)

    # EWKB Z flag
    ewkb_z = header(0x80000001) + struct.pack("<ddd", 1, 2, 3)
    geom = read_wkb(ewkb_z)
    assert geom.dimensions == Dimensions.XYZ
    assert write_wkb(geom) == point_wkb((1.0, 2.0, 3.0))


def test_read_measured_not_implemented():
    with pytest.raises(NotYetImplementedError):
        read_wkb(header(2001) + struct.pack("<ddd", 1, 2, 3))

    with pytest.raises(NotYetImplementedError):
        read_wkb(header(3001) + struct.pack("<dddd", 1, 2, 3, 4))

    with pytest.raises(NotYetImplementedError):
        read_wkb(header(0x40000001) + struct.pack("<ddd", 1, 2, 3))


def test_read_invalid():
    with pytest.raises(FormatError, match="byte order"):
        read_wkb(b"\x02" + POINT_30_10[1:])

    with pytest.raises(FormatError, match="Unknown WKB geometry type"):
        read_wkb(header(99) + struct.pack("<dd", 1, 2))

    with pytest.raises(FormatError, match="Malformed WKB"):
        read_wkb(POINT_30_10[:-1])

    with pytest.raises(FormatError, match="trailing bytes") as excinfo:
        read_wkb(POINT_30_10 + b"\x00")
    assert excinfo.value.position == len(POINT_30_10)

    with pytest.raises(FormatError, match="Expected POINT member"):
        read_wkb(multi_wkb(4, [linestring_wkb([(1.0, 2.0)])]))


def test_read_header():
    assert read_header(POINT_30_10) == (GeometryType.POINT, Dimensions.XY)
    assert read_header(EXAMPLES[3]) == (GeometryType.LINESTRING, Dimensions.XYZ)

    with pytest.raises(FormatError):
        read_header(b"\x01")


def test_infer_dimensions():
    assert infer_dimensions([POINT_30_10, None]) == Dimensions.XY
    assert infer_dimensions([None, POINT_30_10, EXAMPLES[1]]) == Dimensions.XYZ
    assert infer_dimensions([]) == Dimensions.XY


@pytest.mark.parametrize("wkb", EXAMPLES)
def test_write_round_trip(wkb):
    geom = read_wkb(wkb)
    assert wkb_size(geom) == len(wkb)
    assert write_wkb(geom) == wkb


def test_write_with_dimensions():
    geom = read_wkb(POINT_30_10)
    wkb_z = write_wkb(geom, Dimensions.XYZ)
    assert len(wkb_z) == wkb_size(geom, Dimensions.XYZ) == 29
    geom_z = read_wkb(wkb_z)
    assert geom_z.dimensions == Dimensions.XYZ
    assert geom_z.coord[:2] == (30.0, 10.0)
    assert np.isnan(geom_z.coord[2])
