import pytest

from geoarrow.native.constants import (
    CoordType,
    Dimensions,
    EdgeType,
    Encoding,
    GeometryType,
)


def test_enum_create_from_input():
    # Can create enum values from an enum value, a string, or None
    assert Encoding.create(Encoding.WKB) is Encoding.WKB
    assert Encoding.create("wkb") is Encoding.WKB
    assert Encoding.create(None) is Encoding.UNSPECIFIED

    with pytest.raises(KeyError):
        Encoding.create("not a valid option")

    with pytest.raises(TypeError):
        Encoding.create(b"123")


def test_enum_coalesce():
    assert Encoding.coalesce(Encoding.WKB, Encoding.UNSPECIFIED) is Encoding.WKB
    assert Encoding.coalesce(Encoding.UNSPECIFIED, Encoding.WKB) is Encoding.WKB
    assert Encoding.coalesce() is Encoding.UNSPECIFIED


def test_enum_common():
    assert Encoding.common(Encoding.WKB, Encoding.WKB) is Encoding.WKB
    assert Encoding.common(Encoding.WKB, Encoding.UNSPECIFIED) is Encoding.WKB
    assert Encoding.common(Encoding.WKB, Encoding.LARGE_WKB) is Encoding.LARGE_WKB
    assert Encoding.common(Encoding.LARGE_WKB, Encoding.WKB) is Encoding.LARGE_WKB
    assert EdgeType._common2(EdgeType.SPHERICAL, EdgeType.PLANAR) is None


def test_encoding_properties():
    assert Encoding.WKB.is_serialized() is True
    assert Encoding.GEOARROW.is_serialized() is False
    assert Encoding.LARGE_WKT.is_large() is True
    assert Encoding.WKT.is_large() is False


def test_geometry_type_common():
    assert GeometryType.common(GeometryType.POINT) is GeometryType.POINT
    assert (
        GeometryType.common(GeometryType.POINT, GeometryType.MULTIPOINT)
        is GeometryType.MULTIPOINT
    )
    assert (
        GeometryType.common(GeometryType.POINT, GeometryType.LINESTRING)
        is GeometryType.GEOMETRY
    )
    assert (
        GeometryType.common(
            GeometryType.POLYGON, GeometryType.MULTIPOLYGON, GeometryType.POLYGON
        )
        is GeometryType.MULTIPOLYGON
    )


def test_geometry_type_families():
    assert GeometryType.MULTILINESTRING.single() is GeometryType.LINESTRING
    assert GeometryType.POLYGON.multi() is GeometryType.MULTIPOLYGON
    assert GeometryType.POINT.single() is GeometryType.POINT
    assert GeometryType.MULTIPOINT.is_multi() is True
    assert GeometryType.GEOMETRYCOLLECTION.is_multi() is False
    assert GeometryType.GEOMETRY.is_concrete() is False
    assert GeometryType.MULTIPOLYGON.is_concrete() is True


def test_geometry_type_depth():
    assert GeometryType.POINT.depth() == 0
    assert GeometryType.LINESTRING.depth() == 1
    assert GeometryType.MULTIPOINT.depth() == 1
    assert GeometryType.POLYGON.depth() == 2
    assert GeometryType.MULTILINESTRING.depth() == 2
    assert GeometryType.MULTIPOLYGON.depth() == 3


def test_dimensions():
    assert Dimensions.XY.count() == 2
    assert Dimensions.XYZM.count() == 4
    assert Dimensions.UNKNOWN.count() == 0
    assert Dimensions.from_count(3) is Dimensions.XYZ
    assert Dimensions.common(Dimensions.XY, Dimensions.XYZ) is Dimensions.XYZ
    assert Dimensions.common(Dimensions.XYZ, Dimensions.XYM) is Dimensions.UNKNOWN

    with pytest.raises(ValueError):
        Dimensions.from_count(4)


def test_coord_type():
    assert CoordType.create("interleaved") is CoordType.INTERLEAVED
    assert CoordType.coalesce(CoordType.UNSPECIFIED, CoordType.SEPARATED) is (
        CoordType.SEPARATED
    )
