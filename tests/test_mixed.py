import numpy as np
import pytest

from geoarrow import native as gn
from geoarrow.native import (
    GeometryCollectionArray,
    GeometryCollectionBuilder,
    GeometryType,
    MixedGeometryArray,
    MixedGeometryBuilder,
    PointArray,
)
from geoarrow.native._wkb import read_wkb
from geoarrow.native.array import CONCRETE_ARRAYS
from geoarrow.native.errors import (
    GeoArrowError,
    IncorrectTypeError,
    NotYetImplementedError,
)


def parse_all(wkts, type="geometrycollection"):
    wkb = gn.from_wkt(wkts, type, downcast=False).to_wkb()
    return [None if value is None else read_wkb(value) for value in wkb]


def test_mixed_array_from_wkt():
    mixed = gn.from_wkt(
        ["POINT (0 1)", None, "LINESTRING (0 0, 1 1)", "POINT (2 3)"],
        "geometry",
        downcast=False,
    )
    assert isinstance(mixed, MixedGeometryArray)
    assert mixed.data_type == gn.mixed().with_defaults()
    assert mixed.type_ids.tolist() == [1, 1, 2, 1]
    assert mixed.value_offsets.tolist() == [0, 1, 0, 2]
    assert len(mixed.child(GeometryType.POINT)) == 3
    assert len(mixed.child("linestring")) == 1
    assert len(mixed.child("multipolygon")) == 0
    assert set(mixed.children) == set(CONCRETE_ARRAYS)

    assert mixed.null_count == 1
    assert mixed[1] is None
    assert mixed[2].geometry_type == GeometryType.LINESTRING
    assert mixed.to_wkt()[3] == "POINT (2 3)"


def test_mixed_array_validity_follows_children():
    points = PointArray.from_xy([0.0, 1.0], [0.0, 1.0], validity=[True, False])
    mixed = MixedGeometryArray([1, 1, 1], [1, 0, 1], {"point": points})
    assert mixed.null_count == 2
    assert [geom is None for geom in mixed] == [True, False, True]

    sliced = mixed.slice(1, 2)
    assert sliced.null_count == 1
    assert sliced[0].coord == (0.0, 0.0)


def test_mixed_array_validation():
    points = PointArray.from_xy([0.0], [1.0])

    with pytest.raises(GeoArrowError, match="value_offsets out of range"):
        MixedGeometryArray([1], [5], {"point": points})

    with pytest.raises(GeoArrowError, match="Unknown type id 9"):
        MixedGeometryArray([9], [0], {"point": points})

    with pytest.raises(GeoArrowError, match="equal length"):
        MixedGeometryArray([1, 1], [0], {"point": points})

    with pytest.raises(GeoArrowError, match="Expected LINESTRING child"):
        MixedGeometryArray([1], [0], {"linestring": points})

    lines = gn.from_wkt(["LINESTRING Z (0 0 0, 1 1 1)"])
    with pytest.raises(GeoArrowError, match="same dimensions"):
        MixedGeometryArray([1], [0], {"point": points, "linestring": lines})


def test_mixed_array_empty_children():
    mixed = MixedGeometryArray([], [], dimensions="xyz", coord_type="interleaved")
    assert len(mixed) == 0
    assert mixed.data_type == gn.mixed("xyz", "interleaved")
    assert all(len(child) == 0 for child in mixed.children.values())


def test_mixed_builder_prefer_multi():
    mixed = gn.from_wkt(
        ["POINT (0 1)", "LINESTRING (0 0, 1 1)", "POLYGON ((0 0, 1 0, 0 0))"],
        "geometry",
        prefer_multi=True,
        downcast=False,
    )
    assert mixed.type_ids.tolist() == [4, 5, 6]
    assert [geom.geometry_type for geom in mixed] == [
        GeometryType.MULTIPOINT,
        GeometryType.MULTILINESTRING,
        GeometryType.MULTIPOLYGON,
    ]


def test_mixed_builder_collections():
    mixed = gn.from_wkt(
        ["GEOMETRYCOLLECTION (POINT (0 1))", "POINT (1 2)"], "geometry", downcast=False
    )
    assert mixed.type_ids.tolist() == [1, 1]
    assert mixed[0].to_wkt() == "POINT (0 1)"

    with pytest.raises(IncorrectTypeError, match="more than one member"):
        gn.from_wkt(
            ["GEOMETRYCOLLECTION (POINT (0 1), POINT (1 2))"],
            "geometry",
            downcast=False,
        )

    with pytest.raises(IncorrectTypeError, match="empty GEOMETRYCOLLECTION"):
        gn.from_wkt(["GEOMETRYCOLLECTION EMPTY"], "geometry", downcast=False)

    with pytest.raises(IncorrectTypeError):
        MixedGeometryBuilder.measure(
            parse_all(["GEOMETRYCOLLECTION (POINT (0 1), POINT (1 2))"])
        )


def test_mixed_capacity_is_exact():
    geoms = parse_all(
        [
            "POINT (0 1)",
            None,
            "MULTIPOLYGON (((0 0, 1 0, 0 0)), ((2 2, 3 2, 2 2)))",
            "LINESTRING (0 0, 1 1)",
            "GEOMETRYCOLLECTION (MULTIPOINT (0 0, 1 1))",
        ]
    )
    for prefer_multi in (False, True):
        capacity = MixedGeometryBuilder.measure(geoms, prefer_multi=prefer_multi)
        mixed = MixedGeometryBuilder.from_geometries(geoms, prefer_multi=prefer_multi)
        assert mixed.buffer_lengths() == capacity
        assert capacity.geom == 5


def test_sliced_mixed_capacity_is_exact():
    geoms = parse_all(
        [
            "POINT (0 1)",
            None,
            "MULTIPOLYGON (((0 0, 1 0, 0 0)), ((2 2, 3 2, 2 2)))",
            "LINESTRING (0 0, 1 1)",
            "GEOMETRYCOLLECTION (MULTIPOINT (0 0, 1 1))",
        ]
    )
    mixed = MixedGeometryBuilder.from_geometries(geoms)

    for offset, length in [(0, 1), (1, 1), (3, 2), (2, 0)]:
        sliced = mixed.slice(offset, length)
        expected = MixedGeometryBuilder.measure(geoms[offset : offset + length])
        assert sliced.buffer_lengths() == expected

    capacity = mixed.slice(0, 1).buffer_lengths()
    assert capacity.children[GeometryType.POINT].geom == 1
    assert capacity.children[GeometryType.LINESTRING].geom == 0
    assert capacity.children[GeometryType.LINESTRING].coord == 0


def test_mixed_coord_type_and_offsets():
    mixed = gn.from_wkt(
        ["POINT (0 1)", "LINESTRING (0 0, 1 1)"], "geometry", downcast=False
    )
    interleaved = mixed.with_coord_type("interleaved")
    assert interleaved.coord_type == gn.CoordType.INTERLEAVED
    assert interleaved[1] == mixed[1]

    large = mixed.to_large()
    assert large.is_large
    assert large.child("polygon").is_large
    assert large.to_small() == mixed


def test_geometry_collection_array():
    collections = gn.from_wkt(
        [
            "GEOMETRYCOLLECTION (POINT (0 1), LINESTRING (0 0, 1 1))",
            None,
            "GEOMETRYCOLLECTION EMPTY",
            "POINT (2 3)",
        ],
        "geometrycollection",
        downcast=False,
    )
    assert isinstance(collections, GeometryCollectionArray)
    assert len(collections) == 4
    assert collections.geom_offsets.to_numpy().tolist() == [0, 2, 2, 2, 3]
    assert len(collections.geometries) == 3
    assert collections.null_count == 1

    first = collections[0]
    assert len(first) == 2
    assert [geom.geometry_type for geom in first.geometries] == [
        GeometryType.POINT,
        GeometryType.LINESTRING,
    ]
    assert collections[1] is None
    assert len(collections[2]) == 0

    wkt = collections.to_wkt()
    assert list(wkt) == [
        "GEOMETRYCOLLECTION (POINT (0 1), LINESTRING (0 0, 1 1))",
        None,
        "GEOMETRYCOLLECTION EMPTY",
        "GEOMETRYCOLLECTION (POINT (2 3))",
    ]


def test_geometry_collection_slice():
    collections = gn.from_wkt(
        [
            "GEOMETRYCOLLECTION (POINT (0 1), POINT (1 2))",
            "GEOMETRYCOLLECTION (POINT (3 4))",
        ],
        "geometrycollection",
        downcast=False,
    )
    sliced = collections.slice(1, 1)
    assert sliced.geometries is collections.geometries
    assert sliced[0].geometries[0].coord == (3.0, 4.0)
    assert sliced.to_wkt()[0] == "GEOMETRYCOLLECTION (POINT (3 4))"


def test_geometry_collection_to_mixed():
    collections = gn.from_wkt(
        ["GEOMETRYCOLLECTION (POINT (0 1))", None, "GEOMETRYCOLLECTION (POINT (2 3))"],
        "geometrycollection",
        downcast=False,
    )
    mixed = collections.to_mixed()
    assert isinstance(mixed, MixedGeometryArray)
    assert len(mixed) == 3
    assert mixed[1] is None
    assert mixed.to_wkt()[2] == "POINT (2 3)"

    multiple = gn.from_wkt(
        ["GEOMETRYCOLLECTION (POINT (0 1), POINT (2 3))"],
        "geometrycollection",
        downcast=False,
    )
    with pytest.raises(IncorrectTypeError):
        multiple.to_mixed()


def test_geometry_collection_from_mixed():
    mixed = gn.from_wkt(
        ["POINT (0 1)", None, "LINESTRING (0 0, 1 1)"], "geometry", downcast=False
    )
    collections = GeometryCollectionArray.from_mixed(mixed)
    assert collections.geom_offsets.to_numpy().tolist() == [0, 1, 2, 3]
    assert collections.null_count == 1
    assert collections.geometries is not mixed
    assert collections.to_mixed() == mixed


def test_geometry_collection_validation():
    members = gn.from_wkt(["POINT (0 1)"], "geometry", downcast=False)
    with pytest.raises(GeoArrowError, match="only 1 are available"):
        GeometryCollectionArray(members, [0, 2])

    with pytest.raises(GeoArrowError, match="validity of length"):
        GeometryCollectionArray(members, [0, 1], validity=[True, False])


def test_geometry_collection_capacity_is_exact():
    geoms = parse_all(
        [
            "GEOMETRYCOLLECTION (POINT (0 1), LINESTRING (0 0, 1 1))",
            None,
            "GEOMETRYCOLLECTION EMPTY",
            "MULTIPOINT (0 1, 2 3)",
        ]
    )
    capacity = GeometryCollectionBuilder.measure(geoms)
    collections = GeometryCollectionBuilder.from_geometries(geoms)
    assert collections.buffer_lengths() == capacity
    assert capacity.geom == 4
    assert capacity.mixed.geom == 3


def test_nested_collections_not_implemented():
    with pytest.raises(NotYetImplementedError):
        gn.from_wkt(["GEOMETRYCOLLECTION (GEOMETRYCOLLECTION (POINT (0 1)))"])


@pytest.mark.parametrize(
    "wkts",
    [
        ["POINT (0 1)", None, "POINT EMPTY"],
        ["LINESTRING (0 1, 2 3)", None, "LINESTRING EMPTY"],
        ["POLYGON ((0 0, 1 0, 0 0))", None],
        ["MULTIPOINT (0 1)", None, "MULTIPOINT (0 1, 2 3)"],
        ["MULTILINESTRING ((0 1, 2 3))", None],
        ["MULTIPOLYGON (((0 0, 1 0, 0 0)))", None],
        ["POINT Z (0 1 2)", None],
    ],
)
def test_upcast_is_lossless(wkts):
    array = gn.from_wkt(wkts).with_metadata("OGC:CRS84")
    assert array.geometry_type.is_concrete()

    assert array.to_mixed().downcast() == array
    assert array.to_geometry_collection().downcast() == array
    assert array.to_mixed().to_geometry_collection().to_mixed().downcast() == array

    interleaved = array.with_coord_type("interleaved")
    assert interleaved.to_mixed().downcast() == interleaved


def test_mixed_geometry_equality_uses_values():
    points = gn.from_wkt(["POINT (0 1)"])
    mixed = points.to_mixed()
    assert mixed[0] == points[0]
    assert np.array_equal(mixed.type_ids, [1])
