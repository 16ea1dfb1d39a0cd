import json

import pyarrow as pa
import pytest

from geoarrow import native as gn
from geoarrow.native import (
    ChunkedGeometryArray,
    GeometryType,
    Dimensions,
    LineStringArray,
    MultiPointArray,
    MultiPolygonArray,
    PointArray,
    PolygonArray,
)
from geoarrow.native.errors import GeoArrowError
from geoarrow.native.type_pyarrow import (
    EXTENSION_METADATA_KEY,
    EXTENSION_NAME_KEY,
    storage_type,
    union_type_code,
)


def test_serialized_type_constructors():
    assert gn.wkb() == gn.SerializedType(gn.Encoding.WKB)
    assert gn.wkt() == gn.SerializedType(gn.Encoding.WKT)
    assert gn.large_wkb() == gn.SerializedType(gn.Encoding.LARGE_WKB)
    assert gn.large_wkt().extension_name() == "geoarrow.wkt"

    wkb_array = gn.array(["POINT (0 1)"], gn.wkb())
    assert wkb_array.data_type == gn.wkb()
    assert list(gn.array(wkb_array, gn.wkt())) == ["POINT (0 1)"]


def test_storage_type_serialized():
    assert storage_type(gn.wkb()) == pa.binary()
    assert storage_type(gn.large_wkb()) == pa.large_binary()
    assert storage_type(gn.wkt()) == pa.utf8()
    assert storage_type(gn.large_wkt()) == pa.large_utf8()


def test_storage_type_point():
    separated = storage_type(gn.point())
    assert pa.types.is_struct(separated)
    assert [separated.field(i).name for i in range(separated.num_fields)] == ["x", "y"]
    assert not separated.field(0).nullable

    interleaved = storage_type(gn.point("xyz", "interleaved"))
    assert pa.types.is_fixed_size_list(interleaved)
    assert interleaved.list_size == 3
    assert interleaved.value_field.name == "xyz"


def test_storage_type_nested():
    polygon = storage_type(gn.polygon())
    assert polygon.value_field.name == "rings"
    assert polygon.value_type.value_field.name == "vertices"
    assert not polygon.value_field.nullable

    multipolygon = storage_type(gn.multipolygon(), large=True)
    assert pa.types.is_large_list(multipolygon)
    assert multipolygon.value_field.name == "polygons"

    assert storage_type(gn.multipoint()).value_field.name == "points"
    assert storage_type(gn.multilinestring()).value_field.name == "linestrings"


def test_storage_type_union():
    union = storage_type(gn.mixed())
    assert isinstance(union, pa.DenseUnionType)
    assert union.type_codes == [1, 2, 3, 4, 5, 6]
    assert union.field(0).name == "Point"

    union_z = storage_type(gn.mixed("xyz"))
    assert union_z.type_codes == [11, 12, 13, 14, 15, 16]
    assert union_z.field(5).name == "MultiPolygon Z"

    collection = storage_type(gn.geometrycollection())
    assert collection.value_field.name == "geometries"
    assert isinstance(collection.value_type, pa.DenseUnionType)


def test_union_type_code():
    assert union_type_code(GeometryType.POINT, Dimensions.XY) == 1
    assert union_type_code(GeometryType.MULTIPOLYGON, Dimensions.XYZ) == 16


def test_extension_field():
    points = gn.from_wkt(["POINT (0 1)"]).with_metadata("OGC:CRS84")
    field = points.extension_field("geom")
    assert field.name == "geom"
    assert field.type == storage_type(gn.point())
    assert field.metadata[EXTENSION_NAME_KEY] == b"geoarrow.point"

    metadata = json.loads(field.metadata[EXTENSION_METADATA_KEY])
    assert metadata["crs"] == "OGC:CRS84"

    wkb_field = points.to_wkb(large=True).extension_field()
    assert wkb_field.type == pa.large_binary()
    assert wkb_field.metadata[EXTENSION_NAME_KEY] == b"geoarrow.wkb"

    lines = gn.from_wkt(["LINESTRING (0 0, 1 1)"], large_offsets=True)
    assert pa.types.is_large_list(lines.extension_field().type)


def test_to_pyarrow_values():
    points = gn.from_wkt(["POINT (0 1)", None])
    assert points.to_pyarrow().to_pylist() == [{"x": 0.0, "y": 1.0}, None]

    lines = gn.from_wkt(["LINESTRING (0 1, 2 3)"])
    assert lines.to_pyarrow().to_pylist() == [
        [{"x": 0.0, "y": 1.0}, {"x": 2.0, "y": 3.0}]
    ]

    interleaved = lines.with_coord_type("interleaved")
    assert interleaved.to_pyarrow().to_pylist() == [[[0.0, 1.0], [2.0, 3.0]]]

    wkt = gn.array(["POINT (0 1)", None])
    assert wkt.to_pyarrow().to_pylist() == ["POINT (0 1)", None]

    mixed = gn.from_wkt(["POINT (0 1)", "LINESTRING (0 1, 2 3)"])
    exported = mixed.to_pyarrow()
    assert exported.type.equals(storage_type(gn.mixed()))
    assert exported.type_codes.to_pylist() == [1, 2]


ROUND_TRIP_WKTS = [
    ["POINT (0 1)", None, "POINT EMPTY"],
    ["POINT Z (0 1 2)", None],
    ["LINESTRING (0 1, 2 3)", None, "LINESTRING EMPTY"],
    ["POLYGON ((0 0, 1 0, 0 0), (0 0, 1 1, 0 0))", None],
    ["MULTIPOINT (0 1, 2 3)", None],
    ["MULTILINESTRING ((0 1, 2 3), (4 5, 6 7))", None],
    ["MULTIPOLYGON (((0 0, 1 0, 0 0)), ((0 0, 1 1, 0 0)))", None],
    ["POINT (0 1)", None, "LINESTRING (0 1, 2 3)"],
    ["POINT Z (0 1 2)", "MULTIPOLYGON Z (((0 0 0, 1 0 0, 0 0 0)))"],
    ["GEOMETRYCOLLECTION (POINT (0 1), LINESTRING (0 1, 2 3))", None],
    ["GEOMETRYCOLLECTION EMPTY", "GEOMETRYCOLLECTION Z (POINT Z (0 1 2))"],
]


@pytest.mark.parametrize("wkts", ROUND_TRIP_WKTS)
@pytest.mark.parametrize("coord_type", ["separated", "interleaved"])
def test_pyarrow_round_trip(wkts, coord_type):
    array = gn.from_wkt(wkts, coord_type=coord_type).with_metadata("OGC:CRS84")
    imported = gn.from_pyarrow(array.to_pyarrow(), array.extension_field())
    assert type(imported) is type(array)
    assert imported == array


@pytest.mark.parametrize("wkts", ROUND_TRIP_WKTS)
def test_pyarrow_round_trip_large(wkts):
    array = gn.from_wkt(wkts, large_offsets=True)
    imported = gn.from_pyarrow(array.to_pyarrow(), array.extension_field())
    assert imported == array
    assert imported.is_large == array.is_large


@pytest.mark.parametrize("large", [False, True])
def test_pyarrow_round_trip_serialized(large):
    wkb = gn.from_wkt(["POINT (0 1)", None]).with_metadata("OGC:CRS84").to_wkb(large)
    imported = gn.from_pyarrow(wkb.to_pyarrow(), wkb.extension_field())
    assert imported == wkb

    wkt = gn.to_wkt(wkb, large=large)
    assert gn.from_pyarrow(wkt.to_pyarrow(), wkt.extension_field()) == wkt


def test_pyarrow_round_trip_sliced_points():
    points = PointArray.from_xy([0.0, 1.0, 2.0], [3.0, 4.0, 5.0], validity=[1, 0, 1])
    sliced = points.slice(1, 2)
    imported = gn.from_pyarrow(sliced.to_pyarrow())
    assert imported == sliced


def test_from_pyarrow_infers_storage():
    points = gn.from_pyarrow(pa.array([{"x": 0.0, "y": 1.0}]))
    assert isinstance(points, PointArray)

    lines = gn.from_pyarrow(pa.array([[{"x": 0.0, "y": 1.0}, {"x": 2.0, "y": 3.0}]]))
    assert isinstance(lines, LineStringArray)
    assert lines[0].num_coords == 2

    polygons = gn.from_pyarrow(pa.array([[[{"x": 0.0, "y": 1.0}]]]))
    assert isinstance(polygons, PolygonArray)

    multipolygons = gn.from_pyarrow(pa.array([[[[{"x": 0.0, "y": 1.0}]]]]))
    assert isinstance(multipolygons, MultiPolygonArray)

    wkb = gn.from_pyarrow(pa.array([b"\x01"]))
    assert isinstance(wkb, gn.WKBArray)


def test_from_pyarrow_uses_field():
    storage = pa.array([[{"x": 0.0, "y": 1.0}, {"x": 2.0, "y": 3.0}]])
    multipoints = gn.from_pyarrow(storage, gn.multipoint().extension_field())
    assert isinstance(multipoints, MultiPointArray)
    assert multipoints[0].to_wkt() == "MULTIPOINT ((0 1), (2 3))"

    field = gn.linestring().extension_field(metadata="OGC:CRS84")
    assert gn.from_pyarrow(storage, field).metadata.crs == "OGC:CRS84"


def test_from_pyarrow_errors():
    field = pa.field(
        "geometry", pa.binary(), metadata={EXTENSION_NAME_KEY: b"geoarrow.box"}
    )
    with pytest.raises(GeoArrowError, match="Unsupported extension type"):
        gn.from_pyarrow(pa.array([b""]), field)

    with pytest.raises(GeoArrowError, match="Can't infer geometry type"):
        gn.from_pyarrow(pa.array([1, 2]))

    with pytest.raises(GeoArrowError, match="Can't infer dimensions"):
        gn.from_pyarrow(pa.array([{"a": 0.0, "b": 1.0}]))


def test_chunked_to_and_from_pyarrow():
    chunked = ChunkedGeometryArray(
        [gn.from_wkt(["POINT (0 1)"]), gn.from_wkt(["POINT (2 3)", None])]
    )
    exported = chunked.to_pyarrow()
    assert isinstance(exported, pa.ChunkedArray)
    assert exported.num_chunks == 2

    imported = gn.from_pyarrow(exported, chunked.chunk(0).extension_field())
    assert imported == chunked
