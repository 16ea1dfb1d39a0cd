import pytest

from geoarrow import native as gn
from geoarrow.native import Dimensions, GeometryType
from geoarrow.native._wkb import read_wkb
from geoarrow.native._wkt import format_wkt, parse_wkt
from geoarrow.native.errors import FormatError, NotYetImplementedError
from geoarrow.native.visitor import GeometryVisitor

EXAMPLES = [
    "POINT (30 10)",
    "POINT Z (1 2 3)",
    "POINT EMPTY",
    "LINESTRING (30 10, 10 30, 40 40)",
    "LINESTRING EMPTY",
    "POLYGON ((30 10, 40 40, 20 40, 10 20, 30 10))",
    "POLYGON ((35 10, 45 45, 15 40, 10 20, 35 10), (20 30, 35 35, 30 20, 20 30))",
    "POLYGON EMPTY",
    "MULTIPOINT ((10 40), (40 30), (20 20), (30 10))",
    "MULTILINESTRING ((10 10, 20 20, 10 40), (40 40, 30 30, 40 20, 30 10))",
    "MULTIPOLYGON (((30 20, 45 40, 10 40, 30 20)), ((15 5, 40 10, 10 20, 5 10, 15 5)))",
    "GEOMETRYCOLLECTION (POINT (40 10), LINESTRING (10 10, 20 20, 10 40))",
    "GEOMETRYCOLLECTION EMPTY",
]


class RecordingVisitor(GeometryVisitor):
    def __init__(self):
        self.events = []

    def geometry_begin(self, geometry_type, dimensions):
        self.events.append(("begin", geometry_type.name, dimensions.name))

    def coord(self, values):
        self.events.append(("coord", tuple(values)))

    def list_end(self, level):
        self.events.append(("list_end", level))

    def geometry_end(self, geometry_type):
        self.events.append(("end", geometry_type.name))


def parse_events(text):
    visitor = RecordingVisitor()
    parse_wkt(text, visitor)
    return visitor.events


def test_parse_point_events():
    assert parse_events("POINT (30 10)") == [
        ("begin", "POINT", "XY"),
        ("coord", (30.0, 10.0)),
        ("end", "POINT"),
    ]

    assert parse_events("POINT Z EMPTY") == [
        ("begin", "POINT", "XYZ"),
        ("end", "POINT"),
    ]


def test_parse_polygon_events():
    assert parse_events("POLYGON ((0 0, 1 0, 0 0))") == [
        ("begin", "POLYGON", "XY"),
        ("coord", (0.0, 0.0)),
        ("coord", (1.0, 0.0)),
        ("coord", (0.0, 0.0)),
        ("list_end", 1),
        ("list_end", 0),
        ("end", "POLYGON"),
    ]


def test_parse_multipoint_forms():
    # Members with and without parentheses
    assert parse_events("MULTIPOINT (1 2, (3 4))") == [
        ("begin", "MULTIPOINT", "XY"),
        ("coord", (1.0, 2.0)),
        ("coord", (3.0, 4.0)),
        ("list_end", 0),
        ("end", "MULTIPOINT"),
    ]


def test_parse_collection_events():
    assert parse_events("GEOMETRYCOLLECTION (POINT (1 2), LINESTRING EMPTY)") == [
        ("begin", "GEOMETRYCOLLECTION", "XY"),
        ("begin", "POINT", "XY"),
        ("coord", (1.0, 2.0)),
        ("end", "POINT"),
        ("begin", "LINESTRING", "XY"),
        ("list_end", 0),
        ("end", "LINESTRING"),
        ("end", "GEOMETRYCOLLECTION"),
    ]


def test_parse_lenient_input():
    assert parse_events("point(1 2)") == parse_events("POINT (1 2)")
    assert parse_events("  POINT  (  1   2  )  ") == parse_events("POINT (1 2)")
    assert parse_events("SRID=4326;POINT (1 2)") == parse_events("POINT (1 2)")
    assert parse_events("POINT (1e3 -2.5)")[1] == ("coord", (1000.0, -2.5))


def test_parse_errors():
    with pytest.raises(FormatError, match="Expected 2 or 3 ordinates"):
        parse_wkt("POINT (1)", GeometryVisitor())

    with pytest.raises(FormatError, match="end of input"):
        parse_wkt("POINT (1 2", GeometryVisitor())

    with pytest.raises(FormatError, match="Unexpected 'foo'"):
        parse_wkt("POINT (1 2) foo", GeometryVisitor())

    with pytest.raises(FormatError, match="Expected geometry type") as excinfo:
        parse_wkt("CIRCLE (1 2)", GeometryVisitor())
    assert excinfo.value.position == 0

    with pytest.raises(FormatError, match="Expected ',' or '\\)'"):
        parse_wkt("LINESTRING (1 2; 3 4)", GeometryVisitor())


def test_parse_z_requires_three_ordinates():
    with pytest.raises(FormatError, match="Expected 3 ordinates for a Z geometry"):
        parse_wkt("POINT Z (1 2)", GeometryVisitor())

    with pytest.raises(FormatError, match="but got 2"):
        parse_wkt("LINESTRING Z (0 0 0, 1 1)", GeometryVisitor())

    with pytest.raises(FormatError):
        gn.from_wkt(["MULTIPOINT Z ((0 0 0), (1 1))"])

    assert parse_events("POINT (1 2 3)")[1] == ("coord", (1.0, 2.0, 3.0))


def test_parse_not_implemented():
    with pytest.raises(NotYetImplementedError):
        parse_wkt("POINT M (1 2 3)", GeometryVisitor())

    with pytest.raises(NotYetImplementedError):
        parse_wkt("POINT (1 2 3 4)", GeometryVisitor())

    with pytest.raises(NotYetImplementedError):
        parse_wkt(
            "GEOMETRYCOLLECTION (GEOMETRYCOLLECTION (POINT (1 2)))", GeometryVisitor()
        )


@pytest.mark.parametrize("wkt", EXAMPLES)
def test_wkt_round_trip(wkt):
    array = gn.from_wkt([wkt])
    assert array.to_wkt()[0] == wkt


@pytest.mark.parametrize("wkt", EXAMPLES)
def test_wkt_round_trip_through_wkb(wkt):
    wkb = gn.from_wkt([wkt]).to_wkb()[0]
    assert format_wkt(read_wkb(wkb)) == wkt


@pytest.mark.parametrize(
    "wkt",
    EXAMPLES
    + [
        "MULTIPOINT (10 40, 40 30)",
        "LINESTRING Z (30 10 1, 10 30 2, 40 40 3)",
        "POLYGON Z ((0 0 1, 10 0 2, 10 10 3, 0 0 1))",
        "MULTIPOLYGON Z (((0 0 0, 1 0 1, 0 1 2, 0 0 0)))",
        "GEOMETRYCOLLECTION (POINT (40 10), POLYGON ((0 0, 1 0, 0 1, 0 0)))",
        "GEOMETRYCOLLECTION Z (POINT Z (1 2 3), LINESTRING Z (0 0 0, 1 1 1))",
    ],
)
def test_wkt_matches_shapely(wkt):
    shapely = pytest.importorskip("shapely")

    expected = shapely.from_wkt(wkt)
    actual = shapely.from_wkt(gn.from_wkt([wkt]).to_wkt()[0])
    assert actual.geom_type == expected.geom_type
    assert actual.has_z == expected.has_z
    assert shapely.to_wkb(actual, hex=True) == shapely.to_wkb(expected, hex=True)


def test_format_numbers():
    array = gn.from_wkt(["POINT (0.5 -1e20)", "POINT (1.25 2)"])
    assert array.to_wkt()[0] == "POINT (0.5 -1e+20)"
    assert array.to_wkt()[1] == "POINT (1.25 2)"

    signed = gn.from_wkt(["POINT (-0 1)", "POINT (0 -0.0)"])
    assert signed.to_wkt().to_pyarrow().to_pylist() == [
        "POINT (-0 1)",
        "POINT (0 -0)",
    ]


def test_from_wkt_infers_dimensions():
    array = gn.from_wkt(["POINT (1 2)", "POINT (1 2 3)"])
    assert array.dimensions == Dimensions.XYZ
    assert array[1].z == 3.0

    array = gn.from_wkt(["LINESTRING Z (1 2 3, 4 5 6)"])
    assert array.dimensions == Dimensions.XYZ

    array = gn.from_wkt(["LINESTRING (1 2, 3 4)", None])
    assert array.dimensions == Dimensions.XY

    array = gn.from_wkt(["POINT (1 2)"], dimensions="xyz")
    assert array.dimensions == Dimensions.XYZ


def test_from_wkt_mixed():
    array = gn.from_wkt(["POINT (1 2)", "LINESTRING (1 2, 3 4)"])
    assert array.geometry_type == GeometryType.GEOMETRY
    assert array.to_wkt()[1] == "LINESTRING (1 2, 3 4)"
