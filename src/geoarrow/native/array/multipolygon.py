from geoarrow.native.array.base import NestedGeometryArray
from geoarrow.native.array.builder import NestedBuilder
from geoarrow.native.constants import GeometryType
from geoarrow.native.scalar import MultiPolygon


class MultiPolygonArray(NestedGeometryArray):
    """An array of multipolygons

    ``offsets`` holds, in order, the geometry offsets into the polygons,
    the polygon offsets into the rings and the ring offsets into the
    coordinates.
    """

    geometry_type = GeometryType.MULTIPOLYGON

    @property
    def polygon_offsets(self):
        return self._offsets[1]

    @property
    def ring_offsets(self):
        return self._offsets[2]

    def _value(self, i):
        return MultiPolygon(
            self._coords,
            self._offsets[1],
            self._offsets[2],
            *self._offsets[0].start_end(i),
        )


class MultiPolygonBuilder(NestedBuilder):
    geometry_type = GeometryType.MULTIPOLYGON
    array_class = MultiPolygonArray
