from geoarrow.native.array.base import NestedGeometryArray
from geoarrow.native.array.builder import NestedBuilder
from geoarrow.native.constants import GeometryType
from geoarrow.native.scalar import Polygon


class PolygonArray(NestedGeometryArray):
    """An array of polygons

    ``offsets`` holds the geometry offsets into the rings followed by the
    ring offsets into the coordinates.
    """

    geometry_type = GeometryType.POLYGON

    @property
    def ring_offsets(self):
        return self._offsets[1]

    def _value(self, i):
        return Polygon(self._coords, self._offsets[1], *self._offsets[0].start_end(i))


class PolygonBuilder(NestedBuilder):
    geometry_type = GeometryType.POLYGON
    array_class = PolygonArray
