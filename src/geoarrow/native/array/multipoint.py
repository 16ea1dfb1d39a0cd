from geoarrow.native.array.base import NestedGeometryArray
from geoarrow.native.array.builder import NestedBuilder
from geoarrow.native.constants import GeometryType
from geoarrow.native.scalar import MultiPoint


class MultiPointArray(NestedGeometryArray):
    """An array of multipoints

    Each geometry owns a run of coordinates; an empty member point is
    stored as a ``nan`` coordinate.
    """

    geometry_type = GeometryType.MULTIPOINT

    def _value(self, i):
        return MultiPoint(self._coords, *self._offsets[0].start_end(i))


class MultiPointBuilder(NestedBuilder):
    """Builder for :class:`MultiPointArray`

    A point pushed into this builder becomes a multipoint with one member
    (or no members if the point is empty).
    """

    geometry_type = GeometryType.MULTIPOINT
    array_class = MultiPointArray
