from geoarrow.native.array.base import NestedGeometryArray
from geoarrow.native.array.builder import NestedBuilder
from geoarrow.native.constants import GeometryType
from geoarrow.native.scalar import MultiLineString


class MultiLineStringArray(NestedGeometryArray):
    geometry_type = GeometryType.MULTILINESTRING

    @property
    def line_string_offsets(self):
        return self._offsets[1]

    def _value(self, i):
        return MultiLineString(
            self._coords, self._offsets[1], *self._offsets[0].start_end(i)
        )


class MultiLineStringBuilder(NestedBuilder):
    geometry_type = GeometryType.MULTILINESTRING
    array_class = MultiLineStringArray
