from geoarrow.native.array.base import NestedGeometryArray
from geoarrow.native.array.builder import NestedBuilder
from geoarrow.native.constants import GeometryType
from geoarrow.native.scalar import LineString


class LineStringArray(NestedGeometryArray):
    """An array of linestrings

    Parameters
    ----------
    coords : CoordBuffer
        The coordinates of every linestring.
    offsets : sequence of OffsetBuffer
        A single buffer of geometry offsets into ``coords``.
    validity : Validity or array-like of bool, optional
    metadata : ArrayMetadata, optional

    Examples
    --------

    >>> from geoarrow.native import CoordBuffer, LineStringArray
    >>> coords = CoordBuffer.separated([0.0, 1.0, 2.0], [0.0, 1.0, 2.0])
    >>> LineStringArray(coords, [[0, 2, 3]])
    LineStringArray:NativeType(geoarrow.linestring)[2]
    <LINESTRING (0 0, 1 1)>
    <LINESTRING (2 2)>
    """

    geometry_type = GeometryType.LINESTRING

    def _value(self, i):
        return LineString(self._coords, *self._offsets[0].start_end(i))


class LineStringBuilder(NestedBuilder):
    geometry_type = GeometryType.LINESTRING
    array_class = LineStringArray
