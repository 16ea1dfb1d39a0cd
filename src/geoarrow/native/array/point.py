import numpy as np

from geoarrow.native.array.base import GeometryArray
from geoarrow.native.array.builder import GeometryBuilder
from geoarrow.native.capacity import Capacity
from geoarrow.native.constants import GeometryType
from geoarrow.native.coord import CoordBuffer, CoordBufferBuilder
from geoarrow.native.errors import FormatError, GeoArrowError
from geoarrow.native.metadata import ArrayMetadata
from geoarrow.native.scalar import Point
from geoarrow.native.validity import ValidityBuilder, validity_from_mask


class PointArray(GeometryArray):
    """An array of points, one coordinate per slot

    Empty points are stored as a coordinate whose ordinates are all ``nan``.
    Null slots also occupy a coordinate.

    Examples
    --------

    >>> import numpy as np
    >>> from geoarrow.native import CoordBuffer, PointArray
    >>> points = PointArray(CoordBuffer.separated([30.0, 1.0], [10.0, 2.0]))
    >>> points
    PointArray:NativeType(geoarrow.point)[2]
    <POINT (30 10)>
    <POINT (1 2)>
    >>> points[1].x
    1.0
    """

    geometry_type = GeometryType.POINT

    def __init__(self, coords, validity=None, metadata=None):
        validity = validity_from_mask(validity)
        if validity is not None and len(validity) != len(coords):
            raise GeoArrowError(
                f"Expected validity of length {len(coords)} but got {len(validity)}"
            )
        self._coords = coords
        self._validity = validity
        self._metadata = ArrayMetadata.create(metadata)

    @classmethod
    def from_xy(cls, x, y, z=None, validity=None, metadata=None):
        planes = (x, y) if z is None else (x, y, z)
        return cls(CoordBuffer.separated(*planes), validity, metadata)

    def __len__(self):
        return len(self._coords)

    @property
    def coords(self):
        return self._coords

    @property
    def dimensions(self):
        return self._coords.dimensions

    @property
    def coord_type(self):
        return self._coords.coord_type

    def _value(self, i):
        return Point(self._coords, i)

    def _slice(self, offset, length):
        validity = self._validity
        if validity is not None:
            validity = validity.slice(offset, length)
        return PointArray(self._coords.slice(offset, length), validity, self._metadata)

    def with_coord_type(self, coord_type):
        return PointArray(
            self._coords.with_coord_type(coord_type), self._validity, self._metadata
        )

    def buffer_lengths(self):
        return Capacity(GeometryType.POINT, [len(self)])

    def to_numpy(self):
        """An ``(n, dim)`` array of coordinates (``nan`` for null slots)"""
        coords = np.array(self._coords.to_numpy(), dtype=np.float64)
        coords[~self._valid_mask()] = np.nan
        return coords


class PointBuilder(GeometryBuilder):
    """Builder for :class:`PointArray`

    ``large_offsets`` is accepted so that every builder can be created with
    the same arguments; points have no offsets.
    """

    geometry_type = GeometryType.POINT

    def __init__(
        self,
        capacity=None,
        dimensions=None,
        coord_type=None,
        metadata=None,
        large_offsets=False,
    ):
        super().__init__(dimensions, coord_type, metadata)
        n = 0 if capacity is None else capacity.geom
        self._coords = CoordBufferBuilder(n, self._dimensions, self._coord_type)
        self._validity = ValidityBuilder(n)
        self._has_coord = False

    def __len__(self):
        return len(self._coords)

    def push_coord(self, coord):
        self._check_not_finished()
        self._coords.push_coord(coord)
        self._validity.append(True)

    def push_null(self):
        self._check_not_finished()
        self._coords.push_nan_coord()
        self._validity.append(False)

    def geometry_begin(self, geometry_type, dimensions):
        self._check_not_finished()
        self._check_accepts(geometry_type)
        self._has_coord = False

    def coord(self, values):
        if self._has_coord:
            raise FormatError("A point can't have more than one coordinate")
        self._coords.push_coord(values)
        self._has_coord = True

    def geometry_end(self, geometry_type):
        if not self._has_coord:
            self._coords.push_nan_coord()
        self._validity.append(True)

    def _finish(self):
        return PointArray(
            self._coords.finish(), self._validity.finish(), self._metadata
        )
