import numpy as np

from geoarrow.native.capacity import Capacity, accepts
from geoarrow.native.constants import CoordType, Dimensions
from geoarrow.native.coord import CoordBufferBuilder, check_dimensions
from geoarrow.native.errors import GeoArrowError, IncorrectTypeError
from geoarrow.native.metadata import ArrayMetadata
from geoarrow.native.offsets import OffsetBufferBuilder
from geoarrow.native.validity import ValidityBuilder
from geoarrow.native.visitor import GeometryVisitor, as_geometry, visit_geometry


class GeometryBuilder(GeometryVisitor):
    """Base class for builders of native geometry arrays

    Builders receive geometries either through :meth:`push_geometry` or
    directly as :class:`~geoarrow.native.visitor.GeometryVisitor` events
    (which is how the WKT parser writes into them). A builder is owned by
    one caller until :meth:`finish` is called, after which it can't be
    modified.
    """

    def __init__(self, dimensions=None, coord_type=None, metadata=None):
        dimensions = Dimensions.coalesce(Dimensions.create(dimensions), Dimensions.XY)
        self._dimensions = check_dimensions(dimensions)
        self._coord_type = CoordType.coalesce(
            CoordType.create(coord_type), CoordType.SEPARATED
        )
        self._metadata = ArrayMetadata.create(metadata)
        self._finished = False

    @classmethod
    def from_geometries(
        cls, geoms, dimensions=None, coord_type=None, metadata=None, **kwargs
    ):
        """Build an array from an iterable of geometries in two passes

        ``geoms`` may contain ``None``, geometry views, parsed WKB, WKB bytes
        or shapely geometries. If ``dimensions`` is not given, the array is
        ``XYZ`` when any input geometry is.
        """
        geoms = [as_geometry(geom) for geom in geoms]
        if dimensions is None:
            dimensions = Dimensions.common(
                *(geom.dimensions for geom in geoms if geom is not None)
            )

        capacity = cls.measure(geoms, **kwargs)
        builder = cls(capacity, dimensions, coord_type, metadata, **kwargs)
        builder.extend(geoms)
        return builder.finish()

    @classmethod
    def measure(cls, geoms, **kwargs):
        return Capacity.from_geometries(cls.geometry_type, geoms)

    @property
    def dimensions(self):
        return self._dimensions

    @property
    def coord_type(self):
        return self._coord_type

    def push_geometry(self, geom):
        geom = as_geometry(geom)
        if geom is None:
            self.push_null()
        else:
            visit_geometry(geom, self)

    def extend(self, geoms):
        for geom in geoms:
            self.push_geometry(geom)

    def push_null(self):
        raise NotImplementedError()

    def finish(self):
        """Freeze the builder's buffers into an array"""
        self._check_not_finished()
        out = self._finish()
        self._finished = True
        return out

    def _finish(self):
        raise NotImplementedError()

    def _check_not_finished(self):
        if self._finished:
            raise GeoArrowError(f"Can't modify a {type(self).__name__} after finish()")

    def _check_accepts(self, geometry_type):
        if not accepts(self.geometry_type, geometry_type):
            raise IncorrectTypeError(
                f"Expected {self.geometry_type.name} but got {geometry_type.name}"
            )


class NestedBuilder(GeometryBuilder):
    """Builder for arrays with one or more levels of offsets

    Subclasses set ``geometry_type`` and ``array_class``. A geometry of the
    single-part type pushed into a multi-part builder becomes a multi
    geometry with one part.
    """

    array_class = None

    def __init__(
        self,
        capacity=None,
        dimensions=None,
        coord_type=None,
        metadata=None,
        large_offsets=False,
    ):
        super().__init__(dimensions, coord_type, metadata)
        depth = self.geometry_type.depth()
        if capacity is None:
            counts = [0] * (depth + 1)
        elif capacity.geometry_type != self.geometry_type:
            raise ValueError(
                f"Can't create {type(self).__name__} from a "
                f"{capacity.geometry_type.name} capacity"
            )
        else:
            counts = capacity.counts

        self._offsets = [
            OffsetBufferBuilder(counts[level], large_offsets) for level in range(depth)
        ]
        self._coords = CoordBufferBuilder(
            counts[depth], self._dimensions, self._coord_type
        )
        self._validity = ValidityBuilder(counts[0])
        self._shift = 0

    def __len__(self):
        return len(self._offsets[0])

    def _close(self, level):
        if level + 1 < len(self._offsets):
            n_children = len(self._offsets[level + 1])
        else:
            n_children = len(self._coords)
        self._offsets[level].push_offset(n_children)

    def push_null(self):
        self._check_not_finished()
        self._close(0)
        self._validity.append(False)

    def geometry_begin(self, geometry_type, dimensions):
        self._check_not_finished()
        self._check_accepts(geometry_type)
        self._shift = self.geometry_type.depth() - geometry_type.depth()

    def coord(self, values):
        self._coords.push_coord(values)

    def coords(self, values):
        self._coords.push_coords(values)

    def list_end(self, level):
        self._close(level + self._shift)

    def geometry_end(self, geometry_type):
        if self._shift:
            self._close(0)
        self._validity.append(True)

    def _finish(self):
        return self.array_class(
            self._coords.finish(),
            [offsets.finish() for offsets in self._offsets],
            self._validity.finish(),
            self._metadata,
        )


class ValueBuilder:
    """Append-only numpy vector with a preallocated capacity"""

    def __init__(self, dtype, capacity=0):
        self._data = np.empty(capacity, dtype=dtype)
        self._len = 0

    def __len__(self):
        return self._len

    def append(self, value):
        if self._len == len(self._data):
            data = np.empty(max(2 * len(self._data), 1), dtype=self._data.dtype)
            data[: self._len] = self._data[: self._len]
            self._data = data
        self._data[self._len] = value
        self._len += 1

    def finish(self):
        return self._data[: self._len]
