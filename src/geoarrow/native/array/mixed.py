import numpy as np

from geoarrow.native.array.base import GeometryArray
from geoarrow.native.array.builder import GeometryBuilder, ValueBuilder
from geoarrow.native.array.linestring import LineStringArray, LineStringBuilder
from geoarrow.native.array.multilinestring import (
    MultiLineStringArray,
    MultiLineStringBuilder,
)
from geoarrow.native.array.multipoint import MultiPointArray, MultiPointBuilder
from geoarrow.native.array.multipolygon import MultiPolygonArray, MultiPolygonBuilder
from geoarrow.native.array.point import PointArray, PointBuilder
from geoarrow.native.array.polygon import PolygonArray, PolygonBuilder
from geoarrow.native.capacity import (
    CONCRETE_GEOMETRY_TYPES,
    MixedCapacity,
    mixed_child_type,
)
from geoarrow.native.constants import CoordType, Dimensions, GeometryType
from geoarrow.native.errors import (
    GeoArrowError,
    IncorrectTypeError,
    NotYetImplementedError,
)
from geoarrow.native.metadata import ArrayMetadata
from geoarrow.native.validity import validity_from_mask

CONCRETE_ARRAYS = {
    GeometryType.POINT: PointArray,
    GeometryType.LINESTRING: LineStringArray,
    GeometryType.POLYGON: PolygonArray,
    GeometryType.MULTIPOINT: MultiPointArray,
    GeometryType.MULTILINESTRING: MultiLineStringArray,
    GeometryType.MULTIPOLYGON: MultiPolygonArray,
}

CONCRETE_BUILDERS = {
    GeometryType.POINT: PointBuilder,
    GeometryType.LINESTRING: LineStringBuilder,
    GeometryType.POLYGON: PolygonBuilder,
    GeometryType.MULTIPOINT: MultiPointBuilder,
    GeometryType.MULTILINESTRING: MultiLineStringBuilder,
    GeometryType.MULTIPOLYGON: MultiPolygonBuilder,
}


class MixedGeometryArray(GeometryArray):
    """An array whose slots may hold any concrete geometry type

    Each slot ``i`` is stored in the child array of type ``type_ids[i]``
    at position ``value_offsets[i]``. A slot is null when the child value
    it points to is null (builders store nulls as null points).

    Parameters
    ----------
    type_ids : array-like of int8
        The ``GeometryType`` value of each slot.
    value_offsets : array-like of int32
        The position of each slot in its child array.
    children : dict
        A mapping of ``GeometryType`` to concrete array. Missing children
        are created empty.
    metadata : ArrayMetadata, optional
    dimensions, coord_type : optional
        Used to create missing children when ``children`` is empty.

    Examples
    --------

    >>> from geoarrow import native as gn
    >>> points = gn.PointArray.from_xy([0.0, 1.0], [1.0, 2.0])
    >>> mixed = points.to_mixed()
    >>> mixed.type_ids.tolist()
    [1, 1]
    >>> mixed.downcast() == points
    True
    """

    geometry_type = GeometryType.GEOMETRY

    def __init__(
        self,
        type_ids,
        value_offsets,
        children=None,
        metadata=None,
        dimensions=None,
        coord_type=None,
    ):
        type_ids = np.asarray(type_ids, dtype=np.int8)
        value_offsets = np.asarray(value_offsets, dtype=np.int32)
        if type_ids.shape != value_offsets.shape or type_ids.ndim != 1:
            raise GeoArrowError(
                "type_ids and value_offsets must be vectors of equal length"
            )

        children = {GeometryType.create(k): v for k, v in (children or {}).items()}
        for geometry_type, child in children.items():
            if child.geometry_type != geometry_type:
                raise GeoArrowError(
                    f"Expected {geometry_type.name} child but got {type(child).__name__}"
                )

        if children:
            first = next(iter(children.values()))
            dimensions = first.dimensions
            coord_type = first.coord_type
        dimensions = Dimensions.coalesce(Dimensions.create(dimensions), Dimensions.XY)
        coord_type = CoordType.coalesce(
            CoordType.create(coord_type), CoordType.SEPARATED
        )

        for geometry_type in CONCRETE_GEOMETRY_TYPES:
            if geometry_type not in children:
                builder = CONCRETE_BUILDERS[geometry_type](None, dimensions, coord_type)
                children[geometry_type] = builder.finish()

        if len({child.dimensions for child in children.values()}) != 1:
            raise GeoArrowError(
                "Children of a mixed array must have the same dimensions"
            )

        for geometry_type in CONCRETE_GEOMETRY_TYPES:
            offsets = value_offsets[type_ids == geometry_type.value]
            n_child = len(children[geometry_type])
            if len(offsets) and (offsets.min() < 0 or offsets.max() >= n_child):
                raise GeoArrowError(
                    f"value_offsets out of range for {geometry_type.name} child "
                    f"of length {n_child}"
                )

        unknown = ~np.isin(type_ids, [t.value for t in CONCRETE_GEOMETRY_TYPES])
        if unknown.any():
            raise GeoArrowError(f"Unknown type id {type_ids[unknown][0]}")

        self._type_ids = type_ids
        self._value_offsets = value_offsets
        self._children = {t: children[t] for t in CONCRETE_GEOMETRY_TYPES}
        self._validity = self._compute_validity()
        self._metadata = ArrayMetadata.create(metadata)

    @classmethod
    def from_child(cls, array):
        """Wrap a concrete array so that every slot refers to it in order"""
        n = len(array)
        return cls(
            np.full(n, array.geometry_type.value, dtype=np.int8),
            np.arange(n, dtype=np.int32),
            {array.geometry_type: array.with_metadata(None)},
            array.metadata,
        )

    def _compute_validity(self):
        valid = np.ones(len(self._type_ids), dtype=np.bool_)
        for geometry_type, child in self._children.items():
            if child.validity is None:
                continue
            is_child = self._type_ids == geometry_type.value
            valid[is_child] = child.validity.to_numpy()[self._value_offsets[is_child]]
        return validity_from_mask(valid)

    def __len__(self):
        return len(self._type_ids)

    @property
    def type_ids(self):
        return self._type_ids

    @property
    def value_offsets(self):
        return self._value_offsets

    @property
    def children(self):
        return dict(self._children)

    def child(self, geometry_type):
        return self._children[GeometryType.create(geometry_type)]

    @property
    def dimensions(self):
        return self._children[GeometryType.POINT].dimensions

    @property
    def coord_type(self):
        return self._children[GeometryType.POINT].coord_type

    @property
    def is_large(self):
        return self._children[GeometryType.LINESTRING].is_large

    def _value(self, i):
        child = self._children[GeometryType(int(self._type_ids[i]))]
        return child.value(int(self._value_offsets[i]))

    def _slice(self, offset, length):
        end = offset + length
        return self._with_children(
            self._children, self._type_ids[offset:end], self._value_offsets[offset:end]
        )

    def _with_children(self, children, type_ids=None, value_offsets=None):
        out = MixedGeometryArray.__new__(MixedGeometryArray)
        out._type_ids = self._type_ids if type_ids is None else type_ids
        out._value_offsets = (
            self._value_offsets if value_offsets is None else value_offsets
        )
        out._children = children
        out._validity = out._compute_validity()
        out._metadata = self._metadata
        return out

    def _map_children(self, func):
        return self._with_children(
            {t: func(child) for t, child in self._children.items()}
        )

    def with_coord_type(self, coord_type):
        return self._map_children(lambda child: child.with_coord_type(coord_type))

    def to_large(self):
        return self._map_children(
            lambda child: child if isinstance(child, PointArray) else child.to_large()
        )

    def to_small(self):
        return self._map_children(
            lambda child: child if isinstance(child, PointArray) else child.to_small()
        )

    def buffer_lengths(self):
        """The capacity of the child values referenced by this array

        Slots of one type are assumed to reference a contiguous run of their
        child, which is how builders lay them out.
        """
        children = {}
        for geometry_type, child in self._children.items():
            offsets = self._value_offsets[self._type_ids == geometry_type.value]
            if len(offsets):
                start = int(offsets.min())
                referenced = child.slice(start, int(offsets.max()) + 1 - start)
            else:
                referenced = child.slice(0, 0)
            children[geometry_type] = referenced.buffer_lengths()
        return MixedCapacity(children, len(self))

    def downcast(self, prefer_multi=False):
        """Narrow to a concrete array if every valid slot is of one family

        See :func:`geoarrow.native.downcast.downcast`.
        """
        from geoarrow.native.downcast import downcast

        return downcast(self, prefer_multi)

    def to_mixed(self):
        return self


class MixedGeometryBuilder(GeometryBuilder):
    """Builder for :class:`MixedGeometryArray`

    Any concrete geometry can be pushed. A geometry collection with exactly
    one member is stored as that member; other collections raise
    ``IncorrectTypeError``. With ``prefer_multi``, single-part geometries
    are stored in the child of their multi-part type.
    """

    geometry_type = GeometryType.GEOMETRY

    def __init__(
        self,
        capacity=None,
        dimensions=None,
        coord_type=None,
        metadata=None,
        prefer_multi=False,
        large_offsets=False,
    ):
        super().__init__(dimensions, coord_type, metadata)
        if capacity is None:
            capacity = MixedCapacity(prefer_multi=prefer_multi)

        self._children = {
            t: CONCRETE_BUILDERS[t](
                capacity.children[t],
                self._dimensions,
                self._coord_type,
                large_offsets=large_offsets,
            )
            for t in CONCRETE_GEOMETRY_TYPES
        }
        self._type_ids = ValueBuilder(np.int8, capacity.geom)
        self._value_offsets = ValueBuilder(np.int32, capacity.geom)
        self._prefer_multi = prefer_multi
        self._current = None
        self._depth = 0
        self._current_depth = 0
        self._n_members = 0

    @classmethod
    def measure(cls, geoms, prefer_multi=False, **kwargs):
        return MixedCapacity.from_geometries(geoms, prefer_multi=prefer_multi)

    def __len__(self):
        return len(self._type_ids)

    @property
    def prefer_multi(self):
        return self._prefer_multi

    def push_null(self):
        self._check_not_finished()
        point_builder = self._children[GeometryType.POINT]
        self._type_ids.append(GeometryType.POINT.value)
        self._value_offsets.append(len(point_builder))
        point_builder.push_null()

    def _start_child(self, geometry_type, dimensions):
        child_type = mixed_child_type(geometry_type, self._prefer_multi)
        builder = self._children[child_type]
        self._type_ids.append(child_type.value)
        self._value_offsets.append(len(builder))
        builder.geometry_begin(geometry_type, dimensions)
        self._current = builder
        self._current_depth = self._depth

    def geometry_begin(self, geometry_type, dimensions):
        self._check_not_finished()
        if self._current is not None:
            self._current.geometry_begin(geometry_type, dimensions)
        elif geometry_type == GeometryType.GEOMETRYCOLLECTION:
            if self._depth > 0:
                raise NotYetImplementedError("nested GEOMETRYCOLLECTION")
            self._n_members = 0
        elif self._depth > 0:
            self._n_members += 1
            if self._n_members > 1:
                raise IncorrectTypeError(
                    "Can't store a GEOMETRYCOLLECTION with more than one member "
                    "in a mixed array"
                )
            self._start_child(geometry_type, dimensions)
        else:
            self._start_child(geometry_type, dimensions)

        self._depth += 1

    def coord(self, values):
        self._current.coord(values)

    def coords(self, values):
        self._current.coords(values)

    def list_end(self, level):
        self._current.list_end(level)

    def geometry_end(self, geometry_type):
        self._depth -= 1
        if self._current is not None:
            self._current.geometry_end(geometry_type)
            if self._depth == self._current_depth:
                self._current = None
        elif self._n_members != 1:
            raise IncorrectTypeError(
                "Can't store an empty GEOMETRYCOLLECTION in a mixed array"
            )

    def _finish(self):
        return MixedGeometryArray(
            self._type_ids.finish(),
            self._value_offsets.finish(),
            {t: builder.finish() for t, builder in self._children.items()},
            self._metadata,
        )
