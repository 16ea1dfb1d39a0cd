import numpy as np

from geoarrow.native.array.base import GeometryArray
from geoarrow.native.array.builder import GeometryBuilder
from geoarrow.native.array.mixed import MixedGeometryArray, MixedGeometryBuilder
from geoarrow.native.capacity import GeometryCollectionCapacity
from geoarrow.native.constants import GeometryType
from geoarrow.native.errors import GeoArrowError, NotYetImplementedError
from geoarrow.native.metadata import ArrayMetadata
from geoarrow.native.offsets import OffsetBuffer, OffsetBufferBuilder
from geoarrow.native.scalar import GeometryCollection
from geoarrow.native.validity import ValidityBuilder, validity_from_mask


class GeometryCollectionArray(GeometryArray):
    """An array of geometry collections

    The members of every collection are stored in one
    :class:`MixedGeometryArray`; ``geom_offsets`` partitions it.
    """

    geometry_type = GeometryType.GEOMETRYCOLLECTION

    def __init__(self, geometries, geom_offsets, validity=None, metadata=None):
        if not isinstance(geom_offsets, OffsetBuffer):
            geom_offsets = OffsetBuffer.from_sequence(geom_offsets)
        if geom_offsets.last > len(geometries):
            raise GeoArrowError(
                f"Offsets reference {geom_offsets.last} members but only "
                f"{len(geometries)} are available"
            )

        validity = validity_from_mask(validity)
        if validity is not None and len(validity) != len(geom_offsets):
            raise GeoArrowError(
                f"Expected validity of length {len(geom_offsets)} but got {len(validity)}"
            )

        self._geometries = geometries
        self._geom_offsets = geom_offsets
        self._validity = validity
        self._metadata = ArrayMetadata.create(metadata)

    @classmethod
    def from_mixed(cls, mixed):
        """Wrap each slot of ``mixed`` in a collection with one member"""
        n = len(mixed)
        dtype = np.int64 if mixed.is_large else np.int32
        return cls(
            mixed.with_metadata(None),
            OffsetBuffer(np.arange(n + 1, dtype=dtype)),
            mixed.validity,
            mixed.metadata,
        )

    def __len__(self):
        return len(self._geom_offsets)

    @property
    def geometries(self):
        """The members of every collection as a ``MixedGeometryArray``"""
        return self._geometries

    @property
    def geom_offsets(self):
        return self._geom_offsets

    @property
    def dimensions(self):
        return self._geometries.dimensions

    @property
    def coord_type(self):
        return self._geometries.coord_type

    @property
    def is_large(self):
        return self._geom_offsets.is_large

    def _value(self, i):
        return GeometryCollection(self._geometries, *self._geom_offsets.start_end(i))

    def _replace(self, geometries=None, geom_offsets=None, validity=False):
        out = GeometryCollectionArray.__new__(GeometryCollectionArray)
        out._geometries = self._geometries if geometries is None else geometries
        out._geom_offsets = self._geom_offsets if geom_offsets is None else geom_offsets
        out._validity = self._validity if validity is False else validity
        out._metadata = self._metadata
        return out

    def _slice(self, offset, length):
        validity = self._validity
        if validity is not None:
            validity = validity.slice(offset, length)
        return self._replace(
            geom_offsets=self._geom_offsets.slice(offset, length), validity=validity
        )

    def with_coord_type(self, coord_type):
        return self._replace(geometries=self._geometries.with_coord_type(coord_type))

    def to_large(self):
        return self._replace(
            geometries=self._geometries.to_large(),
            geom_offsets=self._geom_offsets.to_large(),
        )

    def to_small(self):
        return self._replace(
            geometries=self._geometries.to_small(),
            geom_offsets=self._geom_offsets.to_small(),
        )

    def buffer_lengths(self):
        start, end = self._geom_offsets.first, self._geom_offsets.last
        members = self._geometries.slice(start, end - start)
        return GeometryCollectionCapacity(members.buffer_lengths(), len(self))

    def downcast(self, prefer_multi=False):
        from geoarrow.native.downcast import downcast

        return downcast(self, prefer_multi)

    def to_mixed(self):
        """The members of single-member collections as a ``MixedGeometryArray``

        Raises ``IncorrectTypeError`` if a valid collection does not have
        exactly one member.
        """
        from geoarrow.native.downcast import collections_to_mixed

        return collections_to_mixed(self)

    def to_geometry_collection(self):
        return self


class GeometryCollectionBuilder(GeometryBuilder):
    """Builder for :class:`GeometryCollectionArray`

    Geometries that are not collections are stored as collections with one
    member.
    """

    geometry_type = GeometryType.GEOMETRYCOLLECTION

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
            capacity = GeometryCollectionCapacity(prefer_multi=prefer_multi)

        self._members = MixedGeometryBuilder(
            capacity.mixed,
            self._dimensions,
            self._coord_type,
            prefer_multi=prefer_multi,
            large_offsets=large_offsets,
        )
        self._geom_offsets = OffsetBufferBuilder(capacity.geom, large_offsets)
        self._validity = ValidityBuilder(capacity.geom)
        self._depth = 0
        self._wrapped = False

    @classmethod
    def measure(cls, geoms, prefer_multi=False, **kwargs):
        return GeometryCollectionCapacity.from_geometries(
            geoms, prefer_multi=prefer_multi
        )

    def __len__(self):
        return len(self._geom_offsets)

    def push_null(self):
        self._check_not_finished()
        self._geom_offsets.push_offset(len(self._members))
        self._validity.append(False)

    def geometry_begin(self, geometry_type, dimensions):
        self._check_not_finished()
        if self._depth == 0:
            self._wrapped = geometry_type != GeometryType.GEOMETRYCOLLECTION
            if self._wrapped:
                self._members.geometry_begin(geometry_type, dimensions)
        else:
            if geometry_type == GeometryType.GEOMETRYCOLLECTION and not self._wrapped:
                raise NotYetImplementedError("nested GEOMETRYCOLLECTION")
            self._members.geometry_begin(geometry_type, dimensions)

        self._depth += 1

    def coord(self, values):
        self._members.coord(values)

    def coords(self, values):
        self._members.coords(values)

    def list_end(self, level):
        self._members.list_end(level)

    def geometry_end(self, geometry_type):
        self._depth -= 1
        if self._depth > 0 or self._wrapped:
            self._members.geometry_end(geometry_type)

        if self._depth == 0:
            self._geom_offsets.push_offset(len(self._members))
            self._validity.append(True)

    def _finish(self):
        return GeometryCollectionArray(
            self._members.finish(),
            self._geom_offsets.finish(),
            self._validity.finish(),
            self._metadata,
        )
