import copy

import numpy as np

from geoarrow.native.constants import GeometryType
from geoarrow.native.datatypes import NativeType
from geoarrow.native.errors import GeoArrowError
from geoarrow.native.metadata import ArrayMetadata
from geoarrow.native.offsets import OffsetBuffer, _check_slice
from geoarrow.native.validity import validity_from_mask


class ArrayBase:
    """Behaviour shared by native and serialized geometry arrays

    Arrays are immutable: every method that changes an array returns a new
    one sharing the original buffers.
    """

    def __len__(self):
        raise NotImplementedError()

    @property
    def data_type(self):
        raise NotImplementedError()

    @property
    def validity(self):
        """The ``Validity`` of this array or ``None`` if every slot is valid"""
        return self._validity

    @property
    def metadata(self) -> ArrayMetadata:
        return self._metadata

    @property
    def null_count(self):
        return 0 if self._validity is None else self._validity.null_count

    def extension_name(self):
        return self.data_type.extension_name()

    def is_valid(self, i):
        i = self._check_index(i)
        return self._validity is None or self._validity.is_valid(i)

    def is_null(self, i):
        return not self.is_valid(i)

    def value(self, i):
        """The value at ``i`` regardless of its validity"""
        return self._value(self._check_index(i))

    def slice(self, offset, length):
        _check_slice(offset, length, len(self))
        return self._slice(offset, length)

    def with_metadata(self, metadata):
        """A copy of this array sharing its buffers with different metadata

        ``metadata`` may be an ``ArrayMetadata`` or anything accepted by
        ``ArrayMetadata.create()`` (e.g., a CRS string).
        """
        out = copy.copy(self)
        out._metadata = ArrayMetadata.create(metadata)
        return out

    def _with_validity(self, validity):
        out = copy.copy(self)
        out._validity = validity
        return out

    def _check_index(self, i):
        n = len(self)
        if i < 0:
            i += n
        if i < 0 or i >= n:
            raise IndexError(f"Index {i} out of range for array of length {n}")
        return i

    def _valid_mask(self):
        if self._validity is None:
            return np.ones(len(self), dtype=np.bool_)
        return self._validity.to_numpy()

    def __getitem__(self, key):
        if isinstance(key, slice):
            start, stop, step = key.indices(len(self))
            if step != 1:
                raise ValueError("Can't slice a geometry array with a step")
            return self.slice(start, max(stop - start, 0))

        i = self._check_index(key)
        if self._validity is not None and not self._validity.is_valid(i):
            return None
        return self._value(i)

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        if (
            self.data_type != other.data_type
            or len(self) != len(other)
            or self.metadata != other.metadata
        ):
            return False
        if not np.array_equal(self._valid_mask(), other._valid_mask()):
            return False
        return all(a == b for a, b in zip(self, other))

    __hash__ = None

    def __repr__(self):
        n_values_to_show = 10
        max_width = 70

        if len(self) > n_values_to_show:
            n_extra = len(self) - n_values_to_show
            value_s = "values" if n_extra != 1 else "value"
            head = range(n_values_to_show // 2)
            mid = f"...{n_extra} {value_s}..."
            tail = range(len(self) - n_values_to_show // 2, len(self))
        else:
            head = range(len(self))
            mid = ""
            tail = range(0)

        type_name = type(self).__name__
        try:
            head_str = [self._format_item(i, max_width) for i in head]
            tail_str = [self._format_item(i, max_width) for i in tail]
        except Exception as e:
            err = f"* 1 or more display values failed to format\n* {str(e)}"
            return f"{type_name}:{repr(self.data_type)}[{len(self)}]\n{err}"

        head_str = "\n".join(head_str)
        tail_str = "\n".join(tail_str)
        items_str = f"{head_str}\n{mid}\n{tail_str}"

        return f"{type_name}:{repr(self.data_type)}[{len(self)}]\n{items_str}".strip()

    def _format_item(self, i, max_width):
        item = self[i]
        if item is None:
            return "null"

        item_str = f"<{self._format_value(item)}>"
        if len(item_str) > max_width:
            item_str = f"{item_str[:(max_width - 4)]}...>"
        return item_str

    def _format_value(self, item):
        return item.to_wkt()

    def _value(self, i):
        raise NotImplementedError()

    def _slice(self, offset, length):
        raise NotImplementedError()


class GeometryArray(ArrayBase):
    """Base class for native geometry arrays"""

    geometry_type = GeometryType.GEOMETRY

    @property
    def dimensions(self):
        raise NotImplementedError()

    @property
    def coord_type(self):
        raise NotImplementedError()

    @property
    def data_type(self) -> NativeType:
        return NativeType(self.geometry_type, self.dimensions, self.coord_type)

    @property
    def is_large(self):
        """Whether this array uses 64-bit offsets"""
        return False

    def with_coord_type(self, coord_type):
        raise NotImplementedError()

    def buffer_lengths(self):
        """The capacity needed to build a copy of this array"""
        raise NotImplementedError()

    def downcast(self, prefer_multi=False):
        """Narrow to the most specific array type that can hold every value

        Concrete arrays are returned unchanged.
        """
        return self

    def to_mixed(self):
        """Wrap this array in a ``MixedGeometryArray``"""
        from geoarrow.native.array.mixed import MixedGeometryArray

        return MixedGeometryArray.from_child(self)

    def to_geometry_collection(self):
        """Wrap each value of this array in a single-member collection"""
        from geoarrow.native.array.geometrycollection import GeometryCollectionArray

        return GeometryCollectionArray.from_mixed(self.to_mixed())

    def to_wkb(self, large=False):
        from geoarrow.native.io import to_wkb

        return to_wkb(self, large=large)

    def to_wkt(self, large=False):
        from geoarrow.native.io import to_wkt

        return to_wkt(self, large=large)

    def to_shapely(self):
        from geoarrow.native.io import to_shapely

        return to_shapely(self)

    def total_bounds(self):
        from geoarrow.native.bounding_rect import total_bounds

        return total_bounds(self)

    def bounding_rects(self):
        from geoarrow.native.bounding_rect import bounding_rects

        return bounding_rects(self)

    def to_pyarrow(self):
        from geoarrow.native.type_pyarrow import to_pyarrow

        return to_pyarrow(self)

    def extension_field(self, name="geometry"):
        from geoarrow.native.type_pyarrow import extension_field

        return extension_field(self.data_type, name, self.metadata, large=self.is_large)


class NestedGeometryArray(GeometryArray):
    """A geometry array whose values are nested lists of coordinates

    ``offsets`` lists one ``OffsetBuffer`` per nesting level from the
    outermost (geometries) to the innermost (the runs of coordinates).
    Only the outermost offsets are sliced; inner offsets and coordinates
    are always shared whole.
    """

    def __init__(self, coords, offsets, validity=None, metadata=None):
        offsets = tuple(
            o if isinstance(o, OffsetBuffer) else OffsetBuffer.from_sequence(o)
            for o in offsets
        )
        depth = self.geometry_type.depth()
        if len(offsets) != depth:
            raise GeoArrowError(
                f"{type(self).__name__} requires {depth} offset buffers "
                f"but got {len(offsets)}"
            )

        if len({o.is_large for o in offsets}) > 1:
            raise GeoArrowError("Offset buffers must all be 32-bit or all be 64-bit")

        for level, level_offsets in enumerate(offsets):
            if level + 1 < depth:
                n_children = len(offsets[level + 1])
            else:
                n_children = len(coords)
            if level_offsets.last > n_children:
                raise GeoArrowError(
                    f"Offsets at level {level} reference {level_offsets.last} "
                    f"values but only {n_children} are available"
                )

        validity = validity_from_mask(validity)
        if validity is not None and len(validity) != len(offsets[0]):
            raise GeoArrowError(
                f"Expected validity of length {len(offsets[0])} but got {len(validity)}"
            )

        self._coords = coords
        self._offsets = offsets
        self._validity = validity
        self._metadata = ArrayMetadata.create(metadata)

    @classmethod
    def _create(cls, coords, offsets, validity, metadata):
        out = cls.__new__(cls)
        out._coords = coords
        out._offsets = tuple(offsets)
        out._validity = validity
        out._metadata = metadata
        return out

    def __len__(self):
        return len(self._offsets[0])

    @property
    def coords(self):
        return self._coords

    @property
    def offsets(self):
        return self._offsets

    @property
    def geom_offsets(self):
        return self._offsets[0]

    @property
    def dimensions(self):
        return self._coords.dimensions

    @property
    def coord_type(self):
        return self._coords.coord_type

    @property
    def is_large(self):
        return self._offsets[0].is_large

    def _slice(self, offset, length):
        offsets = (self._offsets[0].slice(offset, length),) + self._offsets[1:]
        validity = self._validity
        if validity is not None:
            validity = validity.slice(offset, length)
        return self._create(self._coords, offsets, validity, self._metadata)

    def with_coord_type(self, coord_type):
        return self._create(
            self._coords.with_coord_type(coord_type),
            self._offsets,
            self._validity,
            self._metadata,
        )

    def to_large(self):
        """A copy of this array with 64-bit offsets"""
        offsets = [o.to_large() for o in self._offsets]
        return self._create(self._coords, offsets, self._validity, self._metadata)

    def to_small(self):
        """A copy of this array with 32-bit offsets

        Raises ``OffsetOverflowError`` if an offset does not fit.
        """
        offsets = [o.to_small() for o in self._offsets]
        return self._create(self._coords, offsets, self._validity, self._metadata)

    def referenced_ranges(self):
        """The ``(start, end)`` range of each level referenced by this array

        The first range covers the geometries themselves and the last covers
        the coordinates.
        """
        start, end = 0, len(self)
        ranges = [(start, end)]
        for level_offsets in self._offsets:
            values = level_offsets.to_numpy()
            start, end = int(values[start]), int(values[end])
            ranges.append((start, end))
        return ranges

    def buffer_lengths(self):
        from geoarrow.native.capacity import Capacity

        counts = [end - start for start, end in self.referenced_ranges()]
        return Capacity(self.geometry_type, counts)
