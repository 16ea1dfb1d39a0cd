import numpy as np

from geoarrow.native.constants import CoordType, Dimensions
from geoarrow.native.errors import GeoArrowError, NotYetImplementedError
from geoarrow.native.offsets import _check_slice


class CoordBuffer:
    """Flat float64 storage for coordinates

    Coordinates are stored either interleaved (one vector of
    ``x, y[, z], x, y[, z], ...``) or separated (one vector per dimension).
    Slices and ``to_numpy()`` of interleaved buffers are views; nothing is
    copied unless the layout changes.

    Parameters
    ----------
    values : array-like or tuple of array-like
        A single vector (or an ``(n, dim)`` array) for ``INTERLEAVED``
        coordinates or a tuple of one vector per dimension for ``SEPARATED``
        coordinates.
    dimensions : Dimensions or str
        ``XY`` or ``XYZ``.
    coord_type : CoordType or str
        ``SEPARATED`` or ``INTERLEAVED``.

    Examples
    --------

    >>> from geoarrow.native.coord import CoordBuffer
    >>> coords = CoordBuffer.separated([1.0, 2.0], [3.0, 4.0])
    >>> len(coords)
    2
    >>> coords.coord(1)
    (2.0, 4.0)
    >>> coords.to_interleaved().values.tolist()
    [1.0, 3.0, 2.0, 4.0]
    """

    def __init__(
        self, values, dimensions=Dimensions.XY, coord_type=CoordType.SEPARATED
    ):
        dimensions = check_dimensions(Dimensions.create(dimensions))
        coord_type = CoordType.create(coord_type)
        n_dim = dimensions.count()

        if coord_type == CoordType.INTERLEAVED:
            values = np.asarray(values, dtype=np.float64)
            if values.ndim == 2 and values.shape[1] == n_dim:
                values = values.reshape(-1)
            if values.ndim != 1 or (len(values) % n_dim) != 0:
                raise GeoArrowError(
                    f"Interleaved {dimensions.name} coordinates must be a vector with "
                    f"a multiple of {n_dim} values"
                )
        elif coord_type == CoordType.SEPARATED:
            values = tuple(np.asarray(plane, dtype=np.float64) for plane in values)
            if len(values) != n_dim:
                raise GeoArrowError(
                    f"Expected {n_dim} coordinate vectors for {dimensions.name} "
                    f"but got {len(values)}"
                )
            if any(plane.ndim != 1 for plane in values):
                raise GeoArrowError("Separated coordinate vectors must be 1D")
            if len({len(plane) for plane in values}) != 1:
                raise GeoArrowError(
                    "Separated coordinate vectors must have equal length"
                )
        else:
            raise ValueError("coord_type must be SEPARATED or INTERLEAVED")

        self._values = values
        self._dimensions = dimensions
        self._coord_type = coord_type

    @classmethod
    def interleaved(cls, values, dimensions=Dimensions.XY):
        return cls(values, dimensions, CoordType.INTERLEAVED)

    @classmethod
    def separated(cls, *planes):
        return cls(planes, Dimensions.from_count(len(planes)), CoordType.SEPARATED)

    @classmethod
    def from_numpy(cls, coords, coord_type=CoordType.SEPARATED):
        """Create a buffer from an ``(n, 2)`` or ``(n, 3)`` array"""
        coords = np.asarray(coords, dtype=np.float64)
        if coords.ndim != 2:
            raise ValueError("Expected a two-dimensional array of coordinates")
        dimensions = Dimensions.from_count(coords.shape[1])
        if CoordType.create(coord_type) == CoordType.INTERLEAVED:
            return cls(np.ascontiguousarray(coords).reshape(-1), dimensions, coord_type)
        else:
            planes = tuple(coords[:, i].copy() for i in range(coords.shape[1]))
            return cls(planes, dimensions, coord_type)

    @classmethod
    def empty(cls, dimensions=Dimensions.XY, coord_type=CoordType.SEPARATED):
        dimensions = Dimensions.create(dimensions)
        return cls.from_numpy(np.empty((0, dimensions.count())), coord_type)

    def __len__(self):
        if self._coord_type == CoordType.INTERLEAVED:
            return len(self._values) // self._dimensions.count()
        else:
            return len(self._values[0])

    def __eq__(self, other):
        if not isinstance(other, CoordBuffer):
            return NotImplemented
        return (
            self._coord_type == other._coord_type
            and self._dimensions == other._dimensions
            and np.array_equal(self.to_numpy(), other.to_numpy(), equal_nan=True)
        )

    def __repr__(self):
        return (
            f"CoordBuffer<{self._coord_type.name.lower()} "
            f"{self._dimensions.name}>[{len(self)}]"
        )

    @property
    def dimensions(self):
        return self._dimensions

    @property
    def coord_type(self):
        return self._coord_type

    @property
    def values(self):
        """The underlying vector (interleaved) or tuple of vectors (separated)"""
        return self._values

    def coord(self, i):
        n_dim = self._dimensions.count()
        if self._coord_type == CoordType.INTERLEAVED:
            return tuple(self._values[(i * n_dim) : ((i + 1) * n_dim)].tolist())
        else:
            return tuple(float(plane[i]) for plane in self._values)

    def ordinate(self, j):
        """Values of dimension ``j`` (0 for x, 1 for y, 2 for z)"""
        if self._coord_type == CoordType.INTERLEAVED:
            return self._values[j :: self._dimensions.count()]
        else:
            return self._values[j]

    def to_numpy(self, start=0, end=None):
        """An ``(n, dim)`` array of coordinates ``start:end``

        A view for interleaved coordinates and a copy for separated ones.
        """
        if end is None:
            end = len(self)
        n_dim = self._dimensions.count()
        if self._coord_type == CoordType.INTERLEAVED:
            return self._values[(start * n_dim) : (end * n_dim)].reshape(-1, n_dim)
        else:
            return np.column_stack([plane[start:end] for plane in self._values])

    def slice(self, offset, length):
        _check_slice(offset, length, len(self))
        if self._coord_type == CoordType.INTERLEAVED:
            n_dim = self._dimensions.count()
            values = self._values[(offset * n_dim) : ((offset + length) * n_dim)]
        else:
            values = tuple(plane[offset : (offset + length)] for plane in self._values)
        return CoordBuffer(values, self._dimensions, self._coord_type)

    def to_interleaved(self):
        if self._coord_type == CoordType.INTERLEAVED:
            return self
        return CoordBuffer.from_numpy(self.to_numpy(), CoordType.INTERLEAVED)

    def to_separated(self):
        if self._coord_type == CoordType.SEPARATED:
            return self
        return CoordBuffer.from_numpy(self.to_numpy(), CoordType.SEPARATED)

    def with_coord_type(self, coord_type):
        coord_type = CoordType.create(coord_type)
        if coord_type == CoordType.INTERLEAVED:
            return self.to_interleaved()
        elif coord_type == CoordType.SEPARATED:
            return self.to_separated()
        else:
            return self


class CoordBufferBuilder:
    """Growable coordinate storage

    Coordinates with fewer ordinates than the builder's dimensions are
    padded with ``nan``; extra ordinates are dropped.
    """

    def __init__(
        self, capacity=0, dimensions=Dimensions.XY, coord_type=CoordType.SEPARATED
    ):
        self._dimensions = check_dimensions(Dimensions.create(dimensions))
        self._coord_type = CoordType.create(coord_type)
        self._n_dim = self._dimensions.count()
        self._len = 0
        self._allocate(capacity)

    def _allocate(self, capacity):
        if self._coord_type == CoordType.INTERLEAVED:
            self._data = np.empty(capacity * self._n_dim, dtype=np.float64)
        else:
            self._data = [
                np.empty(capacity, dtype=np.float64) for _ in range(self._n_dim)
            ]

    def __len__(self):
        return self._len

    @property
    def capacity(self):
        if self._coord_type == CoordType.INTERLEAVED:
            return len(self._data) // self._n_dim
        else:
            return len(self._data[0])

    def reserve(self, additional):
        needed = self._len + additional
        capacity = self.capacity
        if needed <= capacity:
            return

        old_data = self._data
        self._allocate(max(2 * capacity, needed))
        if self._coord_type == CoordType.INTERLEAVED:
            n_values = self._len * self._n_dim
            self._data[:n_values] = old_data[:n_values]
        else:
            for new_plane, old_plane in zip(self._data, old_data):
                new_plane[: self._len] = old_plane[: self._len]

    def push_coord(self, coord):
        self.reserve(1)
        n_in = len(coord)
        i = self._len
        if self._coord_type == CoordType.INTERLEAVED:
            base = i * self._n_dim
            for j in range(self._n_dim):
                self._data[base + j] = coord[j] if j < n_in else np.nan
        else:
            for j, plane in enumerate(self._data):
                plane[i] = coord[j] if j < n_in else np.nan
        self._len += 1

    def push_nan_coord(self):
        self.push_coord(())

    def push_coords(self, coords):
        coords = np.asarray(coords, dtype=np.float64)
        n = coords.shape[0]
        if n == 0:
            return

        self.reserve(n)
        n_in = min(coords.shape[1], self._n_dim)
        start = self._len
        if self._coord_type == CoordType.INTERLEAVED:
            dest = self._data[(start * self._n_dim) : ((start + n) * self._n_dim)]
            dest = dest.reshape(n, self._n_dim)
            dest[:, :n_in] = coords[:, :n_in]
            dest[:, n_in:] = np.nan
        else:
            for j, plane in enumerate(self._data):
                plane[start : (start + n)] = coords[:, j] if j < n_in else np.nan
        self._len += n

    def finish(self):
        if self._coord_type == CoordType.INTERLEAVED:
            values = self._data[: (self._len * self._n_dim)]
        else:
            values = tuple(plane[: self._len] for plane in self._data)
        return CoordBuffer(values, self._dimensions, self._coord_type)


def check_dimensions(dimensions):
    if dimensions not in (Dimensions.XY, Dimensions.XYZ):
        raise NotYetImplementedError(
            f"Native arrays support XY and XYZ dimensions but got {dimensions.name}"
        )
    return dimensions
