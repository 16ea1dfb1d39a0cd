import numpy as np

from geoarrow.native.errors import FormatError, GeoArrowError, OffsetOverflowError

INT32_MAX = int(np.iinfo(np.int32).max)


class OffsetBuffer:
    """Offsets partitioning a child buffer into variable-length runs

    Slot ``i`` owns the half-open range ``offsets[i]:offsets[i + 1]`` of the
    child buffer. Offsets are stored as int32 (the default) or int64 numpy
    vectors. Slicing shares the underlying vector, so the first offset of a
    slice may be non-zero.

    Examples
    --------

    >>> from geoarrow.native.offsets import OffsetBuffer
    >>> offsets = OffsetBuffer.from_sequence([0, 2, 2, 5])
    >>> len(offsets)
    3
    >>> offsets.start_end(2)
    (2, 5)
    """

    def __init__(self, offsets):
        offsets = np.asarray(offsets)
        if offsets.dtype not in (np.int32, np.int64):
            raise TypeError(f"Offsets must be int32 or int64 but got {offsets.dtype}")
        if offsets.ndim != 1 or len(offsets) == 0:
            raise GeoArrowError("Offsets must be a non-empty one-dimensional array")
        self._offsets = offsets

    @classmethod
    def from_sequence(cls, values, large=False):
        """Create offsets from a sequence of integers, checking that the
        sequence starts at zero and never decreases.
        """
        values = np.asarray(values, dtype=np.int64)
        if values.ndim != 1 or len(values) == 0:
            raise FormatError("Offsets must contain at least one value")
        if values[0] != 0:
            raise FormatError(f"Offsets must start at 0 but start at {values[0]}")

        decreasing = np.flatnonzero(np.diff(values) < 0)
        if len(decreasing):
            pos = int(decreasing[0]) + 1
            raise FormatError("Offsets must be non-decreasing", position=pos)

        if not large:
            _check_small(int(values[-1]))
            return cls(values.astype(np.int32))
        else:
            return cls(values)

    @classmethod
    def from_lengths(cls, lengths, large=False):
        lengths = np.asarray(lengths, dtype=np.int64)
        values = np.zeros(len(lengths) + 1, dtype=np.int64)
        np.cumsum(lengths, out=values[1:])
        return cls.from_sequence(values, large=large)

    @classmethod
    def empty(cls, large=False):
        return cls(np.zeros(1, dtype=np.int64 if large else np.int32))

    def __len__(self):
        return len(self._offsets) - 1

    def __eq__(self, other):
        if not isinstance(other, OffsetBuffer):
            return NotImplemented
        return np.array_equal(self._offsets, other._offsets)

    def __repr__(self):
        width = 64 if self.is_large else 32
        return f"OffsetBuffer<int{width}>({self._offsets.tolist()})"

    @property
    def is_large(self):
        return self._offsets.dtype == np.int64

    @property
    def first(self):
        return int(self._offsets[0])

    @property
    def last(self):
        return int(self._offsets[-1])

    def start_end(self, i):
        if i < 0 or i >= len(self):
            raise IndexError(f"Offset index {i} out of range for {len(self)} slots")
        return int(self._offsets[i]), int(self._offsets[i + 1])

    def lengths(self):
        return np.diff(self._offsets)

    def slice(self, offset, length):
        _check_slice(offset, length, len(self))
        return OffsetBuffer(self._offsets[offset : (offset + length + 1)])

    def to_large(self):
        """Widen to int64 offsets. This always succeeds."""
        if self.is_large:
            return self
        return OffsetBuffer(self._offsets.astype(np.int64))

    def to_small(self):
        """Narrow to int32 offsets

        Raises ``OffsetOverflowError`` if the last offset does not fit in
        a signed 32-bit integer.
        """
        if not self.is_large:
            return self
        _check_small(self.last)
        return OffsetBuffer(self._offsets.astype(np.int32))

    def to_numpy(self):
        return self._offsets


class OffsetBufferBuilder:
    """Append-only offsets with a preallocated capacity

    The buffer grows geometrically if more than ``capacity`` slots are
    pushed.
    """

    def __init__(self, capacity=0, large=False):
        self._data = np.zeros(capacity + 1, dtype=np.int64 if large else np.int32)
        self._len = 1
        self._large = large

    def __len__(self):
        return self._len - 1

    @property
    def last(self):
        return int(self._data[self._len - 1])

    @property
    def capacity(self):
        return len(self._data) - 1

    def push_offset(self, value):
        if not self._large:
            _check_small(value)
        if self._len == len(self._data):
            self._grow(1)
        self._data[self._len] = value
        self._len += 1

    def push_length(self, length):
        self.push_offset(self.last + length)

    def _grow(self, additional):
        new_size = max(2 * len(self._data), self._len + additional)
        data = np.empty(new_size, dtype=self._data.dtype)
        data[: self._len] = self._data[: self._len]
        self._data = data

    def finish(self):
        return OffsetBuffer(self._data[: self._len])


def _check_small(value):
    if value > INT32_MAX:
        raise OffsetOverflowError(
            f"Offset {value} exceeds the maximum of a 32-bit offset buffer ({INT32_MAX})"
        )


def _check_slice(offset, length, total):
    if offset < 0 or length < 0 or offset + length > total:
        raise IndexError(
            f"Can't slice {length} values at offset {offset} from {total} values"
        )
