import numpy as np

from geoarrow.native.array.base import ArrayBase
from geoarrow.native.capacity import WKBCapacity
from geoarrow.native.constants import Encoding
from geoarrow.native.datatypes import SerializedType
from geoarrow.native.errors import GeoArrowError
from geoarrow.native.metadata import ArrayMetadata
from geoarrow.native.offsets import OffsetBuffer
from geoarrow.native.validity import ValidityBuilder, validity_from_mask


class SerializedArray(ArrayBase):
    """A binary or string column of serialized geometries

    ``values`` is a uint8 vector holding every value back to back and
    ``offsets`` partitions it. Slicing shares both buffers.
    """

    small_encoding = None
    large_encoding = None

    def __init__(self, values, offsets, validity=None, metadata=None):
        if isinstance(values, (bytes, bytearray, memoryview)):
            values = np.frombuffer(values, dtype=np.uint8)
        values = np.asarray(values)
        if values.dtype != np.uint8 or values.ndim != 1:
            raise GeoArrowError("Serialized values must be a uint8 vector")

        if not isinstance(offsets, OffsetBuffer):
            offsets = OffsetBuffer.from_sequence(offsets)
        if offsets.last > len(values):
            raise GeoArrowError(
                f"Offsets reference {offsets.last} bytes but only {len(values)} "
                "are available"
            )

        validity = validity_from_mask(validity)
        if validity is not None and len(validity) != len(offsets):
            raise GeoArrowError(
                f"Expected validity of length {len(offsets)} but got {len(validity)}"
            )

        self._values = values
        self._offsets = offsets
        self._validity = validity
        self._metadata = ArrayMetadata.create(metadata)

    @classmethod
    def from_sequence(cls, items, large=False, metadata=None):
        """Create an array from a sequence of values and ``None``

        The total size is computed before the data buffer is allocated.
        """
        items = [None if item is None else cls._encode(item) for item in items]
        lengths = [0 if item is None else len(item) for item in items]
        offsets = OffsetBuffer.from_lengths(lengths, large=large)

        values = np.empty(offsets.last, dtype=np.uint8)
        validity = ValidityBuilder(len(items))
        pos = 0
        for item in items:
            validity.append(item is not None)
            if item:
                values[pos : (pos + len(item))] = np.frombuffer(item, dtype=np.uint8)
                pos += len(item)

        return cls(values, offsets, validity.finish(), metadata)

    @staticmethod
    def _encode(item):
        return bytes(item)

    def __len__(self):
        return len(self._offsets)

    @property
    def values(self):
        return self._values

    @property
    def offsets(self):
        return self._offsets

    @property
    def is_large(self):
        return self._offsets.is_large

    @property
    def encoding(self) -> Encoding:
        return self.large_encoding if self.is_large else self.small_encoding

    @property
    def data_type(self):
        return SerializedType(self.encoding)

    @property
    def num_bytes(self):
        """Number of payload bytes referenced by this array"""
        return self._offsets.last - self._offsets.first

    def buffer_lengths(self):
        return WKBCapacity(self.num_bytes, len(self))

    def _view(self, i):
        start, end = self._offsets.start_end(i)
        return self._values[start:end]

    def _slice(self, offset, length):
        validity = self._validity
        if validity is not None:
            validity = validity.slice(offset, length)
        return type(self)(
            self._values, self._offsets.slice(offset, length), validity, self._metadata
        )

    def to_large(self):
        return type(self)(
            self._values, self._offsets.to_large(), self._validity, self._metadata
        )

    def to_small(self):
        """A copy with 32-bit offsets

        Raises ``OffsetOverflowError`` if the payload is too large.
        """
        return type(self)(
            self._values, self._offsets.to_small(), self._validity, self._metadata
        )

    def to_pyarrow(self):
        from geoarrow.native.type_pyarrow import to_pyarrow

        return to_pyarrow(self)

    def extension_field(self, name="geometry"):
        from geoarrow.native.type_pyarrow import extension_field

        return extension_field(self.data_type, name, self.metadata)


class WKBArray(SerializedArray):
    """An array of well-known binary values

    Examples
    --------

    >>> from geoarrow.native import WKBArray
    >>> wkb = bytes.fromhex("01010000000000000000003e400000000000002440")
    >>> WKBArray.from_sequence([wkb, None])
    WKBArray:SerializedType(wkb)[2]
    <POINT (30 10)>
    null
    """

    small_encoding = Encoding.WKB
    large_encoding = Encoding.LARGE_WKB

    def _value(self, i):
        return self._view(i).tobytes()

    def _format_value(self, item):
        from geoarrow.native._wkb import read_wkb
        from geoarrow.native._wkt import format_wkt

        return format_wkt(read_wkb(item))


class WKTArray(SerializedArray):
    """An array of well-known text values"""

    small_encoding = Encoding.WKT
    large_encoding = Encoding.LARGE_WKT

    @staticmethod
    def _encode(item):
        return item.encode("utf-8")

    def _value(self, i):
        return self._view(i).tobytes().decode("utf-8")

    def _format_value(self, item):
        return item
