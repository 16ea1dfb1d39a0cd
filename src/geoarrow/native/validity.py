import numpy as np


class Validity:
    """Per-slot validity mask

    Stored as a numpy bool vector (``True`` for a present value). Arrays
    use ``None`` instead of a ``Validity`` when every slot is valid.
    """

    def __init__(self, mask):
        mask = np.asarray(mask, dtype=np.bool_)
        if mask.ndim != 1:
            raise ValueError("Validity mask must be one-dimensional")
        self._mask = mask

    @classmethod
    def from_buffer(cls, buf, offset, length):
        """Unpack an Arrow validity bitmap (least significant bit first)"""
        bits = np.unpackbits(
            np.frombuffer(buf, dtype=np.uint8),
            count=offset + length,
            bitorder="little",
        )
        return cls(bits[offset:].astype(np.bool_))

    def __len__(self):
        return len(self._mask)

    def __eq__(self, other):
        if not isinstance(other, Validity):
            return NotImplemented
        return np.array_equal(self._mask, other._mask)

    def __repr__(self):
        return f"Validity({self._mask.tolist()})"

    @property
    def null_count(self):
        return int(len(self._mask) - np.count_nonzero(self._mask))

    def is_valid(self, i):
        return bool(self._mask[i])

    def slice(self, offset, length):
        return Validity(self._mask[offset : (offset + length)])

    def to_numpy(self):
        return self._mask

    def to_buffer(self):
        """Pack into an Arrow validity bitmap"""
        return np.packbits(self._mask, bitorder="little").tobytes()


class ValidityBuilder:
    """Append-only validity mask

    The mask is only materialized once the first null is appended, so an
    array with no nulls finishes with ``None``.
    """

    def __init__(self, capacity=0):
        self._capacity = capacity
        self._len = 0
        self._mask = None

    def __len__(self):
        return self._len

    def append(self, valid):
        if not valid and self._mask is None:
            self._mask = np.ones(max(self._capacity, self._len + 1), dtype=np.bool_)

        if self._mask is not None:
            if self._len == len(self._mask):
                grown = np.ones(max(2 * len(self._mask), 1), dtype=np.bool_)
                grown[: self._len] = self._mask
                self._mask = grown
            self._mask[self._len] = valid

        self._len += 1

    def finish(self):
        if self._mask is None:
            return None
        return Validity(self._mask[: self._len])


def validity_from_mask(mask):
    """``None`` for an all-valid mask, else a ``Validity``"""
    if mask is None:
        return None
    if isinstance(mask, Validity):
        mask = mask.to_numpy()
    mask = np.asarray(mask, dtype=np.bool_)
    if mask.all():
        return None
    return Validity(mask)


def slice_validity(validity, offset, length):
    if validity is None:
        return None
    return validity.slice(offset, length)
