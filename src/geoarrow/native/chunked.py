import logging
from concurrent.futures import ThreadPoolExecutor, wait
from itertools import chain

import numpy as np

from geoarrow.native.constants import GeometryType
from geoarrow.native.errors import GeoArrowError

logger = logging.getLogger(__name__)


class ChunkedGeometryArray:
    """An ordered sequence of arrays of one type treated as a single column

    Operations are applied to each chunk independently and their results
    are returned in chunk order.

    Examples
    --------

    >>> from geoarrow import native as gn
    >>> chunked = gn.ChunkedGeometryArray(
    ...     [gn.from_wkt(["POINT (0 1)"]), gn.from_wkt(["POINT (2 3)", "POINT (4 5)"])]
    ... )
    >>> len(chunked), chunked.num_chunks
    (3, 2)
    >>> chunked[2]
    <POINT (4 5)>
    """

    def __init__(self, chunks, data_type=None):
        chunks = list(chunks)
        data_types = {chunk.data_type for chunk in chunks}
        if data_type is not None:
            data_types.add(data_type)
        if len(data_types) > 1:
            raise GeoArrowError(
                "Chunks must all have the same type but got "
                f"{sorted(map(repr, data_types))}"
            )
        elif not data_types:
            raise GeoArrowError(
                "Can't infer the type of a chunked array without chunks"
            )

        self._chunks = chunks
        self._data_type = data_types.pop()
        self._chunk_offsets = np.cumsum([0] + [len(chunk) for chunk in chunks])

    @property
    def chunks(self):
        return list(self._chunks)

    @property
    def num_chunks(self):
        return len(self._chunks)

    def chunk(self, i):
        return self._chunks[i]

    @property
    def data_type(self):
        return self._data_type

    @property
    def metadata(self):
        if not self._chunks:
            return None
        return self._chunks[0].metadata

    @property
    def null_count(self):
        return sum(chunk.null_count for chunk in self._chunks)

    def __len__(self):
        return int(self._chunk_offsets[-1])

    def __getitem__(self, i):
        n = len(self)
        if i < 0:
            i += n
        if i < 0 or i >= n:
            raise IndexError(f"Index {i} out of range for chunked array of length {n}")
        chunk_index = int(np.searchsorted(self._chunk_offsets, i, side="right")) - 1
        return self._chunks[chunk_index][i - int(self._chunk_offsets[chunk_index])]

    def __iter__(self):
        return chain.from_iterable(self._chunks)

    def __eq__(self, other):
        if not isinstance(other, ChunkedGeometryArray):
            return NotImplemented
        return self.data_type == other.data_type and self._chunks == other._chunks

    __hash__ = None

    def __repr__(self):
        chunks = "\n".join(
            f"-- chunk {i} --\n{chunk!r}" for i, chunk in enumerate(self._chunks)
        )
        header = f"ChunkedGeometryArray:{self._data_type!r}[{len(self)}]"
        return f"{header}\n{chunks}".strip()

    def map(self, func, max_workers=None):
        """Apply ``func`` to every chunk

        With ``max_workers``, chunks are processed on a thread pool. Results
        are always returned in chunk order.
        """
        logger.debug(
            "Mapping %s over %d chunks (max_workers=%s)",
            getattr(func, "__name__", func),
            self.num_chunks,
            max_workers,
        )

        if max_workers is None:
            return [func(chunk) for chunk in self._chunks]

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(func, chunk) for chunk in self._chunks]
            wait(futures)
            return [future.result() for future in futures]

    def with_metadata(self, metadata):
        return ChunkedGeometryArray(
            [chunk.with_metadata(metadata) for chunk in self._chunks], self._data_type
        )

    def downcast(self, prefer_multi=False, max_workers=None):
        """Downcast every chunk to the same concrete type, if possible

        Chunks without valid values take the type of the others. If the
        chunks narrow to the single and multi-part types of one family, the
        multi-part type is used for all of them. Otherwise this array is
        returned unchanged.
        """
        from geoarrow.native.array import builder_class
        from geoarrow.native.downcast import downcast

        def downcast_chunk(chunk):
            return downcast(chunk, prefer_multi)

        downcasted = self.map(downcast_chunk, max_workers)
        informative = [
            out
            for chunk, out in zip(self._chunks, downcasted)
            if _has_valid_values(chunk)
        ]
        geometry_types = {out.geometry_type for out in informative}
        if not geometry_types:
            return self

        target = GeometryType.common(*geometry_types)
        if not target.is_concrete():
            return self

        if len(geometry_types) > 1:
            return self.downcast(prefer_multi=True, max_workers=max_workers)

        builder = builder_class(target)
        chunks = []
        for chunk, out in zip(self._chunks, downcasted):
            if out.geometry_type != target:
                out = builder.from_geometries(
                    list(chunk), chunk.dimensions, chunk.coord_type, chunk.metadata
                )
            chunks.append(out)

        logger.debug("Downcast %d chunks to %s", len(chunks), target.name)
        return ChunkedGeometryArray(chunks)

    def total_bounds(self):
        from geoarrow.native.bounding_rect import total_bounds

        return total_bounds(self)

    def bounding_rects(self):
        from geoarrow.native.bounding_rect import bounding_rects

        if not self._chunks:
            return np.empty((0, 4))
        return np.concatenate(self.map(bounding_rects))

    def to_wkb(self, large=False):
        from geoarrow.native.io import to_wkb

        return to_wkb(self, large=large)

    def to_wkt(self, large=False):
        from geoarrow.native.io import to_wkt

        return to_wkt(self, large=large)

    def to_pyarrow(self):
        from geoarrow.native.type_pyarrow import to_pyarrow

        return to_pyarrow(self)


def _has_valid_values(chunk):
    return len(chunk) > chunk.null_count
