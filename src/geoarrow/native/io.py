"""Conversion between serialized geometries and native arrays

WKB is decoded in two passes: every value is parsed into lightweight views
and measured before the builder allocates its buffers at their final size.
WKT is parsed once, streaming events into a growable builder.
"""

import logging
import re
import warnings

import numpy as np
import pyarrow as pa

from geoarrow.native.array import (
    ArrayBase,
    GeometryArray,
    GeometryCollectionBuilder,
    MixedGeometryBuilder,
    SerializedArray,
    WKBArray,
    WKTArray,
    builder_class,
)
from geoarrow.native.capacity import WKBCapacity
from geoarrow.native.chunked import ChunkedGeometryArray
from geoarrow.native.constants import CoordType, Dimensions, Encoding, GeometryType
from geoarrow.native.datatypes import NativeType, SerializedType
from geoarrow.native.errors import OffsetOverflowError
from geoarrow.native.metadata import ArrayMetadata, CrsType
from geoarrow.native.offsets import INT32_MAX, OffsetBufferBuilder
from geoarrow.native._wkb import read_wkb, write_wkb_into
from geoarrow.native._wkt import format_wkt, parse_wkt

logger = logging.getLogger(__name__)

_NUMBER = r"(?:[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?|nan|inf)"

_WKT_XYZ = re.compile(
    r"\b(?:POINT|LINESTRING|POLYGON|MULTIPOINT|MULTILINESTRING|MULTIPOLYGON"
    r"|GEOMETRYCOLLECTION)\s*Z\b"
    rf"|{_NUMBER}\s+{_NUMBER}\s+{_NUMBER}",
    re.IGNORECASE,
)


def array(obj, type_=None) -> ArrayBase:
    """Create a WKB or WKT array from ``obj`` with as few transformations as
    possible

    Native and serialized arrays are returned unchanged. Sequences of
    ``bytes`` become :class:`WKBArray`\\ s and sequences of ``str`` become
    :class:`WKTArray`\\ s (via ``pyarrow.array()``). If ``type_`` is given
    (a ``SerializedType`` or an encoding name such as ``"large_wkb"``),
    the result is encoded as that type.

    >>> from geoarrow import native as gn
    >>> gn.array(["POINT (0 1)"])
    WKTArray:SerializedType(wkt)[1]
    <POINT (0 1)>
    >>> gn.array(["POINT (0 1)"], "wkb")
    WKBArray:SerializedType(wkb)[1]
    <POINT (0 1)>
    """
    from geoarrow.native.type_pyarrow import from_pyarrow

    if isinstance(obj, (ArrayBase, ChunkedGeometryArray)):
        out = obj
    else:
        if not isinstance(obj, (pa.Array, pa.ChunkedArray)):
            obj = pa.array(obj)

        storage_type = obj.type
        if isinstance(storage_type, pa.ExtensionType):
            storage_type = storage_type.storage_type
        if storage_type not in (
            pa.utf8(),
            pa.large_utf8(),
            pa.binary(),
            pa.large_binary(),
        ):
            raise TypeError(
                f"Can't create a geometry array from Arrow type {storage_type}"
            )
        out = from_pyarrow(obj)

    if type_ is None:
        return out

    if not isinstance(type_, SerializedType):
        type_ = SerializedType(Encoding.create(type_))
    if type_.encoding in (Encoding.WKB, Encoding.LARGE_WKB):
        return to_wkb(out, large=type_.encoding.is_large())
    else:
        return to_wkt(out, large=type_.encoding.is_large())


def _resolve_type(type, dimensions, coord_type):
    spec = NativeType.create(type, dimensions, coord_type)
    geometry_type = GeometryType.coalesce(
        spec.geometry_type, GeometryType.GEOMETRYCOLLECTION
    )
    coord_type = CoordType.coalesce(spec.coord_type, CoordType.SEPARATED)
    return geometry_type, spec.dimensions, coord_type


def _builder_kwargs(builder, prefer_multi, large_offsets):
    kwargs = {"large_offsets": large_offsets}
    if builder in (MixedGeometryBuilder, GeometryCollectionBuilder):
        kwargs["prefer_multi"] = prefer_multi
    return kwargs


def _is_chunked(obj):
    return isinstance(obj, (ChunkedGeometryArray, pa.ChunkedArray))


def _serialized_values(obj, cls):
    """The values and metadata of a serialized array or sequence"""
    if isinstance(obj, (pa.Array, pa.ChunkedArray)):
        obj = array(obj)

    if isinstance(obj, cls):
        return list(obj), obj.metadata
    elif isinstance(obj, SerializedArray):
        raise TypeError(f"Expected {cls.__name__} but got {type(obj).__name__}")
    else:
        return list(obj), None


def from_wkb(
    obj,
    type=None,
    *,
    dimensions=None,
    coord_type=None,
    prefer_multi=False,
    downcast=None,
    large_offsets=False,
    metadata=None,
):
    """Decode well-known binary into a native array

    Parameters
    ----------
    obj : WKBArray, ChunkedGeometryArray, pyarrow array or sequence
        WKB (or EWKB) values and ``None``.
    type : NativeType, GeometryType or str, optional
        The requested array type. A concrete type requires every value to
        be of that type (or, for multi-part types, of the matching single
        part type). Defaults to a geometry collection array that is then
        downcast.
    dimensions : Dimensions or str, optional
        Defaults to ``XYZ`` if any value is 3D, else ``XY``.
    coord_type : CoordType or str, optional
        Defaults to ``SEPARATED``.
    prefer_multi : bool
        Store single-part geometries as multi-part geometries in mixed
        arrays and prefer multi-part types when downcasting.
    downcast : bool, optional
        Narrow the result with :func:`geoarrow.native.downcast`. Defaults to
        ``True`` when ``type`` is not given.
    large_offsets : bool
        Build 64-bit offsets.
    metadata : ArrayMetadata or str, optional
        Defaults to the metadata of ``obj``.

    Examples
    --------

    >>> from geoarrow import native as gn
    >>> gn.from_wkb([bytes.fromhex("01010000000000000000003e400000000000002440")])
    PointArray:NativeType(geoarrow.point)[1]
    <POINT (30 10)>
    """
    kwargs = dict(
        dimensions=dimensions,
        coord_type=coord_type,
        prefer_multi=prefer_multi,
        downcast=downcast,
        large_offsets=large_offsets,
        metadata=metadata,
    )
    if _is_chunked(obj):
        return _from_chunked(from_wkb, obj, type, kwargs)

    values, obj_metadata = _serialized_values(obj, WKBArray)
    geoms = [None if value is None else read_wkb(value) for value in values]
    if metadata is None:
        metadata = obj_metadata
    return _build(geoms, type, metadata, kwargs)


def from_ewkb(
    obj,
    type=None,
    *,
    dimensions=None,
    coord_type=None,
    prefer_multi=False,
    downcast=None,
    large_offsets=False,
):
    """Decode extended well-known binary into a native array

    Like :func:`from_wkb`, except that the SRID embedded in the values (if
    they all share one) becomes the CRS of the result. Values with
    different SRIDs emit a warning and no CRS is set.

    >>> from geoarrow import native as gn
    >>> ewkb = bytes.fromhex("0101000020e61000000000000000003e400000000000002440")
    >>> gn.from_ewkb([ewkb]).metadata.crs
    '4326'
    """
    kwargs = dict(
        dimensions=dimensions,
        coord_type=coord_type,
        prefer_multi=prefer_multi,
        downcast=downcast,
        large_offsets=large_offsets,
    )
    if _is_chunked(obj):
        return _from_chunked(from_ewkb, obj, type, kwargs)

    values, metadata = _serialized_values(obj, WKBArray)
    geoms = [None if value is None else read_wkb(value) for value in values]

    srids = {geom.srid for geom in geoms if geom is not None}
    srids.discard(None)
    if len(srids) == 1:
        metadata = ArrayMetadata.create(str(srids.pop()), CrsType.SRID)
    elif len(srids) > 1:
        warnings.warn(
            f"EWKB values have {len(srids)} different SRIDs; the result has no CRS"
        )

    return _build(geoms, type, metadata, kwargs)


def _from_chunked(func, obj, type, kwargs):
    chunks = obj.chunks
    downcast = kwargs.pop("downcast")
    if downcast is None:
        downcast = type is None

    out = ChunkedGeometryArray(
        [func(chunk, type, downcast=False, **kwargs) for chunk in chunks]
        or [func([], type, downcast=False, **kwargs)]
    )
    if downcast:
        out = out.downcast(kwargs["prefer_multi"])
    return out


def _build(geoms, type, metadata, kwargs):
    geometry_type, dimensions, coord_type = _resolve_type(
        type, kwargs["dimensions"], kwargs["coord_type"]
    )
    if dimensions == Dimensions.UNSPECIFIED:
        dimensions = Dimensions.common(
            *(geom.dimensions for geom in geoms if geom is not None)
        )

    builder = builder_class(geometry_type)
    builder_kwargs = _builder_kwargs(
        builder, kwargs["prefer_multi"], kwargs["large_offsets"]
    )
    capacity = builder.measure(geoms, **builder_kwargs)
    logger.debug("Measured %r for %d values", capacity, len(geoms))

    out = builder(capacity, dimensions, coord_type, metadata, **builder_kwargs)
    out.extend(geoms)
    out = out.finish()

    downcast = kwargs["downcast"]
    if downcast is None:
        downcast = type is None
    if downcast:
        out = out.downcast(kwargs["prefer_multi"])

    logger.debug("Decoded %d values as %r", len(out), out.data_type)
    return out


def from_wkt(
    obj,
    type=None,
    *,
    dimensions=None,
    coord_type=None,
    prefer_multi=False,
    downcast=None,
    large_offsets=False,
    metadata=None,
):
    """Parse well-known text into a native array

    Parameters are the same as for :func:`from_wkb`. Text is parsed in a
    single pass into a growable builder. Without ``dimensions``, the result
    is ``XYZ`` if any value has a ``Z`` tag or a coordinate with three
    ordinates.

    >>> from geoarrow import native as gn
    >>> gn.from_wkt(["POINT (30 10)", None])
    PointArray:NativeType(geoarrow.point)[2]
    <POINT (30 10)>
    null
    """
    kwargs = dict(
        dimensions=dimensions,
        coord_type=coord_type,
        prefer_multi=prefer_multi,
        downcast=downcast,
        large_offsets=large_offsets,
        metadata=metadata,
    )
    if _is_chunked(obj):
        return _from_chunked(from_wkt, obj, type, kwargs)

    values, obj_metadata = _serialized_values(obj, WKTArray)
    if metadata is None:
        metadata = obj_metadata

    geometry_type, dimensions, coord_type = _resolve_type(type, dimensions, coord_type)
    if dimensions == Dimensions.UNSPECIFIED:
        is_xyz = any(value is not None and _WKT_XYZ.search(value) for value in values)
        dimensions = Dimensions.XYZ if is_xyz else Dimensions.XY

    builder_cls = builder_class(geometry_type)
    builder = builder_cls(
        None,
        dimensions,
        coord_type,
        metadata,
        **_builder_kwargs(builder_cls, prefer_multi, large_offsets),
    )
    for value in values:
        if value is None:
            builder.push_null()
        else:
            parse_wkt(value, builder)
    out = builder.finish()

    if downcast is None:
        downcast = type is None
    if downcast:
        out = out.downcast(prefer_multi)

    logger.debug("Parsed %d WKT values as %r", len(out), out.data_type)
    return out


def to_wkb(obj, large=False):
    """Encode an array as little-endian ISO well-known binary

    Output is always little endian with ISO type codes. Little-endian ISO
    input round trips byte for byte; big-endian or EWKB input is rewritten
    in that form.

    The size of the output is computed before it is allocated. Raises
    ``OffsetOverflowError`` if it does not fit 32-bit offsets and ``large``
    is ``False``.
    """
    if isinstance(obj, ChunkedGeometryArray):
        return ChunkedGeometryArray(obj.map(lambda chunk: to_wkb(chunk, large)))
    elif isinstance(obj, WKBArray):
        return obj.to_large() if large else obj.to_small()
    elif isinstance(obj, WKTArray):
        return to_wkb(from_wkt(obj), large)
    elif not isinstance(obj, GeometryArray):
        raise TypeError(f"Can't encode object of type {type(obj).__name__} as WKB")

    dimensions = obj.dimensions
    geoms = list(obj)
    capacity = WKBCapacity.from_geometries(geoms, dimensions)
    logger.debug("Measured %r", capacity)
    if not large and capacity.buffer > INT32_MAX:
        raise OffsetOverflowError(
            f"WKB of {capacity.buffer} bytes does not fit 32-bit offsets"
        )

    values = np.empty(capacity.buffer, dtype=np.uint8)
    offsets = OffsetBufferBuilder(capacity.geom, large)
    pos = 0
    for geom in geoms:
        if geom is not None:
            pos = write_wkb_into(values, pos, geom, dimensions)
        offsets.push_offset(pos)

    return WKBArray(values, offsets.finish(), obj.validity, obj.metadata)


def to_wkt(obj, large=False):
    """Format an array as well-known text"""
    if isinstance(obj, ChunkedGeometryArray):
        return ChunkedGeometryArray(obj.map(lambda chunk: to_wkt(chunk, large)))
    elif isinstance(obj, WKTArray):
        return obj.to_large() if large else obj.to_small()
    elif isinstance(obj, WKBArray):
        geoms = (None if value is None else read_wkb(value) for value in obj)
    elif isinstance(obj, GeometryArray):
        geoms = iter(obj)
    else:
        raise TypeError(f"Can't format object of type {type(obj).__name__} as WKT")

    values = [None if geom is None else format_wkt(geom) for geom in geoms]
    return WKTArray.from_sequence(values, large=large, metadata=obj.metadata)


def from_shapely(geoms, type=None, **kwargs):
    """Create a native array from a sequence of shapely geometries

    Keyword arguments are passed to :func:`from_wkb`.
    """
    import shapely

    values = shapely.to_wkb(np.asarray(geoms, dtype=object))
    return from_wkb(list(values), type, **kwargs)


def to_shapely(obj):
    """Convert an array to a numpy object array of shapely geometries"""
    import shapely

    wkb = to_wkb(obj)
    if isinstance(wkb, ChunkedGeometryArray):
        values = [value for chunk in wkb.chunks for value in chunk]
    else:
        values = list(wkb)
    return shapely.from_wkb(np.array(values, dtype=object))
