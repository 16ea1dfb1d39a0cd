"""Conversion between native arrays and pyarrow

Arrays are exported as Arrow storage arrays (the extension type is carried
by the field returned from ``extension_field()``) and imported from storage
arrays, extension arrays or chunked arrays.
"""

import numpy as np
import pyarrow as pa
from pyarrow import types as pa_types

from geoarrow.native.constants import (
    CoordType,
    Dimensions,
    Encoding,
    GeometryType,
)
from geoarrow.native.datatypes import (
    NATIVE_TYPE_DEFAULTS,
    NativeType,
    SerializedType,
    _GEOMETRY_TYPE_FROM_EXTENSION_NAME,
)
from geoarrow.native.errors import GeoArrowError, NotYetImplementedError
from geoarrow.native.metadata import ArrayMetadata

EXTENSION_NAME_KEY = b"ARROW:extension:name"
EXTENSION_METADATA_KEY = b"ARROW:extension:metadata"

_NESTED_FIELD_NAMES = {
    GeometryType.POINT: [],
    GeometryType.LINESTRING: ["vertices"],
    GeometryType.POLYGON: ["rings", "vertices"],
    GeometryType.MULTIPOINT: ["points"],
    GeometryType.MULTILINESTRING: ["linestrings", "vertices"],
    GeometryType.MULTIPOLYGON: ["polygons", "rings", "vertices"],
}

_UNION_GEOMETRY_TYPE_LABELS = {
    GeometryType.POINT: "Point",
    GeometryType.LINESTRING: "LineString",
    GeometryType.POLYGON: "Polygon",
    GeometryType.MULTIPOINT: "MultiPoint",
    GeometryType.MULTILINESTRING: "MultiLineString",
    GeometryType.MULTIPOLYGON: "MultiPolygon",
}

_UNION_DIMENSION_LABELS = {
    Dimensions.XY: "",
    Dimensions.XYZ: " Z",
}

_SERIALIZED_STORAGE_TYPES = {
    Encoding.WKB: pa.binary(),
    Encoding.LARGE_WKB: pa.large_binary(),
    Encoding.WKT: pa.utf8(),
    Encoding.LARGE_WKT: pa.large_utf8(),
}

_CONCRETE_GEOMETRY_TYPES = list(_UNION_GEOMETRY_TYPE_LABELS)


def union_type_code(geometry_type, dimensions):
    """The dense union type code of a geometry type and dimension

    >>> from geoarrow.native import GeometryType, Dimensions
    >>> from geoarrow.native.type_pyarrow import union_type_code
    >>> union_type_code(GeometryType.LINESTRING, Dimensions.XYZ)
    12
    """
    return (dimensions.value - 1) * 10 + geometry_type.value


def _struct_fields(dims):
    return pa.struct([pa.field(c, pa.float64(), nullable=False) for c in dims])


def _interleaved_fields(dims):
    return pa.list_(pa.field(dims, pa.float64(), nullable=False), len(dims))


def _coord_type(coord_type, dimensions):
    dims = "xyz"[: dimensions.count()]
    if coord_type == CoordType.INTERLEAVED:
        return _interleaved_fields(dims)
    else:
        return _struct_fields(dims)


def _list_type(child_type, name, large=False):
    field = pa.field(name, child_type, nullable=False)
    return pa.large_list(field) if large else pa.list_(field)


def _nested_type(coord, names, large=False):
    storage = coord
    for name in reversed(names):
        storage = _list_type(storage, name, large)
    return storage


def _union_type(dimensions, coord_type, large=False):
    fields = []
    type_codes = []
    for geometry_type in _CONCRETE_GEOMETRY_TYPES:
        spec = NativeType(geometry_type, dimensions, coord_type)
        label = _UNION_GEOMETRY_TYPE_LABELS[geometry_type]
        dims_label = _UNION_DIMENSION_LABELS[dimensions]
        fields.append(pa.field(f"{label}{dims_label}", storage_type(spec, large)))
        type_codes.append(union_type_code(geometry_type, dimensions))
    return pa.dense_union(fields, type_codes)


def storage_type(spec, large=False) -> pa.DataType:
    """The Arrow storage type for a ``NativeType`` or ``SerializedType``

    >>> from geoarrow import native as gn
    >>> from geoarrow.native.type_pyarrow import storage_type
    >>> storage_type(gn.linestring()).value_field.name
    'vertices'
    >>> storage_type(gn.point(coord_type="interleaved")).list_size
    2
    """
    if isinstance(spec, SerializedType):
        return _SERIALIZED_STORAGE_TYPES[spec.encoding]

    spec = NativeType.create(spec).with_defaults(NATIVE_TYPE_DEFAULTS)
    if spec.dimensions not in _UNION_DIMENSION_LABELS:
        raise NotYetImplementedError(f"Storage for dimensions {spec.dimensions.name}")

    if spec.geometry_type == GeometryType.GEOMETRY:
        return _union_type(spec.dimensions, spec.coord_type, large)
    elif spec.geometry_type == GeometryType.GEOMETRYCOLLECTION:
        union = _union_type(spec.dimensions, spec.coord_type, large)
        return _list_type(union, "geometries", large)
    else:
        coord = _coord_type(spec.coord_type, spec.dimensions)
        return _nested_type(coord, _NESTED_FIELD_NAMES[spec.geometry_type], large)


def extension_field(spec, name="geometry", metadata=None, large=False) -> pa.Field:
    """A ``pyarrow.Field`` carrying the GeoArrow extension name and metadata

    >>> from geoarrow import native as gn
    >>> field = gn.point().extension_field("geom", "OGC:CRS84")
    >>> field.metadata[b"ARROW:extension:name"]
    b'geoarrow.point'
    """
    metadata = ArrayMetadata.create(metadata)
    return pa.field(
        name,
        storage_type(spec, large),
        metadata={
            EXTENSION_NAME_KEY: spec.extension_name().encode(),
            EXTENSION_METADATA_KEY: metadata.to_json().encode(),
        },
    )


def to_pyarrow(array):
    """Export a native or serialized array as an Arrow storage array

    Buffers are shared with the Arrow array where their layout allows it.
    """
    from geoarrow.native.array import (
        GeometryCollectionArray,
        MixedGeometryArray,
        NestedGeometryArray,
        PointArray,
        SerializedArray,
    )
    from geoarrow.native.chunked import ChunkedGeometryArray

    if isinstance(array, ChunkedGeometryArray):
        return pa.chunked_array([to_pyarrow(chunk) for chunk in array.chunks])

    validity = _validity_buffer(array)
    if isinstance(array, SerializedArray):
        return pa.Array.from_buffers(
            _SERIALIZED_STORAGE_TYPES[array.encoding],
            len(array),
            [
                validity,
                pa.py_buffer(array.offsets.to_numpy()),
                pa.py_buffer(array.values),
            ],
        )
    elif isinstance(array, PointArray):
        return _coords_to_pyarrow(array.coords, validity)
    elif isinstance(array, NestedGeometryArray):
        out = _coords_to_pyarrow(array.coords, None)
        names = _NESTED_FIELD_NAMES[array.geometry_type]
        for level in reversed(range(len(names))):
            offsets = array.offsets[level]
            out = pa.Array.from_buffers(
                _list_type(out.type, names[level], offsets.is_large),
                len(offsets),
                [validity if level == 0 else None, pa.py_buffer(offsets.to_numpy())],
                children=[out],
            )
        return out
    elif isinstance(array, MixedGeometryArray):
        return _mixed_to_pyarrow(array)
    elif isinstance(array, GeometryCollectionArray):
        union = _mixed_to_pyarrow(array.geometries)
        offsets = array.geom_offsets
        return pa.Array.from_buffers(
            _list_type(union.type, "geometries", offsets.is_large),
            len(array),
            [validity, pa.py_buffer(offsets.to_numpy())],
            children=[union],
        )
    else:
        raise TypeError(
            f"Can't convert object of type {type(array).__name__} to pyarrow"
        )


def _validity_buffer(array):
    if array.validity is None:
        return None
    return pa.py_buffer(array.validity.to_buffer())


def _coords_to_pyarrow(coords, validity):
    type_ = _coord_type(coords.coord_type, coords.dimensions)
    if coords.coord_type == CoordType.INTERLEAVED:
        children = [pa.array(coords.values)]
    else:
        children = [pa.array(plane) for plane in coords.values]
    return pa.Array.from_buffers(type_, len(coords), [validity], children=children)


def _mixed_to_pyarrow(mixed):
    dimensions = mixed.dimensions
    children = []
    field_names = []
    type_codes = []
    for geometry_type in _CONCRETE_GEOMETRY_TYPES:
        children.append(to_pyarrow(mixed.child(geometry_type)))
        label = _UNION_GEOMETRY_TYPE_LABELS[geometry_type]
        field_names.append(f"{label}{_UNION_DIMENSION_LABELS[dimensions]}")
        type_codes.append(union_type_code(geometry_type, dimensions))

    codes = mixed.type_ids + np.int8((dimensions.value - 1) * 10)
    return pa.UnionArray.from_dense(
        pa.array(codes, pa.int8()),
        pa.array(mixed.value_offsets, pa.int32()),
        children,
        field_names,
        type_codes,
    )


def from_pyarrow(obj, field=None):
    """Import an Arrow array as a native or serialized array

    ``obj`` may be a storage array, an extension array or a chunked array.
    The geometry type comes from the extension name (of the extension type
    or of ``field``) and, without one, from the nesting of the storage type.

    Examples
    --------

    >>> import pyarrow as pa
    >>> from geoarrow import native as gn
    >>> points = gn.from_wkt(["POINT (0 1)"])
    >>> gn.from_pyarrow(points.to_pyarrow(), points.extension_field())
    PointArray:NativeType(geoarrow.point)[1]
    <POINT (0 1)>
    """
    from geoarrow.native.chunked import ChunkedGeometryArray

    if isinstance(obj, pa.ChunkedArray):
        return ChunkedGeometryArray(
            [from_pyarrow(chunk, field) for chunk in obj.chunks]
        )

    extension_name = None
    extension_metadata = None
    if isinstance(obj.type, pa.ExtensionType):
        extension_name = obj.type.extension_name
        extension_metadata = obj.type.__arrow_ext_serialize__()
        obj = obj.storage
    elif field is not None and field.metadata:
        extension_name = field.metadata.get(EXTENSION_NAME_KEY)
        extension_metadata = field.metadata.get(EXTENSION_METADATA_KEY)
        if extension_name is not None:
            extension_name = extension_name.decode()

    metadata = ArrayMetadata.from_json(extension_metadata)
    geometry_type = _geometry_type_from_storage(obj.type, extension_name)
    if geometry_type is None:
        return _serialized_from_pyarrow(obj, metadata)
    return _native_from_pyarrow(obj, geometry_type).with_metadata(metadata)


def _geometry_type_from_storage(type_, extension_name):
    if extension_name in ("geoarrow.wkb", "geoarrow.wkt"):
        return None
    elif extension_name in _GEOMETRY_TYPE_FROM_EXTENSION_NAME:
        return _GEOMETRY_TYPE_FROM_EXTENSION_NAME[extension_name]
    elif extension_name is not None:
        raise GeoArrowError(f"Unsupported extension type {extension_name!r}")

    if type_ in _SERIALIZED_STORAGE_TYPES.values():
        return None
    elif isinstance(type_, pa.DenseUnionType):
        return GeometryType.GEOMETRY

    depth = 0
    while pa_types.is_list(type_) or pa_types.is_large_list(type_):
        type_ = type_.value_type
        depth += 1

    if isinstance(type_, pa.DenseUnionType) and depth == 1:
        return GeometryType.GEOMETRYCOLLECTION
    elif depth > 3 or not _is_coord_type(type_):
        raise GeoArrowError(f"Can't infer geometry type from storage {type_}")
    return (
        GeometryType.POINT,
        GeometryType.LINESTRING,
        GeometryType.POLYGON,
        GeometryType.MULTIPOLYGON,
    )[depth]


def _is_coord_type(type_):
    return pa_types.is_struct(type_) or pa_types.is_fixed_size_list(type_)


def _serialized_from_pyarrow(arr, metadata):
    from geoarrow.native.array import WKBArray, WKTArray

    type_ = arr.type
    if type_ in (pa.binary(), pa.large_binary()):
        cls = WKBArray
    elif type_ in (pa.utf8(), pa.large_utf8()):
        cls = WKTArray
    else:
        raise GeoArrowError(f"Can't import serialized geometries from {type_}")

    from geoarrow.native.offsets import OffsetBuffer

    large = type_ in (pa.large_binary(), pa.large_utf8())
    _, offsets_buf, data_buf = arr.buffers()
    if offsets_buf is None or len(arr) == 0:
        offsets = OffsetBuffer.empty(large)
    else:
        dtype = np.dtype(np.int64 if large else np.int32)
        offsets = OffsetBuffer(
            np.frombuffer(
                offsets_buf,
                dtype=dtype,
                count=len(arr) + 1,
                offset=arr.offset * dtype.itemsize,
            )
        )

    if data_buf is None:
        values = np.empty(0, dtype=np.uint8)
    else:
        values = np.frombuffer(data_buf, dtype=np.uint8)

    return cls(values, offsets, _validity_from_pyarrow(arr), metadata)


def _validity_from_pyarrow(arr):
    if arr.null_count == 0:
        return None
    return arr.is_valid().to_numpy(zero_copy_only=False)


def _offsets_from_pyarrow(arr):
    from geoarrow.native.offsets import OffsetBuffer

    # Empty list arrays may have no offsets at all
    offsets = arr.offsets.to_numpy(zero_copy_only=False)
    if len(offsets) == 0:
        return OffsetBuffer.empty(pa_types.is_large_list(arr.type))
    return OffsetBuffer(offsets)


def _native_from_pyarrow(arr, geometry_type):
    from geoarrow.native.array import (
        CONCRETE_ARRAYS,
        GeometryCollectionArray,
        PointArray,
    )

    if geometry_type == GeometryType.GEOMETRY:
        return _mixed_from_pyarrow(arr)
    elif geometry_type == GeometryType.GEOMETRYCOLLECTION:
        geometries = _mixed_from_pyarrow(arr.values)
        offsets = _offsets_from_pyarrow(arr)
        return GeometryCollectionArray(geometries, offsets, _validity_from_pyarrow(arr))

    validity = _validity_from_pyarrow(arr)
    if geometry_type == GeometryType.POINT:
        return PointArray(_coords_from_pyarrow(arr), validity)

    offsets = []
    level = arr
    for _ in range(geometry_type.depth()):
        if not (pa_types.is_list(level.type) or pa_types.is_large_list(level.type)):
            raise GeoArrowError(
                f"Expected list storage for {geometry_type.name} but got {level.type}"
            )
        offsets.append(_offsets_from_pyarrow(level))
        level = level.values

    coords = _coords_from_pyarrow(level)
    return CONCRETE_ARRAYS[geometry_type](coords, offsets, validity)


def _coords_from_pyarrow(arr):
    from geoarrow.native.coord import CoordBuffer

    type_ = arr.type
    if pa_types.is_struct(type_):
        names = "".join(type_.field(i).name for i in range(type_.num_fields))
        dimensions = _dimensions_from_names(names)
        planes = tuple(
            arr.field(i).to_numpy(zero_copy_only=False) for i in range(type_.num_fields)
        )
        return CoordBuffer(planes, dimensions, CoordType.SEPARATED)
    elif pa_types.is_fixed_size_list(type_):
        dimensions = _dimensions_from_names(type_.value_field.name, type_.list_size)
        n_dim = type_.list_size
        values = arr.values.to_numpy(zero_copy_only=False)
        values = values[(arr.offset * n_dim) : ((arr.offset + len(arr)) * n_dim)]
        return CoordBuffer(values, dimensions, CoordType.INTERLEAVED)
    else:
        raise GeoArrowError(f"Expected coordinate storage but got {type_}")


def _dimensions_from_names(names, n_dim=None):
    names = names.lower()
    if names in ("xy", "xyz"):
        return Dimensions.from_count(len(names))
    elif names in ("xym", "xyzm"):
        raise NotYetImplementedError(f"Coordinates with dimensions {names!r}")
    elif n_dim in (2, 3):
        return Dimensions.from_count(n_dim)
    else:
        raise GeoArrowError(f"Can't infer dimensions from coordinate names {names!r}")


def _mixed_from_pyarrow(arr):
    from geoarrow.native.array import MixedGeometryArray

    if not isinstance(arr.type, pa.DenseUnionType):
        raise GeoArrowError(f"Expected dense union storage but got {arr.type}")

    type_codes = arr.type.type_codes
    point_storage = arr.type.field(0).type
    coord_type = (
        CoordType.INTERLEAVED
        if pa_types.is_fixed_size_list(point_storage)
        else CoordType.SEPARATED
    )

    children = {}
    empty_children = {}
    dimensions = set()
    for i, code in enumerate(type_codes):
        dims_index, type_value = divmod(code, 10)
        if type_value == GeometryType.GEOMETRYCOLLECTION.value:
            raise NotYetImplementedError("nested GEOMETRYCOLLECTION")

        geometry_type = GeometryType(type_value)
        child_dimensions = Dimensions(dims_index + 1)
        child_storage = arr.field(i)
        if len(child_storage) == 0:
            empty_children[(geometry_type, child_dimensions)] = child_storage
            continue

        if geometry_type in children:
            raise GeoArrowError(
                f"Union holds {geometry_type.name} values of more than one dimension"
            )
        children[geometry_type] = _native_from_pyarrow(child_storage, geometry_type)
        dimensions.add(child_dimensions)

    if len(dimensions) > 1:
        raise GeoArrowError("Union children must all have the same dimensions")
    elif not dimensions and type_codes:
        dimensions.add(Dimensions(type_codes[0] // 10 + 1))

    # Empty children of the union's dimension keep their offset width
    for (geometry_type, child_dimensions), child_storage in empty_children.items():
        if geometry_type not in children and child_dimensions in dimensions:
            children[geometry_type] = _native_from_pyarrow(child_storage, geometry_type)

    codes = arr.type_codes.to_numpy(zero_copy_only=False)
    type_ids = (codes % 10).astype(np.int8)
    value_offsets = arr.offsets.to_numpy(zero_copy_only=False)
    return MixedGeometryArray(
        type_ids,
        value_offsets,
        children,
        dimensions=dimensions.pop() if dimensions else None,
        coord_type=coord_type,
    )
