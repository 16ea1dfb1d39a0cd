"""Narrowing of mixed arrays and geometry collections

The rules applied by :func:`downcast`:

1. Only valid slots are considered. An array without valid slots is
   returned unchanged.
2. If the valid slots hold more than one family of geometry (point,
   linestring or polygon), the array is returned unchanged.
3. Within one family, the single-part type is chosen when every valid slot
   is stored as that type and ``prefer_multi`` is ``False``; otherwise the
   multi-part type is chosen. A multipoint with one member is never
   narrowed to a point, so wrapping a concrete array and downcasting it
   gives back the same array.
4. A geometry collection array is first narrowed to a mixed array when
   every valid collection has exactly one member.
5. When the chosen child of a mixed array already holds every slot in
   order, it is returned without copying; otherwise the values are rebuilt
   with an exact capacity.

Concrete arrays are returned as is and the result always carries the
metadata of the input.
"""

import numpy as np

from geoarrow.native.array.geometrycollection import GeometryCollectionArray
from geoarrow.native.array.mixed import (
    CONCRETE_BUILDERS,
    MixedGeometryArray,
    MixedGeometryBuilder,
)
from geoarrow.native.constants import GeometryType
from geoarrow.native.errors import IncorrectTypeError


def downcast(array, prefer_multi=False):
    """Narrow ``array`` to the most specific type that can hold its values

    Examples
    --------

    >>> from geoarrow import native as gn
    >>> mixed = gn.from_wkt(["POINT (0 1)", "POINT (2 3)"], "geometry", downcast=False)
    >>> gn.downcast(mixed)
    PointArray:NativeType(geoarrow.point)[2]
    <POINT (0 1)>
    <POINT (2 3)>
    >>> gn.downcast(mixed, prefer_multi=True)
    MultiPointArray:NativeType(geoarrow.multipoint)[2]
    <MULTIPOINT ((0 1))>
    <MULTIPOINT ((2 3))>
    """
    if isinstance(array, GeometryCollectionArray):
        if not _has_single_members(array):
            return array
        return downcast(collections_to_mixed(array), prefer_multi)
    elif not isinstance(array, MixedGeometryArray):
        return array

    target = narrowest_type(array, prefer_multi)
    if target is None:
        return array

    type_ids = array.type_ids
    value_offsets = array.value_offsets
    n = len(array)
    if np.all(type_ids == target.value):
        start = int(value_offsets[0])
        if np.array_equal(value_offsets, np.arange(start, start + n)):
            child = array.child(target)
            return child.slice(start, n).with_metadata(array.metadata)

    return CONCRETE_BUILDERS[target].from_geometries(
        list(array),
        array.dimensions,
        array.coord_type,
        array.metadata,
        large_offsets=array.is_large,
    )


def narrowest_type(mixed, prefer_multi=False):
    """The concrete ``GeometryType`` that :func:`downcast` would choose for
    a mixed array, or ``None`` if it can't be narrowed.
    """
    valid = mixed.type_ids[mixed._valid_mask()]
    geometry_types = [GeometryType(int(t)) for t in np.unique(valid)]
    if not geometry_types:
        return None

    families = {geometry_type.single() for geometry_type in geometry_types}
    if len(families) != 1:
        return None

    family = families.pop()
    if prefer_multi or any(t.is_multi() for t in geometry_types):
        return family.multi()
    else:
        return family


def _has_single_members(collections):
    valid = collections._valid_mask()
    if not valid.any():
        return False
    lengths = collections.geom_offsets.lengths()
    return bool(np.all(lengths[valid] == 1))


def collections_to_mixed(collections):
    """Unwrap a geometry collection array whose valid slots each have one
    member into a mixed array
    """
    valid = collections._valid_mask()
    lengths = collections.geom_offsets.lengths()
    if np.any(lengths[valid] != 1):
        raise IncorrectTypeError(
            "Can't convert geometry collections without exactly one member "
            "to a mixed array"
        )

    n = len(collections)
    if np.all(lengths == 1):
        members = collections.geometries.slice(collections.geom_offsets.first, n)
        if np.array_equal(members._valid_mask(), valid):
            return members.with_metadata(collections.metadata)

    return MixedGeometryBuilder.from_geometries(
        list(collections),
        collections.dimensions,
        collections.coord_type,
        collections.metadata,
        large_offsets=collections.is_large,
    )
