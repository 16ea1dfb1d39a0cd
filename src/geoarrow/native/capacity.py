"""Exact buffer sizes for two-pass array construction

A capacity is measured by adding every input geometry (or null) before any
builder buffer is allocated; a builder created from it allocates each buffer
once at its final size. ``array.buffer_lengths()`` returns the capacity that
describes an existing array.
"""

from geoarrow.native.constants import GeometryType
from geoarrow.native.errors import IncorrectTypeError, NotYetImplementedError

CONCRETE_GEOMETRY_TYPES = (
    GeometryType.POINT,
    GeometryType.LINESTRING,
    GeometryType.POLYGON,
    GeometryType.MULTIPOINT,
    GeometryType.MULTILINESTRING,
    GeometryType.MULTIPOLYGON,
)

_LEVEL_NAMES = {
    GeometryType.POINT: ("geom",),
    GeometryType.LINESTRING: ("geom", "coord"),
    GeometryType.POLYGON: ("geom", "ring", "coord"),
    GeometryType.MULTIPOINT: ("geom", "coord"),
    GeometryType.MULTILINESTRING: ("geom", "line_string", "coord"),
    GeometryType.MULTIPOLYGON: ("geom", "polygon", "ring", "coord"),
}


def accepts(target, geometry_type):
    """Whether a builder of type ``target`` can store ``geometry_type``"""
    return geometry_type == target or (
        target.is_multi() and geometry_type == target.single()
    )


class Capacity:
    """Counts of the slots at each nesting level of a concrete array

    ``counts[0]`` is the number of geometries and the last value is the
    number of coordinates (for points, these are the same value).

    Examples
    --------

    >>> from geoarrow.native import GeometryType
    >>> from geoarrow.native.capacity import Capacity
    >>> from geoarrow.native._wkb import read_wkb
    >>> capacity = Capacity(GeometryType.LINESTRING)
    >>> capacity.add_geometry(read_wkb(bytes.fromhex(
    ...     "010200000002000000000000000000f03f000000000000004000000000000008400000000000001040"
    ... )))
    >>> capacity.add_null()
    >>> capacity
    Capacity(linestring: geom=2, coord=2)
    """

    def __init__(self, geometry_type, counts=None):
        self.geometry_type = GeometryType.create(geometry_type)
        names = _LEVEL_NAMES[self.geometry_type]
        if counts is None:
            counts = [0] * len(names)
        elif len(counts) != len(names):
            raise ValueError(
                f"Expected {len(names)} counts for {self.geometry_type.name}"
            )
        self.counts = list(counts)

    @classmethod
    def from_geometries(cls, geometry_type, geoms):
        capacity = cls(geometry_type)
        for geom in geoms:
            capacity.add_geometry(geom)
        return capacity

    @property
    def geom(self):
        return self.counts[0]

    @property
    def coord(self):
        return self.counts[-1]

    def __getitem__(self, name):
        return self.counts[_LEVEL_NAMES[self.geometry_type].index(name)]

    def __eq__(self, other):
        if not isinstance(other, Capacity):
            return NotImplemented
        return self.geometry_type == other.geometry_type and self.counts == other.counts

    def __repr__(self):
        names = _LEVEL_NAMES[self.geometry_type]
        counts = ", ".join(f"{k}={v}" for k, v in zip(names, self.counts))
        return f"Capacity({self.geometry_type.name.lower()}: {counts})"

    def add_null(self):
        self.counts[0] += 1

    def add_geometry(self, geom):
        if geom is None:
            self.add_null()
            return

        target = self.geometry_type
        geometry_type = geom.geometry_type
        if not accepts(target, geometry_type):
            raise IncorrectTypeError(
                f"Expected {target.name} but got {geometry_type.name}"
            )

        counts = self.counts
        counts[0] += 1

        if target == GeometryType.POINT:
            return

        if geometry_type != target:
            parts = [geom]
        elif target.is_multi():
            parts = geom.parts
        else:
            parts = None

        if target == GeometryType.LINESTRING:
            counts[1] += geom.num_coords
        elif target == GeometryType.POLYGON:
            _add_rings(counts, 1, geom.rings)
        elif target == GeometryType.MULTIPOINT:
            if geometry_type == GeometryType.POINT:
                counts[1] += 0 if geom.coord is None else 1
            else:
                counts[1] += len(parts)
        elif target == GeometryType.MULTILINESTRING:
            counts[1] += len(parts)
            counts[2] += sum(part.num_coords for part in parts)
        elif target == GeometryType.MULTIPOLYGON:
            counts[1] += len(parts)
            for part in parts:
                _add_rings(counts, 2, part.rings)


def _add_rings(counts, level, rings):
    counts[level] += len(rings)
    counts[level + 1] += sum(ring.num_coords for ring in rings)


def mixed_child_type(geometry_type, prefer_multi):
    """The child of a mixed array that stores ``geometry_type``"""
    return geometry_type.multi() if prefer_multi else geometry_type


class MixedCapacity:
    """Capacities of each child of a mixed array

    Nulls are stored as null points.
    """

    def __init__(self, children=None, geom=0, prefer_multi=False):
        if children is None:
            children = {t: Capacity(t) for t in CONCRETE_GEOMETRY_TYPES}
        self.children = children
        self.geom = geom
        self.prefer_multi = prefer_multi

    @classmethod
    def from_geometries(cls, geoms, prefer_multi=False):
        capacity = cls(prefer_multi=prefer_multi)
        for geom in geoms:
            capacity.add_geometry(geom)
        return capacity

    def __eq__(self, other):
        if not isinstance(other, MixedCapacity):
            return NotImplemented
        return self.geom == other.geom and self.children == other.children

    def __repr__(self):
        children = ", ".join(
            repr(child) for child in self.children.values() if child.geom
        )
        return f"MixedCapacity(geom={self.geom}, [{children}])"

    def add_null(self):
        self.geom += 1
        self.children[GeometryType.POINT].add_null()

    def add_geometry(self, geom):
        if geom is None:
            self.add_null()
            return

        if geom.geometry_type == GeometryType.GEOMETRYCOLLECTION:
            members = geom.geometries
            if len(members) != 1:
                raise IncorrectTypeError(
                    "Can't store a GEOMETRYCOLLECTION with "
                    f"{len(members)} members in a mixed array"
                )
            geom = members[0]
            if geom.geometry_type == GeometryType.GEOMETRYCOLLECTION:
                raise NotYetImplementedError("nested GEOMETRYCOLLECTION")

        child_type = mixed_child_type(geom.geometry_type, self.prefer_multi)
        self.children[child_type].add_geometry(geom)
        self.geom += 1


class GeometryCollectionCapacity:
    """Capacity of a geometry collection array and its member array"""

    def __init__(self, mixed=None, geom=0, prefer_multi=False):
        if mixed is None:
            mixed = MixedCapacity(prefer_multi=prefer_multi)
        self.mixed = mixed
        self.geom = geom

    @classmethod
    def from_geometries(cls, geoms, prefer_multi=False):
        capacity = cls(prefer_multi=prefer_multi)
        for geom in geoms:
            capacity.add_geometry(geom)
        return capacity

    def __eq__(self, other):
        if not isinstance(other, GeometryCollectionCapacity):
            return NotImplemented
        return self.geom == other.geom and self.mixed == other.mixed

    def __repr__(self):
        return f"GeometryCollectionCapacity(geom={self.geom}, {self.mixed!r})"

    def add_null(self):
        self.geom += 1

    def add_geometry(self, geom):
        if geom is None:
            self.add_null()
            return

        if geom.geometry_type == GeometryType.GEOMETRYCOLLECTION:
            for member in geom.geometries:
                if member.geometry_type == GeometryType.GEOMETRYCOLLECTION:
                    raise NotYetImplementedError("nested GEOMETRYCOLLECTION")
                self.mixed.add_geometry(member)
        else:
            self.mixed.add_geometry(geom)

        self.geom += 1


class WKBCapacity:
    """Number of bytes and values of a WKB array"""

    def __init__(self, buffer=0, geom=0):
        self.buffer = buffer
        self.geom = geom

    @classmethod
    def from_geometries(cls, geoms, dimensions=None):
        capacity = cls()
        for geom in geoms:
            capacity.add_geometry(geom, dimensions)
        return capacity

    def __eq__(self, other):
        if not isinstance(other, WKBCapacity):
            return NotImplemented
        return self.buffer == other.buffer and self.geom == other.geom

    def __repr__(self):
        return f"WKBCapacity(buffer={self.buffer}, geom={self.geom})"

    def add_null(self):
        self.geom += 1

    def add_geometry(self, geom, dimensions=None):
        from geoarrow.native._wkb import wkb_size

        if geom is not None:
            self.buffer += wkb_size(geom, dimensions)
        self.geom += 1


def capacity_for(geometry_type, prefer_multi=False):
    """An empty capacity for an array of ``geometry_type``"""
    if geometry_type == GeometryType.GEOMETRY:
        return MixedCapacity(prefer_multi=prefer_multi)
    elif geometry_type == GeometryType.GEOMETRYCOLLECTION:
        return GeometryCollectionCapacity(prefer_multi=prefer_multi)
    else:
        return Capacity(geometry_type)
