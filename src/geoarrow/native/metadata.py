import json
import re
from enum import Enum
from typing import Mapping, NamedTuple, Optional

from geoarrow.native.constants import EdgeType
from geoarrow.native.errors import MetadataParseError


class CrsType(Enum):
    """How the ``crs`` value of an :class:`ArrayMetadata` is encoded"""

    PROJJSON = "projjson"
    WKT2_2019 = "wkt2:2019"
    AUTHORITY_CODE = "authority_code"
    SRID = "srid"


class ArrayMetadata(NamedTuple):
    """Extension metadata shared by an array and everything derived from it

    ``ArrayMetadata`` is an immutable value: slices, downcasts, upcasts and
    codec conversions pass the same instance along.

    Examples
    --------

    >>> from geoarrow.native import ArrayMetadata
    >>> meta = ArrayMetadata.create("EPSG:4326")
    >>> meta.crs_type
    <CrsType.AUTHORITY_CODE: 'authority_code'>
    >>> meta.to_json()
    '{"crs": "EPSG:4326", "crs_type": "authority_code"}'
    """

    crs: Optional[str] = None
    """The coordinate reference system as text (PROJJSON, WKT2, an authority
    code such as ``"OGC:CRS84"``, or an SRID)"""

    crs_type: Optional[CrsType] = None
    """The encoding of ``crs``, if known"""

    edges: EdgeType = EdgeType.PLANAR
    """The interpretation of edges between coordinates"""

    @classmethod
    def create(cls, crs=None, crs_type=None, edges=None):
        """Create metadata from a CRS-like object

        ``crs`` may be a string, a parsed PROJJSON dictionary, or any object
        with a ``to_json()`` method returning PROJJSON (e.g.,
        a ``pyproj.CRS``).
        """
        if isinstance(crs, ArrayMetadata):
            return crs

        crs, inferred_type = _crs_text(crs)
        if crs_type is None:
            crs_type = inferred_type
        elif not isinstance(crs_type, CrsType):
            crs_type = CrsType(crs_type)

        edges = EdgeType.coalesce(EdgeType.create(edges), EdgeType.PLANAR)
        return ArrayMetadata(crs, crs_type, edges)

    @classmethod
    def from_json(cls, text):
        """Parse a serialized ``ARROW:extension:metadata`` value"""
        if isinstance(text, bytes):
            text = text.decode()
        if not text:
            return cls()

        try:
            metadata = json.loads(text)
        except ValueError as e:
            raise MetadataParseError(f"Invalid extension metadata: {text!r}") from e

        if not isinstance(metadata, dict):
            raise MetadataParseError(
                f"Extension metadata must be a JSON object but got {text!r}"
            )

        crs_type = metadata.get("crs_type")
        try:
            if crs_type is not None:
                crs_type = CrsType(crs_type)
            edges = EdgeType.create(metadata.get("edges", "planar"))
        except (ValueError, KeyError, TypeError) as e:
            raise MetadataParseError(f"Invalid extension metadata: {text!r}") from e

        crs = metadata.get("crs")
        if crs is not None and not isinstance(crs, (str, dict)):
            raise MetadataParseError(f"Invalid crs in extension metadata: {crs!r}")

        return cls.create(crs, crs_type, edges)

    def to_json(self):
        """Serialize to an ``ARROW:extension:metadata`` value"""
        metadata = {}
        if self.crs is not None:
            if self.crs_type == CrsType.PROJJSON:
                metadata["crs"] = self.crs_json()
            else:
                metadata["crs"] = self.crs

        if self.crs_type is not None:
            metadata["crs_type"] = self.crs_type.value

        if self.edges == EdgeType.SPHERICAL:
            metadata["edges"] = "spherical"

        return json.dumps(metadata)

    def crs_json(self) -> Optional[Mapping]:
        """The parsed PROJJSON representation of the CRS, if it has one"""
        if self.crs is None or self.crs_type != CrsType.PROJJSON:
            return None

        try:
            return json.loads(self.crs)
        except ValueError as e:
            raise MetadataParseError(f"Invalid PROJJSON: {self.crs[:40]!r}") from e

    def with_crs(self, crs, crs_type=None):
        crs, inferred_type = _crs_text(crs)
        return self._replace(crs=crs, crs_type=crs_type or inferred_type)

    def with_edges(self, edges):
        return self._replace(edges=EdgeType.create(edges))


_AUTHORITY_CODE = re.compile(r"^[A-Za-z][A-Za-z0-9_.-]*:[A-Za-z0-9_.-]+$")


def _crs_text(crs):
    if crs is None:
        return None, None
    elif isinstance(crs, dict):
        return json.dumps(crs), CrsType.PROJJSON
    elif isinstance(crs, bytes):
        return _crs_text(crs.decode())
    elif isinstance(crs, str):
        stripped = crs.lstrip()
        if stripped.startswith("{"):
            return crs, CrsType.PROJJSON
        elif _AUTHORITY_CODE.match(stripped):
            return crs, CrsType.AUTHORITY_CODE
        elif stripped.isdigit():
            return crs, CrsType.SRID
        else:
            return crs, CrsType.WKT2_2019
    elif isinstance(crs, int):
        return str(crs), CrsType.SRID
    elif hasattr(crs, "to_json"):
        return crs.to_json(), CrsType.PROJJSON
    else:
        raise TypeError(f"Can't create a CRS from object of type {type(crs).__name__}")
