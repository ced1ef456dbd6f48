"""
DRM scheme identifiers and the request conventions each scheme expects.
"""

from uuid import UUID
from enum import Enum
from typing import Dict, Mapping, NamedTuple, Optional, Tuple, Union


class DrmScheme(Enum):
    PLAYREADY = "9a04f079-9840-4286-ab92-e65be0885f95"
    CLEARKEY = "e2719d58-a985-b3c9-781a-b030af78d30e"
    WIDEVINE = "edef8ba9-79d6-4ace-a3c8-27dcd51d21ed"
    OTHER = None

    @property
    def system_id(self) -> Optional[UUID]:
        return UUID(self.value) if self.value else None

    @classmethod
    def from_uuid(cls, value: Union[UUID, str, None]) -> "DrmScheme":
        """Map a system id to a scheme, OTHER for anything unrecognised"""
        if value is None:
            return cls.OTHER
        try:
            key = str(UUID(str(value)))
        except ValueError:
            return cls.OTHER
        for scheme in cls:
            if scheme.value == key:
                return scheme
        return cls.OTHER

    @classmethod
    def from_name(cls, name: Union[str, UUID, "DrmScheme", None]) -> "DrmScheme":
        """
        Resolve a scheme from a name ("widevine"), an alias ("XML-scheme")
        or the system UUID text.
        """
        if isinstance(name, cls):
            return name
        if name is None:
            return cls.OTHER
        if isinstance(name, UUID):
            return cls.from_uuid(name)
        key = name.strip().lower()
        if key in _ALIASES:
            return _ALIASES[key]
        return cls.from_uuid(key)


_ALIASES: Dict[str, DrmScheme] = {
    "playready": DrmScheme.PLAYREADY,
    "xml-scheme": DrmScheme.PLAYREADY,
    "clearkey": DrmScheme.CLEARKEY,
    "json-scheme": DrmScheme.CLEARKEY,
    "widevine": DrmScheme.WIDEVINE,
    "other": DrmScheme.OTHER,
}

PLAYREADY_SOAP_ACTION = "http://schemas.microsoft.com/DRM/2007/03/protocols/AcquireLicense"

CONTENT_TYPE_XML = "text/xml"
CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_OCTET_STREAM = "application/octet-stream"


class SchemeConvention(NamedTuple):
    content_type: str
    action_header: Optional[Tuple[str, str]] = None


DEFAULT_CONVENTIONS: Dict[DrmScheme, SchemeConvention] = {
    DrmScheme.PLAYREADY: SchemeConvention(
        CONTENT_TYPE_XML, ("SOAPAction", PLAYREADY_SOAP_ACTION)
    ),
    DrmScheme.CLEARKEY: SchemeConvention(CONTENT_TYPE_JSON),
}

FALLBACK_CONVENTION = SchemeConvention(CONTENT_TYPE_OCTET_STREAM)


class SchemeConventions:
    """
    Lookup table from scheme to content type and action header.

    Overrides may be given as full SchemeConvention values or as plain
    content type strings, in which case the scheme's default action
    header is kept.
    """

    def __init__(self, overrides: Optional[Mapping[Union[DrmScheme, str], Union[SchemeConvention, str]]] = None):
        self._table: Dict[DrmScheme, SchemeConvention] = dict(DEFAULT_CONVENTIONS)
        for scheme, convention in (overrides or {}).items():
            scheme = DrmScheme.from_name(scheme)
            if isinstance(convention, str):
                base = self._table.get(scheme, FALLBACK_CONVENTION)
                convention = base._replace(content_type=convention)
            self._table[scheme] = convention

    def convention_for(self, scheme: DrmScheme) -> SchemeConvention:
        return self._table.get(scheme, FALLBACK_CONVENTION)

    def content_type_for(self, scheme: DrmScheme) -> str:
        return self.convention_for(scheme).content_type

    def as_dict(self) -> Dict[str, str]:
        return {scheme.name.lower(): conv.content_type for scheme, conv in self._table.items()}
