"""
Content metadata derived from file name extensions.

A file called ``report.en-us.pdf`` carries two candidate extensions, ``en-us``
and ``pdf``. Each is looked up in a :class:`MetadataMapping` and the hits are
copied onto the representation's metadata, one field per category.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator, Optional, Union

if TYPE_CHECKING:
    from filelink.representation import RepresentationMetadata


@dataclass(frozen=True)
class MediaType:
    name: str
    description: Optional[str] = field(default=None, compare=False)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class CharacterSet:
    name: str
    description: Optional[str] = field(default=None, compare=False)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Encoding:
    name: str
    description: Optional[str] = field(default=None, compare=False)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Language:
    name: str
    description: Optional[str] = field(default=None, compare=False)

    def __str__(self) -> str:
        return self.name


Metadata = Union[MediaType, CharacterSet, Encoding, Language]


APPLICATION_JAVASCRIPT = MediaType("application/x-javascript", "Javascript document")
APPLICATION_JSON = MediaType("application/json", "JavaScript Object Notation document")
APPLICATION_OCTET_STREAM = MediaType("application/octet-stream", "Raw octet stream")
APPLICATION_PDF = MediaType("application/pdf", "Adobe PDF document")
APPLICATION_POWERPOINT = MediaType("application/vnd.ms-powerpoint", "Microsoft Powerpoint document")
APPLICATION_RESOURCE_DESCRIPTION_FRAMEWORK = MediaType("application/rdf+xml", "Resource Description Framework document")
APPLICATION_SHOCKWAVE_FLASH = MediaType("application/x-shockwave-flash", "Shockwave Flash object")
APPLICATION_WORD = MediaType("application/msword", "Microsoft Word document")
APPLICATION_XHTML_XML = MediaType("application/xhtml+xml", "XHTML document")
APPLICATION_ZIP = MediaType("application/zip", "Zip archive")
IMAGE_GIF = MediaType("image/gif", "GIF image")
IMAGE_ICON = MediaType("image/x-icon", "Windows icon (Favicon)")
IMAGE_JPEG = MediaType("image/jpeg", "JPEG image")
IMAGE_PNG = MediaType("image/png", "PNG image")
TEXT_CSS = MediaType("text/css", "CSS stylesheet")
TEXT_HTML = MediaType("text/html", "HTML document")
TEXT_PLAIN = MediaType("text/plain", "Plain text")
TEXT_URI_LIST = MediaType("text/uri-list", "List of URIs")
TEXT_XML = MediaType("text/xml", "XML document")

IDENTITY = Encoding("identity", "The default encoding with no transformation")
GZIP = Encoding("gzip", "GZip compression")
DEFLATE = Encoding("deflate", "Deflate compression")
ZIP = Encoding("zip", "Zip compression")

ISO_8859_1 = CharacterSet("ISO-8859-1", "ISO/IEC 8859-1 (Latin 1)")
US_ASCII = CharacterSet("US-ASCII", "US ASCII")
UTF_8 = CharacterSet("UTF-8", "UTF 8 character set")
UTF_16 = CharacterSet("UTF-16", "UTF 16 character set")

ENGLISH = Language("en", "English")
ENGLISH_US = Language("en-us", "English (United States)")
FRENCH = Language("fr", "French")
SPANISH = Language("es", "Spanish")


COMMON_EXTENSIONS: dict[str, Metadata] = {
    "en": ENGLISH,
    "es": SPANISH,
    "fr": FRENCH,
    "css": TEXT_CSS,
    "doc": APPLICATION_WORD,
    "gif": IMAGE_GIF,
    "html": TEXT_HTML,
    "ico": IMAGE_ICON,
    "jpeg": IMAGE_JPEG,
    "jpg": IMAGE_JPEG,
    "js": APPLICATION_JAVASCRIPT,
    "pdf": APPLICATION_PDF,
    "png": IMAGE_PNG,
    "ppt": APPLICATION_POWERPOINT,
    "rdf": APPLICATION_RESOURCE_DESCRIPTION_FRAMEWORK,
    "txt": TEXT_PLAIN,
    "swf": APPLICATION_SHOCKWAVE_FLASH,
    "xhtml": APPLICATION_XHTML_XML,
    "xml": TEXT_XML,
    "zip": APPLICATION_ZIP,
}

_KINDS = {
    "mediaType": MediaType,
    "characterSet": CharacterSet,
    "encoding": Encoding,
    "language": Language,
}


def metadata_from_spec(kind: str, name: str, description: Optional[str] = None) -> Metadata:
    """
    Build a metadata value from configuration strings, e.g. ("mediaType", "text/markdown").
    """
    cls = _KINDS.get(kind)
    if cls is None:
        raise ValueError(f"Unknown metadata kind: {kind!r} (expected one of {', '.join(_KINDS)})")
    name = name.strip()
    if not name:
        raise ValueError("Metadata name must not be empty")
    return cls(name, description)


class MetadataMapping:
    """
    Extension token -> metadata lookup table.

    Tokens are case-sensitive. Entries are expected to be added while the
    client is being set up; lookups during dispatch are not synchronized
    against concurrent additions.
    """

    def __init__(self, *, common_extensions: bool = False) -> None:
        self._mappings: dict[str, Metadata] = {}
        if common_extensions:
            self.add_common_extensions()

    def add_extension(self, extension: str, metadata: Metadata) -> None:
        self._mappings[extension] = metadata

    def add_common_extensions(self) -> None:
        for extension, metadata in COMMON_EXTENSIONS.items():
            self.add_extension(extension, metadata)

    def resolve(self, extension: str) -> Optional[Metadata]:
        return self._mappings.get(extension)

    def __contains__(self, extension: object) -> bool:
        return extension in self._mappings

    def __len__(self) -> int:
        return len(self._mappings)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._mappings))


def _assign(target: RepresentationMetadata, metadata: Metadata) -> None:
    match metadata:
        case MediaType():
            target.media_type = metadata
        case CharacterSet():
            target.character_set = metadata
        case Encoding():
            target.encoding = metadata
        case Language():
            target.language = metadata


def apply_extensions(name: str, target: RepresentationMetadata, mapping: MetadataMapping) -> None:
    """
    Refine ``target`` from the extensions of a file name, left to right.

    Later extensions override earlier ones of the same category. A token with a
    region part (``en-us``) that is not registered falls back to its primary
    part (``en``), but only a language is taken from that fallback.
    """
    for token in name.split(".")[1:]:
        metadata = mapping.resolve(token)
        if metadata is not None:
            _assign(target, metadata)
            continue

        primary, dash, _region = token.partition("-")
        if dash:
            fallback = mapping.resolve(primary)
            if isinstance(fallback, Language):
                target.language = fallback
