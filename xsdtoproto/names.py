import re

from xsdtoproto.constants import BASIC_TYPES, KEYWORDS, PROTOBUF_SCALAR_TYPES

# Noms de types avec lesquels un identifiant ne doit pas entrer en collision.
# Les types de base XSD en majuscule (ID, Name, NMTOKEN...) sont résolus avant l'émission
# et n'apparaissent jamais tels quels dans la sortie.
COLLIDING_TYPE_NAMES = frozenset(
    {name for name in BASIC_TYPES if name[0].islower()} | PROTOBUF_SCALAR_TYPES
)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_ACRONYM_BOUNDARY = re.compile(r"(?<=[A-Z])(?=[A-Z][a-z])")


def _is_identifier_start(char: str) -> bool:
    return char == "_" or char.isidentifier()


def _is_identifier_part(char: str) -> bool:
    return ("_" + char).isidentifier()


def escape_type(name: str) -> str:
    """
    Réécrit un nom XSD en identifiant légal.

    Chaque caractère illégal devient '_'. Un '_' est ajouté en tête si le premier
    caractère ne peut pas commencer un identifiant ou si le résultat est un mot réservé.
    """
    if not name:
        return "_"
    res = "".join(char if _is_identifier_part(char) else "_" for char in name)
    if not _is_identifier_start(res[0]) or res in KEYWORDS:
        res = "_" + res
    return res


def escape(name: str) -> str:
    """Comme escape_type, en évitant en plus toute collision avec un nom de type de base."""
    res = escape_type(name)
    if res in COLLIDING_TYPE_NAMES:
        res = "_" + res
    return res


def _split_words(name: str) -> str:
    return _ACRONYM_BOUNDARY.sub("_", _CAMEL_BOUNDARY.sub("_", name))


def to_lower_underscore(name: str) -> str:
    """'baseObjectType' -> 'base_object_type', 'XMLHttpRequest' -> 'xml_http_request'."""
    return _split_words(name).lower()


def to_upper_underscore(name: str) -> str:
    """'Color_notSet' -> 'COLOR_NOT_SET', 'Color_RED' -> 'COLOR_RED'."""
    return _split_words(name).upper()
