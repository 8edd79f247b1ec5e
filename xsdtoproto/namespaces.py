import logging
import re

logger = logging.getLogger(__name__)

_SCHEMES = ("http://", "https://", "urn:")
_DOT_DIGIT = re.compile(r"\.(?=\d)")
_ILLEGAL_PACKAGE_CHARS = re.compile(r"[^\w.]")


def convert_from_schema(namespace: str | None) -> str:
    """
    Convertit l'URI d'un targetNamespace XML en identifiant de package pointé.

    Exemple: 'http://www.example.com/schemas/v1' -> 'com.example.www.schemas.v1'.
    Un namespace vide ou absent donne le package par défaut ('').

    Args:
        namespace (str | None): L'URI du namespace cible.

    Returns:
        str: L'identifiant de package.
    """
    if not namespace:
        return ""

    remainder = namespace
    for scheme in _SCHEMES:
        if remainder.startswith(scheme):
            remainder = remainder[len(scheme):]
            break

    segments = [segment for segment in re.split(r"[/:]", remainder) if segment]
    if not segments:
        return ""

    # Le premier segment est le nom d'hôte: 'www.example.com' -> 'com.example.www'
    segments[0] = ".".join(reversed(segments[0].split(".")))

    package = ".".join(segments)
    package = _DOT_DIGIT.sub("_", package)
    package = _ILLEGAL_PACKAGE_CHARS.sub("_", package)
    if package[0].isdigit():
        package = "_" + package

    logger.debug(f"Namespace '{namespace}' mapped to package '{package}'")
    return package
