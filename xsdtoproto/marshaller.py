import logging
import re
from typing import Iterable, List, Optional, Tuple, Union

from xsdtoproto.constants import PROTO_WELL_KNOWN_IMPORTS, XSD_TO_PROTO_TYPE_MAP
from xsdtoproto.names import to_lower_underscore, to_upper_underscore

logger = logging.getLogger(__name__)

Mapping = Tuple[str, "re.Pattern", str]
MappingSource = Union[dict, Iterable[Tuple[str, str]]]

_JAVA_GROUP_REFERENCE = re.compile(r"\$(\d+)")


def compile_mappings(mappings: Optional[MappingSource]) -> List[Mapping]:
    """
    Compile une table de correspondances 'motif -> remplacement' en conservant l'ordre d'insertion.

    Les motifs sont des expressions régulières appliquées au nom entier; un motif invalide
    est traité comme un nom littéral. Les remplacements acceptent '\\1' ou '$1'.
    """
    if not mappings:
        return []
    items = mappings.items() if isinstance(mappings, dict) else mappings
    compiled = []
    for pattern, replacement in items:
        try:
            regex = re.compile(pattern)
        except re.error as e:
            logger.warning(f"Invalid mapping pattern '{pattern}' ({e}). Matching it literally.")
            regex = re.compile(re.escape(pattern))
        compiled.append((pattern, regex, _JAVA_GROUP_REFERENCE.sub(r"\\g<\1>", replacement)))
    return compiled


def apply_mappings(mappings: List[Mapping], name: str) -> Optional[str]:
    """Retourne le nom transformé par le premier motif correspondant, ou None."""
    for pattern, regex, replacement in mappings:
        if pattern == name:
            return replacement
        match = regex.fullmatch(name)
        if match is not None:
            return match.expand(replacement)
    return None


class ProtobufMarshaller:
    """
    Produit la syntaxe Protobuf (version 2 ou 3) d'un élément à la fois:
    en-tête de fichier, messages, énumérations et champs.
    """

    def __init__(self, version: int = 2, indent_unit: str = "  "):
        self.type_mapping = dict(XSD_TO_PROTO_TYPE_MAP)
        self.imports = dict(PROTO_WELL_KNOWN_IMPORTS)
        self.custom_type_mappings: List[Mapping] = []
        self.custom_name_mappings: List[Mapping] = []
        self.version = version
        self.indent_unit = indent_unit
        self.indent = ""

    # --- Configuration ---

    def set_protobuf_version(self, version: int) -> None:
        if version not in (2, 3):
            raise ValueError(f"Unsupported protobuf version: {version}")
        self.version = version

    def set_custom_mappings(self, custom_type_mappings: Optional[MappingSource]) -> None:
        self.custom_type_mappings = compile_mappings(custom_type_mappings)

    def set_custom_name_mappings(self, custom_name_mappings: Optional[MappingSource]) -> None:
        self.custom_name_mappings = compile_mappings(custom_name_mappings)

    # --- Capacités ---

    def is_nested_enums(self) -> bool:
        return True

    def is_circular_dependency_supported(self) -> bool:
        return True

    # --- Correspondances ---

    def get_type_mapping(self, type_name: str, include_defaults: bool = True) -> Optional[str]:
        """
        Retourne le type Protobuf correspondant à un type XSD, ou None.

        Les correspondances personnalisées sont prioritaires; la table par défaut ne s'applique
        qu'aux types intégrés XSD (include_defaults).
        """
        mapped = apply_mappings(self.custom_type_mappings, type_name)
        if mapped is not None:
            return mapped
        if include_defaults:
            return self.type_mapping.get(type_name)
        return None

    def get_name_mapping(self, name: str) -> Optional[str]:
        return apply_mappings(self.custom_name_mappings, name)

    def get_import(self, type_name: str, include_defaults: bool = True) -> Optional[str]:
        """Fichier .proto à importer pour utiliser le type correspondant à 'type_name'."""
        mapped = self.get_type_mapping(type_name, include_defaults)
        if mapped is None:
            return None
        return self.imports.get(mapped)

    # --- Indentation ---

    def _increase_indent(self) -> None:
        self.indent += self.indent_unit

    def _decrease_indent(self) -> None:
        self.indent = self.indent[:-len(self.indent_unit)] if self.indent else ""

    # --- Rendu ---

    def write_header(self, namespace: Optional[str]) -> str:
        res = f'syntax = "proto{self.version}";\n\n'
        if namespace:
            res += f"package {namespace};\n\n"
        return res

    def write_include(self, file_name: str) -> str:
        return f'import "{file_name}";\n'

    def write_documentation(self, documentation: str) -> str:
        # Commentaires multilignes; '*/' dans le texte fermerait le bloc
        lines = documentation.strip().replace("*/", "* /").split("\n")
        body = "\n".join(f"{self.indent} * {line.strip()}".rstrip() for line in lines)
        return f"{self.indent}/*\n{body}\n{self.indent} */\n"

    def write_enum_header(self, name: str) -> str:
        result = f"{self.indent}enum {name} {{\n"
        self._increase_indent()
        return result

    def write_enum_value(self, order: int, value: str) -> str:
        return f"{self.indent}{to_upper_underscore(value)} = {order};\n"

    def write_enum_footer(self) -> str:
        self._decrease_indent()
        return f"{self.indent}}}\n\n"

    def write_struct_header(self, name: str) -> str:
        result = f"{self.indent}message {name} {{\n"
        self._increase_indent()
        return result

    def write_struct_parameter(self, order: int, required: bool, repeated: bool, name: str,
                               type_name: str, field_documentation: Optional[str] = None) -> str:
        # Seules les versions antérieures à 3 ont required/optional
        if self.version < 3:
            label = self._get_required(required, repeated) + " "
        else:
            label = "repeated " if repeated else ""

        comment = f" // {field_documentation}" if field_documentation else ""
        return f"{self.indent}{label}{type_name} {to_lower_underscore(name)} = {order};{comment}\n"

    @staticmethod
    def _get_required(required: bool, repeated: bool) -> str:
        if repeated:
            return "repeated"
        return "required" if required else "optional"

    def write_struct_footer(self) -> str:
        self._decrease_indent()
        return f"{self.indent}}}\n\n"
