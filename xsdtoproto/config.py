import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

MappingTable = List[Tuple[str, str]]


@dataclass
class TranslatorOptions:
    """Options d'une traduction XSD -> Protobuf."""

    protobuf_version: int = 2
    nest_enums: bool = True
    enum_order_start: int = 1
    type_in_enums: bool = True
    include_message_docs: bool = True
    include_field_docs: bool = True
    split_by_namespace: bool = False
    # Nom du fichier de sortie (sans extension); par défaut le nom du XSD principal
    file_name: Optional[str] = None
    # Tables 'motif -> remplacement', l'ordre d'insertion décide
    custom_type_mappings: MappingTable = field(default_factory=list)
    custom_name_mappings: MappingTable = field(default_factory=list)

    def __post_init__(self):
        if self.protobuf_version not in (2, 3):
            raise ValueError(f"Unsupported protobuf version: {self.protobuf_version}")
        if self.enum_order_start < 0:
            raise ValueError(f"Enum order start must be positive or zero: {self.enum_order_start}")


def parse_mapping_list(value: Optional[str]) -> MappingTable:
    """
    Lit une table de correspondances au format 'motif:remplacement,motif:remplacement'.

    Args:
        value (str | None): La liste telle que saisie en ligne de commande.

    Returns:
        list: Les couples (motif, remplacement) dans l'ordre de saisie.

    Raises:
        ValueError: Si une entrée ne contient pas de ':'.
    """
    mappings = []
    if not value:
        return mappings
    for entry in value.split(","):
        entry = entry.strip()
        if not entry:
            continue
        pattern, separator, replacement = entry.rpartition(":")
        if not separator or not pattern:
            raise ValueError(f"Invalid mapping '{entry}', expected 'pattern:replacement'")
        mappings.append((pattern.strip(), replacement.strip()))
    return mappings


def load_mapping_file(file_path: str) -> Tuple[MappingTable, MappingTable]:
    """
    Charge un fichier de correspondances.

    Une ligne par correspondance au format 'motif=remplacement'. Les lignes vides et celles
    commençant par '#' sont ignorées. Les sections '[types]' et '[names]' choisissent la table
    alimentée (par défaut: types).

    Returns:
        tuple: (correspondances de types, correspondances de noms).
    """
    type_mappings: MappingTable = []
    name_mappings: MappingTable = []
    current = type_mappings
    with open(file_path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if line == "[types]":
                current = type_mappings
                continue
            if line == "[names]":
                current = name_mappings
                continue
            pattern, separator, replacement = line.rpartition("=")
            if not separator or not pattern.strip():
                raise ValueError(f"Invalid mapping at {file_path}:{line_number}, expected 'pattern=replacement'")
            current.append((pattern.strip(), replacement.strip()))
    logger.info(f"Loaded {len(type_mappings)} type mapping(s) and {len(name_mappings)} name mapping(s) from '{file_path}'")
    return type_mappings, name_mappings
