import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set

from xsdtoproto.constants import BASIC_TYPES, FALLBACK_TYPE, UNSPECIFIED_TYPE
from xsdtoproto.names import escape, to_lower_underscore

logger = logging.getLogger(__name__)


@dataclass
class Field:
    """Un champ de message Protobuf issu d'un élément ou d'un attribut XSD."""

    name: str
    type: str
    # Package (pointé) du type référencé; None = même package que le message
    type_namespace: Optional[str] = None
    required: bool = False
    repeated: bool = False
    fixed: Optional[str] = None
    documentation: Optional[str] = None
    # True si 'type' est un type XSD intégré résolu lors de l'abaissement
    builtin: bool = False


def field_key(name: str) -> str:
    """Nom du champ tel qu'il apparaît dans le fichier .proto."""
    return to_lower_underscore(escape(name))


@dataclass
class Message:
    name: str
    namespace: Optional[str]
    fields: List[Field] = field(default_factory=list)
    parent: Optional[str] = None
    documentation: Optional[str] = None
    # Types manquants référencés hors des champs (base, groupe ou groupe d'attributs introuvable)
    dependencies: Set[str] = field(default_factory=set)

    def add_field(self, name: str, type_name: str, type_namespace: Optional[str] = None,
                  required: bool = False, repeated: bool = False, fixed: Optional[str] = None,
                  documentation: Optional[str] = None, builtin: bool = False) -> Optional[Field]:
        """
        Ajoute un champ au message. Le premier champ ajouté sous un nom l'emporte.

        Deux noms XSD distincts qui s'écrivent de la même façon en Protobuf ('Name' et 'name',
        'fooBar' et 'foo_bar') sont des doublons.

        Returns:
            Field | None: Le champ créé, ou None si un champ du même nom existe déjà.
        """
        key = field_key(name)
        for existing in self.fields:
            if field_key(existing.name) != key:
                continue
            if existing.name == name:
                logger.debug(f"Field '{name}' already present in message '{self.name}'. Keeping the first definition.")
            else:
                logger.warning(f"Field '{name}' of message '{self.name}' renders as '{key}' like field "
                               f"'{existing.name}'. Keeping '{existing.name}'.")
            return None
        new_field = Field(name, type_name, type_namespace, required, repeated, fixed, documentation, builtin)
        self.fields.append(new_field)
        return new_field

    def add_dependency(self, type_name: str) -> None:
        self.dependencies.add(type_name)

    def get_field(self, name: str) -> Optional[Field]:
        for existing in self.fields:
            if existing.name == name:
                return existing
        return None

    @property
    def types(self) -> Set[str]:
        """Noms des types non intégrés référencés par le message."""
        return {f.type for f in self.fields if not f.builtin} | self.dependencies

    def sorted_fields(self) -> List[Field]:
        return sorted(self.fields, key=lambda f: escape(f.name))


@dataclass
class Enumeration:
    name: str
    namespace: str
    values: List[str] = field(default_factory=list)
    documentation: Optional[str] = None

    def add_value(self, value: str) -> None:
        if value not in self.values:
            self.values.append(value)

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)


class AnonymousCounter:
    """Génère les noms synthétiques Anonymous001, Anonymous002, ..."""

    def __init__(self):
        self.value = 0

    def next_name(self) -> str:
        self.value += 1
        return f"Anonymous{self.value:03d}"


class TypeRegistry:
    """
    Modèle en mémoire du résultat de l'abaissement.

    Messages, énumérations et alias de types simples partagent un seul espace de noms plat:
    la première définition d'un nom l'emporte.
    """

    def __init__(self):
        self.messages: Dict[str, Message] = {}
        self.enums: Dict[str, Enumeration] = {}
        # Alias de type simple -> type XSD de base
        self.simple_types: Dict[str, str] = {}
        self.documentation: Dict[str, str] = {}
        self.basic_types: Set[str] = set(BASIC_TYPES)
        # Noms déjà émis pendant le tri topologique
        self.declared: Set[str] = set()

    # --- Définitions ---

    def is_defined(self, name: str) -> bool:
        return name in self.messages or name in self.enums or name in self.simple_types

    def add_message(self, message: Message) -> Message:
        existing = self.messages.get(message.name)
        if existing is not None:
            return existing
        if self.is_defined(message.name):
            logger.warning(f"Name '{message.name}' is already used by an enum or a simple type. Message not registered.")
            return message
        self.messages[message.name] = message
        return message

    def add_enum(self, enumeration: Enumeration) -> Enumeration:
        existing = self.enums.get(enumeration.name)
        if existing is not None:
            return existing
        if self.is_defined(enumeration.name):
            logger.warning(f"Name '{enumeration.name}' is already used by a message or a simple type. Enum not registered.")
            return enumeration
        self.enums[enumeration.name] = enumeration
        return enumeration

    def add_simple_type(self, name: str, basic_type: str) -> None:
        if name in self.simple_types:
            return
        if self.is_defined(name):
            logger.warning(f"Name '{name}' is already used by a message or an enum. Alias to '{basic_type}' not registered.")
            return
        self.simple_types[name] = basic_type

    def add_documentation(self, name: str, doc: Optional[str]) -> None:
        if doc is not None and name not in self.documentation:
            self.documentation[name] = doc

    # --- Accès ---

    def get_message(self, name: str) -> Optional[Message]:
        return self.messages.get(name)

    def get_enum(self, name: str) -> Optional[Enumeration]:
        return self.enums.get(name)

    def resolve_alias(self, name: str) -> str:
        return self.simple_types.get(name, name)

    def is_resolvable(self, name: str) -> bool:
        """Vrai si le nom désigne un message, une énumération ou un type de base connu."""
        return name in self.messages or name in self.enums or name in self.basic_types

    def iter_messages(self) -> Iterator[Message]:
        for name in sorted(self.messages):
            yield self.messages[name]

    def iter_enums(self) -> Iterator[Enumeration]:
        for name in sorted(self.enums):
            yield self.enums[name]

    # --- Message de repli ---

    def create_super_object(self) -> Message:
        """Message porteur de anyType / anySimpleType, toujours présent dans la sortie."""
        message = Message(UNSPECIFIED_TYPE, None)
        message.add_field("baseObjectType", "string", required=True, builtin=True)
        message.add_field("object", FALLBACK_TYPE, required=True, builtin=True)
        return message
