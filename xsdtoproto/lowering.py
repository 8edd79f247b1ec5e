import logging
from typing import Dict, List, NamedTuple, Optional

from xsdtoproto.constants import BASIC_TYPES, XSD_BUILTIN_BASES
from xsdtoproto.namespaces import convert_from_schema
from xsdtoproto.registry import AnonymousCounter, Enumeration, Message, TypeRegistry
from xsdtoproto.xsd_model import (
    ANY_SIMPLE_TYPE,
    ANY_TYPE,
    AttributeDecl,
    AttributeGroup,
    ComplexType,
    ElementDecl,
    ModelGroup,
    Particle,
    SchemaSet,
    SimpleType,
    UnresolvedType,
)

logger = logging.getLogger(__name__)


class TypeReference(NamedTuple):
    """Type d'un champ: nom dans le registre, package, et s'il s'agit d'une liste ou d'un type intégré."""

    name: str
    namespace: Optional[str]
    repeated: bool = False
    builtin: bool = False


def resolve_builtin_name(name: str) -> str:
    """Remonte la hiérarchie des types intégrés XSD jusqu'au type de base le plus proche."""
    seen = set()
    while name not in BASIC_TYPES:
        if name in seen or name not in XSD_BUILTIN_BASES:
            return "string"
        seen.add(name)
        name = XSD_BUILTIN_BASES[name]
    return name


class LoweringEngine:
    """
    Parcourt le graphe de composants XSD et remplit le TypeRegistry.

    Les quatre mécanismes de composition XSD (particules, attributs, groupes d'attributs,
    chaînes d'héritage) sont aplatis en messages:
    - les ancêtres d'un type contribuent leurs champs avec leur caractère obligatoire;
    - les descendants contribuent leurs champs en optionnel (pas de polymorphisme en Protobuf);
    - les alternatives d'un xs:choice sont toujours optionnelles.
    Les types anonymes reçoivent un nom '<élément>Type' ou 'AnonymousNNN'.
    """

    def __init__(self, registry: TypeRegistry):
        self.registry = registry
        self.schema_set: Optional[SchemaSet] = None
        self.anonymous_counter = AnonymousCounter()
        # Noms synthétiques déjà attribués aux types anonymes
        self._anonymous_names: Dict[int, str] = {}
        # Sous-types directs de chaque type complexe global, dans l'ordre des schémas
        self._descendants: Dict[int, List[ComplexType]] = {}

    # --- Point d'entrée ---

    def process_schema_set(self, schema_set: SchemaSet) -> TypeRegistry:
        self.schema_set = schema_set
        self._index_descendants(schema_set)

        for schema in schema_set.iterate_schemas():
            if (schema.target_namespace or "").endswith("/XMLSchema"):
                continue
            logger.info(f"Lowering schema '{schema.target_namespace}': {len(schema.elements)} element(s), "
                        f"{len(schema.complex_types)} complex type(s), {len(schema.simple_types)} simple type(s)")
            for element in schema.elements:
                self.process_element(element)
            for complex_type in schema.complex_types:
                self.process_complex_type(complex_type)
            for simple_type in schema.simple_types:
                self.process_simple_type(simple_type)
        return self.registry

    def _index_descendants(self, schema_set: SchemaSet) -> None:
        self._descendants = {}
        for xsd_type in schema_set.iterate_types():
            if isinstance(xsd_type, ComplexType) and xsd_type.base_type is not None:
                self._descendants.setdefault(id(xsd_type.base_type), []).append(xsd_type)

    def _anonymous_name(self, xsd_type) -> str:
        name = self._anonymous_names.get(id(xsd_type))
        if name is None:
            name = self.anonymous_counter.next_name()
            self._anonymous_names[id(xsd_type)] = name
        return name

    # --- Éléments ---

    def process_element(self, element: ElementDecl) -> None:
        element_type = element.type
        if element_type is None or element_type is ANY_TYPE or element_type is ANY_SIMPLE_TYPE:
            logger.debug(f"Skipping element '{element.name}' of type anyType/anySimpleType")
            return

        if isinstance(element_type, ComplexType):
            self.process_complex_type(element_type, element.name, element.documentation)
        else:
            self._write_simple_element(element)

    def _write_simple_element(self, element: ElementDecl) -> None:
        """Un élément global de type simple devient un message à un seul champ."""
        element_type = element.type
        if isinstance(element_type, SimpleType) and not element_type.builtin and not element_type.is_anonymous:
            self.process_simple_type(element_type)
        reference = self._type_reference(element_type, element.name)
        if self.registry.is_defined(element.name):
            logger.debug(f"Name '{element.name}' already defined. No wrapper message for element '{element.name}'.")
            return

        message = Message(element.name, convert_from_schema(element.target_namespace),
                          documentation=element.documentation)
        self.registry.add_message(message)
        self.registry.add_documentation(element.name, element.documentation)
        message.add_field(element.name, reference.name, reference.namespace, required=True,
                          repeated=reference.repeated, fixed=element.fixed, builtin=reference.builtin)

    def process_type(self, xsd_type, element_name: Optional[str] = None, documentation: Optional[str] = None) -> str:
        if isinstance(xsd_type, ComplexType):
            return self.process_complex_type(xsd_type, element_name, documentation)
        return self.process_simple_type(xsd_type, element_name)

    def _type_reference(self, xsd_type, hint: Optional[str], documentation: Optional[str] = None) -> TypeReference:
        """
        Calcule la référence de type d'un champ.

        Les types anonymes sont traités immédiatement pour leur attribuer un nom; les types nommés
        sont référencés par leur nom et traités lors du parcours global des schémas.
        """
        if xsd_type is None:
            return TypeReference("anyType", None, builtin=True)

        if isinstance(xsd_type, UnresolvedType):
            return TypeReference(xsd_type.name, convert_from_schema(xsd_type.target_namespace))

        if isinstance(xsd_type, ComplexType):
            if xsd_type.builtin:
                return TypeReference(xsd_type.name, None, builtin=True)
            if xsd_type.is_anonymous:
                type_name = self.process_type(xsd_type, hint, documentation)
                message = self.registry.get_message(type_name)
                namespace = message.namespace if message is not None else convert_from_schema(xsd_type.target_namespace)
                return TypeReference(type_name, namespace)
            return TypeReference(xsd_type.name, convert_from_schema(xsd_type.target_namespace))

        item_type = xsd_type.list_item_type()
        if item_type is not None:
            item_reference = self._type_reference(item_type, hint, documentation)
            return item_reference._replace(repeated=True)

        if xsd_type.builtin:
            return TypeReference(resolve_builtin_name(xsd_type.name), None, builtin=True)
        if xsd_type.is_anonymous:
            return TypeReference(self.process_type(xsd_type, hint), convert_from_schema(xsd_type.target_namespace))
        return TypeReference(xsd_type.name, convert_from_schema(xsd_type.target_namespace))

    # --- Types complexes ---

    def process_complex_type(self, complex_type: ComplexType, element_name: Optional[str] = None,
                             documentation: Optional[str] = None) -> str:
        """
        Enregistre le message correspondant à un type complexe et retourne son nom.

        Args:
            complex_type (ComplexType): Le type à abaisser.
            element_name (str | None): Nom de l'élément englobant, pour nommer un type anonyme.
            documentation (str | None): Documentation de repli (celle de l'élément englobant).

        Returns:
            str: Le nom du message dans le registre.
        """
        type_name = complex_type.name
        if type_name is None:
            type_name = f"{element_name}Type" if element_name else self._anonymous_name(complex_type)

        if self.registry.is_defined(type_name):
            return type_name

        doc = complex_type.documentation or (documentation if complex_type.is_anonymous else None)
        message = Message(type_name, convert_from_schema(complex_type.target_namespace), documentation=doc)
        self.registry.add_message(message)
        self.registry.add_documentation(type_name, doc)
        logger.debug(f"Processing complexType '{type_name}'")

        # Les ancêtres, du type lui-même jusqu'à anyType
        parent = complex_type
        visited = set()
        while parent is not None and parent is not ANY_TYPE and id(parent) not in visited:
            visited.add(id(parent))
            if isinstance(parent, ComplexType):
                self.write_complex_content(message, parent, True)
            elif isinstance(parent, UnresolvedType):
                message.add_dependency(parent.name)
            parent = parent.base_type

        # Puis les descendants, en optionnel
        self.process_inheritance(message, complex_type)

        base_type = complex_type.base_type
        message.parent = getattr(base_type, "name", None)
        return type_name

    def write_complex_content(self, message: Message, complex_type: ComplexType, going_up: bool) -> None:
        particle = complex_type.particle
        if particle is not None:
            self.write_term(message, particle.term, going_up and particle.min_occurs != 0)

        for attribute_group in complex_type.attribute_groups:
            self.write_attribute_group(message, attribute_group, going_up)

        for attribute_use in complex_type.attribute_uses:
            self.write_attribute(message, attribute_use.decl, going_up and attribute_use.required)

    def process_inheritance(self, message: Message, complex_type: ComplexType, _visited: Optional[set] = None) -> None:
        """Ajoute au message les champs de tous les sous-types (récursivement), en optionnel."""
        visited = _visited if _visited is not None else {id(complex_type)}
        for descendant in self._descendants.get(id(complex_type), []):
            if id(descendant) in visited:
                continue
            visited.add(id(descendant))
            logger.debug(f"Folding descendant '{descendant.name}' into message '{message.name}'")
            self.write_complex_content(message, descendant, False)
            self.process_inheritance(message, descendant, visited)

    def write_term(self, message: Message, term, going_up: bool) -> None:
        if isinstance(term, UnresolvedType):
            message.add_dependency(term.name)
            return
        if not isinstance(term, ModelGroup):
            return
        if term.compositor == "choice":
            # Une seule alternative peut être présente
            going_up = False

        for particle in term.particles:
            child = particle.term
            if isinstance(child, ElementDecl):
                self._write_element_field(message, particle, child, going_up)
            else:
                # les wildcards (xs:any) n'ont pas d'équivalent
                self.write_term(message, child, going_up and particle.min_occurs != 0)

    def _write_element_field(self, message: Message, particle: Particle, element: ElementDecl, going_up: bool) -> None:
        reference = self._type_reference(element.type, element.name, element.documentation)
        message.add_field(
            element.name,
            reference.name,
            reference.namespace,
            required=going_up and particle.min_occurs != 0,
            repeated=particle.is_repeated or reference.repeated,
            fixed=element.fixed,
            documentation=element.documentation,
            builtin=reference.builtin,
        )

    # --- Attributs ---

    def write_attribute_group(self, message: Message, attribute_group: AttributeGroup, going_up: bool,
                              _visited: Optional[set] = None) -> None:
        if isinstance(attribute_group, UnresolvedType):
            message.add_dependency(attribute_group.name)
            return
        visited = _visited if _visited is not None else set()
        if id(attribute_group) in visited:
            return
        visited.add(id(attribute_group))

        for nested_group in attribute_group.attribute_groups:
            self.write_attribute_group(message, nested_group, going_up, visited)

        for attribute_use in attribute_group.attribute_uses:
            self.write_attribute(message, attribute_use.decl, going_up and attribute_use.required)

    def write_attribute(self, message: Message, decl: AttributeDecl, required: bool) -> None:
        reference = self._type_reference(decl.type or ANY_SIMPLE_TYPE, decl.name)
        message.add_field(
            decl.name,
            reference.name,
            reference.namespace,
            required=required,
            repeated=reference.repeated,
            fixed=decl.fixed,
            documentation=decl.documentation,
            builtin=reference.builtin,
        )

    # --- Types simples ---

    def process_simple_type(self, simple_type: SimpleType, element_name: Optional[str] = None) -> str:
        """
        Enregistre une énumération ou un alias pour un type simple et retourne son nom.

        Une restriction portant des facettes 'enumeration' (déclarées ou héritées) devient une
        énumération; toute autre restriction devient un alias vers le type intégré le plus proche.
        """
        if simple_type.builtin:
            return resolve_builtin_name(simple_type.name)

        values = simple_type.enumeration_values() if simple_type.variety == "atomic" else []
        if values:
            type_name = simple_type.name
            if type_name is None:
                type_name = f"{element_name}Type" if element_name else self._anonymous_name(simple_type)
            self._create_enum(type_name, simple_type, values)
            return type_name

        # Le nom de l'élément n'est pas forcément unique: un alias anonyme reçoit un nom synthétique
        type_name = simple_type.name or self._anonymous_name(simple_type)
        if not self.registry.is_defined(type_name):
            basic_type = self._resolve_simple_base(simple_type)
            logger.debug(f"Simple type '{type_name}' aliased to '{basic_type}'")
            self.registry.add_simple_type(type_name, basic_type)
            self.registry.add_documentation(type_name, simple_type.documentation)
        return type_name

    def _create_enum(self, name: str, simple_type: SimpleType, values: List[str]) -> None:
        if self.registry.is_defined(name):
            return
        enumeration = Enumeration(name, convert_from_schema(simple_type.target_namespace),
                                  documentation=simple_type.documentation)
        for value in values:
            if value is not None:
                enumeration.add_value(value)
        self.registry.add_enum(enumeration)
        self.registry.add_documentation(name, simple_type.documentation)
        logger.debug(f"Enum '{name}' created with {len(enumeration.values)} value(s)")

    @staticmethod
    def _resolve_simple_base(simple_type: SimpleType) -> str:
        current = simple_type
        visited = set()
        while isinstance(current, SimpleType) and id(current) not in visited:
            visited.add(id(current))
            if current.builtin:
                return resolve_builtin_name(current.name)
            if current.variety != "atomic":
                return "string"
            current = current.base_type
        return "string"
