"""
Modèle de composants XSD résolus, produit par XSDParser.build_schema_set().

Les références entre composants sont des références d'objets (le graphe peut être cyclique):
les champs qui pointent vers d'autres composants sont exclus de repr().
"""
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Union

from xsdtoproto.constants import (
    UNBOUNDED,
    XSD_BUILTIN_BASES,
    XSD_BUILTIN_LIST_ITEMS,
    XSD_BUILTIN_TYPES,
    XSD_NAMESPACE_URI,
)


@dataclass(eq=False)
class Facet:
    name: str
    value: Optional[str]


@dataclass(eq=False)
class SimpleType:
    name: Optional[str]
    target_namespace: Optional[str]
    # 'atomic', 'list' ou 'union'
    variety: str = "atomic"
    base_type: Optional["XsdType"] = field(default=None, repr=False)
    item_type: Optional["SimpleType"] = field(default=None, repr=False)
    member_types: List["SimpleType"] = field(default_factory=list, repr=False)
    facets: List[Facet] = field(default_factory=list)
    documentation: Optional[str] = None
    builtin: bool = False

    is_complex = False

    @property
    def is_restriction(self) -> bool:
        return self.variety == "atomic" and self.base_type is not None and not self.builtin

    @property
    def is_anonymous(self) -> bool:
        return self.name is None

    def get_facets(self, name: str) -> List[Facet]:
        return [facet for facet in self.facets if facet.name == name]

    def enumeration_values(self) -> List[str]:
        """Valeurs d'énumération déclarées, ou héritées du type de base restreint."""
        current = self
        seen = set()
        while isinstance(current, SimpleType) and not current.builtin and id(current) not in seen:
            seen.add(id(current))
            values = [facet.value for facet in current.get_facets("enumeration")]
            if values:
                return values
            current = current.base_type
        return []

    def has_enumeration(self) -> bool:
        return bool(self.enumeration_values())

    def list_item_type(self) -> Optional["SimpleType"]:
        """Type des items si ce type est une liste (directement ou par restriction)."""
        current = self
        seen = set()
        while isinstance(current, SimpleType) and id(current) not in seen:
            seen.add(id(current))
            if current.variety == "list":
                return current.item_type
            if current.builtin:
                return None
            current = current.base_type
        return None


@dataclass(eq=False)
class UnresolvedType:
    """Référence introuvable (type, base, groupe), signalée plus tard comme type manquant."""

    name: str
    target_namespace: Optional[str]

    is_complex = False
    builtin = False
    base_type = None
    is_anonymous = False


@dataclass(eq=False)
class AttributeDecl:
    name: str
    target_namespace: Optional[str]
    type: Optional[Union[SimpleType, UnresolvedType]] = field(default=None, repr=False)
    fixed: Optional[str] = None
    documentation: Optional[str] = None


@dataclass(eq=False)
class AttributeUse:
    decl: AttributeDecl
    required: bool = False


@dataclass(eq=False)
class AttributeGroup:
    name: Optional[str]
    attribute_uses: List[AttributeUse] = field(default_factory=list)
    attribute_groups: List[Union["AttributeGroup", UnresolvedType]] = field(default_factory=list, repr=False)


@dataclass(eq=False)
class ElementDecl:
    name: str
    target_namespace: Optional[str]
    type: Optional["XsdType"] = field(default=None, repr=False)
    fixed: Optional[str] = None
    documentation: Optional[str] = None
    is_global: bool = False


@dataclass(eq=False)
class Wildcard:
    namespace: Optional[str] = None


@dataclass(eq=False)
class ModelGroup:
    # 'sequence', 'choice' ou 'all'
    compositor: str
    particles: List["Particle"] = field(default_factory=list)


@dataclass(eq=False)
class Particle:
    term: Union[ElementDecl, ModelGroup, Wildcard, UnresolvedType] = field(repr=False)
    min_occurs: int = 1
    max_occurs: int = 1

    @property
    def is_repeated(self) -> bool:
        return self.max_occurs == UNBOUNDED or self.max_occurs > 1


@dataclass(eq=False)
class ComplexType:
    name: Optional[str]
    target_namespace: Optional[str]
    base_type: Optional["XsdType"] = field(default=None, repr=False)
    # 'extension' ou 'restriction'
    derivation: str = "restriction"
    particle: Optional[Particle] = field(default=None, repr=False)
    attribute_uses: List[AttributeUse] = field(default_factory=list, repr=False)
    attribute_groups: List[Union[AttributeGroup, UnresolvedType]] = field(default_factory=list, repr=False)
    simple_content: bool = False
    abstract: bool = False
    documentation: Optional[str] = None
    builtin: bool = False

    is_complex = True

    @property
    def is_anonymous(self) -> bool:
        return self.name is None


XsdType = Union[ComplexType, SimpleType, UnresolvedType]


# --- Types intégrés ---

ANY_TYPE = ComplexType("anyType", XSD_NAMESPACE_URI, builtin=True)
ANY_SIMPLE_TYPE = SimpleType("anySimpleType", XSD_NAMESPACE_URI, base_type=ANY_TYPE, builtin=True)

_BUILTIN_CACHE: Dict[str, SimpleType] = {"anySimpleType": ANY_SIMPLE_TYPE}


def get_builtin_type(name: str) -> Optional[Union[ComplexType, SimpleType]]:
    """Retourne le composant du type intégré XSD 'name' (anyType compris)."""
    if name == "anyType":
        return ANY_TYPE
    if name in _BUILTIN_CACHE:
        return _BUILTIN_CACHE[name]
    if name not in XSD_BUILTIN_TYPES:
        return None

    builtin = SimpleType(name, XSD_NAMESPACE_URI, builtin=True)
    _BUILTIN_CACHE[name] = builtin
    if name in XSD_BUILTIN_LIST_ITEMS:
        builtin.variety = "list"
        builtin.item_type = get_builtin_type(XSD_BUILTIN_LIST_ITEMS[name])
        builtin.base_type = ANY_SIMPLE_TYPE
    elif name in XSD_BUILTIN_BASES:
        builtin.base_type = get_builtin_type(XSD_BUILTIN_BASES[name])
    else:
        builtin.base_type = ANY_SIMPLE_TYPE
    return builtin


# --- Conteneurs ---

@dataclass(eq=False)
class Schema:
    target_namespace: Optional[str]
    elements: List[ElementDecl] = field(default_factory=list)
    complex_types: List[ComplexType] = field(default_factory=list)
    simple_types: List[SimpleType] = field(default_factory=list)
    system_ids: List[str] = field(default_factory=list)


class SchemaSet:
    """Ensemble des schémas chargés, regroupés par namespace cible dans l'ordre de découverte."""

    any_type = ANY_TYPE
    any_simple_type = ANY_SIMPLE_TYPE

    def __init__(self, schemas: Optional[List[Schema]] = None):
        self.schemas: List[Schema] = list(schemas or [])

    def iterate_schemas(self) -> Iterator[Schema]:
        return iter(self.schemas)

    def get_schema(self, target_namespace: Optional[str]) -> Optional[Schema]:
        for schema in self.schemas:
            if schema.target_namespace == target_namespace:
                return schema
        return None

    def iterate_types(self) -> Iterator[XsdType]:
        """Tous les types globaux (complexes puis simples), schéma par schéma."""
        for schema in self.schemas:
            yield from schema.complex_types
            yield from schema.simple_types

    def iterate_elements(self) -> Iterator[ElementDecl]:
        for schema in self.schemas:
            yield from schema.elements
