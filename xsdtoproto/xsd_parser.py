import os
import logging
from typing import Dict, List, Optional, Tuple, Union

from lxml import etree

from xsdtoproto.constants import UNBOUNDED, XSD_FACETS, XSD_NAMESPACE, XSD_NAMESPACE_URI
from xsdtoproto.exceptions import XSDParseError
from xsdtoproto.file_utils import FileUtils
from xsdtoproto.xsd_model import (
    ANY_SIMPLE_TYPE,
    ANY_TYPE,
    AttributeDecl,
    AttributeGroup,
    AttributeUse,
    ComplexType,
    ElementDecl,
    Facet,
    ModelGroup,
    Particle,
    Schema,
    SchemaSet,
    SimpleType,
    UnresolvedType,
    Wildcard,
    get_builtin_type,
)

# Configure le logger pour ce module
logger = logging.getLogger(__name__)

XSD_NS = XSD_NAMESPACE
XML_NAMESPACE_URI = "http://www.w3.org/XML/1998/namespace"

_COMPOSITORS = ("sequence", "choice", "all")


class XSDDocument:
    """Un fichier XSD chargé, avec son namespace cible effectif."""

    def __init__(self, root: etree._Element, path: str, target_namespace: Optional[str]):
        self.root = root
        self.path = path
        # Pour un include 'caméléon', le namespace de l'incluant
        self.target_namespace = target_namespace


def _local_name(node: etree._Element) -> str:
    return etree.QName(node).localname


def _children(node: etree._Element) -> List[etree._Element]:
    """Enfants XSD d'un nœud, sans commentaires ni instructions de traitement."""
    return [
        child for child in node.iterchildren()
        if isinstance(child.tag, str) and etree.QName(child).namespace == XSD_NAMESPACE_URI
    ]


def _parse_occurs(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    if value == "unbounded":
        return UNBOUNDED
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid occurrence value '{value}'. Using {default}.")
        return default


def get_documentation(node: etree._Element) -> Optional[str]:
    """
    Extrait le texte de documentation d'un nœud XSD: le premier texte non vide
    du premier enfant xs:documentation de son xs:annotation.
    """
    annotation_node = node.find(f"{XSD_NS}annotation")
    if annotation_node is None:
        return None
    documentation_node = annotation_node.find(f"{XSD_NS}documentation")
    if documentation_node is None:
        return None
    for text in documentation_node.itertext():
        if text.strip():
            return text.strip()
    return None


class XSDParser:
    """
    Gère le parsing des fichiers XSD, y compris les imports et includes, puis construit
    le graphe de composants résolus (SchemaSet) consommé par le moteur d'abaissement.

    Les diagnostics passent par trois canaux: warning (journalisé), error (journalisé et compté)
    et fatal_error (journalisé, lève XSDParseError).
    """
    def __init__(self):
        # Documents chargés dans l'ordre de découverte (le fichier principal en premier)
        self.documents: List[XSDDocument] = []
        self.processed_files: Dict[str, XSDDocument] = {}
        self.warning_count = 0
        self.error_count = 0
        # Composants globaux: (kind, namespace, nom local) -> (nœud, document)
        self._globals: Dict[Tuple[str, str, str], Tuple[etree._Element, XSDDocument]] = {}
        # Composants déjà construits, indexés par nœud lxml
        self._components: Dict[etree._Element, object] = {}

    # --- Canaux de diagnostic ---

    def warning(self, message: str, system_id: Optional[str] = None) -> None:
        self.warning_count += 1
        logger.warning(f"{message} at {system_id}")

    def error(self, message: str, system_id: Optional[str] = None) -> None:
        self.error_count += 1
        logger.error(f"{message} at {system_id}")

    def fatal_error(self, message: str, system_id: Optional[str] = None) -> None:
        logger.error(f"{message} at {system_id}")
        raise XSDParseError(message, system_id)

    # --- Chargement ---

    def parse(self, file_path: str, search_paths: Optional[list] = None) -> SchemaSet:
        """Charge le fichier XSD principal et retourne le SchemaSet résolu."""
        if search_paths is None:
            search_paths = [os.path.dirname(os.path.abspath(file_path))]
        self.parse_xsd_file(file_path, search_paths)
        return self.build_schema_set()

    def parse_xsd_file(self, file_path: str, search_paths: list,
                       chameleon_namespace: Optional[str] = None) -> etree._Element:
        """
        Parse un seul fichier XSD et ses imports/includes récursivement.

        Args:
            file_path (str): Le chemin du fichier XSD à parser.
            search_paths (list): Une liste de répertoires pour rechercher les fichiers importés/inclus.
            chameleon_namespace (str | None): Namespace de l'incluant, adopté par un include sans targetNamespace.

        Returns:
            etree._Element: L'élément racine du fichier XSD.

        Raises:
            OSError: Si le fichier ne peut pas être lu.
            XSDParseError: Si le fichier n'est pas un document XSD bien formé.
        """
        normalized_file_path = os.path.normpath(file_path)

        if normalized_file_path in self.processed_files:
            logger.info(f"File already processed: {normalized_file_path}. Returning cached root.")
            return self.processed_files[normalized_file_path].root

        try:
            tree = etree.parse(normalized_file_path)
        except etree.XMLSyntaxError as e:
            self.fatal_error(f"XML syntax error: {e}", normalized_file_path)

        root = tree.getroot()
        if root.tag != f"{XSD_NS}schema":
            self.fatal_error(f"Root element '{root.tag}' is not an xs:schema", normalized_file_path)

        target_namespace = root.get("targetNamespace") or chameleon_namespace
        document = XSDDocument(root, normalized_file_path, target_namespace)
        self.processed_files[normalized_file_path] = document
        self.documents.append(document)
        logger.info(f"Stored root for NS '{target_namespace}': {normalized_file_path}")

        for child in _children(root):
            tag_name = _local_name(child)
            if tag_name not in ("import", "include", "redefine", "override"):
                continue
            schema_location = child.get("schemaLocation")
            if not schema_location:
                if tag_name != "import":
                    self.warning(f"{tag_name} without schemaLocation", normalized_file_path)
                continue

            resolved_path = FileUtils.get_file_path(normalized_file_path, schema_location, search_paths)
            if resolved_path is None:
                self.warning(
                    f"{tag_name.capitalize()}ed schemaLocation '{schema_location}' not found "
                    f"for namespace '{child.get('namespace')}'",
                    normalized_file_path,
                )
                continue

            if tag_name == "import":
                logger.info(f"Importing: {resolved_path} for namespace '{child.get('namespace')}'")
                self.parse_xsd_file(resolved_path, search_paths)
            else:
                logger.info(f"Including: {resolved_path}")
                self.parse_xsd_file(resolved_path, search_paths, chameleon_namespace=target_namespace)

        return root

    # --- Construction du SchemaSet ---

    def build_schema_set(self) -> SchemaSet:
        """
        Construit les composants XSD résolus de tous les documents chargés.

        Les schémas sont regroupés par namespace cible dans l'ordre de découverte; dans chaque
        schéma, éléments et types suivent l'ordre du document.
        """
        self._index_globals()

        schemas: Dict[Optional[str], Schema] = {}
        for document in self.documents:
            schema = schemas.get(document.target_namespace)
            if schema is None:
                schema = Schema(document.target_namespace)
                schemas[document.target_namespace] = schema
            schema.system_ids.append(document.path)

            for child in _children(document.root):
                tag_name = _local_name(child)
                if tag_name == "element":
                    schema.elements.append(self._build_element(child, document, is_global=True))
                elif tag_name == "complexType":
                    schema.complex_types.append(self._build_complex_type(child, document))
                elif tag_name == "simpleType":
                    schema.simple_types.append(self._build_simple_type(child, document))

        logger.info(f"Schema set built: {len(schemas)} schema(s), {self.warning_count} warning(s), {self.error_count} error(s)")
        return SchemaSet(list(schemas.values()))

    def _index_globals(self) -> None:
        self._globals.clear()
        for document in self.documents:
            for child in _children(document.root):
                name = child.get("name")
                if not name:
                    continue
                key = (_local_name(child), document.target_namespace or "", name)
                if key in self._globals:
                    logger.info(f"Global {key[0]} '{name}' already defined in {self._globals[key][1].path}. Keeping existing definition.")
                    continue
                self._globals[key] = (child, document)

    def _resolve_qname(self, qname: str, node: etree._Element, document: XSDDocument) -> Tuple[str, str]:
        prefix, _, local_name = qname.rpartition(":")
        if prefix:
            namespace = node.nsmap.get(prefix)
            if namespace is None:
                self.warning(f"Namespace prefix '{prefix}' for '{qname}' not declared", document.path)
                namespace = document.target_namespace
        else:
            namespace = node.nsmap.get(None) or document.target_namespace
        return namespace or "", local_name

    def _lookup(self, kind: str, namespace: str, local_name: str,
                document: XSDDocument) -> Optional[Tuple[etree._Element, XSDDocument]]:
        found = self._globals.get((kind, namespace, local_name))
        if found is not None:
            return found
        # Recherche dans tous les schémas chargés
        for (other_kind, other_namespace, other_name), value in self._globals.items():
            if other_kind == kind and other_name == local_name:
                self.warning(
                    f"{kind} '{local_name}' not found in namespace '{namespace}', "
                    f"using the definition from namespace '{other_namespace}'",
                    document.path,
                )
                return value
        return None

    def _resolve_type(self, qname: str, node: etree._Element, document: XSDDocument):
        namespace, local_name = self._resolve_qname(qname, node, document)
        if namespace == XSD_NAMESPACE_URI:
            builtin = get_builtin_type(local_name)
            if builtin is not None:
                return builtin
            self.error(f"Unknown XML Schema built-in type '{qname}'", document.path)
            return UnresolvedType(local_name, namespace)

        found = self._lookup("complexType", namespace, local_name, document)
        if found is not None:
            return self._build_complex_type(*found)
        found = self._lookup("simpleType", namespace, local_name, document)
        if found is not None:
            return self._build_simple_type(*found)

        self.error(f"Type '{qname}' not found", document.path)
        return UnresolvedType(local_name, namespace or None)

    # --- Types ---

    def _build_complex_type(self, node: etree._Element, document: XSDDocument) -> ComplexType:
        if node in self._components:
            return self._components[node]

        complex_type = ComplexType(
            node.get("name"),
            document.target_namespace,
            abstract=node.get("abstract", "false") == "true",
            documentation=get_documentation(node),
        )
        self._components[node] = complex_type
        logger.debug(f"Building complexType '{complex_type.name or '<anonymous>'}'")

        content_node = node
        derivation_node = None
        for child in _children(node):
            tag_name = _local_name(child)
            if tag_name in ("complexContent", "simpleContent"):
                complex_type.simple_content = tag_name == "simpleContent"
                for grandchild in _children(child):
                    if _local_name(grandchild) in ("extension", "restriction"):
                        derivation_node = grandchild
                        break
                break

        if derivation_node is not None:
            complex_type.derivation = _local_name(derivation_node)
            base_qname = derivation_node.get("base")
            complex_type.base_type = self._resolve_type(base_qname, derivation_node, document) if base_qname else ANY_TYPE
            content_node = derivation_node
        else:
            complex_type.base_type = ANY_TYPE

        self._fill_content(complex_type, content_node, document)
        return complex_type

    def _fill_content(self, complex_type: ComplexType, content_node: etree._Element, document: XSDDocument) -> None:
        for child in _children(content_node):
            tag_name = _local_name(child)
            if tag_name in _COMPOSITORS or tag_name == "group":
                if not complex_type.simple_content:
                    complex_type.particle = self._build_particle(child, document)
            elif tag_name == "attribute":
                attribute_use = self._build_attribute_use(child, document)
                if attribute_use is not None:
                    complex_type.attribute_uses.append(attribute_use)
            elif tag_name == "attributeGroup":
                attribute_group = self._resolve_attribute_group(child, document)
                if attribute_group is not None:
                    complex_type.attribute_groups.append(attribute_group)

    def _build_simple_type(self, node: etree._Element, document: XSDDocument) -> SimpleType:
        if node in self._components:
            return self._components[node]

        simple_type = SimpleType(node.get("name"), document.target_namespace, documentation=get_documentation(node))
        self._components[node] = simple_type
        logger.debug(f"Building simpleType '{simple_type.name or '<anonymous>'}'")

        for child in _children(node):
            tag_name = _local_name(child)
            if tag_name == "restriction":
                base_qname = child.get("base")
                inline_type = child.find(f"{XSD_NS}simpleType")
                if base_qname:
                    simple_type.base_type = self._resolve_type(base_qname, child, document)
                elif inline_type is not None:
                    simple_type.base_type = self._build_simple_type(inline_type, document)
                else:
                    simple_type.base_type = ANY_SIMPLE_TYPE
                for facet_node in _children(child):
                    facet_name = _local_name(facet_node)
                    if facet_name in XSD_FACETS:
                        simple_type.facets.append(Facet(facet_name, facet_node.get("value")))
            elif tag_name == "list":
                simple_type.variety = "list"
                simple_type.base_type = ANY_SIMPLE_TYPE
                item_qname = child.get("itemType")
                inline_type = child.find(f"{XSD_NS}simpleType")
                if item_qname:
                    simple_type.item_type = self._resolve_type(item_qname, child, document)
                elif inline_type is not None:
                    simple_type.item_type = self._build_simple_type(inline_type, document)
                else:
                    simple_type.item_type = ANY_SIMPLE_TYPE
            elif tag_name == "union":
                simple_type.variety = "union"
                simple_type.base_type = ANY_SIMPLE_TYPE
                for member_qname in (child.get("memberTypes") or "").split():
                    simple_type.member_types.append(self._resolve_type(member_qname, child, document))
                for inline_type in child.findall(f"{XSD_NS}simpleType"):
                    simple_type.member_types.append(self._build_simple_type(inline_type, document))

        if simple_type.base_type is None:
            simple_type.base_type = ANY_SIMPLE_TYPE
        return simple_type

    # --- Éléments et particules ---

    def _build_element(self, node: etree._Element, document: XSDDocument, is_global: bool = False) -> ElementDecl:
        if node in self._components:
            return self._components[node]

        element = ElementDecl(
            node.get("name"),
            document.target_namespace,
            fixed=node.get("fixed"),
            documentation=get_documentation(node),
            is_global=is_global,
        )
        self._components[node] = element

        type_qname = node.get("type")
        complex_type_node = node.find(f"{XSD_NS}complexType")
        simple_type_node = node.find(f"{XSD_NS}simpleType")
        substitution_group = node.get("substitutionGroup")

        if type_qname:
            element.type = self._resolve_type(type_qname, node, document)
        elif complex_type_node is not None:
            element.type = self._build_complex_type(complex_type_node, document)
        elif simple_type_node is not None:
            element.type = self._build_simple_type(simple_type_node, document)
        elif substitution_group:
            head = self._resolve_element_ref(substitution_group.split()[0], node, document)
            element.type = head.type if head.type is not None else ANY_TYPE
        else:
            element.type = ANY_TYPE
        return element

    def _resolve_element_ref(self, qname: str, node: etree._Element, document: XSDDocument) -> ElementDecl:
        namespace, local_name = self._resolve_qname(qname, node, document)
        found = self._lookup("element", namespace, local_name, document)
        if found is None:
            self.error(f"Element '{qname}' not found", document.path)
            # Le champ garde le nom manquant comme type, pour être signalé à l'émission
            return ElementDecl(local_name, namespace or None, type=UnresolvedType(local_name, namespace or None))
        element_node, element_document = found
        return self._build_element(element_node, element_document, is_global=True)

    def _build_particle(self, node: etree._Element, document: XSDDocument) -> Optional[Particle]:
        min_occurs = _parse_occurs(node.get("minOccurs"), 1)
        max_occurs = _parse_occurs(node.get("maxOccurs"), 1)
        tag_name = _local_name(node)

        if tag_name == "element":
            element_ref = node.get("ref")
            if element_ref:
                term = self._resolve_element_ref(element_ref, node, document)
            else:
                term = self._build_element(node, document)
        elif tag_name in _COMPOSITORS:
            term = self._build_model_group(node, document)
        elif tag_name == "group":
            term = self._resolve_model_group(node, document)
            if term is None:
                return None
        elif tag_name == "any":
            term = Wildcard(node.get("namespace"))
        else:
            return None
        return Particle(term, min_occurs, max_occurs)

    def _build_model_group(self, node: etree._Element, document: XSDDocument) -> ModelGroup:
        if node in self._components:
            return self._components[node]

        model_group = ModelGroup(_local_name(node))
        self._components[node] = model_group
        for child in _children(node):
            if _local_name(child) in ("element", "group", "any") + _COMPOSITORS:
                particle = self._build_particle(child, document)
                if particle is not None:
                    model_group.particles.append(particle)
        return model_group

    def _resolve_model_group(self, ref_node: etree._Element,
                             document: XSDDocument) -> Optional[Union[ModelGroup, UnresolvedType]]:
        group_ref_name = ref_node.get("ref")
        if not group_ref_name:
            return None
        logger.debug(f"Resolving model group: '{group_ref_name}'")
        namespace, local_name = self._resolve_qname(group_ref_name, ref_node, document)
        found = self._lookup("group", namespace, local_name, document)
        if found is None:
            self.error(f"Model group '{group_ref_name}' not found", document.path)
            return UnresolvedType(local_name, namespace or None)
        group_node, group_document = found
        for child in _children(group_node):
            if _local_name(child) in _COMPOSITORS:
                return self._build_model_group(child, group_document)
        return ModelGroup("sequence")

    # --- Attributs ---

    def _build_attribute_use(self, node: etree._Element, document: XSDDocument) -> Optional[AttributeUse]:
        use = node.get("use", "optional")
        if use == "prohibited":
            return None

        attribute_ref = node.get("ref")
        if attribute_ref:
            decl = self._resolve_attribute_ref(attribute_ref, node, document)
        else:
            decl = self._build_attribute_decl(node, document)

        return AttributeUse(decl, required=use == "required")

    def _build_attribute_decl(self, node: etree._Element, document: XSDDocument) -> AttributeDecl:
        if node in self._components:
            return self._components[node]

        decl = AttributeDecl(
            node.get("name"),
            document.target_namespace,
            fixed=node.get("fixed"),
            documentation=get_documentation(node),
        )
        self._components[node] = decl

        type_qname = node.get("type")
        simple_type_node = node.find(f"{XSD_NS}simpleType")
        if type_qname:
            decl.type = self._resolve_type(type_qname, node, document)
        elif simple_type_node is not None:
            decl.type = self._build_simple_type(simple_type_node, document)
        else:
            decl.type = ANY_SIMPLE_TYPE
        return decl

    def _resolve_attribute_ref(self, qname: str, node: etree._Element, document: XSDDocument) -> AttributeDecl:
        namespace, local_name = self._resolve_qname(qname, node, document)
        if namespace == XML_NAMESPACE_URI:
            # xml:lang, xml:space, ... : attributs prédéfinis de type chaîne
            return AttributeDecl(local_name, namespace, type=get_builtin_type("string"))

        found = self._lookup("attribute", namespace, local_name, document)
        if found is None:
            self.error(f"Attribute '{qname}' not found", document.path)
            return AttributeDecl(local_name, namespace or None, type=UnresolvedType(local_name, namespace or None))
        attribute_node, attribute_document = found
        return self._build_attribute_decl(attribute_node, attribute_document)

    def _resolve_attribute_group(self, ref_node: etree._Element,
                                 document: XSDDocument) -> Optional[Union[AttributeGroup, UnresolvedType]]:
        group_ref_name = ref_node.get("ref")
        if not group_ref_name:
            return None
        logger.debug(f"Resolving attributeGroup: '{group_ref_name}'")
        namespace, local_name = self._resolve_qname(group_ref_name, ref_node, document)
        found = self._lookup("attributeGroup", namespace, local_name, document)
        if found is None:
            self.error(f"Attribute group '{group_ref_name}' not found", document.path)
            return UnresolvedType(local_name, namespace or None)
        return self._build_attribute_group(*found)

    def _build_attribute_group(self, node: etree._Element, document: XSDDocument) -> AttributeGroup:
        if node in self._components:
            return self._components[node]

        attribute_group = AttributeGroup(node.get("name"))
        self._components[node] = attribute_group
        for child in _children(node):
            tag_name = _local_name(child)
            if tag_name == "attribute":
                attribute_use = self._build_attribute_use(child, document)
                if attribute_use is not None:
                    attribute_group.attribute_uses.append(attribute_use)
            elif tag_name == "attributeGroup":
                nested_group = self._resolve_attribute_group(child, document)
                if nested_group is not None:
                    attribute_group.attribute_groups.append(nested_group)
        return attribute_group
