import io
import logging
from typing import Callable, Dict, List, Optional, Set

from xsdtoproto.config import TranslatorOptions
from xsdtoproto.constants import FALLBACK_TYPE, UNSPECIFIED_TYPE
from xsdtoproto.exceptions import CircularDependencyError, MissingTypesError
from xsdtoproto.marshaller import ProtobufMarshaller
from xsdtoproto.names import escape, escape_type, to_upper_underscore
from xsdtoproto.output_writer import OutputWriter
from xsdtoproto.registry import Enumeration, Field, Message, TypeRegistry, field_key

logger = logging.getLogger(__name__)


class DependencyResolver:
    """
    Classe les messages qui n'ont pas pu être émis par le tri topologique.

    Soit le résidu ne dépend que de lui-même (cycle), soit il référence des types
    qui n'existent pas.
    """

    def __init__(self, registry: TypeRegistry, marshaller: ProtobufMarshaller):
        self.registry = registry
        self.marshaller = marshaller

    def resolve(self, residue: List[Message], write_struct: Callable[[Message], None]) -> None:
        """
        Émet un résidu cyclique ou échoue.

        Raises:
            CircularDependencyError: Cycle et marshaller sans support des dépendances circulaires.
            MissingTypesError: Le résidu référence des types non définis.
        """
        declared = self.registry.declared
        residue_names = {message.name for message in residue}
        required: Set[str] = set()
        for message in residue:
            required.update(message.types)
        required -= declared
        required -= residue_names

        if not required:
            if self.marshaller.is_circular_dependency_supported():
                logger.info(f"Circular dependencies between {len(residue)} message(s), writing them as they are")
                for message in sorted(residue, key=lambda m: m.name):
                    write_struct(message)
                return

            graph = {message.name: message.types - declared for message in residue}
            logger.error("Source schema contains circular dependencies and the target marshaller "
                         "does not support them. Refer to the reduced dependency graph below.")
            for name in sorted(graph):
                logger.error(f"{name}: {sorted(graph[name])}")
            raise CircularDependencyError(graph)

        logger.error("Source schema contains references to missing types")
        missing: Dict[str, Set[str]] = {}
        for message in sorted(residue, key=lambda m: m.name):
            culprits = message.types & required
            if culprits:
                missing[message.name] = culprits
                logger.error(f"Message '{message.name}' references missing type(s): {', '.join(sorted(culprits))}")
        raise MissingTypesError(missing)


class TopologicalEmitter:
    """
    Écrit le contenu du TypeRegistry dans l'OutputWriter.

    Un message n'est émis que lorsque tous les types qu'il référence ont déjà été déclarés;
    les messages restants sont confiés au DependencyResolver.
    """

    def __init__(self, registry: TypeRegistry, marshaller: ProtobufMarshaller, writer: OutputWriter,
                 options: Optional[TranslatorOptions] = None):
        self.registry = registry
        self.marshaller = marshaller
        self.writer = writer
        self.options = options or TranslatorOptions()
        self.nest_enums = self.options.nest_enums and marshaller.is_nested_enums()

    def write_map(self) -> None:
        registry = self.registry
        if self.options.protobuf_version >= 3 and self.options.enum_order_start != 0:
            logger.warning(f"proto3 requires the first enum value to be 0, "
                           f"got enum order start {self.options.enum_order_start}")

        # Les types intégrés sont marqués sur les champs et ne figurent pas dans Message.types
        declared = registry.declared
        declared.update(registry.enums)
        declared.update(registry.simple_types)

        # Prélude
        self.write_struct(registry.create_super_object())
        self.write_imports()

        if not self.nest_enums:
            for enumeration in registry.iter_enums():
                self.write_enum(enumeration, self.writer.get_stream(enumeration.namespace))

        pending = []
        for message in registry.iter_messages():
            if message.name in declared:
                logger.warning(f"Message '{message.name}' conflicts with an already declared name. Skipping it.")
                continue
            pending.append(message)

        modified = True
        while modified and pending:
            modified = False
            remaining = []
            for message in pending:
                if message.types <= declared:
                    self.write_struct(message)
                    modified = True
                else:
                    remaining.append(message)
            pending = remaining

        if pending:
            logger.debug(f"{len(pending)} message(s) left after topological emission")
            DependencyResolver(registry, self.marshaller).resolve(pending, self.write_struct)

        if self.nest_enums:
            self.write_unreferenced_enums()

        logger.info(f"Emitted {len(declared & set(registry.messages))} message(s) and {len(registry.enums)} enum(s)")

    def write_imports(self) -> None:
        """Ajoute à chaque fichier les imports requis par les types (mappés) de ses champs."""
        registry = self.registry
        for message in registry.iter_messages():
            for f in message.fields:
                builtin = f.builtin or f.type in registry.simple_types
                type_name = f.type if f.builtin else registry.resolve_alias(f.type)
                path = self.marshaller.get_import(type_name, include_defaults=builtin)
                if path:
                    self.writer.add_import(message.namespace, path)

    def write_unreferenced_enums(self) -> None:
        """Les énumérations qu'aucun champ n'utilise ne sont imbriquées nulle part: elles restent au niveau du package."""
        referenced = set()
        for message in self.registry.iter_messages():
            referenced.update(message.types)
        for enumeration in self.registry.iter_enums():
            if enumeration.name not in referenced:
                self.write_enum(enumeration, self.writer.get_stream(enumeration.namespace))

    # --- Messages ---

    def write_struct(self, message: Message) -> None:
        marshaller = self.marshaller
        stream = self.writer.get_stream(message.namespace)
        logger.debug(f"Writing message '{message.name}'")

        self._write_documentation(message.name, stream)
        message_name = marshaller.get_name_mapping(message.name) or message.name
        stream.write(marshaller.write_struct_header(escape(message_name)))

        nested_enums: Set[str] = set()
        rendered: Set[str] = set()
        order = 1
        for f in message.sorted_fields():
            line = self._write_field(message, f, order, stream, nested_enums, rendered)
            if line is not None:
                stream.write(line)
                order += 1

        stream.write(marshaller.write_struct_footer())
        self.registry.declared.add(message.name)

    def _write_field(self, message: Message, f: Field, order: int, stream: io.StringIO,
                     nested_enums: Set[str], rendered: Set[str]) -> Optional[str]:
        registry = self.registry
        marshaller = self.marshaller

        field_name = marshaller.get_name_mapping(f.name) or f.name
        type_name = f.type
        type_namespace = f.type_namespace
        builtin = f.builtin
        user_type = False

        if not builtin:
            if type_name in registry.enums:
                user_type = True
                if self.nest_enums:
                    # Une énumération imbriquée est déclarée une fois par message, avant son usage
                    if type_name not in nested_enums:
                        nested_enums.add(type_name)
                        self.write_enum(registry.enums[type_name], stream)
                    type_namespace = None
            elif type_name in registry.simple_types:
                type_name = registry.simple_types[type_name]
                type_namespace = None
                builtin = True
            elif type_name in registry.messages:
                user_type = True
            else:
                logger.warning(f"Type '{type_name}' of field '{f.name}' in message '{message.name}' "
                               f"is unresolved. Using '{FALLBACK_TYPE}'.")
                type_name = FALLBACK_TYPE
                type_namespace = None
                builtin = True

        if field_name == type_name:
            field_name = "_" + field_name

        # Un renommage peut faire coïncider deux champs distincts
        key = field_key(field_name)
        if key in rendered:
            logger.warning(f"Field '{f.name}' of message '{message.name}' renders as duplicate '{key}'. Skipping it.")
            return None
        rendered.add(key)

        type_prefix = ""
        mapped = marshaller.get_type_mapping(type_name, include_defaults=builtin)
        if mapped is not None:
            type_name = mapped
            if "." in mapped:
                qualifier, _, type_name = mapped.rpartition(".")
                type_prefix = qualifier + "."
                self.writer.add_inclusion(message.namespace, qualifier)
            elif mapped == UNSPECIFIED_TYPE:
                type_prefix = self._qualify(message.namespace, None)
            type_name = escape_type(type_name)
        elif user_type:
            if type_namespace is not None:
                type_prefix = self._qualify(message.namespace, type_namespace)
            type_name = escape(marshaller.get_name_mapping(type_name) or type_name)
        else:
            type_name = escape_type(type_name)

        documentation = None
        if self.options.include_field_docs:
            documentation = f.documentation or registry.documentation.get(f.type)
            if documentation:
                documentation = " ".join(documentation.split())

        return marshaller.write_struct_parameter(order, f.required, f.repeated, escape(field_name),
                                                 type_prefix + type_name, documentation)

    def _qualify(self, from_namespace: Optional[str], to_namespace: Optional[str]) -> str:
        """Préfixe de package d'une référence vers un autre fichier (mode split_by_namespace)."""
        if not self.writer.is_external(from_namespace, to_namespace):
            return ""
        self.writer.add_inclusion(from_namespace, to_namespace)
        package = self.writer.get_package(to_namespace)
        return f"{package}." if package else "."

    # --- Énumérations ---

    def write_enum(self, enumeration: Enumeration, stream: io.StringIO) -> None:
        marshaller = self.marshaller
        self._write_documentation(enumeration.name, stream)
        enum_name = marshaller.get_name_mapping(enumeration.name) or enumeration.name
        stream.write(marshaller.write_enum_header(escape(enum_name)))

        prefix = f"{enumeration.name}_" if self.options.type_in_enums else ""
        values = ["notSet"] + (list(enumeration.values) or ["UnspecifiedValue"])
        order = self.options.enum_order_start
        rendered: Set[str] = set()
        for value in values:
            literal = escape(prefix + value)
            key = to_upper_underscore(literal)
            if key in rendered:
                logger.warning(f"Enum '{enumeration.name}': value '{value}' renders as duplicate '{key}'. Skipping it.")
                continue
            rendered.add(key)
            stream.write(marshaller.write_enum_value(order, literal))
            order += 1

        stream.write(marshaller.write_enum_footer())

    def _write_documentation(self, name: str, stream: io.StringIO) -> None:
        if not self.options.include_message_docs:
            return
        documentation = self.registry.documentation.get(name)
        if documentation:
            stream.write(self.marshaller.write_documentation(documentation))
