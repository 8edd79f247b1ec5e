import logging
import os
from typing import Dict, Optional

from xsdtoproto.config import TranslatorOptions
from xsdtoproto.emitter import TopologicalEmitter
from xsdtoproto.lowering import LoweringEngine
from xsdtoproto.marshaller import ProtobufMarshaller
from xsdtoproto.namespaces import convert_from_schema
from xsdtoproto.output_writer import OutputWriter
from xsdtoproto.registry import TypeRegistry
from xsdtoproto.xsd_parser import XSDParser

logger = logging.getLogger(__name__)


class XSDToProtoTranslator:
    """
    Enchaîne les étapes d'une traduction: parsing XSD, abaissement, émission et écriture.

    Une instance peut servir plusieurs traductions; chaque appel à translate() repart
    d'un registre vide.
    """

    def __init__(self, options: Optional[TranslatorOptions] = None):
        self.options = options or TranslatorOptions()
        self.parser: Optional[XSDParser] = None
        self.registry: Optional[TypeRegistry] = None

    def create_marshaller(self) -> ProtobufMarshaller:
        marshaller = ProtobufMarshaller(self.options.protobuf_version)
        marshaller.set_custom_mappings(self.options.custom_type_mappings)
        marshaller.set_custom_name_mappings(self.options.custom_name_mappings)
        return marshaller

    def translate(self, xsd_path: str, output_dir: Optional[str] = None,
                  search_paths: Optional[list] = None) -> Dict[str, str]:
        """
        Traduit un fichier XSD (et ses imports/includes) en fichiers .proto.

        Args:
            xsd_path (str): Le fichier XSD principal.
            output_dir (str | None): Répertoire de sortie; None pour ne rien écrire sur disque.
            search_paths (list | None): Répertoires où chercher les schémas importés/inclus.

        Returns:
            dict: Nom de fichier .proto -> contenu.

        Raises:
            OSError: Lecture ou écriture impossible.
            XSDParseError: Document XSD invalide.
            InvalidXSDError: Types manquants ou dépendances circulaires non supportées.
        """
        logger.info(f"Translating '{xsd_path}' to protobuf version {self.options.protobuf_version}")
        self.parser = XSDParser()
        schema_set = self.parser.parse(xsd_path, search_paths)

        self.registry = TypeRegistry()
        LoweringEngine(self.registry).process_schema_set(schema_set)

        main_schema = schema_set.schemas[0] if schema_set.schemas else None
        default_namespace = convert_from_schema(main_schema.target_namespace if main_schema else None)
        file_name = self.options.file_name or os.path.splitext(os.path.basename(xsd_path))[0]

        marshaller = self.create_marshaller()
        writer = OutputWriter(
            marshaller,
            output_dir=output_dir,
            file_name=file_name,
            default_namespace=default_namespace,
            split_by_namespace=self.options.split_by_namespace,
        )
        TopologicalEmitter(self.registry, marshaller, writer, self.options).write_map()
        return writer.post_process_namespaced_files_for_includes()
