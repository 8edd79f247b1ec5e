import io
import logging
import os
from typing import Dict, Optional, Set

from xsdtoproto.marshaller import ProtobufMarshaller

logger = logging.getLogger(__name__)


class OutputWriter:
    """
    Gère les flux de sortie, un par fichier .proto.

    En mode fichier unique, tous les namespaces écrivent dans '<file_name>.proto' sous le package
    du schéma principal. En mode 'split_by_namespace', chaque package produit '<package>.proto'.
    Le namespace None désigne le package du schéma principal.
    """

    def __init__(self, marshaller: ProtobufMarshaller, output_dir: Optional[str] = None,
                 file_name: str = "schema", default_namespace: str = "",
                 split_by_namespace: bool = False):
        self.marshaller = marshaller
        self.output_dir = output_dir
        self.file_name = file_name[:-len(".proto")] if file_name.endswith(".proto") else file_name
        self.default_namespace = default_namespace or ""
        self.split_by_namespace = split_by_namespace
        # Fichier -> flux, dans l'ordre d'ouverture
        self._streams: Dict[str, io.StringIO] = {}
        self._packages: Dict[str, str] = {}
        self._imports: Dict[str, Set[str]] = {}
        # Fichier -> fichiers référencés depuis ce fichier
        self._inclusions: Dict[str, Set[str]] = {}
        # Contenu final, fixé après le post-traitement
        self._rendered: Optional[Dict[str, str]] = None

    def get_package(self, namespace: Optional[str]) -> str:
        if not self.split_by_namespace or not namespace:
            return self.default_namespace
        return namespace

    def get_file_name(self, namespace: Optional[str]) -> str:
        package = self.get_package(namespace)
        if not self.split_by_namespace or package == self.default_namespace or not package:
            return f"{self.file_name}.proto"
        return f"{package}.proto"

    def is_external(self, from_namespace: Optional[str], to_namespace: Optional[str]) -> bool:
        """Vrai si une référence entre ces deux namespaces traverse deux fichiers différents."""
        return self.split_by_namespace and self.get_file_name(from_namespace) != self.get_file_name(to_namespace)

    def get_stream(self, namespace: Optional[str]) -> io.StringIO:
        """Retourne le flux du fichier correspondant au namespace, ouvert à la première demande."""
        file_name = self.get_file_name(namespace)
        stream = self._streams.get(file_name)
        if stream is None:
            logger.debug(f"Opening output stream '{file_name}' for namespace '{namespace}'")
            stream = io.StringIO()
            self._streams[file_name] = stream
            self._packages[file_name] = self.get_package(namespace)
        return stream

    def add_import(self, namespace: Optional[str], path: str) -> None:
        self.get_stream(namespace)
        self._imports.setdefault(self.get_file_name(namespace), set()).add(path)

    def add_inclusion(self, from_namespace: Optional[str], to_namespace: Optional[str]) -> None:
        if not self.is_external(from_namespace, to_namespace):
            return
        self._inclusions.setdefault(self.get_file_name(from_namespace), set()).add(self.get_file_name(to_namespace))

    def render(self) -> Dict[str, str]:
        """
        Assemble chaque fichier: en-tête, imports puis contenu.

        Les inclusions ne deviennent des imports que pour les fichiers effectivement produits;
        une inclusion vers un package inconnu (type externe mappé) est ignorée.

        Returns:
            dict: Nom de fichier -> contenu, dans l'ordre d'ouverture des flux.
        """
        if self._rendered is not None:
            return dict(self._rendered)
        files = {}
        for file_name, stream in self._streams.items():
            imports = set(self._imports.get(file_name, set()))
            for included in self._inclusions.get(file_name, set()):
                if included in self._streams and included != file_name:
                    imports.add(included)
                else:
                    logger.debug(f"Skipping inclusion of '{included}' in '{file_name}': no such output file")

            content = self.marshaller.write_header(self._packages[file_name])
            if imports:
                content += "".join(self.marshaller.write_include(path) for path in sorted(imports))
                content += "\n"
            content += stream.getvalue()
            files[file_name] = content.rstrip("\n") + "\n"
        return files

    def post_process_namespaced_files_for_includes(self) -> Dict[str, str]:
        """
        Ajoute les imports aux en-têtes puis écrit les fichiers dans 'output_dir' (si défini).

        Returns:
            dict: Nom de fichier -> contenu.
        """
        files = self.render()
        if self.output_dir:
            os.makedirs(self.output_dir, exist_ok=True)
            for file_name, content in files.items():
                output_file_path = os.path.join(self.output_dir, file_name)
                with open(output_file_path, "w", encoding="utf-8") as f:
                    f.write(content)
                logger.info(f"Wrote '{output_file_path}'")
        for stream in self._streams.values():
            stream.close()
        self._rendered = files
        return files
