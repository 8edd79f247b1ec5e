import os
import logging

logger = logging.getLogger(__name__)

class FileUtils:
    """
    Classe utilitaire pour la gestion des fichiers et des chemins.
    """
    @staticmethod
    def get_file_path(current_file_path: str, schema_location: str, search_paths: list) -> str | None:
        """
        Tente de trouver le fichier `schema_location` dans les `search_paths`.
        Privilégie les chemins relatifs au `current_file_path`.

        Args:
            current_file_path (str): Le chemin absolu du fichier XSD en cours de traitement.
            schema_location (str): Le chemin relatif ou nom de fichier spécifié dans 'schemaLocation'.
            search_paths (list): Une liste de répertoires où rechercher le fichier.

        Returns:
            str | None: Le chemin absolu du fichier trouvé, ou None si non trouvé.
        """
        logger.debug(f"Attempting to resolve schemaLocation: '{schema_location}'")
        if schema_location.startswith("file://"):
            schema_location = schema_location[len("file://"):]

        # Essayer d'abord par rapport au fichier actuel
        base_dir = os.path.dirname(current_file_path)
        potential_path = os.path.normpath(os.path.join(base_dir, schema_location))
        logger.debug(f"Checking relative path: '{potential_path}'")
        if os.path.isfile(potential_path):
            logger.debug(f"Found file at relative path: '{potential_path}'")
            return potential_path

        # Ensuite, rechercher dans tous les chemins de recherche fournis, d'abord le chemin complet puis le nom seul
        for candidate in (schema_location, os.path.basename(schema_location)):
            for search_path in search_paths:
                potential_path = os.path.normpath(os.path.join(search_path, candidate))
                logger.debug(f"Checking in search path '{search_path}': '{potential_path}'")
                if os.path.isfile(potential_path):
                    logger.debug(f"Found file in search path: '{potential_path}'")
                    return potential_path
        return None

    @staticmethod
    def collect_search_paths(input_dir: str) -> list:
        """
        Liste le répertoire `input_dir` et tous ses sous-répertoires, triés pour un ordre stable.

        Args:
            input_dir (str): Le répertoire racine de l'arborescence XSD.

        Returns:
            list: Les répertoires à utiliser comme chemins de recherche.
        """
        search_paths = [root_dir for root_dir, _dirs, _files in os.walk(input_dir)]
        return sorted(set(search_paths))

    @staticmethod
    def find_main_xsd(input_dir: str, main_xsd_filename: str | None) -> str | None:
        """
        Trouve le fichier XSD principal dans une arborescence.

        Si `main_xsd_filename` est fourni, il est cherché dans toute l'arborescence.
        Sinon, le premier fichier .xsd (ordre alphabétique) du répertoire racine est retenu.

        Returns:
            str | None: Le chemin du fichier XSD principal, ou None si non trouvé.
        """
        if main_xsd_filename:
            direct_path = os.path.normpath(os.path.join(input_dir, main_xsd_filename))
            if os.path.isfile(direct_path):
                return direct_path
            for root_dir, dirs, files in os.walk(input_dir):
                dirs.sort()
                if os.path.basename(main_xsd_filename) in files:
                    return os.path.normpath(os.path.join(root_dir, os.path.basename(main_xsd_filename)))
            return None

        potential_root_xsd_files = sorted(
            file_name for file_name in os.listdir(input_dir)
            if file_name.endswith(".xsd") and os.path.isfile(os.path.join(input_dir, file_name))
        )
        if potential_root_xsd_files:
            return os.path.normpath(os.path.join(input_dir, potential_root_xsd_files[0]))
        return None
