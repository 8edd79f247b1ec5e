import argparse
import logging
import os
import sys

from xsdtoproto.config import TranslatorOptions, load_mapping_file, parse_mapping_list
from xsdtoproto.exceptions import InvalidXSDError, XSDParseError
from xsdtoproto.file_utils import FileUtils
from xsdtoproto.translator import XSDToProtoTranslator


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convertit un fichier XSD ou une arborescence de fichiers XSD en fichiers Protocol Buffers (.proto)."
    )
    parser.add_argument(
        "input_path",
        type=str,
        help="Le chemin vers le fichier XSD principal ou le répertoire contenant l'arborescence des fichiers XSD."
    )
    parser.add_argument(
        "-m", "--main-xsd",
        type=str,
        help="Nom du fichier XSD principal (si 'input_path' est un répertoire). Ex: 'root.xsd'."
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=".",
        help="Le répertoire de sortie des fichiers .proto (par défaut: le répertoire courant)."
    )
    parser.add_argument(
        "--filename",
        type=str,
        help="Nom du fichier .proto principal (par défaut: <nom_fichier_xsd_principal>.proto)."
    )
    parser.add_argument(
        "--protobuf-version",
        type=int,
        choices=(2, 3),
        default=2,
        help="Version de la syntaxe Protobuf générée (par défaut: 2)."
    )
    parser.add_argument(
        "--split-by-namespace",
        action="store_true",
        help="Génère un fichier .proto par namespace XML cible."
    )
    parser.add_argument(
        "--no-nest-enums",
        action="store_true",
        help="Déclare les énumérations au niveau du package plutôt que dans les messages qui les utilisent."
    )
    parser.add_argument(
        "--enum-start",
        type=int,
        default=1,
        help="Numéro de la première valeur de chaque énumération (par défaut: 1; utilisez 0 en proto3)."
    )
    parser.add_argument(
        "--no-type-in-enums",
        action="store_true",
        help="Ne préfixe pas les valeurs d'énumération par le nom du type."
    )
    parser.add_argument(
        "--no-message-docs",
        action="store_true",
        help="N'écrit pas la documentation XSD des types en commentaire des messages."
    )
    parser.add_argument(
        "--no-field-docs",
        action="store_true",
        help="N'écrit pas la documentation XSD des éléments en commentaire des champs."
    )
    parser.add_argument(
        "--custom-type-mappings",
        type=str,
        help="Correspondances de types 'motif:remplacement' séparées par des virgules. "
             "Ex: 'date:google.protobuf.Timestamp,(.*)Code:string'."
    )
    parser.add_argument(
        "--custom-name-mappings",
        type=str,
        help="Renommages de messages/champs 'motif:remplacement' séparés par des virgules. Ex: 'cableModel:cable_model'."
    )
    parser.add_argument(
        "--mapping-file",
        type=str,
        help="Fichier de correspondances ('motif=remplacement' par ligne, sections [types] et [names])."
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Affiche les traces de débogage."
    )
    return parser


def build_options(args: argparse.Namespace) -> TranslatorOptions:
    type_mappings = []
    name_mappings = []
    if args.mapping_file:
        type_mappings, name_mappings = load_mapping_file(args.mapping_file)
    # Les correspondances de la ligne de commande passent avant celles du fichier
    type_mappings = parse_mapping_list(args.custom_type_mappings) + type_mappings
    name_mappings = parse_mapping_list(args.custom_name_mappings) + name_mappings

    return TranslatorOptions(
        protobuf_version=args.protobuf_version,
        nest_enums=not args.no_nest_enums,
        enum_order_start=args.enum_start,
        type_in_enums=not args.no_type_in_enums,
        include_message_docs=not args.no_message_docs,
        include_field_docs=not args.no_field_docs,
        split_by_namespace=args.split_by_namespace,
        file_name=args.filename,
        custom_type_mappings=type_mappings,
        custom_name_mappings=name_mappings,
    )


def main(argv=None) -> int:
    args = build_argument_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    input_path = args.input_path
    main_xsd_filename = args.main_xsd

    if os.path.isdir(input_path):
        print(f"Scanning directory: {input_path}")
        search_paths = FileUtils.collect_search_paths(input_path)

        if not main_xsd_filename:
            print("Pour un répertoire, il est fortement recommandé de spécifier le fichier XSD principal avec '-m' ou '--main-xsd'.")
            print("Tentative de détection du XSD principal (le premier .xsd trouvé dans le répertoire racine)...")

        main_xsd_full_path = FileUtils.find_main_xsd(input_path, main_xsd_filename)
        if not main_xsd_full_path:
            if main_xsd_filename:
                print(f"Erreur: Le fichier XSD principal '{main_xsd_filename}' n'a pas été trouvé dans l'arborescence '{input_path}'.")
            else:
                print(f"Aucun fichier XSD principal n'a pu être détecté directement dans le répertoire '{input_path}'.")
            return 1
        print(f"Utilisation de '{os.path.basename(main_xsd_full_path)}' comme XSD principal.")

    elif os.path.isfile(input_path) and input_path.endswith(".xsd"):
        main_xsd_full_path = os.path.normpath(input_path)
        search_paths = [os.path.dirname(os.path.abspath(main_xsd_full_path))]
    else:
        print(f"Le chemin d'entrée '{input_path}' n'est ni un répertoire valide, ni un fichier XSD.")
        return 1

    try:
        options = build_options(args)
    except (OSError, ValueError) as e:
        print(f"Erreur dans les options de correspondance: {e}")
        return 1

    translator = XSDToProtoTranslator(options)
    try:
        files = translator.translate(main_xsd_full_path, output_dir=args.output, search_paths=search_paths)
    except XSDParseError as e:
        print(f"Erreur: Impossible de charger le fichier XSD principal '{main_xsd_full_path}': {e}")
        return 1
    except InvalidXSDError as e:
        print(f"Erreur: Le schéma ne peut pas être traduit: {e}")
        return 1
    except OSError as e:
        print(f"Erreur d'entrée/sortie: {e}")
        return 1

    for file_name in files:
        print(f"Le fichier Protobuf a été généré avec succès dans '{os.path.join(args.output, file_name)}'")
    return 0


if __name__ == "__main__":
    sys.exit(main())
