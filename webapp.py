import os
import zipfile
import tempfile
from flask import Flask, request, render_template, jsonify
from werkzeug.utils import secure_filename # Pour sécuriser le nom du fichier
import logging
from xsdtoproto.config import TranslatorOptions, parse_mapping_list
from xsdtoproto.exceptions import InvalidXSDError, XSDParseError
from xsdtoproto.file_utils import FileUtils
from xsdtoproto.translator import XSDToProtoTranslator

app = Flask(__name__)

# Configuration du logging pour l'application Flask
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')


def options_from_form(form) -> TranslatorOptions:
    """Construit les options de traduction à partir des champs du formulaire."""
    return TranslatorOptions(
        protobuf_version=int(form.get('protobuf_version', '2') or 2),
        nest_enums='no_nest_enums' not in form,
        enum_order_start=int(form.get('enum_start', '1') or 1),
        type_in_enums='no_type_in_enums' not in form,
        include_message_docs='no_message_docs' not in form,
        include_field_docs='no_field_docs' not in form,
        split_by_namespace='split_by_namespace' in form,
        file_name=form.get('filename', '').strip() or None,
        custom_type_mappings=parse_mapping_list(form.get('custom_type_mappings', '')),
        custom_name_mappings=parse_mapping_list(form.get('custom_name_mappings', '')),
    )


@app.route('/')
def index():
    return render_template('index.html')


@app.route('/convert', methods=['POST'])
def convert_xsd_to_proto():
    app.logger.info("Received new conversion request.")
    if 'xsd_file' not in request.files:
        return jsonify({"error": "Aucun fichier XSD ou archive ZIP n'a été fourni."}), 400

    uploaded_file = request.files['xsd_file']
    if uploaded_file.filename == '':
        return jsonify({"error": "Aucun fichier sélectionné."}), 400

    filename = secure_filename(uploaded_file.filename)
    if not (filename.endswith('.zip') or filename.endswith('.xsd')):
        return jsonify({"error": "Le fichier doit être un fichier XSD ou une archive ZIP."}), 400

    try:
        options = options_from_form(request.form)
    except ValueError as e:
        return jsonify({"error": f"Options invalides : {e}"}), 400

    main_xsd_name = request.form.get('main_xsd_name', '').strip()

    # Utilisation d'un répertoire temporaire pour la décompression
    with tempfile.TemporaryDirectory() as temp_dir:
        app.logger.info(f"Created temporary directory: {temp_dir}")
        try:
            upload_path = os.path.join(temp_dir, filename)
            uploaded_file.save(upload_path)
            app.logger.info(f"Saved uploaded file to: {upload_path}")

            if filename.endswith('.xsd'):
                input_xsd_path = upload_path
                search_paths = [temp_dir]
            else:
                extract_dir = os.path.join(temp_dir, 'archive')
                with zipfile.ZipFile(upload_path, 'r') as zf:
                    # Extraire tous les fichiers dans le répertoire temporaire
                    zf.extractall(extract_dir)
                    app.logger.info(f"Extracted archive contents to {extract_dir}")

                if main_xsd_name:
                    app.logger.info(f"Attempting to find main XSD specified as: '{main_xsd_name}'")
                    input_xsd_path = FileUtils.find_main_xsd(extract_dir, main_xsd_name)
                    if input_xsd_path is None:
                        app.logger.error(f"Main XSD file '{main_xsd_name}' not found in the archive.")
                        return jsonify({"error": f"Le fichier XSD principal '{main_xsd_name}' n'a pas été trouvé dans l'archive ou ses sous-répertoires."}), 400
                else:
                    app.logger.info("No main XSD specified, attempting auto-detection.")
                    xsd_files_in_archive = [f for f in os.listdir(extract_dir) if f.endswith('.xsd')]
                    if len(xsd_files_in_archive) != 1:
                        app.logger.warning(f"Ambiguous main XSD. Found: {xsd_files_in_archive}. Requiring user to specify.")
                        return jsonify({"error": "Veuillez spécifier le nom du fichier XSD principal (ex: 'root.xsd') car l'archive contient plusieurs XSD ou une structure de répertoires."}), 400
                    input_xsd_path = os.path.join(extract_dir, xsd_files_in_archive[0])
                    app.logger.info(f"Auto-detected main XSD: {xsd_files_in_archive[0]}")

                # Les imports/includes peuvent se trouver n'importe où dans l'archive
                search_paths = FileUtils.collect_search_paths(extract_dir)

            app.logger.info(f"Starting translation with main file: {input_xsd_path}")
            app.logger.info(f"Search paths for parser: {search_paths}")

            translator = XSDToProtoTranslator(options)
            files = translator.translate(input_xsd_path, search_paths=search_paths)

            app.logger.info("Conversion successful. Sending response.")
            return jsonify({"files": files})

        except zipfile.BadZipFile:
            app.logger.error("Uploaded file is not a valid ZIP archive.", exc_info=True)
            return jsonify({"error": "Le fichier téléchargé n'est pas une archive ZIP valide."}), 400
        except (XSDParseError, InvalidXSDError) as e:
            app.logger.error(f"Schema cannot be translated: {e}")
            return jsonify({"error": f"Le schéma ne peut pas être traduit : {e}"}), 422
        except Exception as e:
            # Gérer les erreurs de manière plus spécifique si possible
            app.logger.error(f"An internal error occurred during conversion: {str(e)}", exc_info=True)
            return jsonify({"error": f"Une erreur interne est survenue lors de la conversion : {str(e)}"}), 500

if __name__ == '__main__':
    # Lance l'application Flask
    # Pour un environnement de production, utilisez un serveur WSGI comme Gunicorn ou uWSGI
    app.run(debug=True, port=8080)
