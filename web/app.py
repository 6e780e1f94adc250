"""Simple Flask web interface for Bundle Decompiler."""

import shutil
from pathlib import Path
from flask import Flask, request, jsonify, send_file

# Add parent directory to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from bundle_decompiler.domain.models import DecompileOptions
from bundle_decompiler.format_detector import FormatDetector
from bundle_decompiler.output.module_writer import ModuleWriter
from bundle_decompiler.pipeline import decompile

app = Flask(__name__)

# Configuration
app.config.setdefault('UPLOAD_FOLDER', str(Path(__file__).parent / 'uploads'))
app.config.setdefault('MAX_CONTENT_LENGTH', 64 * 1024 * 1024)


def _upload_folder() -> Path:
    folder = Path(app.config['UPLOAD_FOLDER'])
    folder.mkdir(parents=True, exist_ok=True)
    return folder


def get_next_job_id() -> int:
    """Get the next sequential job ID."""
    folder = _upload_folder()
    existing = [int(d.name) for d in folder.iterdir() if d.is_dir() and d.name.isdigit()]
    return max(existing, default=0) + 1


def _read_content() -> tuple[str | None, str]:
    """Bundle text from a multipart ``file`` or a JSON ``content`` field, and its name."""
    if 'file' in request.files:
        file = request.files['file']
        return file.read().decode('utf-8', errors='replace'), file.filename or 'bundle.js'
    payload = request.get_json(silent=True) or {}
    content = payload.get('content')
    if content is None:
        return None, ''
    return str(content), payload.get('filename') or 'bundle.js'


def _options_from_request() -> DecompileOptions:
    payload = request.get_json(silent=True) or {}
    source = {**payload, **request.form}

    def flag(name: str, default: bool) -> bool:
        value = source.get(name, default)
        if isinstance(value, str):
            return value.lower() not in ('0', 'false', 'no', 'off')
        return bool(value)

    return DecompileOptions(
        rename=flag('rename', True),
        include_dependencies=flag('include_dependencies', True),
    )


@app.route('/api/health')
def health():
    return jsonify({'status': 'ok'})


@app.route('/api/detect', methods=['POST'])
def detect_bundle():
    """Report whether the posted text is a webpack 5 chunk bundle."""
    content, _ = _read_content()
    if content is None:
        return jsonify({'error': 'No content provided'}), 400
    detection = FormatDetector().detect(content)
    return jsonify({
        'matched': detection.matched,
        'bundle_format': detection.bundle_format,
        'global_name': detection.global_name,
        'style': detection.style,
    })


@app.route('/api/decompile', methods=['POST'])
def decompile_bundle():
    """Decompile posted text and return the full result."""
    content, _ = _read_content()
    if content is None:
        return jsonify({'error': 'No content provided'}), 400
    result = decompile(content, _options_from_request())
    return jsonify(result.to_dict())


@app.route('/api/upload', methods=['POST'])
def upload_and_process():
    """Upload a bundle, decompile it and keep the per-module output."""
    if 'file' not in request.files:
        return jsonify({'error': 'No file provided'}), 400

    file = request.files['file']
    if not file.filename:
        return jsonify({'error': 'Please upload a JavaScript file'}), 400

    # Create job folder
    job_id = get_next_job_id()
    job_folder = _upload_folder() / str(job_id)
    job_folder.mkdir(exist_ok=True)

    content = file.read().decode('utf-8', errors='replace')
    result = decompile(content, _options_from_request())

    try:
        written = ModuleWriter(str(job_folder / 'output')).write_all(result, source_file=file.filename)
    except OSError as e:
        return jsonify({'error': str(e), 'job_id': job_id}), 500

    return jsonify({
        'job_id': job_id,
        'filename': file.filename,
        'modules': written.module_files,
        'warnings': result.warnings,
        'status': 'success',
    })


@app.route('/api/jobs/<int:job_id>/files')
def list_job_files(job_id: int):
    """List all output files for a job."""
    output_dir = _upload_folder() / str(job_id) / 'output'
    if not output_dir.exists():
        return jsonify({'error': 'Job not found'}), 404

    files = []
    for f in output_dir.rglob('*'):
        if not f.is_file():
            continue
        files.append({
            'path': str(f.relative_to(output_dir)),
            'name': f.name,
            'size': f.stat().st_size,
        })

    return jsonify(sorted(files, key=lambda x: x['path']))


@app.route('/api/jobs/<int:job_id>/download')
def download_file(job_id: int):
    """Download a specific file."""
    file_path = request.args.get('path')
    if not file_path:
        return jsonify({'error': 'No file path provided'}), 400

    output_dir = _upload_folder() / str(job_id) / 'output'
    full_path = output_dir / file_path

    # Security check - ensure path is within the job output
    try:
        full_path.resolve().relative_to(output_dir.resolve())
    except ValueError:
        return jsonify({'error': 'Invalid path'}), 400

    if not full_path.is_file():
        return jsonify({'error': 'File not found'}), 404

    return send_file(full_path, as_attachment=True)


@app.route('/api/jobs/<int:job_id>/download-all')
def download_all(job_id: int):
    """Download all output as a ZIP file."""
    job_folder = _upload_folder() / str(job_id)
    output_dir = job_folder / 'output'
    if not output_dir.exists():
        return jsonify({'error': 'Job not found'}), 404

    zip_path = job_folder / f'output_{job_id}.zip'
    shutil.make_archive(str(zip_path.with_suffix('')), 'zip', output_dir)

    return send_file(zip_path, as_attachment=True, download_name=f'decompiled_{job_id}.zip')


if __name__ == '__main__':
    app.run(debug=True, port=5002)
