"""Tests for the Flask web interface."""

import io

import pytest

from tests.conftest import APP_BUNDLE, MINIMAL_BUNDLE, PLAIN_SCRIPT
from web.app import app


@pytest.fixture
def client(tmp_path):
    app.config['TESTING'] = True
    app.config['UPLOAD_FOLDER'] = str(tmp_path / 'uploads')
    with app.test_client() as client:
        yield client


class TestDecompileAPI:

    def test_health(self, client):
        assert client.get('/api/health').get_json() == {'status': 'ok'}

    def test_decompile_json_content(self, client):
        response = client.post('/api/decompile', json={'content': MINIMAL_BUNDLE})
        assert response.status_code == 200
        data = response.get_json()
        assert [m['id'] for m in data['modules']] == ['7']
        assert 'Module 7' in data['merged_code']

    def test_decompile_file_upload(self, client):
        response = client.post(
            '/api/decompile',
            data={'file': (io.BytesIO(APP_BUNDLE.encode()), 'app.js')},
            content_type='multipart/form-data',
        )
        assert response.status_code == 200
        assert len(response.get_json()['modules']) == 3

    def test_decompile_options(self, client):
        response = client.post('/api/decompile', json={'content': MINIMAL_BUNDLE, 'rename': False})
        assert response.get_json()['modules'][0]['params'] == ['e', 't']

    def test_decompile_fallback(self, client):
        data = client.post('/api/decompile', json={'content': PLAIN_SCRIPT}).get_json()
        assert data['modules'] == []
        assert data['warnings'] == ['Webpack 5 parsing failed, using fallback']

    def test_missing_content(self, client):
        assert client.post('/api/decompile', json={}).status_code == 400

    def test_detect(self, client):
        assert client.post('/api/detect', json={'content': MINIMAL_BUNDLE}).get_json()['matched'] is True
        assert client.post('/api/detect', json={'content': PLAIN_SCRIPT}).get_json()['matched'] is False


class TestJobsAPI:

    def _upload(self, client):
        return client.post(
            '/api/upload',
            data={'file': (io.BytesIO(APP_BUNDLE.encode()), 'app.js')},
            content_type='multipart/form-data',
        )

    def test_upload_creates_job(self, client):
        data = self._upload(client).get_json()
        assert data['job_id'] == 1
        assert data['modules'] == 3
        assert self._upload(client).get_json()['job_id'] == 2

    def test_list_files(self, client):
        job_id = self._upload(client).get_json()['job_id']
        paths = [f['path'] for f in client.get(f'/api/jobs/{job_id}/files').get_json()]
        assert 'merged.js' in paths
        assert 'modules/5171.js' in paths

    def test_download_file(self, client):
        job_id = self._upload(client).get_json()['job_id']
        response = client.get(f'/api/jobs/{job_id}/download?path=modules/5171.js')
        assert response.status_code == 200
        assert b'require' in response.data

    def test_download_rejects_escape(self, client):
        job_id = self._upload(client).get_json()['job_id']
        response = client.get(f'/api/jobs/{job_id}/download?path=../../secret')
        assert response.status_code == 400

    def test_unknown_job(self, client):
        assert client.get('/api/jobs/99/files').status_code == 404

    def test_download_all(self, client):
        job_id = self._upload(client).get_json()['job_id']
        response = client.get(f'/api/jobs/{job_id}/download-all')
        assert response.status_code == 200
        assert response.data[:2] == b'PK'
