"""
Shared fixtures - every test gets its own temporary data directory
"""
import json
from pathlib import Path

import pytest

from hospital_data.database import EnvironmentStore, PatientStore, SessionStore, SupervisorStore
from hospital_data.services.registry import StoreRegistry


@pytest.fixture
def data_dir(tmp_path):
    """Empty data directory for one test"""
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def write_file(data_dir):
    """Write raw JSON (or raw text) into the data directory"""
    def _write(name, content):
        path = Path(data_dir) / name
        if isinstance(content, str):
            path.write_text(content, encoding="utf-8")
        else:
            path.write_text(json.dumps(content, indent=2), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def read_file(data_dir):
    """Parse a JSON file from the data directory"""
    def _read(name):
        with open(Path(data_dir) / name, "r", encoding="utf-8") as f:
            return json.load(f)
    return _read


@pytest.fixture
def patient_store(data_dir):
    return PatientStore(data_dir / "les_patients.json")


@pytest.fixture
def supervisor_store(data_dir):
    return SupervisorStore(data_dir / "les_superviseur.json")


@pytest.fixture
def environment_store(data_dir):
    return EnvironmentStore(data_dir / "environnements.json")


@pytest.fixture
def session_store(data_dir, patient_store, supervisor_store):
    """Session store in validated mode"""
    return SessionStore(data_dir / "sessions.json", patients=patient_store, supervisors=supervisor_store)


@pytest.fixture
def registry(data_dir):
    return StoreRegistry(data_dir)
