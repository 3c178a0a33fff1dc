"""
Session store tests - composite key, reference validation, envelope format
"""
from datetime import datetime, timedelta, timezone

import pytest

from hospital_data.core.exceptions import InvalidArgumentError, ReferenceNotFoundError
from hospital_data.database import (
    Environment,
    EnvironmentConfiguration,
    Patient,
    Session,
    SessionStore,
    Supervisor,
)

START = datetime(2024, 6, 1, 14, 0, tzinfo=timezone.utc)


@pytest.fixture
def patient(patient_store):
    return patient_store.add(Patient(last_name="Dupont", first_name="Jean", birth_year=1980))


@pytest.fixture
def supervisor(supervisor_store):
    return supervisor_store.add(Supervisor(last_name="Martin", role="Kiné"))


def test_add_session_for_new_patient(session_store, patient):
    """A session for an existing patient is accepted in validated mode"""
    added = session_store.add(Session(patient_id=patient.id, environment_id="forest", duration=60, score=80))

    assert added.patient_id == patient.id
    assert added.started_at is not None
    assert added.started_at.tzinfo is not None
    assert session_store.get_by_patient(patient.id)[0].score == 80


def test_add_session_for_unknown_patient_fails(session_store, patient, data_dir):
    with pytest.raises(ReferenceNotFoundError) as exc_info:
        session_store.add(Session(patient_id="unknown-id", environment_id="forest"))

    assert exc_info.value.details == {"kind": "patient", "id": "unknown-id"}
    assert session_store.get_all() == []
    assert not (data_dir / "sessions.json").exists()


def test_supervisor_reference_checked_only_when_set(session_store, patient, supervisor):
    session_store.add(Session(patient_id=patient.id, started_at=START))
    session_store.add(Session(patient_id=patient.id, supervisor_id=supervisor.id.upper(),
                              started_at=START + timedelta(hours=1)))

    with pytest.raises(ReferenceNotFoundError):
        session_store.add(Session(patient_id=patient.id, supervisor_id="sup-ghost"))

    assert len(session_store.get_all()) == 2


def test_unchecked_mode_accepts_anything(data_dir):
    """Without patient/supervisor stores, references are not checked"""
    store = SessionStore(data_dir / "sessions.json")

    store.add(Session(patient_id="nobody", supervisor_id="no-one"))

    assert store.validated is False
    assert len(store.get_all()) == 1


def test_validated_flag(session_store):
    assert session_store.validated is True


def test_add_none_is_invalid(session_store):
    with pytest.raises(InvalidArgumentError):
        session_store.add(None)
    with pytest.raises(InvalidArgumentError):
        session_store.update(None)


def test_started_at_normalized(session_store, patient):
    paris = timezone(timedelta(hours=2))
    naive = session_store.add(Session(patient_id=patient.id, started_at=datetime(2024, 6, 1, 9, 0)))
    zoned = session_store.add(Session(patient_id=patient.id, started_at=datetime(2024, 6, 1, 12, 0, tzinfo=paris)))

    assert naive.started_at == datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)
    assert zoned.started_at == datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)


def test_update_by_composite_key(session_store, patient):
    session_store.add(Session(patient_id=patient.id, started_at=START, score=10))
    session_store.add(Session(patient_id=patient.id, started_at=START + timedelta(days=1), score=20))

    # Naive timestamp with the same UTC value still identifies the session
    changed = Session(patient_id=patient.id.upper(), started_at=START.replace(tzinfo=None), score=99,
                      comment="good progress")
    assert session_store.update(changed) is True

    scores = sorted(s.score for s in session_store.get_by_patient(patient.id))
    assert scores == [20, 99]


def test_update_unknown_session_returns_false(session_store, patient, read_file):
    session_store.add(Session(patient_id=patient.id, started_at=START))
    before = read_file("sessions.json")

    assert session_store.update(Session(patient_id=patient.id, started_at=START + timedelta(minutes=1))) is False
    assert session_store.update(Session(patient_id=patient.id)) is False
    assert read_file("sessions.json") == before


def test_update_validates_references(session_store, patient):
    session_store.add(Session(patient_id=patient.id, started_at=START))

    with pytest.raises(ReferenceNotFoundError):
        session_store.update(Session(patient_id=patient.id, started_at=START, supervisor_id="sup-ghost"))

    assert session_store.get_all()[0].supervisor_id == ""


def test_remove_by_composite_key(session_store, patient):
    session_store.add(Session(patient_id=patient.id, started_at=START))
    session_store.add(Session(patient_id=patient.id, started_at=START + timedelta(days=1)))

    assert session_store.remove(patient.id, START) is True
    assert session_store.remove(patient.id, START) is False
    assert [s.started_at for s in session_store.get_all()] == [START + timedelta(days=1)]


def test_remove_all_by_patient(data_dir, read_file):
    store = SessionStore(data_dir / "sessions.json")
    store.add(Session(patient_id="p1", started_at=START))
    store.add(Session(patient_id="P1", started_at=START + timedelta(days=1)))
    store.add(Session(patient_id="p2", started_at=START))

    assert store.remove_all_by_patient("p1") == 2
    assert store.remove_all_by_patient("p1") == 0
    assert [s.patient_id for s in store.get_by_patient("p2")] == ["p2"]
    assert len(read_file("sessions.json")[0]["Sessions"]) == 1


def test_remove_all_by_blank_patient_is_noop(data_dir):
    store = SessionStore(data_dir / "sessions.json")

    assert store.remove_all_by_patient("") == 0
    assert store.remove_all_by_patient("   ") == 0
    assert store.remove_all_by_patient(None) == 0
    assert not (data_dir / "sessions.json").exists()


def test_file_is_single_envelope(session_store, patient, read_file):
    session_store.add(Session(patient_id=patient.id, started_at=START, reaction_time=0.42,
                              pointing_precision=87.5))

    saved = read_file("sessions.json")
    assert isinstance(saved, list)
    assert len(saved) == 1
    record = saved[0]["Sessions"][0]
    assert record["IDpatient"] == patient.id
    assert record["TempsReaction"] == 0.42
    assert record["PrecisionPointage"] == 87.5


def test_reads_single_object_and_normalizes_on_write(write_file, read_file, data_dir):
    """Older files holding one wrapper object are read and rewritten canonically"""
    write_file("sessions.json", {"Sessions": [{"IDpatient": "p1", "DateDebut": "2024-06-01T14:00:00Z"}]})
    store = SessionStore(data_dir / "sessions.json")

    assert store.get_all()[0].started_at == START

    store.add(Session(patient_id="p2"))
    saved = read_file("sessions.json")
    assert isinstance(saved, list)
    assert [s["IDpatient"] for s in saved[0]["Sessions"]] == ["p1", "p2"]


def test_reads_multiple_wrappers(write_file, data_dir):
    write_file("sessions.json", [
        {"Sessions": [{"IDpatient": "p1"}]},
        {"Sessions": [{"IDpatient": "p2"}, {"IDpatient": "p1"}]},
    ])
    store = SessionStore(data_dir / "sessions.json")

    assert len(store.get_by_patient("P1")) == 2


def test_round_trip_through_fresh_store(session_store, patient, data_dir):
    session_store.add(Session(patient_id=patient.id, started_at=datetime(2024, 1, 1, 10, 0), duration=60, score=80,
                              objectives_reached="3/4", comment="é"))

    fresh = SessionStore(data_dir / "sessions.json")

    assert [s.model_dump() for s in fresh.get_all()] == [s.model_dump() for s in session_store.get_all()]
    assert fresh.get_all()[0].started_at == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


def test_session_from_configuration(session_store, patient, supervisor):
    config = EnvironmentConfiguration(environment_id="forest", start_position="river", difficulty="hard",
                                      assistance=3, duration=120)

    session = session_store.add(Session.from_configuration(config, patient.id, supervisor.id))

    assert session.environment_id == "forest"
    assert session.start_position == "river"
    assert session.difficulty == "hard"
    assert session.mean_assistance == 3
    assert session.duration == 120
    assert session.supervisor_id == supervisor.id


def test_configuration_from_environment_store(environment_store, session_store, patient):
    environment_store.add(Environment(id="beach", positions=["shore"], difficulties=["easy"], default_duration=45))

    config = environment_store.build_configuration("beach")
    session = session_store.add(Session.from_configuration(config, patient.id))

    assert (session.environment_id, session.start_position, session.duration) == ("beach", "shore", 45)


def test_session_without_start_can_be_updated_and_removed(write_file, read_file, data_dir):
    """A stored session with no DateDebut is still addressable by (patient, no start)"""
    write_file("sessions.json", [{"Sessions": [{"IDpatient": "p1", "duree": 10}]}])
    store = SessionStore(data_dir / "sessions.json")
    stored = store.get_all()[0]
    assert stored.started_at is None

    stored.score = 75
    assert store.update(stored) is True

    updated = store.get_all()[0]
    assert updated.score == 75
    assert updated.started_at is not None
    assert "DateDebut" in read_file("sessions.json")[0]["Sessions"][0]

    assert store.remove("p1", updated.started_at) is True
    assert store.get_all() == []


def test_remove_session_without_start(write_file, data_dir):
    write_file("sessions.json", [{"Sessions": [
        {"IDpatient": "p1"},
        {"IDpatient": "p1", "DateDebut": "2024-06-01T14:00:00Z"},
    ]}])
    store = SessionStore(data_dir / "sessions.json")

    assert store.remove("p1", None) is True
    assert store.remove("p1", datetime.min) is False
    assert [s.started_at for s in store.get_all()] == [START]
