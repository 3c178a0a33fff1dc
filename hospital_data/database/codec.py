"""
JSON (de)serialization of record files

Two on-disk shapes:
- flat:      [ {record}, {record}, ... ]
- enveloped: [ {"<Key>": [ {record}, ... ]}, ... ]

Reads are tolerant (see Record), writes are canonical: 2-space indent, nulls
omitted, enveloped files always written as a single wrapper.
"""
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Generic, List, Sequence, Type, TypeVar

from pydantic import TypeAdapter

from hospital_data.database.schemas import Record

R = TypeVar("R", bound=Record)


class CodecError(ValueError):
    """Raised when a file parses as JSON but does not have the expected shape"""


def read_json(filepath: Path) -> Any:
    """
    Read and parse a JSON file

    Raises FileNotFoundError / json.JSONDecodeError; callers decide how to recover.
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_json(filepath: Path, data: Any):
    """
    Write data to a JSON file

    Written to a temporary file in the same directory then renamed over the
    target, so a crash mid-write never leaves a truncated file behind.
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class FlatCodec(Generic[R]):
    """
    Codec for a flat JSON array of records
    """
    def __init__(self, model: Type[R]):
        self.model = model
        self._adapter = TypeAdapter(List[model])

    def decode(self, data: Any) -> List[R]:
        if data is None:
            return []
        if not isinstance(data, list):
            raise CodecError(f"Expected a JSON array of {self.model.__name__} records, got {type(data).__name__}")
        return self._adapter.validate_python(data)

    def encode(self, records: Sequence[R]) -> Any:
        return [record.to_wire() for record in records]

    def load(self, filepath: Path) -> List[R]:
        return self.decode(read_json(filepath))

    def dump(self, filepath: Path, records: Sequence[R]):
        write_json(filepath, self.encode(records))


class EnvelopeCodec(FlatCodec[R]):
    """
    Codec for records nested in wrapper objects under a named key

    Decoding tries the primary shape (array of wrappers, all sub-arrays
    concatenated) then the fallback shape (a single wrapper object).
    """
    def __init__(self, model: Type[R], key: str):
        super().__init__(model)
        self.key = key

    def decode(self, data: Any) -> List[R]:
        if data is None:
            return []
        if isinstance(data, list):
            wrappers = data
        elif isinstance(data, dict):
            wrappers = [data]
        else:
            raise CodecError(f"Expected '{self.key}' envelope(s), got {type(data).__name__}")

        records: List[R] = []
        for wrapper in wrappers:
            if wrapper is None:
                continue
            if not isinstance(wrapper, dict):
                raise CodecError(f"Expected '{self.key}' envelope object, got {type(wrapper).__name__}")
            records.extend(super().decode(wrapper.get(self.key)))
        return records

    def encode(self, records: Sequence[R]) -> Any:
        return [{self.key: super().encode(records)}]

