import re
import uuid

import pytest

from mrologix.storage import DOCUMENT_STORAGE, LocalStorage, StorageError, build_object_key


def test_object_key_layout():
    owner = uuid.uuid4()
    key = build_object_key(DOCUMENT_STORAGE, owner, "My Report (v2).pdf", subpath="/Manuals/AMM")
    assert re.fullmatch(
        rf"document-storage/{owner}/Manuals/AMM/\d+-My_Report__v2_\.pdf",
        key,
    )


def test_object_key_drops_traversal():
    key = build_object_key("sdr-reports", "abc", "../../etc/passwd", subpath="../x/./y")
    assert ".." not in key.split("/")
    assert key.startswith("sdr-reports/abc/x/y/")
    assert key.endswith("-passwd")


def test_local_storage_roundtrip(tmp_path):
    store = LocalStorage(str(tmp_path))
    key = store.upload("sms-reports", "r1", "note.txt", b"hi", "text/plain")
    assert store.get(key) == b"hi"
    store.delete(key)
    assert store.get(key) is None
    with pytest.raises(StorageError):
        store.delete(key)


def test_local_storage_rejects_bad_keys(tmp_path):
    store = LocalStorage(str(tmp_path))
    with pytest.raises(StorageError):
        store.get("a/../b")
