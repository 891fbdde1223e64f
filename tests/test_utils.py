"""Tests for text ceilings, binary detection and the readers-writer lock."""

import threading

from kikishell.index import RetrievalIndex
from kikishell.utils import (
    ReadWriteLock,
    decode_clipped,
    detect_binary,
    expand_path,
    truncate_preview,
)


class TestTextCeilings:
    def test_byte_ceiling_drops_partial_codepoint(self):
        data = "가나다".encode("utf-8")  # three bytes per syllable
        assert decode_clipped(data, 4, 0) == "가"

    def test_invalid_bytes_are_replaced_when_clipped(self):
        data = b"ab\xffcd" + "가".encode("utf-8")
        assert decode_clipped(data, 6, 0) == "ab\ufffdcd"
        assert decode_clipped(b"ab\xffcd", 0, 0) == "ab\ufffdcd"

    def test_char_ceiling_after_bytes(self):
        assert decode_clipped(b"abcdef", 5, 3) == "abc"

    def test_no_ceilings(self):
        assert decode_clipped("한국어 text".encode("utf-8"), 0, 0) == "한국어 text"

    def test_truncate_preview(self):
        assert truncate_preview("  short  ", 10) == "short"
        assert truncate_preview("abcdef", 3) == "abc…"


class TestBinaryDetection:
    def test_korean_log_is_text(self):
        content = "2026-01-01 오류: 디스크가 가득 찼습니다\n".encode("utf-8") * 20
        assert not detect_binary("app.log", content)

    def test_null_bytes_and_extensions(self):
        assert detect_binary("blob", b"abc\x00def")
        assert detect_binary("photo.JPG", b"plain")


def test_expand_path_strips_and_expands_home(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    assert expand_path("  ~/notes.txt ") == tmp_path / "notes.txt"


class TestReadWriteLock:
    def test_readers_share_the_lock(self):
        lock = ReadWriteLock()
        both_inside = threading.Barrier(2, timeout=5)

        def reader():
            with lock.read():
                both_inside.wait()

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(5)
        assert not both_inside.broken

    def test_concurrent_updates_and_searches(self):
        index = RetrievalIndex()
        errors = []

        def writer(n):
            for i in range(50):
                index.upsert(f"doc{n}-{i % 5}.txt", None, f"disk {i}")

        def searcher():
            for _ in range(50):
                for excerpt in index.search("disk", top_k=100):
                    if not excerpt.text.startswith("disk"):
                        errors.append(excerpt)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(3)]
        threads += [threading.Thread(target=searcher) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(10)

        assert errors == []
        assert len(index) == 15
