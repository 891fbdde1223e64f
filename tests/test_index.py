"""Tests for the retrieval index, scorers and persistence."""

import threading
import zipfile

import numpy as np
import pytest

from kikishell.embedders import HashedEmbedder
from kikishell.embedders.hashed import fnv1a_32
from kikishell.errors import InputError
from kikishell.index import RetrievalIndex, build_excerpt, tokenize_query
from kikishell.index.excerpt import ELLIPSIS
from kikishell.models import IndexedDocument, fingerprint
from kikishell.protocols import EmbeddingProvider
from kikishell.scorers import SubstringCountScorer, VectorScorer, get_scorer
from kikishell.storage import IndexStore


class TestSearch:
    """Ranking, ordering and excerpting."""

    def test_only_relevant_document_is_returned(self):
        index = RetrievalIndex()
        index.upsert("a.txt", None, "disk full on /var, disk usage 100%")
        index.upsert("b.txt", None, "network timeout")

        results = index.search("disk full", top_k=1)

        assert [r.path for r in results] == ["a.txt"]
        assert results[0].score == 3

    def test_ranks_by_token_occurrences(self):
        index = RetrievalIndex()
        index.upsert("a.txt", "a.txt", "the disk is full")
        index.upsert("b.txt", "b.txt", "network timeout on disk")

        results = index.search("disk full")

        assert [r.path for r in results] == ["a.txt", "b.txt"]
        assert results[0].score == 2
        assert results[1].score == 1

    def test_ties_break_by_path(self):
        index = RetrievalIndex()
        index.upsert("zeta.txt", None, "disk")
        index.upsert("alpha.txt", None, "disk")

        assert [r.path for r in index.search("disk")] == ["alpha.txt", "zeta.txt"]

    def test_search_is_deterministic(self):
        index = RetrievalIndex()
        for i in range(10):
            index.upsert(f"doc{i}.txt", None, "error " * (i % 3) + "log line")

        first = index.search("error log", top_k=10)
        assert all(index.search("error log", top_k=10) == first for _ in range(5))

    def test_top_k_limits_results(self):
        index = RetrievalIndex()
        for i in range(5):
            index.upsert(f"doc{i}.txt", None, "match")

        assert len(index.search("match", top_k=2)) == 2
        assert len(index.search("match", top_k=0)) == 3

    def test_zero_scores_are_excluded(self):
        index = RetrievalIndex()
        index.upsert("a.txt", None, "nothing relevant")

        assert index.search("disk") == []

    def test_disabled_or_empty_index_returns_nothing(self):
        assert RetrievalIndex().search("disk") == []

        index = RetrievalIndex(enabled=False)
        index.upsert("a.txt", None, "disk")
        assert index.search("disk") == []

    def test_query_without_words_returns_nothing(self):
        index = RetrievalIndex()
        index.upsert("a.txt", None, "!!! ???")

        assert index.search("!!! ???") == []
        assert index.search("") == []

    def test_excerpt_renders_as_block(self):
        index = RetrievalIndex()
        index.upsert("notes.txt", None, "the disk is full")

        rendered = index.search("disk")[0].render()

        assert rendered == "### RAG: notes.txt\n```\nthe disk is full\n```"


class TestUpsert:
    """Replacement semantics."""

    def test_readding_a_path_replaces_in_place(self):
        index = RetrievalIndex()
        index.upsert("a.txt", None, "first")
        index.upsert("b.txt", None, "second")
        index.upsert("a.txt", None, "updated")

        docs = index.documents()
        assert [d.path for d in docs] == ["a.txt", "b.txt"]
        assert docs[0].text == "updated"
        assert index.search("first") == []

    def test_adding_twice_is_idempotent(self):
        index = RetrievalIndex()
        first = index.upsert("a.txt", None, "same text")
        second = index.upsert("a.txt", None, "same text")

        assert len(index) == 1
        assert first == second

    def test_fingerprint_identifies_path_and_text(self):
        doc = IndexedDocument.create("k", "a.txt", "text")
        assert doc.fingerprint == fingerprint("a.txt", "text")
        assert doc.fingerprint != fingerprint("b.txt", "text")

    def test_text_is_clipped(self):
        index = RetrievalIndex()
        doc = index.upsert("a.txt", None, "x" * 100, max_chars=10)
        assert doc.text == "x" * 10

    def test_empty_path_is_rejected(self):
        with pytest.raises(InputError):
            RetrievalIndex().upsert("", None, "text")

    def test_add_text_uses_key_as_path(self):
        index = RetrievalIndex()
        index.add_text("gen:out.py", "print('hi')")
        assert index.get("gen:out.py").key == "gen:out.py"

    def test_clear(self):
        index = RetrievalIndex()
        index.upsert("a.txt", None, "disk")
        index.clear()
        assert len(index) == 0
        assert index.stats() == (True, 0)


class TestExcerpt:
    def test_tokenize_query(self):
        assert tokenize_query("  Disk FULL, kube-system! ") == ["disk", "full", "kube-system"]

    def test_window_around_first_hit(self):
        text = "x" * 1000 + "needle" + "y" * 1000

        excerpt = build_excerpt(text, ["needle"], 300)

        assert excerpt.startswith(ELLIPSIS)
        assert excerpt.endswith(ELLIPSIS)
        assert len(excerpt) == 302
        assert excerpt.index("needle") == 1 + 100

    def test_no_leading_ellipsis_at_start(self):
        excerpt = build_excerpt("needle " + "y" * 500, ["needle"], 100)
        assert excerpt.startswith("needle")
        assert excerpt.endswith(ELLIPSIS)

    def test_without_hit_returns_prefix(self):
        assert build_excerpt("abcdef", ["zzz"], 3) == "abc"

    def test_case_insensitive_match(self):
        text = "a" * 200 + "NEEDLE"
        assert "NEEDLE" in build_excerpt(text, ["needle"], 50)


class TestIngest:
    def test_add_file(self, write_file):
        path = write_file("notes.txt", "the disk is full")

        doc = RetrievalIndex().add_file(str(path))

        assert doc.path == str(path)
        assert doc.text == "the disk is full"

    def test_add_binary_file_is_rejected(self, tmp_path):
        path = tmp_path / "image.png"
        path.write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00\x00")

        with pytest.raises(InputError):
            RetrievalIndex().add_file(str(path))

    def test_add_missing_file_leaves_index_unchanged(self, tmp_path):
        index = RetrievalIndex()
        with pytest.raises(OSError):
            index.add_file(str(tmp_path / "missing.txt"))
        assert len(index) == 0

    def test_add_folder_skips_hidden_entries(self, write_file, tmp_path):
        write_file("docs/a.txt", "alpha")
        write_file("docs/sub/b.md", "beta")
        write_file("docs/.git/config", "hidden")

        docs = RetrievalIndex().add_source(str(tmp_path / "docs"))

        assert [d.text for d in docs] == ["alpha", "beta"]

    def test_add_zip(self, tmp_path):
        archive = tmp_path / "bundle.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("readme.txt", "zip content")

        docs = RetrievalIndex().add_source(str(archive))

        assert len(docs) == 1
        assert docs[0].text == "zip content"
        assert docs[0].path.endswith("readme.txt")


class TestScorers:
    def test_get_scorer(self):
        assert isinstance(get_scorer("substring"), SubstringCountScorer)
        assert isinstance(get_scorer(" Vector "), VectorScorer)
        with pytest.raises(ValueError):
            get_scorer("bm25")

    def test_substring_counts_inside_words(self):
        doc = IndexedDocument.create("a", "a", "disks and Disk")
        assert SubstringCountScorer().score(doc, ["disk"]) == 2

    def test_vector_scorer_ranks_overlap_first(self):
        index = RetrievalIndex(scorer=VectorScorer())
        index.upsert("a.txt", None, "the disk is full")
        index.upsert("b.txt", None, "network timeout")

        assert index.search("disk full")[0].path == "a.txt"

    def test_vector_cache_drops_replaced_documents(self):
        scorer = VectorScorer()
        index = RetrievalIndex(scorer=scorer)
        old = index.upsert("a.txt", None, "disk")
        index.search("disk")
        assert old.fingerprint in scorer._cache

        index.upsert("a.txt", None, "full")
        assert old.fingerprint not in scorer._cache

    def test_vector_scorer_keeps_each_query_separate(self):
        docs = [
            IndexedDocument.create("a", "a", "the disk is full"),
            IndexedDocument.create("b", "b", "network timeout on the link"),
        ]
        queries = [["disk", "full"], ["network", "timeout"]]
        expected = [[VectorScorer().score(doc, q) for doc in docs] for q in queries]

        scorer = VectorScorer()
        for _ in range(3):
            for query, scores in zip(queries, expected):
                assert [scorer.score(doc, query) for doc in docs] == scores

    def test_concurrent_vector_searches_rank_their_own_query(self):
        index = RetrievalIndex(scorer=VectorScorer())
        index.upsert("disk.txt", None, "the disk is full")
        index.upsert("net.txt", None, "network timeout on the link")
        results = {"disk full": [], "network timeout": []}

        def search(query):
            for _ in range(50):
                results[query].append(index.search(query)[0].path)

        threads = [threading.Thread(target=search, args=(q,)) for q in results]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert set(results["disk full"]) == {"disk.txt"}
        assert set(results["network timeout"]) == {"net.txt"}


class TestHashedEmbedder:
    def test_fnv1a_reference_values(self):
        assert fnv1a_32("") == 0x811C9DC5
        assert fnv1a_32("a") == 0xE40C292C

    def test_vectors_are_normalised(self):
        vectors = HashedEmbedder(dimension=64).embed(["disk full disk", ""])

        assert vectors.shape == (2, 64)
        assert np.isclose(np.linalg.norm(vectors[0]), 1.0)
        assert not vectors[1].any()

    def test_satisfies_provider_protocol(self):
        embedder = HashedEmbedder()

        assert isinstance(embedder, EmbeddingProvider)
        assert embedder.dimension == HashedEmbedder.DEFAULT_DIMENSION


class TestPersistence:
    def test_documents_survive_reload(self, tmp_path):
        store = IndexStore(tmp_path / "kiki" / "index.db")
        index = RetrievalIndex.load(store)
        index.upsert("b.txt", None, "second")
        index.upsert("a.txt", None, "first")
        index.upsert("b.txt", None, "second, updated")

        reloaded = RetrievalIndex.load(IndexStore(tmp_path / "kiki" / "index.db"))

        assert [d.path for d in reloaded.documents()] == ["b.txt", "a.txt"]
        assert reloaded.get("b.txt").text == "second, updated"

    def test_clear_removes_stored_documents(self, tmp_path):
        store = IndexStore(tmp_path / "index.db")
        index = RetrievalIndex.load(store)
        index.upsert("a.txt", None, "first")
        index.clear()

        assert RetrievalIndex.load(store).documents() == []

    def test_metadata(self, tmp_path):
        store = IndexStore(tmp_path / "index.db")
        store.initialize()
        store.set_metadata("updated_at", "today")
        assert store.get_metadata("updated_at") == "today"
        assert store.get_metadata("missing") is None

    def test_storage_failures_are_not_fatal(self, tmp_path, caplog):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        index = RetrievalIndex.load(IndexStore(blocker / "index.db"))

        index.upsert("a.txt", None, "still indexed")

        assert index.search("indexed")[0].path == "a.txt"
        assert "Could not" in caplog.text
