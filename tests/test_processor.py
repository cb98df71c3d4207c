import pytest
from webindex.core.processor import DocumentProcessor
from webindex.utils.text_utils import chunk_text, split_sentences, clean_html

@pytest.fixture
def document_processor():
    """Provides a DocumentProcessor instance."""
    return DocumentProcessor(chunk_size=40, max_chunks=30)

def test_split_sentences_keeps_trailing_unit():
    """Text after the last terminator is its own unit."""
    assert split_sentences("One. Two! Three? tail") == ["One.", " Two!", " Three?", " tail"]

def test_split_sentences_without_boundaries():
    assert split_sentences("no punctuation here") == ["no punctuation here"]

def test_chunk_text_empty_input():
    assert chunk_text("", chunk_size=100, max_chunks=5) == []

def test_chunk_text_without_boundaries_is_one_chunk():
    assert chunk_text("  just some words  ", chunk_size=100, max_chunks=5) == ["just some words"]

def test_chunk_text_packs_sentences_greedily():
    text = "Alpha one. Beta two. Gamma three. Delta four."
    chunks = chunk_text(text, chunk_size=22, max_chunks=10)
    assert chunks == ["Alpha one. Beta two.", "Gamma three.", "Delta four."]

def test_chunk_text_respects_max_chunks():
    text = "Sentence number one. " * 20
    chunks = chunk_text(text, chunk_size=25, max_chunks=3)
    assert len(chunks) == 3

def test_chunk_text_preserves_order_and_content():
    sentences = [f"Sentence {i} is here." for i in range(12)]
    text = " ".join(sentences)
    chunks = chunk_text(text, chunk_size=50, max_chunks=100)
    assert " ".join(chunks) == text

def test_chunk_text_never_splits_a_long_sentence():
    long_sentence = "This sentence is much longer than the configured chunk size allows."
    text = f"Short one. {long_sentence} Tail."
    chunks = chunk_text(text, chunk_size=20, max_chunks=10)
    assert long_sentence in chunks
    for chunk in chunks:
        # Only a lone sentence may exceed the limit
        assert len(chunk) <= 20 or chunk == long_sentence

def test_clean_html_extracts_text():
    html = "<html><body><script>var x = 1;</script><p>This is a paragraph.</p><p>Another one.</p></body></html>"
    text = clean_html(html)
    assert "This is a paragraph." in text
    assert "var x" not in text

def test_process_document_assigns_ids_and_indexes(document_processor):
    content = "First sentence here. Second sentence here. Third sentence is here too."
    chunks = document_processor.process_document("https://Docs.Example.com:8443/guide", content, batch_id=1700000000000)

    assert len(chunks) > 1
    for i, chunk in enumerate(chunks):
        assert chunk.chunk_id == f"docs.example.com_1700000000000_chunk_{i}"
        assert chunk.chunk_index == i
        assert chunk.total_chunks == len(chunks)
        assert chunk.chunk_index < chunk.total_chunks
        assert chunk.url == "https://Docs.Example.com:8443/guide"
        assert chunk.embedding is None

def test_process_document_empty_content(document_processor):
    assert document_processor.process_document("https://example.com", "   ") == []
