import re
from typing import List
from bs4 import BeautifulSoup
from readability import Document as ReadabilityDocument

# A sentence is anything up to a run of terminal punctuation; text after the
# last terminator forms one trailing unit.
SENTENCE_PATTERN = re.compile(r"[^.!?]*[.!?]+|[^.!?]+\Z")


def clean_html(html_content: str) -> str:
    """
    Cleans HTML content to extract main text using readability-lxml.
    Removes boilerplate and collapses whitespace.
    """
    if not html_content:
        return ""

    # Use readability-lxml to get the main content
    doc = ReadabilityDocument(html_content)
    # This gets the HTML of the main body, not just the text
    cleaned_html = doc.summary(html_partial=True)

    soup = BeautifulSoup(cleaned_html, 'html.parser')

    for script_or_style in soup(['script', 'style']):
        script_or_style.decompose()

    text = soup.get_text(" ", strip=True)
    text = re.sub(r'\s+', ' ', text)
    return text.strip()


def split_sentences(text: str) -> List[str]:
    """
    Splits text into sentence-like units on '.', '!' and '?' boundaries.
    Surrounding whitespace is kept so that joining the units reproduces the text.
    """
    sentences = SENTENCE_PATTERN.findall(text)
    return sentences or [text]


def chunk_text(text: str, chunk_size: int = 500, max_chunks: int = 30) -> List[str]:
    """
    Greedily packs whole sentences into chunks of at most chunk_size characters.

    A sentence is never split: one longer than chunk_size becomes its own chunk.
    Chunks are trimmed, and anything after the first max_chunks chunks is dropped.
    """
    chunks: List[str] = []
    current_chunk = ""

    for sentence in split_sentences(text):
        if len(current_chunk + sentence) > chunk_size and current_chunk:
            if current_chunk.strip():
                chunks.append(current_chunk.strip())
            current_chunk = sentence
        else:
            current_chunk += sentence

    if current_chunk.strip():
        chunks.append(current_chunk.strip())

    return chunks[:max_chunks]
