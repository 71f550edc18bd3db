import os
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import tiktoken
from dotenv import load_dotenv
from langchain_text_splitters import RecursiveCharacterTextSplitter

from site_spider import Page

load_dotenv()

CHUNK_SIZE = int(os.getenv("SEED_CHUNK_SIZE", "1000"))
CHUNK_OVERLAP = int(os.getenv("SEED_CHUNK_OVERLAP", "200"))
TOKEN_ENCODING = os.getenv("SEED_TOKEN_ENCODING", "cl100k_base")
STRATEGIES = ("recursive", "window")
LENGTH_UNITS = ("characters", "tokens")

TOKENIZER: tiktoken.Encoding | None = None
TOKENIZER_FAILED = False

_OPTION_KEYS = {
    "chunkSize": "chunk_size",
    "chunk_size": "chunk_size",
    "chunkOverlap": "chunk_overlap",
    "chunk_overlap": "chunk_overlap",
    "strategy": "strategy",
    "lengthUnit": "length_unit",
    "length_unit": "length_unit",
}


@dataclass(frozen=True)
class ChunkConfig:
    chunk_size: int = CHUNK_SIZE
    chunk_overlap: int = CHUNK_OVERLAP
    strategy: str = "recursive"
    length_unit: str = "characters"

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if not 0 <= self.chunk_overlap < self.chunk_size:
            raise ValueError(
                f"chunk_overlap must be in [0, chunk_size), got {self.chunk_overlap} "
                f"with chunk_size={self.chunk_size}"
            )
        if self.strategy not in STRATEGIES:
            raise ValueError(f"Unknown chunking strategy: {self.strategy!r}")
        if self.length_unit not in LENGTH_UNITS:
            raise ValueError(f"Unknown length unit: {self.length_unit!r}")

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None) -> "ChunkConfig":
        """Build a config from splitter options, keeping defaults for missing keys.

        Accepts the camelCase keys used on the wire (``chunkSize``,
        ``chunkOverlap``) as well as the field names.
        """
        kwargs: dict[str, Any] = {}
        for key, value in (options or {}).items():
            field = _OPTION_KEYS.get(key)
            if field is None or value is None:
                continue
            kwargs[field] = value if field in {"strategy", "length_unit"} else int(value)
        return cls(**kwargs)


@dataclass(frozen=True)
class ChunkRecord:
    url: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"url": self.url, "content": self.content}


def _get_tokenizer() -> tiktoken.Encoding | None:
    global TOKENIZER, TOKENIZER_FAILED
    if TOKENIZER is not None:
        return TOKENIZER
    if TOKENIZER_FAILED:
        return None
    try:
        TOKENIZER = tiktoken.get_encoding(TOKEN_ENCODING)
    except Exception as exc:
        print(f"[tokenizer-warning] Falling back to word-based chunking: {exc}")
        TOKENIZER_FAILED = True
        TOKENIZER = None
    return TOKENIZER


def _window_spans(length: int, size: int, overlap: int) -> list[tuple[int, int]]:
    spans: list[tuple[int, int]] = []
    start = 0
    while start < length:
        end = min(start + size, length)
        spans.append((start, end))
        if end == length:
            break
        start = end - overlap
    return spans


def _window_chunks(text: str, config: ChunkConfig) -> list[str]:
    size, overlap = config.chunk_size, config.chunk_overlap
    if config.length_unit == "characters":
        return [text[start:end] for start, end in _window_spans(len(text), size, overlap)]

    tokenizer = _get_tokenizer()
    if tokenizer is None:
        words = text.split()
        return [" ".join(words[start:end]) for start, end in _window_spans(len(words), size, overlap)]

    tokens = tokenizer.encode(text)
    return [tokenizer.decode(tokens[start:end]) for start, end in _window_spans(len(tokens), size, overlap)]


def _recursive_splitter(config: ChunkConfig) -> RecursiveCharacterTextSplitter:
    if config.length_unit == "tokens":
        return RecursiveCharacterTextSplitter.from_tiktoken_encoder(
            encoding_name=TOKEN_ENCODING,
            chunk_size=config.chunk_size,
            chunk_overlap=config.chunk_overlap,
        )
    return RecursiveCharacterTextSplitter(
        chunk_size=config.chunk_size,
        chunk_overlap=config.chunk_overlap,
        length_function=len,
        is_separator_regex=False,
    )


def split_text(text: str, config: ChunkConfig | None = None) -> list[str]:
    config = config or ChunkConfig()
    if not text:
        return []
    if config.strategy == "window":
        return _window_chunks(text, config)
    return _recursive_splitter(config).split_text(text)


def chunk_pages(pages: Iterable[Page], config: ChunkConfig | None = None) -> list[ChunkRecord]:
    """Split every page's text, keeping page order and chunk order within a page."""
    config = config or ChunkConfig()
    records: list[ChunkRecord] = []
    for page in pages:
        for chunk in split_text(page.text, config):
            records.append(ChunkRecord(url=page.url, content=chunk))
    return records
