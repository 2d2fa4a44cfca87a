from __future__ import annotations

from dataclasses import dataclass
from types import SimpleNamespace

import pytest
from pydantic import BaseModel

from refgraph.cache import CacheSnapshot
from refgraph.decoders import model_decoder
from refgraph.loader import Remote, load, load_raw, load_list, loader_for


class Writer(BaseModel):
    name: str


class RawBook(BaseModel):
    title: str
    author: str


class RawShelf(BaseModel):
    label: str
    books: list[str]


@dataclass(frozen=True)
class Book:
    title: str
    author: Remote[Writer]


@dataclass(frozen=True)
class Shelf:
    label: str
    books: list[Remote[Book]]


decode_writer = model_decoder(Writer)
decode_raw_book = model_decoder(RawBook)
decode_raw_shelf = model_decoder(RawShelf)


def resolve_book(cache: CacheSnapshot, raw: RawBook) -> Book:
    return Book(title=raw.title, author=load_raw(cache, decode_writer, raw.author))


def load_book(cache: CacheSnapshot, url: str) -> Remote[Book]:
    return load(cache, decode_raw_book, resolve_book, url)


def resolve_shelf(cache: CacheSnapshot, raw: RawShelf) -> Shelf:
    return Shelf(label=raw.label, books=load_list(cache, loader_for(decode_raw_book, resolve_book), raw.books))


@pytest.fixture
def library() -> SimpleNamespace:
    return SimpleNamespace(
        Writer=Writer,
        RawBook=RawBook,
        Book=Book,
        decode_writer=decode_writer,
        decode_raw_book=decode_raw_book,
        decode_raw_shelf=decode_raw_shelf,
        resolve_book=resolve_book,
        resolve_shelf=resolve_shelf,
        load_book=load_book,
    )
