from __future__ import annotations

"""
Reference：URL + decoder 的不可变句柄。

要点：
- 创建时不查 Cache（纯构造）；解析总是显式传入一个快照
- 解析只解一层：decoded 结果里如果还有 Reference，不会自动展开
- 失败直接抛 `NotFoundError` / `DecodingFailedError`
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from refgraph.cache import CacheSnapshot
from refgraph.decoders import Decoder, format_decode_error, json_kind
from refgraph.errors import DecodeError, DecodingFailedError, NotFoundError
from refgraph.json_types import JSONValue

T = TypeVar("T")


def fetch_raw(cache: CacheSnapshot, url: str) -> JSONValue:
    """从快照里取原始值；不存在抛 `NotFoundError`（JSON null 是存在的值）。"""
    if url not in cache:
        raise NotFoundError(url)
    return cache[url]


def decode_at(url: str, raw: JSONValue, decoder: Decoder[T]) -> T:
    """用 decoder 解码 `url` 处的原始值，结构错误统一转成 `DecodingFailedError`。"""
    try:
        return decoder(raw)
    except ValueError as exc:
        raise DecodingFailedError(url, format_decode_error(exc)) from exc


@dataclass(frozen=True)
class Reference(Generic[T]):
    """指向某个 URL 的类型化引用（值类型，可随意复制/共享）。"""

    url: str
    decode: Decoder[T]

    def resolve(self, cache: CacheSnapshot) -> T:
        return resolve(self, cache)


def create_reference(decode: Decoder[T], url: str) -> Reference[T]:
    return Reference(url=url, decode=decode)


def resolve(reference: Reference[T], cache: CacheSnapshot) -> T:
    """在给定快照上解析 reference（只解这一层）。"""
    raw = fetch_raw(cache, reference.url)
    return decode_at(reference.url, raw, reference.decode)


def decode_as_reference(decode: Decoder[T]) -> Decoder[Reference[T]]:
    """
    把"原始 JSON 字符串"当作 URL，包装成 `Reference`。

    不做任何查找；非字符串直接抛 `DecodeError`。
    """

    def decode_reference(raw: JSONValue) -> Reference[T]:
        if not isinstance(raw, str):
            raise DecodeError(f"expected reference URL string, got {json_kind(raw)}")
        return create_reference(decode, raw)

    return decode_reference
