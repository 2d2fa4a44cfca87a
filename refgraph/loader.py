"""
Loader：从快照递归解析对象图。

流程（每个对象一跳）：
1) 查 URL：没有 -> `NotFoundError`
2) raw decoder 解码成"原始对象"（嵌套关系还是 URL 字符串）：失败 -> `DecodingFailedError`
3) 调用方提供的 resolver 把嵌套 URL 逐个解析（通常递归调用 `load` / `load_raw` / `load_list`）
4) 成功后打上来源 URL，返回 `Remote`

失败策略：
- 第一个错误直接向上传播（不聚合、不重试、不返回半成品）
- 不修改快照
- 默认不做环检测；需要时见 `refgraph/guard.py`
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

from refgraph.cache import CacheSnapshot
from refgraph.decoders import Decoder
from refgraph.guard import GuardedSnapshot
from refgraph.reference import decode_at, fetch_raw

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class Remote(Generic[T]):
    """解析完成的对象 + 它的来源 URL。"""

    url: str
    value: T


Resolver = Callable[[CacheSnapshot, R], T]
LoadFn = Callable[[CacheSnapshot, str], Remote[T]]


def load(
    cache: CacheSnapshot,
    raw_decoder: Decoder[R],
    resolver: Resolver[R, T],
    url: str,
) -> Remote[T]:
    """加载 `url` 处的对象，并用 `resolver` 解析它的嵌套引用。"""
    scope = cache.enter(url) if isinstance(cache, GuardedSnapshot) else cache
    raw = fetch_raw(cache, url)
    decoded = decode_at(url, raw, raw_decoder)
    return Remote(url=url, value=resolver(scope, decoded))


def load_raw(cache: CacheSnapshot, decoder: Decoder[T], url: str) -> Remote[T]:
    """叶子对象（没有嵌套引用）：等价于 resolver 为恒等函数的 `load`。"""
    return load(cache, decoder, _identity, url)


def load_list(cache: CacheSnapshot, load_fn: LoadFn[T], urls: Iterable[str]) -> list[Remote[T]]:
    """
    按顺序加载一组 URL。

    - 全部成功：结果与输入同序、同长度（空输入 -> 空列表）
    - 任一失败：整体失败（从左到右，遇到的第一个错误）
    """
    return [load_fn(cache, url) for url in urls]


def loader_for(raw_decoder: Decoder[R], resolver: Resolver[R, T] | None = None) -> LoadFn[T]:
    """把 decoder/resolver 固定下来，得到 `(cache, url) -> Remote` 形式的单对象 loader。"""

    def load_one(cache: CacheSnapshot, url: str) -> Remote[T]:
        if resolver is None:
            return load_raw(cache, raw_decoder, url)
        return load(cache, raw_decoder, resolver, url)

    return load_one


def _identity(cache: CacheSnapshot, raw: T) -> T:
    return raw
