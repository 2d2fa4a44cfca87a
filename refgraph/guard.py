from __future__ import annotations

"""
可选的环检测。

默认行为不变：`load` 不做环检测，数据里有环就会一直递归到 `RecursionError`，
保证数据无环是调用方的责任。

需要时用 `guard_cycles(cache)` 包一层：
- 包装后的快照仍然是只读 `Mapping`，resolver 无需感知
- `load` 每进入一个 URL 就派生一个带"当前加载链"的子快照
- 链上已有的 URL 再次出现时抛 `CyclicReferenceError`
- 菱形引用（两条边指向同一目标，但不成环）照常加载
"""

from collections.abc import Iterator, Mapping

from refgraph.cache import CacheSnapshot
from refgraph.errors import CyclicReferenceError
from refgraph.json_types import JSONValue


class GuardedSnapshot(Mapping[str, JSONValue]):
    """带加载链的只读快照视图。"""

    def __init__(self, base: CacheSnapshot, path: tuple[str, ...] = ()) -> None:
        if isinstance(base, GuardedSnapshot):
            path = base.path + path
            base = base.base
        self._base = base
        self._path = path

    @property
    def base(self) -> CacheSnapshot:
        return self._base

    @property
    def path(self) -> tuple[str, ...]:
        return self._path

    def enter(self, url: str) -> GuardedSnapshot:
        """进入 `url`：在链上则抛 `CyclicReferenceError`，否则返回子快照。"""
        if url in self._path:
            raise CyclicReferenceError(url, self._path)
        return GuardedSnapshot(self._base, self._path + (url,))

    def __getitem__(self, url: str) -> JSONValue:
        return self._base[url]

    def __contains__(self, url: object) -> bool:
        return url in self._base

    def __iter__(self) -> Iterator[str]:
        return iter(self._base)

    def __len__(self) -> int:
        return len(self._base)

    def __repr__(self) -> str:
        return f"GuardedSnapshot(size={len(self._base)}, path={self._path!r})"


def guard_cycles(cache: CacheSnapshot) -> GuardedSnapshot:
    return GuardedSnapshot(cache)
