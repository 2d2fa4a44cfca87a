from __future__ import annotations

"""
解析错误类型。

约定：
- **只有两类业务错误**：`NotFoundError`（快照里没有这个 URL）和
  `DecodingFailedError`（有值但结构不对）
- `CyclicReferenceError` 只在显式开启环检测时出现（见 `refgraph/guard.py`）
- 所有错误都带上出错的 URL，方便定位
- core 内部不捕获、不重试：第一个错误直接向上抛给调用方
"""

from collections.abc import Sequence


class ResolutionError(Exception):
    """解析失败的基类（携带出错的 URL）。"""

    def __init__(self, url: str, detail: str) -> None:
        super().__init__(detail)
        self.url = url

    def _fields(self) -> tuple[object, ...]:
        return (self.url,)

    def __reduce__(self) -> tuple[object, ...]:
        # args 只有展示用的 detail，按构造参数重建
        if type(self) is ResolutionError:
            return (ResolutionError, (self.url, *self.args))
        return (type(self), self._fields())

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._fields() == other._fields()

    def __hash__(self) -> int:
        return hash((type(self).__name__, *self._fields()))

    def __repr__(self) -> str:
        args = ", ".join(repr(f) for f in self._fields())
        return f"{type(self).__name__}({args})"


class NotFoundError(ResolutionError):
    """快照中不存在该 URL。"""

    def __init__(self, url: str) -> None:
        super().__init__(url, f"Not found: {url}")


class DecodingFailedError(ResolutionError):
    """URL 对应的值存在，但不符合 decoder 期望的结构。"""

    def __init__(self, url: str, message: str) -> None:
        if not message:
            raise ValueError("message must be non-empty")
        super().__init__(url, f"Decoding failed for {url}: {message}")
        self.message = message

    def _fields(self) -> tuple[object, ...]:
        return (self.url, self.message)


class CyclicReferenceError(ResolutionError):
    """开启环检测后，在加载链上再次遇到同一个 URL。"""

    def __init__(self, url: str, path: Sequence[str]) -> None:
        self.path: tuple[str, ...] = tuple(path)
        chain = " -> ".join((*self.path, url))
        super().__init__(url, f"Cyclic reference: {chain}")

    def _fields(self) -> tuple[object, ...]:
        return (self.url, self.path)


class DecodeError(ValueError):
    """decoder 报告结构不匹配时抛出（由 core 转成 `DecodingFailedError`）。"""

    pass
