"""
Decoder 工具。

decoder 约定：`raw JSON -> T`，结构不匹配时抛 `ValueError`
（`DecodeError` 或 pydantic 的 `ValidationError`，后者本身就是 `ValueError`）。

为什么用 Pydantic：
- 字段缺失/类型不对会给出带路径的错误信息，直接可以当 `DecodingFailedError.message`
- 领域模型和 decoder 是同一份定义，不会写两遍
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from refgraph.errors import DecodeError
from refgraph.json_types import JSONValue

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

Decoder = Callable[[JSONValue], T]


def format_decode_error(exc: ValueError) -> str:
    """
    把 decoder 抛出的异常转成稳定、非空的一行文本。

    - `ValidationError`：`loc: msg; loc: msg`（不包含 pydantic 文档链接）
    - 其它 `ValueError`：直接用 `str(exc)`，为空时退回异常类名
    """
    if isinstance(exc, ValidationError):
        parts: list[str] = []
        for err in exc.errors(include_url=False):
            loc = ".".join(str(p) for p in err["loc"]) or "<root>"
            parts.append(f"{loc}: {err['msg']}")
        if parts:
            return "; ".join(parts)
    text = str(exc).strip()
    return text or type(exc).__name__


def model_decoder(model: type[M]) -> Decoder[M]:
    """用 Pydantic 模型类构造 decoder。"""

    def decode(raw: JSONValue) -> M:
        return model.model_validate(raw)

    decode.__name__ = f"decode_{model.__name__}"
    return decode


def decode_list(item_decoder: Decoder[T]) -> Decoder[list[T]]:
    """JSON 数组 -> list，元素失败时在信息前加上下标。"""

    def decode(raw: JSONValue) -> list[T]:
        if not isinstance(raw, list):
            raise DecodeError(f"expected array, got {json_kind(raw)}")
        items: list[T] = []
        for index, item in enumerate(raw):
            try:
                items.append(item_decoder(item))
            except ValueError as exc:
                raise DecodeError(f"[{index}] {format_decode_error(exc)}") from exc
        return items

    return decode


def decode_string(raw: JSONValue) -> str:
    if not isinstance(raw, str):
        raise DecodeError(f"expected string, got {json_kind(raw)}")
    return raw


def json_kind(raw: JSONValue) -> str:
    if raw is None:
        return "null"
    if isinstance(raw, bool):
        return "boolean"
    if isinstance(raw, (int, float)):
        return "number"
    if isinstance(raw, str):
        return "string"
    if isinstance(raw, list):
        return "array"
    return "object"
