from __future__ import annotations

"""
Cache：URL -> 原始 JSON 值 的快照。

设计目标：
- **纯函数折叠**：快照只由 update 命令序列决定（`apply_update` 是 reducer）
- **只读快照**：对外交出去的都是 `MappingProxyType`，消费者只能读
- **总是成功**：apply 没有错误分支，删除不存在的 key 就是 no-op

外部 update feed 的 wire 格式（由集成层产生）：
- `None` / `{}`：no-op
- `{"url": ..., "value": ...}`：upsert（`value` 为 JSON null 也算"有值"）
- `{"url": ...}`（没有 `value` key）：delete
"""

import logging
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Annotated, Any, Literal, Union

from anyio.abc import ObjectReceiveStream
from pydantic import BaseModel, ConfigDict, Field, JsonValue, TypeAdapter

from refgraph.json_types import JSONValue

logger = logging.getLogger(__name__)

CacheSnapshot = Mapping[str, JSONValue]

EMPTY_CACHE: CacheSnapshot = MappingProxyType({})


class NoOpUpdate(BaseModel):
    """什么都不做的命令（feed 里的心跳/空消息）。"""

    model_config = ConfigDict(frozen=True)

    kind: Literal["noop"] = "noop"


class UpsertUpdate(BaseModel):
    """写入/覆盖一个 URL 的值。"""

    model_config = ConfigDict(frozen=True)

    kind: Literal["upsert"] = "upsert"
    url: str
    value: JsonValue


class DeleteUpdate(BaseModel):
    """删除一个 URL（不存在时是 no-op）。"""

    model_config = ConfigDict(frozen=True)

    kind: Literal["delete"] = "delete"
    url: str


Update = Annotated[Union[NoOpUpdate, UpsertUpdate, DeleteUpdate], Field(discriminator="kind")]

_update_adapter: TypeAdapter[NoOpUpdate | UpsertUpdate | DeleteUpdate] = TypeAdapter(Update)


def apply_update(current: CacheSnapshot, update: NoOpUpdate | UpsertUpdate | DeleteUpdate) -> CacheSnapshot:
    """
    把一条 update 作用到快照上，返回下一个快照。

    - 不修改 `current`（总是复制后再改）
    - no-op / 删除不存在的 key：原样返回 `current`
    """
    if isinstance(update, UpsertUpdate):
        nxt = dict(current)
        nxt[update.url] = update.value
        return MappingProxyType(nxt)
    if isinstance(update, DeleteUpdate):
        if update.url not in current:
            return current
        nxt = dict(current)
        del nxt[update.url]
        return MappingProxyType(nxt)
    return current


def build_cache(
    updates: Iterable[NoOpUpdate | UpsertUpdate | DeleteUpdate],
    initial: CacheSnapshot = EMPTY_CACHE,
) -> CacheSnapshot:
    """
    按到达顺序折叠 update 序列，得到最终快照。

    注意：每次 upsert/delete 都会复制整个快照，n 条 update 的总成本是 O(n^2)；
    大批量初始化时更适合先拼好 dict 再作为 `initial` 传入。
    """
    snapshot = initial
    for update in updates:
        snapshot = apply_update(snapshot, update)
    return snapshot


def iter_snapshots(
    updates: Iterable[NoOpUpdate | UpsertUpdate | DeleteUpdate],
    initial: CacheSnapshot = EMPTY_CACHE,
) -> Iterator[CacheSnapshot]:
    """逐条折叠，每应用一条 update 就产出一次当前快照。"""
    snapshot = initial
    for update in updates:
        snapshot = apply_update(snapshot, update)
        yield snapshot


def parse_update(payload: Mapping[str, Any] | None) -> NoOpUpdate | UpsertUpdate | DeleteUpdate:
    """
    把 feed 里的一条原始消息解析成 `Update`。

    - 已带 `kind` 的消息按 tagged union 严格校验
    - 否则按 `{url, value?}` 约定：有 `value` key 是 upsert，没有是 delete
    - 失败：结构不对直接抛 `ValueError`（pydantic `ValidationError`）
    """
    if not payload:
        return NoOpUpdate()
    if "kind" in payload:
        return _update_adapter.validate_python(dict(payload))
    if "value" in payload:
        return UpsertUpdate.model_validate({"url": payload.get("url"), "value": payload["value"]})
    return DeleteUpdate.model_validate({"url": payload.get("url")})


class CacheFeed:
    """
    持有"当前快照"的宿主对象。

    - 每次 apply 只做一次引用替换，不会出现半更新的快照
    - 已经交出去的快照不受后续 update 影响
    """

    def __init__(self, initial: CacheSnapshot = EMPTY_CACHE) -> None:
        self._current = initial
        self._applied = 0

    @property
    def current(self) -> CacheSnapshot:
        return self._current

    @property
    def applied(self) -> int:
        return self._applied

    def apply(self, update: NoOpUpdate | UpsertUpdate | DeleteUpdate) -> CacheSnapshot:
        self._current = apply_update(self._current, update)
        self._applied += 1
        if not isinstance(update, NoOpUpdate):
            logger.debug(f"Cache update applied: kind={update.kind}, url={update.url}, size={len(self._current)}")
        return self._current

    def apply_payload(self, payload: Mapping[str, Any] | None) -> CacheSnapshot:
        return self.apply(parse_update(payload))

    async def follow(self, stream: ObjectReceiveStream[NoOpUpdate | UpsertUpdate | DeleteUpdate]) -> int:
        """
        消费一个 anyio receive stream（例如 memory object stream），直到发送端关闭。

        - 返回本次应用的 update 条数
        - 结束时会关闭 `stream`
        """
        count = 0
        async with stream:
            async for update in stream:
                self.apply(update)
                count += 1
        logger.info(f"Cache feed finished: {count} update(s), size={len(self._current)}")
        return count
