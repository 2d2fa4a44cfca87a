from __future__ import annotations

"""
原始 JSON 值类型。

用途：
- 作为 Cache 的 value 类型（存储层里是什么就放什么，不做解释）
- 作为 decoder 的输入类型（raw -> 领域对象）
"""

from typing import TypeAlias

JSONScalar: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]
JSONObject: TypeAlias = dict[str, JSONValue]
JSONArray: TypeAlias = list[JSONValue]
