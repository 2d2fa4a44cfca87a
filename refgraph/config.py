"""
refgraph 配置加载。

设计目标：
- **严格**：环境变量写错就直接报错（避免"看起来开了环检测其实没开"）
- **类型安全**：使用 Pydantic 校验
- **可测试**：核心加载函数接收 `environ` 显式输入，便于单元测试
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from pydantic import BaseModel, field_validator

from refgraph.cache import CacheSnapshot
from refgraph.guard import guard_cycles

_TRUE_VALUES: frozenset[str] = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES: frozenset[str] = frozenset({"0", "false", "no", "off"})
_LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class RefGraphConfig(BaseModel):
    """解析相关的可选配置（都有默认值）。"""

    detect_cycles: bool = False
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level


def load_config_from_env(environ: Mapping[str, str]) -> RefGraphConfig:
    """
    从环境变量加载并校验配置。

    - **输入**：`environ`（例如 `os.environ`）
    - **输出**：`RefGraphConfig`
    - **失败**：取值非法则抛 `ValueError`（列出所有出错的变量）
    """
    invalid: list[str] = []
    values: dict[str, object] = {}

    raw_cycles = environ.get("REFGRAPH_DETECT_CYCLES", "").strip().lower()
    if raw_cycles in _TRUE_VALUES:
        values["detect_cycles"] = True
    elif raw_cycles in _FALSE_VALUES:
        values["detect_cycles"] = False
    elif raw_cycles:
        invalid.append("REFGRAPH_DETECT_CYCLES")

    raw_level = environ.get("REFGRAPH_LOG_LEVEL", "").strip().upper()
    if raw_level in _LOG_LEVELS:
        values["log_level"] = raw_level
    elif raw_level:
        invalid.append("REFGRAPH_LOG_LEVEL")

    if invalid:
        raise ValueError(f"Invalid env vars: {', '.join(invalid)}")

    return RefGraphConfig.model_validate(values)


def prepare_snapshot(cache: CacheSnapshot, config: RefGraphConfig) -> CacheSnapshot:
    """按配置决定是否给快照套上环检测。"""
    if config.detect_cycles:
        return guard_cycles(cache)
    return cache


def configure_logging(config: RefGraphConfig) -> logging.Logger:
    """设置 `refgraph` 包 logger 的级别（handler 交给宿主应用配置）。"""
    logger = logging.getLogger("refgraph")
    logger.setLevel(config.log_level)
    return logger
