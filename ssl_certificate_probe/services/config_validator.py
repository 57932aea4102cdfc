"""
配置验证服务
"""
import re
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional
import logging

from ..exceptions import ConfigurationError


DEFAULT_NB_DAYS = 7
DEFAULT_TIMEOUT = 5.0
DEFAULT_MAX_WORKERS = 10

# 阈值 = 当前时间 + nb_days，上限保证不会超出 datetime 的范围
MAX_NB_DAYS = 36500


@dataclass(frozen=True)
class ProbeConfig:
    """
    单次运行的不可变配置
    
    Attributes:
        nb_days: 过期前提前告警的天数
        timeout: 单个连接的超时时间（秒）
        max_workers: 并发检查的最大线程数
    """
    nb_days: int = DEFAULT_NB_DAYS
    timeout: float = DEFAULT_TIMEOUT
    max_workers: int = DEFAULT_MAX_WORKERS
    
    def __post_init__(self):
        if isinstance(self.nb_days, bool) or not isinstance(self.nb_days, int) or self.nb_days < 0:
            raise ConfigurationError(f"nb_days 必须是非负整数: {self.nb_days!r}")
        if self.nb_days > MAX_NB_DAYS:
            raise ConfigurationError(f"nb_days 不能超过 {MAX_NB_DAYS}: {self.nb_days}")
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)) or self.timeout <= 0:
            raise ConfigurationError(f"timeout 必须是正数: {self.timeout!r}")
        if isinstance(self.max_workers, bool) or not isinstance(self.max_workers, int) or self.max_workers < 1:
            raise ConfigurationError(f"max_workers 必须是正整数: {self.max_workers!r}")


class ConfigValidator:
    """配置验证器"""
    
    def __init__(self):
        """初始化配置验证器"""
        self.logger = logging.getLogger(__name__)
        
        # 支持的配置项
        self.recognized_options = {
            'nb_days': '过期前提前告警的天数'
        }
        
        self.integer_pattern = re.compile(r'^\d+$', re.ASCII)
    
    def parse_options(self, options: Optional[Dict[str, Any]],
                      base: Optional[ProbeConfig] = None) -> ProbeConfig:
        """
        解析监控框架传入的配置选项
        
        未识别的配置项会被忽略；nb_days 无效时立即抛出异常。
        
        Args:
            options: 配置选项字典
            base: 基础配置，未指定的字段沿用该配置
        
        Returns:
            ProbeConfig: 新的配置对象
        
        Raises:
            ConfigurationError: 配置值无效
        """
        config = base or ProbeConfig()
        
        if not options:
            return config
        
        if not isinstance(options, dict):
            raise ConfigurationError(f"配置选项必须是字典: {type(options).__name__}")
        
        for key in options:
            if key not in self.recognized_options:
                self.logger.debug(f"忽略未识别的配置项: {key}")
        
        if 'nb_days' in options:
            nb_days = self.parse_nb_days(options['nb_days'])
            config = replace(config, nb_days=nb_days)
            self.logger.info(f"告警天数设置为 {nb_days} 天")
        
        return config
    
    def parse_nb_days(self, value: Any) -> int:
        """
        解析 nb_days 配置值
        
        Args:
            value: 原始配置值（整数或数字字符串）
        
        Returns:
            int: 告警天数
        
        Raises:
            ConfigurationError: 值不是非负整数，或超过上限
        """
        if isinstance(value, bool):
            raise ConfigurationError(f"nb_days 必须是整数，而不是布尔值: {value!r}")
        
        if isinstance(value, int):
            nb_days = value
        elif isinstance(value, str) and self.integer_pattern.match(value.strip()):
            nb_days = int(value.strip())
        else:
            raise ConfigurationError(f"nb_days 必须是整数: {value!r}")
        
        if nb_days < 0:
            raise ConfigurationError(f"nb_days 不能为负数: {nb_days}")
        
        if nb_days > MAX_NB_DAYS:
            raise ConfigurationError(f"nb_days 不能超过 {MAX_NB_DAYS} 天: {nb_days}")
        
        return nb_days
    
    def get_configuration_summary(self, config: ProbeConfig) -> Dict[str, Any]:
        """
        获取配置摘要（用于日志）
        
        Args:
            config: 当前配置
        
        Returns:
            Dict[str, Any]: 配置摘要
        """
        return {
            'nb_days': config.nb_days,
            'timeout_seconds': config.timeout,
            'max_workers': config.max_workers
        }
