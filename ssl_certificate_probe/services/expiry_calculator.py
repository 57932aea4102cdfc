"""
证书过期计算服务
"""
from datetime import datetime, timezone, timedelta
from typing import Optional

from .config_validator import DEFAULT_NB_DAYS


class ExpiryCalculator:
    """证书过期计算器"""
    
    def __init__(self, warning_days: int = DEFAULT_NB_DAYS):
        """
        初始化过期计算器
        
        Args:
            warning_days: 提前警告天数，默认7天
        """
        self.warning_days = warning_days
    
    def calculate_threshold(self, now: Optional[datetime] = None) -> datetime:
        """
        计算本次运行的过期阈值
        
        Args:
            now: 当前时间，默认为当前UTC时间
        
        Returns:
            datetime: 阈值时间（UTC）
        """
        now = now or datetime.now(timezone.utc)
        return now + timedelta(days=self.warning_days)
    
    @staticmethod
    def is_valid_until(not_after: datetime, threshold: datetime) -> bool:
        """
        判断证书在阈值时间点是否仍然有效
        
        阈值等于过期时间时视为有效，只有阈值严格晚于过期时间才失败。
        
        Args:
            not_after: 证书过期时间
            threshold: 阈值时间
        
        Returns:
            bool: 是否有效
        """
        return not threshold > not_after
    
    def calculate_days_until_expiry(self, not_after: datetime,
                                    now: Optional[datetime] = None) -> int:
        """
        计算距离过期的天数
        
        Args:
            not_after: 过期时间
            now: 当前时间，默认为当前UTC时间
        
        Returns:
            int: 剩余天数（负数表示已过期）
        """
        now = now or datetime.now(timezone.utc)
        delta = not_after - now
        return delta.days
