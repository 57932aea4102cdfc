"""
服务接口定义
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List
from .models import CertificateCheckResult, ProbeSeverity, ProbeStatus, Site


class SiteSourceInterface(ABC):
    """站点主机名来源接口"""
    
    @abstractmethod
    def get_sites(self) -> List[Site]:
        """获取站点列表，无法查询时抛出 SiteSourceError"""
        pass


class SSLCertificateCheckerInterface(ABC):
    """SSL证书检查器接口"""
    
    @abstractmethod
    def check_certificate(self, hostname: str, threshold: datetime) -> CertificateCheckResult:
        """检查单个主机名的SSL证书"""
        pass


class ProbeInterface(ABC):
    """监控框架探针接口"""
    
    @abstractmethod
    def name(self) -> str:
        """探针名称"""
        pass
    
    @abstractmethod
    def description(self) -> str:
        """探针描述"""
        pass
    
    @abstractmethod
    def status(self) -> ProbeStatus:
        """执行检查并返回状态"""
        pass
    
    @abstractmethod
    def default_severity(self) -> ProbeSeverity:
        """默认严重级别"""
        pass
    
    @abstractmethod
    def configure(self, options: Dict[str, Any]) -> None:
        """应用配置选项"""
        pass


class LoggerServiceInterface(ABC):
    """日志服务接口"""
    
    @abstractmethod
    def log_check_start(self, site_count: int, hostname_count: int):
        """记录检查开始"""
        pass
    
    @abstractmethod
    def log_certificate_result(self, site_id: str, result: CertificateCheckResult):
        """记录证书检查结果"""
        pass
    
    @abstractmethod
    def log_error(self, hostname: str, error: Exception):
        """记录错误信息"""
        pass
