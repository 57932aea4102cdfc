"""
数据模型定义
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Tuple, Iterable, Dict


class Health(Enum):
    """探针健康状态"""
    HEALTHY = "HEALTHY"
    DEGRADED = "DEGRADED"


class ProbeSeverity(Enum):
    """探针默认严重级别"""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class CheckOutcome(Enum):
    """单个主机名的检查结论"""
    VALID = "valid"
    EXPIRING = "expiring"
    HOSTNAME_MISMATCH = "hostname_mismatch"
    NO_CERTIFICATE = "no_certificate"
    CONNECTION_FAILED = "connection_failed"


@dataclass(frozen=True)
class Site:
    """站点及其主机名（主域名 + 别名）"""
    site_id: str
    hostnames: Tuple[str, ...] = ()
    
    @classmethod
    def from_server_names(cls, site_id: str, server_name: str,
                          aliases: Optional[Iterable[str]] = None) -> "Site":
        """
        由主域名和别名构建站点，按出现顺序去重
        
        Args:
            site_id: 站点标识
            server_name: 主域名
            aliases: 别名列表
        
        Returns:
            Site: 站点
        """
        hostnames: List[str] = []
        for hostname in [server_name, *(aliases or [])]:
            if hostname and hostname not in hostnames:
                hostnames.append(hostname)
        return cls(site_id=site_id, hostnames=tuple(hostnames))


@dataclass(frozen=True)
class CertificateCheckResult:
    """单个主机名的证书检查结果"""
    hostname: str
    reason: CheckOutcome
    not_after: Optional[datetime] = None
    matched_name: Optional[str] = None
    error_message: Optional[str] = None
    
    @property
    def is_valid(self) -> bool:
        return self.reason is CheckOutcome.VALID
    
    @property
    def is_expiring(self) -> bool:
        """证书匹配但在阈值之前过期"""
        return self.reason is CheckOutcome.EXPIRING


@dataclass(frozen=True)
class SiteFailureGroup:
    """站点下检查失败的主机名"""
    site_id: str
    hostnames: Tuple[str, ...]
    
    def format(self) -> str:
        return f"{self.site_id}: [{', '.join(self.hostnames)}]"


@dataclass(frozen=True)
class ProbeStatus:
    """探针状态（返回给监控框架）"""
    message: str
    health: Health
    failure_groups: Tuple[SiteFailureGroup, ...] = field(default=(), compare=False)
    
    @property
    def is_healthy(self) -> bool:
        return self.health is Health.HEALTHY
    
    def to_dict(self) -> Dict[str, str]:
        return {
            'message': self.message,
            'health': self.health.value
        }
